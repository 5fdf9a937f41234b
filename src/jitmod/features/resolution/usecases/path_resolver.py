"""
Summary: Resolve module specifiers to absolute files via aliases, extension and index probing.
Why: Every load starts from a concrete file so policy and caching can key on it.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from importlib.machinery import PathFinder
from pathlib import Path
from typing import final

from jitmod.platform.logging import logger
from jitmod.shared.errors import ResolutionError
from jitmod.shared.models import ResolvedModule, ResolveRequest

from ..domain.alias import AliasTable

_FILE_URL_PREFIX = "file://"


def _is_path_like(specifier: str) -> bool:
    return (
        specifier in {".", ".."}
        or specifier.startswith(("./", "../", "/"))
        or os.path.isabs(specifier)
    )


@final
class PathResolver:
    """Turn ``(specifier, from_directory)`` into a ``ResolvedModule``.

    Candidates are tried in this order:

    1. alias substitution on the leading segments of the specifier,
    2. the exact path,
    3. the path plus each configured extension,
    4. the path as a directory plus each index name and extension.

    Bare specifiers (``pkg`` or ``pkg/sub/module``) are looked up on the host
    import path without executing any package code.
    """

    def __init__(
        self,
        *,
        extensions: Sequence[str],
        aliases: Mapping[str, str] | None = None,
        index_names: Sequence[str] = ("__init__", "index"),
    ) -> None:
        self._extensions = tuple(extensions)
        self._aliases = AliasTable.from_mapping(aliases or {})
        self._index_names = tuple(index_names)

    @property
    def aliases(self) -> AliasTable:
        return self._aliases

    def resolve_alias(self, specifier: str) -> str:
        """Apply alias substitution without touching the filesystem."""

        return self._aliases.apply(specifier)

    def resolve(self, specifier: str, from_directory: Path | str) -> ResolvedModule:
        """Resolve ``specifier`` relative to ``from_directory``.

        Raises:
            ResolutionError: If no candidate file exists.
        """
        return self.resolve_request(ResolveRequest(specifier, Path(from_directory)))

    def resolve_request(self, request: ResolveRequest) -> ResolvedModule:
        specifier = request.specifier
        if specifier.startswith(_FILE_URL_PREFIX):
            specifier = specifier[len(_FILE_URL_PREFIX):]
        if not specifier:
            raise ResolutionError(request.specifier, request.from_directory)

        rewritten = self.resolve_alias(specifier)
        if rewritten != specifier:
            logger.debug("Alias rewrote '%s' to '%s'", specifier, rewritten)

        if _is_path_like(rewritten):
            base = Path(os.path.normpath(request.from_directory / rewritten))
            if not base.is_absolute():
                base = Path(os.path.abspath(base))
            found = self._probe(base)
            if found is None:
                raise ResolutionError(request.specifier, request.from_directory)
            return ResolvedModule(absolute_path=found, extension=found.suffix)

        return self._resolve_bare(rewritten, request)

    def _candidates(self, base: Path) -> Iterator[Path]:
        yield base
        for extension in self._extensions:
            yield Path(f"{base}{extension}")
        for index_name in self._index_names:
            for extension in self._extensions:
                yield base / f"{index_name}{extension}"

    def _probe(self, base: Path) -> Path | None:
        for candidate in self._candidates(base):
            if candidate.is_file():
                return candidate
        return None

    def _resolve_bare(self, specifier: str, request: ResolveRequest) -> ResolvedModule:
        if "/" not in specifier and all(part.isidentifier() for part in specifier.split(".")):
            specifier = specifier.replace(".", "/")
        top_level, _, remainder = specifier.partition("/")
        if not top_level.isidentifier():
            raise ResolutionError(request.specifier, request.from_directory)

        spec = PathFinder.find_spec(top_level)
        if spec is None:
            raise ResolutionError(request.specifier, request.from_directory)

        found: Path | None = None
        if remainder:
            for location in spec.submodule_search_locations or ():
                found = self._probe(Path(location) / remainder)
                if found is not None:
                    break
        elif spec.origin and os.path.isfile(spec.origin):
            found = Path(spec.origin)

        if found is None:
            raise ResolutionError(request.specifier, request.from_directory)

        return ResolvedModule(
            absolute_path=found,
            is_native=True,
            extension=found.suffix,
            module_name=_dotted_name(top_level, remainder, found),
        )


def _dotted_name(top_level: str, remainder: str, found: Path) -> str:
    parts = [top_level, *(part for part in remainder.split("/") if part and part != ".")]
    if len(parts) > 1 and found.suffix and parts[-1].endswith(found.suffix):
        parts[-1] = parts[-1][: -len(found.suffix)]
    return ".".join(parts)


__all__ = ["PathResolver"]
