"""Where: src/jitmod/config/options.py
What: Immutable loader configuration resolved once per loader instance.
Why: Give every component the same validated view of the configuration surface.
Assumptions: - Callers resolve environment and file sources before construction.
Trade-offs: - Mappings are frozen into read-only proxies instead of deep copies per access.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

from jitmod.shared.errors import ConfigError
from jitmod.shared.models import ExtraValue

# Bumped whenever generated code or the cache record format changes.
ENGINE_VERSION: Final[str] = "0.1.0-c1"

DEFAULT_EXTENSIONS: Final[tuple[str, ...]] = (".py", ".pym", ".json")
DIALECT_EXTENSIONS: Final[tuple[str, ...]] = (".pym",)
DEFAULT_INDEX_NAMES: Final[tuple[str, ...]] = ("__init__", "index")
DEFAULT_NATIVE_BOUNDARIES: Final[tuple[str, ...]] = ("site-packages", "dist-packages")


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True, slots=True)
class LoaderOptions:
    """Loader configuration.

    Attributes:
        extensions: Suffixes probed during resolution, earlier entries win.
        alias: Specifier prefixes rewritten before resolution.
        native_modules: Packages always executed by the host loader.
        transform_modules: Packages always transformed, even under a native boundary.
        native_boundaries: Directory names holding third-party dependencies.
        index_names: Entry file stems tried when a specifier names a directory.
        cache: Whether transform results are persisted.
        cache_dir: Explicit cache directory; detected when ``None``.
        cache_version: Engine version mixed into every fingerprint.
        source_maps: Whether line maps are kept alongside transformed code.
        require_cache: Whether repeated requires reuse registry records.
        interop_default: Whether exports are wrapped for default-export interop.
        retain_lines: Whether transformed code keeps original line numbers.
        debug: Whether loader events are logged at DEBUG level on the console.
        transform_extra: Extra transformer options, see ``TransformExtras``.
    """

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    alias: Mapping[str, str] = field(default_factory=dict)
    native_modules: tuple[str, ...] = ()
    transform_modules: tuple[str, ...] = ()
    native_boundaries: tuple[str, ...] = DEFAULT_NATIVE_BOUNDARIES
    index_names: tuple[str, ...] = DEFAULT_INDEX_NAMES
    cache: bool = True
    cache_dir: Path | None = None
    cache_version: str = ENGINE_VERSION
    source_maps: bool = True
    require_cache: bool = True
    interop_default: bool = False
    retain_lines: bool = True
    debug: bool = False
    transform_extra: Mapping[str, ExtraValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        extensions = tuple(self.extensions)
        for extension in extensions:
            if not extension.startswith(".") or len(extension) < 2:
                raise ConfigError(f"Extensions must start with a dot: {extension!r}")
        object.__setattr__(self, "extensions", extensions)
        object.__setattr__(self, "native_modules", tuple(self.native_modules))
        object.__setattr__(self, "transform_modules", tuple(self.transform_modules))
        object.__setattr__(self, "native_boundaries", tuple(self.native_boundaries))
        object.__setattr__(self, "index_names", tuple(self.index_names))
        object.__setattr__(self, "alias", _frozen_mapping(self.alias))
        object.__setattr__(self, "transform_extra", _frozen_mapping(self.transform_extra))
        if self.cache_dir is not None and not isinstance(self.cache_dir, Path):
            object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())
        if not self.cache_version:
            raise ConfigError("cache_version must not be empty")

    def replace(self, **changes: Any) -> LoaderOptions:
        """Return a copy with ``changes`` applied."""

        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConfigError(f"Unknown loader options: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_INDEX_NAMES",
    "DEFAULT_NATIVE_BOUNDARIES",
    "DIALECT_EXTENSIONS",
    "ENGINE_VERSION",
    "LoaderOptions",
]
