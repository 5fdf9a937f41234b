"""Shared value objects for the loading engine.

Where: shared/.
What: Dataclasses describing resolution results, transform options, cache entries and module records.
Why: Keep the contracts between resolver, pipeline, cache and executor in one place.
"""

from __future__ import annotations

import hashlib
import weakref
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from types import ModuleType
from typing import Any, Final

__all__ = [
    "CacheEntry",
    "Classification",
    "ExtraValue",
    "HELPER_PREFIX_KEY",
    "ModuleRecord",
    "RECOGNIZED_EXTRA_KEYS",
    "ResolveRequest",
    "ResolvedModule",
    "SOURCE_ROOT_KEY",
    "SyntaxFlags",
    "TransformExtras",
    "TransformOptions",
    "TransformResult",
    "hash_source",
]

ExtraValue = str | int | float | bool | None

# Prefix used for temporaries generated while rewriting string-specifier imports.
HELPER_PREFIX_KEY: Final[str] = "helper_prefix"
# Value written to the ``sourceRoot`` field of generated source maps.
SOURCE_ROOT_KEY: Final[str] = "source_root"

RECOGNIZED_EXTRA_KEYS: Final[frozenset[str]] = frozenset({HELPER_PREFIX_KEY, SOURCE_ROOT_KEY})


def hash_source(source: str) -> str:
    """Return the SHA-256 hex digest of ``source`` encoded as UTF-8."""

    return hashlib.sha256(source.encode("utf-8")).hexdigest()


class Classification(StrEnum):
    """How a resolved file is handed to the executor."""

    NATIVE = "native"
    FORCE_TRANSFORM = "force-transform"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ResolveRequest:
    """A single resolution call."""

    specifier: str
    from_directory: Path


@dataclass(frozen=True, slots=True)
class ResolvedModule:
    """Result of resolving a specifier to a file on disk."""

    absolute_path: Path
    is_native: bool = False
    extension: str = ""
    # Dotted import name, set when the host import path located the file.
    module_name: str | None = None

    @property
    def key(self) -> str:
        """Registry key for this module."""

        return str(self.absolute_path)


@dataclass(frozen=True, slots=True)
class SyntaxFlags:
    """Syntax features of a source file that the host cannot run as-is."""

    esm: bool = False
    dialect: bool = False

    @property
    def requires_transform(self) -> bool:
        return self.esm or self.dialect


@dataclass(frozen=True, slots=True, init=False)
class TransformExtras(Mapping[str, ExtraValue]):
    """Immutable key/value options forwarded to the transformer.

    Recognized keys are listed in ``RECOGNIZED_EXTRA_KEYS``. Other keys are kept
    so newer transformers can read them, and every key takes part in the cache
    fingerprint. Values are restricted to JSON scalars so fingerprints stay stable.
    """

    items_: tuple[tuple[str, ExtraValue], ...]

    def __init__(self, values: Mapping[str, ExtraValue] | None = None) -> None:
        pairs = dict(values or {})
        for key, value in pairs.items():
            if not isinstance(key, str):
                raise TypeError(f"Transform extra keys must be strings, got {key!r}")
            if value is not None and not isinstance(value, (str, int, float, bool)):
                raise TypeError(
                    f"Transform extra '{key}' must be a JSON scalar, got {type(value).__name__}"
                )
        object.__setattr__(self, "items_", tuple(sorted(pairs.items())))

    def __getitem__(self, key: str) -> ExtraValue:
        for name, value in self.items_:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self.items_)

    def __len__(self) -> int:
        return len(self.items_)

    def unknown_keys(self) -> list[str]:
        """Return keys the bundled transformer does not interpret."""

        return [name for name in self if name not in RECOGNIZED_EXTRA_KEYS]


@dataclass(frozen=True, slots=True)
class TransformOptions:
    """Everything the transformer needs, and everything the cache key covers."""

    source: str
    filename: str = "<string>"
    syntax: SyntaxFlags = SyntaxFlags()
    retain_lines: bool = True
    is_async: bool = False
    engine_version: str = ""
    interop_default: bool = False
    source_maps: bool = True
    extra: TransformExtras = field(default_factory=TransformExtras)
    source_hash: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_hash", hash_source(self.source))


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Transformer output. A non-empty ``error`` marks a failed transform."""

    code: str
    source_map: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A persisted transform artifact."""

    key: str
    code: str
    source_map: str | None
    created_at: datetime


@dataclass(eq=False)
class ModuleRecord:
    """A module known to the registry.

    ``namespace`` is the module object whose ``__dict__`` is the global scope of
    the executed code. ``exports`` starts out as that namespace and may be
    replaced by module code through ``module.exports = value``.
    """

    id: str
    filename: Path
    namespace: ModuleType = field(default_factory=lambda: ModuleType("<jitmod>"))
    exports: Any = None
    loaded: bool = False
    native: bool = False
    main: bool = False
    children: list[ModuleRecord] = field(default_factory=list)
    _parent: weakref.ReferenceType[ModuleRecord] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.exports is None:
            self.exports = self.namespace

    @property
    def parent(self) -> ModuleRecord | None:
        """The module that first required this one, if it is still alive."""

        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value: ModuleRecord | None) -> None:
        self._parent = weakref.ref(value) if value is not None else None

    @property
    def dirname(self) -> Path:
        return self.filename.parent

    def add_child(self, child: ModuleRecord) -> None:
        """Record ``child`` as required by this module, once."""

        if child is self or any(existing is child for existing in self.children):
            return
        self.children.append(child)
