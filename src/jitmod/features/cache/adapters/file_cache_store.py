"""
Summary: Content-addressed on-disk store for transform artifacts.
Why: Reuse transform output across processes without ever exposing a half-written entry.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, final

from jitmod.config.options import LoaderOptions
from jitmod.config.paths import resolve_cache_directory
from jitmod.platform.filesystem import atomic_write_text
from jitmod.platform.logging import logger
from jitmod.shared.errors import CacheIOError
from jitmod.shared.models import CacheEntry

_ENTRY_SUFFIX = ".json"
_TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Summary of the entries stored for one engine version."""

    directory: Path | None
    enabled: bool
    entries: int
    total_bytes: int


def _entry_to_payload(entry: CacheEntry) -> dict[str, Any]:
    return {
        "key": entry.key,
        "code": entry.code,
        "source_map": entry.source_map,
        "created_at": entry.created_at.isoformat(),
    }


def _entry_from_payload(payload: object) -> CacheEntry:
    if not isinstance(payload, dict):
        raise TypeError(f"expected an object, got {type(payload).__name__}")
    source_map = payload.get("source_map")
    return CacheEntry(
        key=str(payload["key"]),
        code=str(payload["code"]),
        source_map=str(source_map) if source_map is not None else None,
        created_at=datetime.fromisoformat(str(payload["created_at"])),
    )


@final
class FileCacheStore:
    """Fingerprint-keyed cache laid out as ``<root>/<engine_version>/<fp[:2]>/<fp>.json``.

    Entries are immutable: a write replaces the file atomically and, since the
    key is derived from the content inputs, rewriting an existing key produces
    identical bytes apart from the timestamp. Any I/O failure disables the
    store for the rest of the session instead of failing the load.
    """

    def __init__(self, root: Path | None, *, engine_version: str) -> None:
        self._engine_version = engine_version
        self._directory = root / engine_version if root is not None else None
        self._disabled_reason: str | None = None if root is not None else "caching is off"

    @classmethod
    def from_options(
        cls,
        options: LoaderOptions,
        *,
        project_root: Path | None = None,
    ) -> FileCacheStore:
        """Build a store honoring the cache switch and directory resolution order."""

        if not options.cache:
            return cls(None, engine_version=options.cache_version)
        root = resolve_cache_directory(options.cache_dir, project_root=project_root)
        return cls(root, engine_version=options.cache_version)

    @property
    def enabled(self) -> bool:
        return self._directory is not None and self._disabled_reason is None

    @property
    def directory(self) -> Path | None:
        return self._directory

    @property
    def disabled_reason(self) -> str | None:
        return self._disabled_reason

    def path_for(self, key: str) -> Path:
        if self._directory is None:
            raise CacheIOError("Cache store has no directory")
        return self._directory / key[:2] / f"{key}{_ENTRY_SUFFIX}"

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the entry stored under ``key``, or ``None`` on a miss."""

        if not self.enabled:
            return None

        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            self._disable(CacheIOError(f"Cannot read cache entry {path}: {exc}"))
            return None

        try:
            entry = _entry_from_payload(json.loads(raw.decode("utf-8")))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", path, exc)
            return None

        if entry.key != key:
            logger.warning("Ignoring cache entry %s stored under a different key", path)
            return None
        return entry

    def store(self, key: str, entry: CacheEntry) -> bool:
        """Persist ``entry`` under ``key``. Returns False when nothing was written."""

        if not self.enabled:
            return False
        try:
            self._write(self.path_for(key), entry)
        except CacheIOError as exc:
            self._disable(exc)
            return False
        return True

    async def lookup_async(self, key: str) -> CacheEntry | None:
        return await asyncio.to_thread(self.lookup, key)

    async def store_async(self, key: str, entry: CacheEntry) -> bool:
        return await asyncio.to_thread(self.store, key, entry)

    def prune(self, max_age: timedelta, *, now: float | None = None) -> int:
        """Delete entries (and stale temporaries) older than ``max_age``.

        Returns:
            int: Number of files removed.
        """
        if self._directory is None or not self._directory.exists():
            return 0

        cutoff = (now if now is not None else time.time()) - max_age.total_seconds()
        removed = 0
        for path in self._iter_files(include_temporaries=True):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Failed to prune cache file %s: %s", path, exc)
        return removed

    def clear(self) -> int:
        """Delete every entry stored for this engine version."""

        if self._directory is None or not self._directory.exists():
            return 0

        removed = 0
        for path in self._iter_files(include_temporaries=True):
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        return removed

    def stats(self) -> CacheStats:
        entries = 0
        total_bytes = 0
        if self._directory is not None and self._directory.exists():
            for path in self._iter_files(include_temporaries=False):
                try:
                    total_bytes += path.stat().st_size
                except FileNotFoundError:
                    continue
                entries += 1
        return CacheStats(
            directory=self._directory,
            enabled=self.enabled,
            entries=entries,
            total_bytes=total_bytes,
        )

    def _iter_files(self, *, include_temporaries: bool) -> list[Path]:
        assert self._directory is not None
        files: list[Path] = []
        for path in self._directory.glob("*/*"):
            if not path.is_file():
                continue
            if path.suffix == _ENTRY_SUFFIX or (include_temporaries and path.suffix == _TEMP_SUFFIX):
                files.append(path)
        return files

    def _write(self, path: Path, entry: CacheEntry) -> None:
        try:
            atomic_write_text(path, json.dumps(_entry_to_payload(entry), ensure_ascii=False))
        except OSError as exc:
            raise CacheIOError(f"Cannot write cache entry {path}: {exc}") from exc

    def _disable(self, error: CacheIOError) -> None:
        if self._disabled_reason is not None:
            return
        self._disabled_reason = str(error)
        logger.warning(
            "Transform cache disabled for this session: %s",
            error,
            extra={"loader_event": "cache.disabled", "reason": str(error)},
        )


def new_entry(key: str, code: str, source_map: str | None) -> CacheEntry:
    """Create a cache entry stamped with the current UTC time."""

    return CacheEntry(key=key, code=code, source_map=source_map, created_at=datetime.now(UTC))


__all__ = ["CacheStats", "FileCacheStore", "new_entry"]
