"""
Summary: Per-loader table of module records keyed by absolute path.
Why: Keep loaded modules out of sys.modules while still sharing them between requests.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import final

from jitmod.shared.models import ModuleRecord


@final
class ModuleRegistry:
    """Mutable mapping from registry key to ``ModuleRecord``.

    Records created by the host loader are never replaced: adding a record
    under a key already held by a native record returns the native one.
    """

    def __init__(self) -> None:
        self._records: dict[str, ModuleRecord] = {}

    def get(self, key: str) -> ModuleRecord | None:
        return self._records.get(key)

    def add(self, record: ModuleRecord) -> ModuleRecord:
        """Register ``record`` and return the record now held under its key."""

        existing = self._records.get(record.id)
        if existing is not None and existing.native and existing is not record:
            return existing
        self._records[record.id] = record
        return record

    def remove(self, key: str, record: ModuleRecord | None = None) -> bool:
        """Drop the record under ``key``.

        When ``record`` is given, only that exact record is removed so a failed
        load never evicts a record somebody else registered.
        """
        existing = self._records.get(key)
        if existing is None or (record is not None and existing is not record):
            return False
        del self._records[key]
        return True

    def clear(self) -> None:
        self._records.clear()

    def keys(self) -> list[str]:
        return list(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ModuleRecord]:
        return iter(list(self._records.values()))


__all__ = ["ModuleRegistry"]
