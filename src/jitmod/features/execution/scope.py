"""
Summary: Builds the names injected into the global scope of executed modules.
Why: Module code needs a require bound to its own directory plus the interop helpers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, final

from jitmod.features.transform import SCOPE_HELPERS
from jitmod.shared.models import ModuleRecord

from .ports import ImporterPort


@final
class ModuleRequire:
    """The ``require`` callable seen by one module.

    Relative specifiers resolve against the directory of the owning module.
    """

    __slots__ = ("_importer", "_record")

    def __init__(self, importer: ImporterPort, record: ModuleRecord) -> None:
        self._importer = importer
        self._record = record

    def __call__(self, specifier: str) -> Any:
        return self._importer.require_for(self._record, specifier)

    def resolve(self, specifier: str) -> Path:
        return self._importer.resolve(specifier, self._record.dirname)

    async def import_module(self, specifier: str) -> Any:
        return await self._importer.import_for(self._record, specifier)

    @property
    def main(self) -> bool:
        return self._record.main

    def __repr__(self) -> str:
        return f"<require from {self._record.dirname}>"


def populate_scope(record: ModuleRecord, importer: ImporterPort) -> ModuleRequire:
    """Bind module-scope names into ``record.namespace`` and return its ``require``."""

    require = ModuleRequire(importer, record)
    scope = record.namespace.__dict__
    filename = str(record.filename)
    scope.update(SCOPE_HELPERS)
    scope.update(
        {
            "module": record,
            "exports": record.exports,
            "require": require,
            "__jit_import__": require.import_module,
            "__filename__": filename,
            "__dirname__": str(record.dirname),
            "__file__": filename,
        }
    )
    return require


__all__ = ["ModuleRequire", "populate_scope"]
