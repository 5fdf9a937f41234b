"""Tests for the per-loader module registry."""

from __future__ import annotations

from pathlib import Path

from jitmod.features.execution import ModuleRegistry
from jitmod.shared.models import ModuleRecord


def _record(name: str = "mod", *, native: bool = False) -> ModuleRecord:
    path = Path("/project") / f"{name}.py"
    return ModuleRecord(id=str(path), filename=path, native=native)


def test_add_get_and_remove() -> None:
    registry = ModuleRegistry()
    record = _record()

    assert registry.add(record) is record
    assert registry.get(record.id) is record
    assert record.id in registry
    assert len(registry) == 1

    assert registry.remove(record.id) is True
    assert registry.get(record.id) is None
    assert registry.remove(record.id) is False


def test_native_records_are_never_replaced() -> None:
    registry = ModuleRegistry()
    native = _record(native=True)
    _ = registry.add(native)

    assert registry.add(_record()) is native
    assert registry.get(native.id) is native


def test_plain_records_are_replaced() -> None:
    registry = ModuleRegistry()
    first = _record()
    second = _record()
    _ = registry.add(first)

    assert registry.add(second) is second
    assert registry.get(second.id) is second


def test_remove_with_record_only_removes_that_record() -> None:
    registry = ModuleRegistry()
    stale = _record()
    current = _record()
    _ = registry.add(current)

    assert registry.remove(current.id, stale) is False
    assert registry.get(current.id) is current
    assert registry.remove(current.id, current) is True


def test_empty_registry_is_falsy_but_usable() -> None:
    registry = ModuleRegistry()

    assert not registry
    assert registry.keys() == []


def test_iteration_and_clear() -> None:
    registry = ModuleRegistry()
    records = [_record("a"), _record("b")]
    for record in records:
        _ = registry.add(record)

    assert list(registry) == records
    assert registry.keys() == [record.id for record in records]

    registry.clear()

    assert len(registry) == 0
