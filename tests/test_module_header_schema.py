"""
Summary: Validate module header docstrings across the feature and application layers.
Why: Keep every layer module self-describing as features are added.
"""

from __future__ import annotations

from pathlib import Path

import pytest

HEADER_OPEN: str = '"""'
HEADER_CLOSE: str = '"""'
SUMMARY_PREFIX: str = "Summary: "
WHY_PREFIX: str = "Why: "
WHERE_PREFIX: str = "Where: "
WHAT_PREFIX: str = "What: "
REPO_ROOT: Path = Path(__file__).resolve().parents[1]
PACKAGE_ROOT: Path = REPO_ROOT / "src" / "jitmod"

# Layer modules whose header must follow one of the two schemas below.
LAYER_GLOBS: tuple[str, ...] = (
    "features/*/domain/*.py",
    "features/*/usecases/*.py",
    "features/*/adapters/*.py",
    "features/execution/*.py",
    "application/*.py",
    "shared/errors.py",
)
EXTRA_MODULES: tuple[Path, ...] = (Path("tests/architecture/test_layer_boundaries.py"),)


def _target_modules() -> list[Path]:
    found: set[Path] = set()
    for pattern in LAYER_GLOBS:
        for path in PACKAGE_ROOT.glob(pattern):
            if path.name != "__init__.py" or path.parent.name == "application":
                found.add(path.relative_to(REPO_ROOT))
    return sorted(found) + list(EXTRA_MODULES)


TARGET_MODULES: list[Path] = _target_modules()


def _header(module_path: Path) -> list[str]:
    content_lines = (REPO_ROOT / module_path).read_text(encoding="utf-8").splitlines()
    start_index = next(
        (index for index, line in enumerate(content_lines) if line.strip()),
        None,
    )
    assert start_index is not None, f"{module_path} must not be empty"
    assert content_lines[start_index].strip() == HEADER_OPEN, (
        f"{module_path} must start with header docstring"
    )

    for end_index in range(start_index + 1, len(content_lines)):
        if content_lines[end_index].strip() == HEADER_CLOSE:
            return content_lines[start_index + 1 : end_index]
    pytest.fail(f"{module_path} header must close with triple quotes")


def _field(lines: list[str], prefix: str) -> str | None:
    for line in lines:
        if line.startswith(prefix):
            return line.removeprefix(prefix).strip()
    return None


def test_layer_modules_are_discovered() -> None:
    names = {path.as_posix() for path in TARGET_MODULES}

    assert "src/jitmod/features/execution/executor.py" in names
    assert "src/jitmod/features/transform/usecases/ports.py" in names
    assert "src/jitmod/application/loader.py" in names


@pytest.mark.parametrize("module_path", TARGET_MODULES, ids=lambda path: str(path))
def test_module_headers_follow_schema(module_path: Path) -> None:
    """Headers are either ``Summary``/``Why`` lines or a title with ``Where``/``What``/``Why``."""

    lines = _header(module_path)

    if lines and lines[0].startswith(SUMMARY_PREFIX):
        assert len(lines) == 2, f"{module_path} Summary header must hold exactly two lines"
        assert _field(lines, SUMMARY_PREFIX), f"{module_path} summary text cannot be empty"
        assert lines[1].startswith(WHY_PREFIX), (
            f"{module_path} why line must begin with '{WHY_PREFIX}'"
        )
        assert _field(lines, WHY_PREFIX), f"{module_path} why text cannot be empty"
        return

    assert lines and lines[0].strip(), f"{module_path} header needs a title line"
    for prefix in (WHERE_PREFIX, WHAT_PREFIX, WHY_PREFIX):
        assert _field(lines, prefix), f"{module_path} header must provide a '{prefix.strip()}' line"
