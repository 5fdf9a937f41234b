"""Where: src/jitmod/config/config.py
What: Build ``LoaderOptions`` from defaults, pyproject.toml, environment and overrides.
Why: Give the facade, the hook and the CLI one precedence order for configuration.
Assumptions: - The ``[tool.jitmod]`` table uses the ``LoaderOptions`` field names.
Trade-offs: - Unknown keys fail loudly instead of being ignored.
"""

from __future__ import annotations

import dataclasses
import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from jitmod.config.options import LoaderOptions
from jitmod.config.paths import detect_project_root, resolve_overridable_path
from jitmod.platform.logging import logger
from jitmod.shared.errors import ConfigError

PYPROJECT_FILE: Final[str] = "pyproject.toml"
PROJECT_ROOT_ENV: Final[str] = "JITMOD_PROJECT_ROOT"

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})

# Environment variable -> option for plain boolean switches.
_BOOL_ENV: Final[dict[str, str]] = {
    "JITMOD_DEBUG": "debug",
    "JITMOD_SOURCE_MAPS": "source_maps",
    "JITMOD_REQUIRE_CACHE": "require_cache",
    "JITMOD_INTEROP_DEFAULT": "interop_default",
    "JITMOD_RETAIN_LINES": "retain_lines",
}
_LIST_ENV: Final[dict[str, str]] = {
    "JITMOD_NATIVE_MODULES": "native_modules",
    "JITMOD_TRANSFORM_MODULES": "transform_modules",
}
_TUPLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"extensions", "native_modules", "transform_modules", "native_boundaries", "index_names"}
)
_BOOL_FIELDS: Final[frozenset[str]] = frozenset(
    {"cache", "source_maps", "require_cache", "interop_default", "retain_lines", "debug"}
)
_MAPPING_FIELDS: Final[frozenset[str]] = frozenset({"alias", "transform_extra"})


def parse_bool(value: str, *, name: str) -> bool:
    """Parse a boolean switch such as ``1``, ``true``, ``off``."""

    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean switch, got {value!r}")


def _parse_json(value: str, *, name: str) -> Any:
    try:
        return json.loads(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be valid JSON: {exc}") from exc


def _string_list(value: Any, *, name: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{name} must be a list of strings")
    return tuple(value)


def _string_mapping(value: Any, *, name: str) -> dict[str, str]:
    if not isinstance(value, dict) or not all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    ):
        raise ConfigError(f"{name} must map strings to strings")
    return dict(value)


def resolve_project_root(
    explicit: Path | str | None = None,
    *,
    env: Mapping[str, str] | None = None,
    start: Path | None = None,
) -> Path:
    """Return the project root used for configuration and the default cache."""

    return resolve_overridable_path(
        explicit_path=explicit,
        env=env,
        env_var=PROJECT_ROOT_ENV,
        default_factory=lambda: detect_project_root(start) or (start or Path.cwd()),
    )


def read_project_table(project_root: Path) -> dict[str, Any]:
    """Return the ``[tool.jitmod]`` table of ``project_root/pyproject.toml``.

    Raises:
        ConfigError: If the file exists but is not valid TOML.
    """
    pyproject = project_root / PYPROJECT_FILE
    if not pyproject.is_file():
        return {}
    try:
        with open(pyproject, "rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid {pyproject}: {exc}") from exc

    table = document.get("tool", {}).get("jitmod", {})
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.jitmod] in {pyproject} must be a table")
    return table


def _options_from_table(table: Mapping[str, Any], project_root: Path) -> dict[str, Any]:
    known = {f.name for f in dataclasses.fields(LoaderOptions)}
    values: dict[str, Any] = {}
    for raw_key, value in table.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            raise ConfigError(f"Unknown option '{raw_key}' in [tool.jitmod]")
        if key in _TUPLE_FIELDS:
            values[key] = _string_list(value, name=raw_key)
        elif key in _BOOL_FIELDS:
            if not isinstance(value, bool):
                raise ConfigError(f"Option '{raw_key}' must be true or false")
            values[key] = value
        elif key == "alias":
            values[key] = _string_mapping(value, name=raw_key)
        elif key == "transform_extra":
            if not isinstance(value, dict):
                raise ConfigError(f"Option '{raw_key}' must be a table")
            values[key] = dict(value)
        elif key == "cache_dir":
            values[key] = (project_root / str(value)).expanduser().resolve()
        else:
            values[key] = str(value)
    return values


def _options_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, key in _BOOL_ENV.items():
        raw = env.get(name)
        if raw is not None and raw.strip():
            values[key] = parse_bool(raw, name=name)

    cache = (env.get("JITMOD_CACHE") or "").strip()
    if cache:
        lowered = cache.lower()
        if lowered in _TRUE_VALUES or lowered in _FALSE_VALUES:
            values["cache"] = lowered in _TRUE_VALUES
        else:
            values["cache"] = True
            values["cache_dir"] = Path(cache).expanduser().resolve()

    alias = (env.get("JITMOD_ALIAS") or "").strip()
    if alias:
        values["alias"] = _string_mapping(_parse_json(alias, name="JITMOD_ALIAS"), name="JITMOD_ALIAS")

    for name, key in _LIST_ENV.items():
        raw = (env.get(name) or "").strip()
        if raw:
            values[key] = _string_list(_parse_json(raw, name=name), name=name)
    return values


def load_options(
    *,
    project_root: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> LoaderOptions:
    """Merge configuration sources into ``LoaderOptions``.

    Precedence, lowest first: defaults, ``[tool.jitmod]`` in the project's
    pyproject.toml, ``JITMOD_*`` environment variables, ``overrides``.

    Args:
        project_root: Project directory; detected from the working directory when omitted.
        env: Environment mapping; ``os.environ`` when omitted.
        **overrides: ``LoaderOptions`` fields set explicitly by the caller.

    Returns:
        LoaderOptions: The validated options.

    Raises:
        ConfigError: If any source holds a malformed or unknown value.
    """
    mapping = env if env is not None else os.environ
    root = resolve_project_root(project_root, env=mapping)

    values: dict[str, Any] = {}
    table = read_project_table(root)
    if table:
        values.update(_options_from_table(table, root))
        logger.debug("Loaded [tool.jitmod] from %s", root / PYPROJECT_FILE)
    values.update(_options_from_env(mapping))
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return LoaderOptions().replace(**values)
    except TypeError as exc:
        raise ConfigError(f"Invalid loader options: {exc}") from exc


__all__ = [
    "PROJECT_ROOT_ENV",
    "PYPROJECT_FILE",
    "load_options",
    "parse_bool",
    "read_project_table",
    "resolve_project_root",
]
