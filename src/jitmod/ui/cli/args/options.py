"""Command line argument options."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, final


@final
@dataclass(slots=True)
class LoaderFlags:
    """Loader switches shared by every subcommand."""

    no_cache: bool = False
    cache_dir: Path | None = None
    alias: dict[str, str] = field(default_factory=dict)
    interop_default: bool = False
    debug: bool = False

    def overrides(self) -> dict[str, Any]:
        """Return the ``LoaderOptions`` fields these flags set explicitly."""

        values: dict[str, Any] = {}
        if self.no_cache:
            values["cache"] = False
        if self.cache_dir is not None:
            values["cache_dir"] = self.cache_dir
        if self.alias:
            values["alias"] = dict(self.alias)
        if self.interop_default:
            values["interop_default"] = True
        if self.debug:
            values["debug"] = True
        return values


@final
@dataclass(slots=True)
class RunArgs:
    """Command line arguments for the ``run`` subcommand."""

    command: Literal["run"]
    script: Path
    script_args: list[str]
    flags: LoaderFlags


@final
@dataclass(slots=True)
class TransformArgs:
    """Command line arguments for the ``transform`` subcommand."""

    command: Literal["transform"]
    file: Path
    is_async: bool
    retain_lines: bool
    flags: LoaderFlags


@final
@dataclass(slots=True)
class CacheArgs:
    """Command line arguments for the ``cache`` subcommand."""

    command: Literal["cache"]
    action: Literal["info", "clear", "prune"]
    max_age_days: float
    flags: LoaderFlags


CLIArgs = RunArgs | TransformArgs | CacheArgs

__all__ = ["CLIArgs", "CacheArgs", "LoaderFlags", "RunArgs", "TransformArgs"]
