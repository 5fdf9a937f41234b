"""Command line argument parser."""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final, final

from jitmod.platform.logging import logger, set_console_level
from jitmod.ui.cli.args.options import CacheArgs, CLIArgs, LoaderFlags, RunArgs, TransformArgs

DEFAULT_PRUNE_DAYS: Final[float] = 30.0


def _parse_alias(value: str) -> tuple[str, str]:
    name, separator, target = value.partition("=")
    if not separator or not name.strip() or not target.strip():
        raise argparse.ArgumentTypeError(f"Alias must look like NAME=TARGET, got {value!r}")
    return name.strip(), target.strip()


@final
class ArgumentParser:
    """Command line argument parser."""

    @staticmethod
    def create_parser() -> argparse.ArgumentParser:
        """Create argument parser.

        Returns:
            argparse.ArgumentParser: Configured argument parser.
        """
        shared = argparse.ArgumentParser(add_help=False)
        ArgumentParser._configure_loader_flags(shared)

        parser = argparse.ArgumentParser(
            prog="jitmod",
            description="jitmod - run and inspect Python modules written in the module dialect.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        run_parser = subparsers.add_parser(
            "run",
            parents=[shared],
            help="Run a script as __main__ through the loader",
        )
        _ = run_parser.add_argument(
            "script",
            type=str,
            help="Script to run",
            metavar="SCRIPT",
        )
        _ = run_parser.add_argument(
            "script_args",
            nargs=argparse.REMAINDER,
            help="Arguments passed to the script through sys.argv",
            metavar="ARGS",
        )

        transform_parser = subparsers.add_parser(
            "transform",
            parents=[shared],
            help="Print the code generated for a file",
        )
        _ = transform_parser.add_argument(
            "file",
            type=str,
            help="File to transform",
            metavar="FILE",
        )
        _ = transform_parser.add_argument(
            "--async",
            dest="is_async",
            action="store_true",
            help="Generate code for the asynchronous import path",
        )
        _ = transform_parser.add_argument(
            "--no-retain-lines",
            dest="retain_lines",
            action="store_false",
            help="Expand rewritten statements onto separate lines",
        )

        cache_parser = subparsers.add_parser(
            "cache",
            parents=[shared],
            help="Inspect or clean the transform cache",
        )
        _ = cache_parser.add_argument(
            "action",
            choices=("info", "clear", "prune"),
            help="info: show statistics, clear: delete all entries, prune: delete old entries",
        )
        _ = cache_parser.add_argument(
            "--max-age-days",
            type=float,
            default=DEFAULT_PRUNE_DAYS,
            help=f"Entries older than this are pruned (default {DEFAULT_PRUNE_DAYS:g})",
            metavar="N",
        )

        return parser

    @staticmethod
    def process_args(args_list: Sequence[str] | None = None) -> CLIArgs:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).

        Returns:
            CLIArgs: Processed command line arguments.

        Raises:
            SystemExit: If a required file does not exist or validation fails.
        """
        parser = ArgumentParser.create_parser()
        parsed_args = parser.parse_args(args_list)

        flags = LoaderFlags(
            no_cache=parsed_args.no_cache,
            cache_dir=Path(parsed_args.cache_dir).expanduser() if parsed_args.cache_dir else None,
            alias=dict(parsed_args.alias or []),
            interop_default=parsed_args.interop_default,
            debug=parsed_args.debug,
        )
        if flags.debug:
            set_console_level(logging.DEBUG)

        command: str = parsed_args.command

        if command == "run":
            return ArgumentParser._process_run(parsed_args, flags)

        if command == "transform":
            return ArgumentParser._process_transform(parsed_args, flags)

        if command == "cache":
            return ArgumentParser._process_cache(parsed_args, flags)

        logger.error("Unsupported command: %s", command)
        sys.exit(2)

    @staticmethod
    def _configure_loader_flags(parser: argparse.ArgumentParser) -> None:
        """Apply loader switches shared by every subcommand."""

        _ = parser.add_argument(
            "--no-cache",
            action="store_true",
            help="Do not read or write the transform cache",
        )
        _ = parser.add_argument(
            "--cache-dir",
            type=str,
            help="Directory holding the transform cache",
            metavar="DIR",
        )
        _ = parser.add_argument(
            "--alias",
            type=_parse_alias,
            action="append",
            help="Rewrite specifiers starting with NAME to TARGET (repeatable)",
            metavar="NAME=TARGET",
        )
        _ = parser.add_argument(
            "--interop-default",
            action="store_true",
            help="Expose default exports through the module object",
        )
        _ = parser.add_argument(
            "--debug",
            action="store_true",
            help="Log loader events to the console",
        )

    @staticmethod
    def _existing_file(raw: str) -> Path:
        path = Path(raw).expanduser()
        if not path.is_file():
            logger.error("File does not exist: %s", path)
            sys.exit(1)
        return path.resolve()

    @staticmethod
    def _process_run(parsed_args: argparse.Namespace, flags: LoaderFlags) -> RunArgs:
        return RunArgs(
            command="run",
            script=ArgumentParser._existing_file(parsed_args.script),
            script_args=list(parsed_args.script_args),
            flags=flags,
        )

    @staticmethod
    def _process_transform(parsed_args: argparse.Namespace, flags: LoaderFlags) -> TransformArgs:
        return TransformArgs(
            command="transform",
            file=ArgumentParser._existing_file(parsed_args.file),
            is_async=parsed_args.is_async,
            retain_lines=parsed_args.retain_lines,
            flags=flags,
        )

    @staticmethod
    def _process_cache(parsed_args: argparse.Namespace, flags: LoaderFlags) -> CacheArgs:
        max_age_days: float = parsed_args.max_age_days
        if max_age_days < 0:
            logger.error("--max-age-days must not be negative; received %s", max_age_days)
            sys.exit(1)

        return CacheArgs(
            command="cache",
            action=parsed_args.action,
            max_age_days=max_age_days,
            flags=flags,
        )
