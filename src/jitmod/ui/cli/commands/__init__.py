"""Command execution package for CLI."""

from jitmod.ui.cli.commands.cache import CacheCommand
from jitmod.ui.cli.commands.run import RunCommand
from jitmod.ui.cli.commands.transform import TransformCommand

__all__ = ["CacheCommand", "RunCommand", "TransformCommand"]
