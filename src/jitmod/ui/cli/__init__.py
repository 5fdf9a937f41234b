"""Command line interface package."""

from jitmod.ui.cli.cli import CommandProcessor, main

__all__ = ["CommandProcessor", "main"]
