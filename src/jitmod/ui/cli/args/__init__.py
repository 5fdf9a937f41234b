"""Command line argument handling package."""

from jitmod.ui.cli.args.parser import ArgumentParser
from jitmod.ui.cli.args.options import CacheArgs, CLIArgs, LoaderFlags, RunArgs, TransformArgs

__all__ = ["ArgumentParser", "CLIArgs", "CacheArgs", "LoaderFlags", "RunArgs", "TransformArgs"]
