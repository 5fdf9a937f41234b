"""Display management for CLI interface."""

from jitmod.ui.cli.display.cache import CacheDisplay
from jitmod.ui.cli.display.transform import TransformDisplay

__all__ = ["CacheDisplay", "TransformDisplay"]
