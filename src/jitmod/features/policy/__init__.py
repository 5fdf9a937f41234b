# Path: `src/jitmod/features/policy/__init__.py`
# Summary: Export the transform policy matcher.
# Why: Provide a stable import surface for the loader and tests.

from .domain.policy_matcher import HOST_ONLY_EXTENSIONS, PolicyMatcher

__all__ = ["HOST_ONLY_EXTENSIONS", "PolicyMatcher"]
