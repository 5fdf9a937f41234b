# Path: `src/jitmod/features/cache/__init__.py`
# Summary: Export fingerprinting and the on-disk transform cache.
# Why: Provide a stable import surface for the pipeline, CLI and tests.

from .adapters.file_cache_store import CacheStats, FileCacheStore, new_entry
from .domain.fingerprint import compute_fingerprint, fingerprint_payload

__all__ = [
    "CacheStats",
    "FileCacheStore",
    "compute_fingerprint",
    "fingerprint_payload",
    "new_entry",
]
