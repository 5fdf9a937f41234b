"""
Summary: Deterministic cache fingerprints for transform options.
Why: Any change to source, options or engine version must address a different cache entry.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from jitmod.shared.models import TransformOptions


def fingerprint_payload(options: TransformOptions) -> dict[str, Any]:
    """Return the canonical, JSON-serializable view of ``options`` used for hashing."""

    return {
        "source_hash": options.source_hash,
        "filename": options.filename,
        "syntax": {"esm": options.syntax.esm, "dialect": options.syntax.dialect},
        "retain_lines": options.retain_lines,
        "async": options.is_async,
        "engine_version": options.engine_version,
        "interop_default": options.interop_default,
        "source_maps": options.source_maps,
        "extra": dict(options.extra.items_),
    }


def compute_fingerprint(options: TransformOptions) -> str:
    """Hash ``options`` into a hex SHA-256 fingerprint. Pure, no I/O."""

    canonical = json.dumps(
        fingerprint_payload(options),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


__all__ = ["compute_fingerprint", "fingerprint_payload"]
