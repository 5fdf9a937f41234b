"""
Summary: Cache-aware transform pipeline around a pluggable transformer.
Why: Transform each (source, options) pair once and never cache or run a failed transform.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from typing import Any, Final, final

from jitmod.features.cache import compute_fingerprint, new_entry
from jitmod.platform.logging import logger
from jitmod.shared.errors import TransformError
from jitmod.shared.models import TransformOptions, TransformResult

from .ports import CacheStorePort, Transformer

INTEROP_FOOTER: Final[str] = "module.exports = __jit_interop__(module.exports)\n"


def _coerce_result(raw: Any, filename: str) -> TransformResult:
    if isinstance(raw, TransformResult):
        return raw
    if isinstance(raw, Mapping):
        error = raw.get("error")
        source_map = raw.get("source_map", raw.get("map"))
        return TransformResult(
            code=str(raw.get("code") or ""),
            source_map=str(source_map) if source_map is not None else None,
            error=str(error) if error else None,
        )
    if isinstance(raw, str):
        return TransformResult(code=raw)
    raise TransformError(filename, f"Transformer returned unsupported value {type(raw).__name__}")


def _append_interop_footer(code: str, source_map: str | None) -> tuple[str, str | None]:
    if code and not code.endswith("\n"):
        code += "\n"
    code += INTEROP_FOOTER
    if source_map is None:
        return code, None

    try:
        payload = json.loads(source_map)
        lines = payload["lines"]
    except (ValueError, KeyError, TypeError):
        return code, source_map
    if isinstance(lines, list):
        lines.append(lines[-1] if lines else 1)
    return code, json.dumps(payload, sort_keys=True, separators=(",", ":"))


@final
class TransformPipeline:
    """Fingerprint → cache lookup → transform → normalize → store."""

    def __init__(self, *, transformer: Transformer, cache: CacheStorePort) -> None:
        self._transformer = transformer
        self._cache = cache

    @property
    def cache(self) -> CacheStorePort:
        return self._cache

    def transform(self, options: TransformOptions) -> TransformResult:
        """Return transformed code for ``options``, from cache when possible.

        Raises:
            TransformError: If the transformer raises or reports an error.
        """
        key = compute_fingerprint(options)
        entry = self._cache.lookup(key)
        if entry is not None:
            self._log_cache_hit(options, key)
            return TransformResult(code=entry.code, source_map=entry.source_map)

        self._log_cache_miss(options, key)
        result = self._run(options)
        if self._cache.store(key, new_entry(key, result.code, result.source_map)):
            self._log_cache_write(options, key)
        return result

    async def transform_async(self, options: TransformOptions) -> TransformResult:
        """Awaitable ``transform`` whose cache I/O runs off the event loop."""

        key = compute_fingerprint(options)
        entry = await self._cache.lookup_async(key)
        if entry is not None:
            self._log_cache_hit(options, key)
            return TransformResult(code=entry.code, source_map=entry.source_map)

        self._log_cache_miss(options, key)
        result = self._run(options)
        if await self._cache.store_async(key, new_entry(key, result.code, result.source_map)):
            self._log_cache_write(options, key)
        return result

    def _run(self, options: TransformOptions) -> TransformResult:
        started = time.perf_counter()
        try:
            raw = self._transformer(options)
        except TransformError:
            raise
        except Exception as exc:
            self._log_failure(options, f"{type(exc).__name__}: {exc}")
            raise TransformError(options.filename, f"{type(exc).__name__}: {exc}") from exc

        result = _coerce_result(raw, options.filename)
        if result.error:
            self._log_failure(options, result.error)
            raise TransformError(options.filename, result.error)

        code = result.code
        source_map = result.source_map if options.source_maps else None
        if options.interop_default:
            code, source_map = _append_interop_footer(code, source_map)

        logger.debug(
            "Transformed %s",
            options.filename,
            extra={
                "loader_event": "transform",
                "path": options.filename,
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return TransformResult(code=code, source_map=source_map)

    def _log_cache_hit(self, options: TransformOptions, key: str) -> None:
        logger.debug(
            "Using cached transform for %s",
            options.filename,
            extra={"loader_event": "cache.hit", "path": options.filename, "cache_key": key},
        )

    def _log_cache_miss(self, options: TransformOptions, key: str) -> None:
        if not self._cache.enabled:
            return
        logger.debug(
            "No cached transform for %s",
            options.filename,
            extra={"loader_event": "cache.miss", "path": options.filename, "cache_key": key},
        )

    def _log_cache_write(self, options: TransformOptions, key: str) -> None:
        logger.debug(
            "Cached transform for %s",
            options.filename,
            extra={"loader_event": "cache.write", "path": options.filename, "cache_key": key},
        )

    def _log_failure(self, options: TransformOptions, diagnostic: str) -> None:
        logger.debug(
            "Transform failed for %s: %s",
            options.filename,
            diagnostic,
            extra={"loader_event": "transform.error", "path": options.filename, "reason": diagnostic},
        )


__all__ = ["INTEROP_FOOTER", "TransformPipeline"]
