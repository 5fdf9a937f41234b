"""
Summary: Turns resolved files into live module records, synchronously or on the event loop.
Why: Share preparation between require and import while keeping their cycle and registration rules apart.
"""

from __future__ import annotations

import ast
import asyncio
import inspect
import time
from contextvars import ContextVar
from types import CodeType, ModuleType
from typing import Any, Final, final

from jitmod.config.options import DIALECT_EXTENSIONS, LoaderOptions
from jitmod.features.transform import (
    TransformPipeline,
    detect_syntax,
    interop_default,
    needs_transform,
)
from jitmod.platform.filesystem import read_source
from jitmod.platform.logging import logger
from jitmod.shared.errors import AsyncModuleError
from jitmod.shared.models import (
    Classification,
    ModuleRecord,
    ResolvedModule,
    TransformExtras,
    TransformOptions,
)

from .ports import HostLoaderPort, ImporterPort
from .registry import ModuleRegistry
from .scope import populate_scope

_COMPILE_FLAGS: Final[int] = ast.PyCF_ALLOW_TOP_LEVEL_AWAIT

# Registry keys of the async loads running in the current task chain.
_async_chain: ContextVar[tuple[str, ...]] = ContextVar("jitmod_async_chain", default=())


def _is_coroutine_code(code: CodeType) -> bool:
    return bool(code.co_flags & inspect.CO_COROUTINE)


def _cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


def _link(record: ModuleRecord, parent: ModuleRecord | None) -> None:
    if parent is None:
        return
    parent.add_child(record)
    if record.parent is None:
        record.parent = parent


@final
class ModuleExecutor:
    """Compile and run module code into ``ModuleRecord`` objects.

    The sync path registers a record before running it so cyclic requires see
    the partially filled exports. The async path keeps records pending until
    their code, including any top-level ``await``, has finished.
    """

    def __init__(
        self,
        *,
        options: LoaderOptions,
        pipeline: TransformPipeline,
        host: HostLoaderPort,
        registry: ModuleRegistry,
        importer: ImporterPort,
    ) -> None:
        self._options = options
        self._pipeline = pipeline
        self._host = host
        self._registry = registry
        self._importer = importer
        self._loading: dict[str, ModuleRecord] = {}
        self._pending: dict[str, ModuleRecord] = {}
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    def load_sync(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        *,
        parent: ModuleRecord | None = None,
        main: bool = False,
    ) -> Any:
        """Load ``resolved`` and return its exports without ever awaiting.

        Raises:
            AsyncModuleError: If the module uses top-level ``await``.
            TransformError: If the module needs a transform and it fails.
        """
        if classification is Classification.NATIVE:
            return self._load_native(resolved, parent)

        key = resolved.key
        in_progress = self._loading.get(key) or self._pending.get(key)
        if in_progress is not None:
            _link(in_progress, parent)
            return in_progress.exports

        if self._options.require_cache:
            existing = self._registry.get(key)
            if existing is not None:
                _link(existing, parent)
                return existing.exports

        source = read_source(resolved.absolute_path)
        code, transformed = self._prepare_sync(resolved, classification, source)
        if _is_coroutine_code(code):
            raise AsyncModuleError(str(resolved.absolute_path))

        record = self._new_record(resolved, main=main)
        self._run_sync(record, code, transformed)
        _link(record, parent)
        return record.exports

    async def load_async(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        *,
        parent: ModuleRecord | None = None,
        main: bool = False,
    ) -> Any:
        """Load ``resolved`` on the running event loop and return its exports."""

        if classification is Classification.NATIVE:
            return self._load_native(resolved, parent)

        key = resolved.key
        chain = _async_chain.get()
        in_progress = self._loading.get(key)
        if in_progress is None and key in chain:
            in_progress = self._pending.get(key)
        if in_progress is not None:
            _link(in_progress, parent)
            return in_progress.exports

        future: asyncio.Future[Any] | None = None
        if self._options.require_cache:
            existing = self._registry.get(key)
            if existing is not None:
                _link(existing, parent)
                return existing.exports
            waiting = self._in_flight.get(key)
            if waiting is not None:
                try:
                    return await asyncio.shield(waiting)
                except asyncio.CancelledError:
                    # Retry when only the importer that started the load was cancelled.
                    if waiting.cancelled() and not _cancelling():
                        return await self.load_async(resolved, classification, parent=parent, main=main)
                    raise
            future = asyncio.get_running_loop().create_future()
            self._in_flight[key] = future

        token = _async_chain.set((*chain, key))
        try:
            exports = await self._run_async(resolved, classification, parent=parent, main=main)
        except asyncio.CancelledError:
            if future is not None:
                _ = future.cancel()
            raise
        except BaseException as exc:
            if future is not None:
                future.set_exception(exc)
                # Mark the exception as retrieved when nobody else awaits it.
                _ = future.exception()
            raise
        else:
            if future is not None:
                future.set_result(exports)
            return exports
        finally:
            _async_chain.reset(token)
            if future is not None and self._in_flight.get(key) is future:
                del self._in_flight[key]

    def execute_into(
        self,
        namespace: ModuleType,
        resolved: ResolvedModule,
        classification: Classification,
    ) -> ModuleRecord:
        """Run ``resolved`` inside a module object created by the import system."""

        source = read_source(resolved.absolute_path)
        code, transformed = self._prepare_sync(resolved, classification, source)
        if _is_coroutine_code(code):
            raise AsyncModuleError(str(resolved.absolute_path))

        record = ModuleRecord(id=resolved.key, filename=resolved.absolute_path, namespace=namespace)
        self._run_sync(record, code, transformed)
        return record

    def evaluate(self, source: str, resolved: ResolvedModule) -> Any:
        """Run ``source`` as if it were the file ``resolved``, without registering it."""

        code, transformed = self._prepare_sync(resolved, Classification.DEFAULT, source)
        if _is_coroutine_code(code):
            raise AsyncModuleError(str(resolved.absolute_path))

        record = self._new_record(resolved, main=False)
        _ = populate_scope(record, self._importer)
        started = time.perf_counter()
        try:
            exec(code, record.namespace.__dict__)
        except BaseException as exc:
            self._log_failure(record, exc)
            raise
        self._finish(record, transformed, started)
        return record.exports

    async def evaluate_async(self, source: str, resolved: ResolvedModule) -> Any:
        """Awaitable ``evaluate`` that allows top-level ``await`` in ``source``."""

        code, transformed = await self._prepare_async(resolved, Classification.DEFAULT, source)
        record = self._new_record(resolved, main=False)
        _ = populate_scope(record, self._importer)
        started = time.perf_counter()
        try:
            if _is_coroutine_code(code):
                await eval(code, record.namespace.__dict__)
            else:
                exec(code, record.namespace.__dict__)
        except BaseException as exc:
            self._log_failure(record, exc)
            raise
        self._finish(record, transformed, started)
        return record.exports

    def _load_native(self, resolved: ResolvedModule, parent: ModuleRecord | None) -> Any:
        key = resolved.key
        existing = self._registry.get(key)
        if existing is not None and existing.native:
            _link(existing, parent)
            return existing.exports

        value = self._host.load(resolved)
        namespace = value if isinstance(value, ModuleType) else ModuleType(resolved.absolute_path.stem)
        record = ModuleRecord(
            id=key,
            filename=resolved.absolute_path,
            namespace=namespace,
            loaded=True,
            native=True,
        )
        record.exports = interop_default(value) if self._options.interop_default else value
        record = self._registry.add(record)
        _link(record, parent)
        logger.debug(
            "Loaded %s natively",
            resolved.absolute_path,
            extra={"loader_event": "native", "path": str(resolved.absolute_path)},
        )
        return record.exports

    def _new_record(self, resolved: ResolvedModule, *, main: bool) -> ModuleRecord:
        name = "__main__" if main else resolved.absolute_path.stem
        return ModuleRecord(
            id=resolved.key,
            filename=resolved.absolute_path,
            namespace=ModuleType(name),
            main=main,
        )

    def _transform_options(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        source: str,
        *,
        is_async: bool,
    ) -> TransformOptions | None:
        syntax = detect_syntax(resolved.absolute_path, source, dialect_extensions=DIALECT_EXTENSIONS)
        if classification is Classification.DEFAULT and not needs_transform(syntax):
            return None
        return TransformOptions(
            source=source,
            filename=str(resolved.absolute_path),
            syntax=syntax,
            retain_lines=self._options.retain_lines,
            is_async=is_async,
            engine_version=self._options.cache_version,
            interop_default=self._options.interop_default,
            source_maps=self._options.source_maps,
            extra=TransformExtras(self._options.transform_extra),
        )

    def _prepare_sync(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        source: str,
    ) -> tuple[CodeType, bool]:
        options = self._transform_options(resolved, classification, source, is_async=False)
        if options is None:
            return self._compile(source, resolved), False
        return self._compile(self._pipeline.transform(options).code, resolved), True

    async def _prepare_async(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        source: str | None = None,
    ) -> tuple[CodeType, bool]:
        if source is None:
            source = await asyncio.to_thread(read_source, resolved.absolute_path)
        options = self._transform_options(resolved, classification, source, is_async=True)
        if options is None:
            return self._compile(source, resolved), False
        result = await self._pipeline.transform_async(options)
        return self._compile(result.code, resolved), True

    @staticmethod
    def _compile(code: str, resolved: ResolvedModule) -> CodeType:
        return compile(
            code,
            str(resolved.absolute_path),
            "exec",
            flags=_COMPILE_FLAGS,
            dont_inherit=True,
        )

    def _run_sync(self, record: ModuleRecord, code: CodeType, transformed: bool) -> None:
        key = record.id
        _ = populate_scope(record, self._importer)
        self._loading[key] = record
        if self._options.require_cache:
            _ = self._registry.add(record)
        started = time.perf_counter()
        try:
            exec(code, record.namespace.__dict__)
        except BaseException as exc:
            _ = self._registry.remove(key, record)
            self._log_failure(record, exc)
            raise
        finally:
            del self._loading[key]
        self._finish(record, transformed, started)

    async def _run_async(
        self,
        resolved: ResolvedModule,
        classification: Classification,
        *,
        parent: ModuleRecord | None,
        main: bool,
    ) -> Any:
        code, transformed = await self._prepare_async(resolved, classification)
        record = self._new_record(resolved, main=main)
        _ = populate_scope(record, self._importer)
        self._pending[record.id] = record
        started = time.perf_counter()
        try:
            if _is_coroutine_code(code):
                await eval(code, record.namespace.__dict__)
            else:
                exec(code, record.namespace.__dict__)
        except BaseException as exc:
            self._log_failure(record, exc)
            raise
        finally:
            del self._pending[record.id]

        if self._options.require_cache:
            _ = self._registry.add(record)
        self._finish(record, transformed, started)
        _link(record, parent)
        return record.exports

    def _finish(self, record: ModuleRecord, transformed: bool, started: float) -> None:
        if self._options.interop_default and not transformed:
            record.exports = interop_default(record.exports)
        record.loaded = True
        logger.debug(
            "Executed %s",
            record.filename,
            extra={
                "loader_event": "execute",
                "path": str(record.filename),
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )

    @staticmethod
    def _log_failure(record: ModuleRecord, exc: BaseException) -> None:
        logger.debug(
            "Execution of %s failed: %s",
            record.filename,
            exc,
            extra={
                "loader_event": "execute.error",
                "path": str(record.filename),
                "reason": type(exc).__name__,
            },
        )


__all__ = ["ModuleExecutor"]
