"""
Summary: Loader facade wiring resolution, policy, cache, transform and execution together.
Why: Give callers require/import/transform/register without knowing how the engine is assembled.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from types import ModuleType, TracebackType
from typing import Any, Final, Self, final

from jitmod.config.config import load_options
from jitmod.config.options import LoaderOptions
from jitmod.config.paths import detect_project_root
from jitmod.features.cache import FileCacheStore
from jitmod.features.execution import HostLoaderPort, ModuleExecutor, ModuleRegistry
from jitmod.features.policy import PolicyMatcher
from jitmod.features.resolution import PathResolver
from jitmod.features.transform import TransformPipeline, Transformer, esm_transform
from jitmod.features.transform.usecases.ports import CacheStorePort
from jitmod.platform.host import ImportlibHostLoader, is_host_module
from jitmod.platform.logging import logger, set_console_level
from jitmod.shared.models import (
    Classification,
    ModuleRecord,
    ResolvedModule,
    TransformOptions,
)

from .hooks import hook_extensions, install_hook

EVAL_FILENAME: Final[str] = "__eval__.py"


@final
class Loader:
    """Just-in-time module loader bound to one base directory.

    Every loader owns its own module registry, so two loaders never share
    executed modules. Relative specifiers passed without ``from_directory``
    resolve against ``base_directory``.
    """

    def __init__(
        self,
        options: LoaderOptions | None = None,
        *,
        base_directory: Path | str | None = None,
        transformer: Transformer | None = None,
        host: HostLoaderPort | None = None,
        registry: ModuleRegistry | None = None,
        cache: CacheStorePort | None = None,
        project_root: Path | None = None,
    ) -> None:
        self._options = options if options is not None else LoaderOptions()
        self._base_directory = Path(base_directory or Path.cwd()).resolve()
        self._project_root = project_root or detect_project_root(self._base_directory)
        if self._options.debug:
            set_console_level(logging.DEBUG)

        self._resolver = PathResolver(
            extensions=self._options.extensions,
            aliases=self._options.alias,
            index_names=self._options.index_names,
        )
        self._policy = PolicyMatcher(
            native_modules=self._options.native_modules,
            transform_modules=self._options.transform_modules,
            native_boundaries=self._options.native_boundaries,
        )
        self._cache: CacheStorePort = (
            cache
            if cache is not None
            else FileCacheStore.from_options(self._options, project_root=self._project_root)
        )
        self._pipeline = TransformPipeline(
            transformer=transformer if transformer is not None else esm_transform,
            cache=self._cache,
        )
        self._host: HostLoaderPort = host if host is not None else ImportlibHostLoader()
        self._owns_registry = registry is None
        self._registry = registry if registry is not None else ModuleRegistry()
        self._executor = ModuleExecutor(
            options=self._options,
            pipeline=self._pipeline,
            host=self._host,
            registry=self._registry,
            importer=self,
        )
        self._unregister_handles: list[Callable[[], None]] = []

    @property
    def options(self) -> LoaderOptions:
        return self._options

    @property
    def base_directory(self) -> Path:
        return self._base_directory

    @property
    def project_root(self) -> Path | None:
        return self._project_root

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def cache(self) -> CacheStorePort:
        return self._cache

    @property
    def pipeline(self) -> TransformPipeline:
        return self._pipeline

    @property
    def policy(self) -> PolicyMatcher:
        return self._policy

    # Resolution -----------------------------------------------------------------

    def resolve(self, specifier: str, from_directory: Path | str | None = None) -> Path:
        """Return the absolute path ``specifier`` resolves to.

        Raises:
            ResolutionError: If nothing matches.
        """
        return self._resolve(specifier, from_directory).absolute_path

    def _resolve(self, specifier: str, from_directory: Path | str | None) -> ResolvedModule:
        directory = Path(from_directory) if from_directory is not None else self._base_directory
        started = time.perf_counter()
        resolved = self._resolver.resolve(specifier, directory)
        logger.debug(
            "Resolved %s to %s",
            specifier,
            resolved.absolute_path,
            extra={
                "loader_event": "resolve",
                "path": str(resolved.absolute_path),
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return resolved

    def _is_host_import(self, specifier: str) -> bool:
        return self._resolver.aliases.match(specifier) is None and is_host_module(specifier)

    # Synchronous loading --------------------------------------------------------

    def require(self, specifier: str, from_directory: Path | str | None = None) -> Any:
        """Load ``specifier`` synchronously and return its exports.

        Raises:
            ResolutionError: If the specifier cannot be resolved.
            TransformError: If the module needs a transform and it fails.
            AsyncModuleError: If the module uses top-level ``await``.
        """
        return self._require(specifier, from_directory, parent=None)

    def __call__(self, specifier: str, from_directory: Path | str | None = None) -> Any:
        return self.require(specifier, from_directory)

    def require_for(self, record: ModuleRecord, specifier: str) -> Any:
        return self._require(specifier, record.dirname, parent=record)

    def _require(
        self,
        specifier: str,
        from_directory: Path | str | None,
        *,
        parent: ModuleRecord | None,
        main: bool = False,
    ) -> Any:
        if self._is_host_import(specifier):
            return self._host.import_module(specifier)
        resolved = self._resolve(specifier, from_directory)
        classification = self._policy.classify(resolved)
        return self._executor.load_sync(resolved, classification, parent=parent, main=main)

    # Asynchronous loading -------------------------------------------------------

    async def import_module(self, specifier: str, from_directory: Path | str | None = None) -> Any:
        """Load ``specifier`` on the running event loop and return its exports.

        Unlike ``require`` this supports modules using top-level ``await``.
        """
        return await self._import(specifier, from_directory, parent=None)

    async def import_for(self, record: ModuleRecord, specifier: str) -> Any:
        return await self._import(specifier, record.dirname, parent=record)

    async def _import(
        self,
        specifier: str,
        from_directory: Path | str | None,
        *,
        parent: ModuleRecord | None,
        main: bool = False,
    ) -> Any:
        if self._is_host_import(specifier):
            return self._host.import_module(specifier)
        resolved = self._resolve(specifier, from_directory)
        classification = self._policy.classify(resolved)
        return await self._executor.load_async(resolved, classification, parent=parent, main=main)

    # Entry points ---------------------------------------------------------------

    def run_main(self, specifier: str) -> Any:
        """Run ``specifier`` as ``__main__`` synchronously."""

        return self._require(specifier, None, parent=None, main=True)

    async def run_main_async(self, specifier: str) -> Any:
        """Run ``specifier`` as ``__main__`` on the running event loop."""

        return await self._import(specifier, None, parent=None, main=True)

    def eval_module(
        self,
        source: str,
        *,
        filename: Path | str | None = None,
        is_async: bool = False,
    ) -> Any:
        """Run ``source`` as a module and return its exports.

        The module is not registered, so evaluating the same source twice runs
        it twice. Use ``eval_module_async`` for source with top-level ``await``;
        passing ``is_async=True`` here runs it to completion on a fresh event loop.
        """
        resolved = self._eval_target(filename)
        if is_async:
            return asyncio.run(self._executor.evaluate_async(source, resolved))
        return self._executor.evaluate(source, resolved)

    async def eval_module_async(self, source: str, *, filename: Path | str | None = None) -> Any:
        return await self._executor.evaluate_async(source, self._eval_target(filename))

    def _eval_target(self, filename: Path | str | None) -> ResolvedModule:
        path = Path(filename) if filename is not None else Path(EVAL_FILENAME)
        if not path.is_absolute():
            path = self._base_directory / path
        return ResolvedModule(absolute_path=path, extension=path.suffix)

    # Transform and hooks --------------------------------------------------------

    def transform(self, options: TransformOptions) -> str:
        """Run the transform pipeline alone and return the generated code."""

        return self._pipeline.transform(options).code

    def execute_into(self, namespace: ModuleType, path: Path) -> ModuleRecord:
        """Run the dialect file ``path`` inside ``namespace``; used by the import hook."""

        resolved = ResolvedModule(absolute_path=path, extension=path.suffix)
        classification = self._policy.classify(resolved)
        if classification is Classification.NATIVE:
            classification = Classification.DEFAULT
        return self._executor.execute_into(namespace, resolved, classification)

    def register(self) -> Callable[[], None]:
        """Route host imports of dialect files through this loader.

        Returns:
            Callable[[], None]: Handle removing the hook again; calling it twice is harmless.
        """
        handle = install_hook(self, hook_extensions(self._options.extensions))
        self._unregister_handles.append(handle)
        return handle

    # Lifecycle ------------------------------------------------------------------

    def close(self) -> None:
        """Remove installed hooks and forget modules this loader executed."""

        while self._unregister_handles:
            self._unregister_handles.pop()()
        if self._owns_registry:
            self._registry.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Loader(base_directory={str(self._base_directory)!r}, modules={len(self._registry)})"


def create_loader(
    id: Path | str,
    *,
    transformer: Transformer | None = None,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Loader:
    """Build a loader for the file or directory ``id`` using project configuration.

    Options come from ``load_options``; keyword ``overrides`` take precedence
    over ``[tool.jitmod]`` and ``JITMOD_*`` environment variables.
    """
    target = Path(id).expanduser().resolve()
    base_directory = target if target.is_dir() else target.parent
    project_root = detect_project_root(base_directory)
    options = load_options(project_root=project_root or base_directory, env=env, **overrides)
    return Loader(
        options,
        base_directory=base_directory,
        transformer=transformer,
        project_root=project_root,
    )


__all__ = ["EVAL_FILENAME", "Loader", "create_loader"]
