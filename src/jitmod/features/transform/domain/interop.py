"""
Summary: Default-export interop wrapper and the helpers injected into module scope.
Why: Make a module's ``default`` reachable both as itself and through the module object.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from types import ModuleType
from typing import Any, Final, final

_SCALAR_TYPES: Final[tuple[type, ...]] = (str, bytes, int, float, complex, bool, type(None))


def _lookup(container: Any, name: str) -> Any:
    if isinstance(container, Mapping) and not isinstance(container, ModuleType):
        return container[name]
    return getattr(container, name)


def _has(container: Any, name: str) -> bool:
    if isinstance(container, Mapping) and not isinstance(container, ModuleType):
        return name in container
    return hasattr(container, name)


@final
class InteropModule:
    """Proxy exposing a module and its ``default`` value through one object.

    Attribute reads try the wrapped module first, then the default value.
    ``default`` falls back to the module itself when the module has none, and
    calling the proxy calls the default value when it is callable.
    """

    __slots__ = ("__jit_module__", "__jit_default__")

    def __init__(self, module: Any, default: Any) -> None:
        object.__setattr__(self, "__jit_module__", module)
        object.__setattr__(self, "__jit_default__", default)

    def __getattr__(self, name: str) -> Any:
        module = object.__getattribute__(self, "__jit_module__")
        default = object.__getattribute__(self, "__jit_default__")
        if name == "default":
            return module if default is None else default
        if name == "__jit_interop__":
            return True
        if _has(module, name):
            return _lookup(module, name)
        if default is not None and not isinstance(default, _SCALAR_TYPES) and hasattr(default, name):
            return getattr(default, name)
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(object.__getattribute__(self, "__jit_module__"), name, value)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        module = object.__getattribute__(self, "__jit_module__")
        if callable(module):
            return module(*args, **kwargs)
        default = object.__getattribute__(self, "__jit_default__")
        if callable(default):
            return default(*args, **kwargs)
        raise TypeError(f"'{type(module).__name__}' module object is not callable")

    def __dir__(self) -> list[str]:
        module = object.__getattribute__(self, "__jit_module__")
        default = object.__getattribute__(self, "__jit_default__")
        names = set(dir(module)) | {"default"}
        if default is not None and not isinstance(default, _SCALAR_TYPES):
            names |= set(dir(default))
        return sorted(names)

    def __repr__(self) -> str:
        module = object.__getattribute__(self, "__jit_module__")
        return f"<interop {module!r}>"


def interop_default(value: Any) -> Any:
    """Wrap ``value`` for default-export interop.

    Scalars, ``None`` and values that are already wrapped are returned as-is,
    and so are modules without a ``default`` export.
    """

    if isinstance(value, _SCALAR_TYPES) or isinstance(value, InteropModule):
        return value
    if not _has(value, "default"):
        return value
    return InteropModule(value, _lookup(value, "default"))


def default_of(module: Any) -> Any:
    """Value bound by ``import name from "spec"``."""

    if isinstance(module, InteropModule):
        return module.default
    if not isinstance(module, _SCALAR_TYPES) and _has(module, "default"):
        return _lookup(module, "default")
    return module


def pick(module: Any, name: str) -> Any:
    """Value bound by ``from "spec" import name``."""

    try:
        return _lookup(module, name)
    except (AttributeError, KeyError):
        raise ImportError(f"cannot import name '{name}' from {module!r}") from None


def star(module: Any, namespace: MutableMapping[str, Any]) -> None:
    """Bind public names of ``module`` into ``namespace`` for ``from "spec" import *``."""

    if isinstance(module, Mapping) and not isinstance(module, ModuleType):
        names = [key for key in module if isinstance(key, str) and not key.startswith("_")]
    else:
        exported = getattr(module, "__all__", None)
        if exported is not None:
            names = [str(name) for name in exported]
        else:
            names = [name for name in dir(module) if not name.startswith("_")]
    for name in names:
        namespace[name] = _lookup(module, name)


SCOPE_HELPERS: Final[dict[str, Callable[..., Any]]] = {
    "__jit_default__": default_of,
    "__jit_pick__": pick,
    "__jit_star__": star,
    "__jit_interop__": interop_default,
}


__all__ = [
    "InteropModule",
    "SCOPE_HELPERS",
    "default_of",
    "interop_default",
    "pick",
    "star",
]
