from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._conformance import check_assignable
from ._engine import InstantiationEngine
from ._errors import (
    AmbiguousBindingError,
    ContainerError,
    NotFoundError,
    ParameterResolutionError,
)
from ._graph import render_graph
from ._options import ExtractParams, ProvideParams
from ._provider import build_provider, collection_item, inspect_dependencies, is_collection_request
from ._registry import ProviderRegistry
from ._resolver import BindingResolver, Request


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from ._options import ContainerOption, ExtractOption, ProvideOption
    from ._provider import Provider

    T = TypeVar("T")
    R = TypeVar("R")


class Container:
    """Dependency injection container.

    - register factories and classes with ``provide``
    - resolve by type, name, interface or tag set with ``extract``
    - call functions with injected arguments with ``invoke``
    - lifetimes: singleton (default) / prototype.

    Registration is closed by the first resolution.
    """

    def __init__(self, *options: ContainerOption) -> None:
        self._registry = ProviderRegistry()
        self._resolver = BindingResolver(self._registry)
        self._lock = threading.RLock()
        self._engine = InstantiationEngine(self._resolver, self._lock)

        for option in options:
            option.apply_to(self)

    def provide(
        self,
        factory: Callable[..., Any],
        *options: ProvideOption,
        produces: Any = None,
        replace: bool = False,
    ) -> Provider:
        """Register a class or factory.

        Example:
          container.provide(new_mux, as_(Handler))
          container.provide(new_http_server, prototype(), with_name("server"))
          container.provide(lambda: Addr("0.0.0.0:8080"), produces=Addr)

        """
        params = ProvideParams()
        for option in options:
            option.apply(params)

        provider = build_provider(factory, params, produces=produces)
        with self._lock:
            self._registry.register(provider, replace=replace)
        return provider

    @overload
    def extract(self, target: type[T], *options: ExtractOption) -> T: ...

    @overload
    def extract(self, target: Any, *options: ExtractOption) -> Any: ...

    def extract(self, target: Any, *options: ExtractOption) -> Any:
        """Resolve an instance for ``target``.

        ``target`` is a type, an interface, or ``list[T]`` for every provider
        of ``T``. Options narrow the binding by name or tag set.
        """
        params = ExtractParams()
        for option in options:
            option.apply(params)

        self._registry.freeze()

        if is_collection_request(target):
            item = collection_item(target)
            path: list[Provider] = []
            return [
                self._checked(item, self._engine.instantiate(p, path))
                for p in self._resolver.resolve_all(item, params.name, params.tags)
            ]

        provider = self._resolver.resolve(Request(target, params.name, params.tags))
        return self._checked(target, self._engine.instantiate(provider, []))

    def has(self, target: Any, *options: ExtractOption) -> bool:
        """Whether ``extract`` would find a binding (nothing is constructed).

        For ``list[T]`` targets this means at least one provider of ``T``.
        """
        params = ExtractParams()
        for option in options:
            option.apply(params)

        if is_collection_request(target):
            return bool(self._resolver.resolve_all(collection_item(target), params.name, params.tags))

        try:
            self._resolver.resolve(Request(target, params.name, params.tags))
        except (NotFoundError, AmbiguousBindingError):
            return False
        return True

    def invoke(self, fn: Callable[..., R], **overrides: Any) -> R:
        """Call ``fn`` with every parameter resolved from the container.

        ``overrides`` supply arguments explicitly. Nothing is called when a
        parameter cannot be resolved.
        """
        dependencies = inspect_dependencies(fn)
        known = {d.parameter for d in dependencies}
        extras = {k: v for k, v in overrides.items() if k not in known}
        if extras and not _accepts_var_keyword(fn):
            msg = f"Overrides don't match {getattr(fn, '__qualname__', fn)!r} signature: {', '.join(sorted(extras))}"
            raise TypeError(msg)

        self._registry.freeze()

        path: list[Provider] = []
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for dep in dependencies:
            if dep.parameter in overrides:
                value = overrides[dep.parameter]
            else:
                try:
                    value = self._engine.resolve_dependency(dep, path, {})
                except ContainerError as e:
                    raise ParameterResolutionError(fn, dep.parameter, str(e)) from e

            if dep.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[dep.parameter] = value

        return fn(*args, **kwargs, **extras)

    def providers(self) -> list[Provider]:
        return self._registry.providers()

    def graph(self) -> str:
        """DOT rendering of the registered providers and their dependencies."""
        return render_graph(self._registry.providers(), self._resolver)

    def close(self) -> None:
        """Run generator cleanups and drop every cached singleton."""
        logger.debug("Closing container")
        self._engine.close()

    def __enter__(self) -> Container:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _checked(self, target: Any, instance: Any) -> Any:
        check_assignable(target, instance)
        return instance


def _accepts_var_keyword(fn: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params)
