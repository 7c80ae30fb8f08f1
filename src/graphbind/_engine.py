from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from ._errors import CyclicDependencyError, NotFoundError, ProviderConstructionError
from ._provider import Lifetime, ParameterBag, type_name
from ._resolver import Request


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    import threading
    from collections.abc import Generator, Mapping, Sequence

    from ._provider import Dependency, Provider
    from ._resolver import BindingResolver

    ResolutionPath = list[Provider]


class InstantiationEngine:
    """Runs providers, resolving their dependencies recursively.

    - singletons are built at most once and cached per provider
    - prototypes are built on every call
    - the resolution path passed down each call detects cycles.
    """

    def __init__(self, resolver: BindingResolver, lock: threading.RLock) -> None:
        self._resolver = resolver
        self._lock = lock
        self._singletons: dict[Provider, Any] = {}
        self._cleanups: list[tuple[Provider, Generator[Any, None, None]]] = []

    def instantiate(self, provider: Provider, path: ResolutionPath) -> Any:
        if provider.lifetime is Lifetime.PROTOTYPE:
            return self._construct(provider, path)

        try:
            return self._singletons[provider]
        except KeyError:
            pass

        # Check-then-set under the container lock: concurrent first use runs
        # the factory once, later callers block here and take the cached value.
        with self._lock:
            if provider in self._singletons:
                return self._singletons[provider]
            instance = self._construct(provider, path)
            self._singletons[provider] = instance
            return instance

    def _construct(self, provider: Provider, path: ResolutionPath) -> Any:
        if provider in path:
            raise CyclicDependencyError([*path[path.index(provider) :], provider])

        path.append(provider)
        try:
            args, kwargs = self.resolve_arguments(provider.dependencies, path, provider.parameters)
            logger.debug("Constructing %s", provider.describe())
            try:
                instance = provider.factory(*args, **kwargs)
                if provider.is_generator:
                    generator = instance
                    instance = next(generator)
            except Exception as e:
                raise ProviderConstructionError(provider, e) from e
        finally:
            path.pop()

        if provider.is_generator:
            with self._lock:
                self._cleanups.append((provider, generator))
        return instance

    def resolve_arguments(
        self,
        dependencies: Sequence[Dependency],
        path: ResolutionPath,
        parameters: Mapping[str, Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        """Resolve every dependency in declared order into call arguments."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for dep in dependencies:
            value = self.resolve_dependency(dep, path, parameters)
            if dep.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[dep.parameter] = value

        return args, kwargs

    def resolve_dependency(self, dep: Dependency, path: ResolutionPath, parameters: Mapping[str, Any]) -> Any:
        """Produce the value injected for one factory parameter.

        Precedence:
        1. parameter bag value with the parameter's name
        2. the parameter bag itself, for ``ParameterBag`` annotations
        3. type-based binding (all bindings for ``list[T]``)
        4. default
        5. ``None`` for ``Optional[T]``
        6. error.
        """
        if dep.parameter in parameters:
            return parameters[dep.parameter]

        if dep.type is ParameterBag:
            return ParameterBag(parameters)

        if dep.type is None:
            if dep.has_default:
                return dep.default
            msg = f"Parameter '{dep.parameter}' has no annotation, parameter bag value or default"
            raise NotFoundError(msg)

        if dep.collection:
            providers = self._resolver.resolve_all(dep.type, dep.name, dep.tags)
            return [self.instantiate(p, path) for p in providers]

        try:
            provider = self._resolver.resolve(Request(dep.type, dep.name, dep.tags))
        except NotFoundError:
            if dep.has_default:
                return dep.default
            if dep.optional:
                return None
            raise

        return self.instantiate(provider, path)

    def close(self) -> None:
        """Finish generator providers in reverse construction order and drop cached singletons."""
        with self._lock:
            cleanups = self._cleanups[::-1]
            self._cleanups.clear()
            self._singletons.clear()

        errors: list[Exception] = []
        for provider, generator in cleanups:
            try:
                next(generator)
            except StopIteration:
                continue
            except Exception as e:  # noqa: BLE001
                logger.error("Cleanup of %s failed: %s", provider.describe(), e)  # noqa: TRY400
                errors.append(e)
            else:
                logger.warning("Provider %s yielded more than once; closing it", type_name(provider.factory))
                generator.close()

        if errors:
            raise errors[0]
