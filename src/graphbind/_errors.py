from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._provider import Provider


class ContainerError(RuntimeError):
    """Base class for every error raised by the container."""


class InvalidProviderError(ContainerError, TypeError):
    pass


class DuplicateBindingError(ContainerError):
    pass


class RegistryFrozenError(ContainerError):
    pass


class NotFoundError(ContainerError, LookupError):
    pass


class AmbiguousBindingError(ContainerError):
    def __init__(self, msg: str, candidates: Sequence[Provider]) -> None:
        super().__init__(msg)
        self.candidates = tuple(candidates)


class CyclicDependencyError(ContainerError):
    def __init__(self, path: Sequence[Provider]) -> None:
        self.path = tuple(path)
        cycle = " -> ".join(p.describe() for p in self.path)
        super().__init__(f"Cyclic dependency detected: {cycle}")


class ProviderConstructionError(ContainerError):
    """The provider's factory raised; the original exception is the ``__cause__``."""

    def __init__(self, provider: Provider, cause: BaseException) -> None:
        self.provider = provider
        super().__init__(f"Provider {provider.describe()} failed: {type(cause).__name__}: {cause}")


class TypeMismatchError(ContainerError, TypeError):
    pass


class ParameterResolutionError(ContainerError):
    def __init__(self, function: Callable[..., Any], parameter: str, reason: str) -> None:
        self.function = function
        self.parameter = parameter
        fn_name = getattr(function, "__qualname__", repr(function))
        super().__init__(f"Cannot resolve parameter '{parameter}' of {fn_name}: {reason}")
