"""Declarative registration front-end.

A ``ServiceCollection`` gathers ``ServiceDescriptor`` records and compiles
them into container providers on ``build()``::

    services = ServiceCollection()
    services.add_singleton(new_mux)
    services.add_transient_by_name("server", new_http_server)
    provider = services.build()
    server = provider.get_service_by_name(Server, "server")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from ._container import Container
from ._options import as_, prototype, with_name, with_tags
from ._options import name as name_option
from ._options import tags as tags_option


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from ._options import ProvideOption

    T = TypeVar("T")
    R = TypeVar("R")


class ServiceLifetime(Enum):
    SINGLETON = "singleton"
    # no scope support: scoped services are built per resolution, like transient ones
    SCOPED = "scoped"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class ServiceDescriptor:
    """One declarative registration.

    Attributes:
        provider: Class or factory callable.
        implements: Interface the output is also bound as, if any.
        name: Binding name, if any.
        lifetime: ``ServiceLifetime``; only ``SINGLETON`` is cached.
        tags: Tag set for ``get_service_by_tags``.
    """

    provider: Callable[..., Any]
    implements: Any = None
    name: str | None = None
    lifetime: ServiceLifetime = ServiceLifetime.SINGLETON
    tags: Mapping[str, str] | None = None

    def provide_options(self) -> list[ProvideOption]:
        options: list[ProvideOption] = []
        if self.implements is not None:
            options.append(as_(self.implements))
        if self.name:
            options.append(with_name(self.name))
        if self.tags:
            options.append(with_tags(self.tags))
        if self.lifetime is not ServiceLifetime.SINGLETON:
            options.append(prototype())
        return options


class ServiceProvider(Protocol):
    def get_service(self, service_type: type[T]) -> T: ...

    def get_service_by_name(self, service_type: type[T], name: str) -> T: ...

    def get_service_by_tags(self, service_type: type[T], tags: Mapping[str, str]) -> T: ...

    def get_graph(self) -> str: ...

    def invoke_service(self, fn: Callable[..., R]) -> R: ...


class DefaultServiceProvider:
    """``ServiceProvider`` backed by a ``Container``."""

    def __init__(self, container: Container) -> None:
        self._container = container

    @property
    def container(self) -> Container:
        return self._container

    def get_service(self, service_type: type[T]) -> T:
        return self._container.extract(service_type)

    def get_service_by_name(self, service_type: type[T], name: str) -> T:
        return self._container.extract(service_type, name_option(name))

    def get_service_by_tags(self, service_type: type[T], tags: Mapping[str, str]) -> T:
        return self._container.extract(service_type, tags_option(tags))

    def get_graph(self) -> str:
        return self._container.graph()

    def invoke_service(self, fn: Callable[..., R]) -> R:
        return self._container.invoke(fn)

    def close(self) -> None:
        self._container.close()


class ServiceCollection:
    def __init__(self) -> None:
        self._descriptors: list[ServiceDescriptor] = []

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def add(self, descriptor: ServiceDescriptor) -> ServiceCollection:
        self._descriptors.append(descriptor)
        return self

    def add_singleton(self, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, lifetime=ServiceLifetime.SINGLETON))

    def add_singleton_by_name(self, name: str, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, name=name, lifetime=ServiceLifetime.SINGLETON))

    def add_singleton_by_implements(self, provider: Callable[..., Any], implements: Any) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, implements=implements, lifetime=ServiceLifetime.SINGLETON))

    def add_singleton_by_name_implements(
        self, name: str, provider: Callable[..., Any], implements: Any
    ) -> ServiceCollection:
        return self.add(
            ServiceDescriptor(provider, implements=implements, name=name, lifetime=ServiceLifetime.SINGLETON)
        )

    def add_transient(self, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, lifetime=ServiceLifetime.TRANSIENT))

    def add_transient_by_name(self, name: str, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, name=name, lifetime=ServiceLifetime.TRANSIENT))

    def add_transient_by_implements(self, provider: Callable[..., Any], implements: Any) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, implements=implements, lifetime=ServiceLifetime.TRANSIENT))

    def add_transient_by_name_implements(
        self, name: str, provider: Callable[..., Any], implements: Any
    ) -> ServiceCollection:
        return self.add(
            ServiceDescriptor(provider, implements=implements, name=name, lifetime=ServiceLifetime.TRANSIENT)
        )

    def add_scoped(self, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, lifetime=ServiceLifetime.SCOPED))

    def add_scoped_by_name(self, name: str, provider: Callable[..., Any]) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, name=name, lifetime=ServiceLifetime.SCOPED))

    def add_scoped_by_implements(self, provider: Callable[..., Any], implements: Any) -> ServiceCollection:
        return self.add(ServiceDescriptor(provider, implements=implements, lifetime=ServiceLifetime.SCOPED))

    def add_scoped_by_name_implements(
        self, name: str, provider: Callable[..., Any], implements: Any
    ) -> ServiceCollection:
        return self.add(
            ServiceDescriptor(provider, implements=implements, name=name, lifetime=ServiceLifetime.SCOPED)
        )

    def build(self) -> DefaultServiceProvider:
        """Compile every descriptor into a new container."""
        container = Container()
        for descriptor in self._descriptors:
            container.provide(descriptor.provider, *descriptor.provide_options())
        logger.debug("Built service provider with %d descriptors", len(self._descriptors))
        return DefaultServiceProvider(container)
