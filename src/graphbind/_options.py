"""Registration and extraction options.

Options are small objects with an ``apply`` method that mutate a parameter
record. They are collected at the call site::

    container.provide(new_mux, as_(Handler), with_name("mux"))
    container.extract(Server, name("server"))

``provide()`` and ``bundle()`` build container options that can be passed to
``Container(...)`` and grouped into reusable sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from ._provider import Lifetime, ParameterBag


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._container import Container


@dataclass
class ProvideParams:
    name: str | None = None
    interfaces: list[Any] = field(default_factory=list)
    lifetime: Lifetime = Lifetime.SINGLETON
    tags: dict[str, str] = field(default_factory=dict)
    parameters: ParameterBag = field(default_factory=ParameterBag)


@dataclass
class ExtractParams:
    name: str | None = None
    tags: dict[str, str] | None = None


class ProvideOption(Protocol):
    def apply(self, params: ProvideParams) -> None: ...


class ExtractOption(Protocol):
    def apply(self, params: ExtractParams) -> None: ...


class ContainerOption(Protocol):
    def apply_to(self, container: Container) -> None: ...


@dataclass(frozen=True)
class _WithName:
    name: str

    def apply(self, params: ProvideParams) -> None:
        params.name = self.name


@dataclass(frozen=True)
class _As:
    interfaces: tuple[Any, ...]

    def apply(self, params: ProvideParams) -> None:
        for interface in self.interfaces:
            if interface not in params.interfaces:
                params.interfaces.append(interface)


@dataclass(frozen=True)
class _Prototype:
    def apply(self, params: ProvideParams) -> None:
        params.lifetime = Lifetime.PROTOTYPE


@dataclass(frozen=True)
class _WithTags:
    tags: Mapping[str, str]

    def apply(self, params: ProvideParams) -> None:
        params.tags.update(self.tags)


@dataclass(frozen=True)
class _Name:
    name: str

    def apply(self, params: ExtractParams) -> None:
        params.name = self.name


@dataclass(frozen=True)
class _Tags:
    tags: Mapping[str, str]

    def apply(self, params: ExtractParams) -> None:
        params.tags = dict(self.tags)


def with_name(name: str) -> ProvideOption:
    """Register the provider under ``name``."""
    if not name:
        msg = "Binding name must be a non-empty string"
        raise ValueError(msg)
    return _WithName(name)


def as_(*interfaces: Any) -> ProvideOption:
    """Declare interfaces satisfied by the provider's output."""
    if not interfaces:
        msg = "as_() needs at least one interface"
        raise ValueError(msg)
    return _As(interfaces)


def prototype() -> ProvideOption:
    """Construct a fresh instance on every resolution."""
    return _Prototype()


def with_tags(tags: Mapping[str, str]) -> ProvideOption:
    return _WithTags(dict(tags))


def name(name: str) -> ExtractOption:
    """Select a named binding."""
    return _Name(name)


def tags(tags: Mapping[str, str]) -> ExtractOption:
    """Select the binding whose tag set equals ``tags``."""
    return _Tags(dict(tags))


@dataclass(frozen=True)
class Provide:
    factory: Callable[..., Any]
    options: tuple[ProvideOption, ...] = ()
    produces: Any = None

    def apply_to(self, container: Container) -> None:
        container.provide(self.factory, *self.options, produces=self.produces)


@dataclass(frozen=True)
class Bundle:
    options: tuple[ContainerOption, ...]

    def apply_to(self, container: Container) -> None:
        for option in self.options:
            option.apply_to(container)


def provide(factory: Callable[..., Any], *options: ProvideOption, produces: Any = None) -> Provide:
    """Deferred registration, for ``Container(...)`` and ``bundle(...)``."""
    return Provide(factory, options, produces)


def bundle(*options: ContainerOption) -> Bundle:
    """Group container options into a reusable set."""
    return Bundle(options)
