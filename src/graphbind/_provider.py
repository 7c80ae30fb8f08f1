from __future__ import annotations

import collections.abc
import inspect
import logging
import types
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from ._errors import InvalidProviderError, NotFoundError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from ._options import ProvideParams


class Lifetime(Enum):
    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


class ParameterBag(dict):
    """Named constants handed to a single provider.

    Passed as a provide option, a bag's values are injected into factory
    parameters of the same name. A factory parameter annotated with
    ``ParameterBag`` receives the whole bag.
    """

    def require(self, key: str) -> Any:
        try:
            return self[key]
        except KeyError:
            msg = f"Parameter bag has no value for {key!r}"
            raise NotFoundError(msg) from None

    def apply(self, params: ProvideParams) -> None:
        params.parameters.update(self)


@dataclass(frozen=True)
class Named:
    """Annotation qualifier selecting a named binding: ``Annotated[Handler, Named("mux")]``."""

    name: str


@dataclass(frozen=True)
class Tagged:
    """Annotation qualifier selecting a binding by tag set."""

    tags: Mapping[str, str]

    # typing hashes Annotated metadata when it is nested in Optional[...] or X | None
    def __hash__(self) -> int:
        return hash(frozenset(self.tags.items()))


@dataclass(frozen=True)
class Dependency:
    """One factory parameter as seen by the container.

    Attributes:
        parameter: Parameter name in the factory signature.
        type: Requested type with ``Annotated``/``Optional``/``list`` wrappers removed,
            or ``None`` when the parameter is not annotated.
        name: Qualifier from ``Named``.
        tags: Qualifier from ``Tagged``.
        optional: The annotation was ``Optional[T]``; ``None`` is injected when unbound.
        collection: The annotation was ``list[T]``; every provider of ``T`` is injected.
        default: Parameter default, or ``inspect.Parameter.empty``.
        kind: ``inspect.Parameter`` kind.
    """

    parameter: str
    type: Any
    name: str | None = None
    tags: Mapping[str, str] | None = None
    optional: bool = False
    collection: bool = False
    default: Any = inspect.Parameter.empty
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass(eq=False)
class Provider:
    """A construction recipe. Identity is the object itself."""

    factory: Callable[..., Any]
    produces: Any
    dependencies: tuple[Dependency, ...]
    name: str | None = None
    interfaces: tuple[Any, ...] = ()
    lifetime: Lifetime = Lifetime.SINGLETON
    tags: Mapping[str, str] = field(default_factory=dict)
    parameters: ParameterBag = field(default_factory=ParameterBag)
    is_generator: bool = False

    def binding_keys(self) -> Iterator[tuple[Any, str | None]]:
        yield (self.produces, self.name)
        # unnamed interface implementations form a group rather than a unique key
        if self.name is not None:
            for interface in self.interfaces:
                yield (interface, self.name)

    def provides(self, tp: Any) -> bool:
        return tp == self.produces or tp in self.interfaces

    def describe(self) -> str:
        label = type_name(self.produces)
        if self.name is not None:
            label += f"[{self.name}]"
        return label


def type_name(tp: Any) -> str:
    if tp is None:
        return "None"
    return getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None) or repr(tp)


def build_provider(
    factory: Callable[..., Any],
    params: ProvideParams,
    *,
    produces: Any = None,
) -> Provider:
    """Inspect ``factory`` and combine it with the registration options into a ``Provider``."""
    if not callable(factory):
        msg = f"Provider factory must be callable, got {factory!r}"
        raise InvalidProviderError(msg)

    is_generator = inspect.isgeneratorfunction(factory)
    # the container finishes generators on close(), so only singletons can own one
    if is_generator and params.lifetime is Lifetime.PROTOTYPE:
        msg = f"Generator provider {type_name(factory)} must be a singleton; prototype instances have no cleanup owner"
        raise InvalidProviderError(msg)

    if produces is None:
        produces = _infer_produced_type(factory, is_generator=is_generator)

    return Provider(
        factory=factory,
        produces=produces,
        dependencies=inspect_dependencies(factory),
        name=params.name,
        interfaces=tuple(params.interfaces),
        lifetime=params.lifetime,
        tags=dict(params.tags),
        parameters=ParameterBag(params.parameters),
        is_generator=is_generator,
    )


def inspect_dependencies(fn: Callable[..., Any]) -> tuple[Dependency, ...]:
    """Declared dependencies of a class constructor or callable, in parameter order."""
    if inspect.isclass(fn):
        if fn.__init__ is object.__init__ and fn.__new__ is object.__new__:  # type: ignore[misc]
            return ()
        hints = _get_init_type_hints(fn)
    else:
        hints = _get_callable_type_hints(fn)

    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError) as e:
        msg = f"Cannot inspect signature of {fn!r}: {e}"
        raise InvalidProviderError(msg) from e

    dependencies = []
    for name, p in sig.parameters.items():
        # variadic parameters are never injected
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue
        dependencies.append(_parse_dependency(p, hints.get(name, inspect.Parameter.empty)))
    return tuple(dependencies)


def _parse_dependency(p: inspect.Parameter, annotation: Any) -> Dependency:
    if annotation is inspect.Parameter.empty:
        return Dependency(parameter=p.name, type=None, default=p.default, kind=p.kind)

    name = None
    tags = None
    optional = False
    collection = False

    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation, *metadata = get_args(annotation)
            for m in metadata:
                if isinstance(m, Named):
                    name = m.name
                elif isinstance(m, Tagged):
                    tags = dict(m.tags)
        elif origin in (Union, types.UnionType) and type(None) in get_args(annotation):
            args = [a for a in get_args(annotation) if a is not type(None)]
            if len(args) != 1:
                break
            optional = True
            annotation = args[0]
        elif origin in (list, collections.abc.Sequence) and not collection:
            collection = True
            annotation = get_args(annotation)[0] if get_args(annotation) else Any
        else:
            break

    return Dependency(
        parameter=p.name,
        type=annotation,
        name=name,
        tags=tags,
        optional=optional,
        collection=collection,
        default=p.default,
        kind=p.kind,
    )


def _infer_produced_type(factory: Callable[..., Any], *, is_generator: bool) -> Any:
    if inspect.isclass(factory):
        return factory

    ret = _get_callable_type_hints(factory).get("return", inspect.Parameter.empty)
    if ret is inspect.Parameter.empty or ret is None or ret is type(None):
        msg = (
            f"Cannot infer the produced type of {type_name(factory)}: "
            "annotate its return type or pass produces=..."
        )
        raise InvalidProviderError(msg)

    if is_generator:
        # Iterator[T] / Generator[T, None, None]: the first yielded value is the instance
        args = get_args(ret)
        if get_origin(ret) not in (
            collections.abc.Iterator,
            collections.abc.Generator,
            collections.abc.Iterable,
        ) or not args:
            msg = f"Generator provider {type_name(factory)} must be annotated as Iterator[T] or Generator[T, ...]"
            raise InvalidProviderError(msg)
        ret = args[0]

    return ret


def _get_callable_type_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    target = fn if inspect.isroutine(fn) else getattr(type(fn), "__call__", fn)
    try:
        hints = get_type_hints(target, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s type hints", exc.name, type_name(fn))
        hints = {}

    return hints


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints


def is_collection_request(tp: Any) -> bool:
    return get_origin(tp) in (list, collections.abc.Sequence)


def collection_item(tp: Any) -> Any:
    args = get_args(tp)
    return args[0] if args else typing.Any
