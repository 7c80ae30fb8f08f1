from abc import ABC, abstractmethod
from typing import Annotated, Optional, Protocol, runtime_checkable

import pytest

from graphbind import (
    AmbiguousBindingError,
    Container,
    DuplicateBindingError,
    InvalidProviderError,
    Named,
    NotFoundError,
    RegistryFrozenError,
    as_,
    name,
    with_name,
)


class Handler(ABC):
    @abstractmethod
    def serve(self) -> str: ...


class Mux(Handler):
    def serve(self) -> str:
        return "mux"


class Router(Handler):
    def serve(self) -> str:
        return "router"


def test_extract_unregistered_type_raises_not_found():
    c = Container()

    class A: ...

    with pytest.raises(NotFoundError):
        c.extract(A)


def test_not_found_is_a_lookup_error():
    c = Container()
    with pytest.raises(LookupError):
        c.extract(Mux)


def test_extract_class_provider_without_dependencies():
    c = Container()

    class A: ...

    c.provide(A)
    assert isinstance(c.extract(A), A)


def test_extract_factory_provider_uses_return_annotation():
    c = Container()

    class DB: ...

    def make_db() -> DB:
        return DB()

    c.provide(make_db)
    assert isinstance(c.extract(DB), DB)


def test_extract_resolves_recursively_from_annotations():
    c = Container()

    class DB: ...

    class Repo:
        def __init__(self, db: DB):
            self.db = db

    class Service:
        def __init__(self, repo: Repo):
            self.repo = repo

    c.provide(DB)
    c.provide(Repo)
    c.provide(Service)

    svc = c.extract(Service)
    assert isinstance(svc, Service)
    assert isinstance(svc.repo, Repo)
    assert isinstance(svc.repo.db, DB)


def test_dependencies_are_not_autowired_without_registration():
    c = Container()

    class DB: ...

    class Repo:
        def __init__(self, db: DB):
            self.db = db

    c.provide(Repo)
    with pytest.raises(NotFoundError) as ctx:
        c.extract(Repo)
    assert "DB" in str(ctx.value)


def test_factory_without_return_annotation_raises():
    c = Container()

    def make_thing():
        return object()

    with pytest.raises(InvalidProviderError):
        c.provide(make_thing)


def test_factory_without_return_annotation_accepts_explicit_produced_type():
    c = Container()

    class Thing: ...

    c.provide(lambda: Thing(), produces=Thing)
    assert isinstance(c.extract(Thing), Thing)


def test_non_callable_factory_raises():
    c = Container()
    with pytest.raises(InvalidProviderError):
        c.provide(42)


def test_duplicate_unnamed_binding_raises():
    c = Container()

    class A: ...

    c.provide(A)
    with pytest.raises(DuplicateBindingError):
        c.provide(A)


def test_duplicate_binding_with_replace_substitutes_provider():
    c = Container()

    class A:
        def __init__(self, tag: str = "first"):
            self.tag = tag

    def make_second() -> A:
        return A("second")

    c.provide(A)
    c.provide(make_second, replace=True)

    assert c.extract(A).tag == "second"
    assert len(c.providers()) == 1


def test_same_type_under_different_names_is_allowed():
    c = Container()

    def make_primary() -> str:
        return "primary"

    def make_replica() -> str:
        return "replica"

    c.provide(make_primary, with_name("primary"))
    c.provide(make_replica, with_name("replica"))

    assert c.extract(str, name("primary")) == "primary"
    assert c.extract(str, name("replica")) == "replica"


def test_named_binding_is_not_found_without_name():
    c = Container()

    def make_primary() -> str:
        return "primary"

    c.provide(make_primary, with_name("primary"))
    with pytest.raises(NotFoundError):
        c.extract(str)


def test_unknown_name_raises_not_found():
    c = Container()
    c.provide(Mux, with_name("mux"))
    with pytest.raises(NotFoundError) as ctx:
        c.extract(Mux, name("other"))
    assert "'other'" in str(ctx.value)


def test_interface_resolves_single_implementation():
    c = Container()
    c.provide(Mux, as_(Handler))

    handler = c.extract(Handler)
    assert isinstance(handler, Mux)
    assert handler is c.extract(Mux)


def test_interface_with_two_unnamed_implementations_is_ambiguous():
    c = Container()
    c.provide(Mux, as_(Handler))
    c.provide(Router, as_(Handler))

    with pytest.raises(AmbiguousBindingError) as ctx:
        c.extract(Handler)
    assert {p.produces for p in ctx.value.candidates} == {Mux, Router}


def test_interface_ambiguity_is_resolved_by_name():
    c = Container()
    c.provide(Mux, as_(Handler), with_name("mux"))
    c.provide(Router, as_(Handler), with_name("router"))

    with pytest.raises(AmbiguousBindingError):
        c.extract(Handler)
    assert isinstance(c.extract(Handler, name("mux")), Mux)
    assert isinstance(c.extract(Handler, name("router")), Router)


def test_duplicate_named_interface_binding_raises():
    c = Container()
    c.provide(Mux, as_(Handler), with_name("web"))
    with pytest.raises(DuplicateBindingError):
        c.provide(Router, as_(Handler), with_name("web"))


def test_concrete_binding_wins_over_interface_group():
    c = Container()

    class Base: ...

    class Derived(Base): ...

    c.provide(Base)
    c.provide(Derived, as_(Base))

    assert type(c.extract(Base)) is Base


def test_extract_list_returns_every_implementation_in_registration_order():
    c = Container()
    c.provide(Mux, as_(Handler), with_name("mux"))
    c.provide(Router, as_(Handler), with_name("router"))

    handlers = c.extract(list[Handler])
    assert [h.serve() for h in handlers] == ["mux", "router"]


def test_list_dependency_collects_every_implementation():
    c = Container()

    class Dispatcher:
        def __init__(self, handlers: list[Handler]):
            self.handlers = handlers

    c.provide(Mux, as_(Handler))
    c.provide(Router, as_(Handler))
    c.provide(Dispatcher)

    assert [h.serve() for h in c.extract(Dispatcher).handlers] == ["mux", "router"]


def test_annotated_dependency_selects_named_binding():
    c = Container()

    class Proxy:
        def __init__(self, upstream: Annotated[Handler, Named("router")]):
            self.upstream = upstream

    c.provide(Mux, as_(Handler), with_name("mux"))
    c.provide(Router, as_(Handler), with_name("router"))
    c.provide(Proxy)

    assert isinstance(c.extract(Proxy).upstream, Router)


def test_optional_dependency_is_none_when_unbound():
    c = Container()

    class Cache: ...

    class Service:
        def __init__(self, cache: Optional[Cache]):
            self.cache = cache

    c.provide(Service)
    assert c.extract(Service).cache is None


def test_optional_dependency_is_injected_when_bound():
    c = Container()

    class Cache: ...

    class Service:
        def __init__(self, cache: Optional[Cache]):
            self.cache = cache

    c.provide(Cache)
    c.provide(Service)
    assert isinstance(c.extract(Service).cache, Cache)


def test_has_reports_resolvable_bindings_without_constructing():
    c = Container()
    calls = []

    def make_mux() -> Mux:
        calls.append(1)
        return Mux()

    c.provide(make_mux, as_(Handler))

    assert c.has(Mux)
    assert c.has(Handler)
    assert not c.has(Router)
    assert not c.has(Mux, name("missing"))
    assert calls == []


def test_has_list_target_mirrors_extract():
    c = Container()
    c.provide(Mux, as_(Handler))
    c.provide(Router, as_(Handler))

    assert c.has(list[Handler])
    assert len(c.extract(list[Handler])) == 2
    assert c.has(list[Handler], name("missing")) is False
    assert not c.has(list[int])


def test_registration_is_closed_after_first_extract():
    c = Container()
    c.provide(Mux)
    c.extract(Mux)

    with pytest.raises(RegistryFrozenError):
        c.provide(Router)


def test_extract_runtime_protocol_for_conforming_instance_passes():
    c = Container()

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class RepoImpl:
        def get(self) -> int:
            return 1

    c.provide(RepoImpl, as_(RepoProtocol))
    repo = c.extract(RepoProtocol)
    assert isinstance(repo, RepoImpl)
    assert repo.get() == 1


def test_extract_by_newtype_key():
    from typing import NewType

    Port = NewType("Port", int)
    c = Container()

    def make_port() -> Port:
        return Port(8080)

    c.provide(make_port)
    assert c.extract(Port) == 8080
