"""Dependency injection container that builds object graphs from typed factories.

Providers are classes or factory functions whose parameter annotations
declare their dependencies and whose return annotation declares what they
build. The container resolves requests by type, name, interface or tag set,
constructs the graph recursively with cycle detection, and caches singletons.

Exports:
- `Container`: registry plus resolution engine; `provide`, `extract`, `invoke`.
- Provide options: `with_name`, `as_`, `prototype`, `with_tags`, `ParameterBag`.
- Extract options: `name`, `tags`; annotation qualifiers `Named`, `Tagged`.
- `provide` / `bundle`: deferred registrations for `Container(...)`.
- `ServiceCollection`: declarative front-end building a `ServiceProvider`.
- Errors, all derived from `ContainerError`.
"""

from ._collection import (
    DefaultServiceProvider,
    ServiceCollection,
    ServiceDescriptor,
    ServiceLifetime,
    ServiceProvider,
)
from ._container import Container
from ._errors import (
    AmbiguousBindingError,
    ContainerError,
    CyclicDependencyError,
    DuplicateBindingError,
    InvalidProviderError,
    NotFoundError,
    ParameterResolutionError,
    ProviderConstructionError,
    RegistryFrozenError,
    TypeMismatchError,
)
from ._options import (
    Bundle,
    Provide,
    as_,
    bundle,
    name,
    prototype,
    provide,
    tags,
    with_name,
    with_tags,
)
from ._provider import Dependency, Lifetime, Named, ParameterBag, Provider, Tagged


__all__ = [
    "AmbiguousBindingError",
    "Bundle",
    "Container",
    "ContainerError",
    "CyclicDependencyError",
    "DefaultServiceProvider",
    "Dependency",
    "DuplicateBindingError",
    "InvalidProviderError",
    "Lifetime",
    "Named",
    "NotFoundError",
    "ParameterBag",
    "ParameterResolutionError",
    "Provide",
    "Provider",
    "ProviderConstructionError",
    "RegistryFrozenError",
    "ServiceCollection",
    "ServiceDescriptor",
    "ServiceLifetime",
    "ServiceProvider",
    "Tagged",
    "TypeMismatchError",
    "as_",
    "bundle",
    "name",
    "prototype",
    "provide",
    "tags",
    "with_name",
    "with_tags",
]
