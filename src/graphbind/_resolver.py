from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._errors import AmbiguousBindingError, NotFoundError
from ._provider import type_name


if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._provider import Provider
    from ._registry import ProviderRegistry


@dataclass(frozen=True)
class Request:
    type: Any
    name: str | None = None
    tags: Mapping[str, str] | None = None

    def describe(self) -> str:
        label = type_name(self.type)
        if self.name is not None:
            label += f" named {self.name!r}"
        if self.tags is not None:
            label += f" tagged {dict(self.tags)!r}"
        return label


class BindingResolver:
    """Turns a request into exactly one provider, or fails.

    Resolution precedence:
    1. tag set, when given (exact equality, optionally narrowed by name)
    2. name, when given: concrete binding first, then named interface binding
    3. unnamed concrete binding for the type
    4. interface group for the type; ambiguous when it holds several providers
    5. error.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    def resolve(self, request: Request) -> Provider:
        if request.tags is not None:
            return self._resolve_tagged(request)

        # name and unnamed concrete lookups share the (type, name) index
        if request.name is not None or self._registry.has_concrete(request.type):
            return self._registry.lookup(request.type, request.name)

        if self._registry.is_interface(request.type):
            return self._registry.lookup_by_interface(request.type)

        msg = f"No provider for {request.describe()}"
        raise NotFoundError(msg)

    def resolve_all(self, tp: Any, name: str | None = None, tags: Mapping[str, str] | None = None) -> list[Provider]:
        candidates = self._registry.lookup_all(tp)
        if name is not None:
            candidates = [p for p in candidates if p.name == name]
        if tags is not None:
            wanted = dict(tags)
            candidates = [p for p in candidates if dict(p.tags) == wanted]
        return candidates

    def _resolve_tagged(self, request: Request) -> Provider:
        candidates = self.resolve_all(request.type, request.name, request.tags)
        if not candidates:
            msg = f"No provider for {request.describe()}"
            raise NotFoundError(msg)
        if len(candidates) > 1:
            msg = f"Multiple providers match {request.describe()}: {', '.join(p.describe() for p in candidates)}"
            raise AmbiguousBindingError(msg, candidates)
        return candidates[0]
