from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from ._conformance import check_implements
from ._errors import (
    AmbiguousBindingError,
    DuplicateBindingError,
    NotFoundError,
    RegistryFrozenError,
)
from ._provider import type_name


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ._provider import Provider


class ProviderRegistry:
    """Providers indexed by ``(type, name)`` and by implemented interface.

    The registry is mutable until ``freeze()`` and read-only afterwards, so
    lookups need no locking.
    """

    def __init__(self) -> None:
        self._providers: list[Provider] = []
        self._by_key: dict[tuple[Any, str | None], Provider] = {}
        self._by_interface: defaultdict[Any, list[Provider]] = defaultdict(list)
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def providers(self) -> list[Provider]:
        return list(self._providers)

    def register(self, provider: Provider, *, replace: bool = False) -> None:
        if self._frozen:
            msg = f"Cannot register {provider.describe()}: the container has already resolved values"
            raise RegistryFrozenError(msg)

        for interface in provider.interfaces:
            check_implements(interface, provider.produces)

        conflicts = []
        for key in provider.binding_keys():
            existing = self._by_key.get(key)
            if existing is not None and existing not in conflicts:
                conflicts.append(existing)

        if conflicts:
            if not replace:
                tp, name = next(k for k in provider.binding_keys() if k in self._by_key)
                msg = (
                    f"{type_name(tp)} is already bound"
                    + (f" under name {name!r}" if name is not None else "")
                    + f" by {conflicts[0].describe()}. Pass replace=True to overwrite."
                )
                raise DuplicateBindingError(msg)
            for existing in conflicts:
                self._unlink(existing)

        self._providers.append(provider)
        for key in provider.binding_keys():
            self._by_key[key] = provider
        for interface in provider.interfaces:
            self._by_interface[interface].append(provider)

        logger.debug(
            "Registered %s (%s) as %s",
            provider.describe(),
            provider.lifetime.value,
            ", ".join(type_name(i) for i in provider.interfaces) or "-",
        )

    def _unlink(self, provider: Provider) -> None:
        logger.debug("Replacing %s", provider.describe())
        self._providers.remove(provider)
        for key in provider.binding_keys():
            if self._by_key.get(key) is provider:
                del self._by_key[key]
        for interface in provider.interfaces:
            self._by_interface[interface].remove(provider)

    def lookup(self, tp: Any, name: str | None = None) -> Provider:
        try:
            return self._by_key[(tp, name)]
        except KeyError:
            msg = f"No provider for {type_name(tp)}" + (f" named {name!r}" if name is not None else "")
            raise NotFoundError(msg) from None

    def has_concrete(self, tp: Any, name: str | None = None) -> bool:
        return (tp, name) in self._by_key

    def is_interface(self, tp: Any) -> bool:
        return bool(self._by_interface.get(tp))

    def lookup_by_interface(self, interface: Any, name: str | None = None) -> Provider:
        candidates = self._by_interface.get(interface, [])
        if name is not None:
            candidates = [p for p in candidates if p.name == name]

        if not candidates:
            msg = f"No provider implements {type_name(interface)}" + (
                f" under name {name!r}" if name is not None else ""
            )
            raise NotFoundError(msg)

        if len(candidates) > 1:
            msg = (
                f"Multiple providers implement {type_name(interface)}: "
                f"{', '.join(p.describe() for p in candidates)}. Select one by name."
            )
            raise AmbiguousBindingError(msg, candidates)

        return candidates[0]

    def lookup_all(self, tp: Any) -> list[Provider]:
        """Every provider producing or implementing ``tp``, in registration order."""
        return [p for p in self._providers if p.provides(tp)]
