from __future__ import annotations

import inspect
import typing
from typing import Any, Protocol, cast, get_type_hints

from ._errors import TypeMismatchError
from ._provider import type_name


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: Any) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return inspect.isclass(tp) and tp is not Protocol and issubclass(tp, cast("type", Protocol))


def is_runtime_checkable_protocol(tp: Any) -> bool:
    if not is_protocol(tp):
        return False

    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True


def check_implements(interface: Any, impl: Any) -> None:
    """Validate at registration time that ``impl`` satisfies ``interface``.

    - For normal classes/ABCs: require issubclass(impl, interface).
    - For Protocols: nominal via MRO, otherwise structural conformance.
    - Non-class types (``NewType``, aliases) cannot be validated and are accepted.
    """
    if not inspect.isclass(interface) or not inspect.isclass(impl):
        return

    if not is_protocol(interface):
        if not issubclass(impl, interface):
            msg = f"{impl.__name__} does not implement {interface.__name__}"
            raise TypeMismatchError(msg)
        return

    _check_protocol_impl(interface, impl)


def check_assignable(target: Any, instance: object) -> None:
    """Validate that a resolved ``instance`` can be handed out as ``target``."""
    if not inspect.isclass(target) or target is object:
        return

    if is_protocol(target):
        if is_runtime_checkable_protocol(target):
            if not isinstance(instance, target):
                msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {target.__name__}"
                raise TypeMismatchError(msg)
            return
        try:
            _check_protocol_impl(target, type(instance))
        except TypeMismatchError as e:
            msg = f"Resolved instance {type(instance).__name__} does not conform to protocol {target.__name__}"
            raise TypeMismatchError(msg) from e
        return

    if not isinstance(instance, target):
        msg = f"Resolved instance {type(instance).__name__} is not an instance of {target.__name__}"
        raise TypeMismatchError(msg)


def _check_protocol_impl(proto_cls: type, impl: type) -> None:
    # Try nominal conformance without issubclass
    if proto_cls in getattr(impl, "__mro__", ()):
        return

    _check_structural_conformance(proto_cls, impl)


def _check_structural_conformance(proto_cls: type, impl: type) -> None:  # noqa: C901
    """Best-effort structural conformance: member presence, positional arity and return types."""
    missing: list[str] = []
    signature_mismatches: list[str] = []

    try:
        proto_hints = get_type_hints(proto_cls, include_extras=True)
    except TypeError:
        proto_hints = {}

    for name in proto_hints:
        if name.startswith("_"):
            continue
        if not hasattr(impl, name):
            missing.append(name)

    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_attr = getattr(impl, name)
        if not callable(impl_attr):
            signature_mismatches.append(f"{name}: not callable on {impl.__name__}")
            continue

        try:
            proto_sig = inspect.signature(proto_attr)
            impl_sig = inspect.signature(impl_attr)
        except (TypeError, ValueError) as e:
            signature_mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        proto_arity = _positional_arity(proto_sig)
        impl_arity = _positional_arity(impl_sig)
        if impl_arity < proto_arity:
            signature_mismatches.append(
                f"{name}: {impl_arity} required positional params, protocol declares {proto_arity}"
            )

        proto_ret = proto_sig.return_annotation
        impl_ret = impl_sig.return_annotation
        if (
            proto_ret is not inspect.Signature.empty
            and impl_ret is not inspect.Signature.empty
            and proto_ret is not Any
            and impl_ret is not Any
            and not _is_return_type_compatible(impl_ret, proto_ret)
        ):
            signature_mismatches.append(
                f"{name}: return type {type_name(impl_ret)} is not compatible with {type_name(proto_ret)}"
            )

    if missing or signature_mismatches:
        msgs = []
        if missing:
            msgs.append(f"missing members: {', '.join(missing)}")
        if signature_mismatches:
            msgs.append(f"signature mismatches: {', '.join(signature_mismatches)}")

        msg = f"{impl.__name__} does not structurally conform to protocol {proto_cls.__name__}: {'; '.join(msgs)}"
        raise TypeMismatchError(msg)


def _positional_arity(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


def _is_return_type_compatible(impl_ret: object, proto_ret: object) -> bool:
    if impl_ret == proto_ret:
        return True

    if isinstance(impl_ret, type) and isinstance(proto_ret, type):
        return issubclass(impl_ret, proto_ret)

    # Union, TypeVar, string annotations and the like: conservative failure
    return False
