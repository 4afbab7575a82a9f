"""Classification of capability types and implementation conformance checks.

A capability type is either *abstract* (a ``typing.Protocol`` or a class with
abstract methods) or *structural* (a concrete, user-defined class that can be
instantiated). Builtin types and non-class values are neither.
"""

from __future__ import annotations

import builtins
import inspect
import typing
from typing import Any, Protocol, cast, get_type_hints

from ._errors import RegistrationError


def type_name(tp: object) -> str:
    return getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None) or repr(tp)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: object) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: object) -> bool:
        return (
            inspect.isclass(tp)
            and issubclass(tp, cast("type", Protocol))
            and bool(getattr(tp, "_is_protocol", False))
        )


def is_abstract(tp: object) -> bool:
    return inspect.isclass(tp) and (is_protocol(tp) or inspect.isabstract(tp))


def is_structural(tp: object) -> bool:
    if not inspect.isclass(tp) or is_abstract(tp):
        return False
    return getattr(tp, "__module__", "") != builtins.__name__


def is_structural_instance(obj: object) -> bool:
    return obj is not None and is_structural(type(obj))


def check_structural(tp: object) -> None:
    if not is_structural(tp):
        msg = f"[ {type_name(tp)} ] is not a concrete class"
        raise RegistrationError(msg)


def check_capability(tp: object) -> None:
    if not (is_abstract(tp) or is_structural(tp)):
        msg = f"[ {type_name(tp)} ] is neither an abstract capability nor a concrete class"
        raise RegistrationError(msg)


def check_implements(service_type: type, implementation_type: type) -> None:
    """Check that ``implementation_type`` satisfies ``service_type``.

    - Plain classes and ABCs require ``issubclass``.
    - Protocols are satisfied nominally (listed in the MRO) or structurally:
      every public member present, methods callable, no fewer required
      positional parameters and a compatible return annotation.
    """
    if not is_protocol(service_type):
        if not issubclass(implementation_type, service_type):
            msg = f"{type_name(implementation_type)} must be a subclass of {type_name(service_type)}"
            raise RegistrationError(msg)
        return

    if service_type in getattr(implementation_type, "__mro__", ()):
        return

    problems = _conformance_problems(service_type, implementation_type)
    if problems:
        msg = (
            f"{type_name(implementation_type)} does not structurally conform to protocol "
            f"{type_name(service_type)}: {'; '.join(problems)}"
        )
        raise RegistrationError(msg)


def _conformance_problems(proto: type, impl: type) -> list[str]:
    missing: list[str] = []
    mismatches: list[str] = []

    try:
        proto_hints = get_type_hints(proto, include_extras=True)
    except (NameError, TypeError):
        proto_hints = {}

    for name in proto_hints:
        if not name.startswith("_") and not hasattr(impl, name):
            missing.append(name)

    for name, proto_attr in proto.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_attr = getattr(impl, name)
        if not callable(impl_attr):
            mismatches.append(f"{name}: not callable on {type_name(impl)}")
            continue

        try:
            proto_sig = _signature(proto_attr)
            impl_sig = _signature(impl_attr)
        except (TypeError, ValueError) as e:
            mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        proto_arity = _required_positional(proto_sig)
        impl_arity = _required_positional(impl_sig)
        if impl_arity > proto_arity:
            mismatches.append(
                f"{name}: implementation requires {impl_arity} positional params, protocol passes {proto_arity}"
            )
        elif _accepted_positional(impl_sig) < proto_arity:
            mismatches.append(
                f"{name}: implementation accepts fewer positional params than protocol ({proto_arity})"
            )

        proto_ret = proto_sig.return_annotation
        impl_ret = impl_sig.return_annotation
        if (
            proto_ret is not inspect.Signature.empty
            and impl_ret is not inspect.Signature.empty
            and Any not in (proto_ret, impl_ret)
            and not _is_return_type_compatible(impl_ret, proto_ret)
        ):
            mismatches.append(f"{name}: return type {impl_ret!r} is not compatible with {proto_ret!r}")

    problems = []
    if missing:
        problems.append(f"missing members: {', '.join(missing)}")
    if mismatches:
        problems.append(f"signature mismatches: {', '.join(mismatches)}")
    return problems


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _signature(func: Any) -> inspect.Signature:
    # string annotations (``from __future__ import annotations``) are compared as types when they evaluate
    try:
        return inspect.signature(func, eval_str=True)
    except NameError:
        return inspect.signature(func)


def _params(sig: inspect.Signature) -> list[inspect.Parameter]:
    return [p for p in sig.parameters.values() if p.name != "self"]


def _required_positional(sig: inspect.Signature) -> int:
    return sum(1 for p in _params(sig) if p.kind in _POSITIONAL and p.default is inspect.Parameter.empty)


def _accepted_positional(sig: inspect.Signature) -> float:
    params = _params(sig)
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return float("inf")
    return sum(1 for p in params if p.kind in _POSITIONAL)


def _is_return_type_compatible(impl_ret: object, proto_ret: object) -> bool:
    if impl_ret == proto_ret:
        return True

    if isinstance(impl_ret, type) and isinstance(proto_ret, type):
        return issubclass(impl_ret, proto_ret)

    # Unions and TypeVars fail conservatively; annotations naming unimportable types are let through
    return isinstance(impl_ret, str) or isinstance(proto_ret, str)
