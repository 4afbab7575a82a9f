"""Field markers for opt-in injection.

A class opts a field into injection by annotating it with ``Inject`` metadata::

    @dataclass
    class Car:
        engine: Annotated[Engine, Inject()] = None
        spare: Injected[Wheel] = None
        template: Annotated[Wheel, Inject(copy=True)] = None

Unmarked fields are never touched by the container.
"""

from __future__ import annotations

import logging
import sys
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, ForwardRef, Union, get_args, get_origin, get_type_hints

from ._errors import ConstructionError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inject:
    """Marks an annotated field for injection.

    With ``copy=True`` the field receives a shallow copy of the resolved
    service instead of the shared instance.
    """

    copy: bool = False


class Injected:
    """``Injected[T]`` is shorthand for ``Annotated[T, Inject()]``."""

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, Inject()]


@dataclass(frozen=True)
class InjectionPoint:
    name: str
    target: Any
    copy: bool


def injection_points(cls: type) -> list[InjectionPoint]:
    """Collect the marked fields of ``cls`` (including inherited ones) in declaration order.

    Annotations are evaluated one field at a time. An unmarked annotation that
    cannot be evaluated (e.g. a name imported only under ``TYPE_CHECKING``) is
    skipped; a marked one raises ``ConstructionError``.
    """
    points: dict[str, InjectionPoint] = {}
    for klass in reversed(cls.__mro__):
        for name, raw in _own_annotations(klass).items():
            try:
                annotation = _evaluate(klass, name, raw)
            except (NameError, TypeError) as exc:
                if _looks_injected(raw):
                    msg = f"Cannot evaluate annotation of injected field {cls.__qualname__}.{name}: {exc}"
                    raise ConstructionError(msg, cls) from exc
                logger.debug("Skipping unevaluable annotation %s.%s (%s)", klass.__qualname__, name, exc)
                points.pop(name, None)
                continue

            marker = _find_marker(annotation)
            if marker is None:
                # a subclass may redeclare an inherited field without the marker
                points.pop(name, None)
                continue
            points[name] = InjectionPoint(name=name, target=_target_type(annotation), copy=marker.copy)
    return list(points.values())


if sys.version_info >= (3, 14):
    import annotationlib

    def _own_annotations(klass: type) -> dict[str, Any]:
        return annotationlib.get_annotations(klass, format=annotationlib.Format.FORWARDREF)

else:

    def _own_annotations(klass: type) -> dict[str, Any]:
        ann = klass.__dict__.get("__annotations__", {})
        return ann if isinstance(ann, dict) else {}


def _evaluate(klass: type, name: str, raw: Any) -> Any:
    """Evaluate one annotation of ``klass`` in its module globals and class namespace."""
    holder = type(klass.__name__, (), {"__annotations__": {name: raw}, "__module__": klass.__module__})
    return get_type_hints(holder, localns=dict(vars(klass)), include_extras=True)[name]


def _looks_injected(raw: Any) -> bool:
    if isinstance(raw, ForwardRef):
        raw = raw.__forward_arg__
    if isinstance(raw, str):
        return "Inject" in raw
    return _find_marker(raw) is not None


def _find_marker(annotation: Any) -> Inject | None:
    if get_origin(annotation) is typing.ClassVar:
        return None

    for candidate in (annotation, _unwrap_optional(annotation)):
        if get_origin(candidate) is Annotated:
            for meta in candidate.__metadata__:
                if meta is Inject:
                    return Inject()
                if isinstance(meta, Inject):
                    return meta
    return None


def _target_type(annotation: Any) -> Any:
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    annotation = _unwrap_optional(annotation)
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def _unwrap_optional(annotation: Any) -> Any:
    """``Optional[T]`` and ``T | None`` resolve to ``T``; anything else is returned unchanged."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation
