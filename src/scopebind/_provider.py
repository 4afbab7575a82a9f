from __future__ import annotations

import copy
import logging
import threading
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, overload, runtime_checkable

from ._descriptor import Lifetime
from ._errors import (
    CircularDependencyError,
    ConstructionError,
    ContainerError,
    InternalConsistencyError,
    LifetimeViolationError,
    NotFoundError,
)
from ._injection import injection_points
from ._types import is_structural_instance, type_name


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from ._descriptor import Factory, ServiceDescriptor
    from ._singleton import SingletonManager

    T = TypeVar("T")


logger = logging.getLogger(__name__)


@runtime_checkable
class Disposable(Protocol):
    def dispose(self) -> None: ...


class ServiceProvider:
    """Resolves services from a snapshot of a ``ServiceCollection``.

    - transient: a new instance on every request
    - scoped: one instance per provider, released by ``dispose()``
    - singleton: one instance per collection lineage, held by the ``SingletonManager``

    Providers are normally created by ``ServiceCollection.build()``. They can be
    used as context managers, disposing their scoped instances on exit.
    """

    def __init__(self, descriptors: Mapping[type, ServiceDescriptor], singletons: SingletonManager) -> None:
        self._descriptors = {service_type: d.copy() for service_type, d in descriptors.items()}
        self._locks = {service_type: threading.Lock() for service_type in self._descriptors}
        self._singletons = singletons
        self._local = threading.local()

    @overload
    def get_service(self, service_type: type[T]) -> T: ...

    @overload
    def get_service(self, service_type: Any) -> object: ...

    def get_service(self, service_type: Any) -> object:
        """Resolve ``service_type`` according to its registered lifetime.

        Called from inside a factory, the request is checked against the
        lifetime of the service that factory is building.
        """
        return self._get_service(service_type, self._requesting_lifetime())

    def dispose(self) -> None:
        """Release every scoped instance, calling ``dispose()`` on those that implement it.

        Singletons and other providers are not affected. Calling it again is a no-op
        until new scoped instances are created.
        """
        errors: list[Exception] = []
        for service_type, descriptor in self._descriptors.items():
            with self._locks[service_type]:
                instance, descriptor.scoped_instance = descriptor.scoped_instance, None

            if isinstance(instance, Disposable):
                try:
                    instance.dispose()
                except Exception as e:  # noqa: BLE001
                    logger.exception("Disposing scoped %s (%s) failed", type_name(service_type), descriptor.name)
                    errors.append(e)

        if errors:
            raise errors[0]

    def __enter__(self) -> ServiceProvider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    def __contains__(self, service_type: object) -> bool:
        return service_type in self._descriptors

    def _get_service(self, service_type: Any, requesting: Lifetime | None) -> object:
        descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            msg = f"Type [ {type_name(service_type)} ] not found"
            raise NotFoundError(msg)

        self._check_cycle(service_type)

        lifetime = descriptor.lifetime
        if lifetime is Lifetime.TRANSIENT:
            # a transient built for a singleton lives as long as that singleton
            effective = Lifetime.SINGLETON if requesting is Lifetime.SINGLETON else Lifetime.TRANSIENT
            return self._construct(service_type, descriptor.factory, effective)

        if lifetime is Lifetime.SCOPED:
            if requesting is Lifetime.SINGLETON:
                msg = f"Cannot inject scoped [ {type_name(service_type)} ] into a singleton"
                raise LifetimeViolationError(msg)
            with self._locks[service_type]:
                if descriptor.scoped_instance is None:
                    descriptor.scoped_instance = self._construct(service_type, descriptor.factory, Lifetime.SCOPED)
                return descriptor.scoped_instance

        if lifetime is Lifetime.SINGLETON:
            return self._singletons.resolve(service_type, self)

        msg = f"Unrecognized lifetime: [ {lifetime!r} ]"
        raise InternalConsistencyError(msg)

    def _construct(self, service_type: Any, factory: Factory, lifetime: Lifetime) -> object:
        """Run ``factory`` and inject the marked fields of its result."""
        stack = self._stack()
        stack.append((service_type, lifetime))
        try:
            logger.debug("Constructing %s (%s)", type_name(service_type), lifetime.value)
            try:
                instance = factory(self)
            except ContainerError:
                raise
            except Exception as e:
                msg = f"Error instantiating [ {type_name(service_type)} ]: {e}"
                raise ConstructionError(msg, service_type) from e

            return self._create_object(instance, service_type, lifetime)
        finally:
            stack.pop()

    def _create_object(self, instance: object, service_type: Any, lifetime: Lifetime) -> object:
        if not is_structural_instance(instance):
            msg = (
                f"Factory for [ {type_name(service_type)} ] returned {type_name(type(instance))}, "
                "not an instance of a concrete class"
            )
            raise ConstructionError(msg, service_type)

        for point in injection_points(type(instance)):
            try:
                value = self._get_service(point.target, lifetime)
            except NotFoundError as e:
                msg = f"{e} (required by {type_name(type(instance))}.{point.name})"
                raise NotFoundError(msg) from e

            try:
                if point.copy:
                    value = copy.copy(value)
                setattr(instance, point.name, value)
            except Exception as e:
                msg = f"Cannot assign {type_name(type(instance))}.{point.name}: {e}"
                raise ConstructionError(msg, service_type) from e

        return instance

    def _check_cycle(self, service_type: Any) -> None:
        stack = self._stack()
        if any(entry is service_type for entry, _ in stack):
            chain = " -> ".join(type_name(entry) for entry, _ in stack)
            msg = f"Circular dependency: {chain} -> {type_name(service_type)}"
            raise CircularDependencyError(msg, service_type)

    def _requesting_lifetime(self) -> Lifetime | None:
        stack = self._stack()
        return stack[-1][1] if stack else None

    def _stack(self) -> list[tuple[Any, Lifetime]]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack
