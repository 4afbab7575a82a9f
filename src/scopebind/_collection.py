from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from ._descriptor import Lifetime, ServiceDescriptor
from ._errors import NotFoundError, RegistrationError
from ._provider import ServiceProvider
from ._singleton import SingletonManager
from ._types import check_capability, check_implements, check_structural, type_name


if TYPE_CHECKING:
    from ._descriptor import Factory


logger = logging.getLogger(__name__)


def _default_factory(implementation_type: type) -> Factory:
    def factory(_: ServiceProvider) -> object:
        return implementation_type()

    return factory


class ServiceCollection:
    """Registry of service descriptors.

    - register concrete classes, or capabilities with an implementation or a factory
    - lifetimes: transient / scoped / singleton
    - ``build()`` snapshots the registrations into a ``ServiceProvider``

    Registering the same capability type again replaces the earlier descriptor.
    Singletons are owned by the collection's ``SingletonManager``, so every
    provider built from it shares them.

    Example:
      services = ServiceCollection()
      services.add_scoped_of(Animal, Dog)
      services.add_singleton_handler(Engine, lambda provider: Engine(id=2))
      provider = services.build()
      animal = provider.get_service(Animal)

    """

    def __init__(self, *, singletons: SingletonManager | None = None) -> None:
        self._descriptors: dict[type, ServiceDescriptor] = {}
        self._singletons = singletons if singletons is not None else SingletonManager()
        self._lock = threading.RLock()

    @property
    def singletons(self) -> SingletonManager:
        return self._singletons

    def add_service(self, lifetime: Lifetime, implementation_type: type) -> ServiceCollection:
        """Register a concrete class as its own capability, built by calling it with no arguments."""
        check_structural(implementation_type)
        return self._add(lifetime, implementation_type, implementation_type, _default_factory(implementation_type))

    def add_service_handler(self, lifetime: Lifetime, service_type: type, factory: Factory) -> ServiceCollection:
        """Register a capability built by ``factory(provider)``. The result is not type-checked."""
        check_capability(service_type)
        return self._add(lifetime, service_type, service_type, factory)

    def add_service_of(self, lifetime: Lifetime, service_type: type, implementation_type: type) -> ServiceCollection:
        """Register ``implementation_type`` for ``service_type``; it must implement the capability."""
        check_capability(service_type)
        check_structural(implementation_type)
        check_implements(service_type, implementation_type)
        return self._add(lifetime, service_type, implementation_type, _default_factory(implementation_type))

    def add_service_handler_of(
        self,
        lifetime: Lifetime,
        service_type: type,
        implementation_type: type,
        factory: Factory,
    ) -> ServiceCollection:
        """Register a capability built by ``factory``; ``implementation_type`` is informational only."""
        check_capability(service_type)
        check_capability(implementation_type)
        return self._add(lifetime, service_type, implementation_type, factory)

    def add_transient(self, implementation_type: type) -> ServiceCollection:
        return self.add_service(Lifetime.TRANSIENT, implementation_type)

    def add_scoped(self, implementation_type: type) -> ServiceCollection:
        return self.add_service(Lifetime.SCOPED, implementation_type)

    def add_singleton(self, implementation_type: type) -> ServiceCollection:
        return self.add_service(Lifetime.SINGLETON, implementation_type)

    def add_transient_handler(self, service_type: type, factory: Factory) -> ServiceCollection:
        return self.add_service_handler(Lifetime.TRANSIENT, service_type, factory)

    def add_scoped_handler(self, service_type: type, factory: Factory) -> ServiceCollection:
        return self.add_service_handler(Lifetime.SCOPED, service_type, factory)

    def add_singleton_handler(self, service_type: type, factory: Factory) -> ServiceCollection:
        return self.add_service_handler(Lifetime.SINGLETON, service_type, factory)

    def add_transient_of(self, service_type: type, implementation_type: type) -> ServiceCollection:
        return self.add_service_of(Lifetime.TRANSIENT, service_type, implementation_type)

    def add_scoped_of(self, service_type: type, implementation_type: type) -> ServiceCollection:
        return self.add_service_of(Lifetime.SCOPED, service_type, implementation_type)

    def add_singleton_of(self, service_type: type, implementation_type: type) -> ServiceCollection:
        return self.add_service_of(Lifetime.SINGLETON, service_type, implementation_type)

    def add_transient_handler_of(
        self, service_type: type, implementation_type: type, factory: Factory
    ) -> ServiceCollection:
        return self.add_service_handler_of(Lifetime.TRANSIENT, service_type, implementation_type, factory)

    def add_scoped_handler_of(
        self, service_type: type, implementation_type: type, factory: Factory
    ) -> ServiceCollection:
        return self.add_service_handler_of(Lifetime.SCOPED, service_type, implementation_type, factory)

    def add_singleton_handler_of(
        self, service_type: type, implementation_type: type, factory: Factory
    ) -> ServiceCollection:
        return self.add_service_handler_of(Lifetime.SINGLETON, service_type, implementation_type, factory)

    def get_descriptor(self, service_type: Any) -> ServiceDescriptor:
        """Return a copy of the registration for ``service_type``; changing it does not affect the collection."""
        with self._lock:
            descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            msg = f"Type [ {type_name(service_type)} ] not found"
            raise NotFoundError(msg)
        return descriptor.copy()

    def build(self) -> ServiceProvider:
        """Snapshot the registrations into a new provider.

        Singleton descriptors are registered with the singleton manager; a
        capability type it already knows keeps its existing factory and instance.
        """
        with self._lock:
            descriptors = dict(self._descriptors)

        for service_type, descriptor in descriptors.items():
            if descriptor.lifetime is Lifetime.SINGLETON:
                self._singletons.register(service_type, descriptor.factory)

        logger.debug("Building provider with %d services", len(descriptors))
        return ServiceProvider(descriptors, self._singletons)

    def copy_to(self, *, share_singletons: bool = False) -> ServiceCollection:
        """Copy the registrations into a new, independently mutable collection.

        The copy gets a fresh singleton manager unless ``share_singletons`` is set.
        """
        singletons = self._singletons if share_singletons else None
        copied = ServiceCollection(singletons=singletons)
        with self._lock:
            copied._descriptors = {service_type: d.copy() for service_type, d in self._descriptors.items()}  # noqa: SLF001
        return copied

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)

    def __contains__(self, service_type: object) -> bool:
        with self._lock:
            return service_type in self._descriptors

    def _add(
        self,
        lifetime: Lifetime,
        service_type: type,
        implementation_type: type,
        factory: Factory,
    ) -> ServiceCollection:
        if not isinstance(lifetime, Lifetime):
            msg = f"Unknown lifetime {lifetime!r}; expected a Lifetime member"
            raise RegistrationError(msg)
        if not callable(factory):
            msg = f"Factory for [ {type_name(service_type)} ] is not callable"
            raise RegistrationError(msg)

        descriptor = ServiceDescriptor(
            name=implementation_type.__name__,
            lifetime=lifetime,
            service_type=service_type,
            implementation_type=implementation_type,
            factory=factory,
        )

        with self._lock:
            if service_type in self._descriptors:
                logger.debug("Replacing registration for %s", type_name(service_type))
            self._descriptors[service_type] = descriptor

        logger.debug("Registered %s -> %s (%s)", type_name(service_type), descriptor.name, lifetime.value)
        return self
