"""Lifetime-aware dependency injection container.

Register services on a `ServiceCollection`, build a `ServiceProvider` from it and
resolve fully wired instances. Dependencies are injected into fields that opt in
with an `Inject` marker.

Exports:
- `ServiceCollection`: registry of service descriptors; `build()` creates providers.
- `ServiceProvider`: resolves services, caches scoped instances, `dispose()` releases them.
- `Lifetime`: transient (new per request), scoped (one per provider) or singleton
  (one per collection lineage, shared across builds).
- `Inject` / `Injected`: field markers for opt-in injection.
- `SingletonManager`, `ServiceDescriptor`, `Disposable` and the error classes.
"""

from ._collection import ServiceCollection
from ._descriptor import Lifetime, ServiceDescriptor
from ._errors import (
    CircularDependencyError,
    ConstructionError,
    ContainerError,
    InternalConsistencyError,
    LifetimeViolationError,
    NotFoundError,
    RegistrationError,
)
from ._injection import Inject, Injected
from ._provider import Disposable, ServiceProvider
from ._singleton import SingletonManager


__all__ = [
    "CircularDependencyError",
    "ConstructionError",
    "ContainerError",
    "Disposable",
    "Inject",
    "Injected",
    "InternalConsistencyError",
    "Lifetime",
    "LifetimeViolationError",
    "NotFoundError",
    "RegistrationError",
    "ServiceCollection",
    "ServiceDescriptor",
    "ServiceProvider",
    "SingletonManager",
]
