from __future__ import annotations


class ContainerError(RuntimeError):
    pass


class RegistrationError(ContainerError, TypeError):
    """Raised synchronously by the ``add_*`` methods for an invalid registration."""


class NotFoundError(ContainerError, KeyError):
    """Raised when a capability type has no registration in a provider or singleton manager."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return RuntimeError.__str__(self)


class LifetimeViolationError(ContainerError):
    """Raised when a singleton would capture a scoped dependency."""


class ConstructionError(ContainerError):
    """Raised when a factory or a field assignment fails while building a service."""

    def __init__(self, msg: str, service_type: object = None) -> None:
        super().__init__(msg)
        self.service_type = service_type


class CircularDependencyError(ConstructionError):
    pass


class InternalConsistencyError(ContainerError):
    pass
