from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._provider import ServiceProvider

    Factory = Callable[[ServiceProvider], object]


class Lifetime(Enum):
    TRANSIENT = "transient"
    SCOPED = "scoped"
    SINGLETON = "singleton"


@dataclass
class ServiceDescriptor:
    """One registration: which capability, which implementation, how to build it and for how long."""

    name: str  # implementation display name, used in log messages
    lifetime: Lifetime
    service_type: type
    implementation_type: type
    factory: Factory
    scoped_instance: object | None = None  # realized scoped instance, per provider copy

    def copy(self) -> ServiceDescriptor:
        return dataclasses.replace(self, scoped_instance=None)
