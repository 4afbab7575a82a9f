from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._descriptor import Lifetime
from ._errors import NotFoundError
from ._types import type_name


if TYPE_CHECKING:
    from ._descriptor import Factory
    from ._provider import ServiceProvider


logger = logging.getLogger(__name__)


@dataclass
class _SingletonEntry:
    factory: Factory
    instance: object | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


class SingletonManager:
    """Store of singleton instances shared by every provider built from one collection lineage.

    Each capability type gets its own lock, so unrelated singletons initialize
    in parallel while concurrent first requests for the same type construct it
    exactly once.
    """

    def __init__(self) -> None:
        self._entries: dict[type, _SingletonEntry] = {}
        self._lock = threading.RLock()

    def register(self, service_type: type, factory: Factory) -> None:
        """Add an entry unless one already exists; existing entries keep their factory and instance."""
        with self._lock:
            if service_type in self._entries:
                return
            self._entries[service_type] = _SingletonEntry(factory=factory)
        logger.debug("Registered singleton %s", type_name(service_type))

    def resolve(self, service_type: type, provider: ServiceProvider) -> object:
        with self._lock:
            entry = self._entries.get(service_type)
        if entry is None:
            msg = f"Singleton [ {type_name(service_type)} ] not found"
            raise NotFoundError(msg)

        with entry.lock:
            if entry.instance is None:
                # assigned only once construction and injection both succeeded
                entry.instance = provider._construct(service_type, entry.factory, Lifetime.SINGLETON)  # noqa: SLF001
            return entry.instance

    def is_created(self, service_type: type) -> bool:
        with self._lock:
            entry = self._entries.get(service_type)
        return entry is not None and entry.instance is not None

    def __contains__(self, service_type: object) -> bool:
        with self._lock:
            return service_type in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
