import unittest

import pytest

from scopebind import NotFoundError, ServiceCollection, SingletonManager


class Clock:
    pass


class TestSingletonManager(unittest.TestCase):
    manager: SingletonManager

    def setUp(self):
        self.manager = SingletonManager()

    def test_register_is_idempotent(self):
        first = Clock()
        self.manager.register(Clock, lambda _: first)
        self.manager.register(Clock, lambda _: Clock())

        provider = ServiceCollection(singletons=self.manager).build()

        assert self.manager.resolve(Clock, provider) is first
        assert len(self.manager) == 1

    def test_resolve_unknown_type_raises_not_found(self):
        provider = ServiceCollection(singletons=self.manager).build()

        with pytest.raises(NotFoundError):
            self.manager.resolve(Clock, provider)

    def test_entries_are_created_by_build(self):
        services = ServiceCollection(singletons=self.manager)
        services.add_singleton(Clock)

        assert Clock not in self.manager
        services.build()
        assert Clock in self.manager
        assert not self.manager.is_created(Clock)

    def test_collections_sharing_a_manager_share_instances(self):
        a = ServiceCollection(singletons=self.manager).add_singleton(Clock)
        b = ServiceCollection(singletons=self.manager).add_singleton(Clock)

        assert a.build().get_service(Clock) is b.build().get_service(Clock)

    def test_separate_managers_are_isolated(self):
        a = ServiceCollection().add_singleton(Clock)
        b = ServiceCollection().add_singleton(Clock)

        assert a.build().get_service(Clock) is not b.build().get_service(Clock)
