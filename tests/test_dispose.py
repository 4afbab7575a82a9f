import unittest

import pytest

from scopebind import Disposable, Injected, ServiceCollection


class Connection:
    def __init__(self) -> None:
        self.disposed = 0

    def dispose(self) -> None:
        self.disposed += 1


class Session:
    connection: Injected[Connection] = None


class FailingConnection(Connection):
    def dispose(self) -> None:
        super().dispose()
        msg = "socket already closed"
        raise OSError(msg)


class TestDispose(unittest.TestCase):
    services: ServiceCollection

    def setUp(self):
        self.services = ServiceCollection()
        self.services.add_scoped(Connection)
        self.services.add_scoped(Session)

    def test_dispose_calls_hook_and_clears_scoped_cache(self):
        provider = self.services.build()
        conn = provider.get_service(Connection)

        provider.dispose()

        assert conn.disposed == 1
        assert provider.get_service(Connection) is not conn

    def test_dispose_does_not_touch_other_providers(self):
        p1 = self.services.build()
        p2 = self.services.build()
        c1 = p1.get_service(Connection)
        c2 = p2.get_service(Connection)

        p1.dispose()

        assert c2.disposed == 0
        assert p2.get_service(Connection) is c2
        assert p1.get_service(Connection) is not c1

    def test_dispose_is_idempotent(self):
        provider = self.services.build()
        conn = provider.get_service(Connection)

        provider.dispose()
        provider.dispose()

        assert conn.disposed == 1

    def test_dispose_without_realized_instances_is_a_no_op(self):
        provider = self.services.build()

        provider.dispose()

    def test_dispose_skips_singletons(self):
        services = ServiceCollection()
        services.add_singleton(Connection)
        provider = services.build()
        conn = provider.get_service(Connection)

        provider.dispose()

        assert conn.disposed == 0
        assert services.build().get_service(Connection) is conn

    def test_instances_without_dispose_are_released(self):
        class Plain: ...

        services = ServiceCollection()
        services.add_scoped(Plain)
        provider = services.build()
        first = provider.get_service(Plain)

        provider.dispose()

        assert provider.get_service(Plain) is not first

    def test_context_manager_disposes_on_exit(self):
        with self.services.build() as provider:
            session = provider.get_service(Session)

        assert session.connection.disposed == 1

    def test_failing_hook_does_not_prevent_other_disposals(self):
        services = ServiceCollection()
        services.add_scoped(FailingConnection)
        services.add_scoped(Connection)
        provider = services.build()
        failing = provider.get_service(FailingConnection)
        conn = provider.get_service(Connection)

        with self.assertLogs("scopebind._provider", level="ERROR") as cm, pytest.raises(OSError):
            provider.dispose()

        assert any("(FailingConnection) failed" in line for line in cm.output)

        assert failing.disposed == 1
        assert conn.disposed == 1
        provider.dispose()
        assert failing.disposed == 1


def test_disposable_protocol_is_runtime_checkable():
    assert isinstance(Connection(), Disposable)
    assert not isinstance(object(), Disposable)
