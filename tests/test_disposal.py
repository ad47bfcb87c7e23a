import unittest
from unittest.mock import MagicMock

import pytest

from servicebox import Disposable, ServiceContainer


class Connection:
    def __init__(self):
        self.closed = False

    def dispose(self) -> None:
        self.closed = True


class TestCollectSingleton(unittest.TestCase):
    cont: ServiceContainer

    def setUp(self):
        self.cont = ServiceContainer()
        self.cont.add_singleton(Connection)

    def test_collect_calls_dispose_on_cached_instance(self):
        conn = self.cont.get_service(Connection)
        self.cont.collect_singleton(Connection)
        assert conn.closed

    def test_collect_before_resolution_is_noop(self):
        self.cont.collect_singleton(Connection)
        conn = self.cont.get_service(Connection)
        assert not conn.closed

    def test_collect_unregistered_is_noop(self):
        class Unknown: ...

        self.cont.collect_singleton(Unknown)
        self.cont.collect_singleton("unknown-token")

    def test_get_service_after_collect_builds_fresh_instance(self):
        first = self.cont.get_service(Connection)
        self.cont.collect_singleton(Connection)
        second = self.cont.get_service(Connection)

        assert second is not first
        assert not second.closed
        assert self.cont.get_service(Connection) is second

    def test_dispose_runs_once_per_cached_instance(self):
        conn = self.cont.get_service(Connection)
        conn.dispose = MagicMock()

        self.cont.collect_singleton(Connection)
        self.cont.collect_singleton(Connection)

        assert conn.dispose.call_count == 1

    def test_each_cached_instance_is_disposed(self):
        first = self.cont.get_service(Connection)
        self.cont.collect_singleton(Connection)
        second = self.cont.get_service(Connection)
        self.cont.collect_singleton(Connection)

        assert first.closed
        assert second.closed


def test_collect_scoped_does_not_dispose_handed_out_instances():
    c = ServiceContainer()
    c.add_scoped(Connection)
    conn = c.get_service(Connection)

    c.collect_singleton(Connection)

    assert not conn.closed


def test_collect_instance_without_dispose_clears_cache():
    c = ServiceContainer()

    class Plain: ...

    c.add_singleton(Plain)
    first = c.get_service(Plain)
    c.collect_singleton(Plain)

    assert c.get_service(Plain) is not first


def test_non_callable_dispose_attribute_is_ignored():
    c = ServiceContainer()

    class Odd:
        dispose = "not callable"

    c.add_singleton(Odd)
    first = c.get_service(Odd)
    c.collect_singleton(Odd)

    assert c.get_service(Odd) is not first


def test_failing_dispose_propagates_and_clears_cache():
    c = ServiceContainer()
    calls = []

    class Broken:
        def dispose(self) -> None:
            calls.append(self)
            msg = "close failed"
            raise OSError(msg)

    c.add_singleton(Broken)
    first = c.get_service(Broken)

    with pytest.raises(OSError):
        c.collect_singleton(Broken)
    c.collect_singleton(Broken)

    assert calls == [first]
    assert c.get_service(Broken) is not first


def test_disposable_protocol_is_runtime_checkable():
    class Plain: ...

    assert isinstance(Connection(), Disposable)
    assert not isinstance(Plain(), Disposable)


class ConnectionProxy:
    def __init__(self, target):
        self._target = target

    def __getattr__(self, name):
        return getattr(self._target, name)


def test_proxy_delegating_dispose_is_disposed():
    c = ServiceContainer()
    inner = Connection()
    c.add_singleton(Connection, factory=lambda: ConnectionProxy(inner))

    c.get_service(Connection)
    c.collect_singleton(Connection)

    assert inner.closed


def test_mock_dispose_is_called_once():
    c = ServiceContainer()
    mock = MagicMock()
    c.add_singleton(Connection, factory=lambda: mock)

    c.get_service(Connection)
    c.collect_singleton(Connection)
    c.collect_singleton(Connection)

    mock.dispose.assert_called_once_with()
