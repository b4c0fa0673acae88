"""Unit tests for connection pool diagnostics."""

import queue
from types import SimpleNamespace

import pytest

from analytics_adapters.clients.aws.pool import (
    NOT_CONFIGURED,
    SocketPoolDiagnostics,
    urllib3_pools,
)


def make_pool(scheme="https", maxsize=4, idle=1, empty_slots=2, num_connections=3):
    """Build a stand-in for a urllib3 HTTPConnectionPool.

    urllib3 fills the pool queue with None placeholders and puts released
    connections back; a checked-out connection is absent from the queue.
    """
    slots = queue.LifoQueue(maxsize=maxsize)
    for _ in range(empty_slots):
        slots.put(None)
    for index in range(idle):
        slots.put(SimpleNamespace(name=f"conn-{index}"))
    return SimpleNamespace(scheme=scheme, pool=slots, num_connections=num_connections)


def make_client_with_pools(pools):
    container = {f"key-{index}": pool for index, pool in enumerate(pools)}
    manager = SimpleNamespace(pools=SimpleNamespace(_container=container))
    return SimpleNamespace(
        _endpoint=SimpleNamespace(http_session=SimpleNamespace(_manager=manager))
    )


@pytest.mark.unit
class TestUrllib3Pools:
    def test_reads_pools_from_client(self):
        pool = make_pool()
        assert urllib3_pools(make_client_with_pools([pool])) == [pool]

    def test_missing_links_yield_empty(self):
        assert urllib3_pools(object()) == []


@pytest.mark.unit
class TestSocketPoolDiagnostics:
    def test_not_configured(self):
        diagnostics = SocketPoolDiagnostics(max_sockets=None)
        assert diagnostics.snapshot() == NOT_CONFIGURED
        assert diagnostics.snapshot() == {"message": "No HTTP agent configured"}

    def test_configured_snapshot_per_scheme(self):
        pools = [make_pool("https", maxsize=4, idle=1, empty_slots=2, num_connections=2)]
        diagnostics = SocketPoolDiagnostics(
            max_sockets=4, keep_alive=True, pool_source=lambda: pools
        )

        snapshot = diagnostics.snapshot()

        assert set(snapshot) == {"http", "https"}
        assert snapshot["https"] == {
            "max_sockets": 4,
            "keep_alive": True,
            "total_socket_count": 2,
            "requests": 0,
            "sockets": 1,
            "free_sockets": 1,
        }
        assert snapshot["http"]["sockets"] == 0

    def test_requests_counts_calls_beyond_limit(self):
        diagnostics = SocketPoolDiagnostics(max_sockets=1, endpoint_scheme="http")
        with diagnostics.track(), diagnostics.track(), diagnostics.track():
            snapshot = diagnostics.snapshot()
        assert snapshot["http"]["requests"] == 2
        assert snapshot["https"]["requests"] == 0
        assert diagnostics.in_flight == 0

    def test_track_releases_on_error(self):
        diagnostics = SocketPoolDiagnostics(max_sockets=1)
        with pytest.raises(RuntimeError):
            with diagnostics.track():
                raise RuntimeError("boom")
        assert diagnostics.in_flight == 0

    def test_for_client_uses_endpoint_scheme(self):
        pool = make_pool("http", maxsize=2, idle=0, empty_slots=0, num_connections=2)
        client = make_client_with_pools([pool])

        diagnostics = SocketPoolDiagnostics.for_client(
            client, max_sockets=2, endpoint_url="http://localhost:4566"
        )

        snapshot = diagnostics.snapshot()
        assert snapshot["http"]["sockets"] == 2
        assert snapshot["http"]["free_sockets"] == 0
        assert snapshot["http"]["keep_alive"] is True

    def test_snapshot_is_read_only(self):
        pool = make_pool()
        diagnostics = SocketPoolDiagnostics(max_sockets=4, pool_source=lambda: [pool])
        before = pool.pool.qsize()
        diagnostics.snapshot()
        assert pool.pool.qsize() == before

    def test_safe_snapshot_reports_unavailable_on_error(self):
        def racing_pools():
            raise RuntimeError("OrderedDict mutated during iteration")

        diagnostics = SocketPoolDiagnostics(max_sockets=4, pool_source=racing_pools)

        with pytest.raises(RuntimeError):
            diagnostics.snapshot()
        snapshot = diagnostics.safe_snapshot()
        assert snapshot["message"] == "socket stats unavailable"
        assert "RuntimeError" in snapshot["error"]

    def test_safe_snapshot_passes_through(self):
        diagnostics = SocketPoolDiagnostics()
        assert diagnostics.safe_snapshot() == {"message": "No HTTP agent configured"}
