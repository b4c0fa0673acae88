"""Unit tests for LatencyGuard."""

from unittest.mock import MagicMock

import pytest

from analytics_adapters.clients.aws.pool import SocketPoolDiagnostics
from analytics_adapters.queue.latency import LatencyGuard, guarded


def fake_clock(*readings):
    values = iter(readings)
    return lambda: next(values)


async def returns(value):
    return value


@pytest.mark.unit
class TestLatencyGuard:
    @pytest.mark.asyncio
    async def test_slow_call_warns_once_with_snapshot(self):
        log = MagicMock()
        diagnostics = SocketPoolDiagnostics(max_sockets=5)
        guard = LatencyGuard(diagnostics, log=log, clock=fake_clock(10.0, 12.5))

        result = await guard.run("send_message", lambda: returns("ok"))

        assert result == "ok"
        log.warning.assert_called_once()
        kwargs = log.warning.call_args.kwargs
        assert kwargs["duration_ms"] == 2500
        assert kwargs["operation"] == "send_message"
        assert kwargs["failed"] is False
        assert set(kwargs["socket_stats"]) == {"http", "https"}

    @pytest.mark.asyncio
    async def test_fast_call_is_silent(self):
        log = MagicMock()
        guard = LatencyGuard(log=log, clock=fake_clock(0.0, 2.0))

        await guard.run("send_message", lambda: returns(None))

        log.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured_pool_reports_marker(self):
        log = MagicMock()
        guard = LatencyGuard(log=log, clock=fake_clock(0.0, 3.0))

        await guard.run("send_message", lambda: returns(None))

        assert log.warning.call_args.kwargs["socket_stats"] == {
            "message": "No HTTP agent configured"
        }

    @pytest.mark.asyncio
    async def test_slow_failure_warns_then_reraises(self):
        log = MagicMock()
        guard = LatencyGuard(log=log, clock=fake_clock(0.0, 5.0))

        async def fail():
            raise ConnectionError("reset")

        with pytest.raises(ConnectionError):
            await guard.run("send_message", fail)

        log.warning.assert_called_once()
        assert log.warning.call_args.kwargs["failed"] is True

    @pytest.mark.asyncio
    async def test_failing_snapshot_keeps_call_result(self):
        def racing_pools():
            raise RuntimeError("OrderedDict mutated during iteration")

        log = MagicMock()
        diagnostics = SocketPoolDiagnostics(max_sockets=5, pool_source=racing_pools)
        guard = LatencyGuard(diagnostics, log=log, clock=fake_clock(0.0, 3.0))

        assert await guard.run("send_message", lambda: returns("ok")) == "ok"

        stats = log.warning.call_args.kwargs["socket_stats"]
        assert stats["message"] == "socket stats unavailable"
        assert "mutated" in stats["error"]

    @pytest.mark.asyncio
    async def test_failing_snapshot_keeps_provider_error(self):
        def racing_pools():
            raise RuntimeError("OrderedDict mutated during iteration")

        async def fail():
            raise ConnectionError("reset")

        diagnostics = SocketPoolDiagnostics(max_sockets=5, pool_source=racing_pools)
        guard = LatencyGuard(diagnostics, log=MagicMock(), clock=fake_clock(0.0, 3.0))

        with pytest.raises(ConnectionError):
            await guard.run("send_message", fail)

    @pytest.mark.asyncio
    async def test_allowance_raises_threshold(self):
        log = MagicMock()
        guard = LatencyGuard(log=log, clock=fake_clock(0.0, 20.5))

        await guard.run("receive_message", lambda: returns([]), allowance_ms=20000)

        log.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_tracks_in_flight_during_call(self):
        diagnostics = SocketPoolDiagnostics(max_sockets=1)
        guard = LatencyGuard(diagnostics, log=MagicMock())
        seen = []

        async def call():
            seen.append(diagnostics.in_flight)
            return None

        await guard.run("send_message", call)

        assert seen == [1]
        assert diagnostics.in_flight == 0


@pytest.mark.unit
class TestGuardedDecorator:
    @pytest.mark.asyncio
    async def test_wraps_method(self):
        log = MagicMock()

        class Adapter:
            latency_guard = LatencyGuard(log=log, clock=fake_clock(0.0, 4.0))

            @guarded("send_message")
            async def send(self, body):
                return {"MessageId": body}

        assert await Adapter().send("m-1") == {"MessageId": "m-1"}
        assert log.warning.call_args.kwargs["operation"] == "send_message"
