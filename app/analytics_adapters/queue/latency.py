"""Slow-call detection for outbound queue calls.

`LatencyGuard` times a single call and, when it runs past the threshold,
logs one warning with the elapsed time and a connection pool snapshot. It
never changes the call's result or exception.

Usage:
    guard = LatencyGuard(diagnostics, log=logger)
    response = await guard.run("send_message", lambda: send(params))

    class Adapter:
        @guarded("send_message")
        async def _send(self, params): ...
"""

import functools
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from analytics_adapters.clients.aws.pool import SocketPoolDiagnostics

logger = structlog.get_logger()

T = TypeVar("T")

SLOW_CALL_THRESHOLD_MS = 2000


class LatencyGuard:
    """Times outbound calls and reports the slow ones.

    Args:
        diagnostics: Pool diagnostics whose snapshot is attached to warnings
        threshold_ms: Calls strictly longer than this are reported
        log: Logger to warn on
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        diagnostics: Optional[SocketPoolDiagnostics] = None,
        threshold_ms: float = SLOW_CALL_THRESHOLD_MS,
        log: Optional[Any] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.diagnostics = diagnostics or SocketPoolDiagnostics()
        self.threshold_ms = threshold_ms
        self._logger = log or logger
        self._clock = clock

    async def run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        allowance_ms: float = 0,
    ) -> T:
        """Await ``call()`` and warn if it ran past the threshold.

        ``allowance_ms`` raises the threshold for calls that are expected to
        wait, such as a long-poll receive.
        """
        threshold_ms = self.threshold_ms + allowance_ms
        with self.diagnostics.track():
            start = self._clock()
            try:
                result = await call()
            except Exception:
                self._report(operation, start, threshold_ms, failed=True)
                raise
            self._report(operation, start, threshold_ms, failed=False)
        return result

    def _report(
        self, operation: str, start: float, threshold_ms: float, failed: bool
    ) -> float:
        elapsed_ms = (self._clock() - start) * 1000
        if elapsed_ms > threshold_ms:
            self._logger.warning(
                "sqs_call_slow",
                operation=operation,
                duration_ms=round(elapsed_ms),
                threshold_ms=threshold_ms,
                failed=failed,
                socket_stats=self.diagnostics.safe_snapshot(),
            )
        return elapsed_ms


def guarded(operation: str):
    """Decorate an async method so it runs under ``self.latency_guard``."""

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs) -> T:
            return await self.latency_guard.run(
                operation, lambda: fn(self, *args, **kwargs)
            )

        return wrapper

    return decorator
