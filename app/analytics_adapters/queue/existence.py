"""Per-adapter memo of whether the target queue exists."""

from typing import Any, Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()


class QueueExistenceCache:
    """Verify-or-create the queue once per adapter instance.

    The flag starts True when the existence check is skipped. Otherwise the
    first `ensure` call checks, creates the queue when the check misses, and
    sets the flag. Concurrent first calls may both run the check and both
    create; queue creation is idempotent on the provider side so no lock is
    taken. A failed check or create leaves the flag False and propagates.
    """

    def __init__(self, skip_check: bool = False, log: Optional[Any] = None) -> None:
        self.exists = skip_check
        self._logger = log or logger

    async def ensure(
        self,
        check: Callable[[], Awaitable[bool]],
        create: Callable[[], Awaitable[Any]],
    ) -> None:
        if self.exists:
            return
        self._logger.info("checking_queue_exists")
        if not await check():
            self._logger.warning("queue_missing_creating")
            await create()
        self.exists = True
