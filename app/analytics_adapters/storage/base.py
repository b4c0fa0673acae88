"""Storage adapter interface and shared helpers.

Storage adapters raise `StorageError` on provider failures, carrying the
ABORT/CONTINUE classification so callers decide whether to halt. Every
adapter keys items by session and timestamp.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Protocol,
    Sequence,
    runtime_checkable,
)

from analytics_adapters.operations.errors import ErrorClassification, StorageError

SESSION_FIELD = "sessionId"
TIMESTAMP_FIELD = "timestamp"


@dataclass(frozen=True)
class ItemKey:
    """Composite key of a stored event."""

    session_id: str
    timestamp: Any

    @classmethod
    def of(cls, item: Mapping[str, Any]) -> "ItemKey":
        return cls(session_id=item[SESSION_FIELD], timestamp=item[TIMESTAMP_FIELD])

    def as_filter(self) -> Dict[str, Any]:
        return {SESSION_FIELD: self.session_id, TIMESTAMP_FIELD: self.timestamp}


@runtime_checkable
class StorageAdapter(Protocol):
    """Capability interface shared by the storage adapters."""

    async def exists(self, name: str) -> bool:  # pragma: no cover - typing helper
        ...

    async def create(self, name: str) -> bool:  # pragma: no cover - typing helper
        ...

    async def table_names(self) -> List[str]:  # pragma: no cover - typing helper
        ...

    async def put(
        self, table: str, item: Mapping[str, Any]
    ) -> bool:  # pragma: no cover - typing helper
        ...

    async def put_batch(
        self, table: str, items: Sequence[Mapping[str, Any]]
    ) -> bool:  # pragma: no cover - typing helper
        ...

    async def get(
        self, table: str, key: ItemKey
    ) -> Dict[str, Any]:  # pragma: no cover - typing helper
        ...

    async def delete(
        self, table: str, key: ItemKey
    ) -> bool:  # pragma: no cover - typing helper
        ...

    async def query_by_session(
        self, table: str, session_id: str
    ) -> List[Dict[str, Any]]:  # pragma: no cover - typing helper
        ...

    def classify_error(
        self, error: Any
    ) -> ErrorClassification:  # pragma: no cover - typing helper
        ...


@contextmanager
def classified_errors(
    classify: Callable[[Any], ErrorClassification],
) -> Iterator[None]:
    """Re-raise provider exceptions as `StorageError`.

    Usage:
        with classified_errors(self.classify_error):
            await asyncio.to_thread(self.client.put_item, **params)
    """
    try:
        yield
    except StorageError:
        raise
    except Exception as exc:
        raise StorageError(classify(exc)) from exc
