"""Connection pool diagnostics for boto3 clients.

botocore keeps its sockets in urllib3 connection pools, one pool per host and
scheme. `SocketPoolDiagnostics` reads those pools, without touching them, to
explain why a call was slow: an exhausted pool shows every socket active and
calls waiting for a slot.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

NOT_CONFIGURED = {"message": "No HTTP agent configured"}
UNAVAILABLE = {"message": "socket stats unavailable"}

SCHEMES = ("http", "https")

PoolSource = Callable[[], Iterable[Any]]


def urllib3_pools(client: Any) -> List[Any]:
    """Return the urllib3 connection pools held by a botocore client.

    Walks ``client._endpoint.http_session._manager.pools``. Returns an empty
    list when any link is missing (e.g. a stubbed client).
    """
    endpoint = getattr(client, "_endpoint", None)
    http_session = getattr(endpoint, "http_session", None)
    manager = getattr(http_session, "_manager", None)
    pools = getattr(manager, "pools", None)
    container = getattr(pools, "_container", None)
    if container is None:
        return []
    return list(container.values())


def _idle_connections(pool: Any) -> int:
    queue = getattr(getattr(pool, "pool", None), "queue", None)
    if queue is None:
        return 0
    return sum(1 for conn in list(queue) if conn is not None)


def _active_connections(pool: Any) -> int:
    slots = getattr(pool, "pool", None)
    if slots is None:
        return 0
    return max(slots.maxsize - slots.qsize(), 0)


class SocketPoolDiagnostics:
    """Point-in-time view of a client's connection pools.

    Args:
        max_sockets: Configured pool size, None when the pool was not tuned
        keep_alive: Whether TCP keep-alive was requested
        pool_source: Callable returning the urllib3 pools to inspect
        endpoint_scheme: Scheme of the endpoint the client talks to; calls
            waiting for a slot are reported under it
    """

    def __init__(
        self,
        max_sockets: Optional[int] = None,
        keep_alive: bool = True,
        pool_source: Optional[PoolSource] = None,
        endpoint_scheme: str = "https",
    ) -> None:
        self.max_sockets = max_sockets
        self.keep_alive = keep_alive
        self._pool_source = pool_source or (lambda: [])
        self._endpoint_scheme = endpoint_scheme
        self._in_flight = 0

    @classmethod
    def for_client(
        cls, client: Any, max_sockets: Optional[int], endpoint_url: Optional[str] = None
    ) -> "SocketPoolDiagnostics":
        scheme = "http" if endpoint_url and endpoint_url.startswith("http:") else "https"
        return cls(
            max_sockets=max_sockets,
            keep_alive=bool(max_sockets),
            pool_source=lambda: urllib3_pools(client),
            endpoint_scheme=scheme,
        )

    @property
    def configured(self) -> bool:
        return self.max_sockets is not None

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count a call as in flight for the duration of the block."""
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def snapshot(self) -> Dict[str, Any]:
        """Return per-scheme socket counts, or the not-configured marker.

        Keys per scheme: max_sockets, keep_alive, total_socket_count,
        requests (calls waiting for a slot), sockets (active), free_sockets
        (idle and reusable).
        """
        if not self.configured:
            return dict(NOT_CONFIGURED)

        stats: Dict[str, Dict[str, Any]] = {
            scheme: {
                "max_sockets": self.max_sockets,
                "keep_alive": self.keep_alive,
                "total_socket_count": 0,
                "requests": 0,
                "sockets": 0,
                "free_sockets": 0,
            }
            for scheme in SCHEMES
        }

        for pool in self._pool_source():
            scheme = getattr(pool, "scheme", "https")
            if scheme not in stats:
                continue
            entry = stats[scheme]
            entry["total_socket_count"] += getattr(pool, "num_connections", 0) or 0
            entry["sockets"] += _active_connections(pool)
            entry["free_sockets"] += _idle_connections(pool)

        stats[self._endpoint_scheme]["requests"] = max(
            self._in_flight - (self.max_sockets or 0), 0
        )
        return stats

    def safe_snapshot(self) -> Dict[str, Any]:
        """`snapshot()` for log context; never raises.

        The pools are read from the event loop while worker threads check
        connections in and out, so a read can race a resize.
        """
        try:
            return self.snapshot()
        except Exception as exc:  # pylint: disable=broad-except
            return {**UNAVAILABLE, "error": repr(exc)}
