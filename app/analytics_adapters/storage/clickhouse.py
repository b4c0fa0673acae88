"""ClickHouse storage adapter.

Events land in a MergeTree table partitioned by month and ordered by
``(sessionId, timestamp)``. Common payload fields are flattened into columns
for querying; the full payload is kept as a JSON string.

clickhouse-connect is blocking, so calls run in a worker thread. Table names
are interpolated into SQL and must be plain identifiers; values are always
bound as query parameters.
"""

import asyncio
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

import clickhouse_connect

from analytics_adapters.configuration.storage import ClickHouseSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import classify_error
from analytics_adapters.operations.errors import ErrorClassification
from analytics_adapters.storage.base import ItemKey, classified_errors

logger = get_module_logger()

SERVICE = "clickhouse"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COLUMNS = (
    "event",
    "sessionId",
    "timestamp",
    "playhead",
    "duration",
    "live",
    "contentId",
    "userId",
    "deviceId",
    "deviceModel",
    "deviceType",
    "payload",
)

# payload field -> default when absent
FLATTENED_FIELDS = {
    "live": False,
    "contentId": "",
    "userId": "",
    "deviceId": "",
    "deviceModel": "",
    "deviceType": "",
}

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    event String,
    sessionId String,
    timestamp DateTime64(3),
    playhead Float64,
    duration Float64,
    live Boolean,
    contentId String,
    userId String,
    deviceId String,
    deviceModel String,
    deviceType String,
    payload String,
    event_date Date DEFAULT toDate(timestamp),
    event_hour DateTime DEFAULT toStartOfHour(timestamp)
)
ENGINE = MergeTree()
PARTITION BY toYYYYMM(timestamp)
ORDER BY (sessionId, timestamp)
"""

TABLE_EXISTS = (
    "SELECT 1 FROM system.tables "
    "WHERE database = currentDatabase() AND name = {name:String}"
)

KEY_CONDITION = "sessionId = {session_id:String} AND timestamp = {timestamp:DateTime64(3)}"


def validate_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid ClickHouse table name: {name!r}")
    return name


def to_datetime(value: Any) -> datetime:
    """Convert an epoch-milliseconds number or ISO string to a UTC datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def flatten_event(item: Mapping[str, Any], log: Optional[Any] = None) -> List[Any]:
    """Build one row, in `COLUMNS` order, from an event."""
    raw_payload = item.get("payload")
    if isinstance(raw_payload, (dict, list)):
        payload = json.dumps(raw_payload, default=str)
    else:
        payload = raw_payload or ""

    fields: Dict[str, Any] = {}
    if payload:
        try:
            decoded = json.loads(payload)
        except ValueError:
            (log or logger).warning("clickhouse_payload_not_json")
        else:
            if isinstance(decoded, dict):
                fields = decoded

    row = {
        "event": str(item.get("event") or ""),
        "sessionId": str(item.get("sessionId") or ""),
        "timestamp": to_datetime(item.get("timestamp")),
        "playhead": float(item.get("playhead") or -1),
        "duration": float(item.get("duration") or -1),
        "payload": payload,
    }
    for name, default in FLATTENED_FIELDS.items():
        row[name] = fields.get(name) or default
    return [row[column] for column in COLUMNS]


def _decode_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    decoded = dict(row)
    payload = decoded.get("payload")
    if not payload:
        return decoded
    try:
        decoded["payload"] = json.loads(payload)
    except ValueError:
        decoded["payload"] = payload
    return decoded


class ClickHouseStorageAdapter:
    """Storage adapter backed by ClickHouse MergeTree tables.

    ClickHouse errors are never acceptable no-ops: every failure classifies
    as ABORT.

    Args:
        settings: ClickHouse settings
        client: Pre-built clickhouse-connect client; built from settings when
            omitted
        log: Logger to use
    """

    continue_codes: frozenset = frozenset()

    def __init__(
        self,
        settings: Optional[ClickHouseSettings] = None,
        *,
        client: Optional[Any] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings or ClickHouseSettings()
        self.client = (
            client
            if client is not None
            else clickhouse_connect.get_client(dsn=self.settings.url)
        )
        self._logger = (log or logger).bind(service=SERVICE)

    def classify_error(self, error: Any) -> ErrorClassification:
        return classify_error(
            error,
            service=SERVICE,
            continue_codes=self.continue_codes,
            log=self._logger,
        )

    async def table_names(self) -> List[str]:
        with classified_errors(self.classify_error):
            result = await asyncio.to_thread(
                self.client.query,
                "SELECT name FROM system.tables WHERE database = currentDatabase()",
            )
        return [row[0] for row in result.result_rows]

    async def exists(self, name: str) -> bool:
        """Check for the table. Never creates it."""
        with classified_errors(self.classify_error):
            result = await asyncio.to_thread(
                self.client.query, TABLE_EXISTS, parameters={"name": name}
            )
        return len(result.result_rows) > 0

    async def create(self, name: str) -> bool:
        table = validate_identifier(name)
        with classified_errors(self.classify_error):
            await asyncio.to_thread(self.client.command, CREATE_TABLE.format(table=table))
        self._logger.info("clickhouse_table_created", table=table)
        return True

    async def put(self, table: str, item: Mapping[str, Any]) -> bool:
        return await self.put_batch(table, [item])

    async def put_batch(self, table: str, items: Sequence[Mapping[str, Any]]) -> bool:
        validate_identifier(table)
        if not items:
            return True
        rows = [flatten_event(item, self._logger) for item in items]
        with classified_errors(self.classify_error):
            await asyncio.to_thread(
                self.client.insert, table, rows, column_names=list(COLUMNS)
            )
        self._logger.debug("clickhouse_rows_inserted", table=table, count=len(rows))
        return True

    async def get(self, table: str, key: ItemKey) -> Dict[str, Any]:
        validate_identifier(table)
        query = f"SELECT {', '.join(COLUMNS)} FROM {table} WHERE {KEY_CONDITION} LIMIT 1"
        rows = await self._select(query, self._key_parameters(key))
        return rows[0] if rows else {}

    async def delete(self, table: str, key: ItemKey) -> bool:
        validate_identifier(table)
        with classified_errors(self.classify_error):
            await asyncio.to_thread(
                self.client.command,
                f"ALTER TABLE {table} DELETE WHERE {KEY_CONDITION}",
                parameters=self._key_parameters(key),
            )
        return True

    async def query_by_session(self, table: str, session_id: str) -> List[Dict[str, Any]]:
        validate_identifier(table)
        query = (
            f"SELECT {', '.join(COLUMNS)} FROM {table} "
            "WHERE sessionId = {session_id:String} ORDER BY timestamp"
        )
        return await self._select(query, {"session_id": session_id})

    async def _select(self, query: str, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with classified_errors(self.classify_error):
            result = await asyncio.to_thread(
                self.client.query, query, parameters=parameters
            )
        return [_decode_row(row) for row in result.named_results()]

    @staticmethod
    def _key_parameters(key: ItemKey) -> Dict[str, Any]:
        return {"session_id": key.session_id, "timestamp": to_datetime(key.timestamp)}
