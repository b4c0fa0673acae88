"""DynamoDB storage adapter.

Tables are keyed by ``sessionId`` (hash) and ``timestamp`` (range), both
strings. Key fields are stored as plain strings; every other field is stored
as a JSON-encoded string attribute and decoded on read.
"""

import asyncio
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from analytics_adapters.clients.aws.session_provider import SessionProvider
from analytics_adapters.configuration.storage import DynamoDBSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import (
    DEFAULT_CONTINUE_CODES,
    classify_error,
)
from analytics_adapters.operations.errors import ErrorClassification
from analytics_adapters.storage.base import (
    SESSION_FIELD,
    TIMESTAMP_FIELD,
    ItemKey,
    classified_errors,
)

logger = get_module_logger()

SERVICE = "dynamodb"
KEY_FIELDS = (SESSION_FIELD, TIMESTAMP_FIELD)
BATCH_WRITE_LIMIT = 25
READ_CAPACITY_UNITS = 3
WRITE_CAPACITY_UNITS = 3


def encode_item(item: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
    """Encode an event into DynamoDB string attributes."""
    encoded: Dict[str, Dict[str, str]] = {}
    for name, value in item.items():
        if name in KEY_FIELDS:
            encoded[name] = {"S": str(value)}
        else:
            encoded[name] = {"S": json.dumps(value, default=str)}
    return encoded


def decode_item(item: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """Reverse `encode_item`. Non-JSON strings are returned verbatim."""
    decoded: Dict[str, Any] = {}
    for name, attribute in item.items():
        value = attribute.get("S")
        if name in KEY_FIELDS or value is None:
            decoded[name] = value
            continue
        try:
            decoded[name] = json.loads(value)
        except ValueError:
            decoded[name] = value
    return decoded


def encode_key(key: ItemKey) -> Dict[str, Dict[str, str]]:
    return {
        SESSION_FIELD: {"S": str(key.session_id)},
        TIMESTAMP_FIELD: {"S": str(key.timestamp)},
    }


class DynamoDBStorageAdapter:
    """Storage adapter backed by DynamoDB tables.

    Args:
        settings: DynamoDB settings
        client: Pre-built boto3 DynamoDB client; built from settings when omitted
        log: Logger to use
    """

    continue_codes = DEFAULT_CONTINUE_CODES

    def __init__(
        self,
        settings: Optional[DynamoDBSettings] = None,
        *,
        client: Optional[Any] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings or DynamoDBSettings()
        if client is None:
            provider = SessionProvider(
                region=self.settings.aws_region,
                endpoint_url=self.settings.endpoint_url,
                max_attempts=self.settings.max_attempts,
            )
            client = provider.get_boto3_client("dynamodb")
        self.client = client
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
            return await asyncio.to_thread(self._list_table_names)

    def _list_table_names(self) -> List[str]:
        paginator = self.client.get_paginator("list_tables")
        names: List[str] = []
        for page in paginator.paginate():
            names.extend(page.get("TableNames", []))
        return names

    async def exists(self, name: str) -> bool:
        return name in await self.table_names()

    async def create(self, name: str) -> bool:
        """Create a table keyed by session and timestamp.

        An already existing table raises `StorageError` classified CONTINUE.
        """
        params = {
            "TableName": name,
            "AttributeDefinitions": [
                {"AttributeName": SESSION_FIELD, "AttributeType": "S"},
                {"AttributeName": TIMESTAMP_FIELD, "AttributeType": "S"},
            ],
            "KeySchema": [
                {"AttributeName": SESSION_FIELD, "KeyType": "HASH"},
                {"AttributeName": TIMESTAMP_FIELD, "KeyType": "RANGE"},
            ],
            "ProvisionedThroughput": {
                "ReadCapacityUnits": READ_CAPACITY_UNITS,
                "WriteCapacityUnits": WRITE_CAPACITY_UNITS,
            },
            "StreamSpecification": {"StreamEnabled": False},
        }
        with classified_errors(self.classify_error):
            await asyncio.to_thread(self.client.create_table, **params)
        self._logger.info("dynamodb_table_created", table=name)
        return True

    async def put(self, table: str, item: Mapping[str, Any]) -> bool:
        with classified_errors(self.classify_error):
            await asyncio.to_thread(
                self.client.put_item, TableName=table, Item=encode_item(item)
            )
        self._logger.debug("dynamodb_item_put", table=table, event=item.get("event"))
        return True

    async def put_batch(self, table: str, items: Sequence[Mapping[str, Any]]) -> bool:
        """Write items in chunks of 25.

        Returns False when DynamoDB left items unprocessed; those items are
        logged and not retried.
        """
        all_processed = True
        for start in range(0, len(items), BATCH_WRITE_LIMIT):
            chunk = items[start : start + BATCH_WRITE_LIMIT]
            request = {
                table: [{"PutRequest": {"Item": encode_item(item)}} for item in chunk]
            }
            with classified_errors(self.classify_error):
                response = await asyncio.to_thread(
                    self.client.batch_write_item, RequestItems=request
                )
            unprocessed = (response.get("UnprocessedItems") or {}).get(table) or []
            if unprocessed:
                all_processed = False
                self._logger.warning(
                    "dynamodb_items_unprocessed", table=table, count=len(unprocessed)
                )
        self._logger.debug("dynamodb_batch_put", table=table, count=len(items))
        return all_processed

    async def get(self, table: str, key: ItemKey) -> Dict[str, Any]:
        with classified_errors(self.classify_error):
            response = await asyncio.to_thread(
                self.client.get_item, TableName=table, Key=encode_key(key)
            )
        item = response.get("Item")
        return decode_item(item) if item else {}

    async def delete(self, table: str, key: ItemKey) -> bool:
        with classified_errors(self.classify_error):
            await asyncio.to_thread(
                self.client.delete_item, TableName=table, Key=encode_key(key)
            )
        self._logger.debug("dynamodb_item_deleted", table=table, session_id=key.session_id)
        return True

    async def query_by_session(self, table: str, session_id: str) -> List[Dict[str, Any]]:
        with classified_errors(self.classify_error):
            return await asyncio.to_thread(self._query_session, table, session_id)

    def _query_session(self, table: str, session_id: str) -> List[Dict[str, Any]]:
        paginator = self.client.get_paginator("query")
        items: List[Dict[str, Any]] = []
        for page in paginator.paginate(
            TableName=table,
            KeyConditionExpression=f"{SESSION_FIELD} = :sid",
            ExpressionAttributeValues={":sid": {"S": session_id}},
        ):
            items.extend(decode_item(item) for item in page.get("Items", []))
        return items
