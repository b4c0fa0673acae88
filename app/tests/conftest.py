"""Shared fixtures for adapter unit tests.

Provides the factory-as-fixture pattern for configurable fake boto3 clients,
a botocore ClientError builder and a recording logger.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from analytics_adapters.configuration.queue import SqsSettings

QUEUE_URL = "https://sqs.eu-north-1.amazonaws.com/123456789012/analytics-events"


class FakePaginator:
    """Fake boto3 paginator that yields provided pages."""

    def __init__(self, pages, calls, name):
        self._pages = list(pages)
        self._calls = calls
        self._name = name

    def paginate(self, **kwargs):
        """Yield pages in sequence, recording the paginate call."""
        self._calls.append((f"paginate:{self._name}", kwargs))
        for page in self._pages:
            if isinstance(page, Exception):
                raise page
            yield page


class FakeClient:
    """Configurable fake boto3 client for unit tests.

    Supports:
    - Paginated responses per operation via `get_paginator()`
    - API method responses via `__getattr__` lookup
    - Static, callable and exception response configurations
    - Call recording in `calls` as ``(method, kwargs)`` tuples
    """

    def __init__(
        self,
        paginated_pages: Optional[Dict[str, List[Any]]] = None,
        api_responses: Optional[Dict[str, Any]] = None,
    ):
        self._paginated_pages = paginated_pages or {}
        self._api_responses = api_responses or {}
        self.calls: List[tuple] = []

    def get_paginator(self, name: str):
        if name not in self._paginated_pages:
            raise AttributeError(f"No paginator configured for {name}")
        return FakePaginator(self._paginated_pages[name], self.calls, name)

    def calls_to(self, name: str) -> List[Dict[str, Any]]:
        return [kwargs for method, kwargs in self.calls if method == name]

    def __getattr__(self, name: str):
        if name.startswith("_") or name not in self._api_responses:
            raise AttributeError(name)
        resp = self._api_responses[name]

        def _call(*_args, **kwargs):
            self.calls.append((name, kwargs))
            if isinstance(resp, Exception):
                raise resp
            if callable(resp):
                return resp(**kwargs)
            return resp

        return _call


@pytest.fixture
def make_fake_client():
    """Factory fixture for creating configurable fake boto3 clients.

    Usage:
        def test_something(make_fake_client):
            client = make_fake_client(
                paginated_pages={"list_queues": [{"QueueUrls": [url]}]},
                api_responses={"send_message": {"MessageId": "m-1"}},
            )
    """

    def _factory(
        paginated_pages: Optional[Dict[str, List[Any]]] = None,
        api_responses: Optional[Dict[str, Any]] = None,
    ) -> FakeClient:
        return FakeClient(paginated_pages=paginated_pages, api_responses=api_responses)

    return _factory


@pytest.fixture
def make_client_error():
    """Factory fixture building botocore ClientErrors."""

    def _factory(
        code: str, message: str = "boom", operation: str = "Operation"
    ) -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _factory


@pytest.fixture
def log():
    """MagicMock logger whose ``bind`` returns the same mock."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture
def sqs_settings():
    return SqsSettings(
        AWS_REGION="eu-north-1",
        SQS_QUEUE_URL=QUEUE_URL,
        SQS_MAX_SOCKETS=50,
    )
