"""Unit tests for SessionProvider."""

from unittest.mock import MagicMock, patch

import pytest

from analytics_adapters.clients.aws.session_provider import SessionProvider


@pytest.mark.unit
class TestSessionProvider:
    def test_no_tuning_keeps_botocore_defaults(self):
        provider = SessionProvider(region="eu-north-1")
        kwargs = provider.build_client_kwargs()
        assert kwargs["session_config"] == {"region_name": "eu-north-1"}
        assert "config" not in kwargs["client_config"]

    def test_pool_size_enables_keepalive(self):
        config = SessionProvider(max_pool_connections=50).build_client_config()
        assert config.max_pool_connections == 50
        assert config.tcp_keepalive is True

    def test_retry_attempts(self):
        config = SessionProvider(max_attempts=5).build_client_config()
        assert config.retries == {"max_attempts": 5, "mode": "standard"}

    def test_endpoint_override(self):
        kwargs = SessionProvider(endpoint_url="http://localhost:4566").build_client_kwargs()
        assert kwargs["client_config"]["endpoint_url"] == "http://localhost:4566"

    @patch("analytics_adapters.clients.aws.session_provider.boto3.Session")
    def test_get_boto3_client(self, mock_session_cls):
        session = MagicMock()
        mock_session_cls.return_value = session

        provider = SessionProvider(region="eu-north-1", max_pool_connections=10)
        client = provider.get_boto3_client("sqs")

        mock_session_cls.assert_called_once_with(region_name="eu-north-1")
        args, kwargs = session.client.call_args
        assert args == ("sqs",)
        assert kwargs["region_name"] == "eu-north-1"
        assert kwargs["config"].max_pool_connections == 10
        assert client is session.client.return_value
