"""Session provider for AWS client construction.

Centralizes boto3 session creation and client configuration (region,
endpoint override, connection pool size, retry attempts) so adapters don't
duplicate it.
"""

from typing import Any, Dict, Optional

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.config import Config  # type: ignore

from analytics_adapters.logging.setup import get_module_logger

logger = get_module_logger()


class SessionProvider:
    """Builds configured boto3 clients.

    Args:
        region: AWS region for all clients (e.g., 'eu-north-1')
        endpoint_url: Custom endpoint URL (for LocalStack/ElasticMQ/DynamoDB Local)
        max_pool_connections: Maximum concurrent sockets per client; None keeps
            botocore's default pool
        max_attempts: botocore retry attempts; None keeps botocore's default
    """

    def __init__(
        self,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        max_pool_connections: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.region = region
        self.endpoint_url = endpoint_url
        self.max_pool_connections = max_pool_connections
        self.max_attempts = max_attempts

    def build_client_config(self) -> Optional[Config]:
        """Build the botocore Config for pool and retry tuning, if any."""
        options: Dict[str, Any] = {}
        if self.max_pool_connections:
            options["max_pool_connections"] = self.max_pool_connections
            options["tcp_keepalive"] = True
        if self.max_attempts:
            options["retries"] = {"max_attempts": self.max_attempts, "mode": "standard"}
        return Config(**options) if options else None

    def build_client_kwargs(self) -> Dict[str, Any]:
        """Build session and client configuration kwargs for boto3.

        Returns:
            Dict with session_config and client_config
        """
        session_config: Dict[str, Any] = {}
        client_config: Dict[str, Any] = {}

        if self.region:
            session_config["region_name"] = self.region
            client_config["region_name"] = self.region

        if self.endpoint_url:
            client_config["endpoint_url"] = self.endpoint_url

        config = self.build_client_config()
        if config is not None:
            client_config["config"] = config

        logger.debug(
            "built_client_kwargs",
            session_config=session_config,
            endpoint_url=self.endpoint_url,
            max_pool_connections=self.max_pool_connections,
        )
        return {"session_config": session_config, "client_config": client_config}

    def get_boto3_client(self, service_name: str) -> BaseClient:
        """Get a fully-configured boto3 client for the given service.

        Args:
            service_name: AWS service name (e.g., 'sqs', 'dynamodb')

        Returns:
            botocore client instance
        """
        kw = self.build_client_kwargs()
        session = boto3.Session(**kw["session_config"])
        return session.client(service_name, **kw["client_config"])
