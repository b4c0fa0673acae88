"""AWS client construction and connection pool diagnostics."""

from analytics_adapters.clients.aws.pool import SocketPoolDiagnostics, urllib3_pools
from analytics_adapters.clients.aws.session_provider import SessionProvider

__all__ = ["SessionProvider", "SocketPoolDiagnostics", "urllib3_pools"]
