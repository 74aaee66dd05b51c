"""
Factory for creating the CurveFS admin clients.

Builds the httpx clients and the MDS / metaserver / metric clients from
Settings, so CLI commands never wire transports by hand.
"""

from contextlib import AsyncExitStack
from dataclasses import dataclass

import httpx

from curvefs_admin.config import Settings
from curvefs_admin.mds_client import MDSClient
from curvefs_admin.metaserver_client import MetaserverClient
from curvefs_admin.metric_client import MetricClient


@dataclass
class AdminClients:
    """
    Clients for one command invocation.

    Closes the httpx clients it was built with when used as an async
    context manager.
    """

    mds: MDSClient
    metaservers: MetaserverClient
    metrics: MetricClient

    async def aclose(self) -> None:
        """Close every distinct httpx client, even if an earlier close fails."""
        async with AsyncExitStack() as stack:
            clients: list[httpx.AsyncClient] = []
            for http in (self.mds.http, self.metaservers.http, self.metrics.http):
                if not any(http is c for c in clients):
                    clients.append(http)
                    stack.push_async_callback(http.aclose)

    async def __aenter__(self) -> "AdminClients":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_clients(
    settings: Settings,
    rpc_http: httpx.AsyncClient | None = None,
    metric_http: httpx.AsyncClient | None = None,
) -> AdminClients:
    """
    Create the admin clients.

    Args:
        settings: Addresses and timeouts
        rpc_http: Optional pre-configured httpx client for MDS and metaserver
            RPCs. If None, a new client is created with settings.rpc_timeout.
        metric_http: Optional pre-configured httpx client for /vars metrics.
            If None, a new client is created with settings.http_timeout.

    Example:
        async with create_clients(Settings()) as clients:
            topology = await clients.mds.fetch_topology()
    """
    if rpc_http is None:
        rpc_http = httpx.AsyncClient(timeout=settings.rpc_timeout)
    if metric_http is None:
        metric_http = httpx.AsyncClient(timeout=settings.http_timeout)

    return AdminClients(
        mds=MDSClient(http=rpc_http, addrs=settings.mds_addrs),
        metaservers=MetaserverClient(http=rpc_http),
        metrics=MetricClient(http=metric_http),
    )
