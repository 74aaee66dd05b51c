"""
Protocol compliance tests for the CurveFS clients.

Verifies that the concrete clients implement the capability protocols the
reconciler, collector and status poller depend on, and that the factory
wires them from settings and closes every client it built.
"""

import httpx
import pytest

from curvefs_admin.config import Settings
from curvefs_admin.factory import create_clients
from curvefs_admin.mds_client import MDSClient
from curvefs_admin.metaserver_client import MetaserverClient
from curvefs_admin.metric_client import MetricClient
from curvefs_admin.protocols import (
    CopysetInfoSource,
    MetaserverSource,
    MetricSource,
    PeerStatusSource,
    TopologyMutator,
    TopologySource,
)


class TestMDSClientProtocolCompliance:
    """Tests that MDSClient implements every control plane protocol."""

    @pytest.fixture
    def mds(self):
        return MDSClient(http=httpx.AsyncClient(), addrs=["127.0.0.1:6700"])

    def test_is_topology_source(self, mds):
        assert isinstance(mds, TopologySource)

    def test_is_topology_mutator(self, mds):
        assert isinstance(mds, TopologyMutator)

    def test_is_copyset_info_source(self, mds):
        assert isinstance(mds, CopysetInfoSource)

    def test_is_metaserver_source(self, mds):
        assert isinstance(mds, MetaserverSource)


def test_metaserver_client_is_peer_status_source():
    assert isinstance(MetaserverClient(http=httpx.AsyncClient()), PeerStatusSource)


def test_metric_client_is_metric_source():
    assert isinstance(MetricClient(http=httpx.AsyncClient()), MetricSource)


@pytest.mark.asyncio
async def test_factory_wires_settings():
    settings = Settings(mds_addr="10.0.0.1:6700, 10.0.0.2:6700", rpc_timeout=3.0, http_timeout=0.2)

    async with create_clients(settings) as clients:
        assert clients.mds.addrs == ["10.0.0.1:6700", "10.0.0.2:6700"]
        assert clients.metaservers.http is clients.mds.http
        assert clients.mds.http.timeout.read == 3.0
        assert clients.metrics.http.timeout.read == 0.2

    assert clients.mds.http.is_closed
    assert clients.metrics.http.is_closed


class _FailingCloseClient(httpx.AsyncClient):
    async def aclose(self) -> None:
        raise RuntimeError("close failed")


@pytest.mark.parametrize("failing", ["rpc", "metric"])
@pytest.mark.asyncio
async def test_factory_closes_every_client_when_one_close_fails(failing):
    rpc_http = _FailingCloseClient() if failing == "rpc" else httpx.AsyncClient()
    metric_http = _FailingCloseClient() if failing == "metric" else httpx.AsyncClient()
    clients = create_clients(
        Settings(mds_addr="127.0.0.1:6700"), rpc_http=rpc_http, metric_http=metric_http
    )

    with pytest.raises(RuntimeError, match="close failed"):
        await clients.aclose()

    healthy = metric_http if failing == "rpc" else rpc_http
    assert healthy.is_closed


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CURVEFS_MDS_ADDR", "10.0.0.9:6700")
    monkeypatch.setenv("CURVEFS_MAX_LOG_GAP", "5")

    settings = Settings()

    assert settings.mds_addrs == ["10.0.0.9:6700"]
    assert settings.max_log_gap == 5
