"""
Capability protocols consumed by the reconciler, collector and status poller.

The core never talks to a concrete transport. It is handed objects that
satisfy these protocols: MDSClient, MetaserverClient and MetricClient in
production, AsyncMock fakes in tests.

Every method either returns a typed value or raises an AdminError subclass
(TransportError / ControlPlaneError). Callers never inspect raw transport
exceptions.
"""

from typing import Protocol, runtime_checkable

from curvefs_admin.types import (
    ActualTopology,
    CopysetKey,
    MetaserverInfo,
    PoolSpec,
    ReplicaStatusRecord,
    ServerSpec,
    ZoneSpec,
)


@runtime_checkable
class TopologySource(Protocol):
    """Read access to the topology registered with the control plane."""

    async def fetch_topology(self) -> ActualTopology:
        """Return every pool, zone and server currently registered."""
        ...


@runtime_checkable
class TopologyMutator(Protocol):
    """
    Write access to the control plane topology.

    Create methods return the identifier assigned by the control plane, or
    None when the answer does not carry one.
    """

    async def create_pool(self, spec: PoolSpec) -> int | None: ...

    async def delete_pool(self, pool_id: int) -> None: ...

    async def create_zone(self, spec: ZoneSpec) -> int | None: ...

    async def delete_zone(self, zone_id: int) -> None: ...

    async def create_server(self, spec: ServerSpec) -> int | None: ...

    async def delete_server(self, server_id: int) -> None: ...


@runtime_checkable
class CopysetInfoSource(Protocol):
    """Control plane view of copyset membership."""

    async def get_copyset_peers(self, key: CopysetKey) -> list[str] | None:
        """Return peer addresses of a copyset, or None if it does not exist."""
        ...


@runtime_checkable
class PeerStatusSource(Protocol):
    """Per-peer copyset status, answered by the metaserver hosting the peer."""

    async def get_copyset_status(
        self, peer_address: str, key: CopysetKey
    ) -> ReplicaStatusRecord:
        ...


@runtime_checkable
class MetaserverSource(Protocol):
    """Metaserver inventory held by the control plane."""

    async def list_metaservers(self) -> list[MetaserverInfo]: ...

    async def get_metaserver(
        self, *, metaserver_id: int | None = None, address: str | None = None
    ) -> MetaserverInfo: ...


@runtime_checkable
class MetricSource(Protocol):
    """Plain-text metric endpoints exposed by every cluster process."""

    async def fetch_target_metric(self, address: str, path: str) -> str: ...
