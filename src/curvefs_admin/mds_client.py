"""
MDS client for CurveFS topology observation and mutation.

This module provides the MDSClient class for talking to the CurveFS metadata
server (MDS) topology service over brpc's HTTP+JSON gateway:

    POST http://<mds-addr>/curvefs.mds.topology.TopologyService/<Method>

MDSClient receives an injected httpx.AsyncClient and a list of MDS
addresses. Each call tries the addresses in order and returns the first
answer; only when every address fails is a TransportError raised. A
non-OK status code in an answer is a ControlPlaneError and is never retried
on another address.

MDSClient satisfies TopologySource, TopologyMutator, CopysetInfoSource and
MetaserverSource.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import TypeVar

import httpx
from pydantic import ValidationError

from curvefs_admin.api_types import (
    TOPO_COPYSET_NOT_FOUND,
    CreatePoolResponse,
    CreateZoneResponse,
    GetCopysetsInfoResponse,
    GetMetaServerInfoResponse,
    ListMetaServerResponse,
    ListPoolResponse,
    ListPoolZoneResponse,
    ListZoneServerResponse,
    MetaServerInfo,
    ServerRegistResponse,
    TopoResponse,
    is_status,
)
from curvefs_admin.exceptions import ConfigurationError, ControlPlaneError, TransportError
from curvefs_admin.types import (
    ActualPoolRecord,
    ActualServerRecord,
    ActualTopology,
    ActualZoneRecord,
    CopysetKey,
    MetaserverInfo,
    PoolSpec,
    ServerSpec,
    ZoneSpec,
)

logger = logging.getLogger(__name__)

TOPOLOGY_SERVICE = "curvefs.mds.topology.TopologyService"

R = TypeVar("R", bound=TopoResponse)


def split_host_port(address: str) -> tuple[str, int]:
    """
    Split "host:port" into its parts.

    Raises:
        ConfigurationError: If the address is not "host:port" with a numeric port.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConfigurationError([f"unrecognized address: {address}"])
    return host, int(port)


@dataclass
class MDSClient:
    """
    MDS topology service client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient (timeout set by the caller).
        addrs: MDS addresses in "host:port" form, tried in order.

    Example:
        async with httpx.AsyncClient(timeout=10.0) as http:
            mds = MDSClient(http=http, addrs=["10.0.0.1:6700", "10.0.0.2:6700"])
            topology = await mds.fetch_topology()
            for server in topology.servers:
                print(f"{server.host_name} in {server.zone_name}/{server.pool_name}")
    """

    http: httpx.AsyncClient
    addrs: list[str] = field(default_factory=list)

    async def _call(self, method: str, body: dict, model: type[R]) -> R:
        """
        POST one request to the first MDS address that answers.

        Raises:
            TransportError: If no address answered with a parseable response.
        """
        if not self.addrs:
            raise TransportError("mds", "no MDS address configured")

        errors: list[str] = []
        for addr in self.addrs:
            url = f"http://{addr}/{TOPOLOGY_SERVICE}/{method}"
            logger.debug("POST %s %s", url, body)
            try:
                response = await self.http.post(url, json=body)
                response.raise_for_status()
                return model.model_validate(response.json())
            except httpx.HTTPError as e:
                logger.warning("MDS %s failed %s: %s", addr, method, e)
                errors.append(f"{addr}: {e}")
                continue
            except (ValidationError, ValueError) as e:
                raise TransportError(addr, f"malformed {method} response: {e}") from e

        raise TransportError(",".join(self.addrs), "; ".join(errors))

    def _check(self, response: TopoResponse, operation: str, target: str = "") -> None:
        if not response.ok:
            raise ControlPlaneError(response.statusCode, operation, target)

    # -------------------------------------------------------------------------
    # Observations
    # -------------------------------------------------------------------------

    async def list_pools(self) -> list[ActualPoolRecord]:
        response = await self._call("ListPool", {}, ListPoolResponse)
        self._check(response, "ListPool")
        return [ActualPoolRecord(pool_id=p.poolID, name=p.poolName) for p in response.poolInfos]

    async def list_zones(self, pool: ActualPoolRecord) -> list[ActualZoneRecord]:
        response = await self._call(
            "ListPoolZone", {"poolID": pool.pool_id}, ListPoolZoneResponse
        )
        self._check(response, "ListPoolZone", f"pool {pool.name}")
        return [
            ActualZoneRecord(
                zone_id=z.zoneID,
                name=z.zoneName,
                pool_name=z.poolName or pool.name,
            )
            for z in response.zones
        ]

    async def list_servers(self, zone: ActualZoneRecord) -> list[ActualServerRecord]:
        response = await self._call(
            "ListZoneServer", {"zoneID": zone.zone_id}, ListZoneServerResponse
        )
        self._check(response, "ListZoneServer", f"zone {zone.name}")
        return [
            ActualServerRecord(
                server_id=s.serverID,
                host_name=s.hostName,
                zone_name=s.zoneName or zone.name,
                pool_name=s.poolName or zone.pool_name,
                internal_ip=s.internalIp,
                internal_port=s.internalPort,
                external_ip=s.externalIp,
                external_port=s.externalPort,
            )
            for s in response.serverInfo
        ]

    async def fetch_topology(self) -> ActualTopology:
        """
        Scan pools, then the zones of every pool, then the servers of every zone.

        Returns:
            ActualTopology snapshot.

        Raises:
            TransportError: If the MDS cannot be reached.
            ControlPlaneError: If any listing is refused.
        """
        pools = await self.list_pools()
        zones: list[ActualZoneRecord] = []
        for pool in pools:
            zones.extend(await self.list_zones(pool))
        servers: list[ActualServerRecord] = []
        for zone in zones:
            servers.extend(await self.list_servers(zone))

        logger.debug(
            "Fetched topology: %d pools, %d zones, %d servers",
            len(pools),
            len(zones),
            len(servers),
        )
        return ActualTopology(servers=tuple(servers), zones=tuple(zones), pools=tuple(pools))

    async def get_copyset_peers(self, key: CopysetKey) -> list[str] | None:
        """
        Get the peer addresses of a copyset.

        Returns:
            Peer addresses, or None if the MDS does not know the copyset.
        """
        response = await self._call(
            "GetCopysetsInfo",
            {"copysetKeys": [{"poolId": key.pool_id, "copysetId": key.copyset_id}]},
            GetCopysetsInfoResponse,
        )
        self._check(response, "GetCopysetsInfo", f"copyset {key}")
        if not response.copysetValues:
            return None

        value = response.copysetValues[0]
        if is_status(value.statusCode, TOPO_COPYSET_NOT_FOUND) or value.copysetInfo is None:
            return None
        if not is_status(value.statusCode, "TOPO_OK"):
            raise ControlPlaneError(value.statusCode, "GetCopysetsInfo", f"copyset {key}")
        return [peer.address for peer in value.copysetInfo.peers]

    async def list_metaservers(self) -> list[MetaserverInfo]:
        """List the metaservers of every registered server."""
        topology = await self.fetch_topology()
        metaservers: list[MetaserverInfo] = []
        for server in topology.servers:
            response = await self._call(
                "ListMetaServer", {"serverID": server.server_id}, ListMetaServerResponse
            )
            self._check(response, "ListMetaServer", f"server {server.host_name}")
            metaservers.extend(_metaserver_from_wire(m) for m in response.metaServerInfos)
        return metaservers

    async def get_metaserver(
        self, *, metaserver_id: int | None = None, address: str | None = None
    ) -> MetaserverInfo:
        """
        Look up one metaserver by id or by external "host:port".

        The id wins when both are given.
        """
        if metaserver_id is not None:
            body: dict = {"metaServerID": metaserver_id}
            target = f"metaserver {metaserver_id}"
        elif address is not None:
            host, port = split_host_port(address)
            body = {"hostIp": host, "port": port}
            target = f"metaserver {address}"
        else:
            raise ValueError("metaserver_id or address is required")

        response = await self._call("GetMetaServer", body, GetMetaServerInfoResponse)
        self._check(response, "GetMetaServer", target)
        if response.metaServerInfo is None:
            raise TransportError(target, "GetMetaServer response has no metaserver info")
        return _metaserver_from_wire(response.metaServerInfo)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_pool(self, spec: PoolSpec) -> int | None:
        policy = {
            "replicaNum": spec.replicas,
            "copysetNum": spec.copysets,
            "zoneNum": spec.zones,
        }
        response = await self._call(
            "CreatePool",
            {"poolName": spec.name, "redundanceAndPlaceMentPolicy": json.dumps(policy)},
            CreatePoolResponse,
        )
        self._check(response, "CreatePool", f"pool {spec.name}")
        return response.poolInfo.poolID if response.poolInfo else None

    async def delete_pool(self, pool_id: int) -> None:
        response = await self._call("DeletePool", {"poolID": pool_id}, TopoResponse)
        self._check(response, "DeletePool", f"pool {pool_id}")

    async def create_zone(self, spec: ZoneSpec) -> int | None:
        response = await self._call(
            "CreateZone",
            {"zoneName": spec.name, "poolName": spec.pool_name},
            CreateZoneResponse,
        )
        self._check(response, "CreateZone", f"zone {spec.name}")
        return response.zoneInfo.zoneID if response.zoneInfo else None

    async def delete_zone(self, zone_id: int) -> None:
        response = await self._call("DeleteZone", {"zoneID": zone_id}, TopoResponse)
        self._check(response, "DeleteZone", f"zone {zone_id}")

    async def create_server(self, spec: ServerSpec) -> int | None:
        response = await self._call(
            "RegistServer",
            {
                "hostName": spec.host_name,
                "internalIp": spec.internal_ip,
                "internalPort": spec.internal_port,
                "externalIp": spec.external_ip,
                "externalPort": spec.external_port,
                "zoneName": spec.zone_name,
                "poolName": spec.pool_name,
            },
            ServerRegistResponse,
        )
        self._check(response, "RegistServer", f"server {spec.host_name}")
        return response.serverID

    async def delete_server(self, server_id: int) -> None:
        response = await self._call("DeleteServer", {"serverID": server_id}, TopoResponse)
        self._check(response, "DeleteServer", f"server {server_id}")


def _metaserver_from_wire(info: MetaServerInfo) -> MetaserverInfo:
    return MetaserverInfo(
        metaserver_id=info.metaServerID,
        host_name=info.hostname,
        internal_addr=f"{info.internalIp}:{info.internalPort}",
        external_addr=f"{info.externalIp}:{info.externalPort}",
        online_state=str(info.onlineState),
    )
