"""
CurveFS-specific Pydantic response types.

This module provides Pydantic models for parsing JSON responses from:
- MDS topology service (pools, zones, servers, metaservers, copysets)
- Metaserver copyset service (per-peer raft status)

These are API response types for external data validation. Internal
types (ServerSpec, CopysetKey, etc.) are dataclasses in curvefs_admin.types.

Notes:
- brpc serves protobuf services as HTTP+JSON; field names are the proto
  field names (camelCase) and enums usually arrive by name
- Some deployments serialize enums as numbers, so status fields accept both
- Optional proto fields are simply missing from the JSON when unset
"""

from pydantic import BaseModel, ConfigDict, Field

TOPO_OK = "TOPO_OK"
TOPO_COPYSET_NOT_FOUND = "TOPO_COPYSET_NOT_FOUND"
COPYSET_OP_STATUS_SUCCESS = "COPYSET_OP_STATUS_SUCCESS"
COPYSET_OP_STATUS_COPYSET_NOTEXIST = "COPYSET_OP_STATUS_COPYSET_NOTEXIST"

# Numeric forms of the enum values above
_NUMERIC_CODES = {
    TOPO_OK: 0,
    COPYSET_OP_STATUS_SUCCESS: 0,
    COPYSET_OP_STATUS_COPYSET_NOTEXIST: 2,
}


def is_status(code: int | str, expected: str) -> bool:
    """Compare a status code that may arrive by name or by number."""
    if isinstance(code, str):
        return code == expected
    return code == _NUMERIC_CODES.get(expected)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TopoResponse(_WireModel):
    """Any MDS topology response. Every one carries a status code."""

    statusCode: int | str = TOPO_OK

    @property
    def ok(self) -> bool:
        return is_status(self.statusCode, TOPO_OK)


# =============================================================================
# Pools, zones, servers
# =============================================================================


class PoolInfo(_WireModel):
    """Pool entry from ListPool."""

    poolID: int
    poolName: str


class ListPoolResponse(TopoResponse):
    poolInfos: list[PoolInfo] = Field(default_factory=list)


class ZoneInfo(_WireModel):
    """Zone entry from ListPoolZone."""

    zoneID: int
    zoneName: str
    poolID: int = 0
    poolName: str = ""


class ListPoolZoneResponse(TopoResponse):
    zones: list[ZoneInfo] = Field(default_factory=list)


class ServerInfo(_WireModel):
    """Server entry from ListZoneServer."""

    serverID: int
    hostName: str
    internalIp: str = ""
    internalPort: int = 0
    externalIp: str = ""
    externalPort: int = 0
    zoneID: int = 0
    zoneName: str = ""
    poolID: int = 0
    poolName: str = ""


class ListZoneServerResponse(TopoResponse):
    serverInfo: list[ServerInfo] = Field(default_factory=list)


class CreatePoolResponse(TopoResponse):
    poolInfo: PoolInfo | None = None


class CreateZoneResponse(TopoResponse):
    zoneInfo: ZoneInfo | None = None


class ServerRegistResponse(TopoResponse):
    serverID: int | None = None


# =============================================================================
# Metaservers
# =============================================================================


class MetaServerInfo(_WireModel):
    """Metaserver entry from GetMetaServer / ListMetaServer."""

    metaServerID: int
    hostname: str = ""
    internalIp: str = ""
    internalPort: int = 0
    externalIp: str = ""
    externalPort: int = 0
    onlineState: int | str = "UNSTABLE"


class GetMetaServerInfoResponse(TopoResponse):
    metaServerInfo: MetaServerInfo | None = None


class ListMetaServerResponse(TopoResponse):
    metaServerInfos: list[MetaServerInfo] = Field(default_factory=list)


# =============================================================================
# Copysets
# =============================================================================


class Peer(_WireModel):
    """Raft peer. Address format is "ip:port:index"."""

    id: int = 0
    address: str


class CopysetInfo(_WireModel):
    poolId: int
    copysetId: int
    peers: list[Peer] = Field(default_factory=list)
    epoch: int = 0
    leaderPeer: Peer | None = None


class CopysetValue(_WireModel):
    """One entry of GetCopysetsInfo, in request order."""

    statusCode: int | str = TOPO_OK
    copysetInfo: CopysetInfo | None = None


class GetCopysetsInfoResponse(TopoResponse):
    copysetValues: list[CopysetValue] = Field(default_factory=list)


class CopysetStatusDetail(_WireModel):
    """Raft node status reported by a metaserver for one copyset."""

    state: int | str = ""
    peer: Peer | None = None
    leader: Peer | None = None
    readonly: bool = False
    term: int = 0
    committedIndex: int | None = None
    lastIndex: int | None = None


class CopysetStatusEntry(_WireModel):
    status: int | str = COPYSET_OP_STATUS_SUCCESS
    copysetStatus: CopysetStatusDetail | None = None


class GetCopysetsStatusResponse(_WireModel):
    status: list[CopysetStatusEntry] = Field(default_factory=list)
