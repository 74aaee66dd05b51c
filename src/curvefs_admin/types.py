"""
Domain types for CurveFS topology and copyset health.

This module defines the internal data structures shared by the diff engine,
the applier, the health evaluator and the reports. They are read-only
snapshots for a single command invocation.

All types are frozen dataclasses. Pydantic models are reserved for config
file parsing and wire responses (see topology.desired and api_types).
"""

from dataclasses import dataclass, field
from enum import Enum

COPYSET_ID_BITS = 32
"""Bit width of each half of a packed copyset key."""

_ID_LIMIT = 1 << COPYSET_ID_BITS
_KEY_LIMIT = 1 << (2 * COPYSET_ID_BITS)


class EntityKind(str, Enum):
    """Kinds of topology entities, in container order."""

    POOL = "pool"
    ZONE = "zone"
    SERVER = "server"


# =============================================================================
# Desired topology
# =============================================================================


@dataclass(frozen=True)
class PoolSpec:
    """
    Desired logical pool.

    Attributes:
        name: Pool name, the identity key.
        replicas: Replicas per copyset.
        copysets: Number of copysets to create in the pool.
        zones: Number of zones copysets are spread over.
    """

    name: str
    replicas: int = 3
    copysets: int = 100
    zones: int = 3

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True)
class ZoneSpec:
    """Desired zone. Identity is (name, pool_name)."""

    name: str
    pool_name: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.pool_name)


@dataclass(frozen=True)
class ServerSpec:
    """
    Desired server.

    Two specs describe the same server iff host_name, zone_name and
    pool_name all match. Address fields are carried along for registration
    but never take part in matching.

    Attributes:
        host_name: Server host name.
        zone_name: Zone the server belongs to.
        pool_name: Pool the zone belongs to.
        internal_ip: Address used for intra-cluster traffic.
        internal_port: Port used for intra-cluster traffic.
        external_ip: Address used by clients.
        external_port: Port used by clients.
    """

    host_name: str
    zone_name: str
    pool_name: str
    internal_ip: str = ""
    internal_port: int = 0
    external_ip: str = ""
    external_port: int = 0

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.host_name, self.zone_name, self.pool_name)


@dataclass(frozen=True)
class DesiredTopology:
    """Operator-supplied cluster layout."""

    servers: tuple[ServerSpec, ...] = ()
    pools: tuple[PoolSpec, ...] = ()

    @property
    def zones(self) -> tuple[ZoneSpec, ...]:
        """Zones named by the servers, in first-seen order."""
        seen: dict[tuple[str, str], ZoneSpec] = {}
        for server in self.servers:
            zone = ZoneSpec(name=server.zone_name, pool_name=server.pool_name)
            seen.setdefault(zone.key, zone)
        return tuple(seen.values())


# =============================================================================
# Actual topology (as registered with the MDS)
# =============================================================================


@dataclass(frozen=True)
class ActualPoolRecord:
    """Pool as reported by the MDS."""

    pool_id: int
    name: str

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True)
class ActualZoneRecord:
    """Zone as reported by the MDS."""

    zone_id: int
    name: str
    pool_name: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.pool_name)


@dataclass(frozen=True)
class ActualServerRecord:
    """
    Server as reported by the MDS.

    Attributes:
        server_id: Identifier assigned by the MDS, needed for deletion.
        host_name, zone_name, pool_name: Identity fields.
        internal_ip, internal_port, external_ip, external_port: Addresses.
    """

    server_id: int
    host_name: str
    zone_name: str
    pool_name: str
    internal_ip: str = ""
    internal_port: int = 0
    external_ip: str = ""
    external_port: int = 0

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.host_name, self.zone_name, self.pool_name)

    @property
    def spec(self) -> ServerSpec:
        """The ServerSpec this record corresponds to."""
        return ServerSpec(
            host_name=self.host_name,
            zone_name=self.zone_name,
            pool_name=self.pool_name,
            internal_ip=self.internal_ip,
            internal_port=self.internal_port,
            external_ip=self.external_ip,
            external_port=self.external_port,
        )


@dataclass(frozen=True)
class ActualTopology:
    """Snapshot of everything registered with the MDS."""

    servers: tuple[ActualServerRecord, ...] = ()
    zones: tuple[ActualZoneRecord, ...] = ()
    pools: tuple[ActualPoolRecord, ...] = ()


@dataclass(frozen=True)
class MetaserverInfo:
    """
    Metaserver as reported by the MDS.

    Attributes:
        metaserver_id: Identifier assigned by the MDS.
        host_name: Host the metaserver runs on.
        internal_addr: "ip:port" used for intra-cluster traffic.
        external_addr: "ip:port" used by clients and for metrics.
        online_state: Online state name reported by the MDS.
    """

    metaserver_id: int
    host_name: str
    internal_addr: str
    external_addr: str
    online_state: str = "UNSTABLE"


# =============================================================================
# Copysets
# =============================================================================


@dataclass(frozen=True, order=True)
class CopysetKey:
    """
    Composite copyset identifier packed into one unsigned 64-bit integer.

    The pool id occupies the high 32 bits, the copyset id the low 32 bits.
    Ids that do not fit their half are rejected instead of being silently
    truncated. Keys order by their packed value.
    """

    pool_id: int
    copyset_id: int

    def __post_init__(self) -> None:
        for label, value in (("pool_id", self.pool_id), ("copyset_id", self.copyset_id)):
            if not 0 <= value < _ID_LIMIT:
                raise ValueError(
                    f"{label} {value} does not fit in {COPYSET_ID_BITS} bits"
                )

    @property
    def packed(self) -> int:
        return (self.pool_id << COPYSET_ID_BITS) | self.copyset_id

    @classmethod
    def unpack(cls, packed: int) -> "CopysetKey":
        """Rebuild a key from its packed form."""
        if not 0 <= packed < _KEY_LIMIT:
            raise ValueError(f"copyset key {packed} is not an unsigned 64-bit value")
        return cls(pool_id=packed >> COPYSET_ID_BITS, copyset_id=packed & (_ID_LIMIT - 1))

    def __int__(self) -> int:
        return self.packed

    def __str__(self) -> str:
        return str(self.packed)


class ReplicaRole(str, Enum):
    """Role a peer plays in its copyset's raft group."""

    LEADER = "leader"
    FOLLOWER = "follower"
    LEARNER = "learner"
    CANDIDATE = "candidate"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ReplicaStatusRecord:
    """
    Status of one copyset peer.

    Attributes:
        address: Peer address ("ip:port" or "ip:port:index").
        role: Raft role reported by the peer.
        online: False when the peer could not be reached or failed to answer.
        error: Why the peer is offline, if known.
        state: Raw raft state name (e.g. "STATE_FOLLOWER"), "" if unknown.
        readonly: Peer reports itself read-only.
        last_index: Last raft log index on the peer, None if unknown.
    """

    address: str
    role: ReplicaRole = ReplicaRole.UNKNOWN
    online: bool = True
    error: str | None = None
    state: str = ""
    readonly: bool = False
    last_index: int | None = None


CopysetStatus = frozenset[ReplicaStatusRecord] | None
"""All peer records of a copyset, or None if the copyset does not exist."""


class HealthVerdict(str, Enum):
    """Copyset health classification."""

    OK = "ok"
    WARN = "warn"
    FAILED = "error"
    NOT_EXIST = "not exist"


@dataclass(frozen=True)
class CopysetHealth:
    """
    Verdict for one copyset with every explanation that led to it.

    NOT_EXIST verdicts never carry explanations.
    """

    key: CopysetKey
    verdict: HealthVerdict
    explanations: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.verdict == HealthVerdict.NOT_EXIST and self.explanations:
            raise ValueError(f"copyset {self.key} does not exist but has explanations")

    @property
    def healthy(self) -> bool:
        return self.verdict == HealthVerdict.OK
