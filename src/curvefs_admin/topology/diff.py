"""
Topology diff engine.

Compares the desired layout against the layout registered with the MDS and
computes the create/delete sets that converge them:

- an actual record with no identity match in desired is deleted
- a desired spec with no identity match in actual is created

Matching goes through a hash of each entity's identity key (`.key`), so a
partial-field comparison cannot happen by accident. Non-identity attributes
(addresses, pool policy) are ignored: changing an IP is not a topology change.

Duplicate identity keys in the desired layout are a configuration error and
are raised, never resolved by picking one copy.

The engine is pure and synchronous; it only reads already-fetched data.
"""

from collections import Counter
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from curvefs_admin.exceptions import ConfigurationError
from curvefs_admin.topology.operations import (
    CreatePool,
    CreateServer,
    CreateZone,
    DeletePool,
    DeleteServer,
    DeleteZone,
    TopologyOperation,
)
from curvefs_admin.types import (
    ActualPoolRecord,
    ActualServerRecord,
    ActualTopology,
    ActualZoneRecord,
    DesiredTopology,
    EntityKind,
    PoolSpec,
    ServerSpec,
    ZoneSpec,
)


class _Keyed(Protocol):
    @property
    def key(self) -> Hashable: ...


D = TypeVar("D", bound=_Keyed)
A = TypeVar("A", bound=_Keyed)


@dataclass(frozen=True)
class EntityDiff(Generic[D, A]):
    """
    Create/delete sets for one entity kind.

    Attributes:
        to_create: Desired specs missing from the cluster, in desired order
        to_delete: Actual records missing from desired, in actual order
    """

    to_create: tuple[D, ...] = ()
    to_delete: tuple[A, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.to_create and not self.to_delete


ServerDiff = EntityDiff[ServerSpec, ActualServerRecord]
ZoneDiff = EntityDiff[ZoneSpec, ActualZoneRecord]
PoolDiff = EntityDiff[PoolSpec, ActualPoolRecord]


def _format_key(key: Hashable) -> str:
    if isinstance(key, tuple):
        return "/".join(str(part) for part in key)
    return str(key)


def find_duplicates(kind: EntityKind, specs: Sequence[_Keyed]) -> list[str]:
    """Describe every identity key that appears more than once."""
    counts = Counter(spec.key for spec in specs)
    return [
        f"duplicate {kind.value} {_format_key(key)} ({count} entries)"
        for key, count in counts.items()
        if count > 1
    ]


def _diff(kind: EntityKind, desired: Sequence[D], actual: Sequence[A]) -> EntityDiff[D, A]:
    problems = find_duplicates(kind, desired)
    if problems:
        raise ConfigurationError(problems)

    desired_keys = {spec.key for spec in desired}
    actual_keys = {record.key for record in actual}

    return EntityDiff(
        to_create=tuple(spec for spec in desired if spec.key not in actual_keys),
        to_delete=tuple(record for record in actual if record.key not in desired_keys),
    )


def diff_servers(
    desired: Sequence[ServerSpec], actual: Sequence[ActualServerRecord]
) -> ServerDiff:
    """
    Compute server create/delete sets.

    Identity is (host_name, zone_name, pool_name).

    Raises:
        ConfigurationError: If desired contains the same identity twice.
    """
    return _diff(EntityKind.SERVER, desired, actual)


def diff_zones(desired: Sequence[ZoneSpec], actual: Sequence[ActualZoneRecord]) -> ZoneDiff:
    """Compute zone create/delete sets. Identity is (name, pool_name)."""
    return _diff(EntityKind.ZONE, desired, actual)


def diff_pools(desired: Sequence[PoolSpec], actual: Sequence[ActualPoolRecord]) -> PoolDiff:
    """Compute pool create/delete sets. Identity is the pool name."""
    return _diff(EntityKind.POOL, desired, actual)


@dataclass(frozen=True)
class TopologyPlan:
    """Create/delete sets for every entity kind of one reconciliation pass."""

    pools: PoolDiff = EntityDiff()
    zones: ZoneDiff = EntityDiff()
    servers: ServerDiff = EntityDiff()

    @property
    def empty(self) -> bool:
        return self.pools.empty and self.zones.empty and self.servers.empty

    def delete_operations(self, kind: EntityKind) -> list[TopologyOperation]:
        if kind == EntityKind.POOL:
            return [DeletePool(pool_id=p.pool_id, pool_name=p.name) for p in self.pools.to_delete]
        if kind == EntityKind.ZONE:
            return [
                DeleteZone(zone_id=z.zone_id, zone_name=z.name, pool_name=z.pool_name)
                for z in self.zones.to_delete
            ]
        return [
            DeleteServer(server_id=s.server_id, host_name=s.host_name, zone_name=s.zone_name)
            for s in self.servers.to_delete
        ]

    def create_operations(self, kind: EntityKind) -> list[TopologyOperation]:
        if kind == EntityKind.POOL:
            return [CreatePool(spec=p) for p in self.pools.to_create]
        if kind == EntityKind.ZONE:
            return [CreateZone(spec=z) for z in self.zones.to_create]
        return [CreateServer(spec=s) for s in self.servers.to_create]


def plan_topology(desired: DesiredTopology, actual: ActualTopology) -> TopologyPlan:
    """
    Diff pools, zones and servers in one pass.

    All three kinds are checked for duplicates before anything is returned,
    and every problem found is reported together.

    Raises:
        ConfigurationError: If desired contains duplicate identities.
    """
    problems = (
        find_duplicates(EntityKind.POOL, desired.pools)
        + find_duplicates(EntityKind.SERVER, desired.servers)
    )
    if problems:
        raise ConfigurationError(problems)

    return TopologyPlan(
        pools=diff_pools(desired.pools, actual.pools),
        zones=diff_zones(desired.zones, actual.zones),
        servers=diff_servers(desired.servers, actual.servers),
    )
