"""
Topology operations produced by the diff engine and consumed by the applier.

Each operation is a small frozen dataclass that knows:
- which entity kind it touches and whether it adds or deletes
- how to name itself (and its parent container) in a report row
- how to apply itself to a TopologyMutator

The applier dispatches through apply(), never by inspecting types.
Deletes are by control-plane id and are not idempotent.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from curvefs_admin.protocols import TopologyMutator
from curvefs_admin.types import EntityKind, PoolSpec, ServerSpec, ZoneSpec


class OperationAction(str, Enum):
    """What an operation does to its entity."""

    ADD = "add"
    DEL = "del"


@dataclass(frozen=True)
class CreatePool:
    spec: PoolSpec

    kind: ClassVar[EntityKind] = EntityKind.POOL
    action: ClassVar[OperationAction] = OperationAction.ADD

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def parent(self) -> str:
        return ""

    async def apply(self, mutator: TopologyMutator) -> int | None:
        return await mutator.create_pool(self.spec)


@dataclass(frozen=True)
class DeletePool:
    pool_id: int
    pool_name: str

    kind: ClassVar[EntityKind] = EntityKind.POOL
    action: ClassVar[OperationAction] = OperationAction.DEL

    @property
    def name(self) -> str:
        return self.pool_name

    @property
    def parent(self) -> str:
        return ""

    async def apply(self, mutator: TopologyMutator) -> int | None:
        await mutator.delete_pool(self.pool_id)
        return None


@dataclass(frozen=True)
class CreateZone:
    spec: ZoneSpec

    kind: ClassVar[EntityKind] = EntityKind.ZONE
    action: ClassVar[OperationAction] = OperationAction.ADD

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def parent(self) -> str:
        return self.spec.pool_name

    async def apply(self, mutator: TopologyMutator) -> int | None:
        return await mutator.create_zone(self.spec)


@dataclass(frozen=True)
class DeleteZone:
    zone_id: int
    zone_name: str
    pool_name: str

    kind: ClassVar[EntityKind] = EntityKind.ZONE
    action: ClassVar[OperationAction] = OperationAction.DEL

    @property
    def name(self) -> str:
        return self.zone_name

    @property
    def parent(self) -> str:
        return self.pool_name

    async def apply(self, mutator: TopologyMutator) -> int | None:
        await mutator.delete_zone(self.zone_id)
        return None


@dataclass(frozen=True)
class CreateServer:
    spec: ServerSpec

    kind: ClassVar[EntityKind] = EntityKind.SERVER
    action: ClassVar[OperationAction] = OperationAction.ADD

    @property
    def name(self) -> str:
        return self.spec.host_name

    @property
    def parent(self) -> str:
        return self.spec.zone_name

    async def apply(self, mutator: TopologyMutator) -> int | None:
        return await mutator.create_server(self.spec)


@dataclass(frozen=True)
class DeleteServer:
    server_id: int
    host_name: str
    zone_name: str

    kind: ClassVar[EntityKind] = EntityKind.SERVER
    action: ClassVar[OperationAction] = OperationAction.DEL

    @property
    def name(self) -> str:
        return self.host_name

    @property
    def parent(self) -> str:
        return self.zone_name

    async def apply(self, mutator: TopologyMutator) -> int | None:
        await mutator.delete_server(self.server_id)
        return None


TopologyOperation = (
    CreatePool | DeletePool | CreateZone | DeleteZone | CreateServer | DeleteServer
)
