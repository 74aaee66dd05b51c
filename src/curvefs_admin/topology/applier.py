"""
Topology applier.

Executes a TopologyPlan against a TopologyMutator in container-respecting
order:

    delete servers -> delete zones -> delete pools
    -> create pools -> create zones -> create servers

so a container is never deleted before its children and a child is never
created before its container. Every phase runs sequentially.

Failure semantics are fail-fast without rollback: the first operation that
raises an AdminError is logged as failed, the rest of its phase and every
later phase are logged as skipped, and already-applied operations stay
applied. The caller gets the full operation log for manual remediation.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from curvefs_admin.exceptions import AdminError
from curvefs_admin.protocols import TopologyMutator
from curvefs_admin.topology.diff import TopologyPlan
from curvefs_admin.topology.operations import OperationAction, TopologyOperation
from curvefs_admin.types import EntityKind

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """What happened to one planned operation."""

    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Phase:
    """One sequential group of operations."""

    action: OperationAction
    kind: EntityKind

    @property
    def name(self) -> str:
        verb = "create" if self.action == OperationAction.ADD else "delete"
        return f"{verb} {self.kind.value}s"


APPLY_ORDER: tuple[Phase, ...] = (
    Phase(OperationAction.DEL, EntityKind.SERVER),
    Phase(OperationAction.DEL, EntityKind.ZONE),
    Phase(OperationAction.DEL, EntityKind.POOL),
    Phase(OperationAction.ADD, EntityKind.POOL),
    Phase(OperationAction.ADD, EntityKind.ZONE),
    Phase(OperationAction.ADD, EntityKind.SERVER),
)


@dataclass(frozen=True)
class OperationOutcome:
    """
    Log entry for one planned operation.

    Attributes:
        operation: The planned operation
        phase: Name of the phase it belongs to
        status: applied / failed / skipped
        assigned_id: Id returned by the control plane for creates
        error: Why it failed (failed entries only)
    """

    operation: TopologyOperation
    phase: str
    status: OutcomeStatus
    assigned_id: int | None = None
    error: AdminError | None = None


@dataclass(frozen=True)
class ApplyResult:
    """Ordered operation log of one apply run."""

    outcomes: tuple[OperationOutcome, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> OperationOutcome | None:
        return next((o for o in self.outcomes if o.status == OutcomeStatus.FAILED), None)

    @property
    def succeeded(self) -> bool:
        return self.failed is None

    @property
    def applied(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.APPLIED]


def phases_of(plan: TopologyPlan) -> list[tuple[Phase, list[TopologyOperation]]]:
    """The plan's operations grouped by phase, in apply order."""
    grouped = []
    for phase in APPLY_ORDER:
        if phase.action == OperationAction.DEL:
            operations = plan.delete_operations(phase.kind)
        else:
            operations = plan.create_operations(phase.kind)
        grouped.append((phase, operations))
    return grouped


class TopologyApplier:
    """
    Applies a TopologyPlan phase by phase.

    Example:
        applier = TopologyApplier(mutator=mds_client)
        result = await applier.apply(plan)
        if not result.succeeded:
            print(f"Stopped at: {result.failed.error}")
    """

    def __init__(self, mutator: TopologyMutator) -> None:
        self._mutator = mutator

    async def apply(self, plan: TopologyPlan) -> ApplyResult:
        outcomes: list[OperationOutcome] = []
        aborted = False

        for phase, operations in phases_of(plan):
            for operation in operations:
                if aborted:
                    outcomes.append(
                        OperationOutcome(operation, phase.name, OutcomeStatus.SKIPPED)
                    )
                    continue

                try:
                    assigned_id = await operation.apply(self._mutator)
                except AdminError as e:
                    logger.error(
                        "%s %s %s failed: %s",
                        operation.action.value,
                        operation.kind.value,
                        operation.name,
                        e,
                    )
                    outcomes.append(
                        OperationOutcome(operation, phase.name, OutcomeStatus.FAILED, error=e)
                    )
                    aborted = True
                    continue

                logger.info(
                    "%s %s %s", operation.action.value, operation.kind.value, operation.name
                )
                outcomes.append(
                    OperationOutcome(
                        operation, phase.name, OutcomeStatus.APPLIED, assigned_id=assigned_id
                    )
                )

        return ApplyResult(outcomes=tuple(outcomes))
