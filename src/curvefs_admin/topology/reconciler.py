"""
One reconciliation pass: fetch actual, diff, optionally apply.

Each pass reads a fresh snapshot of the cluster; nothing is cached between
passes. A failure to read the snapshot is reported as unknown state rather
than raised, so the caller can tell "could not look" apart from "nothing to
do". Configuration errors in the desired layout are raised before any
mutation is issued.
"""

import logging
from dataclasses import dataclass
from typing import Any

from curvefs_admin.exceptions import AdminError, ControlPlaneError, TransportError
from curvefs_admin.protocols import TopologyMutator, TopologySource
from curvefs_admin.report import Issue, Outcome, ReportRow, issue_from_error, most_important
from curvefs_admin.topology.applier import ApplyResult, OutcomeStatus, TopologyApplier, phases_of
from curvefs_admin.topology.diff import TopologyPlan, plan_topology
from curvefs_admin.types import DesiredTopology

logger = logging.getLogger(__name__)


def _outcome_explanation(
    status: OutcomeStatus, assigned_id: int | None, error: AdminError | None
) -> str:
    if status == OutcomeStatus.FAILED:
        return str(error)
    if status == OutcomeStatus.SKIPPED:
        return "skipped after earlier failure"
    if assigned_id is not None:
        return f"created with id {assigned_id}"
    return "done"


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Result of one `create topology` run.

    Attributes:
        plan: Computed plan, None when the actual topology could not be fetched
        apply_result: Operation log, None for dry runs or when nothing was applied
        fetch_error: Why the actual topology could not be fetched
    """

    plan: TopologyPlan | None = None
    apply_result: ApplyResult | None = None
    fetch_error: AdminError | None = None

    @property
    def outcome(self) -> Outcome:
        if self.fetch_error is not None or self.plan is None:
            return Outcome.UNKNOWN_STATE
        if self.plan.empty:
            return Outcome.NO_CHANGES
        if self.apply_result is None:
            return Outcome.PLANNED
        if self.apply_result.succeeded:
            return Outcome.CONVERGED
        return Outcome.PARTIAL_FAILURE

    def rows(self) -> list[ReportRow]:
        if self.apply_result is not None:
            return [
                ReportRow(
                    entity_key=o.operation.name,
                    entity_type=o.operation.kind.value,
                    action=o.operation.action.value,
                    explanation=_outcome_explanation(o.status, o.assigned_id, o.error),
                    parent=o.operation.parent,
                )
                for o in self.apply_result.outcomes
            ]
        if self.plan is None:
            return []
        return [
            ReportRow(
                entity_key=op.name,
                entity_type=op.kind.value,
                action=op.action.value,
                explanation="planned",
                parent=op.parent,
            )
            for _, operations in phases_of(self.plan)
            for op in operations
        ]

    def issues(self) -> list[Issue]:
        if self.fetch_error is not None:
            return [issue_from_error("topology", self.fetch_error)]
        if self.apply_result is None or self.apply_result.failed is None:
            return []
        failed = self.apply_result.failed
        entity = f"{failed.operation.kind.value} {failed.operation.name}"
        return [issue_from_error(entity, failed.error)]

    @property
    def most_important_issue(self) -> Issue | None:
        return most_important(self.issues())

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "rows": [row.to_dict() for row in self.rows()],
            "issues": [issue.to_dict() for issue in self.issues()],
        }


@dataclass(frozen=True)
class ReconcileRequest:
    """
    Input of one reconciliation pass.

    Attributes:
        desired: Layout the cluster should converge to
        dry_run: Compute and report the plan without applying it
    """

    desired: DesiredTopology
    dry_run: bool = False


class TopologyReconciler:
    """
    Drives fetch -> diff -> apply for `create topology`.

    Example:
        reconciler = TopologyReconciler(source=mds, mutator=mds)
        report = await reconciler.reconcile(ReconcileRequest(desired=desired))
        print(report.outcome)
    """

    def __init__(self, source: TopologySource, mutator: TopologyMutator) -> None:
        self._source = source
        self._applier = TopologyApplier(mutator)

    async def reconcile(self, request: ReconcileRequest) -> ReconciliationReport:
        """
        Run one pass.

        Raises:
            ConfigurationError: If the desired layout contains duplicates.
        """
        try:
            actual = await self._source.fetch_topology()
        except (TransportError, ControlPlaneError) as e:
            logger.error("Cannot fetch cluster topology: %s", e)
            return ReconciliationReport(fetch_error=e)

        plan = plan_topology(request.desired, actual)
        if plan.empty:
            logger.info("Topology already matches desired layout")
            return ReconciliationReport(plan=plan)

        if request.dry_run:
            logger.info("Dry run, plan not applied")
            return ReconciliationReport(plan=plan)

        result = await self._applier.apply(plan)
        return ReconciliationReport(plan=plan, apply_result=result)
