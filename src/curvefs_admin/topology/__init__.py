"""
Declarative topology reconciliation.

desired (parse) -> diff (plan) -> applier (execute) -> reconciler (drive).
"""

from curvefs_admin.topology.applier import ApplyResult, OperationOutcome, TopologyApplier
from curvefs_admin.topology.desired import load_desired_topology, parse_desired_topology
from curvefs_admin.topology.diff import TopologyPlan, diff_servers, plan_topology
from curvefs_admin.topology.reconciler import (
    ReconcileRequest,
    ReconciliationReport,
    TopologyReconciler,
)

__all__ = [
    "ApplyResult",
    "OperationOutcome",
    "ReconcileRequest",
    "ReconciliationReport",
    "TopologyApplier",
    "TopologyPlan",
    "TopologyReconciler",
    "diff_servers",
    "load_desired_topology",
    "parse_desired_topology",
    "plan_topology",
]
