"""
Administrative client for CurveFS clusters.

This package provides:

- Declarative topology reconciliation (diff engine plus ordered applier)
- Copyset replica health evaluation
- Metaserver status polling and lookup
- MDS, metaserver and metric HTTP clients
- Keyed concurrent fan-out for data acquisition
"""

from curvefs_admin.collector import CopysetStatusCollector
from curvefs_admin.exceptions import (
    AdminError,
    ConfigurationError,
    ControlPlaneError,
    TransportError,
)
from curvefs_admin.fanout import Fetched, gather_keyed
from curvefs_admin.health import HealthPolicy, ReplicaHealthEvaluator, build_health_report
from curvefs_admin.mds_client import MDSClient
from curvefs_admin.metaserver_client import MetaserverClient
from curvefs_admin.metric_client import MetricClient
from curvefs_admin.report import (
    HealthReport,
    Issue,
    IssueKind,
    Outcome,
    ReportRow,
    StatusReport,
)
from curvefs_admin.topology import (
    ReconcileRequest,
    ReconciliationReport,
    TopologyApplier,
    TopologyReconciler,
    diff_servers,
    plan_topology,
)
from curvefs_admin.types import (
    CopysetHealth,
    CopysetKey,
    DesiredTopology,
    HealthVerdict,
    ReplicaRole,
    ReplicaStatusRecord,
    ServerSpec,
)

__version__ = "0.1.0"

__all__ = [
    "AdminError",
    "ConfigurationError",
    "ControlPlaneError",
    "CopysetHealth",
    "CopysetKey",
    "CopysetStatusCollector",
    "DesiredTopology",
    "Fetched",
    "HealthPolicy",
    "HealthReport",
    "HealthVerdict",
    "Issue",
    "IssueKind",
    "MDSClient",
    "MetaserverClient",
    "MetricClient",
    "Outcome",
    "ReconcileRequest",
    "ReconciliationReport",
    "ReplicaHealthEvaluator",
    "ReplicaRole",
    "ReplicaStatusRecord",
    "ReportRow",
    "ServerSpec",
    "StatusReport",
    "TopologyApplier",
    "TopologyReconciler",
    "TransportError",
    "build_health_report",
    "diff_servers",
    "gather_keyed",
    "plan_topology",
]
