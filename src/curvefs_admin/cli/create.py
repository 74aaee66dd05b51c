"""Topology creation CLI command.

- topology: Reconcile the cluster against a topology JSON file
"""

from pathlib import Path

import typer

from curvefs_admin.cli.output import OutputFormat, finish, make_table, resolve_settings, run
from curvefs_admin.factory import create_clients
from curvefs_admin.topology.desired import load_desired_topology
from curvefs_admin.topology.reconciler import (
    ReconcileRequest,
    ReconciliationReport,
    TopologyReconciler,
)

create_app = typer.Typer(help="Create cluster resources")


@create_app.command("topology")
def create_topology(
    cluster_map: Path = typer.Option(
        Path("topology.json"), "--clustermap", "-c", help="Topology JSON file"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the plan without applying it"),
    mds_addr: str = typer.Option(
        None, "--mdsaddr", envvar="CURVEFS_MDS_ADDR", help="MDS addresses, comma separated"
    ),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f"),
) -> None:
    """
    Converge pools, zones and servers to the layout in the topology file.

    Servers and zones missing from the file are deleted, missing ones are
    created. Stops at the first rejected operation and reports the rest as
    skipped.
    """

    async def _reconcile() -> ReconciliationReport:
        desired = load_desired_topology(cluster_map)
        async with create_clients(resolve_settings(mds_addr=mds_addr)) as clients:
            reconciler = TopologyReconciler(source=clients.mds, mutator=clients.mds)
            return await reconciler.reconcile(ReconcileRequest(desired=desired, dry_run=dry_run))

    report = run(_reconcile())
    rows = report.rows()
    table = make_table(
        "Topology",
        ["Name", "Type", "Operation", "Parent", "Explanation"],
        [
            (row.entity_key, row.entity_type, row.action, row.parent or "-", row.explanation)
            for row in rows
        ],
    )
    finish(output, report.to_dict(), table, report.outcome, report.most_important_issue)
