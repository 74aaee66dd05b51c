"""Metaserver status CLI command.

- metaserver: Show version and liveness of every metaserver
"""

import typer

from curvefs_admin.cli.output import OutputFormat, finish, make_table, resolve_settings, run
from curvefs_admin.factory import create_clients
from curvefs_admin.report import StatusReport
from curvefs_admin.status import poll_metaserver_status

status_app = typer.Typer(help="Show cluster status")


@status_app.command("metaserver")
def status_metaserver(
    mds_addr: str = typer.Option(
        None, "--mdsaddr", envvar="CURVEFS_MDS_ADDR", help="MDS addresses, comma separated"
    ),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f"),
) -> None:
    """Show version and online status of every registered metaserver."""

    async def _status() -> StatusReport:
        config = resolve_settings(mds_addr=mds_addr)
        async with create_clients(config) as clients:
            return await poll_metaserver_status(
                clients.mds, clients.metrics, timeout=config.http_timeout
            )

    report = run(_status())
    table = make_table(
        "Metaservers",
        ["External addr", "Internal addr", "Version", "Status"],
        [(r.external_addr, r.internal_addr, r.version, r.status) for r in report.rows],
    )
    finish(output, report.to_dict(), table, report.outcome, report.most_important_issue)
