"""Metaserver query CLI command.

- metaserver: Look metaservers up by id or address
"""

import typer

from curvefs_admin.cli.output import (
    OutputFormat,
    finish,
    make_table,
    resolve_settings,
    run,
    split_ints,
)
from curvefs_admin.config import split_addrs
from curvefs_admin.factory import create_clients
from curvefs_admin.report import QueryReport
from curvefs_admin.status import query_metaservers

query_app = typer.Typer(help="Query cluster resources")


@query_app.command("metaserver")
def query_metaserver(
    metaserver_ids: str = typer.Option(
        None, "--metaserverid", help="Metaserver ids, comma separated"
    ),
    metaserver_addrs: str = typer.Option(
        None, "--metaserveraddr", help="Metaserver host:port list, comma separated"
    ),
    mds_addr: str = typer.Option(
        None, "--mdsaddr", envvar="CURVEFS_MDS_ADDR", help="MDS addresses, comma separated"
    ),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f"),
) -> None:
    """
    Query metaservers by id or by host:port.

    When both are given, only the ids are queried.
    """

    async def _query() -> QueryReport:
        ids = split_ints(metaserver_ids, "--metaserverid")
        addrs = split_addrs(metaserver_addrs or "")
        config = resolve_settings(mds_addr=mds_addr)
        async with create_clients(config) as clients:
            return await query_metaservers(
                clients.mds, ids=ids, addresses=addrs, timeout=config.rpc_timeout
            )

    report = run(_query())
    table = make_table(
        "Metaservers",
        ["Id", "Hostname", "Internal addr", "External addr", "Online state"],
        [
            (
                str(info.metaserver_id),
                info.host_name,
                info.internal_addr,
                info.external_addr,
                info.online_state,
            )
            for info in report.found.values()
        ],
    )
    finish(output, report.to_dict(), table, report.outcome, report.most_important_issue)
