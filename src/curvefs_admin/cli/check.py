"""Copyset health CLI command.

- copyset: Evaluate the replica health of copysets
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
from curvefs_admin.collector import CopysetStatusCollector
from curvefs_admin.exceptions import ConfigurationError
from curvefs_admin.factory import create_clients
from curvefs_admin.health import HealthPolicy, ReplicaHealthEvaluator, build_health_report
from curvefs_admin.report import HealthReport
from curvefs_admin.types import CopysetKey

check_app = typer.Typer(help="Check cluster health")


def parse_copyset_keys(
    copyset_ids: str | None, pool_ids: str | None, copyset_keys: str | None
) -> list[CopysetKey]:
    """
    Build copyset keys from paired id lists and/or packed keys.

    Raises:
        ConfigurationError: On malformed, unpaired or out-of-range ids.
    """
    cids = split_ints(copyset_ids, "--copysetid")
    pids = split_ints(pool_ids, "--poolid")
    packed = split_ints(copyset_keys, "--copysetkey")

    if len(cids) != len(pids):
        raise ConfigurationError(
            [f"--copysetid has {len(cids)} ids but --poolid has {len(pids)}"]
        )

    keys: list[CopysetKey] = []
    problems: list[str] = []
    for pool_id, copyset_id in zip(pids, cids):
        try:
            keys.append(CopysetKey(pool_id=pool_id, copyset_id=copyset_id))
        except ValueError as e:
            problems.append(str(e))
    for value in packed:
        try:
            keys.append(CopysetKey.unpack(value))
        except ValueError as e:
            problems.append(str(e))
    if problems:
        raise ConfigurationError(problems)
    if not keys:
        raise ConfigurationError(["no copyset given, use --copysetid/--poolid or --copysetkey"])
    return keys


@check_app.command("copyset")
def check_copyset(
    copyset_ids: str = typer.Option(None, "--copysetid", help="Copyset ids, comma separated"),
    pool_ids: str = typer.Option(None, "--poolid", help="Pool ids, comma separated"),
    copyset_keys: str = typer.Option(
        None, "--copysetkey", help="Packed copyset keys, comma separated"
    ),
    mds_addr: str = typer.Option(
        None, "--mdsaddr", envvar="CURVEFS_MDS_ADDR", help="MDS addresses, comma separated"
    ),
    max_log_gap: int = typer.Option(
        None, "--margin", help="Raft log entries a follower may trail the leader by"
    ),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f"),
) -> None:
    """
    Check copyset health.

    Copysets are given as paired --copysetid/--poolid lists
    (e.g. --copysetid 1,2 --poolid 1,1) or as packed keys.
    """

    async def _check() -> HealthReport:
        keys = parse_copyset_keys(copyset_ids, pool_ids, copyset_keys)
        config = resolve_settings(mds_addr=mds_addr, max_log_gap=max_log_gap)
        evaluator = ReplicaHealthEvaluator(
            HealthPolicy(replicas=config.copyset_replicas, max_log_gap=config.max_log_gap)
        )
        async with create_clients(config) as clients:
            collector = CopysetStatusCollector(
                mds=clients.mds, metaservers=clients.metaservers, timeout=config.rpc_timeout
            )
            fetched = await collector.fetch_all(keys)
        return build_health_report(fetched, evaluator)

    report = run(_check())
    table_rows = []
    for row in report.rows():
        key = CopysetKey.unpack(int(row.entity_key))
        table_rows.append(
            (row.entity_key, str(key.pool_id), str(key.copyset_id), row.action, row.explanation)
        )
    table = make_table(
        "Copysets", ["Copyset key", "Pool id", "Copyset id", "Status", "Explanation"], table_rows
    )
    finish(output, report.to_dict(), table, report.outcome, report.most_important_issue)
