"""
Metaserver status polling and lookup.

poll_metaserver_status() lists the metaservers registered with the MDS and
reads /vars/pid (liveness) and /vars/curve_version from every external
address concurrently. A target that does not answer is reported offline;
the other targets are unaffected.

query_metaservers() looks metaservers up by id or by "host:port",
concurrently. Ids win when both are given.
"""

import logging
from collections.abc import Sequence

from curvefs_admin.exceptions import ConfigurationError, ControlPlaneError, TransportError
from curvefs_admin.fanout import gather_keyed
from curvefs_admin.mds_client import split_host_port
from curvefs_admin.metric_client import PID_PATH, VERSION_PATH
from curvefs_admin.protocols import MetaserverSource, MetricSource
from curvefs_admin.report import (
    Issue,
    IssueKind,
    MetaserverStatusRow,
    QueryReport,
    StatusReport,
    issue_from_error,
)

logger = logging.getLogger(__name__)


async def poll_metaserver_status(
    source: MetaserverSource,
    metrics: MetricSource,
    timeout: float | None = None,
) -> StatusReport:
    """
    Report version and liveness of every registered metaserver.

    Args:
        source: Metaserver inventory
        metrics: Metric reader
        timeout: Seconds each metric read may take
    """
    try:
        metaservers = await source.list_metaservers()
    except (TransportError, ControlPlaneError) as e:
        logger.error("Cannot list metaservers: %s", e)
        return StatusReport(fetch_error=e)

    addrs = list(dict.fromkeys(m.external_addr for m in metaservers))
    calls = {}
    for addr in addrs:
        for path in (PID_PATH, VERSION_PATH):
            calls[f"{addr}{path}"] = lambda addr=addr, path=path: metrics.fetch_target_metric(
                addr, path
            )
    results = await gather_keyed(calls, timeout=timeout)

    rows: list[MetaserverStatusRow] = []
    issues: list[Issue] = []
    for metaserver in metaservers:
        addr = metaserver.external_addr
        pid = results[f"{addr}{PID_PATH}"]
        version = results[f"{addr}{VERSION_PATH}"]

        online = pid.ok
        if not online:
            issues.append(
                Issue(IssueKind.TRANSPORT, addr, f"metaserver offline: {pid.error}")
            )
        elif not version.ok:
            issues.append(
                Issue(IssueKind.WARNING, addr, f"cannot read version: {version.error}")
            )

        rows.append(
            MetaserverStatusRow(
                external_addr=addr,
                internal_addr=metaserver.internal_addr,
                version=version.value if version.ok and version.value else "unknown",
                status="online" if online else "offline",
            )
        )

    return StatusReport(rows=tuple(rows), issues=tuple(issues))


async def query_metaservers(
    source: MetaserverSource,
    ids: Sequence[int] = (),
    addresses: Sequence[str] = (),
    timeout: float | None = None,
) -> QueryReport:
    """
    Look metaservers up by id or by external "host:port".

    Raises:
        ConfigurationError: If nothing is requested or an address is malformed.
    """
    if ids:
        calls = {
            f"id {i}": (lambda i=i: source.get_metaserver(metaserver_id=i))
            for i in dict.fromkeys(ids)
        }
    elif addresses:
        problems = []
        for address in addresses:
            try:
                split_host_port(address)
            except ConfigurationError as e:
                problems.extend(e.problems)
        if problems:
            raise ConfigurationError(problems)
        calls = {
            address: (lambda address=address: source.get_metaserver(address=address))
            for address in dict.fromkeys(addresses)
        }
    else:
        raise ConfigurationError(["metaserver id or address is required"])

    results = await gather_keyed(calls, timeout=timeout)
    found = {query: f.value for query, f in results.items() if f.ok}
    issues = tuple(
        issue_from_error(query, f.error) for query, f in results.items() if not f.ok
    )
    return QueryReport(found=found, issues=issues)
