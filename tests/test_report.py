"""
Tests for report aggregation and issue ranking.

These tests verify:
- Ranking is control-plane > transport > health failure > warning
- Ties are broken by entity key, then message
- HealthReport merges every finding verbatim, without deduplication
- Outcomes distinguish unknown state from healthy / no changes
"""

import pytest

from curvefs_admin.exceptions import ControlPlaneError, TransportError
from curvefs_admin.report import (
    HealthReport,
    Issue,
    IssueKind,
    MetaserverStatusRow,
    Outcome,
    StatusReport,
    issue_from_error,
    merge_issues,
    most_important,
)
from curvefs_admin.types import CopysetHealth, CopysetKey, HealthVerdict


# =============================================================================
# Ranking
# =============================================================================


def test_ranking_by_kind():
    issues = [
        Issue(IssueKind.WARNING, "a", "warn"),
        Issue(IssueKind.HEALTH_FAILURE, "a", "failed"),
        Issue(IssueKind.CONTROL_PLANE, "z", "refused"),
        Issue(IssueKind.TRANSPORT, "a", "unreachable"),
    ]

    assert most_important(issues).kind == IssueKind.CONTROL_PLANE


def test_ranking_ties_broken_by_entity_then_message():
    issues = [
        Issue(IssueKind.TRANSPORT, "b", "x"),
        Issue(IssueKind.TRANSPORT, "a", "z"),
        Issue(IssueKind.TRANSPORT, "a", "y"),
    ]

    assert most_important(issues) == Issue(IssueKind.TRANSPORT, "a", "y")
    assert most_important(list(reversed(issues))) == Issue(IssueKind.TRANSPORT, "a", "y")


def test_most_important_of_nothing():
    assert most_important([]) is None
    assert merge_issues([]) is None


def test_issue_from_error():
    refused = issue_from_error("server s1", ControlPlaneError(-1, "RegistServer", "server s1"))
    lost = issue_from_error("10.0.0.1:6800", TransportError("10.0.0.1:6800", "timed out"))

    assert refused.kind == IssueKind.CONTROL_PLANE
    assert refused.code == -1
    assert lost.kind == IssueKind.TRANSPORT
    assert lost.message == "10.0.0.1:6800: timed out"


# =============================================================================
# HealthReport
# =============================================================================


def _health(pool_id: int, copyset_id: int, verdict: HealthVerdict, *explanations: str):
    key = CopysetKey(pool_id, copyset_id)
    return key, CopysetHealth(key=key, verdict=verdict, explanations=explanations)


def test_health_report_merges_findings_verbatim():
    report = HealthReport(
        verdicts=dict(
            [
                _health(1, 2, HealthVerdict.WARN, "peer a offline"),
                _health(1, 1, HealthVerdict.FAILED, "no leader", "peer a offline"),
                _health(1, 3, HealthVerdict.OK),
            ]
        )
    )

    merged = report.merged_error

    assert merged.messages == ("no leader", "peer a offline", "peer a offline")
    assert merged.kind == IssueKind.HEALTH_FAILURE
    assert report.outcome == Outcome.UNHEALTHY


def test_health_report_not_exist_is_a_failure():
    report = HealthReport(verdicts=dict([_health(1, 1, HealthVerdict.NOT_EXIST)]))

    assert report.outcome == Outcome.UNHEALTHY
    assert report.errors[0].kind == IssueKind.HEALTH_FAILURE
    assert report.rows()[0].action == "not exist"


def test_health_report_warnings_only_is_degraded():
    report = HealthReport(verdicts=dict([_health(1, 1, HealthVerdict.WARN, "2 peers, expected 3")]))

    assert report.outcome == Outcome.DEGRADED
    assert report.outcome.success
    assert report.most_important_issue.kind == IssueKind.WARNING


def test_health_report_fetch_failure_is_unknown_state():
    key = CopysetKey(1, 1)
    report = HealthReport(fetch_failures={key: TransportError("mds", "connection refused")})

    assert report.outcome == Outcome.UNKNOWN_STATE
    assert not report.outcome.success
    row = report.rows()[0]
    assert (row.entity_key, row.action) == (str(key.packed), "unknown")


def test_health_report_rows_sorted_by_key():
    report = HealthReport(
        verdicts=dict([_health(2, 1, HealthVerdict.OK), _health(1, 7, HealthVerdict.OK)])
    )

    assert [r.entity_key for r in report.rows()] == [
        str(CopysetKey(1, 7).packed),
        str(CopysetKey(2, 1).packed),
    ]
    assert report.outcome == Outcome.HEALTHY


# =============================================================================
# StatusReport
# =============================================================================


@pytest.mark.parametrize(
    "statuses,expected",
    [
        (["online", "online"], Outcome.HEALTHY),
        (["online", "offline"], Outcome.UNHEALTHY),
    ],
)
def test_status_report_outcome(statuses, expected):
    rows = tuple(
        MetaserverStatusRow(external_addr=f"10.0.0.{i}:6800", internal_addr="", status=s)
        for i, s in enumerate(statuses)
    )

    assert StatusReport(rows=rows).outcome == expected


def test_status_report_fetch_error():
    report = StatusReport(fetch_error=TransportError("mds", "connection refused"))

    assert report.outcome == Outcome.UNKNOWN_STATE
    assert report.to_dict()["issues"][0]["kind"] == "transport"
