"""
Result aggregates consumed by the output layer.

This module defines:
- ReportRow: One rendered row {entity key, operation or verdict, explanation}
- Issue / IssueKind: A ranked problem found during a command
- MergedError: Every issue of a command folded into one failure signal
- Outcome: Overall result, keeping "nothing to change", "could not
  determine state" and "attempted and partially failed" apart
- HealthReport, StatusReport, QueryReport

ReconciliationReport lives with the reconciler in curvefs_admin.topology.

Ranking is total and stable: control-plane error > transport error >
health failure > soft warning, ties broken by entity key, then message.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Any

from curvefs_admin.exceptions import AdminError, ControlPlaneError
from curvefs_admin.types import CopysetHealth, CopysetKey, HealthVerdict, MetaserverInfo


class IssueKind(IntEnum):
    """Issue categories. Higher values outrank lower ones."""

    WARNING = 1
    HEALTH_FAILURE = 2
    TRANSPORT = 3
    CONTROL_PLANE = 4


@dataclass(frozen=True)
class Issue:
    """
    A problem found while running a command.

    Attributes:
        kind: Category used for ranking
        entity: What the issue is about (copyset key, server name, address)
        message: Human-readable description, kept verbatim
        code: Control plane status code, if any
    """

    kind: IssueKind
    entity: str
    message: str
    code: int | str | None = None

    def rank_key(self) -> tuple[int, str, str]:
        return (-int(self.kind), self.entity, self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.name.lower(),
            "entity": self.entity,
            "message": self.message,
            "code": self.code,
        }


def issue_from_error(entity: str, error: AdminError) -> Issue:
    """Classify a captured AdminError."""
    if isinstance(error, ControlPlaneError):
        return Issue(IssueKind.CONTROL_PLANE, entity, str(error), code=error.code)
    return Issue(IssueKind.TRANSPORT, entity, str(error))


def most_important(issues: list[Issue]) -> Issue | None:
    """The highest ranked issue, or None when there are none."""
    return min(issues, key=Issue.rank_key, default=None)


@dataclass(frozen=True)
class MergedError:
    """
    One combined failure signal for a command.

    Attributes:
        kind: Kind of the most important issue
        messages: Every issue message, in report order, without deduplication
    """

    kind: IssueKind
    messages: tuple[str, ...]

    def __str__(self) -> str:
        return "\n".join(self.messages)


def merge_issues(issues: list[Issue]) -> MergedError | None:
    top = most_important(issues)
    if top is None:
        return None
    return MergedError(kind=top.kind, messages=tuple(i.message for i in issues))


class Outcome(str, Enum):
    """Overall result of a command."""

    NO_CHANGES = "no_changes"
    CONVERGED = "converged"
    PLANNED = "planned"
    PARTIAL_FAILURE = "partial_failure"
    UNKNOWN_STATE = "unknown_state"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def success(self) -> bool:
        return self in _SUCCESSFUL_OUTCOMES


_SUCCESSFUL_OUTCOMES = frozenset(
    {Outcome.NO_CHANGES, Outcome.CONVERGED, Outcome.PLANNED, Outcome.HEALTHY, Outcome.DEGRADED}
)


@dataclass(frozen=True)
class ReportRow:
    """
    One output row.

    Attributes:
        entity_key: Name or key of the entity
        entity_type: Entity kind ("server", "zone", "pool", "copyset")
        action: Operation ("add"/"del") or verdict ("ok", "error", ...)
        explanation: Why, or what happened
        parent: Container of the entity, if any
    """

    entity_key: str
    entity_type: str
    action: str
    explanation: str = ""
    parent: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# =============================================================================
# Copyset health
# =============================================================================


@dataclass(frozen=True)
class HealthReport:
    """
    Result of one `check copyset` run.

    Attributes:
        verdicts: Verdict per copyset whose status could be fetched
        fetch_failures: Copysets whose status could not be fetched at all
    """

    verdicts: dict[CopysetKey, CopysetHealth] = field(default_factory=dict)
    fetch_failures: dict[CopysetKey, AdminError] = field(default_factory=dict)

    @property
    def keys(self) -> list[CopysetKey]:
        return sorted(set(self.verdicts) | set(self.fetch_failures))

    @property
    def outcome(self) -> Outcome:
        verdicts = {h.verdict for h in self.verdicts.values()}
        if verdicts & {HealthVerdict.FAILED, HealthVerdict.NOT_EXIST}:
            return Outcome.UNHEALTHY
        if self.fetch_failures:
            return Outcome.UNKNOWN_STATE
        if HealthVerdict.WARN in verdicts:
            return Outcome.DEGRADED
        return Outcome.HEALTHY

    def rows(self) -> list[ReportRow]:
        rows = []
        for key in self.keys:
            if key in self.verdicts:
                health = self.verdicts[key]
                rows.append(
                    ReportRow(
                        entity_key=str(key),
                        entity_type="copyset",
                        action=health.verdict.value,
                        explanation="; ".join(health.explanations),
                    )
                )
            else:
                rows.append(
                    ReportRow(
                        entity_key=str(key),
                        entity_type="copyset",
                        action="unknown",
                        explanation=str(self.fetch_failures[key]),
                    )
                )
        return rows

    @property
    def errors(self) -> list[Issue]:
        """Every finding of every copyset, ordered by copyset key."""
        issues: list[Issue] = []
        for key in self.keys:
            health = self.verdicts.get(key)
            if health is None:
                issues.append(issue_from_error(str(key), self.fetch_failures[key]))
            elif health.verdict == HealthVerdict.NOT_EXIST:
                issues.append(
                    Issue(IssueKind.HEALTH_FAILURE, str(key), f"copyset {key} does not exist")
                )
            elif health.verdict != HealthVerdict.OK:
                kind = (
                    IssueKind.WARNING
                    if health.verdict == HealthVerdict.WARN
                    else IssueKind.HEALTH_FAILURE
                )
                issues.extend(Issue(kind, str(key), message) for message in health.explanations)
        return issues

    @property
    def merged_error(self) -> MergedError | None:
        return merge_issues(self.errors)

    @property
    def most_important_issue(self) -> Issue | None:
        return most_important(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "rows": [row.to_dict() for row in self.rows()],
            "issues": [issue.to_dict() for issue in self.errors],
        }


# =============================================================================
# Metaserver status and query
# =============================================================================


@dataclass(frozen=True)
class MetaserverStatusRow:
    external_addr: str
    internal_addr: str
    version: str = "unknown"
    status: str = "offline"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class StatusReport:
    """
    Result of one `status metaserver` run.

    Attributes:
        rows: One row per metaserver, in inventory order
        issues: One issue per metric that could not be read
        fetch_error: Why the metaserver list could not be fetched
    """

    rows: tuple[MetaserverStatusRow, ...] = ()
    issues: tuple[Issue, ...] = ()
    fetch_error: AdminError | None = None

    @property
    def outcome(self) -> Outcome:
        if self.fetch_error is not None:
            return Outcome.UNKNOWN_STATE
        if any(row.status != "online" for row in self.rows):
            return Outcome.UNHEALTHY
        return Outcome.HEALTHY

    def all_issues(self) -> list[Issue]:
        issues = list(self.issues)
        if self.fetch_error is not None:
            issues.append(issue_from_error("metaservers", self.fetch_error))
        return issues

    @property
    def most_important_issue(self) -> Issue | None:
        return most_important(self.all_issues())

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "rows": [row.to_dict() for row in self.rows],
            "issues": [issue.to_dict() for issue in self.all_issues()],
        }


@dataclass(frozen=True)
class QueryReport:
    """
    Result of one `query metaserver` run.

    Attributes:
        found: Metaservers found, keyed by the query that found them
        issues: One issue per query that failed
    """

    found: dict[str, MetaserverInfo] = field(default_factory=dict)
    issues: tuple[Issue, ...] = ()

    @property
    def outcome(self) -> Outcome:
        if any(i.kind == IssueKind.TRANSPORT for i in self.issues) and not self.found:
            return Outcome.UNKNOWN_STATE
        if self.issues:
            return Outcome.UNHEALTHY
        return Outcome.HEALTHY

    @property
    def most_important_issue(self) -> Issue | None:
        return most_important(list(self.issues))

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "rows": [asdict(info) for info in self.found.values()],
            "issues": [issue.to_dict() for issue in self.issues],
        }
