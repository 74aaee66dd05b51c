"""
Copyset replica health evaluation.

ReplicaHealthEvaluator turns the peer records of each copyset into a
verdict with every explanation that led to it:

- NOT_EXIST: The control plane does not know the copyset
- FAILED: No peer answered, online voting peers are below quorum, or the
  raft group has no leader / more than one leader
- WARN: Quorum holds but something is off: offline peers, fewer peers than
  configured replicas, a peer in an unexpected raft state, a read-only
  peer, or a follower trailing the leader's log by more than max_log_gap
- OK: None of the above

Quorum is a strict majority of the configured replicas. Learners do not
vote, so only online leaders, followers and candidates count toward it.
A copyset is never reported OK while any FAILED condition holds.

The evaluator is pure: it only reads already-collected records, and the
same input always yields the same verdicts and explanations.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from curvefs_admin.fanout import Fetched
from curvefs_admin.report import HealthReport
from curvefs_admin.types import (
    CopysetHealth,
    CopysetKey,
    CopysetStatus,
    HealthVerdict,
    ReplicaRole,
    ReplicaStatusRecord,
)

_EXPECTED_ROLES = frozenset({ReplicaRole.LEADER, ReplicaRole.FOLLOWER, ReplicaRole.LEARNER})
_VOTING_ROLES = frozenset({ReplicaRole.LEADER, ReplicaRole.FOLLOWER, ReplicaRole.CANDIDATE})
_EXPECTED_STATES = frozenset({"STATE_LEADER", "STATE_FOLLOWER", "STATE_LEARNER"})


def quorum(replicas: int) -> int:
    """Strict majority of `replicas`."""
    return replicas // 2 + 1


@dataclass(frozen=True)
class HealthPolicy:
    """
    Thresholds for copyset health.

    Attributes:
        replicas: Configured replicas per copyset
        max_log_gap: Raft log entries a follower may trail the leader by
    """

    replicas: int = 3
    max_log_gap: int = 100


def _offline_message(peer: ReplicaStatusRecord) -> str:
    if peer.error:
        return f"peer {peer.address} offline: {peer.error}"
    return f"peer {peer.address} offline"


class ReplicaHealthEvaluator:
    """
    Classifies copysets from their peer records.

    Example:
        evaluator = ReplicaHealthEvaluator(HealthPolicy(replicas=3))
        health = evaluator.evaluate_one(key, statuses[key])
        if not health.healthy:
            print(health.explanations)
    """

    def __init__(self, policy: HealthPolicy | None = None) -> None:
        self.policy = policy or HealthPolicy()

    def evaluate_one(self, key: CopysetKey, status: CopysetStatus) -> CopysetHealth:
        if status is None:
            return CopysetHealth(key=key, verdict=HealthVerdict.NOT_EXIST)
        if not status:
            return CopysetHealth(
                key=key,
                verdict=HealthVerdict.FAILED,
                explanations=("no peer reported status",),
            )

        peers = sorted(status, key=lambda p: p.address)
        online = [p for p in peers if p.online]
        offline = [p for p in peers if not p.online]
        failures: list[str] = []
        warnings: list[str] = []

        voters = [p for p in online if p.role in _VOTING_ROLES]
        needed = quorum(self.policy.replicas)
        if len(voters) < needed:
            failures.append(
                f"only {len(voters)} of {len(peers)} peers online, quorum is {needed}"
            )
            failures.extend(
                f"peer {p.address} is a learner and does not count toward quorum"
                for p in online
                if p.role == ReplicaRole.LEARNER
            )
            failures.extend(_offline_message(p) for p in offline)
        else:
            warnings.extend(_offline_message(p) for p in offline)

        leaders = [p for p in online if p.role == ReplicaRole.LEADER]
        if not leaders:
            failures.append("no leader")
        elif len(leaders) > 1:
            failures.append(
                "multiple leaders: " + ", ".join(p.address for p in leaders)
            )

        if len(peers) < self.policy.replicas:
            warnings.append(f"{len(peers)} peers, expected {self.policy.replicas}")

        for peer in online:
            unexpected_state = bool(peer.state) and peer.state not in _EXPECTED_STATES
            if unexpected_state or peer.role not in _EXPECTED_ROLES:
                warnings.append(f"peer {peer.address} in state {peer.state or peer.role.value}")
            if peer.readonly:
                warnings.append(f"peer {peer.address} is readonly")

        if len(leaders) == 1 and leaders[0].last_index is not None:
            leader_index = leaders[0].last_index
            for peer in online:
                if peer.role != ReplicaRole.FOLLOWER or peer.last_index is None:
                    continue
                gap = leader_index - peer.last_index
                if gap > self.policy.max_log_gap:
                    warnings.append(
                        f"peer {peer.address} trails leader by {gap} log entries"
                    )

        if failures:
            verdict = HealthVerdict.FAILED
        elif warnings:
            verdict = HealthVerdict.WARN
        else:
            verdict = HealthVerdict.OK
        return CopysetHealth(key=key, verdict=verdict, explanations=tuple(failures + warnings))

    def evaluate(
        self, statuses: Mapping[CopysetKey, CopysetStatus]
    ) -> dict[CopysetKey, CopysetHealth]:
        """Evaluate every copyset. The result is ordered by ascending key."""
        return {key: self.evaluate_one(key, statuses[key]) for key in sorted(statuses)}


def build_health_report(
    fetched: Mapping[CopysetKey, Fetched[CopysetStatus]],
    evaluator: ReplicaHealthEvaluator,
) -> HealthReport:
    """Evaluate every fetched copyset and keep fetch failures apart."""
    statuses = {key: f.value for key, f in fetched.items() if f.ok}
    failures = {key: f.error for key, f in fetched.items() if not f.ok}
    return HealthReport(verdicts=evaluator.evaluate(statuses), fetch_failures=failures)
