"""
Tests for the topology applier.

These tests verify:
- Operations run in container-respecting phase order
- Create operations record the id assigned by the control plane
- The first failure aborts the rest of its phase and every later phase
- Already-applied operations are kept (no rollback)
"""

import pytest

from curvefs_admin.exceptions import ControlPlaneError, TransportError
from curvefs_admin.topology.applier import APPLY_ORDER, OutcomeStatus, TopologyApplier, phases_of
from curvefs_admin.topology.diff import plan_topology
from curvefs_admin.types import (
    ActualPoolRecord,
    ActualServerRecord,
    ActualTopology,
    ActualZoneRecord,
    DesiredTopology,
    PoolSpec,
    ServerSpec,
)


@pytest.fixture
def replace_plan():
    """Plan that deletes old/z-old/p-old and creates new/z-new/p-new."""
    desired = DesiredTopology(
        servers=(ServerSpec("new", "z-new", "p-new"),),
        pools=(PoolSpec("p-new"),),
    )
    actual = ActualTopology(
        pools=(ActualPoolRecord(pool_id=10, name="p-old"),),
        zones=(ActualZoneRecord(zone_id=20, name="z-old", pool_name="p-old"),),
        servers=(
            ActualServerRecord(server_id=30, host_name="old", zone_name="z-old", pool_name="p-old"),
        ),
    )
    return plan_topology(desired, actual)


def test_phase_order():
    assert [phase.name for phase in APPLY_ORDER] == [
        "delete servers",
        "delete zones",
        "delete pools",
        "create pools",
        "create zones",
        "create servers",
    ]


@pytest.mark.asyncio
async def test_apply_runs_phases_in_order(replace_plan, mutator):
    result = await TopologyApplier(mutator).apply(replace_plan)

    assert result.succeeded
    assert [c[0] for c in mutator.method_calls] == [
        "delete_server",
        "delete_zone",
        "delete_pool",
        "create_pool",
        "create_zone",
        "create_server",
    ]
    mutator.delete_server.assert_awaited_once_with(30)
    mutator.delete_zone.assert_awaited_once_with(20)
    mutator.delete_pool.assert_awaited_once_with(10)


@pytest.mark.asyncio
async def test_apply_records_assigned_ids(replace_plan, mutator):
    result = await TopologyApplier(mutator).apply(replace_plan)

    created = [o for o in result.outcomes if o.operation.action.value == "add"]
    assert [o.assigned_id for o in created] == [1, 2, 3]
    assert all(o.status == OutcomeStatus.APPLIED for o in result.outcomes)


@pytest.mark.asyncio
async def test_failure_skips_rest_of_phase_and_later_phases(mutator):
    desired = DesiredTopology(
        servers=(ServerSpec("a", "z1", "p1"), ServerSpec("b", "z1", "p1")),
        pools=(PoolSpec("p1"),),
    )
    plan = plan_topology(desired, ActualTopology())
    mutator.create_zone.side_effect = ControlPlaneError("TOPO_INTERNAL_ERROR", "CreateZone", "zone z1")

    result = await TopologyApplier(mutator).apply(plan)

    assert not result.succeeded
    assert [(o.operation.name, o.status) for o in result.outcomes] == [
        ("p1", OutcomeStatus.APPLIED),
        ("z1", OutcomeStatus.FAILED),
        ("a", OutcomeStatus.SKIPPED),
        ("b", OutcomeStatus.SKIPPED),
    ]
    assert result.failed.phase == "create zones"
    assert result.failed.error.code == "TOPO_INTERNAL_ERROR"
    mutator.create_server.assert_not_awaited()
    assert len(result.applied) == 1


@pytest.mark.asyncio
async def test_failure_within_phase_skips_siblings(mutator):
    desired = DesiredTopology()
    actual = ActualTopology(
        servers=(
            ActualServerRecord(server_id=1, host_name="a", zone_name="z1", pool_name="p1"),
            ActualServerRecord(server_id=2, host_name="b", zone_name="z1", pool_name="p1"),
        ),
    )
    plan = plan_topology(desired, actual)
    mutator.delete_server.side_effect = TransportError("10.0.0.1:6700", "connection refused")

    result = await TopologyApplier(mutator).apply(plan)

    assert [o.status for o in result.outcomes] == [OutcomeStatus.FAILED, OutcomeStatus.SKIPPED]
    mutator.delete_server.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_programming_errors_propagate(replace_plan, mutator):
    mutator.delete_server.side_effect = RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await TopologyApplier(mutator).apply(replace_plan)


@pytest.mark.asyncio
async def test_empty_plan_applies_nothing(desired_s1, actual_s1, mutator):
    plan = plan_topology(desired_s1, actual_s1)

    result = await TopologyApplier(mutator).apply(plan)

    assert result.outcomes == ()
    assert result.succeeded
    assert mutator.method_calls == []


def test_phases_of_groups_operations(replace_plan):
    grouped = phases_of(replace_plan)

    assert [(phase.name, [op.name for op in ops]) for phase, ops in grouped] == [
        ("delete servers", ["old"]),
        ("delete zones", ["z-old"]),
        ("delete pools", ["p-old"]),
        ("create pools", ["p-new"]),
        ("create zones", ["z-new"]),
        ("create servers", ["new"]),
    ]
