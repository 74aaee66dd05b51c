"""Shared fixtures for the CurveFS admin tests."""

import pytest
from unittest.mock import AsyncMock

from curvefs_admin.protocols import TopologyMutator
from curvefs_admin.types import (
    ActualPoolRecord,
    ActualServerRecord,
    ActualTopology,
    ActualZoneRecord,
    DesiredTopology,
    PoolSpec,
    ReplicaRole,
    ReplicaStatusRecord,
    ServerSpec,
)


@pytest.fixture
def s1():
    """Desired server s1 in z1/p1."""
    return ServerSpec(
        host_name="s1",
        zone_name="z1",
        pool_name="p1",
        internal_ip="10.0.0.1",
        internal_port=16701,
        external_ip="10.0.0.1",
        external_port=16701,
    )


@pytest.fixture
def p1():
    return PoolSpec(name="p1", replicas=3, copysets=100, zones=3)


@pytest.fixture
def desired_s1(s1, p1):
    """Desired layout with one pool, one zone and one server."""
    return DesiredTopology(servers=(s1,), pools=(p1,))


@pytest.fixture
def actual_s1():
    """Registered layout matching desired_s1."""
    return ActualTopology(
        pools=(ActualPoolRecord(pool_id=1, name="p1"),),
        zones=(ActualZoneRecord(zone_id=1, name="z1", pool_name="p1"),),
        servers=(
            ActualServerRecord(
                server_id=1,
                host_name="s1",
                zone_name="z1",
                pool_name="p1",
                internal_ip="10.0.0.1",
                internal_port=16701,
                external_ip="10.0.0.1",
                external_port=16701,
            ),
        ),
    )


@pytest.fixture
def mutator():
    """TopologyMutator fake. Creates return ids 1, 2, 3, ..."""
    fake = AsyncMock(spec=TopologyMutator)
    ids = iter(range(1, 1000))
    fake.create_pool.side_effect = lambda spec: next(ids)
    fake.create_zone.side_effect = lambda spec: next(ids)
    fake.create_server.side_effect = lambda spec: next(ids)
    return fake


@pytest.fixture
def healthy_peers():
    """Three online peers with exactly one leader."""
    return frozenset(
        {
            ReplicaStatusRecord(
                address="10.0.0.1:6800:0",
                role=ReplicaRole.LEADER,
                state="STATE_LEADER",
                last_index=100,
            ),
            ReplicaStatusRecord(
                address="10.0.0.2:6800:0",
                role=ReplicaRole.FOLLOWER,
                state="STATE_FOLLOWER",
                last_index=100,
            ),
            ReplicaStatusRecord(
                address="10.0.0.3:6800:0",
                role=ReplicaRole.FOLLOWER,
                state="STATE_FOLLOWER",
                last_index=99,
            ),
        }
    )
