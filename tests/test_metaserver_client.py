"""
Tests for the metaserver copyset status client.

These tests verify the MetaserverClient correctly:
- Maps raft states to replica roles
- Reaches the metaserver at "ip:port" for a peer "ip:port:index"
- Reports refused copyset lookups as offline records
- Raises TransportError on unreachable metaservers
"""

import json

import httpx
import pytest
from httpx import Request, Response

from curvefs_admin.exceptions import TransportError
from curvefs_admin.metaserver_client import MetaserverClient, peer_endpoint, state_name
from curvefs_admin.types import CopysetKey, ReplicaRole

PATH = "/curvefs.metaserver.copyset.CopysetService/GetCopysetsStatus"
PEER = "10.0.0.1:6800:0"
KEY = CopysetKey(pool_id=1, copyset_id=7)


class MockTransport(httpx.AsyncBaseTransport):
    """Mock transport answering every request with one JSON body."""

    def __init__(self, data: dict | None, status_code: int = 200):
        self._data = data
        self._status_code = status_code
        self.requests: list[Request] = []

    async def handle_async_request(self, request: Request) -> Response:
        self.requests.append(request)
        if self._data is None:
            raise httpx.ConnectTimeout("timed out", request=request)
        return Response(status_code=self._status_code, json=self._data, request=request)


def _client(data: dict | None, status_code: int = 200) -> tuple[MetaserverClient, MockTransport]:
    transport = MockTransport(data, status_code)
    return MetaserverClient(http=httpx.AsyncClient(transport=transport)), transport


def _status(state, **detail) -> dict:
    return {
        "status": [
            {
                "status": "COPYSET_OP_STATUS_SUCCESS",
                "copysetStatus": {"state": state, **detail},
            }
        ]
    }


@pytest.mark.asyncio
async def test_leader_status():
    client, transport = _client(
        _status("STATE_LEADER", readonly=False, lastIndex=120)
    )

    record = await client.get_copyset_status(PEER, KEY)

    assert record.address == PEER
    assert record.online
    assert record.role == ReplicaRole.LEADER
    assert record.state == "STATE_LEADER"
    assert record.last_index == 120

    request = transport.requests[0]
    assert request.url.host == "10.0.0.1"
    assert request.url.port == 6800
    assert request.url.path == PATH
    assert json.loads(request.content) == {"copysets": [{"poolId": 1, "copysetId": 7}]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "state,role",
    [
        ("STATE_FOLLOWER", ReplicaRole.FOLLOWER),
        ("STATE_TRANSFERRING", ReplicaRole.LEADER),
        ("STATE_CANDIDATE", ReplicaRole.CANDIDATE),
        ("STATE_ERROR", ReplicaRole.UNKNOWN),
        (4, ReplicaRole.FOLLOWER),
    ],
)
async def test_role_mapping(state, role):
    client, _ = _client(_status(state))

    record = await client.get_copyset_status(PEER, KEY)

    assert record.role == role


@pytest.mark.asyncio
async def test_readonly_peer():
    client, _ = _client(_status("STATE_FOLLOWER", readonly=True))

    assert (await client.get_copyset_status(PEER, KEY)).readonly


@pytest.mark.asyncio
async def test_copyset_missing_on_peer_is_offline():
    client, _ = _client({"status": [{"status": "COPYSET_OP_STATUS_COPYSET_NOTEXIST"}]})

    record = await client.get_copyset_status(PEER, KEY)

    assert not record.online
    assert record.error == "copyset not loaded on peer"


@pytest.mark.asyncio
async def test_copyset_missing_on_peer_by_number():
    client, _ = _client({"status": [{"status": 2}]})

    record = await client.get_copyset_status(PEER, KEY)

    assert not record.online
    assert record.error == "copyset not loaded on peer"


@pytest.mark.asyncio
async def test_other_op_status_is_offline():
    client, _ = _client({"status": [{"status": "COPYSET_OP_STATUS_FAILURE_UNKNOWN"}]})

    record = await client.get_copyset_status(PEER, KEY)

    assert not record.online
    assert record.error == "copyset op status COPYSET_OP_STATUS_FAILURE_UNKNOWN"


@pytest.mark.asyncio
async def test_empty_answer_is_offline():
    client, _ = _client({"status": []})

    record = await client.get_copyset_status(PEER, KEY)

    assert not record.online
    assert record.error == "empty copyset status response"


@pytest.mark.asyncio
async def test_unreachable_metaserver_raises():
    client, _ = _client(None)

    with pytest.raises(TransportError) as exc_info:
        await client.get_copyset_status(PEER, KEY)

    assert exc_info.value.target == "10.0.0.1:6800"


@pytest.mark.asyncio
async def test_http_error_raises():
    client, _ = _client({}, status_code=500)

    with pytest.raises(TransportError):
        await client.get_copyset_status(PEER, KEY)


def test_peer_endpoint():
    assert peer_endpoint("10.0.0.1:6800:0") == "10.0.0.1:6800"
    assert peer_endpoint("10.0.0.1:6800") == "10.0.0.1:6800"


def test_state_name():
    assert state_name(1) == "STATE_LEADER"
    assert state_name("STATE_FOLLOWER") == "STATE_FOLLOWER"
    assert state_name(42) == "STATE_42"
