"""
Metaserver client for per-peer copyset status.

Each copyset peer lives on a metaserver, and only that metaserver can tell
the raft state of its replica. The peer address reported by the MDS has the
form "ip:port:index"; the metaserver is reached at "ip:port".

MetaserverClient satisfies PeerStatusSource.
"""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from curvefs_admin.api_types import (
    COPYSET_OP_STATUS_COPYSET_NOTEXIST,
    COPYSET_OP_STATUS_SUCCESS,
    CopysetStatusDetail,
    GetCopysetsStatusResponse,
    is_status,
)
from curvefs_admin.exceptions import TransportError
from curvefs_admin.types import CopysetKey, ReplicaRole, ReplicaStatusRecord

logger = logging.getLogger(__name__)

COPYSET_SERVICE = "curvefs.metaserver.copyset.CopysetService"

# braft node states, by number as some deployments serialize them
RAFT_STATES = {
    1: "STATE_LEADER",
    2: "STATE_TRANSFERRING",
    3: "STATE_CANDIDATE",
    4: "STATE_FOLLOWER",
    5: "STATE_ERROR",
    6: "STATE_UNINITIALIZED",
    7: "STATE_SHUTTING",
    8: "STATE_SHUTDOWN",
}

_ROLE_BY_STATE = {
    "STATE_LEADER": ReplicaRole.LEADER,
    "STATE_TRANSFERRING": ReplicaRole.LEADER,
    "STATE_FOLLOWER": ReplicaRole.FOLLOWER,
    "STATE_LEARNER": ReplicaRole.LEARNER,
    "STATE_CANDIDATE": ReplicaRole.CANDIDATE,
}


def peer_endpoint(peer_address: str) -> str:
    """Strip the raft index from "ip:port:index"."""
    parts = peer_address.split(":")
    if len(parts) >= 3:
        return ":".join(parts[:2])
    return peer_address


def state_name(state: int | str) -> str:
    if isinstance(state, int):
        return RAFT_STATES.get(state, f"STATE_{state}")
    return state


def record_from_status(peer_address: str, detail: CopysetStatusDetail) -> ReplicaStatusRecord:
    """Convert a metaserver copyset status into a ReplicaStatusRecord."""
    state = state_name(detail.state)
    return ReplicaStatusRecord(
        address=peer_address,
        role=_ROLE_BY_STATE.get(state, ReplicaRole.UNKNOWN),
        online=True,
        state=state,
        readonly=detail.readonly,
        last_index=detail.lastIndex,
    )


@dataclass
class MetaserverClient:
    """
    Copyset status client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient without base_url; every call
            targets the metaserver hosting the peer.
    """

    http: httpx.AsyncClient

    async def get_copyset_status(
        self, peer_address: str, key: CopysetKey
    ) -> ReplicaStatusRecord:
        """
        Ask one peer for its raft status in a copyset.

        Returns:
            Online record when the peer answered successfully, offline record
            carrying the op status when the peer refused.

        Raises:
            TransportError: If the metaserver cannot be reached or answers
                with something unparseable.
        """
        endpoint = peer_endpoint(peer_address)
        url = f"http://{endpoint}/{COPYSET_SERVICE}/GetCopysetsStatus"
        body = {"copysets": [{"poolId": key.pool_id, "copysetId": key.copyset_id}]}
        logger.debug("POST %s %s", url, body)

        try:
            response = await self.http.post(url, json=body)
            response.raise_for_status()
            data = GetCopysetsStatusResponse.model_validate(response.json())
        except httpx.HTTPError as e:
            raise TransportError(endpoint, str(e) or type(e).__name__) from e
        except (ValidationError, ValueError) as e:
            raise TransportError(endpoint, f"malformed GetCopysetsStatus response: {e}") from e

        if not data.status:
            return ReplicaStatusRecord(
                address=peer_address, online=False, error="empty copyset status response"
            )

        entry = data.status[0]
        if is_status(entry.status, COPYSET_OP_STATUS_COPYSET_NOTEXIST):
            return ReplicaStatusRecord(
                address=peer_address, online=False, error="copyset not loaded on peer"
            )
        if not is_status(entry.status, COPYSET_OP_STATUS_SUCCESS) or entry.copysetStatus is None:
            return ReplicaStatusRecord(
                address=peer_address,
                online=False,
                error=f"copyset op status {entry.status}",
            )
        return record_from_status(peer_address, entry.copysetStatus)
