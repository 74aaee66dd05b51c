"""
Copyset status collection.

For every requested copyset:
1. Ask the MDS for the copyset's peers (None when it does not exist)
2. Ask every peer's metaserver for its raft status, concurrently

Both levels fan out through gather_keyed(). A peer that cannot be reached
becomes an offline ReplicaStatusRecord carrying the error, so one dead
metaserver degrades the copyset's verdict instead of hiding it. Only a
failure to learn the peer list makes a copyset's status unknown.
"""

import logging
from collections.abc import Iterable

from curvefs_admin.fanout import Fetched, gather_keyed
from curvefs_admin.protocols import CopysetInfoSource, PeerStatusSource
from curvefs_admin.types import CopysetKey, CopysetStatus, ReplicaStatusRecord

logger = logging.getLogger(__name__)


class CopysetStatusCollector:
    """
    Collects peer records of copysets from the MDS and the metaservers.

    Attributes:
        timeout: Seconds each peer may take to answer (None = unbounded)

    Example:
        collector = CopysetStatusCollector(mds=mds, metaservers=metaservers, timeout=10.0)
        fetched = await collector.fetch_all([CopysetKey(1, 1), CopysetKey(1, 2)])
        statuses = {k: f.value for k, f in fetched.items() if f.ok}
    """

    def __init__(
        self,
        mds: CopysetInfoSource,
        metaservers: PeerStatusSource,
        timeout: float | None = None,
    ) -> None:
        self._mds = mds
        self._metaservers = metaservers
        self.timeout = timeout

    async def fetch_copyset_status(self, key: CopysetKey) -> CopysetStatus:
        """
        Collect peer records of one copyset.

        Returns:
            Frozenset of peer records, or None if the copyset does not exist.

        Raises:
            TransportError / ControlPlaneError: If the peer list cannot be fetched.
        """
        peers = await self._mds.get_copyset_peers(key)
        if peers is None:
            logger.debug("copyset %s does not exist", key)
            return None

        results = await gather_keyed(
            {
                peer: (lambda peer=peer: self._metaservers.get_copyset_status(peer, key))
                for peer in peers
            },
            timeout=self.timeout,
        )

        records: set[ReplicaStatusRecord] = set()
        for peer, fetched in results.items():
            if fetched.ok:
                records.add(fetched.value)
            else:
                records.add(
                    ReplicaStatusRecord(address=peer, online=False, error=str(fetched.error))
                )
        return frozenset(records)

    async def fetch_all(
        self, keys: Iterable[CopysetKey]
    ) -> dict[CopysetKey, Fetched[CopysetStatus]]:
        """
        Collect many copysets concurrently.

        Returns:
            One Fetched per distinct key. A failed entry means the copyset's
            membership could not be learned.
        """
        calls = {
            key: (lambda key=key: self.fetch_copyset_status(key)) for key in dict.fromkeys(keys)
        }
        return await gather_keyed(calls)
