"""Aggregation of connection telemetry into per-peer status."""

from typing import List

from common.types import Peer, PeerStatus
from mover.syncthing.models import SystemConnections


def aggregate_peer_status(
    desired_peers: List[Peer],
    self_id: str,
    connections: SystemConnections
) -> List[PeerStatus]:
    """
    Build one status entry per managed peer, in desired order.

    Pending peers and the local daemon are skipped. A peer missing from the
    telemetry is reported as not connected. Repeated peers get one entry each.
    """
    statuses = []
    for peer in desired_peers:
        if not peer.id or peer.id == self_id:
            continue
        stats = connections.connections.get(peer.id)
        statuses.append(
            PeerStatus(
                id=peer.id,
                address=peer.address,
                connected=stats is not None and stats.connected
            )
        )
    return statuses
