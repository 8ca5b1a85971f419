"""Shared data type definitions (Peer, PeerStatus, MoverStatus)."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Peer:
    """
    A remote endpoint the local instance should synchronize with.

    An empty id marks a pending peer: its address is known but the daemon
    identity has not been resolved yet.
    """
    id: str
    address: str = ""
    introducer: bool = False


@dataclass(frozen=True)
class PeerStatus:
    """
    Observed connectivity for one desired peer.
    """
    id: str
    address: str
    connected: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"ID": self.id, "address": self.address, "connected": self.connected}


@dataclass
class MoverStatus:
    """
    Caller-facing status record written by each convergence pass.

    Attributes:
        device_id: Identity the local daemon reports for itself
        peers: Connectivity of every managed peer
        address: Externally reachable data endpoint, empty until assigned
    """
    device_id: str = ""
    peers: List[PeerStatus] = field(default_factory=list)
    address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceID": self.device_id,
            "peers": [peer.to_dict() for peer in self.peers],
            "address": self.address,
        }
