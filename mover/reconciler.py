"""
Peer configuration reconciliation.

Decides whether the daemon's device list matches the desired peers and
computes the next device and folder lists when it does not. Folder share
lists are a derived view of the device list and are rebuilt from scratch.
"""

from typing import Iterable, List, Set

from common.constants import DYNAMIC_ADDRESS
from common.types import Peer
from mover.syncthing.models import FolderDevice, SyncthingDevice, SyncthingFolder


def desired_device_ids(desired_peers: Iterable[Peer], self_id: str) -> Set[str]:
    """
    Identities that should be configured as remote devices.

    Pending peers (empty id) and the local daemon itself are excluded.
    """
    return {peer.id for peer in desired_peers if peer.id and peer.id != self_id}


def needs_reconfigure(
    current_devices: List[SyncthingDevice],
    desired_peers: List[Peer],
    self_id: str
) -> bool:
    """
    Check whether the configured devices differ from the desired peers.

    Only identities are compared; ordering and unrelated device fields are
    ignored. A device listed more than once also needs reconfiguration.

    Args:
        current_devices: Devices currently in the daemon's config
        desired_peers: Peers the caller wants to sync with
        self_id: Identity of the local daemon

    Returns:
        True if devices must be added, removed or deduplicated
    """
    all_ids = [device.device_id for device in current_devices]
    if len(all_ids) != len(set(all_ids)):
        return True
    configured = {device_id for device_id in all_ids if device_id != self_id}
    return configured != desired_device_ids(desired_peers, self_id)


def device_name_for(peer: Peer) -> str:
    """Display name for a device created from a desired peer."""
    return f"syncthing-peer-{peer.id.split('-')[0].lower()}"


def update_devices(
    current_devices: List[SyncthingDevice],
    desired_peers: List[Peer],
    self_id: str
) -> List[SyncthingDevice]:
    """
    Compute the device list that matches the desired peers.

    Devices that are kept (including the self device) are returned unmodified,
    so daemon-specific settings survive. The address of an existing device is
    not refreshed from the desired peer. When the daemon lists an identity
    more than once, only the first entry is kept.

    Args:
        current_devices: Devices currently in the daemon's config
        desired_peers: Peers the caller wants to sync with
        self_id: Identity of the local daemon

    Returns:
        Retained devices in their original order, followed by new devices in desired order
    """
    wanted = desired_device_ids(desired_peers, self_id)

    devices = []
    configured = set()
    for device in current_devices:
        if device.device_id in configured:
            continue
        if device.device_id == self_id or device.device_id in wanted:
            devices.append(device)
            configured.add(device.device_id)

    for peer in desired_peers:
        if not peer.id or peer.id == self_id or peer.id in configured:
            continue
        devices.append(
            SyncthingDevice(
                device_id=peer.id,
                name=device_name_for(peer),
                addresses=[peer.address or DYNAMIC_ADDRESS],
                introducer=peer.introducer
            )
        )
        configured.add(peer.id)

    return devices


def update_folders(
    folders: List[SyncthingFolder],
    devices: List[SyncthingDevice],
    self_id: str
) -> List[SyncthingFolder]:
    """
    Share every folder with self and exactly the given devices.

    Self is placed first when the device list does not contain it. Existing
    share entries for devices that remain are reused so their extra fields
    (e.g., encryption passwords) are kept.

    Args:
        folders: Folders currently in the daemon's config
        devices: Device list produced by update_devices
        self_id: Identity of the local daemon

    Returns:
        New folder objects with rewritten share lists
    """
    device_ids = [device.device_id for device in devices]
    if self_id and self_id not in device_ids:
        device_ids.insert(0, self_id)

    updated = []
    for folder in folders:
        existing = {entry.device_id: entry for entry in folder.devices}
        shared = []
        seen = set()
        for device_id in device_ids:
            if device_id in seen:
                continue
            seen.add(device_id)
            shared.append(existing.get(device_id) or FolderDevice(device_id=device_id))
        updated.append(folder.model_copy(update={"devices": shared}))
    return updated
