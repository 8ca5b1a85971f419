"""Syncthing REST API client and payload models."""

from mover.syncthing.api_client import SyncthingClient
from mover.syncthing.models import (
    ConnectionStats,
    FolderDevice,
    SyncthingConfig,
    SyncthingDevice,
    SyncthingFolder,
    SystemConnections,
    SystemStatus,
)

__all__ = [
    "SyncthingClient",
    "ConnectionStats",
    "FolderDevice",
    "SyncthingConfig",
    "SyncthingDevice",
    "SyncthingFolder",
    "SystemConnections",
    "SystemStatus",
]
