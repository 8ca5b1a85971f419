"""Pydantic views of the Syncthing REST API payloads.

Every model keeps fields it does not declare, so a config fetched from the
daemon can be modified and written back without losing daemon-specific
settings.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class SyncthingModel(BaseModel):
    """Base model that retains unknown keys and accepts field or alias names."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_payload(self) -> dict:
        """
        Serialize back to the daemon's JSON shape.

        Only fields that were received or explicitly set are written, so
        defaults never add keys the daemon did not send.
        """
        return self.model_dump(by_alias=True, exclude_unset=True)


class SyncthingDevice(SyncthingModel):
    """A remote device known to the daemon."""
    device_id: str = Field(alias="deviceID")
    name: str = ""
    addresses: List[str] = Field(default_factory=list)
    introducer: bool = False


class FolderDevice(SyncthingModel):
    """A device a folder is shared with."""
    device_id: str = Field(alias="deviceID")


class SyncthingFolder(SyncthingModel):
    """A shared folder definition."""
    id: str
    label: str = ""
    path: str = ""
    devices: List[FolderDevice] = Field(default_factory=list)


class SyncthingConfig(SyncthingModel):
    """The daemon's full configuration object."""
    devices: List[SyncthingDevice] = Field(default_factory=list)
    folders: List[SyncthingFolder] = Field(default_factory=list)


class SystemStatus(SyncthingModel):
    """Response of GET /rest/system/status."""
    my_id: str = Field(alias="myID")


class ConnectionStats(SyncthingModel):
    """Per-device connection telemetry."""
    connected: bool = False
    address: str = ""


class SystemConnections(SyncthingModel):
    """Response of GET /rest/system/connections."""
    connections: Dict[str, ConnectionStats] = Field(default_factory=dict)
