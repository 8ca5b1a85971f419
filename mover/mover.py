"""
Convergence orchestration for the Syncthing mover.

One call to synchronize() is a full pass: it ensures the cluster resources,
brings the daemon's device and folder configuration in line with the
desired peers, and refreshes the status record. Every pass re-derives its
state from the cluster and the daemon, so an abandoned pass is simply run
again.
"""

from typing import List, Optional

from common.constants import API_SERVICE_NAME, SYNCTHING_API_PORT
from common.logging_config import get_logger
from common.types import MoverStatus, Peer
from mover.config import SYNC_INTERVAL_SECONDS, SYNCTHING_API_URL
from mover.exceptions import DaemonAuthenticationError, MissingPreconditionError, MoverException
from mover.kube.client import KubeClient
from mover.kube.resources import ResourceDriver, ingress_address
from mover.reconciler import needs_reconfigure, update_devices, update_folders
from mover.result import Result
from mover.status import aggregate_peer_status
from mover.syncthing.api_client import SyncthingClient

logger = get_logger(__name__)


def default_api_url(namespace: str) -> str:
    """URL of the daemon's REST API through its in-cluster service."""
    return f"https://{API_SERVICE_NAME}.{namespace}.svc:{SYNCTHING_API_PORT}"


class SyncthingMover:
    """
    Drives a Syncthing instance toward the desired peer set.

    The API key read from the cluster is cached until the daemon rejects it,
    after which the next pass reads the secret again. The status record is
    owned by this instance and rewritten by every successful pass.
    """

    name = "syncthing"

    def __init__(
        self,
        kube_client: KubeClient,
        namespace: str,
        data_pvc_name: str,
        peers: List[Peer],
        status: Optional[MoverStatus] = None,
        syncthing_client: Optional[SyncthingClient] = None,
        sync_interval: float = SYNC_INTERVAL_SECONDS
    ):
        """
        Initialize the mover.

        Args:
            kube_client: Client for the namespace's Kubernetes objects
            namespace: Namespace all resources live in
            data_pvc_name: Caller-provisioned volume claim to replicate
            peers: Desired peers, possibly including self or pending entries
            status: Status record to update (a new one is created if omitted)
            syncthing_client: Daemon client (built from SYNCTHING_API_URL or the API service if omitted)
            sync_interval: Delay before the next pass after a successful one
        """
        self.namespace = namespace
        self.peers = list(peers)
        self.status = status if status is not None else MoverStatus()
        self.sync_interval = sync_interval
        self.resources = ResourceDriver(kube_client, namespace, data_pvc_name)
        self._api_key: Optional[str] = None

        if syncthing_client is None:
            syncthing_client = SyncthingClient(
                SYNCTHING_API_URL or default_api_url(namespace),
                self._get_api_key
            )
        self.syncthing = syncthing_client

    async def _get_api_key(self) -> str:
        if not self._api_key:
            self._api_key = await self.resources.read_api_key()
        return self._api_key

    async def synchronize(self) -> Result:
        """
        Run one convergence pass.

        Returns:
            A retry-after result on success, or an in-progress result carrying
            the error that stopped the pass
        """
        try:
            await self._ensure_resources()
            await self._ensure_is_configured()
            await self._ensure_status_is_updated()
        except MissingPreconditionError as e:
            logger.error(f"Syncthing mover cannot proceed: {e}")
            return Result.in_progress(error=e)
        except DaemonAuthenticationError as e:
            logger.warning(f"Syncthing rejected the cached API key, it will be re-read: {e}")
            self._api_key = None
            return Result.in_progress(error=e)
        except MoverException as e:
            logger.warning(f"Syncthing pass did not complete: {e}")
            return Result.in_progress(error=e)

        return Result.retry_after_delay(self.sync_interval)

    async def cleanup(self) -> Result:
        """Nothing is created per iteration, so there is nothing to remove."""
        return Result.complete()

    async def close(self):
        await self.syncthing.close()

    async def _ensure_resources(self):
        await self.resources.ensure_data_pvc()
        await self.resources.ensure_config_pvc()
        await self.resources.ensure_api_key_secret()
        await self.resources.ensure_job()
        await self.resources.ensure_api_service()

        data_service = await self.resources.ensure_data_service()
        address = ingress_address(data_service)
        if address:
            self.status.address = address

    async def _ensure_is_configured(self) -> bool:
        """
        Push a new device and folder configuration if the peers changed.

        Returns:
            True if the daemon was reconfigured
        """
        config = await self.syncthing.get_config()
        system_status = await self.syncthing.get_system_status()
        self_id = system_status.my_id

        if not needs_reconfigure(config.devices, self.peers, self_id):
            logger.debug("Syncthing configuration already matches desired peers")
            return False

        logger.info("Syncthing needs reconfiguration")
        devices = update_devices(config.devices, self.peers, self_id)
        folders = update_folders(config.folders, devices, self_id)
        updated = config.model_copy(update={"devices": devices, "folders": folders})

        confirmed = await self.syncthing.update_config(updated)
        logger.info(
            f"Syncthing reconfigured [devices={len(confirmed.devices)}, folders={len(confirmed.folders)}]"
        )
        return True

    async def _ensure_status_is_updated(self):
        system_status = await self.syncthing.get_system_status()
        connections = await self.syncthing.get_connections()

        self.status.device_id = system_status.my_id
        self.status.peers = aggregate_peer_status(self.peers, system_status.my_id, connections)
