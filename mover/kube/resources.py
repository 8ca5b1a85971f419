"""
Cluster resources needed to run the Syncthing daemon.

Each ensure_* call looks the object up and creates it with a fixed spec when
it is missing. Existing objects are returned as-is; their spec is never
updated.
"""

import base64
import binascii
import secrets
from typing import Any, Dict, Optional

from common.constants import (
    API_KEY_ENV,
    API_KEY_SECRET_FIELD,
    API_KEY_SECRET_NAME,
    API_SERVICE_NAME,
    APP_LABEL_NAME,
    CONFIG_DIR_ENV,
    CONFIG_DIR_MOUNT_PATH,
    CONFIG_PVC_NAME,
    CONFIG_VOLUME_NAME,
    DATA_DIR_ENV,
    DATA_DIR_MOUNT_PATH,
    DATA_SERVICE_NAME,
    DATA_VOLUME_NAME,
    SYNCTHING_API_PORT,
    SYNCTHING_CONTAINER_NAME,
    SYNCTHING_DATA_PORT,
    SYNCTHING_JOB_NAME,
)
from common.logging_config import get_logger
from mover.config import (
    CONFIG_PVC_SIZE,
    JOB_TTL_SECONDS,
    SYNCTHING_CONTAINER_IMAGE,
    SYNCTHING_CPU_LIMIT,
    SYNCTHING_MEMORY_LIMIT,
)
from mover.exceptions import ClusterAPIError, MissingPreconditionError, ResourceNotFoundError
from mover.kube.client import KubeClient

logger = get_logger(__name__)

APP_LABELS = {"app": APP_LABEL_NAME}


def _metadata(name: str, namespace: str) -> Dict[str, Any]:
    return {"name": name, "namespace": namespace, "labels": dict(APP_LABELS)}


def generate_api_key() -> str:
    """Random key for the daemon's REST API."""
    return secrets.token_urlsafe(32)


def config_pvc_manifest(namespace: str) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": _metadata(CONFIG_PVC_NAME, namespace),
        "spec": {
            "accessModes": ["ReadWriteOnce"],
            "resources": {"requests": {"storage": CONFIG_PVC_SIZE}},
        },
    }


def api_key_secret_manifest(namespace: str, api_key: str) -> Dict[str, Any]:
    encoded = base64.b64encode(api_key.encode("utf-8")).decode("ascii")
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _metadata(API_KEY_SECRET_NAME, namespace),
        "type": "Opaque",
        "data": {API_KEY_SECRET_FIELD: encoded},
    }


def job_manifest(namespace: str, data_pvc_name: str) -> Dict[str, Any]:
    """
    Job running the Syncthing container with the config and data volumes mounted.

    The API key is injected from the secret so the daemon and the mover share it.
    """
    container = {
        "name": SYNCTHING_CONTAINER_NAME,
        "image": SYNCTHING_CONTAINER_IMAGE,
        "command": ["/entry.sh"],
        "args": ["run"],
        "env": [
            {"name": CONFIG_DIR_ENV, "value": CONFIG_DIR_MOUNT_PATH},
            {"name": DATA_DIR_ENV, "value": DATA_DIR_MOUNT_PATH},
            {
                "name": API_KEY_ENV,
                "valueFrom": {
                    "secretKeyRef": {"name": API_KEY_SECRET_NAME, "key": API_KEY_SECRET_FIELD}
                },
            },
        ],
        "imagePullPolicy": "Always",
        "ports": [
            {"containerPort": SYNCTHING_API_PORT},
            {"containerPort": SYNCTHING_DATA_PORT},
        ],
        "volumeMounts": [
            {"name": CONFIG_VOLUME_NAME, "mountPath": CONFIG_DIR_MOUNT_PATH},
            {"name": DATA_VOLUME_NAME, "mountPath": DATA_DIR_MOUNT_PATH},
        ],
        "resources": {
            "limits": {"cpu": SYNCTHING_CPU_LIMIT, "memory": SYNCTHING_MEMORY_LIMIT},
        },
    }
    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": _metadata(SYNCTHING_JOB_NAME, namespace),
        "spec": {
            "ttlSecondsAfterFinished": JOB_TTL_SECONDS,
            "template": {
                "metadata": {"labels": dict(APP_LABELS)},
                "spec": {
                    "restartPolicy": "Never",
                    "containers": [container],
                    "volumes": [
                        {
                            "name": CONFIG_VOLUME_NAME,
                            "persistentVolumeClaim": {"claimName": CONFIG_PVC_NAME},
                        },
                        {
                            "name": DATA_VOLUME_NAME,
                            "persistentVolumeClaim": {"claimName": data_pvc_name},
                        },
                    ],
                },
            },
        },
    }


def service_manifest(name: str, namespace: str, port: int, service_type: Optional[str] = None) -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "selector": dict(APP_LABELS),
        "ports": [{"port": port, "targetPort": port, "protocol": "TCP"}],
    }
    if service_type:
        spec["type"] = service_type
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(name, namespace),
        "spec": spec,
    }


def ingress_address(service: Dict[str, Any]) -> str:
    """
    External data address of a load-balanced service.

    Returns:
        "tcp://<ip-or-hostname>:22000", or an empty string until the load
        balancer has assigned an ingress
    """
    ingress = service.get("status", {}).get("loadBalancer", {}).get("ingress") or []
    if not ingress:
        return ""
    host = ingress[0].get("ip") or ingress[0].get("hostname")
    if not host:
        return ""
    return f"tcp://{host}:{SYNCTHING_DATA_PORT}"


class ResourceDriver:
    """
    Ensures the Syncthing resources exist in the mover's namespace.
    """

    def __init__(self, client: KubeClient, namespace: str, data_pvc_name: str):
        self.client = client
        self.namespace = namespace
        self.data_pvc_name = data_pvc_name

    async def _ensure(self, kind: str, manifest: Dict[str, Any]) -> Dict[str, Any]:
        name = manifest["metadata"]["name"]
        try:
            existing = await self.client.get(kind, self.namespace, name)
            logger.debug(f"{kind} already exists: {name}")
            return existing
        except ResourceNotFoundError:
            pass

        created = await self.client.create(kind, self.namespace, manifest)
        logger.info(f"Created {kind} {self.namespace}/{name}")
        return created

    async def ensure_data_pvc(self) -> Dict[str, Any]:
        """
        Look up the caller-provisioned data volume claim.

        Raises:
            MissingPreconditionError: If the claim does not exist
        """
        logger.debug(f"Checking for PVC {self.data_pvc_name}")
        try:
            return await self.client.get("PersistentVolumeClaim", self.namespace, self.data_pvc_name)
        except ResourceNotFoundError as e:
            raise MissingPreconditionError(
                f"Data PVC {self.namespace}/{self.data_pvc_name} does not exist"
            ) from e

    async def ensure_config_pvc(self) -> Dict[str, Any]:
        return await self._ensure("PersistentVolumeClaim", config_pvc_manifest(self.namespace))

    async def ensure_api_key_secret(self) -> Dict[str, Any]:
        """Ensure the API key secret exists, generating a new key on creation."""
        name = API_KEY_SECRET_NAME
        try:
            return await self.client.get("Secret", self.namespace, name)
        except ResourceNotFoundError:
            pass

        manifest = api_key_secret_manifest(self.namespace, generate_api_key())
        created = await self.client.create("Secret", self.namespace, manifest)
        logger.info(f"Created Secret {self.namespace}/{name}")
        return created

    async def read_api_key(self) -> str:
        """
        Read the daemon's API key from the secret.

        Raises:
            ClusterAPIError: If the secret cannot be read or its key field is not valid base64 text
        """
        secret = await self.client.get("Secret", self.namespace, API_KEY_SECRET_NAME)
        encoded = (secret.get("data") or {}).get(API_KEY_SECRET_FIELD, "")
        try:
            return base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ClusterAPIError(
                f"Secret {self.namespace}/{API_KEY_SECRET_NAME} has malformed field '{API_KEY_SECRET_FIELD}': {e}"
            ) from e

    async def ensure_job(self) -> Dict[str, Any]:
        return await self._ensure("Job", job_manifest(self.namespace, self.data_pvc_name))

    async def ensure_api_service(self) -> Dict[str, Any]:
        return await self._ensure(
            "Service", service_manifest(API_SERVICE_NAME, self.namespace, SYNCTHING_API_PORT)
        )

    async def ensure_data_service(self) -> Dict[str, Any]:
        return await self._ensure(
            "Service",
            service_manifest(DATA_SERVICE_NAME, self.namespace, SYNCTHING_DATA_PORT, "LoadBalancer")
        )
