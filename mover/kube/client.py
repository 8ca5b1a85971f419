"""Minimal async client for the Kubernetes REST API."""

from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from common.logging_config import get_logger
from mover.config import (
    KUBERNETES_CA_PATH,
    KUBERNETES_REQUEST_TIMEOUT,
    KUBERNETES_SERVICE_HOST,
    KUBERNETES_SERVICE_PORT,
    KUBERNETES_TOKEN_PATH,
)
from mover.exceptions import ClusterAPIError, ResourceNotFoundError

logger = get_logger(__name__)

RESOURCE_PATHS = {
    "PersistentVolumeClaim": ("/api/v1", "persistentvolumeclaims"),
    "Secret": ("/api/v1", "secrets"),
    "Service": ("/api/v1", "services"),
    "Job": ("/apis/batch/v1", "jobs"),
}


def in_cluster_base_url() -> str:
    """API server URL as seen from inside a pod."""
    return f"https://{KUBERNETES_SERVICE_HOST}:{KUBERNETES_SERVICE_PORT}"


class KubeClient:
    """
    Reads and creates namespaced objects through the API server.

    Only the GET and POST verbs are needed: objects are looked up and, when
    missing, created once with a fixed spec.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        verify: Any = None
    ):
        """
        Initialize the client.

        Args:
            base_url: API server URL (defaults to the in-cluster address)
            token: Bearer token (defaults to the mounted service-account token, if any)
            verify: TLS verification setting (defaults to the mounted service-account CA)
        """
        self.base_url = base_url or in_cluster_base_url()
        if token is None:
            token_file = Path(KUBERNETES_TOKEN_PATH)
            if token_file.exists():
                token = token_file.read_text().strip()
        if verify is None:
            verify = KUBERNETES_CA_PATH if Path(KUBERNETES_CA_PATH).exists() else True

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=KUBERNETES_REQUEST_TIMEOUT,
            verify=verify
        )

    async def close(self):
        """Close the underlying HTTP session."""
        await self.session.aclose()

    @staticmethod
    def _collection_path(kind: str, namespace: str) -> str:
        if kind not in RESOURCE_PATHS:
            raise ValueError(f"Unsupported resource kind: {kind}")
        prefix, plural = RESOURCE_PATHS[kind]
        return f"{prefix}/namespaces/{namespace}/{plural}"

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.session.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ClusterAPIError(f"Kubernetes API request {method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise ResourceNotFoundError(f"Not found: {path}")
        if response.status_code >= 400:
            raise ClusterAPIError(
                f"Kubernetes API request {method} {path} returned status {response.status_code}: {response.text}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ClusterAPIError(f"Invalid JSON from Kubernetes API {method} {path}: {e}") from e

    async def get(self, kind: str, namespace: str, name: str) -> Dict[str, Any]:
        """
        Fetch a namespaced object.

        Raises:
            ResourceNotFoundError: If the object does not exist
            ClusterAPIError: If the API server cannot be reached or rejects the request
        """
        return await self._request("GET", f"{self._collection_path(kind, namespace)}/{name}")

    async def create(self, kind: str, namespace: str, manifest: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a namespaced object and return it as stored by the API server.

        Raises:
            ClusterAPIError: If creation fails
        """
        created = await self._request("POST", self._collection_path(kind, namespace), json=manifest)
        logger.debug(f"Created {kind} {namespace}/{manifest['metadata']['name']}")
        return created
