"""HTTP client for the Syncthing REST API."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from common.logging_config import get_logger
from mover.config import (
    SYNCTHING_MAX_RETRIES,
    SYNCTHING_REQUEST_TIMEOUT,
    SYNCTHING_RETRY_BACKOFF,
    SYNCTHING_VERIFY_TLS,
)
from mover.exceptions import DaemonAuthenticationError, DaemonResponseError, DaemonUnavailableError
from mover.syncthing.models import SyncthingConfig, SystemConnections, SystemStatus

logger = get_logger(__name__)

CONFIG_ENDPOINT = "/rest/config"
SYSTEM_STATUS_ENDPOINT = "/rest/system/status"
SYSTEM_CONNECTIONS_ENDPOINT = "/rest/system/connections"


class SyncthingClient:
    """
    Async client for the daemon's control API.

    The API key is resolved through api_key_loader on every request so the
    owner decides how (and for how long) it is cached.
    """

    def __init__(
        self,
        base_url: str,
        api_key_loader: Callable[[], Awaitable[str]],
        max_retries: int = SYNCTHING_MAX_RETRIES,
        retry_backoff: float = SYNCTHING_RETRY_BACKOFF
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the Syncthing REST API (e.g., https://syncthing-api.ns.svc:8384)
            api_key_loader: Coroutine function returning the API key
            max_retries: Retry attempts for network failures and 5xx responses
            retry_backoff: Backoff base in seconds between retries
        """
        self.base_url = base_url
        self.api_key_loader = api_key_loader
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.session = httpx.AsyncClient(
            base_url=base_url,
            timeout=SYNCTHING_REQUEST_TIMEOUT,
            verify=SYNCTHING_VERIFY_TLS
        )

    async def close(self):
        """Close the underlying HTTP session."""
        await self.session.aclose()

    async def _headers(self) -> dict:
        api_key = await self.api_key_loader()
        return {
            "X-API-Key": api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, endpoint: str, body: Optional[dict] = None) -> Any:
        """
        Make an authenticated request and return the decoded JSON body.

        Network failures and 5xx responses are retried; anything else that is
        not a 2xx response fails immediately.

        Raises:
            DaemonAuthenticationError: If the daemon rejects the API key
            DaemonUnavailableError: If the daemon is unreachable or returns an error status
            DaemonResponseError: If the response body is not valid JSON
        """
        headers = await self._headers()
        last_error: Optional[str] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, headers=headers, json=body)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = f"{type(e).__name__}: {e}"
                if attempt < self.max_retries:
                    delay = self.retry_backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                break
            except httpx.HTTPError as e:
                raise DaemonUnavailableError(f"Syncthing request {method} {endpoint} failed: {e}") from e

            logger.debug(f"Response received: {method} {endpoint} status={response.status_code}")

            if response.status_code >= 500 and attempt < self.max_retries:
                delay = self.retry_backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s"
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code in (401, 403):
                raise DaemonAuthenticationError(
                    f"Syncthing rejected the API key for {method} {endpoint}: status {response.status_code}"
                )

            if response.status_code >= 400:
                raise DaemonUnavailableError(
                    f"Syncthing request {method} {endpoint} returned status {response.status_code}: {response.text}"
                )

            if not response.content:
                return None

            try:
                return response.json()
            except ValueError as e:
                raise DaemonResponseError(f"Invalid JSON from {method} {endpoint}: {e}") from e

        raise DaemonUnavailableError(
            f"Cannot reach Syncthing at {self.base_url} ({method} {endpoint}): {last_error}"
        )

    @staticmethod
    def _decode(model, data: Any, endpoint: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DaemonResponseError(f"Unexpected payload from {endpoint}: {e}") from e

    async def get_config(self) -> SyncthingConfig:
        """Fetch the daemon's full configuration."""
        data = await self._request("GET", CONFIG_ENDPOINT)
        return self._decode(SyncthingConfig, data, CONFIG_ENDPOINT)

    async def update_config(self, config: SyncthingConfig) -> SyncthingConfig:
        """
        Replace the daemon's configuration.

        Args:
            config: Configuration to push, including every field fetched earlier

        Returns:
            The configuration as confirmed by the daemon. Syncthing answers a
            PUT with an empty body, in which case the config is fetched again.
        """
        data = await self._request("PUT", CONFIG_ENDPOINT, body=config.to_payload())
        if not data:
            return await self.get_config()
        return self._decode(SyncthingConfig, data, CONFIG_ENDPOINT)

    async def get_system_status(self) -> SystemStatus:
        """Fetch the daemon's own identity and runtime status."""
        data = await self._request("GET", SYSTEM_STATUS_ENDPOINT)
        return self._decode(SystemStatus, data, SYSTEM_STATUS_ENDPOINT)

    async def get_connections(self) -> SystemConnections:
        """Fetch per-device connection telemetry."""
        data = await self._request("GET", SYSTEM_CONNECTIONS_ENDPOINT)
        return self._decode(SystemConnections, data, SYSTEM_CONNECTIONS_ENDPOINT)
