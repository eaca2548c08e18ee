"""JSON-RPC client for the Quobyte API."""

import logging
from typing import Any, Dict, Optional

import requests

from .exceptions import QuobyteAPIConnectionError, QuobyteAPIError, QuobyteAPITimeout

LOG = logging.getLogger(__name__)


class QuobyteClient:
    """JSON-RPC client for the Quobyte API.

    Only the volume calls the driver needs are implemented. Requests are never
    retried: createVolume is not idempotent and callers decide whether to try
    again.
    """

    def __init__(
        self,
        api_url: str,
        user: str,
        password: str,
        timeout: int = 30,
        verify_ssl: bool = True,
    ):
        """Initialize Quobyte API client.

        Args:
            api_url: Quobyte API URL (e.g., http://quobyte-api:7860)
            user: API user
            password: API password
            timeout: HTTP request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = requests.Session()
        self.session.auth = (user, password)
        self.session.headers.update({"Content-Type": "application/json"})

    def _make_request(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Send a JSON-RPC request to the Quobyte API.

        Args:
            method: JSON-RPC method name (e.g., createVolume)
            params: Method parameters

        Returns:
            The `result` member of the response

        Raises:
            QuobyteAPIConnectionError: Connection failed
            QuobyteAPITimeout: Request timed out
            QuobyteAPIError: API returned an error
        """
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": "0"}

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            raise QuobyteAPITimeout(f"Quobyte API request {method} timed out after {self.timeout}s: {e}")
        except requests.exceptions.ConnectionError as e:
            raise QuobyteAPIConnectionError(f"Failed to connect to Quobyte API at {self.api_url}: {e}")
        except requests.exceptions.RequestException as e:
            raise QuobyteAPIError(f"Quobyte API request {method} failed: {e}")

        if response.status_code >= 400:
            raise QuobyteAPIError(
                f"Quobyte API request {method} failed with HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise QuobyteAPIError(
                f"Quobyte API returned invalid JSON for {method}: {e}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            raise QuobyteAPIError(f"Quobyte API returned an unexpected response for {method}: {data!r}")

        error: Optional[Dict[str, Any]] = data.get("error")
        if error:
            raise QuobyteAPIError(
                f"Quobyte API request {method} failed: {error.get('message', error)}",
                status_code=response.status_code,
                response_data=error,
            )

        return data.get("result") or {}

    def create_volume(
        self,
        name: str,
        root_user_id: str,
        root_group_id: str,
        configuration_name: str,
    ) -> str:
        """Create a volume on the Quobyte cluster.

        Args:
            name: Volume name
            root_user_id: Owner of the volume root directory
            root_group_id: Group of the volume root directory
            configuration_name: Volume configuration template

        Returns:
            UUID of the new volume

        Raises:
            QuobyteAPIError: API error or missing volume UUID
        """
        LOG.debug("Creating Quobyte volume %s (config=%s)", name, configuration_name)
        result = self._make_request(
            "createVolume",
            {
                "name": name,
                "root_user_id": root_user_id,
                "root_group_id": root_group_id,
                "configuration_name": configuration_name,
            },
        )
        volume_uuid = result.get("volume_uuid")
        if not volume_uuid:
            raise QuobyteAPIError(f"Quobyte API did not return a volume UUID for {name}", response_data=result)
        return volume_uuid

    def delete_volume(self, volume_uuid: str) -> None:
        """Delete a volume from the Quobyte cluster.

        Args:
            volume_uuid: UUID returned by create_volume
        """
        LOG.debug("Deleting Quobyte volume %s", volume_uuid)
        self._make_request("deleteVolume", {"volume_uuid": volume_uuid})
