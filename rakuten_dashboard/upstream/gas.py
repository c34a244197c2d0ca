"""Google Apps Script client for the spreadsheet-backed order API."""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class GasClient:
    """Client for the dashboard's Apps Script web app."""

    def __init__(
        self,
        script_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the Apps Script client.

        Args:
            script_url: Deployed web app URL (https://script.google.com/macros/s/.../exec)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.script_url = script_url
        self._client = httpx.Client(
            timeout=timeout,
            # Apps Script answers with a redirect to googleusercontent.com
            follow_redirects=True,
            transport=transport,
        )

    def get_raw(self, params: Dict[str, str]) -> Dict[str, Any]:
        """Call the web app and return its JSON body untouched.

        Args:
            params: Query parameters, including ``action``

        Returns:
            Decoded JSON object

        Raises:
            httpx.HTTPError: If the request fails
            ValueError: If the body is not a JSON object
        """
        if not self.script_url:
            raise ValueError("GAS_API_URL not configured in environment")

        logger.debug("GAS request action=%s", params.get("action"))
        response = self._client.get(self.script_url, params=params)
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, dict):
            raise ValueError(f"Unexpected GAS response type: {type(data).__name__}")
        return data

    def call(self, action: str, params: Optional[Dict[str, str]] = None) -> Any:
        """Call an action and unwrap the ``{success, data, error}`` envelope.

        Returns:
            The envelope's ``data`` payload

        Raises:
            httpx.HTTPError: If the request fails
            ValueError: If the script reports ``success: false``
        """
        query = {"action": action}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        data = self.get_raw(query)
        if not data.get("success"):
            raise ValueError(f"GAS error: {data.get('error') or 'Unknown error'}")
        return data.get("data")

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
