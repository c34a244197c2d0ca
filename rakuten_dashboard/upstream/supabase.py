"""Supabase (PostgREST) client for reading the orders table."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import httpx

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Read-only client for Supabase's REST interface."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the Supabase client.

        Args:
            base_url: Project URL (e.g., https://xyz.supabase.co)
            api_key: Anon or service key
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = httpx.Client(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def select(
        self,
        table: str,
        filters: Sequence[Tuple[str, str]] = (),
        columns: str = "*",
        order: Optional[str] = None,
        page_size: int = 1000,
    ) -> List[Dict]:
        """Fetch all rows of a table matching PostgREST filters.

        Pages through the result with ``Range`` headers until a short page
        comes back.

        Args:
            table: Table name
            filters: PostgREST filter pairs, e.g. ``("order_date", "gte.2024-06-01")``
            columns: Column list for ``select``
            order: Optional ``order`` clause, e.g. ``"order_date.asc"``
            page_size: Rows requested per page

        Returns:
            List of row dicts

        Raises:
            httpx.HTTPStatusError: If a request fails
            ValueError: If a page is not a JSON list
        """
        if not self.base_url:
            raise ValueError("SUPABASE_URL not configured in environment")

        params: List[Tuple[str, str]] = [("select", columns), *filters]
        if order:
            params.append(("order", order))

        rows: List[Dict] = []
        offset = 0
        while True:
            headers = {"Range-Unit": "items", "Range": f"{offset}-{offset + page_size - 1}"}
            logger.debug("Supabase select %s rows %s", table, headers["Range"])
            response = self._client.get(f"/{table}", params=params, headers=headers)
            response.raise_for_status()
            page = response.json()

            if not isinstance(page, list):
                raise ValueError(f"Unexpected Supabase response: {page!r}")

            rows.extend(page)
            if len(page) < page_size:
                break
            offset += page_size

        return rows

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
