"""Data sources - fetch order records from the configured upstream store."""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..errors import UpstreamFetchError
from ..upstream.gas import GasClient
from ..upstream.supabase import SupabaseClient
from .models import OrderRecord
from .normalizer import filter_by_range, normalize_orders

logger = logging.getLogger(__name__)


class OrderDataSource(ABC):
    """Fetches order records for a date range from one upstream backend."""

    name: str = ""

    def __init__(self, profit_source: str = "supplied", profit_tolerance: float = 1.0):
        self.profit_source = profit_source
        self.profit_tolerance = profit_tolerance

    @abstractmethod
    def _fetch_rows(self, start: date, end: date, product_id: Optional[str]) -> List[Dict[str, Any]]:
        """Return raw upstream rows for the range."""

    def fetch_orders(
        self,
        start: date,
        end: date,
        product_id: Optional[str] = None,
    ) -> List[OrderRecord]:
        """Fetch normalized order records in ``[start, end]``.

        Args:
            start: First order date to include
            end: Last order date to include
            product_id: Optional filter to a single product

        Returns:
            OrderRecords in upstream order

        Raises:
            UpstreamFetchError: If the upstream call fails for any reason
        """
        try:
            rows = self._fetch_rows(start, end, product_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("%s fetch failed for %s..%s: %s", self.name, start, end, e)
            raise UpstreamFetchError(f"{self.name} fetch failed: {e}") from e

        records = normalize_orders(rows, self.profit_source, self.profit_tolerance)
        records = filter_by_range(records, start, end)
        if product_id is not None:
            records = [r for r in records if r.product_id == product_id]

        logger.debug("%s returned %d rows, %d in range", self.name, len(rows), len(records))
        return records

    def close(self):
        """Release upstream connections."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class GasOrderSource(OrderDataSource):
    """Orders served by the spreadsheet's Apps Script web app."""

    name = "gas"

    def __init__(self, client: GasClient, **kwargs):
        super().__init__(**kwargs)
        self.client = client

    def _fetch_rows(self, start, end, product_id):
        params = {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "productId": product_id,
        }
        data = self.client.call("orders", params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"GAS 'orders' returned {type(data).__name__}, expected a list")
        return data

    def forward(self, params: Dict[str, str]) -> Dict[str, Any]:
        """Pass a request through to the web app and return its envelope.

        Raises:
            UpstreamFetchError: If the upstream call fails
        """
        try:
            return self.client.get_raw(params)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("GAS passthrough action=%s failed: %s", params.get("action"), e)
            raise UpstreamFetchError(f"gas request failed: {e}") from e

    def close(self):
        self.client.close()


class SupabaseOrderSource(OrderDataSource):
    """Orders stored in a Supabase ``orders`` table."""

    name = "supabase"

    def __init__(self, client: SupabaseClient, table: str = "orders", page_size: int = 1000, **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self.table = table
        self.page_size = page_size

    def _fetch_rows(self, start, end, product_id):
        filters = [
            ("order_date", f"gte.{start.isoformat()}"),
            ("order_date", f"lte.{end.isoformat()}"),
        ]
        if product_id is not None:
            filters.append(("product_id", f"eq.{product_id}"))

        return self.client.select(
            self.table,
            filters,
            order="order_date.asc,order_id.asc",
            page_size=self.page_size,
        )

    def close(self):
        self.client.close()


def build_data_source(
    settings: Settings,
    transport: Optional[httpx.BaseTransport] = None,
) -> OrderDataSource:
    """Create the data source selected by ``DATA_SOURCE``.

    Args:
        settings: Application settings
        transport: Optional httpx transport shared by the upstream client

    Returns:
        A ready-to-use OrderDataSource; the caller owns and closes it
    """
    common = {
        "profit_source": settings.profit_source,
        "profit_tolerance": settings.profit_tolerance,
    }

    if settings.data_source == "gas":
        client = GasClient(settings.gas_api_url, settings.request_timeout_seconds, transport)
        return GasOrderSource(client, **common)

    if settings.data_source == "supabase":
        client = SupabaseClient(
            settings.supabase_url,
            settings.supabase_key,
            settings.request_timeout_seconds,
            transport,
        )
        return SupabaseOrderSource(
            client,
            table=settings.supabase_orders_table,
            page_size=settings.supabase_page_size,
            **common,
        )

    raise ValueError(f"Unknown DATA_SOURCE: {settings.data_source!r}")
