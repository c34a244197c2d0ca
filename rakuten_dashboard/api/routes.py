"""API routes for the dashboard."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..data.aggregator import GroupBy, aggregate, product_detail, summarize_products
from ..data.fetcher import GasOrderSource, OrderDataSource
from ..errors import BadRequestError
from ..utils.periods import parse_period, resolve
from .schemas import Envelope, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])

AGGREGATE_ACTIONS = {"summary", "products", "productsSummary", "productDetail", "skus"}


# ============================================================================
# Dependencies
# ============================================================================

def get_data_source(request: Request) -> OrderDataSource:
    """Data source created at startup."""
    return request.app.state.data_source


def get_app_settings(request: Request) -> Settings:
    """Settings the application was started with."""
    return request.app.state.settings


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/health", response_model=HealthResponse)
def health(source: OrderDataSource = Depends(get_data_source)):
    """Health check endpoint."""
    return HealthResponse(status="ok", data_source=source.name, version=__version__)


@router.get("/gas", response_model=Envelope, response_model_exclude_none=True)
def dashboard_proxy(
    request: Request,
    action: str = Query(..., description="summary, products, productsSummary, productDetail, skus, ..."),
    period: Optional[str] = Query(None, description="week, 2weeks, month, 3months, year or custom"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    product_id: Optional[str] = Query(None, alias="productId"),
    source: OrderDataSource = Depends(get_data_source),
    settings: Settings = Depends(get_app_settings),
):
    """Single entry point the dashboard client calls.

    Order aggregates are computed here; other actions (ads, SEO, inventory)
    are relayed to the Apps Script web app when that is the configured
    upstream.
    """
    if action not in AGGREGATE_ACTIONS:
        if isinstance(source, GasOrderSource):
            return JSONResponse(source.forward(dict(request.query_params)))
        raise BadRequestError(f"Unsupported action for {source.name}: {action}")

    if action == "productDetail" and not product_id:
        raise BadRequestError("productId is required for productDetail")

    start, end = resolve(
        parse_period(period, start_date, end_date),
        tz_name=settings.report_timezone or None,
    )
    logger.info("action=%s period=%s range=%s..%s product=%s", action, period, start, end, product_id)

    records = source.fetch_orders(start, end, product_id)

    if action == "summary":
        data = aggregate(records, GroupBy.NONE).to_dict()
    elif action == "products":
        data = [b.to_dict() for b in aggregate(records, GroupBy.PRODUCT)]
    elif action == "productsSummary":
        data = summarize_products(records)
    elif action == "productDetail":
        data = product_detail(product_id, records)
    else:
        data = [b.to_dict() for b in aggregate(records, GroupBy.SKU)]

    return Envelope(success=True, data=data)
