"""Row normalizer - turns raw upstream rows into OrderRecords."""

import logging
import math
from datetime import date
from typing import Any, Dict, Iterable, List, Literal, Union

import pandas as pd

from .models import UNKNOWN_KEY, OrderRecord

logger = logging.getLogger(__name__)

# The Apps Script endpoint answers in camelCase, the orders table in snake_case
COLUMN_ALIASES = {
    "orderId": "order_id",
    "orderDate": "order_date",
    "productId": "product_id",
    "productName": "product_name",
    "skuId": "sku_id",
    "skuInfo": "sku_info",
    "rakutenFee": "rakuten_fee",
}

MONEY_COLUMNS = ["sales", "rakuten_fee", "coupon", "points", "cost", "shipping"]
TEXT_COLUMNS = ["order_id", "product_id", "product_name", "sku_id", "sku_info"]


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    # A null elsewhere in the column turns integer ids into floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _text(series: pd.Series) -> pd.Series:
    return series.map(_cell_text).astype(object)


def _parse_dates(series: pd.Series) -> pd.Series:
    # Timestamps are cut to their calendar date; no timezone shifting
    cleaned = series.astype(str).str.slice(0, 10).str.replace("/", "-", regex=False)
    return pd.to_datetime(cleaned, format="%Y-%m-%d", errors="coerce")


def to_frame(rows: Union[pd.DataFrame, Iterable[Dict[str, Any]]]) -> pd.DataFrame:
    """Coerce upstream rows to a DataFrame with canonical column names."""
    df = rows.copy() if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows), dtype=object)
    return df.rename(columns=COLUMN_ALIASES)


def normalize_orders(
    rows: Union[pd.DataFrame, Iterable[Dict[str, Any]]],
    profit_source: Literal["supplied", "computed"] = "supplied",
    profit_tolerance: float = 1.0,
) -> List[OrderRecord]:
    """Convert raw order rows to OrderRecords.

    Args:
        rows: DataFrame or list of dicts, snake_case or camelCase columns
        profit_source: ``supplied`` keeps the upstream profit column (falling
            back to the component formula where it is missing); ``computed``
            always rebuilds profit from sales minus deductions
        profit_tolerance: Allowed gap between supplied and rebuilt profit
            before a row counts as inconsistent

    Returns:
        List of OrderRecords in input order
    """
    df = to_frame(rows)
    if df.empty:
        return []

    if "order_date" not in df.columns:
        logger.warning("Upstream rows have no order date column; %d rows skipped", len(df))
        return []

    for col in TEXT_COLUMNS:
        df[col] = _text(df[col]) if col in df.columns else ""

    for col in MONEY_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(float)
        else:
            df[col] = 0.0

    if "quantity" in df.columns:
        df["quantity"] = (
            pd.to_numeric(df["quantity"], errors="coerce").fillna(0).clip(lower=0).astype(int)
        )
    else:
        df["quantity"] = 0

    df["product_id"] = df["product_id"].replace("", UNKNOWN_KEY)
    df["sku_id"] = df["sku_id"].replace("", UNKNOWN_KEY)
    missing_ids = df["order_id"] == ""
    df.loc[missing_ids, "order_id"] = [f"row-{i}" for i in df.index[missing_ids]]

    computed = df["sales"] - df[["rakuten_fee", "coupon", "points", "cost", "shipping"]].sum(axis=1)
    if profit_source == "computed" or "profit" not in df.columns:
        df["profit"] = computed
    else:
        supplied = pd.to_numeric(df["profit"], errors="coerce")
        mismatched = int((supplied.notna() & ((supplied - computed).abs() > profit_tolerance)).sum())
        if mismatched:
            logger.warning(
                "%d of %d rows have a supplied profit that differs from "
                "sales minus deductions by more than %s",
                mismatched, len(df), profit_tolerance,
            )
        df["profit"] = supplied.fillna(computed)

    dates = _parse_dates(df["order_date"])
    bad_dates = dates.isna()
    if bad_dates.any():
        logger.warning("Skipping %d rows with an unparsable order date", int(bad_dates.sum()))
    df = df.loc[~bad_dates].copy()
    df["order_date"] = dates[~bad_dates].dt.date

    return [
        OrderRecord(
            order_id=row["order_id"],
            order_date=row["order_date"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            sku_id=row["sku_id"],
            sku_info=row["sku_info"],
            quantity=int(row["quantity"]),
            sales=float(row["sales"]),
            rakuten_fee=float(row["rakuten_fee"]),
            coupon=float(row["coupon"]),
            points=float(row["points"]),
            cost=float(row["cost"]),
            shipping=float(row["shipping"]),
            profit=float(row["profit"]),
        )
        for row in df.to_dict("records")
    ]


def filter_by_range(records: Iterable[OrderRecord], start: date, end: date) -> List[OrderRecord]:
    """Keep records whose order date falls in ``[start, end]``."""
    return [r for r in records if start <= r.order_date <= end]
