"""Order aggregator - groups order records into per-period rollups."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .models import UNKNOWN_KEY, AggregateBucket, OrderRecord

TOTAL_KEY = "total"


class GroupBy(str, Enum):
    """How order records are bucketed."""

    NONE = "none"
    PRODUCT = "product"
    SKU = "sku"


@dataclass
class ProductsSummary:
    """Headline totals for the products table."""

    total_sales: float = 0.0
    total_profit: float = 0.0
    total_orders: int = 0
    product_count: int = 0
    profit_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "totalSales": self.total_sales,
            "totalProfit": self.total_profit,
            "totalOrders": self.total_orders,
            "productCount": self.product_count,
            "profitRate": self.profit_rate,
        }


def _rate(numerator: float, denominator: float) -> float:
    """Percentage of ``numerator`` over ``denominator``; 0 unless denominator > 0."""
    if denominator > 0:
        return numerator / denominator * 100
    return 0.0


def _group_key(record: OrderRecord, group_by: GroupBy) -> str:
    if group_by == GroupBy.PRODUCT:
        return record.product_id or UNKNOWN_KEY
    if group_by == GroupBy.SKU:
        return record.sku_id or UNKNOWN_KEY
    return TOTAL_KEY


def _new_bucket(key: str, record: Optional[OrderRecord], group_by: GroupBy) -> AggregateBucket:
    if group_by == GroupBy.PRODUCT:
        return AggregateBucket(key=key, product_id=key, product_name=record.product_name)
    if group_by == GroupBy.SKU:
        return AggregateBucket(key=key, sku_id=key, sku_info=record.sku_info)
    return AggregateBucket(key=key)


def _fold(bucket: AggregateBucket, record: OrderRecord) -> None:
    bucket.sales += record.sales
    bucket.profit += record.profit
    bucket.rakuten_fee += record.rakuten_fee
    bucket.coupon += record.coupon
    bucket.points += record.points
    bucket.cost += record.cost
    bucket.shipping += record.shipping
    bucket.quantity += record.quantity
    bucket.orders += 1


def finalize(bucket: AggregateBucket) -> AggregateBucket:
    """Compute derived metrics from a bucket's accumulated totals."""
    bucket.profit_rate = _rate(bucket.profit, bucket.sales)
    bucket.roas = _rate(bucket.ad_sales, bucket.ad_cost)
    bucket.avg_order_value = bucket.sales / bucket.orders if bucket.orders > 0 else 0.0
    return bucket


def sort_buckets(
    buckets: Iterable[AggregateBucket],
    key: str = "sales",
    descending: bool = True,
) -> List[AggregateBucket]:
    """Order buckets by a numeric field, keeping discovery order on ties."""
    return sorted(buckets, key=lambda b: getattr(b, key), reverse=descending)


def aggregate(
    records: Iterable[OrderRecord],
    group_by: GroupBy = GroupBy.PRODUCT,
) -> Union[List[AggregateBucket], AggregateBucket]:
    """Fold order records into buckets in a single pass.

    Every record lands in exactly one bucket; records without a product or
    SKU id go to the ``"unknown"`` bucket rather than being dropped.
    ``orders`` counts records, not units.

    Args:
        records: Order records, already restricted to the wanted date range
        group_by: ``PRODUCT``, ``SKU``, or ``NONE`` (or None) for a whole-period total

    Returns:
        Buckets sorted by sales descending, or a single bucket for ``NONE``
    """
    group_by = GroupBy.NONE if group_by is None else GroupBy(group_by)

    if group_by == GroupBy.NONE:
        total = AggregateBucket(key=TOTAL_KEY)
        for record in records:
            _fold(total, record)
        return finalize(total)

    buckets: Dict[str, AggregateBucket] = {}
    for record in records:
        key = _group_key(record, group_by)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _new_bucket(key, record, group_by)
        _fold(bucket, record)

    for bucket in buckets.values():
        finalize(bucket)

    # dicts keep insertion order and sorted() is stable
    return sort_buckets(buckets.values())


def summarize_products(records: Sequence[OrderRecord]) -> dict:
    """Build the top-page payload: headline totals plus the products table."""
    products = aggregate(records, GroupBy.PRODUCT)
    for product in products:
        if not product.product_name:
            product.product_name = product.product_id

    summary = ProductsSummary(
        total_sales=sum(p.sales for p in products),
        total_profit=sum(p.profit for p in products),
        total_orders=sum(p.orders for p in products),
        product_count=len(products),
    )
    summary.profit_rate = _rate(summary.total_profit, summary.total_sales)

    return {
        "summary": summary.to_dict(),
        "products": [p.to_dict() for p in products],
    }


def product_detail(product_id: str, records: Sequence[OrderRecord]) -> dict:
    """Whole-period totals for one product plus its per-SKU breakdown.

    Args:
        product_id: Product the records belong to
        records: That product's order records for the period

    Returns:
        Product totals dict with a ``skuList`` of SKU rows
    """
    total = aggregate(records, GroupBy.NONE)
    total.product_id = product_id
    total.product_name = next(
        (r.product_name for r in records if r.product_name),
        product_id,
    )

    sku_rows = []
    for sku in aggregate(records, GroupBy.SKU):
        row = sku.to_dict()
        # Stock columns are filled by the inventory sheet, not by orders
        row["totalStock"] = 0
        row["currentStock"] = 0
        sku_rows.append(row)

    result = total.to_dict()
    result["skuList"] = sku_rows
    return result
