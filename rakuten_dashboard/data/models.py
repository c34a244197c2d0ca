"""Order and aggregate data structures."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

UNKNOWN_KEY = "unknown"


@dataclass(frozen=True)
class OrderRecord:
    """One fulfilled order line as fetched from the upstream store."""

    order_id: str
    order_date: date
    product_id: str = UNKNOWN_KEY
    product_name: str = ""
    sku_id: str = UNKNOWN_KEY
    sku_info: str = ""
    quantity: int = 0
    sales: float = 0.0
    rakuten_fee: float = 0.0
    coupon: float = 0.0
    points: float = 0.0
    cost: float = 0.0
    shipping: float = 0.0
    profit: float = 0.0

    @property
    def component_profit(self) -> float:
        """Profit rebuilt from sales and the individual deductions."""
        return (
            self.sales
            - self.rakuten_fee
            - self.coupon
            - self.points
            - self.cost
            - self.shipping
        )


@dataclass
class AggregateBucket:
    """Accumulated totals for one product, one SKU, or the whole period.

    Monetary fields are summed while records are folded in; the derived
    fields (``profit_rate``, ``roas``, ``avg_order_value``) are only filled
    in by the finalize step once accumulation is done.
    """

    key: str
    product_id: Optional[str] = None
    product_name: str = ""
    sku_id: Optional[str] = None
    sku_info: str = ""
    sales: float = 0.0
    orders: int = 0
    quantity: int = 0
    profit: float = 0.0
    profit_rate: float = 0.0
    rakuten_fee: float = 0.0
    coupon: float = 0.0
    points: float = 0.0
    cost: float = 0.0
    shipping: float = 0.0
    # No advertising source is wired into order aggregation
    ad_cost: float = 0.0
    ad_sales: float = 0.0
    ad_orders: int = 0
    roas: float = 0.0
    avg_order_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the browser client reads."""
        result: Dict[str, Any] = {}
        if self.product_id is not None:
            result["productId"] = self.product_id
            result["productName"] = self.product_name
        if self.sku_id is not None:
            result["skuId"] = self.sku_id
            result["skuInfo"] = self.sku_info
        result.update({
            "sales": self.sales,
            "orders": self.orders,
            "quantity": self.quantity,
            "profit": self.profit,
            "profitRate": self.profit_rate,
            "avgOrderValue": self.avg_order_value,
            "rakutenFee": self.rakuten_fee,
            "coupon": self.coupon,
            "points": self.points,
            "cost": self.cost,
            "shipping": self.shipping,
            "adCost": self.ad_cost,
            "adSales": self.ad_sales,
            "adOrders": self.ad_orders,
            "roas": self.roas,
        })
        return result
