"""Tests for order aggregation."""

from datetime import date

import pytest

from rakuten_dashboard.data.aggregator import (
    GroupBy,
    aggregate,
    product_detail,
    sort_buckets,
    summarize_products,
)
from rakuten_dashboard.data.models import AggregateBucket, OrderRecord


def order(order_id, product_id="A", sales=0.0, profit=0.0, **kwargs):
    return OrderRecord(
        order_id=order_id,
        order_date=kwargs.pop("order_date", date(2024, 6, 10)),
        product_id=product_id,
        sales=sales,
        profit=profit,
        **kwargs,
    )


@pytest.fixture
def scenario():
    return [
        order("1", "A", sales=1000, profit=200, rakuten_fee=50, product_name="Tea"),
        order("2", "A", sales=500, profit=-50, rakuten_fee=25),
        order("3", "B", sales=300, profit=30, product_name="Mug"),
    ]


def test_group_by_product_scenario(scenario):
    a, b = aggregate(scenario, GroupBy.PRODUCT)

    assert (a.product_id, a.sales, a.profit, a.orders) == ("A", 1500, 150, 2)
    assert a.profit_rate == pytest.approx(10.0)
    assert a.rakuten_fee == 75
    assert a.product_name == "Tea"

    assert (b.product_id, b.sales, b.profit, b.orders) == ("B", 300, 30, 1)
    assert b.profit_rate == pytest.approx(10.0)


def test_empty_input():
    assert aggregate([], GroupBy.PRODUCT) == []
    assert aggregate([], GroupBy.SKU) == []

    total = aggregate([], GroupBy.NONE)
    assert isinstance(total, AggregateBucket)
    assert (total.sales, total.orders, total.profit_rate) == (0, 0, 0)


def test_ungrouped_totals(scenario):
    total = aggregate(scenario, GroupBy.NONE)
    assert total.sales == 1800
    assert total.profit == 180
    assert total.orders == 3
    assert total.profit_rate == pytest.approx(10.0)
    assert total.avg_order_value == pytest.approx(600.0)


def test_every_record_counted_once():
    records = [order(str(i), product_id=f"P{i % 4}", sales=i * 10) for i in range(25)]
    buckets = aggregate(records, GroupBy.PRODUCT)
    assert sum(b.orders for b in buckets) == len(records)
    assert sum(b.sales for b in buckets) == sum(r.sales for r in records)


def test_orders_counts_records_not_quantity():
    records = [order("1", quantity=5, sales=100), order("2", quantity=3, sales=50)]
    (bucket,) = aggregate(records, GroupBy.PRODUCT)
    assert bucket.orders == 2
    assert bucket.quantity == 8


def test_profit_rate_zero_without_positive_sales():
    records = [
        order("1", "A", sales=0, profit=-300),
        order("2", "B", sales=0, profit=120),
        order("3", "C", sales=-500, profit=-500),
    ]
    for bucket in aggregate(records, GroupBy.PRODUCT):
        assert bucket.profit_rate == 0


def test_sorted_by_sales_descending_and_stable():
    records = [
        order("1", "X", sales=100),
        order("2", "Y", sales=300),
        order("3", "Z", sales=100),
        order("4", "W", sales=100),
    ]
    assert [b.key for b in aggregate(records, GroupBy.PRODUCT)] == ["Y", "X", "Z", "W"]


def test_missing_ids_go_to_unknown_bucket():
    records = [
        order("1", product_id="", sales=10),
        order("2", product_id="A", sku_id="", sales=20),
        order("3", product_id="A", sku_id="A-red", sku_info="Red", sales=5),
    ]
    by_product = {b.key: b for b in aggregate(records, GroupBy.PRODUCT)}
    assert by_product["unknown"].orders == 1

    by_sku = {b.key: b for b in aggregate(records, GroupBy.SKU)}
    assert by_sku["unknown"].orders == 2
    assert by_sku["A-red"].sku_info == "Red"


def test_roas_zero_without_ad_data(scenario):
    for bucket in aggregate(scenario, GroupBy.PRODUCT):
        assert (bucket.ad_cost, bucket.ad_sales, bucket.roas) == (0, 0, 0)


def test_sort_buckets_ascending_by_profit(scenario):
    buckets = sort_buckets(aggregate(scenario, GroupBy.PRODUCT), key="profit", descending=False)
    assert [b.key for b in buckets] == ["B", "A"]


def test_summarize_products(scenario):
    result = summarize_products(scenario + [order("4", "C", sales=50)])

    assert result["summary"] == {
        "totalSales": 1850,
        "totalProfit": 180,
        "totalOrders": 4,
        "productCount": 3,
        "profitRate": pytest.approx(180 / 1850 * 100),
    }
    assert [p["productId"] for p in result["products"]] == ["A", "B", "C"]
    # Blank product names fall back to the id
    assert result["products"][2]["productName"] == "C"


def test_product_detail_with_sku_breakdown():
    records = [
        order("1", "A", sales=100, profit=10, sku_id="S1", sku_info="Small", coupon=5),
        order("2", "A", sales=300, profit=60, sku_id="S2", sku_info="Large", product_name="Tea"),
        order("3", "A", sales=200, profit=20, sku_id="S1", sku_info="Small"),
    ]
    detail = product_detail("A", records)

    assert detail["productId"] == "A"
    assert detail["productName"] == "Tea"
    assert detail["sales"] == 600
    assert detail["orders"] == 3
    assert detail["coupon"] == 5
    assert detail["avgOrderValue"] == pytest.approx(200.0)
    assert [s["skuId"] for s in detail["skuList"]] == ["S1", "S2"]
    assert detail["skuList"][0]["orders"] == 2
    assert detail["skuList"][0]["totalStock"] == 0


def test_product_detail_empty_uses_id_as_name():
    detail = product_detail("Z9", [])
    assert detail["productName"] == "Z9"
    assert detail["profitRate"] == 0
    assert detail["skuList"] == []


def test_group_by_none_value_means_whole_period(scenario):
    total = aggregate(scenario, None)
    assert isinstance(total, AggregateBucket)
    assert (total.sales, total.orders) == (1800, 3)
    assert aggregate([], None).profit_rate == 0
