"""
Numeric reduction over filtered orders.

Orders are flattened into two pandas frames: one row per order (for order
counts and distinct customers) and one row per line item joined with the
product catalog (for quantities and money). Every metric is a plain group-by
over a bucket or category column, so totals do not depend on input order and
a bucket-partitioned sum always equals the unbucketed total.
"""
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Iterable, Optional

import pandas as pd

from . import utils
from .bucketing import Granularity, bucket_key
from .schemas import Order, Product

logger = logging.getLogger(__name__)

ORDER_COLUMNS = ["order_key", "placed_at", "store_id", "customer_id"]
ITEM_COLUMNS = ORDER_COLUMNS + [
    "product_id",
    "product_name",
    "manufacturer",
    "category_ids",
    "qty_invoiced",
    "qty_refunded",
    "amount_refunded",
    "row_total_incl_tax",
    "price",
    "cost",
    "revenue",
    "turnover",
]


class Metric(str, Enum):
    QUANTITY = "quantity"
    REVENUE = "revenue"
    TURNOVER = "turnover"
    SALES_TOTAL = "sales_total"
    REFUND_AMOUNT = "refund_amount"
    REFUNDED_QUANTITY = "refunded_quantity"
    ORDER_COUNT = "order_count"
    UNIQUE_CUSTOMERS = "unique_customers"


# Summed metrics and the item column they add up.
SUM_COLUMNS = {
    Metric.QUANTITY: "qty_invoiced",
    Metric.REVENUE: "revenue",
    Metric.TURNOVER: "turnover",
    Metric.SALES_TOTAL: "row_total_incl_tax",
    Metric.REFUND_AMOUNT: "amount_refunded",
    Metric.REFUNDED_QUANTITY: "qty_refunded",
}


def build_order_frame(orders: Iterable[Order]) -> pd.DataFrame:
    """One row per order, keyed by its position in the input."""
    rows = [
        {
            "order_key": key,
            "placed_at": utils.to_local_timestamp(order.created_at),
            "store_id": order.store_id,
            "customer_id": order.customer_id,
        }
        for key, order in enumerate(orders)
    ]
    return pd.DataFrame(rows, columns=ORDER_COLUMNS)


def build_item_frame(
    orders: Iterable[Order],
    products: Iterable[Product],
    product_ids: Optional[frozenset[int]] = None,
) -> pd.DataFrame:
    """
    One row per line item. Unit price and cost come from the catalog; an item
    whose product is unknown falls back to its own price (cost 0).
    When `product_ids` is given, items outside that set are dropped.
    """
    catalog = {p.product_id: p for p in products}
    rows = []
    for key, order in enumerate(orders):
        placed_at = utils.to_local_timestamp(order.created_at)
        for item in order.items:
            if product_ids is not None and item.product_id not in product_ids:
                continue
            product = catalog.get(item.product_id)
            price = product.price if product else (item.price or 0)
            cost = product.cost if product else 0
            rows.append(
                {
                    "order_key": key,
                    "placed_at": placed_at,
                    "store_id": order.store_id,
                    "customer_id": order.customer_id,
                    "product_id": item.product_id,
                    "product_name": (product.name if product else None) or item.name or str(item.product_id),
                    "manufacturer": product.manufacturer if product else None,
                    "category_ids": list(product.category_ids) if product else [],
                    "qty_invoiced": item.qty_invoiced,
                    "qty_refunded": item.qty_refunded,
                    "amount_refunded": item.amount_refunded,
                    "row_total_incl_tax": item.row_total_incl_tax,
                    "price": price,
                    "cost": cost,
                    "revenue": item.qty_invoiced * price,
                    "turnover": item.qty_invoiced * cost,
                }
            )
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def with_buckets(
    frame: pd.DataFrame, granularity: Granularity, week_mode: str = None
) -> pd.DataFrame:
    """Returns a copy of the frame with a `bucket` column derived from `placed_at`."""
    frame = frame.copy()
    frame["bucket"] = [bucket_key(ts, granularity, week_mode) for ts in frame["placed_at"]]
    return frame


def aggregate(frame: pd.DataFrame, metric: Metric, by: str = "bucket") -> pd.Series:
    """
    Reduces the frame to one value per key of `by`, sorted by key.
    Order counts and distinct customers can be computed on either frame.
    """
    metric = Metric(metric)
    if frame.empty:
        return pd.Series(dtype="float64", name=metric.value)

    grouped = frame.groupby(by, sort=True)
    if metric is Metric.ORDER_COUNT:
        result = grouped["order_key"].nunique()
    elif metric is Metric.UNIQUE_CUSTOMERS:
        result = grouped["customer_id"].nunique(dropna=True)
    else:
        result = grouped[SUM_COLUMNS[metric]].sum()
    return result.rename(metric.value)


def total(frame: pd.DataFrame, metric: Metric) -> float:
    """The metric over the whole frame, without bucketing."""
    metric = Metric(metric)
    if frame.empty:
        return 0
    if metric is Metric.ORDER_COUNT:
        return int(frame["order_key"].nunique())
    if metric is Metric.UNIQUE_CUSTOMERS:
        return int(frame["customer_id"].nunique(dropna=True))
    return float(frame[SUM_COLUMNS[metric]].sum())


def running_unique_customers(frame: pd.DataFrame, by: str = "bucket", cumulative: bool = True) -> pd.Series:
    """
    Distinct customers per bucket where each customer counts only in the
    first bucket they appear in. With `cumulative`, the running total, whose
    last value equals the distinct count over the whole frame.
    """
    if frame.empty:
        return pd.Series(dtype="int64", name=Metric.UNIQUE_CUSTOMERS.value)

    keys = sorted(frame[by].unique())
    first_seen = (
        frame.dropna(subset=["customer_id"])
        .sort_values(by, kind="stable")
        .drop_duplicates(subset="customer_id", keep="first")
    )
    per_bucket = first_seen.groupby(by)["customer_id"].nunique().reindex(keys, fill_value=0)
    if cumulative:
        per_bucket = per_bucket.cumsum()
    return per_bucket.astype("int64").rename(Metric.UNIQUE_CUSTOMERS.value)


def explode_categories(frame: pd.DataFrame) -> pd.DataFrame:
    """One row per (item, category id); items without categories are dropped."""
    if frame.empty:
        return frame.assign(category_id=pd.Series(dtype="object"))
    exploded = frame.explode("category_ids").rename(columns={"category_ids": "category_id"})
    return exploded.dropna(subset=["category_id"])


@dataclass
class KpiSummary:
    """Headline figures shown as stat cards above the charts."""

    total_orders: int = 0
    unique_customers: int = 0
    returned_units: float = 0
    value: float = 0
    value_metric: str = Metric.TURNOVER.value

    def to_dict(self) -> dict:
        return asdict(self)


def summarize(
    orders: list[Order],
    products: list[Product],
    value_metric: Metric,
    product_ids: Optional[frozenset[int]] = None,
    known_customer_ids: Optional[set[int]] = None,
) -> KpiSummary:
    """
    KPI cards over already-filtered orders. Returns and value only count
    items inside `product_ids` when a supplier scope is given; customers are
    restricted to `known_customer_ids` when given.
    """
    order_frame = build_order_frame(orders)
    if known_customer_ids is not None and not order_frame.empty:
        order_frame = order_frame.assign(
            customer_id=order_frame["customer_id"].where(
                order_frame["customer_id"].isin(list(known_customer_ids))
            )
        )
    item_frame = build_item_frame(orders, products, product_ids=product_ids)

    summary = KpiSummary(
        total_orders=len(orders),
        unique_customers=total(order_frame, Metric.UNIQUE_CUSTOMERS),
        returned_units=total(item_frame, Metric.REFUNDED_QUANTITY),
        value=round(total(item_frame, value_metric), 2),
        value_metric=Metric(value_metric).value,
    )
    logger.debug(f"KPI summary: {summary}")
    return summary
