"""
Order selection shared by every widget.

An order qualifies when it is not canceled, falls inside the inclusive date
range, was placed in the selected warehouse and (for a supplier scope)
contains at least one of the supplier's products.
"""
import dataclasses
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from . import settings, utils
from .schemas import Order, Product


def supplier_product_ids(products: Iterable[Product], supplier_id: str) -> frozenset[int]:
    """Product ids whose manufacturer is the given supplier."""
    supplier_id = str(supplier_id)
    return frozenset(p.product_id for p in products if p.manufacturer == supplier_id)


@dataclass(frozen=True)
class OrderFilter:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    warehouse_id: Optional[int] = None
    supplier_product_ids: Optional[frozenset[int]] = None
    # When set, only these states qualify (e.g. {"complete"} for sales-volume charts).
    states: Optional[frozenset[str]] = None

    def matches(self, order: Order) -> bool:
        state = order.effective_state
        if state == settings.CANCELED_STATE:
            return False
        if self.states is not None and state not in self.states:
            return False
        if self.warehouse_id is not None and order.store_id != self.warehouse_id:
            return False
        if not self._in_range(order):
            return False
        if self.supplier_product_ids is not None:
            return any(item.product_id in self.supplier_product_ids for item in order.items)
        return True

    def _in_range(self, order: Order) -> bool:
        if self.start_date is None and self.end_date is None:
            return True
        placed_at = utils.to_local_timestamp(order.created_at)
        if self.start_date is not None and placed_at < utils.start_of_day(self.start_date):
            return False
        if self.end_date is not None and placed_at > utils.end_of_day(self.end_date):
            return False
        return True

    def replace(self, **changes) -> "OrderFilter":
        return dataclasses.replace(self, **changes)


def filter_orders(orders: Iterable[Order], order_filter: OrderFilter) -> list[Order]:
    return [order for order in orders if order_filter.matches(order)]
