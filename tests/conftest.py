"""Shared fixtures: a small marketplace with two suppliers and five orders."""

import json

import pytest

from supplier_dashboard import settings
from supplier_dashboard.schemas import (
    Category,
    Customer,
    Order,
    OrderItem,
    Product,
    ProductStock,
    Supplier,
    Warehouse,
)
from supplier_dashboard.snapshot import DashboardSnapshot

SUPPLIER_ID = "27"
COMPETITOR_ID = "31"


def make_item(product_id, qty=1, **kwargs) -> OrderItem:
    return OrderItem(product_id=product_id, qty_invoiced=qty, **kwargs)


def make_order(created_at, items, state="complete", store_id=1, customer_id=None, **kwargs) -> Order:
    return Order(
        created_at=created_at,
        state=state,
        store_id=store_id,
        customer_id=customer_id,
        items=items,
        **kwargs,
    )


PRODUCTS = [
    {
        "product_id": 1,
        "name": "Olive Oil",
        "sku": "OIL-1",
        "manufacturer": SUPPLIER_ID,
        "price": 10,
        "cost": 6,
        "category_ids": ["100"],
        "stock_item": {"qty": 20, "is_in_stock": True},
    },
    {
        "product_id": 2,
        "name": "Dates",
        "sku": "DAT-2",
        "manufacturer": SUPPLIER_ID,
        "price": 5,
        "cost": 3,
        "category_ids": ["100", "200"],
        "stock_item": {"qty": 0, "is_in_stock": False},
    },
    {
        "product_id": 3,
        "name": "Couscous",
        "sku": "CSC-3",
        "manufacturer": COMPETITOR_ID,
        "price": 4,
        "cost": 2,
        "category_ids": ["100"],
        "stock_item": {"qty": 50, "is_in_stock": True},
    },
]

ORDERS = [
    {
        "entity_id": 1,
        "created_at": "2024-01-15 00:00:00",
        "state": "complete",
        "store_id": 1,
        "customer_id": 501,
        "items": [
            {"product_id": 1, "qty_invoiced": 2, "row_total_incl_tax": 20},
            {"product_id": 3, "qty_invoiced": 1, "row_total_incl_tax": 4},
        ],
    },
    {
        "entity_id": 2,
        "created_at": "2024-02-10 09:30:00",
        "state": "complete",
        "store_id": 2,
        "customer_id": 502,
        "items": [
            {
                "product_id": 2,
                "qty_invoiced": 4,
                "qty_refunded": 1,
                "amount_refunded": 5,
                "row_total_incl_tax": 22,
            }
        ],
    },
    {
        "entity_id": 3,
        "created_at": "2024-05-20 12:00:00",
        "state": "canceled",
        "store_id": 1,
        "customer_id": 503,
        "items": [{"product_id": 1, "qty_invoiced": 100, "row_total_incl_tax": 1000}],
    },
    {
        "entity_id": 4,
        "created_at": "2024-07-03 18:45:00",
        "state": "delivered",
        "store_id": 1,
        "customer_id": 501,
        "items": [
            {
                "product_id": 1,
                "qty_invoiced": 1,
                "qty_refunded": 1,
                "amount_refunded": 10,
                "row_total_incl_tax": 10,
            }
        ],
    },
    {
        "entity_id": 5,
        "created_at": "2023-11-30 08:00:00",
        "state": "complete",
        "store_id": 2,
        "customer_id": 503,
        "items": [{"product_id": 3, "qty_invoiced": 6, "row_total_incl_tax": 24}],
    },
]

CUSTOMERS = [
    {"id": 501, "retailer_profile": "Wholesaler", "addresses": [{"region": {"region": "Tunis"}}]},
    {"id": 502, "retailer_profile": "0", "addresses": [{"region": {"region": "Sfax"}}]},
    {"id": 503, "retailer_profile": None, "addresses": []},
]

CATEGORIES = [
    {"categoryId": 100, "nameCategory": "Grocery"},
    {"categoryId": 200, "nameCategory": "Dried Fruit"},
]

SUPPLIERS = [
    {"manufacturerId": 27, "company_name": "Technofood", "city": "Tunis", "country": "Tunisia"},
    {"manufacturerId": 31, "company_name": "Maghreb Foods"},
]

WAREHOUSES = [{"id": 1, "name": "Tunis North"}, {"id": 2, "name": "Sfax Port"}]

PRODUCTS_STOCK = [
    {"product_id": 1, "stock": [{"store_id": 1, "quantity": 10}, {"store_id": 2, "quantity": 5}]},
    {"product_id": 2, "stock": [{"store_id": 1, "quantity": 0}]},
    {"product_id": 3, "stock": [{"store_id": 2, "quantity": 7}]},
]

RAW_COLLECTIONS = {
    "orders": ORDERS,
    "products": PRODUCTS,
    "supplier_products": PRODUCTS,
    "customers": CUSTOMERS,
    "categories": CATEGORIES,
    "warehouses": WAREHOUSES,
    "suppliers": SUPPLIERS,
    "products_stock": PRODUCTS_STOCK,
}


@pytest.fixture
def snapshot() -> DashboardSnapshot:
    return DashboardSnapshot(
        orders=[Order(**o) for o in ORDERS],
        products=[Product(**p) for p in PRODUCTS],
        customers=[Customer(**c) for c in CUSTOMERS],
        categories=[Category(**c) for c in CATEGORIES],
        warehouses=[Warehouse(**w) for w in WAREHOUSES],
        suppliers=[Supplier(**s) for s in SUPPLIERS],
        products_stock=[ProductStock(**s) for s in PRODUCTS_STOCK],
    )


@pytest.fixture
def snapshot_dir(tmp_path):
    directory = tmp_path / "snapshot"
    directory.mkdir()
    for name, rows in RAW_COLLECTIONS.items():
        (directory / f"{name}.json").write_text(json.dumps(rows), encoding="utf-8")
    return directory


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    out = tmp_path / "output"
    monkeypatch.setattr(settings, "OUTPUT_DIR", out)
    monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", True)
    monkeypatch.setattr(settings, "WEBHOOK_URL", None)
    return out


@pytest.fixture(autouse=True)
def local_time(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "UTC")
    monkeypatch.setattr(settings, "WEEK_MODE", "month")
