import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from . import utils
from .errors import DataParseError
from .schemas import (
    Category,
    Customer,
    Order,
    Product,
    ProductStock,
    Supplier,
    Warehouse,
)

logger = logging.getLogger(__name__)

# Collection name -> record model. Names match the backend endpoints.
COLLECTION_MODELS = {
    "orders": Order,
    "products": Product,
    "supplier_products": Product,
    "customers": Customer,
    "categories": Category,
    "warehouses": Warehouse,
    "suppliers": Supplier,
    "products_stock": ProductStock,
}


@dataclass
class DashboardSnapshot:
    """
    Everything one dashboard view reads, fetched once and never written back.
    `products` is the catalog the charts price against: the full catalog for
    the overview, the supplier catalog for a supplier dashboard.
    """

    orders: list[Order] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    warehouses: list[Warehouse] = field(default_factory=list)
    suppliers: list[Supplier] = field(default_factory=list)
    products_stock: list[ProductStock] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.orders and not self.products

    def counts(self) -> dict[str, int]:
        return {f.name: len(getattr(self, f.name)) for f in fields(self)}

    def supplier(self, supplier_id: str) -> Optional[Supplier]:
        for supplier in self.suppliers:
            if str(supplier.manufacturer_id) == str(supplier_id):
                return supplier
        return None

    def warehouse(self, warehouse_id: Optional[int]) -> Optional[Warehouse]:
        for warehouse in self.warehouses:
            if warehouse.id == warehouse_id:
                return warehouse
        return None


def parse_collection(name: str, payload: Any) -> list:
    """Validates a JSON array against the record model of the collection."""
    model = COLLECTION_MODELS[name]
    if not isinstance(payload, list):
        raise DataParseError(f"Expected a JSON array for '{name}', got {type(payload).__name__}", endpoint=name)
    try:
        records = [model(**row) for row in payload]
    except (TypeError, ValidationError) as e:
        logger.error(f"❌ Data validation failed for '{name}'!")
        logger.error(e)
        raise DataParseError(f"Invalid '{name}' payload: {e}", endpoint=name) from e

    if name == "categories":
        usable = [c for c in records if c.is_usable]
        if len(usable) < len(records):
            logger.warning(f"⚠️ Skipped {len(records) - len(usable)} categories without an id or a name.")
        records = usable
    return records


def build_snapshot(collections: dict[str, list], use_supplier_catalog: bool = False) -> DashboardSnapshot:
    """Assembles validated collections; `supplier_products` replaces `products` when asked to."""
    products = collections.get("products", [])
    if use_supplier_catalog and "supplier_products" in collections:
        products = collections["supplier_products"]
    return DashboardSnapshot(
        orders=collections.get("orders", []),
        products=products,
        customers=collections.get("customers", []),
        categories=collections.get("categories", []),
        warehouses=collections.get("warehouses", []),
        suppliers=collections.get("suppliers", []),
        products_stock=collections.get("products_stock", []),
    )


def load_snapshot_dir(
    directory: Path, names: Optional[list[str]] = None, use_supplier_catalog: bool = False
) -> DashboardSnapshot:
    """
    Reads collections from `<directory>/<name>.json` files instead of the API.
    Missing files yield empty collections.
    """
    collections = {}
    for name in names or list(COLLECTION_MODELS):
        try:
            payload = utils.load_json(Path(directory) / f"{name}.json")
        except ValueError as e:
            raise DataParseError(f"Malformed JSON in {name}.json: {e}", endpoint=name) from e
        if payload is None:
            continue
        collections[name] = parse_collection(name, payload)
        logger.info(f"  > Loaded {len(collections[name])} {name} from snapshot.")
    return build_snapshot(collections, use_supplier_catalog=use_supplier_catalog)
