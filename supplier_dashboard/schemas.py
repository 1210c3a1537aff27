from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def _non_negative(value: Any) -> Any:
    """Missing numbers count as zero; negatives are clamped to zero."""
    if value is None or value == "":
        return 0
    try:
        return max(float(value), 0)
    except (TypeError, ValueError):
        return value


def _text(value: Any) -> Any:
    """Null display fields read as empty text."""
    return "" if value is None else value


class _Record(BaseModel):
    """Read-only snapshot of a backend record. Unknown keys are ignored."""

    class Config:
        populate_by_name = True
        extra = "ignore"
        frozen = True


class OrderItem(_Record):
    product_id: int
    name: Optional[str] = None
    qty_invoiced: float = 0
    qty_refunded: float = 0
    amount_refunded: float = 0
    row_total_incl_tax: float = 0
    price: Optional[float] = None

    @field_validator(
        "qty_invoiced",
        "qty_refunded",
        "amount_refunded",
        "row_total_incl_tax",
        mode="before",
    )
    @classmethod
    def _coerce_amounts(cls, value):
        return _non_negative(value)


class Order(_Record):
    """
    An order as returned by /api/orders. `created_at` stays a raw string;
    missing or unparseable values are read as the epoch by the filters.
    """

    entity_id: Optional[int] = None
    created_at: Optional[str] = None
    state: str = ""
    status: Optional[str] = None
    store_id: Optional[int] = None
    customer_id: Optional[int] = None
    items: list[OrderItem] = Field(default_factory=list)

    @field_validator("state", mode="before")
    @classmethod
    def _state_as_text(cls, value):
        return _text(value)

    @field_validator("items", mode="before")
    @classmethod
    def _items_default(cls, value):
        return value or []

    @property
    def effective_state(self) -> str:
        # Some exports only carry `status`.
        return self.state or self.status or ""


class StockItem(_Record):
    qty: float = 0
    is_in_stock: bool = False

    @field_validator("qty", mode="before")
    @classmethod
    def _coerce_qty(cls, value):
        return _non_negative(value)


class Product(_Record):
    product_id: int
    name: str = ""
    sku: str = ""
    manufacturer: Optional[str] = None
    price: float = 0
    cost: float = 0
    category_ids: list[str] = Field(default_factory=list)
    stock_item: Optional[StockItem] = None

    @field_validator("name", "sku", mode="before")
    @classmethod
    def _labels_as_text(cls, value):
        return _text(value)

    @field_validator("manufacturer", mode="before")
    @classmethod
    def _manufacturer_as_text(cls, value):
        return None if value is None else str(value)

    @field_validator("price", "cost", mode="before")
    @classmethod
    def _coerce_prices(cls, value):
        return _non_negative(value)

    @field_validator("category_ids", mode="before")
    @classmethod
    def _category_ids_as_text(cls, value):
        return [str(c) for c in (value or []) if c not in (None, "")]


class StockEntry(_Record):
    store_id: int
    quantity: float = 0
    price: Optional[float] = None


class ProductStock(_Record):
    product_id: int
    stock: list[StockEntry] = Field(default_factory=list)

    def quantity_for(self, warehouse_id: Optional[int] = None) -> float:
        """Stock in one warehouse, or summed across all of them."""
        if warehouse_id is None:
            return sum(entry.quantity for entry in self.stock)
        for entry in self.stock:
            if entry.store_id == warehouse_id:
                return entry.quantity
        return 0


class Region(_Record):
    region: Optional[str] = None


class Address(_Record):
    region: Optional[Region] = None


class Customer(_Record):
    id: int
    retailer_profile: Optional[str] = None
    addresses: list[Address] = Field(default_factory=list)

    @field_validator("retailer_profile", mode="before")
    @classmethod
    def _profile_as_text(cls, value):
        return None if value is None else str(value)

    @property
    def region(self) -> Optional[str]:
        """Region of the first address, as the regional charts use it."""
        if not self.addresses or self.addresses[0].region is None:
            return None
        return self.addresses[0].region.region or None


class Category(_Record):
    """Rows without an id or a name cannot be labeled; `is_usable` is False for them."""

    category_id: Optional[int] = Field(None, alias="categoryId")
    name: Optional[str] = Field(None, alias="nameCategory")

    @property
    def is_usable(self) -> bool:
        return self.category_id is not None and bool(self.name)


class Warehouse(_Record):
    id: int
    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, value):
        return _text(value)


class Supplier(_Record):
    manufacturer_id: int = Field(..., alias="manufacturerId")
    company_name: str = ""
    email: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @field_validator("company_name", mode="before")
    @classmethod
    def _company_as_text(cls, value):
        return _text(value)


class SessionUser(_Record):
    username: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    manufacturer_id: Optional[str] = None

    @field_validator("manufacturer_id", mode="before")
    @classmethod
    def _manufacturer_as_text(cls, value):
        return None if value is None else str(value)


class AuthData(_Record):
    """The `{role, user}` object persisted under the `auth` session key."""

    role: str
    user: SessionUser = Field(default_factory=SessionUser)
    token: Optional[str] = None
