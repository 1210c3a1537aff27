"""
Dashboard widgets.

Each widget is a thin configuration over the same pipeline: pick orders with
an OrderFilter, flatten them into frames, group by a bucket or category key,
then shape the result with a chart builder. Widgets never raise on empty
input; they return the explicit no-data payload instead.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

import pandas as pd

from . import charts, settings
from .aggregation import (
    Metric,
    aggregate,
    build_item_frame,
    build_order_frame,
    explode_categories,
    summarize,
    with_buckets,
)
from .bucketing import Granularity, quarter_label
from .charts import ChartPayload
from .filters import OrderFilter, filter_orders, supplier_product_ids
from .snapshot import DashboardSnapshot
from .utils import paginate

logger = logging.getLogger(__name__)

TOP_PRODUCT_METRICS = {
    "volume": (Metric.QUANTITY, "Units Sold"),
    "revenue": (Metric.SALES_TOTAL, f"Sales ({settings.CURRENCY})"),
    "turnover": (Metric.TURNOVER, f"Turnover at Cost ({settings.CURRENCY})"),
}
SEARCH_FIELDS = ("name", "sku", "id")


@dataclass
class WidgetOptions:
    """Filters and view settings applied across one dashboard."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    warehouse_id: Optional[int] = None
    supplier_id: Optional[str] = None
    granularity: Granularity = Granularity.YEARLY
    week_mode: Optional[str] = None
    year: Optional[int] = None
    metric: str = "volume"
    category_id: Optional[str] = None
    search: str = ""
    search_by: str = "name"
    page: int = 1
    as_of: Optional[pd.Timestamp] = None

    @property
    def supplier_scope(self) -> bool:
        return self.supplier_id is not None

    @property
    def value_metric(self) -> Metric:
        # Suppliers see their figures at cost; the overview sees sales prices.
        return Metric.TURNOVER if self.supplier_scope else Metric.REVENUE


def _catalog_ids(snapshot: DashboardSnapshot, options: WidgetOptions) -> frozenset[int]:
    """Products a widget may count: the supplier's catalog, or every known product."""
    if options.supplier_scope:
        return supplier_product_ids(snapshot.products, options.supplier_id)
    return frozenset(p.product_id for p in snapshot.products)


def base_filter(snapshot: DashboardSnapshot, options: WidgetOptions) -> OrderFilter:
    return OrderFilter(
        start_date=options.start_date,
        end_date=options.end_date,
        warehouse_id=options.warehouse_id,
        supplier_product_ids=(
            supplier_product_ids(snapshot.products, options.supplier_id) if options.supplier_scope else None
        ),
    )


def _value_label(options: WidgetOptions) -> str:
    name = "Turnover" if options.supplier_scope else "Revenue"
    return f"{name} ({settings.CURRENCY})"


def _resolve_year(order_frame: pd.DataFrame, requested: Optional[int]) -> tuple[int, list[int]]:
    """Selected year and the available years, newest first."""
    years = sorted({ts.year for ts in order_frame["placed_at"]}, reverse=True)
    year = requested or date.today().year
    if years and year not in years:
        year = years[0]
    return year, years


def kpi_cards(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    known_customers = None
    if not options.supplier_scope and snapshot.customers:
        known_customers = {c.id for c in snapshot.customers}

    summary = summarize(
        orders,
        snapshot.products,
        options.value_metric,
        product_ids=_catalog_ids(snapshot, options) if options.supplier_scope else None,
        known_customer_ids=known_customers,
    )
    cards = [
        {"title": _value_label(options), "value": summary.value},
        {"title": "Total Orders", "value": summary.total_orders},
        {"title": "Unique Customers", "value": summary.unique_customers},
        {"title": "Returned Units", "value": summary.returned_units},
    ]
    return ChartPayload(
        kind="cards",
        title="Key Figures",
        series=cards,
        empty=summary.total_orders == 0,
        message=charts.NO_DATA_MESSAGE if summary.total_orders == 0 else None,
        extra={"summary": summary.to_dict()},
    )


def revenue_trend(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    items = build_item_frame(orders, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    granularity = Granularity(options.granularity)
    title = f"{_value_label(options)} ({granularity.value})"
    if items.empty:
        return ChartPayload.no_data("area", title)

    per_bucket = aggregate(with_buckets(items, granularity, options.week_mode), options.value_metric)
    return charts.time_series_chart(
        "area",
        title,
        series_name=_value_label(options),
        labels=list(per_bucket.index),
        values=per_bucket.tolist(),
        y_title=_value_label(options),
    )


def refund_trend(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    items = build_item_frame(orders, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    granularity = Granularity(options.granularity)
    title = f"Product Refunds ({granularity.value})"
    if items.empty:
        return ChartPayload.no_data("bar", title)

    per_bucket = aggregate(with_buckets(items, granularity, options.week_mode), Metric.REFUND_AMOUNT)
    per_bucket = per_bucket[per_bucket > 0]
    return charts.time_series_chart(
        "bar",
        title,
        series_name="Refunded Amount",
        labels=list(per_bucket.index),
        values=per_bucket.tolist(),
        y_title=f"Refunded Amount ({settings.CURRENCY})",
        color="#E74C3C",
    )


def quarterly_metrics(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """Q1..Q4 table for one year; the totals row dedupes customers across quarters."""
    order_filter = base_filter(snapshot, options).replace(start_date=None, end_date=None)
    orders = filter_orders(snapshot.orders, order_filter)
    columns = ["Quarter", "Orders", "Customers", _value_label(options)]
    order_frame = build_order_frame(orders)
    if order_frame.empty:
        return charts.table("Quarterly Performance", columns, [], years=[], selected_year=None)

    year, years = _resolve_year(order_frame, options.year)
    in_year = [o for o, ts in zip(orders, order_frame["placed_at"]) if ts.year == year]
    year_orders = build_order_frame(in_year)
    year_orders["quarter"] = [quarter_label(ts) for ts in year_orders["placed_at"]]
    items = build_item_frame(in_year, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    items["quarter"] = [quarter_label(ts) for ts in items["placed_at"]]

    order_counts = aggregate(year_orders, Metric.ORDER_COUNT, by="quarter")
    customers = aggregate(year_orders, Metric.UNIQUE_CUSTOMERS, by="quarter")
    values = aggregate(items, options.value_metric, by="quarter")

    rows = []
    for quarter in settings.QUARTERS:
        rows.append(
            [
                quarter,
                int(order_counts.get(quarter, 0)),
                int(customers.get(quarter, 0)),
                round(float(values.get(quarter, 0)), 2),
            ]
        )
    rows.append(
        [
            "Total",
            sum(r[1] for r in rows),
            int(year_orders["customer_id"].nunique(dropna=True)),
            round(float(values.sum()), 2),
        ]
    )
    return charts.table("Quarterly Performance", columns, rows, years=years, selected_year=year)


def regional_customers(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """Unique customers per region and quarter, for one year."""
    title = "Unique Customers by Region"
    order_filter = base_filter(snapshot, options).replace(start_date=None, end_date=None)
    orders = filter_orders(snapshot.orders, order_filter)
    order_frame = build_order_frame(orders)
    if order_frame.empty:
        return ChartPayload.no_data("bar", title)

    year, years = _resolve_year(order_frame, options.year)
    regions = {c.id: c.region for c in snapshot.customers if c.region}
    frame = order_frame[[ts.year == year for ts in order_frame["placed_at"]]].copy()
    frame["region"] = frame["customer_id"].map(regions)
    frame = frame.dropna(subset=["region"])
    if frame.empty:
        return ChartPayload.no_data("bar", title, years=years, selected_year=year)

    frame["quarter"] = [quarter_label(ts) for ts in frame["placed_at"]]
    counts = frame.groupby(["region", "quarter"])["customer_id"].nunique().unstack(fill_value=0)
    counts = counts.reindex(columns=settings.QUARTERS, fill_value=0).sort_index()

    series = [{"name": q, "data": [int(v) for v in counts[q]]} for q in settings.QUARTERS]
    payload = charts.category_bar_chart(
        f"{title} ({year})",
        categories=list(counts.index),
        series=series,
        x_title="Regions",
        y_title="Unique Customers",
        colors=settings.PALETTE[1:5],
    )
    payload.extra.update({"years": years, "selected_year": year})
    return payload


def client_segments(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """Unique customers by retailer profile; each customer counts under the first profile seen."""
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    profiles = {
        c.id: (c.retailer_profile if c.retailer_profile not in (None, "", "0") else settings.UNKNOWN_LABEL)
        for c in snapshot.customers
    }

    segments: dict[str, int] = {}
    seen: set[int] = set()
    for order in orders:
        if not order.customer_id or order.customer_id in seen:
            continue
        seen.add(order.customer_id)
        profile = profiles.get(order.customer_id, settings.UNKNOWN_LABEL)
        segments[profile] = segments.get(profile, 0) + 1

    title = f"Customer Profiles - Unique Customers: {len(seen)}"
    payload = charts.share_chart(
        "pie",
        title,
        labels=list(segments),
        values=list(segments.values()),
        total_customers=len(seen),
    )
    payload.extra["segments"] = [{"label": label, "count": count} for label, count in segments.items()]
    return payload


def top_products(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """Top products of complete orders by volume, sales or turnover at cost."""
    if options.metric not in TOP_PRODUCT_METRICS:
        raise ValueError(f"Unknown product metric: {options.metric!r}")
    metric, label = TOP_PRODUCT_METRICS[options.metric]
    title = "Top Products"

    order_filter = base_filter(snapshot, options).replace(states=frozenset({settings.COMPLETE_STATE}))
    orders = filter_orders(snapshot.orders, order_filter)
    items = build_item_frame(orders, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    if items.empty:
        return ChartPayload.no_data("bar", title)

    names = items.groupby("product_id")["product_name"].first()
    ranked = aggregate(items, metric, by="product_id").sort_values(ascending=False, kind="stable")
    ranked = ranked[ranked > 0].head(settings.TOP_N)
    return charts.category_bar_chart(
        title,
        categories=[names[pid] for pid in ranked.index],
        series=[{"name": label, "data": [round(float(v), 2) for v in ranked]}],
        x_title="Products",
        y_title=label,
        horizontal=True,
        colors=[settings.METRIC_COLORS[options.metric]],
    )


def top_articles(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """Share of ordered units per product, with a paginated legend."""
    title = "Most Ordered Products"
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    items = build_item_frame(orders, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    if items.empty:
        return ChartPayload.no_data("donut", title)

    per_product = aggregate(items, Metric.QUANTITY, by="product_name")
    per_product = per_product[per_product > 0].sort_values(ascending=False, kind="stable")
    grand_total = float(per_product.sum()) or 1
    shares = [round(float(v) / grand_total * 100, 2) for v in per_product]

    payload = charts.share_chart("donut", title, labels=list(per_product.index), values=shares)
    if payload.empty:
        return payload

    colors = payload.options["colors"]
    legend = [
        {"label": name, "units": float(units), "color": colors[i]}
        for i, (name, units) in enumerate(per_product.items())
    ]
    page_items, total_pages = paginate(legend, options.page, settings.ARTICLES_PER_PAGE)
    payload.extra.update({"legend": page_items, "page": options.page, "total_pages": total_pages})
    return payload


def category_comparison(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """The supplier's units per category next to each competitor's units in that category."""
    title = "Sales Comparison by Category"
    if not options.supplier_scope:
        return ChartPayload.no_data("bar", title, message="Select a supplier to compare categories")

    supplier_id = str(options.supplier_id)
    own_ids = supplier_product_ids(snapshot.products, supplier_id)
    own_categories = {c for p in snapshot.products if p.product_id in own_ids for c in p.category_ids}
    names = {
        str(c.category_id): c.name
        for c in snapshot.categories
        if c.is_usable and str(c.category_id) in own_categories
    }
    if not names:
        return ChartPayload.no_data("bar", title)

    # Competitors are counted too, so no supplier restriction on the orders.
    order_filter = base_filter(snapshot, options).replace(supplier_product_ids=None)
    orders = filter_orders(snapshot.orders, order_filter)
    rows = explode_categories(build_item_frame(orders, snapshot.products))
    rows = rows[rows["category_id"].isin(list(names))]
    rows = rows.assign(category=rows["category_id"].map(names))

    category_order = list(dict.fromkeys(names.values()))
    mine = aggregate(rows[rows["manufacturer"] == supplier_id], Metric.QUANTITY, by="category")

    suppliers = {str(s.manufacturer_id): s for s in snapshot.suppliers}
    others = rows[(rows["manufacturer"] != supplier_id) & rows["manufacturer"].isin(list(suppliers))]
    competitors = {category: [] for category in category_order}
    if not others.empty:
        sales = others.groupby(["category", "manufacturer"])["qty_invoiced"].sum()
        for (category, manufacturer), units in sales.sort_values(ascending=False, kind="stable").items():
            if units > 0:
                competitors[category].append(
                    {
                        "supplier_id": manufacturer,
                        "company_name": suppliers[manufacturer].company_name or settings.UNKNOWN_LABEL,
                        "sales": float(units),
                    }
                )

    current = snapshot.supplier(supplier_id)
    payload = charts.category_bar_chart(
        title,
        categories=category_order,
        series=[
            {
                "name": (current.company_name if current else None) or "My Sales",
                "data": [float(mine.get(category, 0)) for category in category_order],
            }
        ],
        x_title="Categories",
        y_title="Units Sold",
        stacked=True,
        colors=[settings.METRIC_COLORS["volume"]],
    )
    payload.extra["competitors"] = competitors
    return payload


def sales_by_category(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    title = f"Sales by Product Category ({settings.CURRENCY})"
    orders = filter_orders(snapshot.orders, base_filter(snapshot, options))
    rows = explode_categories(
        build_item_frame(orders, snapshot.products, product_ids=_catalog_ids(snapshot, options))
    )
    names = {str(c.category_id): c.name for c in snapshot.categories if c.is_usable}
    rows = rows.assign(category=rows["category_id"].map(names)).dropna(subset=["category"])
    if rows.empty:
        return ChartPayload.no_data("treemap", title)

    per_category = aggregate(rows, Metric.REVENUE, by="category").sort_values(ascending=False, kind="stable")
    per_category = per_category[per_category > 0]
    return charts.treemap_chart(title, list(per_category.index), per_category.tolist())


def inventory_trend(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """
    Stock level per product over time, rebuilt backwards from the current
    stock: after each sale the level is the current stock plus every unit
    sold later. Only complete orders count as sales.
    """
    title = "Product Stock Trends"
    if options.supplier_scope:
        current = {
            p.product_id: p.stock_item.qty
            for p in snapshot.products
            if p.manufacturer == str(options.supplier_id) and p.stock_item and p.stock_item.is_in_stock
        }
    else:
        if options.warehouse_id is None:
            return ChartPayload.no_data("line", title, message="Select a warehouse to display stock trends")
        warehouse = snapshot.warehouse(options.warehouse_id)
        if warehouse:
            title = f"{title} - {warehouse.name}"
        current = {
            s.product_id: s.quantity_for(options.warehouse_id)
            for s in snapshot.products_stock
            if s.quantity_for(options.warehouse_id) > 0
        }

    catalog = {p.product_id: p for p in snapshot.products}
    if options.category_id is not None:
        current = {
            pid: qty
            for pid, qty in current.items()
            if pid in catalog and str(options.category_id) in catalog[pid].category_ids
        }
    if not current:
        message = "No products found in this category" if options.category_id else charts.NO_DATA_MESSAGE
        return ChartPayload.no_data("line", title, message=message)

    order_filter = OrderFilter(
        warehouse_id=options.warehouse_id, states=frozenset({settings.COMPLETE_STATE})
    )
    orders = filter_orders(snapshot.orders, order_filter)
    sales = build_item_frame(orders, snapshot.products, product_ids=frozenset(current))
    as_of = options.as_of if options.as_of is not None else pd.Timestamp.now()

    series = []
    for product_id, stock in current.items():
        history = sales[sales["product_id"] == product_id].sort_values("placed_at", kind="stable")
        sold_later = history["qty_invoiced"][::-1].cumsum()[::-1] - history["qty_invoiced"]
        points = [
            {"x": ts.isoformat(), "y": float(stock + later)}
            for ts, later in zip(history["placed_at"], sold_later)
        ]
        points.append({"x": pd.Timestamp(as_of).isoformat(), "y": float(stock)})
        product = catalog.get(product_id)
        series.append({"name": (product.name if product else None) or str(product_id), "data": points})

    return charts.line_chart(title, series)


def available_products(snapshot: DashboardSnapshot, options: WidgetOptions) -> ChartPayload:
    """In-stock products, searchable by name, SKU or id, six per page."""
    if options.search_by not in SEARCH_FIELDS:
        raise ValueError(f"Unknown search field: {options.search_by!r}")

    if options.supplier_scope:
        title = "Available Products"
        stocked = [
            (p, p.stock_item.qty)
            for p in snapshot.products
            if p.manufacturer == str(options.supplier_id)
            and p.stock_item
            and p.stock_item.is_in_stock
            and p.stock_item.qty != 0
        ]
    else:
        warehouse = snapshot.warehouse(options.warehouse_id)
        scope = warehouse.name if warehouse else ("Warehouse" if options.warehouse_id else "All Warehouses")
        title = f"Available Products ({scope})"
        stock_by_product = {s.product_id: s for s in snapshot.products_stock}
        stocked = []
        for product in snapshot.products:
            entry = stock_by_product.get(product.product_id)
            quantity = entry.quantity_for(options.warehouse_id) if entry else 0
            if quantity > 0:
                stocked.append((product, quantity))

    needle = options.search.strip().lower()
    if needle:
        stocked = [(p, q) for p, q in stocked if needle in _search_value(p, options.search_by)]

    rows = [[p.product_id, p.name, p.sku, float(q)] for p, q in stocked]
    page_rows, total_pages = paginate(rows, options.page, settings.PRODUCTS_PER_PAGE)
    message = "No matching products" if needle else "No products in stock"
    return charts.table(
        title,
        ["ID", "Name", "SKU", "Stock"],
        page_rows,
        message=message,
        total=len(rows),
        page=options.page,
        total_pages=total_pages,
    )


def _search_value(product, search_by: str) -> str:
    if search_by == "sku":
        return product.sku.lower()
    if search_by == "id":
        return str(product.product_id)
    return product.name.lower()


WidgetFunc = Callable[[DashboardSnapshot, WidgetOptions], ChartPayload]

WIDGETS: dict[str, WidgetFunc] = {
    "kpi_cards": kpi_cards,
    "revenue_trend": revenue_trend,
    "refund_trend": refund_trend,
    "quarterly_metrics": quarterly_metrics,
    "regional_customers": regional_customers,
    "client_segments": client_segments,
    "top_products": top_products,
    "top_articles": top_articles,
    "category_comparison": category_comparison,
    "sales_by_category": sales_by_category,
    "inventory_trend": inventory_trend,
    "available_products": available_products,
}
