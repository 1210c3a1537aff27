"""Widgets over the shared marketplace fixture (see conftest.py)."""

from datetime import date

import pandas as pd
import pytest

from conftest import COMPETITOR_ID, SUPPLIER_ID, make_item, make_order

from supplier_dashboard import widgets
from supplier_dashboard.bucketing import Granularity
from supplier_dashboard.schemas import Product, StockItem, Supplier
from supplier_dashboard.snapshot import DashboardSnapshot
from supplier_dashboard.widgets import WIDGETS, WidgetOptions

OVERVIEW = WidgetOptions()
SUPPLIER = WidgetOptions(supplier_id=SUPPLIER_ID)


def _cards(payload):
    return {card["title"]: card["value"] for card in payload.series}


class TestEmptyState:
    @pytest.mark.parametrize("name", sorted(WIDGETS))
    @pytest.mark.parametrize("options", [OVERVIEW, SUPPLIER, WidgetOptions(warehouse_id=1)])
    def test_every_widget_reports_no_data(self, name, options):
        payload = WIDGETS[name](DashboardSnapshot(), options)
        assert payload.empty is True
        assert payload.error is None
        assert payload.message

    def test_date_range_without_orders(self, snapshot):
        options = WidgetOptions(start_date=date(2030, 1, 1), end_date=date(2030, 12, 31))
        payload = widgets.revenue_trend(snapshot, options)
        assert payload.empty is True


class TestKpiCards:
    def test_supplier_cards_at_cost(self, snapshot):
        cards = _cards(widgets.kpi_cards(snapshot, SUPPLIER))
        assert cards == {
            "Turnover (TND)": 30.0,
            "Total Orders": 3,
            "Unique Customers": 2,
            "Returned Units": 2.0,
        }

    def test_overview_cards_at_price(self, snapshot):
        payload = widgets.kpi_cards(snapshot, OVERVIEW)
        cards = _cards(payload)
        assert cards["Revenue (TND)"] == 78.0
        assert cards["Total Orders"] == 4
        assert cards["Unique Customers"] == 3
        assert payload.extra["summary"]["value_metric"] == "revenue"

    def test_warehouse_scope(self, snapshot):
        cards = _cards(widgets.kpi_cards(snapshot, WidgetOptions(warehouse_id=2)))
        assert cards["Total Orders"] == 2
        assert cards["Revenue (TND)"] == 44.0


class TestTrends:
    def test_overview_revenue_per_year(self, snapshot):
        payload = widgets.revenue_trend(snapshot, OVERVIEW)
        assert payload.options["xaxis"]["categories"] == ["2023", "2024"]
        assert payload.series[0]["data"] == [24.0, 54.0]

    def test_supplier_turnover_per_month(self, snapshot):
        options = WidgetOptions(supplier_id=SUPPLIER_ID, granularity=Granularity.MONTHLY)
        payload = widgets.revenue_trend(snapshot, options)
        assert payload.options["xaxis"]["categories"] == ["2024-01", "2024-02", "2024-07"]
        assert payload.series[0]["data"] == [12.0, 12.0, 6.0]
        assert payload.title == "Turnover (TND) (monthly)"

    def test_date_range_applies(self, snapshot):
        options = WidgetOptions(
            supplier_id=SUPPLIER_ID,
            granularity=Granularity.MONTHLY,
            start_date=date(2024, 2, 1),
            end_date=date(2024, 2, 29),
        )
        payload = widgets.revenue_trend(snapshot, options)
        assert payload.options["xaxis"]["categories"] == ["2024-02"]

    def test_refunds_only_show_refunded_buckets(self, snapshot):
        options = WidgetOptions(supplier_id=SUPPLIER_ID, granularity=Granularity.MONTHLY)
        payload = widgets.refund_trend(snapshot, options)
        assert payload.options["xaxis"]["categories"] == ["2024-02", "2024-07"]
        assert payload.series[0]["data"] == [5.0, 10.0]


class TestQuarterlyMetrics:
    def test_all_quarters_and_totals(self, snapshot):
        payload = widgets.quarterly_metrics(snapshot, SUPPLIER)
        assert payload.series == [
            ["Q1", 2, 2, 24.0],
            ["Q2", 0, 0, 0.0],
            ["Q3", 1, 1, 6.0],
            ["Q4", 0, 0, 0.0],
            # Customer 501 ordered in Q1 and Q3 but counts once.
            ["Total", 3, 2, 30.0],
        ]
        assert payload.options["columns"] == ["Quarter", "Orders", "Customers", "Turnover (TND)"]

    def test_unknown_year_falls_back_to_latest(self, snapshot):
        payload = widgets.quarterly_metrics(snapshot, WidgetOptions(year=2030))
        assert payload.extra["selected_year"] == 2024
        assert payload.extra["years"] == [2024, 2023]

    def test_selected_year(self, snapshot):
        payload = widgets.quarterly_metrics(snapshot, WidgetOptions(year=2023))
        assert payload.series[3] == ["Q4", 1, 1, 24.0]
        assert payload.series[4] == ["Total", 1, 1, 24.0]


class TestCustomers:
    def test_regional_customers(self, snapshot):
        payload = widgets.regional_customers(snapshot, WidgetOptions(year=2024))
        assert payload.options["xaxis"]["categories"] == ["Sfax", "Tunis"]
        assert payload.series == [
            {"name": "Q1", "data": [1, 1]},
            {"name": "Q2", "data": [0, 0]},
            {"name": "Q3", "data": [0, 1]},
            {"name": "Q4", "data": [0, 0]},
        ]
        assert payload.title == "Unique Customers by Region (2024)"

    def test_supplier_segments(self, snapshot):
        payload = widgets.client_segments(snapshot, SUPPLIER)
        assert payload.options["labels"] == ["Wholesaler", "Unknown"]
        assert payload.series == [1, 1]
        assert payload.extra["total_customers"] == 2

    def test_overview_segments_count_each_customer_once(self, snapshot):
        payload = widgets.client_segments(snapshot, OVERVIEW)
        assert payload.extra["segments"] == [
            {"label": "Wholesaler", "count": 1},
            {"label": "Unknown", "count": 2},
        ]
        assert payload.extra["total_customers"] == 3


class TestProducts:
    def test_top_products_by_volume_counts_complete_orders(self, snapshot):
        payload = widgets.top_products(snapshot, SUPPLIER)
        assert payload.options["xaxis"]["categories"] == ["Dates", "Olive Oil"]
        assert payload.series[0]["data"] == [4.0, 2.0]
        assert payload.options["plotOptions"]["bar"]["horizontal"] is True

    def test_top_products_by_sales(self, snapshot):
        options = WidgetOptions(supplier_id=SUPPLIER_ID, metric="revenue")
        payload = widgets.top_products(snapshot, options)
        assert payload.series[0]["data"] == [22.0, 20.0]

    def test_overview_top_products(self, snapshot):
        payload = widgets.top_products(snapshot, OVERVIEW)
        assert payload.options["xaxis"]["categories"] == ["Couscous", "Dates", "Olive Oil"]

    def test_unknown_metric(self, snapshot):
        with pytest.raises(ValueError):
            widgets.top_products(snapshot, WidgetOptions(metric="profit"))

    def test_top_articles_shares(self, snapshot):
        payload = widgets.top_articles(snapshot, SUPPLIER)
        assert payload.options["labels"] == ["Dates", "Olive Oil"]
        assert payload.series == [57.14, 42.86]
        assert [entry["units"] for entry in payload.extra["legend"]] == [4.0, 3.0]
        assert payload.extra["total_pages"] == 1


class TestCategories:
    def test_category_comparison(self, snapshot):
        payload = widgets.category_comparison(snapshot, SUPPLIER)
        assert payload.options["xaxis"]["categories"] == ["Grocery", "Dried Fruit"]
        assert payload.series == [{"name": "Technofood", "data": [7.0, 4.0]}]
        assert payload.extra["competitors"] == {
            "Grocery": [{"supplier_id": COMPETITOR_ID, "company_name": "Maghreb Foods", "sales": 7.0}],
            "Dried Fruit": [],
        }

    def test_supplier_without_company_name(self, snapshot):
        snapshot.suppliers[0] = Supplier(manufacturerId=27, company_name=None)
        payload = widgets.category_comparison(snapshot, SUPPLIER)
        assert payload.series[0]["name"] == "My Sales"

    def test_category_comparison_needs_a_supplier(self, snapshot):
        payload = widgets.category_comparison(snapshot, OVERVIEW)
        assert payload.empty is True

    def test_sales_by_category(self, snapshot):
        payload = widgets.sales_by_category(snapshot, SUPPLIER)
        assert payload.series == [
            {"data": [{"x": "Grocery", "y": 50.0}, {"x": "Dried Fruit", "y": 20.0}]}
        ]


class TestInventoryTrend:
    def test_rebuilt_backwards_from_current_stock(self):
        snapshot = DashboardSnapshot(
            orders=[
                make_order("2024-02-05", [make_item(1, 2)]),
                make_order("2024-01-10", [make_item(1, 3)]),
                make_order("2024-03-01", [make_item(1, 50)], state="processing"),
            ],
            products=[
                Product(
                    product_id=1,
                    name="Olive Oil",
                    manufacturer=SUPPLIER_ID,
                    stock_item=StockItem(qty=10, is_in_stock=True),
                )
            ],
        )
        options = WidgetOptions(supplier_id=SUPPLIER_ID, as_of=pd.Timestamp("2024-06-30"))
        payload = widgets.inventory_trend(snapshot, options)
        assert payload.series == [
            {
                "name": "Olive Oil",
                "data": [
                    {"x": "2024-01-10T00:00:00", "y": 12.0},
                    {"x": "2024-02-05T00:00:00", "y": 10.0},
                    {"x": "2024-06-30T00:00:00", "y": 10.0},
                ],
            }
        ]

    def test_overview_needs_a_warehouse(self, snapshot):
        payload = widgets.inventory_trend(snapshot, OVERVIEW)
        assert payload.empty is True
        assert payload.message == "Select a warehouse to display stock trends"

    def test_category_without_stocked_products(self, snapshot):
        options = WidgetOptions(warehouse_id=1, category_id="200")
        payload = widgets.inventory_trend(snapshot, options)
        assert payload.message == "No products found in this category"

    def test_warehouse_stock(self, snapshot):
        options = WidgetOptions(warehouse_id=1, as_of=pd.Timestamp("2024-12-31"))
        payload = widgets.inventory_trend(snapshot, options)
        assert payload.title == "Product Stock Trends - Tunis North"
        assert [s["name"] for s in payload.series] == ["Olive Oil"]
        assert payload.series[0]["data"][-1] == {"x": "2024-12-31T00:00:00", "y": 10.0}


class TestAvailableProducts:
    def test_all_warehouses(self, snapshot):
        payload = widgets.available_products(snapshot, OVERVIEW)
        assert payload.title == "Available Products (All Warehouses)"
        assert payload.series == [[1, "Olive Oil", "OIL-1", 15.0], [3, "Couscous", "CSC-3", 7.0]]
        assert payload.extra["total"] == 2

    def test_one_warehouse(self, snapshot):
        payload = widgets.available_products(snapshot, WidgetOptions(warehouse_id=2))
        assert payload.title == "Available Products (Sfax Port)"
        assert [row[3] for row in payload.series] == [5.0, 7.0]

    def test_supplier_stock(self, snapshot):
        payload = widgets.available_products(snapshot, SUPPLIER)
        assert payload.series == [[1, "Olive Oil", "OIL-1", 20.0]]

    @pytest.mark.parametrize(
        "search, search_by, expected",
        [("cous", "name", [3]), ("oil", "sku", [1]), ("3", "id", [3])],
    )
    def test_search(self, snapshot, search, search_by, expected):
        options = WidgetOptions(search=search, search_by=search_by)
        payload = widgets.available_products(snapshot, options)
        assert [row[0] for row in payload.series] == expected

    def test_no_match(self, snapshot):
        payload = widgets.available_products(snapshot, WidgetOptions(search="caviar"))
        assert payload.empty is True
        assert payload.message == "No matching products"

    def test_unknown_search_field(self, snapshot):
        with pytest.raises(ValueError):
            widgets.available_products(snapshot, WidgetOptions(search_by="color"))

    def test_pagination(self):
        products = [
            Product(product_id=i, name=f"Item {i}", manufacturer="5", stock_item=StockItem(qty=1, is_in_stock=True))
            for i in range(1, 9)
        ]
        snapshot = DashboardSnapshot(products=products)
        payload = widgets.available_products(snapshot, WidgetOptions(supplier_id="5", page=2))
        assert [row[0] for row in payload.series] == [7, 8]
        assert payload.extra["total_pages"] == 2
        assert payload.extra["total"] == 8
