"""Order selection: state, date range, warehouse and supplier scope."""

from datetime import date

from conftest import make_item, make_order

from supplier_dashboard.filters import OrderFilter, filter_orders, supplier_product_ids
from supplier_dashboard.schemas import Product


class TestStateFilter:
    def test_canceled_orders_never_qualify(self):
        orders = [
            make_order("2024-03-01 10:00:00", [make_item(1, 5)]),
            make_order("2024-03-02 10:00:00", [make_item(1, 100)], state="canceled"),
        ]
        selected = filter_orders(orders, OrderFilter())
        assert len(selected) == 1
        assert selected[0].state == "complete"

    def test_status_used_when_state_missing(self):
        order = make_order("2024-03-02 10:00:00", [make_item(1)], state="", status="canceled")
        assert OrderFilter().matches(order) is False

    def test_explicit_states(self):
        orders = [
            make_order("2024-03-01", [make_item(1)], state="complete"),
            make_order("2024-03-01", [make_item(1)], state="processing"),
        ]
        selected = filter_orders(orders, OrderFilter(states=frozenset({"complete"})))
        assert [o.state for o in selected] == ["complete"]


class TestDateRange:
    def test_start_boundary_is_inclusive(self):
        order = make_order("2024-03-01 00:00:00", [make_item(1)])
        assert OrderFilter(start_date=date(2024, 3, 1)).matches(order) is True

    def test_end_boundary_includes_last_millisecond(self):
        order = make_order("2024-03-31T23:59:59.999", [make_item(1)])
        assert OrderFilter(end_date=date(2024, 3, 31)).matches(order) is True

    def test_next_day_excluded(self):
        order = make_order("2024-04-01 00:00:00", [make_item(1)])
        assert OrderFilter(end_date=date(2024, 3, 31)).matches(order) is False

    def test_missing_timestamp_reads_as_epoch(self):
        order = make_order(None, [make_item(1)])
        assert OrderFilter().matches(order) is True
        assert OrderFilter(start_date=date(2000, 1, 1)).matches(order) is False
        assert OrderFilter(end_date=date(2000, 1, 1)).matches(order) is True

    def test_aware_timestamp_converted_to_local_time(self, monkeypatch):
        from supplier_dashboard import settings

        monkeypatch.setattr(settings, "TIMEZONE", "Africa/Tunis")
        # 23:30 UTC on March 31st is already April 1st in Tunis (UTC+1).
        order = make_order("2024-03-31T23:30:00Z", [make_item(1)])
        assert OrderFilter(end_date=date(2024, 3, 31)).matches(order) is False
        assert OrderFilter(start_date=date(2024, 4, 1)).matches(order) is True


class TestScopeFilters:
    def test_warehouse(self):
        orders = [
            make_order("2024-03-01", [make_item(1)], store_id=1),
            make_order("2024-03-01", [make_item(1)], store_id=2),
        ]
        assert [o.store_id for o in filter_orders(orders, OrderFilter(warehouse_id=2))] == [2]

    def test_supplier_needs_one_matching_item(self):
        orders = [
            make_order("2024-03-01", [make_item(1), make_item(9)]),
            make_order("2024-03-01", [make_item(9)]),
        ]
        selected = filter_orders(orders, OrderFilter(supplier_product_ids=frozenset({1})))
        assert len(selected) == 1

    def test_supplier_product_ids_compares_as_text(self):
        products = [
            Product(product_id=1, manufacturer=27),
            Product(product_id=2, manufacturer="27"),
            Product(product_id=3, manufacturer="31"),
        ]
        assert supplier_product_ids(products, 27) == frozenset({1, 2})

    def test_replace_keeps_other_fields(self):
        original = OrderFilter(start_date=date(2024, 1, 1), warehouse_id=3, states=frozenset({"complete"}))
        changed = original.replace(start_date=None)
        assert changed.start_date is None
        assert changed.warehouse_id == 3
        assert changed.states == frozenset({"complete"})
        assert original.start_date == date(2024, 1, 1)
