import logging
from typing import Optional

from supplier_dashboard import api_client
from supplier_dashboard.api_client import DashboardAPI, SnapshotLoader
from supplier_dashboard.errors import AccessDenied, DataFetchError, DataParseError
from supplier_dashboard.pipeline import DashboardPipeline
from supplier_dashboard.snapshot import DashboardSnapshot, load_snapshot_dir
from supplier_dashboard.widgets import WidgetOptions

logger = logging.getLogger(__name__)


class SupplierDashboardPipeline(DashboardPipeline):
    """One supplier's catalog: sales, refunds, customers and stock of their own products."""

    widget_names = [
        "kpi_cards",
        "refund_trend",
        "top_articles",
        "revenue_trend",
        "regional_customers",
        "available_products",
        "client_segments",
        "quarterly_metrics",
        "category_comparison",
        "top_products",
        "inventory_trend",
        "sales_by_category",
    ]

    def __init__(
        self,
        options: WidgetOptions,
        api: Optional[DashboardAPI] = None,
        snapshot_dir=None,
        test_mode: bool = False,
    ):
        if options.supplier_id is None:
            raise ValueError("A supplier dashboard needs a supplier id")
        super().__init__("supplier", options, test_mode=test_mode)
        self.api = api
        self.snapshot_dir = snapshot_dir
        self.loader = SnapshotLoader(self._fetch)

    def _fetch(self) -> DashboardSnapshot:
        if self.snapshot_dir is not None:
            logger.info(f"--- Loading snapshot from {self.snapshot_dir} ---")
            return load_snapshot_dir(
                self.snapshot_dir, api_client.SUPPLIER_COLLECTIONS, use_supplier_catalog=True
            )
        return self.api.fetch_snapshot(api_client.SUPPLIER_COLLECTIONS, use_supplier_catalog=True)

    def extract(self) -> Optional[DashboardSnapshot]:
        try:
            snapshot = self.loader.load()
        except (DataFetchError, DataParseError) as e:
            logger.error(f"❌ Error fetching data: {e}")
            return None

        if snapshot.suppliers and snapshot.supplier(self.options.supplier_id) is None:
            raise AccessDenied(f"Supplier {self.options.supplier_id} not found")
        return snapshot

    def context(self, snapshot: DashboardSnapshot) -> dict:
        supplier = snapshot.supplier(self.options.supplier_id)
        if supplier is None:
            return {"supplierId": self.options.supplier_id}
        location = ", ".join(part for part in (supplier.city, supplier.country) if part)
        return {
            "supplierId": self.options.supplier_id,
            "companyName": supplier.company_name,
            "location": location or None,
        }
