import logging
from typing import Optional

from supplier_dashboard import api_client
from supplier_dashboard.api_client import DashboardAPI, SnapshotLoader
from supplier_dashboard.errors import DataFetchError, DataParseError
from supplier_dashboard.pipeline import DashboardPipeline
from supplier_dashboard.snapshot import DashboardSnapshot, load_snapshot_dir
from supplier_dashboard.widgets import WidgetOptions

logger = logging.getLogger(__name__)


class OverviewDashboardPipeline(DashboardPipeline):
    """All suppliers at once, optionally narrowed to one warehouse."""

    widget_names = [
        "kpi_cards",
        "revenue_trend",
        "quarterly_metrics",
        "refund_trend",
        "available_products",
        "sales_by_category",
        "client_segments",
        "regional_customers",
        "inventory_trend",
        "top_products",
    ]

    def __init__(
        self,
        options: WidgetOptions,
        api: Optional[DashboardAPI] = None,
        snapshot_dir=None,
        test_mode: bool = False,
    ):
        super().__init__("overview", options, test_mode=test_mode)
        self.api = api
        self.snapshot_dir = snapshot_dir
        self.loader = SnapshotLoader(self._fetch)

    def _fetch(self) -> DashboardSnapshot:
        if self.snapshot_dir is not None:
            logger.info(f"--- Loading snapshot from {self.snapshot_dir} ---")
            return load_snapshot_dir(self.snapshot_dir, api_client.OVERVIEW_COLLECTIONS)
        return self.api.fetch_snapshot(api_client.OVERVIEW_COLLECTIONS)

    def extract(self) -> Optional[DashboardSnapshot]:
        try:
            return self.loader.load()
        except (DataFetchError, DataParseError) as e:
            logger.error(f"❌ Error fetching data: {e}")
            return None

    def context(self, snapshot: DashboardSnapshot) -> dict:
        warehouse = snapshot.warehouse(self.options.warehouse_id)
        return {
            "warehouses": [{"id": w.id, "name": w.name} for w in snapshot.warehouses],
            "selectedWarehouse": warehouse.name if warehouse else None,
        }
