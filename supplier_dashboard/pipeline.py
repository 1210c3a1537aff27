import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from supplier_dashboard import data_handler
from supplier_dashboard.charts import ChartPayload
from supplier_dashboard.snapshot import DashboardSnapshot
from supplier_dashboard.widgets import WIDGETS, WidgetOptions

logger = logging.getLogger(__name__)


@dataclass
class DashboardReport:
    dashboard: str
    generated_at: str
    filters: dict
    widgets: dict[str, ChartPayload] = field(default_factory=dict)
    context: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dashboard": self.dashboard,
            "generatedAt": self.generated_at,
            "filters": self.filters,
            "context": self.context,
            "widgets": {name: payload.to_dict() for name, payload in self.widgets.items()},
        }


class DashboardPipeline(ABC):
    """
    Abstract base class for dashboard pipelines (overview, single supplier).
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    widget_names: list[str] = []

    def __init__(self, dashboard: str, options: WidgetOptions, test_mode: bool = False):
        self.dashboard = dashboard
        self.options = options
        self.test_mode = test_mode

    def run(self) -> Optional[DashboardReport]:
        """
        Orchestrates the pipeline execution.
        """
        logger.info(f"🚀 STEP: {self.dashboard.upper()} DASHBOARD")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        snapshot = self.extract()
        if snapshot is None:
            logger.error(f"❌ Could not load data for the {self.dashboard} dashboard.")
            return None
        if snapshot.is_empty:
            logger.warning(f"⚠️ No data extracted for {self.dashboard}. Widgets will show their empty state.")

        # --- 2. TRANSFORM ---
        report = self.transform(snapshot)

        # --- 3. LOAD ---
        self.load(report)

        logger.info(f"✅ {self.dashboard.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return report

    @abstractmethod
    def extract(self) -> Optional[DashboardSnapshot]:
        """
        Fetches every collection the dashboard reads and returns one snapshot.
        """
        pass

    def context(self, snapshot: DashboardSnapshot) -> dict:
        """Header data shown above the widgets."""
        return {}

    def transform(self, snapshot: DashboardSnapshot) -> DashboardReport:
        """
        Runs each widget. A failing widget is logged and rendered as an
        inline message; it never takes the rest of the dashboard down.
        """
        report = DashboardReport(
            dashboard=self.dashboard,
            generated_at=datetime.now().isoformat(timespec="seconds"),
            filters=self.describe_filters(),
            context=self.context(snapshot),
        )
        for name in self.widget_names:
            try:
                payload = WIDGETS[name](snapshot, self.options)
            except Exception as e:
                logger.exception(f"❌ Widget '{name}' failed: {e}")
                payload = ChartPayload.failed("error", name, f"Could not build this chart: {e}")
            state = payload.error or payload.message or "ok"
            logger.info(f"  > {name}: {state}")
            report.widgets[name] = payload
        return report

    def load(self, report: DashboardReport):
        """
        Saves the report to disk and posts it to the webhook.
        """
        empty = [name for name, payload in report.widgets.items() if payload.empty]
        if empty:
            logger.info(f"Widgets without data: {', '.join(empty)}")

        data_handler.save_outputs(report)

        if not self.test_mode:
            data_handler.post_to_webhook(report)
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")

    def describe_filters(self) -> dict:
        options = self.options
        return {
            "startDate": options.start_date.isoformat() if options.start_date else None,
            "endDate": options.end_date.isoformat() if options.end_date else None,
            "warehouseId": options.warehouse_id,
            "supplierId": options.supplier_id,
            "granularity": getattr(options.granularity, "value", options.granularity),
            "year": options.year,
            "metric": options.metric,
        }

