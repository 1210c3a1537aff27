import argparse
import logging
import sys
from pathlib import Path

from supplier_dashboard import settings, utils
from supplier_dashboard.api_client import DashboardAPI
from supplier_dashboard.bucketing import WEEK_MODES, Granularity
from supplier_dashboard.errors import AccessDenied, AuthenticationRequired
from supplier_dashboard.logger import setup_logger
from supplier_dashboard.pipelines.overview import OverviewDashboardPipeline
from supplier_dashboard.pipelines.supplier import SupplierDashboardPipeline
from supplier_dashboard.session import OVERVIEW, SessionStore, open_session, resolve_route
from supplier_dashboard.widgets import SEARCH_FIELDS, TOP_PRODUCT_METRICS, WidgetOptions

logger = logging.getLogger("supplier_dashboard")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the supplier analytics dashboard")
    parser.add_argument("--supplier", help="Supplier (manufacturer) id; superadmins only, suppliers see their own")
    parser.add_argument("--warehouse", type=int, help="Restrict the overview to one warehouse id")
    parser.add_argument("--start", type=utils.parse_date, help="First day included (YYYY-MM-DD)")
    parser.add_argument("--end", type=utils.parse_date, help="Last day included (YYYY-MM-DD)")
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=Granularity.YEARLY.value,
    )
    parser.add_argument("--week-mode", choices=WEEK_MODES)
    parser.add_argument("--year", type=int, help="Year for the quarterly and regional widgets")
    parser.add_argument("--metric", choices=list(TOP_PRODUCT_METRICS), default="volume")
    parser.add_argument("--category", help="Category id for the stock trend widget")
    parser.add_argument("--search", default="", help="Filter available products")
    parser.add_argument("--search-by", choices=SEARCH_FIELDS, default="name")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--session-file", type=Path, help="Session document to read")
    parser.add_argument(
        "--snapshot-dir",
        type=Path,
        nargs="?",
        const=settings.INPUT_DIR,
        help="Read collections from JSON files instead of the API (default directory: INPUT_DIR)",
    )
    parser.add_argument("--log-level", help="Overrides LOG_LEVEL")
    parser.add_argument("--test-mode", action="store_true", help="Skip the webhook post")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    store = SessionStore(args.session_file) if args.session_file else SessionStore()
    try:
        with open_session(store) as session:
            route = resolve_route(session, args.supplier)
            options = WidgetOptions(
                start_date=args.start,
                end_date=args.end,
                warehouse_id=args.warehouse,
                supplier_id=route.supplier_id,
                granularity=Granularity(args.granularity),
                week_mode=args.week_mode,
                year=args.year,
                metric=args.metric,
                category_id=args.category,
                search=args.search,
                search_by=args.search_by,
                page=args.page,
            )
            api = None
            if args.snapshot_dir is None:
                api = DashboardAPI(token=session.token, on_unauthorized=session.sign_out)

            pipeline_cls = OverviewDashboardPipeline if route.dashboard == OVERVIEW else SupplierDashboardPipeline
            pipeline = pipeline_cls(options, api=api, snapshot_dir=args.snapshot_dir, test_mode=args.test_mode)
            report = pipeline.run()
    except AuthenticationRequired as e:
        logger.error(f"❌ {e}. Please sign in again ({e.redirect_to}).")
        return 1
    except AccessDenied as e:
        logger.error(f"❌ Access denied: {e}")
        return 1

    return 0 if report is not None else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logger(log_level=args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
