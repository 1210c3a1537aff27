import json
import logging

import pandas as pd
import requests

from . import settings
from . import utils

logger = logging.getLogger(__name__)


def save_outputs(report) -> dict:
    """
    Saves the KPI cards to CSV and conditionally the full dashboard to JSON,
    with dated filenames. Returns the paths written.
    """
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()
    base = f"{settings.REPORT_FILENAME_BASE}_{report.dashboard}_{date_suffix}"

    csv_path = settings.OUTPUT_DIR / f"{base}.csv"
    json_path = settings.OUTPUT_DIR / f"{base}.json"
    written = {}

    cards = report.widgets.get("kpi_cards")
    if cards is not None and cards.series:
        df = pd.DataFrame(cards.series, columns=["title", "value"])
        df.to_csv(csv_path, index=False)
        logger.info(f"✅ Key figures saved to: {csv_path}")
        written["csv"] = csv_path

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, default=str, ensure_ascii=False)
        logger.info(f"✅ Dashboard saved to: {json_path}")
        written["json"] = json_path
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return written


def post_to_webhook(report) -> bool:
    """
    Posts the dashboard payload to the webhook. Returns True on success.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting {report.dashboard} dashboard to webhook: {settings.WEBHOOK_URL}")
    payload = json.loads(json.dumps(report.to_dict(), default=str))

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Dashboard successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
