import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Backend API ---
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000").rstrip("/")
API_TOKEN = os.getenv("API_TOKEN")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
FETCH_WORKERS = int(os.getenv("FETCH_WORKERS", "4"))

# Collection name -> endpoint path, relative to API_BASE_URL.
ENDPOINTS = {
    "orders": "/api/orders",
    "products": "/api/products",
    "supplier_products": "/api/supplier_products",
    "customers": "/api/customers",
    "categories": "/api/categories",
    "warehouses": "/api/warehouses",
    "suppliers": "/api/suppliers",
    "products_stock": "/api/products_stock",
}

# --- Session ---
SESSION_FILE = BASE_DIR / os.getenv("DASHBOARD_SESSION_FILE", ".session.json")
SESSION_KEY = "auth"
SIGN_IN_ROUTE = "/auth/signin"

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
REPORT_FILENAME_BASE = os.getenv("REPORT_FILENAME", "dashboard")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "true").lower() in ("1", "true", "yes")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")

# --- Aggregation ---
# Local timezone used for date-range boundaries and bucket keys.
TIMEZONE = os.getenv("DASHBOARD_TIMEZONE", "UTC")
# "month": week = ceil(day_of_month / 7), as the existing charts do. "iso": ISO weeks.
WEEK_MODE = os.getenv("DASHBOARD_WEEK_MODE", "month")
CURRENCY = os.getenv("DASHBOARD_CURRENCY", "TND")

CANCELED_STATE = "canceled"
COMPLETE_STATE = "complete"

UNKNOWN_LABEL = "Unknown"
QUARTERS = ["Q1", "Q2", "Q3", "Q4"]

# --- Presentation ---
TOP_N = int(os.getenv("TOP_N", "10"))
ARTICLES_PER_PAGE = 4
PRODUCTS_PER_PAGE = 6

# Fixed palettes; the first color is always the current supplier / main series.
PALETTE = [
    "#3C50E0",
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#F1C40F",
    "#8E44AD",
    "#E74C3C",
    "#3498DB",
    "#2ECC71",
    "#9B59B6",
    "#F39C12",
]
METRIC_COLORS = {
    "volume": "#3B82F6",
    "revenue": "#10B981",
    "turnover": "#8B5CF6",
}
