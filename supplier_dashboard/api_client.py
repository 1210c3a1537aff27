import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

import requests

from . import settings
from .errors import AuthenticationRequired, DataFetchError, DataParseError
from .snapshot import DashboardSnapshot, build_snapshot, parse_collection

logger = logging.getLogger(__name__)

OVERVIEW_COLLECTIONS = ["categories", "products", "orders", "products_stock", "customers", "warehouses"]
SUPPLIER_COLLECTIONS = ["categories", "suppliers", "orders", "supplier_products", "customers"]


class DashboardAPI:
    """
    Read-only client for the dashboard backend. Every collection endpoint
    returns a JSON array; responses are validated into schema models.
    """

    def __init__(
        self,
        base_url: str = None,
        token: Optional[str] = None,
        timeout: float = None,
        http: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.http = http or requests.Session()
        self.on_unauthorized = on_unauthorized
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def fetch_collection(self, name: str) -> list:
        url = f"{self.base_url}{settings.ENDPOINTS[name]}"
        try:
            response = self.http.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Error fetching {url}: {e}")
            raise DataFetchError(f"Could not reach {url}: {e}", endpoint=name) from e

        if response.status_code == 401:
            logger.warning("⚠️ Backend rejected the session token.")
            if self.on_unauthorized:
                self.on_unauthorized()
            raise AuthenticationRequired("Session expired or invalid")
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"❌ Error fetching {url}: {e}")
            raise DataFetchError(f"Request to {url} failed: {e}", endpoint=name) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DataParseError(f"Response from {url} is not valid JSON", endpoint=name) from e
        return parse_collection(name, payload)

    def get_orders(self):
        return self.fetch_collection("orders")

    def get_products(self):
        return self.fetch_collection("products")

    def get_supplier_products(self):
        return self.fetch_collection("supplier_products")

    def get_customers(self):
        return self.fetch_collection("customers")

    def get_categories(self):
        return self.fetch_collection("categories")

    def get_warehouses(self):
        return self.fetch_collection("warehouses")

    def get_suppliers(self):
        return self.fetch_collection("suppliers")

    def get_products_stock(self):
        return self.fetch_collection("products_stock")

    def fetch_snapshot(self, names: list[str], use_supplier_catalog: bool = False) -> DashboardSnapshot:
        """
        Fetches the collections concurrently. The first failure is re-raised
        once every request has finished.
        """
        logger.info(f"Fetching {', '.join(names)} from {self.base_url}")
        with ThreadPoolExecutor(max_workers=settings.FETCH_WORKERS) as pool:
            futures = {name: pool.submit(self.fetch_collection, name) for name in names}
        collections = {name: future.result() for name, future in futures.items()}
        for name, records in collections.items():
            logger.info(f"  > {name}: {len(records)} records")
        return build_snapshot(collections, use_supplier_catalog=use_supplier_catalog)


class SnapshotLoader:
    """
    Keeps the latest snapshot of one dashboard view. Each load takes a
    request token; a response is applied only if no newer load started in
    the meantime, so a slow, superseded response never overwrites fresher
    state.
    """

    def __init__(self, fetch: Callable[[], DashboardSnapshot]):
        self._fetch = fetch
        self._tokens = itertools.count(1)
        self._current_token = 0
        self._lock = threading.Lock()
        self.snapshot: Optional[DashboardSnapshot] = None
        self.error: Optional[Exception] = None

    def begin(self) -> int:
        with self._lock:
            self._current_token = next(self._tokens)
            return self._current_token

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._current_token

    def apply(self, token: int, snapshot: Any = None, error: Exception = None) -> bool:
        """Stores the result of load `token`; returns False when it was stale."""
        with self._lock:
            if token != self._current_token:
                logger.info(f"Discarding stale response for request {token}.")
                return False
            self.snapshot, self.error = (snapshot, None) if error is None else (self.snapshot, error)
            return True

    def load(self) -> Optional[DashboardSnapshot]:
        token = self.begin()
        try:
            snapshot = self._fetch()
        except (DataFetchError, DataParseError) as e:
            self.apply(token, error=e)
            raise
        self.apply(token, snapshot=snapshot)
        return self.snapshot
