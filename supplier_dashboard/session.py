"""
Signed-in session handling.

The session is an explicit object created once per run by `open_session()`
and handed to whoever needs it, instead of being re-read from shared storage
by every component. `SessionStore` persists the `{"auth": {...}}` document in
a JSON file.
"""
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from . import settings
from .errors import AccessDenied, AuthenticationRequired
from .schemas import AuthData

logger = logging.getLogger(__name__)

SUPPLIER_ROLE = "supplier"
SUPERADMIN_ROLE = "superadmin"
ROLES = (SUPPLIER_ROLE, SUPERADMIN_ROLE)


class SessionStore:
    """File-backed replacement for the browser's `auth` storage key."""

    def __init__(self, path: Path = None, key: str = settings.SESSION_KEY):
        self.path = Path(path or settings.SESSION_FILE)
        self.key = key

    def load(self) -> AuthData:
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise AuthenticationRequired("No stored session") from None
        except (OSError, ValueError) as e:
            logger.error(f"Error parsing session data: {e}")
            raise AuthenticationRequired("Stored session is unreadable") from e

        raw = document.get(self.key) if isinstance(document, dict) else None
        if not raw:
            raise AuthenticationRequired("No stored session")
        try:
            auth = AuthData(**raw)
        except (TypeError, ValidationError) as e:
            logger.error(f"Error parsing session data: {e}")
            raise AuthenticationRequired("Stored session is unreadable") from e

        if auth.role not in ROLES:
            raise AuthenticationRequired(f"Unknown role: {auth.role!r}")
        return auth

    def save(self, auth: AuthData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {self.key: auth.model_dump(mode="json", exclude_none=True)}
        self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass
class DashboardSession:
    auth: AuthData
    store: SessionStore
    closed: bool = False

    @property
    def role(self) -> str:
        return self.auth.role

    @property
    def token(self) -> Optional[str]:
        return self.auth.token or settings.API_TOKEN

    @property
    def is_superadmin(self) -> bool:
        return self.auth.role == SUPERADMIN_ROLE

    @property
    def manufacturer_id(self) -> Optional[str]:
        return self.auth.user.manufacturer_id

    @property
    def display_name(self) -> str:
        if self.is_superadmin:
            return self.auth.user.username or "Admin"
        return self.auth.user.company_name or "Supplier"

    def sign_out(self) -> None:
        """Drops the stored session; later runs must sign in again."""
        self.store.clear()
        self.closed = True


@dataclass(frozen=True)
class Route:
    """Which dashboard to open, and for which supplier (None = every supplier)."""

    dashboard: str
    supplier_id: Optional[str] = None


OVERVIEW = "overview"
SUPPLIER = "supplier"


def resolve_route(session: DashboardSession, supplier_id: Optional[str] = None) -> Route:
    """
    Superadmins get the all-suppliers overview, or a single supplier's
    dashboard when one is requested. Suppliers only ever see their own.
    """
    if session.is_superadmin:
        if supplier_id is None:
            return Route(OVERVIEW)
        return Route(SUPPLIER, str(supplier_id))

    own_id = session.manufacturer_id
    if own_id is None:
        raise AccessDenied("Supplier session has no manufacturer id")
    if supplier_id is not None and str(supplier_id) != own_id:
        raise AccessDenied(f"Supplier {own_id} may not open the dashboard of supplier {supplier_id}")
    return Route(SUPPLIER, own_id)


@contextmanager
def open_session(store: SessionStore = None) -> Iterator[DashboardSession]:
    """
    Loads the stored session for the duration of one dashboard run.
    Raises AuthenticationRequired when there is no usable session.
    """
    store = store or SessionStore()
    session = DashboardSession(auth=store.load(), store=store)
    logger.info(f"Signed in as {session.display_name} ({session.role})")
    try:
        yield session
    finally:
        session.closed = True
