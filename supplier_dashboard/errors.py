"""
Error types raised while loading and aggregating dashboard data.
"""
from typing import Optional

from . import settings


class DashboardError(Exception):
    """Base class for every dashboard failure."""


class DataFetchError(DashboardError):
    """The backend could not be reached or answered with an error status."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.endpoint = endpoint


class DataParseError(DashboardError):
    """A payload was not valid JSON or did not match the expected schema."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.endpoint = endpoint


class AuthenticationRequired(DashboardError):
    """No usable session; the caller should send the user to the sign-in route."""

    def __init__(self, message: str = "Sign-in required", redirect_to: str = None):
        super().__init__(message)
        self.redirect_to = redirect_to or settings.SIGN_IN_ROUTE


class AccessDenied(DashboardError):
    """The signed-in role may not open the requested dashboard."""
