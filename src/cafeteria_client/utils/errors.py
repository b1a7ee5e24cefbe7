class PortalError(Exception):
    """Base class for every failure raised by the portal clients."""


class LoginFailure(PortalError):
    """Raised when the site rejects the credentials (or the account is blocked)."""


class SessionExpiredError(PortalError):
    """Raised when the session is gone and no remembered credentials can restore it."""


class NotLoggedInError(SessionExpiredError):
    """Raised when an operation needs a login that never happened."""


class ParseError(PortalError):
    """Raised when expected markup or JSON is missing from a response."""


class CartFailure(PortalError):
    """Raised when the site explicitly rejects an add-to-cart request."""

    def __init__(self, site_message: str) -> None:
        super().__init__(f"Add to cart failed: {site_message}")
        self.site_message = site_message


class EditModeTransitionFailure(PortalError):
    """Raised when the orders page does not reach edit mode after toggling it."""


class NetworkError(PortalError):
    """Raised on timeouts, connection errors and unexpected HTTP statuses."""
