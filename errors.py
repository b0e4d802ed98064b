"""
Failure taxonomy for the marketplace core.

Each error carries the HTTP status the API layer answers with; the message is
sent back to the caller as ``{"message": ...}``.
"""


class MarketplaceError(Exception):
    status_code = 500
    default_message = "internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Conflict(MarketplaceError):
    """A business key (listing name, advertisement, cart line) already exists."""

    status_code = 409
    default_message = "already exists"


class InvalidState(MarketplaceError):
    """The operation would break a value rule such as the cart price floor."""

    status_code = 400
    default_message = "invalid state"


class NotFound(MarketplaceError):
    status_code = 404
    default_message = "not found"


class StoreUnavailable(MarketplaceError):
    status_code = 503
    default_message = "database unavailable"


class Unauthorized(MarketplaceError):
    status_code = 401
    default_message = "unauthorized access"


class Forbidden(MarketplaceError):
    status_code = 403
    default_message = "forbidden access"
