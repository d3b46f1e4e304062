"""
Booking and availability exceptions.
"""


class MarketplaceError(Exception):
    """Base exception for booking core errors."""
    pass


class NotFoundError(MarketplaceError):
    """Raised when a slot, booking, specialist or verification record is absent."""
    pass


class SlotUnavailableError(MarketplaceError):
    """Raised when a slot was reserved by someone else; pick another slot, do not retry."""
    pass


class InvalidTransitionError(MarketplaceError):
    """Raised when the booking's status does not allow the requested move."""
    pass


class ForbiddenError(MarketplaceError):
    """Raised when the actor does not own the booking."""
    pass


class ConflictError(MarketplaceError):
    """Raised when availability retraction would orphan live bookings."""

    def __init__(self, message: str, booking_ids=None):
        super().__init__(message)
        self.booking_ids = list(booking_ids or [])


class StoreFailureError(MarketplaceError):
    """Raised when the backing store fails; the core never retries."""
    pass
