"""Service-layer exceptions. Routers translate these into HTTP errors."""


class WingFinderError(Exception):
    """Base class for expected, caller-facing service errors."""


class NotAuthenticatedError(WingFinderError):
    """Raised when a mutation is attempted without a user identity."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class RatingValidationError(WingFinderError):
    """Raised when a rating is not a whole number between 1 and 5."""

    def __init__(self, message: str = "Rating must be a whole number between 1 and 5") -> None:
        super().__init__(message)


class ItemNotFoundError(WingFinderError):
    """Raised when an item or location id does not exist."""
