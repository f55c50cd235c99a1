class CompanionError(Exception):
    """Base class for every error raised by the companion packages."""


class ValidationError(CompanionError):
    """A submitted reading is missing a required field or carries a bad value."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TransportError(CompanionError):
    """The relay could not be reached or answered with an unexpected status."""


class GeolocationError(CompanionError):
    """The position source of a mobile tracker failed."""
