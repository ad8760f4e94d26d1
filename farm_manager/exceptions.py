"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``main.py`` registers one
handler for ``FarmError`` that renders ``{"detail": message}``.
"""


class FarmError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FarmError):
    """Malformed or missing field, or a quantity outside its allowed range."""

    status_code = 400


class NotFoundError(FarmError):
    """Entity does not exist or belongs to a farm outside the caller's scope."""

    status_code = 404


class InsufficientStockError(FarmError):
    status_code = 409


class InvalidTransitionError(FarmError):
    """Purchase request status change not allowed from the current status."""

    status_code = 409
