"""Failure taxonomy shared by every stockkeeping component.

All errors are Protean exceptions, so command handlers and callers keep
catching ``ValidationError`` / ``ObjectNotFoundError`` / ``InvalidStateError``
as usual. Each class adds a stable ``code``; ``error_pair`` turns any of them
into the ``(code, message)`` pair shown to users.
"""

from protean.exceptions import (
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    ValidationError,
)


def _flatten(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            errors = errors if isinstance(errors, (list, tuple)) else [errors]
            parts.extend(f"{field}: {error}" for error in errors)
        return "; ".join(parts)
    return str(messages)


class NotFound(ObjectNotFoundError):
    """Entity is absent, soft-deleted, or belongs to another tenant."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = str(identifier)
        super().__init__({entity: [f"{entity} {identifier} not found"]})


class InvalidTransition(InvalidStateError):
    """A state machine refused to move from ``current`` to ``attempted``."""

    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, current: str, attempted: str):
        self.entity = entity
        self.current = current
        self.attempted = attempted
        super().__init__({"status": [f"Cannot move {entity} from {current} to {attempted}"]})


class LimitExceeded(ValidationError):
    code = "LIMIT_EXCEEDED"


class NegativeOccupancy(ValidationError):
    code = "NEGATIVE_OCCUPANCY"


class CapacityExceeded(ValidationError):
    code = "CAPACITY_EXCEEDED"


class InsufficientQuantity(ValidationError):
    code = "INSUFFICIENT_QUANTITY"


_FALLBACK_CODES = (
    (ObjectNotFoundError, "NOT_FOUND"),
    (InvalidStateError, "INVALID_TRANSITION"),
    (InvalidOperationError, "INVALID_OPERATION"),
    (ValidationError, "VALIDATION_ERROR"),
)


def error_pair(exc: ProteanException) -> tuple[str, str]:
    """Return the user-visible ``(code, message)`` pair for a domain failure."""
    code = getattr(exc, "code", None)
    if code is None:
        code = next((c for cls, c in _FALLBACK_CODES if isinstance(exc, cls)), "DOMAIN_ERROR")
    return code, _flatten(getattr(exc, "messages", str(exc)))
