"""Typed failures raised by the marketplace orchestration layer.

Each error carries a Protean-style ``messages`` dict (``{"field": ["message"]}``)
so callers can render the failure without parsing strings. ``ComplianceError``,
``StateTransitionError`` and ``ConflictError`` are specialised validation
failures; ``NotFoundError`` and ``AuthorizationError`` are kept apart so a
missing resource is never confused with a denied one.
"""

from protean.exceptions import ObjectNotFoundError, ProteanExceptionWithMessage, ValidationError


class ComplianceError(ValidationError):
    """An alcohol item was ordered or delivered without age verification."""


class StateTransitionError(ValidationError):
    """The requested status change is not in the transition table."""


class ConflictError(ValidationError):
    """A uniqueness rule was violated (active payment, claimed delivery, email)."""


class NotFoundError(ObjectNotFoundError, ProteanExceptionWithMessage):
    """A referenced order, delivery, payment, driver, user or product is missing."""


class AuthorizationError(ProteanExceptionWithMessage):
    """The acting principal lacks the capability for the resource and operation."""


__all__ = [
    "AuthorizationError",
    "ComplianceError",
    "ConflictError",
    "NotFoundError",
    "StateTransitionError",
    "ValidationError",
]
