"""The authenticated actor behind the current command.

Transport layers authenticate the caller and wrap the work in
``acting_as(Principal(...))``. Handlers read the actor through
``current_principal()``; nothing here issues or validates credentials.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from marketplace.identity.user import User


@dataclass(frozen=True)
class Principal:
    """An authenticated identity.

    ``user`` is set when the caller already materialized the account;
    otherwise the user is resolved by ``email`` on demand.
    """

    email: str | None = None
    user: User | None = None


_current_principal: ContextVar[Principal | None] = ContextVar("marketplace_principal", default=None)


@contextmanager
def acting_as(principal: Principal | User | None) -> Iterator[Principal | None]:
    if isinstance(principal, User):
        principal = Principal(email=principal.email, user=principal)
    token = _current_principal.set(principal)
    try:
        # Log lines emitted while acting carry the actor
        with structlog.contextvars.bound_contextvars(actor=principal.email if principal else None):
            yield principal
    finally:
        _current_principal.reset(token)


def current_principal() -> Principal | None:
    return _current_principal.get()


def resolve_actor(actor: Principal | User | None) -> User | None:
    """Materialized user first, then lookup by email. Never raises."""
    if actor is None:
        return None
    if isinstance(actor, User):
        return actor
    if actor.user is not None:
        return actor.user
    return current_domain.repository_for(User).find_by_email(actor.email)
