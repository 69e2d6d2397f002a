"""System-wide announcements, restricted to administrators."""

import structlog

from marketplace.access.guard import has_role
from marketplace.access.principal import current_principal
from marketplace.identity.user import Role
from marketplace.notifier import get_notifier
from marketplace.shared.errors import AuthorizationError, ValidationError

logger = structlog.get_logger(__name__)


def broadcast_system_message(message: str) -> None:
    principal = current_principal()
    if not has_role(principal, Role.ADMIN):
        raise AuthorizationError({"authorization": ["Only administrators can broadcast messages"]})
    if not message or not message.strip():
        raise ValidationError({"message": ["Broadcast message cannot be empty"]})

    get_notifier().broadcast_system_message(message.strip())
    logger.info("system_broadcast_sent", email=principal.email)
