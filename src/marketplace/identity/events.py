"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="User")
class UserRegistered:
    """A new user account was created with its initial roles."""

    __version__ = 1

    user_id: Identifier(required=True)
    email: String(required=True)
    name: String(required=True)
    roles: Text(required=True)
    registered_at: DateTime(required=True)


@marketplace.event(part_of="User")
class UserAgeVerified:
    """The user's legal drinking age was confirmed by an administrator."""

    __version__ = 1

    user_id: Identifier(required=True)
    verified_at: DateTime(required=True)


@marketplace.event(part_of="User")
class RoleAssigned:
    __version__ = 1

    user_id: Identifier(required=True)
    role: String(required=True)
    merchant_id: String()
    assigned_at: DateTime(required=True)


@marketplace.event(part_of="User")
class RoleRevoked:
    __version__ = 1

    user_id: Identifier(required=True)
    role: String(required=True)
    revoked_at: DateTime(required=True)


@marketplace.event(part_of="User")
class UserDeactivated:
    """The account was disabled. Inactive users fail every capability check."""

    __version__ = 1

    user_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)


@marketplace.event(part_of="User")
class UserProfileUpdated:
    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True)
    date_of_birth: String()
    updated_at: DateTime(required=True)
