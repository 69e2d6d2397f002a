"""User aggregate: the acting identity behind every command.

A user holds a set of roles. MERCHANT_ADMIN users are linked to the merchant
they administer, DRIVER users to their driver profile. The two roles are
mutually exclusive, becoming a DRIVER requires a verified age, and a user can
never be left without a role.
"""

import json
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Identifier, String, Text

from marketplace.domain import marketplace
from marketplace.identity.events import (
    RoleAssigned,
    RoleRevoked,
    UserAgeVerified,
    UserDeactivated,
    UserProfileUpdated,
    UserRegistered,
)
from marketplace.shared.clock import now


class Role(Enum):
    CUSTOMER = "Customer"
    DRIVER = "Driver"
    MERCHANT_ADMIN = "Merchant_Admin"
    ADMIN = "Admin"


_EXCLUSIVE_ROLES = {
    Role.DRIVER: Role.MERCHANT_ADMIN,
    Role.MERCHANT_ADMIN: Role.DRIVER,
}


@marketplace.aggregate
class User:
    email = String(required=True, max_length=254, unique=True)
    name = String(required=True, max_length=100)
    date_of_birth = Date()
    roles = Text(default="[]")  # JSON list of Role values
    merchant_id = Identifier()
    driver_id = Identifier()
    age_verified = Boolean(default=False)
    active = Boolean(default=True)
    registered_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, email, name, date_of_birth=None, roles=None):
        role_values = [Role(r).value for r in (roles or [Role.CUSTOMER.value])]
        registered_at = now()
        user = cls(
            email=email.strip().lower(),
            name=name,
            date_of_birth=date_of_birth,
            roles=json.dumps(role_values),
            registered_at=registered_at,
            updated_at=registered_at,
        )
        user.raise_(
            UserRegistered(
                user_id=str(user.id),
                email=user.email,
                name=name,
                roles=user.roles,
                registered_at=registered_at,
            )
        )
        return user

    # -------------------------------------------------------------------
    # Role queries
    # -------------------------------------------------------------------
    @property
    def role_set(self) -> set[Role]:
        return {Role(value) for value in json.loads(self.roles or "[]")}

    def has_role(self, role: Role) -> bool:
        return role in self.role_set

    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    def is_merchant_admin(self) -> bool:
        return self.has_role(Role.MERCHANT_ADMIN) and self.merchant_id is not None

    def is_driver(self) -> bool:
        return self.has_role(Role.DRIVER) and self.driver_id is not None

    def owns_merchant(self, merchant_id) -> bool:
        return self.is_merchant_admin() and str(self.merchant_id) == str(merchant_id)

    # -------------------------------------------------------------------
    # Role management
    # -------------------------------------------------------------------
    def assign_role(self, role: Role, merchant_id=None) -> None:
        """Grant a role, enforcing the exclusivity and age rules."""
        conflicting = _EXCLUSIVE_ROLES.get(role)
        if conflicting is not None and self.has_role(conflicting):
            raise ValidationError(
                {"roles": [f"A {conflicting.value} cannot also hold the {role.value} role"]}
            )
        if role == Role.DRIVER and not self.age_verified:
            raise ValidationError({"roles": ["User must be age verified to become a driver"]})
        if role == Role.MERCHANT_ADMIN:
            if merchant_id is None:
                raise ValidationError({"merchant_id": ["Merchant ID is required for the Merchant_Admin role"]})
            self.merchant_id = merchant_id

        roles = self.role_set | {role}
        self.roles = json.dumps(sorted(r.value for r in roles))
        self.updated_at = now()
        self.raise_(
            RoleAssigned(
                user_id=str(self.id),
                role=role.value,
                merchant_id=str(merchant_id) if merchant_id else None,
                assigned_at=self.updated_at,
            )
        )

    def revoke_role(self, role: Role) -> None:
        roles = self.role_set
        if role not in roles:
            raise ValidationError({"roles": [f"User does not hold the {role.value} role"]})
        if len(roles) == 1:
            raise ValidationError({"roles": ["Cannot remove the last role from a user"]})

        roles.discard(role)
        self.roles = json.dumps(sorted(r.value for r in roles))
        if role == Role.MERCHANT_ADMIN:
            self.merchant_id = None
        self.updated_at = now()
        self.raise_(
            RoleRevoked(
                user_id=str(self.id),
                role=role.value,
                revoked_at=self.updated_at,
            )
        )

    def link_driver_profile(self, driver_id) -> None:
        if not self.has_role(Role.DRIVER):
            raise ValidationError({"roles": ["Only users with the Driver role can own a driver profile"]})
        self.driver_id = driver_id
        self.updated_at = now()

    # -------------------------------------------------------------------
    # Account state
    # -------------------------------------------------------------------
    def update_profile(self, name=None, date_of_birth=None) -> None:
        if name is None and date_of_birth is None:
            raise ValidationError({"profile": ["Nothing to update"]})
        if name is not None:
            self.name = name
        if date_of_birth is not None:
            self.date_of_birth = date_of_birth
        self.updated_at = now()
        self.raise_(
            UserProfileUpdated(
                user_id=str(self.id),
                name=self.name,
                date_of_birth=self.date_of_birth.isoformat() if self.date_of_birth else None,
                updated_at=self.updated_at,
            )
        )

    def verify_age(self) -> None:
        if self.age_verified:
            return
        self.age_verified = True
        self.updated_at = now()
        self.raise_(UserAgeVerified(user_id=str(self.id), verified_at=self.updated_at))

    def deactivate(self) -> None:
        if not self.active:
            raise ValidationError({"active": ["User is already inactive"]})
        self.active = False
        self.updated_at = now()
        self.raise_(UserDeactivated(user_id=str(self.id), deactivated_at=self.updated_at))
