"""Account administration commands: age verification, roles and deactivation."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.catalogue.merchant import Merchant
from marketplace.domain import marketplace
from marketplace.identity.user import Role, User
from marketplace.shared.lookup import load


@marketplace.command(part_of="User")
class VerifyUserAge:
    user_id: Identifier(required=True)


@marketplace.command(part_of="User")
class AssignRole:
    user_id: Identifier(required=True)
    role: String(required=True, choices=Role)
    merchant_id: Identifier()  # required for Merchant_Admin


@marketplace.command(part_of="User")
class RevokeRole:
    user_id: Identifier(required=True)
    role: String(required=True, choices=Role)


@marketplace.command(part_of="User")
class DeactivateUser:
    user_id: Identifier(required=True)


def _require_admin(user_id) -> None:
    require(Resource.USER_ACCOUNT, Operation.ADMINISTER, user_id)


@marketplace.command_handler(part_of=User)
class UserAdministrationHandler:
    @handle(VerifyUserAge)
    def verify_age(self, command):
        _require_admin(command.user_id)
        user = load(User, command.user_id)
        user.verify_age()
        current_domain.repository_for(User).add(user)

    @handle(AssignRole)
    def assign_role(self, command):
        _require_admin(command.user_id)
        user = load(User, command.user_id)
        role = Role(command.role)
        if role == Role.MERCHANT_ADMIN and command.merchant_id is not None:
            load(Merchant, command.merchant_id)

        user.assign_role(role, merchant_id=command.merchant_id)
        current_domain.repository_for(User).add(user)

    @handle(RevokeRole)
    def revoke_role(self, command):
        _require_admin(command.user_id)
        user = load(User, command.user_id)
        user.revoke_role(Role(command.role))
        current_domain.repository_for(User).add(user)

    @handle(DeactivateUser)
    def deactivate(self, command):
        _require_admin(command.user_id)
        user = load(User, command.user_id)
        user.deactivate()
        current_domain.repository_for(User).add(user)
