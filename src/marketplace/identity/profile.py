"""Self-service account reads and profile updates."""

from datetime import date

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.domain import marketplace
from marketplace.identity.user import User
from marketplace.shared.lookup import load


@marketplace.command(part_of="User")
class UpdateUserProfile:
    user_id: Identifier(required=True)
    name: String(max_length=100)
    date_of_birth: String(max_length=10)  # ISO date


@marketplace.command_handler(part_of=User)
class UserProfileHandler:
    @handle(UpdateUserProfile)
    def update_profile(self, command):
        require(Resource.USER_ACCOUNT, Operation.UPDATE, command.user_id)
        user = load(User, command.user_id)
        user.update_profile(
            name=command.name,
            date_of_birth=date.fromisoformat(command.date_of_birth) if command.date_of_birth else None,
        )
        current_domain.repository_for(User).add(user)


def get_user(user_id) -> User:
    require(Resource.USER_ACCOUNT, Operation.READ, user_id)
    return load(User, user_id)
