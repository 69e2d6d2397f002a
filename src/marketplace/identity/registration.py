"""User registration — command and handler."""

from datetime import date

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.identity.user import Role, User
from marketplace.shared.errors import ConflictError


@marketplace.command(part_of="User")
class RegisterUser:
    """Self-service sign-up. New accounts hold the Customer role only."""

    email: String(required=True, max_length=254)
    name: String(required=True, max_length=100)
    date_of_birth: String(max_length=10)  # ISO date


@marketplace.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        repo = current_domain.repository_for(User)
        if repo.find_by_email(command.email) is not None:
            raise ConflictError({"email": ["An account with this email already exists"]})

        dob = None
        if command.date_of_birth:
            dob = date.fromisoformat(command.date_of_birth)

        user = User.register(
            email=command.email,
            name=command.name,
            date_of_birth=dob,
            roles=[Role.CUSTOMER],
        )
        repo.add(user)
        return str(user.id)
