"""Driver profile registration — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.domain import marketplace
from marketplace.driver.driver import Driver
from marketplace.identity.user import Role, User
from marketplace.shared.errors import ConflictError, ValidationError
from marketplace.shared.lookup import load


@marketplace.command(part_of="Driver")
class RegisterDriver:
    """Create the courier profile for a user holding the Driver role."""

    user_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    phone: String(max_length=20)
    vehicle_type: String(max_length=50)
    license_plate: String(max_length=20)


@marketplace.command_handler(part_of=Driver)
class RegisterDriverHandler:
    @handle(RegisterDriver)
    def register_driver(self, command):
        require(Resource.DRIVER_PROFILE, Operation.CREATE, command.user_id)

        user = load(User, command.user_id)
        if not user.has_role(Role.DRIVER):
            raise ValidationError({"user_id": ["User must hold the Driver role"]})

        drivers = current_domain.repository_for(Driver)
        if user.driver_id is not None or drivers.find_by_user(user.id) is not None:
            raise ConflictError({"user_id": ["User already has a driver profile"]})

        driver = Driver.register(
            user_id=user.id,
            name=command.name,
            vehicle_type=command.vehicle_type,
            license_plate=command.license_plate,
            phone=command.phone,
        )
        user.link_driver_profile(driver.id)

        drivers.add(driver)
        current_domain.repository_for(User).add(user)
        return str(driver.id)
