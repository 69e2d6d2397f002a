"""Driver self-service commands for duty status and position."""

from protean import handle
from protean.fields import Boolean, Float, Identifier
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.domain import marketplace
from marketplace.driver.driver import Driver
from marketplace.shared.geo import validate_coordinates
from marketplace.shared.lookup import load


@marketplace.command(part_of="Driver")
class UpdateDriverAvailability:
    driver_id: Identifier(required=True)
    available: Boolean(default=False)


@marketplace.command(part_of="Driver")
class UpdateDriverLocation:
    driver_id: Identifier(required=True)
    latitude: Float(required=True)
    longitude: Float(required=True)


@marketplace.command_handler(part_of=Driver)
class DriverSelfServiceHandler:
    @handle(UpdateDriverAvailability)
    def update_availability(self, command):
        require(Resource.DRIVER_PROFILE, Operation.UPDATE, command.driver_id)
        driver = load(Driver, command.driver_id)
        driver.set_availability(command.available)
        current_domain.repository_for(Driver).add(driver)

    @handle(UpdateDriverLocation)
    def update_location(self, command):
        require(Resource.DRIVER_PROFILE, Operation.UPDATE, command.driver_id)
        validate_coordinates(command.latitude, command.longitude)
        driver = load(Driver, command.driver_id)
        driver.move_to(command.latitude, command.longitude)
        current_domain.repository_for(Driver).add(driver)
