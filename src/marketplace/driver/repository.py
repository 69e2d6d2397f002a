"""Repository for the Driver aggregate."""

from marketplace.domain import marketplace
from marketplace.driver.driver import CertificationStatus, Driver


@marketplace.repository(part_of=Driver)
class DriverRepository:
    def find_available_certified(self) -> list[Driver]:
        """Drivers on duty with an APPROVED certification."""
        return (
            self._dao.query.filter(
                available=True,
                certification_status=CertificationStatus.APPROVED.value,
            )
            .limit(None)
            .all()
            .items
        )

    def find_by_user(self, user_id) -> Driver | None:
        drivers = self._dao.query.filter(user_id=str(user_id)).limit(None).all().items
        return drivers[0] if drivers else None
