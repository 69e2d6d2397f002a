"""Certification review by administrators."""

from datetime import date

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.domain import marketplace
from marketplace.driver.driver import Certification, CertificationStatus, Driver
from marketplace.shared.lookup import load


@marketplace.command(part_of="Driver")
class ReviewCertification:
    driver_id: Identifier(required=True)
    status: String(required=True, choices=CertificationStatus)
    number: String(max_length=100)
    certification_type: String(max_length=100)
    issue_date: String(max_length=10)  # ISO date
    expiry_date: String(max_length=10)  # ISO date


@marketplace.command_handler(part_of=Driver)
class ReviewCertificationHandler:
    @handle(ReviewCertification)
    def review_certification(self, command):
        require(Resource.DRIVER_PROFILE, Operation.CERTIFY, command.driver_id)
        driver = load(Driver, command.driver_id)

        certification = None
        if command.number:
            certification = Certification(
                number=command.number,
                certification_type=command.certification_type,
                issue_date=date.fromisoformat(command.issue_date) if command.issue_date else None,
                expiry_date=date.fromisoformat(command.expiry_date) if command.expiry_date else None,
            )

        driver.review_certification(CertificationStatus(command.status), certification)
        current_domain.repository_for(Driver).add(driver)
