"""Merchant aggregate: a seller with a location and operating hours."""

from protean.fields import Boolean, DateTime, String, Text, ValueObject

from marketplace.catalogue.events import MerchantRegistered
from marketplace.domain import marketplace
from marketplace.shared.clock import now
from marketplace.shared.geo import GeoPoint


@marketplace.aggregate
class Merchant:
    name = String(required=True, max_length=150)
    description = Text()
    address = String(max_length=255)
    phone = String(max_length=20)
    email = String(max_length=254)
    location = ValueObject(GeoPoint)
    opening_time = String(max_length=5)  # HH:MM, local to the merchant
    closing_time = String(max_length=5)
    active = Boolean(default=True)
    registered_at = DateTime()

    @classmethod
    def register(cls, name, address=None, latitude=None, longitude=None, **details):
        location = None
        if latitude is not None or longitude is not None:
            location = GeoPoint(latitude=latitude, longitude=longitude)

        registered_at = now()
        merchant = cls(
            name=name,
            address=address,
            location=location,
            registered_at=registered_at,
            **details,
        )
        merchant.raise_(
            MerchantRegistered(
                merchant_id=str(merchant.id),
                name=name,
                address=address,
                latitude=latitude,
                longitude=longitude,
                registered_at=registered_at,
            )
        )
        return merchant

    def distance_to(self, latitude: float, longitude: float) -> float | None:
        """Kilometres from the merchant to a point; None when the merchant has no location."""
        if self.location is None:
            return None
        return self.location.distance_to(latitude, longitude)
