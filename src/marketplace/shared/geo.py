"""Great-circle distance and the GeoPoint value object.

``distance_km`` is the haversine formula on a sphere of radius 6371 km. It is
the single distance primitive used by driver matching and order discovery.
"""

import math

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float

from marketplace.domain import marketplace

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres between two latitude/longitude points."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def validate_coordinates(latitude, longitude) -> None:
    """Reject missing or out-of-range coordinates."""
    errors = {}
    if latitude is None or not -90.0 <= latitude <= 90.0:
        errors["latitude"] = ["Latitude must be between -90 and 90"]
    if longitude is None or not -180.0 <= longitude <= 180.0:
        errors["longitude"] = ["Longitude must be between -180 and 180"]
    if errors:
        raise ValidationError(errors)


@marketplace.value_object
class GeoPoint:
    """A latitude/longitude pair. Both coordinates are required."""

    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @invariant.post
    def both_coordinates_required(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError({"coordinates": ["Both latitude and longitude are required"]})

    def __bool__(self) -> bool:
        # (0, 0) is a real place; an all-zero point must not read as empty
        return self.latitude is not None and self.longitude is not None

    def distance_to(self, latitude: float, longitude: float) -> float:
        return distance_km(self.latitude, self.longitude, latitude, longitude)
