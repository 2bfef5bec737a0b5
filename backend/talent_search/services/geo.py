"""
Geo membership: which desired cities lie within a radius of a point.

A bounding box over the (latitude, longitude) index prunes the city table and
the haversine_km SQL function (registered per connection in database.py)
refines the box to a true circle. Only city ids ever leave this module.
"""
import math
from dataclasses import dataclass

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.orm import Session

from talent_search.database import EARTH_RADIUS_KM
from talent_search.models.city import DesiredCity
from talent_search.services.candidate_store import store_errors
from talent_search.services.domain import GeoPoint
from talent_search.services.errors import InvalidRequest


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    # One range normally, two when the box straddles the antimeridian.
    lng_ranges: tuple[tuple[float, float], ...]


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    angular = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular)
    min_lat = center.latitude - lat_delta
    max_lat = center.latitude + lat_delta

    if min_lat <= -90 or max_lat >= 90 or angular >= math.pi / 2:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), ((-180.0, 180.0),))

    ratio = math.sin(angular) / math.cos(math.radians(center.latitude))
    if ratio >= 1:
        return BoundingBox(min_lat, max_lat, ((-180.0, 180.0),))

    lng_delta = math.degrees(math.asin(ratio))
    min_lng = center.longitude - lng_delta
    max_lng = center.longitude + lng_delta
    if min_lng < -180:
        ranges = ((min_lng + 360, 180.0), (-180.0, max_lng))
    elif max_lng > 180:
        ranges = ((min_lng, 180.0), (-180.0, max_lng - 360))
    else:
        ranges = ((min_lng, max_lng),)
    return BoundingBox(min_lat, max_lat, ranges)


def validate_geo(center: GeoPoint | None, radius_km: float | None) -> None:
    if center is None or radius_km is None:
        raise InvalidRequest("Geo filtering needs both a center and a radius")
    if not -90 <= center.latitude <= 90 or not -180 <= center.longitude <= 180:
        raise InvalidRequest("Center coordinates are out of range")
    if not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidRequest("Radius must be a positive number of kilometres")


class GeoMembershipResolver:
    def city_ids_within(self, center: GeoPoint, radius_km: float) -> Select:
        """Selectable of desired city ids within radius_km of center."""
        validate_geo(center, radius_km)
        box = bounding_box(center, radius_km)
        lng_filter = or_(*(DesiredCity.longitude.between(lo, hi) for lo, hi in box.lng_ranges))
        return select(DesiredCity.id).where(
            and_(
                DesiredCity.latitude.between(box.min_lat, box.max_lat),
                lng_filter,
                func.haversine_km(
                    center.latitude, center.longitude, DesiredCity.latitude, DesiredCity.longitude
                ) <= radius_km,
            )
        )

    def resolve(self, db: Session, center: GeoPoint, radius_km: float) -> set[int]:
        stmt = self.city_ids_within(center, radius_km)
        with store_errors():
            return set(db.scalars(stmt).all())
