"""
Route data models for the fleet simulator
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from backend.errors import RoutingError

EARTH_RADIUS_KM = 6371.0

# Peak perpendicular offset of a synthetic route, in degrees
SYNTHETIC_CURVE_DEGREES = 0.02


@dataclass(frozen=True)
class Waypoint:
    lat: float
    lng: float

    def to_dict(self):
        return {'lat': self.lat, 'lng': self.lng}


@dataclass
class Route:
    """Ordered waypoint sequence; synthetic until a provider resolves it"""
    waypoints: List[Waypoint]
    is_resolved: bool = False
    distance: Optional[float] = None  # meters
    duration: Optional[float] = None  # seconds
    destination_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __len__(self):
        return len(self.waypoints)

    @property
    def origin(self) -> Waypoint:
        return self.waypoints[0]

    @property
    def destination(self) -> Waypoint:
        return self.waypoints[-1]

    def to_dict(self):
        return {
            'id': self.id,
            'isResolved': self.is_resolved,
            'distance': self.distance,
            'duration': self.duration,
            'destinationId': self.destination_id,
            'waypoints': [[wp.lat, wp.lng] for wp in self.waypoints],
        }

    @classmethod
    def from_osrm(cls, payload: dict, destination_id: Optional[str] = None) -> 'Route':
        """Parse an OSRM /route response (geojson geometry, [lng, lat] pairs)"""
        if not isinstance(payload, dict):
            raise RoutingError('Routing response is not a JSON object')
        if payload.get('code') != 'Ok':
            raise RoutingError(f"Routing provider returned code {payload.get('code')!r}")

        try:
            raw_route = payload['routes'][0]
            coordinates = raw_route['geometry']['coordinates']
            waypoints = [Waypoint(lat=float(coord[1]), lng=float(coord[0])) for coord in coordinates]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RoutingError(f'Malformed routing response: {e}') from e

        if not waypoints:
            raise RoutingError('Routing response contains no coordinates')

        return cls(
            waypoints=waypoints,
            is_resolved=True,
            distance=raw_route.get('distance'),
            duration=raw_route.get('duration'),
            destination_id=destination_id,
        )


def haversine_km(a: Waypoint, b: Waypoint) -> float:
    """Great-circle distance between two points in kilometers"""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def generate_synthetic_route(origin: Waypoint, destination: Waypoint,
                             destination_id: Optional[str] = None,
                             km_per_point: float = 2.0,
                             min_points: int = 10,
                             max_points: int = 500) -> Route:
    """
    Build a curved route between two points without asking a provider.

    Points are spaced roughly km_per_point apart (clamped to
    [min_points, max_points]) and pushed sideways by a half sine wave that
    peaks at SYNTHETIC_CURVE_DEGREES halfway along the straight line.
    """
    distance = haversine_km(origin, destination)
    count = int(min(max_points, max(min_points, math.ceil(distance / km_per_point) + 1)))

    dlat = destination.lat - origin.lat
    dlng = destination.lng - origin.lng
    length = math.hypot(dlat, dlng)
    # unit normal to the straight line (zero vector for identical endpoints)
    if length > 0:
        normal_lat, normal_lng = -dlng / length, dlat / length
    else:
        normal_lat, normal_lng = 0.0, 0.0

    waypoints = []
    for i in range(count):
        t = i / (count - 1)
        offset = math.sin(math.pi * t) * SYNTHETIC_CURVE_DEGREES
        waypoints.append(Waypoint(
            lat=origin.lat + dlat * t + normal_lat * offset,
            lng=origin.lng + dlng * t + normal_lng * offset,
        ))

    # sin(pi) is not exactly zero in floating point
    waypoints[0] = origin
    waypoints[-1] = destination

    return Route(
        waypoints=waypoints,
        is_resolved=False,
        distance=distance * 1000,
        destination_id=destination_id,
    )
