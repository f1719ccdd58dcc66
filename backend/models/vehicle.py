"""
Vehicle data models for the fleet simulator
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, Optional, Tuple

from backend.models.route import Route, Waypoint

HISTORY_LENGTH = 20


@dataclass
class Vehicle:
    """Vehicle state, mutated only by the simulation tick"""
    id: str
    name: str
    lat: float
    lng: float
    model: str = ''
    year: Optional[int] = None
    mileage: Optional[int] = None
    origin_lat: Optional[float] = None
    origin_lng: Optional[float] = None
    route: Optional[Route] = None
    route_index: int = 0
    metrics: Dict[str, float] = field(default_factory=dict)
    history: Dict[str, Deque[Tuple[datetime, float]]] = field(default_factory=dict)
    warnings: Dict[str, bool] = field(default_factory=dict)
    is_moving: bool = False
    last_service_date: Optional[datetime] = None
    next_service_date: Optional[datetime] = None
    last_update: str = ''

    @property
    def position(self) -> Waypoint:
        return Waypoint(self.lat, self.lng)

    def record(self, kind: str, value: float, timestamp: datetime, maxlen: int = HISTORY_LENGTH):
        """Store the current value of a metric and append it to its history"""
        self.metrics[kind] = value
        points = self.history.get(kind)
        if points is None or points.maxlen != maxlen:
            points = deque(points or (), maxlen=maxlen)
            self.history[kind] = points
        points.append((timestamp, value))

    def recent_values(self, kind: str, count: int):
        points = self.history.get(kind) or ()
        return [value for _, value in list(points)[-count:]]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'model': self.model,
            'year': self.year,
            'mileage': self.mileage,
            'lat': self.lat,
            'lng': self.lng,
            'origin': {'lat': self.origin_lat, 'lng': self.origin_lng},
            'isMoving': self.is_moving,
            'route': self.route.to_dict() if self.route is not None else None,
            'routeIndex': self.route_index,
            'metrics': dict(self.metrics),
            'history': {
                kind: [{'time': ts.isoformat(), 'value': value} for ts, value in points]
                for kind, points in self.history.items()
            },
            'warnings': dict(self.warnings),
            'lastServiceDate': self.last_service_date.isoformat() if self.last_service_date else None,
            'nextServiceDate': self.next_service_date.isoformat() if self.next_service_date else None,
            'lastUpdate': self.last_update,
        }
