"""
Notification, timeline and maintenance-history models
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class NotificationType(Enum):
    WARNING = 'warning'
    PREDICTION = 'prediction'


class TimelineEventType(Enum):
    WARNING = 'warning'
    PREDICTION = 'prediction'
    HISTORY = 'history'


@dataclass
class Notification:
    message: str
    type: NotificationType
    vehicle_id: str
    read: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'message': self.message,
            'type': self.type.value,
            'vehicleId': self.vehicle_id,
            'read': self.read,
            'createdAt': self.created_at.isoformat(),
        }


@dataclass
class TimelineEvent:
    timestamp: datetime
    type: TimelineEventType
    title: str
    description: str
    vehicle_id: Optional[str] = None

    def to_dict(self):
        return {
            'timestamp': self.timestamp.isoformat(),
            'type': self.type.value,
            'title': self.title,
            'description': self.description,
            'vehicleId': self.vehicle_id,
        }


@dataclass
class MaintenanceEntry:
    """A completed maintenance job"""
    date: datetime
    component: str
    type: str
    status: str = 'Completed'
    vehicle_id: Optional[str] = None
    technician: str = ''
    cost: float = 0.0
    description: str = ''

    def to_dict(self):
        return {
            'date': self.date.isoformat(),
            'component': self.component,
            'type': self.type,
            'status': self.status,
            'vehicleId': self.vehicle_id,
            'technician': self.technician,
            'cost': self.cost,
            'description': self.description,
        }
