"""
Notification and timeline service.

Turns warning-flag edges and high-priority predictions into short-lived
notifications, and keeps a newest-first timeline of everything that happened.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Sequence

from backend.models.notification import (
    MaintenanceEntry, Notification, NotificationType, TimelineEvent, TimelineEventType,
)
from backend.models.prediction import Prediction, Priority
from backend.models.sensor import SensorDefinition
from backend.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


class NotificationDeriver:
    """
    Owns live notifications and the event timeline.

    Each notification gets its own removal timer, so expiry happens after
    ``ttl_seconds`` of wall-clock time whether or not the simulation ticks.
    """

    def __init__(self, ttl_seconds: float = 8, max_prediction_notifications: int = 5,
                 timeline_limit: Optional[int] = None):
        self.ttl_seconds = ttl_seconds
        self.max_prediction_notifications = max_prediction_notifications
        self.timeline: Deque[TimelineEvent] = deque(maxlen=timeline_limit)
        self._notifications: Dict[str, Notification] = {}
        self._timers: Dict[str, threading.Timer] = {}
        self._previous_warnings: Dict[str, Dict[str, bool]] = {}
        self._history_seeded = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Tick integration
    # ------------------------------------------------------------------

    def derive(self, vehicle: Vehicle, sensors: Iterable[SensorDefinition]) -> List[Notification]:
        """Emit one notification and timeline event per new warning flag"""
        sensors = {s.kind: s for s in sensors}
        created = []
        previous = self._previous_warnings.get(vehicle.id, {})

        for kind, warning in vehicle.warnings.items():
            if not warning or previous.get(kind, False):
                continue

            value = vehicle.metrics.get(kind)
            sensor = sensors.get(kind)
            label = sensor.name if sensor else kind
            unit = sensor.unit if sensor else ''
            reading = f"{value:.1f}{unit}" if value is not None else 'unknown'
            message = f"{vehicle.name}: Warning! {label} at {reading}"

            notification = self.notify(message, NotificationType.WARNING, vehicle.id)
            if notification:
                created.append(notification)
            self.add_event(TimelineEventType.WARNING, 'Sensor warning', message, vehicle.id)

        self._previous_warnings[vehicle.id] = dict(vehicle.warnings)
        return created

    def derive_predictions(self, predictions: Sequence[Prediction]) -> List[Notification]:
        """
        Notify the soonest High predictions across the whole fleet.

        ``predictions`` is the fleet-wide list for one tick. At most
        ``max_prediction_notifications`` High entries are taken, soonest
        failure first; each selected entry is logged to the timeline even
        when its notification is still live.
        """
        selected = sorted((p for p in predictions if p.priority == Priority.HIGH),
                          key=lambda p: p.predicted_failure_in_days)
        created = []
        for prediction in selected[:self.max_prediction_notifications]:
            summary = prediction.reason.split(' at ')[0]
            message = f"{prediction.component}: {summary} ({prediction.predicted_failure_in_days} days)"
            notification = self.notify(message, NotificationType.PREDICTION, prediction.vehicle_id)
            if notification:
                created.append(notification)
            self.add_event(TimelineEventType.PREDICTION, 'High failure probability',
                           f"{prediction.component} | {prediction.reason}", prediction.vehicle_id)
        return created

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def notify(self, message: str, type: NotificationType, vehicle_id: str) -> Optional[Notification]:
        """Create a notification unless an identical one is still live"""
        with self._lock:
            for existing in self._notifications.values():
                if existing.message == message and existing.vehicle_id == vehicle_id:
                    return None

            notification = Notification(message=message, type=type, vehicle_id=vehicle_id)
            self._notifications[notification.id] = notification

            timer = threading.Timer(self.ttl_seconds, self._expire, args=(notification.id,))
            timer.daemon = True
            self._timers[notification.id] = timer
            timer.start()

        logger.info(f"Notification ({type.value}) for vehicle {vehicle_id}: {message}")
        return notification

    def _expire(self, notification_id: str):
        with self._lock:
            self._timers.pop(notification_id, None)
            self._notifications.pop(notification_id, None)

    def dismiss(self, notification_id: str) -> bool:
        with self._lock:
            timer = self._timers.pop(notification_id, None)
            if timer:
                timer.cancel()
            return self._notifications.pop(notification_id, None) is not None

    def mark_read(self, notification_id: str) -> bool:
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None:
                return False
            notification.read = True
            return True

    def live(self) -> List[Notification]:
        with self._lock:
            return sorted(self._notifications.values(), key=lambda n: n.created_at, reverse=True)

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._notifications.values() if not n.read)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def add_event(self, type: TimelineEventType, title: str, description: str,
                  vehicle_id: Optional[str] = None, timestamp: Optional[datetime] = None) -> TimelineEvent:
        event = TimelineEvent(timestamp=timestamp or datetime.now(), type=type, title=title,
                              description=description, vehicle_id=vehicle_id)
        with self._lock:
            self.timeline.appendleft(event)
        return event

    def timeline_events(self, limit: Optional[int] = None) -> List[TimelineEvent]:
        with self._lock:
            events = list(self.timeline)
        return events[:limit] if limit else events

    def seed_history(self, entries: Iterable[MaintenanceEntry]) -> int:
        """
        One-time ingestion of past maintenance jobs.
        Entries are prepended newest-first; later calls are ignored.
        """
        with self._lock:
            if self._history_seeded:
                return 0
            self._history_seeded = True

            events = [
                TimelineEvent(
                    timestamp=entry.date,
                    type=TimelineEventType.HISTORY,
                    title='Maintenance completed',
                    description=f"{entry.component} | {entry.type}",
                    vehicle_id=entry.vehicle_id,
                )
                for entry in sorted(entries, key=lambda e: e.date, reverse=True)
            ]
            # extendleft reverses, so feed oldest first
            self.timeline.extendleft(reversed(events))

        logger.info(f"Seeded timeline with {len(events)} maintenance entries")
        return len(events)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def forget_vehicle(self, vehicle_id: str):
        self._previous_warnings.pop(vehicle_id, None)

    def shutdown(self):
        """Cancel every pending removal timer"""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
