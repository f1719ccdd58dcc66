"""
Maintenance prediction models and the per-metric rule records
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from backend.models.sensor import SensorDefinition


class Priority(Enum):
    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'


@dataclass
class Prediction:
    vehicle_id: str
    kind: str
    component: str
    priority: Priority
    confidence: float
    predicted_failure_in_days: int
    recommended_maintenance_in_days: int
    reason: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self):
        return {
            'vehicleId': self.vehicle_id,
            'kind': self.kind,
            'component': self.component,
            'priority': self.priority.value,
            'confidence': self.confidence,
            'predictedFailureInDays': self.predicted_failure_in_days,
            'recommendedMaintenanceInDays': self.recommended_maintenance_in_days,
            'reason': self.reason,
            'createdAt': self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class MaintenanceRule:
    """Per-metric prediction behaviour. Subclasses supply the horizon formula."""
    kind: str
    component: str
    confidence: float
    safety_margin_days: int

    def failure_horizon(self, value: float, sensor: SensorDefinition) -> int:
        raise NotImplementedError

    def recommended_maintenance(self, failure_in_days: int) -> int:
        return max(1, failure_in_days - self.safety_margin_days)


@dataclass(frozen=True)
class OilLevelRule(MaintenanceRule):
    kind: str = 'oil_level'
    component: str = 'Oil change'
    confidence: float = 95
    safety_margin_days: int = 7

    def failure_horizon(self, value, sensor):
        return max(1, math.floor(value / 2))


@dataclass(frozen=True)
class CoolingRule(MaintenanceRule):
    kind: str = 'engine_temp'
    component: str = 'Cooling system'
    confidence: float = 87
    safety_margin_days: int = 5

    def failure_horizon(self, value, sensor):
        return max(1, math.floor((100 - value) * 2))


@dataclass(frozen=True)
class TyrePressureRule(MaintenanceRule):
    kind: str = 'tyre_pressure'
    component: str = 'Tyre pressure'
    confidence: float = 78
    safety_margin_days: int = 3

    def failure_horizon(self, value, sensor):
        return max(1, math.floor(value / 5))


@dataclass(frozen=True)
class BatteryRule(MaintenanceRule):
    kind: str = 'battery_health'
    component: str = 'Battery replacement'
    confidence: float = 85
    safety_margin_days: int = 10

    def failure_horizon(self, value, sensor):
        if value <= 0:
            return 1
        return max(1, math.floor(20 / value))


@dataclass(frozen=True)
class ThresholdRule(MaintenanceRule):
    """Fallback for sensors without a dedicated formula: 1 day if critical, else 7"""
    kind: str = ''
    component: str = ''
    confidence: float = 80
    safety_margin_days: int = 0
    critical_days: int = 1
    warning_days: int = 7

    def failure_horizon(self, value, sensor):
        return self.critical_days if sensor.is_critical(value) else self.warning_days


def default_rules(confidence: Optional[dict] = None):
    """Rule records keyed by metric kind, with optional confidence overrides"""
    confidence = confidence or {}
    rules = [OilLevelRule(), CoolingRule(), TyrePressureRule(), BatteryRule()]
    result = {}
    for rule in rules:
        if rule.kind in confidence:
            rule = type(rule)(confidence=confidence[rule.kind])
        result[rule.kind] = rule
    return result
