"""
Telemetry sensor definitions and readings
"""

import math
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SensorDefinition:
    """
    One measurable metric with its legal range and thresholds.

    warn_* / crit_* drive maintenance predictions and are inclusive.
    alert_* drive the per-metric warning flag and default to the critical
    bounds when unset.
    """
    kind: str
    name: str
    unit: str
    min: float
    max: float
    reference: Optional[float] = None
    warn_low: Optional[float] = None
    warn_high: Optional[float] = None
    crit_low: Optional[float] = None
    crit_high: Optional[float] = None
    alert_low: Optional[float] = None
    alert_high: Optional[float] = None

    @property
    def center(self) -> float:
        if self.reference is None:
            return (self.min + self.max) / 2
        return self.reference

    @property
    def std_dev(self) -> float:
        center = self.center
        sigma = min(center - self.min, self.max - center) / 3
        if not math.isfinite(sigma) or sigma <= 0:
            sigma = (self.max - self.min) / 6
        return sigma

    def is_warning(self, value: float) -> bool:
        return ((self.warn_low is not None and value <= self.warn_low) or
                (self.warn_high is not None and value >= self.warn_high))

    def is_critical(self, value: float) -> bool:
        return ((self.crit_low is not None and value <= self.crit_low) or
                (self.crit_high is not None and value >= self.crit_high))

    def is_alert(self, value: float) -> bool:
        low = self.alert_low if self.alert_low is not None else self.crit_low
        high = self.alert_high if self.alert_high is not None else self.crit_high
        return ((low is not None and value < low) or
                (high is not None and value > high))

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def to_dict(self):
        return asdict(self)


@dataclass
class TelemetryReading:
    vehicle_id: str
    kind: str
    value: float
    timestamp: datetime

    def to_dict(self):
        return {
            'vehicleId': self.vehicle_id,
            'kind': self.kind,
            'value': self.value,
            'timestamp': self.timestamp.isoformat(),
        }
