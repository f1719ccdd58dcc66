"""
Rule-based maintenance prediction service
"""

import logging
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence

from backend.models.prediction import (
    MaintenanceRule, Prediction, Priority, ThresholdRule, default_rules,
)
from backend.models.sensor import SensorDefinition
from backend.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


def _sort_key(prediction: Prediction):
    # High before Medium on equal horizons
    return (prediction.predicted_failure_in_days,
            0 if prediction.priority == Priority.HIGH else 1)


class PredictionEngine:
    """
    Classifies a vehicle's recent telemetry into maintenance predictions.

    The classified value is the mean of the last ``window`` readings of each
    metric. Only Medium and High results are generated; a metric inside its
    thresholds produces no prediction at all.
    """

    def __init__(self, rules: Optional[Mapping[str, MaintenanceRule]] = None,
                 window: int = 5, default_confidence: float = 80):
        self.rules = dict(rules) if rules is not None else default_rules()
        self.window = max(1, window)
        self.default_confidence = default_confidence

    def rule_for(self, sensor: SensorDefinition) -> MaintenanceRule:
        rule = self.rules.get(sensor.kind)
        if rule is None:
            rule = ThresholdRule(kind=sensor.kind, component=sensor.name,
                                 confidence=self.default_confidence)
        return rule

    def classify_value(self, vehicle_id: str, sensor: SensorDefinition, value: float,
                       now: Optional[datetime] = None) -> Optional[Prediction]:
        if sensor.is_critical(value):
            priority = Priority.HIGH
            state = 'critical'
        elif sensor.is_warning(value):
            priority = Priority.MEDIUM
            state = 'warning'
        else:
            return None

        rule = self.rule_for(sensor)
        failure_in_days = rule.failure_horizon(value, sensor)
        return Prediction(
            vehicle_id=vehicle_id,
            kind=sensor.kind,
            component=rule.component,
            priority=priority,
            confidence=rule.confidence,
            predicted_failure_in_days=failure_in_days,
            recommended_maintenance_in_days=rule.recommended_maintenance(failure_in_days),
            reason=f"{sensor.name} {state} at {value:.1f}{sensor.unit}",
            created_at=now or datetime.now(),
        )

    def classify(self, vehicle: Vehicle, sensors: Sequence[SensorDefinition],
                 now: Optional[datetime] = None) -> List[Prediction]:
        """Recompute the full prediction set for one vehicle, soonest failure first"""
        predictions = []
        for sensor in sensors:
            values = vehicle.recent_values(sensor.kind, self.window)
            if not values:
                continue
            average = sum(values) / len(values)
            prediction = self.classify_value(vehicle.id, sensor, average, now)
            if prediction:
                predictions.append(prediction)

        predictions.sort(key=_sort_key)
        if predictions:
            logger.debug(f"Vehicle {vehicle.id}: {len(predictions)} predictions")
        return predictions

    @staticmethod
    def fleet_predictions(by_vehicle: Mapping[str, Iterable[Prediction]]) -> List[Prediction]:
        predictions = [p for vehicle_predictions in by_vehicle.values() for p in vehicle_predictions]
        predictions.sort(key=_sort_key)
        return predictions
