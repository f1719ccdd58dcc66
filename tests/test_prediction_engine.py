"""
Tests for the rule-based PredictionEngine
"""

from datetime import datetime

import pytest

from backend.models.catalog import DEFAULT_SENSORS
from backend.models.prediction import (
    BatteryRule, CoolingRule, OilLevelRule, Priority, ThresholdRule, TyrePressureRule, default_rules,
)
from backend.services.prediction_engine import PredictionEngine
from conftest import make_vehicle

SENSORS = {sensor.kind: sensor for sensor in DEFAULT_SENSORS}


def vehicle_with(values_by_kind):
    vehicle = make_vehicle()
    for kind, values in values_by_kind.items():
        for value in values:
            vehicle.record(kind, value, datetime.now())
    return vehicle


class TestThresholdClassification:

    def test_critical_low_value_is_high_priority(self, generic_sensor):
        prediction = PredictionEngine().classify_value('v1', generic_sensor, 5)

        assert prediction.priority == Priority.HIGH
        assert prediction.predicted_failure_in_days == 1
        assert prediction.recommended_maintenance_in_days == 1

    def test_warning_only_is_medium_priority(self, generic_sensor):
        prediction = PredictionEngine().classify_value('v1', generic_sensor, 15)

        assert prediction.priority == Priority.MEDIUM
        assert prediction.predicted_failure_in_days == 7

    def test_healthy_value_produces_no_prediction(self, generic_sensor):
        assert PredictionEngine().classify_value('v1', generic_sensor, 55) is None

    def test_high_polarity(self):
        sensor = SENSORS['engine_temp']
        engine = PredictionEngine()

        assert engine.classify_value('v1', sensor, 80) is None
        assert engine.classify_value('v1', sensor, 90).priority == Priority.MEDIUM
        assert engine.classify_value('v1', sensor, 97).priority == Priority.HIGH

    def test_generic_rule_uses_sensor_name_and_default_confidence(self, generic_sensor):
        engine = PredictionEngine(default_confidence=66)
        rule = engine.rule_for(generic_sensor)

        assert isinstance(rule, ThresholdRule)
        assert rule.component == 'Generic'
        assert engine.classify_value('v1', generic_sensor, 5).confidence == 66


class TestMetricRules:

    def test_oil_level(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['oil_level'], 35.7)

        assert prediction.priority == Priority.MEDIUM
        assert prediction.predicted_failure_in_days == 17
        assert prediction.recommended_maintenance_in_days == 10
        assert prediction.confidence == 95
        assert prediction.component == 'Oil change'

    def test_oil_level_critical(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['oil_level'], 9)

        assert prediction.priority == Priority.HIGH
        assert prediction.predicted_failure_in_days == 4
        assert prediction.recommended_maintenance_in_days == 1

    def test_cooling(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['engine_temp'], 88.4)

        assert prediction.predicted_failure_in_days == 23
        assert prediction.recommended_maintenance_in_days == 18
        assert prediction.confidence == 87

    def test_cooling_above_hundred_degrees(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['engine_temp'], 104)
        assert prediction.predicted_failure_in_days == 1

    def test_tyre_pressure(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['tyre_pressure'], 77)

        assert prediction.priority == Priority.HIGH
        assert prediction.predicted_failure_in_days == 15
        assert prediction.recommended_maintenance_in_days == 12
        assert prediction.confidence == 78

    def test_battery(self):
        prediction = PredictionEngine().classify_value('v1', SENSORS['battery_health'], 3)

        assert prediction.priority == Priority.HIGH
        assert prediction.predicted_failure_in_days == 6
        assert prediction.recommended_maintenance_in_days == 1
        assert prediction.confidence == 85

    def test_battery_empty_does_not_divide_by_zero(self):
        assert BatteryRule().failure_horizon(0, SENSORS['battery_health']) == 1

    @pytest.mark.parametrize('rule,margin', [
        (OilLevelRule(), 7), (CoolingRule(), 5), (TyrePressureRule(), 3), (BatteryRule(), 10),
    ])
    def test_safety_margins(self, rule, margin):
        assert rule.safety_margin_days == margin
        assert rule.recommended_maintenance(margin + 4) == 4
        assert rule.recommended_maintenance(margin) == 1

    def test_confidence_overrides(self):
        rules = default_rules({'oil_level': 50})

        assert rules['oil_level'].confidence == 50
        assert isinstance(rules['oil_level'], OilLevelRule)
        assert rules['engine_temp'].confidence == 87


class TestClassify:

    def test_uses_mean_of_recent_window(self):
        sensor = SENSORS['oil_level']
        # last five readings average 19 -> critical; the latest alone (40) would only warn
        vehicle = vehicle_with({'oil_level': [90, 90, 5, 10, 15, 25, 40]})

        predictions = PredictionEngine(window=5).classify(vehicle, [sensor])

        assert len(predictions) == 1
        assert predictions[0].priority == Priority.HIGH
        assert predictions[0].predicted_failure_in_days == 9

    def test_skips_metrics_without_history(self, sensors):
        assert PredictionEngine().classify(make_vehicle(), sensors) == []

    def test_sorted_by_failure_horizon(self, sensors):
        vehicle = vehicle_with({
            'oil_level': [40],        # 20 days
            'engine_temp': [97],      # 6 days
            'tyre_pressure': [95],    # 19 days
            'battery_health': [10],   # 2 days
        })

        predictions = PredictionEngine().classify(vehicle, sensors)
        days = [p.predicted_failure_in_days for p in predictions]

        assert days == sorted(days)
        assert [p.kind for p in predictions] == ['battery_health', 'engine_temp', 'tyre_pressure', 'oil_level']

    def test_fleet_predictions_sorted(self, sensors):
        engine = PredictionEngine()
        first = engine.classify(vehicle_with({'oil_level': [40]}), sensors)
        second = engine.classify(vehicle_with({'battery_health': [10], 'engine_temp': [90]}), sensors)

        fleet = PredictionEngine.fleet_predictions({'a': first, 'b': second})
        days = [p.predicted_failure_in_days for p in fleet]

        assert len(fleet) == 3
        assert days == sorted(days)
