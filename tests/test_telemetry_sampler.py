"""
Tests for TelemetrySampler and SensorDefinition sampling parameters
"""

import random
import statistics
from datetime import datetime

import pytest

from backend.errors import ConfigurationError
from backend.models.sensor import SensorDefinition
from backend.services.telemetry_sampler import TelemetrySampler
from conftest import make_vehicle


class TestSensorDistribution:
    """Center and deviation derived from a sensor definition"""

    def test_center_defaults_to_midpoint(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=10, max=30)
        assert sensor.center == 20
        assert sensor.std_dev == pytest.approx(10 / 3)

    def test_std_dev_uses_nearest_bound(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=0, max=100, reference=70)
        assert sensor.std_dev == pytest.approx(10)

    def test_std_dev_falls_back_when_reference_on_bound(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=0, max=60, reference=0)
        assert sensor.std_dev == pytest.approx(10)

    def test_std_dev_falls_back_when_reference_outside_bounds(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=0, max=60, reference=90)
        assert sensor.std_dev == pytest.approx(10)


class TestTelemetrySampler:

    def test_samples_stay_within_range(self, sensors):
        sampler = TelemetrySampler(rng=random.Random(1))
        for sensor in sensors:
            for _ in range(2000):
                value = sampler.sample(sensor)
                assert sensor.min <= value <= sensor.max

    def test_samples_clamped_for_degenerate_reference(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=0, max=10, reference=10)
        sampler = TelemetrySampler(rng=random.Random(3))
        values = [sampler.sample(sensor) for _ in range(1000)]
        assert max(values) <= 10
        assert min(values) >= 0

    def test_empirical_mean_and_deviation(self):
        sensor = SensorDefinition(kind='oil', name='Oil', unit='%', min=0, max=100, reference=70)
        sampler = TelemetrySampler(rng=random.Random(1234))
        values = [sampler.sample(sensor) for _ in range(20000)]

        assert statistics.mean(values) == pytest.approx(70, abs=0.5)
        assert statistics.pstdev(values) == pytest.approx(10, rel=0.05)

    def test_measure_stores_values_and_bounded_history(self, sensors):
        sampler = TelemetrySampler(rng=random.Random(5))
        vehicle = make_vehicle()

        for _ in range(25):
            readings = sampler.measure(vehicle, sensors, datetime.now())

        assert len(readings) == len(sensors)
        for sensor in sensors:
            assert len(vehicle.history[sensor.kind]) == 20
            assert vehicle.metrics[sensor.kind] == vehicle.history[sensor.kind][-1][1]
            assert vehicle.warnings[sensor.kind] == sensor.is_alert(vehicle.metrics[sensor.kind])

    def test_history_keeps_most_recent_points(self, generic_sensor):
        sampler = TelemetrySampler(rng=random.Random(9), history_length=3)
        vehicle = make_vehicle()
        values = []
        for _ in range(5):
            sampler.measure(vehicle, [generic_sensor])
            values.append(vehicle.metrics['generic'])

        assert [v for _, v in vehicle.history['generic']] == values[-3:]

    def test_measure_without_sensors_fails(self):
        with pytest.raises(ConfigurationError):
            TelemetrySampler().measure(make_vehicle(), [])
