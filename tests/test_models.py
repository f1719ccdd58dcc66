"""
Tests for sensor thresholds, vehicle history and the Socket.IO publisher
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

from backend.models.catalog import DEFAULT_SENSORS
from backend.models.sensor import SensorDefinition
from backend.services.event_publisher import EventPublisher
from conftest import make_vehicle

SENSORS = {sensor.kind: sensor for sensor in DEFAULT_SENSORS}


class TestSensorThresholds:

    def test_warning_and_critical_bounds_are_inclusive(self):
        oil = SENSORS['oil_level']

        assert oil.is_warning(50)
        assert not oil.is_warning(50.1)
        assert oil.is_critical(20)
        assert not oil.is_critical(20.1)

    def test_high_side_thresholds(self):
        engine = SENSORS['engine_temp']

        assert engine.is_warning(85)
        assert engine.is_critical(95)
        assert not engine.is_critical(94.9)

    def test_alert_is_strict(self):
        tyre = SENSORS['tyre_pressure']

        assert not tyre.is_alert(90)
        assert tyre.is_alert(89.9)

    def test_alert_defaults_to_critical_bounds(self):
        sensor = SensorDefinition(kind='x', name='X', unit='', min=0, max=100, crit_high=80)

        assert not sensor.is_alert(80)
        assert sensor.is_alert(80.5)

    def test_clamp(self):
        oil = SENSORS['oil_level']

        assert oil.clamp(-3) == 0
        assert oil.clamp(140) == 100
        assert oil.clamp(42) == 42


class TestVehicleHistory:

    def test_history_keeps_last_twenty_points(self):
        vehicle = make_vehicle()
        start = datetime(2024, 6, 1)

        for i in range(25):
            vehicle.record('oil_level', float(i), start + timedelta(seconds=i))

        assert len(vehicle.history['oil_level']) == 20
        assert vehicle.history['oil_level'][0] == (start + timedelta(seconds=5), 5.0)
        assert vehicle.metrics['oil_level'] == 24.0

    def test_recent_values(self):
        vehicle = make_vehicle()
        for value in (1.0, 2.0, 3.0):
            vehicle.record('engine_temp', value, datetime.now())

        assert vehicle.recent_values('engine_temp', 2) == [2.0, 3.0]
        assert vehicle.recent_values('battery_health', 5) == []

    def test_to_dict_serialises_history(self):
        vehicle = make_vehicle()
        vehicle.record('engine_temp', 80.0, datetime(2024, 6, 1, 12, 0))

        data = vehicle.to_dict()

        assert data['route'] is None
        assert data['history']['engine_temp'] == [{'time': '2024-06-01T12:00:00', 'value': 80.0}]


class TestEventPublisher:

    def test_publish_payload(self):
        socketio = Mock()

        assert EventPublisher(socketio).publish('v1') is True

        socketio.emit.assert_called_once_with('VehicleChanged', {
            'vehicleId': 'v1',
            'changeKind': 'VehicleChanged',
            'sourceHint': '/api/vehicles/v1',
        })

    def test_publish_failure_is_swallowed(self):
        socketio = Mock()
        socketio.emit.side_effect = RuntimeError('socket closed')

        assert EventPublisher(socketio).publish('v1') is False

    def test_publish_error(self):
        socketio = Mock()

        EventPublisher(socketio).publish_error('tick failed')

        event, payload = socketio.emit.call_args.args
        assert event == 'error'
        assert payload['message'] == 'tick failed'
