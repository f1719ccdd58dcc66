"""
Shared fixtures for the fleet simulator tests
"""

import random
from unittest.mock import Mock

import pytest

from backend.models.catalog import DEFAULT_HUBS, DEFAULT_SENSORS, DEFAULT_VEHICLE_MODELS
from backend.models.route import Route, Waypoint
from backend.models.sensor import SensorDefinition
from backend.models.vehicle import Vehicle
from backend.services.event_publisher import EventPublisher
from backend.services.fleet_service import FleetService
from backend.services.notification_deriver import NotificationDeriver
from backend.services.prediction_engine import PredictionEngine
from backend.services.route_engine import RouteEngine
from backend.services.simulation_clock import SimulationClock
from backend.services.telemetry_sampler import TelemetrySampler


def make_route(points: int, resolved: bool = False) -> Route:
    """Straight route along a meridian with the given number of waypoints"""
    return Route(
        waypoints=[Waypoint(lat=50.0 + i * 0.01, lng=8.0) for i in range(points)],
        is_resolved=resolved,
    )


def make_vehicle(vehicle_id: str = 'v1', route: Route = None, index: int = 0) -> Vehicle:
    vehicle = Vehicle(id=vehicle_id, name=f'Vehicle {vehicle_id}', lat=50.0, lng=8.0)
    if route is not None:
        vehicle.route = route
        vehicle.route_index = index
        vehicle.is_moving = True
    return vehicle


@pytest.fixture
def generic_sensor():
    return SensorDefinition(kind='generic', name='Generic', unit='',
                            min=0, max=100, warn_low=20, crit_low=10)


@pytest.fixture
def sensors():
    return list(DEFAULT_SENSORS)


@pytest.fixture
def socketio():
    return Mock()


@pytest.fixture
def notifications():
    deriver = NotificationDeriver(ttl_seconds=60)
    yield deriver
    deriver.shutdown()


@pytest.fixture
def routing_client():
    return Mock()


@pytest.fixture
def clock(socketio, notifications, sensors):
    simulation_clock = SimulationClock(
        route_engine=RouteEngine(routing_client=None),
        sampler=TelemetrySampler(rng=random.Random(42)),
        prediction_engine=PredictionEngine(),
        notifications=notifications,
        publisher=EventPublisher(socketio),
        sensors=sensors,
        interval_ms=1000,
    )
    yield simulation_clock
    simulation_clock.stop()


@pytest.fixture
def fleet(clock, routing_client):
    return FleetService(clock, routing_client, hubs=DEFAULT_HUBS,
                        vehicle_models=DEFAULT_VEHICLE_MODELS, rng=random.Random(7))
