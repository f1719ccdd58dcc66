"""
Fleet operations: vehicle registration, route creation, on-demand
telemetry and prediction for a single vehicle
"""

import logging
import math
import random
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from backend.errors import ConfigurationError, NotFoundError, ValidationError
from backend.models.catalog import Hub, VehicleModel
from backend.models.prediction import Prediction
from backend.models.route import Route, generate_synthetic_route, haversine_km
from backend.models.sensor import TelemetryReading
from backend.models.vehicle import Vehicle
from backend.services.routing_client import RoutingClient
from backend.services.simulation_clock import SimulationClock

logger = logging.getLogger(__name__)

# +/- 0.02 deg (about 2 km) so markers placed at the same hub do not overlap
ORIGIN_JITTER_DEGREES = 0.02


def _coordinates(latitude, longitude):
    """Parse an explicit origin, rejecting non-numeric or out-of-range values"""
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        raise ValidationError('Latitude and longitude must be numbers.')
    try:
        lat, lng = float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise ValidationError('Latitude and longitude must be numbers.') from None

    if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
        raise ValidationError(f'Coordinates out of range: {latitude}, {longitude}')
    return lat, lng


class FleetService:
    """Operations on the vehicles owned by a SimulationClock"""

    def __init__(self, clock: SimulationClock, routing_client: Optional[RoutingClient],
                 hubs: Sequence[Hub], vehicle_models: Sequence[VehicleModel],
                 min_route_distance_km: float = 5, rng: Optional[random.Random] = None):
        self.clock = clock
        self.routing_client = routing_client
        self.hubs = list(hubs)
        self.vehicle_models = list(vehicle_models)
        self.min_route_distance_km = min_route_distance_km
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = self.clock.vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f'Vehicle {vehicle_id} not found.')
        return vehicle

    def list_vehicles(self) -> List[Vehicle]:
        with self.clock.lock:
            return list(self.clock.vehicles.values())

    def get_hub(self, hub_id: str) -> Hub:
        for hub in self.hubs:
            if hub.id == hub_id:
                return hub
        raise NotFoundError(f'Location {hub_id} not found.')

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_vehicle(self, name: Optional[str] = None, latitude: Optional[float] = None,
                         longitude: Optional[float] = None) -> Vehicle:
        """Create a synthetic vehicle at the given coordinates or near a random hub"""
        if len(self.hubs) < 2:
            raise ConfigurationError('Not enough locations found.')
        if not self.vehicle_models:
            raise ConfigurationError('No vehicle models found.')
        if (latitude is None) != (longitude is None):
            raise ValidationError('Both latitude and longitude are required for an explicit origin.')

        if latitude is not None:
            origin_lat, origin_lng = _coordinates(latitude, longitude)
            lat, lng = origin_lat, origin_lng
        else:
            hub = self.rng.choice(self.hubs)
            origin_lat, origin_lng = hub.lat, hub.lng
            lat = round(hub.lat + self.rng.uniform(-ORIGIN_JITTER_DEGREES, ORIGIN_JITTER_DEGREES), 6)
            lng = round(hub.lng + self.rng.uniform(-ORIGIN_JITTER_DEGREES, ORIGIN_JITTER_DEGREES), 6)

        now = datetime.now()
        last_service = now - timedelta(days=self.rng.randint(30, 179))
        model = self.rng.choice(self.vehicle_models)

        vehicle = Vehicle(
            id=str(uuid.uuid4()),
            name=name or 'Unnamed Vehicle',
            model=model.name,
            year=self.rng.randint(2015, 2022),
            mileage=self.rng.randint(50_000, 199_999),
            lat=lat,
            lng=lng,
            origin_lat=origin_lat,
            origin_lng=origin_lng,
            is_moving=self.rng.random() < 0.6,
            last_service_date=last_service,
            next_service_date=last_service + timedelta(days=180),
        )

        with self.clock.lock:
            self.clock.vehicles[vehicle.id] = vehicle
        logger.info(f"Registered vehicle {vehicle.id} ({vehicle.name}) at {lat}, {lng}")
        return vehicle

    def remove_vehicle(self, vehicle_id: str):
        with self.clock.lock:
            self.get_vehicle(vehicle_id)
            del self.clock.vehicles[vehicle_id]
            self.clock.predictions.pop(vehicle_id, None)
        self.clock.route_engine.forget(vehicle_id)
        self.clock.notifications.forget_vehicle(vehicle_id)
        logger.info(f"Removed vehicle {vehicle_id}")

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def pick_destination(self, vehicle: Vehicle, destination_id: Optional[str] = None) -> Hub:
        """Resolve an explicit destination or choose a hub that is not too close"""
        if destination_id:
            return self.get_hub(destination_id)

        if not self.hubs:
            raise ConfigurationError('No locations found.')
        candidates = [hub for hub in self.hubs
                      if haversine_km(vehicle.position, hub.position) >= self.min_route_distance_km]
        if not candidates:
            raise ConfigurationError('No location far enough from the vehicle to route to.')
        return self.rng.choice(candidates)

    def create_route(self, vehicle_id: str, destination_id: Optional[str] = None) -> Route:
        """
        Fetch a provider route from the vehicle's position to a destination.
        Provider failures propagate as RoutingError.
        """
        vehicle = self.get_vehicle(vehicle_id)
        destination = self.pick_destination(vehicle, destination_id)
        if self.routing_client is None:
            raise ConfigurationError('No routing provider configured.')

        route = self.routing_client.fetch_route(vehicle.position, destination.position,
                                                destination_id=destination.id)
        with self.clock.lock:
            self.clock.route_engine.assign_route(vehicle, route)
        logger.info(f"Created route {route.id} for vehicle {vehicle_id} to {destination.name}")
        return route

    def assign_synthetic_route(self, vehicle_id: str, destination_id: Optional[str] = None) -> Route:
        """Give the vehicle a locally generated route; the tick resolves it later"""
        vehicle = self.get_vehicle(vehicle_id)
        destination = self.pick_destination(vehicle, destination_id)
        route = generate_synthetic_route(vehicle.position, destination.position,
                                         destination_id=destination.id)
        with self.clock.lock:
            self.clock.route_engine.assign_route(vehicle, route)
        return route

    # ------------------------------------------------------------------
    # Telemetry and predictions
    # ------------------------------------------------------------------

    def measure_all_telemetry(self, vehicle_id: str) -> List[TelemetryReading]:
        with self.clock.lock:
            vehicle = self.get_vehicle(vehicle_id)
            return self.clock.sampler.measure(vehicle, self.clock.sensors)

    def create_prediction(self, vehicle_id: str) -> List[Prediction]:
        with self.clock.lock:
            vehicle = self.get_vehicle(vehicle_id)
            predictions = self.clock.prediction_engine.classify(vehicle, self.clock.sensors)
            self.clock.predictions[vehicle_id] = predictions
            return predictions

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def seed_fleet(self, count: int) -> List[Vehicle]:
        """Register ``count`` vehicles, each on a synthetic route"""
        vehicles = []
        for i in range(count):
            vehicle = self.register_vehicle(name=f'Vehicle {i + 1}')
            self.assign_synthetic_route(vehicle.id)
            vehicles.append(vehicle)
        logger.info(f"Seeded fleet with {len(vehicles)} vehicles")
        return vehicles
