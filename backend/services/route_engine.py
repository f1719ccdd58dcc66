"""
Route progression service.

Moves vehicles one waypoint per tick and, in the background, swaps
synthetic routes for provider-resolved ones without resetting progress.
"""

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Set, Tuple

from backend.errors import RoutingError
from backend.models.route import Route
from backend.models.vehicle import Vehicle
from backend.services.routing_client import RoutingClient

logger = logging.getLogger(__name__)


class RouteEngine:
    """
    Advances vehicles along their routes.

    Completion policy is loop: stepping past the last waypoint wraps the
    index back to 0 and the vehicle keeps driving the same route.

    Route resolution runs on daemon threads. Workers only write to
    ``_resolved`` and the bookkeeping sets; the vehicle itself is updated
    on the tick thread the next time ``advance`` reads it.
    """

    def __init__(self, routing_client: Optional[RoutingClient] = None,
                 retry_seconds: float = 30,
                 clock: Callable[[], float] = time.monotonic):
        self.routing_client = routing_client
        self.retry_seconds = retry_seconds
        self.clock = clock
        self.pending: Set[str] = set()
        self._resolved: Dict[str, Tuple[str, Route]] = {}
        self._failed_at: Dict[str, float] = {}
        self._workers: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def advance(self, vehicle: Vehicle) -> bool:
        """Move the vehicle to its next waypoint. Returns False without a route."""
        self._apply_pending_resolution(vehicle)

        route = vehicle.route
        if route is None or len(route) == 0:
            return False

        vehicle.route_index = (vehicle.route_index + 1) % len(route)
        waypoint = route.waypoints[vehicle.route_index]
        vehicle.lat, vehicle.lng = waypoint.lat, waypoint.lng
        vehicle.is_moving = True

        if not route.is_resolved:
            self.request_resolution(vehicle)
        return True

    def assign_route(self, vehicle: Vehicle, route: Route):
        """Put a vehicle at the start of a new route"""
        with self._lock:
            self._resolved.pop(vehicle.id, None)
            self._failed_at.pop(vehicle.id, None)
        vehicle.route = route
        vehicle.route_index = 0
        vehicle.lat, vehicle.lng = route.origin.lat, route.origin.lng
        vehicle.is_moving = True
        logger.info(f"Vehicle {vehicle.id} assigned {'resolved' if route.is_resolved else 'synthetic'} "
                    f"route with {len(route)} waypoints")

    def request_resolution(self, vehicle: Vehicle) -> bool:
        """
        Resolve the vehicle's synthetic route in the background.

        Returns True when a worker was dispatched. At most one resolution is
        in flight per vehicle; failed vehicles wait ``retry_seconds``.
        """
        route = vehicle.route
        if self.routing_client is None or route is None or route.is_resolved:
            return False

        with self._lock:
            if vehicle.id in self.pending or vehicle.id in self._resolved:
                return False
            failed_at = self._failed_at.get(vehicle.id)
            if failed_at is not None and self.clock() - failed_at < self.retry_seconds:
                return False
            self.pending.add(vehicle.id)

            worker = threading.Thread(
                target=self._resolve,
                args=(vehicle.id, route),
                name=f'route-resolve-{vehicle.id}',
                daemon=True,
            )
            self._workers[vehicle.id] = worker
        worker.start()
        return True

    def _resolve(self, vehicle_id: str, route: Route):
        try:
            resolved = self.routing_client.fetch_route(route.origin, route.destination,
                                                       destination_id=route.destination_id)
        except RoutingError as e:
            logger.warning(f"Route resolution failed for vehicle {vehicle_id}, staying on synthetic route: {e}")
            with self._lock:
                self._failed_at[vehicle_id] = self.clock()
        except Exception as e:
            logger.error(f"Unexpected error resolving route for vehicle {vehicle_id}: {e}")
            with self._lock:
                self._failed_at[vehicle_id] = self.clock()
        else:
            with self._lock:
                self._resolved[vehicle_id] = (route.id, resolved)
                self._failed_at.pop(vehicle_id, None)
            logger.info(f"Resolved route for vehicle {vehicle_id}: {len(resolved)} waypoints")
        finally:
            with self._lock:
                self.pending.discard(vehicle_id)
                self._workers.pop(vehicle_id, None)

    def _apply_pending_resolution(self, vehicle: Vehicle):
        with self._lock:
            entry = self._resolved.pop(vehicle.id, None)
        if entry is None:
            return

        requested_route_id, resolved = entry
        if vehicle.route is None or vehicle.route.id != requested_route_id:
            logger.debug(f"Discarding stale route resolution for vehicle {vehicle.id}")
            return
        self.apply_resolved_route(vehicle, resolved)

    @staticmethod
    def apply_resolved_route(vehicle: Vehicle, new_route: Route):
        """Swap in a new route at the same fractional progress"""
        old_route = vehicle.route
        if old_route is not None and len(old_route) > 0:
            ratio = vehicle.route_index / len(old_route)
        else:
            ratio = 0.0

        new_index = math.floor(len(new_route) * ratio)
        new_index = max(0, min(len(new_route) - 1, new_index))

        vehicle.route = new_route
        vehicle.route_index = new_index
        waypoint = new_route.waypoints[new_index]
        vehicle.lat, vehicle.lng = waypoint.lat, waypoint.lng

    def forget(self, vehicle_id: str):
        """Drop resolution state for a removed vehicle"""
        with self._lock:
            self._resolved.pop(vehicle_id, None)
            self._failed_at.pop(vehicle_id, None)

    def join(self, timeout: Optional[float] = None):
        """Wait for in-flight resolutions to finish"""
        with self._lock:
            workers = list(self._workers.values())
        for worker in workers:
            worker.join(timeout)
