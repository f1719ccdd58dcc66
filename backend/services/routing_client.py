"""
Routing provider client.
Talks to an OSRM-compatible HTTP API and turns its geometry into Routes.
"""

import logging
from typing import Optional

import requests

from backend.errors import RoutingError
from backend.models.route import Route, Waypoint

logger = logging.getLogger(__name__)


class RoutingClient:
    """Fetches driving routes from an external routing provider"""

    def __init__(self, base_url: str, timeout: float = 10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'Fleet-Maintenance-Simulator/1.0'
        })

    def fetch_route(self, origin: Waypoint, destination: Waypoint,
                    destination_id: Optional[str] = None) -> Route:
        """Fetch a resolved route; raises RoutingError on any failure"""
        # OSRM expects lng,lat pairs
        url = (f"{self.base_url}/route/v1/driving/"
               f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}")
        params = {
            'overview': 'full',
            'geometries': 'geojson',
        }

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RoutingError(f'Routing request failed: {e}') from e

        logger.info(f"Routing API Response: {response.status_code}")
        if response.status_code != 200:
            raise RoutingError(f'Routing API error: {response.status_code} - {response.text[:200]}')

        try:
            payload = response.json()
        except ValueError as e:
            raise RoutingError(f'Routing response is not JSON: {e}') from e

        route = Route.from_osrm(payload, destination_id=destination_id)
        logger.info(f"Fetched route with {len(route)} waypoints ({route.distance}m)")
        return route
