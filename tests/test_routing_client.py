"""
Tests for the OSRM routing client
"""

from unittest.mock import Mock

import pytest
import requests

from backend.errors import RoutingError
from backend.models.route import Waypoint
from backend.services.routing_client import RoutingClient

ORIGIN = Waypoint(lat=52.52, lng=13.405)
DESTINATION = Waypoint(lat=48.1351, lng=11.582)

OK_PAYLOAD = {
    'code': 'Ok',
    'routes': [{
        'distance': 584000.0,
        'duration': 21000.0,
        'geometry': {
            'type': 'LineString',
            'coordinates': [[13.405, 52.52], [12.5, 50.5], [11.582, 48.1351]],
        },
    }],
}


def response(status_code=200, payload=None, json_error=None):
    mock = Mock(status_code=status_code, text='body')
    if json_error:
        mock.json.side_effect = json_error
    else:
        mock.json.return_value = payload
    return mock


@pytest.fixture
def client():
    routing_client = RoutingClient('https://router.example.org/', timeout=3)
    routing_client.session = Mock()
    return routing_client


class TestFetchRoute:

    def test_requests_lng_lat_pairs(self, client):
        client.session.get.return_value = response(payload=OK_PAYLOAD)

        client.fetch_route(ORIGIN, DESTINATION)

        args, kwargs = client.session.get.call_args
        assert args[0] == 'https://router.example.org/route/v1/driving/13.405,52.52;11.582,48.1351'
        assert kwargs['params'] == {'overview': 'full', 'geometries': 'geojson'}
        assert kwargs['timeout'] == 3

    def test_returns_resolved_route(self, client):
        client.session.get.return_value = response(payload=OK_PAYLOAD)

        route = client.fetch_route(ORIGIN, DESTINATION, destination_id='MUC')

        assert route.is_resolved is True
        assert len(route) == 3
        assert route.waypoints[1] == Waypoint(lat=50.5, lng=12.5)
        assert route.duration == 21000.0
        assert route.destination_id == 'MUC'

    def test_non_ok_code(self, client):
        client.session.get.return_value = response(payload={'code': 'NoRoute', 'routes': []})
        with pytest.raises(RoutingError):
            client.fetch_route(ORIGIN, DESTINATION)

    def test_http_error_status(self, client):
        client.session.get.return_value = response(status_code=503)
        with pytest.raises(RoutingError):
            client.fetch_route(ORIGIN, DESTINATION)

    def test_invalid_json(self, client):
        client.session.get.return_value = response(json_error=ValueError('not json'))
        with pytest.raises(RoutingError):
            client.fetch_route(ORIGIN, DESTINATION)

    def test_network_error(self, client):
        client.session.get.side_effect = requests.exceptions.ConnectionError('unreachable')
        with pytest.raises(RoutingError):
            client.fetch_route(ORIGIN, DESTINATION)

    def test_session_identifies_itself(self):
        routing_client = RoutingClient('https://router.example.org')
        assert 'Fleet-Maintenance-Simulator' in routing_client.session.headers['User-Agent']
