#!/usr/bin/env python3
"""
Main API routes for the fleet simulator
Vehicle operations, predictions, notifications and simulation control
"""

from flask import Blueprint, jsonify, request
from datetime import datetime
import logging

from backend.errors import ConfigurationError, FleetError, NotFoundError, RoutingError, ValidationError

# Import the global instances (will be injected by main app)
fleet_service = None
simulation_clock = None
maintenance_history = []

logger = logging.getLogger(__name__)

# Create Blueprint for main API routes
api_bp = Blueprint('api', __name__, url_prefix='/api')

ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    RoutingError: 502,
    ConfigurationError: 500,
}


def init_api_routes(fs, clock, history=None):
    """Initialize API routes with global instances"""
    global fleet_service, simulation_clock, maintenance_history
    fleet_service = fs
    simulation_clock = clock
    maintenance_history = list(history or [])


@api_bp.errorhandler(FleetError)
def handle_fleet_error(error):
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(error, cls)), 500)
    if status >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    return jsonify({
        'status': 'error',
        'message': str(error)
    }), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


# ----------------------------------------------------------------------
# Vehicles
# ----------------------------------------------------------------------

@api_bp.route('/vehicles')
def get_vehicles():
    """REST endpoint for vehicle data with expanded metrics and route"""
    vehicles = [vehicle.to_dict() for vehicle in fleet_service.list_vehicles()]
    return jsonify({
        'vehicles': vehicles,
        'lastUpdate': simulation_clock.last_tick.isoformat() if simulation_clock.last_tick else None,
        'count': len(vehicles)
    })


@api_bp.route('/vehicles/<vehicle_id>')
def get_vehicle(vehicle_id):
    vehicle = fleet_service.get_vehicle(vehicle_id)
    return jsonify(vehicle.to_dict())


@api_bp.route('/vehicles', methods=['POST'])
def register_vehicle():
    """Register a vehicle; coordinates are optional"""
    data = _json_body()
    vehicle = fleet_service.register_vehicle(
        name=data.get('name'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
    )
    return jsonify(vehicle.to_dict()), 201


@api_bp.route('/vehicles/<vehicle_id>', methods=['DELETE'])
def delete_vehicle(vehicle_id):
    fleet_service.remove_vehicle(vehicle_id)
    return '', 204


@api_bp.route('/vehicles/<vehicle_id>/route', methods=['POST'])
def create_route(vehicle_id):
    """Create a provider-resolved route; provider failures are returned as 502"""
    data = _json_body()
    route = fleet_service.create_route(vehicle_id, data.get('destinationId'))
    return jsonify(route.to_dict()), 201


@api_bp.route('/vehicles/<vehicle_id>/synthetic-route', methods=['POST'])
def create_synthetic_route(vehicle_id):
    data = _json_body()
    route = fleet_service.assign_synthetic_route(vehicle_id, data.get('destinationId'))
    return jsonify(route.to_dict()), 201


@api_bp.route('/vehicles/<vehicle_id>/telemetry', methods=['POST'])
def measure_all_telemetry(vehicle_id):
    readings = fleet_service.measure_all_telemetry(vehicle_id)
    return jsonify({'readings': [reading.to_dict() for reading in readings]})


@api_bp.route('/vehicles/<vehicle_id>/prediction', methods=['POST'])
def create_prediction(vehicle_id):
    predictions = fleet_service.create_prediction(vehicle_id)
    return jsonify({'predictions': [p.to_dict() for p in predictions]})


# ----------------------------------------------------------------------
# Predictions, history, notifications
# ----------------------------------------------------------------------

@api_bp.route('/predictions')
def get_predictions():
    predictions = simulation_clock.fleet_predictions()
    return jsonify({
        'predictions': [p.to_dict() for p in predictions],
        'count': len(predictions)
    })


@api_bp.route('/maintenance-history')
def get_maintenance_history():
    entries = sorted(maintenance_history, key=lambda e: e.date, reverse=True)
    return jsonify({'entries': [entry.to_dict() for entry in entries]})


@api_bp.route('/notifications')
def get_notifications():
    notifications = simulation_clock.notifications.live()
    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread': simulation_clock.notifications.unread_count()
    })


@api_bp.route('/notifications/<notification_id>/read', methods=['POST'])
def mark_notification_read(notification_id):
    if not simulation_clock.notifications.mark_read(notification_id):
        raise NotFoundError(f'Notification {notification_id} not found.')
    return jsonify({'status': 'success'})


@api_bp.route('/notifications/<notification_id>', methods=['DELETE'])
def dismiss_notification(notification_id):
    if not simulation_clock.notifications.dismiss(notification_id):
        raise NotFoundError(f'Notification {notification_id} not found.')
    return '', 204


@api_bp.route('/timeline')
def get_timeline():
    limit = request.args.get('limit', type=int)
    events = simulation_clock.notifications.timeline_events(limit)
    return jsonify({'events': [event.to_dict() for event in events]})


# ----------------------------------------------------------------------
# Simulation control
# ----------------------------------------------------------------------

@api_bp.route('/simulation/interval')
def get_simulation_interval():
    return jsonify({
        'interval': simulation_clock.interval_ms,
        'speed': simulation_clock.speed,
        'running': simulation_clock.is_running
    })


@api_bp.route('/simulation/interval', methods=['POST'])
def set_simulation_interval():
    data = _json_body()
    if 'interval' not in data:
        raise ValidationError('Interval is required')
    interval = simulation_clock.set_interval(data['interval'])
    return jsonify({'status': 'success', 'interval': interval})


@api_bp.route('/simulation/speed', methods=['POST'])
def set_simulation_speed():
    data = _json_body()
    if 'speed' not in data:
        raise ValidationError('Speed is required')
    interval = simulation_clock.set_speed(data['speed'])
    return jsonify({'status': 'success', 'interval': interval, 'speed': simulation_clock.speed})


@api_bp.route('/simulation/step', methods=['POST'])
def force_simulation_step():
    """Run one tick immediately (useful for testing)"""
    stats = simulation_clock.tick()
    return jsonify({'status': 'success', **stats})


@api_bp.route('/health')
def health():
    """Health check endpoint for production monitoring"""
    try:
        import os
        import psutil

        vehicle_count = len(simulation_clock.vehicles) if simulation_clock else 0
        last_tick = simulation_clock.last_tick if simulation_clock else None

        try:
            memory_usage = psutil.virtual_memory().percent
            cpu_usage = psutil.cpu_percent()
        except Exception:
            memory_usage = None
            cpu_usage = None

        # ticks should arrive every interval; allow a few missed ones
        data_freshness = 'stale'
        if last_tick:
            seconds_since_tick = (datetime.now() - last_tick).total_seconds()
            if seconds_since_tick < 5 * simulation_clock.interval_ms / 1000:
                data_freshness = 'fresh'

        status = 'healthy'
        if vehicle_count == 0:
            status = 'warning'
        if not simulation_clock.is_running or data_freshness == 'stale':
            status = 'degraded'

        health_data = {
            'status': status,
            'timestamp': datetime.now().isoformat(),
            'application': {
                'vehicle_count': vehicle_count,
                'last_tick': last_tick.isoformat() if last_tick else None,
                'tick_count': simulation_clock.tick_count,
                'interval_ms': simulation_clock.interval_ms,
                'data_freshness': data_freshness
            },
            'system': {
                'memory_usage_percent': memory_usage,
                'cpu_usage_percent': cpu_usage,
                'pid': os.getpid()
            },
            'services': {
                'websocket': 'active',
                'simulation_clock': 'running' if simulation_clock.is_running else 'stopped',
                'route_resolutions_pending': len(simulation_clock.route_engine.pending)
            }
        }

        if status in ('healthy', 'warning'):
            return jsonify(health_data), 200
        return jsonify(health_data), 503

    except Exception as e:
        return jsonify({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': datetime.now().isoformat()
        }), 500
