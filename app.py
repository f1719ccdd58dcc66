#!/usr/bin/env python3
"""
Fleet Maintenance Simulator - Python Flask Server
Simulated fleet telemetry, predictive maintenance and Socket.IO push updates
"""

import logging

from flask import Flask, jsonify
from flask_socketio import SocketIO
from flask_cors import CORS

from backend import config
from backend.models.catalog import (
    DEFAULT_HUBS, DEFAULT_MAINTENANCE_HISTORY, DEFAULT_SENSORS, DEFAULT_VEHICLE_MODELS,
)
from backend.models.prediction import default_rules
from backend.services.event_publisher import EventPublisher
from backend.services.fleet_service import FleetService
from backend.services.notification_deriver import NotificationDeriver
from backend.services.prediction_engine import PredictionEngine
from backend.services.route_engine import RouteEngine
from backend.services.routing_client import RoutingClient
from backend.services.simulation_clock import SimulationClock
from backend.services.telemetry_sampler import TelemetrySampler
from backend.api.routes import api_bp, init_api_routes
from backend.api.websocket import init_websocket_handlers

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Flask app configuration
app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY
app.config['DEBUG'] = config.DEBUG

# Enable CORS and SocketIO
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')


def build_simulation(socketio_instance):
    """Wire the simulation services together"""
    routing_client = RoutingClient(config.ROUTING_BASE_URL, timeout=config.ROUTING_TIMEOUT)
    notifications = NotificationDeriver(
        ttl_seconds=config.NOTIFICATION_TTL_SECONDS,
        max_prediction_notifications=config.MAX_PREDICTION_NOTIFICATIONS,
        timeline_limit=config.TIMELINE_LIMIT,
    )
    notifications.seed_history(DEFAULT_MAINTENANCE_HISTORY)

    clock = SimulationClock(
        route_engine=RouteEngine(routing_client, retry_seconds=config.ROUTE_RETRY_SECONDS),
        sampler=TelemetrySampler(history_length=config.HISTORY_LENGTH),
        prediction_engine=PredictionEngine(
            rules=default_rules(config.PREDICTION_CONFIDENCE),
            window=config.PREDICTION_WINDOW,
            default_confidence=config.DEFAULT_CONFIDENCE,
        ),
        notifications=notifications,
        publisher=EventPublisher(socketio_instance),
        sensors=DEFAULT_SENSORS,
        interval_ms=config.SIMULATION_STEP_INTERVAL_MS,
    )
    fleet = FleetService(
        clock,
        routing_client,
        hubs=DEFAULT_HUBS,
        vehicle_models=DEFAULT_VEHICLE_MODELS,
        min_route_distance_km=config.MIN_ROUTE_DISTANCE_KM,
    )
    return clock, fleet


# Global instances
simulation_clock, fleet_service = build_simulation(socketio)

# Initialize API routes and WebSocket handlers with global instances
init_api_routes(fleet_service, simulation_clock, DEFAULT_MAINTENANCE_HISTORY)
init_websocket_handlers(simulation_clock, socketio)

# Register API blueprints
app.register_blueprint(api_bp)


@app.route('/')
def index():
    """Service summary"""
    return jsonify({
        'service': 'fleet-maintenance-simulator',
        'vehicles': len(simulation_clock.vehicles),
        'interval': simulation_clock.interval_ms,
        'endpoints': ['/api/vehicles', '/api/predictions', '/api/notifications',
                      '/api/timeline', '/api/maintenance-history', '/api/simulation/interval',
                      '/api/health']
    })


if __name__ == '__main__':
    # Initial fleet on synthetic routes; the clock resolves them in the background
    if not simulation_clock.vehicles:
        fleet_service.seed_fleet(config.SEED_VEHICLE_COUNT)

    simulation_clock.start()

    logger.info("Starting Fleet Maintenance Simulator server...")
    logger.info(f"Routing provider: {config.ROUTING_BASE_URL}")

    try:
        socketio.run(
            app,
            host=config.HOST,
            port=config.PORT,
            debug=config.DEBUG,
            use_reloader=False,  # Disable reloader to prevent double thread creation
            allow_unsafe_werkzeug=True
        )
    finally:
        simulation_clock.shutdown()
