#!/usr/bin/env python3
"""
Socket.IO connection handlers for the fleet simulator

Clients receive a full ``bulk_update`` snapshot when they connect and then
lightweight ``VehicleChanged`` events after every vehicle step. They are
expected to re-fetch a vehicle from the REST API when they need detail.
"""

import logging
from flask import request
from flask_socketio import emit

# Import the global instances (will be injected by main app)
simulation_clock = None

# Connection tracking
active_connections = 0

logger = logging.getLogger(__name__)


def init_websocket_handlers(clock, socketio_instance):
    """Initialize Socket.IO connection handlers"""
    global simulation_clock
    simulation_clock = clock

    # Register the handlers with the socketio instance
    socketio_instance.on_event('connect', handle_connect)
    socketio_instance.on_event('disconnect', handle_disconnect)


def handle_connect():
    """Handle Socket.IO client connection"""
    global active_connections
    active_connections += 1
    logger.info(f"Socket.IO client connected: {request.sid} (total connections: {active_connections})")

    with simulation_clock.lock:
        vehicles = [vehicle.to_dict() for vehicle in simulation_clock.vehicles.values()]
    emit('bulk_update', {
        'vehicles': vehicles,
        'timestamp': simulation_clock.last_tick.isoformat() if simulation_clock.last_tick else None,
        'count': len(vehicles)
    })


def handle_disconnect(reason=None):
    """Handle Socket.IO client disconnection"""
    global active_connections
    active_connections = max(0, active_connections - 1)
    logger.info(f"Socket.IO client disconnected: {request.sid} (total connections: {active_connections})")
