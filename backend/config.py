"""
Runtime configuration for the fleet maintenance simulator.
Values come from the environment (optionally a .env file).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


SECRET_KEY = os.getenv('SECRET_KEY', 'fleet-sim-secret-key')
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'
HOST = os.getenv('HOST', '127.0.0.1')
PORT = _int('PORT', 5001)

# Simulation
SIMULATION_STEP_INTERVAL_MS = _int('SIMULATION_STEP_INTERVAL_MS', 1000)
SEED_VEHICLE_COUNT = _int('SEED_VEHICLE_COUNT', 2)
HISTORY_LENGTH = _int('HISTORY_LENGTH', 20)

# Routing provider (OSRM compatible)
ROUTING_BASE_URL = os.getenv('ROUTING_BASE_URL', 'https://router.project-osrm.org')
ROUTING_TIMEOUT = _float('ROUTING_TIMEOUT', 10)
ROUTE_RETRY_SECONDS = _float('ROUTE_RETRY_SECONDS', 30)
MIN_ROUTE_DISTANCE_KM = _float('MIN_ROUTE_DISTANCE_KM', 5)

# Notifications
NOTIFICATION_TTL_SECONDS = _float('NOTIFICATION_TTL_SECONDS', 8)
MAX_PREDICTION_NOTIFICATIONS = _int('MAX_PREDICTION_NOTIFICATIONS', 5)
TIMELINE_LIMIT = _int('TIMELINE_LIMIT', 500)

# Predictions
PREDICTION_WINDOW = _int('PREDICTION_WINDOW', 5)
PREDICTION_CONFIDENCE = {
    'oil_level': _float('CONFIDENCE_OIL_LEVEL', 95),
    'engine_temp': _float('CONFIDENCE_ENGINE_TEMP', 87),
    'tyre_pressure': _float('CONFIDENCE_TYRE_PRESSURE', 78),
    'battery_health': _float('CONFIDENCE_BATTERY_HEALTH', 85),
}
DEFAULT_CONFIDENCE = _float('CONFIDENCE_DEFAULT', 80)
