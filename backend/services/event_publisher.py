"""
Push channel for vehicle changes.
Emits a minimal Socket.IO message; subscribers re-fetch what they need.
"""

import logging
from datetime import datetime

from flask_socketio import SocketIO

logger = logging.getLogger(__name__)

VEHICLE_CHANGED = 'VehicleChanged'


class EventPublisher:
    """Fire-and-forget publisher: no acknowledgement, no retry"""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def publish(self, vehicle_id: str, change_kind: str = VEHICLE_CHANGED) -> bool:
        payload = {
            'vehicleId': vehicle_id,
            'changeKind': change_kind,
            'sourceHint': f'/api/vehicles/{vehicle_id}',
        }
        try:
            self.socketio.emit(VEHICLE_CHANGED, payload)
        except Exception as e:
            logger.error(f"Error emitting {VEHICLE_CHANGED} for vehicle {vehicle_id}: {e}")
            return False
        logger.debug(f"Emitted {VEHICLE_CHANGED} event for vehicle {vehicle_id}")
        return True

    def publish_error(self, message: str):
        try:
            self.socketio.emit('error', {
                'message': message,
                'timestamp': datetime.now().isoformat()
            })
        except Exception as e:
            logger.error(f"Error emitting error event: {e}")
