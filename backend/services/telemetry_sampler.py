"""
Telemetry sampling service.
Produces one plausible reading per sensor per vehicle per tick.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Sequence

from backend.errors import ConfigurationError
from backend.models.sensor import SensorDefinition, TelemetryReading
from backend.models.vehicle import Vehicle, HISTORY_LENGTH

logger = logging.getLogger(__name__)


class TelemetrySampler:
    """Gaussian sensor readings centered on each sensor's reference value"""

    def __init__(self, rng: Optional[random.Random] = None, history_length: int = HISTORY_LENGTH):
        self.rng = rng or random.Random()
        self.history_length = history_length

    def sample(self, sensor: SensorDefinition) -> float:
        """Draw one value, clamped into the sensor's legal range"""
        return sensor.clamp(self.rng.gauss(sensor.center, sensor.std_dev))

    def measure(self, vehicle: Vehicle, sensors: Sequence[SensorDefinition],
                now: Optional[datetime] = None) -> List[TelemetryReading]:
        """Sample every sensor for a vehicle and store the readings on it"""
        if not sensors:
            raise ConfigurationError('No telemetry sensors configured.')

        now = now or datetime.now()
        readings = []
        for sensor in sensors:
            value = self.sample(sensor)
            vehicle.record(sensor.kind, value, now, maxlen=self.history_length)
            vehicle.warnings[sensor.kind] = sensor.is_alert(value)
            readings.append(TelemetryReading(vehicle.id, sensor.kind, value, now))

        vehicle.last_update = now.isoformat()
        logger.debug(f"Measured {len(readings)} sensors for vehicle {vehicle.id}")
        return readings
