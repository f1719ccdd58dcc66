#!/usr/bin/env python3
"""
Simulation clock for the fleet simulator
Owns the vehicle collection and drives one tick per interval
"""

import logging
import math
import numbers
import threading
import time
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from backend.errors import ValidationError
from backend.models.prediction import Prediction
from backend.models.sensor import SensorDefinition
from backend.models.vehicle import Vehicle
from backend.services.event_publisher import EventPublisher
from backend.services.notification_deriver import NotificationDeriver
from backend.services.prediction_engine import PredictionEngine
from backend.services.route_engine import RouteEngine
from backend.services.telemetry_sampler import TelemetrySampler

logger = logging.getLogger(__name__)


def validate_interval(interval_ms) -> int:
    """Return the interval as a positive int or raise ValidationError"""
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, numbers.Real):
        raise ValidationError(f'Interval must be a positive integer, got {interval_ms!r}')
    if not math.isfinite(interval_ms) or interval_ms != int(interval_ms) or interval_ms <= 0:
        raise ValidationError(f'Interval must be a positive integer, got {interval_ms!r}')
    return int(interval_ms)


class SimulationClock:
    """
    Background service that ticks the fleet simulation.

    Per tick every vehicle runs route advance, telemetry measurement,
    prediction, notification derivation and publishing, one vehicle at a
    time. A vehicle that raises is logged and skipped; the rest of the
    fleet still completes the tick. High predictions are then notified
    once for the whole fleet, soonest failure first.
    """

    def __init__(self, route_engine: RouteEngine, sampler: TelemetrySampler,
                 prediction_engine: PredictionEngine, notifications: NotificationDeriver,
                 publisher: EventPublisher, sensors: Sequence[SensorDefinition],
                 interval_ms: int = 1000):
        """
        Initialize the simulation clock

        Args:
            route_engine: moves vehicles along routes
            sampler: produces telemetry readings
            prediction_engine: classifies readings into predictions
            notifications: derives notifications and timeline events
            publisher: pushes VehicleChanged events
            sensors: sensor catalog sampled every tick
            interval_ms: tick interval at 1x speed (default: 1000)
        """
        self.route_engine = route_engine
        self.sampler = sampler
        self.prediction_engine = prediction_engine
        self.notifications = notifications
        self.publisher = publisher
        self.sensors: List[SensorDefinition] = list(sensors)

        self.base_interval_ms = validate_interval(interval_ms)
        self.interval_ms = self.base_interval_ms

        self.vehicles: Dict[str, Vehicle] = {}
        self.predictions: Dict[str, List[Prediction]] = {}
        self.tick_count = 0
        self.last_tick: Optional[datetime] = None

        # guards vehicle state between the tick and API callers
        self.lock = threading.RLock()
        self._schedule_lock = threading.Lock()
        self._stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive() and not self._stop_event.is_set()

    @property
    def speed(self) -> float:
        return self.base_interval_ms / self.interval_ms

    def start(self):
        """Start the background tick thread"""
        with self._schedule_lock:
            self._start_locked()

    def stop(self):
        """Stop the tick thread and wait for a running tick to finish"""
        with self._schedule_lock:
            self._stop_locked()

    def set_interval(self, interval_ms) -> int:
        """
        Replace the tick schedule.

        Invalid input raises ValidationError and leaves the current schedule
        untouched. A running timer is fully stopped before the new one starts.
        """
        interval_ms = validate_interval(interval_ms)
        with self._schedule_lock:
            was_running = self.is_running
            self._stop_locked()
            self.interval_ms = interval_ms
            if was_running:
                self._start_locked()
        logger.info(f"Simulation step interval set to {interval_ms}ms")
        return interval_ms

    def set_speed(self, multiplier) -> int:
        """Scale the tick interval: effective = base / multiplier"""
        if isinstance(multiplier, bool) or not isinstance(multiplier, numbers.Real) \
                or not math.isfinite(multiplier) or multiplier <= 0:
            raise ValidationError(f'Speed multiplier must be a positive number, got {multiplier!r}')
        return self.set_interval(max(1, round(self.base_interval_ms / multiplier)))

    def _start_locked(self):
        if self.is_running:
            logger.warning("Simulation clock is already running")
            return

        self._stop_event = threading.Event()
        self.thread = threading.Thread(
            target=self._tick_loop,
            args=(self._stop_event, self.interval_ms / 1000),
            name='simulation-clock',
            daemon=True,
        )
        self.thread.start()
        logger.info(f"Simulation clock started with {self.interval_ms}ms interval")

    def _stop_locked(self):
        self._stop_event.set()
        thread, self.thread = self.thread, None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            logger.info("Stopping simulation clock...")
            thread.join()

    def _tick_loop(self, stop_event: threading.Event, interval_s: float):
        """Main tick loop - runs in background thread"""
        while not stop_event.wait(interval_s):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in simulation step: {e}")
                self.publisher.publish_error(f'Simulation step error: {str(e)}')

    def tick(self) -> dict:
        """Run one simulation step over the whole fleet"""
        with self.lock:
            start_time = time.time()
            now = datetime.now()

            failed = 0
            vehicles = list(self.vehicles.values())
            for vehicle in vehicles:
                try:
                    self._step_vehicle(vehicle, now)
                except Exception:
                    failed += 1
                    logger.exception(f"Simulation step failed for vehicle {vehicle.id}")

            self.notifications.derive_predictions(
                self.prediction_engine.fleet_predictions(self.predictions))

            self.tick_count += 1
            self.last_tick = now
            step_time = (time.time() - start_time) * 1000

        logger.info(f"Simulation step completed for {len(vehicles)} vehicles "
                    f"({failed} failed) in {step_time:.0f}ms")
        return {
            'vehicles': len(vehicles),
            'failed': failed,
            'durationMs': step_time,
        }

    def _step_vehicle(self, vehicle: Vehicle, now: datetime):
        self.route_engine.advance(vehicle)
        self.sampler.measure(vehicle, self.sensors, now)
        predictions = self.prediction_engine.classify(vehicle, self.sensors, now)
        self.predictions[vehicle.id] = predictions
        self.notifications.derive(vehicle, self.sensors)
        self.publisher.publish(vehicle.id)

    def fleet_predictions(self) -> List[Prediction]:
        """All current predictions, soonest predicted failure first"""
        with self.lock:
            return self.prediction_engine.fleet_predictions(self.predictions)

    def shutdown(self):
        self.stop()
        self.notifications.shutdown()
        logger.info("Simulation clock shut down")
