"""
Reference catalogs for the fleet simulator: hubs, vehicle models,
sensors and past maintenance jobs
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List

from backend.models.notification import MaintenanceEntry
from backend.models.route import Waypoint
from backend.models.sensor import SensorDefinition


@dataclass(frozen=True)
class Hub:
    """Named reference location used for vehicle placement and routing"""
    id: str
    name: str
    lat: float
    lng: float

    @property
    def position(self) -> Waypoint:
        return Waypoint(self.lat, self.lng)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class VehicleModel:
    id: str
    name: str
    manufacturer: str

    def to_dict(self):
        return asdict(self)


DEFAULT_HUBS: List[Hub] = [
    Hub('BER', 'Berlin', 52.5200, 13.4050),
    Hub('HAM', 'Hamburg', 53.5511, 9.9937),
    Hub('MUC', 'Munich', 48.1351, 11.5820),
    Hub('CGN', 'Cologne', 50.9375, 6.9603),
    Hub('FRA', 'Frankfurt am Main', 50.1109, 8.6821),
    Hub('STR', 'Stuttgart', 48.7758, 9.1829),
    Hub('LEJ', 'Leipzig', 51.3397, 12.3731),
    Hub('DRS', 'Dresden', 51.0504, 13.7373),
    Hub('HAJ', 'Hanover', 52.3759, 9.7320),
    Hub('NUE', 'Nuremberg', 49.4521, 11.0767),
]

DEFAULT_VEHICLE_MODELS: List[VehicleModel] = [
    VehicleModel('sprinter', 'Sprinter 316 CDI', 'Mercedes-Benz'),
    VehicleModel('crafter', 'Crafter 35', 'Volkswagen'),
    VehicleModel('transit', 'Transit Custom', 'Ford'),
    VehicleModel('actros', 'Actros 1845', 'Mercedes-Benz'),
    VehicleModel('tgx', 'TGX 18.510', 'MAN'),
]

DEFAULT_SENSORS: List[SensorDefinition] = [
    SensorDefinition(
        kind='engine_temp', name='Engine coolant temperature', unit='°C',
        min=60, max=110, reference=82,
        warn_high=85, crit_high=95, alert_high=90,
    ),
    SensorDefinition(
        kind='oil_level', name='Engine oil level', unit='%',
        min=0, max=100, reference=70,
        warn_low=50, crit_low=20, alert_low=20,
    ),
    SensorDefinition(
        kind='tyre_pressure', name='Tyre pressure', unit='bar',
        min=60, max=160, reference=120,
        warn_low=100, crit_low=80, alert_low=90,
    ),
    SensorDefinition(
        kind='battery_health', name='Battery SoC', unit='%',
        min=0, max=100, reference=75,
        warn_low=20, crit_low=20, alert_low=20,
    ),
]

DEFAULT_MAINTENANCE_HISTORY: List[MaintenanceEntry] = [
    MaintenanceEntry(datetime(2024, 5, 20), 'Oil change', 'Scheduled'),
    MaintenanceEntry(datetime(2024, 5, 15), 'Cooling system', 'Repair'),
    MaintenanceEntry(datetime(2024, 5, 10), 'Tyres', 'Replacement'),
]
