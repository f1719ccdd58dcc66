"""
Error types for the fleet maintenance simulator
"""


class FleetError(Exception):
    """Base class for errors raised by fleet operations"""


class NotFoundError(FleetError):
    """Unknown vehicle, hub or sensor"""


class ConfigurationError(FleetError):
    """A catalog the operation depends on is empty or unusable"""


class ValidationError(FleetError):
    """Rejected input; no state was changed"""


class RoutingError(FleetError):
    """The external routing provider failed or returned an unusable route"""
