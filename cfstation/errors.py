"""Exception types raised by the station simulator."""


class StationError(Exception):
    pass


class ConfigError(StationError):
    """Raised when the station configuration holds an unusable value."""


class InvalidArgumentError(StationError):
    """Raised when a station method is called with a bad argument."""
