"""
Custom exceptions for t-docker.
"""


class TDockerError(Exception):
    """Base exception for t-docker errors."""
    pass


class PortNotFoundError(TDockerError):
    """Raised when a port mapping holds no <host>-><container>/tcp entry."""
    pass


class ConfigError(TDockerError):
    """Raised when the configuration file cannot be used."""
    pass
