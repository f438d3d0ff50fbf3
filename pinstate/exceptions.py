# exceptions.py
# Error types shared by the store, GPIO layer and startup code


class PinKeeperError(Exception):
    """Base class for all PinKeeper errors"""


class ConfigError(PinKeeperError):
    """Raised when a setting is missing or cannot be parsed"""


class StoreError(PinKeeperError):
    """Raised when the state database cannot be opened, read or written"""


class HardwareUnavailableError(PinKeeperError):
    """Raised when the GPIO capability cannot be acquired"""
