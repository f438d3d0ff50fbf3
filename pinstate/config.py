# config.py
# Handles parsing of settings.cfg, environment overrides and CLI flags

import os
import configparser
from dataclasses import dataclass, asdict, fields

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = os.path.join('config', 'settings.cfg')
ENV_PREFIX = 'PINKEEPER_'

GPIO_MODES = ('BCM', 'BOARD')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARN', 'WARNING', 'ERROR', 'CRITICAL')

_TRUE = ('1', 'yes', 'true', 'on')
_FALSE = ('0', 'no', 'false', 'off')


@dataclass
class Settings:
    dbfile: str = './gpio.db'
    recovery: bool = False
    listen_port: int = 8081
    host: str = '0.0.0.0'
    mode: str = 'BCM'
    active_low: bool = True
    simulate: bool = False
    strict_storage: bool = True
    serialize_writes: bool = True
    log_dir: str = './logs'
    log_level: str = 'INFO'

    def as_dict(self):
        return asdict(self)


# setting name -> (section, key) in settings.cfg
INI_KEYS = {
    'dbfile': ('Storage', 'dbfile'),
    'strict_storage': ('Storage', 'strict'),
    'recovery': ('Startup', 'recovery'),
    'listen_port': ('Server', 'listen_port'),
    'host': ('Server', 'host'),
    'serialize_writes': ('Server', 'serialize_writes'),
    'mode': ('GPIO', 'mode'),
    'active_low': ('GPIO', 'activeLow'),
    'simulate': ('GPIO', 'simulate'),
    'log_dir': ('Logging', 'dir'),
    'log_level': ('Logging', 'level'),
}

# setting name -> environment variable
ENV_KEYS = {
    'dbfile': 'DBFILE',
    'recovery': 'RECOVERY',
    'listen_port': 'LISTEN_PORT',
    'host': 'HOST',
    'mode': 'GPIO_MODE',
    'active_low': 'ACTIVE_LOW',
    'simulate': 'SIMULATE',
    'strict_storage': 'STRICT_STORAGE',
    'serialize_writes': 'SERIALIZE_WRITES',
    'log_dir': 'LOG_DIR',
    'log_level': 'LOG_LEVEL',
}


def parse_bool(name, value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def parse_port(name, value):
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port for {name}: {value!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range for {name}: {port}")
    return port


def _coerce(name, value):
    """Convert a raw string value to the type of the named setting"""
    kind = {f.name: f.type for f in fields(Settings)}[name]
    if kind in (bool, 'bool'):
        return parse_bool(name, value)
    if name == 'listen_port':
        return parse_port(name, value)
    if name == 'mode':
        mode = str(value).strip().upper()
        if mode not in GPIO_MODES:
            raise ConfigError(f"Unknown GPIO mode: {value}")
        return mode
    if name == 'log_level':
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {value}")
        return level
    return str(value)


def read_ini(path):
    """Load overrides from an INI settings file; a missing file yields none"""
    values = {}
    if not path or not os.path.exists(path):
        return values

    config = configparser.ConfigParser()
    try:
        config.read(path)
    except configparser.Error as e:
        raise ConfigError(f"Could not parse {path}: {e}")

    for name, (section, key) in INI_KEYS.items():
        if config.has_option(section, key):
            values[name] = config.get(section, key)
    return values


def read_env(environ=None):
    environ = os.environ if environ is None else environ
    values = {}
    for name, suffix in ENV_KEYS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is not None and raw != '':
            values[name] = raw
    return values


def load_settings(config_path=None, overrides=None, environ=None):
    """
    Build Settings from defaults, then settings.cfg, then the environment,
    then explicit overrides (CLI flags). None-valued overrides are ignored.
    """
    environ = os.environ if environ is None else environ
    if config_path is None:
        config_path = environ.get(ENV_PREFIX + 'CONFIG', DEFAULT_CONFIG_PATH)

    merged = {}
    merged.update(read_ini(config_path))
    merged.update(read_env(environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    unknown = set(merged) - set(INI_KEYS)
    if unknown:
        raise ConfigError(f"Unknown settings: {sorted(unknown)}")

    return Settings(**{name: _coerce(name, value) for name, value in merged.items()})
