# logging.py
# Unified logging utilities for console and rotating file output

import os
import sys
import logging
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Where file handlers are written; empty (until configured) disables file output
_log_dir = ''
_level = logging.INFO
_loggers = set()

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


def configure_logging(log_dir, level='INFO'):
    """Set the log directory and level for all pinstate loggers"""
    global _log_dir, _level
    _log_dir = log_dir or ''
    _level = LEVELS[level.upper()]

    # Rebuild loggers created before configuration was known
    for name in sorted(_loggers):
        setup_logger(name, f'{name}.log')


def setup_logger(name, log_file=None, level=None):
    """Setup a logger with a console handler and a rotating file handler"""
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _level)
    logger.propagate = False
    _loggers.add(name)

    # Clear existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if _log_dir and log_file:
        os.makedirs(_log_dir, exist_ok=True)
        # 10MB max, keep 5 backup files
        handler = RotatingFileHandler(
            os.path.join(_log_dir, log_file),
            maxBytes=10*1024*1024,
            backupCount=5
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name):
    """Return the named logger, creating it with a matching log file on first use"""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger = setup_logger(name, f'{name}.log')
    return logger


def log_event(logger, level, message, **kwargs):
    """Log an event with optional additional context"""
    if kwargs:
        context = ' '.join([f"{k}={v}" for k, v in kwargs.items()])
        message = f"{message} | {context}"

    logger.log(LEVELS.get(level.upper(), logging.INFO), message)
