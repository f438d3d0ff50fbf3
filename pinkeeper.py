#!/usr/bin/env python3
"""
PinKeeper - persisted GPIO state over HTTP
==========================================
Main System Entry Point

Startup sequence:
1. Settings (defaults -> settings.cfg -> environment -> flags)
   ↓
2. State database opened (created if missing) and schema ensured
   ↓
3. GPIO acquired (RPi.GPIO, or the simulator when configured)
   ↓
4. Optional recovery: every stored pin state replayed onto the hardware
   ↓
5. Flask API server listening

Any failure before step 5 is fatal.

Usage:
    python pinkeeper.py                          # Start the server
    python pinkeeper.py --recovery               # Restore pins, then start
    python pinkeeper.py --listen-port 9000       # Start on another port
    python pinkeeper.py --status                 # Show stored pin states
    python pinkeeper.py --config-show            # Show effective settings
"""

import sys
import argparse

from api import create_app
from pinstate.config import load_settings
from pinstate.context import PinContext
from pinstate.exceptions import PinKeeperError
from pinstate.gpio import acquire_gpio
from pinstate.logging import configure_logging, log_event, get_logger
from pinstate.recovery import RecoveryRunner
from pinstate.store import StateStore

system_logger = get_logger('system')


def build_parser():
    parser = argparse.ArgumentParser(
        description="PinKeeper - set and persist GPIO pin state over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python pinkeeper.py                        # Start the server
  python pinkeeper.py --recovery             # Restore pin state at start
  python pinkeeper.py --dbfile /var/lib/gpio.db
  python pinkeeper.py --status               # Show stored pin states
        """
    )

    parser.add_argument('--config', default=None, help='Path to settings.cfg')
    parser.add_argument('--dbfile', default=None, help='Set db file (default ./gpio.db)')
    parser.add_argument('--recovery', action='store_const', const=True, default=None,
                        help='Recover gpio state at start')
    parser.add_argument('--listen-port', dest='listen_port', type=int, default=None,
                        help='Set http server listen port (default 8081)')
    parser.add_argument('--host', default=None, help='Interface to bind (default 0.0.0.0)')
    parser.add_argument('--simulate', action='store_const', const=True, default=None,
                        help='Use the in-memory GPIO simulator instead of RPi.GPIO')
    parser.add_argument('--log-dir', dest='log_dir', default=None, help='Directory for log files')
    parser.add_argument('--log-level', dest='log_level', default=None, help='Log level (default INFO)')
    parser.add_argument('--status', action='store_true', help='Show stored pin states and exit')
    parser.add_argument('--config-show', dest='config_show', action='store_true',
                        help='Show effective settings and exit')
    return parser


def settings_from_args(args, environ=None):
    overrides = {
        'dbfile': args.dbfile,
        'recovery': args.recovery,
        'listen_port': args.listen_port,
        'host': args.host,
        'simulate': args.simulate,
        'log_dir': args.log_dir,
        'log_level': args.log_level,
    }
    return load_settings(args.config, overrides=overrides, environ=environ)


def open_store(settings):
    store = StateStore.open(settings.dbfile)
    store.ensure_schema()
    return store


def initialize(settings):
    """Run the startup sequence up to, but not including, serving requests"""
    store = open_store(settings)
    pins = acquire_gpio(settings)

    if settings.recovery:
        count = RecoveryRunner(store, pins).run()
        log_event(system_logger, 'INFO', 'GPIO state recovered', pins=count)

    return PinContext(store=store, pins=pins, settings=settings)


def show_status(settings):
    store = open_store(settings)
    try:
        states = store.get_all()
    finally:
        store.close()

    print(f"Stored pin states in {settings.dbfile}:")
    if not states:
        print("  (none)")
    for state in states:
        print(f"  Pin {state.pin_id}: {'ACTIVE' if state.active else 'INACTIVE'}")


def show_config(settings):
    print("Effective settings:")
    for key, value in settings.as_dict().items():
        print(f"  {key}: {value}")


def serve(context):
    app = create_app(context)
    log_event(system_logger, 'INFO', 'Starting HTTP server',
              host=context.settings.host, port=context.settings.listen_port)
    app.run(host=context.settings.host, port=context.settings.listen_port,
            threaded=True, use_reloader=False)


def main(argv=None, environ=None):
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args, environ)
        configure_logging(settings.log_dir, settings.log_level)

        if args.config_show:
            show_config(settings)
            return 0
        if args.status:
            show_status(settings)
            return 0

        context = initialize(settings)
    except (PinKeeperError, OSError) as e:
        log_event(system_logger, 'CRITICAL', 'Startup failed', error=str(e))
        return 1

    try:
        serve(context)
    except OSError as e:
        log_event(system_logger, 'CRITICAL', 'HTTP server failed', error=str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
