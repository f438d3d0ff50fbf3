# api.py
# Flask REST API for setting and reading persisted GPIO pin state

import json
import re

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from pinstate.exceptions import StoreError
from pinstate.logging import log_event, get_logger

api_logger = get_logger('api')
error_logger = get_logger('error')

PIN_ID_RE = re.compile(r'[0-9]+')
# Largest value an SQLite INTEGER key can hold
MAX_PIN_ID = 2**63 - 1

gpio_bp = Blueprint('gpio', __name__)


def create_app(context):
    """Build the Flask app around an already initialized PinContext"""
    app = Flask(__name__)
    # CORS configuration for LAN access - allows all local network traffic
    CORS(app,
         origins=["*"],
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type"],
         supports_credentials=False)

    app.config['PIN_CONTEXT'] = context
    app.register_blueprint(gpio_bp)
    return app


def _context():
    return current_app.config['PIN_CONTEXT']


def _error(message, status):
    return Response(f"{message}\n", status=status, mimetype='text/plain')


def parse_pin_id(raw):
    """Pin ids are non-negative decimal integers"""
    if not PIN_ID_RE.fullmatch(raw):
        raise ValueError(f'invalid pin id "{raw}": must be a non-negative integer')
    pin = int(raw)
    if pin > MAX_PIN_ID:
        raise ValueError(f'invalid pin id "{raw}": value out of range')
    return pin


def parse_active(body):
    """
    Decode a set-state body. Expects a JSON object; a missing "active" field
    (or a JSON null body) means inactive. An exact "active" key wins, otherwise
    the key is matched case-insensitively ("Active", "ACTIVE").
    """
    data = json.loads(body)
    if data is None:
        return False
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")

    if 'active' in data:
        active = data['active']
    else:
        active = next((v for k, v in data.items() if k.lower() == 'active'), False)
    if not isinstance(active, bool):
        raise ValueError(f'field "active" must be a boolean, got {json.dumps(active)}')
    return active


@gpio_bp.route('/gpios/<pin_id>', methods=['POST'], strict_slashes=False)
def set_gpio_status(pin_id):
    """Drive a pin and persist its state"""
    ctx = _context()

    try:
        pin = parse_pin_id(pin_id)
    except ValueError as e:
        log_event(api_logger, 'WARN', 'Rejected pin id', pin_id=pin_id, error=str(e))
        return _error(e, 400)

    try:
        body = request.get_data(cache=False)
    except (BadRequest, OSError) as e:
        log_event(api_logger, 'WARN', 'Could not read request body', pin=pin, error=str(e))
        return _error(e, 400)

    try:
        active = parse_active(body)
    except ValueError as e:
        log_event(api_logger, 'WARN', 'Rejected request body', pin=pin, error=str(e))
        return _error(e, 400)

    with ctx.pin_guard(pin):
        ctx.pins.set_level(pin, active)
        try:
            ctx.store.upsert(pin, active)
        except StoreError as e:
            if ctx.settings.strict_storage:
                log_event(error_logger, 'ERROR', 'Pin driven but state not persisted', pin=pin, active=active, error=str(e))
                return _error(f"failed to persist pin state: {e}", 500)
            log_event(error_logger, 'WARN', 'Pin state not persisted, reporting success', pin=pin, active=active, error=str(e))

    log_event(api_logger, 'INFO', 'Pin state set', pin=pin, active=active)
    return '', 200


@gpio_bp.route('/gpios/<pin_id>', methods=['GET'], strict_slashes=False)
def get_gpio_status(pin_id):
    """Report the last persisted state of a pin; unknown pins are inactive"""
    ctx = _context()

    try:
        pin = parse_pin_id(pin_id)
    except ValueError as e:
        log_event(api_logger, 'WARN', 'Rejected pin id', pin_id=pin_id, error=str(e))
        return _error(e, 400)

    if ctx.settings.strict_storage:
        try:
            active = bool(ctx.store.lookup(pin))
        except StoreError as e:
            log_event(error_logger, 'ERROR', 'Pin state lookup failed', pin=pin, error=str(e))
            return _error(f"failed to read pin state: {e}", 500)
    else:
        active = ctx.store.get_status(pin)

    return jsonify(is_active=active)
