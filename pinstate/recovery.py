# recovery.py
# Startup replay of persisted pin states onto the hardware

from .logging import log_event, get_logger

system_logger = get_logger('system')


class RecoveryRunner:
    """Drives every stored pin back to its last commanded level, once"""

    def __init__(self, store, pins):
        self.store = store
        self.pins = pins

    def run(self):
        states = self.store.get_all()
        log_event(system_logger, 'INFO', 'Recovering GPIO state', records=len(states))

        for state in states:
            self.pins.set_level(state.pin_id, state.active)
            log_event(system_logger, 'DEBUG', 'Pin restored', pin=state.pin_id, active=state.active)

        return len(states)
