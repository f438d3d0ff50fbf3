# gpio.py
# GPIO abstraction (simulator/real hardware) with the logical->electrical mapping
import threading
from enum import Enum

from .exceptions import HardwareUnavailableError
from .logging import log_event, get_logger

gpio_logger = get_logger('gpio')


class Level(Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'

    @classmethod
    def from_bool(cls, active):
        return cls.ACTIVE if active else cls.INACTIVE


class SimulatedGPIO:
    """In-memory stand-in exposing the subset of the RPi.GPIO API we call"""
    BCM = 11
    BOARD = 10
    OUT = 0
    LOW = 0
    HIGH = 1

    def __init__(self):
        self.mode = None
        self.pin_states = {}  # Track pin states for simulation
        self.lock = threading.Lock()

    def setmode(self, mode):
        self.mode = mode

    def setwarnings(self, warnings):
        pass

    def setup(self, pin, direction):
        if self.mode is None:
            raise RuntimeError("Please set pin numbering mode using GPIO.setmode(GPIO.BOARD) or GPIO.setmode(GPIO.BCM)")
        with self.lock:
            self.pin_states.setdefault(pin, self.LOW)

    def output(self, pin, state):
        with self.lock:
            if pin not in self.pin_states:
                raise RuntimeError("The GPIO channel has not been set up as an OUTPUT")
            self.pin_states[pin] = state

    def input(self, pin):
        with self.lock:
            return self.pin_states.get(pin, self.LOW)


class PinController:
    """
    Drives numbered GPIO lines to a logical level.

    With active_low (the default) an ACTIVE pin is driven LOW and an INACTIVE
    pin HIGH, which is how relay boards wired to the Pi expect it. The
    inversion never leaves this class.
    """

    def __init__(self, gpio, active_low=True, mode='BCM'):
        self.gpio = gpio
        self.active_low = active_low
        self.mode = mode.upper()
        self._levels = {}

    def acquire(self):
        """Select the numbering mode; failure means no usable GPIO"""
        log_event(gpio_logger, 'INFO', 'Initializing GPIO', mode=self.mode,
                  active_low=self.active_low, backend=type(self.gpio).__name__)
        try:
            if self.mode == 'BCM':
                self.gpio.setmode(self.gpio.BCM)
            elif self.mode == 'BOARD':
                self.gpio.setmode(self.gpio.BOARD)
            else:
                raise ValueError(f"Unknown GPIO mode: {self.mode}")
            self.gpio.setwarnings(False)
        except (RuntimeError, ValueError) as e:
            log_event(gpio_logger, 'ERROR', 'GPIO initialization failed', error=str(e))
            raise HardwareUnavailableError(f"GPIO initialization failed: {e}")
        return self

    def electrical(self, level):
        """Map a logical Level to the GPIO output value"""
        if level is Level.ACTIVE:
            return self.gpio.LOW if self.active_low else self.gpio.HIGH
        return self.gpio.HIGH if self.active_low else self.gpio.LOW

    def set_level(self, pin_id, active):
        level = Level.from_bool(active)
        target_state = self.electrical(level)
        try:
            self.gpio.setup(pin_id, self.gpio.OUT)
            self.gpio.output(pin_id, target_state)
        except (RuntimeError, ValueError) as e:
            # Per-write failures stay local; the caller carries on
            log_event(gpio_logger, 'ERROR', 'Pin write failed',
                      pin=pin_id, logical=level.value, error=str(e))
            return

        self._levels[pin_id] = level
        log_event(gpio_logger, 'DEBUG', 'Pin driven',
                  pin=pin_id, logical=level.value, output=target_state)

    def levels(self):
        """Lines driven by this process so far"""
        return dict(self._levels)


def load_rpi_gpio():
    try:
        import RPi.GPIO as GPIO
    except (ImportError, RuntimeError) as e:
        # RPi.GPIO raises RuntimeError on import when not running on a Pi
        raise HardwareUnavailableError(f"RPi.GPIO not available: {e}")
    return GPIO


def acquire_gpio(settings):
    """Build and initialize the PinController selected by settings"""
    if settings.simulate:
        log_event(gpio_logger, 'WARN', 'Simulation mode enabled - pins are not driven')
        backend = SimulatedGPIO()
    else:
        backend = load_rpi_gpio()
        log_event(gpio_logger, 'INFO', 'Using real GPIO hardware')

    controller = PinController(backend, active_low=settings.active_low, mode=settings.mode)
    return controller.acquire()
