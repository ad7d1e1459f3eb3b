# pid_core.py

import logging
from enum import IntEnum

from pid_clock import MonotonicClock

logger = logging.getLogger(__name__)


def clamp(value, value_min, value_max):
    return min(max(value, value_min), value_max)


class Mode(IntEnum):
    MANUAL = 0
    AUTOMATIC = 1


class Direction(IntEnum):
    DIRECT = 0
    REVERSE = 1

    @property
    def sign(self):
        return 1 if self is Direction.DIRECT else -1


# numeric constants kept for callers that pass plain ints
AUTOMATIC = Mode.AUTOMATIC
MANUAL = Mode.MANUAL
DIRECT = Direction.DIRECT
REVERSE = Direction.REVERSE


class InvalidMode(ValueError):
    pass


class InvalidDirection(ValueError):
    pass


_MODE_NAMES = {
    "1": Mode.AUTOMATIC,
    "automatic": Mode.AUTOMATIC,
    "auto": Mode.AUTOMATIC,
    "0": Mode.MANUAL,
    "manual": Mode.MANUAL,
}

_DIRECTION_NAMES = {
    "0": Direction.DIRECT,
    "direct": Direction.DIRECT,
    "1": Direction.REVERSE,
    "reverse": Direction.REVERSE,
}


def _lookup(value, names):
    if isinstance(value, (int, float)) and value in (0, 1):
        return names[str(int(value))]
    if isinstance(value, str):
        return names.get(value.strip().lower())
    return None


def parse_mode(value):
    """Map a Mode, 0/1 or 'automatic'/'auto'/'manual' (any case) to a Mode."""
    if isinstance(value, Mode):
        return value
    mode = _lookup(value, _MODE_NAMES)
    if mode is None:
        raise InvalidMode(f"Incorrect mode chosen: {value!r}")
    return mode


def parse_direction(value):
    """Map a Direction, 0/1 or 'direct'/'reverse' (any case) to a Direction."""
    if isinstance(value, Direction):
        return value
    direction = _lookup(value, _DIRECTION_NAMES)
    if direction is None:
        raise InvalidDirection(f"Incorrect controller direction chosen: {value!r}")
    return direction


class PID:
    """
    Discrete PID controller meant to be polled from a host loop.

    Call set_input() with each new measurement and compute() on every pass
    of the loop. compute() decides for itself whether a sample period has
    elapsed and returns True only when it produced a new output.

    Gains are given per second. Internally ki and kd are pre-scaled by the
    sample period, so the raw values are kept separately for reporting.
    """

    DEFAULT_SAMPLE_TIME = 100  # ms
    DEFAULT_OUTPUT_LIMITS = (0, 255)

    def __init__(self, input, setpoint, kp, ki, kd, direction, clock=None):
        self.clock = clock if clock is not None else MonotonicClock()

        self._input = input
        self._setpoint = setpoint
        self._mode = Mode.MANUAL
        self._out_min, self._out_max = self.DEFAULT_OUTPUT_LIMITS
        self._sample_time = self.DEFAULT_SAMPLE_TIME

        self._disp_kp = self._disp_ki = self._disp_kd = 0.0
        self._kp = self._ki = self._kd = 0.0
        self.set_tunings(kp, ki, kd)
        self.set_direction(direction)

        # back-dated so the first compute() in automatic fires at once
        self._last_time = self.clock.now() - self._sample_time

        self._integral = 0.0
        self._output = 0.0
        self._last_input = input

    # ---- inputs -----------------------------------------------------------

    def set_input(self, value):
        self._input = value

    def set_setpoint(self, value):
        self._setpoint = value

    # ---- control law ------------------------------------------------------

    def compute(self):
        if self._mode is not Mode.AUTOMATIC:
            return False

        now = self.clock.now()
        if now - self._last_time < self._sample_time:
            return False

        input = self._input
        error = self._setpoint - input
        self._integral += self._ki * error
        d_input = input - self._last_input

        # derivative on measurement, so setpoint steps don't kick the output
        output = (self._kp * error + self._integral - self._kd * d_input) * self._direction.sign

        if output > self._out_max:
            self._integral -= output - self._out_max
            output = self._out_max
        elif output < self._out_min:
            self._integral += self._out_min - output
            output = self._out_min
        self._integral = clamp(self._integral, self._out_min, self._out_max)

        self._output = output
        self._last_input = input
        self._last_time = now

        logger.debug("compute: error=%.4f integral=%.4f output=%.4f", error, self._integral, output)
        return True

    # ---- tuning -----------------------------------------------------------

    def set_tunings(self, kp, ki, kd):
        """
        Adjust the gains on the fly. Negative gains are refused and the
        previous tunings stay in effect; the return value says which happened.
        """
        if kp < 0 or ki < 0 or kd < 0:
            logger.warning("Ignoring negative tunings kp=%s ki=%s kd=%s", kp, ki, kd)
            return False

        self._disp_kp = kp
        self._disp_ki = ki
        self._disp_kd = kd

        sample_time_sec = self._sample_time / 1000
        self._kp = kp
        self._ki = ki * sample_time_sec
        self._kd = kd / sample_time_sec
        return True

    def set_sample_time(self, new_sample_time):
        """Set the compute period in milliseconds, keeping per-second gains intact."""
        if new_sample_time <= 0:
            logger.warning("Ignoring non-positive sample time %s ms", new_sample_time)
            return False

        ratio = new_sample_time / self._sample_time
        self._ki *= ratio
        self._kd /= ratio
        self._sample_time = round(new_sample_time)
        return True

    def set_output_limits(self, out_min, out_max):
        if out_min >= out_max:
            logger.warning("Ignoring output limits min=%s >= max=%s", out_min, out_max)
            return False

        self._out_min = out_min
        self._out_max = out_max

        if self._mode is Mode.AUTOMATIC:
            self._output = clamp(self._output, out_min, out_max)
            self._integral = clamp(self._integral, out_min, out_max)
        return True

    def set_output(self, value):
        """
        Force the output, meant for manual mode.

        Values below the lower limit are raised to it; values above the upper
        limit are stored as given.
        """
        # only the lower bound is enforced
        if value < self._out_min:
            value = self._out_min
        self._output = value

    def set_mode(self, mode):
        new_mode = parse_mode(mode)
        if new_mode is Mode.AUTOMATIC and self._mode is Mode.MANUAL:
            self._initialize()
        if new_mode is not self._mode:
            logger.debug("mode %s -> %s", self._mode.name, new_mode.name)
        self._mode = new_mode

    def _initialize(self):
        # bumpless transfer: integral picks up the last manual output
        self._integral = clamp(self._output, self._out_min, self._out_max)
        self._last_input = self._input

    def set_direction(self, direction):
        self._direction = parse_direction(direction)

    # ---- status -----------------------------------------------------------

    @property
    def kp(self):
        return self._disp_kp

    @property
    def ki(self):
        return self._disp_ki

    @property
    def kd(self):
        return self._disp_kd

    @property
    def mode(self):
        return self._mode

    @property
    def mode_label(self):
        return "Auto" if self._mode is Mode.AUTOMATIC else "Manual"

    @property
    def direction(self):
        return self._direction

    @property
    def output(self):
        return self._output

    @property
    def input(self):
        return self._input

    @property
    def setpoint(self):
        return self._setpoint

    @property
    def sample_time(self):
        return self._sample_time

    @property
    def output_limits(self):
        return self._out_min, self._out_max

    @property
    def integral(self):
        return self._integral

    @property
    def last_input(self):
        return self._last_input

    def __repr__(self):
        return (
            f"PID(kp={self.kp}, ki={self.ki}, kd={self.kd}, "
            f"mode={self.mode_label}, direction={self._direction.name}, "
            f"setpoint={self._setpoint}, output={self._output})"
        )
