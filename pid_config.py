# pid_config.py

"""
Load controller settings from a YAML file and build a ready-to-poll PID.

Layout:

    controller:
      input: 50
      setpoint: 66
      tunings: {kp: 10, ki: 2, kd: 1}
      direction: direct
      mode: auto                      # optional, default manual
      sample_time_ms: 100             # optional
      output_limits: {min: 0, max: 100}  # optional
    logging:
      level: INFO                     # optional
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from pid_core import PID, Mode, Direction, InvalidMode, InvalidDirection, parse_mode, parse_direction

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "pid_config.yaml"
LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s'


class ConfigError(ValueError):
    pass


@dataclass
class ControllerConfig:
    input: float
    setpoint: float
    kp: float
    ki: float
    kd: float
    direction: Direction
    mode: Mode = Mode.MANUAL
    sample_time_ms: int = PID.DEFAULT_SAMPLE_TIME
    output_limits: Tuple[float, float] = PID.DEFAULT_OUTPUT_LIMITS
    log_level: str = "INFO"


def _number(section: Dict[str, Any], key: str, where: str) -> float:
    try:
        value = section[key]
    except KeyError:
        raise ConfigError(f"Missing required parameter '{where}{key}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Parameter '{where}{key}' must be a number, got {value!r}")
    return float(value)


def parse_config(raw_config: Optional[Dict[str, Any]]) -> ControllerConfig:
    """Validate an already-loaded mapping and turn it into a ControllerConfig."""
    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a mapping")

    ctrl_cfg = raw_config.get('controller')
    if not isinstance(ctrl_cfg, dict):
        raise ConfigError("Missing 'controller' section")

    tunings = ctrl_cfg.get('tunings')
    if not isinstance(tunings, dict):
        raise ConfigError("Missing 'controller.tunings' section")
    kp = _number(tunings, 'kp', 'controller.tunings.')
    ki = _number(tunings, 'ki', 'controller.tunings.')
    kd = _number(tunings, 'kd', 'controller.tunings.')
    if kp < 0 or ki < 0 or kd < 0:
        raise ConfigError(f"Tunings must be non-negative, got kp={kp} ki={ki} kd={kd}")

    if 'direction' not in ctrl_cfg:
        raise ConfigError("Missing required parameter 'controller.direction'")
    try:
        direction = parse_direction(ctrl_cfg['direction'])
        mode = parse_mode(ctrl_cfg.get('mode', Mode.MANUAL))
    except (InvalidMode, InvalidDirection) as e:
        raise ConfigError(str(e)) from e

    sample_time = ctrl_cfg.get('sample_time_ms', PID.DEFAULT_SAMPLE_TIME)
    if isinstance(sample_time, bool) or not isinstance(sample_time, (int, float)) or sample_time <= 0:
        raise ConfigError(f"'controller.sample_time_ms' must be a positive number, got {sample_time!r}")

    limits_cfg = ctrl_cfg.get('output_limits')
    if limits_cfg is None:
        output_limits = PID.DEFAULT_OUTPUT_LIMITS
    elif isinstance(limits_cfg, dict):
        out_min = _number(limits_cfg, 'min', 'controller.output_limits.')
        out_max = _number(limits_cfg, 'max', 'controller.output_limits.')
        if out_min >= out_max:
            raise ConfigError(f"Output limits need min < max, got [{out_min}, {out_max}]")
        output_limits = (out_min, out_max)
    else:
        raise ConfigError("'controller.output_limits' must be a mapping with 'min' and 'max'")

    log_cfg = raw_config.get('logging') or {}
    log_level = str(log_cfg.get('level', 'INFO')).upper()

    return ControllerConfig(
        input=_number(ctrl_cfg, 'input', 'controller.'),
        setpoint=_number(ctrl_cfg, 'setpoint', 'controller.'),
        kp=kp,
        ki=ki,
        kd=kd,
        direction=direction,
        mode=mode,
        sample_time_ms=round(sample_time),
        output_limits=output_limits,
        log_level=log_level,
    )


def load_config(config_file=DEFAULT_CONFIG_FILE) -> ControllerConfig:
    config_path = Path(config_file)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_file}' not found")
    with open(config_path, 'r') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse '{config_file}': {e}") from e
    config = parse_config(raw_config)
    logger.info("Loaded controller configuration from %s", config_path)
    return config


def build_controller(config: ControllerConfig, clock=None) -> PID:
    """Create a PID from config. Limits and sample time go in before the mode switch."""
    pid = PID(config.input, config.setpoint, config.kp, config.ki, config.kd,
              config.direction, clock=clock)
    pid.set_output_limits(*config.output_limits)
    pid.set_sample_time(config.sample_time_ms)
    pid.set_mode(config.mode)
    return pid


def setup_logging(level="INFO"):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
