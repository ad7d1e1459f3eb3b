from pathlib import Path

import pytest
import yaml

from pid_clock import ManualClock
from pid_config import ConfigError, ControllerConfig, build_controller, load_config, parse_config
from pid_core import Direction, Mode

REPO_CONFIG = Path(__file__).resolve().parent.parent / "pid_config.yaml"


def base_config():
    return {
        'controller': {
            'input': 50,
            'setpoint': 66,
            'tunings': {'kp': 10, 'ki': 2, 'kd': 1},
            'direction': 'direct',
        }
    }


def write_config(tmp_path, data):
    path = tmp_path / "controller.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_repo_config_builds_heater_controller():
    config = load_config(REPO_CONFIG)
    assert config.mode is Mode.AUTOMATIC
    assert config.output_limits == (0.0, 100.0)

    pid = build_controller(config, clock=ManualClock())
    assert pid.mode is Mode.AUTOMATIC
    assert pid.output_limits == (0.0, 100.0)
    assert pid.sample_time == 100
    assert (pid.kp, pid.ki, pid.kd) == (10, 2, 1)
    assert pid.compute() is True
    assert pid.output == 100


def test_optional_fields_default(tmp_path):
    config = load_config(write_config(tmp_path, base_config()))
    assert config == ControllerConfig(
        input=50.0, setpoint=66.0, kp=10.0, ki=2.0, kd=1.0,
        direction=Direction.DIRECT,
    )
    assert config.mode is Mode.MANUAL
    assert config.sample_time_ms == 100
    assert config.output_limits == (0, 255)
    assert config.log_level == "INFO"


def test_sample_time_applied_with_per_second_gains(tmp_path):
    data = base_config()
    data['controller']['sample_time_ms'] = 500
    data['controller']['direction'] = 'REVERSE'
    data['logging'] = {'level': 'debug'}
    config = load_config(write_config(tmp_path, data))
    assert config.log_level == "DEBUG"

    pid = build_controller(config, clock=ManualClock())
    assert pid.sample_time == 500
    assert pid.direction is Direction.REVERSE
    assert pid.mode is Mode.MANUAL
    assert pid._ki == pytest.approx(2 * 0.5)
    assert pid._kd == pytest.approx(1 / 0.5)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("does/not/exist.yaml")


def test_unparseable_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("controller: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize("mutate", [
    lambda c: c.pop('controller'),
    lambda c: c['controller'].pop('tunings'),
    lambda c: c['controller'].pop('setpoint'),
    lambda c: c['controller'].pop('direction'),
    lambda c: c['controller']['tunings'].pop('kd'),
    lambda c: c['controller']['tunings'].update(ki=-1),
    lambda c: c['controller']['tunings'].update(kp="fast"),
    lambda c: c['controller'].update(direction='sideways'),
    lambda c: c['controller'].update(mode='sometimes'),
    lambda c: c['controller'].update(sample_time_ms=0),
    lambda c: c['controller'].update(output_limits={'min': 50, 'max': 10}),
    lambda c: c['controller'].update(output_limits=[0, 100]),
])
def test_invalid_config_rejected(mutate):
    data = base_config()
    mutate(data)
    with pytest.raises(ConfigError):
        parse_config(data)


def test_empty_document_rejected():
    with pytest.raises(ConfigError):
        parse_config(None)
