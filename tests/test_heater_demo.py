from pathlib import Path

import numpy as np
import pytest

from heater_demo import FakeHeater, main, run_demo
from pid_clock import ManualClock
from pid_config import build_controller, load_config

REPO_CONFIG = Path(__file__).resolve().parent.parent / "pid_config.yaml"


def test_fake_heater_creeps_up_to_ceiling():
    heater = FakeHeater(temperature=68.75, step=0.1, ceiling=69.0)
    assert heater.tick() == pytest.approx(68.85)
    assert heater.tick() == pytest.approx(68.95)
    top = heater.tick()
    assert top == pytest.approx(69.05)
    assert heater.tick() == top


def test_run_demo_with_synthetic_time():
    clock = ManualClock()
    pid = build_controller(load_config(REPO_CONFIG), clock=clock)
    heater = FakeHeater(temperature=50.0)

    history = run_demo(pid, heater, duration_ms=10_000)

    np.testing.assert_allclose(history['time'], np.arange(0, 11))
    assert history['computed'].all()
    assert np.all(history['output'] >= 0)
    assert np.all(history['output'] <= 100)
    assert np.all(np.diff(history['input']) >= 0)
    # fourteen heater ticks at 700 ms in 10 s
    assert heater.temperature == pytest.approx(50 + 14 * 0.1)
    assert clock.now() == 10_000


def test_run_demo_in_manual_mode_records_without_computing():
    clock = ManualClock()
    config = load_config(REPO_CONFIG)
    config.mode = "manual"
    pid = build_controller(config, clock=clock)

    history = run_demo(pid, FakeHeater(), duration_ms=3000)

    assert len(history['computed']) == 4
    assert not history['computed'].any()
    assert np.all(history['output'] == 0)


def test_main_simulated_run():
    assert main(['--simulate', '--config', str(REPO_CONFIG), '--duration', '3']) == 0
