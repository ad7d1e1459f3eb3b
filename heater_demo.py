# heater_demo.py

import argparse
import logging
import threading
import time
import warnings
from collections import deque
from queue import Queue, Empty

import matplotlib.pyplot as plt
import numpy as np

from pid_clock import ManualClock, MonotonicClock
from pid_config import DEFAULT_CONFIG_FILE, build_controller, load_config, setup_logging

# Suppress the matplotlib warning about drawing from a worker thread
warnings.filterwarnings('ignore', message='Starting a Matplotlib GUI outside of the main thread')

logger = logging.getLogger(__name__)

COMPUTE_INTERVAL_MS = 1000
HEATER_TICK_MS = 700


class FakeHeater:
    """Temperature source that creeps up by a fixed step until it reaches a ceiling."""

    def __init__(self, temperature=50.0, step=0.1, ceiling=69.0):
        self.temperature = temperature
        self.step = step
        self.ceiling = ceiling

    def tick(self):
        if self.temperature < self.ceiling:
            self.temperature += self.step
        return self.temperature


class ThreadedDataPlotter:
    def __init__(self, max_points=200, update_interval=50):
        self.max_points = max_points
        self.update_interval = update_interval
        self.data_queue = Queue()
        self.running = True

        self.initialized = threading.Event()

        # Start plotting thread
        self.plot_thread = threading.Thread(target=self._plotting_loop)
        self.plot_thread.daemon = True
        self.plot_thread.start()

        # Wait for plot initialization
        self.initialized.wait()

    def _plotting_loop(self):
        plt.ion()
        self.fig, (self.ax1, self.ax2) = plt.subplots(2, 1, figsize=(8, 6))
        self.fig.set_dpi(80)
        plt.tight_layout()

        self.times = deque(maxlen=self.max_points)
        self.inputs = deque(maxlen=self.max_points)
        self.setpoints = deque(maxlen=self.max_points)
        self.outputs = deque(maxlen=self.max_points)

        self.input_line, = self.ax1.plot([], [], 'r-', label='Input')
        self.setpoint_line, = self.ax1.plot([], [], 'k--', label='Setpoint')
        self.output_line, = self.ax2.plot([], [], 'b-', label='Output')

        self.ax1.set_title('Process')
        self.ax1.set_ylabel('Temperature')
        self.ax1.legend()
        self.ax1.grid(True)

        self.ax2.set_title('Controller Output')
        self.ax2.set_xlabel('Time (s)')
        self.ax2.set_ylabel('Output')
        self.ax2.legend()
        self.ax2.grid(True)

        self.initialized.set()

        last_update = time.time()
        while self.running:
            try:
                cmd, data = self.data_queue.get(timeout=0.1)
            except Empty:
                continue
            if cmd == 'update':
                self._update_data(*data)
                current_time = time.time()
                if current_time - last_update >= self.update_interval / 1000.0:
                    self._update_plot()
                    last_update = current_time
            elif cmd == 'stop':
                break

    def _update_data(self, t, input, setpoint, output):
        self.times.append(t)
        self.inputs.append(input)
        self.setpoints.append(setpoint)
        self.outputs.append(output)

    def _update_plot(self):
        self.input_line.set_data(list(self.times), list(self.inputs))
        self.setpoint_line.set_data(list(self.times), list(self.setpoints))
        self.output_line.set_data(list(self.times), list(self.outputs))

        for ax in [self.ax1, self.ax2]:
            ax.relim()
            ax.autoscale_view()

        self.fig.canvas.draw_idle()
        self.fig.canvas.flush_events()

    def update(self, t, input, setpoint, output):
        self.data_queue.put(('update', (t, input, setpoint, output)))

    def close(self):
        self.running = False
        self.data_queue.put(('stop', None))
        self.plot_thread.join()
        plt.close(self.fig)


def _wait_until(clock, target_ms):
    if isinstance(clock, ManualClock):
        clock.set(max(target_ms, clock.now()))
        return
    remaining = target_ms - clock.now()
    if remaining > 0:
        time.sleep(remaining / 1000.0)


def run_demo(pid, heater, duration_ms, compute_every=COMPUTE_INTERVAL_MS,
             tick_every=HEATER_TICK_MS, plotter=None):
    """
    Poll the controller the way a host loop would: the heater is read every
    tick_every ms and compute() is called every compute_every ms.

    Returns a dict of numpy arrays sampled at each compute() call.
    """
    clock = pid.clock
    start = clock.now()
    next_compute = start
    next_tick = start + tick_every
    end = start + duration_ms

    pid.set_input(heater.temperature)

    times, inputs, outputs, fired = [], [], [], []
    while True:
        due = min(next_compute, next_tick)
        if due > end:
            break
        _wait_until(clock, due)

        if due == next_tick:
            pid.set_input(heater.tick())
            next_tick += tick_every

        if due == next_compute:
            computed = pid.compute()
            t = (clock.now() - start) / 1000.0
            times.append(t)
            inputs.append(pid.input)
            outputs.append(pid.output)
            fired.append(computed)
            if computed:
                logger.info("t=%.1fs input=%.2f setpoint=%.2f output=%.2f",
                            t, pid.input, pid.setpoint, pid.output)
            if plotter is not None:
                plotter.update(t, pid.input, pid.setpoint, pid.output)
            next_compute += compute_every

    return {
        'time': np.array(times),
        'input': np.array(inputs),
        'output': np.array(outputs),
        'computed': np.array(fired, dtype=bool),
    }


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Drive a PID controller against a fake heater")
    parser.add_argument('--config', default=DEFAULT_CONFIG_FILE, help="controller YAML file")
    parser.add_argument('--duration', type=float, default=30.0, help="run time in seconds")
    parser.add_argument('--simulate', action='store_true', help="step synthetic time instead of sleeping")
    parser.add_argument('--plot', action='store_true', help="show a live matplotlib plot")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    config = load_config(args.config)
    setup_logging(config.log_level)

    clock = ManualClock() if args.simulate else MonotonicClock()
    pid = build_controller(config, clock=clock)
    heater = FakeHeater(temperature=config.input)
    logger.info("Starting %s", pid)

    plotter = ThreadedDataPlotter() if args.plot else None
    try:
        history = run_demo(pid, heater, int(args.duration * 1000), plotter=plotter)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    finally:
        if plotter is not None:
            plotter.close()

    logger.info("Finished: %d samples, final output %.2f",
                int(history['computed'].sum()), pid.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
