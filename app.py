import streamlit as st
import numpy as np
import matplotlib.pyplot as plt
import traceback

# ==============================
# STREAMLIT PAGE SETUP
# ==============================
st.set_page_config(
    page_title="PID Controller",
    layout="wide"
)

st.title("PID Controller")
st.write("Interactive tuning of a sampled PID controller against a first-order plant")

# ==============================
# SAFE IMPORT OF PID CONTROLLER
# ==============================
try:
    from pid_core import PID, Direction
    from pid_clock import ManualClock
except Exception as e:
    st.error("❌ Failed to import PID controller from `pid_core.py`")
    st.code(traceback.format_exc())
    st.stop()

# ==============================
# SIDEBAR CONTROLS
# ==============================
st.sidebar.header("PID Parameters")

kp = st.sidebar.slider("Kp (Proportional)", 0.0, 20.0, 2.0, 0.1)
ki = st.sidebar.slider("Ki (Integral, per s)", 0.0, 10.0, 1.0, 0.05)
kd = st.sidebar.slider("Kd (Derivative, s)", 0.0, 5.0, 0.0, 0.05)

st.sidebar.divider()

setpoint = st.sidebar.slider("Setpoint", 0.0, 100.0, 50.0, 1.0)
sample_time = st.sidebar.slider("Sample Time (ms)", 10, 1000, 100, 10)
out_min, out_max = st.sidebar.slider("Output Limits", 0.0, 255.0, (0.0, 100.0), 1.0)
direction = st.sidebar.radio("Direction", ["direct", "reverse"], horizontal=True)
simulation_time = st.sidebar.slider("Simulation Time (s)", 2.0, 60.0, 20.0, 1.0)
plant_tau = st.sidebar.slider("Plant Time Constant (s)", 0.5, 20.0, 5.0, 0.5)

# ==============================
# SIMULATION PARAMETERS
# ==============================
dt_ms = 10
time = np.arange(0, simulation_time, dt_ms / 1000.0)
sign = 1.0 if direction == "direct" else -1.0

x = 0.0  # plant output

clock = ManualClock()
pid = PID(x, setpoint, kp, ki, kd, Direction.DIRECT if direction == "direct" else Direction.REVERSE,
          clock=clock)
if out_min >= out_max:
    st.sidebar.warning("Output limits need min < max, keeping [0, 255]")
pid.set_output_limits(out_min, out_max)
pid.set_sample_time(sample_time)
pid.set_mode("auto")

output_history = []
control_history = []
error_history = []
computed_count = 0

# ==============================
# RUN SIMULATION (WITH SAFETY)
# ==============================
try:
    for _ in time:
        pid.set_input(x)
        if pid.compute():
            computed_count += 1
        u = pid.output

        # Simple first-order plant, reverse-acting when requested
        x += (-x + sign * u) * (dt_ms / 1000.0) / plant_tau

        output_history.append(x)
        control_history.append(u)
        error_history.append(setpoint - x)

        clock.advance(dt_ms)

except Exception as e:
    st.error("❌ Error occurred during PID simulation")
    st.code(traceback.format_exc())
    st.stop()

# ==============================
# PLOTS
# ==============================
col1, col2 = st.columns(2)

with col1:
    st.subheader("System Output")

    fig1, ax1 = plt.subplots()
    ax1.plot(time, output_history, label="Output")
    ax1.plot(time, [setpoint] * len(time), "--", label="Setpoint")
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Value")
    ax1.legend()
    ax1.grid(True)

    st.pyplot(fig1)

with col2:
    st.subheader("Control Signal")

    fig2, ax2 = plt.subplots()
    ax2.step(time, control_history, where="post", label="Control Output (u)")
    ax2.axhline(out_min, color="grey", linestyle=":")
    ax2.axhline(out_max, color="grey", linestyle=":")
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Control Effort")
    ax2.grid(True)

    st.pyplot(fig2)

# ==============================
# ERROR PLOT
# ==============================
st.subheader("Tracking Error")

fig3, ax3 = plt.subplots()
ax3.plot(time, error_history, label="Error (Setpoint − Output)")
ax3.set_xlabel("Time (s)")
ax3.set_ylabel("Error")
ax3.grid(True)

st.pyplot(fig3)

# ==============================
# DEBUG / INTERNAL PID STATE
# ==============================
with st.expander("🛠 Debug / Internal PID State"):
    st.write("PID Gains")
    st.json({
        "Kp": pid.kp,
        "Ki": pid.ki,
        "Kd": pid.kd,
        "Mode": pid.mode_label,
        "Direction": pid.direction.name,
        "Sample Time (ms)": pid.sample_time,
        "Output Limits": list(pid.output_limits),
    })

    st.write(f"Integral Term: `{pid.integral}`")
    st.write(f"Last Input: `{pid.last_input}`")
    st.write(f"Computations: `{computed_count}` of `{len(time)}` polls")
    st.write(f"Final Output Value: `{output_history[-1]}`")
    st.write(f"Final Error: `{error_history[-1]}`")

# ==============================
# TUNING HELP
# ==============================
st.markdown("""
### PID Tuning Notes
- **Kp**: Increases responsiveness, too high → oscillations
- **Ki**: Eliminates steady-state error; windup is limited by back-calculation at the output limits
- **Kd**: Acts on the measurement only, so setpoint steps don't kick the output
- **Sample Time**: Gains are per second, so changing it keeps the response roughly the same

💡 Use the **error plot** to judge tuning quality.
""")
