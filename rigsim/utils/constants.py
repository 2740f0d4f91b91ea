"""Engine constants used throughout rigsim.

Pressures in bar, potentials in volts, currents in amperes unless noted.
"""

# Electrical
SETTLEMENT_ROUNDS = 5  # voltage-drop propagation rounds across the load
OPEN_CIRCUIT_OHMS = 1.0e10  # multimeter reading for an open circuit
CONTINUITY_THRESHOLD_OHMS = 50.0  # continuity beeper threshold

# Transmitter loop signal (mA)
LOOP_MIN_MA = 4.0
LOOP_SPAN_MA = 16.0
LOOP_UNDERRANGE_MA = 3.8
LOOP_OVERRANGE_MA = 20.5

# Pneumatic
LEAK_LOSS_MIN = 0.20  # fraction of upstream pressure lost at a leak
LEAK_LOSS_MAX = 0.30

# Display limits
METER_OVERLOAD = 1999.0
RES_OVERLOAD = 1000.0

# Conversion factors
MA_TO_A = 1.0e-3
A_TO_MA = 1.0e3
