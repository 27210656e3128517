"""Engine-wide defaults.

Every public function takes its knobs as keyword-only arguments; the
defaults below are what those arguments fall back to.  Nothing here is
mutable state: the engine holds no configuration between calls.
"""

from __future__ import annotations

# Model
BASELINE = 100.0  # fixed response at dose 0
MAX_EFFECT_BOUNDS = (0.0, 100.0)
POTENCY_BOUNDS = (0.01, 10.0)

# Optimizer
ITERATIONS = 1000
LEARNING_RATE = 0.01
DECAY = 0.95
DECAY_EVERY = 100
FD_STEP = 1e-3
MAX_HALVINGS = 30

# Parametric bootstrap
N_BOOT = 100
BOOT_ITERATIONS = 300
BOOT_LEARNING_RATE = 0.05
BOOT_SD = 3.0

# Design evaluation and prediction bands
DESIGN_SIGMA = 7.0
RSE_THRESHOLD = 50.0
N_BAND_SAMPLES = 200
BAND_LEVEL = 0.90
RESPONSE_RANGE = (0.0, 120.0)
GRID_POINTS = 201
GRID_MIN_MAX_DOSE = 5.0

# Starting point used when the caller does not supply one
DEFAULT_MAX_EFFECT = 100.0
DEFAULT_POTENCY = 0.5
