# Dimensionless units throughout, G = 1
DEFAULT_SOFTENING = 0.02
DEFAULT_DT = 0.01

# Integrator steps between two display frames
STEPS_PER_FRAME = 2

# Points kept per body trail before the oldest is dropped
TRAIL_LENGTH = 260

# Practical cap on bodies accepted from callers (direct summation is O(n^2))
MAX_BODIES = 40

# Upper bound on frames * steps_per_frame for a single HTTP request
MAX_STEPS_PER_REQUEST = 200_000

BODY_PALETTE = ("#ffd86b", "#ff7b72", "#7ad3ff")
