"""
wavefield/constants.py - Field Engine Constants

All thresholds and operator factors for the wave lifecycle. Centralized for tuning.
Pure data, no behavior.
"""

import math
from enum import Enum

# =============================================================================
# OPERATOR FACTORS
# =============================================================================

DECOMPOSE_FACTOR = 0.9    # Scale toward origin per decompose
FORGET_FACTOR = 0.95      # Mass retained per forget
COMPOSE_STEP = 0.5        # Outward step per compose
MEMOIZE_FACTOR = 1.1      # Mass gain per memoize
MASS_CEILING = 1.0        # memoize never exceeds this
COMPOSE_ANGLE = math.pi / 4  # 45 degrees, the reference line direction

# =============================================================================
# SEED DEFAULTS
# =============================================================================

DEFAULT_SEED_X = -1.0
DEFAULT_SEED_Y = -1.0
DEFAULT_SEED_MASS = 0.1
DEFAULT_ORIGIN_LABEL = "unknown"

# =============================================================================
# HARVEST THRESHOLDS
# =============================================================================

MAX_HARVEST_ITERATIONS = 100  # Bound for each of the two harvest loops
BRIDGE_RADIUS = 0.1           # Distance to origin that counts as the bridge
CRYSTALLIZE_DISTANCE = 1.5    # Must be strictly farther than this
CRYSTALLIZE_MASS = 0.7        # Must be strictly heavier than this
DENSITY_SCALE = 100.0         # density = min(1, total landmark mass / scale)

# =============================================================================
# PHASE THRESHOLDS
# =============================================================================

RHO_PERCOLATION = 0.2    # DORMANT -> ORGANIZING
RHO_ORGANIZATION = 0.6   # ORGANIZING -> CRITICAL
RHO_EMERGENCE = 0.9      # CRITICAL -> EMERGENT
CRITICAL_DENSITIES = (RHO_PERCOLATION, RHO_ORGANIZATION, RHO_EMERGENCE)

COMPOSITION_THRESHOLD = 0.5    # Landmark endpoints closer than this are connected
NEAR_CRITICAL_WINDOW = 0.1     # Samples within this of rho_c feed the exponent fit
MIN_FIT_POINTS = 3
HYSTERESIS_THRESHOLD = 0.05
CORRELATION_DIVERGENCE = 0.01  # |rho - rho_c| below this -> infinite length
CORRELATION_NU = 1.0           # Mean-field exponent
CORRELATION_XI0 = 1.0
EMERGENT_ORDER_THRESHOLD = 0.7
ACTIVE_ATTRACTOR_STRENGTH = 0.5

# =============================================================================
# FIXPOINT CONSTANTS
# =============================================================================

FIXPOINT_EPSILON = 0.15
FIXPOINT_MASS_WEIGHT = 0.7
FIXPOINT_POSITION_WEIGHT = 0.3
CONVERGENCE_ITERATIONS = 10
CRYSTALLIZATION_THRESHOLD = CRYSTALLIZE_MASS  # mass >= this counts as crystallized

# =============================================================================
# UNFOLD CONSTANTS
# =============================================================================

ACTIVATION_THRESHOLD = 0.3   # Attractors below this stay dormant
UNFOLD_STEP = 0.1            # Fraction of the remaining gap closed per event, times strength
EVENT_STRENGTH_DECAY = 0.95  # Per-step decay of derived event strength
DEFAULT_STREAM_DEPTH = 10
STREAM_TOLERANCE = 0.01

# =============================================================================
# ATTRACTOR BUDGET / RUNTIME
# =============================================================================

BUDGET_TOLERANCE = 0.01
TICK_INTERVAL_MS = 16          # ~60 ticks per second
OSCILLATION_PERIOD_MS = 5000
GROWTH_HORIZON_MS = 10000      # Growth term reaches its cap after this long
MAX_GROWTH = 0.3

# =============================================================================
# PLACEMENT (algebra -> field position)
# =============================================================================

ATTRACTOR_MASS_THRESHOLD = 0.7
PLACEMENT_BASE = 0.5
PLACEMENT_SHIFT = 0.3
PLACEMENT_PULL = 0.3

# =============================================================================
# RECEIPT SCHEMA
# =============================================================================

RECEIPT_SCHEMA = [
    "harvest", "crystallization", "phase_transition", "fixpoint_convergence",
    "redistribution", "runtime_tick", "runtime_reset", "anomaly",
]


# =============================================================================
# ENUMS
# =============================================================================

class WaveStatus(Enum):
    """Lifecycle status of a wave. Advanced only by the orchestrator."""
    SEED = "Seed"
    DECONSTRUCTING = "Deconstructing"
    IN_BRIDGE = "InBridge"
    SYNTHESIZING = "Synthesizing"
    CRYSTALLIZED = "Crystallized"


class PhaseState(Enum):
    """Field phase, ordered by density."""
    DORMANT = "DORMANT"          # < 0.2
    ORGANIZING = "ORGANIZING"    # [0.2, 0.6)
    CRITICAL = "CRITICAL"        # [0.6, 0.9)
    EMERGENT = "EMERGENT"        # >= 0.9


class AttractorName(Enum):
    """Fixed enumeration of attractors a field may carry."""
    LOVE = "LOVE"
    FEAR = "FEAR"
    CURIOSITY = "CURIOSITY"
    TRUTH = "TRUTH"
    BEAUTY = "BEAUTY"


class AlgebraClass(Enum):
    """Algebra hierarchy, weakest first. Value is the rank."""
    MAGMA = 0
    SEMIGROUP = 1
    MONOID = 2
    COMMUTATIVE_MONOID = 3
    IDEMPOTENT_COMMUTATIVE_MONOID = 4
    GROUP = 5
    ABELIAN_GROUP = 6


class Quadrant(Enum):
    """Region of the field an operator acts in."""
    DECONSTRUCTION = "Deconstruction"
    SYNTHESIS = "Synthesis"
    BRIDGE = "Bridge"
