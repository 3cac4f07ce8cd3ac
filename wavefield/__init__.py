"""
wavefield - Wave Field Lifecycle Engine

Public API: value types, operators and their algebra, the harvest
orchestrator, phase/fixpoint/unfold analysis and the runtime driver.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# TYPES
# =============================================================================
from .types_config import (
    FieldConfig,
    DEFAULT_CONFIG,
    CONFIG_FAST_TICK,
    CONFIG_STRICT,
    PRESETS,
    load_config,
)
from .types_state import Position, HistoryRecord, Wave, Landmark, FieldAttractor, Field, ORIGIN

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    WaveStatus,
    PhaseState,
    AttractorName,
    AlgebraClass,
    Quadrant,
    RECEIPT_SCHEMA,
    CRITICAL_DENSITIES,
)

# =============================================================================
# GEOMETRY
# =============================================================================
from .geometry import distance_to_reference_line, mass, distance_to_origin, distance

# =============================================================================
# OPERATORS AND ALGEBRA
# =============================================================================
from .operators import (
    Operator,
    DECOMPOSE,
    FORGET,
    COMPOSE,
    MEMOIZE,
    IDENTITY,
    superpose,
    superpose_all,
    DECONSTRUCTION_PHASE,
    SYNTHESIS_PHASE,
    LIFECYCLE,
    BASE_OPERATORS,
    COMPOSED_OPERATORS,
)
from .algebra import (
    AlgebraProperties,
    Algebra,
    make_algebra,
    classify_algebra,
    compose_algebras,
    with_finalization,
    place_algebra,
)
from .property_check import PropertyReport, check_operator_properties, check_algebra_properties

# =============================================================================
# ORCHESTRATION
# =============================================================================
from .harvest import (
    HarvestResult,
    create_field,
    create_seed,
    harvest,
    harvest_pure,
    harvest_phases,
    validate_harvest_algebra,
)

# =============================================================================
# ANALYSIS
# =============================================================================
from .phase import (
    classify_phase,
    order_parameter,
    PhaseTransitionTracker,
    detect_hysteresis,
    correlation_length,
    average_cluster_size,
)
from .fixpoint import (
    fixpoint_distance,
    is_fixpoint,
    converge_to_fixpoint,
    validate_crystallization_fixpoint_equivalence,
    mass_fixpoint_correlation,
)
from .unfold import (
    Event,
    unfold_attractor,
    generate_event_stream,
    generate_combined_stream,
    stream_moves_toward_attractor,
)

# =============================================================================
# ATTRACTORS AND RUNTIME
# =============================================================================
from .attractors import (
    apply_strengths, create_attractor, default_attractors, redistribute_strengths, total_strength,
)
from .runtime import FieldRuntime

__all__ = [
    # Types
    "FieldConfig", "DEFAULT_CONFIG", "CONFIG_FAST_TICK", "CONFIG_STRICT", "PRESETS", "load_config",
    "Position", "HistoryRecord", "Wave", "Landmark", "FieldAttractor", "Field", "ORIGIN",
    # Constants
    "WaveStatus", "PhaseState", "AttractorName", "AlgebraClass", "Quadrant",
    "RECEIPT_SCHEMA", "CRITICAL_DENSITIES",
    # Geometry
    "distance_to_reference_line", "mass", "distance_to_origin", "distance",
    # Operators and algebra
    "Operator", "DECOMPOSE", "FORGET", "COMPOSE", "MEMOIZE", "IDENTITY",
    "superpose", "superpose_all", "DECONSTRUCTION_PHASE", "SYNTHESIS_PHASE", "LIFECYCLE",
    "BASE_OPERATORS", "COMPOSED_OPERATORS",
    "AlgebraProperties", "Algebra", "make_algebra", "classify_algebra", "compose_algebras",
    "with_finalization", "place_algebra",
    "PropertyReport", "check_operator_properties", "check_algebra_properties",
    # Orchestration
    "HarvestResult", "create_field", "create_seed", "harvest", "harvest_pure", "harvest_phases",
    "validate_harvest_algebra",
    # Analysis
    "classify_phase", "order_parameter", "PhaseTransitionTracker", "detect_hysteresis",
    "correlation_length", "average_cluster_size",
    "fixpoint_distance", "is_fixpoint", "converge_to_fixpoint",
    "validate_crystallization_fixpoint_equivalence", "mass_fixpoint_correlation",
    "Event", "unfold_attractor", "generate_event_stream", "generate_combined_stream",
    "stream_moves_toward_attractor",
    # Attractors and runtime
    "create_attractor", "default_attractors", "total_strength", "redistribute_strengths",
    "apply_strengths",
    "FieldRuntime",
]
