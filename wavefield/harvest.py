"""
wavefield/harvest.py - Lifecycle Orchestrator

Drives a wave from Seed through the bridge at the origin to (possibly)
Crystallized, and folds each crystallization into the field as a landmark.

Canonical algorithm is the bounded iterative loop over the prebuilt
deconstruction and synthesis phase operators. Running out of iterations is
not an error: the wave comes back with a non-Crystallized status.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import uuid4

from receipts import emit_receipt, stoprule_out_of_range

from .constants import (
    DEFAULT_ORIGIN_LABEL, DEFAULT_SEED_MASS, DEFAULT_SEED_X, DEFAULT_SEED_Y,
    PhaseState, WaveStatus,
)
from .geometry import distance_to_origin
from .operators import DECONSTRUCTION_PHASE, LIFECYCLE, SYNTHESIS_PHASE
from .phase import settle
from .property_check import PropertyReport, check_operator_properties
from .types_config import DEFAULT_CONFIG, FieldConfig
from .types_state import Field, FieldAttractor, Landmark, Position, Wave

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HarvestResult:
    field: Field
    wave: Wave
    receipt: Dict[str, Any]
    landmark: Optional[Landmark] = None


@dataclass(frozen=True)
class HarvestPhases:
    """Intermediate waves of one harvest, for inspection."""
    after_deconstruction: Wave
    after_synthesis: Wave
    final: HarvestResult


# =============================================================================
# CONSTRUCTORS
# =============================================================================

def create_field(attractors: Tuple[FieldAttractor, ...] = ()) -> Field:
    """Empty field: no landmarks, no waves, density 0, DORMANT."""
    return Field(attractors=tuple(attractors), density=0.0, phase=PhaseState.DORMANT)


def create_seed(body: Optional[Callable[..., Any]] = None,
                origin: str = DEFAULT_ORIGIN_LABEL,
                position: Optional[Position] = None,
                mass: float = DEFAULT_SEED_MASS) -> Wave:
    """
    New wave in Seed status.

    Args:
        body: Transform function the wave carries
        origin: Free-form label for where the seed came from
        position: Starting position, default (-1, -1)
        mass: Starting mass, default 0.1

    Raises:
        StopRule: mass outside [0, 1]
    """
    stoprule_out_of_range("seed.mass", mass, 0.0, 1.0)
    return Wave(
        wave_id=f"wave-{uuid4().hex[:12]}",
        position=Position(DEFAULT_SEED_X, DEFAULT_SEED_Y) if position is None else position,
        mass=mass,
        status=WaveStatus.SEED,
        origin=origin,
        body=body,
    )


# =============================================================================
# LOOPS
# =============================================================================

def _deconstruct(wave: Wave, field: Field, config: FieldConfig) -> Tuple[Wave, int]:
    wave = wave.with_status(WaveStatus.DECONSTRUCTING)
    iterations = 0
    while distance_to_origin(wave.position) >= config.bridge_radius and iterations < config.max_iterations:
        wave = DECONSTRUCTION_PHASE(wave, field)
        iterations += 1
    if distance_to_origin(wave.position) < config.bridge_radius:
        wave = wave.crossed_bridge()
    return wave, iterations


def _ready(wave: Wave, config: FieldConfig) -> bool:
    return (distance_to_origin(wave.position) > config.crystallize_distance
            and wave.mass > config.crystallize_mass)


def _synthesize(wave: Wave, field: Field, config: FieldConfig) -> Tuple[Wave, int]:
    wave = wave.with_status(WaveStatus.SYNTHESIZING)
    iterations = 0
    while iterations < config.max_iterations:
        wave = SYNTHESIS_PHASE(wave, field)
        iterations += 1
        if _ready(wave, config):
            return wave.with_status(WaveStatus.CRYSTALLIZED), iterations
    return wave, iterations


def crystallize(field: Field, seed: Wave, wave: Wave,
                config: FieldConfig = DEFAULT_CONFIG) -> Tuple[Field, Landmark]:
    """Append a landmark for a crystallized wave and re-derive density and phase."""
    landmark = Landmark(
        landmark_id=f"landmark-{uuid4().hex[:12]}",
        origin_wave=seed,
        start=seed.position,
        end=wave.position,
        mass=wave.mass,
    )
    return settle(field, field.landmarks + (landmark,), config.density_scale), landmark


# =============================================================================
# HARVEST
# =============================================================================

def harvest(seed: Wave, field: Field, config: FieldConfig = DEFAULT_CONFIG) -> HarvestResult:
    """
    Run one wave through its lifecycle against a field.

    1. Deconstruct until within bridge_radius of the origin (bounded).
    2. Cross the bridge (InBridge).
    3. Synthesize until farther than crystallize_distance with mass above
       crystallize_mass (bounded).
    4. On Crystallized, append a landmark and reclassify the field.

    The wave is removed from the field's in-flight list whatever the outcome.

    Returns:
        HarvestResult with the new field, the final wave and a harvest receipt.
        Callers check wave.status; a bounded loop running out is not an error.
    """
    started = time.perf_counter()
    wave, decon_iters = _deconstruct(seed, field, config)
    synth_iters = 0
    landmark = None

    if wave.status is WaveStatus.IN_BRIDGE:
        wave, synth_iters = _synthesize(wave, field, config)

    released = field.without_wave(seed.wave_id)
    if wave.crystallized:
        new_field, landmark = crystallize(released, seed, wave, config)
        logger.info("Wave %s crystallized as %s (mass %.4f, density %.4f, %s)",
                    wave.wave_id, landmark.landmark_id, wave.mass,
                    new_field.density, new_field.phase.value)
    else:
        new_field = released.touched()
        logger.debug("Wave %s stopped in %s after %d+%d iterations",
                     wave.wave_id, wave.status.value, decon_iters, synth_iters)

    receipt = emit_receipt("harvest", {
        "tenant_id": config.tenant_id,
        "wave_id": wave.wave_id,
        "origin": wave.origin,
        "status": wave.status.value,
        "crystallized": wave.crystallized,
        "landmark_id": landmark.landmark_id if landmark else None,
        "deconstruction_iterations": decon_iters,
        "synthesis_iterations": synth_iters,
        "mass_before": seed.mass,
        "mass_after": wave.mass,
        "density": new_field.density,
        "phase": new_field.phase.value,
        "elapsed_ms": (time.perf_counter() - started) * 1000,
    })
    return HarvestResult(field=new_field, wave=wave, receipt=receipt, landmark=landmark)


def harvest_pure(seed: Wave, field: Field, config: FieldConfig = DEFAULT_CONFIG) -> Wave:
    """The final wave of harvest, ignoring the field update."""
    return harvest(seed, field, config).wave


def harvest_phases(seed: Wave, field: Field, config: FieldConfig = DEFAULT_CONFIG) -> HarvestPhases:
    """Harvest with the wave captured after each loop."""
    after_deconstruction, _ = _deconstruct(seed, field, config)
    if after_deconstruction.status is WaveStatus.IN_BRIDGE:
        after_synthesis, _ = _synthesize(after_deconstruction, field, config)
    else:
        after_synthesis = after_deconstruction
    return HarvestPhases(
        after_deconstruction=after_deconstruction,
        after_synthesis=after_synthesis,
        final=harvest(seed, field, config),
    )


def validate_harvest_algebra(samples: int = 50, seed: int = 42) -> Dict[str, Any]:
    """
    Declared structure of the lifecycle operator plus a sampled check.

    Returns:
        dict with is_monoid, associativity_holds, identity_preserved and the
        list of errors, declared or sampled.
    """
    props = LIFECYCLE.properties
    report: PropertyReport = check_operator_properties(LIFECYCLE, samples=samples, seed=seed)
    errors = []
    is_monoid = props.associative and props.has_identity
    if not is_monoid:
        errors.append("lifecycle operator does not declare monoid structure")
    associativity_holds = props.associative and report.associative
    if not associativity_holds:
        errors.append("associativity contradicted by sampling")
    identity_preserved = props.has_identity and report.has_identity
    if not identity_preserved:
        errors.append("identity contradicted by sampling")
    return {
        "is_monoid": is_monoid,
        "associativity_holds": associativity_holds,
        "identity_preserved": identity_preserved,
        "errors": errors,
    }
