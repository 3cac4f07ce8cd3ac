"""
wavefield/fixpoint.py - Fixpoint Analyzer

A wave is a fixpoint when one more harvest barely moves it. This module
measures that distance, iterates harvest to convergence and compares the
fixpoint set against the crystallized set across a field's landmarks.

Analysis functions harvest each landmark's originating wave against the
field as given; the field returned by those harvests is discarded.
"""

import logging
import math
from dataclasses import dataclass, field as dc_field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from receipts import emit_receipt

from .constants import (
    CRYSTALLIZATION_THRESHOLD, FIXPOINT_MASS_WEIGHT, FIXPOINT_POSITION_WEIGHT,
)
from .geometry import distance
from .harvest import harvest
from .types_config import DEFAULT_CONFIG, FieldConfig
from .types_state import Field, Wave

logger = logging.getLogger(__name__)


# =============================================================================
# DISTANCE
# =============================================================================

def fixpoint_distance(before: Wave, after: Wave) -> float:
    """0.7 * |mass delta| + 0.3 * Euclidean position delta."""
    return (FIXPOINT_MASS_WEIGHT * abs(before.mass - after.mass)
            + FIXPOINT_POSITION_WEIGHT * distance(before.position, after.position))


def harvest_distance(wave: Wave, field: Field, config: FieldConfig = DEFAULT_CONFIG) -> float:
    """Fixpoint distance between a wave and one harvest of it."""
    return fixpoint_distance(wave, harvest(wave, field, config).wave)


def is_fixpoint(wave: Wave, field: Field, epsilon: Optional[float] = None,
                config: FieldConfig = DEFAULT_CONFIG) -> bool:
    """True when one more harvest moves the wave less than epsilon (default 0.15)."""
    if epsilon is None:
        epsilon = config.fixpoint_epsilon
    return harvest_distance(wave, field, config) < epsilon


# =============================================================================
# CONVERGENCE
# =============================================================================

@dataclass(frozen=True)
class ConvergenceStep:
    wave: Wave
    mass: float
    delta: float


@dataclass(frozen=True)
class ConvergenceReport:
    final_wave: Wave
    final_field: Field
    iterations: int
    converged: bool
    history: List[ConvergenceStep] = dc_field(default_factory=list)
    receipt: Dict[str, Any] = dc_field(default_factory=dict)

    @property
    def masses(self) -> List[float]:
        return [step.mass for step in self.history]


def converge_to_fixpoint(seed: Wave, field: Field, max_iterations: Optional[int] = None,
                         config: FieldConfig = DEFAULT_CONFIG) -> ConvergenceReport:
    """
    Iterate harvest until successive waves are within fixpoint_epsilon.

    The field threads through: each harvest sees the landmarks added by the
    previous one. The first history entry is the seed with delta = inf.

    Args:
        seed: Starting wave
        field: Starting field
        max_iterations: Harvest bound, default config.convergence_iterations (10)
        config: Engine configuration

    Returns:
        ConvergenceReport; converged is False when the bound ran out.
    """
    if max_iterations is None:
        max_iterations = config.convergence_iterations
    wave = seed
    current = field
    history = [ConvergenceStep(wave=seed, mass=seed.mass, delta=math.inf)]
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        result = harvest(wave, current, config)
        current = result.field
        delta = fixpoint_distance(wave, result.wave)
        wave = result.wave
        history.append(ConvergenceStep(wave=wave, mass=wave.mass, delta=delta))
        if delta < config.fixpoint_epsilon:
            converged = True
            break

    receipt = emit_receipt("fixpoint_convergence", {
        "tenant_id": config.tenant_id,
        "wave_id": seed.wave_id,
        "iterations": iterations,
        "converged": converged,
        "final_mass": wave.mass,
        "final_delta": history[-1].delta,
        "landmark_count": len(current.landmarks),
    })
    if converged:
        logger.debug("Wave %s converged after %d harvests", seed.wave_id, iterations)
    else:
        logger.debug("Wave %s did not converge within %d harvests", seed.wave_id, max_iterations)

    return ConvergenceReport(
        final_wave=wave,
        final_field=current,
        iterations=iterations,
        converged=converged,
        history=history,
        receipt=receipt,
    )


def check_idempotence(wave: Wave, field: Field,
                      config: FieldConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """Harvest twice in sequence and compare the two results."""
    first = harvest(wave, field, config)
    second = harvest(first.wave, first.field, config)
    delta = fixpoint_distance(first.wave, second.wave)
    return {
        "is_idempotent": delta < config.fixpoint_epsilon,
        "original_mass": wave.mass,
        "after_composition": second.wave.mass,
        "delta": delta,
    }


# =============================================================================
# FIELD-WIDE ANALYSIS
# =============================================================================

def _origin_waves(field: Field) -> List[Wave]:
    return [lm.origin_wave for lm in field.landmarks]


def validate_crystallization_fixpoint_equivalence(field: Field,
                                                  config: FieldConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """
    Compare "origin mass >= 0.7" against "is a fixpoint" over all landmarks.

    Returns:
        dict with total, crystallized, fixpoints, equivalence_ratio (0 for an
        empty field) and counterexamples, one entry per landmark where the
        two predicates disagree.
    """
    waves = _origin_waves(field)
    crystallized = fixpoints = equivalent = 0
    counterexamples = []

    for wave in waves:
        is_crystallized = wave.mass >= CRYSTALLIZATION_THRESHOLD
        is_fix = is_fixpoint(wave, field, config=config)
        crystallized += is_crystallized
        fixpoints += is_fix
        if is_crystallized == is_fix:
            equivalent += 1
        else:
            counterexamples.append({
                "wave": wave,
                "crystallized": is_crystallized,
                "fixpoint": is_fix,
            })

    return {
        "total": len(waves),
        "crystallized": crystallized,
        "fixpoints": fixpoints,
        "equivalence_ratio": equivalent / len(waves) if waves else 0.0,
        "counterexamples": counterexamples,
    }


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson r, 0.0 for empty, mismatched or zero-variance input."""
    if len(x) != len(y) or len(x) == 0:
        return 0.0
    xs = np.asarray(x, dtype=float) - np.mean(x)
    ys = np.asarray(y, dtype=float) - np.mean(y)
    denominator = math.sqrt(float(np.sum(xs * xs) * np.sum(ys * ys)))
    if denominator == 0:
        return 0.0
    return float(np.sum(xs * ys) / denominator)


def mass_fixpoint_correlation(field: Field,
                              config: FieldConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """Pearson correlation between origin mass and harvest distance."""
    points = [
        {"mass": wave.mass, "fixpoint_distance": harvest_distance(wave, field, config)}
        for wave in _origin_waves(field)
    ]
    return {
        "correlation": pearson([p["mass"] for p in points],
                               [p["fixpoint_distance"] for p in points]),
        "data_points": points,
    }


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def analyze_fixpoints(field: Field, config: FieldConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """Counts and average masses/distances for the field's origin waves."""
    waves = _origin_waves(field)
    if not waves:
        return {
            "total": 0,
            "crystallized": 0,
            "fixpoints": 0,
            "fixpoint_ratio": 0.0,
            "average_crystallized_mass": 0.0,
            "average_fixpoint_mass": 0.0,
            "average_fixpoint_distance": 0.0,
        }
    distances = [harvest_distance(w, field, config) for w in waves]
    crystallized = [w.mass for w in waves if w.mass >= CRYSTALLIZATION_THRESHOLD]
    fixpoint_masses = [w.mass for w, d in zip(waves, distances) if d < config.fixpoint_epsilon]
    return {
        "total": len(waves),
        "crystallized": len(crystallized),
        "fixpoints": len(fixpoint_masses),
        "fixpoint_ratio": len(fixpoint_masses) / len(waves),
        "average_crystallized_mass": _mean(crystallized),
        "average_fixpoint_mass": _mean(fixpoint_masses),
        "average_fixpoint_distance": _mean(distances),
    }


def find_fixpoints(field: Field, config: FieldConfig = DEFAULT_CONFIG) -> List[Wave]:
    return [w for w in _origin_waves(field) if is_fixpoint(w, field, config=config)]


def least_fixpoint_mass(field: Field, config: FieldConfig = DEFAULT_CONFIG) -> Optional[float]:
    """Smallest origin mass among fixpoints, None when there are none."""
    masses = [w.mass for w in find_fixpoints(field, config)]
    return min(masses) if masses else None
