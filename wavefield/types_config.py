"""
wavefield/types_config.py - FieldConfig Dataclass and Presets

Immutable configuration for harvest, analysis and the runtime driver.
Frozen dataclass; validation raises StopRule.
"""

import json
import warnings
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from receipts import DEFAULT_TENANT, StopRule, stoprule_out_of_range

from .constants import (
    ACTIVATION_THRESHOLD, BRIDGE_RADIUS, BUDGET_TOLERANCE, CONVERGENCE_ITERATIONS,
    CRYSTALLIZE_DISTANCE, CRYSTALLIZE_MASS, DENSITY_SCALE, FIXPOINT_EPSILON,
    MAX_HARVEST_ITERATIONS, OSCILLATION_PERIOD_MS, TICK_INTERVAL_MS,
)


INT_FIELDS = ("max_iterations", "convergence_iterations", "tick_interval_ms", "oscillation_period_ms")
FLOAT_FIELDS = (
    "bridge_radius", "crystallize_distance", "crystallize_mass", "density_scale",
    "fixpoint_epsilon", "activation_threshold", "budget_tolerance",
)


@dataclass(frozen=True)
class FieldConfig:
    """Engine configuration (immutable)."""
    max_iterations: int = MAX_HARVEST_ITERATIONS
    bridge_radius: float = BRIDGE_RADIUS
    crystallize_distance: float = CRYSTALLIZE_DISTANCE
    crystallize_mass: float = CRYSTALLIZE_MASS
    density_scale: float = DENSITY_SCALE
    fixpoint_epsilon: float = FIXPOINT_EPSILON
    convergence_iterations: int = CONVERGENCE_ITERATIONS
    activation_threshold: float = ACTIVATION_THRESHOLD
    tick_interval_ms: int = TICK_INTERVAL_MS
    oscillation_period_ms: int = OSCILLATION_PERIOD_MS
    budget_tolerance: float = BUDGET_TOLERANCE
    tenant_id: str = DEFAULT_TENANT

    def __post_init__(self):
        # Integral floats from JSON become ints
        for name in INT_FIELDS:
            val = getattr(self, name)
            if isinstance(val, float) and val.is_integer():
                object.__setattr__(self, name, int(val))
        validate_config(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_config(config: FieldConfig) -> None:
    """Raise StopRule for any bound that would break the loop guarantees."""
    for name in INT_FIELDS:
        val = getattr(config, name)
        if isinstance(val, bool) or not isinstance(val, int):
            raise StopRule(f"{name} must be integer, got {type(val).__name__}")
    for name in FLOAT_FIELDS:
        val = getattr(config, name)
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise StopRule(f"{name} must be numeric, got {type(val).__name__}")
    if not isinstance(config.tenant_id, str):
        raise StopRule(f"tenant_id must be a string, got {type(config.tenant_id).__name__}")
    if config.max_iterations < 1:
        raise StopRule(f"max_iterations must be >= 1, got {config.max_iterations}")
    if config.convergence_iterations < 1:
        raise StopRule(f"convergence_iterations must be >= 1, got {config.convergence_iterations}")
    if config.tick_interval_ms < 1:
        raise StopRule(f"tick_interval_ms must be >= 1, got {config.tick_interval_ms}")
    if config.oscillation_period_ms < 1:
        raise StopRule(f"oscillation_period_ms must be >= 1, got {config.oscillation_period_ms}")
    if config.density_scale <= 0:
        raise StopRule(f"density_scale must be > 0, got {config.density_scale}")
    if config.bridge_radius <= 0:
        raise StopRule(f"bridge_radius must be > 0, got {config.bridge_radius}")
    stoprule_out_of_range("crystallize_mass", config.crystallize_mass, 0.0, 1.0, config.tenant_id)
    stoprule_out_of_range("activation_threshold", config.activation_threshold, 0.0, 1.0, config.tenant_id)
    stoprule_out_of_range("fixpoint_epsilon", config.fixpoint_epsilon, 0.0, float("inf"), config.tenant_id)
    stoprule_out_of_range("budget_tolerance", config.budget_tolerance, 0.0, 1.0, config.tenant_id)


def load_config(path: Union[str, Path]) -> FieldConfig:
    """
    Load FieldConfig from a JSON file.

    Unknown keys are dropped with a warning; missing keys take defaults.

    Args:
        path: JSON file holding a flat object of FieldConfig fields

    Returns:
        Validated FieldConfig

    Raises:
        StopRule: file is not a JSON object or a value fails validation
    """
    raw = json.loads(Path(path).read_text())
    if not isinstance(raw, dict):
        raise StopRule(f"Config {path} must hold a JSON object")
    known = {f.name for f in fields(FieldConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        warnings.warn(f"Ignoring unknown config keys: {', '.join(unknown)}", UserWarning, stacklevel=2)
    return FieldConfig(**{k: v for k, v in raw.items() if k in known})


# =============================================================================
# PRESETS
# =============================================================================

DEFAULT_CONFIG = FieldConfig()

# Faster heartbeat for demos: one tick per 100 ms, 1 s oscillation
CONFIG_FAST_TICK = FieldConfig(
    tick_interval_ms=100,
    oscillation_period_ms=1000,
)

# Tighter crystallization and fixpoint gates
CONFIG_STRICT = FieldConfig(
    crystallize_mass=0.9,
    crystallize_distance=2.0,
    fixpoint_epsilon=0.05,
)

PRESETS = {
    "default": DEFAULT_CONFIG,
    "fast_tick": CONFIG_FAST_TICK,
    "strict": CONFIG_STRICT,
}
