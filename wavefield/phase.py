"""
wavefield/phase.py - Phase Classification and Transition Tracking

Maps density to a phase label through static thresholds and watches a
recorded series of field samples for transitions. The order parameter,
exponent fit and hysteresis test are read-only diagnostics; nothing here
feeds back into harvest control flow.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from receipts import DEFAULT_TENANT, emit_receipt

from .constants import (
    ACTIVE_ATTRACTOR_STRENGTH, COMPOSITION_THRESHOLD, CORRELATION_DIVERGENCE,
    CORRELATION_NU, CORRELATION_XI0, DENSITY_SCALE, EMERGENT_ORDER_THRESHOLD,
    HYSTERESIS_THRESHOLD, MIN_FIT_POINTS, NEAR_CRITICAL_WINDOW, PhaseState,
    RHO_EMERGENCE, RHO_ORGANIZATION, RHO_PERCOLATION,
)
from .geometry import distance
from .types_state import Field, Landmark

logger = logging.getLogger(__name__)


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_phase(density: float) -> PhaseState:
    """Pure lookup: <0.2 DORMANT, <0.6 ORGANIZING, <0.9 CRITICAL, else EMERGENT."""
    if density < RHO_PERCOLATION:
        return PhaseState.DORMANT
    if density < RHO_ORGANIZATION:
        return PhaseState.ORGANIZING
    if density < RHO_EMERGENCE:
        return PhaseState.CRITICAL
    return PhaseState.EMERGENT


def landmark_density(landmarks: Iterable[Landmark], scale: float = DENSITY_SCALE) -> float:
    """min(1, total landmark mass / scale)."""
    return min(1.0, sum(lm.mass for lm in landmarks) / scale)


# =============================================================================
# ORDER PARAMETER
# =============================================================================

def can_compose(first: Landmark, second: Landmark,
                threshold: float = COMPOSITION_THRESHOLD) -> bool:
    """first's end lies within threshold of second's start."""
    return distance(first.end, second.start) < threshold


def order_parameter(landmarks: Sequence[Landmark]) -> float:
    """
    Fraction of landmark pairs (i < j) that can compose.

    O(n^2) in landmark count. 0.0 for fewer than two landmarks.
    """
    n = len(landmarks)
    if n < 2:
        return 0.0
    connections = sum(
        1
        for i in range(n)
        for j in range(i + 1, n)
        if can_compose(landmarks[i], landmarks[j])
    )
    return connections / (n * (n - 1) / 2)


def composability_graph(landmarks: Sequence[Landmark]) -> nx.Graph:
    """Undirected graph over landmark indices, edges where either order composes."""
    graph = nx.Graph()
    graph.add_nodes_from(range(len(landmarks)))
    for i in range(len(landmarks)):
        for j in range(i + 1, len(landmarks)):
            if can_compose(landmarks[i], landmarks[j]) or can_compose(landmarks[j], landmarks[i]):
                graph.add_edge(i, j)
    return graph


def average_cluster_size(landmarks: Sequence[Landmark]) -> float:
    """Mean size of connected components of the composability graph."""
    if not landmarks:
        return 0.0
    sizes = [len(c) for c in nx.connected_components(composability_graph(landmarks))]
    return sum(sizes) / len(sizes)


def correlation_length(density: float, critical_density: float) -> float:
    """xi ~ |rho - rho_c|^-nu, infinite within CORRELATION_DIVERGENCE of rho_c."""
    delta = abs(density - critical_density)
    if delta < CORRELATION_DIVERGENCE:
        return math.inf
    return CORRELATION_XI0 / delta ** CORRELATION_NU


def has_emergent_behavior(field: Field) -> bool:
    """High connectivity, emergent density and at least one strong attractor."""
    if order_parameter(field.landmarks) < EMERGENT_ORDER_THRESHOLD:
        return False
    if field.density < RHO_EMERGENCE:
        return False
    return any(a.strength > ACTIVE_ATTRACTOR_STRENGTH for a in field.attractors)


# =============================================================================
# TRANSITION TRACKER
# =============================================================================

@dataclass(frozen=True)
class PhaseSample:
    density: float
    phase: PhaseState
    order_parameter: float
    timestamp: float


@dataclass(frozen=True)
class PhaseTransition:
    from_phase: PhaseState
    to_phase: PhaseState
    critical_density: float
    order_parameter: float
    timestamp: float

    def to_dict(self) -> dict:
        return {
            "from_phase": self.from_phase.value,
            "to_phase": self.to_phase.value,
            "critical_density": self.critical_density,
            "order_parameter": self.order_parameter,
            "timestamp": self.timestamp,
        }


class PhaseTransitionTracker:
    """Records field samples and captures a transition whenever the phase changes."""

    def __init__(self, tenant_id: str = DEFAULT_TENANT):
        self.tenant_id = tenant_id
        self._history: List[PhaseSample] = []
        self._transitions: List[PhaseTransition] = []
        self.receipts: List[dict] = []

    def record(self, field: Field) -> Optional[PhaseTransition]:
        """Sample a field. Returns the transition this sample completed, if any."""
        return self.record_sample(field.density, field.phase,
                                  order_parameter(field.landmarks), field.timestamp)

    def record_sample(self, density: float, phase: PhaseState,
                      order: float, timestamp: float) -> Optional[PhaseTransition]:
        self._history.append(PhaseSample(density, phase, order, timestamp))
        if len(self._history) < 2:
            return None
        prev, curr = self._history[-2], self._history[-1]
        if prev.phase is curr.phase:
            return None
        transition = PhaseTransition(
            from_phase=prev.phase,
            to_phase=curr.phase,
            critical_density=curr.density,
            order_parameter=curr.order_parameter,
            timestamp=curr.timestamp,
        )
        self._transitions.append(transition)
        self.receipts.append(emit_receipt("phase_transition", {
            "tenant_id": self.tenant_id,
            **transition.to_dict(),
        }))
        logger.info("Phase transition %s -> %s at density %.4f",
                    prev.phase.value, curr.phase.value, curr.density)
        return transition

    def transitions(self) -> List[PhaseTransition]:
        return list(self._transitions)

    def history(self) -> List[PhaseSample]:
        return list(self._history)

    def critical_exponent(self, critical_density: float,
                          window: float = NEAR_CRITICAL_WINDOW) -> Optional[float]:
        """
        Fit beta in order ~ (rho - rho_c)^beta near rho_c.

        Ordinary least squares on log(rho - rho_c) vs log(order), using samples
        within `window` of rho_c, strictly above it, with positive order.

        Returns:
            Slope of the fit, or None with fewer than MIN_FIT_POINTS usable
            samples or when all usable densities coincide.
        """
        usable = [
            s for s in self._history
            if abs(s.density - critical_density) < window
            and s.density > critical_density
            and s.order_parameter > 0
        ]
        if len(usable) < MIN_FIT_POINTS:
            return None
        x = np.log(np.array([s.density - critical_density for s in usable]))
        y = np.log(np.array([s.order_parameter for s in usable]))
        if np.ptp(x) == 0:
            return None
        slope, _intercept = np.polyfit(x, y, 1)
        return float(slope)

    def clear(self) -> None:
        """Drop samples, transitions and their receipts."""
        self._history = []
        self._transitions = []
        self.receipts = []


# =============================================================================
# HYSTERESIS
# =============================================================================

def _first_transition_index(phases: Sequence[PhaseState]) -> Optional[int]:
    for i in range(1, len(phases)):
        if phases[i] is not phases[i - 1]:
            return i
    return None


def hysteresis_gap(ascending: Sequence[float], descending: Sequence[float],
                   ascending_phases: Optional[Sequence[PhaseState]] = None,
                   descending_phases: Optional[Sequence[PhaseState]] = None) -> Optional[float]:
    """
    |rho_asc - rho_desc| between the first transitions of two density sweeps.

    Phases default to classify_phase of each density. None when either
    sweep has no transition.

    Raises:
        ValueError: a phase sequence and its density sweep differ in length
    """
    if ascending_phases is None:
        ascending_phases = [classify_phase(d) for d in ascending]
    if descending_phases is None:
        descending_phases = [classify_phase(d) for d in descending]
    if len(ascending_phases) != len(ascending) or len(descending_phases) != len(descending):
        raise ValueError("phase sequences must match their density sweeps in length")
    asc_idx = _first_transition_index(ascending_phases)
    desc_idx = _first_transition_index(descending_phases)
    if asc_idx is None or desc_idx is None:
        return None
    return abs(ascending[asc_idx] - descending[desc_idx])


def detect_hysteresis(ascending: Sequence[float], descending: Sequence[float],
                      ascending_phases: Optional[Sequence[PhaseState]] = None,
                      descending_phases: Optional[Sequence[PhaseState]] = None,
                      threshold: float = HYSTERESIS_THRESHOLD) -> bool:
    """True when the first-transition densities differ by more than threshold."""
    gap = hysteresis_gap(ascending, descending, ascending_phases, descending_phases)
    return gap is not None and gap > threshold


def settle(field: Field, landmarks: Tuple[Landmark, ...],
           scale: float = DENSITY_SCALE) -> Field:
    """Field with landmarks replaced and density/phase derived from them."""
    density = landmark_density(landmarks, scale)
    return field.with_metrics(density, classify_phase(density), landmarks)
