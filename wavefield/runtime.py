"""
wavefield/runtime.py - FieldRuntime Driver

Holds the current Field value and replaces it after every step. A
cooperative tick advances elapsed time and drives density with a slow
oscillation plus a capped growth term; waves are harvested on submit.

Density set by tick is a driver override: the next crystallization
re-derives it from landmarks. reset() is the only way back to an empty
field.

Harvests, crystallizations, phase changes, redistributions and resets
append receipts to self.receipts.
"""

import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from receipts import emit_receipt, merkle, write_receipt_jsonl

from .attractors import NameLike, apply_strengths, redistribution_error, strength_map, total_strength
from .constants import GROWTH_HORIZON_MS, MAX_GROWTH
from .harvest import HarvestResult, create_field, create_seed, harvest
from .phase import classify_phase
from .types_config import DEFAULT_CONFIG, FieldConfig
from .types_state import Field, FieldAttractor, Position, Wave

logger = logging.getLogger(__name__)


def tick_density(elapsed_ms: float, period_ms: float) -> float:
    """min(1, (sin(2 pi (t mod period) / period) + 1) / 2 + min(t / 10000, 0.3))."""
    phase = (elapsed_ms % period_ms) / period_ms
    base = (math.sin(phase * 2 * math.pi) + 1) / 2
    return min(1.0, base + min(elapsed_ms / GROWTH_HORIZON_MS, MAX_GROWTH))


class FieldRuntime:
    """Single-threaded heartbeat around one Field value."""

    def __init__(self, config: FieldConfig = DEFAULT_CONFIG,
                 attractors: Iterable[FieldAttractor] = ()):
        self.config = config
        self.receipts: list = []
        self._init_state(tuple(attractors))

    def _init_state(self, attractors: tuple) -> None:
        self._field = create_field(attractors)
        self._budget = total_strength(attractors)
        self._elapsed_ms = 0
        self._ticks = 0
        self._running = False

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def elapsed_ms(self) -> int:
        return self._elapsed_ms

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self) -> None:
        if self._running:
            logger.warning("FieldRuntime already running")
            return
        self._running = True
        logger.info("FieldRuntime started (tick %d ms)", self.config.tick_interval_ms)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("FieldRuntime stopped after %d ticks", self._ticks)

    def tick(self) -> Field:
        """Advance one interval, set density from elapsed time, reclassify phase."""
        self._elapsed_ms += self.config.tick_interval_ms
        self._ticks += 1
        density = tick_density(self._elapsed_ms, self.config.oscillation_period_ms)
        previous = self._field.phase
        self._field = self._field.with_metrics(density, classify_phase(density))
        if self._field.phase is not previous:
            self.receipts.append(emit_receipt("runtime_tick", {
                "tenant_id": self.config.tenant_id,
                "tick": self._ticks,
                "elapsed_ms": self._elapsed_ms,
                "density": density,
                "from_phase": previous.value,
                "to_phase": self._field.phase.value,
            }))
            logger.info("Tick %d: phase %s -> %s (density %.4f)",
                        self._ticks, previous.value, self._field.phase.value, density)
        return self._field

    def run(self, n_ticks: int, on_tick: Optional[Callable[[Field], Any]] = None) -> int:
        """
        Tick up to n_ticks times while running.

        Starts the runtime if needed and stops it again afterwards if it did.
        on_tick receives each new field; calling stop() from it ends the run.

        Returns:
            Number of ticks performed.
        """
        started_here = not self._running
        if started_here:
            self.start()
        done = 0
        while done < n_ticks and self._running:
            field = self.tick()
            done += 1
            if on_tick is not None:
                on_tick(field)
        if started_here:
            self.stop()
        return done

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def snapshot(self) -> Field:
        return self._field

    def metrics(self) -> Dict[str, Any]:
        return {
            **self._field.metrics(),
            "elapsed_ms": self._elapsed_ms,
            "ticks": self._ticks,
            "running": self._running,
            "budget": self._budget,
        }

    @property
    def budget(self) -> float:
        return self._budget

    # -------------------------------------------------------------------------
    # Waves
    # -------------------------------------------------------------------------

    def submit(self, seed: Wave) -> HarvestResult:
        """Put a seed in flight and harvest it against the current field."""
        result = harvest(seed, self._field.with_wave(seed), self.config)
        self._field = result.field
        self.receipts.append(result.receipt)
        if result.landmark is not None:
            self.receipts.append(emit_receipt("crystallization", {
                "tenant_id": self.config.tenant_id,
                **result.landmark.to_dict(),
                "density": result.field.density,
                "phase": result.field.phase.value,
            }))
        return result

    def spawn(self, body: Optional[Callable[..., Any]] = None, origin: str = "runtime",
              position: Optional[Position] = None, **kwargs) -> HarvestResult:
        """create_seed then submit."""
        return self.submit(create_seed(body, origin, position, **kwargs))

    # -------------------------------------------------------------------------
    # Attractors
    # -------------------------------------------------------------------------

    def add_attractor(self, attractor: FieldAttractor) -> None:
        """Add one attractor; its strength joins the granted budget."""
        self._field = self._field.with_attractors(self._field.attractors + (attractor,))
        self._budget += attractor.strength

    def grant_attractors(self, attractors: Iterable[FieldAttractor]) -> None:
        """Replace all attractors; the budget becomes their total strength."""
        attractors = tuple(attractors)
        self._field = self._field.with_attractors(attractors)
        self._budget = total_strength(attractors)

    def redistribute(self, mapping: Mapping[NameLike, float]) -> bool:
        """
        Apply a full strength replacement that conserves the budget.

        Returns:
            False, with no change, when the mapping is rejected.
        """
        before = strength_map(self._field)
        reason = redistribution_error(self._field, mapping, self._budget, self.config.budget_tolerance)
        accepted = reason is None
        if accepted:
            self._field = apply_strengths(self._field, mapping)
        else:
            logger.warning("Redistribution rejected: %s", reason)
        self.receipts.append(emit_receipt("redistribution", {
            "tenant_id": self.config.tenant_id,
            "accepted": accepted,
            "reason": reason,
            "budget": self._budget,
            "before": before,
            "requested": {str(getattr(k, "value", k)): v for k, v in mapping.items()},
        }))
        return accepted

    # -------------------------------------------------------------------------
    # Lifecycle and ledger
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Stop, zero the clock and start over from an empty field."""
        self.stop()
        previous = self._field.metrics()
        self._init_state(())
        self.receipts.append(emit_receipt("runtime_reset", {
            "tenant_id": self.config.tenant_id,
            "previous": previous,
        }))
        logger.info("FieldRuntime reset")

    def ledger_root(self) -> str:
        return merkle(self.receipts)

    def export_receipts(self, path: Union[str, Path]) -> int:
        """Write the ledger as JSONL. Returns the number of receipts written."""
        with open(path, "w") as fh:
            for receipt in self.receipts:
                write_receipt_jsonl(receipt, fh)
        return len(self.receipts)
