"""
wavefield/property_check.py - Best-Effort Randomized Property Checker

Diagnostic only. Samples random inputs and reports which algebraic
properties survived. A property that survives sampling is not proven;
one that fails has a concrete counterexample. Declared properties on
operators and algebras are never changed by this module.
"""

import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .algebra import Algebra, AlgebraProperties
from .constants import WaveStatus
from .operators import BASE_OPERATORS, IDENTITY, Operator, superpose
from .types_state import Position, Wave

SAMPLE_SPAN = 2.0
WAVE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PropertyReport:
    """Properties that held on every sample, with counterexample descriptions."""
    associative: bool
    commutative: bool
    has_identity: bool
    idempotent: bool
    samples: int
    counterexamples: tuple = ()

    def contradicts(self, declared: AlgebraProperties) -> List[str]:
        """Names of declared-true properties that sampling refuted."""
        return [
            name for name in ("associative", "commutative", "has_identity", "idempotent")
            if getattr(declared, name) and not getattr(self, name)
        ]


def random_wave(rng: random.Random, span: float = SAMPLE_SPAN) -> Wave:
    return Wave(
        wave_id=f"sample-{rng.getrandbits(32):08x}",
        position=Position(rng.uniform(-span, span), rng.uniform(-span, span)),
        mass=rng.random(),
        status=WaveStatus.SEED,
    )


def waves_close(a: Wave, b: Wave, tolerance: float = WAVE_TOLERANCE) -> bool:
    return (abs(a.mass - b.mass) <= tolerance
            and abs(a.position.x - b.position.x) <= tolerance
            and abs(a.position.y - b.position.y) <= tolerance)


def check_operator_properties(op: Operator, peers: Optional[Sequence[Operator]] = None,
                              samples: int = 100, seed: int = 42,
                              tolerance: float = WAVE_TOLERANCE) -> PropertyReport:
    """
    Sample an operator's properties against peer operators.

    Commutativity is checked only against peers that themselves declare
    commutativity, the class the operator claims to commute within.

    Args:
        op: Operator under test
        peers: Operators to combine with, default the base operators
        samples: Random waves per check
        seed: RNG seed, so reports are reproducible
        tolerance: Max per-coordinate difference counted as equal
    """
    rng = random.Random(seed)
    peers = list(BASE_OPERATORS.values()) if peers is None else list(peers)
    commuting_peers = [p for p in peers if p.properties.commutative]
    found = {"associative": True, "commutative": True, "has_identity": True, "idempotent": True}
    counterexamples: List[str] = []

    def refute(prop: str, detail: str) -> None:
        if found[prop]:
            counterexamples.append(f"{prop}: {detail}")
        found[prop] = False

    for _ in range(samples):
        wave = random_wave(rng)
        if peers:
            p, q = rng.choice(peers), rng.choice(peers)
            left = superpose(superpose(op, p), q)(wave)
            right = superpose(op, superpose(p, q))(wave)
            if not waves_close(left, right, tolerance):
                refute("associative", f"({op.name} ⊕ {p.name}) ⊕ {q.name} on {wave.wave_id}")
        for peer in commuting_peers:
            if not waves_close(superpose(op, peer)(wave), superpose(peer, op)(wave), tolerance):
                refute("commutative", f"{op.name} vs {peer.name} on {wave.wave_id}")
        once = op(wave)
        if not (waves_close(superpose(op, IDENTITY)(wave), once, tolerance)
                and waves_close(superpose(IDENTITY, op)(wave), once, tolerance)):
            refute("has_identity", f"identity changes {op.name} on {wave.wave_id}")
        if not waves_close(op(once), once, tolerance):
            refute("idempotent", f"{op.name} twice differs from once on {wave.wave_id}")

    return PropertyReport(samples=samples, counterexamples=tuple(counterexamples), **found)


def _same(a: Any, b: Any, tolerance: float) -> bool:
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return math.isclose(a, b, rel_tol=tolerance, abs_tol=tolerance)
    if isinstance(a, tuple) and isinstance(b, tuple) and len(a) == len(b):
        return all(_same(x, y, tolerance) for x, y in zip(a, b))
    return a == b


def check_algebra_properties(algebra: Algebra, sampler: Callable[[random.Random], Any],
                             samples: int = 100, seed: int = 42,
                             tolerance: float = WAVE_TOLERANCE) -> PropertyReport:
    """
    Sample an accumulator algebra whose value and accumulator types coincide.

    sampler draws one element from the shared carrier set.
    """
    rng = random.Random(seed)
    fn = algebra.fn
    e = algebra.identity
    found = {
        "associative": True,
        "commutative": True,
        "has_identity": e is not None,
        "idempotent": True,
    }
    counterexamples: List[str] = []

    def refute(prop: str, detail: str) -> None:
        if found[prop]:
            counterexamples.append(f"{prop}: {detail}")
        found[prop] = False

    for _ in range(samples):
        a, b, c = sampler(rng), sampler(rng), sampler(rng)
        if not _same(fn(fn(a, b), c), fn(a, fn(b, c)), tolerance):
            refute("associative", f"{algebra.name}({a!r}, {b!r}, {c!r})")
        if not _same(fn(a, b), fn(b, a), tolerance):
            refute("commutative", f"{algebra.name}({a!r}, {b!r})")
        if e is not None and not (_same(fn(e, a), a, tolerance) and _same(fn(a, e), a, tolerance)):
            refute("has_identity", f"{algebra.name} identity {e!r} on {a!r}")
        if not _same(fn(a, a), a, tolerance):
            refute("idempotent", f"{algebra.name}({a!r}, {a!r})")

    return PropertyReport(samples=samples, counterexamples=tuple(counterexamples), **found)


def audit_operators(operators: Iterable[Operator], samples: int = 100,
                    seed: int = 42) -> dict:
    """Map operator name -> declared properties contradicted by sampling."""
    return {
        op.name: check_operator_properties(op, samples=samples, seed=seed).contradicts(op.properties)
        for op in operators
    }
