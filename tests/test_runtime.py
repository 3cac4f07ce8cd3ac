"""
tests/test_runtime.py - Tests for wavefield/runtime.py

Tick driver, harvest submission, redistribution and the receipt ledger.
"""

import json
import logging
import math

import pytest

from wavefield.attractors import default_attractors, strength_map
from wavefield.constants import PhaseState
from wavefield.runtime import FieldRuntime, tick_density
from wavefield.types_config import CONFIG_FAST_TICK


@pytest.fixture
def runtime():
    return FieldRuntime(attractors=default_attractors(0.2))


class TestTickDensity:
    """Oscillation plus capped growth."""

    def test_formula(self):
        t = 16
        expected = min(1.0, (math.sin(2 * math.pi * t / 5000) + 1) / 2 + t / 10000)
        assert tick_density(t, 5000) == pytest.approx(expected)

    def test_growth_capped(self):
        # At a full period the sine term is back to 0.5; growth capped at 0.3.
        assert tick_density(50000, 5000) == pytest.approx(0.8)

    def test_clamped_to_one(self):
        assert tick_density(1250 + 5000 * 4, 5000) == 1.0


class TestDriver:
    """start/stop/tick/run."""

    def test_tick_advances(self, runtime):
        field = runtime.tick()
        assert runtime.elapsed_ms == 16
        assert runtime.ticks == 1
        assert field.density == pytest.approx(tick_density(16, 5000))
        assert field.phase is PhaseState.ORGANIZING

    def test_run(self, runtime):
        assert runtime.run(25) == 25
        assert runtime.ticks == 25
        assert runtime.elapsed_ms == 25 * 16
        assert runtime.running is False

    def test_stop_from_callback(self, runtime):
        def on_tick(field):
            if runtime.ticks == 5:
                runtime.stop()

        assert runtime.run(100, on_tick) == 5

    def test_double_start_warns(self, runtime, caplog):
        runtime.start()
        with caplog.at_level(logging.WARNING, logger="wavefield.runtime"):
            runtime.start()
        assert "already running" in caplog.text
        assert runtime.running is True
        runtime.stop()

    def test_phase_change_receipts(self, runtime):
        runtime.run(400)
        ticks = [r for r in runtime.receipts if r["receipt_type"] == "runtime_tick"]
        assert ticks, "density sweep should cross at least one threshold"
        assert ticks[0]["from_phase"] == "DORMANT"
        for r in ticks:
            assert r["from_phase"] != r["to_phase"]

    def test_config_interval(self):
        rt = FieldRuntime(CONFIG_FAST_TICK)
        rt.tick()
        assert rt.elapsed_ms == 100

    def test_metrics(self, runtime):
        runtime.tick()
        m = runtime.metrics()
        for key in ("density", "phase", "landmark_count", "wave_count", "elapsed_ms", "ticks"):
            assert key in m
        assert m["ticks"] == 1
        assert m["budget"] == pytest.approx(1.0)


class TestSubmit:
    """Waves through the runtime."""

    def test_spawn_crystallizes(self, runtime):
        result = runtime.spawn(origin="rt")
        assert result.wave.crystallized
        snap = runtime.snapshot()
        assert len(snap.landmarks) == 1
        assert snap.waves == ()
        types = [r["receipt_type"] for r in runtime.receipts]
        assert types == ["harvest", "crystallization"]
        assert runtime.receipts[1]["landmark_id"] == result.landmark.landmark_id


class TestRedistribution:
    """Budget granted at construction."""

    def test_accept(self, runtime):
        ok = runtime.redistribute({"LOVE": 0.6, "FEAR": 0.1, "CURIOSITY": 0.1,
                                   "TRUTH": 0.1, "BEAUTY": 0.1})
        assert ok is True
        assert strength_map(runtime.snapshot())["LOVE"] == 0.6
        assert runtime.receipts[-1]["accepted"] is True

    def test_reject_wrong_budget(self, runtime, caplog):
        before = strength_map(runtime.snapshot())
        with caplog.at_level(logging.WARNING, logger="wavefield.runtime"):
            ok = runtime.redistribute({"LOVE": 0.3, "FEAR": 0.1, "CURIOSITY": 0.2,
                                       "TRUTH": 0.2, "BEAUTY": 0.1})
        assert ok is False
        assert strength_map(runtime.snapshot()) == before
        assert "rejected" in caplog.text
        receipt = runtime.receipts[-1]
        assert receipt["receipt_type"] == "redistribution"
        assert receipt["accepted"] is False

    def test_repeatable(self, runtime):
        assert runtime.redistribute({n: 0.2 for n in ("LOVE", "FEAR", "CURIOSITY", "TRUTH", "BEAUTY")})
        assert runtime.redistribute({"LOVE": 1.0, "FEAR": 0.0, "CURIOSITY": 0.0,
                                     "TRUTH": 0.0, "BEAUTY": 0.0})

    def test_validates_once(self, runtime, monkeypatch):
        import wavefield.runtime as runtime_module

        calls = []
        original = runtime_module.redistribution_error

        def counting(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        monkeypatch.setattr(runtime_module, "redistribution_error", counting)
        assert runtime.redistribute({n: 0.2 for n in ("LOVE", "FEAR", "CURIOSITY", "TRUTH", "BEAUTY")})
        assert len(calls) == 1

    def test_add_attractor_grows_budget(self):
        from wavefield.attractors import create_attractor

        rt = FieldRuntime()
        rt.add_attractor(create_attractor("LOVE", 0.4))
        rt.add_attractor(create_attractor("FEAR", 0.2))
        assert rt.budget == pytest.approx(0.6)
        assert rt.redistribute({"LOVE": 0.3, "FEAR": 0.3}) is True


class TestLedger:
    """reset, merkle root and export."""

    def test_reset(self, runtime):
        runtime.run(10)
        runtime.spawn()
        runtime.reset()
        snap = runtime.snapshot()
        assert snap.landmarks == ()
        assert snap.attractors == ()
        assert snap.density == 0.0
        assert runtime.ticks == 0
        assert runtime.elapsed_ms == 0
        assert runtime.receipts[-1]["receipt_type"] == "runtime_reset"

    def test_ledger_root_changes(self, runtime):
        empty_root = runtime.ledger_root()
        runtime.spawn()
        assert runtime.ledger_root() != empty_root

    def test_export(self, runtime, tmp_path):
        runtime.spawn()
        path = tmp_path / "receipts.jsonl"
        written = runtime.export_receipts(path)
        lines = path.read_text().splitlines()
        assert written == len(lines) == 2
        assert json.loads(lines[0])["receipt_type"] == "harvest"
