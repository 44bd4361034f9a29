"""Tests for the tps_meter module."""
from __future__ import annotations

import pytest

import cb_state
import tps_meter
from recording import Recording
from tps_meter import TpsMeter


class TestTpsMeter:
    def test_defaults_from_config(self):
        meter = TpsMeter()
        assert meter.window == cb_state.TPS_WINDOW
        assert meter.max_tps == cb_state.MAX_TPS

    def test_reports_max_before_first_tick(self):
        meter = TpsMeter(window=1.0, max_tps=20.0, clock=lambda: 0.0)
        assert meter.get_tps() == 20.0

    def test_healthy_server_capped(self):
        meter = TpsMeter(window=1.0, max_tps=20.0)
        for k in range(1, 41):
            meter.tick(ts=k * 0.05)
        assert meter.get_tps(now=2.0) == pytest.approx(20.0)

    def test_lagging_server(self):
        meter = TpsMeter(window=1.0, max_tps=20.0)
        for k in range(1, 21):
            meter.tick(ts=k * 0.1)
        assert meter.get_tps(now=2.0) == pytest.approx(10.0)

    def test_stalled_server_drops_to_zero(self):
        meter = TpsMeter(window=1.0, max_tps=20.0)
        meter.tick(ts=0.0)
        meter.tick(ts=0.5)
        assert meter.get_tps(now=5.0) == 0.0

    def test_reset(self, capsys):
        meter = TpsMeter(window=1.0, max_tps=20.0)
        meter.tick(ts=1.0)
        meter.reset()
        assert meter.get_tps(now=1.5) == 20.0
        assert "[TpsMeter] Reset" in capsys.readouterr().out

    def test_history_bounded(self):
        meter = TpsMeter(window=100.0, max_tps=1000.0, history=10)
        for k in range(50):
            meter.tick(ts=float(k))
        assert len(meter.ticks) == 10

    def test_default_load_provider_for_recording(self, monkeypatch, clock):
        meter = TpsMeter(window=1.0, max_tps=20.0)
        monkeypatch.setattr(tps_meter, "default_meter", meter)
        rec = Recording(clock=clock)
        assert rec.baseline_load == 20.0

        for k in range(1, 21):
            meter.tick(ts=k * 0.1)
        monkeypatch.setattr(meter, "_clock", lambda: 2.0)
        assert rec.extract_features()[0] == pytest.approx(10.0)
