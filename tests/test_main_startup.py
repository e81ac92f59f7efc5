from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

import main
from motorworks import CompanySim


def _pygame_without_display():
    display = SimpleNamespace(init=lambda: None, get_init=lambda: False)
    return SimpleNamespace(error=RuntimeError, init=lambda: None, display=display)


def test_dashboard_refuses_to_start_without_display(monkeypatch):
    monkeypatch.setattr(main, "pygame", _pygame_without_display())

    with pytest.raises(RuntimeError, match="--headless"):
        main.GameUI(CompanySim(7))


def test_dashboard_requires_pygame(monkeypatch):
    monkeypatch.setattr(main, "pygame", None)

    with pytest.raises(RuntimeError, match="pygame is not installed"):
        main.GameUI(CompanySim(7))


def test_startup_error_exits_with_status_one(monkeypatch, capsys):
    def _no_display(sim):
        raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")

    monkeypatch.setattr(main, "GameUI", _no_display)
    monkeypatch.setattr(sys, "argv", ["motorworks", "--seed", "3"])

    with pytest.raises(SystemExit) as exc:
        main.main()

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("Startup error:")
    assert "--headless" in err


def test_bootstrap_gives_one_engine_and_one_batch():
    sim = CompanySim(7)

    main.bootstrap_company(sim)

    assert [engine.name for engine in sim.state.unlocked_engines] == ["Founder I4"]
    assert len(sim.state.developed_cars) == 1
    car = sim.state.developed_cars[0]
    assert car.name == "Founder Sedan"
    assert car.production is not None and car.production.is_active
    assert car.production.total_batch_target == main.STARTER_BATCH


def test_headless_run_prints_summary_and_saves(monkeypatch, capsys, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["motorworks", "--headless", "--weeks", "4"])

    main.main()

    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("headless_done")]
    assert len(lines) == 1
    summary = lines[0]
    assert "weeks=4" in summary
    assert "date=Jan 29, 1970" in summary
    assert "engines=1" in summary
    assert "cars=1" in summary
    assert (tmp_path / main.SAVE_FILE).exists()
