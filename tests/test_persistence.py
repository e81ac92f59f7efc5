"""Save documents: round trips, legacy migration, and import validation."""
from __future__ import annotations

import base64
import json
import random

from config import LEGACY_LOAN_ID, LEGACY_LOAN_RATE, STARTING_MONEY
from motorworks import CarDesign, CompanySim, EngineDesign
from motorworks.persistence import (
    export_save,
    import_save,
    load_game,
    save_game,
    state_from_dict,
    state_to_dict,
)


def _played_sim() -> CompanySim:
    sim = CompanySim(11)
    assert sim.develop_engine(EngineDesign(), "Round Trip I4")
    engine = sim.state.unlocked_engines[-1]
    assert sim.start_production("Round Trip Sedan", engine.id, CarDesign(), 12000, 60)
    assert sim.take_loan("loan_venture")
    assert sim.join_racing_category("rc_amateur")
    assert sim.hire_driver(sim.state.free_agents[0].id)
    sim.run_weeks(6)
    return sim


def test_played_snapshot_survives_dict_round_trip():
    state = _played_sim().state

    decoded = state_from_dict(json.loads(json.dumps(state_to_dict(state))))

    assert decoded == state


def test_single_driver_slot_is_migrated():
    data = state_to_dict(CompanySim(3).state)
    driver = data["free_agents"][0]
    data["racing_team"].pop("drivers")
    data["racing_team"]["driver"] = driver

    state = state_from_dict(data)

    assert [d.id for d in state.racing_team.drivers] == [driver["id"]]


def test_scalar_debt_becomes_legacy_loan():
    data = state_to_dict(CompanySim(3).state)
    data.pop("active_loans")
    data["current_debt"] = 250000

    state = state_from_dict(data)

    assert len(state.active_loans) == 1
    loan = state.active_loans[0]
    assert loan.id == LEGACY_LOAN_ID
    assert loan.principal == 250000
    assert loan.interest_rate == LEGACY_LOAN_RATE
    assert state.current_debt == 250000


def test_missing_tutorial_is_inferred_from_cars():
    data = state_to_dict(_played_sim().state)
    data.pop("tutorial")
    fresh = state_to_dict(CompanySim(3).state)
    fresh.pop("tutorial")

    assert state_from_dict(data).tutorial.is_completed
    assert not state_from_dict(fresh).tutorial.is_completed
    assert not state_from_dict(fresh).tutorial.is_active


def test_non_numeric_money_falls_back_to_new_game(tmp_path):
    path = tmp_path / "save.json"
    data = state_to_dict(_played_sim().state)
    data["money"] = "lots"
    path.write_text(json.dumps(data))

    state = load_game(path, random.Random(1))

    assert state.date == 0
    assert state.developed_cars == []
    assert len(state.free_agents) == 4


def test_corrupt_file_falls_back_to_new_game(tmp_path):
    path = tmp_path / "save.json"
    path.write_text("{\"money\": ")

    state = load_game(path, random.Random(1))

    assert state.date == 0
    assert state.unlocked_engines == []


def test_save_and_load_round_trip_through_disk(tmp_path):
    path = tmp_path / "nested" / "save.json"
    state = _played_sim().state

    save_game(state, path)

    assert load_game(path) == state
    assert [p.name for p in path.parent.iterdir()] == ["save.json"]


def test_import_accepts_raw_and_base64_exports(tmp_path):
    text = export_save(_played_sim().state)
    raw_path = tmp_path / "raw.json"
    b64_path = tmp_path / "b64.json"

    assert import_save(text, raw_path)
    assert import_save(base64.b64encode(text.encode("utf-8")).decode("ascii"), b64_path)
    assert json.loads(raw_path.read_text()) == json.loads(text)
    assert json.loads(b64_path.read_text()) == json.loads(text)


def test_invalid_imports_leave_file_untouched(tmp_path):
    path = tmp_path / "save.json"
    path.write_text("keep me")
    data = state_to_dict(CompanySim(3).state)
    no_factory = dict(data)
    no_factory.pop("factory")
    bad_date = dict(data, date="week three")

    assert not import_save(json.dumps(no_factory), path)
    assert not import_save(json.dumps(bad_date), path)
    assert not import_save("%%% not a save %%%", path)
    assert not import_save(json.dumps([1, 2, 3]), path)
    assert path.read_text() == "keep me"


def test_infinite_money_falls_back_to_new_game(tmp_path):
    path = tmp_path / "save.json"
    path.write_text('{"money": 1e999, "date": 300, "factory": {"level": 1}}')

    state = load_game(path, random.Random(1))

    assert state.money == STARTING_MONEY
    assert state.date == 0


def test_infinite_nested_number_is_defaulted(tmp_path):
    path = tmp_path / "save.json"
    data = state_to_dict(CompanySim(3).state)
    data["active_loans"] = [
        {"id": "loan_1", "tier_id": "loan_venture", "name": "Venture Capital", "principal": 1, "interest_rate": 0.05}
    ]
    path.write_text(json.dumps(data).replace('"principal": 1,', '"principal": 1e999,'))

    state = load_game(path, random.Random(1))

    assert [loan.id for loan in state.active_loans] == ["loan_1"]
    assert state.active_loans[0].principal == 0
    assert state.current_debt == 0


def test_import_rejects_infinite_money(tmp_path):
    path = tmp_path / "save.json"
    text = json.dumps(state_to_dict(CompanySim(3).state)).replace(
        f'"money": {STARTING_MONEY}', '"money": Infinity', 1
    )

    assert '"money": Infinity' in text
    assert not import_save(text, path)
    assert not path.exists()
