"""World snapshot <-> JSON document.

Decoding is forgiving: every record goes through a ``_normalize_*`` helper
that fills in missing fields, and older documents are migrated in place
(single ``driver`` slot, scalar ``current_debt``, missing tutorial state).
Only a non-numeric ``money`` field makes a document unusable.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import os
import random
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import (
    END_GAME_STATES,
    FACTORY_TIERS,
    GAME_SPEEDS,
    HISTORY_LIMIT,
    INITIAL_FREE_AGENTS,
    LEGACY_LOAN_ID,
    LEGACY_LOAN_NAME,
    LEGACY_LOAN_RATE,
    NOTIFICATION_LIMIT,
    PLAYING,
    RACE_HISTORY_LIMIT,
    RACING_BASELINE_PERFORMANCE,
    RACING_BASELINE_RELIABILITY,
    RACING_TEAM_NAME,
    SAVE_FILE,
    SAVE_VERSION,
    START_YEAR,
    STARTING_MONEY,
    STARTING_PRESTIGE,
    STARTING_RESEARCH_POINTS,
)
from event_catalog import EventModifiers
from motorworks.drivers import generate_driver
from motorworks.entities import (
    CarDesign,
    CarModel,
    CarStats,
    Contract,
    Driver,
    DriverStats,
    Engine,
    FactoryState,
    HistoryEntry,
    Loan,
    Notification,
    ProductionState,
    RaceEntry,
    RaceResult,
    RacingTeam,
    Review,
    TutorialState,
    WorldEvent,
    WorldState,
)

logger = logging.getLogger(__name__)


def new_game_state(rng: random.Random) -> WorldState:
    """A fresh company on 1 January of the start year with a small driver market."""
    state = WorldState()
    state.free_agents = [
        generate_driver(rng, START_YEAR, state.next_id("drv")) for _ in range(INITIAL_FREE_AGENTS)
    ]
    return state


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def state_to_dict(state: WorldState) -> Dict[str, Any]:
    data = asdict(state)
    data["notifications"] = data["notifications"][:NOTIFICATION_LIMIT]
    data["history_log"] = data["history_log"][-HISTORY_LIMIT:]
    data["version"] = SAVE_VERSION
    return data


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _int(value: Any, default: int = 0) -> int:
    return int(value) if _is_number(value) else default


def _float(value: Any, default: float = 0.0) -> float:
    return float(value) if _is_number(value) else default


def _number(value: Any, default: float = 0) -> float:
    """Keep ints as ints so a decoded snapshot compares equal to its source."""
    return value if _is_number(value) else default


def _str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _records(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if isinstance(entry, dict)]


def _normalize_engine(raw: Dict[str, Any]) -> Engine:
    unlock_year = raw.get("unlock_year")
    return Engine(
        id=_str(raw.get("id")),
        name=_str(raw.get("name")),
        layout=_str(raw.get("layout"), "I4"),
        block=_str(raw.get("block"), "cast_iron"),
        fuel=_str(raw.get("fuel"), "gasoline"),
        valvetrain=_str(raw.get("valvetrain"), "sohc"),
        induction=_str(raw.get("induction"), "na"),
        bore=_float(raw.get("bore"), 86.0),
        stroke=_float(raw.get("stroke"), 86.0),
        quality=_int(raw.get("quality"), 50),
        displacement=_int(raw.get("displacement")),
        horsepower=_int(raw.get("horsepower")),
        torque=_int(raw.get("torque")),
        redline=_int(raw.get("redline")),
        weight=_int(raw.get("weight")),
        reliability=_int(raw.get("reliability"), 50),
        fuel_efficiency=_int(raw.get("fuel_efficiency"), 50),
        production_cost=_int(raw.get("production_cost")),
        is_supplier=bool(raw.get("is_supplier", False)),
        unlock_year=int(unlock_year) if _is_number(unlock_year) else None,
    )


def _normalize_design(raw: Any) -> CarDesign:
    if not isinstance(raw, dict):
        return CarDesign()
    defaults = CarDesign()
    cosmetics = raw.get("cosmetics")
    features = raw.get("features")
    return CarDesign(
        market=_str(raw.get("market"), defaults.market),
        niche=_str(raw.get("niche"), defaults.niche),
        frame_type=_str(raw.get("frame_type"), defaults.frame_type),
        frame_material=_str(raw.get("frame_material"), defaults.frame_material),
        wheelbase=_number(raw.get("wheelbase"), defaults.wheelbase),
        engine_bay_size=_number(raw.get("engine_bay_size"), defaults.engine_bay_size),
        drivetrain_id=_str(raw.get("drivetrain_id"), defaults.drivetrain_id),
        suspension_id=_str(raw.get("suspension_id"), defaults.suspension_id),
        tire_id=_str(raw.get("tire_id"), defaults.tire_id),
        ride_height=_number(raw.get("ride_height"), defaults.ride_height),
        body_type_id=_str(raw.get("body_type_id"), defaults.body_type_id),
        cosmetics={str(k): str(v) for k, v in cosmetics.items()} if isinstance(cosmetics, dict) else {},
        features={str(k): str(v) for k, v in features.items()} if isinstance(features, dict) else {},
        design_era=_str(raw.get("design_era"), defaults.design_era),
        interior_quality=_number(raw.get("interior_quality"), defaults.interior_quality),
        suspension_stiffness=_number(raw.get("suspension_stiffness"), defaults.suspension_stiffness),
    )


def _normalize_stats(raw: Any) -> CarStats:
    raw = raw if isinstance(raw, dict) else {}
    return CarStats(
        acceleration=_number(raw.get("acceleration"), 25.0),
        top_speed=_number(raw.get("top_speed"), 100),
        handling=_number(raw.get("handling"), 10),
        comfort=_number(raw.get("comfort"), 5),
        safety=_number(raw.get("safety"), 10),
        adaptability=_number(raw.get("adaptability"), 0),
        fuel_economy=_number(raw.get("fuel_economy"), 0.0),
    )


def _normalize_production(raw: Any) -> Optional[ProductionState]:
    if not isinstance(raw, dict):
        return None
    target = max(0, _int(raw.get("total_batch_target")))
    return ProductionState(
        is_active=bool(raw.get("is_active", False)),
        total_batch_target=target,
        units_produced=min(target, max(0, _int(raw.get("units_produced")))),
        weekly_rate=max(0, _int(raw.get("weekly_rate"))),
        pu_per_unit=_number(raw.get("pu_per_unit"), 0.0),
    )


def _normalize_car(raw: Dict[str, Any]) -> CarModel:
    reviews = tuple(
        Review(
            reviewer_id=_str(review.get("reviewer_id")),
            score=_number(review.get("score"), 0.0),
            comment=_str(review.get("comment")),
        )
        for review in _records(raw.get("reviews"))
    )
    return CarModel(
        id=_str(raw.get("id")),
        name=_str(raw.get("name")),
        engine_id=_str(raw.get("engine_id")),
        design=_normalize_design(raw.get("design")),
        stats=_normalize_stats(raw.get("stats")),
        production_cost=_int(raw.get("production_cost")),
        weight=_int(raw.get("weight")),
        aerodynamics=_number(raw.get("aerodynamics"), 0.0),
        market_appeal=_int(raw.get("market_appeal")),
        base_price=_int(raw.get("base_price")),
        is_outsourced_engine=bool(raw.get("is_outsourced_engine", False)),
        inventory=max(0, _int(raw.get("inventory"))),
        total_units_sold=max(0, _int(raw.get("total_units_sold"))),
        batch_size=max(0, _int(raw.get("batch_size"))),
        launch_day=_int(raw.get("launch_day")),
        is_released=bool(raw.get("is_released", False)),
        reviews=reviews,
        final_review_score=_int(raw.get("final_review_score")),
        production=_normalize_production(raw.get("production")),
    )


def _normalize_driver(raw: Dict[str, Any]) -> Driver:
    stats = raw.get("stats") if isinstance(raw.get("stats"), dict) else {}
    talent = _int(stats.get("talent"), 50)
    return Driver(
        id=_str(raw.get("id")),
        name=_str(raw.get("name"), "Unknown Driver"),
        age=_int(raw.get("age"), 25),
        salary=_int(raw.get("salary")),
        contract_end_year=_int(raw.get("contract_end_year"), START_YEAR),
        stats=DriverStats(
            skill=min(talent, _number(stats.get("skill"), 10)),
            talent=talent,
            experience=_number(stats.get("experience"), 0),
            aggression=_int(stats.get("aggression"), 50),
        ),
        market_value=_int(raw.get("market_value")),
    )


def _normalize_race_result(raw: Any) -> Optional[RaceResult]:
    if not isinstance(raw, dict):
        return None
    entries = tuple(
        RaceEntry(
            driver_id=_str(entry.get("driver_id")),
            driver_name=_str(entry.get("driver_name")),
            position=_int(entry.get("position"), 20),
            crashed=bool(entry.get("crashed", False)),
            mechanical_failure=bool(entry.get("mechanical_failure", False)),
        )
        for entry in _records(raw.get("entries"))
    )
    return RaceResult(
        date=_int(raw.get("date")),
        category_id=_str(raw.get("category_id")),
        entries=entries,
        prestige_change=_int(raw.get("prestige_change")),
        prize_money=_int(raw.get("prize_money")),
        homologation=_str(raw.get("homologation"), "VALID"),
    )


def _normalize_racing_team(raw: Any) -> RacingTeam:
    if not isinstance(raw, dict):
        return RacingTeam()
    raw_drivers = raw.get("drivers")
    if raw_drivers is None and isinstance(raw.get("driver"), dict):
        raw_drivers = [raw["driver"]]
    history = raw.get("history")
    return RacingTeam(
        name=_str(raw.get("name"), RACING_TEAM_NAME),
        active_category_id=raw.get("active_category_id") if isinstance(raw.get("active_category_id"), str) else None,
        selected_engine_id=raw.get("selected_engine_id") if isinstance(raw.get("selected_engine_id"), str) else None,
        drivers=tuple(_normalize_driver(driver) for driver in _records(raw_drivers)),
        budget=max(0, _int(raw.get("budget"))),
        car_performance=_number(raw.get("car_performance"), RACING_BASELINE_PERFORMANCE),
        car_reliability=_number(raw.get("car_reliability"), RACING_BASELINE_RELIABILITY),
        last_result=_normalize_race_result(raw.get("last_result")),
        history=tuple(int(pos) for pos in history if _is_number(pos))[:RACE_HISTORY_LIMIT]
        if isinstance(history, list)
        else (),
    )


def _normalize_contract(raw: Dict[str, Any]) -> Contract:
    total = max(0, _int(raw.get("total_quantity")))
    return Contract(
        id=_str(raw.get("id")),
        client_id=_str(raw.get("client_id")),
        client_name=_str(raw.get("client_name")),
        engine_id=_str(raw.get("engine_id")),
        total_quantity=total,
        price_per_unit=_int(raw.get("price_per_unit")),
        duration_weeks=max(1, _int(raw.get("duration_weeks"), 1)),
        created_at=_int(raw.get("created_at")),
        delivered_quantity=min(total, max(0, _int(raw.get("delivered_quantity")))),
        status=_str(raw.get("status"), "pending"),
    )


def _normalize_loan(raw: Dict[str, Any]) -> Loan:
    return Loan(
        id=_str(raw.get("id")),
        tier_id=_str(raw.get("tier_id")),
        name=_str(raw.get("name")),
        principal=_int(raw.get("principal")),
        interest_rate=_number(raw.get("interest_rate"), LEGACY_LOAN_RATE),
        date_taken=_int(raw.get("date_taken")),
    )


def _normalize_event(raw: Any) -> Optional[WorldEvent]:
    if not isinstance(raw, dict):
        return None
    mods = raw.get("modifiers") if isinstance(raw.get("modifiers"), dict) else {}
    return WorldEvent(
        id=_str(raw.get("id")),
        title=_str(raw.get("title")),
        description=_str(raw.get("description")),
        event_type=_str(raw.get("event_type"), "ECONOMIC"),
        start_date=_int(raw.get("start_date")),
        duration_weeks=_int(raw.get("duration_weeks"), 1),
        modifiers=EventModifiers(
            demand_multiplier=_number(mods.get("demand_multiplier"), 1.0),
            production_cost_multiplier=_number(mods.get("production_cost_multiplier"), 1.0),
            interest_rate_offset=_number(mods.get("interest_rate_offset"), 0.0),
            preferred_engine_type=_str(mods.get("preferred_engine_type")),
        ),
    )


def _normalize_tutorial(raw: Any, has_cars: bool) -> TutorialState:
    if not isinstance(raw, dict):
        # Saves from before the tutorial existed: anyone with a car already knows the ropes.
        return TutorialState(is_active=False, current_step=0, is_completed=has_cars)
    return TutorialState(
        is_active=bool(raw.get("is_active", False)),
        current_step=_int(raw.get("current_step")),
        is_completed=bool(raw.get("is_completed", False)),
    )


def state_from_dict(data: Dict[str, Any]) -> WorldState:
    if not isinstance(data, dict):
        raise TypeError("save document must be a JSON object")
    if not _is_number(data.get("money")):
        raise ValueError("save document has no numeric money field")

    state = WorldState()
    state.money = _int(data["money"])
    state.research_points = max(0, _int(data.get("research_points"), STARTING_RESEARCH_POINTS))
    state.date = max(0, _int(data.get("date")))
    state.brand_prestige = max(0, _int(data.get("brand_prestige"), STARTING_PRESTIGE))
    state.is_paused = bool(data.get("is_paused", True))
    speed = _int(data.get("game_speed"), 1)
    state.game_speed = speed if speed in GAME_SPEEDS else 1
    state.last_weekly_profit = _int(data.get("last_weekly_profit"))
    end_game = _str(data.get("end_game_state"), PLAYING)
    state.end_game_state = end_game if end_game in END_GAME_STATES else PLAYING
    state.has_won = bool(data.get("has_won", False))

    factory = data.get("factory") if isinstance(data.get("factory"), dict) else {}
    levels = {tier.level for tier in FACTORY_TIERS}
    level = _int(factory.get("level"), 1)
    state.factory = FactoryState(level=level if level in levels else 1)

    if "active_loans" in data:
        state.active_loans = [_normalize_loan(loan) for loan in _records(data.get("active_loans"))]
    elif _int(data.get("current_debt")) > 0:
        state.active_loans = [
            Loan(LEGACY_LOAN_ID, LEGACY_LOAN_ID, LEGACY_LOAN_NAME, _int(data["current_debt"]), LEGACY_LOAN_RATE, 0)
        ]
    state.total_interest_paid = _int(data.get("total_interest_paid"))
    state.active_event = _normalize_event(data.get("active_event"))

    state.unlocked_engines = [_normalize_engine(engine) for engine in _records(data.get("unlocked_engines"))]
    state.developed_cars = [_normalize_car(car) for car in _records(data.get("developed_cars"))]
    state.racing_team = _normalize_racing_team(data.get("racing_team"))
    state.free_agents = [_normalize_driver(driver) for driver in _records(data.get("free_agents"))]
    tech_ids = data.get("unlocked_tech_ids")
    state.unlocked_tech_ids = [t for t in tech_ids if isinstance(t, str)] if isinstance(tech_ids, list) else []
    state.contract_offers = [_normalize_contract(c) for c in _records(data.get("contract_offers"))]
    state.active_contracts = [_normalize_contract(c) for c in _records(data.get("active_contracts"))]
    state.history_log = [
        HistoryEntry(
            date_label=_str(entry.get("date_label")),
            money=_int(entry.get("money")),
            sales_volume=_int(entry.get("sales_volume")),
            prestige=_int(entry.get("prestige")),
        )
        for entry in _records(data.get("history_log"))
    ][-HISTORY_LIMIT:]
    state.notifications = [
        Notification(
            id=_int(entry.get("id")),
            text=_str(entry.get("text")),
            date=_int(entry.get("date")),
            severity=_str(entry.get("severity"), "info"),
        )
        for entry in _records(data.get("notifications"))
    ][:NOTIFICATION_LIMIT]
    state.tutorial = _normalize_tutorial(data.get("tutorial"), bool(state.developed_cars))
    state.id_counter = max(0, _int(data.get("id_counter")))
    return state


# ---------------------------------------------------------------------------
# Save / load / export / import
# ---------------------------------------------------------------------------

def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


def save_game(state: WorldState, path: Path = SAVE_FILE) -> None:
    _write_atomic(path, json.dumps(state_to_dict(state), indent=2))


def load_game(path: Path = SAVE_FILE, rng: Optional[random.Random] = None) -> WorldState:
    """Load a snapshot, falling back to a new game when the file is missing or corrupt."""
    rng = rng if rng is not None else random.Random()
    if not path.exists():
        return new_game_state(rng)
    try:
        return state_from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, TypeError, ValueError, KeyError, OverflowError) as exc:
        logger.warning("Could not load save %s (%s); starting a new game", path, exc)
        return new_game_state(rng)


def export_save(state: WorldState) -> str:
    return json.dumps(state_to_dict(state))


def _decode_import(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Older exports were base64-wrapped.
    decoded = base64.b64decode(text.strip(), validate=True).decode("utf-8")
    return json.loads(decoded)


def import_save(text: str, path: Path = SAVE_FILE) -> bool:
    """Validate an exported document and write it to ``path``.

    The live session is not touched; the import takes effect on the next load.
    """
    try:
        data = _decode_import(text)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValueError) as exc:
        logger.warning("Rejected save import: %s", exc)
        return False

    if not isinstance(data, dict):
        logger.warning("Rejected save import: document is not an object")
        return False
    if not _is_number(data.get("money")) or not _is_number(data.get("date")):
        logger.warning("Rejected save import: money and date must be numbers")
        return False
    if not isinstance(data.get("factory"), dict):
        logger.warning("Rejected save import: factory state missing")
        return False

    try:
        _write_atomic(path, json.dumps(data, indent=2))
    except OSError as exc:
        logger.warning("Could not write imported save %s: %s", path, exc)
        return False
    return True
