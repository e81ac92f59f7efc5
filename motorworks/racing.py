"""Homologation checks and the weekly race simulation."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List

from config import BLOCK_CAST_IRON, FUEL_GASOLINE, INDUCTION_NA, INDUCTION_TURBO, VALVETRAIN_SOHC
from motorworks.engine_physics import CYLINDER_LAYOUTS
from motorworks.entities import Engine, RaceEntry, RaceResult, RacingTeam
from motorworks.mathutil import clamp, round_half_up
from racing_catalog import RacingCategory

VALID = "VALID"
RESTRICTED = "RESTRICTED"
BANNED = "BANNED"

DISPLACEMENT_TOLERANCE = 1.05
LAST_PLACE = 20
NO_DRIVER_PRESTIGE = -2
BANNED_PRESTIGE = -5
IDEAL_ENGINE_WEIGHT = 100

FALLBACK_ENGINE = Engine(
    id="",
    name="Generic Race Engine",
    layout="I4",
    block=BLOCK_CAST_IRON,
    fuel=FUEL_GASOLINE,
    valvetrain=VALVETRAIN_SOHC,
    induction=INDUCTION_NA,
    bore=80.0,
    stroke=80.0,
    quality=50,
    displacement=1600,
    horsepower=80,
    torque=120,
    redline=6000,
    weight=150,
    reliability=50,
    fuel_efficiency=50,
    production_cost=0,
)


@dataclass(frozen=True)
class HomologationResult:
    status: str
    reason: str

    @property
    def is_valid(self) -> bool:
        return self.status != BANNED


def validate_engine_for_category(engine: Engine, category: RacingCategory) -> HomologationResult:
    regs = category.regulations
    cylinders = CYLINDER_LAYOUTS[engine.layout].cylinders

    if engine.displacement > regs.max_displacement * DISPLACEMENT_TOLERANCE:
        return HomologationResult(BANNED, f"Displacement > {regs.max_displacement}cc")
    if cylinders not in regs.allowed_cylinders:
        return HomologationResult(BANNED, f"Invalid Cylinder Count ({cylinders})")
    if engine.induction == INDUCTION_TURBO and not regs.forced_induction_allowed:
        return HomologationResult(BANNED, "Forced Induction Banned")
    if engine.horsepower > regs.max_power:
        return HomologationResult(RESTRICTED, f"Power capped at {regs.max_power}HP")
    return HomologationResult(VALID, "Homologated")


def _race_reward(position: int, category: RacingCategory) -> tuple[int, int]:
    """Return ``(prestige, prize)`` for a classified finish."""
    if position == 1:
        return category.prestige_reward, round_half_up(category.weekly_cost * 6)
    if position <= 3:
        return category.prestige_reward // 2, round_half_up(category.weekly_cost * 2.5)
    if position <= 10:
        return 1, int(category.weekly_cost * 0.8)
    return -1, 0


def simulate_race(
    team: RacingTeam,
    category: RacingCategory,
    engine: Engine | None,
    rng: random.Random,
    date: int = 0,
) -> RaceResult:
    if not team.drivers:
        return RaceResult(date, category.key, (), NO_DRIVER_PRESTIGE, 0)

    engine = engine or FALLBACK_ENGINE
    homologation = validate_engine_for_category(engine, category)
    if homologation.status == BANNED:
        entries = tuple(
            RaceEntry(driver.id, driver.name, LAST_PLACE, crashed=True) for driver in team.drivers
        )
        return RaceResult(date, category.key, entries, BANNED_PRESTIGE, 0, homologation=BANNED)

    regs = category.regulations
    effective_hp = regs.max_power if homologation.status == RESTRICTED else engine.horsepower
    weight_penalty = max(0, engine.weight - IDEAL_ENGINE_WEIGHT) * (100 / (regs.min_weight or 1000))
    strategy = (engine.fuel_efficiency - 50) * 0.1
    risk = category.risk_factor or 5

    scored = []
    for driver in team.drivers:
        stats = driver.stats
        mechanical_failure = False
        if rng.random() * 100 > (engine.reliability + team.car_reliability) / 2 + 20:
            mechanical_failure = rng.random() > 0.8

        crash_chance = (stats.aggression / (stats.skill or 1)) * risk * 0.01
        crash_chance = max(0.01, crash_chance - stats.experience * 0.002)
        if rng.random() < crash_chance or mechanical_failure:
            scored.append((driver, -1.0, True, mechanical_failure))
            continue

        score = (
            team.car_performance * 0.5
            + (effective_hp / 10) * 0.8 - weight_penalty + strategy
            + stats.skill * 0.3
            + stats.aggression * 0.1
            + rng.random() * 10
        )
        scored.append((driver, score, False, False))

    scored.sort(key=lambda item: item[1], reverse=True)

    entries: List[RaceEntry] = []
    used_positions = set()
    prestige = 0
    prize = 0
    for driver, score, crashed, mechanical_failure in scored:
        if crashed:
            entries.append(RaceEntry(driver.id, driver.name, LAST_PLACE, True, mechanical_failure))
            prestige -= 1
            continue
        position = int(clamp(10 - round_half_up((score - category.difficulty) / 2.5), 1, 19))
        while position in used_positions and position < LAST_PLACE:
            position += 1
        used_positions.add(position)
        delta, money = _race_reward(position, category)
        prestige += delta
        prize += money
        entries.append(RaceEntry(driver.id, driver.name, position))

    return RaceResult(date, category.key, tuple(entries), prestige, prize, homologation=homologation.status)
