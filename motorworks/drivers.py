"""Procedural race drivers and their yearly aging curve."""
from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import Tuple

from motorworks.entities import Driver, DriverStats

FIRST_NAMES = (
    "Ayrton", "Alain", "Niki", "James", "Michael", "Lewis", "Max", "Sebastian", "Fernando", "Kimi",
    "Mario", "Emerson", "Nelson", "Graham", "Jim", "Jackie", "Jochen", "Stirling", "Juan", "Carlos",
    "Yuki", "Daniel", "Lando", "George", "Charles", "Pierre", "Esteban", "Valtteri", "Kevin", "Nico",
)

LAST_NAMES = (
    "Senna", "Prost", "Lauda", "Hunt", "Schumacher", "Hamilton", "Verstappen", "Vettel", "Alonso", "Raikkonen",
    "Andretti", "Fittipaldi", "Piquet", "Hill", "Clark", "Stewart", "Rindt", "Moss", "Fangio", "Sainz",
    "Tsunoda", "Ricciardo", "Norris", "Russell", "Leclerc", "Gasly", "Ocon", "Bottas", "Magnussen", "Rosberg",
)

MIN_SKILL = 10
PRIME_AGE = 25
DECLINE_AGE = 32

DEVELOPING = "is developing rapidly!"
PEAK = "is at their peak performance."
DECLINING = "is showing signs of aging (Reflexes down)."


def _roll(rng: random.Random, count: int) -> int:
    """Uniform integer in ``[0, count)``."""
    return math.floor(rng.random() * count)


def _talent(rng: random.Random) -> int:
    roll = rng.random()
    if roll > 0.95:
        return 95 + _roll(rng, 5)
    if roll > 0.8:
        return 80 + _roll(rng, 15)
    return 40 + _roll(rng, 40)


def generate_driver(rng: random.Random, current_year: int, driver_id: str) -> Driver:
    age = 18 + _roll(rng, 12)
    talent = _talent(rng)

    developed = min(1.0, (age - 16) / 10)
    skill = math.floor(talent * developed * (0.8 + rng.random() * 0.4))
    skill = min(talent, max(MIN_SKILL, skill))

    aggression = _roll(rng, 100)
    experience = min(100, max(0, (age - 18) * 5 + _roll(rng, 10)))
    salary = 5000 + skill * 1000 + aggression * 200 + talent * 500

    return Driver(
        id=driver_id,
        name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
        age=age,
        salary=salary,
        contract_end_year=current_year + 1 + _roll(rng, 3),
        stats=DriverStats(skill=skill, talent=talent, experience=experience, aggression=aggression),
        market_value=salary * 12,
    )


def age_driver(driver: Driver, rng: random.Random) -> Tuple[Driver, str]:
    """Advance a driver by one year; the message is empty when nothing notable happened."""
    age = driver.age + 1
    stats = driver.stats
    skill = stats.skill
    message = ""

    if age < PRIME_AGE:
        grown = min(stats.talent, skill + 1 + _roll(rng, 5))
        if grown > skill:
            message = DEVELOPING
        skill = grown
    elif age <= DECLINE_AGE:
        if skill < stats.talent and rng.random() > 0.7:
            skill = min(stats.talent, skill + 1)
            message = PEAK
    elif rng.random() < (age - DECLINE_AGE) * 0.1:
        skill = max(MIN_SKILL, skill - (1 + _roll(rng, 3)))
        message = DECLINING

    aged = replace(
        driver,
        age=age,
        stats=replace(stats, skill=min(skill, stats.talent), experience=min(100, stats.experience + 5)),
    )
    return aged, message
