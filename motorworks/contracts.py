"""B2B engine supply offers.

Offers are generated without looking at factory capacity; the accept
command is the only place capacity is enforced.
"""
from __future__ import annotations

import math
import random
from typing import Sequence

from business_catalog import CLIENT_COMPANIES
from config import BLOCK_ALUMINUM, INDUCTION_TURBO, VALVETRAIN_DOHC
from motorworks.entities import Contract, Engine

MIN_DURATION_WEEKS = 10
DURATION_SPREAD_WEEKS = 30
HIGH_TECH_BONUS = 0.15
PREFERENCE_BONUS = 0.05


def is_high_tech(engine: Engine) -> bool:
    features = (
        engine.induction == INDUCTION_TURBO,
        engine.block == BLOCK_ALUMINUM,
        engine.valvetrain == VALVETRAIN_DOHC,
    )
    return sum(features) >= 2


def _base_weekly_volume(engine: Engine) -> int:
    if engine.production_cost > 5000:
        return 30
    if engine.production_cost > 2000:
        return 100
    return 300


def generate_contract_offer(
    engines: Sequence[Engine],
    date: int,
    rng: random.Random,
    contract_id: str,
) -> Contract | None:
    if not engines:
        return None

    client = rng.choice(CLIENT_COMPANIES)
    engine = rng.choice(list(engines))

    duration = MIN_DURATION_WEEKS + math.floor(rng.random() * DURATION_SPREAD_WEEKS)
    weekly = math.floor(_base_weekly_volume(engine) * (0.5 + rng.random()))

    markup = 1.1 + rng.random() * 0.25
    if is_high_tech(engine):
        markup += HIGH_TECH_BONUS
    if client.preference == "performance" and engine.horsepower > 200:
        markup += PREFERENCE_BONUS
    if client.preference == "economy" and engine.fuel_efficiency > 60:
        markup += PREFERENCE_BONUS

    return Contract(
        id=contract_id,
        client_id=client.key,
        client_name=client.display_name,
        engine_id=engine.id,
        total_quantity=weekly * duration,
        price_per_unit=math.floor(engine.production_cost * markup),
        duration_weeks=duration,
        created_at=date,
    )
