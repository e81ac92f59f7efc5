"""Weekly retail demand for a released car."""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, Optional

from config import INTERMEDIATE, LUXURY, POPULAR, SUPERCAR
from motorworks.entities import CarModel, WorldEvent
from motorworks.mathutil import round_half_up
from motorworks.timeline import year_for_day

MARKET_MARGINS: Dict[str, float] = {
    POPULAR: 1.20,
    INTERMEDIATE: 1.35,
    LUXURY: 1.60,
    SUPERCAR: 2.00,
}

# segment -> (volume multiplier, soft weekly ceiling)
MARKET_VOLUME: Dict[str, tuple[float, int]] = {
    POPULAR: (4.0, 5000),
    INTERMEDIATE: (2.0, 2000),
    LUXURY: (0.5, 300),
    SUPERCAR: (0.1, 40),
}

DEMAND_WALL_RATIO = 2.0
QUALITY_CLIFF = 30
HYPE_SCORE = 80
ECONOMY_FUEL_THRESHOLD = 30
PERFORMANCE_ACCEL_THRESHOLD = 7.0


@dataclass(frozen=True)
class SalesResult:
    units_sold: int = 0
    revenue: int = 0
    gross_profit: int = 0
    remaining_stock: int = 0


def calculate_fair_market_value(car: CarModel, current_year: int) -> int:
    margin = MARKET_MARGINS.get(car.design.market, MARKET_MARGINS[POPULAR])
    value = car.production_cost * margin
    age = current_year - year_for_day(car.launch_day)
    if age > 5:
        value *= 0.85
    if age > 10:
        value *= 0.70
    return round_half_up(value)


def _price_multiplier(ratio: float) -> float:
    if ratio < 0.95:
        return 1.5 + (1 - ratio) * 2
    if ratio <= 1.2:
        return 1.0
    if ratio <= 1.5:
        return 0.5
    return 0.1


def calculate_weekly_sales(
    car: CarModel,
    brand_prestige: int,
    current_year: int,
    active_event: Optional[WorldEvent],
    rng: random.Random,
) -> SalesResult:
    if car.inventory <= 0 or not car.is_released:
        return SalesResult(remaining_stock=max(0, car.inventory))

    fair_value = calculate_fair_market_value(car, current_year)
    if fair_value <= 0 or car.base_price > fair_value * DEMAND_WALL_RATIO:
        return SalesResult(remaining_stock=car.inventory)

    score = car.final_review_score
    if score < QUALITY_CLIFF:
        score /= 10
    prestige_factor = 1 + min(0.5, brand_prestige / 2000)
    demand = 50 * (score / 50) * prestige_factor * _price_multiplier(car.base_price / fair_value)
    if car.final_review_score > HYPE_SCORE:
        demand *= 2

    multiplier, ceiling = MARKET_VOLUME.get(car.design.market, MARKET_VOLUME[POPULAR])
    demand *= multiplier
    if demand > ceiling:
        demand = ceiling + math.sqrt(demand - ceiling) * 5

    if active_event is not None:
        modifiers = active_event.modifiers
        demand *= modifiers.demand_multiplier
        if modifiers.preferred_engine_type == "economy":
            demand *= 1.5 if car.stats.fuel_economy >= ECONOMY_FUEL_THRESHOLD else 0.5
        elif modifiers.preferred_engine_type == "performance":
            demand *= 1.3 if car.stats.acceleration <= PERFORMANCE_ACCEL_THRESHOLD else 0.8

    demand *= 0.9 + rng.random() * 0.2

    sold = min(math.floor(max(0.0, demand)), car.inventory)
    revenue = sold * car.base_price
    return SalesResult(
        units_sold=sold,
        revenue=revenue,
        gross_profit=revenue - sold * car.production_cost,
        remaining_stock=car.inventory - sold,
    )
