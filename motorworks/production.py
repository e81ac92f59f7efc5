"""Production effort (in PU) and the factory capacity accountant."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from business_catalog import FactoryTier
from config import FACTORY_TIERS, INDUCTION_TURBO
from motorworks.entities import CarModel, Engine, WorldState
from motorworks.mathutil import round_half_up
from parts_catalog import BODY_TYPES

Producible = Union[Engine, CarModel]

ENGINE_BASE_EFFORT = 2.0
CAR_BASE_EFFORT = 10.0
IN_HOUSE_ENGINE_EFFORT = 2.0


def engine_effort(engine: Engine) -> float:
    effort = ENGINE_BASE_EFFORT
    if engine.layout in ("V10", "V12"):
        effort += 1
    if engine.induction == INDUCTION_TURBO:
        effort += 0.5
    return effort


def car_effort(car: CarModel) -> float:
    effort = CAR_BASE_EFFORT
    if not car.is_outsourced_engine:
        effort += IN_HOUSE_ENGINE_EFFORT
    body = BODY_TYPES.get(car.design.body_type_id)
    if body is not None:
        if body.body_class in ("luxury", "utility"):
            effort += 2
        name = body.display_name.lower()
        if "compact" in name or "hatch" in name:
            effort -= 1
    effort *= 1 + (car.design.interior_quality / 100) * 0.5
    return round_half_up(effort, 1)


def unit_effort(item: Producible) -> float:
    """PU needed to build one unit of an engine or a car."""
    if isinstance(item, CarModel):
        return car_effort(item)
    if isinstance(item, Engine):
        return engine_effort(item)
    raise TypeError(f"cannot compute production effort for {type(item).__name__}")


def factory_tier(level: int) -> FactoryTier:
    for tier in FACTORY_TIERS:
        if tier.level == level:
            return tier
    return FACTORY_TIERS[0]


def next_factory_tier(level: int) -> FactoryTier | None:
    for tier in FACTORY_TIERS:
        if tier.level == level + 1:
            return tier
    return None


@dataclass(frozen=True)
class CapacityLoad:
    used: float
    capacity: int
    cars: float
    b2b: float

    @property
    def free(self) -> float:
        return self.capacity - self.used


def calculate_current_load(state: WorldState) -> CapacityLoad:
    cars = 0.0
    for car in state.developed_cars:
        if car.production is not None and car.production.is_active:
            cars += car.production.weekly_rate * car.production.pu_per_unit

    engines = {engine.id: engine for engine in state.unlocked_engines}
    b2b = 0.0
    for contract in state.active_contracts:
        engine = engines.get(contract.engine_id)
        if engine is None:
            continue
        b2b += contract.weekly_target * unit_effort(engine)

    return CapacityLoad(
        used=cars + b2b,
        capacity=factory_tier(state.factory.level).weekly_capacity_pu,
        cars=cars,
        b2b=b2b,
    )
