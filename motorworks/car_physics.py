"""Car stat calculator: weight, cost, aero and the derived driving scores."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from config import (
    ERA_AERO_90S,
    ERA_BOX_70S,
    FRAME_LADDER,
    INDUCTION_TURBO,
    MATERIAL_ALUMINUM,
    MATERIAL_CARBON,
    MATERIAL_GALVANIZED,
    MATERIAL_STEEL,
    NOVELTY_WINDOW_YEARS,
)
from motorworks.entities import CarDesign, CarModel, CarStats, Engine
from motorworks.mathutil import clamp, round_half_up
from parts_catalog import (
    BODY_TYPES,
    CAR_FEATURES,
    COSMETIC_PARTS,
    DRIVETRAINS,
    SUSPENSIONS,
    TIRES,
    first_key,
)

# material -> (density, cost multiplier)
FRAME_MATERIALS = {
    MATERIAL_STEEL: (1.0, 1.0),
    MATERIAL_GALVANIZED: (1.05, 1.2),
    MATERIAL_ALUMINUM: (0.6, 2.5),
    MATERIAL_CARBON: (0.4, 6.0),
}

LAYOUT_BAY_VOLUME = {
    "I3": 35,
    "I4": 35,
    "I6": 55,
    "V6": 55,
    "V8": 75,
    "V10": 85,
    "V12": 85,
}
TURBO_BAY_VOLUME = 15
MIN_DRAG = 0.20
NEUTRAL_WHEELBASE = 270
NEUTRAL_RIDE_HEIGHT = 40
FUEL_ECONOMY_REFERENCE_WEIGHT = 1300
ECONOMY_PASSENGER_COST_LIMIT = 18_000


@dataclass(frozen=True)
class CarStatsResult:
    compatible: bool
    message: str = ""
    stats: Optional[CarStats] = None
    production_cost: int = 0
    weight: int = 0
    aerodynamics: float = 0.0
    market_appeal: int = 0


def engine_volume(engine: Engine) -> int:
    """Bay space an engine needs on the 0-100 engine-bay scale."""
    volume = LAYOUT_BAY_VOLUME.get(engine.layout, 50)
    if engine.induction == INDUCTION_TURBO:
        volume += TURBO_BAY_VOLUME
    return volume


def _selected_parts(table, selections):
    parts = []
    for category, part_id in selections.items():
        part = table.get(category, {}).get(part_id)
        if part is not None:
            parts.append(part)
    return parts


def calculate_car_stats(engine: Engine, design: CarDesign) -> CarStatsResult:
    required = engine_volume(engine)
    if design.engine_bay_size < required:
        return CarStatsResult(
            compatible=False,
            message=(
                f"Engine requires size {required}, but bay is only {design.engine_bay_size}. "
                "Increase Bay Size slider!"
            ),
        )

    body = BODY_TYPES.get(design.body_type_id) or BODY_TYPES[first_key(BODY_TYPES)]
    drivetrain = DRIVETRAINS.get(design.drivetrain_id) or DRIVETRAINS[first_key(DRIVETRAINS)]
    suspension = SUSPENSIONS.get(design.suspension_id) or SUSPENSIONS[first_key(SUSPENSIONS)]
    tires = TIRES.get(design.tire_id) or TIRES[first_key(TIRES)]
    running_gear = (drivetrain, suspension, tires)
    features = _selected_parts(CAR_FEATURES, design.features)
    cosmetics = _selected_parts(COSMETIC_PARTS, design.cosmetics)

    density, material_cost = FRAME_MATERIALS.get(design.frame_material, FRAME_MATERIALS[MATERIAL_STEEL])
    interior_ratio = design.interior_quality / 100
    suspension_ratio = design.suspension_stiffness / 100

    # Weight
    chassis_weight = (400 + design.wheelbase * 1.5) * density
    body_weight = (body.base_weight + design.engine_bay_size * 2) * density
    interior_weight = 50 + interior_ratio * 100
    total_weight = round_half_up(
        chassis_weight
        + body_weight
        + interior_weight
        + engine.weight
        + sum(part.weight for part in cosmetics)
        + sum(feature.weight for feature in features)
        + sum(part.weight for part in running_gear)
    )

    # Cost
    chassis_cost = (500 + design.wheelbase * 2 + body.base_cost + design.engine_bay_size * 5) * material_cost
    production_cost = round_half_up(
        chassis_cost
        + engine.production_cost
        + 500 + interior_ratio * 2000
        + 200 + suspension_ratio * 500
        + sum(part.cost for part in cosmetics)
        + sum(feature.cost for feature in features)
        + sum(part.cost for part in running_gear)
    )

    # Aerodynamics
    drag = body.base_drag + sum(part.drag for part in cosmetics)
    if design.design_era == ERA_BOX_70S:
        drag += 0.05
    elif design.design_era == ERA_AERO_90S:
        drag -= 0.03
    ride_ratio = design.ride_height / 100
    if ride_ratio > 0.5:
        drag += (ride_ratio - 0.5) * 0.15
    else:
        drag -= (0.5 - ride_ratio) * 0.05
    drag = max(MIN_DRAG, drag)
    aero = clamp((0.6 - drag) * 200, 0, 100)

    # Acceleration and top speed
    power_to_weight = engine.horsepower / (total_weight / 1000)
    traction = drivetrain.traction or 0.75
    if drivetrain.key == "drive_fwd" and engine.horsepower > 200:
        traction -= 0.1
    acceleration = clamp((1200 / (power_to_weight + 10)) * (1.1 - (traction - 0.75)), 2.5, 25)
    top_speed = 100 + math.sqrt(engine.horsepower) * 9 * (aero / 50)

    # Handling
    handling = aero * 0.2 + suspension_ratio * 30 + 60 * (1 - total_weight / 2000)
    handling -= max(0, (design.ride_height - NEUTRAL_RIDE_HEIGHT) * 0.5)
    handling += max(0, (NEUTRAL_RIDE_HEIGHT - design.ride_height) * 0.2)
    handling += sum(part.sportiness for part in running_gear)
    handling += sum(part.handling for part in cosmetics)
    handling += sum(feature.handling for feature in features)
    handling -= abs(NEUTRAL_WHEELBASE - design.wheelbase) * 0.2
    handling = clamp(handling, 10, 100)

    # Comfort
    comfort = design.interior_quality - suspension_ratio * 30
    comfort += sum(feature.comfort for feature in features)
    comfort += sum(part.comfort for part in running_gear)
    if design.ride_height < 20:
        comfort -= 20 - design.ride_height
    comfort += (design.wheelbase - 250) * 0.2
    comfort = clamp(comfort, 5, 100)

    # Safety
    safety = 10 + (total_weight / 3000) * 30
    if design.frame_material == MATERIAL_ALUMINUM:
        safety -= 5
    safety += sum(feature.safety for feature in features)
    if design.frame_type == FRAME_LADDER and safety > 60:
        safety = 60 + (safety - 60) * 0.5
    safety = clamp(safety, 10, 100)

    # Adaptability
    adaptability = 10 + sum(part.adaptability for part in running_gear)
    if design.ride_height < 30:
        adaptability -= (30 - design.ride_height) * 1.5
    elif design.ride_height > 60:
        adaptability += (design.ride_height - 60) * 0.5
    adaptability = clamp(adaptability, 0, 100)

    appeal = 50 + comfort * 0.25 + handling * 0.2 + safety * 0.2 + aero * 0.1 + adaptability * 0.1
    if body.body_class == "luxury":
        if design.features.get("interior") != "int_leather":
            appeal -= 20
        if "auto" not in design.features.get("transmission", ""):
            appeal -= 10
    if (body.body_class == "utility" or "SUV" in body.display_name) and adaptability < 60:
        appeal -= 30
    if body.body_class == "sport" and design.ride_height > NEUTRAL_RIDE_HEIGHT:
        appeal -= design.ride_height - NEUTRAL_RIDE_HEIGHT
    if body.body_class == "passenger" and production_cost > ECONOMY_PASSENGER_COST_LIMIT:
        appeal -= 10

    fuel_economy = round_half_up(engine.fuel_efficiency * 0.5 * FUEL_ECONOMY_REFERENCE_WEIGHT / total_weight, 1)

    return CarStatsResult(
        compatible=True,
        stats=CarStats(
            acceleration=round_half_up(acceleration, 1),
            top_speed=round_half_up(top_speed),
            handling=round_half_up(handling),
            comfort=round_half_up(comfort),
            safety=round_half_up(safety),
            adaptability=round_half_up(adaptability),
            fuel_economy=fuel_economy,
        ),
        production_cost=production_cost,
        weight=total_weight,
        aerodynamics=aero,
        market_appeal=round_half_up(appeal),
    )


def build_car_model(car_id: str, name: str, engine: Engine, design: CarDesign, base_price: int) -> CarModel | None:
    """Assemble an unreleased car record, or ``None`` when the engine does not fit."""
    result = calculate_car_stats(engine, design)
    if not result.compatible or result.stats is None:
        return None
    return CarModel(
        id=car_id,
        name=name,
        engine_id=engine.id,
        design=design,
        stats=result.stats,
        production_cost=result.production_cost,
        weight=result.weight,
        aerodynamics=result.aerodynamics,
        market_appeal=result.market_appeal,
        base_price=int(base_price),
        is_outsourced_engine=engine.is_supplier,
    )


def _is_novel(unlock_year: int, current_year: int) -> bool:
    return current_year - unlock_year <= NOVELTY_WINDOW_YEARS


def calculate_research_reward(design: CarDesign, production_cost: int, current_year: int) -> int:
    """Research points earned by engineering a new model."""
    reward = 100 + production_cost // 100
    body = BODY_TYPES.get(design.body_type_id)
    if body is not None and _is_novel(body.unlock_year, current_year):
        reward += 20
    for table, part_id, bonus in (
        (DRIVETRAINS, design.drivetrain_id, 15),
        (SUSPENSIONS, design.suspension_id, 15),
        (TIRES, design.tire_id, 10),
    ):
        part = table.get(part_id)
        if part is not None and _is_novel(part.unlock_year, current_year):
            reward += bonus
    for feature in _selected_parts(CAR_FEATURES, design.features):
        if _is_novel(feature.unlock_year, current_year):
            reward += 10
    return reward


def unavailable_parts(design: CarDesign, current_year: int, unlocked_tech_ids: Iterable[str]) -> List[str]:
    """Names of selected parts that are not yet on the market or need unresearched tech."""
    researched = set(unlocked_tech_ids)
    blocked: List[str] = []
    selected = [
        BODY_TYPES.get(design.body_type_id),
        DRIVETRAINS.get(design.drivetrain_id),
        SUSPENSIONS.get(design.suspension_id),
        TIRES.get(design.tire_id),
        *_selected_parts(COSMETIC_PARTS, design.cosmetics),
    ]
    for part in selected:
        if part is not None and part.unlock_year > current_year:
            blocked.append(part.display_name)
    for feature in _selected_parts(CAR_FEATURES, design.features):
        if feature.unlock_year > current_year or (feature.required_tech and feature.required_tech not in researched):
            blocked.append(feature.display_name)
    return blocked
