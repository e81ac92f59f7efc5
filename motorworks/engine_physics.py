"""Engine stat calculator.

Every function here is pure.  The calculator never rejects a design; callers
check :func:`exceeds_layout_capacity` before committing an engine.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, List

from config import (
    BLOCK_ALUMINUM,
    FUEL_DIESEL,
    FUEL_FLEX,
    FUEL_GASOLINE,
    INDUCTION_TURBO,
    VALVETRAIN_DOHC,
    VALVETRAIN_OHV,
    VALVETRAIN_SOHC,
)
from motorworks.entities import DynoPoint, Engine, EngineDesign
from motorworks.mathutil import clamp, round_half_up
from parts_catalog import SUPPLIER_ENGINES


@dataclass(frozen=True)
class LayoutSpec:
    cylinders: int
    max_capacity_cc: int
    base_weight: int
    smoothness: float


CYLINDER_LAYOUTS: Dict[str, LayoutSpec] = {
    "I3": LayoutSpec(3, 1800, 80, 0.6),
    "I4": LayoutSpec(4, 2800, 110, 0.8),
    "I6": LayoutSpec(6, 4500, 180, 0.95),
    "V6": LayoutSpec(6, 4200, 160, 0.85),
    "V8": LayoutSpec(8, 7500, 220, 0.9),
    "V10": LayoutSpec(10, 8400, 260, 0.85),
    "V12": LayoutSpec(12, 7000, 300, 1.0),
}

BASE_PISTON_SPEED = 20.0  # m/s
VALVETRAIN_RPM_BONUS = {VALVETRAIN_OHV: -1500, VALVETRAIN_SOHC: 0, VALVETRAIN_DOHC: 1000}
VALVETRAIN_TORQUE_BONUS = {VALVETRAIN_OHV: -5, VALVETRAIN_SOHC: 0, VALVETRAIN_DOHC: 8}
VALVETRAIN_EFFICIENCY = {VALVETRAIN_OHV: 0.75, VALVETRAIN_SOHC: 0.9, VALVETRAIN_DOHC: 0.95}
FUEL_TORQUE_PER_LITER = {FUEL_GASOLINE: 75, FUEL_DIESEL: 140, FUEL_FLEX: 78}
DIESEL_REDLINE_FACTOR = 0.65
HP_CONSTANT = 7120
DYNO_HP_CONSTANT = 7121
DYNO_STEPS = 10
DYNO_START_RPM = 1000


def calculate_displacement(bore: float, stroke: float, layout: str) -> int:
    cylinders = CYLINDER_LAYOUTS[layout].cylinders
    exact = math.pi * (bore / 20) ** 2 * (stroke / 10) * cylinders
    return round_half_up(round_half_up(exact, 3))


def _redline(design: EngineDesign) -> int:
    piston_speed = BASE_PISTON_SPEED
    if design.block == BLOCK_ALUMINUM:
        piston_speed += 2
    if design.quality > 70:
        piston_speed += (design.quality - 70) * 0.1

    raw = (piston_speed * 60) / (2 * (design.stroke / 1000))
    raw += VALVETRAIN_RPM_BONUS.get(design.valvetrain, 0)
    if design.fuel == FUEL_DIESEL:
        raw *= DIESEL_REDLINE_FACTOR
    return round_half_up(raw / 100) * 100


def _torque(design: EngineDesign, displacement: int) -> int:
    per_liter = FUEL_TORQUE_PER_LITER.get(design.fuel, FUEL_TORQUE_PER_LITER[FUEL_GASOLINE])
    per_liter += VALVETRAIN_TORQUE_BONUS.get(design.valvetrain, 0)
    if design.induction == INDUCTION_TURBO:
        per_liter *= 1.6 if design.fuel == FUEL_DIESEL else 1.45
    return round_half_up((displacement / 1000) * per_liter)


def _weight(design: EngineDesign, spec: LayoutSpec, displacement: int) -> int:
    weight = spec.base_weight + displacement * 0.04
    if design.block == BLOCK_ALUMINUM:
        weight *= 0.7
    if design.valvetrain == VALVETRAIN_DOHC:
        weight += 15
    if design.induction == INDUCTION_TURBO:
        weight += 25
    if design.fuel == FUEL_DIESEL:
        weight *= 1.2
    return round_half_up(weight)


def _reliability(design: EngineDesign) -> int:
    reliability = 100.0
    if design.induction == INDUCTION_TURBO:
        reliability -= 15
    if design.valvetrain == VALVETRAIN_DOHC:
        reliability -= 5
    if design.layout in ("V10", "V12"):
        reliability -= 10
    if design.block == BLOCK_ALUMINUM:
        reliability -= 5
    if design.fuel == FUEL_DIESEL:
        reliability += 15
    reliability += (design.quality - 50) * 0.4
    return int(clamp(round_half_up(reliability), 10, 100))


def _fuel_efficiency(design: EngineDesign, spec: LayoutSpec, displacement: int) -> int:
    score = 50.0
    score -= (displacement - 2000) / 100
    score -= (spec.cylinders - 4) * 2
    if design.fuel == FUEL_DIESEL:
        score += 25
    if design.fuel == FUEL_FLEX:
        score -= 5
    if design.induction == INDUCTION_TURBO:
        score += 5
    if design.valvetrain == VALVETRAIN_OHV:
        score -= 5
    if design.valvetrain == VALVETRAIN_DOHC:
        score += 5
    return int(clamp(round_half_up(score), 10, 100))


def _production_cost(design: EngineDesign, spec: LayoutSpec, displacement: int) -> int:
    cost = 500 + spec.cylinders * 150 + displacement * 0.2
    if design.block == BLOCK_ALUMINUM:
        cost *= 1.5
    if design.valvetrain == VALVETRAIN_DOHC:
        cost += 400
    if design.induction == INDUCTION_TURBO:
        cost += 800
    if design.fuel == FUEL_DIESEL:
        cost += 300
    cost *= 1 + design.quality / 100
    return round_half_up(cost)


def calculate_engine_stats(design: EngineDesign, engine_id: str = "", name: str = "") -> Engine:
    spec = CYLINDER_LAYOUTS[design.layout]
    displacement = calculate_displacement(design.bore, design.stroke, design.layout)
    redline = _redline(design)
    torque = _torque(design, displacement)
    efficiency = VALVETRAIN_EFFICIENCY.get(design.valvetrain, 0.9)
    horsepower = round_half_up(torque * (redline * 0.85) / HP_CONSTANT * efficiency)

    return Engine(
        id=engine_id,
        name=name,
        layout=design.layout,
        block=design.block,
        fuel=design.fuel,
        valvetrain=design.valvetrain,
        induction=design.induction,
        bore=float(design.bore),
        stroke=float(design.stroke),
        quality=int(design.quality),
        displacement=displacement,
        horsepower=horsepower,
        torque=torque,
        redline=redline,
        weight=_weight(design, spec, displacement),
        reliability=_reliability(design),
        fuel_efficiency=_fuel_efficiency(design, spec, displacement),
        production_cost=_production_cost(design, spec, displacement),
    )


def exceeds_layout_capacity(engine: Engine) -> bool:
    return engine.displacement > CYLINDER_LAYOUTS[engine.layout].max_capacity_cc


def calculate_development_cost(engine: Engine) -> int:
    return 50_000 + engine.production_cost * 100 + engine.horsepower * 100


def generate_dyno_curve(engine: Engine) -> List[DynoPoint]:
    """Synthetic torque/power samples from 1000 rpm to the redline."""
    rev_range = engine.redline - DYNO_START_RPM
    step_size = rev_range / DYNO_STEPS

    peak_ratio = 0.6
    if engine.induction == INDUCTION_TURBO:
        peak_ratio = 0.35
    # OHV low-end character wins over the turbo peak.
    if engine.valvetrain == VALVETRAIN_OHV:
        peak_ratio = 0.45
    peak_rpm = DYNO_START_RPM + rev_range * peak_ratio

    points: List[DynoPoint] = []
    for step in range(DYNO_STEPS + 1):
        rpm = round_half_up(DYNO_START_RPM + step * step_size)
        if rpm < peak_rpm:
            progress = (rpm - 800) / (peak_rpm - 800)
            factor = 0.7 + 0.3 * math.sin(progress * (math.pi / 2))
        else:
            span = engine.redline - peak_rpm
            progress = (rpm - peak_rpm) / span if span else 0.0
            if engine.induction == INDUCTION_TURBO:
                factor = 1.0 - 0.4 * progress ** 3
            else:
                factor = 1.0 - 0.25 * progress
        torque = engine.torque * factor
        points.append(
            DynoPoint(
                rpm=rpm,
                torque=round_half_up(torque),
                horsepower=round_half_up(torque * rpm / DYNO_HP_CONSTANT),
            )
        )
    return points


def supplier_engines(current_year: int) -> List[Engine]:
    """Outsourced engines purchasable in ``current_year``."""
    engines: List[Engine] = []
    for spec in SUPPLIER_ENGINES:
        if spec.unlock_year > current_year:
            continue
        design = EngineDesign(
            layout=spec.layout,
            block=spec.block,
            fuel=spec.fuel,
            valvetrain=spec.valvetrain,
            induction=spec.induction,
            bore=spec.bore,
            stroke=spec.stroke,
            quality=spec.quality,
        )
        engine = calculate_engine_stats(design, engine_id=spec.key, name=spec.display_name)
        engines.append(replace(engine, is_supplier=True, unlock_year=spec.unlock_year))
    return engines
