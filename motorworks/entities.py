"""Core records for the Motorworks simulation.

Records are frozen; the simulation replaces them (``dataclasses.replace``)
and reassigns the owning list on ``WorldState`` instead of mutating in place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from config import (
    BLOCK_CAST_IRON,
    FRAME_MONOCOQUE,
    FUEL_GASOLINE,
    INDUCTION_NA,
    MATERIAL_STEEL,
    ERA_BOX_70S,
    NICHE_STANDARD,
    PLAYING,
    POPULAR,
    RACING_BASELINE_PERFORMANCE,
    RACING_BASELINE_RELIABILITY,
    RACING_TEAM_NAME,
    STARTING_MONEY,
    STARTING_PRESTIGE,
    STARTING_RESEARCH_POINTS,
    VALVETRAIN_SOHC,
)
from event_catalog import EventModifiers


@dataclass(frozen=True)
class EngineDesign:
    """Engine designer inputs; ``quality`` is the 0-100 slider."""

    layout: str = "I4"
    block: str = BLOCK_CAST_IRON
    fuel: str = FUEL_GASOLINE
    valvetrain: str = VALVETRAIN_SOHC
    induction: str = INDUCTION_NA
    bore: float = 86.0
    stroke: float = 86.0
    quality: int = 50


@dataclass(frozen=True)
class Engine:
    id: str
    name: str
    layout: str
    block: str
    fuel: str
    valvetrain: str
    induction: str
    bore: float
    stroke: float
    quality: int
    displacement: int
    horsepower: int
    torque: int
    redline: int
    weight: int
    reliability: int
    fuel_efficiency: int
    production_cost: int
    is_supplier: bool = False
    unlock_year: Optional[int] = None


@dataclass(frozen=True)
class DynoPoint:
    rpm: int
    torque: int
    horsepower: int


@dataclass(frozen=True)
class CarDesign:
    """Full car designer configuration.

    ``cosmetics`` and ``features`` map a category id (``"headlights"``,
    ``"interior"``) to the selected part id.
    """

    market: str = POPULAR
    niche: str = NICHE_STANDARD
    frame_type: str = FRAME_MONOCOQUE
    frame_material: str = MATERIAL_STEEL
    wheelbase: int = 260
    engine_bay_size: int = 60
    drivetrain_id: str = "drive_rwd"
    suspension_id: str = "susp_coil"
    tire_id: str = "tire_eco"
    ride_height: int = 40
    body_type_id: str = "sedan_box"
    cosmetics: Dict[str, str] = field(default_factory=dict)
    features: Dict[str, str] = field(default_factory=dict)
    design_era: str = ERA_BOX_70S
    interior_quality: int = 50
    suspension_stiffness: int = 50


@dataclass(frozen=True)
class CarStats:
    acceleration: float
    top_speed: int
    handling: int
    comfort: int
    safety: int
    adaptability: int
    fuel_economy: float


@dataclass(frozen=True)
class ProductionState:
    is_active: bool
    total_batch_target: int
    units_produced: int
    weekly_rate: int
    pu_per_unit: float

    @property
    def remaining(self) -> int:
        return self.total_batch_target - self.units_produced


@dataclass(frozen=True)
class Review:
    reviewer_id: str
    score: float
    comment: str


@dataclass(frozen=True)
class CarModel:
    id: str
    name: str
    engine_id: str
    design: CarDesign
    stats: CarStats
    production_cost: int
    weight: int
    aerodynamics: float
    market_appeal: int
    base_price: int
    is_outsourced_engine: bool = False
    inventory: int = 0
    total_units_sold: int = 0
    batch_size: int = 0
    launch_day: int = 0
    is_released: bool = False
    reviews: Tuple[Review, ...] = ()
    final_review_score: int = 0
    production: Optional[ProductionState] = None


@dataclass(frozen=True)
class DriverStats:
    skill: float
    talent: int
    experience: float
    aggression: int


@dataclass(frozen=True)
class Driver:
    id: str
    name: str
    age: int
    salary: int
    contract_end_year: int
    stats: DriverStats
    market_value: int


@dataclass(frozen=True)
class RaceEntry:
    driver_id: str
    driver_name: str
    position: int
    crashed: bool = False
    mechanical_failure: bool = False


@dataclass(frozen=True)
class RaceResult:
    date: int
    category_id: str
    entries: Tuple[RaceEntry, ...]
    prestige_change: int
    prize_money: int
    homologation: str = "VALID"

    @property
    def best_position(self) -> int:
        return min((entry.position for entry in self.entries), default=20)


@dataclass(frozen=True)
class RacingTeam:
    name: str = RACING_TEAM_NAME
    active_category_id: Optional[str] = None
    selected_engine_id: Optional[str] = None
    drivers: Tuple[Driver, ...] = ()
    budget: int = 0
    car_performance: float = RACING_BASELINE_PERFORMANCE
    car_reliability: float = RACING_BASELINE_RELIABILITY
    last_result: Optional[RaceResult] = None
    history: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Contract:
    """A B2B engine supply deal; the deadline runs from ``created_at``."""

    id: str
    client_id: str
    client_name: str
    engine_id: str
    total_quantity: int
    price_per_unit: int
    duration_weeks: int
    created_at: int
    delivered_quantity: int = 0
    status: str = "pending"

    @property
    def deadline(self) -> int:
        return self.created_at + self.duration_weeks * 7

    @property
    def weekly_target(self) -> int:
        return -(-self.total_quantity // self.duration_weeks)

    @property
    def remaining(self) -> int:
        return self.total_quantity - self.delivered_quantity


@dataclass(frozen=True)
class Loan:
    id: str
    tier_id: str
    name: str
    principal: int
    interest_rate: float
    date_taken: int


@dataclass(frozen=True)
class FactoryState:
    level: int = 1


@dataclass(frozen=True)
class WorldEvent:
    id: str
    title: str
    description: str
    event_type: str
    start_date: int
    duration_weeks: int
    modifiers: EventModifiers = field(default_factory=EventModifiers)

    def is_expired(self, date: int) -> bool:
        return date >= self.start_date + self.duration_weeks * 7


@dataclass(frozen=True)
class HistoryEntry:
    date_label: str
    money: int
    sales_volume: int
    prestige: int


@dataclass(frozen=True)
class Notification:
    id: int
    text: str
    date: int
    severity: str = "info"


@dataclass(frozen=True)
class TutorialState:
    is_active: bool = False
    current_step: int = 0
    is_completed: bool = False


@dataclass
class WorldState:
    """The single world snapshot owned by :class:`motorworks.CompanySim`."""

    money: int = STARTING_MONEY
    research_points: int = STARTING_RESEARCH_POINTS
    date: int = 0
    brand_prestige: int = STARTING_PRESTIGE
    is_paused: bool = True
    game_speed: int = 1
    last_weekly_profit: int = 0
    end_game_state: str = PLAYING
    has_won: bool = False
    factory: FactoryState = field(default_factory=FactoryState)
    active_loans: List[Loan] = field(default_factory=list)
    total_interest_paid: int = 0
    active_event: Optional[WorldEvent] = None
    unlocked_engines: List[Engine] = field(default_factory=list)
    developed_cars: List[CarModel] = field(default_factory=list)
    racing_team: RacingTeam = field(default_factory=RacingTeam)
    free_agents: List[Driver] = field(default_factory=list)
    unlocked_tech_ids: List[str] = field(default_factory=list)
    contract_offers: List[Contract] = field(default_factory=list)
    active_contracts: List[Contract] = field(default_factory=list)
    history_log: List[HistoryEntry] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    tutorial: TutorialState = field(default_factory=TutorialState)
    id_counter: int = 0

    @property
    def current_debt(self) -> int:
        return sum(loan.principal for loan in self.active_loans)

    def next_serial(self) -> int:
        self.id_counter += 1
        return self.id_counter

    def next_id(self, prefix: str) -> str:
        return f"{prefix}_{self.next_serial()}"
