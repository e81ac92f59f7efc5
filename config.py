"""Centralised configuration constants for Motorworks."""
from __future__ import annotations

from pathlib import Path

from business_catalog import load_factory_tier_catalog, load_loan_offer_catalog
from event_catalog import load_event_catalog
from racing_catalog import load_racing_catalog
from tech_catalog import load_tech_catalog

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
SAVE_FILE: Path = Path("motorworks_save.json")
SAVE_VERSION: str = "1.0"

# ---------------------------------------------------------------------------
# Calendar (one tick = one week)
# ---------------------------------------------------------------------------
START_YEAR: int = 1970
DAYS_PER_WEEK: int = 7
DAYS_PER_YEAR: int = 365
MONTH_DAYS: int = 28                  # interest, offers, analytics and auto-save cadence
MS_PER_TICK: int = 2000               # normal speed
FAST_MS_PER_TICK: int = 500           # fast speed
GAME_SPEEDS: tuple[int, ...] = (1, 2)

# ---------------------------------------------------------------------------
# Engine design enums
# ---------------------------------------------------------------------------
BLOCK_CAST_IRON: str = "cast_iron"
BLOCK_ALUMINUM: str = "aluminum"
FUEL_GASOLINE: str = "gasoline"
FUEL_DIESEL: str = "diesel"
FUEL_FLEX: str = "flex"
VALVETRAIN_OHV: str = "ohv"
VALVETRAIN_SOHC: str = "sohc"
VALVETRAIN_DOHC: str = "dohc"
INDUCTION_NA: str = "na"
INDUCTION_TURBO: str = "turbo"

# ---------------------------------------------------------------------------
# Car design enums
# ---------------------------------------------------------------------------
POPULAR: str = "popular"
INTERMEDIATE: str = "intermediate"
LUXURY: str = "luxury"
SUPERCAR: str = "supercar"

NICHE_STANDARD: str = "standard"
NICHE_SUV: str = "suv"
NICHE_OFFROAD: str = "offroad"
NICHE_SPORT: str = "sport"

FRAME_LADDER: str = "ladder"
FRAME_MONOCOQUE: str = "monocoque"

MATERIAL_STEEL: str = "steel"
MATERIAL_GALVANIZED: str = "galvanized"
MATERIAL_ALUMINUM: str = "aluminum"
MATERIAL_CARBON: str = "carbon"

ERA_BOX_70S: str = "box_70s"
ERA_AERO_90S: str = "aero_90s"

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------
STARTING_MONEY: int = 5_000_000
STARTING_PRESTIGE: int = 10
STARTING_RESEARCH_POINTS: int = 200
WEEKLY_OPEX: int = 15_000
LIQUIDATION_RATIO: float = 0.5        # fraction of production cost recovered when dumping stock
ENGINE_DEV_PRESTIGE: int = 5
MIN_INTEREST_RATE: float = 0.001
MAX_LOANS_PER_TIER: int = 2
LEGACY_LOAN_ID: str = "loan_legacy"
LEGACY_LOAN_NAME: str = "Legacy Bank Loan"
LEGACY_LOAN_RATE: float = 0.10

# ---------------------------------------------------------------------------
# End-game thresholds
# ---------------------------------------------------------------------------
BANKRUPTCY_FLOOR: int = -10_000_000
VICTORY_MONEY: int = 1_000_000_000
VICTORY_PRESTIGE: int = 1000
PLAYING: str = "playing"
VICTORY: str = "victory"
DEFEAT: str = "defeat"
END_GAME_STATES: tuple[str, ...] = (PLAYING, VICTORY, DEFEAT)

# ---------------------------------------------------------------------------
# Bounded logs
# ---------------------------------------------------------------------------
NOTIFICATION_LIMIT: int = 20
HISTORY_LIMIT: int = 60
RACE_HISTORY_LIMIT: int = 10

# ---------------------------------------------------------------------------
# World events
# ---------------------------------------------------------------------------
EVENT_CHANCE: float = 0.01            # weekly chance to start an event when none is active

# ---------------------------------------------------------------------------
# Prestige from sales
# ---------------------------------------------------------------------------
SALES_PRESTIGE_MIN_UNITS: int = 10
SALES_PRESTIGE_CAP: int = 1000
SALES_PRESTIGE_ROLL: float = 0.8      # +1 prestige when rng.random() exceeds this

# ---------------------------------------------------------------------------
# B2B contracts
# ---------------------------------------------------------------------------
MAX_PENDING_OFFERS: int = 3
CONTRACT_BASE_CHANCE: float = 0.05
CONTRACT_PRESTIGE_DIVISOR: int = 5000
CONTRACT_BREACH_MULTIPLIER: float = 1.5

# ---------------------------------------------------------------------------
# Racing
# ---------------------------------------------------------------------------
MAX_TEAM_DRIVERS: int = 2
MIN_SEVERANCE: int = 500_000
SEVERANCE_SALARY_MONTHS: int = 3
RACING_TEAM_NAME: str = "Factory Works Team"
RACING_BASELINE_PERFORMANCE: float = 10.0
RACING_BASELINE_RELIABILITY: float = 50.0
RACING_DEFAULT_BUDGET: int = 50_000
RACING_DEV_PER_POINT: int = 1_000_000  # budget spent per car-performance point
RACE_EXPERIENCE_GAIN: float = 0.1
RACE_GROWTH_MAX_AGE: int = 26          # podium skill growth only below this age
FREE_AGENT_POOL_SIZE: int = 12
INITIAL_FREE_AGENTS: int = 4
FREE_AGENT_RETIREMENT_AGE: int = 40

# ---------------------------------------------------------------------------
# Research and tutorial
# ---------------------------------------------------------------------------
TECH_PRESTIGE: int = 2
TECH_ERA_GAP_PENALTY: float = 0.5
TUTORIAL_PRESTIGE: int = 10
TUTORIAL_FINAL_STEP: int = 5
NOVELTY_WINDOW_YEARS: int = 5

# ---------------------------------------------------------------------------
# Data-driven catalogs (JSON overrides under data/, safe defaults otherwise)
# ---------------------------------------------------------------------------
TECH_TREE = load_tech_catalog()
RACING_CATEGORIES = load_racing_catalog()
WORLD_EVENTS = load_event_catalog()
FACTORY_TIERS = load_factory_tier_catalog()
LOAN_OFFERS = load_loan_offer_catalog()
