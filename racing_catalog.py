from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

RACING_FILE = Path("data/racing_categories.json")
VALID_CYLINDER_COUNTS = (3, 4, 5, 6, 8, 10, 12)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RacingRegulations:
    max_displacement: int
    max_power: int
    allowed_cylinders: Tuple[int, ...]
    forced_induction_allowed: bool
    min_weight: int


@dataclass(frozen=True)
class RacingCategory:
    key: str
    display_name: str
    tier: int
    min_prestige: int
    entry_fee: int
    weekly_cost: int
    difficulty: int
    risk_factor: int
    prestige_reward: int
    regulations: RacingRegulations
    description: str = ""


DEFAULT_RACING_CATEGORIES: Dict[str, RacingCategory] = {
    "rc_amateur": RacingCategory(
        key="rc_amateur",
        display_name="Sunday Cup",
        tier=3,
        min_prestige=0,
        entry_fee=5_000,
        weekly_cost=500,
        difficulty=15,
        risk_factor=2,
        prestige_reward=3,
        regulations=RacingRegulations(10_000, 350, (3, 4, 5, 6, 8), True, 1000),
        description="Local street racing legalised. Low entry cost, perfect for testing production engines.",
    ),
    "rc_touring": RacingCategory(
        key="rc_touring",
        display_name="National Touring",
        tier=2,
        min_prestige=250,
        entry_fee=200_000,
        weekly_cost=20_000,
        difficulty=50,
        risk_factor=5,
        prestige_reward=15,
        regulations=RacingRegulations(6_000, 600, (6, 8, 10), True, 1200),
        description="Heavy stock cars and reliability tests. Favors big torque and sturdy blocks.",
    ),
    "rc_grand": RacingCategory(
        key="rc_grand",
        display_name="Global Grand Prix",
        tier=1,
        min_prestige=1_500,
        entry_fee=50_000_000,
        weekly_cost=500_000,
        difficulty=90,
        risk_factor=9,
        prestige_reward=100,
        regulations=RacingRegulations(3_000, 1_000, (6, 8, 10, 12), True, 750),
        description="The pinnacle. Featherweight cars with small engines producing massive power.",
    ),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_regulations(entry: Any) -> RacingRegulations | None:
    if not isinstance(entry, dict):
        return None

    max_displacement = entry.get("max_displacement")
    max_power = entry.get("max_power")
    allowed_cylinders = entry.get("allowed_cylinders")
    forced_induction_allowed = entry.get("forced_induction_allowed", True)
    min_weight = entry.get("min_weight")

    if not _is_positive_number(max_displacement) or not _is_positive_number(max_power):
        return None
    if not _is_positive_number(min_weight):
        return None
    if not isinstance(allowed_cylinders, list) or not allowed_cylinders:
        return None
    if any(count not in VALID_CYLINDER_COUNTS for count in allowed_cylinders):
        return None
    if not isinstance(forced_induction_allowed, bool):
        return None

    return RacingRegulations(
        max_displacement=int(max_displacement),
        max_power=int(max_power),
        allowed_cylinders=tuple(sorted(set(allowed_cylinders))),
        forced_induction_allowed=forced_induction_allowed,
        min_weight=int(min_weight),
    )


def _parse_racing_entry(key: str, entry: Dict[str, Any]) -> RacingCategory | None:
    if not isinstance(key, str) or not key:
        return None

    display_name = entry.get("display_name")
    tier = entry.get("tier", 3)
    description = entry.get("description", "")
    regulations = _parse_regulations(entry.get("regulations"))

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not isinstance(tier, int) or isinstance(tier, bool) or tier < 1:
        return None
    if not isinstance(description, str):
        return None
    if regulations is None:
        return None

    numeric_fields = {}
    for field in ("min_prestige", "entry_fee", "weekly_cost", "difficulty", "risk_factor", "prestige_reward"):
        value = entry.get(field)
        if not _is_non_negative_int(value):
            return None
        numeric_fields[field] = value

    return RacingCategory(
        key=key,
        display_name=display_name.strip(),
        tier=tier,
        regulations=regulations,
        description=description.strip(),
        **numeric_fields,
    )


def _ordered_catalog(categories: Iterable[RacingCategory]) -> Dict[str, RacingCategory]:
    ordered = sorted(categories, key=lambda category: (category.min_prestige, category.key))
    return {category.key: category for category in ordered}


def load_racing_catalog(path: Path = RACING_FILE) -> Dict[str, RacingCategory]:
    defaults = _ordered_catalog(DEFAULT_RACING_CATEGORIES.values())
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable racing catalog %s: %s", path, exc)
        return defaults

    if not isinstance(raw, dict):
        return defaults

    categories: Dict[str, RacingCategory] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        category = _parse_racing_entry(key, entry)
        if category is None:
            continue
        categories[key] = category

    if not categories:
        return defaults

    return _ordered_catalog(categories.values())
