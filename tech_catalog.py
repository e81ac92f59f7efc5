from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

TECH_FILE = Path("data/tech_tree.json")
TECH_ID_RE = re.compile(r"^tech_[a-z0-9_]+$")
UNLOCKABLE_BLOCKS = ("", "aluminum")
UNLOCKABLE_INDUCTIONS = ("", "turbo")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TechDefinition:
    key: str
    display_name: str
    cost: int
    base_rp_cost: int
    unlock_year: int
    category: str = "part"
    unlock_block: str = ""
    unlock_induction: str = ""
    quality_bonus: int = 0

    @property
    def era(self) -> int:
        return self.unlock_year // 10


DEFAULT_TECH: Dict[str, TechDefinition] = {
    "tech_alum_block": TechDefinition(
        "tech_alum_block", "Aluminum Casting", 150_000, 200, 1980, unlock_block="aluminum"
    ),
    "tech_turbo_v1": TechDefinition(
        "tech_turbo_v1", "Forced Induction I", 300_000, 400, 1982, unlock_induction="turbo"
    ),
    "tech_qa_process": TechDefinition(
        "tech_qa_process", "Six Sigma Basics", 100_000, 150, 1981, category="process", quality_bonus=10
    ),
    "tech_adv_aero": TechDefinition("tech_adv_aero", "Wind Tunnel Testing", 500_000, 600, 1985, category="process"),
    "tech_power_steering": TechDefinition("tech_power_steering", "Hydraulic Systems", 200_000, 250, 1950),
    "tech_abs": TechDefinition("tech_abs", "Anti-Lock Braking", 450_000, 500, 1978),
    "tech_airbags": TechDefinition("tech_airbags", "SRS Airbags", 400_000, 450, 1980),
    "tech_electronics": TechDefinition("tech_electronics", "Digital Electronics", 600_000, 800, 1990),
    "tech_adv_safety": TechDefinition("tech_adv_safety", "Advanced Safety Cells", 800_000, 900, 1995),
    "tech_eps": TechDefinition("tech_eps", "Electric Actuators", 500_000, 600, 1994),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _is_valid_tech_id(value: str) -> bool:
    return bool(TECH_ID_RE.fullmatch(value))


def _parse_tech_entry(key: str, entry: Dict[str, Any]) -> TechDefinition | None:
    if not _is_valid_tech_id(key):
        return None

    display_name = entry.get("display_name")
    cost = entry.get("cost")
    base_rp_cost = entry.get("base_rp_cost")
    unlock_year = entry.get("unlock_year")
    category = entry.get("category", "part")
    unlock_block = entry.get("unlock_block", "")
    unlock_induction = entry.get("unlock_induction", "")
    quality_bonus = entry.get("quality_bonus", 0)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not _is_positive_number(cost) or not _is_positive_number(base_rp_cost):
        return None
    if not isinstance(unlock_year, int) or isinstance(unlock_year, bool) or unlock_year < 1900:
        return None
    if not isinstance(category, str) or not category.strip():
        return None
    if unlock_block not in UNLOCKABLE_BLOCKS or unlock_induction not in UNLOCKABLE_INDUCTIONS:
        return None
    if not isinstance(quality_bonus, int) or isinstance(quality_bonus, bool) or quality_bonus < 0:
        return None

    return TechDefinition(
        key=key,
        display_name=display_name.strip(),
        cost=int(cost),
        base_rp_cost=int(base_rp_cost),
        unlock_year=unlock_year,
        category=category.strip().lower(),
        unlock_block=unlock_block,
        unlock_induction=unlock_induction,
        quality_bonus=quality_bonus,
    )


def _ordered_catalog(techs: Iterable[TechDefinition]) -> Dict[str, TechDefinition]:
    ordered = sorted(techs, key=lambda tech: (tech.unlock_year, tech.key))
    return {tech.key: tech for tech in ordered}


def load_tech_catalog(path: Path = TECH_FILE) -> Dict[str, TechDefinition]:
    defaults = _ordered_catalog(DEFAULT_TECH.values())
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable tech catalog %s: %s", path, exc)
        return defaults

    if not isinstance(raw, dict):
        return defaults

    parsed: Dict[str, TechDefinition] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        tech = _parse_tech_entry(key, entry)
        if tech is None:
            continue
        parsed[key] = tech

    if not parsed:
        return defaults

    return _ordered_catalog(parsed.values())
