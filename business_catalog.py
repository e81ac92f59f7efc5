from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

FACTORY_TIERS_FILE = Path("data/factory_tiers.json")
LOAN_OFFERS_FILE = Path("data/loan_offers.json")
CLIENT_PREFERENCES = ("economy", "performance", "reliability")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactoryTier:
    level: int
    display_name: str
    weekly_capacity_pu: int
    upgrade_cost: int
    description: str = ""


@dataclass(frozen=True)
class LoanOffer:
    key: str
    display_name: str
    amount: int
    min_prestige: int
    interest_rate: float
    description: str = ""


@dataclass(frozen=True)
class ClientCompany:
    key: str
    display_name: str
    preference: str


DEFAULT_FACTORY_TIERS: List[FactoryTier] = [
    FactoryTier(1, "Backyard Garage", 500, 0, "Basic tooling. Good for small batches."),
    FactoryTier(2, "Industrial Workshop", 2_000, 500_000, "Professional equipment. Enables consistent B2B work."),
    FactoryTier(3, "Manufacturing Plant", 10_000, 2_000_000, "Automated assembly lines. Mass production capable."),
    FactoryTier(4, "Mega Factory", 50_000, 10_000_000, "Regional manufacturing hub. High output."),
    FactoryTier(5, "Giga Factory", 200_000, 50_000_000, "Global production dominance."),
]

DEFAULT_LOAN_OFFERS: Dict[str, LoanOffer] = {
    "loan_venture": LoanOffer(
        "loan_venture", "Venture Capital", 10_000_000, 10, 0.05,
        "High-risk capital for startups. Expects rapid returns.",
    ),
    "loan_investment": LoanOffer(
        "loan_investment", "Investment Bank", 100_000_000, 70, 0.035,
        "Standard corporate credit line. Balanced terms.",
    ),
    "loan_global": LoanOffer(
        "loan_global", "Global Fund", 500_000_000, 200, 0.02,
        "Massive liquidity for industry leaders. Low rates.",
    ),
}

CLIENT_COMPANIES: List[ClientCompany] = [
    ClientCompany("comp_generic", "General Transport Co.", "economy"),
    ClientCompany("comp_swift", "Swift Motors", "performance"),
    ClientCompany("comp_tankan", "Tankan Heavy Industries", "reliability"),
    ClientCompany("comp_luxe", "Vanguard Automotive", "performance"),
]


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_factory_tier_entry(level: int, entry: Dict[str, Any]) -> FactoryTier | None:
    display_name = entry.get("display_name")
    capacity = entry.get("weekly_capacity_pu")
    upgrade_cost = entry.get("upgrade_cost", 0)
    description = entry.get("description", "")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not _is_positive_number(capacity):
        return None
    if not _is_non_negative_int(upgrade_cost):
        return None
    if not isinstance(description, str):
        return None

    return FactoryTier(
        level=level,
        display_name=display_name.strip(),
        weekly_capacity_pu=int(capacity),
        upgrade_cost=upgrade_cost,
        description=description.strip(),
    )


def _parse_loan_offer_entry(key: str, entry: Dict[str, Any]) -> LoanOffer | None:
    if not isinstance(key, str) or not key:
        return None

    display_name = entry.get("display_name")
    amount = entry.get("amount")
    min_prestige = entry.get("min_prestige", 0)
    interest_rate = entry.get("interest_rate")
    description = entry.get("description", "")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not _is_positive_number(amount):
        return None
    if not _is_non_negative_int(min_prestige):
        return None
    if not _is_positive_number(interest_rate) or interest_rate >= 1:
        return None
    if not isinstance(description, str):
        return None

    return LoanOffer(
        key=key,
        display_name=display_name.strip(),
        amount=int(amount),
        min_prestige=min_prestige,
        interest_rate=float(interest_rate),
        description=description.strip(),
    )


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable catalog %s: %s", path, exc)
        return None


def load_factory_tier_catalog(path: Path = FACTORY_TIERS_FILE) -> List[FactoryTier]:
    """Tiers are a JSON list ordered by level; any invalid tier discards the override."""
    if not path.exists():
        return list(DEFAULT_FACTORY_TIERS)

    raw = _read_json(path)
    if not isinstance(raw, list) or not raw:
        return list(DEFAULT_FACTORY_TIERS)

    tiers: List[FactoryTier] = []
    for level, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            return list(DEFAULT_FACTORY_TIERS)
        tier = _parse_factory_tier_entry(level, entry)
        if tier is None:
            return list(DEFAULT_FACTORY_TIERS)
        tiers.append(tier)

    capacities = [tier.weekly_capacity_pu for tier in tiers]
    if capacities != sorted(capacities):
        return list(DEFAULT_FACTORY_TIERS)
    return tiers


def _ordered_loan_catalog(offers: Iterable[LoanOffer]) -> Dict[str, LoanOffer]:
    ordered = sorted(offers, key=lambda offer: (offer.min_prestige, offer.key))
    return {offer.key: offer for offer in ordered}


def load_loan_offer_catalog(path: Path = LOAN_OFFERS_FILE) -> Dict[str, LoanOffer]:
    if not path.exists():
        return _ordered_loan_catalog(DEFAULT_LOAN_OFFERS.values())

    raw = _read_json(path)
    if not isinstance(raw, dict):
        return _ordered_loan_catalog(DEFAULT_LOAN_OFFERS.values())

    offers: Dict[str, LoanOffer] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        offer = _parse_loan_offer_entry(key, entry)
        if offer is None:
            continue
        offers[key] = offer

    if not offers:
        return _ordered_loan_catalog(DEFAULT_LOAN_OFFERS.values())

    return _ordered_loan_catalog(offers.values())
