"""Review scoring.

The aggregate score judges a car against a generic car of its launch year,
scaled to the ideal for its market segment.  The four personality reviewers
only produce flavour text and do not feed the aggregate.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from config import (
    INTERMEDIATE,
    LUXURY,
    NICHE_OFFROAD,
    NICHE_SPORT,
    NICHE_SUV,
    POPULAR,
    SUPERCAR,
)
from motorworks.entities import CarModel, Review
from motorworks.mathutil import clamp, round_half_up
from motorworks.timeline import year_for_day


@dataclass(frozen=True)
class CategoryWeights:
    horsepower: float
    economy: float
    reliability: float
    comfort: float
    price: float

    @property
    def total(self) -> float:
        return self.horsepower + self.economy + self.reliability + self.comfort + self.price


@dataclass(frozen=True)
class CategoryTargets:
    horsepower: float
    economy: float
    comfort: float
    price: float


@dataclass(frozen=True)
class YearBaseline:
    horsepower: float
    price: float
    economy: float
    comfort: float
    safety: float


CATEGORY_WEIGHTS: Dict[str, CategoryWeights] = {
    POPULAR: CategoryWeights(0.2, 2.5, 2.0, 0.8, 3.0),
    INTERMEDIATE: CategoryWeights(1.0, 1.0, 1.5, 1.5, 1.5),
    LUXURY: CategoryWeights(1.2, 0.2, 1.0, 3.0, 0.2),
    SUPERCAR: CategoryWeights(4.0, 0.0, 0.5, 0.2, 0.1),
}

CATEGORY_TARGETS: Dict[str, CategoryTargets] = {
    POPULAR: CategoryTargets(0.6, 1.5, 0.6, 0.6),
    INTERMEDIATE: CategoryTargets(1.0, 1.0, 1.0, 1.2),
    LUXURY: CategoryTargets(1.5, 0.7, 2.0, 3.0),
    SUPERCAR: CategoryTargets(3.5, 0.4, 0.5, 6.0),
}

BASELINE_YEAR = 1900
NICHE_BONUS = 5

REVIEWER_COMMENTS: Dict[str, Tuple[str, str, str]] = {
    "frugal": (
        "An absolute steal! Incredible value.",
        "Reasonably priced for what you get.",
        "Overpriced junk.",
    ),
    "gearhead": (
        "This thing rips! A true driver's car.",
        "It's got some pep, but lacks soul.",
        "My lawnmower is faster.",
    ),
    "family": (
        "Safe, sensible, and soothing.",
        "Good enough for the daily commute.",
        "I wouldn't put my kids in this.",
    ),
    "adventurer": (
        "Ready for the apocalypse.",
        "Handles gravel roads okay.",
        "Got stuck in a puddle.",
    ),
}


def year_baseline(year: int) -> YearBaseline:
    age = max(0, year - BASELINE_YEAR)
    return YearBaseline(
        horsepower=40 + age * 1.5,
        price=2000 + age * 300,
        economy=10 + age * 0.2,
        comfort=10 + age * 0.8,
        safety=5 + age * 0.9,
    )


def stat_score(actual: float, target: float, higher_is_better: bool = True) -> float:
    """Score ``actual`` against ``target`` on a 0-10 scale."""
    if target == 0:
        return 5.0
    ratio = actual / target
    if not higher_is_better:
        if ratio <= 1:
            return min(10.0, 7 + (1 - ratio) * 5)
        return max(0.0, 7 - (ratio - 1) * 10)
    if ratio >= 1:
        return min(10.0, 8 + (ratio - 1) * 10)
    return max(0.0, 8 - (1 - ratio) * 10)


def calculate_review_score(car: CarModel) -> int:
    market = car.design.market if car.design.market in CATEGORY_WEIGHTS else POPULAR
    weights = CATEGORY_WEIGHTS[market]
    targets = CATEGORY_TARGETS[market]
    baseline = year_baseline(year_for_day(car.launch_day))
    stats = car.stats

    performance = stat_score(stats.top_speed, baseline.horsepower * targets.horsepower * 1.5)
    economy = stat_score(stats.fuel_economy, baseline.economy * targets.economy)
    comfort = stat_score(stats.comfort, baseline.comfort * targets.comfort)
    reliability = stat_score(stats.safety, baseline.safety)
    price = stat_score(car.base_price, baseline.price * targets.price, higher_is_better=False)

    weighted = (
        performance * weights.horsepower
        + economy * weights.economy
        + reliability * weights.reliability
        + comfort * weights.comfort
        + price * weights.price
    )

    niche_bonus = 0
    niche = car.design.niche
    if niche == NICHE_SPORT:
        if stats.handling > 60:
            niche_bonus += NICHE_BONUS
        if stats.acceleration < 6:
            niche_bonus += NICHE_BONUS
    elif niche in (NICHE_SUV, NICHE_OFFROAD):
        if stats.adaptability > 60:
            niche_bonus += NICHE_BONUS
        if stats.adaptability > 80:
            niche_bonus += NICHE_BONUS

    return int(clamp(round_half_up((weighted / weights.total) * 10 + niche_bonus), 0, 100))


def _comment(reviewer_id: str, score: float) -> str:
    great, fair, poor = REVIEWER_COMMENTS[reviewer_id]
    if score >= 8:
        return great
    if score >= 5:
        return fair
    return poor


def _reviewer_scores(car: CarModel) -> Dict[str, float]:
    stats = car.stats
    adventurer = stats.adaptability / 10
    if car.design.ride_height > 60:
        adventurer += 2
    return {
        "frugal": min(10.0, max(0.0, (40_000 - car.base_price) / 4000) + stats.fuel_economy / 5),
        "gearhead": min(10.0, max(0.0, 12 - stats.acceleration) + (stats.top_speed - 100) / 20),
        "family": min(10.0, stats.safety / 10 + stats.comfort / 10),
        "adventurer": min(10.0, adventurer),
    }


def calculate_car_reviews(car: CarModel) -> Tuple[List[Review], int]:
    """Return the personality reviews and the aggregate 0-100 score."""
    reviews: List[Review] = []
    for reviewer_id, raw in _reviewer_scores(car).items():
        score = round_half_up(raw, 1)
        reviews.append(Review(reviewer_id=reviewer_id, score=score, comment=_comment(reviewer_id, raw)))
    return reviews, calculate_review_score(car)
