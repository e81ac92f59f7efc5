from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable

EVENTS_FILE = Path("data/world_events.json")
EVENT_TYPES = ("ECONOMIC", "RESOURCE", "POLITICAL")
PREFERRED_ENGINE_TYPES = ("", "economy", "performance")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventModifiers:
    demand_multiplier: float = 1.0
    production_cost_multiplier: float = 1.0
    interest_rate_offset: float = 0.0
    preferred_engine_type: str = ""


@dataclass(frozen=True)
class EventTemplate:
    key: str
    title: str
    description: str
    event_type: str
    duration_weeks: int
    modifiers: EventModifiers = field(default_factory=EventModifiers)


DEFAULT_EVENTS: Dict[str, EventTemplate] = {
    "evt_boom": EventTemplate(
        "evt_boom",
        "Economic Boom",
        "Global markets are surging! Demand for all vehicles is up, but material costs are rising slightly.",
        "ECONOMIC",
        24,
        EventModifiers(demand_multiplier=1.25, production_cost_multiplier=1.1, interest_rate_offset=0.01),
    ),
    "evt_recession": EventTemplate(
        "evt_recession",
        "Global Recession",
        "Consumer confidence hits a new low. Vehicle sales plummet across the board.",
        "ECONOMIC",
        32,
        EventModifiers(demand_multiplier=0.7, interest_rate_offset=-0.01),
    ),
    "evt_fuel_crisis": EventTemplate(
        "evt_fuel_crisis",
        "Oil Crisis",
        "Fuel prices skyrocket. Buyers want fuel-efficient engines while gas guzzlers sit on lots.",
        "RESOURCE",
        20,
        EventModifiers(demand_multiplier=0.9, preferred_engine_type="economy"),
    ),
    "evt_steel_shortage": EventTemplate(
        "evt_steel_shortage",
        "Steel Shortage",
        "Supply chain disruptions have caused steel prices to spike. Production costs increased.",
        "RESOURCE",
        12,
        EventModifiers(production_cost_multiplier=1.3),
    ),
    "evt_tech_bubble": EventTemplate(
        "evt_tech_bubble",
        "Tech Bubble",
        "Investors are pouring money into new ventures. Demand for expensive, high-tech cars is up.",
        "ECONOMIC",
        16,
        EventModifiers(demand_multiplier=1.1, preferred_engine_type="performance"),
    ),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _parse_modifiers(entry: Any) -> EventModifiers | None:
    if entry is None:
        return EventModifiers()
    if not isinstance(entry, dict):
        return None

    demand = entry.get("demand_multiplier", 1.0)
    production_cost = entry.get("production_cost_multiplier", 1.0)
    rate_offset = entry.get("interest_rate_offset", 0.0)
    preferred = entry.get("preferred_engine_type", "")

    if not _is_positive_number(demand) or not _is_positive_number(production_cost):
        return None
    if isinstance(rate_offset, bool) or not isinstance(rate_offset, (int, float)) or not math.isfinite(rate_offset):
        return None
    if preferred not in PREFERRED_ENGINE_TYPES:
        return None

    return EventModifiers(
        demand_multiplier=float(demand),
        production_cost_multiplier=float(production_cost),
        interest_rate_offset=float(rate_offset),
        preferred_engine_type=preferred,
    )


def _parse_event_entry(key: str, entry: Dict[str, Any]) -> EventTemplate | None:
    if not isinstance(key, str) or not key:
        return None

    title = entry.get("title")
    description = entry.get("description", "")
    event_type = entry.get("event_type", "ECONOMIC")
    duration_weeks = entry.get("duration_weeks")
    modifiers = _parse_modifiers(entry.get("modifiers"))

    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(description, str):
        return None
    if event_type not in EVENT_TYPES:
        return None
    if not isinstance(duration_weeks, int) or isinstance(duration_weeks, bool) or duration_weeks <= 0:
        return None
    if modifiers is None:
        return None

    return EventTemplate(
        key=key,
        title=title.strip(),
        description=description.strip(),
        event_type=event_type,
        duration_weeks=duration_weeks,
        modifiers=modifiers,
    )


def _ordered_catalog(events: Iterable[EventTemplate]) -> Dict[str, EventTemplate]:
    return {event.key: event for event in sorted(events, key=lambda event: event.key)}


def load_event_catalog(path: Path = EVENTS_FILE) -> Dict[str, EventTemplate]:
    if not path.exists():
        return _ordered_catalog(DEFAULT_EVENTS.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable event catalog %s: %s", path, exc)
        return _ordered_catalog(DEFAULT_EVENTS.values())

    if not isinstance(raw, dict):
        return _ordered_catalog(DEFAULT_EVENTS.values())

    events: Dict[str, EventTemplate] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        event = _parse_event_entry(key, entry)
        if event is None:
            continue
        events[key] = event

    if not events:
        return _ordered_catalog(DEFAULT_EVENTS.values())

    return _ordered_catalog(events.values())
