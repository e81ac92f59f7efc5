import json

from business_catalog import (
    DEFAULT_FACTORY_TIERS,
    DEFAULT_LOAN_OFFERS,
    load_factory_tier_catalog,
    load_loan_offer_catalog,
)
from event_catalog import DEFAULT_EVENTS, load_event_catalog
from racing_catalog import DEFAULT_RACING_CATEGORIES, load_racing_catalog
from tech_catalog import DEFAULT_TECH, load_tech_catalog


def test_load_tech_catalog_defaults_when_missing(tmp_path):
    catalog = load_tech_catalog(tmp_path / "missing.json")

    assert set(catalog) == set(DEFAULT_TECH)
    years = [tech.unlock_year for tech in catalog.values()]
    assert years == sorted(years)


def test_load_tech_catalog_defaults_on_invalid_json(tmp_path):
    path = tmp_path / "tech.json"
    path.write_text("{not json")

    assert set(load_tech_catalog(path)) == set(DEFAULT_TECH)


def test_load_tech_catalog_skips_invalid_entries(tmp_path):
    path = tmp_path / "tech.json"
    path.write_text(
        json.dumps(
            {
                "tech_valid": {
                    "display_name": "Fuel Injection",
                    "cost": 250000,
                    "base_rp_cost": 300,
                    "unlock_year": 1983,
                    "quality_bonus": 5,
                },
                "bad-id": {"display_name": "Nope", "cost": 1, "base_rp_cost": 1, "unlock_year": 1990},
                "tech_bad_block": {
                    "display_name": "Magnesium",
                    "cost": 10,
                    "base_rp_cost": 10,
                    "unlock_year": 1990,
                    "unlock_block": "magnesium",
                },
            }
        )
    )

    catalog = load_tech_catalog(path)

    assert list(catalog) == ["tech_valid"]
    assert catalog["tech_valid"].quality_bonus == 5
    assert catalog["tech_valid"].era == 198


def test_load_tech_catalog_all_invalid_falls_back(tmp_path):
    path = tmp_path / "tech.json"
    path.write_text(json.dumps({"tech_x": {"display_name": "", "cost": -1}}))

    assert set(load_tech_catalog(path)) == set(DEFAULT_TECH)


def test_factory_tiers_default_capacity_ladder(tmp_path):
    tiers = load_factory_tier_catalog(tmp_path / "missing.json")

    assert tiers == list(DEFAULT_FACTORY_TIERS)
    assert [tier.weekly_capacity_pu for tier in tiers] == [500, 2000, 10000, 50000, 200000]
    assert tiers[0].upgrade_cost == 0


def test_factory_tiers_reject_shrinking_capacity(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(
        json.dumps(
            [
                {"display_name": "Big Shed", "weekly_capacity_pu": 1000},
                {"display_name": "Small Shed", "weekly_capacity_pu": 200, "upgrade_cost": 5000},
            ]
        )
    )

    assert load_factory_tier_catalog(path) == list(DEFAULT_FACTORY_TIERS)


def test_factory_tiers_accept_valid_override(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(
        json.dumps(
            [
                {"display_name": "Shed", "weekly_capacity_pu": 100},
                {"display_name": "Hall", "weekly_capacity_pu": 900, "upgrade_cost": 75000},
            ]
        )
    )

    tiers = load_factory_tier_catalog(path)

    assert [(tier.level, tier.display_name) for tier in tiers] == [(1, "Shed"), (2, "Hall")]
    assert tiers[1].upgrade_cost == 75000


def test_loan_offers_reject_usurious_rates(tmp_path):
    path = tmp_path / "loans.json"
    path.write_text(
        json.dumps(
            {
                "loan_shark": {"display_name": "Shark", "amount": 1000, "interest_rate": 1.5},
                "loan_credit_union": {
                    "display_name": "Credit Union",
                    "amount": 250000,
                    "min_prestige": 5,
                    "interest_rate": 0.04,
                },
            }
        )
    )

    offers = load_loan_offer_catalog(path)

    assert list(offers) == ["loan_credit_union"]
    assert offers["loan_credit_union"].interest_rate == 0.04


def test_loan_offers_defaults_when_root_is_not_object(tmp_path):
    path = tmp_path / "loans.json"
    path.write_text(json.dumps(["loan_venture"]))

    assert set(load_loan_offer_catalog(path)) == set(DEFAULT_LOAN_OFFERS)


def test_racing_catalog_defaults_ordered_by_prestige(tmp_path):
    catalog = load_racing_catalog(tmp_path / "missing.json")

    assert set(catalog) == set(DEFAULT_RACING_CATEGORIES)
    assert list(catalog)[0] == "rc_amateur"
    assert catalog["rc_grand"].regulations.allowed_cylinders == (6, 8, 10, 12)


def test_racing_catalog_rejects_bad_regulations(tmp_path):
    path = tmp_path / "racing.json"
    path.write_text(
        json.dumps(
            {
                "rc_karts": {
                    "display_name": "Karts",
                    "min_prestige": 0,
                    "entry_fee": 100,
                    "weekly_cost": 10,
                    "difficulty": 5,
                    "risk_factor": 1,
                    "prestige_reward": 1,
                    "regulations": {
                        "max_displacement": 250,
                        "max_power": 30,
                        "allowed_cylinders": [1],
                        "min_weight": 100,
                    },
                }
            }
        )
    )

    assert set(load_racing_catalog(path)) == set(DEFAULT_RACING_CATEGORIES)


def test_event_catalog_accepts_override_with_default_modifiers(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps(
            {
                "evt_strike": {
                    "title": "Dock Strike",
                    "event_type": "POLITICAL",
                    "duration_weeks": 6,
                },
                "evt_bad": {"title": "Broken", "event_type": "ALIEN", "duration_weeks": 3},
            }
        )
    )

    catalog = load_event_catalog(path)

    assert list(catalog) == ["evt_strike"]
    assert catalog["evt_strike"].modifiers.demand_multiplier == 1.0


def test_event_catalog_defaults_when_missing(tmp_path):
    assert set(load_event_catalog(tmp_path / "missing.json")) == set(DEFAULT_EVENTS)
