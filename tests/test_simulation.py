"""Tests for the CompanySim tick engine and its command handlers."""
from __future__ import annotations

import random
import unittest
from dataclasses import replace

from config import (
    BANKRUPTCY_FLOOR,
    DEFEAT,
    FREE_AGENT_POOL_SIZE,
    MIN_SEVERANCE,
    PLAYING,
    RACING_DEFAULT_BUDGET,
    TECH_TREE,
    TUTORIAL_FINAL_STEP,
    VICTORY,
    WEEKLY_OPEX,
)
from event_catalog import EventModifiers
from motorworks import CarDesign, CompanySim, EngineDesign, WorldState
from motorworks.engine_physics import calculate_development_cost, calculate_engine_stats
from motorworks.entities import Contract, Driver, DriverStats, FactoryState, Loan, WorldEvent
from motorworks.persistence import state_to_dict
from motorworks.production import calculate_current_load


class ScriptedRandom(random.Random):
    """Every ``random()`` draw returns 0.5: no events, offers, crashes or sales prestige."""

    def __init__(self, fallback: float = 0.5):
        super().__init__(0)
        self.fallback = fallback

    def random(self) -> float:
        return self.fallback

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def _sim(confirm=None, **overrides) -> CompanySim:
    return CompanySim(state=WorldState(**overrides), rng=ScriptedRandom(), confirm=confirm)


def _driver(driver_id: str, salary: int = 40000, market_value: int = 480000) -> Driver:
    return Driver(
        id=driver_id,
        name=f"Driver {driver_id}",
        age=24,
        salary=salary,
        contract_end_year=1972,
        stats=DriverStats(skill=50, talent=80, experience=20, aggression=10),
        market_value=market_value,
    )


def _texts(sim: CompanySim):
    return [notice.text for notice in sim.state.notifications]


class TestEndGame(unittest.TestCase):
    def test_bankruptcy_latches_defeat_and_freezes_world(self):
        sim = _sim(money=BANKRUPTCY_FLOOR - 1)

        self.assertFalse(sim.tick())
        self.assertEqual(sim.state.end_game_state, DEFEAT)
        self.assertTrue(sim.state.is_paused)

        frozen = state_to_dict(sim.state)
        for _ in range(3):
            self.assertFalse(sim.tick())
        self.assertEqual(state_to_dict(sim.state), frozen)

    def test_victory_latches_once(self):
        sim = _sim(money=1_000_000_000, brand_prestige=1000)

        self.assertFalse(sim.tick())
        self.assertEqual(sim.state.end_game_state, VICTORY)
        self.assertTrue(sim.state.has_won)
        self.assertEqual(sim.state.date, 0)

        self.assertTrue(sim.continue_playing())
        self.assertEqual(sim.state.end_game_state, PLAYING)
        self.assertFalse(sim.state.is_paused)
        self.assertTrue(sim.tick())
        self.assertEqual(sim.state.end_game_state, PLAYING)
        self.assertTrue(sim.state.has_won)

    def test_continue_playing_only_after_victory(self):
        sim = _sim()
        self.assertFalse(sim.continue_playing())
        sim.state.end_game_state = DEFEAT
        self.assertFalse(sim.continue_playing())

    def test_run_weeks_stops_on_end_game(self):
        sim = _sim(money=BANKRUPTCY_FLOOR + WEEKLY_OPEX - 1)
        self.assertEqual(sim.run_weeks(10), 1)


class TestTickFinance(unittest.TestCase):
    def test_quiet_week_charges_opex(self):
        sim = _sim()
        start = sim.state.money

        self.assertTrue(sim.tick())

        self.assertEqual(sim.state.date, 7)
        self.assertEqual(sim.state.money, start - WEEKLY_OPEX)
        self.assertEqual(sim.state.last_weekly_profit, -WEEKLY_OPEX)

    def test_monthly_interest(self):
        loan = Loan("loan_1", "loan_venture", "Venture", 10_000_000, 0.05, 0)
        sim = _sim(date=21, active_loans=[loan])
        start = sim.state.money

        sim.tick()

        self.assertEqual(sim.state.date, 28)
        self.assertEqual(sim.state.total_interest_paid, 500_000)
        self.assertEqual(sim.state.money, start - WEEKLY_OPEX - 500_000)

    def test_event_rate_offset_never_drops_below_floor(self):
        loan = Loan("loan_1", "loan_global", "Global", 1_000_000, 0.005, 0)
        event = WorldEvent("evt_x", "Cheap Money", "", "ECONOMIC", 21, 10, EventModifiers(interest_rate_offset=-0.05))
        sim = _sim(date=21, active_loans=[loan], active_event=event)

        sim.tick()

        self.assertEqual(sim.state.total_interest_paid, 1000)

    def test_history_snapshot_every_four_weeks(self):
        sim = _sim(date=21)
        sim.tick()
        self.assertEqual(len(sim.state.history_log), 1)
        self.assertEqual(sim.state.history_log[0].date_label, "Jan 29, 1970")
        sim.tick()
        self.assertEqual(len(sim.state.history_log), 1)

    def test_expired_event_is_cleared(self):
        event = WorldEvent("evt_x", "Boom", "", "ECONOMIC", 0, 1)
        sim = _sim(active_event=event)

        sim.tick()

        self.assertIsNone(sim.state.active_event)
        self.assertIn("Market Report: Global situation stabilized.", _texts(sim))


class TestContracts(unittest.TestCase):
    def setUp(self):
        self.engine = calculate_engine_stats(EngineDesign(), engine_id="eng_1", name="Four")

    def test_breach_charges_penalty_and_drops_contract(self):
        contract = Contract("c1", "cli_1", "Velocita", "eng_1", 1000, 100, 10, 0, 400, "active")
        sim = _sim(date=70, active_contracts=[contract], unlocked_engines=[self.engine])
        start = sim.state.money

        sim.tick()

        self.assertEqual(sim.state.active_contracts, [])
        self.assertEqual(sim.state.money, start - 90_000 - WEEKLY_OPEX)
        self.assertTrue(any("missing 600 units" in text for text in _texts(sim)))

    def test_weekly_delivery_books_revenue_and_cost(self):
        contract = Contract("c1", "cli_1", "Velocita", "eng_1", 300, 3000, 10, 0, 0, "active")
        sim = _sim(active_contracts=[contract], unlocked_engines=[self.engine])
        start = sim.state.money

        sim.tick()

        delivered = sim.state.active_contracts[0].delivered_quantity
        self.assertEqual(delivered, 30)
        expected = 30 * 3000 - 30 * self.engine.production_cost - WEEKLY_OPEX
        self.assertEqual(sim.state.money, start + expected)

    def test_final_delivery_completes_contract(self):
        contract = Contract("c1", "cli_1", "Velocita", "eng_1", 300, 3000, 10, 0, 290, "active")
        sim = _sim(active_contracts=[contract], unlocked_engines=[self.engine])

        sim.tick()

        self.assertEqual(sim.state.active_contracts, [])
        self.assertIn("Contract with Velocita completed!", _texts(sim))

    def test_accept_contract_checks_capacity(self):
        big = Contract("c_big", "cli_1", "Velocita", "eng_1", 3000, 3000, 10, 0)
        small = Contract("c_small", "cli_1", "Velocita", "eng_1", 500, 3000, 10, 0)
        sim = _sim(contract_offers=[big, small], unlocked_engines=[self.engine])

        self.assertFalse(sim.accept_contract("c_big"))
        self.assertEqual(len(sim.state.contract_offers), 2)
        self.assertTrue(sim.state.notifications[0].text.startswith("Capacity Insufficient! Need 600 PU/wk"))

        self.assertTrue(sim.accept_contract("c_small"))
        self.assertEqual([c.id for c in sim.state.active_contracts], ["c_small"])
        self.assertEqual(sim.state.active_contracts[0].status, "active")
        self.assertEqual(sim.capacity_load().b2b, 100)

    def test_reject_contract(self):
        offer = Contract("c1", "cli_1", "Velocita", "eng_1", 500, 3000, 10, 0)
        sim = _sim(contract_offers=[offer])
        self.assertTrue(sim.reject_contract("c1"))
        self.assertFalse(sim.reject_contract("c1"))


class TestLoansAndFactory(unittest.TestCase):
    def test_third_loan_from_same_tier_is_rejected(self):
        sim = _sim(brand_prestige=10)
        self.assertTrue(sim.take_loan("loan_venture"))
        self.assertTrue(sim.take_loan("loan_venture"))
        money, loans, counter = sim.state.money, list(sim.state.active_loans), sim.state.id_counter

        self.assertFalse(sim.take_loan("loan_venture"))

        self.assertEqual(sim.state.money, money)
        self.assertEqual(sim.state.active_loans, loans)
        self.assertEqual(sim.state.id_counter, counter)

    def test_loan_requires_prestige(self):
        sim = _sim(brand_prestige=5)
        self.assertFalse(sim.take_loan("loan_venture"))
        self.assertEqual(sim.state.active_loans, [])

    def test_repay_requires_full_principal(self):
        sim = _sim(brand_prestige=10, money=0)
        sim.take_loan("loan_venture")
        loan = sim.state.active_loans[0]
        sim.state.money = loan.principal - 1

        self.assertFalse(sim.repay_loan(loan.id))
        sim.state.money = loan.principal
        self.assertTrue(sim.repay_loan(loan.id))
        self.assertEqual(sim.state.active_loans, [])
        self.assertEqual(sim.state.money, 0)

    def test_factory_upgrades_one_tier_at_a_time(self):
        sim = _sim(money=1_000_000)

        self.assertTrue(sim.upgrade_factory())
        self.assertEqual(sim.state.factory.level, 2)
        self.assertEqual(sim.capacity_load().capacity, 2000)
        self.assertFalse(sim.upgrade_factory())
        self.assertEqual(sim.state.factory.level, 2)

    def test_top_tier_cannot_upgrade(self):
        sim = _sim(money=10**12, factory=FactoryState(level=5))
        self.assertFalse(sim.upgrade_factory())


class TestEnginesAndProduction(unittest.TestCase):
    def test_develop_engine_charges_cost_and_grants_prestige(self):
        sim = _sim()
        start_money, start_prestige = sim.state.money, sim.state.brand_prestige

        self.assertTrue(sim.develop_engine(EngineDesign(), "Four"))

        engine = sim.state.unlocked_engines[0]
        self.assertEqual(engine.id, "eng_1")
        self.assertEqual(sim.state.money, start_money - calculate_development_cost(engine))
        self.assertEqual(sim.state.brand_prestige, start_prestige + 5)

    def test_develop_engine_rejections_leave_state_untouched(self):
        sim = _sim()
        before = state_to_dict(sim.state)

        self.assertFalse(sim.develop_engine(EngineDesign(block="aluminum"), "Alloy"))
        self.assertFalse(sim.develop_engine(EngineDesign(induction="turbo"), "Boost"))
        self.assertFalse(sim.develop_engine(EngineDesign(layout="I3", bore=100, stroke=100), "Big Triple"))
        self.assertFalse(sim.develop_engine(EngineDesign(layout="W16"), "Nope"))

        after = state_to_dict(sim.state)
        after["notifications"] = before["notifications"]
        self.assertEqual(after, before)

    def test_researched_tech_unlocks_blocks_and_quality(self):
        sim = _sim(unlocked_tech_ids=["tech_alum_block", "tech_qa_process"])

        self.assertTrue(sim.develop_engine(EngineDesign(block="aluminum", quality=95), "Alloy"))
        self.assertEqual(sim.state.unlocked_engines[0].quality, 100)

    def test_not_enough_money_for_engine(self):
        sim = _sim(money=1000)
        self.assertFalse(sim.develop_engine(EngineDesign(), "Four"))
        self.assertIn("Not enough funds to develop this engine!", _texts(sim))

    def _with_engine(self, **overrides) -> CompanySim:
        sim = _sim(**overrides)
        sim.develop_engine(EngineDesign(), "Four")
        return sim

    def test_start_production_sets_rate_and_charges_batch(self):
        sim = self._with_engine()
        money, rp = sim.state.money, sim.state.research_points

        self.assertTrue(sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 40))

        car = sim.state.developed_cars[0]
        self.assertEqual(car.production.weekly_rate, 33)
        self.assertEqual(car.production.pu_per_unit, 15.0)
        self.assertEqual(sim.state.money, money - car.production_cost * 40)
        self.assertGreater(sim.state.research_points, rp)
        self.assertLessEqual(sim.capacity_load().used, sim.capacity_load().capacity)

    def test_production_rejected_when_factory_is_full(self):
        sim = self._with_engine()
        sim.start_production("First", "eng_1", CarDesign(), 9000, 40)
        before = len(sim.state.developed_cars)

        self.assertFalse(sim.start_production("Second", "eng_1", CarDesign(), 9000, 40))

        self.assertEqual(len(sim.state.developed_cars), before)
        self.assertTrue(sim.state.notifications[0].text.startswith("Factory Overloaded!"))

    def test_event_surcharge_is_charged_and_reported(self):
        event = WorldEvent("evt_steel", "Steel Shortage", "", "RESOURCE", 0, 12, EventModifiers(production_cost_multiplier=1.3))
        sim = self._with_engine(active_event=event)
        money = sim.state.money

        self.assertTrue(sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 10))

        car = sim.state.developed_cars[0]
        base = car.production_cost * 10
        self.assertEqual(money - sim.state.money, base + round(base * 0.3))
        self.assertTrue(any(text.startswith("Warning: Production cost increased") for text in _texts(sim)))

    def test_insufficient_funds_skips_surcharge_warning(self):
        event = WorldEvent("evt_steel", "Steel Shortage", "", "RESOURCE", 0, 12, EventModifiers(production_cost_multiplier=1.3))
        sim = self._with_engine(active_event=event)
        sim.state.money = 100

        self.assertFalse(sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 10))
        self.assertFalse(any(text.startswith("Warning") for text in _texts(sim)))
        self.assertIn("Insufficient funds to start production batch.", _texts(sim))

    def test_incompatible_engine_reports_bay_size(self):
        sim = self._with_engine()
        self.assertFalse(sim.start_production("Tiny", "eng_1", CarDesign(engine_bay_size=20), 9000, 10))
        self.assertIn("Engine requires size 35, but bay is only 20. Increase Bay Size slider!", _texts(sim))

    def test_future_parts_are_rejected(self):
        sim = self._with_engine()
        self.assertFalse(sim.start_production("Van", "eng_1", CarDesign(body_type_id="minivan_family"), 9000, 10))
        self.assertEqual(sim.state.developed_cars, [])

    def test_supplier_engine_can_power_a_car(self):
        sim = _sim()
        self.assertTrue(sim.start_production("Budget", "sup_kaiyo_16", CarDesign(), 7000, 10))
        self.assertTrue(sim.state.developed_cars[0].is_outsourced_engine)

    def test_drip_feed_release_and_completion(self):
        sim = self._with_engine()
        sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 40)

        sim.tick()
        car = sim.state.developed_cars[0]
        self.assertEqual(car.production.units_produced, 33)
        self.assertTrue(car.production.is_active)
        self.assertTrue(car.is_released)
        self.assertEqual(car.launch_day, 7)
        self.assertEqual(len(car.reviews), 4)

        sim.tick()
        car = sim.state.developed_cars[0]
        self.assertEqual(car.production.units_produced, 40)
        self.assertFalse(car.production.is_active)
        self.assertEqual(car.inventory + car.total_units_sold, 40)
        self.assertEqual(calculate_current_load(sim.state).used, 0)

    def test_liquidate_stock_recovers_half_cost(self):
        sim = self._with_engine()
        sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 10)
        car = replace(sim.state.developed_cars[0], inventory=10)
        sim.state.developed_cars = [car]
        money = sim.state.money

        self.assertTrue(sim.liquidate_stock(car.id))

        self.assertEqual(sim.state.money, money + round(10 * car.production_cost * 0.5))
        self.assertEqual(sim.state.developed_cars[0].inventory, 0)
        self.assertFalse(sim.liquidate_stock(car.id))


class TestRacing(unittest.TestCase):
    def test_join_and_switch_category(self):
        answers = []
        sim = _sim(brand_prestige=300, confirm=lambda message: answers.pop(0))

        self.assertTrue(sim.join_racing_category("rc_amateur"))
        team = sim.state.racing_team
        self.assertEqual(team.budget, RACING_DEFAULT_BUDGET)
        self.assertEqual(team.car_performance, 10)
        self.assertFalse(sim.join_racing_category("rc_amateur"))

        sim.state.racing_team = replace(team, history=(3, 5), budget=80000, car_performance=40)
        answers.append(False)
        self.assertFalse(sim.join_racing_category("rc_touring"))
        self.assertEqual(sim.state.racing_team.active_category_id, "rc_amateur")

        answers.append(True)
        self.assertTrue(sim.join_racing_category("rc_touring"))
        team = sim.state.racing_team
        self.assertEqual(team.active_category_id, "rc_touring")
        self.assertEqual(team.history, ())
        self.assertEqual(team.budget, 80000)
        self.assertEqual(team.car_performance, 10)

    def test_join_requires_prestige(self):
        sim = _sim(brand_prestige=10)
        self.assertFalse(sim.join_racing_category("rc_touring"))
        self.assertIn("Insufficient Prestige. You need 250 prestige to enter this series.", _texts(sim))

    def test_hire_and_fire_drivers(self):
        agents = [_driver("drv_1"), _driver("drv_2"), _driver("drv_3", salary=500_000)]
        sim = _sim(free_agents=agents)
        money = sim.state.money

        self.assertTrue(sim.hire_driver("drv_1"))
        self.assertTrue(sim.hire_driver("drv_3"))
        self.assertFalse(sim.hire_driver("drv_2"))
        self.assertIn("Team is full! Fire a driver first.", _texts(sim))
        self.assertEqual(sim.state.money, money - 2 * 480000)

        money = sim.state.money
        self.assertTrue(sim.fire_driver("drv_1"))
        self.assertEqual(sim.state.money, money - MIN_SEVERANCE)
        money = sim.state.money
        self.assertTrue(sim.fire_driver("drv_3"))
        self.assertEqual(sim.state.money, money - 1_500_000)
        self.assertEqual(sim.state.racing_team.drivers, ())

    def test_fire_blocked_without_severance_funds(self):
        sim = _sim(free_agents=[_driver("drv_1")])
        sim.hire_driver("drv_1")
        sim.state.money = 1000

        self.assertFalse(sim.fire_driver("drv_1"))
        self.assertEqual(len(sim.state.racing_team.drivers), 1)

    def test_weekly_race_updates_team(self):
        sim = _sim(free_agents=[_driver("drv_1")])
        sim.hire_driver("drv_1")
        sim.join_racing_category("rc_amateur")

        sim.tick()

        team = sim.state.racing_team
        self.assertIsNotNone(team.last_result)
        self.assertEqual(len(team.history), 1)
        self.assertAlmostEqual(team.drivers[0].stats.experience, 20.1)
        self.assertGreater(team.car_performance, 10)

    def test_banned_engine_cannot_be_selected(self):
        v12 = calculate_engine_stats(EngineDesign(layout="V12", bore=80, stroke=70), engine_id="eng_9", name="V12")
        sim = _sim(unlocked_engines=[v12])
        sim.join_racing_category("rc_amateur")

        self.assertFalse(sim.select_race_engine("eng_9"))
        self.assertIsNone(sim.state.racing_team.selected_engine_id)
        self.assertFalse(sim.select_race_engine("sup_kaiyo_16"))

    def test_set_racing_budget(self):
        sim = _sim()
        self.assertTrue(sim.set_racing_budget(120000))
        self.assertEqual(sim.state.racing_team.budget, 120000)
        self.assertFalse(sim.set_racing_budget(-1))


class TestResearchAndYears(unittest.TestCase):
    def test_future_tech_costs_more(self):
        sim = _sim()
        cost = sim.calculate_tech_cost(TECH_TREE["tech_alum_block"])
        self.assertEqual(cost.multiplier, 1.5)
        self.assertEqual(cost.money, 225_000)
        self.assertEqual(cost.research_points, 300)

    def test_research_needs_points(self):
        sim = _sim(research_points=200)
        self.assertFalse(sim.research_tech("tech_alum_block"))
        self.assertIn("Insufficient Research Points (RP). Design more cars to gain knowledge!", _texts(sim))

        self.assertTrue(sim.gain_research_points(150.9))
        self.assertEqual(sim.state.research_points, 350)
        prestige = sim.state.brand_prestige
        self.assertTrue(sim.research_tech("tech_alum_block"))
        self.assertEqual(sim.state.research_points, 50)
        self.assertEqual(sim.state.brand_prestige, prestige + 2)
        self.assertFalse(sim.research_tech("tech_alum_block"))

    def test_year_end_ages_drivers_and_refills_pool(self):
        sim = _sim(date=364, free_agents=[replace(_driver("drv_old"), age=39)])

        sim.tick()

        self.assertEqual(sim.year, 1971)
        self.assertIn("Happy New Year! Welcome to 1971.", _texts(sim))
        self.assertEqual(len(sim.state.free_agents), FREE_AGENT_POOL_SIZE)
        self.assertNotIn("drv_old", [agent.id for agent in sim.state.free_agents])

    def test_debug_force_year(self):
        sim = _sim()
        self.assertTrue(sim.debug_force_year())
        self.assertEqual(sim.state.date, 365)
        self.assertEqual(sim.year, 1971)


class TestTutorialAndFlow(unittest.TestCase):
    def test_tutorial_follows_progress(self):
        sim = _sim()
        self.assertTrue(sim.start_tutorial())
        self.assertEqual(sim.state.tutorial.current_step, 1)

        sim.develop_engine(EngineDesign(), "Four")
        self.assertEqual(sim.state.tutorial.current_step, 2)

        sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 40)
        self.assertEqual(sim.state.tutorial.current_step, 3)

        sim.tick()
        self.assertGreaterEqual(sim.state.tutorial.current_step, 4)

        prestige = sim.state.brand_prestige
        self.assertTrue(sim.complete_tutorial())
        self.assertEqual(sim.state.brand_prestige, prestige + 10)
        self.assertFalse(sim.complete_tutorial())
        self.assertFalse(sim.start_tutorial())

    def test_tutorial_reaches_final_step_once_units_sell(self):
        sim = _sim()
        sim.start_tutorial()
        sim.develop_engine(EngineDesign(), "Four")
        sim.start_production("Sedan", "eng_1", CarDesign(), 9000, 40)
        sim.state.developed_cars = [replace(car, total_units_sold=5) for car in sim.state.developed_cars]

        sim._advance_tutorial()

        self.assertEqual(sim.state.tutorial.current_step, TUTORIAL_FINAL_STEP)

    def test_pause_and_speed(self):
        sim = _sim()
        self.assertFalse(sim.toggle_pause())
        self.assertTrue(sim.toggle_pause())
        self.assertTrue(sim.set_game_speed(2))
        self.assertFalse(sim.set_game_speed(3))
        self.assertEqual(sim.state.game_speed, 2)

    def test_reset_asks_for_confirmation(self):
        answers = [False, True]
        sim = _sim(money=42, confirm=lambda message: answers.pop(0))

        self.assertFalse(sim.reset_game())
        self.assertEqual(sim.state.money, 42)
        self.assertTrue(sim.reset_game())
        self.assertEqual(sim.state.money, 5_000_000)

    def test_notifier_receives_messages(self):
        received = []
        sim = CompanySim(state=WorldState(), rng=ScriptedRandom(), notifier=lambda text, severity: received.append(severity))
        sim.take_loan("loan_global")
        self.assertEqual(received, ["alert"])

    def test_notification_log_is_capped(self):
        sim = _sim()
        for _ in range(30):
            sim.take_loan("loan_global")
        self.assertEqual(len(sim.state.notifications), 20)
        self.assertEqual(sim.state.notifications[0].id, 30)


if __name__ == "__main__":
    unittest.main()
