"""CompanySim: owns the world snapshot and advances it one week per tick.

The simulation has no pygame dependency and is safe to import in headless
and test contexts.  Player actions live in :class:`motorworks.commands.CommandHandlers`.
"""
from __future__ import annotations

import random
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Tuple

from config import (
    BANKRUPTCY_FLOOR,
    CONTRACT_BASE_CHANCE,
    CONTRACT_BREACH_MULTIPLIER,
    CONTRACT_PRESTIGE_DIVISOR,
    DAYS_PER_WEEK,
    DEFEAT,
    EVENT_CHANCE,
    FREE_AGENT_POOL_SIZE,
    FREE_AGENT_RETIREMENT_AGE,
    HISTORY_LIMIT,
    MAX_PENDING_OFFERS,
    MIN_INTEREST_RATE,
    NOTIFICATION_LIMIT,
    PLAYING,
    RACE_EXPERIENCE_GAIN,
    RACE_GROWTH_MAX_AGE,
    RACE_HISTORY_LIMIT,
    RACING_CATEGORIES,
    RACING_DEV_PER_POINT,
    SALES_PRESTIGE_CAP,
    SALES_PRESTIGE_MIN_UNITS,
    SALES_PRESTIGE_ROLL,
    SAVE_FILE,
    TUTORIAL_FINAL_STEP,
    VICTORY,
    VICTORY_MONEY,
    VICTORY_PRESTIGE,
    WEEKLY_OPEX,
    WORLD_EVENTS,
)
from motorworks import persistence
from motorworks.commands import CommandHandlers
from motorworks.contracts import generate_contract_offer
from motorworks.drivers import age_driver, generate_driver
from motorworks.entities import Engine, HistoryEntry, Notification, WorldEvent, WorldState
from motorworks.mathutil import round_half_up
from motorworks.production import CapacityLoad, calculate_current_load
from motorworks.racing import simulate_race
from motorworks.reviews import calculate_car_reviews
from motorworks.sales import calculate_weekly_sales
from motorworks.timeline import format_date, format_money, is_month_boundary, year_for_day

Notifier = Callable[[str, str], None]
ConfirmPrompt = Callable[[str], bool]


def _always_confirm(message: str) -> bool:
    return True


class CompanySim(CommandHandlers):
    """Week-by-week company simulation.

    ``notifier`` receives every player-facing message as ``(text, severity)``;
    ``confirm`` is asked before irreversible actions and defaults to yes.
    """

    def __init__(
        self,
        seed: int = 7,
        state: Optional[WorldState] = None,
        *,
        rng: Optional[random.Random] = None,
        notifier: Optional[Notifier] = None,
        confirm: Optional[ConfirmPrompt] = None,
    ) -> None:
        self.rng = rng if rng is not None else random.Random(seed)
        self.notifier = notifier
        self.confirm = confirm or _always_confirm
        self.state = state if state is not None else persistence.new_game_state(self.rng)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def year(self) -> int:
        return year_for_day(self.state.date)

    def _notify(self, text: str, severity: str = "info") -> None:
        notices = self.state.notifications
        serial = notices[0].id + 1 if notices else 1
        entry = Notification(serial, text, self.state.date, severity)
        self.state.notifications = [entry, *notices][:NOTIFICATION_LIMIT]
        if self.notifier is not None:
            self.notifier(text, severity)

    def capacity_load(self) -> CapacityLoad:
        return calculate_current_load(self.state)

    def find_engine(self, engine_id: str | None) -> Engine | None:
        if not engine_id:
            return None
        return next((engine for engine in self.state.unlocked_engines if engine.id == engine_id), None)

    def _advance_tutorial(self) -> None:
        tutorial = self.state.tutorial
        if not tutorial.is_active or tutorial.is_completed:
            return
        cars = self.state.developed_cars
        step = tutorial.current_step
        while True:
            if step == 1 and self.state.unlocked_engines:
                step = 2
            elif step == 2 and cars:
                step = 3
            elif step == 3 and any(car.inventory > 0 or car.total_units_sold > 0 for car in cars):
                step = 4
            elif step == TUTORIAL_FINAL_STEP - 1 and any(car.total_units_sold > 0 for car in cars):
                step = TUTORIAL_FINAL_STEP
            else:
                break
        if step != tutorial.current_step:
            self.state.tutorial = replace(tutorial, current_step=step)

    # ------------------------------------------------------------------
    # Save / Load helpers
    # ------------------------------------------------------------------

    def save(self, path: Path = SAVE_FILE) -> None:
        persistence.save_game(self.state, path)

    @classmethod
    def load(cls, path: Path = SAVE_FILE, seed: int = 7, **kwargs) -> "CompanySim":
        sim = cls(seed, **kwargs)
        sim.state = persistence.load_game(path, sim.rng)
        return sim

    def export_save(self) -> str:
        return persistence.export_save(self.state)

    @staticmethod
    def import_save(text: str, path: Path = SAVE_FILE) -> bool:
        return persistence.import_save(text, path)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _check_end_game(self) -> bool:
        """Latch defeat or victory; True when the tick must stop."""
        state = self.state
        if state.end_game_state != PLAYING:
            return True
        if state.money < BANKRUPTCY_FLOOR:
            state.end_game_state = DEFEAT
            state.is_paused = True
            self._notify("BANKRUPTCY: creditors have seized the company.", "alert")
            return True
        if not state.has_won and state.money >= VICTORY_MONEY and state.brand_prestige >= VICTORY_PRESTIGE:
            state.end_game_state = VICTORY
            state.has_won = True
            state.is_paused = True
            self._notify("VICTORY: your company dominates the automotive world!", "success")
            return True
        return False

    def _update_event(self) -> None:
        state = self.state
        if state.active_event is not None:
            if state.active_event.is_expired(state.date):
                state.active_event = None
                self._notify("Market Report: Global situation stabilized.", "success")
            return
        if WORLD_EVENTS and self.rng.random() < EVENT_CHANCE:
            template = self.rng.choice(list(WORLD_EVENTS.values()))
            state.active_event = WorldEvent(
                id=template.key,
                title=template.title,
                description=template.description,
                event_type=template.event_type,
                start_date=state.date,
                duration_weeks=template.duration_weeks,
                modifiers=template.modifiers,
            )
            self._notify(f"BREAKING NEWS: {template.title}", "alert")

    def _charge_interest(self) -> int:
        state = self.state
        if state.date <= 0 or not is_month_boundary(state.date) or not state.active_loans:
            return 0
        offset = state.active_event.modifiers.interest_rate_offset if state.active_event else 0.0
        interest = sum(
            int(loan.principal * max(MIN_INTEREST_RATE, loan.interest_rate + offset))
            for loan in state.active_loans
        )
        if interest > 0:
            state.total_interest_paid += interest
            self._notify(f"Bank Interest Payment: -{format_money(interest)}", "alert")
        return interest

    def run_year_end(self, new_year: int) -> None:
        state = self.state
        self._notify(f"Happy New Year! Welcome to {new_year}.", "info")

        team = state.racing_team
        drivers = []
        for driver in team.drivers:
            aged, message = age_driver(driver, self.rng)
            if message:
                self._notify(f"{aged.name} {message}", "alert" if aged.age > 33 else "success")
            if aged.contract_end_year < new_year:
                self._notify(f"Contract expired for {aged.name}.", "alert")
            drivers.append(aged)
        state.racing_team = replace(team, drivers=tuple(drivers))

        agents = [age_driver(agent, self.rng)[0] for agent in state.free_agents]
        agents = [agent for agent in agents if agent.age < FREE_AGENT_RETIREMENT_AGE]
        while len(agents) < FREE_AGENT_POOL_SIZE:
            agents.append(generate_driver(self.rng, new_year, state.next_id("drv")))
        state.free_agents = agents

    def _produce_and_sell(self) -> Tuple[int, int]:
        """Drip-feed production and run retail sales; returns ``(revenue, units_sold)``."""
        state = self.state
        year = self.year
        revenue = 0
        units_sold = 0
        cars = []
        for car in state.developed_cars:
            production = car.production
            if production is not None and production.is_active:
                output = min(production.weekly_rate, production.remaining)
                produced = production.units_produced + max(0, output)
                finished = produced >= production.total_batch_target
                car = replace(
                    car,
                    inventory=car.inventory + max(0, output),
                    production=replace(production, units_produced=produced, is_active=not finished),
                )
                if output > 0 and not car.is_released:
                    car = replace(car, launch_day=state.date)
                    reviews, score = calculate_car_reviews(car)
                    car = replace(car, is_released=True, reviews=tuple(reviews), final_review_score=score)
                    self._notify(f"LAUNCH: {car.name} is now hitting showrooms!", "success")
                if finished:
                    self._notify(f"Production Complete: {car.name} batch finished. Capacity released.", "success")

            if car.is_released and car.inventory > 0:
                result = calculate_weekly_sales(car, state.brand_prestige, year, state.active_event, self.rng)
                car = replace(
                    car,
                    inventory=result.remaining_stock,
                    total_units_sold=car.total_units_sold + result.units_sold,
                )
                revenue += result.revenue
                units_sold += result.units_sold
            cars.append(car)
        state.developed_cars = cars
        return revenue, units_sold

    def _process_contracts(self) -> Tuple[int, int, int]:
        """Deliver B2B units; returns ``(revenue, cost, penalties)``."""
        state = self.state
        revenue = cost = penalties = 0
        kept = []
        for contract in state.active_contracts:
            if state.date > contract.deadline:
                missing = contract.remaining
                if missing > 0:
                    penalty = round_half_up(missing * contract.price_per_unit * CONTRACT_BREACH_MULTIPLIER)
                    penalties += penalty
                    self._notify(
                        f"Contract EXPIRED! {contract.client_name} demanded {format_money(penalty)} "
                        f"in damages for missing {missing} units.",
                        "alert",
                    )
                else:
                    self._notify(f"Contract with {contract.client_name} finished (Deadline Reached).", "info")
                continue

            units = min(contract.weekly_target, contract.remaining)
            if units <= 0:
                kept.append(contract)
                continue
            engine = self.find_engine(contract.engine_id)
            revenue += units * contract.price_per_unit
            cost += units * (engine.production_cost if engine else 0)
            delivered = contract.delivered_quantity + units
            if delivered >= contract.total_quantity:
                self._notify(f"Contract with {contract.client_name} completed!", "success")
                continue
            kept.append(replace(contract, delivered_quantity=delivered, status="active"))
        state.active_contracts = kept
        return revenue, cost, penalties

    def _roll_contract_offer(self) -> None:
        state = self.state
        if not is_month_boundary(state.date) or len(state.contract_offers) >= MAX_PENDING_OFFERS:
            return
        chance = CONTRACT_BASE_CHANCE + state.brand_prestige / CONTRACT_PRESTIGE_DIVISOR
        if self.rng.random() >= chance or not state.unlocked_engines:
            return
        offer = generate_contract_offer(state.unlocked_engines, state.date, self.rng, state.next_id("contract"))
        if offer is not None:
            state.contract_offers = [offer, *state.contract_offers]
            self._notify(f"New B2B offer received from {offer.client_name}")

    def _run_racing(self) -> Tuple[int, int, int]:
        """Weekly racing costs and race; returns ``(expenses, prize, prestige_change)``."""
        state = self.state
        team = state.racing_team
        category = RACING_CATEGORIES.get(team.active_category_id or "")
        if category is None:
            return 0, 0, 0

        if team.drivers:
            expenses = category.weekly_cost * len(team.drivers)
        else:
            expenses = round_half_up(category.weekly_cost * 0.5)
        expenses += sum(round_half_up(driver.salary / 4) for driver in team.drivers)
        dev_spend = round_half_up(team.budget / 4)
        expenses += dev_spend
        if dev_spend > 0:
            team = replace(team, car_performance=min(100.0, team.car_performance + dev_spend / RACING_DEV_PER_POINT))

        result = simulate_race(team, category, self.find_engine(team.selected_engine_id), self.rng, state.date)
        positions = {entry.driver_id: entry.position for entry in result.entries}

        drivers = []
        for driver in team.drivers:
            stats = replace(driver.stats, experience=min(100, driver.stats.experience + RACE_EXPERIENCE_GAIN))
            position = positions.get(driver.id)
            if position is not None and position <= 3 and driver.age < RACE_GROWTH_MAX_AGE:
                growth = (4 - position) * 0.5
                skill = min(stats.talent, stats.skill + growth)
                if skill > stats.skill:
                    self._notify(f"{driver.name} improved skill (+{growth}) after a great P{position}!", "success")
                stats = replace(stats, skill=skill)
            drivers.append(replace(driver, stats=stats))

        state.racing_team = replace(
            team,
            drivers=tuple(drivers),
            last_result=result,
            history=(result.best_position, *team.history)[:RACE_HISTORY_LIMIT],
        )
        return expenses, result.prize_money, result.prestige_change

    def tick(self) -> bool:
        """Advance the world by one week.

        Returns ``False`` without changing anything else when an end-game
        state is (or becomes) latched.
        """
        if self._check_end_game():
            return False

        state = self.state
        previous_year = self.year
        state.date += DAYS_PER_WEEK

        self._update_event()
        interest = self._charge_interest()
        if self.year > previous_year:
            self.run_year_end(self.year)

        car_revenue, units_sold = self._produce_and_sell()
        b2b_revenue, b2b_cost, penalties = self._process_contracts()
        self._roll_contract_offer()
        racing_expenses, prize, race_prestige = self._run_racing()

        income = car_revenue + b2b_revenue + prize
        expenses = WEEKLY_OPEX + racing_expenses + b2b_cost
        net_profit = income - expenses - penalties - interest
        state.money += net_profit
        state.last_weekly_profit = net_profit

        prestige_delta = race_prestige
        if (
            units_sold > SALES_PRESTIGE_MIN_UNITS
            and state.brand_prestige < SALES_PRESTIGE_CAP
            and self.rng.random() > SALES_PRESTIGE_ROLL
        ):
            prestige_delta += 1
        state.brand_prestige = max(0, state.brand_prestige + prestige_delta)

        if is_month_boundary(state.date):
            entry = HistoryEntry(format_date(state.date), state.money, units_sold * 4, state.brand_prestige)
            state.history_log = [*state.history_log, entry][-HISTORY_LIMIT:]

        self._advance_tutorial()
        return True

    def run_weeks(self, weeks: int) -> int:
        """Tick up to ``weeks`` times; stops early on an end-game state."""
        completed = 0
        for _ in range(weeks):
            if not self.tick():
                break
            completed += 1
        return completed
