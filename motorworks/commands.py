"""Player commands, mixed into :class:`motorworks.simulation.CompanySim`.

Every command validates against the current snapshot first.  A rejected
command returns ``False``, raises an ``alert`` notification and leaves the
world untouched.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List

from config import (
    ENGINE_DEV_PRESTIGE,
    GAME_SPEEDS,
    LIQUIDATION_RATIO,
    LOAN_OFFERS,
    MAX_LOANS_PER_TIER,
    MAX_TEAM_DRIVERS,
    MIN_SEVERANCE,
    RACING_BASELINE_PERFORMANCE,
    RACING_BASELINE_RELIABILITY,
    RACING_CATEGORIES,
    RACING_DEFAULT_BUDGET,
    SEVERANCE_SALARY_MONTHS,
    TECH_ERA_GAP_PENALTY,
    TECH_PRESTIGE,
    TECH_TREE,
    TUTORIAL_PRESTIGE,
    VICTORY,
    PLAYING,
)
from motorworks import persistence
from motorworks.car_physics import (
    build_car_model,
    calculate_car_stats,
    calculate_research_reward,
    unavailable_parts,
)
from motorworks.engine_physics import (
    CYLINDER_LAYOUTS,
    calculate_development_cost,
    calculate_engine_stats,
    exceeds_layout_capacity,
    supplier_engines,
)
from motorworks.entities import (
    CarDesign,
    Engine,
    EngineDesign,
    FactoryState,
    Loan,
    ProductionState,
    TutorialState,
)
from motorworks.mathutil import round_half_up
from motorworks.production import next_factory_tier, unit_effort
from motorworks.racing import BANNED, validate_engine_for_category
from motorworks.timeline import format_money
from tech_catalog import TechDefinition

if TYPE_CHECKING:
    from motorworks.simulation import CompanySim


@dataclass(frozen=True)
class TechCost:
    money: int
    research_points: int
    multiplier: float


class CommandHandlers:
    """Command surface of the simulation."""

    # ------------------------------------------------------------------
    # Engines and cars
    # ------------------------------------------------------------------

    def _researched(self: "CompanySim") -> List[TechDefinition]:
        return [TECH_TREE[key] for key in self.state.unlocked_tech_ids if key in TECH_TREE]

    def available_engines(self: "CompanySim") -> List[Engine]:
        """Engines a car can be built on: own designs plus suppliers on the market."""
        return [*self.state.unlocked_engines, *supplier_engines(self.year)]

    def develop_engine(self: "CompanySim", design: EngineDesign, name: str) -> bool:
        if design.layout not in CYLINDER_LAYOUTS:
            self._notify(f"Unknown cylinder layout {design.layout}.", "alert")
            return False
        if not name.strip():
            self._notify("Name your engine!", "alert")
            return False

        researched = self._researched()
        unlocked_blocks = {tech.unlock_block for tech in researched if tech.unlock_block}
        unlocked_inductions = {tech.unlock_induction for tech in researched if tech.unlock_induction}
        gated_blocks = {tech.unlock_block for tech in TECH_TREE.values() if tech.unlock_block}
        gated_inductions = {tech.unlock_induction for tech in TECH_TREE.values() if tech.unlock_induction}
        if design.block in gated_blocks and design.block not in unlocked_blocks:
            self._notify(f"Research required: {design.block} blocks are not available yet.", "alert")
            return False
        if design.induction in gated_inductions and design.induction not in unlocked_inductions:
            self._notify(f"Research required: {design.induction} induction is not available yet.", "alert")
            return False

        bonus = sum(tech.quality_bonus for tech in researched)
        design = replace(design, quality=min(100, design.quality + bonus))
        engine = calculate_engine_stats(design, name=name.strip())
        if exceeds_layout_capacity(engine):
            limit = CYLINDER_LAYOUTS[engine.layout].max_capacity_cc
            self._notify(
                f"Displacement {engine.displacement}cc exceeds the {engine.layout} limit of {limit}cc.", "alert"
            )
            return False

        cost = calculate_development_cost(engine)
        if self.state.money < cost:
            self._notify("Not enough funds to develop this engine!", "alert")
            return False

        engine = replace(engine, id=self.state.next_id("eng"))
        self.state.money -= cost
        self.state.unlocked_engines = [*self.state.unlocked_engines, engine]
        self.state.brand_prestige += ENGINE_DEV_PRESTIGE
        self._notify(f"Engine Developed: {engine.name} ({engine.horsepower} HP).", "success")
        self._advance_tutorial()
        return True

    def start_production(
        self: "CompanySim",
        name: str,
        engine_id: str,
        design: CarDesign,
        base_price: int,
        batch_size: int,
    ) -> bool:
        state = self.state
        if not name.strip():
            self._notify("Name your model!", "alert")
            return False
        if batch_size < 1 or base_price <= 0:
            self._notify("Batch size and price must be positive.", "alert")
            return False
        engine = next((e for e in self.available_engines() if e.id == engine_id), None)
        if engine is None:
            self._notify("Select an engine before starting production.", "alert")
            return False
        blocked = unavailable_parts(design, self.year, state.unlocked_tech_ids)
        if blocked:
            self._notify(f"Parts not available yet: {', '.join(blocked)}.", "alert")
            return False

        result = calculate_car_stats(engine, design)
        if not result.compatible:
            self._notify(result.message, "alert")
            return False
        car = build_car_model("", name.strip(), engine, design, base_price)

        load = self.capacity_load()
        effort = unit_effort(car)
        weekly_rate = math.floor(load.free / effort)
        if weekly_rate < 1:
            self._notify(
                f"Factory Overloaded! Available capacity ({round_half_up(load.free)} PU) is less than "
                f"required for 1 car ({effort} PU). Upgrade factory or finish other jobs.",
                "alert",
            )
            return False

        total_cost = car.production_cost * batch_size
        surcharge = 0
        if state.active_event is not None:
            surcharge = round_half_up(total_cost * (state.active_event.modifiers.production_cost_multiplier - 1))
            total_cost += surcharge
        if state.money < total_cost:
            self._notify("Insufficient funds to start production batch.", "alert")
            return False

        if surcharge > 0:
            self._notify(
                f"Warning: Production cost increased by {format_money(surcharge)} due to "
                f"{state.active_event.title}.",
                "alert",
            )
        reward = calculate_research_reward(design, car.production_cost, self.year)
        car = replace(
            car,
            id=state.next_id("car"),
            batch_size=batch_size,
            production=ProductionState(
                is_active=True,
                total_batch_target=batch_size,
                units_produced=0,
                weekly_rate=weekly_rate,
                pu_per_unit=effort,
            ),
        )
        state.money -= total_cost
        state.research_points += reward
        state.developed_cars = [*state.developed_cars, car]
        self._notify(f"Project Complete! Engineering team gained +{reward} Research Points.", "info")
        weeks = math.ceil(batch_size / weekly_rate)
        self._notify(
            f"Production Started: {car.name}. Rate: {weekly_rate} cars/wk. Est. Time: {weeks} weeks.", "success"
        )
        self._advance_tutorial()
        return True

    def liquidate_stock(self: "CompanySim", car_id: str) -> bool:
        cars = self.state.developed_cars
        index = next((i for i, car in enumerate(cars) if car.id == car_id), None)
        if index is None or cars[index].inventory <= 0:
            self._notify("Nothing to liquidate.", "alert")
            return False
        car = cars[index]
        value = round_half_up(car.inventory * car.production_cost * LIQUIDATION_RATIO)
        self.state.money += value
        self.state.developed_cars = [*cars[:index], replace(car, inventory=0), *cars[index + 1:]]
        self._notify(f"Liquidated {car.inventory} units of {car.name} for {format_money(value)}.", "info")
        return True

    # ------------------------------------------------------------------
    # Racing
    # ------------------------------------------------------------------

    def join_racing_category(self: "CompanySim", category_id: str) -> bool:
        state = self.state
        category = RACING_CATEGORIES.get(category_id)
        team = state.racing_team
        if category is None:
            self._notify(f"Unknown racing series {category_id}.", "alert")
            return False
        if team.active_category_id == category_id:
            self._notify(f"Already competing in {category.display_name}.", "alert")
            return False
        if state.money < category.entry_fee:
            self._notify("Insufficient funds to pay entry fee.", "alert")
            return False
        if state.brand_prestige < category.min_prestige:
            self._notify(
                f"Insufficient Prestige. You need {category.min_prestige} prestige to enter this series.", "alert"
            )
            return False

        switching = team.active_category_id is not None
        if switching and not self.confirm(
            f"Switching to {category.display_name} resets your Car Performance progress. "
            f"Drivers stay. Pay {format_money(category.entry_fee)} and continue?"
        ):
            return False

        state.money -= category.entry_fee
        state.racing_team = replace(
            team,
            active_category_id=category_id,
            selected_engine_id=None,
            history=() if switching else team.history,
            last_result=None,
            budget=team.budget if switching else RACING_DEFAULT_BUDGET,
            car_performance=RACING_BASELINE_PERFORMANCE,
            car_reliability=RACING_BASELINE_RELIABILITY,
        )
        self._notify(f"Joined Racing Series: {category.display_name}", "success")
        return True

    def set_racing_budget(self: "CompanySim", amount: int) -> bool:
        if amount < 0:
            self._notify("Racing budget cannot be negative.", "alert")
            return False
        self.state.racing_team = replace(self.state.racing_team, budget=int(amount))
        return True

    def select_race_engine(self: "CompanySim", engine_id: str) -> bool:
        engine = self.find_engine(engine_id)
        if engine is None:
            self._notify("Only engines you have developed can race.", "alert")
            return False
        team = self.state.racing_team
        category = RACING_CATEGORIES.get(team.active_category_id or "")
        if category is not None:
            homologation = validate_engine_for_category(engine, category)
            if homologation.status == BANNED:
                self._notify(f"{engine.name} is banned from {category.display_name}: {homologation.reason}.", "alert")
                return False
        self.state.racing_team = replace(team, selected_engine_id=engine.id)
        return True

    def hire_driver(self: "CompanySim", driver_id: str) -> bool:
        state = self.state
        agent = next((d for d in state.free_agents if d.id == driver_id), None)
        if agent is None:
            self._notify("That driver is no longer available.", "alert")
            return False
        if len(state.racing_team.drivers) >= MAX_TEAM_DRIVERS:
            self._notify("Team is full! Fire a driver first.", "alert")
            return False
        if state.money < agent.market_value:
            self._notify("Insufficient funds for signing bonus.", "alert")
            return False

        state.money -= agent.market_value
        state.racing_team = replace(state.racing_team, drivers=(*state.racing_team.drivers, agent))
        state.free_agents = [d for d in state.free_agents if d.id != driver_id]
        self._notify(f"Hired driver: {agent.name}", "success")
        return True

    def fire_driver(self: "CompanySim", driver_id: str) -> bool:
        state = self.state
        team = state.racing_team
        driver = next((d for d in team.drivers if d.id == driver_id), None)
        if driver is None:
            self._notify("That driver is not on the team.", "alert")
            return False
        severance = max(driver.salary * SEVERANCE_SALARY_MONTHS, MIN_SEVERANCE)
        if state.money < severance:
            self._notify(
                f"Cannot fire {driver.name}. Insufficient funds for severance ({format_money(severance)}).", "alert"
            )
            return False

        state.money -= severance
        state.racing_team = replace(team, drivers=tuple(d for d in team.drivers if d.id != driver_id))
        self._notify(f"Fired {driver.name}. Paid severance fee of {format_money(severance)}.", "alert")
        return True

    # ------------------------------------------------------------------
    # Research
    # ------------------------------------------------------------------

    def calculate_tech_cost(self: "CompanySim", tech: TechDefinition) -> TechCost:
        era_gap = tech.era - self.year // 10
        multiplier = 1 + era_gap * TECH_ERA_GAP_PENALTY if era_gap > 0 else 1.0
        return TechCost(
            money=round_half_up(tech.cost * multiplier),
            research_points=round_half_up(tech.base_rp_cost * multiplier),
            multiplier=multiplier,
        )

    def research_tech(self: "CompanySim", tech_id: str) -> bool:
        state = self.state
        tech = TECH_TREE.get(tech_id)
        if tech is None:
            self._notify(f"Unknown technology {tech_id}.", "alert")
            return False
        if tech_id in state.unlocked_tech_ids:
            self._notify(f"{tech.display_name} is already researched.", "alert")
            return False
        cost = self.calculate_tech_cost(tech)
        if state.money < cost.money:
            self._notify("Insufficient funds for research.", "alert")
            return False
        if state.research_points < cost.research_points:
            self._notify("Insufficient Research Points (RP). Design more cars to gain knowledge!", "alert")
            return False

        state.money -= cost.money
        state.research_points -= cost.research_points
        state.unlocked_tech_ids = [*state.unlocked_tech_ids, tech_id]
        state.brand_prestige += TECH_PRESTIGE
        self._notify(f"Researched Technology: {tech.display_name}", "success")
        return True

    def gain_research_points(self: "CompanySim", amount: float) -> bool:
        if amount < 0:
            return False
        self.state.research_points += math.floor(amount)
        return True

    # ------------------------------------------------------------------
    # B2B contracts
    # ------------------------------------------------------------------

    def accept_contract(self: "CompanySim", contract_id: str) -> bool:
        state = self.state
        contract = next((c for c in state.contract_offers if c.id == contract_id), None)
        if contract is None:
            self._notify("That offer has been withdrawn.", "alert")
            return False
        engine = self.find_engine(contract.engine_id)
        if engine is None:
            self._notify("The contracted engine is no longer in your catalog.", "alert")
            return False

        needed = contract.weekly_target * unit_effort(engine)
        free = self.capacity_load().free
        if needed > free:
            self._notify(
                f"Capacity Insufficient! Need {round_half_up(needed)} PU/wk for this contract. "
                f"Only {round_half_up(free)} PU/wk available.",
                "alert",
            )
            return False

        state.contract_offers = [c for c in state.contract_offers if c.id != contract_id]
        state.active_contracts = [*state.active_contracts, replace(contract, status="active")]
        self._notify(
            f"Contract accepted with {contract.client_name}. Load: +{round_half_up(needed)} PU/wk", "success"
        )
        return True

    def reject_contract(self: "CompanySim", contract_id: str) -> bool:
        offers = self.state.contract_offers
        remaining = [c for c in offers if c.id != contract_id]
        if len(remaining) == len(offers):
            return False
        self.state.contract_offers = remaining
        return True

    # ------------------------------------------------------------------
    # Factory and bank
    # ------------------------------------------------------------------

    def upgrade_factory(self: "CompanySim") -> bool:
        state = self.state
        tier = next_factory_tier(state.factory.level)
        if tier is None:
            self._notify("Factory is already at the highest tier.", "alert")
            return False
        if state.money < tier.upgrade_cost:
            self._notify(f"Insufficient funds. Need {format_money(tier.upgrade_cost)}.", "alert")
            return False
        state.money -= tier.upgrade_cost
        state.factory = FactoryState(level=tier.level)
        self._notify(
            f"Factory Upgraded to {tier.display_name}! Capacity increased to {tier.weekly_capacity_pu} PU/wk.",
            "success",
        )
        return True

    def take_loan(self: "CompanySim", offer_id: str) -> bool:
        state = self.state
        offer = LOAN_OFFERS.get(offer_id)
        if offer is None:
            self._notify(f"Unknown loan offer {offer_id}.", "alert")
            return False
        if state.brand_prestige < offer.min_prestige:
            self._notify(f"{offer.display_name} requires {offer.min_prestige} prestige.", "alert")
            return False
        if sum(1 for loan in state.active_loans if loan.tier_id == offer_id) >= MAX_LOANS_PER_TIER:
            self._notify(
                f"Loan limit reached for this tier (Max {MAX_LOANS_PER_TIER}). Repay existing loans first.", "alert"
            )
            return False

        loan = Loan(
            id=state.next_id("loan"),
            tier_id=offer.key,
            name=offer.display_name,
            principal=offer.amount,
            interest_rate=offer.interest_rate,
            date_taken=state.date,
        )
        state.money += offer.amount
        state.active_loans = [*state.active_loans, loan]
        self._notify(f"Loan approved: {offer.display_name} (+{format_money(offer.amount)})", "success")
        return True

    def repay_loan(self: "CompanySim", loan_id: str) -> bool:
        state = self.state
        loan = next((l for l in state.active_loans if l.id == loan_id), None)
        if loan is None:
            return False
        if state.money < loan.principal:
            self._notify(f"Insufficient funds. You need {format_money(loan.principal)} to repay this loan.", "alert")
            return False
        state.money -= loan.principal
        state.active_loans = [l for l in state.active_loans if l.id != loan_id]
        self._notify(f"Loan repaid: {loan.name} (-{format_money(loan.principal)})", "success")
        return True

    # ------------------------------------------------------------------
    # Game flow
    # ------------------------------------------------------------------

    def debug_force_year(self: "CompanySim") -> bool:
        self.run_year_end(self.year + 1)
        self.state.date += 365
        return True

    def start_tutorial(self: "CompanySim") -> bool:
        if self.state.tutorial.is_completed:
            return False
        self.state.tutorial = TutorialState(is_active=True, current_step=1, is_completed=False)
        self._advance_tutorial()
        return True

    def complete_tutorial(self: "CompanySim") -> bool:
        if self.state.tutorial.is_completed:
            return False
        self.state.tutorial = replace(self.state.tutorial, is_active=False, is_completed=True)
        self.state.brand_prestige += TUTORIAL_PRESTIGE
        self._notify(f"Tutorial Completed! +{TUTORIAL_PRESTIGE} Prestige awarded.", "success")
        return True

    def continue_playing(self: "CompanySim") -> bool:
        if self.state.end_game_state != VICTORY:
            return False
        self.state.end_game_state = PLAYING
        self.state.is_paused = False
        return True

    def toggle_pause(self: "CompanySim") -> bool:
        self.state.is_paused = not self.state.is_paused
        return self.state.is_paused

    def set_game_speed(self: "CompanySim", speed: int) -> bool:
        if speed not in GAME_SPEEDS:
            return False
        self.state.game_speed = speed
        return True

    def reset_game(self: "CompanySim") -> bool:
        if not self.confirm("Reset the company? All progress will be lost."):
            return False
        self.state = persistence.new_game_state(self.rng)
        return True
