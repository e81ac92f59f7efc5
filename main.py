from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import DEFEAT, MONTH_DAYS, SAVE_FILE, VICTORY, VICTORY_MONEY, VICTORY_PRESTIGE
from motorworks import CarDesign, CompanySim, EngineDesign, TickScheduler
from motorworks.car_physics import calculate_car_stats
from motorworks.mathutil import clamp, round_half_up
from motorworks.timeline import format_date, format_money

SCREEN_W = 1040
SCREEN_H = 680
FPS = 60
STARTER_BATCH = 120
STARTER_MARKUP = 1.5

logger = logging.getLogger(__name__)


def configure_logging(*, level: int = logging.INFO) -> None:
    """Configure a stdout root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            stream=sys.stdout,
        )
    else:
        root.setLevel(level)


def bootstrap_company(sim: CompanySim) -> None:
    """Give a fresh company one engine and a first production batch."""
    if not sim.develop_engine(EngineDesign(), "Founder I4"):
        return
    engine = sim.state.unlocked_engines[-1]
    design = CarDesign()
    stats = calculate_car_stats(engine, design)
    if not stats.compatible:
        return
    price = round_half_up(stats.production_cost * STARTER_MARKUP)
    sim.start_production("Founder Sedan", engine.id, design, price, STARTER_BATCH)


def run_headless(weeks: int, seed: int, load_save: bool) -> None:
    if load_save and SAVE_FILE.exists():
        sim = CompanySim.load(SAVE_FILE, seed=seed)
    else:
        sim = CompanySim(seed)
        bootstrap_company(sim)

    completed = sim.run_weeks(weeks)
    sim.save()
    state = sim.state
    load = sim.capacity_load()
    print(
        f"headless_done weeks={completed} date={format_date(state.date)} state={state.end_game_state}"
        f" economy[cash={format_money(state.money)},profit={format_money(state.last_weekly_profit)},"
        f"debt={format_money(state.current_debt)}]"
        f" brand[prestige={state.brand_prestige},rp={state.research_points}]"
        f" factory[tier={state.factory.level},load={load.used:.0f}/{load.capacity}]"
        f" catalog[engines={len(state.unlocked_engines)},cars={len(state.developed_cars)},"
        f"contracts={len(state.active_contracts)}]"
    )


class GameUI:
    def __init__(self, sim: CompanySim):
        if pygame is None:
            raise RuntimeError("pygame is not installed. Relaunch with --headless.")
        try:
            pygame.init()
            pygame.display.init()
        except pygame.error as exc:
            raise RuntimeError(f"Display initialisation failed ({exc}). Relaunch with --headless.") from exc
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")

        self.sim = sim
        self.scheduler = TickScheduler(sim, on_tick=self._auto_save)
        self.screen = pygame.display.set_mode((SCREEN_W, SCREEN_H))
        pygame.display.set_caption("Motorworks")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("arial", 22)
        self.small = pygame.font.SysFont("arial", 17)
        self.running = True

        self.palette = {
            "bg": (12, 15, 24),
            "panel": (20, 25, 38),
            "panel_border": (46, 56, 80),
            "text": (230, 236, 248),
            "muted": (161, 177, 205),
            "info": (161, 177, 205),
            "alert": (242, 120, 98),
            "success": (106, 212, 148),
        }

    @staticmethod
    def _auto_save(sim: CompanySim) -> None:
        if sim.state.date % MONTH_DAYS == 0:
            sim.save()
            logger.info("Auto-saved on %s", format_date(sim.state.date))

    def _attach(self, sim: CompanySim) -> None:
        self.sim = sim
        self.scheduler = TickScheduler(sim, on_tick=self._auto_save)

    def handle_input(self) -> None:
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self.running = False
            if ev.type != pygame.KEYDOWN:
                continue
            if ev.key == pygame.K_ESCAPE:
                self.running = False
            elif ev.key == pygame.K_SPACE:
                self.sim.toggle_pause()
            elif ev.key == pygame.K_f:
                self.sim.set_game_speed(1 if self.sim.state.game_speed == 2 else 2)
            elif ev.key == pygame.K_n:
                self.scheduler.step()
            elif ev.key == pygame.K_s:
                self.sim.save()
            elif ev.key == pygame.K_l and SAVE_FILE.exists():
                self._attach(CompanySim.load(SAVE_FILE))
            elif ev.key == pygame.K_c:
                self.sim.continue_playing()

    def _draw_metric_card(self, x: int, y: int, w: int, title: str, value: float, hue: Tuple[int, int, int]) -> None:
        card = pygame.Rect(x, y, w, 54)
        pygame.draw.rect(self.screen, (27, 34, 48), card, border_radius=10)
        pygame.draw.rect(self.screen, (56, 68, 94), card, width=1, border_radius=10)
        self.screen.blit(self.small.render(title, True, self.palette["muted"]), (x + 10, y + 8))
        self.screen.blit(self.font.render(f"{value:5.1f}%", True, self.palette["text"]), (x + 10, y + 23))
        bar_bg = pygame.Rect(x + 96, y + 25, w - 108, 16)
        pygame.draw.rect(self.screen, (43, 49, 63), bar_bg, border_radius=8)
        fill = pygame.Rect(bar_bg.x, bar_bg.y, int(bar_bg.w * clamp(value / 100.0, 0.0, 1.0)), bar_bg.h)
        pygame.draw.rect(self.screen, hue, fill, border_radius=8)

    def _blit_lines(self, lines: List[Tuple[str, Tuple[int, int, int]]], x: int, y: int) -> None:
        for offset, (text, color) in enumerate(lines):
            self.screen.blit(self.small.render(text, True, color), (x, y + offset * 22))

    def _fleet_lines(self) -> List[Tuple[str, Tuple[int, int, int]]]:
        lines = []
        for car in self.sim.state.developed_cars[-8:]:
            status = "launched" if car.is_released else "tooling"
            if car.production is not None and car.production.is_active:
                status = f"{car.production.units_produced}/{car.production.total_batch_target} built"
            lines.append(
                (
                    f"{car.name}: {status} | stock {car.inventory} | sold {car.total_units_sold}"
                    f" | score {car.final_review_score}",
                    self.palette["text"],
                )
            )
        return lines or [("No models yet.", self.palette["muted"])]

    def draw(self) -> None:
        state = self.sim.state
        self.screen.fill(self.palette["bg"])

        header = pygame.Rect(0, 0, SCREEN_W, 70)
        pygame.draw.rect(self.screen, self.palette["panel"], header)
        pygame.draw.line(self.screen, self.palette["panel_border"], header.bottomleft, header.bottomright, 2)
        speed = "FAST" if state.game_speed == 2 else "NORMAL"
        run_state = "PAUSED" if state.is_paused else speed
        headline = (
            f"{format_date(state.date)} | {run_state} | Cash {format_money(state.money)}"
            f" | Weekly {format_money(state.last_weekly_profit)} | Prestige {state.brand_prestige}"
            f" | RP {state.research_points}"
        )
        self.screen.blit(self.font.render(headline, True, self.palette["text"]), (14, 10))
        help_text = "SPACE pause, F speed, N next week, S save, L load, C continue, ESC quit"
        self.screen.blit(self.small.render(help_text, True, self.palette["muted"]), (14, 42))

        load = self.sim.capacity_load()
        card_w = (SCREEN_W - 40) // 3
        load_pct = 100.0 * load.used / load.capacity if load.capacity else 0.0
        money_pct = 100.0 * max(0, state.money) / VICTORY_MONEY
        prestige_pct = 100.0 * state.brand_prestige / VICTORY_PRESTIGE
        self._draw_metric_card(10, 84, card_w, "Factory Load", load_pct, (242, 186, 88))
        self._draw_metric_card(20 + card_w, 84, card_w, "Cash Goal", money_pct, (106, 212, 148))
        self._draw_metric_card(30 + card_w * 2, 84, card_w, "Prestige Goal", prestige_pct, (101, 189, 255))

        self.screen.blit(self.font.render("Models", True, self.palette["text"]), (14, 154))
        self._blit_lines(self._fleet_lines(), 14, 184)

        self.screen.blit(self.font.render("News", True, self.palette["text"]), (14, 374))
        notices = [(n.text, self.palette.get(n.severity, self.palette["info"])) for n in state.notifications[:12]]
        self._blit_lines(notices, 14, 404)

        if state.end_game_state in (VICTORY, DEFEAT):
            banner = "VICTORY! Press C to keep playing." if state.end_game_state == VICTORY else "BANKRUPT."
            color = self.palette["success"] if state.end_game_state == VICTORY else self.palette["alert"]
            text = self.font.render(banner, True, color)
            self.screen.blit(text, text.get_rect(center=(SCREEN_W // 2, SCREEN_H - 30)))

        pygame.display.flip()

    def run(self) -> None:
        while self.running:
            elapsed_ms = self.clock.tick(FPS)
            self.handle_input()
            self.scheduler.advance(elapsed_ms)
            self.draw()
        self.sim.save()
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Motorworks vehicle manufacturing tycoon")
    parser.add_argument("--headless", action="store_true", help="run simulation without graphics")
    parser.add_argument("--weeks", type=int, default=52, help="headless weeks to simulate")
    parser.add_argument("--seed", type=int, default=7, help="random seed for a new company")
    parser.add_argument("--load", action="store_true", help="continue from the save file")
    args = parser.parse_args()

    configure_logging()

    if args.headless:
        run_headless(args.weeks, args.seed, args.load)
        return

    if args.load and SAVE_FILE.exists():
        sim = CompanySim.load(SAVE_FILE, seed=args.seed)
    else:
        sim = CompanySim(args.seed)

    try:
        ui = GameUI(sim)
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        sys.exit(1)
    ui.run()


if __name__ == "__main__":
    main()
