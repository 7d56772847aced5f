"""
卡牌规则引擎 - 命令行演示
按主题文件自动对战一局，并用 rich 输出最终战况

使用方法:
    python main.py --players 3 --seed 42
    python main.py --theme data/demo_theme.json --locale en_US --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cardgame import (
    Card,
    EventType,
    GamePhase,
    GameStateManager,
    ManualScheduler,
    Theme,
    TurnManager,
    load_theme,
)
from i18n import get_available_locales, phase_name, set_locale, t
from logging_config import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_THEME = Path(__file__).parent / "data" / "demo_theme.json"
ENERGY = "energy"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=t("cli.description"))
    parser.add_argument("--players", type=int, default=2, help="number of players")
    parser.add_argument("--turns", type=int, default=20, help="stop after this many turns")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--theme", type=Path, default=DEFAULT_THEME, help="theme JSON file")
    parser.add_argument("--locale", choices=get_available_locales(), default=None)
    parser.add_argument("--log-level", default="INFO", help="log file level")
    return parser


class DemoGame:
    """自动对战：每回合打出手里能负担的最贵的一张牌"""

    def __init__(self, theme: Theme, players: int, seed: int | None):
        self.theme = theme
        self.scheduler = ManualScheduler()
        self.manager = GameStateManager(theme.config, theme.cards, rng=random.Random(seed))
        self.turns = TurnManager(self.manager, scheduler=self.scheduler)
        self.log: list[str] = []
        self.winner: str | None = None
        self.reason: str | None = None

        bus = self.manager.event_bus
        bus.on(EventType.CARD_PLAYED, self._on_card_played)
        bus.on(EventType.GAME_ENDED, self._on_game_ended)

        for n in range(1, players + 1):
            self.manager.add_player(f"p{n}", t("cli.player_name", n=n))

    def _on_card_played(self, event, state) -> None:
        player = state.players[event.player_id]
        name = self.manager.card_definitions[event.data["definition_id"]].name
        self.log.append(t("cli.played", player=player.name, card=name))

    def _on_game_ended(self, event, state) -> None:
        self.winner = event.data["winner_id"]
        self.reason = event.data["reason"]

    def play(self, max_turns: int) -> None:
        if not self.turns.start_game():
            return
        while self.manager.phase != GamePhase.GAME_OVER:
            if self.manager.turn > max_turns:
                self.manager.end_game(None, t("cli.stopped"))
                break
            self._play_turn()

    def _play_turn(self) -> None:
        if self.turns.current_phase_name == GamePhase.DRAW:
            self.turns.advance_phase()
            self.scheduler.run_pending()

        player_id = self.manager.current_player_id
        chosen = self._choose_card(player_id)
        if chosen is not None:
            card, targets = chosen
            self.manager.modify_resource(player_id, ENERGY, -card.cost)
            self.manager.play_card(player_id, card.id, targets)
            if self.turns.check_and_end_game():
                return

        # main -> action -> resolve，之后自动走完本回合
        while self.manager.current_player_id == player_id and self.turns.current_phase_name in (
            GamePhase.MAIN,
            GamePhase.ACTION,
        ):
            self.turns.advance_phase()
            self.scheduler.run_pending()
            if len(self.manager.get_all_players()) == 1:
                break
        self.turns.check_and_end_game()

    def _choose_card(self, player_id: str) -> tuple[Card, dict] | None:
        hand = self.manager.get_player_hand(player_id)
        player = self.manager.get_player(player_id)
        if hand is None or player is None:
            return None
        energy = player.resources.get(ENERGY, 0)
        affordable = [c for c in hand.get_cards() if c.cost <= energy]
        if not affordable:
            return None
        card = max(affordable, key=lambda c: c.cost)

        request = self.manager.effect_resolver.needs_target_selection_for_card(
            card.effects, self.manager.get_state_snapshot(), player_id, card.id
        )
        targets = {"selected": [request.valid_targets[0]]} if request else {}
        return card, targets


def render(console: Console, game: DemoGame) -> None:
    manager = game.manager
    table = Table(
        title=t("cli.title", theme=game.theme.name, turn=manager.turn),
        caption=phase_name(manager.phase.value),
        expand=True,
        border_style="green",
    )
    table.add_column(t("cli.col_player"), style="cyan", no_wrap=True)
    table.add_column(t("cli.col_stats"))
    table.add_column(t("cli.col_resources"))
    table.add_column(t("cli.col_hand"), justify="right")
    table.add_column(t("cli.col_deck"), justify="right")
    table.add_column(t("cli.col_discard"), justify="right")
    table.add_column(t("cli.col_status"))

    for player in manager.get_all_players():
        statuses = ", ".join(s.name for s in player.statuses)
        state = t("cli.eliminated") if player.eliminated else t("cli.active")
        table.add_row(
            player.name,
            ", ".join(f"{k}={v}" for k, v in player.stats.items()),
            ", ".join(f"{k}={v}" for k, v in player.resources.items()),
            str(len(player.hand)),
            str(len(player.deck)),
            str(len(player.discard_pile)),
            f"{state} {statuses}".strip(),
        )
    console.print(table)

    log_text = Text("\n".join(game.log[-12:]), style="dim")
    console.print(Panel(log_text, title=t("cli.log_title"), border_style="white"))

    winner = manager.get_player(game.winner) if game.winner else None
    headline = t("cli.winner", name=winner.name) if winner else t("cli.no_winner")
    summary = Text(headline, style="bold yellow")
    if game.reason:
        summary.append("\n" + t("cli.reason", reason=game.reason), style="white")
    console.print(Panel(summary, border_style="yellow"))


def main(argv: list[str] | None = None) -> int:
    """程序入口"""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, enable_console=False)
    if args.locale:
        set_locale(args.locale)

    console = Console()
    try:
        theme = load_theme(args.theme)
        game = DemoGame(theme, args.players, args.seed)
        game.play(args.turns)
        render(console, game)
    except (ValidationError, OSError) as e:
        logger.error("Cannot load theme %s: %s", args.theme, e)
        console.print(t("cli.theme_error", error=e), style="red", markup=False)
        return 2
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt - exiting")
        console.print(t("cli.interrupted"))
        return 0
    except Exception as e:
        logger.exception("Unhandled exception")
        console.print(t("cli.error", error=e), style="red", markup=False)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
