"""GameStateManager 的性质测试（Property-based）。

核心不变量：
1. 每个卡牌实例只出现在 hand / deck / discard_pile / play_area 之一
2. 手牌数量永远不超过 max_hand_size
3. 资源永远不为负，属性不做裁剪
4. 加入玩家数量不超过 max_players
"""

from __future__ import annotations

import random
import sys
from pathlib import Path

_project_root = str(Path(__file__).resolve().parents[2])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from hypothesis import given, settings
from hypothesis import strategies as st

from cardgame.config import GameConfig
from cardgame.models import CardDefinition, Effect
from cardgame.state_manager import GameStateManager

_DEFINITIONS = [
    CardDefinition(id="plain", type="action", name="Plain"),
    CardDefinition(id="draw", type="event", name="Draw",
                   effects=(Effect(type="draw_cards", value=2),)),
    CardDefinition(id="drain", type="action", name="Drain",
                   effects=(Effect(type="lose_resource", target="opponent", value=3,
                                   metadata={"resource": "gold"}),)),
    CardDefinition(id="reorg", type="event", name="Reorg",
                   effects=(Effect(type="discard_cards", target="opponent", value=1),)),
    CardDefinition(id="boost", type="action", name="Boost",
                   effects=(Effect(type="modify_stat", value=-4, metadata={"stat": "score"}),)),
]

_action = st.tuples(
    st.sampled_from(["draw", "play", "discard", "end_turn", "resource", "stat"]),
    st.integers(min_value=-5, max_value=5),
)


def _check_invariants(manager: GameStateManager, total_per_player: int) -> None:
    for player in manager.get_all_players():
        ids = [
            c.instance_id
            for pile in (player.hand, player.deck, player.discard_pile, player.play_area)
            for c in pile
        ]
        assert len(ids) == len(set(ids)) == total_per_player
        assert len(player.hand) <= manager.config.max_hand_size
        assert all(amount >= 0 for amount in player.resources.values())


@given(
    actions=st.lists(_action, max_size=50),
    max_hand=st.integers(min_value=1, max_value=6),
    seed=st.integers(),
)
@settings(max_examples=100, deadline=None)
def test_state_invariants_hold(actions: list[tuple[str, int]], max_hand: int, seed: int) -> None:
    config = GameConfig(
        min_players=2,
        max_players=2,
        initial_hand_size=min(3, max_hand),
        max_hand_size=max_hand,
        initial_stats={"score": 0},
        initial_resources={"gold": 2},
    )
    manager = GameStateManager(config, _DEFINITIONS, rng=random.Random(seed))
    manager.add_player("p1", "A")
    manager.add_player("p2", "B")
    assert manager.start_game()
    _check_invariants(manager, len(_DEFINITIONS))

    for kind, amount in actions:
        current = manager.current_player_id
        hand = manager.get_player_hand(current)
        if kind == "draw":
            manager.draw_cards(current, abs(amount))
        elif kind == "play" and not hand.is_empty:
            manager.play_card(current, hand.get_card_at(0).id)
        elif kind == "discard" and not hand.is_empty:
            manager.discard_card(current, hand.get_card_at(hand.size - 1).id)
        elif kind == "end_turn":
            manager.end_turn()
        elif kind == "resource":
            manager.modify_resource(current, "gold", amount)
        elif kind == "stat":
            manager.modify_stat(current, "score", amount)
        _check_invariants(manager, len(_DEFINITIONS))


@given(
    attempts=st.integers(min_value=0, max_value=12),
    max_players=st.integers(min_value=1, max_value=6),
)
@settings(max_examples=100)
def test_player_cap(attempts: int, max_players: int) -> None:
    manager = GameStateManager(GameConfig(max_players=max_players), _DEFINITIONS)
    results = [manager.add_player(f"p{i}", f"P{i}") for i in range(attempts)]

    assert sum(r is not None for r in results) == min(attempts, max_players)
    assert all(r is None for r in results[max_players:])


@given(deltas=st.lists(st.integers(min_value=-100, max_value=100), max_size=30))
@settings(max_examples=100)
def test_stats_unclamped(deltas: list[int]) -> None:
    manager = GameStateManager(GameConfig(initial_stats={"score": 0}), _DEFINITIONS)
    manager.add_player("p1", "A")
    for delta in deltas:
        manager.modify_stat("p1", "score", delta)
    assert manager.get_player("p1").stats["score"] == sum(deltas)
