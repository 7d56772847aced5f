"""Deck / Hand 的性质测试（Property-based）。

核心不变量：
1. 任意洗牌/摸牌/弃牌/洗回序列后，摸牌堆 + 弃牌堆 + 手上的牌数恒等于初始总数
2. 手牌数量永远不超过上限
3. 每张牌的状态与它所在的区域一致
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

from cardgame.card import Deck
from cardgame.enums import CardState
from cardgame.hand import Hand
from cardgame.models import CardDefinition

_DEFINITIONS = [CardDefinition(id=f"c{i}", type="action", name=f"C{i}") for i in range(6)]

_operations = st.lists(
    st.sampled_from(["draw", "discard_drawn", "shuffle", "reshuffle", "play_to_hand"]),
    max_size=60,
)


# ---------------------------------------------------------------------------
# 性质 1: 牌数守恒
# ---------------------------------------------------------------------------

@given(ops=_operations, copies=st.integers(min_value=1, max_value=4), seed=st.integers())
@settings(max_examples=200)
def test_deck_conservation(ops: list[str], copies: int, seed: int) -> None:
    """摸出的牌都放回弃牌堆时，size + discard_size 恒等于初始总数。"""
    deck = Deck.from_definitions(_DEFINITIONS, copies=copies, rng=random.Random(seed))
    total = deck.total_cards
    assert total == len(_DEFINITIONS) * copies

    for op in ops:
        if op in ("draw", "discard_drawn", "play_to_hand"):
            card = deck.draw()
            if card is not None:
                deck.discard(card)
        elif op == "shuffle":
            deck.shuffle()
        else:
            deck.reshuffle_discard()
        assert deck.size + deck.discard_size == total


# ---------------------------------------------------------------------------
# 性质 2 & 3: 手牌上限与卡牌状态
# ---------------------------------------------------------------------------

@given(
    ops=_operations,
    max_size=st.integers(min_value=1, max_value=8),
    seed=st.integers(),
)
@settings(max_examples=200)
def test_hand_limit_and_states(ops: list[str], max_size: int, seed: int) -> None:
    rng = random.Random(seed)
    deck = Deck.from_definitions(_DEFINITIONS, copies=2, rng=rng)
    hand = Hand(max_size)
    total = deck.total_cards

    for op in ops:
        if op == "draw" or op == "play_to_hand":
            if deck.is_empty and deck.discard_size:
                deck.reshuffle_discard()
            card = deck.draw()
            if card is not None and not hand.add_card(card):
                deck.discard(card)
        elif op == "discard_drawn":
            card = hand.discard_random(rng)
            if card is not None:
                deck.discard(card)
        elif op == "shuffle":
            deck.shuffle()
        else:
            deck.reshuffle_discard()

        assert hand.size <= max_size
        assert deck.size + deck.discard_size + hand.size == total

    assert all(c.state == CardState.IN_DECK for c in deck.get_cards())
    assert all(c.state == CardState.DISCARDED for c in deck.get_discard_pile())
    assert all(c.state == CardState.IN_HAND for c in hand.get_cards())
