"""
卡牌系统单元测试
测试 Card、Deck、Hand 类
"""

import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cardgame.card import Card, CardFilter, Deck
from cardgame.enums import CardRarity, CardState, CardType
from cardgame.hand import Hand
from cardgame.models import CardDefinition, CardModifier, Effect


def make_definition(card_id="strike", **kwargs):
    kwargs.setdefault("type", CardType.ACTION)
    kwargs.setdefault("name", card_id.title())
    return CardDefinition(id=card_id, **kwargs)


class TestCard:
    """卡牌测试"""

    def test_definition_coerces_strings(self):
        """测试字符串类型自动转换为枚举"""
        definition = CardDefinition(
            id="x", type="event", name="X", rarity="rare",
            tags=["a", "b"], effects=[Effect(type="draw_cards", value=1)],
        )
        assert definition.type == CardType.EVENT
        assert definition.rarity == CardRarity.RARE
        assert definition.tags == ("a", "b")
        assert isinstance(definition.effects, tuple)

    def test_new_card_is_in_deck(self):
        card = Card(make_definition())
        assert card.state == CardState.IN_DECK
        assert card.definition_id == "strike"
        assert card.id.startswith("card_")

    def test_cost_includes_modifiers(self):
        """测试费用修正叠加"""
        card = Card(make_definition(cost=3))
        card.add_modifier(CardModifier(id="m1", type="cost", value=-1, duration=2))
        card.add_modifier(CardModifier(id="m2", type="cost", value=-1))
        card.add_modifier(CardModifier(id="m3", type="power", value=5))

        assert card.cost == 1

    def test_tick_modifiers_expires_finite_ones(self):
        card = Card(make_definition(cost=3))
        card.add_modifier(CardModifier(id="short", type="cost", value=-1, duration=1))
        card.add_modifier(CardModifier(id="long", type="cost", value=-1, duration=2))
        card.add_modifier(CardModifier(id="forever", type="cost", value=1, duration=-1))

        expired = card.tick_modifiers()

        assert [m.id for m in expired] == ["short"]
        assert {m.id for m in card.modifiers} == {"long", "forever"}
        assert card.cost == 3

    def test_remove_modifier(self):
        card = Card(make_definition())
        card.add_modifier(CardModifier(id="m1", type="cost", value=1))
        assert card.remove_modifier("m1")
        assert not card.remove_modifier("m1")

    def test_matches_filter(self):
        card = Card(make_definition(cost=2, rarity=CardRarity.RARE, tags=("fire", "aoe")))

        assert card.matches(CardFilter(type=CardType.ACTION, tags=["fire"]))
        assert card.matches(CardFilter(min_cost=2, max_cost=2))
        assert not card.matches(CardFilter(rarity=CardRarity.COMMON))
        assert not card.matches(CardFilter(tags=["fire", "ice"]))
        assert not card.matches(CardFilter(max_cost=1))

    def test_clone_has_new_identity(self):
        card = Card(make_definition())
        card.add_modifier(CardModifier(id="m1", type="cost", value=1))
        copy = card.clone()

        assert copy.id != card.id
        assert copy != card
        copy.clear_modifiers()
        assert len(card.modifiers) == 1

    def test_to_dict_contains_definition(self):
        data = Card(make_definition()).to_dict()
        assert data["definition"]["id"] == "strike"
        assert data["state"] == "in_deck"


class TestDeck:
    """牌堆测试"""

    def setup_method(self):
        self.definitions = [make_definition(f"c{i}", cost=i) for i in range(5)]
        self.deck = Deck.from_definitions(self.definitions, rng=random.Random(1))

    def test_from_definitions(self):
        assert self.deck.size == 5
        assert len(self.deck) == 5
        assert self.deck.discard_size == 0

    def test_copies_mapping(self):
        deck = Deck.from_definitions(self.definitions, copies={"c0": 3})
        assert deck.size == 7

    def test_draw_takes_top(self):
        """测试摸牌从牌堆顶取"""
        top = self.deck.peek()
        drawn = self.deck.draw()

        assert drawn == top
        assert drawn.state == CardState.IN_HAND
        assert self.deck.size == 4

    def test_draw_from_empty_returns_none(self):
        self.deck.clear()
        assert self.deck.draw() is None
        assert self.deck.peek() is None

    def test_draw_multiple_stops_when_empty(self):
        drawn = self.deck.draw_multiple(10)
        assert len(drawn) == 5
        assert self.deck.is_empty

    def test_peek_multiple_in_draw_order(self):
        peeked = self.deck.peek_multiple(3)
        drawn = self.deck.draw_multiple(3)
        assert [c.id for c in peeked] == [c.id for c in drawn]

    def test_add_card_positions(self):
        top = Card(make_definition("top"))
        bottom = Card(make_definition("bottom"))
        self.deck.add_card(top, "top")
        self.deck.add_card(bottom, "bottom")

        assert self.deck.peek() == top
        assert self.deck.get_cards()[0] == bottom

        self.deck.add_card(Card(make_definition("mid")), "random")
        assert self.deck.size == 8

    def test_draw_specific(self):
        card = self.deck.draw_specific(CardFilter(min_cost=4))
        assert card.definition_id == "c4"
        assert self.deck.size == 4
        assert self.deck.draw_specific(CardFilter(min_cost=10)) is None

    def test_discard_and_reshuffle(self):
        """测试弃牌堆洗回牌堆"""
        cards = self.deck.draw_multiple(3)
        self.deck.discard_multiple(cards)
        assert self.deck.discard_size == 3
        assert all(c.state == CardState.DISCARDED for c in self.deck.get_discard_pile())

        self.deck.reshuffle_discard()

        assert self.deck.size == 5
        assert self.deck.discard_size == 0
        assert all(c.state == CardState.IN_DECK for c in self.deck.get_cards())

    def test_remove_card(self):
        target = self.deck.get_cards()[2]
        removed = self.deck.remove(target.id)

        assert removed.state == CardState.REMOVED
        assert self.deck.total_cards == 4
        assert self.deck.remove("missing") is None

    def test_shuffle_is_deterministic_with_seed(self):
        a = Deck.from_definitions(self.definitions, rng=random.Random(42))
        b = Deck.from_definitions(self.definitions, rng=random.Random(42))
        a.shuffle()
        b.shuffle()
        assert [c.definition_id for c in a.get_cards()] == [c.definition_id for c in b.get_cards()]

    def test_deck_is_view_over_list(self):
        """测试 Deck 直接操作传入的列表"""
        pile = []
        discard = []
        deck = Deck.from_definitions(self.definitions, draw_pile=pile, discard_pile=discard)
        assert len(pile) == 5

        deck.discard(deck.draw())
        assert len(pile) == 4
        assert len(discard) == 1

    def test_find_cards(self):
        cheap = self.deck.find_cards(CardFilter(max_cost=1))
        assert {c.definition_id for c in cheap} == {"c0", "c1"}


class TestHand:
    """手牌测试"""

    def setup_method(self):
        self.hand = Hand(max_size=3)
        self.cards = [Card(make_definition(f"h{i}", cost=3 - i)) for i in range(4)]

    def test_add_until_full(self):
        """测试手牌上限"""
        rejected = self.hand.add_cards(self.cards)

        assert self.hand.size == 3
        assert self.hand.is_full
        assert rejected == [self.cards[3]]
        assert self.hand.space_remaining == 0

    def test_added_card_is_in_hand(self):
        self.hand.add_card(self.cards[0])
        assert self.cards[0].state == CardState.IN_HAND
        assert self.cards[0].id in self.hand

    def test_play_card(self):
        self.hand.add_card(self.cards[0])
        played = self.hand.play_card(self.cards[0].id)

        assert played.state == CardState.IN_PLAY
        assert self.hand.is_empty
        assert self.hand.play_card("missing") is None

    def test_discard_random_uses_rng(self):
        self.hand.add_cards(self.cards[:3])
        card = self.hand.discard_random(random.Random(3))

        assert card.state == CardState.DISCARDED
        assert self.hand.size == 2
        assert Hand().discard_random() is None

    def test_discard_all(self):
        self.hand.add_cards(self.cards[:2])
        discarded = self.hand.discard_all()
        assert len(discarded) == 2
        assert self.hand.is_empty

    def test_sort_by_cost(self):
        self.hand.add_cards(self.cards[:3])
        self.hand.sort_by_cost()
        assert [c.cost for c in self.hand.get_cards()] == [1, 2, 3]

    def test_get_card_at(self):
        self.hand.add_card(self.cards[0])
        assert self.hand.get_card_at(0) == self.cards[0]
        assert self.hand.get_card_at(5) is None

    def test_trim_to_limit(self):
        """测试降低上限后裁剪多余手牌"""
        self.hand.add_cards(self.cards[:3])
        self.hand.set_max_size(1)

        overflow = self.hand.trim_to_limit()

        assert len(overflow) == 2
        assert self.hand.size == 1
        assert all(c.state == CardState.DISCARDED for c in overflow)

    def test_has_card(self):
        self.hand.add_card(self.cards[0])
        assert self.hand.has_card(CardFilter(min_cost=3))
        assert not self.hand.has_card(CardFilter(max_cost=0))
