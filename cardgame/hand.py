"""手牌模块

Hand 是玩家手牌列表上的视图；传入 cards 时直接操作该列表。
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Mapping

from .card import Card, CardFilter, tick_instance_modifiers
from .enums import CardState
from .models import CardDefinition, CardInstance


class Hand:
    """手牌类"""

    def __init__(
        self,
        max_size: int = 10,
        *,
        cards: list[CardInstance] | None = None,
        catalog: Mapping[str, CardDefinition] | None = None,
    ):
        self._max_size = max_size
        self._cards: list[CardInstance] = cards if cards is not None else []
        self._catalog: dict[str, CardDefinition] = dict(catalog or {})

    # ==================== 属性 ====================

    @property
    def size(self) -> int:
        return len(self._cards)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def is_full(self) -> bool:
        return len(self._cards) >= self._max_size

    @property
    def is_empty(self) -> bool:
        return not self._cards

    @property
    def space_remaining(self) -> int:
        return max(0, self._max_size - len(self._cards))

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, card_id: object) -> bool:
        return any(c.instance_id == card_id for c in self._cards)

    # ==================== 加牌 ====================

    def add_card(self, card: Card) -> bool:
        """加入一张牌，手牌已满时返回 False"""
        if self.is_full:
            return False
        self._catalog.setdefault(card.definition_id, card.definition)
        card.set_state(CardState.IN_HAND)
        self._cards.append(card.instance)
        return True

    def add_cards(self, cards: Iterable[Card]) -> list[Card]:
        """加入多张牌

        Returns:
            因手牌已满而没有加入的牌
        """
        return [card for card in cards if not self.add_card(card)]

    # ==================== 出牌与弃牌 ====================

    def remove_card(self, card_id: str) -> Card | None:
        for index, instance in enumerate(self._cards):
            if instance.instance_id == card_id:
                del self._cards[index]
                return self._wrap(instance)
        return None

    def play_card(self, card_id: str) -> Card | None:
        """打出手牌，状态变为 in_play"""
        card = self.remove_card(card_id)
        if card:
            card.set_state(CardState.IN_PLAY)
        return card

    def discard_card(self, card_id: str) -> Card | None:
        card = self.remove_card(card_id)
        if card:
            card.set_state(CardState.DISCARDED)
        return card

    def discard_random(self, rng: random.Random | None = None) -> Card | None:
        """随机弃一张牌，手牌为空时返回 None"""
        if not self._cards:
            return None
        index = (rng or random).randrange(len(self._cards))
        card = self._wrap(self._cards.pop(index))
        card.set_state(CardState.DISCARDED)
        return card

    def discard_all(self) -> list[Card]:
        discarded = [self._wrap(i) for i in self._cards]
        self._cards.clear()
        for card in discarded:
            card.set_state(CardState.DISCARDED)
        return discarded

    # ==================== 查询 ====================

    def get_card(self, card_id: str) -> Card | None:
        for instance in self._cards:
            if instance.instance_id == card_id:
                return self._wrap(instance)
        return None

    def get_card_at(self, index: int) -> Card | None:
        if 0 <= index < len(self._cards):
            return self._wrap(self._cards[index])
        return None

    def get_cards(self) -> list[Card]:
        return [self._wrap(i) for i in self._cards]

    def find_cards(self, card_filter: CardFilter) -> list[Card]:
        return [c for c in self.get_cards() if c.matches(card_filter)]

    def has_card(self, card_filter: CardFilter) -> bool:
        return any(c.matches(card_filter) for c in self.get_cards())

    # ==================== 排序 ====================

    def sort(self, key: Callable[[Card], object]) -> None:
        """按 key 排序（稳定排序）"""
        self._cards.sort(key=lambda i: key(self._wrap(i)))

    def sort_by_cost(self) -> None:
        self.sort(lambda c: c.cost)

    def sort_by_type(self) -> None:
        self.sort(lambda c: c.type.value)

    # ==================== 上限 ====================

    def set_max_size(self, size: int) -> None:
        self._max_size = max(0, size)

    def get_overflow(self) -> list[Card]:
        """超出上限的牌（列表末尾的若干张）"""
        return [self._wrap(i) for i in self._cards[self._max_size:]]

    def trim_to_limit(self) -> list[Card]:
        """弃掉超出上限的牌并返回它们"""
        overflow = self.get_overflow()
        del self._cards[self._max_size:]
        for card in overflow:
            card.set_state(CardState.DISCARDED)
        return overflow

    def tick_modifiers(self) -> None:
        """所有手牌的修正持续时间减一"""
        for instance in self._cards:
            tick_instance_modifiers(instance)

    def clear(self) -> None:
        self._cards.clear()

    def _wrap(self, instance: CardInstance) -> Card:
        return Card(self._catalog[instance.definition_id], instance)

    def __str__(self) -> str:
        return f"Hand({self.size}/{self._max_size})"
