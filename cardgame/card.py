"""卡牌系统模块
定义卡牌运行时视图、卡牌过滤器和牌堆
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from .enums import CardRarity, CardState, CardType
from .models import CardDefinition, CardInstance, CardModifier, Effect
from .utils import generate_id

DeckPosition = Literal["top", "bottom", "random"]


@dataclass(slots=True)
class CardFilter:
    """卡牌过滤条件，所有给定字段都必须满足"""

    type: CardType | str | None = None
    rarity: CardRarity | str | None = None
    tags: tuple[str, ...] | list[str] | None = None
    state: CardState | None = None
    min_cost: float | None = None
    max_cost: float | None = None


class Card:
    """卡牌类

    把不可变的 CardDefinition 与可变的 CardInstance 组合在一起。
    Card 本身不保存状态，所有修改都直接作用在 instance 上，
    因此持有同一个 instance 的 PlayerState 列表始终是最新的。
    """

    __slots__ = ("_definition", "_instance")

    def __init__(self, definition: CardDefinition, instance: CardInstance | None = None):
        self._definition = definition
        self._instance = instance or CardInstance(
            instance_id=generate_id("card"),
            definition_id=definition.id,
        )

    # ==================== 属性 ====================

    @property
    def id(self) -> str:
        return self._instance.instance_id

    @property
    def definition_id(self) -> str:
        return self._definition.id

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def description(self) -> str:
        return self._definition.description

    @property
    def type(self) -> CardType:
        return self._definition.type

    @property
    def rarity(self) -> CardRarity | None:
        return self._definition.rarity

    @property
    def tags(self) -> tuple[str, ...]:
        return self._definition.tags

    @property
    def effects(self) -> tuple[Effect, ...]:
        return self._definition.effects

    @property
    def metadata(self) -> dict[str, Any]:
        return self._definition.metadata

    @property
    def cost(self) -> float:
        """考虑修正后的费用"""
        return self.get_modified_value("cost", self._definition.cost)

    @property
    def state(self) -> CardState:
        return self._instance.state

    @property
    def modifiers(self) -> list[CardModifier]:
        return list(self._instance.modifiers)

    @property
    def definition(self) -> CardDefinition:
        return self._definition

    @property
    def instance(self) -> CardInstance:
        return self._instance

    # ==================== 状态与修正 ====================

    def set_state(self, state: CardState) -> None:
        self._instance.state = state

    def add_modifier(self, modifier: CardModifier) -> None:
        self._instance.modifiers.append(modifier)

    def remove_modifier(self, modifier_id: str) -> bool:
        for i, mod in enumerate(self._instance.modifiers):
            if mod.id == modifier_id:
                del self._instance.modifiers[i]
                return True
        return False

    def clear_modifiers(self) -> None:
        self._instance.modifiers.clear()

    def tick_modifiers(self) -> list[CardModifier]:
        """修正持续时间减一，移除到期的修正

        Returns:
            本次到期的修正列表
        """
        return tick_instance_modifiers(self._instance)

    def get_modified_value(self, stat: str, base_value: float) -> float:
        """叠加所有同类型数值修正"""
        value = base_value
        for mod in self._instance.modifiers:
            if mod.type == stat and isinstance(mod.value, (int, float)) \
                    and not isinstance(mod.value, bool):
                value += mod.value
        return value

    # ==================== 查询 ====================

    def has_tag(self, tag: str) -> bool:
        return tag in self._definition.tags

    def matches(self, card_filter: CardFilter) -> bool:
        """检查卡牌是否满足过滤条件"""
        if card_filter.type is not None and self.type != card_filter.type:
            return False
        if card_filter.rarity is not None and self.rarity != card_filter.rarity:
            return False
        if card_filter.tags and not all(self.has_tag(t) for t in card_filter.tags):
            return False
        if card_filter.state is not None and self.state != card_filter.state:
            return False
        if card_filter.min_cost is not None and self.cost < card_filter.min_cost:
            return False
        if card_filter.max_cost is not None and self.cost > card_filter.max_cost:
            return False
        return True

    def clone(self) -> Card:
        """复制一张新实例（新 ID，修正独立）"""
        instance = CardInstance(
            instance_id=generate_id("card"),
            definition_id=self._definition.id,
            state=self._instance.state,
            modifiers=[CardModifier(**vars(m)) for m in self._instance.modifiers],
        )
        return Card(self._definition, instance)

    def to_dict(self) -> dict[str, Any]:
        data = self._instance.to_dict()
        data["definition"] = self._definition.to_dict()
        return data

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Card) and other._instance is self._instance

    def __hash__(self) -> int:
        return hash(self._instance.instance_id)

    def __repr__(self) -> str:
        return f"Card({self.id}, {self.name}, {self.state.value})"


def tick_instance_modifiers(instance: CardInstance) -> list[CardModifier]:
    """修正持续时间减一；永久修正（-1 / None）不受影响"""
    expired: list[CardModifier] = []
    kept: list[CardModifier] = []
    for mod in instance.modifiers:
        if mod.is_permanent:
            kept.append(mod)
            continue
        mod.duration -= 1
        if mod.duration <= 0:
            expired.append(mod)
        else:
            kept.append(mod)
    instance.modifiers[:] = kept
    return expired


class Deck:
    """牌堆类
    管理摸牌堆和弃牌堆

    牌堆顶是列表末尾，摸牌为 O(1) 的 pop()。
    传入 draw_pile / discard_pile 时，Deck 直接操作这两个列表
    （GameStateManager 传入的是 PlayerState.deck / discard_pile）。
    """

    def __init__(
        self,
        catalog: Mapping[str, CardDefinition] | None = None,
        *,
        draw_pile: list[CardInstance] | None = None,
        discard_pile: list[CardInstance] | None = None,
        rng: random.Random | None = None,
    ):
        """初始化牌堆

        Args:
            catalog: 定义 ID -> 卡牌定义，用于把实例包装成 Card
            draw_pile: 作为摸牌堆的列表
            discard_pile: 作为弃牌堆的列表
            rng: 随机数生成器（可注入以获得确定性洗牌）
        """
        self._catalog: dict[str, CardDefinition] = dict(catalog or {})
        self._draw_pile: list[CardInstance] = draw_pile if draw_pile is not None else []
        self._discard_pile: list[CardInstance] = (
            discard_pile if discard_pile is not None else []
        )
        self._rng = rng or random.Random()

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[CardDefinition],
        copies: int | Mapping[str, int] = 1,
        **kwargs: Any,
    ) -> Deck:
        """根据卡牌定义创建牌堆

        Args:
            definitions: 卡牌定义
            copies: 每种卡的份数，或 定义 ID -> 份数（缺省 1）
        """
        definitions = list(definitions)
        deck = cls({d.id: d for d in definitions}, **kwargs)
        for definition in definitions:
            count = copies if isinstance(copies, int) else copies.get(definition.id, 1)
            for _ in range(count):
                deck.add_card(Card(definition))
        return deck

    # ==================== 属性 ====================

    @property
    def size(self) -> int:
        """摸牌堆剩余牌数"""
        return len(self._draw_pile)

    @property
    def discard_size(self) -> int:
        """弃牌堆牌数"""
        return len(self._discard_pile)

    @property
    def is_empty(self) -> bool:
        """摸牌堆是否为空"""
        return not self._draw_pile

    @property
    def total_cards(self) -> int:
        return len(self._draw_pile) + len(self._discard_pile)

    def __len__(self) -> int:
        return self.size

    def __str__(self) -> str:
        return f"Deck(摸牌堆:{self.size}, 弃牌堆:{self.discard_size})"

    # ==================== 加牌 ====================

    def add_card(self, card: Card, position: DeckPosition = "bottom") -> None:
        """把一张牌放入摸牌堆"""
        self._catalog.setdefault(card.definition_id, card.definition)
        card.set_state(CardState.IN_DECK)
        if position == "top":
            self._draw_pile.append(card.instance)
        elif position == "bottom":
            self._draw_pile.insert(0, card.instance)
        else:
            index = self._rng.randint(0, len(self._draw_pile))
            self._draw_pile.insert(index, card.instance)

    def add_cards(self, cards: Iterable[Card], position: DeckPosition = "bottom") -> None:
        for card in cards:
            self.add_card(card, position)

    # ==================== 摸牌 ====================

    def draw(self) -> Card | None:
        """从牌堆顶摸一张牌，牌堆为空时返回 None"""
        if not self._draw_pile:
            return None
        card = self._wrap(self._draw_pile.pop())
        card.set_state(CardState.IN_HAND)
        return card

    def draw_multiple(self, count: int) -> list[Card]:
        """摸多张牌，牌堆耗尽时提前停止（不自动洗入弃牌堆）"""
        drawn = []
        for _ in range(count):
            card = self.draw()
            if card is None:
                break
            drawn.append(card)
        return drawn

    def draw_specific(self, card_filter: CardFilter) -> Card | None:
        """摸出第一张满足条件的牌（从牌堆顶开始找）"""
        for index in range(len(self._draw_pile) - 1, -1, -1):
            card = self._wrap(self._draw_pile[index])
            if card.matches(card_filter):
                del self._draw_pile[index]
                card.set_state(CardState.IN_HAND)
                return card
        return None

    def peek(self) -> Card | None:
        """查看牌堆顶的牌（不取出）"""
        return self._wrap(self._draw_pile[-1]) if self._draw_pile else None

    def peek_multiple(self, count: int) -> list[Card]:
        """查看牌堆顶的若干张牌，顺序为摸牌顺序"""
        if count <= 0:
            return []
        return [self._wrap(i) for i in reversed(self._draw_pile[-count:])]

    # ==================== 洗牌与弃牌 ====================

    def shuffle(self) -> None:
        """洗牌"""
        self._rng.shuffle(self._draw_pile)

    def reshuffle_discard(self) -> None:
        """将弃牌堆洗入摸牌堆"""
        for instance in self._discard_pile:
            instance.state = CardState.IN_DECK
        self._draw_pile.extend(self._discard_pile)
        self._discard_pile.clear()
        self.shuffle()

    def discard(self, card: Card) -> None:
        """把一张牌放入弃牌堆"""
        self._catalog.setdefault(card.definition_id, card.definition)
        card.set_state(CardState.DISCARDED)
        self._discard_pile.append(card.instance)

    def discard_multiple(self, cards: Iterable[Card]) -> None:
        for card in cards:
            self.discard(card)

    def remove(self, card_id: str) -> Card | None:
        """把摸牌堆里的某张牌移出游戏（不进弃牌堆）"""
        for index, instance in enumerate(self._draw_pile):
            if instance.instance_id == card_id:
                del self._draw_pile[index]
                card = self._wrap(instance)
                card.set_state(CardState.REMOVED)
                return card
        return None

    # ==================== 查询 ====================

    def find_cards(self, card_filter: CardFilter) -> list[Card]:
        return [c for c in self.get_cards() if c.matches(card_filter)]

    def get_cards(self) -> list[Card]:
        """摸牌堆中的所有牌（按列表顺序）"""
        return [self._wrap(i) for i in self._draw_pile]

    def get_discard_pile(self) -> list[Card]:
        return [self._wrap(i) for i in self._discard_pile]

    def definition(self, definition_id: str) -> CardDefinition | None:
        return self._catalog.get(definition_id)

    def clear(self) -> None:
        self._draw_pile.clear()
        self._discard_pile.clear()

    def _wrap(self, instance: CardInstance) -> Card:
        return Card(self._catalog[instance.definition_id], instance)
