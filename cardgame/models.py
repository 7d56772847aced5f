"""状态数据模型

这里的记录都是纯数据：只包含基本类型、list、dict 和嵌套的数据类，
没有循环引用，``GameState.to_dict()`` 的结果可以直接 json.dumps。

卡牌实例只会出现在玩家的 hand / deck / discard_pile / play_area
四个列表之一，Deck 与 Hand 是这些列表上的视图（见 card.py / hand.py）。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .config import GameConfig
from .enums import ActionType, CardRarity, CardState, CardType, GamePhase


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


# ==================== 效果 ====================


@dataclass
class EffectCondition:
    """效果触发条件

    Attributes:
        type: stat_check / card_count / turn_count / custom
        operator: 比较运算符
        value: 比较值
        target: stat_check 的属性名；custom 的判定器名称
    """

    type: str
    operator: str = ">="
    value: float | str = 0
    target: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": _enum_value(self.type),
            "operator": self.operator,
            "value": self.value,
            "target": self.target,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EffectCondition:
        return cls(
            type=data["type"],
            operator=data.get("operator", ">="),
            value=data.get("value", 0),
            target=data.get("target"),
        )


@dataclass
class Effect:
    """声明式效果

    Attributes:
        type: 效果类型（内置 EffectType 或自定义字符串）
        target: 目标选择器（EffectTarget 或显式玩家 ID）
        value: 数值
        metadata: 附加参数（stat / resource / statusId / eventType ...）
        condition: 可选触发条件
    """

    type: str
    target: str = "self"
    value: float | str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    condition: EffectCondition | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": _enum_value(self.type),
            "target": _enum_value(self.target),
            "value": self.value,
            "metadata": dict(self.metadata),
            "condition": self.condition.to_dict() if self.condition else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Effect:
        condition = data.get("condition")
        return cls(
            type=data["type"],
            target=data.get("target", "self"),
            value=data.get("value"),
            metadata=dict(data.get("metadata") or {}),
            condition=EffectCondition.from_dict(condition) if condition else None,
        )


@dataclass
class ResolvedEffect:
    """效果结算记录：审计用，也承载摸牌/弃牌/触发事件等“意图”"""

    type: str
    target: str
    before: Any = None
    after: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": _enum_value(self.type),
            "target": self.target,
            "before": self.before,
            "after": self.after,
        }


# ==================== 卡牌 ====================


@dataclass(frozen=True)
class CardDefinition:
    """卡牌模板 (不可变)

    引擎构造时加载一次，运行期间不会被修改。
    """

    id: str
    type: CardType
    name: str
    description: str = ""
    effects: tuple[Effect, ...] = ()
    cost: float = 0
    rarity: CardRarity | None = None
    tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # 转换字符串类型为枚举类型
        if not isinstance(self.type, CardType):
            object.__setattr__(self, "type", CardType(self.type))
        if self.rarity is not None and not isinstance(self.rarity, CardRarity):
            object.__setattr__(self, "rarity", CardRarity(self.rarity))
        if not isinstance(self.effects, tuple):
            object.__setattr__(self, "effects", tuple(self.effects))
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "effects": [e.to_dict() for e in self.effects],
            "cost": self.cost,
            "rarity": self.rarity.value if self.rarity else None,
            "tags": list(self.tags),
            "metadata": dict(self.metadata),
        }


@dataclass
class CardModifier:
    """卡牌临时修正

    duration 为剩余回合数，-1 或 None 表示永久。
    """

    id: str
    type: str
    value: float | str | bool
    duration: int | None = -1
    source: str | None = None

    @property
    def is_permanent(self) -> bool:
        return self.duration is None or self.duration == -1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "value": self.value,
            "duration": self.duration,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardModifier:
        return cls(
            id=data["id"],
            type=data["type"],
            value=data["value"],
            duration=data.get("duration", -1),
            source=data.get("source"),
        )


@dataclass
class CardInstance:
    """卡牌运行时实例"""

    instance_id: str
    definition_id: str
    state: CardState = CardState.IN_DECK
    modifiers: list[CardModifier] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "definition_id": self.definition_id,
            "state": self.state.value,
            "modifiers": [m.to_dict() for m in self.modifiers],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardInstance:
        return cls(
            instance_id=data["instance_id"],
            definition_id=data["definition_id"],
            state=CardState(data.get("state", CardState.IN_DECK)),
            modifiers=[CardModifier.from_dict(m) for m in data.get("modifiers", [])],
        )


# ==================== 玩家 ====================


@dataclass
class PlayerStatus:
    """玩家状态（buff / debuff）

    钩子效果由外部状态系统在相应时机交给 EffectResolver 执行。
    """

    id: str
    name: str
    duration: int = -1
    effects: list[Effect] = field(default_factory=list)
    description: str | None = None
    icon: str | None = None
    stackable: bool = False
    max_stacks: int | None = None
    current_stacks: int | None = None
    on_apply: list[Effect] = field(default_factory=list)
    on_remove: list[Effect] = field(default_factory=list)
    on_turn_start: list[Effect] = field(default_factory=list)
    on_turn_end: list[Effect] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "effects": [e.to_dict() for e in self.effects],
            "description": self.description,
            "icon": self.icon,
            "stackable": self.stackable,
            "max_stacks": self.max_stacks,
            "current_stacks": self.current_stacks,
            "on_apply": [e.to_dict() for e in self.on_apply],
            "on_remove": [e.to_dict() for e in self.on_remove],
            "on_turn_start": [e.to_dict() for e in self.on_turn_start],
            "on_turn_end": [e.to_dict() for e in self.on_turn_end],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerStatus:
        def effects(key: str) -> list[Effect]:
            return [Effect.from_dict(e) for e in data.get(key) or []]

        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            duration=data.get("duration", -1),
            effects=effects("effects"),
            description=data.get("description"),
            icon=data.get("icon"),
            stackable=data.get("stackable", False),
            max_stacks=data.get("max_stacks"),
            current_stacks=data.get("current_stacks"),
            on_apply=effects("on_apply"),
            on_remove=effects("on_remove"),
            on_turn_start=effects("on_turn_start"),
            on_turn_end=effects("on_turn_end"),
        )


@dataclass
class PlayerState:
    """玩家状态

    Attributes:
        stats: 属性（不做上下限裁剪，可为负）
        resources: 资源（下限为 0）
        hand / deck / discard_pile / play_area: 卡牌实例所在的四个区域
        eliminated: 已淘汰的玩家在回合轮转中被跳过
        extensions: 外部系统拥有的子记录，键的归属见 GameStateManager.register_extension
    """

    id: str
    name: str
    stats: dict[str, float] = field(default_factory=dict)
    resources: dict[str, float] = field(default_factory=dict)
    statuses: list[PlayerStatus] = field(default_factory=list)
    hand: list[CardInstance] = field(default_factory=list)
    deck: list[CardInstance] = field(default_factory=list)
    discard_pile: list[CardInstance] = field(default_factory=list)
    play_area: list[CardInstance] = field(default_factory=list)
    eliminated: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stats": dict(self.stats),
            "resources": dict(self.resources),
            "statuses": [s.to_dict() for s in self.statuses],
            "hand": [c.to_dict() for c in self.hand],
            "deck": [c.to_dict() for c in self.deck],
            "discard_pile": [c.to_dict() for c in self.discard_pile],
            "play_area": [c.to_dict() for c in self.play_area],
            "eliminated": self.eliminated,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerState:
        def cards(key: str) -> list[CardInstance]:
            return [CardInstance.from_dict(c) for c in data.get(key, [])]

        return cls(
            id=data["id"],
            name=data["name"],
            stats=dict(data.get("stats", {})),
            resources=dict(data.get("resources", {})),
            statuses=[PlayerStatus.from_dict(s) for s in data.get("statuses", [])],
            hand=cards("hand"),
            deck=cards("deck"),
            discard_pile=cards("discard_pile"),
            play_area=cards("play_area"),
            eliminated=data.get("eliminated", False),
            extensions=dict(data.get("extensions", {})),
        )


# ==================== 动作记录 ====================


@dataclass
class ActionResult:
    """动作执行结果"""

    success: bool
    effects: list[ResolvedEffect] = field(default_factory=list)
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "effects": [e.to_dict() for e in self.effects],
            "message": self.message,
        }


@dataclass
class GameAction:
    """历史动作记录（只追加）"""

    id: str
    type: ActionType
    player_id: str
    timestamp: int
    payload: dict[str, Any] = field(default_factory=dict)
    result: ActionResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": _enum_value(self.type),
            "player_id": self.player_id,
            "timestamp": self.timestamp,
            "payload": dict(self.payload),
            "result": self.result.to_dict() if self.result else None,
        }


# ==================== 对局 ====================


@dataclass
class GameState:
    """权威对局状态

    players 按加入顺序保存，这个顺序就是回合顺序。
    """

    id: str
    config: GameConfig
    phase: GamePhase = GamePhase.SETUP
    turn: int = 0
    current_player_id: str = ""
    players: dict[str, PlayerState] = field(default_factory=dict)
    shared_state: dict[str, Any] = field(default_factory=dict)
    history: list[GameAction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """转换为可 JSON 序列化的字典"""
        return {
            "id": self.id,
            "phase": self.phase.value,
            "turn": self.turn,
            "current_player_id": self.current_player_id,
            "players": {pid: p.to_dict() for pid, p in self.players.items()},
            "shared_state": dict(self.shared_state),
            "history": [a.to_dict() for a in self.history],
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """从字典恢复（历史记录的 effects 以字典形式保留在 payload 中）"""
        history = []
        for raw in data.get("history", []):
            result = raw.get("result")
            history.append(
                GameAction(
                    id=raw["id"],
                    type=ActionType(raw["type"]),
                    player_id=raw["player_id"],
                    timestamp=raw["timestamp"],
                    payload=dict(raw.get("payload", {})),
                    result=ActionResult(
                        success=result["success"],
                        effects=[ResolvedEffect(**e) for e in result.get("effects", [])],
                        message=result.get("message"),
                    ) if result else None,
                )
            )
        return cls(
            id=data["id"],
            config=GameConfig.from_dict(data.get("config", {})),
            phase=GamePhase(data.get("phase", GamePhase.SETUP)),
            turn=data.get("turn", 0),
            current_player_id=data.get("current_player_id", ""),
            players={
                pid: PlayerState.from_dict(p) for pid, p in data.get("players", {}).items()
            },
            shared_state=dict(data.get("shared_state", {})),
            history=history,
        )
