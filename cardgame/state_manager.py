"""游戏状态管理器模块

GameStateManager 持有权威的 GameState，所有修改都经过这里：
- 组合 EventBus 与 EffectResolver（构造时注入，每个实例各自独立）
- 每个玩家的 Deck / Hand 是 PlayerState 上 deck / discard_pile / hand 列表的视图，
  不存在需要同步的第二份数据
- 普通的非法输入通过返回值（None / False / []）拒绝，不抛异常
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import random
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from i18n import t as _t

from .card import Card, Deck
from .config import GameConfig, WinCondition
from .effects import EffectContext, EffectResolver
from .enums import ActionType, EffectType, EventType, GamePhase, WinConditionType
from .events import EventBus
from .exceptions import ConfigError, ExtensionConflictError
from .hand import Hand
from .models import (
    ActionResult,
    CardDefinition,
    GameAction,
    GameState,
    PlayerState,
    PlayerStatus,
    ResolvedEffect,
)
from .utils import compare, generate_id, now_ms

logger = logging.getLogger(__name__)

# custom 胜利判定器：checker(player, state) -> 是否获胜
WinChecker = Callable[[PlayerState, GameState], bool]


@dataclass(slots=True)
class WinCheckResult:
    """胜利判定结果

    winner 为 None 且 reason 不为 None 表示游戏以平局或失败结束。
    """

    winner: str | None = None
    reason: str | None = None
    is_failure: bool = False

    @property
    def is_over(self) -> bool:
        return self.reason is not None


@dataclass(frozen=True, slots=True)
class ExtensionSpec:
    """PlayerState.extensions 中某个键的归属声明"""

    key: str
    owner: str
    default_factory: Callable[[], Any]


class GameStateManager:
    """
    游戏状态管理器

    负责玩家加入/移除、发牌、出牌、数值修改、回合轮转与胜负判定。
    外部读取请使用 current_state（深拷贝）或 get_state_snapshot()（按版本缓存）。
    """

    def __init__(
        self,
        config: GameConfig,
        card_definitions: Iterable[CardDefinition],
        event_bus: EventBus | None = None,
        effect_resolver: EffectResolver | None = None,
        rng: random.Random | None = None,
    ):
        """
        初始化状态管理器

        Args:
            config: 规则配置
            card_definitions: 卡牌定义（每个玩家的牌堆各包含一份）
            event_bus: 事件总线，缺省时新建
            effect_resolver: 效果结算器，缺省时新建并共用同一个随机数生成器
            rng: 随机数生成器（洗牌、随机弃牌、random_player）

        Raises:
            ConfigError: 配置未通过校验
        """
        errors = config.validate()
        if errors:
            raise ConfigError(errors)

        self._config = config
        self._definitions: dict[str, CardDefinition] = {d.id: d for d in card_definitions}
        self._rng = rng or random.Random()
        self.event_bus = event_bus or EventBus()
        self.effect_resolver = effect_resolver or EffectResolver(rng=self._rng)

        self._decks: dict[str, Deck] = {}
        self._hands: dict[str, Hand] = {}
        self._extensions: dict[str, ExtensionSpec] = {}
        self._win_checkers: dict[str, WinChecker] = {}

        self._version = 0
        self._snapshot: GameState | None = None
        self._snapshot_version = -1
        self._state = self._create_state()

    def _create_state(self) -> GameState:
        return GameState(id=generate_id("game"), config=self._config)

    def _touch(self) -> None:
        self._version += 1

    def mark_dirty(self) -> None:
        """外部系统直接修改 PlayerState 后调用，使快照缓存失效"""
        self._touch()

    def _emit(self, event_type: EventType | str, data: dict[str, Any]) -> None:
        self.event_bus.emit_simple(event_type, data, self._state)

    # ==================== 只读属性 ====================

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def card_definitions(self) -> Mapping[str, CardDefinition]:
        return dict(self._definitions)

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def turn(self) -> int:
        return self._state.turn

    @property
    def current_player_id(self) -> str:
        return self._state.current_player_id

    @property
    def version(self) -> int:
        """状态版本号，每次修改递增"""
        return self._version

    @property
    def current_state(self) -> GameState:
        """状态的深拷贝，调用方修改它不会影响引擎"""
        return copy.deepcopy(self._state)

    def get_state_snapshot(self) -> GameState:
        """浅层快照：顶层容器是新的，玩家记录与引擎共享

        同一版本内多次调用返回同一个对象。
        """
        if self._snapshot is None or self._snapshot_version != self._version:
            self._snapshot = dataclasses.replace(
                self._state,
                players=dict(self._state.players),
                shared_state=dict(self._state.shared_state),
                history=list(self._state.history),
            )
            self._snapshot_version = self._version
        return self._snapshot

    def get_history(self) -> list[GameAction]:
        return list(self._state.history)

    # ==================== 玩家管理 ====================

    def add_player(self, player_id: str, name: str) -> PlayerState | None:
        """
        添加玩家

        Returns:
            新玩家状态；人数已满或 ID 重复时返回 None
        """
        players = self._state.players
        if player_id in players:
            logger.warning("Player %s already joined", player_id)
            return None
        if len(players) >= self._config.max_players:
            logger.debug("Rejecting player %s: game is full", player_id)
            return None

        player = PlayerState(
            id=player_id,
            name=name,
            stats=dict(self._config.initial_stats),
            resources=dict(self._config.initial_resources),
        )
        for spec in self._extensions.values():
            player.extensions[spec.key] = spec.default_factory()
        players[player_id] = player

        deck = Deck.from_definitions(
            self._definitions.values(),
            draw_pile=player.deck,
            discard_pile=player.discard_pile,
            rng=self._rng,
        )
        deck.shuffle()
        self._decks[player_id] = deck
        self._hands[player_id] = Hand(
            self._config.max_hand_size, cards=player.hand, catalog=self._definitions
        )

        if not self._state.current_player_id:
            self._state.current_player_id = player_id
        self._touch()

        logger.info("Player joined: %s (%s)", player_id, name)
        self._emit(EventType.PLAYER_JOINED, {"player_id": player_id, "name": name})
        return player

    def remove_player(self, player_id: str) -> bool:
        """移除玩家；若移除的是当前玩家，当前玩家顺延到下一位"""
        players = self._state.players
        if player_id not in players:
            return False

        order = list(players)
        index = order.index(player_id)
        del players[player_id]
        self._decks.pop(player_id, None)
        self._hands.pop(player_id, None)

        if self._state.current_player_id == player_id:
            self._hand_off_from(index)
        self._touch()

        logger.info("Player left: %s", player_id)
        self._emit(EventType.PLAYER_LEFT, {"player_id": player_id})
        return True

    def _hand_off_from(self, index: int) -> None:
        """当前玩家离开后，从其原位置起顺延到下一位未淘汰的玩家；绕回开头时回合数加一"""
        order = list(self._state.players)
        if not order:
            self._state.current_player_id = ""
            return
        for step in range(len(order)):
            position = index + step
            candidate = order[position % len(order)]
            if not self._state.players[candidate].eliminated:
                break
        else:
            position = index
            candidate = order[position % len(order)]
        self._state.current_player_id = candidate
        if position >= len(order):
            self._state.turn += 1

    def eliminate_player(self, player_id: str) -> bool:
        """淘汰玩家：保留记录，回合轮转时跳过"""
        player = self._state.players.get(player_id)
        if player is None or player.eliminated:
            return False
        player.eliminated = True
        self._touch()
        self._emit(EventType.CUSTOM, {"subtype": "player_eliminated", "player_id": player_id})
        return True

    def get_player(self, player_id: str) -> PlayerState | None:
        return self._state.players.get(player_id)

    def get_all_players(self) -> list[PlayerState]:
        """按加入顺序（即回合顺序）返回所有玩家"""
        return list(self._state.players.values())

    def get_player_deck(self, player_id: str) -> Deck | None:
        return self._decks.get(player_id)

    def get_player_hand(self, player_id: str) -> Hand | None:
        return self._hands.get(player_id)

    # ==================== 扩展字段归属 ====================

    def register_extension(
        self,
        key: str,
        owner: str,
        default_factory: Callable[[], Any] = dict,
    ) -> None:
        """
        声明某个外部系统独占 PlayerState.extensions[key]

        同一 owner 重复声明是幂等的；已有玩家与之后加入的玩家都会初始化该字段。

        Raises:
            ExtensionConflictError: key 已被其他系统占有
        """
        existing = self._extensions.get(key)
        if existing is not None:
            if existing.owner != owner:
                raise ExtensionConflictError(key, existing.owner, owner)
            return
        self._extensions[key] = ExtensionSpec(key, owner, default_factory)
        for player in self._state.players.values():
            player.extensions.setdefault(key, default_factory())
        self._touch()

    def extension_owner(self, key: str) -> str | None:
        spec = self._extensions.get(key)
        return spec.owner if spec else None

    @property
    def extension_owners(self) -> dict[str, str]:
        return {key: spec.owner for key, spec in self._extensions.items()}

    def get_extension(self, player_id: str, key: str) -> Any:
        player = self._state.players.get(player_id)
        return player.extensions.get(key) if player else None

    # ==================== 对局流程 ====================

    def start_game(self) -> bool:
        """
        开始游戏：给每位玩家发初始手牌，进入第 1 回合的摸牌阶段

        Returns:
            人数不足或已经开始时返回 False
        """
        if self._state.phase != GamePhase.SETUP:
            logger.debug("start_game ignored: phase is %s", self._state.phase.value)
            return False
        if len(self._state.players) < self._config.min_players:
            logger.debug(
                "start_game rejected: %d players, %d required",
                len(self._state.players), self._config.min_players,
            )
            return False

        for player_id in list(self._state.players):
            self.draw_cards(player_id, self._config.initial_hand_size)

        self._state.phase = GamePhase.DRAW
        self._state.turn = 1
        self._touch()

        logger.info("Game %s started with %d players", self._state.id, len(self._state.players))
        self._emit(EventType.GAME_STARTED, {"players": list(self._state.players)})
        self._emit(
            EventType.TURN_STARTED,
            {"turn": 1, "player_id": self._state.current_player_id},
        )
        return True

    def set_phase(self, phase: GamePhase | str) -> None:
        """切换阶段并发布 phase_changed"""
        previous = self._state.phase
        self._state.phase = GamePhase(phase)
        self._touch()
        self._emit(
            EventType.PHASE_CHANGED,
            {"from": previous.value, "to": self._state.phase.value},
        )

    def end_turn(self) -> None:
        """
        结束当前回合

        按加入顺序轮到下一位未淘汰的玩家；只有绕回到更靠前的位置时回合数才加一。
        """
        players = self._state.players
        order = list(players)
        if not order:
            return

        current_id = self._state.current_player_id
        self._emit(EventType.TURN_ENDED, {"turn": self._state.turn, "player_id": current_id})

        current_index = order.index(current_id) if current_id in order else -1
        next_index = (current_index + 1) % len(order)
        for step in range(1, len(order) + 1):
            candidate = (current_index + step) % len(order)
            if not players[order[candidate]].eliminated:
                next_index = candidate
                break

        self._state.current_player_id = order[next_index]
        if next_index <= current_index:
            self._state.turn += 1
        self._touch()

        hand = self._hands.get(self._state.current_player_id)
        if hand is not None:
            hand.tick_modifiers()

        self.set_phase(GamePhase.DRAW)
        self._emit(
            EventType.TURN_STARTED,
            {"turn": self._state.turn, "player_id": self._state.current_player_id},
        )

    def end_game(self, winner_id: str | None, reason: str) -> None:
        """结束游戏，game_ended 事件携带最终状态的深拷贝"""
        self._state.phase = GamePhase.GAME_OVER
        self._touch()
        logger.info("Game %s over: winner=%s reason=%s", self._state.id, winner_id, reason)
        self._emit(
            EventType.GAME_ENDED,
            {
                "winner_id": winner_id,
                "reason": reason,
                "final_state": copy.deepcopy(self._state.to_dict()),
            },
        )

    def reset(self) -> None:
        """丢弃所有玩家、牌堆与手牌，用同一份配置重建状态"""
        self._decks.clear()
        self._hands.clear()
        self._state = self._create_state()
        self.event_bus.clear_history()
        self._touch()

    # ==================== 卡牌操作 ====================

    def draw_cards(self, player_id: str, count: int = 1) -> list[Card]:
        """
        为玩家摸牌

        牌堆空而弃牌堆非空时自动洗牌；两者都空时提前结束。
        手牌已满时摸到的牌直接进入弃牌堆，并发布 card_discarded(reason=hand_full)。

        Returns:
            实际进入手牌的牌
        """
        deck = self._decks.get(player_id)
        hand = self._hands.get(player_id)
        if deck is None or hand is None:
            return []

        drawn: list[Card] = []
        for _ in range(count):
            if deck.is_empty and deck.discard_size > 0:
                deck.reshuffle_discard()
            card = deck.draw()
            if card is None:
                break
            if hand.add_card(card):
                drawn.append(card)
                self._touch()
                self._emit(EventType.CARD_DRAWN, {"player_id": player_id, "card_id": card.id})
            else:
                deck.discard(card)
                self._touch()
                self._emit(
                    EventType.CARD_DISCARDED,
                    {"player_id": player_id, "card_id": card.id, "reason": "hand_full"},
                )
        return drawn

    def play_card(
        self,
        player_id: str,
        card_id: str,
        targets: Mapping[str, Any] | None = None,
    ) -> bool:
        """
        打出手牌

        Args:
            player_id: 出牌玩家
            card_id: 卡牌实例 ID
            targets: {"player": 目标玩家 ID, "selected": [选中的玩家 ID]}

        Returns:
            玩家或手牌不存在时返回 False
        """
        hand = self._hands.get(player_id)
        player = self._state.players.get(player_id)
        if hand is None or player is None:
            return False

        card = hand.play_card(card_id)
        if card is None:
            return False

        targets = dict(targets or {})
        context = EffectContext(
            game_state=self._state,
            source_player_id=player_id,
            target_player_id=targets.get("player"),
            source_card=card,
            selected_targets=list(targets.get("selected") or []),
        )
        results = self.effect_resolver.resolve_all(card.effects, context)

        self._state.history.append(
            GameAction(
                id=generate_id("action"),
                type=ActionType.PLAY_CARD,
                player_id=player_id,
                timestamp=now_ms(),
                payload={"card_id": card_id, "definition_id": card.definition_id, "targets": targets},
                result=ActionResult(success=True, effects=results),
            )
        )
        player.play_area.append(card.instance)
        self._touch()

        logger.debug("%s played %s (%d effects)", player_id, card.definition_id, len(results))
        self._emit(
            EventType.CARD_PLAYED,
            {
                "player_id": player_id,
                "card_id": card_id,
                "definition_id": card.definition_id,
                "effects": [r.to_dict() for r in results],
            },
        )
        self._apply_intents(results)
        return True

    def _apply_intents(self, results: Iterable[ResolvedEffect]) -> None:
        """执行结算器返回的摸牌/弃牌/触发事件意图"""
        for result in results:
            kind = getattr(result.type, "value", result.type)
            payload = result.after if isinstance(result.after, dict) else {}
            if kind == EffectType.DRAW_CARDS:
                self.draw_cards(result.target, int(payload.get("count", 0)))
            elif kind == EffectType.DISCARD_CARDS:
                self._discard_random(result.target, int(payload.get("count", 0)))
            elif kind == EffectType.TRIGGER_EVENT and payload.get("event_type"):
                self._emit(payload["event_type"], dict(payload.get("event_data") or {}))

    def _discard_random(self, player_id: str, count: int) -> list[Card]:
        deck = self._decks.get(player_id)
        hand = self._hands.get(player_id)
        if deck is None or hand is None:
            return []
        discarded = []
        for _ in range(count):
            card = hand.discard_random(self._rng)
            if card is None:
                break
            deck.discard(card)
            discarded.append(card)
            self._touch()
            self._emit(
                EventType.CARD_DISCARDED,
                {"player_id": player_id, "card_id": card.id, "reason": "effect"},
            )
        return discarded

    def discard_card(self, player_id: str, card_id: str) -> bool:
        """把一张手牌放入弃牌堆"""
        deck = self._decks.get(player_id)
        hand = self._hands.get(player_id)
        if deck is None or hand is None:
            return False
        card = hand.discard_card(card_id)
        if card is None:
            return False
        deck.discard(card)
        self._touch()
        self._emit(EventType.CARD_DISCARDED, {"player_id": player_id, "card_id": card_id})
        return True

    # ==================== 数值修改 ====================

    def modify_stat(self, player_id: str, stat: str, delta: float) -> bool:
        """属性加减（不裁剪，可以为负）"""
        player = self._state.players.get(player_id)
        if player is None:
            return False
        before = player.stats.get(stat, 0)
        return self._set_stat(player, stat, before, before + delta)

    def set_stat(self, player_id: str, stat: str, value: float) -> bool:
        player = self._state.players.get(player_id)
        if player is None:
            return False
        return self._set_stat(player, stat, player.stats.get(stat, 0), value)

    def _set_stat(self, player: PlayerState, stat: str, before: float, after: float) -> bool:
        player.stats[stat] = after
        self._touch()
        self._emit(
            EventType.STAT_CHANGED,
            {"player_id": player.id, "stat": stat, "before": before, "after": after},
        )
        return True

    def modify_resource(self, player_id: str, resource: str, delta: float) -> bool:
        """资源加减，下限为 0"""
        player = self._state.players.get(player_id)
        if player is None:
            return False
        before = player.resources.get(resource, 0)
        player.resources[resource] = max(0, before + delta)
        self._touch()
        self._emit(
            EventType.RESOURCE_CHANGED,
            {
                "player_id": player_id,
                "resource": resource,
                "before": before,
                "after": player.resources[resource],
            },
        )
        return True

    # ==================== 状态与共享数据 ====================

    def has_status(self, player_id: str, status_id: str) -> bool:
        player = self._state.players.get(player_id)
        return player is not None and any(s.id == status_id for s in player.statuses)

    def get_player_statuses(self, player_id: str) -> list[PlayerStatus]:
        player = self._state.players.get(player_id)
        return list(player.statuses) if player else []

    def set_shared_state(self, key: str, value: Any) -> None:
        self._state.shared_state[key] = value
        self._touch()

    def get_shared_state(self, key: str, default: Any = None) -> Any:
        return self._state.shared_state.get(key, default)

    # ==================== 胜负判定 ====================

    def register_win_checker(self, name: str, checker: WinChecker) -> None:
        """注册 custom 胜利条件判定器，name 对应 WinCondition.custom_check"""
        self._win_checkers[name] = checker

    def check_win_conditions(self) -> WinCheckResult:
        """
        按配置顺序检查胜利条件

        - stat/resource 阈值：返回第一个满足条件的玩家；
          阈值 <= 0 的“<” / “<=”条件视为失败，没有赢家
        - turn_limit：回合数达到上限后按 tiebreak_stat 取最高者，
          并列时按加入顺序；未配置 tiebreak_stat 时判为平局
        - custom：调用注册的判定器
        """
        players = list(self._state.players.values())
        for condition in self._config.win_conditions:
            if condition.type in (
                WinConditionType.STAT_THRESHOLD,
                WinConditionType.RESOURCE_THRESHOLD,
            ):
                result = self._check_threshold(condition, players)
            elif condition.type == WinConditionType.TURN_LIMIT:
                result = self._check_turn_limit(condition, players)
            elif condition.type == WinConditionType.CUSTOM:
                result = self._check_custom(condition, players)
            else:
                result = None
            if result is not None:
                return result
        return WinCheckResult()

    def _check_threshold(
        self, condition: WinCondition, players: list[PlayerState]
    ) -> WinCheckResult | None:
        is_stat = condition.type == WinConditionType.STAT_THRESHOLD
        key = condition.stat if is_stat else (condition.resource or condition.stat)
        if not key or condition.value is None or not condition.operator:
            return None
        for player in players:
            pool = player.stats if is_stat else player.resources
            if compare(pool.get(key, 0), condition.operator, condition.value):
                is_failure = condition.operator in ("<", "<=") and condition.value <= 0
                return WinCheckResult(
                    winner=None if is_failure else player.id,
                    reason=_t("win.threshold", key=key, value=condition.value),
                    is_failure=is_failure,
                )
        return None

    def _check_turn_limit(
        self, condition: WinCondition, players: list[PlayerState]
    ) -> WinCheckResult | None:
        if condition.value is None or self._state.turn < condition.value:
            return None
        if not condition.tiebreak_stat or not players:
            return WinCheckResult(reason=_t("win.turn_limit_draw"))

        contenders = [p for p in players if not p.eliminated] or players
        stat = condition.tiebreak_stat
        best = contenders[0]
        for player in contenders[1:]:
            if player.stats.get(stat, 0) > best.stats.get(stat, 0):
                best = player
        return WinCheckResult(winner=best.id, reason=_t("win.turn_limit", stat=stat))

    def _check_custom(
        self, condition: WinCondition, players: list[PlayerState]
    ) -> WinCheckResult | None:
        checker = self._win_checkers.get(condition.custom_check or "")
        if checker is None:
            logger.debug("No win checker registered for %r", condition.custom_check)
            return None
        for player in players:
            if checker(player, self._state):
                return WinCheckResult(
                    winner=player.id, reason=_t("win.custom", name=condition.custom_check)
                )
        return None
