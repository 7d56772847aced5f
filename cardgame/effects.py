"""
效果结算器

把卡牌/状态上的声明式效果列表作用到 GameState 中的目标玩家上。

结算器只依赖每次调用传入的状态对象：
- 属性、资源、状态列表在这里直接修改
- 摸牌/弃牌只返回“意图”记录 {"count": n}，由 GameStateManager 真正执行
- trigger_event 返回 {"event_type", "event_data"}，由调用方重新发布

自定义处理器注册表按效果类型字符串索引，优先于内置处理器。
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from i18n import t as _t

from .enums import ConditionType, EffectTarget, EffectType
from .models import Effect, EffectCondition, GameState, PlayerState, PlayerStatus, ResolvedEffect
from .utils import as_number, compare, generate_id

if TYPE_CHECKING:
    from .card import Card

logger = logging.getLogger(__name__)

DEFAULT_RANKING_STAT = "performance"


def _value(item: Any) -> Any:
    # str 枚举的哈希与其值不同，查表前统一转成字符串
    return getattr(item, "value", item)


@dataclass
class EffectContext:
    """效果结算上下文

    Attributes:
        game_state: 被修改的对局状态
        source_player_id: 效果来源玩家
        target_player_id: 显式指定的目标玩家
        source_card: 来源卡牌
        target_card: 目标卡牌
        selected_targets: 玩家/AI 选中的目标（selected_opponent）
    """

    game_state: GameState
    source_player_id: str
    target_player_id: str | None = None
    source_card: Card | None = None
    target_card: Card | None = None
    selected_targets: list[str] = field(default_factory=list)


@dataclass
class TargetSelectionRequest:
    """目标选择请求：告诉 UI/AI 需要先选一个对手"""

    request_id: str
    source_card_id: str
    source_player_id: str
    valid_targets: list[str]
    reason: str
    allow_cancel: bool = True
    min_targets: int = 1
    max_targets: int = 1


EffectHandler = Callable[[Effect, EffectContext], "ResolvedEffect | None"]
ConditionChecker = Callable[[EffectCondition, EffectContext], bool]

_SELECTION_REASONS = {
    EffectType.TRANSFER_STAT.value: "target.transfer_stat",
    EffectType.STEAL_RESOURCE.value: "target.steal_resource",
    EffectType.DAMAGE_STAT.value: "target.damage_stat",
    EffectType.APPLY_STATUS.value: "target.apply_status",
}


class EffectResolver:
    """
    效果结算器

    外部系统（连击、状态、成就、AI……）与 GameStateManager 共用同一个实例，
    通过 resolve_all 走完全相同的结算流程。
    """

    def __init__(self, rng: random.Random | None = None):
        self._handlers: dict[str, EffectHandler] = {}
        self._conditions: dict[str, ConditionChecker] = {}
        self._rng = rng or random.Random()
        self._builtins: dict[str, EffectHandler] = {
            EffectType.MODIFY_STAT.value: self._resolve_modify_stat,
            EffectType.DRAW_CARDS.value: self._resolve_draw_cards,
            EffectType.DISCARD_CARDS.value: self._resolve_discard_cards,
            EffectType.GAIN_RESOURCE.value: self._resolve_gain_resource,
            EffectType.LOSE_RESOURCE.value: self._resolve_lose_resource,
            EffectType.APPLY_STATUS.value: self._resolve_apply_status,
            EffectType.REMOVE_STATUS.value: self._resolve_remove_status,
            EffectType.TRIGGER_EVENT.value: self._resolve_trigger_event,
            EffectType.TRANSFER_STAT.value: self._resolve_transfer_stat,
            EffectType.STEAL_RESOURCE.value: self._resolve_steal_resource,
            EffectType.DAMAGE_STAT.value: self._resolve_damage_stat,
            EffectType.CLAIM_SHARED.value: self._resolve_claim_shared,
        }

    # ==================== 注册表 ====================

    def register_handler(self, effect_type: str, handler: EffectHandler) -> None:
        """注册自定义效果处理器（同名时覆盖内置处理器）"""
        self._handlers[_value(effect_type)] = handler

    def unregister_handler(self, effect_type: str) -> bool:
        return self._handlers.pop(_value(effect_type), None) is not None

    def has_handler(self, effect_type: str) -> bool:
        key = _value(effect_type)
        return key in self._handlers or key in self._builtins

    def register_condition(self, name: str, checker: ConditionChecker) -> None:
        """注册 custom 条件判定器，name 对应 EffectCondition.target"""
        self._conditions[name] = checker

    # ==================== 结算 ====================

    def resolve(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        """
        结算单个效果

        Returns:
            结算记录；条件不满足、缺少必要参数或没有目标时返回 None
        """
        effect_type = _value(effect.type)

        if effect.condition is not None and not self.check_condition(effect.condition, context):
            logger.debug("Effect %s skipped: condition not met", effect_type)
            return None

        handler = self._handlers.get(effect_type)
        if handler is not None:
            return handler(effect, context)

        builtin = self._builtins.get(effect_type)
        if builtin is None:
            logger.warning("Unknown effect type: %s", effect_type)
            return None
        return builtin(effect, context)

    def resolve_all(
        self, effects: Iterable[Effect], context: EffectContext
    ) -> list[ResolvedEffect]:
        """按顺序结算，丢弃 None，保持其余结果的顺序"""
        results = []
        for effect in effects:
            result = self.resolve(effect, context)
            if result is not None:
                results.append(result)
        return results

    def check_condition(self, condition: EffectCondition, context: EffectContext) -> bool:
        """检查效果条件（以显式目标玩家为准，缺省时用来源玩家）"""
        player_id = context.target_player_id or context.source_player_id
        player = context.game_state.players.get(player_id)
        if player is None:
            return False

        kind = _value(condition.type)
        expected = as_number(condition.value)
        if kind == ConditionType.STAT_CHECK:
            actual = player.stats.get(condition.target or "", 0)
            return compare(actual, condition.operator, expected)
        if kind == ConditionType.CARD_COUNT:
            return compare(len(player.hand), condition.operator, expected)
        if kind == ConditionType.TURN_COUNT:
            return compare(context.game_state.turn, condition.operator, expected)
        if kind == ConditionType.CUSTOM:
            checker = self._conditions.get(condition.target or "")
            return checker(condition, context) if checker else True
        return True

    # ==================== 目标选择 ====================

    def select_targets(self, effect: Effect, context: EffectContext) -> list[PlayerState]:
        """按效果的目标选择器返回候选玩家"""
        state = context.game_state
        players = list(state.players.values())
        source_id = context.source_player_id
        opponents = [p for p in players if p.id != source_id]
        explicit = state.players.get(context.target_player_id or "")
        target = _value(effect.target)

        if target == EffectTarget.SELF:
            return _present(state.players.get(source_id))
        if target == EffectTarget.OPPONENT:
            if len(opponents) == 1:
                return opponents
            if explicit is not None:
                return [explicit]
            return opponents[:1]
        if target == EffectTarget.ALL_PLAYERS:
            return players
        if target == EffectTarget.RANDOM_PLAYER:
            return [self._rng.choice(players)] if players else []
        if target == EffectTarget.SELECTED_OPPONENT:
            if context.selected_targets:
                return [state.players[i] for i in context.selected_targets if i in state.players]
            return _present(explicit)
        if target == EffectTarget.ALL_OPPONENTS:
            return opponents
        if target in (EffectTarget.WEAKEST_OPPONENT, EffectTarget.STRONGEST_OPPONENT):
            stat = effect.metadata.get("stat", DEFAULT_RANKING_STAT)
            ranked = sorted(
                opponents,
                key=lambda p: p.stats.get(stat, 0),
                reverse=target == EffectTarget.STRONGEST_OPPONENT,
            )
            return ranked[:1]
        if target in state.players:
            return [state.players[target]]
        if explicit is not None:
            return [explicit]
        return _present(state.players.get(source_id))

    def needs_target_selection(
        self, effect: Effect, game_state: GameState, source_player_id: str
    ) -> TargetSelectionRequest | None:
        """只有 selected_opponent 且对手多于一个时才需要选择"""
        if _value(effect.target) != EffectTarget.SELECTED_OPPONENT:
            return None
        opponents = [pid for pid in game_state.players if pid != source_player_id]
        if len(opponents) <= 1:
            return None
        reason_key = _SELECTION_REASONS.get(_value(effect.type), "target.default")
        return TargetSelectionRequest(
            request_id=generate_id("select"),
            source_card_id="",
            source_player_id=source_player_id,
            valid_targets=opponents,
            reason=_t(reason_key),
        )

    def needs_target_selection_for_card(
        self,
        effects: Iterable[Effect],
        game_state: GameState,
        source_player_id: str,
        card_id: str,
    ) -> TargetSelectionRequest | None:
        """返回卡牌第一个需要选择目标的效果对应的请求"""
        for effect in effects:
            request = self.needs_target_selection(effect, game_state, source_player_id)
            if request is not None:
                request.source_card_id = card_id
                return request
        return None

    # ==================== 内置效果 ====================

    def _resolve_modify_stat(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        stat = effect.metadata.get("stat")
        targets = self.select_targets(effect, context)
        if not stat or not targets:
            return None
        player = targets[0]
        before = player.stats.get(stat, 0)
        player.stats[stat] = before + as_number(effect.value)
        return ResolvedEffect(EffectType.MODIFY_STAT.value, player.id, before, player.stats[stat])

    def _resolve_draw_cards(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        return self._pile_intent(EffectType.DRAW_CARDS.value, effect, context)

    def _resolve_discard_cards(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        return self._pile_intent(EffectType.DISCARD_CARDS.value, effect, context)

    def _pile_intent(self, kind: str, effect: Effect, context: EffectContext) -> ResolvedEffect:
        targets = self.select_targets(effect, context)
        target_id = targets[0].id if targets else context.source_player_id
        count = int(as_number(effect.value, 1))
        return ResolvedEffect(kind, target_id, None, {"count": count})

    def _resolve_gain_resource(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        resource = effect.metadata.get("resource")
        targets = self.select_targets(effect, context)
        if not resource or not targets:
            return None
        player = targets[0]
        before = player.resources.get(resource, 0)
        player.resources[resource] = max(0, before + as_number(effect.value))
        return ResolvedEffect(
            EffectType.GAIN_RESOURCE.value, player.id, before, player.resources[resource]
        )

    def _resolve_lose_resource(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        resource = effect.metadata.get("resource")
        targets = self.select_targets(effect, context)
        if not resource or not targets:
            return None
        player = targets[0]
        before = player.resources.get(resource, 0)
        player.resources[resource] = max(0, before - as_number(effect.value))
        return ResolvedEffect(
            EffectType.LOSE_RESOURCE.value, player.id, before, player.resources[resource]
        )

    def _resolve_apply_status(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        status_id = effect.metadata.get("status_id")
        targets = self.select_targets(effect, context)
        if not status_id or not targets:
            return None
        player = targets[0]
        status = PlayerStatus(
            id=status_id,
            name=effect.metadata.get("status_name") or status_id,
            duration=int(as_number(effect.metadata.get("duration"), -1)),
            effects=[
                e if isinstance(e, Effect) else Effect.from_dict(e)
                for e in effect.metadata.get("effects") or []
            ],
        )
        player.statuses.append(status)
        return ResolvedEffect(EffectType.APPLY_STATUS.value, player.id, None, status.to_dict())

    def _resolve_remove_status(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        status_id = effect.metadata.get("status_id")
        if not status_id:
            return None
        for player in self.select_targets(effect, context):
            for index, status in enumerate(player.statuses):
                if status.id == status_id:
                    removed = player.statuses.pop(index)
                    return ResolvedEffect(
                        EffectType.REMOVE_STATUS.value, player.id, removed.to_dict(), None
                    )
        return None

    def _resolve_trigger_event(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        event_type = effect.metadata.get("event_type")
        if not event_type:
            return None
        return ResolvedEffect(
            EffectType.TRIGGER_EVENT.value,
            EffectTarget.GAME.value,
            None,
            {"event_type": event_type, "event_data": dict(effect.metadata.get("event_data") or {})},
        )

    # ---------- 竞争模式 ----------

    def _resolve_transfer_stat(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        """把属性从来源转给目标（to_target），或从目标转给来源（from_target）"""
        stat = effect.metadata.get("stat")
        direction = effect.metadata.get("direction", "to_target")
        source = context.game_state.players.get(context.source_player_id)
        targets = self.select_targets(effect, context)
        if not stat or source is None or not targets:
            return None

        target = targets[0]
        amount = as_number(effect.value)
        giver, receiver = (source, target) if direction == "to_target" else (target, source)
        giver_before = giver.stats.get(stat, 0)
        receiver_before = receiver.stats.get(stat, 0)
        giver.stats[stat] = giver_before - amount
        receiver.stats[stat] = receiver_before + amount

        results = [
            {"player_id": giver.id, "before": giver_before, "after": giver.stats[stat]},
            {"player_id": receiver.id, "before": receiver_before, "after": receiver.stats[stat]},
        ]
        return ResolvedEffect(
            EffectType.TRANSFER_STAT.value,
            target.id,
            {"stat": stat, "direction": direction, "results": [dict(r) for r in results]},
            {"stat": stat, "value": amount, "results": results},
        )

    def _resolve_steal_resource(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        """偷取资源，最多偷走目标拥有的数量"""
        resource = effect.metadata.get("resource")
        source = context.game_state.players.get(context.source_player_id)
        targets = self.select_targets(effect, context)
        if not resource or source is None or not targets:
            return None

        target = targets[0]
        target_before = target.resources.get(resource, 0)
        source_before = source.resources.get(resource, 0)
        stolen = max(0, min(as_number(effect.value), target_before))
        target.resources[resource] = target_before - stolen
        source.resources[resource] = source.resources.get(resource, 0) + stolen

        return ResolvedEffect(
            EffectType.STEAL_RESOURCE.value,
            target.id,
            {"resource": resource, "target_amount": target_before, "source_amount": source_before},
            {
                "resource": resource,
                "stolen_amount": stolen,
                "target_amount": target.resources[resource],
                "source_amount": source.resources[resource],
            },
        )

    def _resolve_damage_stat(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        """所有目标的属性减去 |value|，返回第一条记录"""
        stat = effect.metadata.get("stat")
        if not stat:
            return None
        damage = abs(as_number(effect.value))
        records = []
        for player in self.select_targets(effect, context):
            before = player.stats.get(stat, 0)
            player.stats[stat] = before - damage
            records.append(
                ResolvedEffect(EffectType.DAMAGE_STAT.value, player.id, before, player.stats[stat])
            )
        return records[0] if records else None

    def _resolve_claim_shared(self, effect: Effect, context: EffectContext) -> ResolvedEffect | None:
        # 只返回意图，实际争夺由外部共享资源系统处理
        resource_id = effect.metadata.get("resource_id")
        if not resource_id:
            return None
        return ResolvedEffect(
            EffectType.CLAIM_SHARED.value,
            EffectTarget.GAME.value,
            None,
            {
                "resource_id": resource_id,
                "rule_index": int(as_number(effect.metadata.get("rule_index"), 0)),
                "player_id": context.source_player_id,
                "pending": True,
            },
        )


def _present(player: PlayerState | None) -> list[PlayerState]:
    return [player] if player is not None else []
