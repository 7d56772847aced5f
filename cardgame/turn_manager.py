"""回合管理器模块
负责管理回合内的阶段流转

TurnManager 是叠加在 GameStateManager 之上的阶段状态机：
- 阶段列表有序，走完最后一个阶段时调用 state_manager.end_turn()
- 自动推进与定时阶段通过可替换的调度器安排，同一时刻最多一个待执行的调度
- 回合开始时的自动摸牌由 state_manager 的 turn_started 事件驱动
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from i18n import t as _t

from .config import get_settings
from .enums import EventType, GamePhase
from .events import GameEvent
from .exceptions import UnknownPhaseError
from .scheduling import AsyncioScheduler, PhaseScheduler, ScheduledHandle
from .state_manager import GameStateManager

logger = logging.getLogger(__name__)

PhaseHook = Callable[["TurnManager"], "Awaitable[Any] | None"]


@dataclass
class TurnPhaseConfig:
    """阶段配置

    Attributes:
        name: 阶段
        auto_advance: 进入后在当前调用链结束时自动推进
        on_enter / on_exit: 进入/离开阶段时的回调，可以是协程函数
        duration: 定时阶段的时长（毫秒），到时自动推进
    """

    name: GamePhase
    auto_advance: bool = False
    on_enter: PhaseHook | None = None
    on_exit: PhaseHook | None = None
    duration: float | None = None

    def __post_init__(self):
        if not isinstance(self.name, GamePhase):
            try:
                self.name = GamePhase(self.name)
            except ValueError:
                raise UnknownPhaseError(str(self.name)) from None


def default_phases() -> list[TurnPhaseConfig]:
    """默认阶段：摸牌(自动) → 主要 → 行动 → 结算(自动) → 结束(自动)"""
    return [
        TurnPhaseConfig(GamePhase.DRAW, auto_advance=True),
        TurnPhaseConfig(GamePhase.MAIN),
        TurnPhaseConfig(GamePhase.ACTION),
        TurnPhaseConfig(GamePhase.RESOLVE, auto_advance=True),
        TurnPhaseConfig(GamePhase.END, auto_advance=True),
    ]


class TurnManager:
    """回合管理器

    暂停只取消本管理器自己的调度；外部协作者（如 AI 的思考延迟）
    不会被中断，它们在延迟结束后应自行检查 paused。
    """

    def __init__(
        self,
        state_manager: GameStateManager,
        phases: Iterable[TurnPhaseConfig] | None = None,
        auto_draw_on_turn_start: bool | None = None,
        draw_count: int | None = None,
        scheduler: PhaseScheduler | None = None,
    ):
        """初始化回合管理器

        Args:
            state_manager: 状态管理器，会订阅它的事件总线
            phases: 阶段列表，缺省为 default_phases()
            auto_draw_on_turn_start: 回合开始时自动摸牌（缺省取 EngineSettings）
            draw_count: 自动摸牌数（缺省取 EngineSettings）
            scheduler: 调度器，缺省为 AsyncioScheduler
        """
        settings = get_settings()
        self._state_manager = state_manager
        self._phases = self._checked(phases if phases is not None else default_phases())
        self._auto_draw = (
            settings.auto_draw_on_turn_start
            if auto_draw_on_turn_start is None
            else auto_draw_on_turn_start
        )
        self._draw_count = settings.turn_draw_count if draw_count is None else draw_count
        self._scheduler: PhaseScheduler = scheduler or AsyncioScheduler()
        self._pending: ScheduledHandle | None = None
        self._index = 0
        self._paused = False

        bus = state_manager.event_bus
        self._unsubscribers = [
            bus.on(EventType.TURN_STARTED, self._on_turn_started),
            bus.on(EventType.PHASE_CHANGED, self._on_phase_changed),
            bus.on(EventType.GAME_ENDED, self._on_game_ended),
        ]

    @staticmethod
    def _checked(phases: Iterable[TurnPhaseConfig]) -> list[TurnPhaseConfig]:
        phases = list(phases)
        if not phases:
            raise UnknownPhaseError()
        return phases

    # ==================== 属性 ====================

    @property
    def state_manager(self) -> GameStateManager:
        return self._state_manager

    @property
    def current_phase(self) -> TurnPhaseConfig:
        return self._phases[self._index]

    @property
    def current_phase_name(self) -> GamePhase:
        return self.current_phase.name

    @property
    def current_player_id(self) -> str:
        return self._state_manager.current_player_id

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def has_pending(self) -> bool:
        """是否有待执行的自动推进"""
        return self._pending is not None

    @property
    def phases(self) -> list[TurnPhaseConfig]:
        return list(self._phases)

    # ==================== 流程控制 ====================

    def start_game(self) -> bool:
        return self._state_manager.start_game()

    def advance_phase(self) -> None:
        """推进到下一阶段；走完最后一个阶段时结束回合"""
        if self._paused or self._state_manager.phase == GamePhase.GAME_OVER:
            return

        self._cancel_pending()
        self._run_hook(self.current_phase.on_exit)

        self._index = (self._index + 1) % len(self._phases)
        if self._index == 0:
            self._state_manager.end_turn()
            return
        self._state_manager.set_phase(self.current_phase.name)

    def skip_to_phase(self, phase: GamePhase | str) -> bool:
        """直接跳到指定阶段，中间阶段的回调不会执行"""
        index = self._find(phase)
        if index is None:
            return False
        self._cancel_pending()
        self._run_hook(self.current_phase.on_exit)
        self._index = index
        self._state_manager.set_phase(self.current_phase.name)
        return True

    def end_turn(self) -> None:
        """立即结束当前回合"""
        self._cancel_pending()
        self._index = 0
        self._state_manager.end_turn()

    def pause(self) -> None:
        self._paused = True
        self._cancel_pending()

    def resume(self) -> None:
        """恢复流转，并重新安排当前阶段的自动推进"""
        if not self._paused:
            return
        self._paused = False
        self._schedule(self.current_phase)

    def check_and_end_game(self) -> bool:
        """满足胜利/失败/平局条件时结束游戏"""
        result = self._state_manager.check_win_conditions()
        if not result.is_over:
            return False
        self._state_manager.end_game(result.winner, result.reason or _t("win.default"))
        return True

    def detach(self) -> None:
        """取消事件订阅与待执行的调度"""
        self._cancel_pending()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # ==================== 阶段列表 ====================

    def set_phases(self, phases: Iterable[TurnPhaseConfig]) -> None:
        self._phases = self._checked(phases)
        self._cancel_pending()
        self._index = 0

    def add_phase(self, phase: TurnPhaseConfig, index: int | None = None) -> None:
        if index is None:
            self._phases.append(phase)
        else:
            self._phases.insert(index, phase)
            if index <= self._index:
                self._index += 1

    def remove_phase(self, phase: GamePhase | str) -> bool:
        """移除阶段；不允许移除最后一个阶段"""
        index = self._find(phase)
        if index is None or len(self._phases) == 1:
            return False
        del self._phases[index]
        if index < self._index:
            self._index -= 1
        elif index == self._index:
            self._cancel_pending()
        if self._index >= len(self._phases):
            self._index = 0
        return True

    def _find(self, phase: GamePhase | str) -> int | None:
        name = getattr(phase, "value", phase)
        for index, config in enumerate(self._phases):
            if config.name.value == name:
                return index
        return None

    # ==================== 事件处理 ====================

    def _on_turn_started(self, event: GameEvent, state: Any) -> None:
        self._index = 0
        if self._auto_draw:
            self._state_manager.draw_cards(self.current_player_id, self._draw_count)

    def _on_phase_changed(self, event: GameEvent, state: Any) -> None:
        to = event.data.get("to", "")
        # 阶段名可能重复，当前索引已经指向该阶段时不重新定位
        index = self._index if self.current_phase.name.value == to else self._find(to)
        if index is None:
            return
        self._index = index
        config = self._phases[index]
        self._run_hook(config.on_enter)
        self._schedule(config)

    def _on_game_ended(self, event: GameEvent, state: Any) -> None:
        self._cancel_pending()

    # ==================== 调度 ====================

    def _schedule(self, config: TurnPhaseConfig) -> None:
        self._cancel_pending()
        if self._paused:
            return
        if config.duration:
            self._pending = self._scheduler.call_later(config.duration, self._fire)
        elif config.auto_advance:
            self._pending = self._scheduler.call_soon(self._fire)

    def _fire(self) -> None:
        self._pending = None
        if not self._paused:
            self.advance_phase()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run_hook(self, hook: PhaseHook | None) -> None:
        if hook is None:
            return
        try:
            result = hook(self)
            if inspect.isawaitable(result):
                self._scheduler.spawn(result)
        except Exception:
            logger.exception("Phase hook %r failed", hook)
