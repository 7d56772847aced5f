"""
事件总线系统
实现观察者模式，用于解耦引擎与外部系统（UI、AI、连击、成就……）

每个 GameStateManager 持有自己的 EventBus 实例，不存在全局总线。
"""

from __future__ import annotations

import bisect
import heapq
import itertools
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import get_settings
from .enums import EventType
from .utils import now_ms

logger = logging.getLogger(__name__)

WILDCARD = "*"


@dataclass
class GameEvent:
    """
    游戏事件数据类
    携带事件的所有相关信息
    """

    event_type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=now_ms)

    # 常用字段的快捷访问
    @property
    def player_id(self) -> str | None:
        return self.data.get("player_id")

    @property
    def card_id(self) -> str | None:
        return self.data.get("card_id")

    @property
    def type_name(self) -> str:
        return _key(self.event_type)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_name, "data": dict(self.data), "timestamp": self.timestamp}


# 事件处理器类型：handler(event, state)
EventHandler = Callable[[GameEvent, Any], None]


def _key(event_type: EventType | str) -> str:
    return event_type.value if isinstance(event_type, EventType) else str(event_type)


@dataclass(eq=False)
class _Listener:
    handler: EventHandler
    event_key: str
    priority: int
    seq: int
    once: bool = False
    active: bool = True

    @property
    def order(self) -> tuple[int, int]:
        # 优先级高的在前，同优先级按注册顺序
        return (-self.priority, self.seq)


class EventBus:
    """
    事件总线
    负责事件的发布和订阅

    - 同步派发：emit 返回时所有处理器都已执行完毕
    - 按事件类型和通配符 "*" 各维护一个有序列表，插入时用 bisect 保持有序，
      派发时线性归并，不需要每次重新排序
    - 处理器抛出的异常会被记录并隔离，不影响其他处理器和后续事件
    """

    def __init__(self, max_history: int | None = None):
        if max_history is None:
            max_history = get_settings().event_history_size
        self._listeners: dict[str, list[_Listener]] = {}
        self._seq = itertools.count()
        self._history: deque[GameEvent] = deque(maxlen=max(0, max_history))

    # ==================== 订阅 ====================

    def on(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        priority: int = 0,
    ) -> Callable[[], None]:
        """
        订阅事件

        Args:
            event_type: 事件类型，"*" 表示订阅所有事件
            handler: 事件处理器 handler(event, state)
            priority: 优先级（数字越大越先执行）

        Returns:
            取消订阅函数
        """
        return self._add(event_type, handler, priority, once=False)

    def once(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        priority: int = 0,
    ) -> Callable[[], None]:
        """订阅事件，首次触发后自动取消"""
        return self._add(event_type, handler, priority, once=True)

    def off(self, event_type: EventType | str, handler: EventHandler) -> None:
        """取消订阅（移除该处理器最早的一次注册）"""
        for listener in self._listeners.get(_key(event_type), ()):
            if listener.handler == handler:
                self._remove(listener)
                return

    def _add(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        priority: int,
        once: bool,
    ) -> Callable[[], None]:
        key = _key(event_type)
        listener = _Listener(handler, key, priority, next(self._seq), once)
        bisect.insort(self._listeners.setdefault(key, []), listener, key=lambda l: l.order)

        def unsubscribe() -> None:
            self._remove(listener)

        return unsubscribe

    def _remove(self, listener: _Listener) -> None:
        listener.active = False
        listeners = self._listeners.get(listener.event_key)
        if not listeners:
            return
        for index, candidate in enumerate(listeners):
            if candidate is listener:
                del listeners[index]
                break
        if not listeners:
            del self._listeners[listener.event_key]

    # ==================== 发布 ====================

    def emit(self, event: GameEvent, state: Any = None) -> GameEvent:
        """
        发布事件

        Args:
            event: 游戏事件
            state: 当前游戏状态，原样传给处理器

        Returns:
            发布的事件
        """
        self._history.append(event)
        key = _key(event.event_type)

        # 派发期间允许处理器订阅/取消订阅，所以先做快照
        specific = list(self._listeners.get(key, ()))
        wildcard = list(self._listeners.get(WILDCARD, ())) if key != WILDCARD else []
        fired_once: list[_Listener] = []

        for listener in heapq.merge(specific, wildcard, key=lambda l: l.order):
            if not listener.active:
                continue
            if listener.once:
                # 先标记为失效，处理器内的重入 emit 不会再次触发它
                listener.active = False
                fired_once.append(listener)
            try:
                listener.handler(event, state)
            except Exception:
                logger.exception("Event handler %r failed on %s", listener.handler, key)

        for listener in fired_once:
            self._remove(listener)

        return event

    def emit_simple(
        self,
        event_type: EventType | str,
        data: dict[str, Any] | None = None,
        state: Any = None,
    ) -> GameEvent:
        """
        快捷发布事件

        Args:
            event_type: 事件类型
            data: 事件数据
            state: 当前游戏状态

        Returns:
            发布的事件
        """
        return self.emit(GameEvent(event_type=event_type, data=data or {}), state)

    # ==================== 历史与维护 ====================

    def get_history(self, event_type: EventType | str | None = None) -> list[GameEvent]:
        """获取事件历史（可按类型过滤），从旧到新"""
        if event_type is None:
            return list(self._history)
        key = _key(event_type)
        return [e for e in self._history if e.type_name == key]

    def clear_history(self) -> None:
        self._history.clear()

    def set_max_history(self, size: int) -> None:
        """修改历史上限，超出部分从最旧的开始丢弃"""
        self._history = deque(self._history, maxlen=max(0, size))

    @property
    def max_history(self) -> int:
        return self._history.maxlen or 0

    def clear_listeners(self, event_type: EventType | str | None = None) -> None:
        """清除订阅（不传类型时清除全部）"""
        if event_type is None:
            keys = list(self._listeners)
        else:
            keys = [_key(event_type)]
        for key in keys:
            for listener in self._listeners.pop(key, ()):
                listener.active = False

    def listener_count(self, event_type: EventType | str | None = None) -> int:
        if event_type is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(_key(event_type), ()))

    def has_listeners(self, event_type: EventType | str) -> bool:
        return self.listener_count(event_type) > 0 or self.listener_count(WILDCARD) > 0
