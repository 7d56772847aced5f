"""
事件系统单元测试
测试 EventBus、GameEvent 和相关功能
"""

import sys
from pathlib import Path

# 确保可以导入项目模块
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardgame.config import reset_settings
from cardgame.enums import EventType
from cardgame.events import EventBus, GameEvent


class TestEventBus:
    """事件总线测试"""

    def setup_method(self):
        """每个测试前重置"""
        self.bus = EventBus()
        self.received_events = []

    def test_subscribe_and_emit(self):
        """测试订阅和发布事件"""
        def handler(event, state):
            self.received_events.append((event, state))

        self.bus.on(EventType.CARD_PLAYED, handler)
        self.bus.emit_simple(EventType.CARD_PLAYED, {"player_id": "p1"}, state="S")

        assert len(self.received_events) == 1
        event, state = self.received_events[0]
        assert event.player_id == "p1"
        assert state == "S"

    def test_string_and_enum_keys_are_equivalent(self):
        """测试字符串与枚举订阅等价"""
        self.bus.on("card_played", lambda e, s: self.received_events.append(e))
        self.bus.emit_simple(EventType.CARD_PLAYED)
        self.bus.emit(GameEvent("card_played"))

        assert len(self.received_events) == 2

    def test_priority_order(self):
        """测试优先级顺序"""
        order = []
        self.bus.on(EventType.TURN_STARTED, lambda e, s: order.append("low"), priority=1)
        self.bus.on(EventType.TURN_STARTED, lambda e, s: order.append("high"), priority=10)
        self.bus.on(EventType.TURN_STARTED, lambda e, s: order.append("low2"), priority=1)

        self.bus.emit_simple(EventType.TURN_STARTED)

        assert order == ["high", "low", "low2"]

    def test_wildcard_merged_by_priority(self):
        """测试通配符订阅与具体订阅按优先级合并"""
        order = []
        self.bus.on(EventType.STAT_CHANGED, lambda e, s: order.append("specific"), priority=5)
        self.bus.on("*", lambda e, s: order.append("wild-high"), priority=10)
        self.bus.on("*", lambda e, s: order.append("wild-low"), priority=0)

        self.bus.emit_simple(EventType.STAT_CHANGED)

        assert order == ["wild-high", "specific", "wild-low"]

    def test_same_priority_specific_and_wildcard_keep_registration_order(self):
        order = []
        self.bus.on("*", lambda e, s: order.append("wild"))
        self.bus.on(EventType.GAME_STARTED, lambda e, s: order.append("specific"))

        self.bus.emit_simple(EventType.GAME_STARTED)

        assert order == ["wild", "specific"]

    def test_unsubscribe(self):
        """测试取消订阅"""
        unsubscribe = self.bus.on(EventType.CARD_DRAWN, lambda e, s: self.received_events.append(e))
        unsubscribe()
        self.bus.emit_simple(EventType.CARD_DRAWN)

        assert self.received_events == []
        assert self.bus.listener_count(EventType.CARD_DRAWN) == 0

    def test_off_removes_handler(self):
        def handler(event, state):
            self.received_events.append(event)

        self.bus.on(EventType.CARD_DRAWN, handler)
        self.bus.off(EventType.CARD_DRAWN, handler)
        self.bus.emit_simple(EventType.CARD_DRAWN)

        assert self.received_events == []

    def test_once_fires_only_once(self):
        """测试一次性订阅"""
        self.bus.once(EventType.GAME_ENDED, lambda e, s: self.received_events.append(e))

        self.bus.emit_simple(EventType.GAME_ENDED)
        self.bus.emit_simple(EventType.GAME_ENDED)

        assert len(self.received_events) == 1
        assert self.bus.listener_count(EventType.GAME_ENDED) == 0

    def test_once_not_refired_by_reentrant_emit(self):
        """一次性处理器内部再次发布同类事件时不会重复触发"""
        calls = []

        def handler(event, state):
            calls.append(event.data.get("depth", 0))
            if len(calls) < 5:
                self.bus.emit_simple(EventType.CUSTOM, {"depth": len(calls)})

        self.bus.once(EventType.CUSTOM, handler)
        self.bus.emit_simple(EventType.CUSTOM)

        assert calls == [0]

    def test_handler_exception_is_isolated(self):
        """测试处理器异常不影响其他处理器"""
        def broken(event, state):
            raise RuntimeError("boom")

        self.bus.on(EventType.CARD_PLAYED, broken, priority=10)
        self.bus.on(EventType.CARD_PLAYED, lambda e, s: self.received_events.append(e))

        self.bus.emit_simple(EventType.CARD_PLAYED)
        self.bus.emit_simple(EventType.CARD_PLAYED)

        assert len(self.received_events) == 2

    def test_subscribe_during_emit_applies_next_time(self):
        def late(event, state):
            self.received_events.append("late")

        def registrar(event, state):
            self.bus.on(EventType.TURN_ENDED, late)

        self.bus.once(EventType.TURN_ENDED, registrar)
        self.bus.emit_simple(EventType.TURN_ENDED)
        assert self.received_events == []

        self.bus.emit_simple(EventType.TURN_ENDED)
        assert self.received_events == ["late"]

    def test_unsubscribe_during_emit_skips_pending_handler(self):
        order = []
        holder = {}

        def first(event, state):
            order.append("first")
            holder["second"]()

        self.bus.on(EventType.CUSTOM, first, priority=1)
        holder["second"] = self.bus.on(EventType.CUSTOM, lambda e, s: order.append("second"))

        self.bus.emit_simple(EventType.CUSTOM)

        assert order == ["first"]

    def test_clear_listeners(self):
        self.bus.on(EventType.CARD_PLAYED, lambda e, s: None)
        self.bus.on(EventType.CARD_DRAWN, lambda e, s: None)

        self.bus.clear_listeners(EventType.CARD_PLAYED)
        assert self.bus.listener_count() == 1

        self.bus.clear_listeners()
        assert self.bus.listener_count() == 0
        assert not self.bus.has_listeners(EventType.CARD_DRAWN)


class TestEventHistory:
    """事件历史测试"""

    def test_history_is_bounded(self):
        bus = EventBus(max_history=3)
        for i in range(5):
            bus.emit_simple(EventType.CUSTOM, {"i": i})

        history = bus.get_history()
        assert [e.data["i"] for e in history] == [2, 3, 4]

    def test_history_filter_by_type(self):
        bus = EventBus()
        bus.emit_simple(EventType.CARD_DRAWN)
        bus.emit_simple(EventType.CARD_PLAYED)
        bus.emit_simple("card_drawn")

        assert len(bus.get_history(EventType.CARD_DRAWN)) == 2
        assert len(bus.get_history("card_played")) == 1

    def test_set_max_history_drops_oldest(self):
        bus = EventBus(max_history=10)
        for i in range(6):
            bus.emit_simple(EventType.CUSTOM, {"i": i})

        bus.set_max_history(2)

        assert bus.max_history == 2
        assert [e.data["i"] for e in bus.get_history()] == [4, 5]

    def test_clear_history(self):
        bus = EventBus()
        bus.emit_simple(EventType.CUSTOM)
        bus.clear_history()
        assert bus.get_history() == []

    def test_default_size_from_environment(self, monkeypatch):
        """测试历史上限可通过环境变量配置"""
        monkeypatch.setenv("CARDGAME_EVENT_HISTORY", "7")
        reset_settings()
        try:
            assert EventBus().max_history == 7
        finally:
            monkeypatch.delenv("CARDGAME_EVENT_HISTORY")
            reset_settings()

    def test_event_to_dict(self):
        event = GameEvent(EventType.CARD_DRAWN, {"player_id": "p1", "card_id": "c1"})
        data = event.to_dict()

        assert data["type"] == "card_drawn"
        assert data["data"] == {"player_id": "p1", "card_id": "c1"}
        assert event.card_id == "c1"
