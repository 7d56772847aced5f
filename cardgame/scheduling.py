"""阶段调度器

TurnManager 通过调度器安排自动推进：
- call_soon: 当前同步调用链结束后执行（等价于微任务）
- call_later: 定时执行，单位毫秒
- spawn: 执行 on_enter / on_exit 返回的协程

AsyncioScheduler 用于真实运行；ManualScheduler 用于测试与回放，
所有回调都由调用方显式驱动，结果完全确定。
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class PhaseScheduler(Protocol):
    def call_soon(self, callback: Callback) -> ScheduledHandle: ...

    def call_later(self, delay_ms: float, callback: Callback) -> ScheduledHandle: ...

    def spawn(self, awaitable: Awaitable[object]) -> None: ...


class _NullHandle:
    def cancel(self) -> None:
        pass


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class _TaskSet:
    """持有已创建的任务，直到任务结束（事件循环只弱引用任务）"""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def running_tasks(self) -> set[asyncio.Task]:
        return set(self._tasks)

    def _create_task(self, loop: asyncio.AbstractEventLoop, awaitable: Awaitable[object]) -> None:
        task = loop.create_task(_guarded(awaitable))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class AsyncioScheduler(_TaskSet):
    """基于当前运行中事件循环的调度器

    没有运行中的事件循环时不安排任何回调（第一次记 warning，之后记 debug），
    同步调用方需要自己推进阶段。
    """

    def __init__(self) -> None:
        super().__init__()
        self._warned_no_loop = False

    def call_soon(self, callback: Callback) -> ScheduledHandle:
        loop = _running_loop()
        if loop is None:
            self._log_no_loop("auto-advance not scheduled")
            return _NullHandle()
        return loop.call_soon(callback)

    def call_later(self, delay_ms: float, callback: Callback) -> ScheduledHandle:
        loop = _running_loop()
        if loop is None:
            self._log_no_loop(f"{delay_ms}ms phase timer not scheduled")
            return _NullHandle()
        return loop.call_later(delay_ms / 1000, callback)

    def spawn(self, awaitable: Awaitable[object]) -> None:
        loop = _running_loop()
        if loop is not None:
            self._create_task(loop, awaitable)
        elif inspect.iscoroutine(awaitable):
            # 同步调用方：直接跑完
            asyncio.run(_guarded(awaitable))
        else:
            logger.debug("No running event loop; dropping awaitable %r", awaitable)

    def _log_no_loop(self, what: str) -> None:
        if self._warned_no_loop:
            logger.debug("No running event loop; %s", what)
            return
        self._warned_no_loop = True
        logger.warning(
            "No running event loop; %s. Drive phases manually or use ManualScheduler", what
        )


class _ManualHandle:
    __slots__ = ("callback", "due", "seq", "cancelled")

    def __init__(self, callback: Callback, due: float | None, seq: int):
        self.callback = callback
        self.due = due
        self.seq = seq
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(_TaskSet):
    """手动驱动的调度器

    - run_pending(): 依次执行排队的 call_soon 回调（包括执行过程中新排入的）
    - advance(ms): 推进虚拟时钟，触发到期的定时器，每次触发后执行排队回调

    协程回调在 run_pending 时执行：没有运行中的事件循环就直接跑完，
    否则作为任务交给当前事件循环。
    """

    def __init__(self, max_cascade: int = 1000):
        super().__init__()
        self._queue: list[_ManualHandle] = []
        self._timers: list[_ManualHandle] = []
        self._now: float = 0
        self._seq = 0
        self._max_cascade = max_cascade

    @property
    def now(self) -> float:
        """虚拟时钟（毫秒）"""
        return self._now

    @property
    def pending_count(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    @property
    def timer_count(self) -> int:
        return sum(1 for h in self._timers if not h.cancelled)

    def call_soon(self, callback: Callback) -> ScheduledHandle:
        handle = _ManualHandle(callback, None, self._next_seq())
        self._queue.append(handle)
        return handle

    def call_later(self, delay_ms: float, callback: Callback) -> ScheduledHandle:
        handle = _ManualHandle(callback, self._now + delay_ms, self._next_seq())
        self._timers.append(handle)
        return handle

    def spawn(self, awaitable: Awaitable[object]) -> None:
        if inspect.iscoroutine(awaitable):
            self.call_soon(lambda: self._run_coroutine(awaitable))
        else:
            logger.debug("ManualScheduler can only run coroutines, dropping %r", awaitable)

    def _run_coroutine(self, coro: Awaitable[object]) -> None:
        loop = _running_loop()
        if loop is not None:
            self._create_task(loop, coro)
        else:
            asyncio.run(_guarded(coro))

    def run_pending(self) -> int:
        """执行所有排队回调，返回执行数量"""
        executed = 0
        while self._queue:
            handle = self._queue.pop(0)
            if handle.cancelled:
                continue
            executed += 1
            if executed > self._max_cascade:
                raise RuntimeError(f"scheduler cascade exceeded {self._max_cascade} callbacks")
            handle.callback()
        return executed

    def advance(self, ms: float) -> int:
        """推进虚拟时钟，返回触发的定时器数量"""
        target = self._now + ms
        fired = 0
        while True:
            due = [h for h in self._timers if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self._timers.remove(handle)
            self._now = handle.due
            fired += 1
            handle.callback()
            self.run_pending()
        self._now = target
        self._timers = [h for h in self._timers if not h.cancelled]
        return fired

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq


async def _guarded(awaitable: Awaitable[object]) -> object:
    """等待阶段回调协程；异常只记录，不向调度方传播"""
    try:
        return await awaitable
    except Exception:
        logger.exception("Phase hook coroutine %r failed", awaitable)
        return None
