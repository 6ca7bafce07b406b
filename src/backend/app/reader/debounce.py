"""
防抖器与周期计时器

Debouncer：每次 schedule() 都会重置定时器，只有最后一次在静默 delay 秒后执行。
Ticker：固定间隔重复触发，stop() 后不再触发。
"""

import logging
import threading
from typing import Callable, Optional

from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class Debouncer:
    """
    持有定时器的防抖器

    定时器线程里已开始执行的回调无法被 Timer.cancel() 拦下，
    所以每次挂定时器都带上代数，过期代数的触发直接丢弃。
    """

    def __init__(self, delay: float, callback: Callable[[], None], scheduler: Scheduler):
        self.delay = delay
        self._callback = callback
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        """是否有尚未触发的定时器"""
        with self._lock:
            return self._handle is not None

    def schedule(self) -> None:
        """重置定时器：取消已挂起的，从现在起重新计时"""
        with self._lock:
            self._cancel_locked()
            generation = self._generation
            self._handle = self._scheduler.call_later(
                self.delay, lambda: self._fire(generation)
            )

    def cancel(self) -> None:
        """取消挂起的定时器，不执行回调"""
        with self._lock:
            self._cancel_locked()

    def flush(self) -> None:
        """取消挂起的定时器并立即执行一次回调"""
        self.cancel()
        self._callback()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
        self._callback()


class Ticker:
    """周期计时器"""

    def __init__(self, interval: float, callback: Callable[[], None], scheduler: Scheduler):
        self.interval = interval
        self._callback = callback
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._handle is not None

    def start(self) -> None:
        with self._lock:
            if self._handle is not None:
                return
            self._arm_locked()

    def stop(self) -> None:
        with self._lock:
            self._generation += 1
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None

    def _arm_locked(self) -> None:
        generation = self._generation
        self._handle = self._scheduler.call_later(
            self.interval, lambda: self._fire(generation)
        )

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._handle is None:
                return
            self._arm_locked()
        try:
            self._callback()
        except Exception:
            logger.exception("计时回调执行失败")
