"""
定时器调度抽象

阅读会话的防抖写入与阅读计时都通过 Scheduler 挂定时器，
生产环境使用 threading.Timer，测试使用手动推进的时钟。
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle(ABC):
    """已挂起的定时器"""

    @abstractmethod
    def cancel(self) -> None:
        """取消定时器（已触发的不受影响）"""


class Scheduler(ABC):
    """定时器调度器基类"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """
        在 delay 秒后调用 callback

        Args:
            delay: 延迟秒数
            callback: 无参回调

        Returns:
            TimerHandle: 可取消的句柄
        """


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """基于 threading.Timer 的调度器（守护线程，不阻塞进程退出）"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)
