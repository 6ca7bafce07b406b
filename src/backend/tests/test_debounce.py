"""
防抖器与周期计时器测试
"""
import logging

import pytest

from app.reader import Debouncer, Ticker, Scheduler, TimerHandle
from conftest import ManualScheduler


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class LeakyScheduler(ManualScheduler):
    """cancel() 不生效的调度器：模拟回调已经在定时器线程里开始执行"""

    def call_later(self, delay, callback):
        handle = super().call_later(delay, callback)
        handle.cancel = lambda: None
        return handle


class TestDebouncer:
    """测试防抖写入的时序"""

    def test_fires_once_after_quiet_period(self, scheduler):
        counter = Counter()
        debouncer = Debouncer(2.0, counter, scheduler)

        debouncer.schedule()
        scheduler.advance(1.5)
        assert counter.calls == 0
        assert debouncer.pending

        scheduler.advance(0.5)
        assert counter.calls == 1
        assert not debouncer.pending

    def test_reschedule_restarts_the_delay(self, scheduler):
        counter = Counter()
        debouncer = Debouncer(2.0, counter, scheduler)

        debouncer.schedule()
        scheduler.advance(1.5)
        debouncer.schedule()
        scheduler.advance(1.5)
        assert counter.calls == 0

        scheduler.advance(0.5)
        assert counter.calls == 1

        scheduler.advance(10)
        assert counter.calls == 1

    def test_cancel_drops_pending_call(self, scheduler):
        counter = Counter()
        debouncer = Debouncer(2.0, counter, scheduler)

        debouncer.schedule()
        debouncer.cancel()
        scheduler.advance(5)

        assert counter.calls == 0
        assert not debouncer.pending

    def test_flush_runs_immediately_and_cancels_timer(self, scheduler):
        counter = Counter()
        debouncer = Debouncer(2.0, counter, scheduler)

        debouncer.schedule()
        debouncer.flush()
        assert counter.calls == 1

        scheduler.advance(5)
        assert counter.calls == 1

    def test_flush_without_pending_still_runs(self, scheduler):
        counter = Counter()
        Debouncer(2.0, counter, scheduler).flush()
        assert counter.calls == 1

    def test_stale_timer_is_ignored(self):
        """旧定时器即使没被真正取消，触发时也会被丢弃"""
        scheduler = LeakyScheduler()
        counter = Counter()
        debouncer = Debouncer(2.0, counter, scheduler)

        debouncer.schedule()
        scheduler.advance(1.0)
        debouncer.schedule()
        scheduler.advance(1.0)
        assert counter.calls == 0

        scheduler.advance(1.0)
        assert counter.calls == 1


class TestTicker:
    """测试周期计时器"""

    def test_ticks_every_interval(self, scheduler):
        counter = Counter()
        ticker = Ticker(60.0, counter, scheduler)

        ticker.start()
        scheduler.advance(59)
        assert counter.calls == 0

        scheduler.advance(121)
        assert counter.calls == 3
        assert ticker.running

    def test_start_twice_does_not_double_tick(self, scheduler):
        counter = Counter()
        ticker = Ticker(60.0, counter, scheduler)

        ticker.start()
        ticker.start()
        scheduler.advance(60)

        assert counter.calls == 1

    def test_stop_halts_ticking(self, scheduler):
        counter = Counter()
        ticker = Ticker(60.0, counter, scheduler)

        ticker.start()
        scheduler.advance(60)
        ticker.stop()
        scheduler.advance(600)

        assert counter.calls == 1
        assert not ticker.running
        assert scheduler.pending == 0

    def test_failing_callback_keeps_ticking(self, scheduler, caplog):
        calls = []

        def explode():
            calls.append(1)
            raise RuntimeError("boom")

        ticker = Ticker(60.0, explode, scheduler)
        ticker.start()

        with caplog.at_level(logging.ERROR):
            scheduler.advance(120)

        assert len(calls) == 2
        assert ticker.running
        assert "计时回调执行失败" in caplog.text


class TestSchedulerContract:
    def test_scheduler_is_abstract(self):
        with pytest.raises(TypeError):
            Scheduler()

    def test_timer_handle_is_abstract(self):
        with pytest.raises(TypeError):
            TimerHandle()
