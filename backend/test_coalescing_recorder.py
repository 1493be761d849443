from __future__ import annotations

from typing import List

import pytest

from conftest import ManualScheduler
from widgetforge.core.history import CoalescingRecorder


def test_burst_of_touches_commits_once(scheduler: ManualScheduler) -> None:
    commits: List[int] = []
    recorder = CoalescingRecorder(lambda: commits.append(1), 0.5, scheduler)

    for _ in range(5):
        recorder.touch()

    assert recorder.active
    assert len(scheduler.timers) == 5
    assert len(scheduler.pending) == 1
    assert scheduler.pending[0].delay == 0.5

    scheduler.fire_all()

    assert commits == [1]
    assert not recorder.active


def test_stale_timer_callback_is_ignored(scheduler: ManualScheduler) -> None:
    commits: List[int] = []
    recorder = CoalescingRecorder(lambda: commits.append(1), 0.5, scheduler)

    recorder.touch()
    stale = scheduler.timers[0]
    recorder.touch()
    stale.callback()

    assert commits == []
    assert recorder.active


def test_flush_and_cancel(scheduler: ManualScheduler) -> None:
    commits: List[int] = []
    recorder = CoalescingRecorder(lambda: commits.append(1), 0.5, scheduler)

    assert not recorder.flush()
    recorder.touch()
    assert recorder.flush()
    assert commits == [1]

    recorder.touch()
    assert recorder.cancel()
    scheduler.timers[-1].callback()
    assert commits == [1]
    assert not recorder.cancel()


def test_negative_window_is_rejected() -> None:
    with pytest.raises(ValueError):
        CoalescingRecorder(lambda: None, -1)
