import pytest

from chronotrack.core.models import Lap
from chronotrack.core.timing.laps import LapRecorder
from chronotrack.core.timing.timer_engine import TimerEngine


def _recorder(clock):
    timer = TimerEngine(clock=clock)
    return timer, LapRecorder(timer)


def test_lap_example_from_start(clock):
    timer, laps = _recorder(clock)
    timer.start()
    clock.advance(1500)
    assert laps.record() == Lap(number=1, lap_time=1500, total_time=1500)
    clock.advance(2700)
    assert laps.record() == Lap(number=2, lap_time=2700, total_time=4200)


def test_lap_while_stopped_is_a_no_op(clock):
    timer, laps = _recorder(clock)
    assert laps.record() is None
    timer.start()
    clock.advance(10)
    laps.record()
    timer.stop()
    clock.advance(10)
    assert laps.record() is None
    assert len(laps) == 1


def test_zero_length_split_is_ignored(clock):
    timer, laps = _recorder(clock)
    timer.start()
    assert laps.record() is None
    clock.advance(5)
    laps.record()
    assert laps.record() is None
    assert [lap.number for lap in laps.laps] == [1]


def test_splits_sum_to_total_across_pauses(clock):
    timer, laps = _recorder(clock)
    for step in [300, 1250, 17, 4000, 999]:
        timer.start()
        clock.advance(step)
        laps.record()
        timer.stop()
        clock.advance(12_345)
    recorded = laps.laps
    assert sum(lap.lap_time for lap in recorded) == recorded[-1].total_time
    totals = [lap.total_time for lap in recorded]
    assert totals == sorted(set(totals))
    assert [lap.number for lap in recorded] == [1, 2, 3, 4, 5]


def test_recent_first_reverses_chronological_order(clock):
    timer, laps = _recorder(clock)
    timer.start()
    for _ in range(3):
        clock.advance(100)
        laps.record()
    assert [lap.number for lap in laps.recent_first()] == [3, 2, 1]
    assert [lap.number for lap in laps.laps] == [1, 2, 3]


def test_fastest_and_slowest_need_two_laps(clock):
    timer, laps = _recorder(clock)
    timer.start()
    clock.advance(500)
    only = laps.record()
    assert laps.fastest() is None and laps.slowest() is None
    assert laps.classify(only) is None

    clock.advance(200)
    quick = laps.record()
    clock.advance(900)
    slow = laps.record()
    assert laps.fastest() == quick
    assert laps.slowest() == slow
    assert laps.classify(quick) == "fastest"
    assert laps.classify(slow) == "slowest"
    assert laps.classify(only) is None


def test_clear_drops_the_run(clock):
    timer, laps = _recorder(clock)
    timer.start()
    clock.advance(100)
    laps.record()
    laps.clear()
    assert laps.laps == ()


def test_restore_rejects_inconsistent_laps(clock):
    _, laps = _recorder(clock)
    with pytest.raises(ValueError):
        laps.restore([Lap(number=1, lap_time=100, total_time=100), Lap(number=2, lap_time=50, total_time=175)])
    laps.restore([Lap(number=2, lap_time=50, total_time=150), Lap(number=1, lap_time=100, total_time=100)])
    assert [lap.number for lap in laps.laps] == [1, 2]
