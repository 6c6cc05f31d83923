import pytest

from chronotrack.core.timing.goal import GoalTracker, parse_goal_seconds


@pytest.mark.parametrize(
    "text, expected",
    [
        ("60", 60_000),
        (" 1.5 ", 1500),
        ("0", None),
        ("-3", None),
        ("abc", None),
        ("", None),
        ("nan", None),
        ("inf", None),
        ("1e308", None),
        (None, None),
    ],
)
def test_parse_goal_seconds(text, expected):
    assert parse_goal_seconds(text) == expected


def test_goal_fires_exactly_once_above_threshold():
    fired = []
    goal = GoalTracker(on_reached=lambda threshold, elapsed: fired.append((threshold, elapsed)))
    assert goal.set_goal_seconds("60") == 60_000
    assert goal.check(59_990) is False
    assert goal.check(60_010) is True
    assert goal.check(70_000) is False
    assert fired == [(60_000, 60_010)]
    assert goal.reached


def test_no_goal_never_fires():
    goal = GoalTracker()
    assert goal.check(10**9) is False
    assert goal.progress(5000) == 0.0


def test_bad_input_clears_existing_goal():
    goal = GoalTracker()
    goal.set_goal(5000)
    assert goal.set_goal_seconds("soon") is None
    assert not goal.is_set


def test_setting_a_goal_rearms_the_flag():
    fired = []
    goal = GoalTracker(on_reached=lambda *_: fired.append(1))
    goal.set_goal(1000)
    goal.check(1000)
    goal.set_goal(2000)
    assert not goal.reached
    goal.check(2500)
    assert len(fired) == 2


def test_restart_after_goal_rearms_but_restart_below_does_not():
    goal = GoalTracker()
    goal.set_goal(1000)
    goal.check(1200)
    goal.on_start(1200)
    assert not goal.reached

    goal.check(1300)
    assert goal.reached
    goal.on_start(500)
    assert goal.reached


def test_progress_is_capped_at_one():
    goal = GoalTracker()
    goal.set_goal(4000)
    assert goal.progress(1000) == 0.25
    assert goal.progress(9000) == 1.0
