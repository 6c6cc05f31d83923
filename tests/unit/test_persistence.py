import json

import pytest

from chronotrack.core.models import Lap, Session
from chronotrack.core.persistence import (
    GOAL_KEY,
    SESSIONS_KEY,
    STATE_KEY,
    Loaded,
    Recovered,
    StatePersistenceCoordinator,
    decode_goal,
    decode_state,
)
from chronotrack.plugins.stores.memory.impl import MemoryStore

LAPS = [Lap(number=1, lap_time=1500, total_time=1500), Lap(number=2, lap_time=2700, total_time=4200)]
SESSION = Session(id="01HX", date="2024-05-01 09:30:00", total_time=4200, laps=tuple(LAPS))


class FlakyStore(MemoryStore):
    """Store that raises for selected keys."""

    def __init__(self, failing_writes=(), failing_reads=(), **kwargs):
        super().__init__(**kwargs)
        self.failing_writes = set(failing_writes)
        self.failing_reads = set(failing_reads)

    def get(self, key):
        if key in self.failing_reads:
            raise OSError(f"cannot read {key}")
        return super().get(key)

    def set(self, key, value):
        if key in self.failing_writes:
            raise OSError(f"disk full writing {key}")
        super().set(key, value)


def test_saved_layout_matches_wire_format():
    store = MemoryStore()
    coord = StatePersistenceCoordinator(store)
    assert coord.save(4200, True, LAPS, [SESSION], 60_000)

    assert json.loads(store.data[STATE_KEY]) == {
        "time": 4200,
        "laps": [
            {"number": 1, "lapTime": 1500, "totalTime": 1500},
            {"number": 2, "lapTime": 2700, "totalTime": 4200},
        ],
        "isRunning": True,
    }
    sessions = json.loads(store.data[SESSIONS_KEY])
    assert sessions[0]["id"] == "01HX" and sessions[0]["totalTime"] == 4200
    assert sessions[0]["laps"][1] == {"number": 2, "lapTime": 2700, "totalTime": 4200}
    assert store.data[GOAL_KEY] == "60000"


def test_running_state_carries_wall_clock_anchor():
    store = MemoryStore()
    coord = StatePersistenceCoordinator(store)
    coord.save_state(900, True, [], saved_at_ms=1_714_555_800_000)
    assert json.loads(store.data[STATE_KEY])["savedAt"] == 1_714_555_800_000
    assert coord.load().state.value.saved_at == 1_714_555_800_000

    coord.save_state(900, False, [], saved_at_ms=1_714_555_800_000)
    assert "savedAt" not in json.loads(store.data[STATE_KEY])


def test_empty_sessions_and_absent_goal_remove_keys():
    store = MemoryStore(initial={SESSIONS_KEY: "[]", GOAL_KEY: "1000"})
    coord = StatePersistenceCoordinator(store)
    coord.save_sessions([])
    coord.save_goal(None)
    assert SESSIONS_KEY not in store.data
    assert GOAL_KEY not in store.data


def test_round_trip():
    store = MemoryStore()
    coord = StatePersistenceCoordinator(store)
    coord.save(4200, False, LAPS, [SESSION], 90_000)

    restored = coord.load()
    assert restored.state == Loaded(restored.state.value)
    assert restored.state.value.time == 4200
    assert restored.state.value.laps == LAPS
    assert restored.sessions.value == (SESSION,)
    assert restored.goal.value == 90_000
    assert restored.recovered_keys == []


def test_absent_keys_load_as_defaults():
    restored = StatePersistenceCoordinator(MemoryStore()).load()
    assert restored.state == Loaded(None)
    assert restored.sessions == Loaded(())
    assert restored.goal == Loaded(None)


def test_write_failure_on_one_key_does_not_block_others():
    store = FlakyStore(failing_writes={STATE_KEY})
    coord = StatePersistenceCoordinator(store)
    assert coord.save(100, False, [], [SESSION], 5000) is False
    assert STATE_KEY not in store.data
    assert SESSIONS_KEY in store.data
    assert store.data[GOAL_KEY] == "5000"


def test_corrupt_state_is_isolated_by_default():
    store = MemoryStore()
    StatePersistenceCoordinator(store).save(0, False, [], [SESSION], 5000)
    store.data[STATE_KEY] = "{not json"

    restored = StatePersistenceCoordinator(store).load()
    assert isinstance(restored.state, Recovered) and restored.state.value is None
    assert restored.sessions.value == (SESSION,)
    assert restored.goal.value == 5000
    assert restored.recovered_keys == [STATE_KEY]
    assert STATE_KEY not in store.data


def test_corrupt_state_wipes_everything_in_legacy_mode():
    store = MemoryStore()
    StatePersistenceCoordinator(store).save(0, False, [], [SESSION], 5000)
    store.data[STATE_KEY] = '{"time": "soon"}'

    restored = StatePersistenceCoordinator(store, wipe_all_on_corrupt_state=True).load()
    assert restored.recovered_keys == [STATE_KEY, SESSIONS_KEY, GOAL_KEY]
    assert store.data == {}


def test_corrupt_sessions_and_goal_fall_back_independently():
    store = MemoryStore()
    StatePersistenceCoordinator(store).save(250, False, [], [], None)
    store.data[SESSIONS_KEY] = '[{"id": 1}]'
    store.data[GOAL_KEY] = "sixty"

    restored = StatePersistenceCoordinator(store).load()
    assert restored.state.value.time == 250
    assert restored.sessions == Recovered((), restored.sessions.reason)
    assert isinstance(restored.goal, Recovered)
    assert set(store.data) == {STATE_KEY}


def test_read_failure_is_recovered_without_deleting_the_key():
    store = FlakyStore(failing_reads={SESSIONS_KEY}, initial={SESSIONS_KEY: "[]"})
    restored = StatePersistenceCoordinator(store).load()
    assert isinstance(restored.sessions, Recovered)
    assert "read failed" in restored.sessions.reason
    assert SESSIONS_KEY in store.data


@pytest.mark.parametrize(
    "blob",
    [
        "null",
        "[]",
        '{"time": -5, "laps": [], "isRunning": false}',
        '{"time": 100, "laps": [{"number": 2, "lapTime": 100, "totalTime": 100}], "isRunning": false}',
        '{"time": 100, "laps": [{"number": 1, "lapTime": 40, "totalTime": 100}], "isRunning": false}',
        '{"time": 50, "laps": [{"number": 1, "lapTime": 100, "totalTime": 100}], "isRunning": false}',
    ],
)
def test_decode_state_rejects_malformed_blobs(blob):
    assert isinstance(decode_state(blob), Recovered)


@pytest.mark.parametrize("raw, expected", [("60000", 60_000), (" 42 ", 42)])
def test_decode_goal_accepts_decimal_strings(raw, expected):
    assert decode_goal(raw) == Loaded(expected)


@pytest.mark.parametrize("raw", ["0", "-1", "1.5", "abc", ""])
def test_decode_goal_rejects_bad_values(raw):
    assert isinstance(decode_goal(raw), Recovered)
