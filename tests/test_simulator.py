import numpy as np
import pytest

from derby_sim.config import RaceConstants
from derby_sim.engine import Horse, HorseColor, base_time, simulate_race, slowest_time


class FixedJitter:
    """Stands in for numpy's Generator; hands out preset jitter factors."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def uniform(self, low, high, size):
        self.calls.append((low, high, size))
        return np.array(self.values[:size], dtype=float)


def _horse(horse_id: int, condition: int) -> Horse:
    return Horse(horse_id=horse_id, name=f"Horse {horse_id}", color=HorseColor("Gold", "#FFD700"), condition=condition)


def test_base_time_orders_by_condition():
    assert base_time(90, 1200) < base_time(60, 1200) < base_time(30, 1200)
    assert base_time(90, 1200) == pytest.approx(36.0)
    assert base_time(100, 1000) == 20.0


def test_wide_condition_gap_cannot_be_overturned_by_jitter():
    horses = [_horse(1, 90), _horse(2, 60), _horse(3, 30)]
    rng = np.random.default_rng(0)
    for _ in range(200):
        results = simulate_race(horses, 1200, rng=rng)
        assert [r.horse_id for r in results] == [1, 2, 3]


def test_close_conditions_favour_the_stronger_horse():
    horses = [_horse(1, 70), _horse(2, 65)]
    rng = np.random.default_rng(1)
    wins = {1: 0, 2: 0}
    for _ in range(400):
        wins[simulate_race(horses, 1600, rng=rng)[0].horse_id] += 1
    assert wins[1] > wins[2] > 0


def test_golden_values_with_ceiling_normalization():
    horses = [_horse(1, 90), _horse(2, 60), _horse(3, 30)]
    jitter = FixedJitter([1.0, 1.0, 1.0])
    results = simulate_race(horses, 1200, rng=jitter)

    assert jitter.calls == [(0.8, 1.2, 3)]
    assert [r.horse_id for r in results] == [1, 2, 3]
    assert [r.position for r in results] == [1, 2, 3]
    assert [r.time for r in results] == [1.67, 3.33, 5.0]
    assert [r.speed for r in results] == [718.56, 360.36, 240.0]
    assert [r.gap for r in results] == [0.0, 1.66, 3.33]
    assert all(r.distance == 1200 for r in results)


def test_no_normalization_below_ceiling():
    horses = [_horse(1, 80), _horse(2, 100)]
    results = simulate_race(horses, 100, rng=FixedJitter([1.0, 1.0]))
    assert [r.horse_id for r in results] == [2, 1]
    assert [r.time for r in results] == [2.0, 4.0]
    assert [r.speed for r in results] == [50.0, 25.0]
    assert [r.gap for r in results] == [0.0, 2.0]


def test_jitter_can_overturn_equal_condition():
    horses = [_horse(1, 50), _horse(2, 50)]
    results = simulate_race(horses, 1000, rng=FixedJitter([1.2, 0.8]))
    assert results[0].horse_id == 2
    assert results[1].time == 5.0


def test_ties_keep_field_order():
    horses = [_horse(7, 50), _horse(3, 50), _horse(5, 50)]
    results = simulate_race(horses, 1000, rng=FixedJitter([1.0, 1.0, 1.0]))
    assert [r.horse_id for r in results] == [7, 3, 5]
    assert [r.position for r in results] == [1, 2, 3]
    assert [r.gap for r in results] == [0.0, 0.0, 0.0]


def test_result_invariants_over_random_races():
    rng = np.random.default_rng(123)
    conditions = np.random.default_rng(7).integers(1, 101, size=(40, 10))
    for row, distance in zip(conditions,[1200, 1400, 1600, 1800, 2000, 2200] * 7):
        horses = [_horse(i + 1, int(c)) for i, c in enumerate(row)]
        results = simulate_race(horses, distance, rng=rng)

        assert sorted(r.position for r in results) == list(range(1, len(horses) + 1))
        assert sorted(r.horse_id for r in results) == [h.horse_id for h in horses]
        assert results[0].gap == 0
        gaps = [r.gap for r in results]
        assert all(g >= 0 for g in gaps)
        assert gaps == sorted(gaps)
        times = [r.time for r in results]
        assert times == sorted(times)
        # Raw times at these distances always exceed the ceiling
        assert times[-1] == 5.0
        for r in results:
            assert r.time > 0
            assert r.speed == round(distance / r.time, 2)
            assert r.horse.horse_id == r.horse_id


def test_snapshot_carries_display_attributes():
    horse = _horse(9, 77)
    result = simulate_race([horse], 1600, rng=FixedJitter([1.0]))[0]
    assert result.horse.name == horse.name
    assert result.horse.color == horse.color
    assert result.horse.condition == 77
    assert result.position == 1
    assert result.gap == 0


def test_custom_ceiling_constants():
    constants = RaceConstants(max_race_time_seconds=10.0)
    horses = [_horse(1, 100), _horse(2, 20)]
    results = simulate_race(horses, 1000, rng=FixedJitter([1.0, 1.0]), constants=constants)
    assert [r.time for r in results] == [2.0, 10.0]


def test_empty_field():
    assert simulate_race([], 1200) == []
    assert slowest_time([]) == 0.0


def test_slowest_time_helper():
    horses = [_horse(1, 90), _horse(2, 60)]
    results = simulate_race(horses, 1200, rng=FixedJitter([1.0, 1.0]))
    assert slowest_time(results) == 5.0
