import random

import pytest
from engine.data_loader import InfectedStageDef
from engine.infection import InfectedStage, StageTimer, adapted_random_number


def _timer(period, n_stages):
    return StageTimer(period, [InfectedStage(1.0, 0.1 * i) for i in range(n_stages)])


def test_timer_signals_every_full_cycle():
    timer = _timer(period=3, n_stages=2)
    fired = [i for i in range(1, 25) if timer.tick() == 1]
    # P * S = 6
    assert fired == [6, 12, 18, 24]


def test_timer_single_stage():
    timer = _timer(period=4, n_stages=1)
    fired = [i for i in range(1, 13) if timer.tick() == 1]
    assert fired == [4, 8, 12]


def test_timer_elapsed_stays_below_period():
    timer = _timer(period=3, n_stages=4)
    for _ in range(50):
        timer.tick()
        assert 0 <= timer.timer < timer.period
        assert 0 <= timer.stage_pointer < 4


def test_stage_accessors_follow_pointer():
    timer = StageTimer(2, [InfectedStage(0.0, 0.0), InfectedStage(1.0, 0.5)])
    assert timer.reproduction == 0.0
    timer.tick(); timer.tick()
    assert timer.stage_pointer == 1
    assert timer.reproduction == 1.0
    assert timer.death_rate == 0.5


def test_empty_timer_is_inert():
    timer = StageTimer(3)
    assert all(timer.tick() == 0 for _ in range(30))
    assert timer.timer == 0
    assert timer.reproduction == 0.0
    assert timer.death_rate == 0.0


def test_add_stage():
    timer = StageTimer(1)
    timer.add_stage(InfectedStage(1.0, 0.0))
    assert timer.tick() == 1


def test_stage_from_def():
    stage = InfectedStage.from_def(InfectedStageDef(id="critical", reproduction=1.0, death_rate=0.5))
    assert stage == InfectedStage(1.0, 0.5)


def test_adapted_random_number_bounds():
    rng = random.Random(42)
    for _ in range(200):
        part = adapted_random_number(0.5, 300, rng)
        assert 0 <= part <= 150


def test_adapted_random_number_degenerate_inputs():
    rng = random.Random(1)
    assert adapted_random_number(0.0, 500, rng) == 0
    assert adapted_random_number(0.5, 0, rng) == 0
    assert adapted_random_number(-1.0, 500, rng) == 0
