import pytest
from engine.data_loader import BlockType, BoardDef, get_board_def
from world.scenario import RANDOM_POPULATION_RANGE, build_board


def test_build_river_town():
    board = build_board(get_board_def("river_town"))

    assert len(board) == 5
    assert [b.name for b in board] == ["north_housing", "south_housing", "mill", "clinic", "camp"]

    mill = board.by_name("mill")
    assert mill.block_type == BlockType.FACTORY
    assert mill.is_working is True
    assert [board[i].name for i in mill.out_blocks] == ["north_housing", "south_housing"]

    north = board.by_name("north_housing")
    assert north.healthy == 520
    assert north.infected_next == 12
    assert north.infected_current == 0


def test_random_population_is_seeded():
    low, high = RANDOM_POPULATION_RANGE
    a = build_board(get_board_def("river_town"), seed=99).by_name("south_housing")
    b = build_board(get_board_def("river_town"), seed=99).by_name("south_housing")
    assert low <= a.healthy < high
    assert a.healthy == b.healthy


def test_unknown_link_target():
    bad = BoardDef(id="bad", name="Bad", blocks=[
        {"id": "a", "type": "housing", "healthy": 10, "out": ["ghost"]},
    ])
    with pytest.raises(KeyError):
        build_board(bad)


def test_duplicate_block_id():
    bad = BoardDef(id="dup", name="Dup", blocks=[
        {"id": "a", "type": "housing", "healthy": 10},
        {"id": "a", "type": "factory", "healthy": 10},
    ])
    with pytest.raises(ValueError):
        build_board(bad)


def test_same_seed_same_history():
    def play(seed):
        board = build_board(get_board_def("twin_factories"), seed=seed)
        for _ in range(15):
            board.run_round()
        return [s.model_dump() for s in board.snapshots()]

    assert play(5) == play(5)


def test_random_population_excludes_upper_bound():
    low, high = RANDOM_POPULATION_RANGE
    drawn = {
        build_board(get_board_def("river_town"), seed=seed).by_name("south_housing").healthy
        for seed in range(1000)
    }
    assert min(drawn) >= low
    assert max(drawn) < high
