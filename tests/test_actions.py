import pytest
from engine.actions import ActionType, apply_action
from engine.board import Board
from engine.data_loader import BlockType
from engine.events import (
    EventBus,
    EVT_ACTION_REJECTED,
    EVT_AIDED,
    EVT_QUARANTINE_STARTED,
    EVT_TAXED,
    EVT_WORK_STARTED,
    EVT_WORK_STOPPED,
)


@pytest.fixture
def setup():
    board = Board(seed=1)
    board.new_block(BlockType.FACTORY, healthy=500, material=97, name="mill")
    board.new_block(BlockType.HOUSING, healthy=300, infected=20, material=10, name="homes")
    bus = EventBus()
    events = []
    bus.subscribe("*", events.append)
    return board, bus, events


def test_taxing_returns_amount(setup):
    board, bus, events = setup
    result = apply_action(board, 0, ActionType.TAXING, bus)

    assert result.ok is True
    assert result.amount == 4
    assert board[0].material == 93
    assert events[-1].event_key == EVT_TAXED
    assert events[-1].source == "mill"
    assert events[-1].data == {"amount": 4, "material_remaining": 93}


def test_start_working_rejected_for_housing(setup):
    board, bus, events = setup
    result = apply_action(board, 1, ActionType.START_WORKING, bus)

    assert result.ok is False
    assert result.reason == "not_applicable"
    assert board[1].is_working is False
    assert events[-1].event_key == EVT_ACTION_REJECTED
    assert events[-1].data["action"] == "start_working"


def test_stop_then_start_factory(setup):
    board, bus, events = setup
    assert apply_action(board, 0, ActionType.STOP_WORKING, bus).ok
    assert board[0].is_working is False
    assert apply_action(board, 0, ActionType.START_WORKING, bus).ok
    assert board[0].is_working is True
    assert [e.event_key for e in events] == [EVT_WORK_STOPPED, EVT_WORK_STARTED]


def test_quarantine_uses_period(setup):
    board, bus, events = setup
    result = apply_action(board, board.by_name("homes"), ActionType.QUARANTINE, bus, period=3)

    assert result.ok is True
    assert board[1].is_quarantined is True
    assert board[1].quarantine_period == 3
    assert events[-1].event_key == EVT_QUARANTINE_STARTED
    assert events[-1].data["period"] == 3


def test_special_aid_reports_removed_population(setup):
    board, bus, events = setup
    result = apply_action(board, 1, ActionType.SPECIAL_AID, bus)

    assert result.ok is True
    assert board[1].healthy == 0
    assert board[1].infected_next == 0
    assert events[-1].event_key == EVT_AIDED
    assert events[-1].data["population_removed"] == 320


def test_action_without_bus(setup):
    board, _, events = setup
    result = apply_action(board, 0, ActionType.TAXING)
    assert result.amount == 4
    assert events == []


def test_unknown_block_index(setup):
    board, bus, _ = setup
    with pytest.raises(IndexError):
        apply_action(board, 9, ActionType.TAXING, bus)
