"""
Tests for the block status state machine and ordering helpers.
"""
from datetime import date

import pytest

from hekate.domain.exceptions import InvalidStatusTransitionError
from hekate.domain.routine_state import (
    WEEK_DAY_NAMES,
    can_transition,
    get_next_routine_state,
    is_terminal,
    reorder_items,
    sort_by_week_day,
    validate_transition,
    week_day_for,
    with_dense_order,
)
from hekate.models.dto import BlockStatus, PrivateRoutineBlock, PrivateRoutineDay, WeekDay


def _block(block_id: str, order: int) -> PrivateRoutineBlock:
    return PrivateRoutineBlock(
        id=block_id,
        routine_day_id="day-1",
        week_day=WeekDay.MONDAY,
        title=block_id.upper(),
        order=order,
    )


# ============================================================================
# Status transitions
# ============================================================================

@pytest.mark.parametrize("current, expected", [
    (BlockStatus.NULL, BlockStatus.VISUALIZED),
    (BlockStatus.VISUALIZED, BlockStatus.DONE),
    (BlockStatus.DONE, BlockStatus.DONE),
])
def test_next_state_progression(current, expected):
    """Test NULL -> VISUALIZED -> DONE, with DONE mapping to itself."""
    assert get_next_routine_state(current) == expected


def test_done_is_terminal():
    assert is_terminal(BlockStatus.DONE)
    assert not is_terminal(BlockStatus.NULL)
    assert not is_terminal(BlockStatus.VISUALIZED)


def test_null_can_skip_straight_to_done():
    """Test the home screen's direct choice from NULL is allowed."""
    assert can_transition(BlockStatus.NULL, BlockStatus.DONE)
    assert can_transition(BlockStatus.NULL, BlockStatus.VISUALIZED)


@pytest.mark.parametrize("current, target", [
    (BlockStatus.VISUALIZED, BlockStatus.NULL),
    (BlockStatus.DONE, BlockStatus.VISUALIZED),
    (BlockStatus.DONE, BlockStatus.NULL),
    (BlockStatus.NULL, BlockStatus.NULL),
])
def test_backward_transitions_rejected(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidStatusTransitionError, match="Cannot move block"):
        validate_transition(current, target)


def test_null_status_parsed_from_missing_value():
    """Test the API's null status is read as NULL."""
    block = PrivateRoutineBlock.model_validate({
        "id": "b1", "routineDayId": "d1", "weekDay": "MONDAY",
        "title": "Meditar", "order": 0, "status": None,
    })
    assert block.status == BlockStatus.NULL


# ============================================================================
# Ordering
# ============================================================================

def test_reorder_moves_last_to_first():
    assert reorder_items(["A", "B", "C"], 2, 0) == ["C", "A", "B"]


def test_reorder_moves_first_to_last():
    assert reorder_items(["A", "B", "C"], 0, 2) == ["B", "C", "A"]


def test_reorder_does_not_modify_input():
    items = ["A", "B", "C"]
    reorder_items(items, 0, 1)
    assert items == ["A", "B", "C"]


def test_reorder_out_of_range():
    with pytest.raises(IndexError):
        reorder_items(["A", "B"], 0, 5)


def test_dense_order_after_reorder():
    """Test [A,B,C] moved 2 -> 0 gives [C,A,B] with orders [0,1,2]."""
    blocks = [_block("a", 0), _block("b", 1), _block("c", 2)]

    result = with_dense_order(reorder_items(blocks, 2, 0))

    assert [block.id for block in result] == ["c", "a", "b"]
    assert [block.order for block in result] == [0, 1, 2]
    # Originals untouched
    assert [block.order for block in blocks] == [0, 1, 2]


def test_dense_order_closes_gaps():
    blocks = [_block("a", 3), _block("b", 7)]
    assert [block.order for block in with_dense_order(blocks)] == [0, 1]


# ============================================================================
# Weekdays
# ============================================================================

def test_week_day_for_date():
    assert week_day_for(date(2025, 3, 3)) == WeekDay.MONDAY
    assert week_day_for(date(2025, 3, 9)) == WeekDay.SUNDAY


def test_sort_by_week_day():
    days = [
        PrivateRoutineDay(id="s", routine_id="r", week_day=WeekDay.SUNDAY),
        PrivateRoutineDay(id="m", routine_id="r", week_day=WeekDay.MONDAY),
        PrivateRoutineDay(id="w", routine_id="r", week_day=WeekDay.WEDNESDAY),
    ]
    assert [day.id for day in sort_by_week_day(days)] == ["m", "w", "s"]


def test_week_day_names_cover_all_days():
    assert WEEK_DAY_NAMES[WeekDay.MONDAY] == "Lunes"
    assert set(WEEK_DAY_NAMES) == set(WeekDay)
