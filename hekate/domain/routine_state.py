"""
Routine block state machine and ordering helpers.

Block status only moves forward in the guided flow:

    NULL ──> VISUALIZED ──> DONE
      └──────────────────────^

The API accepts any status; this table is what the client allows itself
to send.
"""

from datetime import date
from typing import Dict, FrozenSet, List, Sequence, TypeVar

from hekate.domain.exceptions import InvalidStatusTransitionError
from hekate.models.dto.routines import BlockStatus, PrivateRoutineBlock, WeekDay

T = TypeVar("T")


ALLOWED_TRANSITIONS: Dict[BlockStatus, FrozenSet[BlockStatus]] = {
    BlockStatus.NULL: frozenset({BlockStatus.VISUALIZED, BlockStatus.DONE}),
    BlockStatus.VISUALIZED: frozenset({BlockStatus.DONE}),
    BlockStatus.DONE: frozenset(),
}

_NEXT_STATE: Dict[BlockStatus, BlockStatus] = {
    BlockStatus.NULL: BlockStatus.VISUALIZED,
    BlockStatus.VISUALIZED: BlockStatus.DONE,
    BlockStatus.DONE: BlockStatus.DONE,
}

WEEK_DAY_ORDER: List[WeekDay] = list(WeekDay)

WEEK_DAY_NAMES: Dict[WeekDay, str] = {
    WeekDay.MONDAY: "Lunes",
    WeekDay.TUESDAY: "Martes",
    WeekDay.WEDNESDAY: "Miércoles",
    WeekDay.THURSDAY: "Jueves",
    WeekDay.FRIDAY: "Viernes",
    WeekDay.SATURDAY: "Sábado",
    WeekDay.SUNDAY: "Domingo",
}


# ─────────────────────────────────────────────────────────────
# Status transitions
# ─────────────────────────────────────────────────────────────


def get_next_routine_state(status: BlockStatus) -> BlockStatus:
    """Next status in the guided flow. DONE maps to itself."""
    return _NEXT_STATE[status]


def can_transition(current: BlockStatus, target: BlockStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: BlockStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def validate_transition(current: BlockStatus, target: BlockStatus) -> BlockStatus:
    """
    Check a status change against the transition table.

    Raises:
        InvalidStatusTransitionError: If ``target`` is not reachable from ``current``
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current, target)
    return target


# ─────────────────────────────────────────────────────────────
# Ordering
# ─────────────────────────────────────────────────────────────


def reorder_items(items: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """
    Move one item, as a drag-and-drop list does.

    Args:
        items: Current sequence (not modified)
        from_index: Position of the dragged item
        to_index: Position it is dropped at

    Returns:
        New list with the item moved

    Raises:
        IndexError: If either index is out of range
    """
    if not (0 <= from_index < len(items)) or not (0 <= to_index < len(items)):
        raise IndexError(f"Cannot move item {from_index} -> {to_index} in list of {len(items)}")

    result = list(items)
    item = result.pop(from_index)
    result.insert(to_index, item)
    return result


def with_dense_order(blocks: Sequence[PrivateRoutineBlock]) -> List[PrivateRoutineBlock]:
    """Copies of ``blocks`` with ``order`` rewritten to their index (0..k-1)."""
    return [block.model_copy(update={"order": index}) for index, block in enumerate(blocks)]


def day_entity_id(routine_day_id: str) -> str:
    """In-flight key for mutations that rewrite a whole day."""
    return f"day:{routine_day_id}"


# Blocks shown optimistically before the server has assigned real ids
PLACEHOLDER_PREFIX = "temp-"


def placeholder_block_id(routine_day_id: str, index: int) -> str:
    return f"{PLACEHOLDER_PREFIX}{routine_day_id}-{index}"


def is_placeholder(block_id: str) -> bool:
    return block_id.startswith(PLACEHOLDER_PREFIX)


# ─────────────────────────────────────────────────────────────
# Weekdays
# ─────────────────────────────────────────────────────────────


def week_day_for(day: date) -> WeekDay:
    """Weekday of a calendar date (Monday first, like the API)."""
    return WEEK_DAY_ORDER[day.weekday()]


def today_week_day() -> WeekDay:
    return week_day_for(date.today())


def sort_by_week_day(days: Sequence[T]) -> List[T]:
    """Sort anything with a ``week_day`` attribute Monday to Sunday."""
    return sorted(days, key=lambda day: WEEK_DAY_ORDER.index(day.week_day))
