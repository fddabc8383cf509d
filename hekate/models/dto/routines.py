"""DTOs for private weekly routines, their days and blocks."""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from hekate.models.dto.base import CamelModel


class BlockStatus(str, Enum):
    """Progress of a routine block within the day."""
    NULL = "NULL"              # Not started
    VISUALIZED = "VISUALIZED"  # Mentally rehearsed
    DONE = "DONE"              # Carried out (terminal)


class WeekDay(str, Enum):
    """Weekday identifiers as the API spells them (Monday first)."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


# ─────────────────────────────────────────────────────────────
# Response DTOs
# ─────────────────────────────────────────────────────────────


class PrivateRoutineBlock(CamelModel):
    """A scheduled activity within one routine day."""

    id: str
    routine_day_id: str
    week_day: WeekDay
    title: str
    description: str = ""
    color: str = ""
    order: int
    status: BlockStatus = BlockStatus.NULL

    @model_validator(mode="before")
    @classmethod
    def _null_status(cls, data):
        # The API omits status (or sends null) for untouched blocks
        if isinstance(data, dict) and data.get("status") is None:
            data = {**data, "status": BlockStatus.NULL}
        return data


class PrivateRoutineDay(CamelModel):
    """One weekday of a routine with its ordered blocks."""

    id: str
    routine_id: str
    week_day: WeekDay
    blocks: list[PrivateRoutineBlock] = Field(default_factory=list)

    def sorted_blocks(self) -> list[PrivateRoutineBlock]:
        """Blocks in execution order."""
        return sorted(self.blocks, key=lambda block: block.order)


class PrivateRoutine(CamelModel):
    """A user's weekly routine. At most one day per weekday."""

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    days: list[PrivateRoutineDay] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_day_per_weekday(self):
        seen = set()
        for day in self.days:
            if day.week_day in seen:
                raise ValueError(f"Routine {self.id} has more than one {day.week_day.value} day")
            seen.add(day.week_day)
        return self

    def find_day(self, day_id: str) -> PrivateRoutineDay | None:
        return next((day for day in self.days if day.id == day_id), None)

    def find_block(self, block_id: str) -> PrivateRoutineBlock | None:
        for day in self.days:
            for block in day.blocks:
                if block.id == block_id:
                    return block
        return None


# ─────────────────────────────────────────────────────────────
# Request DTOs
# ─────────────────────────────────────────────────────────────


class CreateBlockRequest(CamelModel):
    """Payload for a new block in a given day."""

    routine_day_id: str
    week_day: WeekDay
    title: str
    description: str = ""
    color: str = ""
    order: int
    status: BlockStatus = BlockStatus.NULL


class UpdateBlockRequest(CamelModel):
    """Partial block update; unset fields are not sent."""

    title: str | None = None
    description: str | None = None
    color: str | None = None
    order: int | None = None
    status: BlockStatus | None = None
