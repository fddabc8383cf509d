"""DTOs for daily readings and visualization settings."""

from pydantic import Field

from hekate.models.dto.base import CamelModel


class DailyReading(CamelModel):
    """The reading published for one calendar day."""

    id: str
    title: str
    content: str
    time_minutes: int
    day: int
    month: int
    year: int


class VisualizationConfig(CamelModel):
    """How many visualization slots a day has and where they split."""

    times_per_day: int
    breakpoints: list[str] = Field(default_factory=list)
