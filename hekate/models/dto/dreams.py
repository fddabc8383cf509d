"""DTOs for dreams, their visualizations and images."""

from datetime import datetime

from pydantic import ConfigDict, Field

from hekate.models.dto.base import CamelModel


# ─────────────────────────────────────────────────────────────
# Response DTOs
# ─────────────────────────────────────────────────────────────


class Visualization(CamelModel):
    """Append-only record of a single visualization action."""

    model_config = ConfigDict(frozen=True)

    id: str
    dream_id: str
    created_at: datetime


class DreamImage(CamelModel):
    """Uploaded image attached to a dream.

    ``signed_url`` is a time-limited access URL; ``storage_url`` is permanent.
    """

    id: str
    dream_id: str
    file_name: str
    file_size: int
    mime_type: str
    storage_url: str
    signed_url: str | None = None
    created_at: datetime


class DreamCounts(CamelModel):
    visualizations: int = 0
    images: int = 0


class Dream(CamelModel):
    """Dream as returned by the API, including today's visualization slot state."""

    id: str
    title: str
    text: str
    is_archived: bool = False
    created_at: datetime
    updated_at: datetime

    visualizations: list[Visualization] = Field(default_factory=list)
    images: list[DreamImage] = Field(default_factory=list)
    count: DreamCounts | None = Field(default=None, alias="_count")

    today_visualizations: int = 0
    slot_visualized: bool = False  # Visualized in today's slot
    can_visualize: bool = True  # Today's slot still available


class UploadImageResponse(CamelModel):
    success: bool
    file_path: str


class UploadMultipleImagesResponse(CamelModel):
    success: bool
    count: int
    file_paths: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────
# Request DTOs
# ─────────────────────────────────────────────────────────────


class CreateDreamRequest(CamelModel):
    """Create payload. ``images`` are local file paths sent as multipart."""

    title: str
    text: str
    images: list[str] = Field(default_factory=list)


class UpdateDreamRequest(CamelModel):
    """Partial update. ``keep_image_ids`` lists existing images to retain."""

    title: str | None = None
    text: str | None = None
    images: list[str] = Field(default_factory=list)
    keep_image_ids: list[str] = Field(default_factory=list)
