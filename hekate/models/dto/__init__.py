"""Wire DTOs for the Hekate API."""
from .base import CamelModel
from .dreams import (
    CreateDreamRequest,
    Dream,
    DreamCounts,
    DreamImage,
    UpdateDreamRequest,
    UploadImageResponse,
    UploadMultipleImagesResponse,
    Visualization,
)
from .reading import DailyReading, VisualizationConfig
from .routines import (
    BlockStatus,
    CreateBlockRequest,
    PrivateRoutine,
    PrivateRoutineBlock,
    PrivateRoutineDay,
    UpdateBlockRequest,
    WeekDay,
)
from .users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    VerifyPasswordResetCodeRequest,
    VerifyPasswordResetCodeResponse,
)

__all__ = [
    "CamelModel",
    "CreateDreamRequest",
    "Dream",
    "DreamCounts",
    "DreamImage",
    "UpdateDreamRequest",
    "UploadImageResponse",
    "UploadMultipleImagesResponse",
    "Visualization",
    "DailyReading",
    "VisualizationConfig",
    "BlockStatus",
    "CreateBlockRequest",
    "PrivateRoutine",
    "PrivateRoutineBlock",
    "PrivateRoutineDay",
    "UpdateBlockRequest",
    "WeekDay",
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "User",
    "VerifyPasswordResetCodeRequest",
    "VerifyPasswordResetCodeResponse",
]
