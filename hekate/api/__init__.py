"""Endpoint wrappers - one class per API area."""
from .auth_api import AuthApi
from .base import BaseApi, api_call
from .dreams_api import DreamImagesApi, DreamsApi
from .reading_api import ReadingApi, VisualizationConfigApi
from .routines_api import PrivateRoutinesApi, RoutineBlocksApi
from .user_api import UserApi

__all__ = [
    "AuthApi",
    "BaseApi",
    "api_call",
    "DreamImagesApi",
    "DreamsApi",
    "ReadingApi",
    "VisualizationConfigApi",
    "PrivateRoutinesApi",
    "RoutineBlocksApi",
    "UserApi",
]
