"""
Hekate Client - composition root.

Wires one ApiClient, TokenStore, QueryCache and Notifier into every
operation object so they all share the same cache and session.

Usage:
    async with HekateClient() as hekate:
        await hekate.auth.login({"email": "...", "password": "..."})
        dreams = await hekate.dreams.list_dreams()
"""
import logging
from pathlib import Path
from typing import Optional

import httpx

from hekate.api import (
    AuthApi,
    DreamImagesApi,
    DreamsApi,
    PrivateRoutinesApi,
    ReadingApi,
    RoutineBlocksApi,
    UserApi,
    VisualizationConfigApi,
)
from hekate.core.auth import TokenStore
from hekate.core.config import settings
from hekate.core.logging_config import configure_logging
from hekate.domain.auth_operations import AuthSession
from hekate.domain.dream_operations import DreamOperations
from hekate.domain.optimistic import OptimisticUpdater
from hekate.domain.reading_operations import ReadingOperations
from hekate.domain.routine_block_operations import RoutineBlockOperations
from hekate.domain.routine_day_operations import RoutineDayOperations
from hekate.services.api_client import ApiClient
from hekate.services.notifications import Notifier
from hekate.services.query_cache import QueryCache

logger = logging.getLogger(__name__)


class HekateClient:
    """Everything a screen needs, built once per session."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_store_path: Optional[Path] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[QueryCache] = None,
        notifier: Optional[Notifier] = None,
        configure_logs: bool = True,
    ):
        self.configure_logs = configure_logs
        self.token_store = TokenStore(token_store_path)
        self.api = ApiClient(base_url=base_url, token_store=self.token_store, transport=transport)
        self.cache = cache or QueryCache()
        self.notifier = notifier or Notifier()
        self.updater = OptimisticUpdater(self.cache, self.notifier)

        self.auth = AuthSession(AuthApi(self.api), UserApi(self.api), self.token_store, self.updater)
        self.dreams = DreamOperations(DreamsApi(self.api), DreamImagesApi(self.api), self.updater)
        self.routines = RoutineBlockOperations(
            PrivateRoutinesApi(self.api), RoutineBlocksApi(self.api), self.updater
        )
        self.routine_days = RoutineDayOperations(
            PrivateRoutinesApi(self.api), RoutineBlocksApi(self.api), self.updater
        )
        self.reading = ReadingOperations(ReadingApi(self.api), VisualizationConfigApi(self.api), self.updater)

    async def __aenter__(self) -> "HekateClient":
        if self.configure_logs:
            configure_logging()
        logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} using {self.api.base_url}")
        await self.auth.restore()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.api.close()
