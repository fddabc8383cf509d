"""Daily reading and visualization settings."""
import logging

from hekate.api import ReadingApi, VisualizationConfigApi
from hekate.domain import query_keys
from hekate.domain.optimistic import MutationResult, OptimisticUpdater
from hekate.models.dto import DailyReading, VisualizationConfig

logger = logging.getLogger(__name__)


class ReadingOperations:

    def __init__(
        self,
        reading_api: ReadingApi,
        config_api: VisualizationConfigApi,
        updater: OptimisticUpdater,
    ):
        self.reading_api = reading_api
        self.config_api = config_api
        self.updater = updater
        self.cache = updater.cache

    async def get_daily_reading(self) -> DailyReading:
        return await self.cache.ensure_query_data(query_keys.DAILY_READ, self.reading_api.get_daily_reading)

    async def get_visualization_config(self) -> VisualizationConfig:
        return await self.cache.ensure_query_data(
            query_keys.VISUALIZATION_CONFIG, self.config_api.get_config
        )

    async def update_visualization_config(self, config: VisualizationConfig) -> MutationResult:
        """Save the config; the cached copy is replaced by the server's answer."""
        result = await self.updater.send(
            lambda: self.config_api.update_config(config),
            error_message="Error al actualizar la configuración de visualización",
        )
        if result.succeeded:
            self.cache.set_query_data(query_keys.VISUALIZATION_CONFIG, result.data)
            logger.info(f"Visualization config saved: {result.data.times_per_day} per day")
        return result
