"""Daily reading and visualization settings endpoints."""
from hekate.api.base import BaseApi, api_call
from hekate.models.dto import DailyReading, VisualizationConfig


class ReadingApi(BaseApi):

    @api_call("Error al obtener la lectura diaria")
    async def get_daily_reading(self) -> DailyReading:
        return DailyReading.model_validate(await self.client.get("/daily-reads"))


class VisualizationConfigApi(BaseApi):

    @api_call("Error al obtener la configuración de visualización")
    async def get_config(self) -> VisualizationConfig:
        return VisualizationConfig.model_validate(await self.client.get("/visualization-config"))

    @api_call("Error al actualizar la configuración de visualización")
    async def update_config(self, config: VisualizationConfig) -> VisualizationConfig:
        data = await self.client.post("/visualization-config", config.to_payload())
        return VisualizationConfig.model_validate(data)
