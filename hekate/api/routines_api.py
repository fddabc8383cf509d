"""Private routine and routine-block endpoints."""
from hekate.api.base import BaseApi, api_call
from hekate.models.dto import (
    BlockStatus,
    CreateBlockRequest,
    PrivateRoutine,
    PrivateRoutineBlock,
    UpdateBlockRequest,
)


class PrivateRoutinesApi(BaseApi):
    """Read side of the weekly routine."""

    @api_call("Error al obtener la rutina")
    async def get_private_routine(self) -> PrivateRoutine:
        return PrivateRoutine.model_validate(await self.client.get("/private-routines"))

    @api_call("Error al obtener la rutina de hoy")
    async def get_today_private_routine(self) -> PrivateRoutine:
        return PrivateRoutine.model_validate(await self.client.get("/private-routines/today"))


class RoutineBlocksApi(BaseApi):
    """
    Block mutations.

    The status endpoint accepts any status value; directionality is
    enforced client-side by the transition table, the server is the
    final authority.
    """

    @api_call("Error al actualizar el estado del bloque")
    async def update_block_status(self, block_id: str, status: BlockStatus) -> None:
        await self.client.put(
            f"/private-routines/blocks/{block_id}/status", {"status": status.value}
        )

    @api_call("Error al crear el bloque")
    async def create_block(self, routine_day_id: str, block: CreateBlockRequest) -> PrivateRoutineBlock:
        data = await self.client.post(f"/private-routines/blocks/{routine_day_id}", block.to_payload())
        return PrivateRoutineBlock.model_validate(data)

    @api_call("Error al actualizar el bloque")
    async def update_block(self, block_id: str, data: UpdateBlockRequest) -> PrivateRoutineBlock:
        response = await self.client.put(
            f"/private-routines/blocks/{block_id}", data.to_payload(exclude_none=True)
        )
        return PrivateRoutineBlock.model_validate(response)

    @api_call("Error al eliminar el bloque")
    async def delete_block(self, block_id: str) -> None:
        await self.client.delete(f"/private-routines/blocks/{block_id}")

    @api_call("Error al reordenar los bloques")
    async def reorder_blocks(self, routine_day_id: str, block_ids: list[str]) -> None:
        await self.client.put(
            f"/private-routines/days/{routine_day_id}/reorder", {"blockIds": block_ids}
        )
