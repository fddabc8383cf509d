"""
Routine Block Domain Operations

Status progression and reordering are optimistic and reconcile both
routine projections (full week and today). Create, update and delete send
first and refetch after.
"""
import logging
from typing import Any, Mapping, Union

from hekate.api import PrivateRoutinesApi, RoutineBlocksApi
from hekate.domain import query_keys
from hekate.domain.exceptions import InvalidStatusTransitionError
from hekate.domain.forms import BlockForm, submit_form
from hekate.domain.optimistic import (
    MutationResult,
    OptimisticMutation,
    OptimisticUpdater,
    ViewScope,
)
from hekate.domain.routine_state import (
    day_entity_id,
    get_next_routine_state,
    is_placeholder,
    is_terminal,
    reorder_items,
    validate_transition,
    with_dense_order,
)
from hekate.models.dto import (
    BlockStatus,
    CreateBlockRequest,
    PrivateRoutine,
    PrivateRoutineBlock,
    UpdateBlockRequest,
)

logger = logging.getLogger(__name__)

STATUS_ERROR = "Error al actualizar el estado del bloque"
REORDER_ERROR = "No se pudieron reordenar los bloques. Inténtalo de nuevo."


# ─────────────────────────────────────────────────────────────
# Routine patch helpers (pure, return copies)
# ─────────────────────────────────────────────────────────────


def patch_block(routine: PrivateRoutine | None, block_id: str, update: dict) -> PrivateRoutine | None:
    """Copy of the routine with one block's fields replaced."""
    if routine is None:
        return None
    days = [
        day.model_copy(update={
            "blocks": [
                block.model_copy(update=update) if block.id == block_id else block
                for block in day.blocks
            ]
        })
        for day in routine.days
    ]
    return routine.model_copy(update={"days": days})


def replace_day_blocks(
    routine: PrivateRoutine | None, day_id: str, blocks: list[PrivateRoutineBlock]
) -> PrivateRoutine | None:
    """Copy of the routine with one day's blocks swapped out."""
    if routine is None:
        return None
    days = [
        day.model_copy(update={"blocks": list(blocks)}) if day.id == day_id else day
        for day in routine.days
    ]
    return routine.model_copy(update={"days": days})


def restore_block_status(
    routine: PrivateRoutine | None, before: PrivateRoutine | None, block_id: str
) -> PrivateRoutine | None:
    """Copy of the routine with only this block's status taken from ``before``."""
    previous = before.find_block(block_id) if before else None
    if previous is None:
        return routine
    return patch_block(routine, block_id, {"status": previous.status})


def restore_day_blocks(
    routine: PrivateRoutine | None, before: PrivateRoutine | None, day_id: str
) -> PrivateRoutine | None:
    """Copy of the routine with only this day's blocks taken from ``before``."""
    previous = before.find_day(day_id) if before else None
    if previous is None:
        return routine
    return replace_day_blocks(routine, day_id, previous.blocks)


def restore_day_order(
    routine: PrivateRoutine | None, before: PrivateRoutine | None, day_id: str
) -> PrivateRoutine | None:
    """Copy of the routine with this day's block orders taken from ``before``."""
    previous = before.find_day(day_id) if before else None
    current = routine.find_day(day_id) if routine else None
    if previous is None or current is None:
        return routine
    orders = {block.id: block.order for block in previous.blocks}
    blocks = [
        block.model_copy(update={"order": orders[block.id]}) if block.id in orders else block
        for block in current.blocks
    ]
    return replace_day_blocks(routine, day_id, sorted(blocks, key=lambda block: block.order))


class RoutineBlockOperations:
    """Routine queries and block mutations."""

    def __init__(
        self,
        routines_api: PrivateRoutinesApi,
        blocks_api: RoutineBlocksApi,
        updater: OptimisticUpdater,
    ):
        self.routines_api = routines_api
        self.blocks_api = blocks_api
        self.updater = updater
        self.cache = updater.cache
        self.notifier = updater.notifier

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def get_private_routine(self) -> PrivateRoutine:
        return await self.cache.ensure_query_data(
            query_keys.PRIVATE_ROUTINES, self.routines_api.get_private_routine
        )

    async def get_today_private_routine(self) -> PrivateRoutine:
        return await self.cache.ensure_query_data(
            query_keys.TODAY_PRIVATE_ROUTINE, self.routines_api.get_today_private_routine
        )

    def find_cached_block(self, block_id: str) -> PrivateRoutineBlock | None:
        """Look the block up in either routine projection."""
        for key in query_keys.ROUTINE_QUERIES:
            routine = self.cache.get_query_data(key)
            block = routine.find_block(block_id) if routine else None
            if block is not None:
                return block
        return None

    # ─────────────────────────────────────────────────────────────
    # Status (optimistic)
    # ─────────────────────────────────────────────────────────────

    async def advance_block_status(self, block_id: str, scope: ViewScope | None = None) -> MutationResult:
        """
        Move a block one step along NULL -> VISUALIZED -> DONE.

        DONE is terminal: calling this on a finished block sends nothing.
        """
        block = self.find_cached_block(block_id)
        if block is None:
            logger.warning(f"Block {block_id} not in cache, cannot advance")
            return MutationResult.skip("not_found")
        if is_placeholder(block_id):
            return MutationResult.skip("pending")
        if is_terminal(block.status):
            return MutationResult.skip("terminal")

        return await self._transition(block_id, get_next_routine_state(block.status), scope)

    async def set_block_status(
        self, block_id: str, status: BlockStatus, scope: ViewScope | None = None
    ) -> MutationResult:
        """
        Jump a block straight to ``status`` (e.g. NULL -> DONE).

        Only forward moves from the transition table are sent.
        """
        block = self.find_cached_block(block_id)
        if block is None:
            logger.warning(f"Block {block_id} not in cache, cannot set status")
            return MutationResult.skip("not_found")
        if is_placeholder(block_id):
            return MutationResult.skip("pending")
        try:
            validate_transition(block.status, status)
        except InvalidStatusTransitionError as e:
            logger.info(f"Block {block_id}: {e}")
            return MutationResult.skip("transition_not_allowed")

        return await self._transition(block_id, status, scope)

    async def _transition(self, block_id: str, status: BlockStatus, scope: ViewScope | None) -> MutationResult:
        def patch(routine):
            return patch_block(routine, block_id, {"status": status})

        def revert(routine, before):
            return restore_block_status(routine, before, block_id)

        def already_there() -> bool:
            block = self.find_cached_block(block_id)
            return block is not None and block.status == status

        return await self.updater.run(
            OptimisticMutation(
                entity_id=block_id,
                request=lambda: self.blocks_api.update_block_status(block_id, status),
                patches={key: patch for key in query_keys.ROUTINE_QUERIES},
                revert={key: revert for key in query_keys.ROUTINE_QUERIES},
                is_applied=already_there,
                invalidate=query_keys.ROUTINE_QUERIES,
                error_message=STATUS_ERROR,
            ),
            scope=scope,
        )

    # ─────────────────────────────────────────────────────────────
    # Reorder (optimistic)
    # ─────────────────────────────────────────────────────────────

    async def reorder_blocks(
        self,
        routine_day_id: str,
        from_index: int,
        to_index: int,
        scope: ViewScope | None = None,
    ) -> MutationResult:
        """
        Drag-and-drop move within a day.

        Orders are rewritten densely (0..k-1) and the full id list is sent;
        a failed request puts back this day's previous order only.

        Returns:
            MutationResult whose ``data`` is the reordered block list on success
        """
        routine = self.cache.get_query_data(query_keys.PRIVATE_ROUTINES)
        day = routine.find_day(routine_day_id) if routine else None
        if day is None:
            logger.warning(f"Routine day {routine_day_id} not in cache, cannot reorder")
            return MutationResult.skip("not_found")
        if from_index == to_index:
            return MutationResult.skip("unchanged")
        if any(is_placeholder(block.id) for block in day.blocks):
            return MutationResult.skip("pending")

        reordered = with_dense_order(reorder_items(day.sorted_blocks(), from_index, to_index))

        def patch(cached):
            return replace_day_blocks(cached, routine_day_id, reordered)

        def revert(cached, before):
            return restore_day_order(cached, before, routine_day_id)

        result = await self.updater.run(
            OptimisticMutation(
                entity_id=day_entity_id(routine_day_id),
                request=lambda: self.blocks_api.reorder_blocks(
                    routine_day_id, [block.id for block in reordered]
                ),
                patches={key: patch for key in query_keys.ROUTINE_QUERIES},
                revert={key: revert for key in query_keys.ROUTINE_QUERIES},
                invalidate=query_keys.ROUTINE_QUERIES,
                error_message=REORDER_ERROR,
            ),
            scope=scope,
        )
        if result.succeeded:
            result.data = reordered
        return result

    # ─────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────

    async def create_block(self, routine_day_id: str, data: Union[Mapping[str, Any], BlockForm]):
        """
        Validate the block form and append a block at the end of the day.

        Returns:
            FormResult whose ``result`` is the MutationResult when submitted
        """
        async def submit(form: BlockForm) -> MutationResult:
            routine = await self.get_private_routine()
            day = routine.find_day(routine_day_id)
            if day is None:
                self.notifier.error("No se encontró el día de la rutina")
                return MutationResult.skip("not_found")

            request = CreateBlockRequest(
                routine_day_id=routine_day_id,
                week_day=day.week_day,
                title=form.title,
                description=form.description,
                color=form.color,
                order=len(day.blocks),
            )
            return await self.updater.send(
                lambda: self.blocks_api.create_block(routine_day_id, request),
                invalidate=query_keys.ROUTINE_QUERIES,
                error_message="Error al crear el bloque",
            )

        return await submit_form(BlockForm, data, submit)

    async def update_block(self, block_id: str, data: Union[Mapping[str, Any], BlockForm]):
        """Validate and update a block's text fields, keeping its current status."""
        async def submit(form: BlockForm) -> MutationResult:
            current = self.find_cached_block(block_id)
            request = UpdateBlockRequest(
                title=form.title,
                description=form.description,
                color=form.color or None,
                status=current.status if current else None,
            )
            return await self.updater.send(
                lambda: self.blocks_api.update_block(block_id, request),
                invalidate=query_keys.ROUTINE_QUERIES,
                error_message="Error al actualizar el bloque",
            )

        return await submit_form(BlockForm, data, submit)

    async def delete_block(self, block_id: str) -> MutationResult:
        return await self.updater.send(
            lambda: self.blocks_api.delete_block(block_id),
            invalidate=query_keys.ROUTINE_QUERIES,
            error_message="Error al eliminar el bloque",
        )
