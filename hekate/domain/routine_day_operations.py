"""
Routine Day Domain Operations

Copying one day's blocks onto other days of the week. Each target is
replaced (its blocks deleted, then the source blocks recreated) and
settles on its own: some days may succeed while others fail.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from hekate.api import PrivateRoutinesApi, RoutineBlocksApi
from hekate.domain import query_keys
from hekate.domain.exceptions import EntityNotFoundError, HekateError
from hekate.domain.optimistic import OptimisticUpdater
from hekate.domain.routine_block_operations import replace_day_blocks, restore_day_blocks
from hekate.domain.routine_state import day_entity_id, is_placeholder, placeholder_block_id
from hekate.models.dto import (
    BlockStatus,
    CreateBlockRequest,
    PrivateRoutine,
    PrivateRoutineBlock,
    PrivateRoutineDay,
)
from hekate.services.notifications import ToastType

logger = logging.getLogger(__name__)

SOURCE_NOT_FOUND = "No se pudo encontrar el día origen"
ROUTINE_REFRESH_ERROR = "No se pudo actualizar la rutina. Inténtalo de nuevo."


class DuplicationOutcome(str, Enum):
    ALL_SUCCEEDED = "ALL_SUCCEEDED"
    PARTIAL = "PARTIAL"
    ALL_FAILED = "ALL_FAILED"


@dataclass(frozen=True)
class DuplicationSummary:
    """How many target days were duplicated out of how many attempted."""
    succeeded: int
    total: int

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def outcome(self) -> DuplicationOutcome:
        if self.succeeded == self.total:
            return DuplicationOutcome.ALL_SUCCEEDED
        if self.succeeded == 0:
            return DuplicationOutcome.ALL_FAILED
        return DuplicationOutcome.PARTIAL

    @property
    def message(self) -> str:
        if self.outcome == DuplicationOutcome.ALL_SUCCEEDED:
            plural = "s" if self.succeeded != 1 else ""
            return f"Las rutinas se han duplicado correctamente en {self.succeeded} día{plural}."
        if self.outcome == DuplicationOutcome.PARTIAL:
            return (
                f"Se duplicaron {self.succeeded} de {self.total} días correctamente. "
                f"{self.failed} duplicaciones fallaron."
            )
        return "No se pudo duplicar la rutina en ningún día. Intenta nuevamente."

    @property
    def toast_type(self) -> ToastType:
        return {
            DuplicationOutcome.ALL_SUCCEEDED: ToastType.SUCCESS,
            DuplicationOutcome.PARTIAL: ToastType.WARNING,
            DuplicationOutcome.ALL_FAILED: ToastType.ERROR,
        }[self.outcome]


def copy_blocks_to_day(
    source_blocks: Sequence[PrivateRoutineBlock], target: PrivateRoutineDay
) -> List[PrivateRoutineBlock]:
    """
    Source blocks rebased onto ``target``: dense order, fresh status and
    placeholder ids until the server answers with real ones.
    """
    ordered = sorted(source_blocks, key=lambda block: block.order)
    return [
        block.model_copy(update={
            "id": placeholder_block_id(target.id, index),
            "routine_day_id": target.id,
            "week_day": target.week_day,
            "order": index,
            "status": BlockStatus.NULL,
        })
        for index, block in enumerate(ordered)
    ]


def has_placeholders(routine: PrivateRoutine) -> bool:
    return any(is_placeholder(block.id) for day in routine.days for block in day.blocks)


class RoutineDayOperations:
    """Day-level routine mutations."""

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

    async def duplicate_days(
        self, source_day_id: str, target_day_ids: Sequence[str]
    ) -> Optional[DuplicationSummary]:
        """
        Replace each target day's blocks with a copy of the source day's.

        Target days stay claimed until every target has settled, so a
        second duplication (or a reorder) touching them is skipped.

        Args:
            source_day_id: Day whose blocks are copied
            target_day_ids: Days to overwrite (must not include the source)

        Returns:
            DuplicationSummary, or None when nothing was attempted
        """
        targets = list(dict.fromkeys(target_day_ids))
        if not targets or source_day_id in targets:
            logger.info(f"Nothing to duplicate from {source_day_id} to {targets}")
            return None

        claimed = [day_entity_id(day_id) for day_id in targets]
        if self.updater.is_in_flight(day_entity_id(source_day_id)) or not self.updater.claim(*claimed):
            logger.info(f"Duplication from {source_day_id} to {targets} already in flight, skipping")
            return None
        try:
            return await self._duplicate(source_day_id, targets)
        finally:
            self.updater.release(*claimed)

    async def duplicate_day(self, source_day_id: str, target_day_id: str) -> Optional[DuplicationSummary]:
        return await self.duplicate_days(source_day_id, [target_day_id])

    async def _duplicate(self, source_day_id: str, targets: List[str]) -> Optional[DuplicationSummary]:
        routine: PrivateRoutine | None = self.cache.get_query_data(query_keys.PRIVATE_ROUTINES)
        if routine is not None and has_placeholders(routine):
            # An earlier duplication never got its real block ids back
            try:
                routine = await self.cache.fetch_query(
                    query_keys.PRIVATE_ROUTINES, self.routines_api.get_private_routine
                )
            except HekateError as e:
                logger.warning(f"Could not refresh routine before duplicating: {e}")
                self.notifier.error(ROUTINE_REFRESH_ERROR)
                return None

        source = routine.find_day(source_day_id) if routine else None
        if source is None:
            self.notifier.error(SOURCE_NOT_FOUND)
            return None

        snapshots = {
            key: self.cache.snapshot(key)
            for key in query_keys.ROUTINE_QUERIES
            if self.cache.get_query_data(key) is not None
        }

        # Optimistic: every known target shows the copied blocks right away
        planned: Dict[str, List[PrivateRoutineBlock]] = {}
        for day_id in targets:
            target = routine.find_day(day_id)
            if target is not None:
                planned[day_id] = copy_blocks_to_day(source.blocks, target)

        def patch(cached):
            for day_id, blocks in planned.items():
                cached = replace_day_blocks(cached, day_id, blocks)
            return cached

        for key in snapshots:
            self.cache.set_query_data(key, patch)

        # ``routine`` is the pre-patch value: deletes only ever name real blocks
        results = await asyncio.gather(
            *(self._replace_day(routine, source, day_id) for day_id in targets),
            return_exceptions=True,
        )

        failed_days = []
        for day_id, outcome in zip(targets, results):
            if isinstance(outcome, BaseException):
                logger.warning(f"Duplicating {source_day_id} onto {day_id} failed: {outcome}")
                failed_days.append(day_id)
        self._restore_days(snapshots, failed_days)

        await self.cache.invalidate_queries(*query_keys.ROUTINE_QUERIES)

        summary = DuplicationSummary(succeeded=len(targets) - len(failed_days), total=len(targets))
        self.notifier.show(summary.message, summary.toast_type)
        return summary

    async def _replace_day(
        self, routine: PrivateRoutine, source: PrivateRoutineDay, target_day_id: str
    ) -> List[PrivateRoutineBlock]:
        target = routine.find_day(target_day_id)
        if target is None:
            raise EntityNotFoundError("RoutineDay", target_day_id)

        for block in target.blocks:
            await self.blocks_api.delete_block(block.id)

        created = []
        for block in copy_blocks_to_day(source.blocks, target):
            request = CreateBlockRequest(
                routine_day_id=target.id,
                week_day=target.week_day,
                title=block.title,
                description=block.description,
                color=block.color,
                order=block.order,
                status=BlockStatus.NULL,
            )
            created.append(await self.blocks_api.create_block(target.id, request))
        return created

    def _restore_days(self, snapshots: Dict, failed_days: List[str]) -> None:
        """Put failed target days back to their pre-duplication blocks."""
        if not failed_days:
            return
        for key, before in snapshots.items():
            if before is None:
                continue

            def patch(cached, before=before):
                for day_id in failed_days:
                    cached = restore_day_blocks(cached, before, day_id)
                return cached
            self.cache.set_query_data(key, patch)
