"""
Dream Domain Operations

Queries and mutations for dreams, their daily visualization slot and
their images. Visualizing is optimistic; every other mutation sends first
and refetches after.

Pattern: instance methods over shared cache, API and notifier.
"""
import logging
from typing import Any, Mapping, Union

from hekate.api import DreamImagesApi, DreamsApi
from hekate.domain import query_keys
from hekate.domain.forms import DreamForm, submit_form
from hekate.domain.optimistic import (
    MutationResult,
    OptimisticMutation,
    OptimisticUpdater,
    ViewScope,
)
from hekate.models.dto import (
    CreateDreamRequest,
    Dream,
    DreamImage,
    UpdateDreamRequest,
    Visualization,
)

logger = logging.getLogger(__name__)

VISUALIZE_ERROR = "No se pudo visualizar el sueño. Inténtalo de nuevo."
COMPLETE_SUCCESS = "¡Felicidades! Sueño completado"


def mark_visualized(dreams: list[Dream] | None, dream_id: str) -> list[Dream] | None:
    """Copy of the list with the dream's slot consumed."""
    if dreams is None:
        return None
    return [
        dream.model_copy(update={"slot_visualized": True, "can_visualize": False})
        if dream.id == dream_id else dream
        for dream in dreams
    ]


def restore_visualization_flags(
    dreams: list[Dream] | None, before: list[Dream] | None, dream_id: str
) -> list[Dream] | None:
    """Copy of the list with only this dream's slot flags taken from ``before``."""
    previous = next((dream for dream in before or [] if dream.id == dream_id), None)
    if dreams is None or previous is None:
        return dreams
    flags = {"slot_visualized": previous.slot_visualized, "can_visualize": previous.can_visualize}
    return [dream.model_copy(update=flags) if dream.id == dream_id else dream for dream in dreams]


class DreamOperations:
    """Dream queries and mutations."""

    def __init__(
        self,
        dreams_api: DreamsApi,
        images_api: DreamImagesApi,
        updater: OptimisticUpdater,
    ):
        self.dreams_api = dreams_api
        self.images_api = images_api
        self.updater = updater
        self.cache = updater.cache
        self.notifier = updater.notifier

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def list_dreams(self, archived: bool = False) -> list[Dream]:
        return await self.cache.ensure_query_data(
            query_keys.dreams(archived), lambda: self.dreams_api.get_dreams(archived)
        )

    def get_cached_dream(self, dream_id: str, archived: bool = False) -> Dream | None:
        dreams = self.cache.get_query_data(query_keys.dreams(archived)) or []
        return next((dream for dream in dreams if dream.id == dream_id), None)

    async def get_visualizations_history(self) -> list[Visualization]:
        return await self.cache.ensure_query_data(
            query_keys.VISUALIZATIONS_HISTORY, self.dreams_api.get_all_visualizations_history
        )

    async def get_visualizations_count(self) -> int:
        """Total visualizations across all dreams."""
        return len(await self.get_visualizations_history() or [])

    async def get_dream_history(self, dream_id: str) -> list[Visualization]:
        return await self.cache.ensure_query_data(
            query_keys.dream_history(dream_id), lambda: self.dreams_api.get_dream_history(dream_id)
        )

    async def get_dream_images(self, dream_id: str) -> list[DreamImage]:
        return await self.cache.ensure_query_data(
            query_keys.dream_images(dream_id), lambda: self.images_api.get_dream_images(dream_id)
        )

    # ─────────────────────────────────────────────────────────────
    # Visualization (optimistic)
    # ─────────────────────────────────────────────────────────────

    def is_visualizing(self, dream_id: str) -> bool:
        return self.updater.is_in_flight(dream_id)

    async def visualize_dream(self, dream_id: str, scope: ViewScope | None = None) -> MutationResult:
        """
        Consume today's visualization slot for a dream.

        The dream is shown as visualized immediately; the unarchived list
        and the visualization history are refetched once the server
        confirms. If it does not, only this dream's two flags are restored.
        """
        def already_visualized() -> bool:
            dream = self.get_cached_dream(dream_id)
            return dream is not None and (dream.slot_visualized or not dream.can_visualize)

        return await self.updater.run(
            OptimisticMutation(
                entity_id=dream_id,
                request=lambda: self.dreams_api.visualize_dream(dream_id),
                patches={query_keys.dreams(False): lambda dreams: mark_visualized(dreams, dream_id)},
                revert={
                    query_keys.dreams(False): lambda dreams, before: restore_visualization_flags(
                        dreams, before, dream_id
                    )
                },
                is_applied=already_visualized,
                invalidate=[query_keys.DREAMS],
                reset=[query_keys.VISUALIZATIONS_HISTORY],
                error_message=VISUALIZE_ERROR,
            ),
            scope=scope,
        )

    # ─────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────

    async def _send(self, request, error_message: str, success_message: str | None = None) -> MutationResult:
        """Send a non-optimistic mutation and refetch dreams on success."""
        return await self.updater.send(
            request,
            invalidate=[query_keys.DREAMS],
            error_message=error_message,
            success_message=success_message,
        )

    async def create_dream(self, data: Union[Mapping[str, Any], DreamForm]):
        """
        Validate the dream form and create the dream.

        Returns:
            FormResult whose ``result`` is the MutationResult when submitted
        """
        async def submit(form: DreamForm) -> MutationResult:
            request = CreateDreamRequest(title=form.title, text=form.text, images=form.images)
            return await self._send(
                lambda: self.dreams_api.create_dream(request), "Error al crear el sueño"
            )

        return await submit_form(DreamForm, data, submit)

    async def update_dream(
        self,
        dream_id: str,
        data: Union[Mapping[str, Any], DreamForm],
        keep_image_ids: list[str] | None = None,
    ):
        """Validate and update a dream, optionally keeping some existing images."""
        async def submit(form: DreamForm) -> MutationResult:
            request = UpdateDreamRequest(
                title=form.title,
                text=form.text,
                images=form.images,
                keep_image_ids=keep_image_ids or [],
            )
            return await self._send(
                lambda: self.dreams_api.update_dream(dream_id, request), "Error al actualizar el sueño"
            )

        return await submit_form(DreamForm, data, submit)

    async def archive_dream(self, dream_id: str) -> MutationResult:
        return await self._send(
            lambda: self.dreams_api.archive_dream(dream_id), "Error al archivar el sueño"
        )

    async def delete_dream(self, dream_id: str) -> MutationResult:
        return await self._send(
            lambda: self.dreams_api.delete_dream(dream_id), "Error al eliminar el sueño"
        )

    async def complete_dream(self, dream_id: str) -> MutationResult:
        """Mark a dream as achieved. The API models this as archiving."""
        return await self._send(
            lambda: self.dreams_api.archive_dream(dream_id),
            "Error al completar el sueño",
            success_message=COMPLETE_SUCCESS,
        )

    # ─────────────────────────────────────────────────────────────
    # Images
    # ─────────────────────────────────────────────────────────────

    async def upload_images(self, dream_id: str, image_paths: list[str]) -> MutationResult:
        if not image_paths:
            return MutationResult.skip("no_images")
        logger.info(f"Uploading {len(image_paths)} image(s) to dream {dream_id}")

        async def request() -> list[str]:
            if len(image_paths) == 1:
                return [await self.images_api.upload_dream_image(dream_id, image_paths[0])]
            return await self.images_api.upload_multiple_dream_images(dream_id, image_paths)

        return await self.updater.send(
            request, invalidate=[query_keys.dream_images(dream_id), query_keys.DREAMS]
        )

    async def delete_image(self, dream_id: str, image_id: str) -> MutationResult:
        return await self.updater.send(
            lambda: self.images_api.delete_dream_image(image_id),
            invalidate=[query_keys.dream_images(dream_id), query_keys.DREAMS],
        )
