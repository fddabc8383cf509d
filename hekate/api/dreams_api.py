"""Dream and dream-image endpoints."""
from urllib.parse import quote

from hekate.api.base import BaseApi, api_call
from hekate.models.dto import (
    CreateDreamRequest,
    Dream,
    DreamImage,
    UpdateDreamRequest,
    UploadImageResponse,
    UploadMultipleImagesResponse,
    Visualization,
)
from hekate.services.api_client import UploadFile


class DreamsApi(BaseApi):
    """Endpoints under /dreams."""

    @api_call("Error al obtener los sueños")
    async def get_dreams(self, archived: bool = False) -> list[Dream]:
        data = await self.client.get(f"/dreams?archived={str(archived).lower()}")
        return [Dream.model_validate(item) for item in data or []]

    @api_call("Error al crear el sueño")
    async def create_dream(self, dream: CreateDreamRequest) -> Dream:
        if not dream.images:
            data = await self.client.post("/dreams", dream.to_payload(exclude={"images"}))
        else:
            files = [UploadFile("images", path) for path in dream.images]
            data = await self.client.post(
                "/dreams", {"title": dream.title, "text": dream.text}, files=files
            )
        return Dream.model_validate(data)

    @api_call("Error al actualizar el sueño")
    async def update_dream(self, dream_id: str, dream: UpdateDreamRequest) -> Dream:
        if not dream.images and not dream.keep_image_ids:
            payload = dream.to_payload(exclude={"images", "keep_image_ids"}, exclude_none=True)
            data = await self.client.patch(f"/dreams/{dream_id}", payload)
            return Dream.model_validate(data)

        # Kept image ids go as repeated form fields, with or without new files
        fields: dict = {}
        if dream.title:
            fields["title"] = dream.title
        if dream.text:
            fields["text"] = dream.text
        if dream.keep_image_ids:
            fields["keepImageIds"] = list(dream.keep_image_ids)
        files = [UploadFile("images", path) for path in dream.images]
        data = await self.client.patch(f"/dreams/{dream_id}", fields, files=files, multipart=True)
        return Dream.model_validate(data)

    @api_call("Error al archivar el sueño")
    async def archive_dream(self, dream_id: str) -> Dream:
        return Dream.model_validate(await self.client.post(f"/dreams/{dream_id}/archive", {}))

    @api_call("Error al visualizar el sueño")
    async def visualize_dream(self, dream_id: str) -> Visualization:
        return Visualization.model_validate(await self.client.post(f"/dreams/{dream_id}/visualize", {}))

    @api_call("Error al obtener el historial del sueño")
    async def get_dream_history(self, dream_id: str) -> list[Visualization]:
        data = await self.client.get(f"/dreams/{dream_id}/history")
        return [Visualization.model_validate(item) for item in data or []]

    @api_call("Error al obtener el historial de visualizaciones")
    async def get_all_visualizations_history(self) -> list[Visualization]:
        data = await self.client.get("/dreams/visualizations/history")
        return [Visualization.model_validate(item) for item in data or []]

    @api_call("Error al eliminar el sueño")
    async def delete_dream(self, dream_id: str) -> None:
        await self.client.delete(f"/dreams/{dream_id}")


class DreamImagesApi(BaseApi):
    """Endpoints under /dream-images. Uploads are multipart."""

    @api_call("Error al obtener las imágenes de sueños")
    async def get_dream_images(self, dream_id: str) -> list[DreamImage]:
        data = await self.client.get(f"/dream-images/{dream_id}")
        return [DreamImage.model_validate(item) for item in (data or {}).get("images", [])]

    @api_call("Error al obtener la URL de imagen del sueño")
    async def get_dream_image_url(self, image_id: str) -> str:
        return (await self.client.get(f"/dream-images/image/{image_id}"))["url"]

    @api_call("Error al obtener la URL de imagen del sueño")
    async def get_dream_image_url_by_path(self, file_path: str) -> str:
        return (await self.client.get(f"/dream-images/path/{quote(file_path)}"))["url"]

    @api_call("Error al subir la imagen del sueño")
    async def upload_dream_image(self, dream_id: str, image_path: str) -> str:
        data = await self.client.post(
            f"/dream-images/{dream_id}", files=[UploadFile("image", image_path)]
        )
        return UploadImageResponse.model_validate(data).file_path

    @api_call("Error al subir múltiples imágenes del sueño")
    async def upload_multiple_dream_images(self, dream_id: str, image_paths: list[str]) -> list[str]:
        files = [UploadFile("images", path) for path in image_paths]
        data = await self.client.post(f"/dream-images/{dream_id}/multiple", files=files)
        return UploadMultipleImagesResponse.model_validate(data).file_paths

    @api_call("Error al eliminar la imagen del sueño")
    async def delete_dream_image(self, image_id: str) -> None:
        await self.client.delete(f"/dream-images/{image_id}")
