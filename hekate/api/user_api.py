"""Profile endpoints for the signed-in user."""
from hekate.api.base import BaseApi, api_call
from hekate.models.dto import User


class UserApi(BaseApi):

    @api_call("Error al obtener el perfil de usuario")
    async def get_profile(self) -> User:
        return User.model_validate(await self.client.get("/user/profile"))

    @api_call("Error al actualizar el perfil de usuario")
    async def update_name(self, name: str) -> User:
        return User.model_validate(await self.client.patch("/user/profile", {"name": name}))
