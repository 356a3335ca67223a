from __future__ import annotations

from typing import Any

from reride.services.api import ApiClient

USERS_TTL_S = 5 * 60
USER_TTL_S = 10 * 60


class UserService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_users(self) -> list[dict[str, Any]]:
        return await self.api.get("/api/users", cache_key="users", ttl_s=USERS_TTL_S)

    async def get_user(self, email: str) -> dict[str, Any]:
        return await self.api.get(f"/api/users/{email}", cache_key=f"user-{email}", ttl_s=USER_TTL_S)

    async def update_user(self, user: dict[str, Any]) -> Any:
        result = await self.api.send("PUT", f"/api/users/{user['email']}", user)
        self.api.invalidate()
        return result
