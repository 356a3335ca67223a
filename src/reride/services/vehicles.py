from __future__ import annotations

from typing import Any

from reride.services.api import ApiClient
from reride.utils.debounce import debounce

VEHICLES_TTL_S = 2 * 60
VEHICLE_TTL_S = 5 * 60


class VehicleService:
    """
    Vehicle listings. Reads are cached + deduplicated; writes clear the cache.
    search() is debounced so typing in the search box sends one request per pause.
    """
    def __init__(self, api: ApiClient):
        self.api = api
        self._debounced_search = debounce(self._search_now, api.settings.debounce_s)

    async def get_vehicles(self) -> list[dict[str, Any]]:
        return await self.api.get("/api/vehicles", cache_key="vehicles", ttl_s=VEHICLES_TTL_S)

    async def get_vehicle(self, vehicle_id: int | str) -> dict[str, Any]:
        return await self.api.get(f"/api/vehicles/{vehicle_id}", cache_key=f"vehicle-{vehicle_id}", ttl_s=VEHICLE_TTL_S)

    async def search(self, query: str) -> list[dict[str, Any]]:
        return await self._debounced_search(query.strip())

    async def _search_now(self, query: str) -> list[dict[str, Any]]:
        if not query:
            return await self.get_vehicles()
        return await self.api.get("/api/vehicles", params={"search": query}, ttl_s=VEHICLES_TTL_S)

    async def add_vehicle(self, vehicle: dict[str, Any]) -> Any:
        result = await self.api.send("POST", "/api/vehicles", vehicle)
        self.api.invalidate()
        return result

    async def update_vehicle(self, vehicle: dict[str, Any]) -> Any:
        result = await self.api.send("PUT", f"/api/vehicles/{vehicle['id']}", vehicle)
        self.api.invalidate()
        return result

    async def delete_vehicle(self, vehicle_id: int | str) -> None:
        await self.api.send("DELETE", f"/api/vehicles/{vehicle_id}")
        self.api.invalidate()
