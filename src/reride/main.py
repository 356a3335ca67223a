# src/reride/main.py
import asyncio
import dataclasses

import structlog
from dotenv import load_dotenv

from reride.config import config_from_env
from reride.errors import FetchError
from reride.fetch.cached_fetch import batch_requests
from reride.services.api import ApiClient
from reride.services.users import UserService
from reride.services.vehicles import VehicleService

load_dotenv()
log = structlog.get_logger()


async def warm(api: ApiClient) -> dict:
    """
    Pre-load the listing and user collections into the shared cache.
    Returns a summary of what got cached; failures are reported, not raised.
    """
    vehicles = VehicleService(api)
    users = UserService(api)
    summary: dict = {"warmed": [], "errors": []}

    async def _one(name, call):
        try:
            data = await call()
            summary["warmed"].append(name)
            return len(data) if hasattr(data, "__len__") else 1
        except FetchError as e:
            log.warning("warm_failed", target=name, status=e.status, err=str(e))
            summary["errors"].append(name)
            return 0

    counts = await batch_requests(
        lambda: _one("vehicles", vehicles.get_vehicles),
        lambda: _one("users", users.get_users),
    )
    summary["counts"] = dict(zip(("vehicles", "users"), counts))
    return summary


async def main():
    settings = config_from_env()
    async with ApiClient(settings) as api:
        summary = await warm(api)
        log.info("cache_warm_done", **summary, stats=dataclasses.asdict(api.cache.stats()))
    return summary


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
