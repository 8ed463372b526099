"""Shared FastAPI dependencies for API routes."""

from collections.abc import AsyncIterator

from fpl_stats.services.fpl_client import FplApiClient


async def get_fpl_client() -> AsyncIterator[FplApiClient]:
    """FastAPI dependency providing a per-request FPL API client.

    The client is closed once the response has been produced.

    Usage:
        @router.get("/endpoint")
        async def endpoint(fpl_client: FplApiClient = Depends(get_fpl_client)):
            ...
    """
    async with FplApiClient() as client:
        yield client
