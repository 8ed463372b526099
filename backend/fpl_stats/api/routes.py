"""API route definitions - FPL proxy and manager analysis endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from fpl_stats.dependencies import get_fpl_client
from fpl_stats.schemas.analysis import (
    LeagueLeaderResponse,
    ManagerAnalysisResponse,
    SuspensionWatchlistResponse,
)
from fpl_stats.services.analysis import ManagerAnalysisService
from fpl_stats.services.fpl_client import FplApiClient, UpstreamUnavailableError
from fpl_stats.services.pool import NoCurrentGameweekError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["fpl"])


@router.get("/bootstrap-static")
async def get_bootstrap_static(
    fpl_client: FplApiClient = Depends(get_fpl_client),
) -> dict[str, Any]:
    """Proxy the FPL bootstrap-static payload verbatim."""
    try:
        return await fpl_client.get_bootstrap_static()
    except UpstreamUnavailableError as e:
        raise HTTPException(
            status_code=502, detail="Failed to fetch bootstrap static data"
        ) from e


@router.get("/analyze-manager/{manager_id}", response_model=ManagerAnalysisResponse)
async def analyze_manager(
    manager_id: str,
    fpl_client: FplApiClient = Depends(get_fpl_client),
) -> ManagerAnalysisResponse:
    """
    Full season analysis for one manager.

    Weekly points and rank series, per-player and per-position totals,
    captaincy and bench losses, the current squad with fixtures, and
    transfer trends and suggestions. The manager id is passed to the FPL
    API as-is.
    """
    try:
        service = ManagerAnalysisService(fpl_client)
        analysis = await service.analyze(manager_id)
    except NoCurrentGameweekError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except UpstreamUnavailableError as e:
        if e.status_code == 404:
            raise HTTPException(
                status_code=404, detail=f"Manager {manager_id} not found"
            ) from e
        logger.error(f"Failed to analyze manager {manager_id}: {e}")
        raise HTTPException(
            status_code=502,
            detail="Failed to analyze manager: FPL API unavailable",
        ) from e
    except Exception as e:
        logger.exception(f"Failed to analyze manager {manager_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Internal server error while analyzing manager",
        ) from e

    return ManagerAnalysisResponse.model_validate(analysis, from_attributes=True)


@router.get("/suspension-watchlist", response_model=SuspensionWatchlistResponse)
async def get_suspension_watchlist(
    fpl_client: FplApiClient = Depends(get_fpl_client),
) -> SuspensionWatchlistResponse:
    """Suspended and red-carded players, and players one yellow card from a ban."""
    try:
        service = ManagerAnalysisService(fpl_client)
        watchlist = await service.suspension_watchlist()
    except UpstreamUnavailableError as e:
        logger.error(f"Failed to build suspension watchlist: {e}")
        raise HTTPException(
            status_code=502,
            detail="Failed to fetch suspension watchlist: FPL API unavailable",
        ) from e

    return SuspensionWatchlistResponse.model_validate(watchlist, from_attributes=True)


@router.get("/league-leaders", response_model=list[LeagueLeaderResponse])
async def get_league_leaders(
    fpl_client: FplApiClient = Depends(get_fpl_client),
) -> list[LeagueLeaderResponse]:
    """Reference league standings (the overall league by default)."""
    try:
        service = ManagerAnalysisService(fpl_client)
        leaders = await service.league_leaders()
    except UpstreamUnavailableError as e:
        logger.error(f"Failed to fetch league leaders: {e}")
        raise HTTPException(
            status_code=502,
            detail="Failed to fetch league leaders: FPL API unavailable",
        ) from e

    return [LeagueLeaderResponse.model_validate(row, from_attributes=True) for row in leaders]
