"""API response schemas."""

from fpl_stats.schemas.analysis import (
    LeagueLeaderResponse,
    ManagerAnalysisResponse,
    SuspensionWatchlistResponse,
)

__all__ = [
    "LeagueLeaderResponse",
    "ManagerAnalysisResponse",
    "SuspensionWatchlistResponse",
]
