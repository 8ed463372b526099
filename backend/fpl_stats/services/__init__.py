"""Service layer for business logic."""

from fpl_stats.services.analysis import ManagerAnalysisService
from fpl_stats.services.fpl_client import FplApiClient, UpstreamUnavailableError
from fpl_stats.services.pool import NoCurrentGameweekError

__all__ = [
    "FplApiClient",
    "ManagerAnalysisService",
    "NoCurrentGameweekError",
    "UpstreamUnavailableError",
]
