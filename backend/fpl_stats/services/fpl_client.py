"""FPL API client for the manager analysis pipeline."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from fpl_stats.config import get_settings

logger = logging.getLogger(__name__)


class UpstreamUnavailableError(Exception):
    """Raised when a required FPL API call fails.

    Covers network errors, timeouts, non-success statuses and unparseable
    bodies. The whole request fails as a unit; there is no partial result.
    """

    def __init__(self, path: str, status_code: int | None = None, reason: str = "") -> None:
        self.path = path
        self.status_code = status_code
        self.reason = reason
        status = f"status {status_code}" if status_code is not None else "no response"
        super().__init__(f"FPL API request {path} failed ({status}) {reason}".rstrip())


def _safe_int(val: Any, default: int = 0) -> int:
    """Safely convert API value to int, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def _safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert API value to float, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


@dataclass(slots=True)
class Pick:
    """One player's slot in a manager's squad for a gameweek."""

    player_id: int
    slot: int  # 1-11 starting, 12-15 bench
    is_captain: bool
    is_vice_captain: bool


@dataclass(slots=True)
class GameweekPicks:
    """A manager's full pick set for one gameweek."""

    gameweek: int
    active_chip: str | None  # "bboost", "3xc", "freehit", "wildcard" or None
    picks: list[Pick] = field(default_factory=list)


@dataclass(slots=True)
class UpcomingFixture:
    """An upcoming fixture from the element-summary feed."""

    event: int | None
    team_h: int
    team_a: int
    is_home: bool
    difficulty: int  # 1 (easiest) - 5 (hardest)

    @property
    def opponent_team_id(self) -> int:
        return self.team_a if self.is_home else self.team_h


@dataclass(slots=True)
class RoundScore:
    """A player's realized points in one past fixture."""

    round: int
    total_points: int


@dataclass(slots=True)
class ElementSummary:
    """Per-player fixture and history feed."""

    player_id: int
    fixtures: list[UpcomingFixture] = field(default_factory=list)
    history: list[RoundScore] = field(default_factory=list)


@dataclass(slots=True)
class LeagueStanding:
    """A manager's row in a classic league table."""

    manager_id: int
    rank: int
    last_rank: int
    team_name: str
    manager_name: str
    total_points: int
    gameweek_points: int


def _clamp_difficulty(val: Any) -> int:
    """Fixture difficulty rating, defaulting to 3 and held to the 1-5 scale."""
    return min(max(_safe_int(val, default=3), 1), 5)


def parse_picks(gameweek: int, data: dict[str, Any]) -> GameweekPicks:
    """Parse an entry/{id}/event/{gw}/picks/ response."""
    picks = [
        Pick(
            player_id=_safe_int(p.get("element")),
            slot=_safe_int(p.get("position")),
            is_captain=bool(p.get("is_captain")),
            is_vice_captain=bool(p.get("is_vice_captain")),
        )
        for p in data.get("picks", [])
    ]
    return GameweekPicks(
        gameweek=gameweek,
        active_chip=data.get("active_chip") or None,
        picks=picks,
    )


def parse_element_summary(player_id: int, data: dict[str, Any]) -> ElementSummary:
    """Parse an element-summary/{id}/ response."""
    fixtures = [
        UpcomingFixture(
            event=f.get("event"),
            team_h=_safe_int(f.get("team_h")),
            team_a=_safe_int(f.get("team_a")),
            is_home=bool(f.get("is_home")),
            difficulty=_clamp_difficulty(f.get("difficulty")),
        )
        for f in data.get("fixtures", [])
    ]
    history = [
        RoundScore(
            round=_safe_int(h.get("round")),
            total_points=_safe_int(h.get("total_points")),
        )
        for h in data.get("history", [])
    ]
    return ElementSummary(player_id=player_id, fixtures=fixtures, history=history)


class FplApiClient:
    """
    Async FPL API client.

    One instance is created per incoming request. Concurrency against the
    upstream service is bounded by a semaphore; there is no caching and
    no retry - any failed call raises UpstreamUnavailableError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_concurrent: int | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: FPL API root (defaults to settings.fpl_api_base_url)
            max_concurrent: Maximum concurrent requests
            timeout: Per-request timeout in seconds
        """
        settings = get_settings()
        self.base_url = (base_url or settings.fpl_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.user_agent = settings.user_agent
        self.semaphore = asyncio.Semaphore(
            max_concurrent or settings.max_concurrent_requests
        )
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:  # Double-check after acquiring lock
                    self._client = httpx.AsyncClient(
                        base_url=self.base_url,
                        timeout=self.timeout,
                        headers={"User-Agent": self.user_agent},
                    )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources (coroutine-safe)."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "FplApiClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager and close client."""
        await self.close()

    async def _get(self, path: str) -> Any:
        """Make a GET request, translating every failure to UpstreamUnavailableError."""
        async with self.semaphore:
            client = await self._get_client()
            logger.debug(f"Fetching {path} from FPL API")
            try:
                response = await client.get(path)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"HTTP error fetching {path}: {e.response.status_code}")
                raise UpstreamUnavailableError(path, e.response.status_code) from e
            except httpx.RequestError as e:
                logger.error(f"Request error fetching {path}: {type(e).__name__}: {e}")
                raise UpstreamUnavailableError(path, reason=type(e).__name__) from e
            except ValueError as e:
                logger.error(f"Invalid JSON from {path}: {e}")
                raise UpstreamUnavailableError(
                    path, response.status_code, "invalid JSON"
                ) from e

    async def get_bootstrap_static(self) -> dict[str, Any]:
        """Fetch raw bootstrap-static data (elements, teams, events)."""
        return await self._get("/bootstrap-static/")

    async def get_entry(self, manager_id: int | str) -> dict[str, Any]:
        """Fetch a manager's profile."""
        return await self._get(f"/entry/{manager_id}/")

    async def get_entry_history(self, manager_id: int | str) -> dict[str, Any]:
        """
        Fetch a manager's season history.

        The /entry/{id}/history endpoint returns:
        - current: gameweek entries for current season
        - past: summary of past seasons
        - chips: list of chips used (name, time, event)
        """
        return await self._get(f"/entry/{manager_id}/history/")

    async def get_entry_picks(self, manager_id: int | str, gameweek: int) -> GameweekPicks:
        """Fetch a manager's picks and active chip for one gameweek."""
        data = await self._get(f"/entry/{manager_id}/event/{gameweek}/picks/")
        return parse_picks(gameweek, data)

    async def get_element_summary(self, player_id: int) -> ElementSummary:
        """Fetch a player's upcoming fixtures and per-round history."""
        data = await self._get(f"/element-summary/{player_id}/")
        return parse_element_summary(player_id, data)

    async def get_league_standings(self, league_id: int) -> list[LeagueStanding]:
        """
        Fetch the first page of a classic league's standings.

        Args:
            league_id: FPL classic league ID

        Returns:
            Standings rows in league order
        """
        data = await self._get(f"/leagues-classic/{league_id}/standings/")
        results = data.get("standings", {}).get("results", [])

        return [
            LeagueStanding(
                manager_id=_safe_int(entry.get("entry")),
                rank=_safe_int(entry.get("rank")),
                last_rank=_safe_int(entry.get("last_rank")),
                team_name=entry.get("entry_name", ""),
                manager_name=entry.get("player_name", ""),
                total_points=_safe_int(entry.get("total")),
                gameweek_points=_safe_int(entry.get("event_total")),
            )
            for entry in results
        ]
