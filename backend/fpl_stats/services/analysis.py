"""Manager analysis service - one call fans out to the FPL API and folds the season.

Pipeline:
1. Static pool, manager profile, season history and the reference league
   leaderboard, fetched together
2. Pick sets for every gameweek the manager has played, fetched together
3. Current squad enriched with fixtures and recent form
4. Element-summary feeds for every player ever picked (one fetch per player)
5. Sequential season fold over gameweeks 1..current
6. Derived views and response assembly
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from fpl_stats.config import get_settings
from fpl_stats.services.calculations import (
    PositionSummary,
    SeasonFold,
    fold_season,
    past_season_rank,
    rank_player_stats,
    round_points,
    summarize_positions,
)
from fpl_stats.services.fpl_client import (
    ElementSummary,
    GameweekPicks,
    LeagueStanding,
    _safe_int,
)
from fpl_stats.services.insights import (
    SuspensionWatchlist,
    TransferSuggestion,
    TransferTrends,
    build_watchlist,
    captaincy_options,
    position_suggestions,
    team_difficulty,
    transfer_trends,
    watchlist_candidates,
)
from fpl_stats.services.pool import (
    Pool,
    find_current_gameweek,
    parse_pool,
    player_image_fallback_url,
    player_image_url,
)
from fpl_stats.services.squad import SquadPlayer, SquadResolver
from fpl_stats.services.summaries import ElementSummaryCache

logger = logging.getLogger(__name__)

CHIP_NAMES = {
    "wildcard": "Wildcard",
    "bboost": "Bench Boost",
    "3xc": "Triple Captain",
    "freehit": "Free Hit",
    "manager": "Assistant Manager",
}


class FplClientProtocol(Protocol):
    """Protocol for FPL API client dependency injection."""

    async def get_bootstrap_static(self) -> dict[str, Any]: ...
    async def get_entry(self, manager_id: int | str) -> dict[str, Any]: ...
    async def get_entry_history(self, manager_id: int | str) -> dict[str, Any]: ...
    async def get_entry_picks(self, manager_id: int | str, gameweek: int) -> GameweekPicks: ...
    async def get_element_summary(self, player_id: int) -> ElementSummary: ...
    async def get_league_standings(self, league_id: int) -> list[LeagueStanding]: ...


@dataclass(slots=True)
class ChipPlayed:
    name: str
    gameweek: int


@dataclass
class ManagerInfo:
    """Manager snapshot built once from profile, history and the fold's extremes."""

    manager_id: int
    name: str
    team_name: str
    current_gameweek: int
    total_points: int
    overall_rank: int | None
    average_points: float
    total_captaincy_points: int
    total_points_lost_on_bench: int
    point_difference: int | None  # Points behind the reference league leader
    highest_points: int | None = None
    highest_points_gw: int | None = None
    lowest_points: int | None = None
    lowest_points_gw: int | None = None
    highest_rank: int | None = None
    highest_rank_gw: int | None = None
    lowest_rank: int | None = None
    lowest_rank_gw: int | None = None
    last_season_rank: int | None = None
    season_before_last_rank: int | None = None
    chips_used: list[ChipPlayed] = field(default_factory=list)


@dataclass(slots=True)
class PlayerStatRow:
    """A player's season contribution to the manager, joined with the pool."""

    player_id: int
    name: str
    team: str
    position: str
    image: str
    total_points_active: int
    games_in_squad: int
    starts: int
    captain_points: int


@dataclass
class ManagerAnalysis:
    """Everything the front-end renders for one manager."""

    manager_info: ManagerInfo
    weekly_points: list[int]
    weekly_ranks: list[int]
    player_stats: list[PlayerStatRow]
    position_summary: list[PositionSummary]
    current_team: list[SquadPlayer]
    captaincy_options: list[SquadPlayer]
    transfer_trends: TransferTrends
    transfer_suggestions: dict[str, list[TransferSuggestion]]
    image_fallback: str


@dataclass(slots=True)
class LeagueLeader:
    rank: int
    team_name: str
    manager_name: str
    total_points: int
    last_rank: int
    gameweek_points: int


def build_manager_info(
    manager_id: int | str,
    entry: dict[str, Any],
    history: dict[str, Any],
    fold: SeasonFold,
    leader: LeagueStanding | None,
) -> ManagerInfo:
    """Snapshot the manager's profile and season extremes."""
    total_points = _safe_int(entry.get("summary_overall_points"))
    overall_rank = entry.get("summary_overall_rank")
    first_name = entry.get("player_first_name", "")
    last_name = entry.get("player_last_name", "")
    past = history.get("past", [])

    chips = [
        ChipPlayed(
            name=CHIP_NAMES.get(chip.get("name", ""), chip.get("name", "")),
            gameweek=_safe_int(chip.get("event")),
        )
        for chip in history.get("chips", [])
        if chip.get("name")
    ]

    info = ManagerInfo(
        manager_id=_safe_int(entry.get("id"), default=_safe_int(manager_id)),
        name=f"{first_name} {last_name}".strip(),
        team_name=entry.get("name", ""),
        current_gameweek=fold.current_gameweek,
        total_points=total_points,
        overall_rank=_safe_int(overall_rank) if overall_rank is not None else None,
        average_points=round(total_points / fold.current_gameweek, 1),
        total_captaincy_points=fold.total_captaincy_points,
        total_points_lost_on_bench=fold.total_points_lost_on_bench,
        point_difference=leader.total_points - total_points if leader else None,
        last_season_rank=past_season_rank(past, 1),
        season_before_last_rank=past_season_rank(past, 2),
        chips_used=chips,
    )
    if fold.highest_points is not None:
        info.highest_points = fold.highest_points.value
        info.highest_points_gw = fold.highest_points.gameweek
    if fold.lowest_points is not None:
        info.lowest_points = fold.lowest_points.value
        info.lowest_points_gw = fold.lowest_points.gameweek
    if fold.best_rank is not None:
        info.highest_rank = fold.best_rank.value
        info.highest_rank_gw = fold.best_rank.gameweek
    if fold.worst_rank is not None:
        info.lowest_rank = fold.worst_rank.value
        info.lowest_rank_gw = fold.worst_rank.gameweek
    return info


def build_player_stat_rows(fold: SeasonFold, pool: Pool) -> list[PlayerStatRow]:
    rows = []
    for stat in rank_player_stats(fold.player_stats):
        player = pool.players.get(stat.player_id)
        if player is None:
            continue
        rows.append(
            PlayerStatRow(
                player_id=player.id,
                name=player.web_name,
                team=pool.team_short_name(player.team_id),
                position=player.position,
                image=player_image_url(player.code),
                total_points_active=stat.total_points_active,
                games_in_squad=stat.games_in_squad,
                starts=stat.starts,
                captain_points=stat.captain_points,
            )
        )
    return rows


class ManagerAnalysisService:
    """Runs the analysis pipeline against one FPL client.

    Create one instance per request: it owns the request's element-summary
    cache.
    """

    def __init__(self, fpl_client: FplClientProtocol) -> None:
        """Initialize with an FPL API client.

        Args:
            fpl_client: FplApiClient instance for API calls
        """
        self.fpl_client = fpl_client
        self.summaries = ElementSummaryCache(fpl_client)
        self.settings = get_settings()

    async def _reference_leader(self) -> LeagueStanding | None:
        if not self.settings.include_league_leader:
            return None
        standings = await self.fpl_client.get_league_standings(
            self.settings.reference_league_id
        )
        return standings[0] if standings else None

    async def _fetch_pick_sets(
        self, manager_id: int | str, first_gameweek: int, current_gameweek: int
    ) -> dict[int, GameweekPicks]:
        gameweeks = list(range(max(first_gameweek, 1), current_gameweek + 1))
        pick_sets = await asyncio.gather(
            *(self.fpl_client.get_entry_picks(manager_id, gw) for gw in gameweeks)
        )
        return dict(zip(gameweeks, pick_sets))

    async def analyze(self, manager_id: int | str) -> ManagerAnalysis:
        """Build the full analysis for a manager.

        Args:
            manager_id: FPL manager ID, passed to the API unvalidated

        Returns:
            ManagerAnalysis

        Raises:
            UpstreamUnavailableError: If any FPL API call fails
            NoCurrentGameweekError: If the season has not started
        """
        # 1. Independent calls together
        bootstrap, entry, history, leader = await asyncio.gather(
            self.fpl_client.get_bootstrap_static(),
            self.fpl_client.get_entry(manager_id),
            self.fpl_client.get_entry_history(manager_id),
            self._reference_leader(),
        )
        pool = parse_pool(bootstrap)
        current_gameweek = find_current_gameweek(pool.events)

        # 2. Pick sets from the manager's first gameweek; earlier ones stay empty
        started_event = _safe_int(entry.get("started_event"), default=1)
        picks_by_gameweek = await self._fetch_pick_sets(
            manager_id, started_event, current_gameweek
        )

        # 3. Current squad
        current_picks = picks_by_gameweek.get(current_gameweek) or GameweekPicks(
            gameweek=current_gameweek, active_chip=None
        )
        resolver = SquadResolver(self.fpl_client, self.summaries)
        squad = await resolver.resolve(
            manager_id,
            current_gameweek,
            pool,
            self.settings.fixture_window,
            picks=current_picks,
        )

        # 4. One feed per player ever picked (squad feeds are already cached)
        picked_ids = [
            pick.player_id
            for gameweek_picks in picks_by_gameweek.values()
            for pick in gameweek_picks.picks
            if pick.player_id in pool.players
        ]
        summaries = await self.summaries.get_many(picked_ids)
        points_by_player = {pid: round_points(s) for pid, s in summaries.items()}

        # 5. Sequential fold in gameweek order
        fold = fold_season(
            current_gameweek,
            picks_by_gameweek,
            points_by_player,
            pool.players,
            history.get("current", []),
        )

        logger.info(
            f"Analyzed manager {manager_id}: GW{current_gameweek}, "
            f"{len(picks_by_gameweek)} pick sets, {len(self.summaries)} player feeds"
        )

        # 6. Derived views and assembly
        squad_ids = {p.player_id for p in squad.picks.picks}
        suggestions = position_suggestions(
            pool,
            exclude_ids=squad_ids,
            rank_key=self.settings.suggestion_rank_key,
            difficulty_by_team=team_difficulty(
                self.summaries.fetched(), pool, self.settings.fixture_window
            ),
        )

        return ManagerAnalysis(
            manager_info=build_manager_info(manager_id, entry, history, fold, leader),
            weekly_points=fold.weekly_points,
            weekly_ranks=fold.weekly_ranks,
            player_stats=build_player_stat_rows(fold, pool),
            position_summary=summarize_positions(fold.position_points, pool.players),
            current_team=squad.players,
            captaincy_options=captaincy_options(squad.players, self.settings.captaincy_limit),
            transfer_trends=transfer_trends(pool, self.settings.trend_limit),
            transfer_suggestions=suggestions,
            image_fallback=player_image_fallback_url(),
        )

    async def suspension_watchlist(self) -> SuspensionWatchlist:
        """Suspended, red-carded and yellow-card-risk players with their next fixtures."""
        pool = parse_pool(await self.fpl_client.get_bootstrap_static())
        candidates = watchlist_candidates(pool)
        summaries = await self.summaries.get_many(p.id for p in candidates)
        logger.info(f"Suspension watchlist: {len(candidates)} players")
        return build_watchlist(
            candidates, summaries, pool, self.settings.watchlist_fixture_window
        )

    async def league_leaders(self) -> list[LeagueLeader]:
        """Reference league standings reshaped for display."""
        standings = await self.fpl_client.get_league_standings(
            self.settings.reference_league_id
        )
        return [
            LeagueLeader(
                rank=s.rank,
                team_name=s.team_name,
                manager_name=s.manager_name,
                total_points=s.total_points,
                last_rank=s.last_rank,
                gameweek_points=s.gameweek_points,
            )
            for s in standings
        ]
