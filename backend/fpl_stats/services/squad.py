"""Current squad resolution - picks joined with the pool and fixture feeds."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from fpl_stats.services.fpl_client import ElementSummary, GameweekPicks
from fpl_stats.services.pool import Pool, player_image_url
from fpl_stats.services.summaries import ElementSummaryCache

logger = logging.getLogger(__name__)

RECENT_FORM_ROUNDS = 3


class PicksFetcher(Protocol):
    async def get_entry_picks(self, manager_id: int | str, gameweek: int) -> GameweekPicks: ...


@dataclass(slots=True)
class FixtureView:
    """An upcoming fixture from a player's point of view."""

    opponent: str  # Opponent short name
    is_home: bool
    difficulty: int
    gameweek: int | None


@dataclass(slots=True)
class SquadPlayer:
    """A pick in the manager's current squad, enriched for display."""

    player_id: int
    name: str
    team: str  # Team short name
    position: str
    slot: int
    is_captain: bool
    is_vice_captain: bool
    form: float
    total_points: int
    image: str
    last_3_gw_points: int
    next_fixtures: list[FixtureView] = field(default_factory=list)


@dataclass
class CurrentSquad:
    """The manager's picks for the current gameweek and the enriched rows."""

    picks: GameweekPicks
    players: list[SquadPlayer] = field(default_factory=list)


def next_fixtures(summary: ElementSummary, pool: Pool, window: int) -> list[FixtureView]:
    """First `window` upcoming fixtures with the opponent resolved to a short name.

    Fixtures against a team missing from the pool are skipped.
    """
    views = []
    for fixture in summary.fixtures:
        if len(views) >= window:
            break
        opponent = pool.teams.get(fixture.opponent_team_id)
        if opponent is None:
            logger.debug(
                f"Player {summary.player_id}: unknown opponent team {fixture.opponent_team_id}"
            )
            continue
        views.append(
            FixtureView(
                opponent=opponent.short_name,
                is_home=fixture.is_home,
                difficulty=fixture.difficulty,
                gameweek=fixture.event,
            )
        )
    return views


def recent_points(summary: ElementSummary, rounds: int = RECENT_FORM_ROUNDS) -> int:
    """Sum of the trailing `rounds` entries of a player's own history feed."""
    if rounds <= 0:
        return 0
    return sum(entry.total_points for entry in summary.history[-rounds:])


def build_squad(
    picks: GameweekPicks,
    summaries: dict[int, ElementSummary],
    pool: Pool,
    window: int,
) -> list[SquadPlayer]:
    """Join picks against the pool and fixture feeds, in squad slot order.

    Picks whose player is missing from the pool are skipped.
    """
    squad = []
    for pick in sorted(picks.picks, key=lambda p: p.slot):
        player = pool.players.get(pick.player_id)
        if player is None:
            logger.debug(f"Skipping pick of unknown player {pick.player_id}")
            continue

        summary = summaries.get(pick.player_id) or ElementSummary(player_id=pick.player_id)
        squad.append(
            SquadPlayer(
                player_id=player.id,
                name=player.web_name,
                team=pool.team_short_name(player.team_id),
                position=player.position,
                slot=pick.slot,
                is_captain=pick.is_captain,
                is_vice_captain=pick.is_vice_captain,
                form=player.form,
                total_points=player.total_points,
                image=player_image_url(player.code),
                last_3_gw_points=recent_points(summary),
                next_fixtures=next_fixtures(summary, pool, window),
            )
        )
    return squad


class SquadResolver:
    """Resolves a manager's current squad with upcoming fixtures and recent form."""

    def __init__(self, fpl_client: PicksFetcher, summaries: ElementSummaryCache) -> None:
        self.fpl_client = fpl_client
        self.summaries = summaries

    async def resolve(
        self,
        manager_id: int | str,
        gameweek: int,
        pool: Pool,
        window: int,
        picks: GameweekPicks | None = None,
    ) -> CurrentSquad:
        """Fetch current picks (unless given) and each known player's feed concurrently.

        Args:
            manager_id: FPL manager ID
            gameweek: Current gameweek
            pool: Static pool for the request
            window: Number of upcoming fixtures per player
            picks: Pick set already fetched for this gameweek, if any

        Returns:
            CurrentSquad with the pick set and enriched rows
        """
        if picks is None:
            picks = await self.fpl_client.get_entry_picks(manager_id, gameweek)

        known_ids = [p.player_id for p in picks.picks if p.player_id in pool.players]
        summaries = await self.summaries.get_many(known_ids)

        return CurrentSquad(
            picks=picks,
            players=build_squad(picks, summaries, pool, window),
        )
