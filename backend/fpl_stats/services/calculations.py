"""Pure calculation functions for the manager season fold.

These functions are stateless and make no network calls: every upstream
feed is fetched first, then folded here in a single sequential pass over
gameweeks. Accumulators live on the SeasonFold returned by fold_season(),
so folding the same inputs twice yields identical results.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, TypedDict

from fpl_stats.services.fpl_client import ElementSummary, GameweekPicks, Pick, _safe_int
from fpl_stats.services.pool import POSITIONS, Player, player_image_url

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

STARTING_XI_SIZE = 11

CHIP_BENCH_BOOST = "bboost"
CHIP_TRIPLE_CAPTAIN = "3xc"

CAPTAIN_MULTIPLIER = 2
TRIPLE_CAPTAIN_MULTIPLIER = 3


# =============================================================================
# TypedDicts for type hints
# =============================================================================


class ManagerHistoryRow(TypedDict, total=False):
    """A 'current' row from the entry/{id}/history/ endpoint."""

    event: int
    points: int
    total_points: int
    rank: int | None
    overall_rank: int | None
    points_on_bench: int
    event_transfers_cost: int


# =============================================================================
# Accumulators
# =============================================================================


@dataclass(slots=True)
class PlayerStat:
    """Season accumulator for one player across a manager's squads."""

    player_id: int
    total_points_active: int = 0
    games_in_squad: int = 0
    starts: int = 0
    captain_points: int = 0


@dataclass(slots=True)
class Extreme:
    """A season high or low and the gameweek it first occurred."""

    gameweek: int
    value: int


@dataclass
class SeasonFold:
    """Result of folding every gameweek from 1 to the current one."""

    current_gameweek: int
    weekly_points: list[int] = field(default_factory=list)
    weekly_ranks: list[int] = field(default_factory=list)
    player_stats: dict[int, PlayerStat] = field(default_factory=dict)
    # position -> player_id -> active points
    position_points: dict[str, dict[int, int]] = field(
        default_factory=lambda: {position: {} for position in POSITIONS}
    )
    total_points_lost_on_bench: int = 0
    total_captaincy_points: int = 0
    highest_points: Extreme | None = None
    lowest_points: Extreme | None = None
    best_rank: Extreme | None = None  # numerically lowest overall rank
    worst_rank: Extreme | None = None  # numerically highest overall rank


# =============================================================================
# Pure Functions
# =============================================================================


def round_points(summary: ElementSummary) -> dict[int, int]:
    """Map round -> realized points from a player's history feed.

    Double gameweeks list two fixtures with the same round; their points
    are summed.
    """
    points: dict[int, int] = {}
    for entry in summary.history:
        points[entry.round] = points.get(entry.round, 0) + entry.total_points
    return points


def captain_multiplier(active_chip: str | None) -> int:
    """Captain multiplier for a gameweek: 3 under triple captain, else 2."""
    if active_chip == CHIP_TRIPLE_CAPTAIN:
        return TRIPLE_CAPTAIN_MULTIPLIER
    return CAPTAIN_MULTIPLIER


def is_active(pick: Pick, active_chip: str | None) -> bool:
    """Whether a pick's points count: starting XI, or the whole squad under bench boost."""
    return pick.slot <= STARTING_XI_SIZE or active_chip == CHIP_BENCH_BOOST


def fold_gameweek(
    fold: SeasonFold,
    gameweek_picks: GameweekPicks,
    points_by_player: dict[int, dict[int, int]],
    players: dict[int, Player],
) -> int:
    """Fold one gameweek's picks into the season accumulators.

    Args:
        fold: Season accumulators, updated in place
        gameweek_picks: The manager's picks and active chip for the gameweek
        points_by_player: player_id -> {round -> realized points}
        players: Player pool keyed by id

    Returns:
        The gameweek's active points total (captain multiplied)
    """
    gameweek = gameweek_picks.gameweek
    chip = gameweek_picks.active_chip
    gw_points = 0

    for pick in gameweek_picks.picks:
        player = players.get(pick.player_id)
        if player is None:
            logger.debug(f"GW{gameweek}: pick references unknown player {pick.player_id}")
            continue

        raw_points = points_by_player.get(pick.player_id, {}).get(gameweek, 0)

        if not is_active(pick, chip):
            fold.total_points_lost_on_bench += raw_points
            continue

        points = raw_points
        stat = fold.player_stats.get(pick.player_id)
        if stat is None:
            stat = fold.player_stats[pick.player_id] = PlayerStat(player_id=pick.player_id)

        if pick.is_captain:
            points = raw_points * captain_multiplier(chip)
            fold.total_captaincy_points += points
            stat.captain_points += points

        stat.total_points_active += points
        position_points = fold.position_points.setdefault(player.position, {})
        position_points[pick.player_id] = position_points.get(pick.player_id, 0) + points
        gw_points += points

        if pick.slot <= STARTING_XI_SIZE:
            stat.starts += 1
        stat.games_in_squad += 1

    return gw_points


def update_extremes(fold: SeasonFold, gameweek: int, points: int, rank: int) -> None:
    """Track season highs and lows. Strict comparisons: the first occurrence wins.

    A rank of 0 means the rank is unavailable and is not compared.
    """
    if fold.highest_points is None or points > fold.highest_points.value:
        fold.highest_points = Extreme(gameweek=gameweek, value=points)
    if fold.lowest_points is None or points < fold.lowest_points.value:
        fold.lowest_points = Extreme(gameweek=gameweek, value=points)

    if rank <= 0:
        return
    if fold.best_rank is None or rank < fold.best_rank.value:
        fold.best_rank = Extreme(gameweek=gameweek, value=rank)
    if fold.worst_rank is None or rank > fold.worst_rank.value:
        fold.worst_rank = Extreme(gameweek=gameweek, value=rank)


def fold_season(
    current_gameweek: int,
    picks_by_gameweek: dict[int, GameweekPicks],
    points_by_player: dict[int, dict[int, int]],
    players: dict[int, Player],
    history: list[ManagerHistoryRow],
) -> SeasonFold:
    """Fold gameweeks 1..current_gameweek in increasing order.

    Gameweeks without a pick set (before the manager joined) contribute 0.
    Extremes only consider gameweeks present in the manager's history.

    Args:
        current_gameweek: Last gameweek to fold (inclusive)
        picks_by_gameweek: gameweek -> pick set
        points_by_player: player_id -> {round -> realized points}
        players: Player pool keyed by id
        history: The manager's 'current' season history rows

    Returns:
        SeasonFold with weekly series, accumulators and extremes
    """
    fold = SeasonFold(current_gameweek=current_gameweek)
    history_by_gw = {_safe_int(row.get("event")): row for row in history}

    for gameweek in range(1, current_gameweek + 1):
        gameweek_picks = picks_by_gameweek.get(gameweek)
        gw_points = 0
        if gameweek_picks is not None:
            gw_points = fold_gameweek(fold, gameweek_picks, points_by_player, players)

        row = history_by_gw.get(gameweek)
        rank = _safe_int(row.get("overall_rank")) if row is not None else 0

        fold.weekly_points.append(gw_points)
        fold.weekly_ranks.append(rank)

        if row is not None:
            update_extremes(fold, gameweek, gw_points, rank)

    return fold


def rank_player_stats(player_stats: dict[int, PlayerStat]) -> list[PlayerStat]:
    """Player stats by active points descending, ties by player id."""
    return sorted(
        player_stats.values(),
        key=lambda s: (-s.total_points_active, s.player_id),
    )


@dataclass(slots=True)
class PositionPlayer:
    """A player's active points within one position bucket."""

    player_id: int
    name: str
    points: int
    image: str


@dataclass(slots=True)
class PositionSummary:
    """Active points for one position across the season."""

    position: str
    total_points: int
    players: list[PositionPlayer] = field(default_factory=list)
    top_scorer: PositionPlayer | None = None


def summarize_positions(
    position_points: dict[str, dict[int, int]],
    players: dict[int, Player],
) -> list[PositionSummary]:
    """Per-position totals, players sorted by points and the top scorer.

    Returns one summary per position in GKP, DEF, MID, FWD order.
    """
    summaries = []
    for position in POSITIONS:
        bucket = position_points.get(position, {})
        ranked = sorted(bucket.items(), key=lambda item: (-item[1], item[0]))
        position_players = [
            PositionPlayer(
                player_id=player_id,
                name=players[player_id].web_name,
                points=points,
                image=player_image_url(players[player_id].code),
            )
            for player_id, points in ranked
            if player_id in players
        ]
        summaries.append(
            PositionSummary(
                position=position,
                total_points=sum(p.points for p in position_players),
                players=position_players,
                top_scorer=position_players[0] if position_players else None,
            )
        )
    return summaries


def past_season_rank(past: list[dict[str, Any]], seasons_ago: int) -> int | None:
    """Final overall rank from the entry history 'past' array.

    Args:
        past: Past season rows, oldest first
        seasons_ago: 1 for last season, 2 for the season before

    Returns:
        The rank, or None if the manager did not play that season
    """
    if seasons_ago < 1 or len(past) < seasons_ago:
        return None
    rank = past[-seasons_ago].get("rank")
    return _safe_int(rank) if rank is not None else None
