"""Derived views over the player pool and the resolved squad.

Transfer trends, the suspension / card watchlist, position transfer
suggestions and captaincy options. All functions here are pure: the
feeds they need are fetched by the caller.
"""

import logging
from dataclasses import dataclass, field

from fpl_stats.services.fpl_client import ElementSummary
from fpl_stats.services.pool import (
    POSITION_DEF,
    POSITION_FWD,
    POSITION_GKP,
    POSITION_MID,
    POSITIONS,
    STATUS_AVAILABLE,
    STATUS_RED_CARD,
    STATUS_SUSPENDED,
    Player,
    Pool,
    player_image_fallback_url,
    player_image_url,
)
from fpl_stats.services.squad import FixtureView, SquadPlayer, next_fixtures

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Five yellows is a one-match ban, ten a two-match ban, fifteen a three-match ban
YELLOW_CARD_WARNINGS = {
    4: "one more yellow card until suspension",
    9: "one more yellow card until a two-match suspension",
    14: "one more yellow card until a three-match suspension",
}
STATUS_TEXT_SUSPENDED = "suspended"
STATUS_TEXT_RED_CARD = "red card"

SUGGESTION_SLOTS = {
    POSITION_GKP: 3,
    POSITION_DEF: 5,
    POSITION_MID: 6,
    POSITION_FWD: 4,
}

RANK_BY_FORM = "form"
RANK_BY_FORM_DIFFICULTY = "form_difficulty"
RANK_KEYS = frozenset({RANK_BY_FORM, RANK_BY_FORM_DIFFICULTY})

NEUTRAL_DIFFICULTY = 3.0


# =============================================================================
# Transfer trends
# =============================================================================


@dataclass(slots=True)
class TransferTrend:
    player_id: int
    name: str
    team: str
    position: str
    image: str
    transfers: int


@dataclass
class TransferTrends:
    most_transferred_in: list[TransferTrend] = field(default_factory=list)
    most_transferred_out: list[TransferTrend] = field(default_factory=list)


def _trend(player: Player, pool: Pool, transfers: int) -> TransferTrend:
    return TransferTrend(
        player_id=player.id,
        name=player.web_name,
        team=pool.team_name(player.team_id),
        position=player.position,
        image=player_image_url(player.code),
        transfers=transfers,
    )


def transfer_trends(pool: Pool, limit: int = 10) -> TransferTrends:
    """Most transferred in and out players for the current gameweek."""
    players = list(pool.players.values())
    most_in = sorted(players, key=lambda p: (-p.transfers_in_event, p.id))[:limit]
    most_out = sorted(players, key=lambda p: (-p.transfers_out_event, p.id))[:limit]
    return TransferTrends(
        most_transferred_in=[_trend(p, pool, p.transfers_in_event) for p in most_in],
        most_transferred_out=[_trend(p, pool, p.transfers_out_event) for p in most_out],
    )


# =============================================================================
# Suspension / card watchlist
# =============================================================================


@dataclass(slots=True)
class WatchlistPlayer:
    player_id: int
    name: str
    team: str
    position: str
    image: str
    yellow_cards: int
    red_cards: int
    status: str
    next_fixtures: list[FixtureView] = field(default_factory=list)


@dataclass
class SuspensionWatchlist:
    suspended: list[WatchlistPlayer] = field(default_factory=list)
    yellow_card_risk: list[WatchlistPlayer] = field(default_factory=list)
    image_fallback: str = ""


def suspension_status(player: Player) -> str | None:
    """Why a player is on the watchlist, or None if they are not.

    Suspensions and red cards take precedence over yellow card counts.
    """
    if player.status == STATUS_SUSPENDED:
        return STATUS_TEXT_SUSPENDED
    if player.status == STATUS_RED_CARD or player.red_cards > 0:
        return STATUS_TEXT_RED_CARD
    return YELLOW_CARD_WARNINGS.get(player.yellow_cards)


def watchlist_candidates(pool: Pool) -> list[Player]:
    """Players that belong on the watchlist, in pool order."""
    return [p for p in pool.players.values() if suspension_status(p) is not None]


def build_watchlist(
    candidates: list[Player],
    summaries: dict[int, ElementSummary],
    pool: Pool,
    window: int = 3,
) -> SuspensionWatchlist:
    """Split candidates into suspended and yellow-card-risk lists with fixtures."""
    watchlist = SuspensionWatchlist(image_fallback=player_image_fallback_url())
    for player in candidates:
        status = suspension_status(player)
        if status is None:
            continue
        summary = summaries.get(player.id) or ElementSummary(player_id=player.id)
        row = WatchlistPlayer(
            player_id=player.id,
            name=player.web_name,
            team=pool.team_name(player.team_id),
            position=player.position,
            image=player_image_url(player.code),
            yellow_cards=player.yellow_cards,
            red_cards=player.red_cards,
            status=status,
            next_fixtures=next_fixtures(summary, pool, window),
        )
        if status in (STATUS_TEXT_SUSPENDED, STATUS_TEXT_RED_CARD):
            watchlist.suspended.append(row)
        else:
            watchlist.yellow_card_risk.append(row)
    return watchlist


# =============================================================================
# Position transfer suggestions
# =============================================================================


@dataclass(slots=True)
class TransferSuggestion:
    player_id: int
    name: str
    team: str
    position: str
    image: str
    form: float
    total_points: int
    price: float
    fixture_difficulty: float
    score: float


def team_difficulty(
    summaries: dict[int, ElementSummary],
    pool: Pool,
    window: int = 5,
) -> dict[int, float]:
    """Mean upcoming difficulty per team, from whichever feeds were fetched.

    Any player's feed speaks for their whole team; the first one seen wins.
    """
    difficulty: dict[int, float] = {}
    for player_id, summary in summaries.items():
        player = pool.players.get(player_id)
        if player is None or player.team_id in difficulty:
            continue
        upcoming = [f.difficulty for f in summary.fixtures[:window]]
        if upcoming:
            difficulty[player.team_id] = sum(upcoming) / len(upcoming)
    return difficulty


def suggestion_score(player: Player, rank_key: str, difficulty: float) -> float:
    """Ranking key: form alone, or form per unit of fixture difficulty."""
    if rank_key == RANK_BY_FORM:
        return player.form
    if rank_key == RANK_BY_FORM_DIFFICULTY:
        return player.form / difficulty if difficulty > 0 else player.form
    raise ValueError(f"Unknown suggestion rank key: {rank_key}")


def position_suggestions(
    pool: Pool,
    exclude_ids: set[int],
    rank_key: str = RANK_BY_FORM,
    difficulty_by_team: dict[int, float] | None = None,
) -> dict[str, list[TransferSuggestion]]:
    """Best available players per position that the manager does not own.

    Args:
        pool: Static pool for the request
        exclude_ids: Player ids already in the manager's squad
        rank_key: "form" or "form_difficulty"
        difficulty_by_team: team_id -> mean upcoming difficulty

    Returns:
        Position code -> suggestions, sliced per SUGGESTION_SLOTS
    """
    if rank_key not in RANK_KEYS:
        raise ValueError(f"Unknown suggestion rank key: {rank_key}")
    difficulty_by_team = difficulty_by_team or {}

    suggestions: dict[str, list[TransferSuggestion]] = {}
    for position in POSITIONS:
        scored = []
        for player in pool.players.values():
            if player.position != position or player.id in exclude_ids:
                continue
            if player.status != STATUS_AVAILABLE:
                continue
            difficulty = difficulty_by_team.get(player.team_id, NEUTRAL_DIFFICULTY)
            scored.append((suggestion_score(player, rank_key, difficulty), difficulty, player))

        scored.sort(key=lambda item: (-item[0], -item[2].total_points, item[2].id))
        suggestions[position] = [
            TransferSuggestion(
                player_id=player.id,
                name=player.web_name,
                team=pool.team_name(player.team_id),
                position=player.position,
                image=player_image_url(player.code),
                form=player.form,
                total_points=player.total_points,
                price=player.now_cost / 10,
                fixture_difficulty=round(difficulty, 2),
                score=round(score, 2),
            )
            for score, difficulty, player in scored[: SUGGESTION_SLOTS[position]]
        ]
    return suggestions


# =============================================================================
# Captaincy options
# =============================================================================


def captaincy_options(squad: list[SquadPlayer], limit: int = 5) -> list[SquadPlayer]:
    """Squad players by form, then season points, best first."""
    return sorted(squad, key=lambda p: (-p.form, -p.total_points))[:limit]
