"""Static player pool: players, teams and gameweeks from bootstrap-static.

The pool is fetched once per request and never cached across requests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from fpl_stats.config import get_settings
from fpl_stats.services.fpl_client import _safe_float, _safe_int

logger = logging.getLogger(__name__)

# FPL element_type -> position code
POSITION_GKP = "GKP"
POSITION_DEF = "DEF"
POSITION_MID = "MID"
POSITION_FWD = "FWD"
POSITIONS = (POSITION_GKP, POSITION_DEF, POSITION_MID, POSITION_FWD)
ELEMENT_TYPE_POSITIONS = {1: POSITION_GKP, 2: POSITION_DEF, 3: POSITION_MID, 4: POSITION_FWD}

# Player availability status flags
STATUS_AVAILABLE = "a"
STATUS_SUSPENDED = "s"
STATUS_RED_CARD = "r"

MISSING_PHOTO = "Photo-Missing.png"


class NoCurrentGameweekError(Exception):
    """Raised when no gameweek is in progress or finished (pre-season)."""


@dataclass(slots=True)
class Team:
    """A Premier League club."""

    id: int
    name: str
    short_name: str


@dataclass(slots=True)
class Player:
    """A player from the bootstrap-static elements array."""

    id: int
    web_name: str
    team_id: int
    position: str
    code: int  # Opaque photo code
    total_points: int
    form: float
    yellow_cards: int
    red_cards: int
    transfers_in_event: int
    transfers_out_event: int
    status: str
    now_cost: int = 0


@dataclass(slots=True)
class Event:
    """A gameweek."""

    id: int
    is_current: bool
    finished: bool


@dataclass
class Pool:
    """Players, teams and gameweeks keyed by id."""

    players: dict[int, Player] = field(default_factory=dict)
    teams: dict[int, Team] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)

    def team_name(self, team_id: int) -> str:
        team = self.teams.get(team_id)
        return team.name if team else ""

    def team_short_name(self, team_id: int) -> str:
        team = self.teams.get(team_id)
        return team.short_name if team else ""


def parse_pool(data: dict[str, Any]) -> Pool:
    """Build a Pool from a raw bootstrap-static response.

    Elements with an unknown element_type are dropped; they cannot be
    placed in any position bucket.
    """
    teams = {
        _safe_int(t.get("id")): Team(
            id=_safe_int(t.get("id")),
            name=t.get("name", ""),
            short_name=t.get("short_name", ""),
        )
        for t in data.get("teams", [])
    }

    players: dict[int, Player] = {}
    for e in data.get("elements", []):
        position = ELEMENT_TYPE_POSITIONS.get(_safe_int(e.get("element_type")))
        if position is None:
            logger.debug(f"Skipping element {e.get('id')} with unknown element_type")
            continue
        player = Player(
            id=_safe_int(e.get("id")),
            web_name=e.get("web_name", ""),
            team_id=_safe_int(e.get("team")),
            position=position,
            code=_safe_int(e.get("code")),
            total_points=_safe_int(e.get("total_points")),
            form=_safe_float(e.get("form")),
            yellow_cards=_safe_int(e.get("yellow_cards")),
            red_cards=_safe_int(e.get("red_cards")),
            transfers_in_event=_safe_int(e.get("transfers_in_event")),
            transfers_out_event=_safe_int(e.get("transfers_out_event")),
            status=e.get("status") or STATUS_AVAILABLE,
            now_cost=_safe_int(e.get("now_cost")),
        )
        players[player.id] = player

    events = [
        Event(
            id=_safe_int(ev.get("id")),
            is_current=bool(ev.get("is_current")),
            finished=bool(ev.get("finished")),
        )
        for ev in data.get("events", [])
    ]

    return Pool(players=players, teams=teams, events=events)


def find_current_gameweek(events: list[Event]) -> int:
    """Return the gameweek in progress, or the latest finished one between rounds.

    Raises:
        NoCurrentGameweekError: If no event is current or finished (pre-season)
    """
    for event in events:
        if event.is_current:
            return event.id

    finished = [event.id for event in events if event.finished]
    if not finished:
        raise NoCurrentGameweekError(
            "No gameweek is in progress or finished yet - the season has not started"
        )
    return max(finished)


def player_image_url(code: int) -> str:
    """Photo URL for a player's opaque image code."""
    return f"{get_settings().player_image_base_url}/p{code}.png"


def player_image_fallback_url() -> str:
    """Photo URL the front-end falls back to when a player photo 404s."""
    return f"{get_settings().player_image_base_url}/{MISSING_PHOTO}"
