"""Analysis API response schemas.

These Pydantic models are used for API serialization. They are populated
directly from the service dataclasses using
model_validate(obj, from_attributes=True) and serialized with camelCase
keys for the front-end.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FixtureResponse(CamelModel):
    """An upcoming fixture from a player's point of view."""

    opponent: str
    is_home: bool
    difficulty: int
    gameweek: int | None = None


class ChipResponse(CamelModel):
    name: str
    gameweek: int


class ManagerInfoResponse(CamelModel):
    """Manager summary card."""

    manager_id: int
    name: str
    team_name: str
    current_gameweek: int
    total_points: int
    overall_rank: int | None
    average_points: float
    total_captaincy_points: int
    total_points_lost_on_bench: int
    point_difference: int | None
    highest_points: int | None
    highest_points_gw: int | None = Field(alias="highestPointsGW")
    lowest_points: int | None
    lowest_points_gw: int | None = Field(alias="lowestPointsGW")
    highest_rank: int | None
    highest_rank_gw: int | None = Field(alias="highestRankGW")
    lowest_rank: int | None
    lowest_rank_gw: int | None = Field(alias="lowestRankGW")
    last_season_rank: int | None
    season_before_last_rank: int | None
    chips_used: list[ChipResponse]


class PlayerStatResponse(CamelModel):
    """A player's season contribution to the manager."""

    player_id: int
    name: str
    team: str
    position: str
    image: str
    total_points_active: int
    games_in_squad: int = Field(ge=0)
    starts: int = Field(ge=0)
    captain_points: int


class PositionPlayerResponse(CamelModel):
    player_id: int
    name: str
    points: int
    image: str


class PositionSummaryResponse(CamelModel):
    position: str
    total_points: int
    players: list[PositionPlayerResponse]
    top_scorer: PositionPlayerResponse | None


class SquadPlayerResponse(CamelModel):
    """A pick in the manager's current squad."""

    player_id: int
    name: str
    team: str
    position: str
    slot: int
    is_captain: bool
    is_vice_captain: bool
    form: float
    total_points: int
    image: str
    last_3_gw_points: int = Field(alias="last3GWPoints")
    next_fixtures: list[FixtureResponse]


class TransferTrendResponse(CamelModel):
    player_id: int
    name: str
    team: str
    position: str
    image: str
    transfers: int


class TransferTrendsResponse(CamelModel):
    most_transferred_in: list[TransferTrendResponse]
    most_transferred_out: list[TransferTrendResponse]


class TransferSuggestionResponse(CamelModel):
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


class ManagerAnalysisResponse(CamelModel):
    """Response for GET /api/analyze-manager/{manager_id}."""

    manager_info: ManagerInfoResponse
    weekly_points: list[int]
    weekly_ranks: list[int]
    player_stats: list[PlayerStatResponse]
    position_summary: list[PositionSummaryResponse]
    current_team: list[SquadPlayerResponse]
    captaincy_options: list[SquadPlayerResponse]
    transfer_trends: TransferTrendsResponse
    transfer_suggestions: dict[str, list[TransferSuggestionResponse]]
    image_fallback: str


class WatchlistPlayerResponse(CamelModel):
    player_id: int
    name: str
    team: str
    position: str
    image: str
    yellow_cards: int
    red_cards: int
    status: str
    next_fixtures: list[FixtureResponse]


class SuspensionWatchlistResponse(CamelModel):
    """Response for GET /api/suspension-watchlist."""

    suspended: list[WatchlistPlayerResponse]
    yellow_card_risk: list[WatchlistPlayerResponse]
    image_fallback: str


class LeagueLeaderResponse(CamelModel):
    """A row of GET /api/league-leaders."""

    rank: int
    team_name: str
    manager_name: str
    total_points: int
    last_rank: int
    gameweek_points: int
