"""Shared pytest fixtures for backend tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from fpl_stats.config import get_settings
from fpl_stats.main import app


@pytest.fixture
async def async_client():
    """Async HTTP client for testing the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def _clear_overrides():
    """Reset dependency overrides and cached settings between tests."""
    yield
    app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def sample_bootstrap_response() -> dict:
    """Minimal bootstrap-static payload: three teams, five players, GW2 current."""
    return {
        "teams": [
            {"id": 1, "name": "Arsenal", "short_name": "ARS"},
            {"id": 12, "name": "Liverpool", "short_name": "LIV"},
            {"id": 13, "name": "Man City", "short_name": "MCI"},
        ],
        "elements": [
            {
                "id": 427,
                "web_name": "Salah",
                "team": 12,
                "element_type": 3,
                "code": 118748,
                "total_points": 150,
                "form": "9.5",
                "yellow_cards": 2,
                "red_cards": 0,
                "transfers_in_event": 50000,
                "transfers_out_event": 1000,
                "status": "a",
                "now_cost": 134,
            },
            {
                "id": 355,
                "web_name": "Haaland",
                "team": 13,
                "element_type": 4,
                "code": 223094,
                "total_points": 120,
                "form": "7.0",
                "yellow_cards": 4,
                "red_cards": 0,
                "transfers_in_event": 20000,
                "transfers_out_event": 80000,
                "status": "a",
                "now_cost": 150,
            },
            {
                "id": 1,
                "web_name": "Raya",
                "team": 1,
                "element_type": 1,
                "code": 154561,
                "total_points": 80,
                "form": "4.0",
                "yellow_cards": 0,
                "red_cards": 1,
                "transfers_in_event": 3000,
                "transfers_out_event": 2000,
                "status": "a",
                "now_cost": 55,
            },
            {
                "id": 5,
                "web_name": "Gabriel",
                "team": 1,
                "element_type": 2,
                "code": 226597,
                "total_points": 90,
                "form": "6.0",
                "yellow_cards": 9,
                "red_cards": 0,
                "transfers_in_event": 9000,
                "transfers_out_event": 500,
                "status": "a",
                "now_cost": 62,
            },
            {
                "id": 20,
                "web_name": "Rodri",
                "team": 13,
                "element_type": 3,
                "code": 220566,
                "total_points": 10,
                "form": "0.0",
                "yellow_cards": 3,
                "red_cards": 0,
                "transfers_in_event": 0,
                "transfers_out_event": 40000,
                "status": "s",
                "now_cost": 60,
            },
        ],
        "events": [
            {"id": 1, "is_current": False, "finished": True},
            {"id": 2, "is_current": True, "finished": False},
            {"id": 3, "is_current": False, "finished": False},
        ],
    }


@pytest.fixture
def sample_entry_response() -> dict:
    """Sample entry/{id}/ payload."""
    return {
        "id": 12345,
        "name": "Test FC",
        "player_first_name": "Test",
        "player_last_name": "Manager",
        "started_event": 1,
        "summary_overall_points": 120,
        "summary_overall_rank": 250000,
    }


@pytest.fixture
def sample_history_response() -> dict:
    """Sample entry/{id}/history/ payload."""
    return {
        "current": [
            {"event": 1, "points": 60, "total_points": 60, "overall_rank": 500000},
            {"event": 2, "points": 60, "total_points": 120, "overall_rank": 250000},
        ],
        "past": [
            {"season_name": "2022/23", "total_points": 2300, "rank": 400000},
            {"season_name": "2023/24", "total_points": 2450, "rank": 150000},
        ],
        "chips": [{"name": "bboost", "time": "2024-08-24T10:00:00Z", "event": 2}],
    }


@pytest.fixture
def sample_picks_response() -> dict:
    """Sample entry/{id}/event/{gw}/picks/ payload."""
    return {
        "active_chip": None,
        "picks": [
            {"element": 427, "position": 1, "multiplier": 2, "is_captain": True, "is_vice_captain": False},
            {"element": 355, "position": 12, "multiplier": 0, "is_captain": False, "is_vice_captain": True},
        ],
    }  # fmt: skip


@pytest.fixture
def sample_element_summary_response() -> dict:
    """Sample element-summary/{id}/ payload."""
    return {
        "fixtures": [
            {"event": 3, "team_h": 12, "team_a": 1, "is_home": True, "difficulty": 4, "kickoff_time": None},
            {"event": 4, "team_h": 13, "team_a": 12, "is_home": False, "difficulty": 5, "kickoff_time": None},
        ],
        "history": [
            {"round": 1, "total_points": 8, "opponent_team": 1, "was_home": True, "minutes": 90},
            {"round": 2, "total_points": 15, "opponent_team": 13, "was_home": False, "minutes": 90},
        ],
    }  # fmt: skip


@pytest.fixture
def sample_league_response() -> dict:
    """Sample leagues-classic/{id}/standings/ payload."""
    return {
        "league": {"id": 314, "name": "Overall"},
        "standings": {
            "has_next": True,
            "results": [
                {
                    "entry": 1,
                    "entry_name": "Top Team",
                    "player_name": "Leader Person",
                    "rank": 1,
                    "last_rank": 2,
                    "total": 180,
                    "event_total": 95,
                },
                {
                    "entry": 2,
                    "entry_name": "Second Team",
                    "player_name": "Runner Up",
                    "rank": 2,
                    "last_rank": 1,
                    "total": 175,
                    "event_total": 70,
                },
            ],
        },
    }
