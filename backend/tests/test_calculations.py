"""Tests for the season fold in calculations.py.

Squad layout used throughout (slot == player id):

| Slots | Players        | Role          |
|-------|----------------|---------------|
| 1-11  | 1 GKP, 2-5 DEF, 6-10 MID, 11 FWD | Starting XI |
| 12-15 | 12 GKP, 13 DEF, 14 MID, 15 FWD   | Bench       |

Run with: python -m pytest tests/test_calculations.py -v
"""

import pytest

from fpl_stats.services.calculations import (
    Extreme,
    SeasonFold,
    captain_multiplier,
    fold_gameweek,
    fold_season,
    is_active,
    past_season_rank,
    rank_player_stats,
    round_points,
    summarize_positions,
    update_extremes,
)
from fpl_stats.services.fpl_client import ElementSummary, GameweekPicks, Pick, RoundScore
from fpl_stats.services.pool import Player

# =============================================================================
# Helper functions for creating test data
# =============================================================================

POSITION_BY_ID = {
    1: "GKP",
    2: "DEF", 3: "DEF", 4: "DEF", 5: "DEF",
    6: "MID", 7: "MID", 8: "MID", 9: "MID", 10: "MID",
    11: "FWD",
    12: "GKP", 13: "DEF", 14: "MID", 15: "FWD",
}  # fmt: skip

CAPTAIN_ID = 10


def make_player(player_id: int, position: str | None = None) -> Player:
    return Player(
        id=player_id,
        web_name=f"Player {player_id}",
        team_id=1,
        position=position or POSITION_BY_ID.get(player_id, "MID"),
        code=1000 + player_id,
        total_points=0,
        form=0.0,
        yellow_cards=0,
        red_cards=0,
        transfers_in_event=0,
        transfers_out_event=0,
        status="a",
    )


def make_pool(player_ids=range(1, 16)) -> dict[int, Player]:
    return {pid: make_player(pid) for pid in player_ids}


def make_picks(
    gameweek: int,
    player_ids=range(1, 16),
    captain_id: int | None = CAPTAIN_ID,
    chip: str | None = None,
) -> GameweekPicks:
    """Picks with slot == index + 1."""
    return GameweekPicks(
        gameweek=gameweek,
        active_chip=chip,
        picks=[
            Pick(
                player_id=pid,
                slot=slot,
                is_captain=pid == captain_id,
                is_vice_captain=False,
            )
            for slot, pid in enumerate(player_ids, start=1)
        ],
    )


def scenario_points(gameweeks=(1, 2)) -> dict[int, dict[int, int]]:
    """Starters score 2, the captain 4, bench players 1, 1, 2, 2 (6 total)."""
    points: dict[int, dict[int, int]] = {}
    bench = {12: 1, 13: 1, 14: 2, 15: 2}
    for pid in range(1, 16):
        if pid == CAPTAIN_ID:
            score = 4
        elif pid in bench:
            score = bench[pid]
        else:
            score = 2
        points[pid] = {gw: score for gw in gameweeks}
    return points


def history_rows(*ranks: int) -> list[dict]:
    return [
        {"event": gw, "points": 0, "overall_rank": rank}
        for gw, rank in enumerate(ranks, start=1)
    ]


# =============================================================================
# Small helpers
# =============================================================================


class TestCaptainMultiplier:
    def test_regular_captain_doubles(self):
        assert captain_multiplier(None) == 2
        assert captain_multiplier("bboost") == 2

    def test_triple_captain_triples(self):
        assert captain_multiplier("3xc") == 3


class TestIsActive:
    @pytest.mark.parametrize("slot", [1, 6, 11])
    def test_starting_xi_is_active(self, slot: int):
        pick = Pick(player_id=1, slot=slot, is_captain=False, is_vice_captain=False)
        assert is_active(pick, None)

    @pytest.mark.parametrize("slot", [12, 15])
    def test_bench_is_not_active(self, slot: int):
        pick = Pick(player_id=1, slot=slot, is_captain=False, is_vice_captain=False)
        assert not is_active(pick, None)
        assert not is_active(pick, "3xc")

    @pytest.mark.parametrize("slot", [12, 13, 14, 15])
    def test_bench_boost_activates_bench(self, slot: int):
        pick = Pick(player_id=1, slot=slot, is_captain=False, is_vice_captain=False)
        assert is_active(pick, "bboost")


class TestRoundPoints:
    def test_maps_round_to_points(self):
        summary = ElementSummary(
            player_id=1,
            history=[
                RoundScore(round=1, total_points=6),
                RoundScore(round=2, total_points=1),
            ],
        )

        assert round_points(summary) == {1: 6, 2: 1}

    def test_double_gameweek_is_summed(self):
        summary = ElementSummary(
            player_id=1,
            history=[
                RoundScore(round=5, total_points=6),
                RoundScore(round=5, total_points=3),
            ],
        )

        assert round_points(summary) == {5: 9}

    def test_empty_history(self):
        assert round_points(ElementSummary(player_id=1)) == {}


# =============================================================================
# Gameweek fold
# =============================================================================


class TestFoldGameweek:
    def test_points_conservation_without_bench_boost(self):
        """Active plus bench equals raw total when no captain multiplies anything."""
        points = scenario_points(gameweeks=(1,))
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(fold, make_picks(1, captain_id=None), points, make_pool())

        raw_total = sum(points[pid][1] for pid in range(1, 16))
        active_total = sum(s.total_points_active for s in fold.player_stats.values())
        assert gw_points == active_total
        assert active_total + fold.total_points_lost_on_bench == raw_total

    def test_captain_points_doubled(self):
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(fold, make_picks(1), scenario_points((1,)), make_pool())

        captain = fold.player_stats[CAPTAIN_ID]
        assert captain.total_points_active == 8
        assert captain.captain_points == 8
        assert fold.total_captaincy_points == 8
        # 10 starters on 2 plus the doubled captain
        assert gw_points == 10 * 2 + 8

    def test_triple_captain_tripled(self):
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(
            fold, make_picks(1, chip="3xc"), scenario_points((1,)), make_pool()
        )

        assert fold.player_stats[CAPTAIN_ID].total_points_active == 12
        assert fold.total_captaincy_points == 12
        assert gw_points == 10 * 2 + 12

    def test_bench_points_lost(self):
        fold = SeasonFold(current_gameweek=1)

        fold_gameweek(fold, make_picks(1), scenario_points((1,)), make_pool())

        assert fold.total_points_lost_on_bench == 6
        for pid in (12, 13, 14, 15):
            assert pid not in fold.player_stats

    def test_negative_bench_points_reduce_bench_loss(self):
        """A benched red card scores -1 and still counts toward bench points."""
        points = scenario_points(gameweeks=(1,))
        for pid in (12, 13, 14, 15):
            points[pid][1] = -1
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(fold, make_picks(1, captain_id=None), points, make_pool())

        raw_total = sum(points[pid][1] for pid in range(1, 16))
        assert fold.total_points_lost_on_bench == -4
        assert gw_points + fold.total_points_lost_on_bench == raw_total

    def test_bench_boost_counts_whole_squad(self):
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(
            fold, make_picks(1, chip="bboost"), scenario_points((1,)), make_pool()
        )

        assert fold.total_points_lost_on_bench == 0
        assert len(fold.player_stats) == 15
        assert gw_points == 10 * 2 + 8 + 6
        # Bench players count as in squad but did not start
        assert fold.player_stats[14].games_in_squad == 1
        assert fold.player_stats[14].starts == 0

    def test_starts_and_games_in_squad(self):
        fold = SeasonFold(current_gameweek=1)

        fold_gameweek(fold, make_picks(1), scenario_points((1,)), make_pool())

        assert fold.player_stats[1].starts == 1
        assert fold.player_stats[1].games_in_squad == 1

    def test_missing_round_counts_as_zero(self):
        fold = SeasonFold(current_gameweek=3)
        points = scenario_points(gameweeks=(1,))  # Nothing for GW3

        gw_points = fold_gameweek(fold, make_picks(3), points, make_pool())

        assert gw_points == 0
        assert fold.player_stats[1].games_in_squad == 1
        assert fold.player_stats[1].total_points_active == 0

    def test_unknown_player_is_skipped(self):
        """A pick for a player missing from the pool never appears anywhere."""
        pool = make_pool(range(1, 15))  # Player 15 missing
        points = scenario_points((1,))
        picks = make_picks(1, player_ids=[99, *range(2, 16)])  # 99 in slot 1

        fold = SeasonFold(current_gameweek=1)
        fold_gameweek(fold, picks, points, pool)

        assert 99 not in fold.player_stats
        assert all(99 not in bucket for bucket in fold.position_points.values())
        # Player 15 sat on the bench and is unknown: not counted as lost either
        assert fold.total_points_lost_on_bench == 1 + 1 + 2

    def test_position_points(self):
        fold = SeasonFold(current_gameweek=1)

        fold_gameweek(fold, make_picks(1), scenario_points((1,)), make_pool())

        assert fold.position_points["GKP"] == {1: 2}
        assert fold.position_points["DEF"] == {2: 2, 3: 2, 4: 2, 5: 2}
        assert fold.position_points["MID"][CAPTAIN_ID] == 8
        assert fold.position_points["FWD"] == {11: 2}

    def test_empty_pick_set(self):
        fold = SeasonFold(current_gameweek=1)

        gw_points = fold_gameweek(
            fold, GameweekPicks(gameweek=1, active_chip=None), {}, make_pool()
        )

        assert gw_points == 0
        assert fold.player_stats == {}
        assert fold.total_points_lost_on_bench == 0


# =============================================================================
# Extremes
# =============================================================================


class TestUpdateExtremes:
    def test_first_occurrence_wins_for_highest(self):
        fold = SeasonFold(current_gameweek=3)

        update_extremes(fold, 1, 50, 1000)
        update_extremes(fold, 2, 70, 900)
        update_extremes(fold, 3, 70, 800)

        assert fold.highest_points == Extreme(gameweek=2, value=70)

    def test_first_occurrence_wins_for_lowest(self):
        fold = SeasonFold(current_gameweek=3)

        update_extremes(fold, 1, 40, 1000)
        update_extremes(fold, 2, 40, 1000)
        update_extremes(fold, 3, 60, 1000)

        assert fold.lowest_points == Extreme(gameweek=1, value=40)
        assert fold.best_rank == Extreme(gameweek=1, value=1000)
        assert fold.worst_rank == Extreme(gameweek=1, value=1000)

    def test_best_rank_is_numerically_lowest(self):
        fold = SeasonFold(current_gameweek=3)

        update_extremes(fold, 1, 50, 500_000)
        update_extremes(fold, 2, 50, 120_000)
        update_extremes(fold, 3, 50, 800_000)

        assert fold.best_rank == Extreme(gameweek=2, value=120_000)
        assert fold.worst_rank == Extreme(gameweek=3, value=800_000)

    def test_unavailable_rank_is_ignored(self):
        fold = SeasonFold(current_gameweek=2)

        update_extremes(fold, 1, 50, 0)
        update_extremes(fold, 2, 50, 250_000)

        assert fold.best_rank == Extreme(gameweek=2, value=250_000)
        assert fold.worst_rank == Extreme(gameweek=2, value=250_000)


# =============================================================================
# Season fold
# =============================================================================


class TestFoldSeason:
    def test_two_gameweek_scenario(self):
        """GW1 normal with a benched 6 points, GW2 bench boost."""
        picks = {1: make_picks(1), 2: make_picks(2, chip="bboost")}

        fold = fold_season(2, picks, scenario_points(), make_pool(), history_rows(900, 700))

        gw1 = 10 * 2 + 8  # starters plus doubled captain
        gw2 = gw1 + 6  # bench boost adds the bench
        assert fold.weekly_points == [gw1, gw2]
        assert fold.weekly_ranks == [900, 700]
        assert fold.total_points_lost_on_bench == 6
        assert fold.total_captaincy_points == 16
        assert fold.player_stats[CAPTAIN_ID].total_points_active == 16
        assert fold.player_stats[1].games_in_squad == 2
        assert fold.player_stats[1].starts == 2
        assert fold.player_stats[12].games_in_squad == 1
        assert fold.highest_points == Extreme(gameweek=2, value=gw2)
        assert fold.lowest_points == Extreme(gameweek=1, value=gw1)
        assert fold.best_rank == Extreme(gameweek=2, value=700)
        assert fold.worst_rank == Extreme(gameweek=1, value=900)

    def test_highest_points_tie_keeps_earlier_gameweek(self):
        picks = {gw: make_picks(gw) for gw in (1, 2, 3)}

        fold = fold_season(
            3, picks, scenario_points((1, 2, 3)), make_pool(), history_rows(3, 2, 1)
        )

        assert fold.weekly_points[0] == fold.weekly_points[1] == fold.weekly_points[2]
        assert fold.highest_points.gameweek == 1
        assert fold.lowest_points.gameweek == 1

    def test_player_stats_accumulate_across_gameweeks(self):
        picks = {gw: make_picks(gw) for gw in (1, 2, 3)}

        fold = fold_season(
            3, picks, scenario_points((1, 2, 3)), make_pool(), history_rows(1, 1, 1)
        )

        assert fold.player_stats[2].total_points_active == 6
        assert fold.player_stats[2].starts == 3
        assert fold.position_points["DEF"][2] == 6

    def test_gameweeks_before_joining_are_zero(self):
        picks = {3: make_picks(3)}
        history = [{"event": 3, "points": 28, "overall_rank": 5_000_000}]

        fold = fold_season(3, picks, scenario_points((3,)), make_pool(), history)

        assert fold.weekly_points == [0, 0, 28]
        assert fold.weekly_ranks == [0, 0, 5_000_000]
        # Extremes only consider gameweeks the manager actually played
        assert fold.lowest_points == Extreme(gameweek=3, value=28)
        assert fold.best_rank == Extreme(gameweek=3, value=5_000_000)

    def test_missing_history_rank_is_zero(self):
        picks = {1: make_picks(1), 2: make_picks(2)}

        fold = fold_season(2, picks, scenario_points(), make_pool(), history_rows(1000))

        assert fold.weekly_ranks == [1000, 0]

    def test_fold_is_idempotent(self):
        picks = {1: make_picks(1), 2: make_picks(2, chip="bboost")}
        points = scenario_points()
        pool = make_pool()
        history = history_rows(900, 700)

        first = fold_season(2, picks, points, pool, history)
        second = fold_season(2, picks, points, pool, history)

        assert first == second

    def test_rank_player_stats_orders_by_points_then_id(self):
        picks = {1: make_picks(1)}

        fold = fold_season(1, picks, scenario_points((1,)), make_pool(), history_rows(1))
        ranked = rank_player_stats(fold.player_stats)

        assert ranked[0].player_id == CAPTAIN_ID
        assert [s.player_id for s in ranked[1:4]] == [1, 2, 3]


class TestSummarizePositions:
    def test_totals_and_top_scorer(self):
        fold = fold_season(
            1, {1: make_picks(1)}, scenario_points((1,)), make_pool(), history_rows(1)
        )

        summary = {s.position: s for s in summarize_positions(fold.position_points, make_pool())}

        assert list(summary) == ["GKP", "DEF", "MID", "FWD"]
        assert summary["DEF"].total_points == 8
        assert summary["MID"].total_points == 4 * 2 + 8
        assert summary["MID"].top_scorer.player_id == CAPTAIN_ID
        assert summary["MID"].top_scorer.image.endswith(f"/p{1000 + CAPTAIN_ID}.png")
        assert summary["MID"].players[0].points == 8

    def test_empty_position_has_no_top_scorer(self):
        summary = summarize_positions({"GKP": {}, "DEF": {}, "MID": {}, "FWD": {}}, {})

        assert all(s.total_points == 0 for s in summary)
        assert all(s.top_scorer is None for s in summary)


class TestPastSeasonRank:
    PAST = [
        {"season_name": "2022/23", "total_points": 2300, "rank": 400_000},
        {"season_name": "2023/24", "total_points": 2450, "rank": 150_000},
    ]

    def test_last_season(self):
        assert past_season_rank(self.PAST, 1) == 150_000

    def test_season_before_last(self):
        assert past_season_rank(self.PAST, 2) == 400_000

    def test_missing_season(self):
        assert past_season_rank(self.PAST, 3) is None
        assert past_season_rank([], 1) is None
