"""
Unit tests for the Elo rating engine.
"""

import pytest

from americano.tournament.elo import (
    Tier,
    apply_rating_update,
    compute_match_deltas,
    expected_score,
    initial_elo_state,
    k_factor,
    rating_change,
    rating_rank,
    round_half_up,
    score_multiplier,
    tier,
    tier_color,
    tier_display_name,
    tier_thresholds,
    trend,
)
from americano.tournament.models import EloHistoryEntry, EloState, Match


def make_match(score, teams=(("a", "b"), ("c", "d")), match_id=1):
    return Match(id=match_id, teams=teams, score=list(score), completed=True)


def history_of(changes):
    return tuple(
        EloHistoryEntry(date=i, rating=1500, change=c, match_id=i)
        for i, c in enumerate(changes)
    )


class TestExpectedScore:
    """Tests for the logistic expected score."""

    @pytest.mark.parametrize("rating", [0, 1000, 1500, 2345.5])
    def test_equal_ratings(self, rating):
        """Equal ratings give an even chance."""
        assert expected_score(rating, rating) == pytest.approx(0.5)

    def test_symmetric(self):
        """Expected scores of both sides sum to 1."""
        assert expected_score(1620, 1410) + expected_score(1410, 1620) == pytest.approx(1.0)

    def test_higher_rating_favoured(self):
        """200 point advantage -> ~76% expected."""
        expected = expected_score(1700, 1500)
        assert 0.75 < expected < 0.77


class TestKFactor:
    """Tests for the experience-based K-factor."""

    def test_steps(self):
        assert k_factor(0) == 32
        assert k_factor(19) == 32
        assert k_factor(20) == 24
        assert k_factor(99) == 24
        assert k_factor(100) == 16
        assert k_factor(1000) == 16


class TestScoreMultiplier:
    """Tests for the margin of victory multiplier."""

    def test_draw_floor(self):
        assert score_multiplier(0) == pytest.approx(0.55)

    def test_single_point(self):
        assert score_multiplier(1) == pytest.approx(0.85)

    def test_capped_at_five(self):
        """Margins above 5 count as 5."""
        assert score_multiplier(5) == pytest.approx(2.05)
        assert score_multiplier(100) == pytest.approx(2.05)


class TestRounding:
    """Halves round toward positive infinity."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(-2.6) == -3
        assert round_half_up(13.6) == 14


class TestComputeMatchDeltas:
    """Tests for per-player rating changes of a doubles match."""

    def test_four_nil_between_new_players(self):
        """Equal teams, K=32, 4-0: winners +28, losers -28."""
        deltas = compute_match_deltas(make_match([4, 0]), {}, {})

        assert deltas.expected_outcome == pytest.approx(0.5)
        assert deltas.mov == 4
        assert deltas.score_multiplier == pytest.approx(1.75)
        assert deltas.changes == {"a": 28, "b": 28, "c": -28, "d": -28}

    def test_close_win(self):
        """Equal teams, K=32, 4-3: winners +14, losers -14."""
        deltas = compute_match_deltas(make_match([4, 3]), {}, {})

        assert deltas.mov == 1
        assert deltas.score_multiplier == pytest.approx(0.85)
        assert deltas.changes == {"a": 14, "b": 14, "c": -14, "d": -14}

    def test_team_two_wins(self):
        deltas = compute_match_deltas(make_match([1, 3]), {}, {})
        assert deltas.changes["a"] < 0
        assert deltas.changes["c"] > 0

    def test_draw_between_equal_teams(self):
        """A draw between equal teams moves nobody."""
        deltas = compute_match_deltas(make_match([3, 3]), {}, {})
        assert deltas.mov == 0
        assert set(deltas.changes.values()) == {0}

    def test_missing_lookups_use_defaults(self):
        """Players without a rating start at 1500 with zero matches."""
        deltas = compute_match_deltas(make_match([4, 0]))

        assert deltas.before_ratings == {"a": 1500, "b": 1500, "c": 1500, "d": 1500}
        assert deltas.team_elos == (1500, 1500)

    def test_each_player_uses_own_k_factor(self):
        """Teammates with different experience move different amounts."""
        counts = {"a": 0, "b": 50, "c": 150}
        deltas = compute_match_deltas(make_match([4, 0]), {}, counts)

        assert deltas.changes["a"] == 28   # K=32
        assert deltas.changes["b"] == 21   # K=24: 24 * 0.5 * 1.75
        assert deltas.changes["c"] == -14  # K=16
        assert deltas.changes["d"] == -28  # default count 0 -> K=32

    def test_team_averages(self):
        ratings = {"a": 1600, "b": 1400, "c": 1700, "d": 1500}
        deltas = compute_match_deltas(make_match([2, 1]), ratings, {})
        assert deltas.team_elos == (1500, 1600)
        assert deltas.expected_outcome == pytest.approx(expected_score(1500, 1600))

    def test_upset_moves_more(self):
        """An underdog win earns more than an even win."""
        ratings = {"a": 1400, "b": 1400, "c": 1600, "d": 1600}
        deltas = compute_match_deltas(make_match([4, 0]), ratings, {})

        # 32 * (1 - 0.2403) * 1.75 = 42.55
        assert deltas.changes["a"] == 43
        assert deltas.changes["c"] == -43

    def test_after_is_before_plus_change(self):
        ratings = {"a": 1510, "b": 1490, "c": 1620, "d": 1380}
        deltas = compute_match_deltas(make_match([5, 2]), ratings, {})
        for pid in "abcd":
            assert deltas.after_ratings[pid] == deltas.before_ratings[pid] + deltas.changes[pid]

    def test_inputs_not_mutated(self):
        ratings = {"a": 1510, "b": 1490}
        counts = {"a": 3}
        match = make_match([4, 1])
        compute_match_deltas(match, ratings, counts)

        assert ratings == {"a": 1510, "b": 1490}
        assert counts == {"a": 3}
        assert match.score == [4, 1]

    def test_invalid_score_raises(self):
        match = make_match([4, 1])
        match.score = [4, "1"]
        with pytest.raises(ValueError):
            compute_match_deltas(match, {}, {})


class TestApplyRatingUpdate:
    """Tests for the rating state transition."""

    def test_initial_state(self):
        state = initial_elo_state()
        assert state.current == 1500
        assert state.peak == 1500
        assert state.peak_date is None
        assert state.history == ()
        assert state.provisional is True
        assert state.matches_for_rating == 0

    def test_single_update(self):
        state = initial_elo_state()
        new_state = apply_rating_update(state, 28, match_id=7, timestamp=1000)

        assert new_state.current == 1528
        assert new_state.peak == 1528
        assert new_state.peak_date == 1000
        assert new_state.matches_for_rating == 1
        assert new_state.provisional is True
        assert new_state.history == (EloHistoryEntry(date=1000, rating=1528, change=28, match_id=7),)

    def test_input_state_untouched(self):
        state = initial_elo_state()
        apply_rating_update(state, 28, match_id=7, timestamp=1000)
        assert state.current == 1500
        assert state.history == ()

    def test_loss_keeps_peak(self):
        state = apply_rating_update(initial_elo_state(), -14, match_id=1, timestamp=10)
        assert state.current == 1486
        assert state.peak == 1500
        assert state.peak_date is None

    def test_sequence_sums_and_tracks_peak(self):
        """Current is the initial rating plus all deltas; peak is the running max."""
        deltas = [10, -5, 20, -30, 3]
        state = initial_elo_state()
        for i, delta in enumerate(deltas):
            state = apply_rating_update(state, delta, match_id=i, timestamp=100 + i)

        assert state.current == 1500 + sum(deltas)
        assert state.peak == 1525
        assert state.peak_date == 102
        assert [e.change for e in state.history] == deltas
        assert state.matches_for_rating == len(deltas)

    def test_provisional_ends_at_twenty(self):
        state = initial_elo_state()
        for i in range(19):
            state = apply_rating_update(state, 0, match_id=i, timestamp=i)
        assert state.provisional is True

        state = apply_rating_update(state, 0, match_id=19, timestamp=19)
        assert state.provisional is False
        assert state.matches_for_rating == 20


class TestTier:
    """Tests for rating tiers."""

    def test_boundaries(self):
        assert tier(1299) == Tier.WOOD
        assert tier(1300) == Tier.BRONZE
        assert tier(1449) == Tier.BRONZE
        assert tier(1450) == Tier.SILVER
        assert tier(1550) == Tier.GOLD
        assert tier(1650) == Tier.PLATINUM
        assert tier(1800) == Tier.MASTER
        assert tier(1999) == Tier.MASTER
        assert tier(2000) == Tier.GRANDMASTER

    def test_extremes(self):
        assert tier(-50) == Tier.WOOD
        assert tier(3500) == Tier.GRANDMASTER

    def test_display(self):
        """Platinum is shown as Diamond."""
        assert tier_display_name(Tier.PLATINUM) == "Diamond"
        assert tier_display_name("wood") == "Wood"
        assert tier_color(Tier.GOLD) == "#ffd700"

    def test_thresholds_cover_all_tiers(self):
        thresholds = tier_thresholds()
        assert [t["tier"] for t in thresholds] == [t.value for t in Tier]
        assert thresholds[0]["maxThreshold"] == 1299
        assert thresholds[-1]["threshold"] == 2000
        assert thresholds[-1]["maxThreshold"] is None


class TestTrend:
    """Tests for recent form."""

    def test_empty_history(self):
        assert trend(()) == 0

    def test_mean_of_recent(self):
        assert trend(history_of([10, 20, -5])) == 8

    def test_window(self):
        """Only the last N entries count."""
        changes = [100, 100, 1, 2, 3, 4, 5]
        assert trend(history_of(changes)) == 3
        assert trend(history_of(changes), last_n=2) == 5

    def test_halves_round_up(self):
        assert trend(history_of([-5, 20]), last_n=2) == 8
        assert trend(history_of([-3, -4])) == -3

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            trend(history_of([1]), last_n=0)


class TestHelpers:
    """Tests for the single-player change and ranking helpers."""

    def test_rating_change(self):
        assert rating_change(1500, 1500, 1.0, 32) == 16
        assert rating_change(1500, 1500, 0.0, 32) == -16
        assert rating_change(1500, 1500, 1.0, 32, multiplier=1.75) == 28

    def test_rating_rank(self):
        ratings = [1500, 1620, 1480, 1620]
        assert rating_rank(1620, ratings) == 1
        assert rating_rank(1500, ratings) == 3
        assert rating_rank(1480, ratings) == 4

    def test_state_is_frozen(self):
        state = EloState()
        with pytest.raises(AttributeError):
            state.current = 1600
