"""
Unit tests for achievement badges.
"""

import pytest

from americano.tournament.badges import BADGES, RARITY_COLORS, check_all_badges, check_badge_earned
from americano.tournament.elo import Tier, tier
from americano.tournament.models import Match
from americano.tournament.players import PlayerStats


def make_stats(rating=1500, **overrides):
    fields = dict(
        player_id="a",
        name="Josh",
        rating=rating,
        peak=rating,
        peak_date=None,
        rank=1,
        trend=0,
        tier=tier(rating),
        provisional=True,
        matches_for_rating=0,
    )
    fields.update(overrides)
    return PlayerStats(**fields)


def earned_ids(stats, match=None, already_earned=()):
    return [b.id for b in check_all_badges(stats, match, already_earned)]


class TestDefinitions:
    """Tests for the badge catalogue."""

    def test_ids_unique(self):
        ids = [b.id for b in BADGES]
        assert len(ids) == len(set(ids)) == 14

    def test_rarities_have_colors(self):
        for badge in BADGES:
            assert badge.rarity in RARITY_COLORS
            assert badge.to_dict()["color"] == RARITY_COLORS[badge.rarity]

    def test_unknown_badge(self):
        with pytest.raises(KeyError):
            check_badge_earned("nope", make_stats())


class TestConditions:
    """Tests for individual badge conditions."""

    def test_new_player_at_silver(self):
        """A fresh 1500 player already counts as Bronze and Silver."""
        assert earned_ids(make_stats()) == ["bronze_league", "silver_league"]

    def test_wood_player_has_nothing(self):
        assert earned_ids(make_stats(rating=1200)) == []

    def test_first_win(self):
        assert check_badge_earned("first_blood", make_stats(matches_won=1))
        assert not check_badge_earned("first_blood", make_stats(matches_won=2))

    def test_streaks(self):
        stats = make_stats(current_streak=5)
        assert check_badge_earned("hot_streak", stats)
        assert not check_badge_earned("unstoppable", stats)
        assert check_badge_earned("unstoppable", make_stats(current_streak=10))

    @pytest.mark.parametrize("rating,badge_id", [
        (1550, "golden_touch"),
        (1650, "platinum_elite"),
        (1800, "master_class"),
        (2000, "grandmaster"),
    ])
    def test_tier_badges(self, rating, badge_id):
        assert check_badge_earned(badge_id, make_stats(rating=rating))
        assert not check_badge_earned(badge_id, make_stats(rating=rating - 1))

    def test_tier_badges_follow_stats_tier(self):
        stats = make_stats(rating=1500, tier=Tier.GRANDMASTER)
        assert check_badge_earned("grandmaster", stats)

    def test_rating_milestones(self):
        assert check_badge_earned("century_maker", make_stats(rating=1600))
        assert not check_badge_earned("rising_star", make_stats(rating=1699))
        assert check_badge_earned("rising_star", make_stats(rating=1700))

    def test_participation(self):
        assert check_badge_earned("century_club", make_stats(matches_played=100))
        assert check_badge_earned("tournament_regular", make_stats(tournaments_played=10))
        assert not check_badge_earned("tournament_regular", make_stats(tournaments_played=9))

    def test_perfect_victory_needs_match(self):
        win = Match(id=1, teams=(("b", "c"), ("a", "d")), score=[0, 4], completed=True)
        loss = Match(id=2, teams=(("a", "b"), ("c", "d")), score=[0, 4], completed=True)
        other = Match(id=3, teams=(("b", "c"), ("d", "e")), score=[4, 0], completed=True)

        stats = make_stats()
        assert not check_badge_earned("perfect_victory", stats)
        assert check_badge_earned("perfect_victory", stats, win)
        assert not check_badge_earned("perfect_victory", stats, loss)
        assert not check_badge_earned("perfect_victory", stats, other)


class TestCheckAll:
    """Tests for collecting newly earned badges."""

    def test_skips_already_earned(self):
        stats = make_stats(rating=1560, matches_won=1)
        assert earned_ids(stats) == ["first_blood", "bronze_league", "silver_league", "golden_touch"]
        assert earned_ids(stats, already_earned=["bronze_league", "silver_league"]) == [
            "first_blood", "golden_touch",
        ]
