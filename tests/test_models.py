"""
Tests for the tournament data structures.
"""

import pytest

from americano.tournament.elo import apply_rating_update, compute_match_deltas
from americano.tournament.models import (
    EloState,
    Match,
    MatchDeltas,
    Player,
    Round,
    validate_score,
    validate_teams,
)


class TestValidation:
    """Tests for team and score validation."""

    def test_valid_teams(self):
        teams = validate_teams([["a", "b"], ["c", "d"]])
        assert teams == (("a", "b"), ("c", "d"))

    @pytest.mark.parametrize("teams", [
        [["a", "b"]],
        [["a", "b"], ["c", "d"], ["e", "f"]],
        [["a"], ["c", "d"]],
        [["a", "b", "x"], ["c", "d"]],
        [["a", "b"], ["a", "d"]],
        [["a", "a"], ["c", "d"]],
    ])
    def test_invalid_teams(self, teams):
        with pytest.raises(ValueError):
            validate_teams(teams)

    def test_valid_score(self):
        assert validate_score((4, 0)) == [4, 0]

    @pytest.mark.parametrize("score", [
        [4],
        [1, 2, 3],
        [-1, 2],
        [1.5, 2],
        ["4", 2],
        [True, 0],
    ])
    def test_invalid_score(self, score):
        with pytest.raises(ValueError):
            validate_score(score)


class TestMatch:
    """Tests for the Match record."""

    def test_defaults(self):
        match = Match(id=1, teams=[["a", "b"], ["c", "d"]])
        assert match.teams == (("a", "b"), ("c", "d"))
        assert match.score == [0, 0]
        assert match.completed is False
        assert match.skipped is False

    def test_completed_and_skipped_rejected(self):
        with pytest.raises(ValueError):
            Match(id=1, teams=(("a", "b"), ("c", "d")), completed=True, skipped=True)

    def test_players_and_team_index(self):
        match = Match(id=1, teams=(("a", "b"), ("c", "d")), score=[4, 1])
        assert match.players == ["a", "b", "c", "d"]
        assert match.team_index("b") == 0
        assert match.team_index("d") == 1
        assert match.mov == 3
        with pytest.raises(KeyError):
            match.team_index("z")

    def test_has_partners(self):
        match = Match(id=1, teams=(("a", "b"), ("c", "d")))
        assert match.has_partners("a", "b")
        assert match.has_partners("d", "c")
        assert not match.has_partners("a", "c")

    def test_to_dict_keys(self):
        match = Match(id=5, teams=(("a", "b"), ("c", "d")), score=[4, 2])
        data = match.to_dict()

        assert data == {
            "id": 5,
            "teams": [["a", "b"], ["c", "d"]],
            "players": ["a", "b", "c", "d"],
            "score": [4, 2],
            "completed": False,
            "skipped": False,
        }

    def test_recorded_round_trip(self):
        """A recorded match keeps its tournament, date and rating data."""
        match = Match(id=5, teams=(("a", "b"), ("c", "d")), score=[4, 2], completed=True)
        match.elo_data = compute_match_deltas(match)
        match.tournament_id = "tourney_x"
        match.date = 1700000000000

        data = match.to_dict()
        assert data["tournamentId"] == "tourney_x"
        assert set(data["eloData"]) == {
            "beforeRatings", "afterRatings", "changes", "teamElos",
            "expectedOutcome", "scoreMultiplier", "mov",
        }

        restored = Match.from_dict(data)
        assert restored == match
        assert isinstance(restored.elo_data, MatchDeltas)


class TestPlayer:
    """Tests for Player and its rating state."""

    def test_new_player_defaults(self):
        player = Player(id="p1", name="Josh")
        assert player.elo == EloState()
        assert player.elo.current == 1500

    def test_round_trip_with_history(self):
        state = apply_rating_update(EloState(), 28, match_id=3, timestamp=1000)
        player = Player(id="p1", name="Josh", elo=state, created_at=999)

        data = player.to_dict()
        assert data["eloState"]["peakDate"] == 1000
        assert data["eloState"]["matchesForRating"] == 1
        assert data["eloState"]["history"] == [
            {"date": 1000, "rating": 1528, "change": 28, "matchId": 3}
        ]
        assert data["createdAt"] == 999

        assert Player.from_dict(data) == player

    def test_from_dict_without_elo_state(self):
        player = Player.from_dict({"id": "p1", "name": "Josh"})
        assert player.elo == EloState()
        assert player.created_at is None


class TestRound:
    """Tests for Round."""

    def test_complete(self):
        m1 = Match(id=1, teams=(("a", "b"), ("c", "d")))
        m2 = Match(id=2, teams=(("e", "f"), ("g", "h")))
        round_ = Round(round_number=1, matches=[m1, m2], sit_outs=[])
        assert not round_.complete

        m1.completed = True
        m2.skipped = True
        assert round_.complete

    def test_empty_round_not_complete(self):
        assert not Round(round_number=1, matches=[], sit_outs=[]).complete

    def test_round_trip(self):
        round_ = Round(
            round_number=2,
            matches=[Match(id=1, teams=(("a", "b"), ("c", "d")))],
            sit_outs=[Player(id="e", name="Eve")],
        )
        data = round_.to_dict()
        assert data["roundNumber"] == 2
        assert data["sitOuts"][0]["id"] == "e"
        assert Round.from_dict(data) == round_
