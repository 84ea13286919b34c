"""
Data structures for players, matches, rounds and rating state.

Every record converts to the camelCase JSON shape used by the persistence
layer (see TournamentStorage) and back without losing information:
- Player / EloState / EloHistoryEntry: the roster and each player's rating
- Match / Round: what the scheduler produces and the controller scores
- MatchDeltas: the read-only result of a rating computation
"""
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Sequence, Tuple

from americano.utils.constants import (
    STARTING_ELO,
    PLAYERS_PER_MATCH,
    PLAYERS_PER_TEAM,
)


Team = Tuple[str, str]


def validate_teams(teams: Sequence[Sequence[str]]) -> Tuple[Team, Team]:
    """
    Check that a match has two teams of two distinct players.

    Args:
        teams: Two sequences of player ids

    Returns:
        The teams as a tuple of tuples

    Raises:
        ValueError: If the team layout is malformed or an id repeats
    """
    if len(teams) != 2:
        raise ValueError(f"A match needs exactly 2 teams, got {len(teams)}")
    for team in teams:
        if len(team) != PLAYERS_PER_TEAM:
            raise ValueError(
                f"Each team needs exactly {PLAYERS_PER_TEAM} players, got {list(team)}"
            )

    player_ids = [pid for team in teams for pid in team]
    if len(set(player_ids)) != PLAYERS_PER_MATCH:
        raise ValueError(f"Match players must be {PLAYERS_PER_MATCH} distinct ids, got {player_ids}")

    return (tuple(teams[0]), tuple(teams[1]))


def validate_score(score: Sequence[int]) -> List[int]:
    """
    Check that a score is two non-negative integers.

    Raises:
        ValueError: If the score has the wrong length or a bad value
    """
    if len(score) != 2:
        raise ValueError(f"A score needs exactly 2 values, got {list(score)}")
    for value in score:
        # bool is an int subclass but never a valid score
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Scores must be integers, got {value!r}")
        if value < 0:
            raise ValueError(f"Scores must be non-negative, got {value}")
    return list(score)


@dataclass(frozen=True)
class EloHistoryEntry:
    """One rated match in a player's rating history."""
    date: Optional[int]
    rating: int
    change: int
    match_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "rating": self.rating,
            "change": self.change,
            "matchId": self.match_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EloHistoryEntry':
        return cls(
            date=data.get("date"),
            rating=data["rating"],
            change=data.get("change", 0),
            match_id=data.get("matchId"),
        )


@dataclass(frozen=True)
class EloState:
    """
    A player's rating state.

    Frozen: the only way to move a rating is
    americano.tournament.elo.apply_rating_update, which returns a new state.
    """
    current: int = STARTING_ELO
    peak: int = STARTING_ELO
    peak_date: Optional[int] = None
    history: Tuple[EloHistoryEntry, ...] = ()
    provisional: bool = True
    matches_for_rating: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "current": self.current,
            "peak": self.peak,
            "peakDate": self.peak_date,
            "history": [entry.to_dict() for entry in self.history],
            "provisional": self.provisional,
            "matchesForRating": self.matches_for_rating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EloState':
        """Create from dictionary."""
        current = data.get("current", STARTING_ELO)
        return cls(
            current=current,
            peak=data.get("peak", current),
            peak_date=data.get("peakDate"),
            history=tuple(EloHistoryEntry.from_dict(e) for e in data.get("history", [])),
            provisional=data.get("provisional", True),
            matches_for_rating=data.get("matchesForRating", 0),
        )


@dataclass
class Player:
    """A registered player."""
    id: str
    name: str
    elo: EloState = field(default_factory=EloState)
    created_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "eloState": self.elo.to_dict(),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        elo_data = data.get("eloState")
        return cls(
            id=data["id"],
            name=data["name"],
            elo=EloState.from_dict(elo_data) if elo_data else EloState(),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class MatchDeltas:
    """Rating changes computed for one match. Never mutates any player."""
    before_ratings: Dict[str, float]
    after_ratings: Dict[str, float]
    changes: Dict[str, int]
    team_elos: Tuple[float, float]
    expected_outcome: float  # Expected score of team 0
    score_multiplier: float
    mov: int  # Margin of victory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beforeRatings": dict(self.before_ratings),
            "afterRatings": dict(self.after_ratings),
            "changes": dict(self.changes),
            "teamElos": list(self.team_elos),
            "expectedOutcome": self.expected_outcome,
            "scoreMultiplier": self.score_multiplier,
            "mov": self.mov,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchDeltas':
        return cls(
            before_ratings=dict(data["beforeRatings"]),
            after_ratings=dict(data["afterRatings"]),
            changes=dict(data["changes"]),
            team_elos=tuple(data["teamElos"]),
            expected_outcome=data["expectedOutcome"],
            score_multiplier=data["scoreMultiplier"],
            mov=data["mov"],
        )


@dataclass
class Match:
    """
    A doubles match between two teams of two.

    A match is unscored, completed, or skipped; never completed and skipped.
    tournament_id, date and elo_data are filled in once the match is
    recorded in the player history.
    """
    id: int
    teams: Tuple[Team, Team]
    score: List[int] = field(default_factory=lambda: [0, 0])
    completed: bool = False
    skipped: bool = False
    tournament_id: Optional[str] = None
    date: Optional[int] = None
    elo_data: Optional[MatchDeltas] = None

    def __post_init__(self):
        self.teams = validate_teams(self.teams)
        self.score = validate_score(self.score)
        if self.completed and self.skipped:
            raise ValueError(f"Match {self.id} cannot be both completed and skipped")

    @property
    def players(self) -> List[str]:
        """The four player ids, team 0 first."""
        return [pid for team in self.teams for pid in team]

    @property
    def mov(self) -> int:
        """Margin of victory."""
        return abs(self.score[0] - self.score[1])

    def team_index(self, player_id: str) -> int:
        """Index of the team the player is on."""
        for i, team in enumerate(self.teams):
            if player_id in team:
                return i
        raise KeyError(f"Player {player_id} is not in match {self.id}")

    def has_partners(self, player_a: str, player_b: str) -> bool:
        """True if the two players were teammates in this match."""
        return any(player_a in team and player_b in team for team in self.teams)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "teams": [list(team) for team in self.teams],
            "players": self.players,
            "score": list(self.score),
            "completed": self.completed,
            "skipped": self.skipped,
        }
        if self.tournament_id is not None:
            data["tournamentId"] = self.tournament_id
        if self.date is not None:
            data["date"] = self.date
        if self.elo_data is not None:
            data["eloData"] = self.elo_data.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Match':
        elo_data = data.get("eloData")
        return cls(
            id=data["id"],
            teams=data["teams"],
            score=data.get("score", [0, 0]),
            completed=data.get("completed", False),
            skipped=data.get("skipped", False),
            tournament_id=data.get("tournamentId"),
            date=data.get("date"),
            elo_data=MatchDeltas.from_dict(elo_data) if elo_data else None,
        )


@dataclass
class Round:
    """One round of a tournament: the matches played and who sat out."""
    round_number: int
    matches: List[Match]
    sit_outs: List[Player]

    @property
    def complete(self) -> bool:
        """True once every match is either completed or skipped."""
        return bool(self.matches) and all(m.completed or m.skipped for m in self.matches)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "matches": [m.to_dict() for m in self.matches],
            "sitOuts": [p.to_dict() for p in self.sit_outs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Round':
        return cls(
            round_number=data["roundNumber"],
            matches=[Match.from_dict(m) for m in data.get("matches", [])],
            sit_outs=[Player.from_dict(p) for p in data.get("sitOuts", [])],
        )
