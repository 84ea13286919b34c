"""
Pydantic models for the Americano web API.

Defines request/response schemas for the REST endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class CreatePlayerRequest(BaseModel):
    """Request to register a player."""
    name: str = Field(min_length=1, max_length=60)


class RenamePlayerRequest(BaseModel):
    """Request to rename a player."""
    name: str = Field(min_length=1, max_length=60)


class PlayerInfo(BaseModel):
    """A player with rating summary."""
    id: str
    name: str
    rating: int
    peak: int
    tier: str
    provisional: bool
    matches_for_rating: int


class TierInfo(BaseModel):
    """One rating tier."""
    tier: str
    name: str
    threshold: int
    max_threshold: Optional[int] = None
    color: str


class CreateTournamentRequest(BaseModel):
    """Configuration for a new tournament."""
    player_ids: List[str] = Field(description="Registered player ids, at least 4")
    max_courts: Optional[int] = Field(default=None, ge=1, description="Cap on simultaneous courts")
    seed: Optional[int] = Field(default=None, description="Seed for reproducible pairings")


class ScoreRequest(BaseModel):
    """Set one team's score."""
    team_index: int = Field(ge=0, le=1)
    score: int = Field(ge=0)


class MatchState(BaseModel):
    """A match in a round."""
    id: int
    teams: List[List[str]]
    score: List[int]
    completed: bool
    skipped: bool


class RoundState(BaseModel):
    """A round with its matches and sit-outs (player ids)."""
    round_number: int
    matches: List[MatchState]
    sit_outs: List[str]


class TournamentState(BaseModel):
    """Complete tournament state for API responses."""
    tournament_id: str
    players: List[str]
    rounds: List[RoundState]
    rotation_index: int
    round_complete: bool
    skipped_count: int
    ended: bool


class TierChangeInfo(BaseModel):
    """A player crossing into another tier."""
    player_id: str
    player_name: str
    old_tier: str
    new_tier: str
    promoted: bool


class FinishMatchResponse(BaseModel):
    """Response after completing a match."""
    match: MatchState
    tier_changes: List[TierChangeInfo]
