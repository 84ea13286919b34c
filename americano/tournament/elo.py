"""
Elo rating engine for doubles matches.

Implements an Elo variant for two-player teams:
- Expected score: E = 1 / (1 + 10^((R_opp - R_team) / 400)), on team averages
- Rating update per player: delta = round(K(player) * (S - E) * M)
  where K shrinks with experience and M grows with the margin of victory

All functions are pure: nothing here mutates a player or a match.
"""

import math
from enum import Enum
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from americano.tournament.models import (
    EloHistoryEntry,
    EloState,
    Match,
    MatchDeltas,
    validate_score,
)
from americano.utils.constants import (
    ELO_SCALE,
    K_FACTOR_MASTER,
    K_FACTOR_STEPS,
    MOV_BASE,
    MOV_CAP,
    MOV_PER_POINT,
    PROVISIONAL_MATCHES,
    STARTING_ELO,
    TIER_BANDS,
    TIER_COLORS,
    TIER_DISPLAY_NAMES,
    TREND_WINDOW,
)


class Tier(str, Enum):
    """Rating bands, lowest first."""
    WOOD = "wood"
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    MASTER = "master"
    GRANDMASTER = "grandmaster"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int(math.floor(value + 0.5))


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Calculate expected score for side A against side B.

    Args:
        rating_a: Rating of side A
        rating_b: Rating of side B

    Returns:
        Expected score between 0 and 1
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / ELO_SCALE))


def k_factor(matches_for_rating: int) -> int:
    """K-factor for a player with the given number of rated matches."""
    for upper_bound, k in K_FACTOR_STEPS:
        if matches_for_rating < upper_bound:
            return k
    return K_FACTOR_MASTER


def score_multiplier(margin_of_victory: int) -> float:
    """
    Weight a result by its margin of victory.

    The margin is capped at 5, so the multiplier ranges from 0.55 (a draw)
    to 2.05.
    """
    return MOV_BASE + MOV_PER_POINT * min(margin_of_victory, MOV_CAP)


def rating_change(
    player_rating: float,
    opponent_rating: float,
    actual_score: float,
    k: int,
    multiplier: float = 1.0
) -> int:
    """Rating change for a single player against an opponent rating."""
    expected = expected_score(player_rating, opponent_rating)
    return round_half_up(k * (actual_score - expected) * multiplier)


def _lookup(values: Optional[Dict[str, float]], player_id: str, default):
    if not values:
        return default
    value = values.get(player_id)
    return default if value is None else value


def compute_match_deltas(
    match: Match,
    ratings_by_player: Optional[Dict[str, float]] = None,
    match_counts_by_player: Optional[Dict[str, int]] = None
) -> MatchDeltas:
    """
    Calculate the rating change of every player in a match.

    Both teams are rated on their average rating, but each player applies
    their own K-factor to the shared outcome, so two teammates with
    different experience move by different amounts.

    Args:
        match: A match with two teams of two and a final score
        ratings_by_player: Current rating per player id (missing -> 1500)
        match_counts_by_player: Rated matches per player id (missing -> 0)

    Returns:
        MatchDeltas with before/after ratings and calculation details

    Raises:
        ValueError: If the match has a malformed score
    """
    score = validate_score(match.score)
    team_a, team_b = match.teams

    before = {
        pid: _lookup(ratings_by_player, pid, STARTING_ELO)
        for pid in match.players
    }
    team_elos = (
        (before[team_a[0]] + before[team_a[1]]) / 2,
        (before[team_b[0]] + before[team_b[1]]) / 2,
    )

    # Actual score for team A (wins = 1, draws = 0.5, losses = 0)
    if score[0] > score[1]:
        actual_a = 1.0
    elif score[0] == score[1]:
        actual_a = 0.5
    else:
        actual_a = 0.0

    mov = abs(score[0] - score[1])
    multiplier = score_multiplier(mov)
    expected_a = expected_score(team_elos[0], team_elos[1])

    outcome = {0: actual_a - expected_a, 1: (1.0 - actual_a) - (1.0 - expected_a)}

    changes = {}
    for team_idx, team in enumerate(match.teams):
        for pid in team:
            k = k_factor(_lookup(match_counts_by_player, pid, 0))
            changes[pid] = round_half_up(k * outcome[team_idx] * multiplier)

    after = {pid: before[pid] + changes[pid] for pid in match.players}

    return MatchDeltas(
        before_ratings=before,
        after_ratings=after,
        changes=changes,
        team_elos=team_elos,
        expected_outcome=expected_a,
        score_multiplier=multiplier,
        mov=mov,
    )


def initial_elo_state() -> EloState:
    """Rating state for a brand new player."""
    return EloState()


def apply_rating_update(
    elo_state: EloState,
    delta: int,
    match_id: Optional[int],
    timestamp: Optional[int]
) -> EloState:
    """
    Apply one rated match to a player's rating state.

    Args:
        elo_state: Current state (left untouched)
        delta: Rating change from compute_match_deltas
        match_id: Match the change came from
        timestamp: When the match was rated (ms since epoch)

    Returns:
        New EloState with the change applied and recorded in history
    """
    new_rating = elo_state.current + delta
    matches_for_rating = elo_state.matches_for_rating + 1

    peak, peak_date = elo_state.peak, elo_state.peak_date
    if new_rating > peak:
        peak, peak_date = new_rating, timestamp

    entry = EloHistoryEntry(date=timestamp, rating=new_rating, change=delta, match_id=match_id)

    return replace(
        elo_state,
        current=new_rating,
        peak=peak,
        peak_date=peak_date,
        history=elo_state.history + (entry,),
        provisional=matches_for_rating < PROVISIONAL_MATCHES,
        matches_for_rating=matches_for_rating,
    )


def tier(rating: float) -> Tier:
    """Rating band for a rating. Lower bounds are inclusive."""
    for name, _, upper in TIER_BANDS:
        if upper is None or rating < upper:
            return Tier(name)
    return Tier.GRANDMASTER


def tier_display_name(value: Tier) -> str:
    return TIER_DISPLAY_NAMES[Tier(value).value]


def tier_color(value: Tier) -> str:
    return TIER_COLORS[Tier(value).value]


def tier_thresholds() -> List[Dict[str, object]]:
    """All tiers with their rating ranges, for display."""
    thresholds = []
    for name, lower, upper in TIER_BANDS:
        thresholds.append({
            "tier": name,
            "name": TIER_DISPLAY_NAMES[name],
            "threshold": lower,
            "maxThreshold": upper - 1 if upper is not None else None,
            "color": TIER_COLORS[name],
        })
    return thresholds


def trend(history: Sequence[EloHistoryEntry], last_n: int = TREND_WINDOW) -> int:
    """
    Recent form: mean rating change over the last `last_n` rated matches.

    Returns 0 for an empty history.
    """
    if last_n < 1:
        raise ValueError(f"last_n must be at least 1, got {last_n}")
    if not history:
        return 0

    recent = list(history)[-last_n:]
    total = sum(entry.change or 0 for entry in recent)
    return round_half_up(total / len(recent))


def rating_rank(rating: float, all_ratings: Sequence[float]) -> int:
    """1-based position of a rating among all ratings, highest first."""
    return sum(1 for r in all_ratings if r > rating) + 1
