"""
Display formatting for tournament rounds and standings.

Provides ASCII-formatted leaderboards and round listings for terminal output.
"""

from typing import Dict, List

from americano.tournament.elo import tier_display_name
from americano.tournament.models import Match, Round
from americano.tournament.players import PlayerStats
from americano.tournament.session import TierChange


def _team_label(team, names: Dict[str, str]) -> str:
    return " & ".join(names.get(pid, pid) for pid in team)


def format_leaderboard(stats: List[PlayerStats]) -> str:
    """
    Format player standings as an ASCII table.

    Args:
        stats: Player stats, already in display order

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append("=== LEADERBOARD ===")
    lines.append("")

    # Header
    lines.append(f"{'Rank':<6}{'Player':<20}{'Elo':<12}{'Tier':<13}{'W-L':<9}{'Win%':<8}{'Form':<6}")
    lines.append("-" * 74)

    # Rows
    for i, s in enumerate(stats, 1):
        elo_str = f"{s.rating}?" if s.provisional else f"{s.rating}"
        wl = f"{s.matches_won}-{s.matches_lost}"
        win_pct = f"{s.win_rate:.1%}"
        form = f"{s.trend:+d}" if s.trend else "0"
        lines.append(
            f"{i:<6}{s.name:<20}{elo_str:<12}{tier_display_name(s.tier):<13}"
            f"{wl:<9}{win_pct:<8}{form:<6}"
        )

    return "\n".join(lines)


def format_match_result(match: Match, names: Dict[str, str]) -> str:
    """Format a single match line, with its score once played."""
    team_a = _team_label(match.teams[0], names)
    team_b = _team_label(match.teams[1], names)

    if match.skipped:
        return f"{team_a} vs {team_b}: skipped"
    if match.completed:
        return f"{team_a} vs {team_b}: {match.score[0]}-{match.score[1]}"
    return f"{team_a} vs {team_b}"


def format_round(round_: Round, names: Dict[str, str]) -> str:
    """Format a round: one line per court, then the sit-outs."""
    lines = [f"--- Round {round_.round_number} ---"]
    for court, match in enumerate(round_.matches, 1):
        lines.append(f"  Court {court}: {format_match_result(match, names)}")
    if round_.sit_outs:
        lines.append(f"  Sitting out: {', '.join(p.name for p in round_.sit_outs)}")
    return "\n".join(lines)


def format_tier_change(change: TierChange) -> str:
    verb = "promoted to" if change.promoted else "dropped to"
    return f"  {change.player_name} {verb} {tier_display_name(change.new_tier)}"


def format_tournament_header(
    tournament_id: str,
    num_players: int,
    num_courts: int,
    num_rounds: int
) -> str:
    """Format tournament header information."""
    lines = []
    lines.append(f"Tournament: {tournament_id}")
    lines.append(f"Players: {num_players}")
    lines.append(f"Courts: {num_courts}")
    lines.append(f"Rounds: {num_rounds}")
    lines.append("")
    return "\n".join(lines)
