"""
Main script to run an Americano doubles session in the terminal.
"""
import argparse
import logging
import random
import sys
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from americano.tournament.display import (
    format_leaderboard,
    format_match_result,
    format_round,
    format_tier_change,
    format_tournament_header,
)
from americano.tournament.models import Player
from americano.tournament.players import PlayerService
from americano.tournament.session import SessionConfig, TournamentSession
from americano.tournament.storage import TournamentStorage


SKIP = "skip"


def parse_score(text: str) -> Optional[Tuple[int, int]]:
    """
    Parse a score entry.

    Formats:
        '4-2', '4 2', '4:2' -> (4, 2)
        's', 'skip'         -> None (skip the match)

    Raises:
        ValueError: If the entry is not a valid score
    """
    text = text.strip().lower()
    if text in ("s", SKIP):
        return None

    for sep in ("-", ":", " "):
        if sep in text:
            left, right = text.split(sep, 1)
            break
    else:
        raise ValueError(f"Expected a score like 4-2, got '{text}'")

    score = (int(left.strip()), int(right.strip()))
    if score[0] < 0 or score[1] < 0:
        raise ValueError("Scores must be non-negative")
    return score


def resolve_players(service: PlayerService, names: List[str]) -> List[Player]:
    """Find registered players by name (case-insensitive), registering new names."""
    registered = {p.name.lower(): p for p in service.list_players()}
    roster = []
    for name in names:
        player = registered.get(name.strip().lower())
        if player is None:
            player = service.create_player(name)
            registered[player.name.lower()] = player
        roster.append(player)
    return roster


def play_round(
    session: TournamentSession,
    input_fn: Optional[Callable[[str], str]] = None,
    quiet: bool = False
):
    """Prompt for every match score of the current round."""
    input_fn = input_fn or input
    names = {p.id: p.name for p in session.players}
    current = session.current_round

    if not quiet:
        print(format_round(current, names))

    for match in current.matches:
        prompt = f"{format_match_result(match, names)} > score (e.g. 4-2, s to skip): "
        while True:
            try:
                score = parse_score(input_fn(prompt))
                break
            except ValueError as e:
                print(f"Error: {e}")

        if score is None:
            session.skip_match(match.id)
            continue

        session.update_score(match.id, 0, score[0])
        session.update_score(match.id, 1, score[1])
        for change in session.finish_match(match.id):
            print(format_tier_change(change))

        if not quiet:
            print(f"  {format_match_result(match, names)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to parse arguments and run the session."""
    parser = argparse.ArgumentParser(
        description='Run an Americano doubles session with Elo ratings.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --players Josh Luke Cam Deeps Devin --rounds 5
  python main.py --players A B C D E F G H --courts 2 --seed 7
  python main.py --leaderboard
'''
    )
    parser.add_argument('--players', '-p', type=str, nargs='+',
                        help='Player names (unknown names are registered)')
    parser.add_argument('--rounds', '-r', type=int, default=5,
                        help='Number of rounds to play (default: 5)')
    parser.add_argument('--courts', type=int, default=None,
                        help='Maximum simultaneous courts (default: as many as players fill)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducible pairings')
    parser.add_argument('--data-dir', type=str, default='data',
                        help='Directory for storing players and matches')
    parser.add_argument('--leaderboard', action='store_true',
                        help='Show the leaderboard and exit')
    parser.add_argument('--list-tournaments', action='store_true',
                        help='List saved tournaments and exit')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Minimal output (only prompts and final results)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    storage = TournamentStorage(args.data_dir)
    service = PlayerService(storage)

    if args.leaderboard:
        print(format_leaderboard(service.leaderboard()))
        return 0

    if args.list_tournaments:
        tournaments = storage.list_tournaments()
        if not tournaments:
            print("No tournaments found.")
        for t in tournaments:
            date = datetime.fromtimestamp(t['date'] / 1000).strftime('%Y-%m-%d %H:%M') if t['date'] else '-'
            print(f"{t['id']:<36} {date:<18} {t['players']} players, {t['rounds']} rounds")
        return 0

    if not args.players or len(args.players) < 4:
        print("Error: Need at least 4 players for a tournament")
        return 1
    if args.rounds < 1:
        print("Error: --rounds must be at least 1")
        return 1
    if args.courts is not None and args.courts < 1:
        print("Error: --courts must be at least 1")
        return 1

    roster = resolve_players(service, args.players)
    if len({p.id for p in roster}) != len(roster):
        print("Error: Each player can only be entered once")
        return 1
    config = SessionConfig(max_courts=args.courts, seed=args.seed)
    session = TournamentSession(roster, service, config=config, rng=random.Random(args.seed))

    if not args.quiet:
        print(format_tournament_header(session.tournament_id, len(roster), session.court_count, args.rounds))

    session.start()
    for round_num in range(args.rounds):
        if round_num > 0:
            session.next_round()
        play_round(session, quiet=args.quiet)

    if session.skipped_count:
        print(f"\n{session.skipped_count} skipped match(es) did not count towards ratings.")
    record = session.end()

    print()
    roster_ids = {p["id"] for p in record["players"]}
    print(format_leaderboard([s for s in service.leaderboard() if s.player_id in roster_ids]))
    print(f"\nTournament ID: {record['id']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
