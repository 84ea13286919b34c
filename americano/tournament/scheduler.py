"""
Americano round scheduling.

Decides who sits out each round and how the active players are split into
teams of two, so that partners rotate over the course of a tournament.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from americano.tournament.models import Match, Player, Team
from americano.utils.constants import PAIRINGS_PER_GROUP, PLAYERS_PER_MATCH

logger = logging.getLogger(__name__)


Pairing = Tuple[Team, Team]


@dataclass
class RoundDraw:
    """Matches and sit-outs produced for one round."""
    matches: List[Match]
    sit_outs: List[Player]


def player_set_key(player_ids: Sequence[str]) -> Tuple[str, ...]:
    """Order-independent key for a group of players."""
    return tuple(sorted(player_ids))


def all_pairings(players: Sequence[Player]) -> List[Pairing]:
    """
    The three ways to split four players into two teams of two.

    Index 0: A+B vs C+D, index 1: A+C vs B+D, index 2: A+D vs B+C
    """
    a, b, c, d = (p.id for p in players)
    return [
        ((a, b), (c, d)),
        ((a, c), (b, d)),
        ((a, d), (b, c)),
    ]


def count_partnerships(history: Sequence[Match], player_a: str, player_b: str) -> int:
    """Number of matches in which the two players were teammates."""
    return sum(1 for m in history if m.has_partners(player_a, player_b))


_last_match_id = 0


def next_match_id() -> int:
    """
    Next match id: the current time in ms, bumped past the last id issued.

    Shared by every scheduler in the process.
    """
    global _last_match_id
    _last_match_id = max(int(time.time() * 1000), _last_match_id + 1)
    return _last_match_id


def max_courts(player_count: int) -> int:
    """Courts that can be filled by a roster of this size."""
    return player_count // PLAYERS_PER_MATCH


def next_rotation_index(rotation_index: int, player_count: int, court_count: int) -> int:
    """Rotation index for the following round: advance past this round's sitters."""
    sit_out_count = player_count - PLAYERS_PER_MATCH * court_count
    return (rotation_index + sit_out_count) % player_count


def select_sit_outs(players: Sequence[Player], sit_out_count: int, rotation_index: int) -> List[Player]:
    """Contiguous wrap-around slice of the roster starting at rotation_index."""
    n = len(players)
    return [players[(rotation_index + i) % n] for i in range(sit_out_count)]


class PairingScheduler:
    """
    Generates Americano rounds for one tournament.

    Holds the pairing cycle of every four-player group seen so far: the
    first time a group meets, the split with the fewest repeat partnerships
    is chosen; every later meeting of the same group serves the next split
    in the cycle, ignoring partnership history.

    Usage:
        scheduler = PairingScheduler(rng=random.Random(7))
        draw = scheduler.generate_round(players, history, court_count=1, rotation_index=0)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        id_factory: Optional[Callable[[], int]] = None
    ):
        """
        Initialize the scheduler.

        Args:
            rng: Random source for tie-breaks and pair shuffles (seed it for
                reproducible schedules)
            id_factory: Callable producing new match ids (defaults to
                increasing millisecond timestamps)
        """
        self.rng = rng or random.Random()
        self._id_factory = id_factory or next_match_id
        # Sorted 4-player key -> next pairing index to serve
        self.pairing_history: Dict[Tuple[str, ...], int] = {}

    def clear_pairing_history(self):
        """Forget all pairing cycles. Call once per tournament start."""
        self.pairing_history.clear()

    def select_pairing(self, players: Sequence[Player], history: Sequence[Match]) -> Pairing:
        """
        Choose the team split for a group of exactly four players.

        Args:
            players: The four active players, in roster order
            history: Completed matches of this tournament

        Returns:
            The chosen pairing as (team_a, team_b)
        """
        pairings = all_pairings(players)
        key = player_set_key([p.id for p in players])
        index = self.pairing_history.get(key)

        if index is None:
            scores = [
                count_partnerships(history, *team_a) + count_partnerships(history, *team_b)
                for team_a, team_b in pairings
            ]
            min_score = min(scores)
            best = [i for i, score in enumerate(scores) if score == min_score]
            index = self.rng.choice(best)
            logger.debug("First meeting of %s: partnership scores %s, chose %d", key, scores, index)

        self.pairing_history[key] = (index + 1) % PAIRINGS_PER_GROUP
        return pairings[index]

    def pair_players(self, players: Sequence[Player], history: Sequence[Match]) -> List[Team]:
        """
        Greedily partner players left to right.

        Each unpaired player takes the later unpaired player they have
        partnered least often; the first minimum wins.

        Raises:
            ValueError: If a player is left without a partner
        """
        pairs = []
        used = set()

        for i, p1 in enumerate(players):
            if p1.id in used:
                continue

            best_partner = None
            min_partnerships = None
            for p2 in players[i + 1:]:
                if p2.id in used:
                    continue
                partnerships = count_partnerships(history, p1.id, p2.id)
                if min_partnerships is None or partnerships < min_partnerships:
                    min_partnerships = partnerships
                    best_partner = p2

            if best_partner is None:
                raise ValueError(f"Player {p1.id} has no partner: odd number of active players")

            pairs.append((p1.id, best_partner.id))
            used.update({p1.id, best_partner.id})

        return pairs

    def generate_round(
        self,
        players: Sequence[Player],
        history: Sequence[Match],
        court_count: int,
        rotation_index: int = 0
    ) -> RoundDraw:
        """
        Generate the matches and sit-outs for one round.

        Args:
            players: Tournament roster; its order is the sit-out rotation ring
            history: Completed matches of this tournament
            court_count: Number of simultaneous courts
            rotation_index: Ring offset of the first player to sit out

        Returns:
            RoundDraw with one match per court and the sitting players

        Raises:
            ValueError: If the roster or court count cannot form a round
        """
        player_count = len(players)
        if player_count < PLAYERS_PER_MATCH:
            raise ValueError(f"Need at least {PLAYERS_PER_MATCH} players, got {player_count}")
        if len({p.id for p in players}) != player_count:
            raise ValueError("Player ids in the roster must be unique")
        if court_count < 1:
            raise ValueError(f"Need at least 1 court, got {court_count}")
        if court_count > max_courts(player_count):
            raise ValueError(
                f"{court_count} courts need {court_count * PLAYERS_PER_MATCH} players, "
                f"only {player_count} available"
            )

        sit_out_count = player_count - PLAYERS_PER_MATCH * court_count
        sit_outs = select_sit_outs(players, sit_out_count, rotation_index)
        sitting_ids = {p.id for p in sit_outs}
        active = [p for p in players if p.id not in sitting_ids]

        if len(active) == PLAYERS_PER_MATCH:
            matches = [self._new_match(self.select_pairing(active, history))]
        else:
            pairs = self.pair_players(active, history)
            self.rng.shuffle(pairs)
            matches = [
                self._new_match((pairs[i], pairs[i + 1]))
                for i in range(0, len(pairs) - 1, 2)
            ]

        logger.debug(
            "Round drawn: %d matches, sitting out %s",
            len(matches), [p.id for p in sit_outs]
        )
        return RoundDraw(matches=matches, sit_outs=sit_outs)

    def _new_match(self, pairing: Pairing) -> Match:
        return Match(id=self._id_factory(), teams=pairing)
