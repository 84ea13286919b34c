"""
Storage backend for players, match history and saved tournaments.

Uses a single SQLite key-value table: each collection is one JSON document
that is read and replaced as a whole.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from americano.tournament.models import Match, Player

logger = logging.getLogger(__name__)


PLAYERS_KEY = "players"
MATCHES_KEY = "matches"
TOURNAMENTS_KEY = "tournaments"


class TournamentStorage:
    """
    Handles persistent storage of players, matches and tournaments.

    Collections are stored whole, with read/replace semantics and no
    transactions across keys. Callers serialize read-modify-write cycles.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize storage backend.

        Args:
            data_dir: Base directory for data storage
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / "americano.db"

        # Ensure directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self):
        """Initialize SQLite schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def _read(self, key: str) -> List[Dict[str, Any]]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM store WHERE key = ?", (key,)).fetchone()
        if row is None:
            return []
        return json.loads(row[0])

    def _write(self, key: str, value: List[Dict[str, Any]]):
        updated_at = datetime.now().isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO store (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, json.dumps(value), updated_at))
            conn.commit()
        logger.debug("Saved %d %s records", len(value), key)

    # Players

    def load_players(self) -> List[Player]:
        """Load all registered players."""
        return [Player.from_dict(p) for p in self._read(PLAYERS_KEY)]

    def save_players(self, players: List[Player]):
        """Replace the stored player collection."""
        self._write(PLAYERS_KEY, [p.to_dict() for p in players])

    # Matches

    def load_matches(self) -> List[Match]:
        """Load the full match history."""
        return [Match.from_dict(m) for m in self._read(MATCHES_KEY)]

    def save_matches(self, matches: List[Match]):
        """Replace the stored match history."""
        self._write(MATCHES_KEY, [m.to_dict() for m in matches])

    # Tournaments

    def save_tournament(self, record: Dict[str, Any]) -> str:
        """
        Save or update a tournament record.

        Args:
            record: JSON-serializable tournament dict with an 'id' key

        Returns:
            The tournament id
        """
        tournament_id = record["id"]
        tournaments = [t for t in self._read(TOURNAMENTS_KEY) if t["id"] != tournament_id]
        # Newest first
        self._write(TOURNAMENTS_KEY, [record] + tournaments)
        return tournament_id

    def load_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Load a tournament by ID."""
        for t in self._read(TOURNAMENTS_KEY):
            if t["id"] == tournament_id:
                return t
        return None

    def list_tournaments(self, limit: int = 20) -> List[Dict[str, Any]]:
        """List recent tournaments (summary fields only)."""
        return [
            {
                "id": t["id"],
                "date": t.get("date"),
                "players": len(t.get("players", [])),
                "rounds": len(t.get("rounds", [])),
            }
            for t in self._read(TOURNAMENTS_KEY)[:limit]
        ]

    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete a tournament. Returns False if it did not exist."""
        tournaments = self._read(TOURNAMENTS_KEY)
        remaining = [t for t in tournaments if t["id"] != tournament_id]
        if len(remaining) == len(tournaments):
            return False
        self._write(TOURNAMENTS_KEY, remaining)
        return True
