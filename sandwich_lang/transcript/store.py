"""
Transcript Store — append-only record of every negotiation turn.

Each line of dialogue (who spoke, what they said, what it was understood
to mean, the sandwich after it) becomes one TurnRecord.

Behavioral Contract:
- Append-only. No record is ever modified or deleted.
- Queryable by session, and by recency.
"""

import sqlite3
from typing import List

from sandwich_lang.models.transcript import TurnRecord


class TranscriptStore:
    """
    Append-only turn store.
    SQLite; ":memory:" for tests and one-off simulations.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS turns (
                session_id TEXT NOT NULL,
                turn INTEGER NOT NULL,
                speaker TEXT NOT NULL,
                text TEXT,
                score REAL,
                record_json TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_turns_session_id ON turns(session_id)
        """)
        self._conn.commit()

    def append(self, record: TurnRecord) -> TurnRecord:
        self._conn.execute(
            """
            INSERT INTO turns (session_id, turn, speaker, text, score, record_json)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record.session_id,
                record.turn,
                record.speaker,
                record.text,
                record.score,
                record.model_dump_json(),
            ),
        )
        self._conn.commit()
        return record

    def _deserialize(self, row: sqlite3.Row) -> TurnRecord:
        return TurnRecord.model_validate_json(row["record_json"])

    def get_session(self, session_id: str) -> List[TurnRecord]:
        """Every turn of one negotiation, in the order they happened."""
        rows = self._conn.execute(
            "SELECT record_json FROM turns WHERE session_id = ? ORDER BY rowid",
            (session_id,),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def sessions(self) -> List[str]:
        rows = self._conn.execute(
            "SELECT session_id FROM turns GROUP BY session_id ORDER BY MIN(rowid)"
        ).fetchall()
        return [r["session_id"] for r in rows]

    def query_recent(self, limit: int = 50) -> List[TurnRecord]:
        """The most recent turns across all sessions, oldest first."""
        rows = self._conn.execute(
            "SELECT record_json FROM turns ORDER BY rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._deserialize(r) for r in reversed(rows)]

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM turns").fetchone()
        return row["cnt"]

    def close(self) -> None:
        self._conn.close()
