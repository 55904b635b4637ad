"""Structured index of uploaded records and its SQLite implementation."""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass
class IndexRow:
    """One uploaded record as seen by the structured index."""

    user_id: str
    namespace: str
    record_id: str
    image_url: str
    created_at: str
    genre: str = ""
    rating: int = 0
    name: str = ""


class RecordIndex:
    """Persistence interface for index rows."""

    def add_row(self, row: IndexRow) -> IndexRow:
        raise NotImplementedError

    def list_rows(self, user_id: str, namespace: Optional[str] = None) -> List[IndexRow]:
        raise NotImplementedError


class SQLiteRecordIndex(RecordIndex):
    """Local SQLite-backed index of uploaded records."""

    def __init__(self, database_path: str | Path = "data/records.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS record_index (
                    user_id TEXT NOT NULL,
                    namespace TEXT NOT NULL,
                    record_id TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    genre TEXT,
                    rating INTEGER,
                    name TEXT,
                    PRIMARY KEY (user_id, namespace, record_id)
                );
                """
            )

    def add_row(self, row: IndexRow) -> IndexRow:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO record_index (
                    user_id, namespace, record_id, image_url, created_at, genre, rating, name
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row.user_id,
                    row.namespace,
                    row.record_id,
                    row.image_url,
                    row.created_at,
                    row.genre,
                    row.rating,
                    row.name,
                ),
            )
        return row

    @staticmethod
    def _row_to_index_row(row: sqlite3.Row) -> IndexRow:
        return IndexRow(
            user_id=row["user_id"],
            namespace=row["namespace"],
            record_id=row["record_id"],
            image_url=row["image_url"],
            created_at=row["created_at"],
            genre=row["genre"] or "",
            rating=int(row["rating"] or 0),
            name=row["name"] or "",
        )

    def list_rows(self, user_id: str, namespace: Optional[str] = None) -> List[IndexRow]:
        with self._connect() as conn:
            if namespace is None:
                cursor = conn.execute(
                    "SELECT * FROM record_index WHERE user_id = ? ORDER BY created_at DESC, record_id",
                    (user_id,),
                )
            else:
                cursor = conn.execute(
                    "SELECT * FROM record_index WHERE user_id = ? AND namespace = ? "
                    "ORDER BY created_at DESC, record_id",
                    (user_id, namespace),
                )
            return [self._row_to_index_row(row) for row in cursor.fetchall()]


__all__ = ["IndexRow", "RecordIndex", "SQLiteRecordIndex"]
