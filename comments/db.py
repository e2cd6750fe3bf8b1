"""
Comment Storage for Reconciled Rows.

Free-text comments are attached to reconciled rows by row key, one table per
side (AM and PM). Comments survive snapshot reloads because row keys are
derived from the data, not from database ids.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Union

from core.observability.logging import get_logger
from comments.models import CommentKind, CommentEntry


logger = get_logger(__name__)

# SQLite's default limit on bound parameters is 999
_IN_CHUNK_SIZE = 500


def _table(kind: Union[str, CommentKind]) -> str:
    try:
        return f"comments_{CommentKind(kind).value}"
    except ValueError:
        raise ValueError(f"Unknown comment kind: {kind!r} (expected 'am' or 'pm')") from None


def get_db_connection(db_path: Union[str, Path]):
    """Get SQLite database connection."""
    return sqlite3.connect(str(db_path))


def init_comments_db(db_path: Union[str, Path]) -> None:
    """Create the comment tables if they do not exist."""
    conn = get_db_connection(db_path)
    try:
        for kind in CommentKind:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {_table(kind)} (
                    id TEXT PRIMARY KEY,
                    comment TEXT NOT NULL DEFAULT '',
                    updated_at TEXT NOT NULL
                )
            """)
        conn.commit()
    finally:
        conn.close()
    logger.info(f"Comments database ready at {db_path}")


def get_comments(
    kind: Union[str, CommentKind],
    ids: Iterable[str],
    db_path: Union[str, Path],
) -> Dict[str, str]:
    """
    Comments for the given row keys.

    Returns:
        {row_key: comment} for the keys that have a comment
    """
    table = _table(kind)
    wanted: List[str] = sorted({row_id for row_id in ids if row_id})
    if not wanted:
        return {}

    conn = get_db_connection(db_path)
    try:
        cursor = conn.cursor()
        result: Dict[str, str] = {}
        for start in range(0, len(wanted), _IN_CHUNK_SIZE):
            chunk = wanted[start:start + _IN_CHUNK_SIZE]
            placeholders = ",".join("?" for _ in chunk)
            cursor.execute(
                f"SELECT id, comment FROM {table} WHERE id IN ({placeholders})",
                chunk,
            )
            result.update({row[0]: row[1] for row in cursor.fetchall()})
        return result
    finally:
        conn.close()


def upsert_comment(
    kind: Union[str, CommentKind],
    row_id: str,
    comment: str,
    db_path: Union[str, Path],
) -> CommentEntry:
    """Insert or replace the comment for one row key."""
    table = _table(kind)
    if not row_id or not row_id.strip():
        raise ValueError("Comment id must not be empty")

    entry = CommentEntry(id=row_id, comment=comment or "", updated_at=datetime.utcnow())

    conn = get_db_connection(db_path)
    try:
        conn.execute(
            f"""
            INSERT INTO {table} (id, comment, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                comment = excluded.comment,
                updated_at = excluded.updated_at
            """,
            (entry.id, entry.comment, entry.updated_at.isoformat()),
        )
        conn.commit()
    finally:
        conn.close()

    logger.debug(f"Saved {CommentKind(kind).value} comment for {row_id!r}")
    return entry
