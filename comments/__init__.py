"""Row comments persisted in SQLite."""

from comments.models import CommentKind, CommentEntry, CommentUpdate
from comments.db import init_comments_db, get_comments, upsert_comment

__all__ = [
    "CommentKind",
    "CommentEntry",
    "CommentUpdate",
    "init_comments_db",
    "get_comments",
    "upsert_comment",
]
