"""Row comment endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_settings, require_user
from comments import CommentKind, CommentUpdate, get_comments, upsert_comment
from core.config import Settings


router = APIRouter(dependencies=[Depends(require_user)])


def _kind(kind: str) -> CommentKind:
    try:
        return CommentKind(kind)
    except ValueError:
        raise HTTPException(status_code=400, detail="bad type") from None


@router.get("/{kind}")
async def list_comments(
    kind: str,
    ids: str = Query("", description="Comma-separated row keys"),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Comments for the given row keys: {items: [{id, comment}]}."""
    comment_kind = _kind(kind)
    wanted = [row_id.strip() for row_id in ids.split(",") if row_id.strip()]
    if not wanted:
        return {"items": []}

    found = get_comments(comment_kind, wanted, settings.comments_db)
    return {"items": [{"id": row_id, "comment": comment} for row_id, comment in found.items()]}


@router.post("/{kind}")
async def save_comment(
    kind: str,
    body: CommentUpdate,
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    comment_kind = _kind(kind)
    row_id = body.id.strip()
    if not row_id:
        raise HTTPException(status_code=400, detail="missing id")

    upsert_comment(comment_kind, row_id, body.comment, settings.comments_db)
    return {"ok": True}
