"""Comment models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class CommentKind(str, Enum):
    """Which side of the reconciliation a comment belongs to."""
    AM = "am"
    PM = "pm"


class CommentEntry(BaseModel):
    id: str = Field(min_length=1)
    comment: str = ""
    updated_at: datetime


class CommentUpdate(BaseModel):
    """POST body for /tenancy/api/comments/{kind}."""
    id: str = ""
    comment: str = ""
