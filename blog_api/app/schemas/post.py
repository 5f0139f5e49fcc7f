"""
Pydantic models for post data.

``PostRead`` is the full post with its author resolved to a username.
Cover images are kept as raw bytes in Python and serialised as base64
in JSON responses.  ``PostDraft`` and ``PostPatch`` are the inputs of
the content service; the HTTP layer builds them from multipart form
fields because posts are submitted together with a cover upload.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .user import UserPublic


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma-separated tag string.

    Tokens are stripped and empty ones dropped; order and duplicates
    are preserved.  ``None`` gives an empty list.
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


class CoverUpload(BaseModel):
    """Bytes captured from an uploaded cover file."""

    data: bytes
    filename: str = ""
    content_type: str = "application/octet-stream"


class PostDraft(BaseModel):
    """Fields required to create a post."""

    title: str = Field(..., example="Hello world")
    summary: str = Field(..., example="A first post")
    content: str = Field(..., example="<p>Lorem ipsum</p>")
    tags: Optional[str] = Field(None, example="intro,news")
    cover: Optional[CoverUpload] = None


class PostPatch(BaseModel):
    """Replacement values for an existing post.

    ``title``, ``summary`` and ``content`` always overwrite the stored
    values, even when empty.  ``tags`` and ``cover`` replace the stored
    values only when supplied.
    """

    title: str = ""
    summary: str = ""
    content: str = ""
    tags: Optional[str] = None
    cover: Optional[CoverUpload] = None


class PostRead(BaseModel):
    """Schema for reading a post from the API."""

    id: int
    title: str
    summary: str
    content: str
    cover: Optional[bytes] = None
    cover_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    author: UserPublic
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "ser_json_bytes": "base64",
    }


class PostList(BaseModel):
    """One page of posts, newest first."""

    posts: List[PostRead]
    total_pages: int


class PostSuggestion(BaseModel):
    """Lightweight post summary returned by the suggestion lookup."""

    id: int
    title: str
    author: UserPublic
    tags: List[str] = Field(default_factory=list)
