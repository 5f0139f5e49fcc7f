"""
Read-only queries over the post collection.

``QueryService.list_posts`` pages through posts newest first, with an
optional search term matched case-insensitively as a literal substring
of the title or of any tag.  ``QueryService.suggest`` applies the same
matching rule but returns at most five lightweight summaries in
storage order, for search-as-you-type boxes.
"""

import json
import logging
import math
from typing import List, Optional, Tuple

from ..core.db import connection
from ..core.errors import ValidationError
from ..schemas.post import PostList, PostSuggestion
from ..schemas.user import UserPublic
from .post_service import POST_SELECT, row_to_post

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 5

_MATCH_CLAUSE = """
    WHERE ci_contains(p.title, ?)
       OR EXISTS (SELECT 1 FROM json_each(p.tags) WHERE ci_contains(json_each.value, ?))
"""


def _match(search: Optional[str]) -> Tuple[str, tuple]:
    """WHERE clause and parameters for a search term; empty matches all."""
    if not search:
        return "", ()
    return _MATCH_CLAUSE, (search, search)


class QueryService:
    """Paginated listing, search and suggestions."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def list_posts(self, page: int = 1, page_size: int = 10, search: Optional[str] = "") -> PostList:
        """Return one page of matching posts and the total page count.

        - ``page`` is 1-based; ``page_size`` is the number of posts per page.
        - ``search`` empty or ``None`` matches every post.
        - ``total_pages`` is ``ceil(matching / page_size)``, 0 when
          nothing matches.  Pages past the end are empty.
        """
        if page < 1:
            raise ValidationError("page must be at least 1")
        if page_size < 1:
            raise ValidationError("page_size must be at least 1")

        where, params = _match(search)
        offset = (page - 1) * page_size
        with connection(self.db_path) as conn:
            total = conn.execute(
                f"SELECT COUNT(*) AS count FROM posts p {where}", params
            ).fetchone()["count"]
            rows = []
            if offset < total:
                rows = conn.execute(
                    POST_SELECT + where + " ORDER BY p.created_at DESC, p.id DESC LIMIT ? OFFSET ?",
                    params + (min(page_size, total), offset),
                ).fetchall()
        logger.debug("Listed page %s/%s (search=%r, %s matches)", page, page_size, search, total)
        return PostList(
            posts=[row_to_post(row) for row in rows],
            total_pages=math.ceil(total / page_size),
        )

    async def suggest(self, query: Optional[str]) -> List[PostSuggestion]:
        """Return up to five posts matching ``query`` in storage order."""
        where, params = _match(query)
        with connection(self.db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT p.id, p.title, p.tags, p.author_id, u.username AS author_username
                FROM posts p
                JOIN users u ON u.id = p.author_id
                {where}
                ORDER BY p.id ASC
                LIMIT ?
                """,
                params + (SUGGESTION_LIMIT,),
            ).fetchall()
        return [
            PostSuggestion(
                id=row["id"],
                title=row["title"],
                author=UserPublic(id=row["author_id"], username=row["author_username"]),
                tags=json.loads(row["tags"] or "[]"),
            )
            for row in rows
        ]
