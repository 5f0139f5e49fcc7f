"""
Business logic for posts (the content store).

``PostService`` creates, updates, deletes and reads posts stored in
the SQLite ``posts`` table.  The collection is capacity bounded: after
every successful creation the store is trimmed by evicting the single
oldest other post (smallest ``created_at``, ties broken by id) whenever
the live count exceeds ``max_posts``.  Eviction is housekeeping that runs
after the insert has committed, so the store may briefly hold one post
over the limit.

Updates and deletions are gated by ``require_author``: only the
post's author may modify or remove it.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from ..core.db import connection, fits_integer
from ..core.errors import NotFound, StorageError, ValidationError
from ..core.security import require_author
from ..schemas.post import CoverUpload, PostDraft, PostPatch, PostRead, parse_tags
from ..schemas.user import UserPublic

logger = logging.getLogger(__name__)

# Shared by the content and query services so that every post read
# resolves its author the same way.
POST_SELECT = """
    SELECT p.id, p.title, p.summary, p.content, p.cover, p.cover_type, p.tags,
           p.author_id, u.username AS author_username, p.created_at, p.updated_at
    FROM posts p
    JOIN users u ON u.id = p.author_id
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _author_key(author_id: Any) -> int:
    """Integer user id of ``author_id`` as stored in ``posts.author_id``."""
    try:
        key = int(author_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid user id {author_id!r}")
    if not fits_integer(key):
        raise NotFound(f"User {author_id} not found")
    return key


def row_to_post(row: sqlite3.Row) -> PostRead:
    """Build a ``PostRead`` from a row selected with ``POST_SELECT``."""
    return PostRead(
        id=row["id"],
        title=row["title"],
        summary=row["summary"],
        content=row["content"],
        cover=row["cover"],
        cover_type=row["cover_type"],
        tags=json.loads(row["tags"] or "[]"),
        author=UserPublic(id=row["author_id"], username=row["author_username"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostService:
    """Сервис для работы с постами блога.

    Parameters
    ----------
    db_path : str
        Path of the SQLite database file.
    max_posts : int
        Maximum number of live posts kept by eviction.
    max_cover_bytes : int
        Largest accepted cover image, in bytes.
    """

    def __init__(self, db_path: str, max_posts: int = 150, max_cover_bytes: int = 5 * 1024 * 1024):
        if max_posts < 1:
            raise ValueError("max_posts must be at least 1")
        if max_cover_bytes < 1:
            raise ValueError("max_cover_bytes must be at least 1")
        self.db_path = db_path
        self.max_posts = max_posts
        self.max_cover_bytes = max_cover_bytes

    def _check_cover(self, cover: Optional[CoverUpload]) -> None:
        if cover is not None and len(cover.data) > self.max_cover_bytes:
            raise ValidationError(f"Cover image must be at most {self.max_cover_bytes} bytes")

    @staticmethod
    def _fetch(conn: sqlite3.Connection, post_id: int) -> PostRead:
        if not fits_integer(post_id):
            raise NotFound(f"Post {post_id} not found")
        row = conn.execute(POST_SELECT + " WHERE p.id = ?", (post_id,)).fetchone()
        if not row:
            raise NotFound(f"Post {post_id} not found")
        return row_to_post(row)

    async def create_post(self, draft: PostDraft, author_id: Any) -> PostRead:
        """Insert a new post written by ``author_id`` and return it.

        Tags are parsed from the draft's comma-separated string.  After
        the insert commits, at most one oldest post is evicted if the
        store now holds more than ``max_posts``.

        Raises
        ------
        ValidationError
            If the title, summary or content is missing or blank, the
            cover is too large or ``author_id`` is not an integer id.
        NotFound
            If ``author_id`` does not refer to an existing user.
        """
        for field in ("title", "summary", "content"):
            value = getattr(draft, field)
            if value is None or not value.strip():
                raise ValidationError(f"Field '{field}' is required")
        author_key = _author_key(author_id)

        cover = draft.cover
        self._check_cover(cover)
        created_at = _now()
        with connection(self.db_path) as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO posts (title, summary, content, cover, cover_type, tags,
                                       author_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        draft.title,
                        draft.summary,
                        draft.content,
                        cover.data if cover else None,
                        cover.content_type if cover else None,
                        json.dumps(parse_tags(draft.tags)),
                        author_key,
                        created_at,
                        created_at,
                    ),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise NotFound(f"User {author_id} not found")
            post_id = cursor.lastrowid
            conn.commit()
            post = self._fetch(conn, post_id)
        logger.info("User %s created post %s '%s'", author_id, post_id, draft.title)

        await self.evict_oldest(keep_id=post_id)
        return post

    async def evict_oldest(self, keep_id: Optional[int] = None) -> Optional[int]:
        """Delete the single oldest post if the store is over capacity.

        ``keep_id`` is never chosen, so the post whose creation
        triggered the check survives even if its timestamp sorts first.
        Returns the evicted post id, or ``None`` when nothing was
        removed.  A storage failure is logged and swallowed: the post
        that triggered the check has already been committed.
        """
        try:
            with connection(self.db_path) as conn:
                total = conn.execute("SELECT COUNT(*) AS count FROM posts").fetchone()["count"]
                if total <= self.max_posts:
                    return None
                oldest = conn.execute(
                    "SELECT id FROM posts WHERE id IS NOT ? ORDER BY created_at ASC, id ASC LIMIT 1",
                    (keep_id,),
                ).fetchone()
                if oldest is None:
                    return None
                conn.execute("DELETE FROM posts WHERE id = ?", (oldest["id"],))
                conn.commit()
        except StorageError:
            logger.warning("Post eviction skipped after a storage error")
            return None
        logger.info("Evicted post %s (store held %s posts, limit %s)", oldest["id"], total, self.max_posts)
        return oldest["id"]

    async def update_post(self, post_id: int, patch: PostPatch, caller_id: Any) -> PostRead:
        """Apply ``patch`` to a post written by ``caller_id``.

        Title, summary and content are always overwritten.  Tags are
        replaced only if the patch carries at least one tag, and the
        cover only if a new one was uploaded.

        Raises
        ------
        NotFound
            If the post does not exist, including when it is deleted
            between the ownership check and the write.
        NotAuthor
            If ``caller_id`` is not the post's author.
        ValidationError
            If the new cover is too large.
        """
        self._check_cover(patch.cover)
        with connection(self.db_path) as conn:
            post = self._fetch(conn, post_id)
            require_author(post, caller_id)

            assignments = ["title = ?", "summary = ?", "content = ?", "updated_at = ?"]
            values: list = [patch.title, patch.summary, patch.content, _now()]
            tags = parse_tags(patch.tags)
            if tags:
                assignments.append("tags = ?")
                values.append(json.dumps(tags))
            if patch.cover is not None:
                assignments.extend(["cover = ?", "cover_type = ?"])
                values.extend([patch.cover.data, patch.cover.content_type])
            values.append(post_id)

            cursor = conn.execute(
                f"UPDATE posts SET {', '.join(assignments)} WHERE id = ?", tuple(values)
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Post {post_id} not found")
            conn.commit()
            updated = self._fetch(conn, post_id)
        logger.info("User %s updated post %s", caller_id, post_id)
        return updated

    async def delete_post(self, post_id: int, caller_id: Any) -> None:
        """Delete a post written by ``caller_id``.

        Raises
        ------
        NotFound
            If the post does not exist.
        NotAuthor
            A ``Forbidden`` error, if ``caller_id`` is not the author.
        """
        with connection(self.db_path) as conn:
            post = self._fetch(conn, post_id)
            require_author(post, caller_id)
            cursor = conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
            if cursor.rowcount == 0:
                raise NotFound(f"Post {post_id} not found")
            conn.commit()
        logger.info("User %s deleted post %s", caller_id, post_id)

    async def get_post(self, post_id: int) -> PostRead:
        """Retrieve a single post with its author's username.

        Raises ``NotFound`` if the post does not exist.
        """
        with connection(self.db_path) as conn:
            return self._fetch(conn, post_id)

    async def get_cover(self, post_id: int) -> Tuple[bytes, str]:
        """Return the raw cover bytes and media type of a post."""
        if not fits_integer(post_id):
            raise NotFound(f"Post {post_id} not found")
        with connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT cover, cover_type FROM posts WHERE id = ?", (post_id,)
            ).fetchone()
        if not row:
            raise NotFound(f"Post {post_id} not found")
        if row["cover"] is None:
            raise NotFound(f"Post {post_id} has no cover")
        return bytes(row["cover"]), row["cover_type"] or "application/octet-stream"

    async def count_posts(self) -> int:
        with connection(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) AS count FROM posts").fetchone()["count"]
