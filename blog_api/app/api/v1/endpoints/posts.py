"""
Post endpoints for API v1.

Creating and updating a post takes multipart form data so that an
optional cover image can be uploaded alongside the text fields.  Tags
are sent as a single comma-separated string.  Mutating routes require
a session; listing, search, suggestions and reads are public.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from blog_api.app.api.deps import get_post_service, get_query_service
from blog_api.app.core.security import get_current_user
from blog_api.app.core.uploads import read_cover
from blog_api.app.schemas.post import PostDraft, PostList, PostPatch, PostRead, PostSuggestion
from blog_api.app.schemas.user import TokenPayload
from blog_api.app.services.post_service import PostService
from blog_api.app.services.query_service import QueryService


router = APIRouter()


@router.post("/post", response_model=PostRead, status_code=201)
async def create_post(
    title: str = Form(...),
    summary: str = Form(...),
    content: str = Form(...),
    tags: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: TokenPayload = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
) -> PostRead:
    """Create a post authored by the caller.

    Once the store holds more than the configured maximum, the oldest
    post is evicted after this one is saved.
    """
    cover = await read_cover(file, posts.max_cover_bytes)
    draft = PostDraft(title=title, summary=summary, content=content, tags=tags, cover=cover)
    return await posts.create_post(draft, current_user.user_id)


@router.put("/post/{post_id}", response_model=PostRead)
async def update_post(
    post_id: int,
    title: str = Form(""),
    summary: str = Form(""),
    content: str = Form(""),
    tags: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: TokenPayload = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
) -> PostRead:
    """Update a post.  Only its author may do so (403 otherwise).

    Title, summary and content are replaced as sent.  Tags and cover
    keep their previous values unless new ones are supplied.
    """
    cover = await read_cover(file, posts.max_cover_bytes)
    patch = PostPatch(title=title, summary=summary, content=content, tags=tags, cover=cover)
    return await posts.update_post(post_id, patch, current_user.user_id)


@router.get("/posts", response_model=PostList)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    queries: QueryService = Depends(get_query_service),
) -> PostList:
    """List posts newest first.

    - **page**, **limit**: pagination (1-based page, posts per page).
    - **search**: case-insensitive text looked up in titles and tags.
    """
    return await queries.list_posts(page=page, page_size=limit, search=search)


@router.get("/suggestions", response_model=List[PostSuggestion])
async def suggestions(
    q: str = Query(""),
    queries: QueryService = Depends(get_query_service),
) -> List[PostSuggestion]:
    """Return up to five posts whose title or tags contain ``q``."""
    return await queries.suggest(q)


@router.get("/post/{post_id}", response_model=PostRead)
async def get_post(post_id: int, posts: PostService = Depends(get_post_service)) -> PostRead:
    return await posts.get_post(post_id)


@router.get("/post/{post_id}/cover")
async def get_post_cover(post_id: int, posts: PostService = Depends(get_post_service)) -> Response:
    """Serve the raw cover image of a post with its stored media type."""
    data, media_type = await posts.get_cover(post_id)
    return Response(content=data, media_type=media_type)


@router.delete("/post/{post_id}")
async def delete_post(
    post_id: int,
    current_user: TokenPayload = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
) -> str:
    """Delete a post.  Only its author may do so (403 otherwise)."""
    await posts.delete_post(post_id, current_user.user_id)
    return "Post deleted"
