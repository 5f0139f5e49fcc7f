"""
Top‑level router for version 1 of the API.

Aggregates the user/session routes and the post routes.  Both are
mounted at the version root because the paths (``/login``, ``/post``,
``/posts`` ...) are what existing blog clients already call.
"""

from fastapi import APIRouter

from .endpoints import posts, users

router = APIRouter()

router.include_router(users.router, tags=["users"])
router.include_router(posts.router, tags=["posts"])
