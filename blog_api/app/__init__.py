"""
Application package initializer.

The blog backend is organised into logical pieces: ``core`` holds
configuration, persistence, security and error primitives,
``services`` the business logic for users and posts, ``schemas`` the
pydantic payloads and ``api`` the versioned FastAPI routers.
"""

from .main import app  # noqa: F401
