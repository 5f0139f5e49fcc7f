"""Test fixtures: a fresh SQLite file per test, services and an HTTP client.

Invariants:
    - Every test gets its own database under ``tmp_path``, migrated up front
      (the ASGI transport does not run startup events)
    - The app is built with explicit ``Settings`` so no environment leaks in
    - ``login`` clears the cookie jar after each login so requests
      authenticate only through the Bearer headers it returns
"""

import pytest
from httpx import ASGITransport, AsyncClient

from blog_api.app.core.config import Settings
from blog_api.app.core.db import init_db
from blog_api.app.core.security import TokenService
from blog_api.app.main import create_app
from blog_api.app.schemas.post import PostDraft
from blog_api.app.services.post_service import PostService
from blog_api.app.services.query_service import QueryService
from blog_api.app.services.user_service import UserService

TEST_SECRET = "test-secret"
TEST_SALT = "00112233445566778899aabbccddeeff"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "blog.db"),
        secret_key=TEST_SECRET,
        password_salt=TEST_SALT,
        max_posts=150,
        max_cover_bytes=1024,
    )


@pytest.fixture
def db_path(settings):
    init_db(settings.database_url)
    return settings.database_url


@pytest.fixture
def user_service(db_path):
    return UserService(db_path, TEST_SALT)


@pytest.fixture
def post_service(db_path):
    return PostService(db_path, max_posts=150, max_cover_bytes=1024)


@pytest.fixture
def query_service(db_path):
    return QueryService(db_path)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
async def alice(user_service):
    return await user_service.register("alice", "wonderland")


@pytest.fixture
async def bob(user_service):
    return await user_service.register("bobby", "builder1")


@pytest.fixture
def make_post(post_service):
    """Create a post with sensible defaults; keyword args override fields."""

    async def _make_post(author, title="A post", tags=None, **fields):
        draft = PostDraft(
            title=title,
            summary=fields.pop("summary", "summary"),
            content=fields.pop("content", "content"),
            tags=tags,
            **fields,
        )
        return await post_service.create_post(draft, author.id)

    return _make_post


@pytest.fixture
async def client(settings, db_path):
    app = create_app(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def login(client):
    """Register (if needed) and log in a user; returns Bearer headers."""

    async def _login(username, password="password123"):
        await client.post("/api/v1/register", json={"username": username, "password": password})
        res = await client.post("/api/v1/login", json={"username": username, "password": password})
        assert res.status_code == 200, res.text
        token = res.cookies["token"]
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _login
