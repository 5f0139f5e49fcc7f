"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  A
module level ``settings`` instance serves as the process default, but
``create_app`` accepts an explicit instance so that the signing secret,
password salt and database location are always handed to the services
at construction time rather than read from global state.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Blog API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Secret used to sign session tokens.  Tokens carry no expiry, so
    # rotating this value is the only way to invalidate every session.
    secret_key: str = os.getenv("SECRET_KEY", "change_me")

    # Hex encoded salt shared by every password hashed by this
    # deployment.  When empty, a random salt is generated once when the
    # user service is built.  The salt is stored next to each hash, so
    # verification keeps working across restarts either way.
    password_salt: str = os.getenv("PASSWORD_SALT", "")

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "blog.db")

    # Maximum number of live posts.  The oldest post is evicted after
    # each creation that pushes the count above this value.
    max_posts: int = int(os.getenv("MAX_POSTS", "150"))
    max_cover_bytes: int = int(os.getenv("MAX_COVER_BYTES", str(5 * 1024 * 1024)))

    cookie_name: str = os.getenv("COOKIE_NAME", "token")
    cookie_secure: bool = os.getenv("COOKIE_SECURE", "false").lower() in {"1", "true", "yes"}

    # Comma‑separated list of origins allowed to call the API with
    # credentials (the session cookie).
    cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "4000"))

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at class definition time, environment variables
# should be set before importing this module.
settings = Settings()
