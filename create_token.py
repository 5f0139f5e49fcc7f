#!/usr/bin/env python3
"""
Print a session token for an existing user.

Useful for scripting against the API without going through the login
form: send the token as ``Authorization: Bearer <token>`` or as the
``token`` cookie.  The token is signed with ``SECRET_KEY`` from the
environment, so it is only accepted by servers sharing that secret.

Usage:
    python create_token.py --username alice
"""

import argparse
import sys

from blog_api.app.core.config import settings
from blog_api.app.core.db import get_connection, get_database_path
from blog_api.app.core.security import TokenService
from blog_api.app.schemas.user import TokenPayload


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a Blog API session token for a user.")
    ap.add_argument("--username", required=True, help="Existing username")
    ap.add_argument("--db", default=settings.database_url, help="SQLite DB file (defaults to DATABASE_URL)")
    args = ap.parse_args()

    conn = get_connection(get_database_path(args.db))
    try:
        row = conn.execute("SELECT id, username FROM users WHERE username = ?", (args.username,)).fetchone()
    finally:
        conn.close()
    if not row:
        print(f"[!] No user found with username: {args.username}", file=sys.stderr)
        sys.exit(2)

    token = TokenService(settings.secret_key).issue(TokenPayload(username=row["username"], user_id=row["id"]))
    print(token)


if __name__ == "__main__":
    main()
