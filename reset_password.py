#!/usr/bin/env python3
"""
Reset a user's password in the Blog API SQLite database.

This script does not read or reveal existing passwords.  It stores a
new PBKDF2-HMAC-SHA256 hash (format ``salthex$hashhex``) for the given
username, salted with ``PASSWORD_SALT`` when it is set and a fresh
random salt otherwise.  Existing sessions stay valid: tokens are bound
to the signing secret, not to the password.

Usage:
    python reset_password.py --db ./blog.db --username alice --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sys

from blog_api.app.core.config import settings
from blog_api.app.core.db import get_connection, get_database_path
from blog_api.app.core.security import hash_password


def main():
    ap = argparse.ArgumentParser(description="Reset a Blog API user password (SQLite).")
    ap.add_argument("--db", default=settings.database_url, help="Path to SQLite DB file (defaults to DATABASE_URL)")
    ap.add_argument("--username", required=True, help="Username to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    db_path = get_database_path(args.db)
    if not os.path.exists(db_path):
        print(f"[!] DB not found: {db_path}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)

    salt = bytes.fromhex(settings.password_salt) if settings.password_salt else os.urandom(16)
    hashed = hash_password(new_password, salt)

    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT id FROM users WHERE username = ?", (args.username,)).fetchone()
        if not row:
            print(f"[!] No user found with username: {args.username}", file=sys.stderr)
            sys.exit(2)
        conn.execute("UPDATE users SET password = ? WHERE username = ?", (hashed, args.username))
        conn.commit()
        print(f"[+] Password updated for user: {args.username}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
