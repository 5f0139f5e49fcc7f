"""
Business logic for users (the credential store).

``UserService`` registers users and verifies their credentials against
the SQLite ``users`` table.  Passwords are hashed with the deployment
salt before they are persisted; plaintext passwords are never stored
or returned.  Username uniqueness is enforced by the table's UNIQUE
constraint, so a concurrent duplicate insert fails atomically instead
of racing a separate existence check.
"""

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from ..core.db import connection, fits_integer
from ..core.errors import AuthenticationFailure, DuplicateUsername, ValidationError
from ..core.security import hash_password, verify_password
from ..schemas.user import USERNAME_MIN_LENGTH, UserRead

logger = logging.getLogger(__name__)


class UserService:
    """Register users and check their passwords.

    Parameters
    ----------
    db_path : str
        Path of the SQLite database file.
    password_salt : str
        Hex encoded salt used for every password hashed by this
        deployment.  An empty string generates a random 16-byte salt.
    """

    def __init__(self, db_path: str, password_salt: str = ""):
        self.db_path = db_path
        self._salt = bytes.fromhex(password_salt) if password_salt else os.urandom(16)
        # Checked against when the username does not exist, so an
        # unknown user costs as much as a wrong password.
        self._dummy_hash = hash_password(os.urandom(8).hex(), self._salt)

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRead:
        return UserRead(id=row["id"], username=row["username"], created_at=row["created_at"])

    async def register(self, username: str, password: str) -> UserRead:
        """Create a new user and return it without the password.

        Raises
        ------
        ValidationError
            If the username is shorter than four characters or the
            password is empty.
        DuplicateUsername
            If the username is already taken.
        """
        username = (username or "").strip()
        if len(username) < USERNAME_MIN_LENGTH:
            raise ValidationError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
        if not password:
            raise ValidationError("Password is required")

        created_at = datetime.now(timezone.utc).isoformat()
        hashed = hash_password(password, self._salt)
        with connection(self.db_path) as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (username, password, created_at) VALUES (?, ?, ?)",
                    (username, hashed, created_at),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise DuplicateUsername(username)
            user_id = cursor.lastrowid
            conn.commit()
        logger.info("Registered user %s (id=%s)", username, user_id)
        return UserRead(id=user_id, username=username, created_at=created_at)

    async def verify_credentials(self, username: str, password: str) -> UserRead:
        """Return the user if ``password`` matches the stored hash.

        Raises
        ------
        AuthenticationFailure
            For an unknown username and for a wrong password alike.
        """
        with connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, username, password, created_at FROM users WHERE username = ?",
                ((username or "").strip(),),
            ).fetchone()
        stored_hash = row["password"] if row else self._dummy_hash
        if not verify_password(password or "", stored_hash) or row is None:
            logger.warning("Failed login attempt for %s", username)
            raise AuthenticationFailure()
        return self._row_to_user(row)

    async def get_user(self, user_id: int) -> Optional[UserRead]:
        """Retrieve a user by ID, or ``None`` if it does not exist."""
        if not fits_integer(user_id):
            return None
        with connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, username, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        return self._row_to_user(row) if row else None

    async def count_users(self) -> int:
        with connection(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"]
