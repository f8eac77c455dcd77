"""
User accounts and access tokens.

Passwords are stored as salted PBKDF2-SHA256 hashes. Access tokens are random
strings handed to the client once; only their SHA-256 digest is stored,
together with an expiry.
"""

import hashlib
import hmac
import logging
import secrets
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from app import config
from app.errors import (
    ExpiredToken,
    InvalidCredentials,
    InvalidToken,
    NoToken,
    NotFound,
    PasswordChangeRejected,
    RegistrationRejected,
    StoreUnavailable,
)
from app.models import Identity, Role, User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        _, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class AuthService:
    def __init__(self, conn: sqlite3.Connection, token_ttl_hours: int = config.TOKEN_TTL_HOURS):
        self.conn = conn
        self.token_ttl = timedelta(hours=token_ttl_hours)

    def admin_exists(self) -> bool:
        try:
            row = self.conn.execute("SELECT COUNT(*) FROM users WHERE role = ?", (Role.ADMIN.value,)).fetchone()
        except sqlite3.DatabaseError as e:
            raise StoreUnavailable(f"Database error: {e}")
        return row[0] > 0

    def register(self, username: Optional[str], password: Optional[str],
                 name: Optional[str] = None, email: Optional[str] = None) -> Tuple[str, User]:
        """Register the administrator account. Only one may ever exist."""
        username = (username or "").strip()
        if not username or not password:
            raise RegistrationRejected("Username and password are required")
        if self.admin_exists():
            raise RegistrationRejected("Admin already exists")

        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO users (username, password_hash, name, email, role, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        username,
                        hash_password(password),
                        (name or "").strip() or username,
                        (email or "").strip().lower() or f"{username}@invoices.local",
                        Role.ADMIN.value,
                        _utcnow().isoformat(),
                    ),
                )
        except sqlite3.IntegrityError:
            raise RegistrationRejected("Username already exists")
        except sqlite3.DatabaseError as e:
            raise StoreUnavailable(f"Database error: {e}")

        user = self.get_user(cursor.lastrowid)
        logger.info("User registered", extra={"extra": {"user_id": user.id, "username": user.username}})
        return self.issue_token(user), user

    def login(self, username: Optional[str], password: Optional[str]) -> Tuple[str, User]:
        if not username or not password:
            raise InvalidCredentials("Username and password are required")
        row = self.conn.execute("SELECT * FROM users WHERE username = ?", (username.strip(),)).fetchone()
        if not row or not verify_password(password, row["password_hash"]):
            logger.warning("Login failed", extra={"extra": {"username": username}})
            raise InvalidCredentials()
        user = _user(row)
        logger.info("Login successful", extra={"extra": {"user_id": user.id}})
        return self.issue_token(user), user

    def issue_token(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        now = _utcnow()
        with self.conn:
            self.conn.execute(
                "DELETE FROM auth_tokens WHERE user_id = ? AND expires_at <= ?",
                (user.id, now.isoformat()),
            )
            self.conn.execute(
                "INSERT INTO auth_tokens (token_hash, user_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
                (hash_token(token), user.id, (now + self.token_ttl).isoformat(), now.isoformat()),
            )
        return token

    def verify(self, token: Optional[str]) -> Identity:
        """Resolve a bearer token to the identity it was issued for."""
        if not token:
            raise NoToken()
        row = self.conn.execute(
            "SELECT t.expires_at, u.id, u.username, u.role FROM auth_tokens t"
            " JOIN users u ON u.id = t.user_id WHERE t.token_hash = ?",
            (hash_token(token),),
        ).fetchone()
        if not row:
            raise InvalidToken()
        if datetime.fromisoformat(row["expires_at"]) <= _utcnow():
            with self.conn:
                self.conn.execute("DELETE FROM auth_tokens WHERE token_hash = ?", (hash_token(token),))
            raise ExpiredToken()
        return Identity(user_id=row["id"], username=row["username"], role=Role(row["role"]))

    def get_user(self, user_id: int) -> User:
        row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            raise NotFound("User not found")
        return _user(row)

    def change_password(self, user_id: int, current_password: Optional[str], new_password: Optional[str]) -> None:
        if not current_password or not new_password:
            raise PasswordChangeRejected("Both passwords are required")
        row = self.conn.execute("SELECT password_hash FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            raise NotFound("User not found")
        if not verify_password(current_password, row["password_hash"]):
            raise PasswordChangeRejected("Current password is incorrect")
        with self.conn:
            self.conn.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?", (hash_password(new_password), user_id)
            )
        logger.info("Password changed", extra={"extra": {"user_id": user_id}})
