"""SQLite-backed persistence for user records."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from .models import User


class ConstraintViolation(ValueError):
    """Raised when a write would duplicate a uniquely-constrained column."""


class StoreError(RuntimeError):
    """Raised when the database fails for reasons other than a constraint."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Simple wrapper around SQLite for persisting user records."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, closing it afterwards."""

        conn = sqlite3.connect(self._path, check_same_thread=False)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        try:
            with self._connect() as conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        email TEXT NOT NULL UNIQUE,
                        age INTEGER NOT NULL,
                        createdAt TEXT NOT NULL
                            DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))
                    );

                    CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(createdAt);
                    """
                )
        except sqlite3.DatabaseError as exc:
            raise StoreError(f"Failed to initialise database at {self._path}") from exc

    # ------------------------------------------------------------------
    # User records
    # ------------------------------------------------------------------
    def create_user(self, name: str, email: str, age: int) -> User:
        """Insert a new record and return it with its assigned identity."""

        created_at = _current_timestamp()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (name, email, age, createdAt) VALUES (?, ?, ?, ?)",
                    (name, email, age, _serialize_datetime(created_at)),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise ConstraintViolation("A user with that email already exists") from exc
        except (sqlite3.DatabaseError, OverflowError) as exc:
            raise StoreError("Failed to create user") from exc

        return User(id=int(user_id), name=name, email=email, age=age, created_at=created_at)

    def list_users(self) -> List[User]:
        """Return every record, most recently created first."""

        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM users ORDER BY createdAt DESC, id DESC"
                ).fetchall()
        except sqlite3.DatabaseError as exc:
            raise StoreError("Failed to list users") from exc
        return [self._row_to_user(row) for row in rows]

    def get_user(self, user_id: int) -> Optional[User]:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        except (sqlite3.DatabaseError, OverflowError) as exc:
            raise StoreError(f"Failed to load user {user_id}") from exc
        if row is None:
            return None
        return self._row_to_user(row)

    def update_user(self, user_id: int, name: str, email: str, age: int) -> bool:
        """Replace the editable fields of a record.

        Returns ``True`` when a record with ``user_id`` existed and was updated.
        ``id`` and ``createdAt`` are never touched.
        """

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE users SET name = ?, email = ?, age = ? WHERE id = ?",
                    (name, email, age, user_id),
                )
                return cursor.rowcount > 0
        except sqlite3.IntegrityError as exc:
            raise ConstraintViolation("A user with that email already exists") from exc
        except (sqlite3.DatabaseError, OverflowError) as exc:
            raise StoreError(f"Failed to update user {user_id}") from exc

    def delete_user(self, user_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
                return cursor.rowcount > 0
        except (sqlite3.DatabaseError, OverflowError) as exc:
            raise StoreError(f"Failed to delete user {user_id}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            age=int(row["age"]),
            created_at=_parse_datetime(str(row["createdAt"])),
        )


__all__ = ["ConstraintViolation", "Database", "StoreError", "resolve_database_path"]
