"""Supabase-backed user repository."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from user_accounts.domain.errors import ConflictError, NotFoundError, StoreError
from user_accounts.domain.models import (
    NewUser,
    PhotoRef,
    UserCredentials,
    UserRecord,
)
from user_accounts.services.users import UserRecordStore

T = TypeVar("T")

UNIQUE_VIOLATION = "23505"
USER_COLUMNS = (
    "id, first_name, last_name, email, password_hash, is_admin, is_user, "
    "state, photo, created_at, updated_at"
)
WRITABLE_COLUMNS = frozenset(
    {"first_name", "last_name", "email", "password_hash", "is_admin", "photo"}
)


@dataclass
class SupabaseUserRepository(UserRecordStore):
    """Supabase implementation for user persistence."""

    client: Client
    table_name: str = "users"

    def list_active(self, offset: int, limit: int) -> tuple[list[UserRecord], int]:
        """Return active users ordered by last update then creation."""
        response = self._run(
            "list_active",
            lambda: self.client.table(self.table_name)
            .select(USER_COLUMNS, count="exact")
            .eq("state", True)
            .order("updated_at", desc=True)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute(),
        )
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return [_to_user(row) for row in rows], total

    def get_active_by_id(self, user_id: UUID) -> UserRecord:
        """Return an active user by id."""
        response = self._run(
            "get_active_by_id",
            lambda: self.client.table(self.table_name)
            .select(USER_COLUMNS)
            .eq("id", str(user_id))
            .eq("state", True)
            .limit(1)
            .execute(),
        )
        if not response.data:
            raise NotFoundError(f"User {user_id} not found")
        return _to_user(response.data[0])

    def get_by_id(self, user_id: UUID) -> UserRecord:
        """Return a user by id regardless of state."""
        response = self._run(
            "get_by_id",
            lambda: self.client.table(self.table_name)
            .select(USER_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute(),
        )
        if not response.data:
            raise NotFoundError(f"User {user_id} not found")
        return _to_user(response.data[0])

    def get_credentials(self, user_id: UUID) -> UserCredentials:
        """Return the fields needed to authorize a change."""
        response = self._run(
            "get_credentials",
            lambda: self.client.table(self.table_name)
            .select("id, password_hash, photo")
            .eq("id", str(user_id))
            .limit(1)
            .execute(),
        )
        if not response.data:
            raise NotFoundError(f"User {user_id} not found")
        row = response.data[0]
        return UserCredentials(
            id=UUID(row["id"]),
            password_hash=row.get("password_hash") or "",
            photo=PhotoRef.from_row(row.get("photo")),
        )

    def insert(self, user: NewUser) -> UUID:
        """Create a user row and return its id."""
        response = self._run(
            "insert",
            lambda: self.client.table(self.table_name)
            .insert(
                {
                    "first_name": user.first_name,
                    "last_name": user.last_name,
                    "email": user.email,
                    "password_hash": user.password_hash,
                    "is_admin": user.is_admin,
                    "is_user": user.is_user,
                    "state": user.state,
                    "photo": user.photo.to_row() if user.photo else None,
                }
            )
            .execute(),
        )
        if not response.data:
            raise StoreError("Failed to create user in Supabase")
        return UUID(response.data[0]["id"])

    def update_fields(self, user_id: UUID, fields: dict[str, object]) -> None:
        """Apply a partial update to a user row."""
        payload = _serialize_fields(fields)
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = self._run(
            "update_fields",
            lambda: self.client.table(self.table_name)
            .update(payload)
            .eq("id", str(user_id))
            .execute(),
        )
        if not response.data:
            raise NotFoundError(f"User {user_id} not found")

    def soft_delete(self, user_id: UUID) -> None:
        """Deactivate a user, clearing roles and photo in one write."""
        response = self._run(
            "soft_delete",
            lambda: self.client.table(self.table_name)
            .update(
                {
                    "state": False,
                    "is_user": False,
                    "is_admin": False,
                    "photo": None,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(user_id))
            .execute(),
        )
        if not response.data:
            raise NotFoundError(f"User {user_id} not found")

    @staticmethod
    def _run(operation: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise ConflictError("A user with this email already exists") from exc
            raise StoreError(f"Supabase {operation} failed") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Supabase {operation} failed") from exc


def _serialize_fields(fields: dict[str, object]) -> dict[str, object]:
    """Build an update payload, writing photo references whole."""
    unknown = sorted(set(fields) - WRITABLE_COLUMNS)
    if unknown:
        raise StoreError(f"Columns are not writable: {', '.join(unknown)}")
    payload: dict[str, object] = {}
    for column, value in fields.items():
        if column == "photo":
            if value is not None and not isinstance(value, PhotoRef):
                raise StoreError("photo must be written as a complete reference")
            payload[column] = value.to_row() if value else None
        else:
            payload[column] = value
    return payload


def _to_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        email=str(row.get("email") or ""),
        password_hash=str(row.get("password_hash") or ""),
        is_admin=bool(row.get("is_admin")),
        is_user=bool(row.get("is_user")),
        state=bool(row.get("state")),
        photo=PhotoRef.from_row(row.get("photo")),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
