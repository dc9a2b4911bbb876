"""Domain models for user accounts."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class PhotoRef:
    """Reference to a stored profile photo."""

    asset_id: str
    locator: str

    def __post_init__(self) -> None:
        if not self.asset_id or not self.locator:
            raise ValueError("PhotoRef requires both asset_id and locator")

    def to_row(self) -> dict[str, str]:
        return {"asset_id": self.asset_id, "locator": self.locator}

    @classmethod
    def from_row(cls, raw: object) -> "PhotoRef | None":
        """Parse the JSON column, treating empty references as no photo."""
        if not isinstance(raw, dict):
            return None
        asset_id = raw.get("asset_id") or ""
        locator = raw.get("locator") or ""
        if not asset_id or not locator:
            return None
        return cls(asset_id=str(asset_id), locator=str(locator))


PhotoAsset = PhotoRef


@dataclass(frozen=True)
class PhotoPayload:
    """Photo bytes received from a client."""

    content: bytes
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    first_name: str | None
    last_name: str | None
    email: str
    password_hash: str
    is_admin: bool
    is_user: bool
    state: bool
    photo: PhotoRef | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class UserCredentials:
    """Fields needed to authorize a change to a user."""

    id: UUID
    password_hash: str
    photo: PhotoRef | None


@dataclass(frozen=True)
class NewUserFields:
    """Client-supplied fields for a new user."""

    email: str
    password: str
    first_name: str | None = None
    last_name: str | None = None
    is_admin: bool = False


@dataclass(frozen=True)
class NewUser:
    """Insert payload for a user row."""

    email: str
    password_hash: str
    first_name: str | None = None
    last_name: str | None = None
    is_admin: bool = False
    is_user: bool = True
    state: bool = True
    photo: PhotoRef | None = None


@dataclass(frozen=True)
class UserPage:
    """One page of active users."""

    users: list[UserRecord]
    total: int
