"""Response models for the users API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from user_accounts.domain.models import PhotoRef, UserRecord


class PhotoOut(BaseModel):
    """Public reference to a profile photo."""

    asset_id: str
    locator: str


class UserOut(BaseModel):
    """User fields safe to return to clients."""

    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str
    is_admin: bool
    is_user: bool
    state: bool
    photo: PhotoOut | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserOut":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            is_admin=user.is_admin,
            is_user=user.is_user,
            state=user.state,
            photo=_photo_out(user.photo),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


def _photo_out(photo: PhotoRef | None) -> PhotoOut | None:
    if photo is None:
        return None
    return PhotoOut(asset_id=photo.asset_id, locator=photo.locator)
