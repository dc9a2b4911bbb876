"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from user_accounts.config import Settings
from user_accounts.containers import AppContainer
from user_accounts.domain.errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    UploadError,
)
from user_accounts.domain.models import (
    NewUser,
    PhotoAsset,
    PhotoPayload,
    PhotoRef,
    UserCredentials,
    UserRecord,
)
from user_accounts.services.passwords import PasswordHasher
from user_accounts.services.users import BlobStore, UserLifecycle, UserRecordStore


@dataclass
class InMemoryUserRepository(UserRecordStore):
    """In-memory user repository for tests."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)
    fail_insert: Exception | None = None
    fail_updates: Exception | None = None
    fail_soft_delete: Exception | None = None
    writes: list[tuple[UUID, dict[str, object]]] = field(default_factory=list)

    def list_active(self, offset: int, limit: int) -> tuple[list[UserRecord], int]:
        active = [user for user in self.users.values() if user.state]
        active.sort(key=lambda user: (user.updated_at, user.created_at), reverse=True)
        return active[offset : offset + limit], len(active)

    def get_active_by_id(self, user_id: UUID) -> UserRecord:
        user = self.users.get(user_id)
        if user is None or not user.state:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def get_by_id(self, user_id: UUID) -> UserRecord:
        if user_id not in self.users:
            raise NotFoundError(f"User {user_id} not found")
        return self.users[user_id]

    def get_credentials(self, user_id: UUID) -> UserCredentials:
        user = self.get_by_id(user_id)
        return UserCredentials(
            id=user.id, password_hash=user.password_hash, photo=user.photo
        )

    def insert(self, user: NewUser) -> UUID:
        if self.fail_insert is not None:
            raise self.fail_insert
        if any(existing.email == user.email for existing in self.users.values()):
            raise ConflictError("A user with this email already exists")
        now = datetime.now(tz=UTC)
        record = UserRecord(
            id=uuid4(),
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password_hash=user.password_hash,
            is_admin=user.is_admin,
            is_user=user.is_user,
            state=user.state,
            photo=user.photo,
            created_at=now,
            updated_at=now,
        )
        self.users[record.id] = record
        return record.id

    def update_fields(self, user_id: UUID, fields: dict[str, object]) -> None:
        if self.fail_updates is not None:
            raise self.fail_updates
        user = self.get_by_id(user_id)
        self.writes.append((user_id, dict(fields)))
        self.users[user_id] = replace(
            user, **fields, updated_at=datetime.now(tz=UTC)
        )

    def soft_delete(self, user_id: UUID) -> None:
        if self.fail_soft_delete is not None:
            raise self.fail_soft_delete
        user = self.get_by_id(user_id)
        self.users[user_id] = replace(
            user,
            state=False,
            is_user=False,
            is_admin=False,
            photo=None,
            updated_at=datetime.now(tz=UTC),
        )


@dataclass
class InMemoryPhotoStorage(BlobStore):
    """In-memory blob store for tests."""

    assets: dict[str, bytes] = field(default_factory=dict)
    fail_upload: bool = False
    fail_delete: bool = False
    deleted: list[str] = field(default_factory=list)

    def upload(self, photo: PhotoPayload, folder: str) -> PhotoAsset:
        if self.fail_upload:
            raise UploadError("Failed to upload photo")
        asset_id = f"{folder}/{uuid4().hex}"
        self.assets[asset_id] = photo.content
        return PhotoAsset(
            asset_id=asset_id, locator=f"https://cdn.example.com/{asset_id}"
        )

    def replace(
        self, existing_asset_id: str | None, photo: PhotoPayload, folder: str
    ) -> PhotoAsset:
        asset = self.upload(photo, folder)
        if existing_asset_id:
            self.assets.pop(existing_asset_id, None)
        return asset

    def delete(self, asset_id: str) -> None:
        if self.fail_delete:
            raise UploadError(f"Failed to delete photo {asset_id}")
        self.deleted.append(asset_id)
        self.assets.pop(asset_id, None)


def seed_user(  # noqa: PLR0913
    repository: InMemoryUserRepository,
    hasher: PasswordHasher,
    email: str = "a@x.com",
    password: str = "secret",
    photo: PhotoRef | None = None,
    storage: InMemoryPhotoStorage | None = None,
) -> UserRecord:
    """Insert a user directly into the repository."""
    if photo is not None and storage is not None:
        storage.assets[photo.asset_id] = b"existing"
    user_id = repository.insert(
        NewUser(
            email=email,
            password_hash=hasher.hash(password),
            first_name="Ada",
            last_name="Lovelace",
            photo=photo,
        )
    )
    return repository.users[user_id]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        password_hash_rounds=4,
        environment="test",
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def photo_storage() -> InMemoryPhotoStorage:
    return InMemoryPhotoStorage()


@pytest.fixture
def lifecycle(
    user_repository: InMemoryUserRepository,
    photo_storage: InMemoryPhotoStorage,
    hasher: PasswordHasher,
) -> UserLifecycle:
    return UserLifecycle(
        records=user_repository, photos=photo_storage, hasher=hasher
    )


@pytest.fixture
def container(settings: Settings, lifecycle: UserLifecycle) -> AppContainer:
    return AppContainer(settings=settings, user_lifecycle=lifecycle)


@pytest.fixture
def store_failure() -> StoreError:
    return StoreError("Supabase update_fields failed")
