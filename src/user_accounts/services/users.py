"""User lifecycle: keeps user rows and their profile photos consistent."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from user_accounts.domain.errors import (
    OperationResult,
    UnauthorizedError,
    UploadError,
    UserAccountsError,
    ValidationError,
)
from user_accounts.domain.models import (
    NewUser,
    NewUserFields,
    PhotoAsset,
    PhotoPayload,
    PhotoRef,
    UserCredentials,
    UserPage,
    UserRecord,
)
from user_accounts.services.passwords import PasswordHasher

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"first_name", "last_name", "email", "is_admin", "password"}
)
MAX_PASSWORD_BYTES = 72


class UserRecordStore(Protocol):
    """Persistence interface for user rows."""

    def list_active(self, offset: int, limit: int) -> tuple[list[UserRecord], int]:
        """Return a page of active users and the total active count."""

    def get_active_by_id(self, user_id: UUID) -> UserRecord:
        """Return an active user or raise NotFoundError."""

    def get_by_id(self, user_id: UUID) -> UserRecord:
        """Return a user in any state or raise NotFoundError."""

    def get_credentials(self, user_id: UUID) -> UserCredentials:
        """Return the password hash and photo of a user in any state."""

    def insert(self, user: NewUser) -> UUID:
        """Persist a new user and return its id."""

    def update_fields(self, user_id: UUID, fields: dict[str, object]) -> None:
        """Apply a partial update or raise NotFoundError."""

    def soft_delete(self, user_id: UUID) -> None:
        """Deactivate a user and clear its roles and photo."""


class BlobStore(Protocol):
    """Storage interface for profile photos."""

    def upload(self, photo: PhotoPayload, folder: str) -> PhotoAsset:
        """Store a new asset and return its reference."""

    def replace(
        self, existing_asset_id: str | None, photo: PhotoPayload, folder: str
    ) -> PhotoAsset:
        """Store a new asset and remove the previous one."""

    def delete(self, asset_id: str) -> None:
        """Remove an asset; missing assets are ignored."""


@dataclass
class UserLifecycle:
    """Application service for creating, updating and deleting users."""

    records: UserRecordStore
    photos: BlobStore
    hasher: PasswordHasher
    photo_folder: str = "users"
    max_page_size: int = 100

    def list_users(self, offset: int, limit: int) -> OperationResult[UserPage]:
        """Return a page of active users, most recently updated first."""
        operation = "list_users"
        try:
            if offset < 0:
                raise ValidationError("from must be zero or greater")
            if limit <= 0 or limit > self.max_page_size:
                raise ValidationError(
                    f"limit must be between 1 and {self.max_page_size}"
                )
            users, total = self.records.list_active(offset, limit)
        except UserAccountsError as exc:
            return self._failed(operation, exc)
        return OperationResult.success(operation, UserPage(users=users, total=total))

    def get_user(self, user_id: UUID) -> OperationResult[UserRecord]:
        """Return an active user."""
        operation = "get_user"
        try:
            user = self.records.get_active_by_id(user_id)
        except UserAccountsError as exc:
            return self._failed(operation, exc, user_id)
        return OperationResult.success(operation, user, user_id=user_id)

    def create_user(
        self, fields: NewUserFields, photo: PhotoPayload | None = None
    ) -> OperationResult[UUID]:
        """Create a user, uploading the photo before the row is inserted.

        If the insert fails after a successful upload the uploaded asset is
        deleted again so no orphan is left in the blob store.
        """
        operation = "create_user"
        warnings: list[str] = []
        try:
            email = (fields.email or "").strip()
            password = fields.password or ""
            if not email or not password.strip():
                raise ValidationError("Email and password are required")
            _check_password_length(password)
            new_user = NewUser(
                email=email,
                password_hash=self.hasher.hash(password),
                first_name=fields.first_name,
                last_name=fields.last_name,
                is_admin=fields.is_admin,
            )

            photo_ref: PhotoRef | None = None
            if photo is not None:
                photo_ref = self.photos.upload(photo, self.photo_folder)
                new_user = replace(new_user, photo=photo_ref)

            try:
                user_id = self.records.insert(new_user)
            except Exception:
                if photo_ref is not None:
                    warning = self._discard_asset(photo_ref, operation)
                    if warning:
                        warnings.append(warning)
                raise
        except UserAccountsError as exc:
            return self._failed(operation, exc, warnings=warnings)

        logger.info("User created", extra={"user_id": str(user_id)})
        return OperationResult.success(operation, user_id, user_id=user_id)

    def update_user(
        self,
        user_id: UUID,
        confirm_password: str | None,
        changes: dict[str, object],
        photo: PhotoPayload | None = None,
    ) -> OperationResult[UUID]:
        """Update a user after verifying the confirmation password.

        The confirmation check gates every mutation. When a photo is supplied
        and the blob store rejects it, no field is written. The previous photo
        is removed by the replace itself, so if saving the new reference then
        fails the row keeps pointing at that removed photo while the new upload
        is deleted again.
        """
        operation = "update_user"
        warnings: list[str] = []
        try:
            credentials = self.records.get_credentials(user_id)
            if not self.hasher.verify(confirm_password, credentials.password_hash):
                raise UnauthorizedError()

            fields = self._prepare_changes(changes)

            if photo is not None:
                current = credentials.photo.asset_id if credentials.photo else None
                photo_ref = self.photos.replace(current, photo, self.photo_folder)
                try:
                    self.records.update_fields(user_id, {"photo": photo_ref})
                except Exception:
                    warning = self._discard_asset(photo_ref, operation)
                    if warning:
                        warnings.append(warning)
                    raise

            if fields:
                self.records.update_fields(user_id, fields)
        except UserAccountsError as exc:
            return self._failed(operation, exc, user_id, warnings)

        logger.info("User updated", extra={"user_id": str(user_id)})
        return OperationResult.success(operation, user_id, user_id=user_id)

    def delete_user(self, user_id: UUID) -> OperationResult[UUID]:
        """Soft-delete a user; photo removal is best effort."""
        operation = "delete_user"
        warnings: list[str] = []
        try:
            user = self.records.get_by_id(user_id)
            if user.photo is not None:
                try:
                    self.photos.delete(user.photo.asset_id)
                except UploadError as exc:
                    logger.warning(
                        "Failed to delete user photo",
                        extra={
                            "user_id": str(user_id),
                            "asset_id": user.photo.asset_id,
                        },
                        exc_info=exc,
                    )
                    warnings.append(f"Photo could not be removed: {exc.message}")
            self.records.soft_delete(user_id)
        except UserAccountsError as exc:
            return self._failed(operation, exc, user_id, warnings)

        logger.info("User deleted", extra={"user_id": str(user_id)})
        return OperationResult.success(
            operation, user_id, user_id=user_id, warnings=tuple(warnings)
        )

    def _prepare_changes(self, changes: dict[str, object]) -> dict[str, object]:
        unknown = sorted(set(changes) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
        fields = {key: value for key, value in changes.items() if value is not None}
        if "email" in fields:
            email = str(fields["email"]).strip()
            if not email:
                raise ValidationError("Email cannot be empty")
            fields["email"] = email
        if "password" in fields:
            password = str(fields.pop("password"))
            if not password.strip():
                raise ValidationError("Password cannot be empty")
            _check_password_length(password)
            fields["password_hash"] = self.hasher.hash(password)
        return fields

    def _discard_asset(self, asset: PhotoRef, operation: str) -> str | None:
        """Delete an asset whose record write failed."""
        try:
            self.photos.delete(asset.asset_id)
        except UploadError as exc:
            logger.exception(
                "Compensating photo delete failed",
                extra={"operation": operation, "asset_id": asset.asset_id},
            )
            return f"Uploaded photo could not be removed: {exc.message}"
        logger.info(
            "Removed orphaned photo",
            extra={"operation": operation, "asset_id": asset.asset_id},
        )
        return None

    @staticmethod
    def _failed(
        operation: str,
        exc: UserAccountsError,
        user_id: UUID | None = None,
        warnings: list[str] | None = None,
    ) -> OperationResult:
        logger.warning(
            "User operation failed",
            extra={
                "operation": operation,
                "user_id": str(user_id) if user_id else None,
                "error_kind": exc.kind.value,
            },
        )
        return OperationResult.failure(
            operation, exc, user_id=user_id, warnings=tuple(warnings or ())
        )


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
        )

