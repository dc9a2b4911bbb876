"""Supabase Storage implementation of the photo blob store."""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import PurePosixPath
from uuid import uuid4

from supabase import Client

from user_accounts.domain.errors import UploadError
from user_accounts.domain.models import PhotoAsset, PhotoPayload
from user_accounts.services.users import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class SupabasePhotoStorage(BlobStore):
    """Stores profile photos in a Supabase Storage bucket."""

    client: Client
    bucket: str = "avatars"

    def upload(self, photo: PhotoPayload, folder: str) -> PhotoAsset:
        """Upload photo bytes under a fresh object path."""
        content_type = photo.content_type or _guess_content_type(photo.filename)
        asset_id = f"{folder.strip('/')}/{uuid4().hex}{_extension(photo, content_type)}"
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(
                asset_id,
                photo.content,
                {"content-type": content_type, "upsert": "false"},
            )
            locator = bucket.get_public_url(asset_id)
        except Exception as exc:
            raise UploadError(f"Failed to upload photo to {self.bucket}") from exc
        return PhotoAsset(asset_id=asset_id, locator=locator)

    def replace(
        self, existing_asset_id: str | None, photo: PhotoPayload, folder: str
    ) -> PhotoAsset:
        """Upload the new photo, then remove the previous object."""
        asset = self.upload(photo, folder)
        if existing_asset_id:
            try:
                self.delete(existing_asset_id)
            except UploadError:
                logger.warning(
                    "Previous photo was not removed",
                    extra={"asset_id": existing_asset_id},
                    exc_info=True,
                )
        return asset

    def delete(self, asset_id: str) -> None:
        """Remove a photo object; removing a missing object is a no-op."""
        if not asset_id:
            return
        try:
            self.client.storage.from_(self.bucket).remove([asset_id])
        except Exception as exc:
            raise UploadError(f"Failed to delete photo {asset_id}") from exc


def _guess_content_type(filename: str | None) -> str:
    if not filename:
        return DEFAULT_CONTENT_TYPE
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE


def _extension(photo: PhotoPayload, content_type: str) -> str:
    if photo.filename:
        suffix = PurePosixPath(photo.filename).suffix.lower()
        if suffix:
            return suffix
    return mimetypes.guess_extension(content_type) or ""
