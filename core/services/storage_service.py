# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles image upload/delete operations with Supabase Storage.
#
# Buckets:
#   listing-images   {listing_id}/{timestamp_ms}-{index}.{ext}
#   profile-photos   {user_id}/{timestamp_ms}.{ext}
# =============================================================================

import logging
import time
from pathlib import PurePosixPath

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    StorageDeleteError,
    StorageUploadError,
)

logger = logging.getLogger(__name__)

# Storage bucket names
LISTING_IMAGES_BUCKET = "listing-images"
PROFILE_PHOTOS_BUCKET = "profile-photos"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles validating, uploading and removing images.
    """

    @staticmethod
    def validate_image(filename: str, content: bytes) -> str:
        """
        Check extension and size of an uploaded image.

        Returns:
            The lower-cased extension without the dot (e.g. "jpg")

        Raises:
            InvalidFileTypeError: If the extension isn't allowed
            FileTooLargeError: If the file exceeds MAX_UPLOAD_SIZE_MB
        """
        suffix = PurePosixPath(filename or "").suffix.lower()
        allowed = settings.allowed_image_extensions_list
        if suffix not in allowed:
            raise InvalidFileTypeError(filename, allowed)

        if len(content) > settings.max_upload_size_bytes:
            raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

        return suffix.lstrip(".")

    @staticmethod
    def upload_image(bucket: str, path: str, content: bytes) -> str:
        """
        Upload image bytes and return the public URL.

        Args:
            bucket: Storage bucket name
            path: Object path inside the bucket
            content: Raw file bytes

        Returns:
            Public URL of the stored file

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()
        content_type = CONTENT_TYPES.get(PurePosixPath(path).suffix.lower(), "application/octet-stream")

        try:
            client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            logger.info(f"Uploaded file to storage: {bucket}/{path}")
            return client.storage.from_(bucket).get_public_url(path)

        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

    @staticmethod
    def upload_listing_images(
        listing_id: str,
        files: list[tuple[str, bytes]],
    ) -> list[str]:
        """
        Upload a batch of listing images.

        Args:
            listing_id: Listing UUID (used as the folder)
            files: (filename, content) pairs

        Returns:
            Public URLs in the same order as `files`
        """
        # Validate everything first so a bad file doesn't leave a partial upload
        extensions = [StorageService.validate_image(name, content) for name, content in files]

        timestamp = int(time.time() * 1000)
        urls = []
        for index, ((_, content), ext) in enumerate(zip(files, extensions)):
            path = f"{listing_id}/{timestamp}-{index}.{ext}"
            urls.append(StorageService.upload_image(LISTING_IMAGES_BUCKET, path, content))
        return urls

    @staticmethod
    def upload_profile_photo(user_id: str, filename: str, content: bytes) -> str:
        """Upload a profile photo and return its public URL."""
        ext = StorageService.validate_image(filename, content)
        path = f"{user_id}/{int(time.time() * 1000)}.{ext}"
        return StorageService.upload_image(PROFILE_PHOTOS_BUCKET, path, content)

    @staticmethod
    def path_from_public_url(url: str) -> str:
        """
        Recover the object path from a listing image URL.

        Listing images live one folder deep, so the path is the last
        two URL segments ({listing_id}/{file}).
        """
        return "/".join(url.rstrip("/").split("?")[0].split("/")[-2:])

    @staticmethod
    def delete_files(bucket: str, paths: list[str]) -> None:
        """
        Delete files from storage.

        Raises:
            StorageDeleteError: If removal fails
        """
        if not paths:
            return

        client = SupabaseClient.get_client()

        try:
            client.storage.from_(bucket).remove(paths)
            logger.info(f"Deleted {len(paths)} file(s) from storage bucket {bucket}")

        except Exception as e:
            logger.error(f"Failed to delete files: {e}")
            raise StorageDeleteError(", ".join(paths), str(e))

    @staticmethod
    def list_buckets() -> list[str]:
        """Names of the storage buckets (used by the readiness check)."""
        client = SupabaseClient.get_client()
        return [bucket.name for bucket in client.storage.list_buckets()]
