"""
Document storage backends.

A backend stores uploaded bytes and hands back a locator (a URL) that is
saved on the Document row; the same locator is later used to delete the file.
Deletes are idempotent: removing something that is already gone is not an
error.
"""
import logging
import os
import re
import time
from pathlib import Path
from typing import BinaryIO, Optional

import cloudinary
import cloudinary.uploader
import cloudinary.exceptions

from ..config import settings

# Set up logger for this module
logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

class StorageRejectedError(Exception):
    """Raised when an upload is refused before it is stored"""
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

def validate_upload(content_type: Optional[str], size: int, max_bytes: Optional[int] = None) -> None:
    """
    Check an upload against the size limit and the allowed document types.

    Raises:
        StorageRejectedError: If the file is too large or of a refused type
    """
    max_bytes = max_bytes or settings.max_upload_bytes
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise StorageRejectedError("Only PDF, images, and Word documents are allowed.")
    if size > max_bytes:
        raise StorageRejectedError(f"File exceeds {max_bytes // (1024 * 1024)} MB limit.")

def read_upload(stream: BinaryIO, max_bytes: Optional[int] = None) -> bytes:
    """
    Read an upload stream, stopping one byte past the size limit.

    A result longer than the limit means the file is too large; the rest of
    the stream is never loaded.
    """
    max_bytes = max_bytes or settings.max_upload_bytes
    return stream.read(max_bytes + 1)

def safe_file_name(file_name: str) -> str:
    """Keep letters, digits, dots, dashes and underscores; replace the rest"""
    name = re.sub(r"[^A-Za-z0-9._-]", "_", os.path.basename(file_name or ""))
    return name.strip(".") or "file"

class StorageBackend:
    """Interface shared by the storage backends"""

    def store(self, data: bytes, file_name: str, content_type: str, referral_id: int) -> str:
        raise NotImplementedError

    def delete(self, locator: str) -> None:
        raise NotImplementedError

class LocalFileStorage(StorageBackend):
    """
    Stores files under ``<root>/referrals/<referral_id>/`` and serves them
    from ``<url_prefix>/referrals/<referral_id>/<file>``.
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def store(self, data: bytes, file_name: str, content_type: str, referral_id: int) -> str:
        stored_name = f"{int(time.time() * 1000)}-{safe_file_name(file_name)}"
        directory = self.root / "referrals" / str(referral_id)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / stored_name).write_bytes(data)
        logger.info(f"Stored {len(data)} bytes for referral {referral_id} as {stored_name}")
        return f"{self.url_prefix}/referrals/{referral_id}/{stored_name}"

    def _path_for(self, locator: str) -> Optional[Path]:
        prefix = f"{self.url_prefix}/"
        if not locator.startswith(prefix):
            return None
        root = self.root.resolve()
        path = (root / locator[len(prefix):]).resolve()
        if root not in path.parents:
            return None
        return path

    def delete(self, locator: str) -> None:
        path = self._path_for(locator)
        if path is None:
            logger.warning(f"Not a local storage locator: {locator}")
            return
        try:
            path.unlink()
            logger.info(f"Removed stored file {locator}")
        except FileNotFoundError:
            logger.info(f"Stored file {locator} already gone")

class CloudinaryStorage(StorageBackend):
    """
    Uploads to Cloudinary and returns the ``secure_url``; deletes by public id.
    """

    def __init__(self, cloud_name: Optional[str], api_key: Optional[str], api_secret: Optional[str]):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True
        )

    def store(self, data: bytes, file_name: str, content_type: str, referral_id: int) -> str:
        try:
            result = cloudinary.uploader.upload(
                data,
                folder=f"referrals/{referral_id}",
                resource_type="auto",
                use_filename=True,
                filename_override=safe_file_name(file_name)
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary API error during document upload: {str(e)}")
            raise

        secure_url = result.get("secure_url")
        if not secure_url:
            logger.error("Cloudinary upload result did not contain a secure_url.")
            raise RuntimeError("Upload failed")
        logger.info(f"Successfully uploaded document to Cloudinary. URL: {secure_url}")
        return secure_url

    @staticmethod
    def parse_locator(locator: str):
        """
        Split a Cloudinary delivery URL into (resource_type, public_id).

        ``https://res.cloudinary.com/<cloud>/<type>/upload/v123/<public_id>.<ext>``
        Raw files keep their extension in the public id; images and videos do not.
        """
        match = re.search(r"/(image|video|raw)/upload/(?:v\d+/)?(.+)$", locator)
        if not match:
            return None, None
        resource_type, public_id = match.groups()
        if resource_type != "raw":
            public_id = os.path.splitext(public_id)[0]
        return resource_type, public_id

    def delete(self, locator: str) -> None:
        resource_type, public_id = self.parse_locator(locator)
        if public_id is None:
            logger.warning(f"Not a Cloudinary locator: {locator}")
            return
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except cloudinary.exceptions.NotFound:
            logger.info(f"Cloudinary asset {public_id} already gone")
            return
        logger.info(f"Cloudinary destroy {public_id}: {result.get('result')}")

def get_storage() -> StorageBackend:
    """
    Storage backend selected by ``STORAGE_BACKEND``.

    Used as a FastAPI dependency so tests can swap in a temporary directory.
    """
    if settings.storage_backend == "cloudinary":
        return CloudinaryStorage(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret
        )
    return LocalFileStorage(settings.upload_dir, settings.upload_url_prefix)
