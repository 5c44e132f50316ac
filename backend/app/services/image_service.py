"""
Flock Backend — Image Hosting Service
=======================================

What:  Hosts post images, avatars and cover images, and releases them again.
How:   Accepts a base64 data URI from the client, validates declared type,
       decoded size and sniffed content type, then stores the bytes in a
       date-organized directory under STORAGE_ROOT with a UUID filename.
Who:   Called by PostService (create/delete) and UserService (profile images).

Addressing:
    Every hosted image has an asset id (its path relative to STORAGE_ROOT,
    e.g. 2024/01/15/<uuid>.png) and a public URL (/api/files/<asset id>).
    Only the URL is stored on posts/users; the asset id is derived back
    from it when the image is released.

Failure policy:
    No retries. Storage failures raise ImageStorageError (500, generic
    message); bad client input raises ValidationError (400).
"""

import base64
import binascii
import logging
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import ValidationError, ImageStorageError

logger = logging.getLogger(__name__)

# Public URL prefix served by app.routes.files
PUBLIC_PREFIX = "/api/files/"

# ── Allowed Image Types ───────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$",
    re.DOTALL,
)


class ImageService:
    """
    Manages the hosted-image lifecycle.

    Directory Structure:
        storage/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-5678.jpg
                    └── e5f6g7h8-9012.png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def decode_data_uri(self, data_uri: str) -> Tuple[str, bytes]:
        """
        Split a `data:<mime>;base64,<payload>` string into (mime, bytes).

        Raises:
            ValidationError: not a data URI, unsupported type, or bad base64.
        """
        match = DATA_URI_PATTERN.match(data_uri.strip())
        if match is None:
            raise ValidationError(
                message="Image must be sent as a base64 data URI",
                field="img",
            )

        mime_type = match.group("mime").lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"Image type '{mime_type}' is not supported. "
                    f"Allowed types: png, jpeg, gif, webp"
                ),
                field="img",
                context={"declared_mime": mime_type},
            )

        try:
            content = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(message="Image data is not valid base64", field="img")

        return mime_type, content

    def validate_size(self, content: bytes) -> None:
        """Reject empty images and images larger than MAX_IMAGE_SIZE."""
        if not content:
            raise ValidationError(message="Image is empty", field="img")

        if len(content) > settings.max_image_size:
            max_mb = settings.max_image_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_mb:.0f}MB.",
                field="img",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def detect_mime_type(self, content: bytes) -> str:
        """
        Sniff the real content type from the file header bytes.

        Raises:
            ImageStorageError: libmagic is unavailable or failed.
        """
        try:
            import magic
            return magic.from_buffer(content, mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise ImageStorageError(
                message="Could not verify image type. Please try again.",
                context={"error": str(e)},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """Ensure the bytes really are one of the allowed image types."""
        mime_type = self.detect_mime_type(content)
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=f"File content type '{mime_type}' is not a supported image.",
                field="img",
                context={"detected_mime": mime_type},
            )
        return mime_type

    # ── Addressing ────────────────────────────────────────────────────────

    def _generate_asset_id(self, extension: str) -> str:
        """YYYY/MM/DD/<uuid><ext>"""
        now = datetime.now(timezone.utc)
        return f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"

    def url_for(self, asset_id: str) -> str:
        return f"{PUBLIC_PREFIX}{asset_id}"

    def asset_id_from_url(self, url: str) -> Optional[str]:
        """
        Derive the asset id from a hosted image URL.

        Returns None for empty values and for URLs this service did not issue.
        """
        if not url:
            return None
        path = url.split("?", 1)[0]
        index = path.find(PUBLIC_PREFIX)
        if index == -1:
            return None
        asset_id = path[index + len(PUBLIC_PREFIX):]
        return asset_id or None

    def resolve_path(self, asset_id: str) -> Path:
        """
        Absolute path for an asset id, confined to the storage root.

        Raises:
            ValidationError: the id escapes the storage root (e.g. ../../etc).
        """
        full_path = (self.storage_root / asset_id).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path")
        return full_path

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def upload(self, data_uri: str) -> str:
        """
        Validate and store an image, returning its public URL.

        Validation order (cheapest first):
            1. Data URI shape and declared type
            2. Decoded size
            3. Sniffed content type
        """
        declared_mime, content = self.decode_data_uri(data_uri)
        self.validate_size(content)
        detected_mime = self.validate_mime_type(content)

        extension = ALLOWED_MIME_TYPES.get(detected_mime, ALLOWED_MIME_TYPES[declared_mime])
        asset_id = self._generate_asset_id(extension)
        absolute_path = self.storage_root / asset_id

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise ImageStorageError(
                message="Failed to save image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", asset_id, len(content))
        return self.url_for(asset_id)

    async def destroy(self, url: str) -> None:
        """
        Release a hosted image.

        Unknown URLs and already-missing files are ignored; OS failures raise
        ImageStorageError so the surrounding write is rolled back.
        """
        asset_id = self.asset_id_from_url(url)
        if asset_id is None:
            logger.debug("Destroy skipped, not a hosted image: %s", url)
            return

        path = self.resolve_path(asset_id)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Image released: %s", asset_id)
            else:
                logger.debug("Image already gone: %s", asset_id)
        except OSError as e:
            logger.error("Failed to release image %s: %s", asset_id, str(e))
            raise ImageStorageError(
                message="Failed to remove image. Please try again.",
                context={"asset_id": asset_id, "os_error": str(e)},
            )


image_service = ImageService()
