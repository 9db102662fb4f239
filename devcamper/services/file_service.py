"""
DevCamper API — Photo Storage Service
======================================

What:  Validates and stores bootcamp photo uploads on local disk.
Why:   Keeps all file system access (and its failure modes) out of the
       bootcamp service and routes.
How:   Checks the declared content type and size, names the file after the
       bootcamp (`photo_<bootcamp id><ext>`) and writes it with aiofiles.
Who:   BootcampService.upload_photo().

Naming:
    One photo per bootcamp: a new upload with the same extension replaces the
    old file. The stored name contains no user-controlled text except the
    extension, which is lower-cased and reduced to [.a-z0-9].
"""

import logging
import re
from pathlib import Path
from typing import Optional
from uuid import UUID

import aiofiles

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

_SAFE_EXT = re.compile(r"[^.a-z0-9]")


class FileService:
    """
    Lifecycle of an upload:
        1. Route receives multipart `file` → BootcampService.upload_photo()
        2. validate(): image content type, size ≤ MAX_FILE_UPLOAD
        3. store_photo(): write FILE_UPLOAD_PATH/photo_<id><ext>
        4. The bootcamp row's `photo` column is set to the stored name
    """

    def __init__(self, upload_root: Optional[str] = None):
        """
        Args:
            upload_root: Override the upload directory (used in tests).
        """
        self.upload_root = Path(upload_root or settings.file_upload_path).resolve()
        self.upload_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_root=%s", self.upload_root)

    def validate(self, content_type: Optional[str], size: int) -> None:
        if not content_type or not content_type.startswith("image"):
            raise ValidationError(
                message="Please upload an image file",
                field="file",
                context={"content_type": content_type},
            )
        if size > settings.max_file_upload:
            raise ValidationError(
                message=f"Please upload an image less than {settings.max_file_upload} bytes",
                field="file",
                context={"max_bytes": settings.max_file_upload, "actual_bytes": size},
            )

    @staticmethod
    def photo_name(bootcamp_id: UUID, filename: Optional[str]) -> str:
        ext = _SAFE_EXT.sub("", Path(filename or "").suffix.lower())
        return f"photo_{bootcamp_id}{ext}"

    async def store_photo(self, bootcamp_id: UUID, filename: Optional[str], content: bytes) -> str:
        """
        Write the photo and return its stored name.

        Raises:
            FileStorageError: directory or write failure (disk full, permissions).
        """
        name = self.photo_name(bootcamp_id, filename)
        target = self.upload_root / name
        try:
            self.upload_root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo %s: %s", name, str(e))
            raise FileStorageError(context={"photo": name})

        logger.info("Photo stored: %s (%d bytes)", name, len(content))
        return name

    async def validate_and_store(
        self,
        bootcamp_id: UUID,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        self.validate(content_type, len(content))
        return await self.store_photo(bootcamp_id, filename, content)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
