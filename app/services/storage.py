"""
Storage service for uploaded images and documents.
Files are written under the upload directory and addressed by URL path;
only that reference is persisted on the owning record.
"""

import io
import uuid
import logging
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
from PIL import Image, UnidentifiedImageError
from fastapi import UploadFile

from app.config import get_settings
from app.utils.exceptions import (
    DependencyError,
    FileSizeExceededError,
    FileUploadError,
    UnsupportedFileTypeError,
)

settings = get_settings()
logger = logging.getLogger(__name__)

# Pillow format name for each accepted image extension
IMAGE_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
}

DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx")


class StorageService:
    """Local-disk storage served by the application under the upload URL prefix."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        max_file_size: Optional[int] = None
    ):
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
        self.max_file_size = max_file_size or settings.max_file_size

        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _extension(file: UploadFile) -> str:
        if not file.filename:
            raise FileUploadError("Filename is required")
        return Path(file.filename).suffix.lower()

    async def _read(self, file: UploadFile) -> bytes:
        await file.seek(0)
        content = await file.read()
        if not content:
            raise FileUploadError(f"'{file.filename}' is empty")
        if len(content) > self.max_file_size:
            raise FileSizeExceededError(len(content), self.max_file_size)
        return content

    @staticmethod
    def _verify_image(content: bytes, extension: str, filename: str) -> None:
        """
        Check the bytes really are an image of the declared kind.

        Raises:
            FileUploadError: If Pillow cannot read it or the format differs
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                detected = img.format
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise FileUploadError(f"'{filename}' is not a valid image: {e}")

        if detected != IMAGE_FORMATS[extension]:
            raise FileUploadError(f"'{filename}' content does not match its extension")

    async def _write(self, content: bytes, folder: str, extension: str) -> str:
        target_dir = self.upload_dir / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4().hex}{extension}"
        path = target_dir / name

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to store upload in {target_dir}: {e}", exc_info=True)
            if path.exists():
                path.unlink()
            raise DependencyError("File could not be stored")

        return f"{self.url_prefix}/{folder}/{name}"

    async def save_image(self, file: UploadFile, folder: str) -> str:
        """
        Validate and store an image.

        Args:
            file: Uploaded JPEG, PNG or WebP file
            folder: Sub-directory of the upload directory

        Returns:
            URL path of the stored file
        """
        extension = self._extension(file)
        if extension not in IMAGE_FORMATS:
            raise UnsupportedFileTypeError(extension or "unknown", list(IMAGE_FORMATS))

        content = await self._read(file)
        self._verify_image(content, extension, file.filename)

        url = await self._write(content, folder, extension)
        logger.info(f"Stored image {file.filename} as {url}")
        return url

    async def save_document(self, file: UploadFile, folder: str) -> str:
        """Store a PDF/DOC/DOCX document, or an image validated as such."""
        extension = self._extension(file)
        if extension in IMAGE_FORMATS:
            return await self.save_image(file, folder)

        if extension not in DOCUMENT_EXTENSIONS:
            raise UnsupportedFileTypeError(
                extension or "unknown",
                list(DOCUMENT_EXTENSIONS) + list(IMAGE_FORMATS)
            )

        content = await self._read(file)
        url = await self._write(content, folder, extension)
        logger.info(f"Stored document {file.filename} as {url}")
        return url

    def path_for(self, url: str) -> Optional[Path]:
        """Map a stored URL back to its file, or None for foreign URLs."""
        prefix = f"{self.url_prefix}/"
        if not url or not url.startswith(prefix):
            return None
        return self.upload_dir / url[len(prefix):]

    def delete(self, urls: Iterable[str]) -> None:
        """Remove stored files; missing or foreign references are skipped."""
        for url in urls:
            path = self.path_for(url)
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove stored file {path}: {e}")
