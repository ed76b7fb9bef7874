"""
Picture API — Upload Storage Service
======================================

What:  Writes uploaded picture files under the public upload directory.
Why:   Centralizes every file system operation behind one service.
How:   Validates size, provisions the upload directory, and stores each file
       as "<token>-<original filename>" where the token is a fresh uuid4.
Who:   Called by PictureService on multipart create and edit.

Naming:
    public/
    └── uploads/
        ├── 5d41402abc4b2a76b9719d911017c592-dish.jpg
        └── 7d793037a0760186574b0282f2f435e7-dish.jpg   ← same client name, no clash

    The slug stored on the picture is "uploads/<name>", i.e. the path
    relative to the public root, which is also the URL it is served from.

    The client filename is reduced to its last path component, accents are
    folded to ASCII, and other characters outside [A-Za-z0-9._-] are
    replaced so it can never leave the upload directory. Long names are
    shortened to fit the 255-byte limit of a single path component.
"""

import logging
import os
import re
import unicodedata
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from picture_api.config import settings
from picture_api.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Fallback used when sanitizing leaves nothing of the client filename
DEFAULT_FILENAME = "upload"

# Common filesystem limit for one path component; the uuid4 hex token and
# its dash take 33 of it
MAX_STORED_NAME = 255
MAX_NAME_LENGTH = MAX_STORED_NAME - 33


class FileService:
    """
    Manages the lifecycle of uploaded picture files.

    Lifecycle of an uploaded file:
        1. PictureService hands over the client filename and bytes
        2. Size check (empty and oversized files are rejected)
        3. Upload directory is created if missing (mkdir -p, idempotent)
        4. File is written under a unique name with async I/O
        5. The slug (path relative to the public root) is returned
        6. remove_upload() deletes a file given its slug, best effort
    """

    def __init__(
        self,
        public_root: Optional[str] = None,
        upload_dir: Optional[str] = None,
    ):
        """
        Args:
            public_root: Override the web root (used in tests).
            upload_dir:  Override the upload directory name.
        """
        self.public_root = Path(public_root or settings.public_root).resolve()
        self.upload_dir = upload_dir or settings.upload_dir

    @property
    def upload_root(self) -> Path:
        return self.public_root / self.upload_dir

    def sanitize_filename(self, filename: Optional[str]) -> str:
        """
        Reduces a client filename to a safe name of at most MAX_NAME_LENGTH chars.

        Keeps the last path component, folds accents to ASCII ("été" → "ete"),
        replaces remaining unsafe characters, and shortens the stem (never the
        extension) so the stored "<token>-<name>" fits MAX_STORED_NAME bytes.
        """
        # Windows clients may send backslash-separated paths
        name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
        name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
        name = _UNSAFE_CHARS.sub("_", name).strip("._")
        if not name:
            return DEFAULT_FILENAME
        if len(name) <= MAX_NAME_LENGTH:
            return name

        stem, ext = os.path.splitext(name)
        if len(ext) >= MAX_NAME_LENGTH:
            return name[:MAX_NAME_LENGTH]
        stem = stem[: MAX_NAME_LENGTH - len(ext)].rstrip("._") or DEFAULT_FILENAME
        return stem + ext

    def generate_filename(self, filename: Optional[str]) -> str:
        """Returns "<uuid4 hex>-<sanitized filename>", unique per call."""
        return f"{uuid.uuid4().hex}-{self.sanitize_filename(filename)}"

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate file size against the configured maximum.

        Args:
            content_length: Size announced by the client (may be None or inaccurate)
            actual_size: Actual byte count of the uploaded file

        Raises:
            ValidationError for empty or oversized files
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Le fichier envoyé est vide",
                field="file",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Le fichier dépasse la taille maximale de {max_mb:.0f} Mo",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"Le fichier dépasse la taille maximale de {max_mb:.0f} Mo",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def ensure_upload_dir(self) -> Path:
        """Creates the upload directory if needed; existing directories are fine."""
        self.upload_root.mkdir(parents=True, exist_ok=True)
        return self.upload_root

    async def store_upload(
        self,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Validate and write an uploaded file.

        Returns:
            The slug of the stored file, e.g. "uploads/<token>-dish.jpg".

        Raises:
            ValidationError if the size check fails.
            FileStorageError if the directory or file cannot be written.
        """
        self.validate_size(content_length, len(content))

        stored_name = self.generate_filename(filename)
        absolute_path = self.upload_root / stored_name

        try:
            self.ensure_upload_dir()

            # 'wb' mode: raw bytes
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        slug = f"{self.upload_dir}/{stored_name}"
        logger.info("File stored: %s (%d bytes)", slug, len(content))
        return slug

    def resolve_slug(self, slug: Optional[str]) -> Optional[Path]:
        """
        Map a slug back to a file inside the upload directory.

        Returns None for slugs that are not upload paths (JSON-created
        pictures may carry any string) or that would escape the directory.
        """
        if not slug or not slug.startswith(f"{self.upload_dir}/"):
            return None
        upload_root = self.upload_root.resolve()
        candidate = (self.public_root / slug).resolve()
        if candidate.parent != upload_root:
            return None
        return candidate

    async def remove_upload(self, slug: Optional[str]) -> None:
        """
        Remove the stored file behind a slug, if there is one.

        Error handling:
            Missing files and non-upload slugs are ignored; OS errors are
            logged. Removal is best effort and never fails the request that
            triggered it.
        """
        path = self.resolve_slug(slug)
        if path is None:
            return
        try:
            if path.exists():
                os.remove(path)
                logger.info("Removed upload: %s", path.name)
            else:
                logger.debug("Removal: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to remove upload %s: %s", slug, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
