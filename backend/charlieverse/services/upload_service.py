from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from charlieverse.models.api import FileInfo, FileMetadata
from charlieverse.models.events import FilesUploaded
from charlieverse.models.user import Principal
from charlieverse.services.event_bus import EventBus
from charlieverse.tools.exceptions import PathValidationError, UpstreamUnavailable, ValidationFailure
from charlieverse.tools.path_utils import resolve_upload_path, unique_upload_name

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "application/zip",
        "application/x-zip-compressed",
    }
)


def file_category(mimetype: str) -> str:
    if mimetype.startswith("image/"):
        return "image"
    if mimetype == "application/pdf":
        return "pdf"
    if "word" in mimetype or "document" in mimetype:
        return "document"
    if "zip" in mimetype:
        return "archive"
    return "other"


@dataclass(slots=True)
class IncomingFile:
    """An uploaded part read into memory, before validation."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class UploadService:
    """Validates and stores user uploads inside a single directory."""

    def __init__(
        self,
        upload_dir: Path,
        event_bus: EventBus,
        *,
        max_files: int = 5,
        max_size: int = 10 * 1024 * 1024,
    ):
        self.upload_dir = upload_dir
        self.event_bus = event_bus
        self.max_files = max_files
        self.max_size = max_size

    def validate(self, files: Sequence[IncomingFile]) -> None:
        if not files:
            raise ValidationFailure("No files uploaded")
        if len(files) > self.max_files:
            raise ValidationFailure(f"Too many files. Maximum {self.max_files} files per upload")
        for incoming in files:
            if incoming.size == 0:
                raise ValidationFailure(f"File '{incoming.filename}' is empty")
            if incoming.size > self.max_size:
                raise ValidationFailure(f"File '{incoming.filename}' exceeds the size limit")
            if incoming.content_type not in ALLOWED_MIME_TYPES:
                raise ValidationFailure(
                    "Invalid file type. Only images, PDFs, documents, and zip files are allowed."
                )

    async def store(
        self,
        principal: Principal,
        files: Sequence[IncomingFile],
        *,
        project_id: str | None = None,
        description: str | None = None,
    ) -> list[FileMetadata]:
        """Write every file or none of them, then announce the upload."""
        self.validate(files)
        await asyncio.to_thread(self.upload_dir.mkdir, parents=True, exist_ok=True)

        stored: list[FileMetadata] = []
        written: list[Path] = []
        for incoming in files:
            name = unique_upload_name(incoming.filename)
            path = resolve_upload_path(self.upload_dir, name)
            try:
                await asyncio.to_thread(path.write_bytes, incoming.data)
            except OSError as exc:
                await self._discard([*written, path])
                logger.error("Failed to store upload %s: %s", incoming.filename, exc)
                raise UpstreamUnavailable("Failed to store uploaded files") from exc
            written.append(path)
            stored.append(
                FileMetadata(
                    id=f"{int(time.time() * 1000)}-{secrets.token_hex(4)}",
                    original_name=incoming.filename,
                    filename=name,
                    mimetype=incoming.content_type,
                    size=incoming.size,
                    category=file_category(incoming.content_type),
                    uploaded_by=principal.user_id,
                    uploaded_at=datetime.now(UTC),
                    project_id=project_id,
                    description=description,
                )
            )
        logger.info("User %s uploaded %d file(s)", principal.user_id, len(stored))

        await self.event_bus.publish(
            FilesUploaded(
                user_id=principal.user_id,
                file_count=len(stored),
                project_id=project_id,
                files=[
                    {"filename": meta.filename, "originalName": meta.original_name, "size": meta.size}
                    for meta in stored
                ],
            )
        )
        return stored

    async def _discard(self, paths: Sequence[Path]) -> None:
        for path in paths:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            except OSError:
                logger.warning("Could not remove partial upload %s", path)

    def resolve_file(self, filename: str) -> Path:
        path = resolve_upload_path(self.upload_dir, filename)
        if not path.is_file():
            raise PathValidationError()
        return path

    async def file_info(self, filename: str) -> FileInfo:
        try:
            path = resolve_upload_path(self.upload_dir, filename)
            stats = await asyncio.to_thread(path.stat)
        except (PathValidationError, OSError):
            return FileInfo(filename=filename, exists=False)
        return FileInfo(
            filename=filename,
            exists=True,
            size=stats.st_size,
            mtime=datetime.fromtimestamp(stats.st_mtime, UTC),
        )

    async def cleanup_old_files(self, max_age_hours: float = 24) -> int:
        """Delete stored files last modified more than *max_age_hours* ago."""

        def _cleanup() -> int:
            if not self.upload_dir.is_dir():
                return 0
            cutoff = time.time() - max_age_hours * 3600
            deleted = 0
            for path in self.upload_dir.iterdir():
                if path.is_file() and path.stat().st_mtime < cutoff:
                    path.unlink(missing_ok=True)
                    deleted += 1
            return deleted

        deleted = await asyncio.to_thread(_cleanup)
        if deleted:
            logger.info("Removed %d expired upload(s)", deleted)
        return deleted
