import logging
import os
import re
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from fastapi import UploadFile

from labtracker.core.clock import today_iso
from labtracker.core.errors import AttachmentRejected

logger = logging.getLogger("uvicorn.error")

ALLOWED_MIMETYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
}
FILENAME_SUFFIX = "maintenance-file"
UNKNOWN_ASSET = "unknown-asset"
COPY_CHUNK_SIZE = 64 * 1024


def sanitize_asset(value: Optional[str]) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]", "_", value or UNKNOWN_ASSET)


def sanitize_date(value: Optional[str]) -> str:
    return re.sub(r"[^0-9-]", "_", value or today_iso())


def build_attachment_filename(asset_hint: Optional[str], date_hint: Optional[str], original_name: str) -> str:
    suffix = Path(original_name or "").suffix
    return f"{sanitize_asset(asset_hint)}-{sanitize_date(date_hint)}-{FILENAME_SUFFIX}{suffix}"


def dedupe_by_filename(attachments: Iterable[dict]) -> list[dict]:
    seen: set[str] = set()
    result: list[dict] = []
    for attachment in attachments:
        filename = attachment.get("filename")
        if filename in seen:
            continue
        seen.add(filename)
        result.append(attachment)
    return result


class AttachmentStore:
    """Maintenance attachment blobs in a flat uploads directory."""

    def __init__(self, base_dir: Path, max_bytes: int, max_files: int):
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes
        self.max_files = max_files

    @property
    def max_megabytes(self) -> int:
        return self.max_bytes // (1024 * 1024)

    def ensure_dir(self) -> Path:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return self.base_dir

    def validate(self, uploads: list[UploadFile]) -> None:
        if len(uploads) > self.max_files:
            raise AttachmentRejected(f"Too many files. Maximum is {self.max_files} files per upload.")
        for upload in uploads:
            mimetype = (upload.content_type or "").lower()
            if mimetype not in ALLOWED_MIMETYPES:
                raise AttachmentRejected(f"File type {upload.content_type} not allowed")

    def save(self, upload: UploadFile, asset_hint: Optional[str], date_hint: Optional[str]) -> dict:
        original_name = upload.filename or ""
        filename = build_attachment_filename(asset_hint, date_hint, original_name)
        target_path = self.ensure_dir() / filename
        partial_path = self.base_dir / f".{filename}.{uuid4().hex}.part"
        size = 0
        with partial_path.open("wb") as buffer:
            while True:
                chunk = upload.file.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    break
                buffer.write(chunk)
        if size > self.max_bytes:
            partial_path.unlink(missing_ok=True)
            raise AttachmentRejected(f"File too large. Maximum size is {self.max_megabytes}MB.")
        # Same asset, date and extension replaces the previous blob.
        os.replace(partial_path, target_path)
        logger.info("Saved attachment %s (%s bytes)", filename, size)
        return {
            "filename": filename,
            "originalname": original_name,
            "mimetype": upload.content_type,
            "size": size,
            "path": str(target_path.resolve()),
        }

    def path_for(self, filename: str) -> Optional[Path]:
        if not filename:
            return None
        base_dir = self.base_dir.resolve()
        target_path = (base_dir / filename).resolve()
        try:
            target_path.relative_to(base_dir)
        except ValueError:
            return None
        if target_path == base_dir or not target_path.is_file():
            return None
        return target_path

    def exists(self, filename: str) -> bool:
        return self.path_for(filename) is not None

    def delete(self, filename: str) -> bool:
        target_path = self.path_for(filename)
        if target_path is None:
            return False
        try:
            target_path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted file: %s", filename)
        return True

    def delete_many(self, filenames: Iterable[str]) -> int:
        return sum(1 for filename in filenames if self.delete(filename))
