# helpdesk/attachment/storage.py
"""Local filesystem store for ticket and comment uploads."""

import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile

from helpdesk.core.errors import ValidationFailed
from helpdesk.core.logging_config import logger

CHUNK_SIZE = 64 * 1024
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredFile:
    filename: str
    original_filename: str
    mime_type: str
    file_size: int
    file_path: str

    @classmethod
    def of(cls, attachment) -> "StoredFile":
        return cls(
            filename=attachment.filename,
            original_filename=attachment.original_filename,
            mime_type=attachment.mime_type,
            file_size=attachment.file_size,
            file_path=attachment.file_path,
        )


def _safe_name(original: str) -> str:
    name = Path(original or "upload").name
    return _UNSAFE.sub("_", name)[:120] or "upload"


class AttachmentStore:
    def __init__(self, upload_dir: str, max_file_size: int, allowed_types: list[str], subdir: str = "tickets"):
        self.root = Path(upload_dir) / subdir
        self.max_file_size = max_file_size
        self.allowed_types = set(allowed_types)

    def save(self, upload: UploadFile) -> StoredFile:
        mime_type = upload.content_type or "application/octet-stream"
        if self.allowed_types and mime_type not in self.allowed_types:
            raise ValidationFailed(f"File type not allowed: {mime_type}")

        self.root.mkdir(parents=True, exist_ok=True)
        original = upload.filename or "upload"
        stored_name = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{_safe_name(original)}"
        target = self.root / stored_name

        size = 0
        try:
            with target.open("wb") as out:
                while chunk := upload.file.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_file_size:
                        raise ValidationFailed(
                            f"File {original} exceeds the maximum size of {self.max_file_size} bytes"
                        )
                    out.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise

        return StoredFile(
            filename=stored_name,
            original_filename=original,
            mime_type=mime_type,
            file_size=size,
            file_path=str(target),
        )

    def save_all(self, uploads: Iterable[UploadFile]) -> list[StoredFile]:
        stored: list[StoredFile] = []
        try:
            for upload in uploads:
                stored.append(self.save(upload))
        except Exception:
            self.discard(stored)
            raise
        return stored

    def discard(self, stored: Iterable[StoredFile]) -> None:
        for item in stored:
            self._remove(Path(item.file_path))

    def discard_named(self, filename: str) -> None:
        self._remove(self.root / Path(filename).name)

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove stored file {path}: {e}")

    def resolve(self, file_path: str) -> Path | None:
        path = Path(file_path)
        return path if path.is_file() else None

    def resolve_named(self, filename: str) -> Path | None:
        return self.resolve(str(self.root / Path(filename).name))
