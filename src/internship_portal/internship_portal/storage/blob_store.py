from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from ..common.datetime_utils import new_id
from ..core.enums import BlobKind
from ..core.exceptions import ValidationError

ALLOWED_CONTENT_TYPES = {
    BlobKind.PHOTOS: ("image/jpeg", "image/png", "image/gif", "image/webp"),
    BlobKind.RESUMES: (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
}

MAX_BLOB_BYTES = {
    BlobKind.PHOTOS: 5 * 1024 * 1024,
    BlobKind.RESUMES: 10 * 1024 * 1024,
}

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredBlob:
    path: str
    url: str


class BlobStore(Protocol):
    def upload(self, *, path: str, data: bytes, content_type: str) -> StoredBlob:
        raise NotImplementedError

    def download(self, path: str) -> bytes:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError


def safe_filename(filename: str) -> str:
    name = _UNSAFE.sub("-", (filename or "").strip()).strip("-.")
    return name[:100] or "file"


def build_blob_path(kind: BlobKind, owner_id: str, filename: str) -> str:
    """``<kind>/<owner>/<random>-<filename>``; the random part keeps re-uploads distinct."""

    return f"{BlobKind(kind).value}/{owner_id}/{new_id()}-{safe_filename(filename)}"


def validate_blob(kind: BlobKind, *, data: bytes, content_type: str) -> None:
    if not data:
        raise ValidationError("File is empty")
    if content_type not in ALLOWED_CONTENT_TYPES[kind]:
        raise ValidationError(f"File type {content_type or 'unknown'} is not allowed")
    if len(data) > MAX_BLOB_BYTES[kind]:
        raise ValidationError(f"File is too large (max {MAX_BLOB_BYTES[kind] // (1024 * 1024)} MB)")
