import enum
import logging
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from fastapi import UploadFile

from app.core.config import Settings
from app.core.exceptions import UploadRejectedError

logger = logging.getLogger(__name__)

MB = 1024 * 1024

_SAFE_EXT = re.compile(r"^\.[a-z0-9]{1,10}$")


class MediaKind(str, enum.Enum):
    PHOTO = "photos"
    AUDIO = "audios"
    VIDEO = "videos"


def classify(content_type: Optional[str]) -> MediaKind:
    """Destination folder for a declared media type (anything else is a photo)."""
    content_type = (content_type or "").lower()
    if content_type.startswith("video/"):
        return MediaKind.VIDEO
    if content_type.startswith("audio/"):
        return MediaKind.AUDIO
    return MediaKind.PHOTO


@dataclass(frozen=True)
class UploadPolicy:
    allowed_types: frozenset
    max_size_bytes: int
    max_files: int
    type_message: str


def photo_policy(settings: Settings) -> UploadPolicy:
    return UploadPolicy(
        allowed_types=frozenset({"image/png", "image/jpeg", "image/jpg"}),
        max_size_bytes=settings.photo_max_size_mb * MB,
        max_files=settings.photo_max_files,
        type_message="Only JPG, JPEG and PNG files are supported.",
    )


def audio_policy(settings: Settings) -> UploadPolicy:
    return UploadPolicy(
        allowed_types=frozenset({"audio/mp3", "audio/m4a"}),
        max_size_bytes=settings.audio_max_size_mb * MB,
        max_files=settings.audio_max_files,
        type_message="Only MP3 and M4A files are supported.",
    )


@dataclass(frozen=True)
class StoredMedia:
    kind: MediaKind
    filename: str
    path: Path
    url: str


def safe_extension(filename: Optional[str]) -> str:
    """Extension of the client's base filename, or "" if it is not plain alphanumerics."""
    base = os.path.basename((filename or "").replace("\\", "/"))
    ext = os.path.splitext(base)[1].lower()
    return ext if _SAFE_EXT.match(ext) else ""


class MediaStorage:
    """
    Writes uploads under ``<root>/<photos|audios|videos>/`` with generated names.

    Every file of a batch is checked against the policy before anything is
    written, so a rejected request leaves nothing on disk.
    """

    def __init__(self, root: Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_dirs(self) -> None:
        for kind in MediaKind:
            (self.root / kind.value).mkdir(parents=True, exist_ok=True)

    async def store(self, uploads: Sequence[UploadFile], policy: UploadPolicy) -> List[StoredMedia]:
        uploads = [u for u in uploads if u is not None and u.filename]
        if len(uploads) > policy.max_files:
            raise UploadRejectedError(
                f"Too many files: {len(uploads)} (max: {policy.max_files}).",
                details={"max_files": policy.max_files},
            )

        checked: list[tuple[UploadFile, bytes]] = []
        for upload in uploads:
            content_type = (upload.content_type or "").lower()
            if content_type not in policy.allowed_types:
                raise UploadRejectedError(
                    policy.type_message,
                    details={"filename": upload.filename, "content_type": content_type},
                )
            contents = await upload.read()
            if len(contents) > policy.max_size_bytes:
                raise UploadRejectedError(
                    f"File too large: {len(contents) / MB:.1f}MB "
                    f"(max: {policy.max_size_bytes // MB}MB).",
                    code="FILE_TOO_LARGE",
                    status_code=413,
                    details={"filename": upload.filename},
                )
            checked.append((upload, contents))

        stored: list[StoredMedia] = []
        for upload, contents in checked:
            stored.append(self._write(upload, contents))
        return stored

    def _write(self, upload: UploadFile, contents: bytes) -> StoredMedia:
        kind = classify(upload.content_type)
        folder = self.root / kind.value
        folder.mkdir(parents=True, exist_ok=True)

        filename = f"{uuid.uuid4().hex}{safe_extension(upload.filename)}"
        path = folder / filename
        path.write_bytes(contents)
        logger.info("Stored upload %s as %s/%s", upload.filename, kind.value, filename)

        return StoredMedia(
            kind=kind,
            filename=filename,
            path=path,
            url=f"{self.url_prefix}/{kind.value}/{filename}",
        )

    def discard(self, stored: Sequence[StoredMedia]) -> None:
        for item in stored:
            if item.path.exists():
                item.path.unlink()
                logger.info("Discarded upload %s/%s", item.kind.value, item.filename)
