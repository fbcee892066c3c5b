"""
Upload workflow: validate a selected file, store it under a generated name,
and hand back the public URL for binding into a draft.
"""
import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, TypeVar

from fastapi import UploadFile
from pydantic import BaseModel

from basamu.config import settings
from basamu.models import MediaKind
from basamu.utils.errors import FileTooLargeError, UnsupportedFileTypeError, UploadFailedError
from basamu.utils.image_converter import convert_to_webp

logger = logging.getLogger(__name__)

DraftT = TypeVar("DraftT", bound=BaseModel)


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadConstraints:
    """Allowed MIME-type prefixes, each with its own byte limit."""
    limits: Tuple[Tuple[str, int], ...]

    def limit_for(self, content_type: str) -> Optional[Tuple[str, int]]:
        for prefix, max_bytes in self.limits:
            if content_type.startswith(prefix):
                return prefix, max_bytes
        return None


@dataclass
class UploadResult:
    url: str
    path: str
    bucket: str
    media_kind: MediaKind


IMAGE_UPLOAD = UploadConstraints(limits=(("image/", settings.MAX_IMAGE_UPLOAD_SIZE),))
EVENT_MEDIA_UPLOAD = UploadConstraints(limits=(
    ("image/", settings.MAX_IMAGE_UPLOAD_SIZE),
    ("video/", settings.MAX_VIDEO_UPLOAD_SIZE),
))

# Admin console upload targets: target name -> (bucket, constraints)
UPLOAD_TARGETS: Dict[str, Tuple[str, UploadConstraints]] = {
    "executive-photo": (settings.EXECUTIVE_PHOTOS_BUCKET, IMAGE_UPLOAD),
    "event-media": (settings.EVENT_IMAGES_BUCKET, EVENT_MEDIA_UPLOAD),
    "cultural-image": (settings.CULTURAL_IMAGES_BUCKET, IMAGE_UPLOAD),
}


def _format_size(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):g} MB"


def validate_file(file: IncomingFile, constraints: UploadConstraints) -> MediaKind:
    """
    Check type, then size. Runs before any network call.

    Raises:
        UnsupportedFileTypeError: MIME type matches no allowed prefix
        FileTooLargeError: File exceeds the limit for its type
    """
    content_type = (file.content_type or "").lower()
    matched = constraints.limit_for(content_type)
    if matched is None:
        allowed = ", ".join(prefix + "*" for prefix, _ in constraints.limits)
        raise UnsupportedFileTypeError(detail=f"'{file.filename}' is {content_type or 'of unknown type'}; allowed: {allowed}")

    prefix, max_bytes = matched
    if file.size > max_bytes:
        raise FileTooLargeError(detail=f"'{file.filename}' is {_format_size(file.size)}; the limit is {_format_size(max_bytes)}")

    return MediaKind.VIDEO if prefix == "video/" else MediaKind.IMAGE


def generate_file_name(original_name: str) -> str:
    """Timestamp plus random suffix, keeping the original extension."""
    ext = os.path.splitext(original_name or "")[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"


async def upload(
    file: IncomingFile,
    bucket: str,
    constraints: UploadConstraints,
    store,
    path: Optional[str] = None,
    overwrite: bool = False,
) -> UploadResult:
    """
    Validate and upload a file, returning the stored object's public URL.

    Args:
        file: Selected file
        bucket: Target bucket
        constraints: Allowed types and limits
        store: Blob store (see storage_service.CloudinaryBlobStore)
        path: Fixed object path; a collision-resistant name is generated when omitted
        overwrite: Replace an existing object at `path`

    Raises:
        UnsupportedFileTypeError, FileTooLargeError: Validation failed, nothing uploaded
        UploadFailedError: The store call failed or returned no URL
    """
    media_kind = validate_file(file, constraints)

    data = file.data
    content_type = file.content_type
    if media_kind is MediaKind.IMAGE:
        converted, is_webp = await convert_to_webp(data)
        if is_webp and len(converted) < len(data):
            data = converted
            content_type = "image/webp"

    object_path = path or generate_file_name(file.filename)

    try:
        url = await store.upload_file(bucket, object_path, data, content_type, overwrite=overwrite)
    except Exception as e:
        logger.error(f"Upload of '{file.filename}' to {bucket}/{object_path} failed: {str(e)}", exc_info=True)
        raise UploadFailedError(detail="Storage rejected the file; try again") from e

    if not url:
        logger.error(f"Blob store returned no URL for {bucket}/{object_path}")
        raise UploadFailedError(detail="Storage did not return a public URL")

    logger.info(f"Uploaded '{file.filename}' to {bucket}/{object_path} ({media_kind.value})")
    return UploadResult(url=url, path=object_path, bucket=bucket, media_kind=media_kind)


def bind_upload(draft: DraftT, field: str, result: UploadResult) -> DraftT:
    """
    Return a copy of the draft with the uploaded URL bound to `field`.
    Drafts that track a media kind get it set alongside the URL.
    """
    update = {field: result.url}
    if "media_kind" in type(draft).model_fields:
        update["media_kind"] = result.media_kind
    return draft.model_copy(update=update)


async def read_upload(upload_file: UploadFile) -> IncomingFile:
    """Read a multipart upload into memory."""
    data = await upload_file.read()
    return IncomingFile(
        filename=upload_file.filename or "upload",
        content_type=upload_file.content_type or "",
        data=data,
    )
