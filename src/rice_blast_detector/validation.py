"""
Upload validation for Rice Blast Detector.

PURPOSE: Reject unusable uploads before any analysis is attempted.
AI CONTEXT: Pure checks - no I/O, no state.

RULES:
- Content type must be image/* (JPG, PNG, WEBP, ...)
- Payload must be non-empty and at most Config.MAX_UPLOAD_BYTES (5MB)
"""

from __future__ import annotations

from .config import Config
from .errors import InputRejected
from .models import ImagePayload

__all__ = ["validate_upload"]


def validate_upload(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    max_bytes: int | None = None,
) -> ImagePayload:
    """
    Validate an upload and wrap it as an ImagePayload.

    Args:
        filename: Original filename, used only for the multipart request.
        content_type: MIME type reported by the client.
        data: Raw file bytes.
        max_bytes: Size ceiling. Default: Config.MAX_UPLOAD_BYTES.

    Returns:
        ImagePayload ready for the resolver.

    Raises:
        InputRejected: If the type is not an image, the file is empty,
            or it exceeds the size ceiling.

    Example:
        >>> validate_upload("leaf.jpg", "image/jpeg", b"...").size
        3
        >>> validate_upload("notes.txt", "text/plain", b"hi")
        Traceback (most recent call last):
        ...
        rice_blast_detector.errors.InputRejected: Please select an image file (JPG, PNG, WEBP)
    """
    limit = Config.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    if not content_type or not content_type.lower().startswith(Config.ALLOWED_MIME_PREFIX):
        raise InputRejected("Please select an image file (JPG, PNG, WEBP)")

    if not data:
        raise InputRejected("Please select an image first")

    if len(data) > limit:
        raise InputRejected(
            f"File size too large. Please select an image smaller than {limit // (1024 * 1024)}MB."
        )

    return ImagePayload(
        filename=filename or "upload",
        content_type=content_type,
        data=data,
    )
