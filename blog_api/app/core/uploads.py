"""
Capture cover uploads as bytes.

FastAPI hands uploaded files over as ``UploadFile`` objects backed by
a temporary spooled file.  ``read_cover`` copies the bytes out and
closes the upload on every path, so the temporary artefact never
outlives the request handler that read it.
"""

import logging
import mimetypes
from typing import Optional

from fastapi import UploadFile

from .errors import ValidationError
from ..schemas.post import CoverUpload

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(filename: str, declared: Optional[str] = None) -> str:
    """Media type from the filename extension, else the declared one."""
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or DEFAULT_MEDIA_TYPE


async def read_cover(upload: Optional[UploadFile], max_bytes: int) -> Optional[CoverUpload]:
    """Return the uploaded cover, or ``None`` when no file was sent.

    Browsers submit an empty part with an empty filename when the file
    input is left blank; that counts as no cover.

    Raises
    ------
    ValidationError
        If the file is larger than ``max_bytes``.
    """
    if upload is None:
        return None
    try:
        if not upload.filename:
            return None
        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise ValidationError(f"Cover image must be at most {max_bytes} bytes")
        if not data:
            return None
        return CoverUpload(
            data=data,
            filename=upload.filename,
            content_type=guess_media_type(upload.filename, upload.content_type),
        )
    finally:
        await upload.close()
        logger.debug("Released upload %s", upload.filename)
