import logging
import os
import uuid
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile

from inventory_api.config import get_settings
from inventory_api.schemas.product import ImageData

logger = logging.getLogger(__name__)

settings = get_settings()

CHUNK_SIZE = 64 * 1024


class UploadRejectedError(ValueError):
    """Exception raised when an upload has the wrong type or is too large."""
    pass


def get_upload_dir() -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def save_image_upload(upload: UploadFile, is_main_image: bool = False) -> ImageData:
    """
    Write an uploaded image under a unique name and return its metadata.

    Raises:
        UploadRejectedError: If the content type is not an allowed image type
            or the file exceeds MAX_UPLOAD_SIZE
    """
    if upload.content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise UploadRejectedError(
            f"Unsupported file type '{upload.content_type}'. "
            f"Allowed: {', '.join(settings.ALLOWED_IMAGE_TYPES)}"
        )

    original_name = upload.filename or "upload"
    ext = os.path.splitext(original_name)[1].lower()
    filename = f"{uuid.uuid4().hex}{ext}"
    path = get_upload_dir() / filename

    size = 0
    try:
        with open(path, "wb") as buffer:
            while chunk := upload.file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.MAX_UPLOAD_SIZE:
                    raise UploadRejectedError(
                        f"File '{original_name}' is too large. "
                        f"Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
                    )
                buffer.write(chunk)
    except UploadRejectedError:
        path.unlink(missing_ok=True)
        raise
    finally:
        upload.file.close()

    return ImageData(
        filename=filename,
        original_name=original_name,
        mimetype=upload.content_type,
        size=size,
        is_main_image=is_main_image,
    )


def remove_file(filename: str) -> bool:
    """Delete a stored file. Failures are logged and reported as False."""
    path = get_upload_dir() / Path(filename).name
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        logger.warning(f"Stored file {filename} was already gone")
        return False
    except OSError as e:
        logger.warning(f"Could not remove stored file {filename}: {e}")
        return False


def discard_files(filenames: Iterable[str]) -> None:
    """Remove files written for a request whose database work failed."""
    for filename in filenames:
        remove_file(filename)
