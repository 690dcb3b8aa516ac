"""
Local-disk storage for leave attachments.
Files are written under settings.leave_upload_dir and served from /api/uploads.
"""
import logging
import os
import shutil
import time
import uuid
from typing import BinaryIO, Optional

from attendly.core.config import settings
from attendly.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/api/uploads/leaves"


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def validate_attachment(filename: Optional[str], size: Optional[int] = None) -> None:
    if not filename:
        raise ValidationError("Attachment has no file name")
    if _extension(filename) not in settings.allowed_attachment_extensions:
        raise ValidationError("Only image, PDF, and document files are allowed")
    if size is not None and size > settings.max_upload_mb * 1024 * 1024:
        raise ValidationError(f"Attachment exceeds the {settings.max_upload_mb}MB limit")


def save_leave_attachment(user_id: int, filename: str, stream: BinaryIO) -> str:
    """Persist the upload and return its public path."""
    os.makedirs(settings.leave_upload_dir, exist_ok=True)
    stored_name = f"leave-{user_id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{_extension(filename)}"
    target = os.path.join(settings.leave_upload_dir, stored_name)
    with open(target, "wb") as out:
        shutil.copyfileobj(stream, out)
    logger.info(f"Stored leave attachment {stored_name}")
    return f"{PUBLIC_PREFIX}/{stored_name}"


def delete_leave_attachment(public_path: Optional[str]) -> None:
    if not public_path or not public_path.startswith(PUBLIC_PREFIX):
        return
    target = os.path.join(settings.leave_upload_dir, os.path.basename(public_path))
    try:
        os.remove(target)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not remove orphaned attachment {target}: {e}")
