"""Résumé upload: validate, store in object storage, record on the aggregate."""

import logging
from datetime import UTC, datetime

from portal.core.file_validation import (
    ALLOWED_MIMES,
    FILE_EXTENSIONS,
    MAX_FILE_SIZE_BYTES,
    check_file_size,
    validate_declared_content_type,
    validate_file_content,
)
from portal.providers.storage.base import ObjectStorage
from portal.services.profile_aggregate import ResumeReference
from portal.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

RESUME_PREFIX = "resumes"

_MIME_BY_TYPE = {file_type: mime for mime, file_type in ALLOWED_MIMES.items()}


def resume_path(user_id: str, file_type: str, uploaded_at: datetime) -> str:
    """Object path ``resumes/{user_id}-{epoch_ms}.{ext}``."""
    millis = int(uploaded_at.timestamp() * 1000)
    return f"{RESUME_PREFIX}/{user_id}-{millis}.{FILE_EXTENSIONS[file_type]}"


async def upload_resume(
    store: ProfileStore,
    storage: ObjectStorage,
    content: bytes,
    filename: str,
    content_type: str | None,
    max_size: int = MAX_FILE_SIZE_BYTES,
    now: datetime | None = None,
) -> ResumeReference:
    """Upload a résumé and point the aggregate at it.

    Size and type are checked before anything is sent. The aggregate is
    updated locally; persisting it is the caller's job.

    Args:
        store: Profile store of the uploading identity (must be loaded).
        storage: Object storage bound to the identity.
        content: File bytes.
        filename: Original file name, kept for display.
        content_type: Client-declared MIME type.
        max_size: Size limit in bytes.
        now: Upload time (defaults to the current UTC time).

    Returns:
        The new résumé reference.

    Raises:
        ValidationError: Too large, or not a PDF/DOC/DOCX.
        ValueError: No profile loaded.
        StorageError: Object storage rejected the file.
    """
    check_file_size(len(content), max_size)
    validate_declared_content_type(content_type)
    file_type = validate_file_content(content, filename)

    aggregate = store.aggregate
    if aggregate is None:
        raise ValueError("No profile loaded")

    uploaded_at = now or datetime.now(UTC)
    path = resume_path(aggregate.id, file_type, uploaded_at)
    url = await storage.upload(path, content, _MIME_BY_TYPE[file_type])
    logger.info("Uploaded resume for %s to %s (%d bytes)", aggregate.id, path, len(content))

    reference = ResumeReference(
        file_url=url,
        file_name=filename,
        upload_date=uploaded_at.isoformat(),
    )
    store.update(resume=reference, resume_url=url)
    return reference
