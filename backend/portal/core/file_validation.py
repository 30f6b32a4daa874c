"""File validation utilities for résumé uploads.

Security: Validates the declared content type and the actual content (magic
bytes), and enforces the upload size limit before anything reaches object
storage.
"""

from typing import TYPE_CHECKING

import magic
import structlog

if TYPE_CHECKING:
    from fastapi import UploadFile

from portal.core.errors import ValidationError

logger = structlog.get_logger()

# Default résumé size limit (5 MB)
MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024

# Chunk size for reading files (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024

# Allowed MIME types and their corresponding file types
ALLOWED_MIMES: dict[str, str] = {
    "application/pdf": "PDF",
    "application/msword": "DOC",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
}

# Storage extension per detected file type
FILE_EXTENSIONS: dict[str, str] = {
    "PDF": "pdf",
    "DOC": "doc",
    "DOCX": "docx",
}

_INVALID_TYPE_MSG = "Please upload a PDF or Word document"


def _too_large_message(max_size: int) -> str:
    return f"File size must be less than {max_size // (1024 * 1024)}MB"


def check_file_size(size: int, max_size: int = MAX_FILE_SIZE_BYTES) -> None:
    """Reject a payload that exceeds the size limit.

    Args:
        size: Payload size in bytes.
        max_size: Maximum allowed size in bytes.

    Raises:
        ValidationError: If size exceeds max_size.
    """
    if size > max_size:
        raise ValidationError(
            message=_too_large_message(max_size),
            details=[{"field": "file", "error": "FILE_TOO_LARGE"}],
        )


def validate_declared_content_type(content_type: str | None) -> None:
    """Check the client-declared content type against the allow-list.

    Args:
        content_type: MIME type declared by the client (may be None).

    Raises:
        ValidationError: If the declared type is not PDF, DOC, or DOCX.
    """
    if content_type not in ALLOWED_MIMES:
        raise ValidationError(
            message=_INVALID_TYPE_MSG,
            details=[{"field": "file", "error": "INVALID_FILE_TYPE"}],
        )


async def read_file_with_size_limit(
    file: "UploadFile",
    max_size: int = MAX_FILE_SIZE_BYTES,
) -> bytes:
    """Read file content with size limit to prevent DoS.

    Args:
        file: UploadFile from FastAPI.
        max_size: Maximum allowed file size in bytes.

    Returns:
        File content as bytes.

    Raises:
        ValidationError: If file exceeds size limit.
    """
    content = b""
    total_size = 0

    while True:
        chunk = await file.read(CHUNK_SIZE_BYTES)
        if not chunk:
            break
        total_size += len(chunk)
        check_file_size(total_size, max_size)
        content += chunk

    return content


def validate_file_content(content: bytes, filename: str) -> str:
    """Validate file content using magic bytes (not just extension).

    Args:
        content: File binary content.
        filename: Original filename (for log context).

    Returns:
        Detected file type ("PDF", "DOC" or "DOCX").

    Raises:
        ValidationError: If file content doesn't match allowed MIME types.
    """
    detected_mime = magic.from_buffer(content, mime=True)

    if detected_mime not in ALLOWED_MIMES:
        # Log detected MIME for server-side debugging; do NOT expose to client
        logger.warning(
            "File content validation failed",
            detected_mime=detected_mime,
            filename=filename,
        )
        raise ValidationError(
            message=_INVALID_TYPE_MSG,
            details=[{"field": "file", "error": "INVALID_FILE_CONTENT"}],
        )

    return ALLOWED_MIMES[detected_mime]
