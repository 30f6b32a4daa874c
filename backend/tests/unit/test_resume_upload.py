"""Tests for résumé upload."""

from datetime import UTC, datetime

import pytest

from portal.core.errors import ValidationError
from portal.providers.errors import StorageError
from portal.services.resume_upload import resume_path, upload_resume

from tests.conftest import TEST_USER_ID

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
UPLOADED_AT = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def detected_mime(monkeypatch):
    """Control what magic reports for the uploaded bytes."""
    holder = {"mime": PDF_MIME}
    monkeypatch.setattr(
        "portal.core.file_validation.magic.from_buffer",
        lambda _content, mime=True: holder["mime"],  # noqa: ARG005
    )
    return holder


def test_resume_path_uses_epoch_millis():
    path = resume_path("u1", "DOCX", UPLOADED_AT)
    assert path == f"resumes/u1-{int(UPLOADED_AT.timestamp() * 1000)}.docx"


async def test_upload_stores_file_and_updates_profile(loaded_store, storage, detected_mime):
    reference = await upload_resume(
        loaded_store,
        storage,
        b"%PDF-1.7 resume",
        filename="cv.pdf",
        content_type=PDF_MIME,
        now=UPLOADED_AT,
    )

    path = resume_path(TEST_USER_ID, "PDF", UPLOADED_AT)
    assert storage.objects[path] == (b"%PDF-1.7 resume", PDF_MIME)
    assert reference.file_url == f"http://storage.local/resumes/{path}"
    assert reference.file_name == "cv.pdf"
    assert reference.upload_date == UPLOADED_AT.isoformat()
    assert loaded_store.aggregate.resume == reference
    assert loaded_store.aggregate.resume_url == reference.file_url


async def test_stored_type_follows_detected_content(loaded_store, storage, detected_mime):
    detected_mime["mime"] = DOCX_MIME

    await upload_resume(
        loaded_store, storage, b"PK docx", filename="cv.docx", content_type=DOCX_MIME
    )

    assert storage.calls[0]["path"].endswith(".docx")
    assert storage.calls[0]["content_type"] == DOCX_MIME


async def test_too_large_rejected_before_upload(loaded_store, storage, detected_mime):
    with pytest.raises(ValidationError) as exc_info:
        await upload_resume(
            loaded_store,
            storage,
            b"x" * 11,
            filename="cv.pdf",
            content_type=PDF_MIME,
            max_size=10,
        )

    assert exc_info.value.details[0]["error"] == "FILE_TOO_LARGE"
    assert storage.calls == []


async def test_declared_type_rejected(loaded_store, storage, detected_mime):
    with pytest.raises(ValidationError) as exc_info:
        await upload_resume(
            loaded_store, storage, b"text", filename="cv.txt", content_type="text/plain"
        )

    assert exc_info.value.details[0]["error"] == "INVALID_FILE_TYPE"
    assert storage.calls == []


async def test_content_mismatch_rejected(loaded_store, storage, detected_mime):
    detected_mime["mime"] = "image/png"

    with pytest.raises(ValidationError) as exc_info:
        await upload_resume(
            loaded_store, storage, b"\x89PNG", filename="cv.pdf", content_type=PDF_MIME
        )

    assert exc_info.value.details[0]["error"] == "INVALID_FILE_CONTENT"
    assert loaded_store.aggregate.resume is None


async def test_storage_failure_leaves_profile_untouched(loaded_store, storage, detected_mime):
    storage.fail_with = StorageError("bucket rejected")

    with pytest.raises(StorageError):
        await upload_resume(
            loaded_store, storage, b"%PDF", filename="cv.pdf", content_type=PDF_MIME
        )

    assert loaded_store.aggregate.resume is None
    assert loaded_store.aggregate.resume_url == ""


async def test_unloaded_store_rejected(profile_store, storage, detected_mime):
    with pytest.raises(ValueError, match="No profile loaded"):
        await upload_resume(
            profile_store, storage, b"%PDF", filename="cv.pdf", content_type=PDF_MIME
        )
