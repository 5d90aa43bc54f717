"""Object storage access for submitted files.

Files go through Django's ``default_storage`` (S3 via django-storages in
production, the local filesystem otherwise). Uploads run on a worker thread
so the caller can bound them with a timeout; nothing here touches the
database.
"""
from __future__ import annotations

import logging
import os
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from .. import conf
from ..exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="coursework-upload")


@dataclass(frozen=True)
class StoredFile:
    key: str
    url: str
    name: str


def build_storage_key(assignment_id: int, filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return f"{conf.upload_folder()}/{assignment_id}/{uuid.uuid4().hex}{ext}"


def validate_upload(uploaded_file) -> None:
    if uploaded_file is None:
        raise ValidationError({"file": ["A file is required."]})
    size = getattr(uploaded_file, "size", None)
    if not size:
        raise ValidationError({"file": ["The submitted file is empty."]})
    if size > conf.max_upload_size():
        raise ValidationError({"file": ["The submitted file is too large."]})


def _discard_late_upload(future: Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    delete_stored_file(future.result())


def upload_submission_file(assignment_id: int, uploaded_file) -> StoredFile:
    """Store ``uploaded_file`` and return its key and public URL.

    Raises :class:`StorageError` when the backend fails or does not finish
    within ``COURSEWORK["UPLOAD_TIMEOUT_SECONDS"]``. A file that lands after
    the timeout is deleted once the upload completes.
    """

    original_name = get_valid_filename(os.path.basename(uploaded_file.name or "upload")) or "upload"
    key = build_storage_key(assignment_id, original_name)
    timeout = conf.upload_timeout()

    future = _executor.submit(default_storage.save, key, uploaded_file)
    try:
        saved_key = future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        logger.error(
            "Upload of %s for assignment %s timed out after %ss", key, assignment_id, timeout
        )
        # Uploads still queued never start; running ones are deleted when they land.
        future.cancel()
        future.add_done_callback(_discard_late_upload)
        raise StorageError("The file upload timed out. Please try again.") from exc
    except Exception as exc:
        logger.exception("Upload of %s for assignment %s failed", key, assignment_id)
        raise StorageError() from exc

    try:
        url = default_storage.url(saved_key)
    except Exception as exc:
        logger.exception("Could not resolve public URL for %s", saved_key)
        delete_stored_file(saved_key)
        raise StorageError() from exc

    logger.debug("Stored %s for assignment %s at %s", original_name, assignment_id, url)
    return StoredFile(key=saved_key, url=url, name=original_name)


def delete_stored_file(key: str | None) -> bool:
    """Best-effort removal of a stored file; failures are logged, not raised."""

    if not key:
        return False
    try:
        default_storage.delete(key)
    except Exception:
        logger.warning("Could not delete stored file %s", key, exc_info=True)
        return False
    return True
