"""Scoped staging of uploaded photos."""

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath

from fastapi import UploadFile

from user_accounts.domain.models import PhotoPayload


@contextmanager
def staged_photo(
    upload: UploadFile | None, directory: str | None = None
) -> Iterator[PhotoPayload | None]:
    """Copy an uploaded photo to a temporary file for the request's duration.

    The temporary file is removed on every exit path, including failures
    raised by the code running inside the block.
    """
    if upload is None or not upload.filename:
        yield None
        return

    suffix = PurePosixPath(upload.filename).suffix
    handle = tempfile.NamedTemporaryFile(  # noqa: SIM115
        dir=directory, prefix="photo-", suffix=suffix, delete=False
    )
    path = Path(handle.name)
    try:
        with handle:
            shutil.copyfileobj(upload.file, handle)
        content = path.read_bytes()
        if not content:
            yield None
            return
        yield PhotoPayload(
            content=content,
            content_type=upload.content_type,
            filename=upload.filename,
        )
    finally:
        path.unlink(missing_ok=True)
