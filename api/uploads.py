"""
Multipart upload handling: incoming files are parked in UPLOAD_TEMP_DIR and
handed to the media store by path. The store removes them afterwards.
"""
from __future__ import annotations

import os
import tempfile

from flask import current_app, request
from werkzeug.utils import secure_filename


def save_upload(field: str) -> str | None:
    """Write request.files[field] to a temp file and return its path."""
    upload = request.files.get(field)
    if upload is None or not upload.filename:
        return None
    _, ext = os.path.splitext(secure_filename(upload.filename))
    fd, path = tempfile.mkstemp(suffix=ext.lower(), dir=current_app.config["UPLOAD_TEMP_DIR"])
    with os.fdopen(fd, "wb") as fh:
        upload.save(fh)
    return path


def request_payload() -> dict:
    """JSON body, or the form fields of a multipart request."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()
