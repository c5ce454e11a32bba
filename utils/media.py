"""
Profile media collaborator.

The account layer only needs two things from a media host: turn an uploaded
temporary file into a public url, and forget a url it no longer references.
LocalMediaStore does this against a directory that the app serves under
MEDIA_BASE_URL; another host only has to implement MediaStore.
"""
from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def discard_local_file(local_path: str | None) -> None:
    """Best-effort removal of a temporary upload; logs and continues."""
    if not local_path:
        return
    try:
        os.unlink(local_path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove temporary upload %s", local_path, exc_info=True)


class MediaStore:
    def upload(self, local_path: str | None, folder: str) -> str | None:
        """Store the file, return its url or None when the upload failed."""
        raise NotImplementedError

    def delete(self, url: str | None) -> None:
        raise NotImplementedError


class LocalMediaStore(MediaStore):
    def __init__(self, root: str | os.PathLike, base_url: str = "/media"):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def upload(self, local_path, folder):
        if not local_path:
            return None
        try:
            target_dir = self.root / folder
            target_dir.mkdir(parents=True, exist_ok=True)
            name = f"{uuid.uuid4().hex}{Path(local_path).suffix.lower()}"
            shutil.copyfile(local_path, target_dir / name)
        except OSError:
            logger.exception("Media upload failed for %s", local_path)
            return None
        finally:
            discard_local_file(local_path)
        url = f"{self.base_url}/{folder}/{name}"
        logger.info("Stored media %s", url)
        return url

    def resolve(self, url: str | None) -> Path | None:
        """Map a url issued by this store back to its file, None if foreign."""
        prefix = self.base_url + "/"
        if not url or not url.startswith(prefix):
            return None
        path = (self.root / url[len(prefix):]).resolve()
        if self.root not in path.parents:
            return None
        return path

    def delete(self, url):
        if not url:
            return
        path = self.resolve(url)
        if path is None:
            logger.warning("Refusing to delete media outside store: %s", url)
            return
        try:
            path.unlink()
            logger.info("Deleted media %s", url)
        except FileNotFoundError:
            logger.warning("Media already gone: %s", url)
        except OSError:
            logger.exception("Could not delete media %s", url)
