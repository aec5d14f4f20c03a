"""Blob Store - Local filesystem storage for attachment files"""
import os
from typing import Iterator, Optional

from ..config.settings import settings
from ..domain.errors import BlobStoreError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LocalBlobStore:
    """
    Stores files under ``attachments_base_path`` and serves them from
    ``attachments_public_url``. Paths are ``<ticket_id>/<file name>``.
    """

    def __init__(self, base_path: Optional[str] = None, public_url: Optional[str] = None):
        self.base_path = base_path or settings.attachments_base_path
        self.public_url = (public_url or settings.attachments_public_url).rstrip("/")

    def _full_path(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.base_path, path))
        root = os.path.abspath(self.base_path)
        if not full.startswith(root + os.sep):
            raise BlobStoreError("Invalid blob path", details={"path": path})
        return full

    def upload(self, path: str, data: bytes) -> str:
        """Write bytes at path and return the public URL"""
        full = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to store blob {path}: {e}")
            raise BlobStoreError(f"Failed to store file: {e}")
        return f"{self.public_url}/{path}"

    def remove(self, path: str) -> None:
        """Delete the file at path; a missing file is not an error"""
        full = self._full_path(path)
        try:
            if os.path.exists(full):
                os.remove(full)
        except OSError as e:
            logger.error(f"Failed to remove blob {path}: {e}")
            raise BlobStoreError(f"Failed to remove file: {e}")

    def path_from_url(self, url: str) -> Optional[str]:
        """Blob path of a URL this store issued; None for any other URL"""
        prefix = self.public_url + "/"
        if not url or not url.startswith(prefix):
            return None
        path = url[len(prefix):].split("?", 1)[0]
        return path or None

    def owned_path(self, url: str, ticket_id: str) -> Optional[str]:
        """Blob path of ``url`` only when it lives in ``ticket_id``'s folder"""
        path = self.path_from_url(url)
        if not path:
            return None
        folder, _, name = path.partition("/")
        if folder != ticket_id or name in ("", ".", "..") or "/" in name:
            return None
        return path

    def iter_chunks(self, path: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        """Open the file at path and yield it in chunks"""
        full = self._full_path(path)
        if not os.path.isfile(full):
            raise BlobStoreError("Stored file is missing", details={"path": path})
        return self._read(full, chunk_size)

    @staticmethod
    def _read(full: str, chunk_size: int) -> Iterator[bytes]:
        with open(full, "rb") as f:
            while chunk := f.read(chunk_size):
                yield chunk

    @staticmethod
    def sanitize_filename(filename: str) -> str:
        """Sanitize filename for storage"""
        safe = filename.replace("/", "_").replace("\\", "_").replace("..", "_")
        if len(safe) > 100:
            name, ext = os.path.splitext(safe)
            safe = name[:96] + ext
        return safe or "unnamed"


# Global blob store instance
_blob_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    """Get global blob store instance"""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore()
    return _blob_store
