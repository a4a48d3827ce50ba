"""Local-directory blob store keyed by '<organization_id>/<filename>'."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import BackendError, RecordNotFound, RecordValidationError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="blobstore")


class BlobStore:
    """Upload, download and remove file objects under a root directory."""

    def __init__(self, root: Union[str, Path], bucket: str = "tachograph-files"):
        self.root = Path(root)
        self.bucket = bucket

    def _resolve(self, key: str) -> Path:
        parts = key.split("/")
        if not key or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise RecordValidationError(f"Invalid storage key '{key}'")
        return self.root / self.bucket / key

    def exists(self, key: str) -> bool:
        return self._resolve(key).exists()

    def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store ``data`` under ``key``; existing keys are never overwritten."""
        path = self._resolve(key)
        if path.exists():
            raise BackendError(f"Storage object '{key}' already exists")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.error("Upload of %s failed: %s", key, exc)
            raise BackendError(f"Upload of '{key}' failed") from exc
        logger.info("Uploaded %s (%d bytes, %s)", key, len(data), content_type or "unknown type")
        return key

    def download(self, key: str) -> bytes:
        path = self._resolve(key)
        if not path.exists():
            raise RecordNotFound(self.bucket, key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BackendError(f"Download of '{key}' failed") from exc

    def size(self, key: str) -> int:
        path = self._resolve(key)
        if not path.exists():
            raise RecordNotFound(self.bucket, key)
        return path.stat().st_size

    def remove(self, keys: Iterable[str]) -> List[str]:
        """Delete objects; returns the keys that were actually present."""
        removed = []
        for key in keys:
            path = self._resolve(key)
            if not path.exists():
                continue
            try:
                path.unlink()
            except OSError as exc:
                logger.error("Remove of %s failed: %s", key, exc)
                raise BackendError(f"Remove of '{key}' failed") from exc
            removed.append(key)
        if removed:
            logger.info("Removed %d object(s) from %s", len(removed), self.bucket)
        return removed
