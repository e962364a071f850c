from pathlib import Path, PurePosixPath
from typing import Optional
from config import settings
from utils.errors import StoreError
import logging

logger = logging.getLogger(__name__)

class LocalObjectStorage:
    """
    Object storage on the local upload directory.

    Objects are written below `root` and served by the StaticFiles mount in
    main.py, so the returned URL is stable and can be stored verbatim.
    """

    def __init__(self, root: Optional[str] = None, public_prefix: Optional[str] = None):
        self.root = Path(root or settings.upload_dir)
        self.public_prefix = (public_prefix or settings.upload_url_prefix).rstrip("/")

    def _resolve(self, object_path: str) -> Path:
        parts = PurePosixPath(object_path).parts
        if not parts or any(part in ("..", "/") for part in parts):
            raise StoreError("Invalid storage path")
        return self.root.joinpath(*parts)

    def public_url(self, object_path: str) -> str:
        return f"{self.public_prefix}/{object_path}"

    def upload(self, object_path: str, content: bytes) -> str:
        """Write an object and return its download URL"""
        target = self._resolve(object_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as buffer:
                buffer.write(content)
        except OSError as e:
            logger.error(f"Upload to {object_path} failed: {e}")
            raise StoreError(f"Failed to save file: {e.strerror or e}")
        return self.public_url(object_path)

    def delete(self, object_path: str) -> None:
        target = self._resolve(object_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove {object_path}: {e}")

def safe_filename(filename: Optional[str]) -> str:
    """Reduce a client-supplied filename to its basename"""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    if name in ("", ".", ".."):
        return "document"
    return name
