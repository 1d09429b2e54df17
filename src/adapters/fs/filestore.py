import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSystemStore:
    """Uploads root on local disk; every path is relative to ``base_path``."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path).resolve()
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, path: str) -> Path:
        # Prevent traversal
        target = (self.base_path / path).resolve()
        if not target.is_relative_to(self.base_path):
            raise ValueError(f"Path traversal attempt detected: {path}")
        return target

    def _unique_target(self, directory: Path, filename: str) -> Path:
        stem, dot, ext = filename.rpartition(".")
        if not dot:
            stem, ext = filename, ""
        target = directory / filename
        number = 1
        while target.exists():
            target = directory / (f"{stem}-{number}.{ext}" if dot else f"{stem}-{number}")
            number += 1
        return target

    def save(self, subdir: str, filename: str, data: bytes) -> str:
        """Write bytes under subdir with a free filename; return the relative path."""
        directory = self._safe_path(subdir)
        directory.mkdir(parents=True, exist_ok=True)
        target = self._unique_target(directory, filename)
        self._safe_path(str(target.relative_to(self.base_path)))
        with open(target, "wb") as f:
            f.write(data)
        rel_path = target.relative_to(self.base_path).as_posix()
        logger.debug("Wrote %d bytes to %s", len(data), rel_path)
        return rel_path

    def get(self, path: str) -> bytes:
        """Retrieve bytes by path. Raises FileNotFoundError."""
        target = self._safe_path(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        with open(target, "rb") as f:
            return f.read()

    def path_for(self, path: str) -> Path:
        """Absolute path of an existing file. Raises FileNotFoundError."""
        target = self._safe_path(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return target

    def exists(self, path: str) -> bool:
        try:
            return self._safe_path(path).is_file()
        except ValueError:
            return False

    def size(self, path: str) -> int:
        return self.path_for(path).stat().st_size

    def delete(self, path: str) -> None:
        target = self._safe_path(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        os.remove(target)
