"""Local storage for generated screenshots and PDFs."""
import os
from dataclasses import dataclass
from typing import Iterator, Optional

from monitorify.config import settings
from monitorify.constants import ARTIFACT_PREFIXES
from monitorify.utils.hashing import generate_file_token
from monitorify.utils.logger import logger


@dataclass
class StoredArtifact:
    """A generated file found in the output directory."""
    name: str
    path: str
    modified_at: float  # POSIX timestamp
    size_bytes: int


class OutputStore:
    """
    Blob store for generated artifacts.

    Files are named ``<prefix>_<random hex>.<ext>`` so the cleanup sweeper
    can recognize them. Only base filenames are ever resolved, so stored
    values cannot escape the managed directory.
    """

    def __init__(self, root_dir: Optional[str] = None, public_path: Optional[str] = None):
        self.root_dir = os.path.abspath(root_dir or settings.output_dir)
        self.public_path = (public_path or settings.public_uploads_path).rstrip("/")

    def ensure_root(self) -> None:
        os.makedirs(self.root_dir, exist_ok=True)

    def put(self, data: bytes, prefix: str, extension: str) -> str:
        """
        Write bytes under a fresh unguessable name.

        Args:
            data: File content
            prefix: Artifact prefix without the underscore (e.g. "shot")
            extension: File extension without the dot

        Returns:
            The generated filename
        """
        self.ensure_root()
        filename = f"{prefix}_{generate_file_token()}.{extension}"
        path = self.resolve_to_path(filename)
        with open(path, "wb") as f:
            f.write(data)
        logger.debug(f"Stored artifact {filename} ({len(data)} bytes)")
        return filename

    def resolve_to_path(self, name: str) -> str:
        """Resolve a filename (or any path) to its location in the store."""
        return os.path.join(self.root_dir, os.path.basename(name or ""))

    def public_url(self, filename: str) -> str:
        """Relative URL the static file server exposes the file under."""
        return f"{self.public_path}/{os.path.basename(filename)}"

    def is_public_url(self, file_url: Optional[str]) -> bool:
        return isinstance(file_url, str) and file_url.startswith(f"{self.public_path}/")

    def delete(self, name: str) -> bool:
        """
        Delete a file by name.

        Returns:
            True if a file was removed, False if it was already gone
        """
        basename = os.path.basename(name or "")
        if not basename:
            return False
        try:
            os.unlink(self.resolve_to_path(basename))
            return True
        except FileNotFoundError:
            return False

    def delete_by_file_url(self, file_url: Optional[str]) -> bool:
        """Delete the file behind a stored ``result.fileUrl`` value."""
        if not self.is_public_url(file_url):
            return False
        return self.delete(file_url)

    def iter_artifacts(self) -> Iterator[StoredArtifact]:
        """Yield generated files (recognized prefixes only)."""
        try:
            entries = list(os.scandir(self.root_dir))
        except FileNotFoundError:
            return

        for entry in entries:
            if not entry.name.startswith(ARTIFACT_PREFIXES):
                continue
            try:
                if not entry.is_file():
                    continue
                stat = entry.stat()
            except FileNotFoundError:
                continue
            yield StoredArtifact(
                name=entry.name,
                path=entry.path,
                modified_at=stat.st_mtime,
                size_bytes=stat.st_size,
            )
