"""Flat-file image store for captured pages."""

import shutil
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from verg.domain.journal import StorageError
from verg.services.journal import ImageStore


@dataclass
class LocalImageStore(ImageStore):
    """Stores each page as ``<uuid>.jpg`` in one directory."""

    directory: Path

    def save_image(self, data: bytes) -> str:
        """Write image bytes and return the file name."""
        reference = f"{uuid4()}.jpg"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / reference).write_bytes(data)
        except OSError as exc:
            raise StorageError("Failed to save image") from exc
        return reference

    def delete_image(self, reference: str) -> None:
        """Remove an image file if it exists."""
        try:
            self._path(reference).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete image {reference}") from exc

    def image_url(self, reference: str) -> str:
        return self._path(reference).as_uri()

    def clear(self) -> None:
        """Remove the image directory."""
        try:
            shutil.rmtree(self.directory)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError("Failed to clear images") from exc

    def _path(self, reference: str) -> Path:
        if Path(reference).name != reference:
            raise StorageError(f"Invalid image reference {reference!r}")
        return (self.directory / reference).resolve()
