"""Supabase Storage bucket for captured pages."""

from dataclasses import dataclass
from uuid import uuid4

from supabase import Client

from verg.domain.journal import StorageError
from verg.services.journal import ImageStore

JOURNAL_IMAGES_BUCKET = "journal-images"


@dataclass
class SupabaseImageStore(ImageStore):
    """Stores each page as ``<device_id>/<uuid>.jpg`` in a storage bucket."""

    client: Client
    device_id: str
    bucket: str = JOURNAL_IMAGES_BUCKET

    def save_image(self, data: bytes) -> str:
        """Upload image bytes and return the object name."""
        reference = f"{uuid4()}.jpg"
        try:
            self.client.storage.from_(self.bucket).upload(
                self._object_path(reference),
                data,
                {"content-type": "image/jpeg"},
            )
        except Exception as exc:
            raise StorageError("Failed to upload image") from exc
        return reference

    def delete_image(self, reference: str) -> None:
        """Remove an uploaded image."""
        try:
            self.client.storage.from_(self.bucket).remove(
                [self._object_path(reference)]
            )
        except Exception as exc:
            raise StorageError(f"Failed to delete image {reference}") from exc

    def image_url(self, reference: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(
            self._object_path(reference)
        )

    def clear(self) -> None:
        """Remove every image uploaded for the device."""
        try:
            bucket = self.client.storage.from_(self.bucket)
            entries = bucket.list(self.device_id)
            paths = [self._object_path(entry["name"]) for entry in entries or []]
            if paths:
                bucket.remove(paths)
        except Exception as exc:
            raise StorageError("Failed to clear images") from exc

    def _object_path(self, reference: str) -> str:
        return f"{self.device_id}/{reference}"
