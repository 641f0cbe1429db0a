from functools import lru_cache

from supabase import Client

from app.core.config import get_settings
from app.core.errors import StorageError
from app.core.supabase_client import supabase_admin

settings = get_settings()


def extract_path_from_public_url(url: str, bucket: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/notes-files/<uid>/1700000000000-a.pdf
        -> '<uid>/1700000000000-a.pdf'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


class SupabaseObjectStore:
    """
    ObjectStore backed by a Supabase Storage bucket.

    Every Supabase/HTTP failure is re-raised as StorageError so the
    upload pipeline can map it onto its own step-specific error.
    """

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def put_object(self, path: str, data: bytes) -> None:
        """
        Upload raw bytes to `path` inside the bucket.

        No upsert: paths are unique per upload, so an existing object
        at the same path is reported as a failure instead of overwritten.
        """
        try:
            self.client.storage.from_(self.bucket).upload(path, data)
        except Exception as exc:
            raise StorageError(f"Could not store file: {exc}") from exc

    def remove_object(self, path: str) -> None:
        # Supabase Python client expects a list of paths.
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise StorageError(f"Could not remove file: {exc}") from exc

    def resolve_locator(self, path: str) -> str:
        try:
            url = self.client.storage.from_(self.bucket).get_public_url(path)
        except Exception as exc:
            raise StorageError(f"Could not get public URL: {exc}") from exc
        if not url:
            raise StorageError("Could not get public URL for the file.")
        return url

    def path_from_locator(self, locator: str) -> str | None:
        return extract_path_from_public_url(locator, self.bucket)


@lru_cache
def get_object_store() -> SupabaseObjectStore:
    """FastAPI dependency: shared store for the notes bucket."""
    return SupabaseObjectStore(supabase_admin(), settings.NOTES_BUCKET)
