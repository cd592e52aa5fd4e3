# tour_admin/db/blobs.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from tour_admin.exceptions import StorageError


class BlobStore(ABC):
    """Abstract binary-object store addressed by path."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store bytes under path and return a retrievable address."""
        pass

    @abstractmethod
    def delete(self, address: str) -> None:
        """Delete the object a previously returned address points to."""
        pass

    @abstractmethod
    def path_from_address(self, address: str) -> str:
        """Map a retrievable address back to its object path."""
        pass


class SupabaseBlobStore(BlobStore):
    """Supabase Storage implementation backed by one bucket."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        file_options = {'content-type': content_type} if content_type else None
        try:
            bucket = self._bucket()
            bucket.upload(path, data, file_options)
            url = bucket.get_public_url(path)
        except Exception as e:
            raise StorageError(f"Supabase upload failed for {path}: {str(e)}") from e

        # get_public_url leaves an empty query string on some client versions
        return url.rstrip('?')

    def delete(self, address: str) -> None:
        path = self.path_from_address(address)
        try:
            self._bucket().remove([path])
        except Exception as e:
            raise StorageError(f"Supabase delete failed for {path}: {str(e)}") from e

    def path_from_address(self, address: str) -> str:
        """Extract "tours/feature/..." from .../storage/v1/object/public/<bucket>/tours/feature/..."""
        marker = f"/object/public/{self.bucket}/"
        if marker in address:
            encoded_path = address.split(marker, 1)[1].split('?', 1)[0]
            return unquote(encoded_path)

        if not address.startswith(('http://', 'https://')):
            return address.lstrip('/')

        raise StorageError(f"Not a storage URL for bucket {self.bucket}: {address}")


class LocalBlobStore(BlobStore):
    """Filesystem implementation used for local development and tests."""

    def __init__(self, root, public_base_url: str = ''):
        self.root = Path(root)
        self.public_base_url = (public_base_url or '').rstrip('/')

    def _full_path(self, path: str) -> Path:
        full_path = (self.root / path).resolve()
        if self.root.resolve() not in full_path.parents:
            raise StorageError(f"Path escapes media root: {path}")
        return full_path

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Local upload failed for {path}: {str(e)}") from e

        if self.public_base_url:
            return f"{self.public_base_url}/{path}"
        return path

    def delete(self, address: str) -> None:
        full_path = self._full_path(self.path_from_address(address))
        if not full_path.exists():
            raise StorageError(f"Blob not found: {address}")
        try:
            full_path.unlink()
        except OSError as e:
            raise StorageError(f"Local delete failed for {address}: {str(e)}") from e

    def path_from_address(self, address: str) -> str:
        if self.public_base_url and address.startswith(self.public_base_url + '/'):
            address = address[len(self.public_base_url) + 1:]
        return address.lstrip('/')
