# tour_admin/media.py
import logging
import mimetypes
import re
from dataclasses import dataclass
from typing import BinaryIO, Callable, List, Optional, Union

from tour_admin.db.blobs import BlobStore
from tour_admin.logging_setup import log_exception
from tour_admin.models import CategoryType
from tour_admin.utils.date_utils import now_millis

logger = logging.getLogger(__name__)

WHITESPACE_RUN = re.compile(r'\s+')
UNSAFE_FILENAME_CHARS = re.compile(r'[^a-zA-Z0-9.\-_]')


def sanitize_filename(name: Optional[str]) -> str:
    """"My Photo (1).jpg" -> "My-Photo-1.jpg"."""
    if not name:
        return 'image'
    safe_name = UNSAFE_FILENAME_CHARS.sub('', WHITESPACE_RUN.sub('-', name))
    return safe_name or 'image'


@dataclass
class DeleteResult:
    """Outcome of a best-effort blob delete; never raised, only returned."""
    address: str
    ok: bool
    skipped: bool = False
    error: Optional[str] = None


class MediaManager:
    """Uploads and deletes images under {entity}/{subtype}/{millis}-{filename}."""

    def __init__(self, blobs: BlobStore, clock: Optional[Callable[[], int]] = None):
        self.blobs = blobs
        self._clock = clock or now_millis

    def build_path(self, filename: Optional[str], entity: str, subtype: str) -> str:
        return f"{entity}/{subtype}/{self._clock()}-{sanitize_filename(filename)}"

    def upload(
        self,
        file: Union[bytes, BinaryIO],
        filename: Optional[str],
        entity: str,
        subtype: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload a file and return its retrievable address.

        Size limits are the caller's business. Upload failures raise
        StorageError.
        """
        data = file.read() if hasattr(file, 'read') else file
        path = self.build_path(filename, entity, subtype)
        content_type = content_type or mimetypes.guess_type(filename or '')[0]

        address = self.blobs.upload(path, data, content_type)
        logger.info(f"Uploaded {path} ({len(data)} bytes)")
        return address

    def upload_tour_feature_image(self, file, filename, content_type=None) -> str:
        return self.upload(file, filename, 'tours', 'feature', content_type)

    def upload_tour_gallery_image(self, file, filename, content_type=None) -> str:
        return self.upload(file, filename, 'tours', 'gallery', content_type)

    def upload_category_image(self, file, filename, category_type=CategoryType.TOUR, content_type=None) -> str:
        subtype = CategoryType(category_type).value if category_type else CategoryType.TOUR.value
        return self.upload(file, filename, 'categories', subtype, content_type)

    def delete_by_address(self, address: Optional[str]) -> DeleteResult:
        """Delete a previously uploaded blob.

        Safe to call with an empty address. A missing or already-deleted
        blob is logged and reported in the result, never raised.
        """
        if not address:
            return DeleteResult(address='', ok=True, skipped=True)

        try:
            self.blobs.delete(address)
        except Exception as e:
            log_exception(__name__, e, f"Error deleting image from storage: {address}")
            return DeleteResult(address=address, ok=False, error=str(e))

        logger.info(f"Deleted blob {address}")
        return DeleteResult(address=address, ok=True)


class UploadTracker:
    """Uploads made during a creation flow that has not been saved yet.

    Cancelling the flow discards them; saving clears the list.
    """

    def __init__(self):
        self._pending: List[str] = []

    def track(self, address: str):
        if address and address not in self._pending:
            self._pending.append(address)

    def untrack(self, address: str):
        if address in self._pending:
            self._pending.remove(address)

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def clear(self):
        self._pending = []

    def discard(self, media: MediaManager) -> List[DeleteResult]:
        results = [media.delete_by_address(address) for address in self._pending]
        self.clear()
        return results
