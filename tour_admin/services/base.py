# tour_admin/services/base.py
import logging
from typing import Any, Callable, Dict, List, Optional

from tour_admin.db.interface import DocumentStore, SERVER_TIMESTAMP
from tour_admin.exceptions import DatabaseError, NotFoundError
from tour_admin.listing import sort_newest_first
from tour_admin.logging_setup import log_exception

logger = logging.getLogger(__name__)


class BaseService:
    """CRUD plumbing shared by the collection services.

    Store failures are logged here and re-raised unchanged; the caller
    decides how to present them.
    """

    collection: str = ''
    record_class = None

    def __init__(self, store: DocumentStore):
        """Initialize the service.

        Args:
            store: Document store the collection lives in
        """
        self.store = store

    def _call(self, action: str, fn: Callable, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except DatabaseError as e:
            log_exception(type(self).__module__, e, f"Error during {action} on {self.collection}")
            raise

    def _fetch_records(self, filters: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Full collection read, newest first.

        Sorting happens here rather than in the store so no composite index
        is needed; records without a timestamp sort last.
        """
        documents = self._call('list', self.store.query, self.collection, filters)
        records = [self.record_class.from_document(doc) for doc in documents]
        return sort_newest_first(records)

    def _fetch_document(self, record_id: str) -> Dict[str, Any]:
        document = self._call('get', self.store.get, self.collection, record_id)
        if not document:
            raise NotFoundError(f"No {self.collection} record with id {record_id}", code='not_found')
        return document

    def get(self, record_id: str):
        return self.record_class.from_document(self._fetch_document(record_id))

    def _insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        document = self._call('create', self.store.insert, self.collection, data)
        logger.info(f"Created {self.collection} record {document.get('id')}")
        return document

    def _patch(self, record_id: str, data: Dict[str, Any], action: str = 'update'):
        """Partial update that also stamps updated_at."""
        patch = {**data, 'updated_at': SERVER_TIMESTAMP}
        touched = self._call(action, self.store.update, self.collection, record_id, patch)
        if not touched:
            raise NotFoundError(f"No {self.collection} record with id {record_id}", code='not_found')
        logger.info(f"{action} on {self.collection} record {record_id}: {sorted(data)}")

    def _delete(self, record_id: str):
        removed = self._call('delete', self.store.delete, self.collection, record_id)
        if removed:
            logger.info(f"Deleted {self.collection} record {record_id}")
        else:
            logger.warning(f"Delete on {self.collection}: record {record_id} was already gone")
