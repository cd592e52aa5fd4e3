# tour_admin/db/interface.py
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tour_admin.db.models import Base, DocumentRow
from tour_admin.exceptions import DatabaseError


class _ServerTimestamp:
    """Placeholder resolved to the backend's clock at write time."""

    def __repr__(self):
        return 'SERVER_TIMESTAMP'


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStore(ABC):
    """Abstract document store: collections of schema-less documents keyed by an opaque id."""

    @abstractmethod
    def query(self, collection: str, filters: Dict[str, Any] = None, limit: int = None) -> List[Dict[str, Any]]:
        """Read a collection, optionally narrowed by equality filters."""
        pass

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read one document by id."""
        pass

    @abstractmethod
    def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document and return it with its assigned id."""
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> int:
        """Patch the given fields of one document; returns the number of documents touched."""
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> int:
        """Delete one document; returns the number of documents removed."""
        pass


class SupabaseStore(DocumentStore):
    """Supabase (PostgREST) implementation; one table per collection."""

    # Postgres evaluates the literal 'now' when casting to timestamptz,
    # so the timestamp comes from the database clock.
    SERVER_NOW = 'now'

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client

    def _resolve(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: (self.SERVER_NOW if value is SERVER_TIMESTAMP else value)
            for key, value in data.items()
        }

    def _execute(self, query, action: str, table_name: str):
        try:
            result = query.execute()
        except Exception as e:
            raise DatabaseError(f"Supabase {action} error on {table_name}: {str(e)}") from e

        if hasattr(result, 'error') and result.error:
            raise DatabaseError(f"Supabase {action} error on {table_name}: {result.error}")

        return result

    def query(self, collection: str, filters: Dict[str, Any] = None, limit: int = None) -> List[Dict[str, Any]]:
        query = self.client.table(collection).select('*')

        if filters:
            for key, value in filters.items():
                if isinstance(value, list):
                    query = query.in_(key, value)
                else:
                    query = query.eq(key, value)

        if limit:
            query = query.limit(limit)

        result = self._execute(query, 'query', collection)
        return result.data if result.data else []

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        query = self.client.table(collection).select('*').eq('id', doc_id).limit(1)
        result = self._execute(query, 'get', collection)
        return result.data[0] if result.data else None

    def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        query = self.client.table(collection).insert(self._resolve(data))
        result = self._execute(query, 'insert', collection)
        return result.data[0] if result.data else {}

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> int:
        query = self.client.table(collection).update(self._resolve(data)).eq('id', doc_id)
        result = self._execute(query, 'update', collection)
        return len(result.data) if result.data else 0

    def delete(self, collection: str, doc_id: str) -> int:
        query = self.client.table(collection).delete().eq('id', doc_id)
        result = self._execute(query, 'delete', collection)
        return len(result.data) if result.data else 0


class SQLDocumentStore(DocumentStore):
    """SQLAlchemy implementation used for local development and tests."""

    def __init__(self, engine):
        """Initialize with a SQLAlchemy engine and create the documents table."""
        self.engine = engine
        self._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=engine
        )
        Base.metadata.create_all(bind=engine)

    @contextmanager
    def session_scope(self):
        """Provide transaction scope for database operations."""
        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise DatabaseError(f"SQL document store error: {str(e)}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _resolve(data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return {
            key: (now if value is SERVER_TIMESTAMP else value)
            for key, value in data.items()
        }

    @staticmethod
    def _matches(document: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        for key, value in filters.items():
            if isinstance(value, list):
                if document.get(key) not in value:
                    return False
            elif document.get(key) != value:
                return False
        return True

    def query(self, collection: str, filters: Dict[str, Any] = None, limit: int = None) -> List[Dict[str, Any]]:
        with self.session_scope() as session:
            rows = session.query(DocumentRow).filter(DocumentRow.collection == collection).all()
            documents = [row.to_dict() for row in rows]

        # JSON operators differ between dialects; equality filtering happens here
        if filters:
            documents = [doc for doc in documents if self._matches(doc, filters)]

        if limit:
            documents = documents[:limit]

        return documents

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.session_scope() as session:
            row = session.get(DocumentRow, doc_id)
            if row is None or row.collection != collection:
                return None
            return row.to_dict()

    def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        row = DocumentRow(
            id=str(uuid.uuid4()),
            collection=collection,
            data=self._resolve(data)
        )
        with self.session_scope() as session:
            session.add(row)
            return row.to_dict()

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> int:
        with self.session_scope() as session:
            row = session.get(DocumentRow, doc_id)
            if row is None or row.collection != collection:
                return 0
            # Reassign so the JSON column registers the change
            row.data = {**(row.data or {}), **self._resolve(data)}
            return 1

    def delete(self, collection: str, doc_id: str) -> int:
        with self.session_scope() as session:
            row = session.get(DocumentRow, doc_id)
            if row is None or row.collection != collection:
                return 0
            session.delete(row)
            return 1
