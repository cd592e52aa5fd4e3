# tour_admin/db/__init__.py
from .connection import BackendConnection
from .interface import (
    DocumentStore, SupabaseStore, SQLDocumentStore, SERVER_TIMESTAMP
)
from .blobs import BlobStore, SupabaseBlobStore, LocalBlobStore

__all__ = [
    'BackendConnection',
    'DocumentStore',
    'SupabaseStore',
    'SQLDocumentStore',
    'SERVER_TIMESTAMP',
    'BlobStore',
    'SupabaseBlobStore',
    'LocalBlobStore'
]
