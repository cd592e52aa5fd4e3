# tour_admin/context.py
import logging
from dataclasses import dataclass
from typing import Optional

from tour_admin.auth import AdminAuth
from tour_admin.config import config as default_config
from tour_admin.db.blobs import BlobStore, LocalBlobStore, SupabaseBlobStore
from tour_admin.db.connection import BackendConnection
from tour_admin.db.interface import DocumentStore, SQLDocumentStore, SupabaseStore

logger = logging.getLogger(__name__)


@dataclass
class ClientContext:
    """Backend handles, built once at startup and passed to the services."""
    store: DocumentStore
    blobs: BlobStore
    auth: Optional[AdminAuth] = None
    backend_type: str = 'sql'


def create_context(cfg=None, connection: Optional[BackendConnection] = None) -> ClientContext:
    """Build the client context for the configured backend."""
    cfg = cfg or default_config
    connection = connection or BackendConnection(cfg)

    if connection.backend_type == 'supabase':
        client = connection.get_supabase()
        context = ClientContext(
            store=SupabaseStore(client),
            blobs=SupabaseBlobStore(client, cfg.supabase_config['bucket']),
            auth=AdminAuth(client.auth, cfg.admin_emails),
            backend_type='supabase',
        )
    else:
        media_config = cfg.media_config
        context = ClientContext(
            store=SQLDocumentStore(connection.engine),
            blobs=LocalBlobStore(media_config['local_root'], media_config['public_base_url']),
            backend_type='sql',
        )

    logger.info(f"Client context ready ({context.backend_type} backend)")
    return context
