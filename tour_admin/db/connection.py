# tour_admin/db/connection.py
from typing import Literal

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool
from supabase import create_client, Client

from tour_admin.config import config as default_config
from tour_admin.exceptions import ConfigError, DatabaseError

BackendType = Literal["supabase", "sql"]


class BackendConnection:
    """Connection handler for the Supabase and SQL backends.

    Built explicitly and handed to whoever needs it; nothing here is a
    module-level singleton.
    """

    def __init__(self, cfg=None):
        """Initialize the connection selected by the [BACKEND] section."""
        self._config = cfg or default_config
        self._engine = None
        self._supabase = None
        self._backend_type: BackendType = None
        self._initialize_connection()

    def _initialize_connection(self):
        """Initialize the backend connection based on type."""
        backend_type = self._config.backend_config['type']

        if backend_type == "supabase":
            self._backend_type = "supabase"
            self._initialize_supabase()
        elif backend_type == "sql":
            self._backend_type = "sql"
            self._initialize_sql()
        else:
            raise ConfigError(f"Unknown backend type: {backend_type}")

    def _initialize_sql(self):
        """Initialize the SQLAlchemy engine."""
        backend_config = self._config.backend_config
        url = backend_config['sql_url']

        try:
            if url in ('sqlite://', 'sqlite:///:memory:'):
                # One shared connection, otherwise every session sees an empty database
                self._engine = create_engine(
                    url,
                    echo=backend_config['echo'],
                    connect_args={'check_same_thread': False},
                    poolclass=StaticPool
                )
            else:
                self._engine = create_engine(url, echo=backend_config['echo'])

            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            raise DatabaseError(f"Failed to initialize SQL connection: {str(e)}") from e

    def _initialize_supabase(self):
        """Initialize Supabase connection."""
        supabase_config = self._config.supabase_config

        if not supabase_config['url'] or not supabase_config['key']:
            raise ConfigError("Supabase URL and key must be provided")

        try:
            self._supabase = create_client(
                supabase_config['url'],
                supabase_config['key']
            )
        except Exception as e:
            raise DatabaseError(f"Failed to initialize Supabase connection: {str(e)}") from e

    def get_supabase(self) -> Client:
        """Get Supabase client (Supabase only)."""
        if self._backend_type != "supabase":
            raise DatabaseError("get_supabase is only available for Supabase connections")

        return self._supabase

    @property
    def engine(self):
        """Get SQLAlchemy engine (SQL only)."""
        if self._backend_type != "sql":
            raise DatabaseError("engine is only available for SQL connections")

        return self._engine

    @property
    def backend_type(self) -> BackendType:
        """Get current backend type."""
        return self._backend_type
