from .session import Database, create_engine_for, normalize_url
from .resolver import ConnectionExhaustedError, ResolvedConnection, resolve_connection
from .startup import backoff_delay, connect_with_retries, start_database
from .schema import ensure_schema

__all__ = [
    "Database",
    "create_engine_for",
    "normalize_url",
    "ConnectionExhaustedError",
    "ResolvedConnection",
    "resolve_connection",
    "backoff_delay",
    "connect_with_retries",
    "start_database",
    "ensure_schema"
]
