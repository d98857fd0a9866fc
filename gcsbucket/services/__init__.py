from .connection import Connection, ConnectionConfigError, new_connection, open_bucket

__all__ = [
    "Connection",
    "ConnectionConfigError",
    "new_connection",
    "open_bucket",
]
