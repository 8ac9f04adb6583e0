"""Base repository over the key-value store."""

from __future__ import annotations

from otp_auth.services.store import KeyValueStore


class BaseRepository:
    """Binds a ``KeyValueStore`` to one table.

    Entity-specific repositories translate between records and store
    items; they never talk to boto3 directly.
    """

    def __init__(self, store: KeyValueStore, table: str):
        """Initialize the repository.

        Args:
            store: Store used for every operation.
            table: Physical table name.
        """
        self._store = store
        self._table = table
