# =============================================================================
# medcore/data/supabase_client.py
# Remote API over Supabase
# Table-oriented insert/update/delete used by the sync layer
# =============================================================================

from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

from supabase import AsyncClient, acreate_client

from medcore.errors.exceptions import RemoteSyncError

logger = logging.getLogger(__name__)


class RemoteAPI(ABC):
    """
    Contract the sync layer needs from the backend.

    Each call succeeds or fails on its own (no cross-table transactions) and
    raises RemoteSyncError on failure.
    """

    @abstractmethod
    async def insert(self, resource: str, record: Dict[str, Any]) -> None:
        """Insert a record; must be idempotent by record id."""

    @abstractmethod
    async def update(self, resource: str, record_id: str, fields: Dict[str, Any]) -> None:
        """Apply partial fields to the record with this id."""

    @abstractmethod
    async def delete(self, resource: str, record_id: str) -> None:
        """Delete the record with this id."""


class SupabaseRemoteAPI(RemoteAPI):
    """
    RemoteAPI backed by the Supabase async client.

    The client is created lazily on first use so the app can start offline.
    Inserts are sent as upserts keyed on ``id`` so a replayed add is harmless.

    Usage:
        remote = SupabaseRemoteAPI(settings.supabase_url, settings.supabase_key)
        await remote.insert("patients", {"id": "P-001", "name": "Juan"})
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[AsyncClient] = None,
    ):
        self.url = url
        self.key = key
        self._client = client
        self._owns_client = client is None
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.url and self.key)

    async def _get_client(self) -> AsyncClient:
        loop = asyncio.get_running_loop()
        if self._owns_client and self._client_loop is not loop:
            # Clients are bound to the loop that created them
            self._client = None

        if self._client is None:
            if not self.is_configured:
                raise RemoteSyncError("Supabase credentials are not configured")
            try:
                self._client = await acreate_client(self.url, self.key)
            except Exception as e:
                raise RemoteSyncError(f"Failed to initialize Supabase client: {e}") from e
            self._client_loop = loop
        return self._client

    async def insert(self, resource: str, record: Dict[str, Any]) -> None:
        client = await self._get_client()
        try:
            await client.table(resource).upsert(record, on_conflict="id").execute()
        except Exception as e:
            raise RemoteSyncError(
                f"Error inserting into {resource}: {e}",
                resource=resource,
                operation="insert",
                record_id=record.get("id"),
            ) from e

    async def update(self, resource: str, record_id: str, fields: Dict[str, Any]) -> None:
        client = await self._get_client()
        try:
            await client.table(resource).update(fields).eq("id", record_id).execute()
        except Exception as e:
            raise RemoteSyncError(
                f"Error updating {resource}: {e}",
                resource=resource,
                operation="update",
                record_id=record_id,
            ) from e

    async def delete(self, resource: str, record_id: str) -> None:
        client = await self._get_client()
        try:
            # Filtered delete: deleting an already-missing row is not an error
            await client.table(resource).delete().eq("id", record_id).execute()
        except Exception as e:
            raise RemoteSyncError(
                f"Error deleting from {resource}: {e}",
                resource=resource,
                operation="delete",
                record_id=record_id,
            ) from e
