"""Upsert & audit engine.

Applies the change detector's decision for one incoming artist or event:

    created   -> insert, tag ``added_by_run``, change log with no old hash
    updated   -> overwrite canonical fields, bump hash and
                 ``last_updated_at``, tag ``updated_by_run``, change log with
                 both hashes, the changed-field list and old/new snapshots
    unchanged -> no write, no log; only ``items_unchanged`` moves

Re-ingesting identical upstream data therefore performs zero writes.
Store failures propagate as :class:`StoreError` so the calling loop can
count them against the run and move on to the next record.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistRecord, EntityType, EventRecord
from src.models.listing import ArtistFields, EventFields
from src.models.run import ChangeLogEntry, ChangeType
from src.pipeline.run_context import RunContext
from src.services.change_detector import (
    classify,
    compute_artist_hash,
    compute_event_hash,
    diff_fields,
)
from src.utils.logging import get_logger


class UpsertService:
    """Idempotent create/update/no-op writer for artists and events."""

    def __init__(self, store: ISyncStore) -> None:
        self._store = store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def upsert_artist(self, ctx: RunContext, fields: ArtistFields) -> ChangeType:
        """Ingest one artist from the canonical listing.

        An existing stub is treated as changed (it has no hash) and is
        promoted to a canonical record in place.
        """
        existing = await self._store.get_artist_by_external_id(fields.external_id)
        return await self._apply(
            ctx,
            entity_type=EntityType.ARTIST,
            fields=fields,
            existing=existing,
            new_hash=compute_artist_hash(fields),
            insert=self._store.insert_artist,
            update=self._store.update_artist,
        )

    async def upsert_event(self, ctx: RunContext, fields: EventFields) -> ChangeType:
        """Ingest one event from the canonical listing."""
        existing = await self._store.get_event_by_external_id(fields.external_id)
        return await self._apply(
            ctx,
            entity_type=EntityType.EVENT,
            fields=fields,
            existing=existing,
            new_hash=compute_event_hash(fields),
            insert=self._store.insert_event,
            update=self._store.update_event,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _apply(
        self,
        ctx: RunContext,
        entity_type: EntityType,
        fields: ArtistFields | EventFields,
        existing: ArtistRecord | EventRecord | None,
        new_hash: str,
        insert: Callable[..., Awaitable[Any]],
        update: Callable[..., Awaitable[Any]],
    ) -> ChangeType:
        ctx.stats.total_items_processed += 1
        change = classify(
            existing.content_hash if existing is not None else None,
            new_hash,
            exists=existing is not None,
        )

        if change == ChangeType.UNCHANGED:
            ctx.stats.items_unchanged += 1
            return change

        new_data = fields.canonical()
        if change == ChangeType.CREATED:
            await insert(fields, new_hash, ctx.run_id)
            entry = ChangeLogEntry(
                run_id=ctx.run_id,
                entity_type=entity_type,
                external_id=fields.external_id,
                change_type=change,
                old_content_hash=None,
                new_content_hash=new_hash,
                changed_fields=list(new_data),
                old_data=None,
                new_data=new_data,
            )
            ctx.stats.items_created += 1
        else:
            assert existing is not None
            old_data = {key: getattr(existing, key, None) for key in new_data}
            await update(fields.external_id, fields, new_hash, ctx.run_id)
            entry = ChangeLogEntry(
                run_id=ctx.run_id,
                entity_type=entity_type,
                external_id=fields.external_id,
                change_type=change,
                old_content_hash=existing.content_hash,
                new_content_hash=new_hash,
                changed_fields=diff_fields(old_data, new_data),
                old_data=old_data,
                new_data=new_data,
            )
            ctx.stats.items_updated += 1

        await self._store.append_change_log(entry)
        self._logger.debug(
            f"{entity_type.value}_{change.value}",
            external_id=fields.external_id,
            changed_fields=entry.changed_fields,
        )
        return change
