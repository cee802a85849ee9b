"""Run & progress ledger.

One ``scrape_runs`` row per pipeline execution plus an append-only stream of
``progress_logs`` lines.  The ledger is the only writer of run rows.

Lifecycle::

    start_run()  ──►  RUNNING  ── update() … update() ──►  complete()
                                                            │
                       exception passed in ─────────────────┼──► ERROR
                       stats.error_count > 0 ───────────────┼──► PARTIAL
                       otherwise ───────────────────────────┴──► SUCCESS

Once completed, the store refuses further updates (RunStateError).
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

import structlog

from src.interfaces.sync_store import ISyncStore
from src.models.run import LogLevel, ProgressLogEntry, RunStatus, ScrapeRun, SyncType
from src.pipeline.run_context import ProgressSink, RunContext
from src.utils.errors import StoreError
from src.utils.logging import get_logger


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


class RunLedger:
    """Creates, updates and completes runs; appends progress log lines."""

    def __init__(self, store: ISyncStore) -> None:
        self._store = store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def start_run(
        self,
        sync_type: SyncType,
        from_date: str | None = None,
        to_date: str | None = None,
        progress_sink: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RunContext:
        """Persist a new RUNNING run and return its context."""
        run = ScrapeRun(
            run_id=uuid.uuid4().hex,
            sync_type=sync_type,
            status=RunStatus.RUNNING,
            started_at=_now(),
            from_date=from_date,
            to_date=to_date,
        )
        await self._store.create_run(run)

        ctx = RunContext(run_id=run.run_id, sync_type=sync_type, progress_sink=progress_sink)
        if cancel_event is not None:
            ctx.cancel_event = cancel_event

        self._logger.info("run_started", run_id=run.run_id, sync_type=sync_type.value)
        await self.log(ctx, LogLevel.INFO, f"Started {sync_type.value} sync", {"from": from_date, "to": to_date})
        return ctx

    async def log(
        self,
        ctx: RunContext,
        level: LogLevel,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append a progress log line, mirror it to structlog and the sink.

        A failed log write is reported but never aborts the run.
        """
        try:
            await self._store.append_progress_log(
                ProgressLogEntry(run_id=ctx.run_id, log_level=level, message=message, details=details)
            )
        except StoreError as exc:
            self._logger.error("progress_log_write_failed", run_id=ctx.run_id, error=str(exc))

        log_method = getattr(self._logger, level.value, self._logger.info)
        log_method("run_progress", run_id=ctx.run_id, message=message, details=details)

        if ctx.progress_sink is not None:
            result = ctx.progress_sink(level, message, details)
            if asyncio.iscoroutine(result):
                await result

    async def update(self, ctx: RunContext) -> None:
        """Persist the context's counters and progress percent."""
        await self._store.update_run(ctx.run_id, **ctx.stats.as_update())

    async def complete(self, ctx: RunContext, error: BaseException | None = None) -> ScrapeRun:
        """Close the run as SUCCESS, PARTIAL or ERROR and return the final row."""
        if error is not None:
            status = RunStatus.ERROR
            error_message: str | None = str(error) or type(error).__name__
        elif ctx.stats.error_count > 0:
            status = RunStatus.PARTIAL
            error_message = f"{ctx.stats.error_count} item(s) failed"
        else:
            status = RunStatus.SUCCESS
            error_message = None

        if status != RunStatus.ERROR:
            ctx.stats.progress_percent = 100

        level = LogLevel.ERROR if status == RunStatus.ERROR else LogLevel.INFO
        await self.log(
            ctx,
            level,
            f"Run finished with status {status.value}",
            {"error": error_message} if error_message else None,
        )

        await self._store.update_run(
            ctx.run_id,
            **ctx.stats.as_update(),
            status=status,
            completed_at=_now(),
            error_message=error_message,
        )
        self._logger.info(
            "run_completed",
            run_id=ctx.run_id,
            status=status.value,
            errors=ctx.stats.error_count,
        )

        run = await self._store.get_run(ctx.run_id)
        if run is None:
            raise StoreError(f"run {ctx.run_id} disappeared", provider_name="sqlite")
        return run

    # -- Read paths ------------------------------------------------------------

    async def get_run(self, run_id: str) -> ScrapeRun | None:
        return await self._store.get_run(run_id)

    async def recent_runs(self, limit: int = 20) -> list[ScrapeRun]:
        return await self._store.list_runs(limit=limit)

    async def run_logs(self, run_id: str) -> list[ProgressLogEntry]:
        return await self._store.progress_logs(run_id)
