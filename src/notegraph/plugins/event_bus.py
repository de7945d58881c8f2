"""Outbox-backed event delivery via pluggy + ThreadPoolExecutor.

Every domain event is written to the ``event_outbox`` table before any
plugin sees it, so no committed event is lost if the process exits
mid-flight. ``drain()`` retries pending and failed rows synchronously.

Row status moves ``pending -> completed``, or ``pending -> failed`` and,
once ``max_retries`` attempts have failed, ``dead_letter``.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from notegraph.domain.events import utcnow
from notegraph.infrastructure.database.schema import event_outbox
from notegraph.plugins.hookspecs import TYPED_HOOKS

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from notegraph.domain.events import DomainEvent
    from notegraph.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
DEAD_LETTER = "dead_letter"


def _now_iso() -> str:
    return utcnow().isoformat()


class EventBus:
    """Outbox-backed event dispatch.

    Parameters:
        engine: SQLAlchemy engine with the ``event_outbox`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Dispatch on the calling thread (``--sync`` and tests).
        max_retries: Attempts before an event is marked ``dead_letter``.
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 2,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._sync = sync
        self._max_retries = max_retries
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: list[Future[None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def publish(self, event: DomainEvent) -> int:
        """Record *event* in the outbox, then dispatch it. Returns the row id."""
        record = event.to_record()
        event_id = self._write_outbox(record)
        logger.debug(
            "Queued %s for %s as outbox row %d", event.event_type, event.aggregate_id, event_id
        )

        if self._sync:
            self._execute(event_id, record)
        else:
            assert self._executor is not None
            self._futures.append(self._executor.submit(self._execute, event_id, record))
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending/failed rows synchronously.

        Returns ``{id, event_type, status}`` for each retried row.
        """
        self._wait_futures()

        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_outbox)
                .where(event_outbox.c.status.in_([PENDING, FAILED]))
                .order_by(event_outbox.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            record = {
                "event_type": row.event_type,
                "aggregate_id": row.aggregate_id,
                "payload": json.loads(row.payload),
            }
            self._execute(row.id, record)
            results.append(
                {"id": row.id, "event_type": row.event_type, "status": self.status_of(row.id)}
            )
        return results

    def status_of(self, event_id: int) -> str:
        with self._engine.connect() as conn:
            status: str = conn.execute(
                select(event_outbox.c.status).where(event_outbox.c.id == event_id)
            ).scalar_one()
        return status

    def shutdown(self) -> None:
        """Shutdown ThreadPoolExecutor, waiting for pending tasks."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write_outbox(self, record: dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_outbox).values(
                    event_type=record["event_type"],
                    aggregate_id=record["aggregate_id"],
                    payload=json.dumps(record["payload"]),
                    status=PENDING,
                    retries=0,
                    created=_now_iso(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _execute(self, event_id: int, record: dict[str, Any]) -> None:
        """Run the typed hook (if any) and the catch-all hook; record the outcome."""
        event_type = record["event_type"]
        payload = record["payload"]
        try:
            hook_name = TYPED_HOOKS.get(event_type)
            if hook_name is not None:
                getattr(self._pm.hook, hook_name)(**payload)
            self._pm.hook.on_domain_event(
                event_type=event_type,
                aggregate_id=record["aggregate_id"],
                payload=payload,
            )
        except Exception as exc:
            logger.warning("Plugin hook failed for %s: %s", event_type, exc)
            self._mark_failed(event_id, str(exc))
        else:
            self._mark_completed(event_id)

    def _mark_completed(self, event_id: int) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_outbox)
                .where(event_outbox.c.id == event_id)
                .values(status=COMPLETED, error=None, completed=_now_iso())
            )

    def _mark_failed(self, event_id: int, error: str) -> None:
        """Increment retries, mark failed or dead_letter."""
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_outbox.c.retries).where(event_outbox.c.id == event_id)
            ).scalar_one()

            new_retries = retries + 1
            new_status = DEAD_LETTER if new_retries >= self._max_retries else FAILED
            conn.execute(
                update(event_outbox)
                .where(event_outbox.c.id == event_id)
                .values(
                    status=new_status,
                    error=error,
                    retries=new_retries,
                    completed=_now_iso() if new_status == DEAD_LETTER else None,
                )
            )

    def _wait_futures(self) -> None:
        # Hook errors are recorded by _execute; only timeouts or bus bugs reach here.
        for future in self._futures:
            exc = future.exception(timeout=30)
            if exc is not None:
                logger.warning("Event delivery task crashed: %s", exc)
        self._futures.clear()
