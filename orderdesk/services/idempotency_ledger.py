"""Record of external event ids that already produced their side effect.

Two backends share one contract and are chosen at startup:

* ``InMemoryLedger`` keeps markers in a process-local set.
* ``DatabaseLedger`` writes to the ``processed_events`` table. A primary-key
  conflict means another caller already recorded the id and counts as
  success. Any other store failure degrades to a process-local shadow set
  and logs a warning; the caller never sees the failure. The shadow only
  holds ids written while the table was unreachable.

``claim`` is the atomic write used by the payment pipeline: it records the
marker and reports whether this caller was the one that created it.
"""

import logging
from threading import Lock
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from orderdesk.core.observability import log_event
from orderdesk.models.processed_event import ProcessedEvent

logger = logging.getLogger("orderdesk.ledger")


class IdempotencyLedger(Protocol):
    backend: str

    def is_processed(self, event_id: str) -> bool:
        ...

    def mark_processed(self, event_id: str) -> None:
        ...

    def claim(self, event_id: str) -> bool:
        ...


def donation_marker(session_id: str) -> str:
    return f"donation_{session_id}"


class InMemoryLedger:
    backend = "memory"

    def __init__(self) -> None:
        self._events: set[str] = set()
        self._lock = Lock()

    def is_processed(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._events

    def mark_processed(self, event_id: str) -> None:
        self.claim(event_id)

    def claim(self, event_id: str) -> bool:
        with self._lock:
            if event_id in self._events:
                return False
            self._events.add(event_id)
            return True


class DatabaseLedger:
    backend = "database"

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._shadow = InMemoryLedger()

    def is_processed(self, event_id: str) -> bool:
        if self._shadow.is_processed(event_id):
            return True
        try:
            with self._session_factory() as db:
                return db.get(ProcessedEvent, event_id) is not None
        except SQLAlchemyError as exc:
            log_event(
                logger,
                logging.WARNING,
                "ledger.read_degraded",
                event_id=event_id,
                error=str(exc),
            )
            return self._shadow.is_processed(event_id)

    def mark_processed(self, event_id: str) -> None:
        self.claim(event_id)

    def claim(self, event_id: str) -> bool:
        try:
            with self._session_factory() as db:
                try:
                    db.add(ProcessedEvent(id=event_id))
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    log_event(logger, logging.INFO, "ledger.already_marked", event_id=event_id)
                    return False
        except SQLAlchemyError as exc:
            log_event(
                logger,
                logging.WARNING,
                "ledger.write_degraded",
                event_id=event_id,
                error=str(exc),
            )
            return self._shadow.claim(event_id)

        return True


def build_ledger(backend: str, session_factory: sessionmaker | None = None) -> IdempotencyLedger:
    normalized = (backend or "").strip().lower()
    if normalized == "memory":
        return InMemoryLedger()
    if normalized == "database":
        if session_factory is None:
            raise ValueError("Database ledger requires a session factory")
        return DatabaseLedger(session_factory)
    raise ValueError(f"Unknown ledger backend '{backend}'. Available: database, memory")
