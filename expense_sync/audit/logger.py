"""
Sync Audit Logger

DESIGN DECISION: Every exchange with the backend is logged.
This provides:
1. Traceability for failures the store deliberately absorbs
2. Debugging capability when the snapshot is used at boot
3. A recent-history view for a "synced / offline" indicator

The audit logger:
- Is async so it can sit on the same await path as the store
- Never raises (a broken log must not break a mutation)
- Keeps a bounded in-memory history of recent events
"""

from collections import deque
from typing import Optional

import structlog

from expense_sync.models.audit import SyncEvent, SyncEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class SyncAuditLogger:
    """
    Central sync audit service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory ring buffer (for callers and tests)
    """

    def __init__(self, history_size: int = 200):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep in memory.
                          0 disables the history.
        """
        self._history: deque[SyncEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("expense_sync")

    async def log(self, event: SyncEvent) -> None:
        """Log a sync event locally and remember it."""
        log_dict = event.to_log_dict()

        try:
            if event.severity.value == "error":
                self._logger.error("sync_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("sync_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("sync_event", **log_dict)
            else:
                self._logger.info("sync_event", **log_dict)
        except Exception as e:
            # A misconfigured handler must not break the caller
            self._logger.error("sync_log_failed", error=str(e))

        self._history.append(event)

    def recent_events(
        self,
        limit: Optional[int] = None,
        event_type: Optional[SyncEventType] = None,
    ) -> list[SyncEvent]:
        """
        Get recent events, newest last.

        Args:
            limit: Only return the last N matching events
            event_type: Only return events of this type
        """
        events = [
            e for e in self._history
            if event_type is None or e.event_type == event_type
        ]
        if limit is not None:
            events = events[-limit:]
        return events

    def last_failure(self) -> Optional[SyncEvent]:
        """Most recent failed fetch or write, if any."""
        for event in reversed(self._history):
            if event.event_type in (
                SyncEventType.FETCH_FAILED,
                SyncEventType.REMOTE_WRITE_FAILED,
            ):
                return event
        return None

    def clear(self) -> None:
        self._history.clear()
