"""Security-event sinks (implement ISecurityEventSink).

LoggingSecurityEventSink writes one structured record per event on the
app.security logger. FirestoreSecurityEventSink persists events to the
security_events collection and also logs them.
"""

from __future__ import annotations

import json
import logging

from app.domain.enums import Severity
from app.domain.value_objects import SecurityEvent
from app.infrastructure.firebase._rest_client import FirestoreRESTClient
from app.infrastructure.firebase.collections import COLLECTION_SECURITY_EVENTS
from app.shared.telemetry.logging import get_security_logger
from app.shared.telemetry.tracing import get_trace_id
from app.shared.utils import generate_cuid

_SEVERITY_LEVELS: dict[Severity, int] = {
    Severity.LOW: logging.INFO,
    Severity.MEDIUM: logging.WARNING,
    Severity.HIGH: logging.WARNING,
    Severity.CRITICAL: logging.ERROR,
}


class LoggingSecurityEventSink:
    """Emit security events as JSON log lines on the app.security logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_security_logger()

    async def emit(self, event: SecurityEvent) -> None:
        self._logger.log(
            _SEVERITY_LEVELS.get(event.severity, logging.WARNING),
            "security_event %s",
            json.dumps(event.to_dict(), default=str, sort_keys=True),
            extra={"security_event_type": event.type.value, "trace_id": get_trace_id()},
        )


class FirestoreSecurityEventSink:
    """Persist security events to Firestore (one document per event)."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        fallback: LoggingSecurityEventSink | None = None,
    ) -> None:
        self._coll = client.collection(COLLECTION_SECURITY_EVENTS)
        self._log_sink = fallback or LoggingSecurityEventSink()

    async def emit(self, event: SecurityEvent) -> None:
        await self._log_sink.emit(event)
        await self._coll.document(generate_cuid()).set(
            {
                "type": event.type.value,
                "severity": event.severity.value,
                "timestamp": event.timestamp,
                "details": dict(event.details),
                "trace_id": get_trace_id(),
            }
        )
