"""
Structured event logging for Contender runs.

Every file outcome of a run (scanned, backed up, instrumented, skipped,
reverted) is emitted as a structured event:
- Written as JSON lines for later inspection
- Mirrored to standard logging
- Buffered in memory for the run summary
"""

import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum, auto
import uuid


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur."""
    # Session tracking
    SESSION_STARTED = auto()
    SESSION_COMPLETED = auto()

    # Per-file outcomes
    FILE_SCANNED = auto()
    FILE_BACKED_UP = auto()
    FILE_INSTRUMENTED = auto()
    FILE_ANNOTATED = auto()
    FILE_SKIPPED = auto()
    FILE_REVERTED = auto()

    # Failures
    BACKUP_FAILED = auto()
    RESTORE_FAILED = auto()


class EventSeverity(Enum):
    """Severity levels for events."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class StructuredEvent:
    """
    A structured event with consistent format.

    All events have these core fields plus event-specific context.
    """
    event_id: str
    event_type: EventType
    timestamp: datetime
    severity: EventSeverity
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'event_id': self.event_id,
            'event_type': self.event_type.name,
            'timestamp': self.timestamp.isoformat(),
            'severity': self.severity.name,
            'message': self.message,
            'context': self.context,
            'session_id': self.session_id
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> 'StructuredEvent':
        """Create from dictionary."""
        data = data.copy()
        data['event_type'] = EventType[data['event_type']]
        data['severity'] = EventSeverity[data['severity']]
        data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        return cls(**data)


class EventEmitter:
    """Emits structured events to a JSON lines file, logging and memory."""

    def __init__(
        self,
        log_file: Optional[Path] = None,
        session_id: Optional[str] = None,
        enable_console: bool = True,
        enable_file: bool = True
    ):
        """
        Initialize event emitter.

        Args:
            log_file: Path to event log file (JSON lines format)
            session_id: Session identifier for grouping events
            enable_console: Emit to standard logging
            enable_file: Emit to file
        """
        self.log_file = log_file or Path('logs') / 'events.jsonl'
        self.session_id = session_id or str(uuid.uuid4())
        self.enable_console = enable_console
        self.enable_file = enable_file

        # In-memory buffer for current session
        self.event_buffer: List[StructuredEvent] = []

        if self.enable_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

    def emit(
        self,
        event_type: EventType,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        context: Optional[Dict] = None
    ) -> StructuredEvent:
        """
        Emit a structured event.

        Args:
            event_type: Type of event
            message: Human-readable message
            severity: Event severity
            context: Context data (operation-specific)

        Returns:
            The emitted event
        """
        event = StructuredEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=datetime.now(),
            severity=severity,
            message=message,
            context=context or {},
            session_id=self.session_id
        )

        self.event_buffer.append(event)

        if self.enable_console:
            self._emit_to_console(event)

        if self.enable_file:
            self._emit_to_file(event)

        return event

    def _emit_to_console(self, event: StructuredEvent):
        """Emit event via standard logging."""
        level_map = {
            EventSeverity.DEBUG: logging.DEBUG,
            EventSeverity.INFO: logging.INFO,
            EventSeverity.WARNING: logging.WARNING,
            EventSeverity.ERROR: logging.ERROR,
            EventSeverity.CRITICAL: logging.CRITICAL
        }

        context_str = ""
        if event.context:
            key_context = {k: v for k, v in event.context.items() if k in ['path', 'points']}
            if key_context:
                context_str = " | " + ", ".join(f"{k}={v}" for k, v in key_context.items())

        logger.log(
            level_map.get(event.severity, logging.INFO),
            f"[{event.event_type.name}] {event.message}{context_str}"
        )

    def _emit_to_file(self, event: StructuredEvent):
        """Emit event to JSON lines file."""
        try:
            with open(self.log_file, 'a') as f:
                f.write(event.to_json() + '\n')
        except OSError as e:
            logger.error(f"Failed to write event to file: {e}")

    def get_session_events(self) -> List[StructuredEvent]:
        """Get all events for current session."""
        return self.event_buffer.copy()

    def query_events(
        self,
        event_type: Optional[EventType] = None,
        severity: Optional[EventSeverity] = None
    ) -> List[StructuredEvent]:
        """Filter buffered events by type and/or severity."""
        filtered = self.event_buffer

        if event_type:
            filtered = [e for e in filtered if e.event_type == event_type]

        if severity:
            filtered = [e for e in filtered if e.severity == severity]

        return filtered

    def count(self, event_type: EventType) -> int:
        return len(self.query_events(event_type=event_type))


class EventBuilder:
    """Convenience methods for the events a run emits."""

    def __init__(self, emitter: EventEmitter):
        self.emitter = emitter

    def session_started(self, root: Path, automatic: bool, seed: Optional[int]) -> StructuredEvent:
        mode = 'automatic' if automatic else 'manual'
        return self.emitter.emit(
            EventType.SESSION_STARTED,
            f"Session started ({mode} mode) on {root}",
            context={'path': str(root), 'mode': mode, 'seed': seed}
        )

    def session_completed(self, files: int, points: int, skipped: int) -> StructuredEvent:
        return self.emitter.emit(
            EventType.SESSION_COMPLETED,
            f"Session completed: {files} files, {points} points, {skipped} skipped",
            context={'files': files, 'points': points, 'skipped': skipped}
        )

    def file_scanned(self, path: Path, call_sites: int, annotated: int) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_SCANNED,
            f"Scanned {path.name}",
            severity=EventSeverity.DEBUG,
            context={'path': str(path), 'call_sites': call_sites, 'annotated': annotated}
        )

    def file_backed_up(self, path: Path, backup: Path) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_BACKED_UP,
            f"Backed up {path.name}",
            severity=EventSeverity.DEBUG,
            context={'path': str(path), 'backup': str(backup)}
        )

    def file_instrumented(self, path: Path, points: int) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_INSTRUMENTED,
            f"Instrumented {path.name}",
            context={'path': str(path), 'points': points}
        )

    def file_annotated(self, path: Path, points: int) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_ANNOTATED,
            f"Wrote annotations into {path.name}",
            context={'path': str(path), 'points': points}
        )

    def file_skipped(self, path: Path, reason: str) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_SKIPPED,
            f"Skipped {path.name}: {reason}",
            severity=EventSeverity.WARNING,
            context={'path': str(path), 'reason': reason}
        )

    def file_reverted(self, path: Path) -> StructuredEvent:
        return self.emitter.emit(
            EventType.FILE_REVERTED,
            f"Reverted {path.name}",
            context={'path': str(path)}
        )

    def backup_failed(self, path: Path, reason: str) -> StructuredEvent:
        return self.emitter.emit(
            EventType.BACKUP_FAILED,
            f"Backup failed for {path.name}, file left untouched",
            severity=EventSeverity.ERROR,
            context={'path': str(path), 'reason': reason}
        )

    def restore_failed(self, path: Path, reason: str) -> StructuredEvent:
        return self.emitter.emit(
            EventType.RESTORE_FAILED,
            f"Restore failed for {path.name}",
            severity=EventSeverity.ERROR,
            context={'path': str(path), 'reason': reason}
        )
