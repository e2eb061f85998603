"""
Structured diagnostics events.

A DiagnosticsLog keeps a bounded in-memory history of notable events
(invoice recalculated, template applied, number issued, failures) and
forwards each accepted event to the standard logging module. Core code
accepts an optional instance and works the same without one.
"""
import json
import logging
import traceback
import uuid
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}


class Category:
    """Event categories"""
    APP = 'App'
    INVOICE = 'Invoice'
    TEMPLATE = 'Template'
    NUMBERING = 'Numbering'
    EXPORT = 'Export'
    STORAGE = 'Storage'
    EDITOR = 'Editor'


class DiagnosticEvent(BaseModel):
    """A single recorded event"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    level: str
    category: str
    message: str
    data: Optional[Dict[str, Any]] = None
    stack_trace: Optional[str] = None
    user_action: Optional[str] = None


class DiagnosticsLog:
    """
    Bounded event sink with filtering and statistics.

    Usage:
        diagnostics = DiagnosticsLog(max_entries=500)
        diagnostics.info(Category.TEMPLATE, 'Template applied', {'templateId': t.id})
    """

    def __init__(self, max_entries: int = 1000, enabled: bool = True,
                 min_level: str = 'DEBUG',
                 logger_name: str = 'invoice_editor.events'):
        self._events = deque(maxlen=max_entries)
        self._logger = logging.getLogger(logger_name)
        self.enabled = enabled
        self.min_level = self._normalize_level(min_level)

    @staticmethod
    def _normalize_level(level: str) -> str:
        name = level.upper()
        if name == 'WARN':
            name = 'WARNING'
        if name not in LEVELS:
            raise ValueError(f'Unknown diagnostics level: {level}')
        return name

    def configure(self, enabled: bool, min_level: str):
        self.enabled = enabled
        self.min_level = self._normalize_level(min_level)
        self.info(Category.APP, 'Diagnostics configuration updated',
                  {'enabled': enabled, 'minLevel': self.min_level})

    def should_record(self, level: str) -> bool:
        if not self.enabled:
            return False
        return LEVELS[level] >= LEVELS[self.min_level]

    def record(self, severity: str, category: str, message: str,
               data: Optional[Dict[str, Any]] = None,
               error: Optional[BaseException] = None,
               user_action: Optional[str] = None) -> Optional[DiagnosticEvent]:
        """
        Record an event.

        Args:
            severity: DEBUG, INFO, WARNING or ERROR
            category: Event category (see Category)
            message: Human readable message
            data: Optional structured payload
            error: Exception whose message and traceback are attached
            user_action: Name of the user action that caused the event

        Returns:
            The stored event, or None when filtered out
        """
        level = self._normalize_level(severity)
        if not self.should_record(level):
            return None

        stack_trace = None
        if error is not None:
            data = dict(data or {})
            data['errorName'] = type(error).__name__
            data['errorMessage'] = str(error)
            stack_trace = ''.join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        event = DiagnosticEvent(
            level=level,
            category=category,
            message=message,
            data=data,
            stack_trace=stack_trace,
            user_action=user_action,
        )
        self._events.append(event)

        if data:
            self._logger.log(LEVELS[level], f"[{category}] {message} {data}")
        else:
            self._logger.log(LEVELS[level], f"[{category}] {message}")

        return event

    def debug(self, category: str, message: str, data: Optional[dict] = None):
        return self.record('DEBUG', category, message, data)

    def info(self, category: str, message: str, data: Optional[dict] = None):
        return self.record('INFO', category, message, data)

    def warning(self, category: str, message: str, data: Optional[dict] = None):
        return self.record('WARNING', category, message, data)

    def error(self, category: str, message: str,
              error: Optional[BaseException] = None, data: Optional[dict] = None):
        return self.record('ERROR', category, message, data, error=error)

    def user_action(self, action: str, category: str, data: Optional[dict] = None):
        return self.record('INFO', category, f'User action: {action}', data,
                           user_action=action)

    def entries(self, level: Optional[str] = None,
                category: Optional[str] = None) -> List[DiagnosticEvent]:
        """Recorded events, oldest first, optionally filtered"""
        events = list(self._events)
        if level is not None:
            wanted = self._normalize_level(level)
            events = [e for e in events if e.level == wanted]
        if category is not None:
            events = [e for e in events if e.category == category]
        return events

    def search(self, query: str) -> List[DiagnosticEvent]:
        """Case-insensitive search over message, category and payload"""
        needle = query.lower()
        return [
            e for e in self._events
            if needle in e.message.lower()
            or needle in e.category.lower()
            or needle in json.dumps(e.data or {}, default=str).lower()
        ]

    def statistics(self) -> dict:
        levels = Counter(e.level for e in self._events)
        return {
            'total': len(self._events),
            'by_level': {name: levels.get(name, 0) for name in LEVELS},
            'by_category': dict(Counter(e.category for e in self._events)),
            'errors': levels.get('ERROR', 0),
            'warnings': levels.get('WARNING', 0),
        }

    def clear(self):
        self._events.clear()

    def export_json(self) -> str:
        return json.dumps(
            [e.model_dump(mode='json') for e in self._events], indent=2
        )

    def __len__(self) -> int:
        return len(self._events)
