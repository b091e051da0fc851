from __future__ import annotations

import enum
import threading
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator


class AlertLevel(str, enum.Enum):
    error = "error"
    success = "success"


@dataclass(frozen=True)
class Alert:
    level: AlertLevel
    message: str
    created_at: datetime


def error_messages(alerts: list[Alert]) -> list[str]:
    return [alert.message for alert in alerts if alert.level == AlertLevel.error]


class AlertLog:
    """Transient, user-facing messages raised by background operations.

    Holds at most ``max_alerts`` entries; the oldest are discarded first.
    Alerts raised inside ``collect()`` go to that block's list instead, so a
    request only ever reports the alerts of its own operation.
    """

    def __init__(self, *, max_alerts: int = 50) -> None:
        self._alerts: deque[Alert] = deque(maxlen=max_alerts)
        self._lock = threading.Lock()
        self._scope: ContextVar[list[Alert] | None] = ContextVar(
            f"alert_scope_{id(self)}", default=None
        )

    def error(self, message: str) -> None:
        self._push(AlertLevel.error, message)

    def success(self, message: str) -> None:
        self._push(AlertLevel.success, message)

    def _push(self, level: AlertLevel, message: str) -> None:
        alert = Alert(level, message, datetime.now(timezone.utc))
        scope = self._scope.get()
        if scope is not None:
            scope.append(alert)
            return
        with self._lock:
            self._alerts.append(alert)

    @contextmanager
    def collect(self) -> Iterator[list[Alert]]:
        collected: list[Alert] = []
        token = self._scope.set(collected)
        try:
            yield collected
        finally:
            self._scope.reset(token)

    def drain(self) -> list[Alert]:
        with self._lock:
            alerts = list(self._alerts)
            self._alerts.clear()
        return alerts

    def __len__(self) -> int:
        return len(self._alerts)
