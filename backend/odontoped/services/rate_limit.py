from __future__ import annotations

import time
from collections import deque
from typing import Callable


class SlidingWindow:
    """Counts events per key over the last ``window_seconds``.

    Keys whose events have all expired are dropped.
    """

    def __init__(
        self,
        *,
        max_events: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}

    def _expire(self, now: float) -> None:
        window_start = now - self.window_seconds
        for key in list(self._events):
            events = self._events[key]
            while events and events[0] <= window_start:
                events.popleft()
            if not events:
                del self._events[key]

    def allow(self, key: str) -> bool:
        now = self._clock()
        self._expire(now)
        events = self._events.setdefault(key, deque())
        if len(events) >= self.max_events:
            return False
        events.append(now)
        return True

    def forget(self, key: str) -> None:
        self._events.pop(key, None)

    def __len__(self) -> int:
        return len(self._events)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class LoginThrottle:
    """Login attempt limits per account and address, and per address alone.

    A successful login clears the account bucket for that address. The
    address bucket is never cleared early.
    """

    def __init__(
        self,
        *,
        per_account: int,
        per_address: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.accounts = SlidingWindow(
            max_events=per_account, window_seconds=window_seconds, clock=clock
        )
        self.addresses = SlidingWindow(
            max_events=per_address, window_seconds=window_seconds, clock=clock
        )

    @staticmethod
    def account_key(email: str, ip_address: str) -> str:
        return f"{ip_address}:{normalize_email(email)}"

    def allow(self, email: str, ip_address: str) -> bool:
        if not self.addresses.allow(ip_address):
            return False
        return self.accounts.allow(self.account_key(email, ip_address))

    def succeeded(self, email: str, ip_address: str) -> None:
        self.accounts.forget(self.account_key(email, ip_address))
