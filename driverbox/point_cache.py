"""A thread-safe cache of point values with per-entry expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any


@dataclass
class _Entry:
    value: Any
    expires_at: float


class PointCache:
    """Caches point values per device; ``ttl`` is the default lifetime in seconds."""

    def __init__(self, ttl: float):
        self._ttl = ttl
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], _Entry] = {}

    def set_default_ttl(self, ttl: float) -> None:
        """Change the lifetime used by later ``set`` calls without their own ttl."""
        with self._lock:
            self._ttl = ttl

    def get(self, device_name: str, point_name: str) -> Any:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get((device_name, point_name))
            if entry is not None and entry.expires_at > time.monotonic():
                return entry.value
        return None

    def set(self, device_name: str, point_name: str, value: Any, ttl: float | None = None) -> None:
        """Cache a value for ``ttl`` seconds, or the default lifetime."""
        with self._lock:
            lifetime = self._ttl if ttl is None else ttl
            self._entries[(device_name, point_name)] = _Entry(value, time.monotonic() + lifetime)

    def clear(self) -> None:
        """Drop every cached value."""
        with self._lock:
            self._entries = {}