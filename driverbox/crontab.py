"""Interval timers that start together and run callables repeatedly."""

from __future__ import annotations

import logging
import re
import threading
from fractions import Fraction
from typing import Callable

_log = logging.getLogger(__name__)

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_COMPONENT = re.compile(r"(\d*)(\.\d*)?([^\d.]*)")
_MAX_NS = (1 << 63) - 1


def parse_duration(s: str) -> float:
    """Parse a duration such as ``300ms`` or ``1h15m30.5s`` into seconds."""
    text = s
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f'time: invalid duration "{s}"')

    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        whole, frac, unit = match.groups()
        frac_digits = frac[1:] if frac else ""
        if not whole and not frac_digits:
            raise ValueError(f'time: invalid duration "{s}"')
        if not unit:
            raise ValueError(f'time: missing unit in duration "{s}"')
        if unit not in _UNITS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{s}"')
        scale = _UNITS[unit]
        nanos = int(whole or "0") * scale
        if frac_digits:
            nanos += int(Fraction(int(frac_digits), 10 ** len(frac_digits)) * scale)
        total += nanos
        limit = _MAX_NS + 1 if negative else _MAX_NS
        if total > limit:
            raise ValueError(f'time: invalid duration "{s}"')
        pos = match.end()
    return (-total if negative else total) / 1e9


class Crontab:
    """A set of interval jobs that begin ticking once ``start`` is called."""

    def __init__(self):
        self._started = threading.Event()
        self._stopped = threading.Event()
        self._threads: list[threading.Thread] = []

    def add_func(self, spec: str, func: Callable[[], object]) -> None:
        """Run ``func`` every ``spec`` (a duration string) once started."""
        interval = parse_duration(spec)
        if interval <= 0:
            raise ValueError(f"non-positive interval for crontab: {spec!r}")
        thread = threading.Thread(target=self._run, args=(interval, func), daemon=True)
        self._threads.append(thread)
        thread.start()

    def start(self) -> None:
        """Begin ticking every job."""
        self._started.set()

    def stop(self) -> None:
        """Stop every job and wait for them to finish."""
        self._stopped.set()
        self._started.set()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join(timeout=5)

    def _run(self, interval: float, func: Callable[[], object]) -> None:
        self._started.wait()
        while not self._stopped.wait(interval):
            try:
                func()
            except Exception:
                _log.exception("crontab job failed")