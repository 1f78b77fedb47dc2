# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_identity

"""
Clock capability used for discovery retry delays.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Protocol for a clock that can report time and block for a duration."""

    def now(self) -> float:
        """Returns the current time in seconds since the epoch."""
        ...

    def sleep(self, seconds: float) -> None:
        """Blocks for the given number of seconds."""
        ...


class RealClock:
    """Wall-clock implementation backed by the `time` module."""

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class FakeClock:
    """
    Deterministic clock for tests.
    `sleep` returns immediately, advances the fake time and records the requested duration.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._lock = threading.Lock()
        self.sleeps: list[float] = []

    def now(self) -> float:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self._now += seconds

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds
