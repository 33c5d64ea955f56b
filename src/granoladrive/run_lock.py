"""File lock that keeps periodic runs from overlapping."""

from __future__ import annotations

import fcntl
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RunLock:
    """A lock file holding the epoch-millisecond time it was taken.

    A lock older than ``stale_after_ms`` is treated as left behind by a
    crashed run and taken over. Reading, deciding and writing the lock file
    happen while holding an exclusive ``flock`` on a sibling guard file, so
    two runs starting together cannot both take the lock. Not reentrant.
    """

    def __init__(self, path: Path, *, stale_after_ms: int = 30 * 60 * 1000):
        self.path = path
        self.guard_path = path.with_name(path.name + ".guard")
        self.stale_after_ms = stale_after_ms
        self._held = False
        self._taken_at: int | None = None

    @property
    def held(self) -> bool:
        return self._held

    @contextmanager
    def _guarded(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.guard_path, "a") as guard:
            fcntl.flock(guard, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(guard, fcntl.LOCK_UN)

    def read_timestamp(self) -> int | None:
        try:
            return int(self.path.read_text(encoding="utf-8").strip())
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            log.warning("Lock file %s is unreadable, treating it as stale", self.path)
            return 0

    def acquire(self, *, now_ms: int | None = None) -> bool:
        """Take the lock. Returns False if another run holds a fresh lock."""
        if self._held:
            raise RuntimeError("RunLock is not reentrant")
        now = now_ms if now_ms is not None else _now_ms()

        with self._guarded():
            taken_at = self.read_timestamp()
            if taken_at is not None:
                age = now - taken_at
                if age < self.stale_after_ms:
                    return False
                log.warning("Taking over stale lock %s (%d min old)", self.path, age // 60000)
            self.path.write_text(str(now), encoding="utf-8")

        self._taken_at = now
        self._held = True
        return True

    def release(self) -> None:
        """Remove the lock file, unless another run has taken it over since."""
        if not self._held:
            return
        with self._guarded():
            current = self.read_timestamp()
            if current is None or current == self._taken_at:
                self.path.unlink(missing_ok=True)
            else:
                log.warning("Lock %s was taken over by another run, leaving it in place", self.path)
        self._held = False
        self._taken_at = None
