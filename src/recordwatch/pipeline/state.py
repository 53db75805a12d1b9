"""Process-wide polling state."""

import threading
from dataclasses import dataclass, field

from .classify import AlbumClassifier


class CycleGuard:
    """Single in-flight flag shared by the timer and manual triggers.

    ``try_enter`` never blocks: a trigger that finds a cycle running is
    dropped, not queued.
    """

    def __init__(self) -> None:
        self._flag = threading.Lock()

    @property
    def running(self) -> bool:
        return self._flag.locked()

    def try_enter(self) -> bool:
        return self._flag.acquire(blocking=False)

    def exit(self) -> None:
        if self._flag.locked():
            self._flag.release()


@dataclass
class WatchState:
    """State owned by the orchestrator: the overlap guard and the album index."""

    guard: CycleGuard = field(default_factory=CycleGuard)
    classifier: AlbumClassifier = field(default_factory=AlbumClassifier)


__all__ = ["CycleGuard", "WatchState"]
