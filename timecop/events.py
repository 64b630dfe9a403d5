"""Event types and the single merged queue the UI thread consumes.

Producers (input reader, ticker, repository watcher, workers) only ever call
``EventStream.post``. Only the UI thread calls ``next``/``drain``.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Union

logger = logging.getLogger(__name__)

INPUT_POLL_MS = 100
TICK_SECONDS = 0.1


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    rows: int


@dataclass(frozen=True)
class TickEvent:
    now: float


@dataclass(frozen=True)
class FilesChangedEvent:
    pass


@dataclass(frozen=True)
class CompletionEvent:
    """Outcome of one background request; exactly one of result/error is meaningful."""

    resource: str
    request_id: int
    result: object = None
    error: Exception | None = None


Event = Union[KeyEvent, ResizeEvent, TickEvent, FilesChangedEvent, CompletionEvent]


class EventStream:
    """Multi-producer, single-consumer FIFO of events."""

    def __init__(self) -> None:
        self._queue: Queue[Event] = Queue()

    def post(self, event: Event) -> None:
        self._queue.put(event)

    def next(self, timeout: float | None = None) -> Event | None:
        """Block for the next event; ``None`` on timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self) -> list[Event]:
        """Return every event already queued without blocking."""
        out: list[Event] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except Empty:
                break
        return out


class InputReader:
    """Thread decoding stdin keys into ``KeyEvent``s.

    ``pause`` stops reading (for example while an external editor owns the
    terminal) and returns once the reader is idle.
    """

    def __init__(
        self,
        post: Callable[[Event], None],
        read_key: Callable[..., str],
        fd: int,
        poll_ms: int = INPUT_POLL_MS,
    ) -> None:
        self._post = post
        self._read_key = read_key
        self._fd = fd
        self._poll_ms = poll_ms
        self._stop = threading.Event()
        self._paused = threading.Event()
        self._idle = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="timecop-input", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def pause(self, timeout: float = 1.0) -> None:
        self._paused.set()
        if self._thread is not None and self._thread.is_alive():
            self._idle.wait(timeout)

    def resume(self) -> None:
        self._idle.clear()
        self._paused.clear()

    def _run(self) -> None:
        while not self._stop.is_set():
            if self._paused.is_set():
                self._idle.set()
                self._stop.wait(self._poll_ms / 1000.0)
                continue
            key = self._read_key(self._fd, timeout_ms=self._poll_ms)
            if key:
                self._post(KeyEvent(key))


class Ticker:
    """Thread posting ``TickEvent`` every interval, preceded by ``ResizeEvent`` on size change."""

    def __init__(
        self,
        post: Callable[[Event], None],
        interval: float = TICK_SECONDS,
        get_size: Callable[[], tuple[int, int]] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._post = post
        self._interval = interval
        self._get_size = get_size if get_size is not None else terminal_size
        self._clock = clock
        self._stop = threading.Event()
        self._last_size: tuple[int, int] | None = None

    def start(self) -> None:
        self._last_size = self._get_size()
        threading.Thread(target=self._run, name="timecop-ticker", daemon=True).start()

    def stop(self) -> None:
        self._stop.set()

    def tick_once(self) -> None:
        size = self._get_size()
        if size != self._last_size:
            self._last_size = size
            self._post(ResizeEvent(size[0], size[1]))
        self._post(TickEvent(self._clock()))

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.tick_once()


def terminal_size() -> tuple[int, int]:
    size = shutil.get_terminal_size((80, 24))
    return size.columns, size.lines
