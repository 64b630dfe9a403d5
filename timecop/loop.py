"""Main interactive event loop.

Blocks for one event, drains whatever else is already queued, applies the
batch to the application, then renders once if anything changed. Wiring
only; behavior lives in ``App``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .app import App
from .events import EventStream, KeyEvent

logger = logging.getLogger(__name__)

IDLE_WAIT_SECONDS = 0.5


def run_loop(
    app: App,
    stream: EventStream,
    draw: Callable[[App], None],
    idle_wait: float = IDLE_WAIT_SECONDS,
) -> None:
    """Run until ``app.running`` turns false."""
    skip_next_lf = False
    if app.dirty:
        draw(app)
        app.dirty = False

    while app.running:
        first = stream.next(timeout=idle_wait)
        if first is None:
            continue
        for event in [first, *stream.drain()]:
            if isinstance(event, KeyEvent):
                # Terminals in some modes send CR LF for a single Enter press.
                if skip_next_lf and event.key == "ENTER_LF":
                    skip_next_lf = False
                    continue
                skip_next_lf = event.key == "ENTER_CR"
            app.handle_event(event)
            if not app.running:
                return
        if app.dirty:
            draw(app)
            app.dirty = False
