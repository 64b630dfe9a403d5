"""Tests for the batch-apply-then-draw event loop.

A recording stand-in replaces ``App`` so only the loop's own contract is
exercised: batching, CR/LF collapse, and stopping on quit.
"""

from __future__ import annotations

import unittest

from timecop.events import EventStream, KeyEvent, TickEvent
from timecop.loop import run_loop


class RecordingApp:
    def __init__(self, quit_on: str = "q") -> None:
        self.running = True
        self.dirty = True
        self.quit_on = quit_on
        self.events: list[object] = []

    def handle_event(self, event: object) -> None:
        self.events.append(event)
        self.dirty = True
        if isinstance(event, KeyEvent) and event.key == self.quit_on:
            self.running = False


class RunLoopTests(unittest.TestCase):
    def _run(self, *events: object) -> tuple[RecordingApp, list[int]]:
        app = RecordingApp()
        stream = EventStream()
        for event in events:
            stream.post(event)
        draws: list[int] = []
        run_loop(app, stream, lambda current: draws.append(len(current.events)), idle_wait=0.01)  # type: ignore[arg-type]
        return app, draws

    def test_initial_draw_then_one_draw_per_batch(self) -> None:
        app, draws = self._run(KeyEvent("j"), TickEvent(1.0), KeyEvent("q"))
        self.assertEqual(app.events, [KeyEvent("j"), TickEvent(1.0), KeyEvent("q")])
        # The quit key ends the loop before the batch is drawn.
        self.assertEqual(draws, [0])

    def test_cr_lf_pair_is_one_enter(self) -> None:
        app, _draws = self._run(KeyEvent("ENTER_CR"), KeyEvent("ENTER_LF"), KeyEvent("ENTER_LF"), KeyEvent("q"))
        self.assertEqual(app.events, [KeyEvent("ENTER_CR"), KeyEvent("ENTER_LF"), KeyEvent("q")])

    def test_events_after_quit_are_not_applied(self) -> None:
        app, _draws = self._run(KeyEvent("q"), KeyEvent("j"))
        self.assertEqual(app.events, [KeyEvent("q")])

    def test_not_running_app_returns_immediately(self) -> None:
        app = RecordingApp()
        app.running = False
        app.dirty = False
        draws: list[object] = []
        run_loop(app, EventStream(), draws.append, idle_wait=0.01)  # type: ignore[arg-type]
        self.assertEqual(draws, [])


if __name__ == "__main__":
    unittest.main()
