"""Tests for the merged event queue, the ticker, and background dispatch.

Request ids decide which completions the UI still wants, so the tracker
bookkeeping is covered in detail.
"""

from __future__ import annotations

import threading
import unittest

from timecop.events import (
    CompletionEvent,
    EventStream,
    FilesChangedEvent,
    InputReader,
    KeyEvent,
    ResizeEvent,
    TickEvent,
    Ticker,
)
from timecop.workers import BackgroundDispatcher, RequestTracker


class EventStreamTests(unittest.TestCase):
    def test_events_come_out_in_post_order(self) -> None:
        stream = EventStream()
        stream.post(KeyEvent("j"))
        stream.post(FilesChangedEvent())
        stream.post(KeyEvent("k"))
        self.assertEqual(stream.next(timeout=0), KeyEvent("j"))
        self.assertEqual(stream.drain(), [FilesChangedEvent(), KeyEvent("k")])

    def test_next_times_out_with_none(self) -> None:
        self.assertIsNone(EventStream().next(timeout=0.01))

    def test_drain_on_empty_stream(self) -> None:
        self.assertEqual(EventStream().drain(), [])


class TickerTests(unittest.TestCase):
    def test_resize_is_posted_before_tick_only_when_size_changes(self) -> None:
        posted: list[object] = []
        sizes = iter([(80, 24), (80, 24), (100, 30)])
        ticker = Ticker(posted.append, get_size=lambda: next(sizes), clock=lambda: 7.0)
        ticker.tick_once()
        ticker.tick_once()
        ticker.tick_once()
        self.assertEqual(
            posted,
            [ResizeEvent(80, 24), TickEvent(7.0), TickEvent(7.0), ResizeEvent(100, 30), TickEvent(7.0)],
        )


class InputReaderTests(unittest.TestCase):
    def test_keys_are_posted_until_stopped(self) -> None:
        posted: list[object] = []
        got_key = threading.Event()
        keys = iter(["j", "", "k"])

        def read_key(_fd: int, timeout_ms: int | None = None) -> str:
            return next(keys, "")

        def post(event: object) -> None:
            posted.append(event)
            if event == KeyEvent("k"):
                got_key.set()

        reader = InputReader(post, read_key, fd=0, poll_ms=1)
        reader.start()
        self.assertTrue(got_key.wait(2.0))
        reader.stop()
        self.assertEqual(posted, [KeyEvent("j"), KeyEvent("k")])


class RequestTrackerTests(unittest.TestCase):
    def test_ids_are_unique_across_resources(self) -> None:
        tracker = RequestTracker()
        first = tracker.issue("content")
        second = tracker.issue("status")
        self.assertNotEqual(first, second)
        self.assertTrue(tracker.is_current("content", first))

    def test_newer_request_supersedes_older(self) -> None:
        tracker = RequestTracker()
        old = tracker.issue("content")
        new = tracker.issue("content")
        self.assertFalse(tracker.is_current("content", old))
        self.assertTrue(tracker.is_current("content", new))
        self.assertEqual(tracker.latest("content"), new)

    def test_complete_forgets_only_current_request(self) -> None:
        tracker = RequestTracker()
        old = tracker.issue("content")
        new = tracker.issue("content")
        tracker.complete("content", old)
        self.assertTrue(tracker.is_pending("content"))
        tracker.complete("content", new)
        self.assertFalse(tracker.is_pending("content"))

    def test_cancel_makes_in_flight_request_stale(self) -> None:
        tracker = RequestTracker()
        request_id = tracker.issue("blame")
        tracker.cancel("blame")
        self.assertFalse(tracker.is_current("blame", request_id))
        self.assertIsNone(tracker.latest("blame"))
        tracker.cancel("never-issued")


class BackgroundDispatcherTests(unittest.TestCase):
    def _run_one(self, job) -> CompletionEvent:
        stream = EventStream()
        dispatcher = BackgroundDispatcher(stream.post, max_workers=1)
        try:
            dispatcher.submit("content", 3, job)
            event = stream.next(timeout=5.0)
        finally:
            dispatcher.shutdown()
        assert isinstance(event, CompletionEvent)
        return event

    def test_result_becomes_completion(self) -> None:
        event = self._run_one(lambda: "diff text")
        self.assertEqual((event.resource, event.request_id, event.result, event.error), ("content", 3, "diff text", None))

    def test_exception_becomes_error_completion(self) -> None:
        def job() -> object:
            raise ValueError("bad")

        event = self._run_one(job)
        self.assertIsNone(event.result)
        self.assertIsInstance(event.error, ValueError)
        self.assertEqual(str(event.error), "bad")


if __name__ == "__main__":
    unittest.main()
