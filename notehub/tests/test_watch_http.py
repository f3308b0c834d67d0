# notehub/tests/test_watch_http.py
"""WatchNotes over a real socket: the app served by uvicorn, consumed by NoteClient."""

import queue
import socket
import threading
import time

import httpx
import pytest
import uvicorn

from notehub import watch as watch_module
from notehub.client import NoteClient
from notehub.errors import ApplicationError, InternalError
from notehub.main import app
from notehub.schemas import NoteEventType


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture()
def base_url():
    port = _free_port()
    config = uvicorn.Config(
        app, host="127.0.0.1", port=port, log_config=None, timeout_graceful_shutdown=2
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        assert thread.is_alive(), "server failed to start"
        assert time.monotonic() < deadline, "server did not start in time"
        time.sleep(0.01)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10)


@pytest.fixture()
def api(base_url):
    with NoteClient(base_url) as c:
        yield c


def _watch_in_background(base_url, note_id=None, limit=1):
    """Consume a watch stream on a thread; items are NoteEvents or the raised error."""
    items: "queue.Queue" = queue.Queue()

    def consume():
        with NoteClient(base_url) as c:
            stream = c.watch_notes(note_id)
            try:
                received = 0
                for event in stream:
                    items.put(event)
                    received += 1
                    if received >= limit:
                        break
            except ApplicationError as e:
                items.put(e)
            finally:
                stream.close()

    thread = threading.Thread(target=consume, daemon=True)
    thread.start()
    return thread, items


def _watchers(base_url) -> int:
    return httpx.get(f"{base_url}/stats").json()["watchers"]


def _wait_for_watchers(base_url, expected, nudge=None):
    deadline = time.monotonic() + 5
    while _watchers(base_url) != expected:
        assert time.monotonic() < deadline, f"watchers never reached {expected}"
        if nudge is not None:
            # a write on the dropped connection makes the server notice it
            nudge()
        time.sleep(0.05)


def _take(items, n):
    return [items.get(timeout=5) for _ in range(n)]


def test_watch_streams_create_update_delete(base_url, api):
    thread, items = _watch_in_background(base_url, limit=3)
    _wait_for_watchers(base_url, 1)

    note = api.create_note("Hello", "World")
    api.update_note(note.id, "Hello", "World 2")
    api.delete_note(note.id)

    events = _take(items, 3)
    assert [e.event_type for e in events] == [
        NoteEventType.CREATED,
        NoteEventType.UPDATED,
        NoteEventType.DELETED,
    ]
    assert all(e.note.id == note.id for e in events)
    assert events[1].note.content == "World 2"
    assert events[2].note.content == "World 2"

    thread.join(timeout=5)
    assert not thread.is_alive()
    _wait_for_watchers(base_url, 0, nudge=lambda: api.create_note("ping", ""))


def test_watch_filters_by_note_id(base_url, api):
    watched = api.create_note("watched", "")
    other = api.create_note("other", "")

    thread, items = _watch_in_background(base_url, note_id=watched.id, limit=2)
    _wait_for_watchers(base_url, 1)

    api.update_note(other.id, "other 2", "")
    api.update_note(watched.id, "watched 2", "")
    api.delete_note(other.id)
    api.delete_note(watched.id)

    first, second = _take(items, 2)
    assert (first.event_type, first.note.title) == (NoteEventType.UPDATED, "watched 2")
    assert (second.event_type, second.note.id) == (NoteEventType.DELETED, watched.id)
    assert items.empty()

    thread.join(timeout=5)
    _wait_for_watchers(base_url, 0, nudge=lambda: api.create_note("ping", ""))


def test_watch_error_frame_is_raised_by_client(base_url, api, monkeypatch):
    def broken(change):
        raise ValueError("boom")

    monkeypatch.setattr(watch_module, "translate", broken)

    thread, items = _watch_in_background(base_url, limit=1)
    _wait_for_watchers(base_url, 1)
    api.create_note("t", "c")

    [error] = _take(items, 1)
    assert isinstance(error, InternalError)
    assert "Failed to watch notes: boom" in error.message

    thread.join(timeout=5)
    assert not thread.is_alive()
    _wait_for_watchers(base_url, 0)
