"""
HTTP client for the Notes API.

    with NoteClient("http://localhost:8000") as client:
        note = client.create_note("Hello", "World")
        for event in client.watch_notes(note.id):
            print(event.event_type, event.note.title)

Error responses are raised as the matching notehub.errors class
(InvalidArgumentError, NotFoundError, InternalError).
"""

import json
from typing import Iterable, Iterator, List, Optional

import httpx

from notehub.errors import error_from_response
from notehub.schemas import NoteEvent, NoteRead


def parse_sse(lines: Iterable[str]) -> Iterator[tuple]:
    """Yield ``(event, data)`` pairs from the lines of a text/event-stream body."""
    event, data = "message", []
    for line in lines:
        if not line:
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
        elif line.startswith(":"):
            continue
        elif line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data.append(line[len("data:"):].lstrip())
    if data:
        yield event, "\n".join(data)


class NoteClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "NoteClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        try:
            body = response.json()
        except json.JSONDecodeError:
            body = response.text
        raise error_from_response(response.status_code, body)

    # ---- unary operations ----------------------------------------------------
    def create_note(self, title: str, content: str) -> NoteRead:
        r = self._check(self._http.post("/notes", json={"title": title, "content": content}))
        return NoteRead.model_validate(r.json())

    def get_note(self, note_id: str) -> NoteRead:
        r = self._check(self._http.get(f"/notes/{note_id}"))
        return NoteRead.model_validate(r.json())

    def list_notes(self) -> List[NoteRead]:
        r = self._check(self._http.get("/notes"))
        return [NoteRead.model_validate(n) for n in r.json()["notes"]]

    def update_note(self, note_id: str, title: str, content: str) -> NoteRead:
        r = self._check(
            self._http.put(f"/notes/{note_id}", json={"title": title, "content": content})
        )
        return NoteRead.model_validate(r.json())

    def delete_note(self, note_id: str) -> bool:
        r = self._check(self._http.delete(f"/notes/{note_id}"))
        return bool(r.json()["success"])

    # ---- streaming -----------------------------------------------------------
    def watch_notes(self, note_id: Optional[str] = None) -> Iterator[NoteEvent]:
        """Yield change events until the server ends the stream or the caller stops iterating."""
        params = {"noteId": note_id} if note_id else None
        with self._http.stream("GET", "/notes/watch", params=params, timeout=None) as response:
            self._check_stream(response)
            for event, data in parse_sse(response.iter_lines()):
                if event == "error":
                    raise error_from_response(500, data)
                yield NoteEvent.model_validate_json(data)

    def _check_stream(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        response.read()
        self._check(response)
