from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from notehub.errors import ApplicationError
from notehub.repositories.base import NoteRepository
from notehub.schemas import DeleteResult, NoteCreate, NoteList, NoteRead, NoteUpdate
from notehub.service import NoteService
from notehub.watch import NoteWatch

router = APIRouter(prefix="/notes", tags=["notes"])


def get_repository(request: Request) -> NoteRepository:
    """Repository created by the app lifespan; tests override this dependency."""
    return request.app.state.repository


def get_note_service(repository: NoteRepository = Depends(get_repository)) -> NoteService:
    return NoteService(repository)


async def _sse_stream(watch: NoteWatch) -> AsyncIterator[str]:
    async with watch:
        try:
            async for event in watch:
                yield event.to_sse()
        except ApplicationError as e:
            # headers are already sent; report the failure in-band
            yield f"event: error\ndata: {e.message}\n\n"


# Declared before /{note_id} so "watch" is not taken as an id
@router.get("/watch")
async def watch_notes(
    note_id: Optional[str] = Query(None, alias="noteId", description="Only events for this note"),
    service: NoteService = Depends(get_note_service),
):
    watch = service.watch_notes(note_id)
    return StreamingResponse(
        _sse_stream(watch),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
        # runs even if the client left before the body was iterated
        background=BackgroundTask(watch.aclose),
    )


@router.get("", response_model=NoteList)
async def list_notes(service: NoteService = Depends(get_note_service)):
    notes = await service.list_notes()
    return NoteList(notes=[NoteRead.from_note(n) for n in notes])


@router.post("", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(payload: NoteCreate, service: NoteService = Depends(get_note_service)):
    note = await service.create_note(payload.title, payload.content)
    return NoteRead.from_note(note)


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(note_id: str, service: NoteService = Depends(get_note_service)):
    note = await service.get_note(note_id)
    return NoteRead.from_note(note)


@router.put("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: str, payload: NoteUpdate, service: NoteService = Depends(get_note_service)
):
    note = await service.update_note(note_id, payload.title, payload.content)
    return NoteRead.from_note(note)


@router.delete("/{note_id}", response_model=DeleteResult)
async def delete_note(note_id: str, service: NoteService = Depends(get_note_service)):
    return DeleteResult(success=await service.delete_note(note_id))
