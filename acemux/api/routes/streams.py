"""
Stream routes: manage the stream list and inspect individual streams.

Exposes:
- GET /api/streams: List streams (newest first)
- POST /api/streams: Create a stream
- GET /api/streams/{stream_id}: Get a stream
- PUT /api/streams/{stream_id}: Update name/photo_url
- DELETE /api/streams/{stream_id}: Delete a stream
- GET /api/streams/{stream_id}/status: Probe availability on the AceStream engine
- GET /api/streams/{stream_id}/links: Externally usable manifest URLs
"""

from __future__ import annotations

from typing import List, Optional

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from acemux.api.deps import get_app_settings, get_db, get_engine_client
from acemux.core.config import Settings
from acemux.core.logging import get_logger
from acemux.db.crud import (
    create_stream as crud_create_stream,
    delete_stream as crud_delete_stream,
    get_stream as crud_get_stream,
    list_streams as crud_list_streams,
    update_stream as crud_update_stream,
)
from acemux.db.models import Stream
from acemux.schemas.streams import (
    StreamCreate,
    StreamLinksOut,
    StreamOut,
    StreamStatusOut,
    StreamUpdate,
)
from acemux.services.acestream import build_stream_urls
from acemux.services.status import StatusPolicy, check_stream_status

router = APIRouter(prefix="/api/streams", tags=["Streams"])

logger = get_logger("acemux.api.streams")


def _get_or_404(db: Session, stream_id: str) -> Stream:
    stream = crud_get_stream(db, stream_id)
    if stream is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return stream


@router.get(
    "",
    summary="List streams",
    response_model=List[StreamOut],
    responses={200: {"description": "All streams, newest first"}},
)
def list_streams(db: Session = Depends(get_db)) -> List[StreamOut]:
    """Return every stored stream."""
    return [StreamOut.model_validate(s) for s in crud_list_streams(db)]


@router.post(
    "",
    summary="Create a stream",
    response_model=StreamOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Stream created"},
        400: {"description": "id and name are required"},
        409: {"description": "id already exists"},
    },
)
def create_stream(payload: Optional[StreamCreate] = Body(None), db: Session = Depends(get_db)) -> StreamOut:
    """
    Create a stream record.

    Parameters:
    - id: AceStream content id (required, immutable afterwards)
    - name: display name (required)
    - photo_url: optional thumbnail URL
    """
    payload = payload or StreamCreate()
    if not payload.id or not payload.name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id and name are required")
    if crud_get_stream(db, payload.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="id already exists")

    stream, err = crud_create_stream(db, payload.id, payload.name, payload.photo_url)
    if err or stream is None:
        if err == "id already exists":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=err)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err or "Unable to create stream")

    logger.info("Stream created", extra={"stream_id": stream.id})
    return StreamOut.model_validate(stream)


@router.get(
    "/{stream_id}",
    summary="Get a stream",
    response_model=StreamOut,
    responses={404: {"description": "Not found"}},
)
def get_stream(stream_id: str, db: Session = Depends(get_db)) -> StreamOut:
    return StreamOut.model_validate(_get_or_404(db, stream_id))


@router.put(
    "/{stream_id}",
    summary="Update a stream",
    response_model=StreamOut,
    responses={404: {"description": "Not found"}},
)
def update_stream(stream_id: str, payload: StreamUpdate, db: Session = Depends(get_db)) -> StreamOut:
    """
    Update name and/or photo_url. Omitted or null fields keep their current value;
    the id itself cannot change.
    """
    stream = crud_update_stream(db, stream_id, name=payload.name or None, photo_url=payload.photo_url)
    if stream is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return StreamOut.model_validate(stream)


@router.delete(
    "/{stream_id}",
    summary="Delete a stream",
    responses={200: {"description": "Deleted"}, 404: {"description": "Not found"}},
)
def delete_stream(stream_id: str, db: Session = Depends(get_db)) -> dict:
    if not crud_delete_stream(db, stream_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    logger.info("Stream deleted", extra={"stream_id": stream_id})
    return {"ok": True}


@router.get(
    "/{stream_id}/status",
    summary="Probe stream availability",
    response_model=StreamStatusOut,
    responses={404: {"description": "Not found"}},
)
async def stream_status(
    stream_id: str,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_engine_client),
    settings: Settings = Depends(get_app_settings),
) -> StreamStatusOut:
    """
    Ask the engine for the stream's JSON manifest and stats and classify the
    result as online / offline / unknown. Thresholds come from STATUS_* settings.
    """
    _get_or_404(db, stream_id)
    result = await check_stream_status(client, stream_id, StatusPolicy.from_settings(settings))
    return StreamStatusOut(id=stream_id, status=result.status, title=result.title, detail=result.detail)


@router.get(
    "/{stream_id}/links",
    summary="Get manifest links",
    response_model=StreamLinksOut,
    responses={404: {"description": "Not found"}},
)
def stream_links(
    stream_id: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> StreamLinksOut:
    """Absolute HLS and JSON manifest URLs, suitable for external players."""
    _get_or_404(db, stream_id)
    base = (settings.PUBLIC_BASE_URL or str(request.base_url)).rstrip("/")
    urls = build_stream_urls(stream_id)
    return StreamLinksOut(id=stream_id, hls_url=base + urls.hls_src, json_url=base + urls.json_src)
