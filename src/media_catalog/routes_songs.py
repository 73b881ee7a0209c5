"""
Song endpoints:
- POST /songs (auth)
- GET /songs (?name=&exact=&limit=)
- GET /songs/{song_id}
- PATCH /songs/{song_id} (auth, album owner only)
- DELETE /songs/{song_id} (auth)
- POST /songs/{song_id}/upload (auth, album owner only; multipart mp3)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from media_catalog import crud, ownership, storage
from media_catalog.auth import CurrentUser, get_current_user
from media_catalog.db import db_session_dep
from media_catalog.registry import EntityKind
from media_catalog.schemas import SongCreate, SongDetail, SongPatch, SongResponse, UploadResponse

router = APIRouter(prefix="/songs", tags=["Songs"])


@router.post(
    "",
    response_model=SongResponse,
    summary="Create a song",
    operation_id="create_song",
)
def create_song(
    body: SongCreate,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> SongResponse:
    """Create a song inside an album."""
    row = crud.create(db, EntityKind.SONG, body.model_dump(exclude_unset=True))
    return SongResponse.model_validate(row)


@router.get(
    "",
    response_model=List[SongDetail],
    summary="List songs",
    description="Newest first, each with its album and the album's owner.",
    operation_id="list_songs",
)
def list_songs(
    name: Optional[str] = Query(None, description="Name filter (substring, case-insensitive)."),
    exact: Optional[str] = Query(None, description="'true' to match the name exactly."),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of songs."),
    db: Session = Depends(db_session_dep),
) -> List[SongDetail]:
    """List songs, optionally filtered by name and capped by limit."""
    rows = crud.read_all(db, EntityKind.SONG, name=name, exact=exact, limit=limit)
    return [SongDetail.model_validate(row) for row in rows]


@router.get(
    "/{song_id}",
    response_model=SongDetail,
    summary="Get a song",
    operation_id="get_song",
)
def get_song(song_id: uuid.UUID, db: Session = Depends(db_session_dep)) -> SongDetail:
    """Return one song with its album and the album's owner."""
    return SongDetail.model_validate(crud.read_by_id(db, EntityKind.SONG, song_id))


@router.patch(
    "/{song_id}",
    summary="Update a song",
    description="Partial update; only the owner of the song's album may change it.",
    operation_id="patch_song",
)
def patch_song(
    song_id: uuid.UUID,
    body: SongPatch,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Update a song whose album belongs to the caller."""
    ownership.authorize_song_mutation(db, song_id, user.id)
    crud.patch(db, EntityKind.SONG, body.model_dump(exclude_unset=True), song_id)
    return Response(status_code=status.HTTP_200_OK)


@router.delete(
    "/{song_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a song",
    operation_id="delete_song",
)
def delete_song(
    song_id: uuid.UUID,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Delete a song."""
    # Unlike patch, deletion only checks that the song exists.
    ownership.require_song(db, song_id)
    crud.delete(db, EntityKind.SONG, song_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{song_id}/upload",
    response_model=UploadResponse,
    summary="Upload song audio",
    description="Stores an mp3 and points the song's url at it.",
    operation_id="upload_song_audio",
)
def upload_song_audio(
    song_id: uuid.UUID,
    file: UploadFile = File(..., description="MP3 file upload (multipart/form-data)"),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> UploadResponse:
    """Store an mp3 for a song whose album belongs to the caller."""
    song = ownership.authorize_song_mutation(db, song_id, user.id)
    content = file.file.read()
    safe_name = storage.validate_mp3(file, content)

    url = storage.store((user.id, song.album_id), safe_name, content)
    crud.patch(db, EntityKind.SONG, {"url": url}, song_id)
    return UploadResponse(url=url)
