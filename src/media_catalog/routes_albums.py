"""
Album endpoints:
- POST /albums (auth)
- GET /albums (?name=&exact=&limit=)
- GET /albums/{album_id}
- PATCH /albums/{album_id} (auth, owner only)
- DELETE /albums/{album_id} (auth)
- POST /albums/{album_id}/upload (auth, owner only; multipart cover image)
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
from media_catalog.schemas import AlbumCreate, AlbumDetail, AlbumPatch, AlbumResponse, UploadResponse

router = APIRouter(prefix="/albums", tags=["Albums"])


@router.post(
    "",
    response_model=AlbumResponse,
    summary="Create an album",
    operation_id="create_album",
)
def create_album(
    body: AlbumCreate,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> AlbumResponse:
    """Create an album for the given owner."""
    row = crud.create(db, EntityKind.ALBUM, body.model_dump(exclude_unset=True))
    return AlbumResponse.model_validate(row)


@router.get(
    "",
    response_model=List[AlbumDetail],
    summary="List albums",
    description="Newest first, each with its owner and its songs ordered by position.",
    operation_id="list_albums",
)
def list_albums(
    name: Optional[str] = Query(None, description="Name filter (substring, case-insensitive)."),
    exact: Optional[str] = Query(None, description="'true' to match the name exactly."),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of albums."),
    db: Session = Depends(db_session_dep),
) -> List[AlbumDetail]:
    """List albums, optionally filtered by name and capped by limit."""
    rows = crud.read_all(db, EntityKind.ALBUM, name=name, exact=exact, limit=limit)
    return [AlbumDetail.model_validate(row) for row in rows]


@router.get(
    "/{album_id}",
    response_model=AlbumDetail,
    summary="Get an album",
    operation_id="get_album",
)
def get_album(album_id: uuid.UUID, db: Session = Depends(db_session_dep)) -> AlbumDetail:
    """Return one album with its owner and songs."""
    return AlbumDetail.model_validate(crud.read_by_id(db, EntityKind.ALBUM, album_id))


@router.patch(
    "/{album_id}",
    summary="Update an album",
    description="Partial update; only the album's owner may change it.",
    operation_id="patch_album",
)
def patch_album(
    album_id: uuid.UUID,
    body: AlbumPatch,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Update an album owned by the caller."""
    ownership.authorize_album_mutation(db, album_id, user.id)
    crud.patch(db, EntityKind.ALBUM, body.model_dump(exclude_unset=True), album_id)
    return Response(status_code=status.HTTP_200_OK)


@router.delete(
    "/{album_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an album",
    operation_id="delete_album",
)
def delete_album(
    album_id: uuid.UUID,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Delete an album and, through the cascade, its songs."""
    # Existence only: album deletion has never checked ownership.
    ownership.require_album(db, album_id)
    crud.delete(db, EntityKind.ALBUM, album_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{album_id}/upload",
    response_model=UploadResponse,
    summary="Upload album cover",
    description="Stores an image and points the album's url at it.",
    operation_id="upload_album_cover",
)
def upload_album_cover(
    album_id: uuid.UUID,
    file: UploadFile = File(..., description="Cover image (multipart/form-data)"),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> UploadResponse:
    """Store a cover image for an album owned by the caller."""
    album = ownership.authorize_album_mutation(db, album_id, user.id)
    content = file.file.read()
    safe_name = storage.validate_cover(file, content)

    url = storage.store((user.id, album.id), safe_name, content)
    crud.patch(db, EntityKind.ALBUM, {"url": url}, album_id)
    return UploadResponse(url=url)
