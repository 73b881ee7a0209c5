"""
Ownership checks run before album, song and user mutations.

Every check loads the target, then compares its owner with the caller. The
mutation that follows is a separate statement, so a row can still change
between the check and the write.
"""

from __future__ import annotations

import logging
import uuid
from typing import NoReturn

from sqlalchemy.orm import Session

from media_catalog import crud
from media_catalog.errors import NotFoundError, UnauthorizedError
from media_catalog.models import Album, Song
from media_catalog.registry import EntityKind

logger = logging.getLogger(__name__)

ALBUM_NOT_FOUND = "The album could not be found"
SONG_NOT_FOUND = "The song could not be found"
INVALID_CREDENTIALS = "Invalid Credentials"


def _deny(what: str, row_id: uuid.UUID, caller_id: uuid.UUID) -> NoReturn:
    logger.warning("Denied mutation of %s id=%s by user id=%s", what, row_id, caller_id)
    raise UnauthorizedError(INVALID_CREDENTIALS)


def _load_album(db: Session, album_id: uuid.UUID) -> Album:
    album = crud.find(db, EntityKind.ALBUM, album_id)
    if album is None:
        raise NotFoundError(ALBUM_NOT_FOUND)
    return album


# PUBLIC_INTERFACE
def authorize_album_mutation(db: Session, album_id: uuid.UUID, caller_id: uuid.UUID) -> Album:
    """Return the album if it exists and belongs to the caller."""
    album = _load_album(db, album_id)
    if album.user_id != caller_id:
        _deny("album", album_id, caller_id)
    return album


# PUBLIC_INTERFACE
def require_album(db: Session, album_id: uuid.UUID) -> Album:
    """Existence-only check used by album deletion."""
    return _load_album(db, album_id)


# PUBLIC_INTERFACE
def authorize_song_mutation(db: Session, song_id: uuid.UUID, caller_id: uuid.UUID) -> Song:
    """Return the song if it exists and its album belongs to the caller."""
    song = crud.find(db, EntityKind.SONG, song_id)
    if song is None:
        raise NotFoundError(SONG_NOT_FOUND)

    album = _load_album(db, song.album_id)
    if album.user_id != caller_id:
        _deny("song", song_id, caller_id)
    return song


# PUBLIC_INTERFACE
def require_song(db: Session, song_id: uuid.UUID) -> Song:
    """
    Existence-only check used by song deletion.

    A missing song is reported with the album wording, as clients of the
    delete endpoint have always received it.
    """
    song = crud.find(db, EntityKind.SONG, song_id)
    if song is None:
        raise NotFoundError(ALBUM_NOT_FOUND)
    return song


# PUBLIC_INTERFACE
def authorize_self(user_id: uuid.UUID, caller_id: uuid.UUID) -> None:
    """Users may only modify or delete their own account."""
    if user_id != caller_id:
        _deny("user", user_id, caller_id)
