"""
Pydantic models (request/response shapes) for API endpoints.

Request bodies are deliberately loose: required-field and format checks belong
to the ORM models so their messages stay the same for every caller.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    name: Optional[str] = Field(None, description="Unique display name.")
    email: Optional[str] = Field(None, description="User email address (unique).")
    password: Optional[str] = Field(None, description="User password (min 8 chars).")


class LoginRequest(BaseModel):
    email: Optional[str] = Field(None, description="User email address.")
    password: Optional[str] = Field(None, description="User password.")


class UserPatch(BaseModel):
    name: Optional[str] = Field(None, description="New display name.")
    email: Optional[str] = Field(None, description="New email address.")
    password: Optional[str] = Field(None, description="New password (min 8 chars).")


class AlbumCreate(BaseModel):
    name: Optional[str] = Field(None, description="Album name.")
    url: Optional[str] = Field(None, description="Reference to stored cover media.")
    user_id: Optional[uuid.UUID] = Field(None, description="Owning user UUID.")


class AlbumPatch(BaseModel):
    name: Optional[str] = Field(None, description="Album name.")
    url: Optional[str] = Field(None, description="Reference to stored cover media.")
    user_id: Optional[uuid.UUID] = Field(None, description="New owning user UUID.")


class SongCreate(BaseModel):
    name: Optional[str] = Field(None, description="Song name.")
    position: Optional[Any] = Field(None, description="Track position within the album (integer).")
    url: Optional[str] = Field(None, description="Reference to stored audio.")
    album_id: Optional[uuid.UUID] = Field(None, description="Parent album UUID.")


class SongPatch(BaseModel):
    name: Optional[str] = Field(None, description="Song name.")
    position: Optional[Any] = Field(None, description="Track position within the album (integer).")
    url: Optional[str] = Field(None, description="Reference to stored audio.")
    album_id: Optional[uuid.UUID] = Field(None, description="Album to move the song to.")


class UploadResponse(BaseModel):
    url: str = Field(..., description="Stored media path, relative to the media root.")


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class UserResponse(_Row):
    """User as returned to clients; the password hash is never part of it."""

    name: str
    email: str


class AlbumResponse(_Row):
    name: str
    url: Optional[str] = None
    user_id: uuid.UUID


class SongResponse(_Row):
    name: str
    position: int
    url: Optional[str] = None
    album_id: uuid.UUID


class AlbumWithSongs(AlbumResponse):
    songs: List[SongResponse] = []


class AlbumWithUser(AlbumResponse):
    user: Optional[UserResponse] = None


class UserDetail(UserResponse):
    albums: List[AlbumWithSongs] = []


class AlbumDetail(AlbumResponse):
    user: Optional[UserResponse] = None
    songs: List[SongResponse] = []


class SongDetail(SongResponse):
    album: Optional[AlbumWithUser] = None
