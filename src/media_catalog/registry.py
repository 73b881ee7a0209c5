"""
Entity registry: maps each entity kind to its model, read-query shape and
detail response schema.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Type

from pydantic import BaseModel
from sqlalchemy.orm import selectinload

from media_catalog.models import Album, Base, Song, User
from media_catalog.schemas import AlbumDetail, SongDetail, UserDetail


class EntityKind(str, enum.Enum):
    USER = "user"
    ALBUM = "album"
    SONG = "song"


@dataclass(frozen=True)
class ReadShape:
    """Eager-loads and top-level ordering applied to every read of a kind.

    Nested ordering (albums newest first, songs by position) is declared on
    the relationships themselves.
    """

    options: Tuple[Any, ...] = ()
    order_by: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Entity:
    kind: EntityKind
    model: Type[Base]
    shape: ReadShape
    detail_schema: Type[BaseModel]

    @property
    def not_found_message(self) -> str:
        return f"The {self.kind.value} could not be found."


_REGISTRY: Dict[EntityKind, Entity] = {
    EntityKind.USER: Entity(
        kind=EntityKind.USER,
        model=User,
        shape=ReadShape(
            options=(selectinload(User.albums).selectinload(Album.songs),),
            order_by=(User.created_at.desc(),),
        ),
        detail_schema=UserDetail,
    ),
    EntityKind.ALBUM: Entity(
        kind=EntityKind.ALBUM,
        model=Album,
        shape=ReadShape(
            options=(selectinload(Album.user), selectinload(Album.songs)),
            order_by=(Album.created_at.desc(),),
        ),
        detail_schema=AlbumDetail,
    ),
    EntityKind.SONG: Entity(
        kind=EntityKind.SONG,
        model=Song,
        shape=ReadShape(
            options=(selectinload(Song.album).selectinload(Album.user),),
            order_by=(Song.created_at.desc(),),
        ),
        detail_schema=SongDetail,
    ),
}


# PUBLIC_INTERFACE
def entity_for(kind: EntityKind) -> Entity:
    """Return the registry entry for `kind`."""
    return _REGISTRY[kind]


# PUBLIC_INTERFACE
def shape_for(kind: EntityKind) -> ReadShape:
    """Return the read-query shape for `kind`; an empty shape if none is registered."""
    entry = _REGISTRY.get(kind)
    return entry.shape if entry is not None else ReadShape()


# PUBLIC_INTERFACE
def registered_kinds() -> List[EntityKind]:
    return list(_REGISTRY)
