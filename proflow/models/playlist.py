"""Manifest messages stored as the ``data`` member of a ``.proplaylist`` bundle."""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from .base import Message, proto_field
from .document import ApplicationInfo, URL


class PlaylistDocumentType(IntEnum):
    UNKNOWN = 0
    PRESENTATION = 1
    MEDIA = 2
    AUDIO = 3


class PlaylistType(IntEnum):
    UNKNOWN = 0
    PLAYLIST = 1
    GROUP = 2
    SMART = 3
    ROOT = 4


@dataclass
class PresentationItem(Message):
    document_path: Optional[URL] = proto_field(1, "message", URL)
    arrangement: Optional[str] = proto_field(2, "uuid")
    arrangement_name: str = proto_field(5, "string")


@dataclass
class PlaylistItem(Message):
    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    is_hidden: bool = proto_field(4, "bool")
    presentation: Optional[PresentationItem] = proto_field(6, "message", PresentationItem)

    @property
    def document_path(self) -> str:
        if self.presentation is None or self.presentation.document_path is None:
            return ""
        return self.presentation.document_path.absolute_string


@dataclass
class PlaylistItems(Message):
    items: List[PlaylistItem] = proto_field(1, "message", PlaylistItem, repeated=True,
                                            path_name="item")


@dataclass
class Playlist(Message):
    """A playlist holding presentation items."""

    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    type: int = proto_field(3, "enum", enum=PlaylistType)
    expanded: bool = proto_field(4, "bool")
    items: Optional[PlaylistItems] = proto_field(13, "message", PlaylistItems)


@dataclass
class PlaylistArray(Message):
    playlists: List[Playlist] = proto_field(1, "message", Playlist, repeated=True,
                                            path_name="playlist")


@dataclass
class PlaylistFolder(Message):
    """The root node of a playlist document; its children are playlists.

    Deeper folder nesting is not modelled and is carried as unknown fields.
    """

    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    type: int = proto_field(3, "enum", enum=PlaylistType)
    expanded: bool = proto_field(4, "bool")
    playlists: Optional[PlaylistArray] = proto_field(12, "message", PlaylistArray)


@dataclass
class PlaylistDocument(Message):
    application_info: Optional[ApplicationInfo] = proto_field(1, "message", ApplicationInfo)
    type: int = proto_field(2, "enum", enum=PlaylistDocumentType)
    root_node: Optional[PlaylistFolder] = proto_field(3, "message", PlaylistFolder)

    def entries(self) -> List[PlaylistItem]:
        """Items of the first playlist under the root, in playback order."""
        if self.root_node is None or self.root_node.playlists is None:
            return []
        for playlist in self.root_node.playlists.playlists:
            if playlist.items is not None:
                return list(playlist.items.items)
        return []
