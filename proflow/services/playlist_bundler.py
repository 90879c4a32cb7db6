"""Packages documents into ``.proplaylist`` bundles and reads them back."""

import io
import os
import re
import zipfile
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

from ..errors import BundleWriteError, ParseError
from ..logging_config import get_logger
from ..models.document import ApplicationInfo, Document, Platform, URL
from ..models.playlist import (
    PlaylistArray,
    Playlist,
    PlaylistDocument,
    PlaylistDocumentType,
    PlaylistFolder,
    PlaylistItem,
    PlaylistItems,
    PlaylistType,
    PresentationItem,
)
from ..models.settings import Settings
from ..models.template_type import PLAYLIST_EXTENSION, PRO_EXTENSION
from . import container_codec
from .container_codec import decode_message, encode_message
from .file_io import atomic_write
from .identifiers import IdentifierPool, default_pool

logger = get_logger("playlist_bundler")

# Archive member holding the encoded PlaylistDocument
MANIFEST_MEMBER = "data"

_UNSAFE_CHARS_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass
class BundleEntry:
    """One playlist entry: a generated document or the bytes of an existing file."""
    name: str
    document: Optional[Document] = None
    data: Optional[bytes] = None
    source_path: Optional[str] = None

    def __post_init__(self):
        if (self.document is None) == (self.data is None):
            raise ValueError(f"Bundle entry '{self.name}' needs exactly one of document or data")

    @classmethod
    def from_file(cls, path: str, name: Optional[str] = None) -> "BundleEntry":
        with open(path, "rb") as f:
            data = f.read()
        if name is None:
            name = os.path.splitext(os.path.basename(path))[0]
        return cls(name=name, data=data, source_path=os.path.abspath(path))

    def payload(self) -> bytes:
        if self.document is not None:
            return container_codec.encode(self.document)
        return self.data


@dataclass
class BundleContents:
    """A bundle read back from disk."""
    manifest: PlaylistDocument
    members: Dict[str, bytes] = field(default_factory=dict)

    @property
    def items(self) -> List[PlaylistItem]:
        return self.manifest.entries()

    def payload(self, item: PlaylistItem) -> Optional[bytes]:
        if item.presentation is None or item.presentation.document_path is None:
            return None
        return self.members.get(item.presentation.document_path.relative_path)

    def documents(self) -> List[Tuple[str, Document]]:
        """Decode every embedded document, in playlist order."""
        result = []
        for item in self.items:
            data = self.payload(item)
            if data is None:
                logger.warning(f"Playlist item '{item.name}' has no embedded document")
                continue
            result.append((item.name, container_codec.decode(data, path=item.document_path)))
        return result


def safe_member_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS_RE.sub("_", name).strip().strip(".")
    return cleaned or "Untitled"


class PlaylistBundler:
    """Writes playlist bundles: a zip with a manifest and one document per entry."""

    def __init__(self, settings: Optional[Settings] = None,
                 identifiers: Optional[IdentifierPool] = None):
        self.settings = settings or Settings()
        self.identifiers = identifiers or default_pool

    def build_manifest(self, entries: List[BundleEntry],
                       name: Optional[str] = None) -> Tuple[PlaylistDocument, List[str]]:
        """Manifest for ``entries`` and the archive member name of each entry."""
        members: List[str] = []
        used = set()
        items = []
        for entry in entries:
            stem = safe_member_name(entry.name)
            member = f"{stem}{PRO_EXTENSION}"
            counter = 2
            while member.lower() in used:
                member = f"{stem} ({counter}){PRO_EXTENSION}"
                counter += 1
            used.add(member.lower())
            members.append(member)

            location = entry.source_path or member
            arrangement = entry.document.selected_arrangement if entry.document is not None else None
            items.append(PlaylistItem(
                uuid=self.identifiers.new(),
                name=entry.name,
                presentation=PresentationItem(
                    document_path=URL(
                        absolute_string=_file_url(location),
                        relative_path=member,
                        platform=Platform.MACOS,
                    ),
                    arrangement=arrangement,
                ),
            ))

        playlist = Playlist(
            uuid=self.identifiers.new(),
            name=name or self.settings.playlist_name,
            type=PlaylistType.PLAYLIST,
            items=PlaylistItems(items=items),
        )
        manifest = PlaylistDocument(
            application_info=ApplicationInfo.default(),
            type=PlaylistDocumentType.PRESENTATION,
            root_node=PlaylistFolder(
                uuid=self.identifiers.new(),
                name="root",
                type=PlaylistType.ROOT,
                playlists=PlaylistArray(playlists=[playlist]),
            ),
        )
        return manifest, members

    def bundle(self, entries: List[BundleEntry], name: Optional[str] = None) -> bytes:
        """Build the bundle in memory and return the archive bytes."""
        buffer = io.BytesIO()
        self._write_archive(buffer, entries, name)
        return buffer.getvalue()

    def write_bundle(self, entries: List[BundleEntry], path: str,
                     name: Optional[str] = None) -> str:
        """Write a bundle to ``path``; nothing appears there unless it is complete.

        Returns:
            The path written (with the bundle extension added if missing)

        Raises:
            BundleWriteError: The bundle could not be written after retries
        """
        if not path.lower().endswith(PLAYLIST_EXTENSION):
            path += PLAYLIST_EXTENSION
        if name is None:
            name = os.path.splitext(os.path.basename(path))[0]
        atomic_write(
            path,
            lambda f: self._write_archive(f, entries, name),
            retries=self.settings.write_retries,
            delay=self.settings.retry_delay,
            error_cls=BundleWriteError,
        )
        logger.info(f"Wrote playlist '{name}' with {len(entries)} entries to {path}")
        return path

    def _write_archive(self, fileobj: BinaryIO, entries: List[BundleEntry],
                       name: Optional[str]) -> None:
        manifest, members = self.build_manifest(entries, name)
        with zipfile.ZipFile(fileobj, "w", zipfile.ZIP_STORED) as archive:
            for entry, member in zip(entries, members):
                self._write_member(archive, member, entry.payload())
            self._write_member(archive, MANIFEST_MEMBER, encode_message(manifest))

    def _write_member(self, archive: zipfile.ZipFile, member: str, data: bytes) -> None:
        archive.writestr(member, data)
        logger.debug(f"Added {member} ({len(data)} bytes)")


def read_bundle(source: Union[str, bytes]) -> BundleContents:
    """Open a ``.proplaylist`` from a path or bytes.

    Raises:
        ParseError: Not a zip archive, or the manifest is missing or invalid
    """
    label = source if isinstance(source, str) else None
    try:
        if isinstance(source, str):
            archive = zipfile.ZipFile(source, "r")
        else:
            archive = zipfile.ZipFile(io.BytesIO(source), "r")
    except zipfile.BadZipFile as e:
        raise ParseError(f"Not a playlist bundle: {e}", path=label)

    with archive:
        names = archive.namelist()
        if MANIFEST_MEMBER not in names:
            raise ParseError("Playlist bundle has no manifest", path=label)
        members = {n: archive.read(n) for n in names if n != MANIFEST_MEMBER}
        try:
            manifest = decode_message(PlaylistDocument, archive.read(MANIFEST_MEMBER))
        except ParseError as e:
            if label:
                e.with_path(label)
            raise
    logger.debug(f"Read playlist bundle with {len(members)} documents")
    return BundleContents(manifest=manifest, members=members)


def _file_url(location: str) -> str:
    if os.path.isabs(location):
        return "file://" + location.replace(os.sep, "/")
    return location
