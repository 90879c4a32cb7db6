"""Models package."""

from .settings import Settings, get_settings_path, get_config_dir
from .base import Message, UnknownField, WireType, proto_field
from .document import (
    Action,
    ActionType,
    Application,
    ApplicationInfo,
    Arrangement,
    Color,
    CompletionTargetType,
    Cue,
    CueGroup,
    Document,
    EdgeInsets,
    Element,
    Fill,
    Font,
    Group,
    MediaReference,
    ParagraphStyle,
    Platform,
    Point,
    PresentationSlide,
    Rect,
    Size,
    Slide,
    SlideElement,
    SlideType,
    Text,
    TextAttributes,
    URL,
    Version,
)
from .playlist import (
    PlaylistDocument,
    PlaylistFolder,
    PlaylistArray,
    Playlist,
    PlaylistItems,
    PlaylistItem,
    PresentationItem,
)
from .rich_text import TextRun, RichText, plain_text, merge_runs
from .template_type import TemplateType, PRO_EXTENSION, PLAYLIST_EXTENSION

__all__ = [
    "Settings",
    "get_settings_path",
    "get_config_dir",
    # Tree base
    "Message",
    "UnknownField",
    "WireType",
    "proto_field",
    # Document
    "Action",
    "ActionType",
    "Application",
    "ApplicationInfo",
    "Arrangement",
    "Color",
    "CompletionTargetType",
    "Cue",
    "CueGroup",
    "Document",
    "EdgeInsets",
    "Element",
    "Fill",
    "Font",
    "Group",
    "MediaReference",
    "ParagraphStyle",
    "Platform",
    "Point",
    "PresentationSlide",
    "Rect",
    "Size",
    "Slide",
    "SlideElement",
    "SlideType",
    "Text",
    "TextAttributes",
    "URL",
    "Version",
    # Playlist manifest
    "PlaylistDocument",
    "PlaylistFolder",
    "PlaylistArray",
    "Playlist",
    "PlaylistItems",
    "PlaylistItem",
    "PresentationItem",
    # Rich text
    "TextRun",
    "RichText",
    "plain_text",
    "merge_runs",
    "TemplateType",
    "PRO_EXTENSION",
    "PLAYLIST_EXTENSION",
]
