"""Typed tree of a ProPresenter 7 presentation document.

Field numbers follow the reverse-engineered layout of ProPresenter's
``rv.data`` messages. Only the fields this tool reads or writes are
modelled; everything else rides along in ``unknown_fields``.
"""

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

from ..errors import TypeTagMismatchError
from .base import Message, proto_field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Platform(IntEnum):
    UNDEFINED = 0
    MACOS = 1
    WINDOWS = 2
    WEB = 3


class Application(IntEnum):
    UNDEFINED = 0
    PROPRESENTER = 1
    PVP = 2
    PROVIDEOSERVER = 3
    SCOREBOARD = 4


class ActionType(IntEnum):
    UNKNOWN = 0
    STAGE_LAYOUT = 1
    MEDIA = 2
    TIMER = 3
    COMMUNICATION = 4
    CLEAR = 5
    PROP = 6
    MASK = 7
    MESSAGE = 8
    SOCIAL_MEDIA = 9
    MULTISCREEN = 10
    PRESENTATION_SLIDE = 11
    FOREGROUND_MEDIA = 12
    BACKGROUND_MEDIA = 13
    PRESENTATION_DOCUMENT = 14
    PROP_SLIDE = 15
    EXTERNAL_PRESENTATION = 17
    AUDIENCE_LOOK = 18
    AUDIO_INPUT = 19
    AUDIO_BIN_PLAYLIST = 20
    MEDIA_BIN_PLAYLIST = 21
    SLIDE_DESTINATION = 22
    MACRO = 23
    CLEAR_GROUP = 24


class CompletionTargetType(IntEnum):
    NONE = 0
    NEXT = 1
    RANDOM = 2
    CUE = 3
    FIRST = 4


class CompletionActionType(IntEnum):
    FIRST = 0
    LAST = 1
    AFTER_ACTION = 2
    AFTER_TIME = 3


class FlipMode(IntEnum):
    NONE = 0
    VERTICAL = 1
    HORIZONTAL = 2
    BOTH = 3


class TextAlignment(IntEnum):
    LEFT = 0
    RIGHT = 1
    CENTER = 2
    JUSTIFIED = 3
    NATURAL = 4


class VerticalAlignment(IntEnum):
    TOP = 0
    MIDDLE = 1
    BOTTOM = 2


class ScaleBehavior(IntEnum):
    NONE = 0
    SCALE_FONT_DOWN = 1
    SCALE_FONT_UP = 2
    SCALE_FONT_UP_DOWN = 3


# Major application versions whose layout this model was built against
RECOGNIZED_MAJOR_VERSIONS = (7,)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


@dataclass
class Color(Message):
    DIFF_AS_VALUE = True

    red: float = proto_field(1, "float")
    green: float = proto_field(2, "float")
    blue: float = proto_field(3, "float")
    alpha: float = proto_field(4, "float")

    @classmethod
    def rgba(cls, red: float, green: float, blue: float, alpha: float = 1.0) -> "Color":
        """Build a color with components rounded to the float32 precision of the file."""
        return cls(red=_float32(red), green=_float32(green), blue=_float32(blue),
                   alpha=_float32(alpha))


@dataclass
class Point(Message):
    DIFF_AS_VALUE = True

    x: float = proto_field(1, "double")
    y: float = proto_field(2, "double")


@dataclass
class Size(Message):
    DIFF_AS_VALUE = True

    width: float = proto_field(1, "double")
    height: float = proto_field(2, "double")


@dataclass
class Rect(Message):
    origin: Optional[Point] = proto_field(1, "message", Point)
    size: Optional[Size] = proto_field(2, "message", Size)


@dataclass
class EdgeInsets(Message):
    DIFF_AS_VALUE = True

    left: float = proto_field(1, "double")
    right: float = proto_field(2, "double")
    top: float = proto_field(3, "double")
    bottom: float = proto_field(4, "double")


@dataclass
class Version(Message):
    major: int = proto_field(1, "uint32")
    minor: int = proto_field(2, "uint32")
    patch: int = proto_field(3, "uint32")
    build: str = proto_field(4, "string")

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        return f"{text} ({self.build})" if self.build else text


@dataclass
class ApplicationInfo(Message):
    platform: int = proto_field(1, "enum", enum=Platform)
    platform_version: Optional[Version] = proto_field(2, "message", Version)
    application: int = proto_field(3, "enum", enum=Application)
    application_version: Optional[Version] = proto_field(4, "message", Version)

    @classmethod
    def default(cls) -> "ApplicationInfo":
        """Metadata matching what ProPresenter 7.14 writes on macOS."""
        return cls(
            platform=Platform.MACOS,
            platform_version=Version(major=14, minor=0),
            application=Application.PROPRESENTER,
            application_version=Version(major=7, minor=14, patch=0, build="117833728"),
        )


@dataclass
class URL(Message):
    absolute_string: str = proto_field(1, "string")
    relative_path: str = proto_field(2, "string")
    platform: int = proto_field(5, "enum", enum=Platform)


# ---------------------------------------------------------------------------
# Graphics
# ---------------------------------------------------------------------------

@dataclass
class MediaReference(Message):
    uuid: Optional[str] = proto_field(1, "uuid")
    url: Optional[URL] = proto_field(3, "message", URL)


@dataclass
class Fill(Message):
    enable: bool = proto_field(1, "bool")
    color: Optional[Color] = proto_field(2, "message", Color)
    media: Optional[MediaReference] = proto_field(4, "message", MediaReference)


@dataclass
class Font(Message):
    name: str = proto_field(1, "string")
    size: float = proto_field(2, "double")
    italic: bool = proto_field(3, "bool")
    bold: bool = proto_field(8, "bool")
    family: str = proto_field(9, "string")
    face: str = proto_field(10, "string")


@dataclass
class ParagraphStyle(Message):
    alignment: int = proto_field(1, "enum", enum=TextAlignment)
    first_line_head_indent: float = proto_field(2, "double")
    head_indent: float = proto_field(3, "double")
    tail_indent: float = proto_field(4, "double")
    line_height_multiple: float = proto_field(5, "double")
    maximum_line_height: float = proto_field(6, "double")
    minimum_line_height: float = proto_field(7, "double")
    line_spacing: float = proto_field(8, "double")
    paragraph_spacing: float = proto_field(9, "double")
    paragraph_spacing_before: float = proto_field(10, "double")


@dataclass
class TextAttributes(Message):
    font: Optional[Font] = proto_field(1, "message", Font)
    capitalization: int = proto_field(2, "enum")
    paragraph_style: Optional[ParagraphStyle] = proto_field(5, "message", ParagraphStyle)
    kerning: float = proto_field(6, "double")
    superscript: int = proto_field(7, "int32")
    fill_color: Optional[Color] = proto_field(10, "message", Color)


@dataclass
class Text(Message):
    attributes: Optional[TextAttributes] = proto_field(3, "message", TextAttributes)
    rtf_data: bytes = proto_field(5, "bytes")
    vertical_alignment: int = proto_field(6, "enum", enum=VerticalAlignment)
    scale_behavior: int = proto_field(7, "enum", enum=ScaleBehavior)
    margins: Optional[EdgeInsets] = proto_field(8, "message", EdgeInsets)
    is_superscript_standardized: bool = proto_field(9, "bool")


@dataclass
class Element(Message):
    """A visual leaf object: shape, text box or media holder."""

    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    bounds: Optional[Rect] = proto_field(3, "message", Rect)
    rotation: float = proto_field(4, "double")
    opacity: float = proto_field(5, "double")
    locked: bool = proto_field(6, "bool")
    aspect_ratio_locked: bool = proto_field(7, "bool")
    fill: Optional[Fill] = proto_field(9, "message", Fill)
    text: Optional[Text] = proto_field(13, "message", Text)
    flip_mode: int = proto_field(15, "enum", enum=FlipMode)
    hidden: bool = proto_field(16, "bool")

    @property
    def is_text_capable(self) -> bool:
        return self.text is not None and bool(self.text.rtf_data)

    @property
    def media(self) -> Optional[MediaReference]:
        return self.fill.media if self.fill is not None else None


@dataclass
class SlideElement(Message):
    """Slide-level wrapper that places an Element on a slide."""

    element: Optional[Element] = proto_field(1, "message", Element)
    info: int = proto_field(3, "uint32")


@dataclass
class Slide(Message):
    elements: List[SlideElement] = proto_field(1, "message", SlideElement, repeated=True,
                                               path_name="element")
    element_build_order: List[str] = proto_field(2, "uuid", repeated=True)
    draws_background_color: bool = proto_field(4, "bool")
    background_color: Optional[Color] = proto_field(5, "message", Color)
    size: Optional[Size] = proto_field(6, "message", Size)
    uuid: Optional[str] = proto_field(7, "uuid")


@dataclass
class PresentationSlide(Message):
    base_slide: Optional[Slide] = proto_field(1, "message", Slide)


# Field number of the prop slide payload inside SlideType; not modelled
PROP_SLIDE_TAG = 3


@dataclass
class SlideType(Message):
    presentation: Optional[PresentationSlide] = proto_field(2, "message", PresentationSlide)

    def kind(self) -> Optional[str]:
        """Which slide payload this holds: "presentation", "prop" or None."""
        if self.presentation is not None:
            return "presentation"
        if any(u.tag == PROP_SLIDE_TAG for u in self.unknown_fields):
            return "prop"
        return None


_SLIDE_KIND_ACTION_TYPES = {
    "presentation": ActionType.PRESENTATION_SLIDE,
    "prop": ActionType.PROP_SLIDE,
}


# ---------------------------------------------------------------------------
# Cues and documents
# ---------------------------------------------------------------------------

@dataclass
class Action(Message):
    """One action of a cue; ``type`` must agree with the payload it carries."""

    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    delay_time: float = proto_field(4, "double")
    is_enabled: bool = proto_field(6, "bool")
    duration: float = proto_field(8, "double")
    type: int = proto_field(9, "enum", enum=ActionType)
    slide: Optional[SlideType] = proto_field(24, "message", SlideType)

    def __post_init__(self):
        self.validate()

    @classmethod
    def for_presentation_slide(cls, slide: PresentationSlide, uuid: Optional[str] = None,
                               name: str = "") -> "Action":
        return cls(
            uuid=uuid,
            name=name,
            is_enabled=True,
            type=ActionType.PRESENTATION_SLIDE,
            slide=SlideType(presentation=slide),
        )

    @property
    def presentation_slide(self) -> Optional[PresentationSlide]:
        if self.slide is None:
            return None
        return self.slide.presentation

    def validate(self) -> None:
        kind = self.slide.kind() if self.slide is not None else None
        if kind is not None:
            if self.type != _SLIDE_KIND_ACTION_TYPES[kind]:
                raise TypeTagMismatchError(self.type, f"{kind} slide")
        elif self.type in (ActionType.PRESENTATION_SLIDE, ActionType.PROP_SLIDE):
            raise TypeTagMismatchError(self.type, "no slide payload")


@dataclass
class Cue(Message):
    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    completion_target_type: int = proto_field(3, "enum", enum=CompletionTargetType)
    completion_target_uuid: Optional[str] = proto_field(4, "uuid")
    completion_action_type: int = proto_field(5, "enum", enum=CompletionActionType)
    completion_action_uuid: Optional[str] = proto_field(6, "uuid")
    actions: List[Action] = proto_field(10, "message", Action, repeated=True, path_name="action")
    is_enabled: bool = proto_field(12, "bool")
    completion_time: float = proto_field(13, "double")


@dataclass
class Group(Message):
    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    color: Optional[Color] = proto_field(3, "message", Color)
    application_group_identifier: Optional[str] = proto_field(5, "uuid")
    application_group_name: str = proto_field(6, "string")


@dataclass
class CueGroup(Message):
    group: Optional[Group] = proto_field(1, "message", Group)
    cue_identifiers: List[str] = proto_field(2, "uuid", repeated=True)


@dataclass
class Arrangement(Message):
    uuid: Optional[str] = proto_field(1, "uuid")
    name: str = proto_field(2, "string")
    group_identifiers: List[str] = proto_field(3, "uuid", repeated=True)


@dataclass
class Document(Message):
    """Root of a ``.pro`` file."""

    application_info: Optional[ApplicationInfo] = proto_field(1, "message", ApplicationInfo)
    uuid: Optional[str] = proto_field(2, "uuid")
    name: str = proto_field(3, "string")
    category: str = proto_field(6, "string")
    notes: str = proto_field(7, "string")
    selected_arrangement: Optional[str] = proto_field(10, "uuid")
    arrangements: List[Arrangement] = proto_field(11, "message", Arrangement, repeated=True,
                                                  path_name="arrangement")
    cue_groups: List[CueGroup] = proto_field(12, "message", CueGroup, repeated=True,
                                             path_name="cue_group")
    cues: List[Cue] = proto_field(13, "message", Cue, repeated=True, path_name="cue")

    # Non-fatal problems found while decoding; not part of the file
    decode_issues: list = field(default_factory=list, repr=False, compare=False)

    @property
    def format_version(self) -> Optional[Version]:
        if self.application_info is None:
            return None
        return self.application_info.application_version

    def is_version_recognized(self) -> bool:
        version = self.format_version
        return version is not None and version.major in RECOGNIZED_MAJOR_VERSIONS

    def presentation_slides(self) -> Iterator[Tuple[int, int, PresentationSlide]]:
        """Yield (cue index, action index, slide) for every presentation slide."""
        for cue_index, cue in enumerate(self.cues):
            for action_index, action in enumerate(cue.actions):
                slide = action.presentation_slide
                if slide is not None:
                    yield cue_index, action_index, slide
