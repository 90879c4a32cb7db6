"""Human-readable and structured views of documents, and text extraction."""

import re
from typing import Any, Dict, List, Optional

from ..errors import ParseError
from ..logging_config import get_logger
from ..models.base import Message, enum_name
from ..models.document import (
    ActionType,
    Application,
    Color,
    Document,
    Element,
    Platform,
    Slide,
)
from . import rtf_codec

logger = get_logger("document_dump")

_GENERATED_CUE_NAME_RE = re.compile(r"^Slide( \d+)?$")


def element_text(element: Element) -> Optional[str]:
    """Plain text of a text element, or None if it has none or it is unreadable."""
    if not element.is_text_capable:
        return None
    try:
        return rtf_codec.rtf_to_text(element.text.rtf_data)
    except ParseError as e:
        logger.warning(f"Could not read text of element '{element.name}': {e}")
        return None


def slide_text(slide: Slide) -> List[str]:
    """Non-empty texts of a slide's elements, in z-order."""
    texts = []
    for slide_element in slide.elements:
        if slide_element.element is None:
            continue
        text = element_text(slide_element.element)
        if text and text.strip():
            texts.append(text)
    return texts


def extract_text(document: Document) -> List[str]:
    """Slide text as editor-ready lines.

    Slides are separated by blank lines; meaningful cue names become
    ``[Label]`` lines so the result can be parsed back into stanzas.
    """
    lines: List[str] = []
    for cue in document.cues:
        for action in cue.actions:
            slide = action.presentation_slide
            if slide is None or slide.base_slide is None:
                continue
            if lines:
                lines.append("")
            if cue.name and not _GENERATED_CUE_NAME_RE.match(cue.name):
                lines.append(f"[{cue.name}]")
            for text in slide_text(slide.base_slide):
                lines.extend(text.splitlines())
    return lines


# ---------------------------------------------------------------------------
# Structured form
# ---------------------------------------------------------------------------

def document_to_dict(message: Message) -> Dict[str, Any]:
    """Convert a tree to JSON-compatible dicts.

    Enum values are shown by name, RTF payloads as text, and unknown fields
    as tag, wire type and hex data.
    """
    result: Dict[str, Any] = {}
    for spec in message.field_specs():
        value = getattr(message, spec.name)
        if spec.repeated:
            if not value:
                continue
            if spec.kind == "message":
                result[spec.name] = [document_to_dict(item) for item in value]
            else:
                result[spec.name] = list(value)
        elif value is None:
            continue
        elif spec.kind == "message":
            result[spec.name] = document_to_dict(value)
        elif spec.kind == "bytes":
            result[spec.name] = _bytes_to_json(spec.name, value)
        elif spec.kind == "enum":
            result[spec.name] = enum_name(spec, value)
        else:
            result[spec.name] = value
    if message.unknown_fields:
        result["unknown_fields"] = [
            {"tag": u.tag, "wire_type": u.wire_type, "data": u.data.hex()}
            for u in message.unknown_fields
        ]
    return result


def _bytes_to_json(name: str, value: bytes) -> Any:
    if name == "rtf_data" and value:
        try:
            rich = rtf_codec.decode(value)
        except ParseError:
            return value.hex()
        return {"rtf": value.decode("latin-1"), "text": rich.plain_text}
    return value.hex()


# ---------------------------------------------------------------------------
# Tree form
# ---------------------------------------------------------------------------

def _color(color: Optional[Color]) -> str:
    if color is None:
        return "none"
    return f"r={color.red:.2f} g={color.green:.2f} b={color.blue:.2f} a={color.alpha:.2f}"


def _enum(enum_cls, value: int) -> str:
    try:
        return enum_cls(value).name
    except ValueError:
        return str(value)


class _Tree:
    def __init__(self):
        self.lines: List[str] = []

    def add(self, indent: str, last: bool, text: str) -> str:
        self.lines.append(f"{indent}{'└' if last else '├'}─ {text}")
        return indent + ("   " if last else "│  ")


def dump_tree(document: Document, title: Optional[str] = None) -> str:
    """Render a document as an indented tree for debugging."""
    tree = _Tree()
    tree.lines.append(f"Presentation: {title or document.name}")
    tree.add("", False, f"Name: {document.name!r}")
    tree.add("", False, f"UUID: {document.uuid}")
    tree.add("", False, f"Category: {document.category!r}")
    info = document.application_info
    if info is not None:
        tree.add("", False, f"Application: {_enum(Application, info.application)} "
                            f"{info.application_version or '?'} on "
                            f"{_enum(Platform, info.platform)} {info.platform_version or '?'}")
    for issue in document.decode_issues:
        tree.add("", False, f"Warning: {issue}")
    if document.unknown_fields:
        tags = ", ".join(str(u.tag) for u in document.unknown_fields)
        tree.add("", False, f"Unknown fields: {tags}")

    indent = tree.add("", False, f"Cues ({len(document.cues)})")
    for i, cue in enumerate(document.cues):
        cue_indent = tree.add(indent, i == len(document.cues) - 1, f"Cue {i}: {cue.name!r} [{cue.uuid}]")
        for j, action in enumerate(cue.actions):
            last_action = j == len(cue.actions) - 1
            action_indent = tree.add(cue_indent, last_action,
                                     f"Action {j}: {_enum(ActionType, action.type)} {action.name!r}")
            slide = action.presentation_slide
            if slide is not None and slide.base_slide is not None:
                _dump_slide(tree, action_indent, slide.base_slide)

    indent = tree.add("", False, f"Cue groups ({len(document.cue_groups)})")
    for i, cue_group in enumerate(document.cue_groups):
        group = cue_group.group
        name = group.name if group is not None else "?"
        color = _color(group.color) if group is not None else "none"
        tree.add(indent, i == len(document.cue_groups) - 1,
                 f"{name!r}: {len(cue_group.cue_identifiers)} cues, color {color}")

    indent = tree.add("", True, f"Arrangements ({len(document.arrangements)})")
    for i, arrangement in enumerate(document.arrangements):
        selected = " (selected)" if arrangement.uuid == document.selected_arrangement else ""
        tree.add(indent, i == len(document.arrangements) - 1,
                 f"{arrangement.name!r}{selected}: {len(arrangement.group_identifiers)} groups")
    return "\n".join(tree.lines)


def _dump_slide(tree: _Tree, indent: str, slide: Slide) -> None:
    size = f"{slide.size.width:g}x{slide.size.height:g}" if slide.size is not None else "?"
    slide_indent = tree.add(indent, True, f"Slide {size} [{slide.uuid}] "
                                          f"background {_color(slide.background_color)}")
    for k, slide_element in enumerate(slide.elements):
        element = slide_element.element
        last = k == len(slide.elements) - 1
        if element is None:
            tree.add(slide_indent, last, f"Element {k}: (empty)")
            continue
        element_indent = tree.add(slide_indent, last, f"Element {k}: {element.name!r} [{element.uuid}]")
        bounds = element.bounds
        if bounds is not None and bounds.origin is not None and bounds.size is not None:
            tree.add(element_indent, False,
                     f"Bounds: ({bounds.origin.x:g}, {bounds.origin.y:g}) "
                     f"{bounds.size.width:g}x{bounds.size.height:g}")
        if element.fill is not None:
            tree.add(element_indent, False, f"Fill: {_color(element.fill.color)}")
        if element.media is not None and element.media.url is not None:
            tree.add(element_indent, False, f"Media: {element.media.url.absolute_string}")
        text = element_text(element)
        tree.add(element_indent, True, f"Text: {text!r}" if text is not None else "Text: none")
