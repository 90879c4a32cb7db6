"""Turns scripture, lyrics and plain text into per-slide text placements."""

import re
import unicodedata
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..errors import ContentOverflowError
from ..logging_config import get_logger
from ..models.document import Element
from ..models.rich_text import TextRun, merge_runs, plain_text
from ..models.settings import Settings
from ..models.template_type import TemplateType
from . import rtf_codec

logger = get_logger("content_injector")

# Average glyph width and line height relative to the font size
AVERAGE_CHAR_WIDTH = 0.5
LINE_HEIGHT = 1.2

_STANZA_LABEL_RE = re.compile(r"^\[(.+)\]$")
_WORD_RE = re.compile(r"\S+\s*|\s+")


@dataclass
class Segment:
    """A styled block of text that should stay together if it can.

    ``separator`` is inserted before the segment when it follows another
    segment on the same slide. ``starts_slide`` forces a new slide.
    """
    runs: List[TextRun]
    label: Optional[str] = None
    separator: str = ""
    starts_slide: bool = False

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class Capacity:
    """How much text fits on one slide."""
    wrap_column: int
    max_lines: int


@dataclass
class Placement:
    """The segments (or segment pieces) shown on one slide."""
    pieces: List[Segment] = field(default_factory=list)

    @property
    def runs(self) -> List[TextRun]:
        runs: List[TextRun] = []
        for index, piece in enumerate(self.pieces):
            if index > 0 and piece.separator:
                runs.append(TextRun(piece.separator))
            runs.extend(piece.runs)
        return merge_runs(runs)

    @property
    def text(self) -> str:
        return plain_text(self.runs)

    @property
    def label(self) -> Optional[str]:
        for piece in self.pieces:
            if piece.label:
                return piece.label
        return None


# ---------------------------------------------------------------------------
# Segment builders
# ---------------------------------------------------------------------------

def segments_from_scripture(text: str, superscript_numbers: bool = True) -> List[Segment]:
    """One segment per verse; verses start at superscript verse numbers.

    With ``superscript_numbers`` off the numbers still split the verses but
    are shown as plain digits followed by a space.
    """
    runs = rtf_codec.runs_from_marked_text(text)
    segments: List[Segment] = []
    current: List[TextRun] = []
    for run in runs:
        if run.superscript and current:
            segments.append(Segment(merge_runs(current)))
            current = []
        if run.superscript and not superscript_numbers:
            run = replace(run, text=run.text + " ", superscript=False)
        current.append(run)
    if current:
        segments.append(Segment(merge_runs(current)))
    return segments


def parse_stanzas(text: str) -> List[Tuple[Optional[str], List[str]]]:
    """Split lyrics into (label, lines) stanzas.

    A line like ``[Chorus]`` labels the stanza that follows; blank lines
    separate stanzas.
    """
    stanzas: List[Tuple[Optional[str], List[str]]] = []
    label: Optional[str] = None
    lines: List[str] = []

    def close():
        nonlocal label, lines
        if lines:
            stanzas.append((label, lines))
        label = None
        lines = []

    for raw_line in text.splitlines():
        line = raw_line.rstrip()
        match = _STANZA_LABEL_RE.match(line.strip())
        if match:
            close()
            label = match.group(1).strip()
        elif not line.strip():
            close()
        else:
            lines.append(line)
    close()
    return stanzas


def segments_from_lyrics(text: str) -> List[Segment]:
    """One segment per lyric line; every stanza starts a new slide."""
    segments: List[Segment] = []
    for label, lines in parse_stanzas(text):
        for index, line in enumerate(lines):
            segments.append(Segment(
                runs=rtf_codec.runs_from_marked_text(line),
                label=label if index == 0 else None,
                separator="\n",
                starts_slide=index == 0,
            ))
    return segments


def segments_from_text(text: str) -> List[Segment]:
    """One segment per non-empty line of free text."""
    return [
        Segment(runs=rtf_codec.runs_from_marked_text(line), separator="\n")
        for line in text.splitlines()
        if line.strip()
    ]


def segments_for(template_type: TemplateType, text: str,
                 superscript_verse_numbers: bool = True) -> List[Segment]:
    if template_type == TemplateType.SCRIPTURE:
        return segments_from_scripture(" ".join(text.split()), superscript_verse_numbers)
    if template_type == TemplateType.SONG:
        return segments_from_lyrics(text)
    return segments_from_text(text)


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------

def _element_font_size(element: Element) -> Optional[float]:
    """Font size in points, from the RTF base size or the text attributes."""
    text = element.text
    if text is None:
        return None
    if text.rtf_data:
        base = rtf_codec.decode(text.rtf_data).base
        if base.size:
            return base.size / 2
    if text.attributes is not None and text.attributes.font is not None and text.attributes.font.size:
        return text.attributes.font.size
    return None


def estimate_capacity(element: Optional[Element], settings: Settings) -> Capacity:
    """Estimate how much text fits in a text element.

    Never exceeds the configured wrap column and lines per slide.
    """
    wrap_column = settings.get_effective_wrap_column()
    max_lines = settings.max_lines_per_slide
    if element is None or element.bounds is None or element.bounds.size is None:
        return Capacity(wrap_column, max_lines)

    font_size = _element_font_size(element)
    if not font_size:
        return Capacity(wrap_column, max_lines)

    size = element.bounds.size
    margins = element.text.margins if element.text is not None else None
    width = size.width - (margins.left + margins.right if margins else 0)
    height = size.height - (margins.top + margins.bottom if margins else 0)

    chars = int(width / (font_size * AVERAGE_CHAR_WIDTH)) if width > 0 else wrap_column
    lines = int(height / (font_size * LINE_HEIGHT)) if height > 0 else max_lines
    capacity = Capacity(
        wrap_column=max(settings.min_wrap_column, min(wrap_column, chars)),
        max_lines=max(1, min(max_lines, lines)),
    )
    logger.debug(f"Capacity for element '{element.name}': {capacity}")
    return capacity


def _display_width(text: str) -> int:
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text)


def wrap_text(text: str, width: int) -> List[str]:
    """Greedy word wrap that keeps explicit line breaks."""
    if width <= 0:
        return text.split("\n")
    lines: List[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            if not current:
                current = word
            elif _display_width(current) + 1 + _display_width(word) <= width:
                current = f"{current} {word}"
            else:
                lines.append(current)
                current = word
            while _display_width(current) > width:
                lines.append(current[:width])
                current = current[width:]
        lines.append(current)
    return lines


def count_lines(text: str, capacity: Capacity) -> int:
    return len(wrap_text(text, capacity.wrap_column))


def fits(text: str, capacity: Capacity) -> bool:
    return count_lines(text, capacity) <= capacity.max_lines


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def _split_oversize(segment: Segment, capacity: Capacity) -> List[Segment]:
    """Split a segment that cannot fit on one slide at word boundaries."""
    text = segment.text
    if fits(text, capacity):
        return [segment]

    cut_offsets: List[int] = []
    start = 0
    position = 0
    for match in _WORD_RE.finditer(text):
        token_end = match.end()
        if position > start and not fits(text[start:token_end], capacity):
            cut_offsets.append(position)
            start = position
        if not fits(text[start:token_end], capacity):
            # A single word longer than a slide; cut it by characters
            while not fits(text[start:token_end], capacity):
                cut = min(start + capacity.wrap_column * capacity.max_lines, token_end)
                cut_offsets.append(cut)
                start = cut
        position = token_end

    pieces: List[Segment] = []
    remaining = segment.runs
    consumed = 0
    for offset in cut_offsets:
        left, remaining = rtf_codec.split_runs_at(remaining, offset - consumed)
        consumed = offset
        pieces.append(left)
    pieces.append(remaining)

    result = []
    for index, runs in enumerate(pieces):
        if index == 0:
            result.append(replace(segment, runs=runs))
        else:
            result.append(Segment(runs=runs))
    logger.debug(f"Split oversize segment of {len(text)} chars into {len(result)} pieces")
    return result


def _check_no_loss(segments: List[Segment], placements: List[Placement]) -> None:
    expected = "".join(segment.text for segment in segments)
    placed = "".join(piece.text for placement in placements for piece in placement.pieces)
    if placed != expected:
        raise ContentOverflowError(
            f"Pagination lost content: {len(expected)} characters in, {len(placed)} placed"
        )
    if any(not placement.pieces for placement in placements):
        raise ContentOverflowError("Pagination produced an empty slide")


def inject(segments: List[Segment], capacity: Capacity) -> List[Placement]:
    """Pack segments into slide placements.

    Segments are kept whole whenever they fit; a segment larger than one
    slide is split at word boundaries. Every segment ends up on exactly one
    slide, in order.

    Raises:
        ContentOverflowError: Content was lost while paginating (a bug)
    """
    pieces: List[Segment] = []
    for segment in segments:
        pieces.extend(_split_oversize(segment, capacity))

    placements: List[Placement] = []
    current = Placement()
    for piece in pieces:
        if current.pieces:
            candidate = Placement(current.pieces + [piece])
            if piece.starts_slide or not fits(candidate.text, capacity):
                placements.append(current)
                current = Placement()
        current.pieces.append(piece)
    if current.pieces:
        placements.append(current)

    _check_no_loss(segments, placements)
    logger.debug(f"Placed {len(segments)} segments on {len(placements)} slides")
    return placements
