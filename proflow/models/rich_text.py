"""Styled text runs carried in the RTF payload of a text element."""

from dataclasses import dataclass, field, replace
from typing import List, Optional


@dataclass
class TextRun:
    """A contiguous span of text sharing one set of style attributes.

    ``size`` is an override in RTF half-points; None inherits the size of
    the enclosing text.
    """
    text: str
    bold: bool = False
    italic: bool = False
    superscript: bool = False
    size: Optional[int] = None

    def same_style(self, other: "TextRun") -> bool:
        return (
            self.bold == other.bold
            and self.italic == other.italic
            and self.superscript == other.superscript
            and self.size == other.size
        )

    def with_text(self, text: str) -> "TextRun":
        """Copy of this run with every style attribute kept and new text."""
        return replace(self, text=text)


@dataclass
class RichText:
    """A decoded RTF payload.

    ``prolog`` is the RTF source up to the first text: header, font and
    color tables and the control words that set the base style. ``base``
    is the style in effect at the end of the prolog, with ``size`` holding
    the base font size in half-points.
    """
    prolog: str
    base: TextRun = field(default_factory=lambda: TextRun(""))
    runs: List[TextRun] = field(default_factory=list)

    @property
    def plain_text(self) -> str:
        return plain_text(self.runs)

    def with_runs(self, runs: List[TextRun]) -> "RichText":
        return RichText(prolog=self.prolog, base=self.base, runs=list(runs))


def plain_text(runs: List[TextRun]) -> str:
    """Concatenated text of a run list."""
    return "".join(run.text for run in runs)


def merge_runs(runs: List[TextRun]) -> List[TextRun]:
    """Drop empty runs and join neighbours that share a style."""
    merged: List[TextRun] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].same_style(run):
            merged[-1] = merged[-1].with_text(merged[-1].text + run.text)
        else:
            merged.append(run)
    return merged
