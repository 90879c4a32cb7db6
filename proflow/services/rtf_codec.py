"""Rich-text (RTF) codec for the text payload of slide elements.

ProPresenter stores element text as Cocoa RTF. A payload is decoded into
its prolog (everything before the first text, including the font and color
tables and the base control words) and a list of styled runs. Encoding
re-emits the prolog verbatim and writes each run in its own group, so run
boundaries survive a round trip and the template's colors and fonts are
never rebuilt.
"""

import re
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple, Union

from ..errors import ParseError
from ..models.rich_text import RichText, TextRun, plain_text

# Default RTF font size, in half-points
RTF_DEFAULT_SIZE = 24

DEFAULT_PROLOG = (
    r"{\rtf1\ansi\ansicpg1252\deff0"
    r"{\fonttbl{\f0\fswiss\fcharset0 Helvetica;}}"
    r"{\colortbl;\red255\green255\blue255;}"
    r"\pard\qc\f0\fs144\cf1 "
)

SUPERSCRIPT_DIGITS = "⁰¹²³⁴⁵⁶⁷⁸⁹"
_TO_SUPERSCRIPT = str.maketrans("0123456789", SUPERSCRIPT_DIGITS)
_FROM_SUPERSCRIPT = str.maketrans(SUPERSCRIPT_DIGITS, "0123456789")

# Groups whose content is never document text
DESTINATIONS = {
    "fonttbl", "colortbl", "expandedcolortbl", "stylesheet", "info", "listtable",
    "listoverridetable", "pict", "header", "footer", "footnote", "fldinst",
    "themedata", "colorschememapping", "latentstyles", "generator",
}

# Control words that stand for a character
SPECIAL_CHARACTERS = {
    "par": "\n",
    "line": "\n",
    "tab": "\t",
    "emdash": "—",
    "endash": "–",
    "lquote": "‘",
    "rquote": "’",
    "ldblquote": "“",
    "rdblquote": "”",
    "bullet": "•",
}

_TOKEN_RE = re.compile(
    r"(?P<open>\{)"
    r"|(?P<close>\})"
    r"|\\(?P<word>[a-zA-Z]+)(?P<param>-?\d+)? ?"
    r"|\\'(?P<hex>[0-9a-fA-F]{2})"
    r"|\\(?P<symbol>[^a-zA-Z'])"
    r"|(?P<newline>[\r\n]+)"
    r"|(?P<text>[^\\{}\r\n]+)"
)


@dataclass
class _Token:
    kind: str
    value: str
    param: Optional[int]
    start: int


@dataclass
class _State:
    bold: bool = False
    italic: bool = False
    superscript: bool = False
    size: int = RTF_DEFAULT_SIZE
    # \fs was given inside a run group rather than the prolog
    size_set: bool = False
    uc: int = 1

    def style(self) -> Tuple[bool, bool, bool, int, bool]:
        return (self.bold, self.italic, self.superscript, self.size, self.size_set)


def _tokenize(rtf: str) -> Iterator[_Token]:
    pos = 0
    end = len(rtf)
    while pos < end:
        match = _TOKEN_RE.match(rtf, pos)
        if match is None:
            raise ParseError(f"Malformed RTF near {rtf[pos:pos + 20]!r}", offset=pos)
        kind = match.lastgroup
        if kind == "param":
            kind = "word"
        param = None
        if kind == "word":
            value = match.group("word")
            if match.group("param") is not None:
                param = int(match.group("param"))
        else:
            value = match.group(kind)
        yield _Token(kind, value, param, pos)
        pos = match.end()


def superscript_size(base_size: int) -> int:
    """Half-point size of a superscript run inside text of ``base_size``."""
    return max(base_size // 2, 1)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class _Decoder:
    def __init__(self, rtf: str):
        self.rtf = rtf
        self.tokens = list(_tokenize(rtf))
        self.state = _State()
        self.stack: List[_State] = []
        self.runs: List[TextRun] = []
        self.buffer: List[str] = []
        self.buffer_style: Optional[Tuple[bool, bool, bool, int, bool]] = None
        self.explicit_sizes: List[bool] = []
        self.prolog_end: Optional[int] = None
        self.base: Optional[_State] = None
        self.skip = 0
        self.high_surrogate: Optional[int] = None

    def run(self) -> RichText:
        if not self.rtf.lstrip().startswith("{\\rtf"):
            raise ParseError("Text payload is not RTF")

        index = 0
        count = len(self.tokens)
        while index < count:
            token = self.tokens[index]
            if token.kind == "open":
                if self._is_destination(index):
                    index = self._skip_group(index)
                    continue
                if len(self.stack) == 1:
                    self._mark_prolog_end(token.start)
                self._flush()
                self.stack.append(replace(self.state))
                self.skip = 0
            elif token.kind == "close":
                self._flush()
                if not self.stack:
                    raise ParseError("Unbalanced '}' in RTF", offset=token.start)
                if len(self.stack) == 1:
                    self._mark_prolog_end(token.start)
                self.state = self.stack.pop()
                self.skip = 0
            elif token.kind == "word":
                self._control_word(token)
            elif token.kind == "hex":
                self._emit_fallback(bytes([int(token.value, 16)]).decode("cp1252", errors="replace"),
                                    token.start)
            elif token.kind == "symbol":
                self._control_symbol(token)
            elif token.kind == "text":
                self._emit_fallback(token.value, token.start)
            index += 1

        if self.stack:
            raise ParseError("RTF ends inside an open group", offset=len(self.rtf))
        self._flush()

        prolog_end = self.prolog_end if self.prolog_end is not None else len(self.rtf)
        base_state = self.base if self.base is not None else self.state
        base = TextRun("", bold=base_state.bold, italic=base_state.italic,
                       superscript=base_state.superscript, size=base_state.size)
        runs = [self._finish_run(run, explicit, base)
                for run, explicit in zip(self.runs, self.explicit_sizes)]
        return RichText(prolog=self.rtf[:prolog_end], base=base, runs=runs)

    def _is_destination(self, index: int) -> bool:
        if index + 1 >= len(self.tokens):
            return False
        following = self.tokens[index + 1]
        if following.kind == "symbol" and following.value == "*":
            return True
        return following.kind == "word" and following.value in DESTINATIONS

    def _skip_group(self, index: int) -> int:
        depth = 0
        for position in range(index, len(self.tokens)):
            kind = self.tokens[position].kind
            if kind == "open":
                depth += 1
            elif kind == "close":
                depth -= 1
                if depth == 0:
                    return position + 1
        raise ParseError("RTF ends inside a destination group", offset=self.tokens[index].start)

    def _mark_prolog_end(self, offset: int) -> None:
        if self.prolog_end is None:
            self.prolog_end = offset
            self.base = replace(self.state)

    def _control_word(self, token: _Token) -> None:
        word = token.value
        param = token.param
        state = self.state
        if word in SPECIAL_CHARACTERS:
            self._emit(SPECIAL_CHARACTERS[word], token.start)
        elif word == "b":
            state.bold = param != 0
        elif word == "i":
            state.italic = param != 0
        elif word == "super":
            state.superscript = True
        elif word in ("nosupersub", "sub"):
            state.superscript = False
        elif word == "up":
            state.superscript = (6 if param is None else param) > 0
        elif word == "fs" and param is not None:
            state.size = param
            state.size_set = len(self.stack) > 1
        elif word == "plain":
            state.bold = state.italic = state.superscript = False
            state.size = RTF_DEFAULT_SIZE
            state.size_set = False
        elif word == "uc" and param is not None:
            state.uc = max(param, 0)
        elif word == "u" and param is not None:
            self._unicode(param, token.start)
            self.skip = state.uc

    def _control_symbol(self, token: _Token) -> None:
        symbol = token.value
        if symbol in "\\{}":
            self._emit(symbol, token.start)
        elif symbol == "~":
            self._emit(" ", token.start)
        elif symbol == "_":
            self._emit("‑", token.start)
        elif symbol in "\r\n":
            self._emit("\n", token.start)

    def _unicode(self, code: int, offset: int) -> None:
        if code < 0:
            code += 65536
        if 0xD800 <= code < 0xDC00:
            self.high_surrogate = code
            return
        if 0xDC00 <= code < 0xE000 and self.high_surrogate is not None:
            code = 0x10000 + ((self.high_surrogate - 0xD800) << 10) + (code - 0xDC00)
        self.high_surrogate = None
        self._emit(chr(code), offset)

    def _emit_fallback(self, text: str, offset: int) -> None:
        if self.skip:
            dropped = min(self.skip, len(text))
            self.skip -= dropped
            text = text[dropped:]
        if text:
            self._emit(text, offset)

    def _emit(self, text: str, offset: int) -> None:
        if len(self.stack) == 1:
            self._mark_prolog_end(offset)
        style = self.state.style()
        if self.buffer and style != self.buffer_style:
            self._flush()
        self.buffer_style = style
        self.buffer.append(text)

    def _flush(self) -> None:
        if self.buffer:
            bold, italic, superscript, size, size_set = self.buffer_style
            self.runs.append(TextRun("".join(self.buffer), bold=bold, italic=italic,
                                     superscript=superscript, size=size))
            self.explicit_sizes.append(size_set)
            self.buffer = []

    @staticmethod
    def _finish_run(run: TextRun, explicit: bool, base: TextRun) -> TextRun:
        if run.superscript:
            # The encoder writes the default superscript size explicitly
            default = superscript_size(base.size)
        elif explicit:
            return run
        else:
            default = base.size
        return replace(run, size=None if run.size == default else run.size)


def decode(rtf: Union[str, bytes]) -> RichText:
    """Decode an RTF payload into prolog, base style and runs.

    Raises:
        ParseError: The payload is not well-formed RTF
    """
    if isinstance(rtf, (bytes, bytearray)):
        rtf = bytes(rtf).decode("latin-1")
    return _Decoder(rtf).run()


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _escape(text: str) -> str:
    out = []
    for ch in text:
        if ch in "\\{}":
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\par ")
        elif ch == "\t":
            out.append("\\tab ")
        elif 32 <= ord(ch) < 128:
            out.append(ch)
        else:
            encoded = ch.encode("utf-16-le")
            for i in range(0, len(encoded), 2):
                unit = int.from_bytes(encoded[i:i + 2], "little")
                if unit >= 32768:
                    unit -= 65536
                out.append(f"\\u{unit} ")
    return "".join(out)


def _encode_run(run: TextRun, base: TextRun) -> str:
    words = []
    if any(ord(ch) >= 128 or (ord(ch) < 32 and ch not in "\n\t") for ch in run.text):
        words.append("\\uc0")
    if run.bold != base.bold:
        words.append("\\b" if run.bold else "\\b0")
    if run.italic != base.italic:
        words.append("\\i" if run.italic else "\\i0")
    if run.superscript:
        words.append("\\super")
    size = run.size
    if size is None and run.superscript:
        size = superscript_size(base.size)
    if size is not None:
        words.append(f"\\fs{size}")

    head = "".join(words)
    if head:
        head += " "
    tail = "\\nosupersub" if run.superscript else ""
    return "{" + head + _escape(run.text) + tail + "}"


def base_style(prolog: str) -> TextRun:
    """Style in effect at the end of an RTF prolog."""
    return decode(prolog + "}").base


def normalize_runs(runs: List[TextRun], base: TextRun) -> List[TextRun]:
    """Canonical form of ``runs``: what decoding their encoding gives back.

    Empty runs are dropped, and a superscript size equal to the default
    superscript size becomes no override.
    """
    normalized = []
    for run in runs:
        if not run.text:
            continue
        if run.superscript and run.size == superscript_size(base.size):
            run = replace(run, size=None)
        normalized.append(run)
    return normalized


def encode_runs(runs: List[TextRun], prolog: str = DEFAULT_PROLOG) -> str:
    """Encode runs after ``prolog``, each in its own group."""
    base = base_style(prolog)
    body = "".join(_encode_run(run, base) for run in runs if run.text)
    return prolog + body + "}"


def encode(rich_text: RichText) -> str:
    """Encode a decoded payload, re-emitting its prolog verbatim."""
    body = "".join(_encode_run(run, rich_text.base) for run in rich_text.runs if run.text)
    return rich_text.prolog + body + "}"


def encode_bytes(rich_text: RichText) -> bytes:
    return encode(rich_text).encode("latin-1")


# ---------------------------------------------------------------------------
# Run manipulation
# ---------------------------------------------------------------------------

def split_run(run: TextRun, start: int, end: int) -> List[TextRun]:
    """Mark ``run.text[start:end]`` as superscript.

    Returns the [prefix, superscript, suffix] pieces, each keeping every
    other style attribute of ``run``. Empty pieces are left out.
    """
    if not 0 <= start <= end <= len(run.text):
        raise ValueError(f"Range {start}:{end} outside run of length {len(run.text)}")
    pieces = [
        run.with_text(run.text[:start]),
        replace(run, text=run.text[start:end], superscript=True),
        run.with_text(run.text[end:]),
    ]
    return [piece for piece in pieces if piece.text]


def split_runs_at(runs: List[TextRun], offset: int) -> Tuple[List[TextRun], List[TextRun]]:
    """Cut a run list at a character offset into (left, right)."""
    left: List[TextRun] = []
    right: List[TextRun] = []
    position = 0
    for run in runs:
        length = len(run.text)
        if position + length <= offset:
            left.append(run)
        elif position >= offset:
            right.append(run)
        else:
            cut = offset - position
            left.append(run.with_text(run.text[:cut]))
            right.append(run.with_text(run.text[cut:]))
        position += length
    return left, right


def runs_from_marked_text(text: str, base: Optional[TextRun] = None) -> List[TextRun]:
    """Turn text with Unicode superscript digits into runs.

    Superscript digits (verse numbers) become superscript runs with ASCII
    digits; everything else takes the style of ``base``.
    """
    template = base.with_text("") if base is not None else TextRun("")
    runs: List[TextRun] = []
    for is_marker, chunk in _split_markers(text):
        if is_marker:
            runs.append(replace(template, text=chunk.translate(_FROM_SUPERSCRIPT),
                                superscript=True, size=None))
        else:
            runs.append(template.with_text(chunk))
    return runs


def _split_markers(text: str) -> Iterator[Tuple[bool, str]]:
    for match in re.finditer(f"([{SUPERSCRIPT_DIGITS}]+)|([^{SUPERSCRIPT_DIGITS}]+)", text):
        yield match.group(1) is not None, match.group(0)


def marked_text_from_runs(runs: List[TextRun]) -> str:
    """Inverse of runs_from_marked_text: superscript digits back to Unicode."""
    parts = []
    for run in runs:
        if run.superscript and run.text.isdigit():
            parts.append(run.text.translate(_TO_SUPERSCRIPT))
        else:
            parts.append(run.text)
    return "".join(parts)


def rtf_to_text(rtf: Union[str, bytes]) -> str:
    """Plain text of an RTF payload."""
    return plain_text(decode(rtf).runs)


def text_to_rtf(text: str, prolog: str = DEFAULT_PROLOG) -> bytes:
    """RTF payload for text, with Unicode superscript digits as superscript runs."""
    return encode_runs(runs_from_marked_text(text), prolog).encode("latin-1")
