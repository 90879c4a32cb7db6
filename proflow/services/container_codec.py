"""Reads and writes ``.pro`` documents.

Decoding is driven by the field metadata of the model classes. Fields the
model does not know are kept per node, in order, and written back verbatim,
so decoding and re-encoding an untouched file gives the same bytes.
"""

from collections import Counter, defaultdict, deque
from typing import Deque, Dict, List, Optional, Type, TypeVar

from ..errors import ParseError, TruncatedError, UnknownVersionError
from ..logging_config import get_logger
from ..models.base import FieldSpec, Message, SCALAR_DEFAULTS, UnknownField, WireType, schema_of
from ..models.document import Document
from .file_io import atomic_write_bytes
from .wire import (
    RawField,
    encode_field,
    encode_varint,
    iter_fields,
    pack_double,
    pack_float,
    to_signed64,
    unpack_double,
    unpack_float,
)

logger = get_logger("container_codec")

M = TypeVar("M", bound=Message)

# Field number of the string inside an identifier message
_UUID_STRING_TAG = 1

_SIGNED_KINDS = ("int32", "int64", "enum")


# ---------------------------------------------------------------------------
# Generic node codec
# ---------------------------------------------------------------------------

def decode_message(cls: Type[M], data: bytes) -> M:
    """Decode ``data`` into a node of type ``cls``."""
    message = cls()
    by_tag, _ = schema_of(cls)
    order: List[int] = []

    for raw in iter_fields(data):
        order.append(raw.tag)
        spec = by_tag.get(raw.tag)
        if spec is None or spec.wire_type != raw.wire_type:
            message.unknown_fields.append(UnknownField(raw.tag, raw.wire_type, raw.raw))
            continue
        value = _decode_value(spec, raw)
        if spec.repeated:
            getattr(message, spec.name).append(value)
        else:
            setattr(message, spec.name, value)

    message.wire_order = order
    message.validate()
    return message


def _decode_value(spec: FieldSpec, raw: RawField):
    kind = spec.kind
    if kind == "bool":
        return bool(raw.value)
    if kind in _SIGNED_KINDS:
        return to_signed64(raw.value)
    if kind in ("uint32", "uint64"):
        return raw.value
    if kind == "double":
        return unpack_double(raw.value)
    if kind == "float":
        return unpack_float(raw.value)
    if kind == "string":
        try:
            return raw.value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Field {spec.name} is not valid UTF-8: {e}")
    if kind == "bytes":
        return raw.value
    if kind == "uuid":
        return _decode_uuid(raw.value)
    return decode_message(spec.message, raw.value)


def _decode_uuid(data: bytes) -> str:
    for raw in iter_fields(data):
        if raw.tag == _UUID_STRING_TAG and raw.wire_type == WireType.LEN:
            try:
                return raw.value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"Identifier is not valid UTF-8: {e}")
    return ""


def encode_message(message: Message) -> bytes:
    """Encode a node.

    Fields are written in the order they were decoded in. Fields added since
    then follow in tag order, then any unknown fields without a recorded
    position.
    """
    message.validate()
    _, ordered = schema_of(type(message))
    # Tags that were read as known fields, not only as unknown ones
    occurrences = Counter(message.wire_order)
    for record in message.unknown_fields:
        occurrences[record.tag] -= 1
    present = {tag for tag, count in occurrences.items() if count > 0}

    known: Dict[int, bytes] = {}
    for spec in ordered:
        chunk = _encode_field(message, spec, spec.tag in present)
        if chunk:
            known[spec.tag] = chunk

    unknown: Dict[int, Deque[UnknownField]] = defaultdict(deque)
    for record in message.unknown_fields:
        unknown[record.tag].append(record)

    out = bytearray()
    for tag in message.wire_order:
        if tag in known and tag in present:
            # Repeated fields are written contiguously at their first position
            out += known.pop(tag)
        elif unknown.get(tag):
            out += _encode_unknown(unknown[tag].popleft())

    for tag in sorted(known):
        out += known[tag]
    for record in message.unknown_fields:
        pending = unknown.get(record.tag)
        if pending and pending[0] is record:
            out += _encode_unknown(pending.popleft())
    return bytes(out)


def _encode_unknown(record: UnknownField) -> bytes:
    return encode_field(record.tag, record.wire_type, record.data)


def _encode_field(message: Message, spec: FieldSpec, present: bool) -> bytes:
    value = getattr(message, spec.name)
    if spec.repeated:
        return b"".join(_encode_single(spec, item) for item in value)
    if spec.kind in ("message", "uuid"):
        if value is None:
            return b""
        return _encode_single(spec, value)
    if value == SCALAR_DEFAULTS[spec.kind] and not present:
        return b""
    return _encode_single(spec, value)


def _encode_single(spec: FieldSpec, value) -> bytes:
    kind = spec.kind
    if kind == "message":
        payload = encode_message(value)
    elif kind == "uuid":
        payload = encode_field(_UUID_STRING_TAG, WireType.LEN, value.encode("utf-8")) if value else b""
    elif kind == "string":
        payload = value.encode("utf-8")
    elif kind == "bytes":
        payload = bytes(value)
    elif kind == "double":
        payload = pack_double(value)
    elif kind == "float":
        payload = pack_float(value)
    else:
        payload = encode_varint(int(value))
    return encode_field(spec.tag, spec.wire_type, payload)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def decode(data: bytes, strict: bool = False, path: Optional[str] = None) -> Document:
    """Decode a ``.pro`` document.

    An unrecognized format version is logged and recorded in
    ``document.decode_issues``; with ``strict`` it is raised instead.

    Raises:
        ParseError: The bytes are not a valid document
    """
    if not data:
        raise TruncatedError("Empty input", path=path, offset=0)
    try:
        document = decode_message(Document, data)
    except ParseError as e:
        if path:
            e.with_path(path)
        raise

    if not document.is_version_recognized():
        version = document.format_version
        issue = UnknownVersionError(str(version) if version is not None else "missing", path=path)
        if strict:
            raise issue
        logger.warning(f"{issue}; continuing with unknown fields preserved")
        document.decode_issues.append(issue)
    return document


def encode(document: Document) -> bytes:
    """Encode a document to ``.pro`` bytes."""
    return encode_message(document)


def read_document(path: str, strict: bool = False) -> Document:
    """Read and decode a ``.pro`` file."""
    logger.debug(f"Reading document: {path}")
    with open(path, "rb") as f:
        data = f.read()
    return decode(data, strict=strict, path=path)


def write_document(document: Document, path: str, retries: int = 2, delay: float = 0.2) -> int:
    """Encode and atomically write a document.

    Returns:
        Number of bytes written

    Raises:
        FileWriteError: The file could not be written after all retries
    """
    data = encode(document)
    atomic_write_bytes(path, data, retries=retries, delay=delay)
    logger.info(f"Wrote document '{document.name}' ({len(data)} bytes) to {path}")
    return len(data)
