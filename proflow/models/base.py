"""Base node type for the document tree.

Every node is a dataclass whose fields declare their wire tag and kind in
field metadata (see ``proto_field``). Nodes also carry the fields the model
does not know about, in the order they were read, so an untouched node
encodes back to the exact bytes it was decoded from.
"""

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type


class WireType(IntEnum):
    """Protocol Buffers wire types."""
    VARINT = 0
    I64 = 1
    LEN = 2
    I32 = 5


# Field kinds and the wire type each one is carried in
KIND_WIRE_TYPES = {
    "bool": WireType.VARINT,
    "uint32": WireType.VARINT,
    "uint64": WireType.VARINT,
    "int32": WireType.VARINT,
    "int64": WireType.VARINT,
    "enum": WireType.VARINT,
    "double": WireType.I64,
    "float": WireType.I32,
    "string": WireType.LEN,
    "bytes": WireType.LEN,
    "message": WireType.LEN,
    "uuid": WireType.LEN,
}

SCALAR_DEFAULTS = {
    "bool": False,
    "uint32": 0,
    "uint64": 0,
    "int32": 0,
    "int64": 0,
    "enum": 0,
    "double": 0.0,
    "float": 0.0,
    "string": "",
    "bytes": b"",
}


@dataclass
class UnknownField:
    """A field the model does not recognize, kept verbatim.

    ``data`` is the raw payload without the key: the varint bytes, the
    fixed-width bytes, or the length-delimited content.
    """
    tag: int
    wire_type: int
    data: bytes


def proto_field(tag: int, kind: str, message: Optional[Type["Message"]] = None,
                repeated: bool = False, enum: Optional[Type[IntEnum]] = None,
                path_name: Optional[str] = None):
    """Declare a dataclass field backed by a wire tag.

    Args:
        tag: Field number on the wire
        kind: One of the keys of KIND_WIRE_TYPES
        message: Node class for kind "message"
        repeated: Whether the field holds a list
        enum: IntEnum used to present values of kind "enum"
        path_name: Name used in diff paths (defaults to the attribute name)
    """
    if kind not in KIND_WIRE_TYPES:
        raise ValueError(f"Unknown field kind: {kind}")
    if kind == "message" and message is None:
        raise ValueError(f"Field {tag} of kind 'message' needs a message class")
    metadata = {
        "tag": tag,
        "kind": kind,
        "message": message,
        "repeated": repeated,
        "enum": enum,
        "path_name": path_name,
    }
    if repeated:
        return field(default_factory=list, metadata=metadata)
    if kind in ("message", "uuid"):
        return field(default=None, metadata=metadata)
    return field(default=SCALAR_DEFAULTS[kind], metadata=metadata)


@dataclass
class FieldSpec:
    """Wire description of one dataclass field."""
    name: str
    tag: int
    kind: str
    message: Optional[Type["Message"]]
    repeated: bool
    enum: Optional[Type[IntEnum]]
    path_name: str

    @property
    def wire_type(self) -> int:
        return KIND_WIRE_TYPES[self.kind]


_SCHEMA_CACHE: Dict[type, Tuple[Dict[int, FieldSpec], List[FieldSpec]]] = {}


def schema_of(cls: type) -> Tuple[Dict[int, FieldSpec], List[FieldSpec]]:
    """Return (specs by tag, specs in declaration order) for a node class."""
    cached = _SCHEMA_CACHE.get(cls)
    if cached is not None:
        return cached
    by_tag: Dict[int, FieldSpec] = {}
    ordered: List[FieldSpec] = []
    for f in fields(cls):
        if "tag" not in f.metadata:
            continue
        spec = FieldSpec(
            name=f.name,
            tag=f.metadata["tag"],
            kind=f.metadata["kind"],
            message=f.metadata["message"],
            repeated=f.metadata["repeated"],
            enum=f.metadata["enum"],
            path_name=f.metadata["path_name"] or f.name,
        )
        if spec.tag in by_tag:
            raise ValueError(f"{cls.__name__}: duplicate tag {spec.tag}")
        by_tag[spec.tag] = spec
        ordered.append(spec)
    _SCHEMA_CACHE[cls] = (by_tag, ordered)
    return by_tag, ordered


@dataclass
class Message:
    """Base class for every node in a document tree."""

    # Compared by the diff utility as one value instead of field by field
    DIFF_AS_VALUE = False

    unknown_fields: List[UnknownField] = field(default_factory=list, repr=False)
    # Tag sequence as read from the wire; empty for freshly built nodes
    wire_order: List[int] = field(default_factory=list, repr=False, compare=False)

    def validate(self) -> None:
        """Check cross-field invariants. Called after decode and before encode."""

    def field_specs(self) -> List[FieldSpec]:
        return schema_of(type(self))[1]

    def children(self) -> Iterator[Tuple[FieldSpec, Optional[int], "Message"]]:
        """Yield (field, index, child) for every nested node."""
        for spec in self.field_specs():
            if spec.kind != "message":
                continue
            value = getattr(self, spec.name)
            if spec.repeated:
                for index, item in enumerate(value):
                    yield spec, index, item
            elif value is not None:
                yield spec, None, value

    def walk(self) -> Iterator["Message"]:
        """Yield this node and all nested nodes, depth first in field order."""
        yield self
        for _, _, child in self.children():
            yield from child.walk()


def enum_name(spec: FieldSpec, value: Any) -> Any:
    """Present an enum value by name when the enum knows it."""
    if spec.enum is None:
        return value
    try:
        return spec.enum(value).name
    except ValueError:
        return value
