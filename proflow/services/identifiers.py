"""Identifier generation for document nodes."""

import threading
import uuid
from typing import Iterable, Iterator, Set

from ..models.base import Message


def iter_identifiers(message: Message) -> Iterator[str]:
    """Yield every identifier value in a tree, references included."""
    for node in message.walk():
        for spec in node.field_specs():
            if spec.kind != "uuid":
                continue
            value = getattr(node, spec.name)
            if spec.repeated:
                yield from (v for v in value if v)
            elif value:
                yield value


def iter_node_identifiers(message: Message) -> Iterator[str]:
    """Yield the own ``uuid`` of every node in a tree (no references)."""
    for node in message.walk():
        value = getattr(node, "uuid", None)
        if isinstance(value, str) and value:
            yield value


class IdentifierPool:
    """Issues identifiers that are never repeated within the process.

    Identifiers already in use (for example those of loaded templates) can
    be reserved so they are never handed out.
    """

    def __init__(self):
        self._issued: Set[str] = set()
        self._lock = threading.Lock()

    def new(self) -> str:
        """Return a fresh upper-case UUID string, as ProPresenter writes them."""
        with self._lock:
            while True:
                value = str(uuid.uuid4()).upper()
                if value not in self._issued:
                    self._issued.add(value)
                    return value

    def reserve(self, identifiers: Iterable[str]) -> None:
        with self._lock:
            self._issued.update(i.upper() for i in identifiers if i)

    def reserve_tree(self, message: Message) -> None:
        """Reserve every identifier used anywhere in a tree."""
        self.reserve(iter_identifiers(message))

    def __contains__(self, value: str) -> bool:
        with self._lock:
            return value.upper() in self._issued

    def __len__(self) -> int:
        with self._lock:
            return len(self._issued)


# Shared by generators that are not given their own pool
default_pool = IdentifierPool()


def generate_uuid() -> str:
    """Generate a new unique identifier."""
    return default_pool.new()
