"""Structural comparison of two document trees."""

from dataclasses import dataclass
from typing import Any, List

from ..models.base import Message, enum_name


@dataclass
class Mismatch:
    """One difference: where it is and what each side holds."""
    path: str
    expected: Any
    actual: Any

    def __str__(self) -> str:
        return f"{self.path}: expected {_show(self.expected)}, got {_show(self.actual)}"


def _show(value: Any) -> str:
    if isinstance(value, bytes):
        text = value.decode("latin-1")
        return repr(text if len(text) <= 120 else text[:117] + "...")
    return repr(value)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


class _Differ:
    def __init__(self, include_identifiers: bool):
        self.include_identifiers = include_identifiers
        self.mismatches: List[Mismatch] = []

    def report(self, path: str, expected: Any, actual: Any) -> None:
        self.mismatches.append(Mismatch(path, expected, actual))

    def node(self, path: str, expected: Message, actual: Message) -> None:
        if type(expected) is not type(actual):
            self.report(path, type(expected).__name__, type(actual).__name__)
            return
        if expected.DIFF_AS_VALUE:
            if expected != actual:
                self.report(path, expected, actual)
            return

        for spec in expected.field_specs():
            if spec.kind == "uuid" and not self.include_identifiers:
                continue
            left = getattr(expected, spec.name)
            right = getattr(actual, spec.name)
            if spec.repeated:
                self.sequence(path, spec.path_name, left, right, spec.kind == "message")
            elif spec.kind == "message":
                self.optional_node(_join(path, spec.path_name), left, right)
            elif left != right:
                self.report(_join(path, spec.path_name), enum_name(spec, left), enum_name(spec, right))

        if expected.unknown_fields != actual.unknown_fields:
            self.report(
                _join(path, "unknown"),
                [(u.tag, u.wire_type) for u in expected.unknown_fields],
                [(u.tag, u.wire_type) for u in actual.unknown_fields],
            )

    def optional_node(self, path: str, expected, actual) -> None:
        if expected is None or actual is None:
            if expected is not actual:
                self.report(path, _summary(expected), _summary(actual))
            return
        self.node(path, expected, actual)

    def sequence(self, path: str, name: str, expected: list, actual: list, nested: bool) -> None:
        for index in range(min(len(expected), len(actual))):
            item_path = _join(path, f"{name}[{index}]")
            if nested:
                self.node(item_path, expected[index], actual[index])
            elif expected[index] != actual[index]:
                self.report(item_path, expected[index], actual[index])
        if len(expected) != len(actual):
            self.report(_join(path, f"{name}.length"), len(expected), len(actual))


def _summary(value: Any) -> Any:
    if isinstance(value, Message):
        return type(value).__name__
    return value


def diff(expected: Message, actual: Message, include_identifiers: bool = False) -> List[Mismatch]:
    """Compare two trees position by position.

    Identifiers are skipped unless ``include_identifiers`` is set, since
    generated documents always get fresh ones.
    """
    differ = _Differ(include_identifiers)
    differ.node("", expected, actual)
    return differ.mismatches


def format_mismatches(mismatches: List[Mismatch]) -> str:
    if not mismatches:
        return "Documents match."
    lines = [str(m) for m in mismatches]
    lines.append(f"{len(mismatches)} difference(s)")
    return "\n".join(lines)
