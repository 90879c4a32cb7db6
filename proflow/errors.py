"""Exception types raised by the codec, generator and bundler."""

from typing import List, Optional


class ProflowError(Exception):
    """Base class for all ProFlow errors."""


class ParseError(ProflowError):
    """Malformed or unrecognized container bytes."""

    def __init__(self, message: str, path: Optional[str] = None, offset: Optional[int] = None):
        self.message = message
        self.path = path
        self.offset = offset
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.offset is not None:
            text = f"{text} (at byte {self.offset})"
        if self.path:
            text = f"{self.path}: {text}"
        return text

    def with_path(self, path: str) -> "ParseError":
        """Attach the file path this error was raised for."""
        self.path = path
        self.args = (self._format(),)
        return self


class TruncatedError(ParseError):
    """The input ended in the middle of a field."""


class UnknownVersionError(ParseError):
    """The document was written by an application version we do not recognize.

    Decoding continues permissively; the error is recorded on the document.
    """

    def __init__(self, version: str, path: Optional[str] = None):
        self.version = version
        super().__init__(f"Unrecognized format version {version}", path=path)


class TypeTagMismatchError(ParseError):
    """An action's declared type does not match its embedded payload."""

    def __init__(self, action_type: int, payload: str, path: Optional[str] = None):
        self.action_type = action_type
        self.payload = payload
        super().__init__(
            f"Action type {action_type} does not match its payload ({payload})",
            path=path,
        )


class TemplateNotFoundError(ProflowError):
    """No template file exists for a category in any search path."""

    def __init__(self, template_type: str, filename: str, search_paths: List[str]):
        self.template_type = template_type
        self.filename = filename
        self.search_paths = list(search_paths)
        searched = ", ".join(self.search_paths) if self.search_paths else "(no search paths configured)"
        super().__init__(
            f"No {template_type} template found. "
            f"Provide a file named '{filename}' in one of: {searched}"
        )


class TemplateInvalidError(ProflowError):
    """A template document has no slide that can be used as a skeleton."""

    def __init__(self, template_type: str, path: Optional[str] = None):
        self.template_type = template_type
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"The {template_type} template{where} contains no presentation slide")


class ContentOverflowError(ProflowError):
    """Content was dropped or reordered while paginating. Always a bug."""


class FileWriteError(ProflowError):
    """Writing a file failed after all retries."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not write {path}{detail}")


class BundleWriteError(FileWriteError):
    """Writing a playlist bundle failed; no partial file was left behind."""
