"""Template categories and their file naming convention."""

from enum import Enum

PRO_EXTENSION = ".pro"
PLAYLIST_EXTENSION = ".proplaylist"


class TemplateType(Enum):
    """Content category selecting which template skeleton to use."""
    SCRIPTURE = "scripture"
    SONG = "song"
    INFO = "info"

    @property
    def filename(self) -> str:
        """Canonical template file name, e.g. ``__template_song__.pro``."""
        return f"__template_{self.value}__{PRO_EXTENSION}"

    @property
    def legacy_filename(self) -> str:
        """Older naming still found in some libraries, e.g. ``__template__song.pro``."""
        return f"__template__{self.value}{PRO_EXTENSION}"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_string(cls, value: str) -> "TemplateType":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown template type '{value}' (expected one of: {choices})")
