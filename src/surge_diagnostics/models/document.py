"""In-memory text document used by the reference host and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_LANGUAGE_ID = "surge"


def _split_lines(text: str) -> list[str]:
    # Matches editor semantics: a trailing newline yields a final empty line.
    lines = text.split("\n")
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass(eq=False)
class Document:
    """A live text buffer with a monotonically increasing version.

    Documents backed by a file have a ``path``; untitled buffers do not.
    Every call to ``set_text`` bumps the version and marks the buffer dirty.
    """

    uri: str
    text: str = ""
    path: Path | None = None
    language_id: str = DEFAULT_LANGUAGE_ID
    version: int = 1
    is_dirty: bool = False
    is_closed: bool = False
    _lines: list[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._lines = _split_lines(self.text)

    @classmethod
    def from_file(cls, path: Path, language_id: str = DEFAULT_LANGUAGE_ID) -> Document:
        """Open a document from disk."""
        resolved = path.resolve()
        return cls(
            uri=resolved.as_uri(),
            text=resolved.read_text(encoding="utf-8"),
            path=resolved,
            language_id=language_id,
        )

    @classmethod
    def untitled(
        cls, name: str, text: str = "", language_id: str = DEFAULT_LANGUAGE_ID
    ) -> Document:
        """Create an unsaved buffer with no backing file."""
        return cls(uri=f"untitled:{name}", text=text, language_id=language_id, is_dirty=bool(text))

    @property
    def scheme(self) -> str:
        return self.uri.split(":", 1)[0]

    @property
    def is_untitled(self) -> bool:
        return self.scheme == "untitled"

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_text(self) -> str:
        return self.text

    def line_at(self, line: int) -> str:
        """Return the text of a zero-based line, without its terminator.

        Raises:
            IndexError: If the line does not exist.
        """
        if line < 0 or line >= len(self._lines):
            raise IndexError(f"Line {line} out of range (0..{len(self._lines) - 1})")
        return self._lines[line]

    def set_text(self, text: str) -> None:
        """Replace the buffer content, bump the version and mark dirty."""
        self.text = text
        self._lines = _split_lines(text)
        self.version += 1
        self.is_dirty = True

    def save(self) -> None:
        """Write the buffer to its backing file and clear the dirty flag."""
        if self.path is None:
            raise ValueError(f"Document {self.uri} has no backing file")
        self.path.write_text(self.text, encoding="utf-8")
        self.is_dirty = False

    def close(self) -> None:
        self.is_closed = True
