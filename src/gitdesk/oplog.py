"""Bounded, timestamped operation log.

The operation log is the human-readable activity feed shown to the user. It
is plain text, one ``HH:MM:SS – message`` line per entry, and it stays within
a character budget by evicting the oldest whole lines.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Final

DEFAULT_MAX_CHARS: Final = 10_000
DEFAULT_MAX_LINES: Final = 1_000

CLEARED_MESSAGE: Final = "Log cleared"


class OperationLog:
    """Append-only text log with whole-line eviction.

    Before an entry is appended, if the log would exceed ``max_chars`` or
    ``max_lines``, the content is cut down to its most recent non-empty lines
    and then further oldest lines are dropped until the entry fits. The log
    therefore never exceeds its budget by more than the single newest entry.

    Attributes:
        max_chars: Character budget.
        max_lines: Maximum number of non-empty lines kept.

    Example:
        >>> log = OperationLog(clock=lambda: datetime(2024, 1, 1, 9, 30))
        >>> log.append("Opened repo")
        >>> log.text
        '09:30:00 – Opened repo\\n'
    """

    __slots__: Final = ("_clock", "_text", "max_chars", "max_lines")

    def __init__(
        self,
        *,
        max_chars: int = DEFAULT_MAX_CHARS,
        max_lines: int = DEFAULT_MAX_LINES,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if max_chars <= 0 or max_lines <= 0:
            msg = "max_chars and max_lines must be positive"
            raise ValueError(msg)
        self.max_chars: int = max_chars
        self.max_lines: int = max_lines
        self._clock: Callable[[], datetime] = clock
        self._text: str = ""

    @property
    def text(self) -> str:
        """Full log content."""
        return self._text

    @property
    def line_count(self) -> int:
        """Number of non-empty lines in the log."""
        return len(self._non_empty_lines())

    def __len__(self) -> int:
        return len(self._text)

    def append(self, message: str) -> None:
        """Append a timestamped entry, evicting old lines if needed."""
        entry = f"{self._clock():%H:%M:%S} – {message}\n"
        entry_lines = sum(1 for line in entry.splitlines() if line.strip())

        over_chars = len(self._text) + len(entry) > self.max_chars
        over_lines = self.line_count + entry_lines > self.max_lines
        if over_chars or over_lines:
            self._trim(len(entry), entry_lines)

        self._text += entry

    def last_lines(self, n: int) -> str:
        """Return the last ``n`` non-empty lines joined by newlines."""
        if n <= 0:
            return ""
        return "\n".join(self._non_empty_lines()[-n:])

    def clear(self) -> None:
        """Discard all entries and record that the log was cleared."""
        self._text = ""
        self.append(CLEARED_MESSAGE)

    def _non_empty_lines(self) -> list[str]:
        return [line for line in self._text.splitlines() if line.strip()]

    def _trim(self, entry_chars: int, entry_lines: int) -> None:
        keep = max(self.max_lines - entry_lines, 0)
        lines = self._non_empty_lines()[-keep:] if keep else []

        size = sum(len(line) + 1 for line in lines)
        start = 0
        while start < len(lines) and size + entry_chars > self.max_chars:
            size -= len(lines[start]) + 1
            start += 1

        self._text = "".join(f"{line}\n" for line in lines[start:])
