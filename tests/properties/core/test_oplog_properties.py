"""Property-based tests for OperationLog bounds.

- Size: the log never exceeds its character budget by more than the newest entry
- Lines: the log never holds more than ``max_lines`` non-empty lines
- Recency: the newest entry is always the last line
"""

from datetime import datetime
from string import ascii_letters, digits, punctuation

from hypothesis import given, strategies as st

from gitdesk.oplog import OperationLog

_FIXED = datetime(2024, 5, 17, 9, 30, 15)

# No characters that str.splitlines() treats as line boundaries
messages = st.text(alphabet=ascii_letters + digits + punctuation + " ", max_size=80)


def _log(max_chars: int, max_lines: int) -> OperationLog:
    return OperationLog(max_chars=max_chars, max_lines=max_lines, clock=lambda: _FIXED)


@given(
    max_chars=st.integers(min_value=1, max_value=400),
    max_lines=st.integers(min_value=1, max_value=20),
    entries=st.lists(messages, max_size=60),
)
def test_log_stays_within_budget(max_chars: int, max_lines: int, entries: list[str]) -> None:
    log = _log(max_chars, max_lines)

    for message in entries:
        log.append(message)
        entry = f"09:30:15 – {message}\n"

        assert log.text.endswith(entry)
        assert len(log) <= max(max_chars, len(entry))
        assert log.line_count <= max_lines


@given(entries=st.lists(messages, min_size=1, max_size=30))
def test_large_budget_keeps_everything(entries: list[str]) -> None:
    log = _log(1_000_000, 1_000)

    for message in entries:
        log.append(message)

    assert log.line_count == len(entries)
    assert log.last_lines(1) == f"09:30:15 – {entries[-1]}"


@given(
    entries=st.lists(messages, max_size=30),
    n=st.integers(min_value=1, max_value=40),
)
def test_last_lines_is_suffix_of_log(entries: list[str], n: int) -> None:
    log = _log(2_000, 50)
    for message in entries:
        log.append(message)

    tail = log.last_lines(n)

    assert len(tail.splitlines()) == min(n, log.line_count)
    assert log.text.rstrip("\n").endswith(tail)


@given(entries=st.lists(messages, max_size=30))
def test_clear_leaves_single_marker(entries: list[str]) -> None:
    log = _log(500, 10)
    for message in entries:
        log.append(message)

    log.clear()

    assert log.text == "09:30:15 – Log cleared\n"
