"""A bounded, first-in first-out log of proposal and RFP changes."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

MAX_CHANGE_LOG_LENGTH = 50

_KINDS = ("Proposal", "RFP")


@dataclass(frozen=True)
class ChangeLogType:
    """What changed: a proposal or an RFP, with its id."""

    kind: str
    id: int

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise ValueError(f"Unknown change log type: {self.kind!r}")


@dataclass(frozen=True)
class ChangeLog:
    block_id: int
    block_timestamp: int
    change_log_type: ChangeLogType


class ChangeLogQueue:
    """Keeps the most recent changes, dropping the oldest beyond the limit."""

    def __init__(self, entries: list[ChangeLog] | None = None) -> None:
        self._entries: deque[ChangeLog] = deque(entries or (), maxlen=MAX_CHANGE_LOG_LENGTH)

    def add(self, change_log_type: ChangeLogType, block_id: int, block_timestamp: int) -> ChangeLog:
        entry = ChangeLog(block_id, block_timestamp, change_log_type)
        self._entries.append(entry)
        return entry

    def entries(self) -> list[ChangeLog]:
        return list(self._entries)

    def since(self, block_id: int) -> list[ChangeLog]:
        """Entries recorded at a block strictly after the given one."""
        return [entry for entry in self._entries if entry.block_id > block_id]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChangeLog]:
        return iter(list(self._entries))