from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol


class IdentitySource(Protocol):
    def next_id(self) -> str: ...

    def now(self) -> datetime: ...


class UuidIdentitySource:
    """Random uuid4 ids and the real UTC clock."""

    def next_id(self) -> str:
        return str(uuid.uuid4())

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SequentialIdentitySource:
    """Counter ids and a frozen clock, so repeated runs produce identical output."""

    def __init__(self, prefix: str = "id", start: int = 1, clock: datetime | None = None) -> None:
        self.prefix = prefix
        self._counter = start
        self._clock = clock or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def next_id(self) -> str:
        value = f"{self.prefix}-{self._counter}"
        self._counter += 1
        return value

    def now(self) -> datetime:
        return self._clock
