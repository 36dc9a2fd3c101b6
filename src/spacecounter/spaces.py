import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from spacecounter.errors import UnknownCountMode


class CountMode(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


@dataclass
class Space:
    id: str
    count: int = 0


class SpaceTable:
    """Counters keyed by space code, created lazily with count 0.

    ``adjust`` is an atomic read-modify-write under ``_lock``. Counts are
    clamped at zero after every single adjustment.
    """

    def __init__(self, reject_unknown_modes: bool = False):
        self.reject_unknown_modes = reject_unknown_modes
        self._spaces: dict[str, Space] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._spaces)

    def _get_or_create(self, space_code: str) -> Space:
        space = self._spaces.get(space_code)
        if space is None:
            space = self._spaces[space_code] = Space(id=space_code)
        return space

    async def ensure(self, space_code: str) -> Space:
        async with self._lock:
            space = self._get_or_create(space_code)
            return Space(id=space.id, count=space.count)

    async def get(self, space_code: str) -> Optional[Space]:
        async with self._lock:
            space = self._spaces.get(space_code)
            return Space(id=space.id, count=space.count) if space else None

    async def adjust(self, space_code: str, mode: str, value: int) -> int:
        try:
            mode = CountMode(mode)
        except ValueError:
            if self.reject_unknown_modes:
                raise UnknownCountMode(mode) from None

        async with self._lock:
            space = self._get_or_create(space_code)
            if mode is CountMode.RELATIVE:
                space.count = max(space.count + value, 0)
            elif mode is CountMode.ABSOLUTE:
                space.count = max(value, 0)
            # Any other mode reads the count back unchanged
            return space.count
