"""Xcode-style object identifiers (24 uppercase hex characters)."""

from __future__ import annotations

import random
import re
from typing import Iterable, Optional, Set

ID_ALPHABET = "0123456789ABCDEF"
ID_LENGTH = 24

OBJECT_ID_PATTERN = re.compile(r"\b[0-9A-F]{24}\b")


def collect_object_ids(text: str) -> Set[str]:
    return set(OBJECT_ID_PATTERN.findall(text))


class IdAllocator:
    """Hand out ids that never repeat a reserved or already allocated one."""

    def __init__(self, reserved: Iterable[str] = (), rng: Optional[random.Random] = None):
        self._taken: Set[str] = set(reserved)
        self._rng = rng or random.Random()

    @classmethod
    def for_content(cls, content: str, rng: Optional[random.Random] = None) -> "IdAllocator":
        return cls(collect_object_ids(content), rng=rng)

    def _draw(self) -> str:
        return "".join(self._rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))

    def allocate(self) -> str:
        candidate = self._draw()
        while candidate in self._taken:
            candidate = self._draw()
        self._taken.add(candidate)
        return candidate

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._taken


__all__ = ["ID_ALPHABET", "ID_LENGTH", "IdAllocator", "OBJECT_ID_PATTERN", "collect_object_ids"]
