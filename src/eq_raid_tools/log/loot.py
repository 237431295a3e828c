"""
Ordered loot event collection.
"""

from typing import List

from .models import LootEvent


class LootCollector:
    """Append-only list of loot events; duplicates are kept."""

    def __init__(self) -> None:
        self._events: List[LootEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: LootEvent) -> None:
        self._events.append(event)

    def events(self) -> List[LootEvent]:
        return list(self._events)
