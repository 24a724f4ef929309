"""Generation-checked storage for the boxes of one image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from .models import Box

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoxHandle:
    """
    Stable identity of a box in a BoxStore.

    A handle only resolves while its slot still holds the same generation;
    once the box is removed the handle misses instead of pointing at
    whichever box reuses the slot.
    """

    slot: int
    generation: int


@dataclass
class _Slot:
    generation: int = 0
    box: Optional[Box] = None


class BoxStore:
    """
    Ordered collection of boxes addressed by BoxHandle.

    Iteration follows creation order. Slots freed by removals are reused,
    but a box stored in a reused slot still goes to the end of the order.
    """

    def __init__(self, boxes: Optional[Iterable[Box]] = None) -> None:
        self._slots: List[_Slot] = []
        self._free: List[int] = []
        self._order: List[int] = []
        for box in boxes or []:
            self.add(box)

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Box]:
        for slot in self._order:
            yield self._slots[slot].box

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, BoxHandle) and self.get(handle) is not None

    def add(self, box: Box) -> BoxHandle:
        """
        Append a box.

        Args:
            box: Box to store

        Returns:
            Handle identifying the stored box
        """
        if self._free:
            slot_index = self._free.pop()
            slot = self._slots[slot_index]
        else:
            slot_index = len(self._slots)
            slot = _Slot()
            self._slots.append(slot)

        slot.box = box
        self._order.append(slot_index)
        return BoxHandle(slot_index, slot.generation)

    def get(self, handle: Optional[BoxHandle]) -> Optional[Box]:
        """Resolve a handle, or return None if it is stale."""
        if handle is None or not (0 <= handle.slot < len(self._slots)):
            return None
        slot = self._slots[handle.slot]
        if slot.generation != handle.generation:
            return None
        return slot.box

    def remove(self, handle: Optional[BoxHandle]) -> Optional[Box]:
        """
        Remove a box by handle.

        Args:
            handle: Handle of the box to remove

        Returns:
            The removed box, or None if the handle was stale
        """
        box = self.get(handle)
        if box is None:
            return None

        slot = self._slots[handle.slot]
        slot.box = None
        slot.generation += 1
        self._order.remove(handle.slot)
        self._free.append(handle.slot)
        return box

    def clear(self) -> None:
        """Remove all boxes, invalidating every outstanding handle."""
        for slot_index in self._order:
            slot = self._slots[slot_index]
            slot.box = None
            slot.generation += 1
            self._free.append(slot_index)
        self._order.clear()

    def handle_at(self, index: int) -> Optional[BoxHandle]:
        """Get the handle of the box at a position in creation order."""
        if not (0 <= index < len(self._order)):
            return None
        slot_index = self._order[index]
        return BoxHandle(slot_index, self._slots[slot_index].generation)

    def index_of(self, handle: Optional[BoxHandle]) -> Optional[int]:
        """Get the current position of a box in creation order."""
        if self.get(handle) is None:
            return None
        return self._order.index(handle.slot)

    def items(self) -> Iterator[Tuple[BoxHandle, Box]]:
        """Iterate (handle, box) pairs in creation order."""
        for slot_index in self._order:
            slot = self._slots[slot_index]
            yield BoxHandle(slot_index, slot.generation), slot.box

    def boxes(self) -> List[Box]:
        return list(self)
