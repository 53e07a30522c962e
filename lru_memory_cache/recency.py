from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from lru_memory_cache.errors import StaleHandleError
from lru_memory_cache.models import Blob, Entry, Handle

NIL = -1


@dataclass(slots=True)
class _Slot:
    generation: int = 0
    live: bool = False
    key: str = ""
    value: Blob = b""
    size: int = 0
    prev: int = NIL
    next: int = NIL


def _default_slots() -> list[_Slot]:
    return []


def _default_free() -> list[int]:
    return []


@dataclass(slots=True)
class RecencyList:
    """Arena of entry slots ordered by an intrusive doubly-linked list.

    Handles stay valid across any insertion or removal elsewhere in the list.
    Releasing a slot bumps its generation, so a handle kept past its entry's
    removal resolves to StaleHandleError instead of to whatever entry reuses
    the slot.
    """

    _slots: list[_Slot] = field(default_factory=_default_slots)
    _free: list[int] = field(default_factory=_default_free)
    _head: int = NIL
    _tail: int = NIL
    _length: int = 0

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Entry]:
        for slot_no in self._walk():
            slot = self._slots[slot_no]
            yield Entry(key=slot.key, value=slot.value, size=slot.size)

    def handles(self) -> Iterator[Handle]:
        for slot_no in self._walk():
            yield Handle(slot=slot_no, generation=self._slots[slot_no].generation)

    def head(self) -> Handle | None:
        return self._handle_at(self._head)

    def tail(self) -> Handle | None:
        return self._handle_at(self._tail)

    def previous(self, handle: Handle) -> Handle | None:
        slot_no = self._resolve(handle)
        return self._handle_at(self._slots[slot_no].prev)

    def is_valid(self, handle: Handle) -> bool:
        if not 0 <= handle.slot < len(self._slots):
            return False
        slot = self._slots[handle.slot]
        return slot.live and slot.generation == handle.generation

    def entry(self, handle: Handle) -> Entry:
        slot = self._slots[self._resolve(handle)]
        return Entry(key=slot.key, value=slot.value, size=slot.size)

    def push_front(self, key: str, value: Blob, size: int) -> Handle:
        slot_no = self._allocate()
        slot = self._slots[slot_no]
        slot.live = True
        slot.key = key
        slot.value = value
        slot.size = size
        self._link_front(slot_no)
        self._length += 1
        return Handle(slot=slot_no, generation=slot.generation)

    def move_to_front(self, handle: Handle) -> None:
        slot_no = self._resolve(handle)
        if slot_no == self._head:
            return
        self._unlink(slot_no)
        self._link_front(slot_no)

    def replace_to_front(self, handle: Handle, value: Blob, size: int) -> int:
        """Swap in a new value and relocate to the head; returns the old size."""
        slot_no = self._resolve(handle)
        slot = self._slots[slot_no]
        old_size = slot.size
        slot.value = value
        slot.size = size
        if slot_no != self._head:
            self._unlink(slot_no)
            self._link_front(slot_no)
        return old_size

    def remove(self, handle: Handle) -> Entry:
        slot_no = self._resolve(handle)
        slot = self._slots[slot_no]
        entry = Entry(key=slot.key, value=slot.value, size=slot.size)
        self._unlink(slot_no)
        self._release(slot_no)
        self._length -= 1
        return entry

    def pop_back(self) -> Entry | None:
        handle = self.tail()
        if handle is None:
            return None
        return self.remove(handle)

    def clear(self) -> None:
        for slot_no in list(self._walk()):
            self._release(slot_no)
        self._head = NIL
        self._tail = NIL
        self._length = 0

    def _walk(self) -> Iterator[int]:
        slot_no = self._head
        while slot_no != NIL:
            next_no = self._slots[slot_no].next
            yield slot_no
            slot_no = next_no

    def _handle_at(self, slot_no: int) -> Handle | None:
        if slot_no == NIL:
            return None
        return Handle(slot=slot_no, generation=self._slots[slot_no].generation)

    def _resolve(self, handle: Handle) -> int:
        if not self.is_valid(handle):
            raise StaleHandleError(
                f"Handle {handle.slot}@{handle.generation} no longer refers to an entry"
            )
        return handle.slot

    def _allocate(self) -> int:
        if self._free:
            return self._free.pop()
        self._slots.append(_Slot())
        return len(self._slots) - 1

    def _release(self, slot_no: int) -> None:
        slot = self._slots[slot_no]
        slot.generation += 1
        slot.live = False
        slot.key = ""
        slot.value = b""
        slot.size = 0
        slot.prev = NIL
        slot.next = NIL
        self._free.append(slot_no)

    def _link_front(self, slot_no: int) -> None:
        slot = self._slots[slot_no]
        slot.prev = NIL
        slot.next = self._head
        if self._head != NIL:
            self._slots[self._head].prev = slot_no
        self._head = slot_no
        if self._tail == NIL:
            self._tail = slot_no

    def _unlink(self, slot_no: int) -> None:
        slot = self._slots[slot_no]
        if slot.prev != NIL:
            self._slots[slot.prev].next = slot.next
        else:
            self._head = slot.next
        if slot.next != NIL:
            self._slots[slot.next].prev = slot.prev
        else:
            self._tail = slot.prev
        slot.prev = NIL
        slot.next = NIL
