"""Single-slot rendezvous buffers.

A buffer holds at most one value. The sending half blocks while the slot is
occupied and the receiving half blocks until a value is available, which
makes a pair of buffers (one per direction) enough to run a procedure in
lockstep with its caller.
"""

import queue
from typing import Generic, TypeVar

from .error import BufferEmptyError, BufferFullError

T = TypeVar("T")


class Buffer(Generic[T]):
    """A handoff slot of capacity one."""

    def __init__(self):
        self._slot: queue.Queue[T] = queue.Queue(maxsize=1)

    def put(self, value: T, block: bool = True):
        try:
            self._slot.put(value, block=block)
        except queue.Full:
            raise BufferFullError("buffer slot is still occupied") from None

    def get(self, block: bool = True) -> T:
        try:
            return self._slot.get(block=block)
        except queue.Empty:
            raise BufferEmptyError("buffer slot is empty") from None

    @property
    def occupied(self) -> bool:
        return self._slot.full()


class Sender(Generic[T]):
    """Writing half of a buffer."""

    def __init__(self, buffer: Buffer[T]):
        self.buffer = buffer

    def send(self, value: T, block: bool = True):
        """Place a value in the slot.

        Args:
            value: The value to hand off.
            block: Wait for the slot to be free. When false, an occupied
                slot raises BufferFullError.
        """
        self.buffer.put(value, block=block)

    def __repr__(self):
        return f"Sender(occupied={self.buffer.occupied})"


class Receiver(Generic[T]):
    """Reading half of a buffer."""

    def __init__(self, buffer: Buffer[T]):
        self.buffer = buffer

    def recv(self, block: bool = True) -> T:
        """Take the value out of the slot.

        Args:
            block: Wait for a value. When false, an empty slot raises
                BufferEmptyError.
        """
        return self.buffer.get(block=block)

    def __repr__(self):
        return f"Receiver(occupied={self.buffer.occupied})"


def channel() -> tuple[Sender[T], Receiver[T]]:
    """Create a single-slot buffer and return its two halves."""
    buffer: Buffer[T] = Buffer()
    return Sender(buffer), Receiver(buffer)
