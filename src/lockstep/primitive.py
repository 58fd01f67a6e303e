class Pending:
    """Marker yielded to the driver when a procedure instance suspends."""

    def __repr__(self):
        return "PENDING"


PENDING = Pending()


class PendOnce:
    """A suspension unit that suspends exactly once.

    Driving it the first time flips its flag and yields PENDING, which stops
    the enclosing generator step. Driving it a second time completes it.
    A `yield from PendOnce()` therefore hands control back to the driver
    exactly once, no matter what the driver sends.
    """

    __slots__ = ("done",)

    def __init__(self):
        self.done = False

    def __iter__(self):
        return self

    def __next__(self) -> Pending:
        if not self.done:
            self.done = True
            return PENDING
        raise StopIteration

    def __repr__(self):
        return f"PendOnce(done={self.done})"


def pend_once() -> PendOnce:
    """Returns a fresh suspension unit."""
    return PendOnce()
