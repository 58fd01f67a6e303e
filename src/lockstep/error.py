class LockstepError(Exception):
    """Base class for lockstep exceptions."""


class ShapeError(LockstepError, SyntaxError):
    """The procedure cannot be compiled: its parameter list or body uses a
    construct that would break the suspension protocol.

    Shape errors are raised when a procedure is compiled, never while it
    runs. They carry the location of the offending construct like any other
    SyntaxError."""

    def __init__(
        self,
        msg: str,
        filename: str | None = None,
        lineno: int | None = None,
        offset: int | None = None,
        text: str | None = None,
    ):
        SyntaxError.__init__(self, msg, (filename, lineno, offset, text))


class NoSourceError(LockstepError, RuntimeError):
    """Function source code is not available."""


class ProtocolViolation(LockstepError, RuntimeError):
    """The lockstep protocol between a driver and its procedure instance was
    broken. These errors indicate a usage or transformer bug rather than a
    data error, and the instance cannot be used afterwards."""


class ReentrancyError(ProtocolViolation):
    """A resumable procedure was called while another call to the same
    instance was still in flight."""


class ProcedureCompletedError(ProtocolViolation):
    """A procedure instance ran to completion instead of suspending."""


class PoisonedError(ProtocolViolation):
    """A procedure instance was called after it raised an exception or
    broke the protocol."""


class BufferFullError(LockstepError):
    """A value was sent to a buffer whose slot is still occupied."""


class BufferEmptyError(LockstepError):
    """A value was received from a buffer whose slot is empty."""
