import logging
import os
import threading
from typing import Any, Callable, Generator, Generic, TypeVar

from typing_extensions import Never, TypeAlias

from . import config
from .buffer import Receiver, Sender, channel
from .error import (
    BufferEmptyError,
    BufferFullError,
    PoisonedError,
    ProcedureCompletedError,
    ProtocolViolation,
    ReentrancyError,
)
from .primitive import PENDING, Pending

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

Instance: TypeAlias = Generator[Pending, None, Never]
"""A running procedure: it only ever suspends, and never returns."""

Template: TypeAlias = Callable[[Receiver[Any], Sender[Any]], Instance]
"""Builds a procedure instance that reads its inputs from a receiver and
writes its outputs to a sender."""


class Driver(Generic[InputT, OutputT]):
    """Run one procedure instance in lockstep with its caller.

    Each call pushes one input into the instance's input buffer, advances
    the instance to its next suspend point, and returns the value the
    instance published to its output buffer. Constructing a driver does
    not run the instance.

    Drivers are not reentrant: calling a driver while another call is in
    flight (from another thread, or from within the procedure itself)
    raises ReentrancyError. Protocol violations are fatal; once one
    happens, or once the procedure raises an exception, every subsequent
    call raises PoisonedError.
    """

    def __init__(self, template: Template):
        self._input_tx, self._input_rx = channel()
        self._output_tx, self._output_rx = channel()
        self._instance: Instance = template(self._input_rx, self._output_tx)
        self._lock = threading.Lock()
        self._poisoned = False
        self.ticks = 0

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @property
    def idle(self) -> bool:
        """True when neither buffer holds a value."""
        return not (
            self._input_rx.buffer.occupied or self._output_rx.buffer.occupied
        )

    def __call__(self, input: InputT) -> OutputT:
        if not self._lock.acquire(blocking=False):
            self._violation(
                ReentrancyError("procedure called while a previous call is in flight")
            )
        try:
            return self._step(input)
        finally:
            self._lock.release()

    def _step(self, input: InputT) -> OutputT:
        if self._poisoned:
            raise PoisonedError("procedure instance is no longer usable")

        try:
            self._input_tx.send(input, block=False)
        except BufferFullError:
            self._violation(ReentrancyError("previous input was never consumed"))

        logger.debug("resuming %s (tick %d)", self._instance, self.ticks + 1)
        try:
            signal = next(self._instance)
        except StopIteration:
            self._violation(
                ProcedureCompletedError("procedure finished instead of suspending")
            )
        except BaseException:
            self._poisoned = True
            raise
        self.ticks += 1

        if signal is not PENDING:
            self._violation(
                ProtocolViolation(
                    f"procedure suspended with {signal!r} outside of a suspend point"
                )
            )

        try:
            output = self._output_rx.recv(block=False)
        except BufferEmptyError:
            self._violation(
                ProtocolViolation("procedure suspended without publishing a value")
            )
        logger.debug("%s produced %r", self._instance, output)
        return output

    def _violation(self, error: ProtocolViolation) -> Never:
        self._poisoned = True
        logger.critical("lockstep protocol violation: %s", error)
        if config.ABORT_ON_VIOLATION:
            os.abort()
        raise error
