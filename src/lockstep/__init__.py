"""Resumable procedures that run in lockstep with their caller.

A resumable procedure is written like a generator function that never
returns. Decorating it with @resumable turns it into a plain stateful
callable: each call supplies fresh arguments, which are bound to the
procedure's parameters, and returns the value of the next `yield` reached
by the procedure. Local variables are preserved between calls.

Example usage:

    import lockstep

    @lockstep.resumable
    def fib():
        x, y = 1, 1
        while True:
            yield x
            x, y = y, x + y

    print([fib() for _ in range(5)])  # [1, 1, 2, 3, 5]

    @lockstep.resumable
    def running_total(n):
        total = 0
        while True:
            total += n
            yield total

    print(running_total(2))  # 2
    print(running_total(3))  # 5

Procedures take at most three parameters and must loop forever; a procedure
that could return, or that uses `return`, `yield from`, `await` or a yield
inside a `try` statement, is rejected with a ShapeError when it is
decorated.
"""

from typing import Any, Callable, Iterator, TypeVar, overload

from .adapters import (
    Resumable,
    Resumable0,
    Resumable1,
    Resumable2,
    Resumable3,
    adapter_for_arity,
)
from .buffer import Receiver, Sender, channel
from .compile import CompiledProcedure, Parameter, compile_procedure
from .driver import Driver, Template
from .error import (
    BufferEmptyError,
    BufferFullError,
    LockstepError,
    NoSourceError,
    PoisonedError,
    ProcedureCompletedError,
    ProtocolViolation,
    ReentrancyError,
    ShapeError,
)
from .primitive import PENDING, PendOnce, pend_once

__all__ = [
    "BufferEmptyError",
    "BufferFullError",
    "CompiledProcedure",
    "Driver",
    "LockstepError",
    "NoSourceError",
    "PENDING",
    "Parameter",
    "PendOnce",
    "PoisonedError",
    "ProcedureCompletedError",
    "ProtocolViolation",
    "Receiver",
    "ReentrancyError",
    "Resumable",
    "Resumable0",
    "Resumable1",
    "Resumable2",
    "Resumable3",
    "Sender",
    "ShapeError",
    "Template",
    "adapter_for_arity",
    "channel",
    "compile_procedure",
    "pend_once",
    "resumable",
]


A1 = TypeVar("A1")
A2 = TypeVar("A2")
A3 = TypeVar("A3")
R = TypeVar("R")


@overload
def resumable(fn: Callable[[], Iterator[R]]) -> Resumable0[R]: ...


@overload
def resumable(fn: Callable[[A1], Iterator[R]]) -> Resumable1[A1, R]: ...


@overload
def resumable(fn: Callable[[A1, A2], Iterator[R]]) -> Resumable2[A1, A2, R]: ...


@overload
def resumable(
    fn: Callable[[A1, A2, A3], Iterator[R]]
) -> Resumable3[A1, A2, A3, R]: ...


@overload
def resumable(fn: Callable[..., Any]) -> Resumable: ...


def resumable(fn):
    """Compile a function into a resumable procedure and return a new
    callable running it.

    Each use of the decorator (or each call to resumable on the same
    function) creates an independent instance with its own state; the
    compilation itself is cached on the function.

    Args:
        fn: A function with zero to three parameters whose body loops
            forever and suspends with `yield`.

    Returns:
        Resumable: A stateful callable taking the function's parameters.

    Raises:
        ShapeError: The function cannot be made resumable.
        NoSourceError: The function source is not available.
    """
    return compile_procedure(fn).instantiate()
