from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from .driver import Driver, Template

if TYPE_CHECKING:
    from .compile import CompiledProcedure

A1 = TypeVar("A1")
A2 = TypeVar("A2")
A3 = TypeVar("A3")
R = TypeVar("R")


class Resumable:
    """A stateful callable running a procedure instance.

    Every call feeds its arguments to the procedure and returns the value
    of the next suspend point the procedure reaches. Subclasses fix the
    number of arguments and pack them into the single input value the
    driver hands to the procedure.
    """

    arity: ClassVar[int]

    def __init__(
        self, template: Template, procedure: CompiledProcedure | None = None
    ):
        self.template = template
        self.procedure = procedure
        self.driver: Driver = Driver(template)
        if procedure is not None:
            self.__signature__ = procedure.signature
            self.__doc__ = procedure.doc
            self.__qualname__ = procedure.qualname
        else:
            self.__qualname__ = getattr(
                template, "__qualname__", type(self).__qualname__
            )

    @property
    def __name__(self):
        if self.procedure is not None:
            return self.procedure.name
        return getattr(self.template, "__name__", type(self).__name__)

    def fresh(self):
        """Returns a new callable running a separate instance of the same
        procedure, from its beginning."""
        return type(self)(self.template, self.procedure)

    def __repr__(self):
        return f"{type(self).__name__}({self.__qualname__}, ticks={self.driver.ticks})"


class Resumable0(Resumable, Generic[R]):
    """Adapter for procedures without parameters. The procedure receives
    None at every resumption."""

    arity = 0

    def __call__(self) -> R:
        return self.driver(None)


class Resumable1(Resumable, Generic[A1, R]):
    """Adapter for procedures with one parameter."""

    arity = 1

    def __call__(self, a1: A1, /) -> R:
        return self.driver(a1)


class Resumable2(Resumable, Generic[A1, A2, R]):
    """Adapter for procedures with two parameters. The arguments reach the
    procedure as a (a1, a2) tuple."""

    arity = 2

    def __call__(self, a1: A1, a2: A2, /) -> R:
        return self.driver((a1, a2))


class Resumable3(Resumable, Generic[A1, A2, A3, R]):
    """Adapter for procedures with three parameters. The arguments reach
    the procedure as a (a1, a2, a3) tuple."""

    arity = 3

    def __call__(self, a1: A1, a2: A2, a3: A3, /) -> R:
        return self.driver((a1, a2, a3))


_ADAPTERS: dict[int, type[Resumable]] = {
    0: Resumable0,
    1: Resumable1,
    2: Resumable2,
    3: Resumable3,
}


def adapter_for_arity(arity: int) -> type[Resumable]:
    """Returns the adapter class for procedures with the given number of
    parameters.

    Raises:
        ValueError: No adapter supports this many parameters.
    """
    try:
        return _ADAPTERS[arity]
    except KeyError:
        raise ValueError(
            f"no adapter for procedures with {arity} parameters"
        ) from None
