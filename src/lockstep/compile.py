import ast
import inspect
import logging
import textwrap
from dataclasses import dataclass, field
from types import CellType, CodeType, FunctionType
from typing import Any, cast

from . import config
from .adapters import Resumable, adapter_for_arity
from .driver import Template
from .generator import count_suspend_points, empty_generator
from .parse import parse_function
from .primitive import pend_once
from .template import rewrite_template
from .transform import PEND_ONCE, RECEIVER, SENDER, transform_body
from .validate import validate_procedure

EMPTY_GENERATOR = "_lockstep_empty_generator"
FACTORY = "_lockstep_factory"

_HELPERS: dict[str, Any] = {
    PEND_ONCE: pend_once,
    EMPTY_GENERATOR: empty_generator,
}


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameter:
    """A parameter of a resumable procedure.

    Attributes:
        name: Name of the parameter.
        annotation: The annotation the parameter was declared with, or
            inspect.Parameter.empty.
    """

    name: str
    annotation: Any = inspect.Parameter.empty


@dataclass(frozen=True)
class CompiledProcedure:
    """The result of compiling a resumable procedure.

    The template is a generator function taking an input receiver and an
    output sender. Each call to it creates a new procedure instance, which
    is run by a Driver.
    """

    name: str
    qualname: str
    module: str
    doc: str | None
    parameters: tuple[Parameter, ...]
    returns: Any
    template: Template = field(repr=False)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def signature(self) -> inspect.Signature:
        return inspect.Signature(
            [
                inspect.Parameter(
                    p.name,
                    inspect.Parameter.POSITIONAL_ONLY,
                    annotation=p.annotation,
                )
                for p in self.parameters
            ],
            return_annotation=self.returns,
        )

    def instantiate(self) -> Resumable:
        """Create a new, independent callable running this procedure."""
        adapter = adapter_for_arity(self.arity)
        return adapter(self.template, procedure=self)


def compile_procedure(fn: FunctionType) -> CompiledProcedure:
    """Compile a function into a resumable procedure.

    The function is written like a generator: `yield value` marks a
    suspend point that hands value to the caller. Unlike a generator, the
    procedure's parameters are rebound to the caller's arguments every
    time execution resumes after a yield, and the procedure must never
    finish.

    Example:

        def echo(x):
            while True:
                yield x

        procedure = compile_procedure(echo)
        f = procedure.instantiate()
        print(f(1))  # 1
        print(f(2))  # 2

    Args:
        fn: The function to compile.

    Returns:
        CompiledProcedure: The compiled procedure.

    Raises:
        TypeError: If fn is not a Python function.
        NoSourceError: If the function source is not available.
        ShapeError: If the function cannot be made resumable.
    """
    if not isinstance(fn, FunctionType):
        raise TypeError(f"cannot compile {fn!r}: not a Python function")

    cached = fn.__dict__.get("_lockstep_cache")
    if cached is not None:
        return cached

    logger.debug("compiling procedure %s", fn.__qualname__)

    parsed = parse_function(fn)
    params = validate_procedure(parsed)
    fn_def = cast(ast.FunctionDef, parsed.fn_def)

    if config.TRACE:
        print("\n-------------------------------------------------")
        print("[LOCKSTEP] COMPILING:")
        print(textwrap.dedent("\n".join(parsed.lines)).rstrip())

    suspend_points = count_suspend_points(fn_def)
    body = transform_body(fn_def.body, params)

    # A procedure without suspend points would not be a generator; make it
    # one so that the driver can step it.
    if suspend_points == 0:
        empty = ast.Name(id=EMPTY_GENERATOR, ctx=ast.Load())
        g = ast.Call(func=empty, args=[], keywords=[])
        body.insert(0, ast.Expr(ast.YieldFrom(value=g)))

    fn_def.body = body
    fn_def.args = ast.arguments(
        posonlyargs=[],
        args=[ast.arg(arg=RECEIVER), ast.arg(arg=SENDER)],
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )
    fn_def.returns = None

    # Nest the template in a factory that declares the original free
    # variables and the runtime helpers, so that they compile as closure
    # variables of the template.
    freevars = list(fn.__code__.co_freevars)
    factory_params = ", ".join(freevars + list(_HELPERS))
    root = ast.Module(
        body=rewrite_template(
            f"""
            def {FACTORY}({factory_params}):
                __template__
                return {fn_def.name}
            """,
            __template__=fn_def,
        ),
        type_ignores=[],
    )
    ast.copy_location(root.body[0], fn_def)
    ast.fix_missing_locations(root)

    if config.TRACE:
        print("\n[LOCKSTEP] RESULT:")
        print(ast.unparse(root))

    code = compile(root, filename=parsed.filename, mode="exec")
    template_code = _find_code(_find_code(code, FACTORY), fn_def.name)
    template_code = template_code.replace(co_qualname=fn.__qualname__)

    original_cells = dict(zip(freevars, fn.__closure__ or ()))
    cells = []
    for name in template_code.co_freevars:
        try:
            cells.append(original_cells[name])
        except KeyError:
            cells.append(CellType(_HELPERS[name]))

    template = FunctionType(
        template_code, fn.__globals__, fn.__name__, None, tuple(cells) or None
    )
    template.__qualname__ = fn.__qualname__
    template.__module__ = fn.__module__

    annotations = getattr(fn, "__annotations__", {})
    procedure = CompiledProcedure(
        name=fn.__name__,
        qualname=fn.__qualname__,
        module=fn.__module__,
        doc=fn.__doc__,
        parameters=tuple(
            Parameter(name, annotations.get(name, inspect.Parameter.empty))
            for name in params
        ),
        returns=annotations.get("return", inspect.Signature.empty),
        template=template,
    )

    logger.debug(
        "compiled procedure %s with %d parameter(s) and %d suspend point(s)",
        fn.__qualname__,
        len(params),
        suspend_points,
    )

    setattr(fn, "_lockstep_cache", procedure)
    return procedure


def _find_code(code: CodeType, name: str) -> CodeType:
    for const in code.co_consts:
        if isinstance(const, CodeType) and const.co_name == name:
            return const
    raise LookupError(f"code object {name!r} not found in {code.co_name!r}")
