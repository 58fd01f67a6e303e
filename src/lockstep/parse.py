import ast
import inspect
import textwrap
from dataclasses import dataclass
from types import FunctionType
from typing import cast

from .error import NoSourceError, ShapeError


@dataclass
class ParsedFunction:
    """The AST of a function along with what is needed to report
    diagnostics against its original source.

    Attributes:
        module: Module the function definition was parsed from.
        fn_def: The function definition, with decorators removed.
        filename: File the function was defined in.
        lines: Original (not dedented) source lines of the function.
        first_lineno: Line number of the first source line in the file.
        indent: Number of columns removed when dedenting the source.
    """

    module: ast.Module
    fn_def: ast.FunctionDef | ast.AsyncFunctionDef
    filename: str
    lines: list[str]
    first_lineno: int
    indent: int

    def error(self, msg: str, node: ast.AST | None = None) -> ShapeError:
        """Build a diagnostic pointing at a node of the function."""
        if node is None:
            node = self.fn_def
        lineno = getattr(node, "lineno", None)
        offset = getattr(node, "col_offset", None)
        text = None
        if lineno is not None:
            index = lineno - self.first_lineno
            if 0 <= index < len(self.lines):
                text = self.lines[index]
        if offset is not None:
            offset += self.indent + 1
        return ShapeError(msg, self.filename, lineno, offset, text)


def parse_function(fn: FunctionType) -> ParsedFunction:
    """Parse an AST from a function. The function source must be available.

    Line numbers in the resulting AST match the file the function was
    defined in, so that compiled code and diagnostics point at the original
    source.

    Args:
        fn: The function to parse.

    Raises:
        NoSourceError: If the function source cannot be retrieved.
        ShapeError: If the source is not a function definition.
    """
    if fn.__name__ == "<lambda>":
        code = fn.__code__
        raise ShapeError(
            "lambdas cannot be resumable procedures",
            code.co_filename,
            code.co_firstlineno,
        )

    try:
        lines, first_lineno = inspect.getsourcelines(fn)
        filename = inspect.getsourcefile(fn) or fn.__code__.co_filename
    except TypeError as e:
        # The source is not always available. For example, the function
        # may be defined in a C extension, or may be a builtin function.
        raise NoSourceError(f"no source for {fn!r}") from e
    except OSError as e:
        raise NoSourceError(f"no source for {fn!r}") from e

    src = "".join(lines)
    dedented = textwrap.dedent(src)
    indent = len(lines[0]) - len(lines[0].lstrip()) if dedented != src else 0

    try:
        module = ast.parse(dedented, filename=filename)
        ast.increment_lineno(module, first_lineno - 1)
        node = module.body[0]
    except IndentationError:
        # A multi-line string with lines indented less than the definition
        # prevents dedenting. Parse the source as is, nested in a block.
        module = ast.parse("if True:\n" + src, filename=filename)
        ast.increment_lineno(module, first_lineno - 2)
        node = cast(ast.If, module.body[0]).body[0]
        indent = 0

    parsed = ParsedFunction(
        module=module,
        fn_def=node,  # type: ignore[arg-type]
        filename=filename,
        lines=[line.rstrip("\n") for line in lines],
        first_lineno=first_lineno,
        indent=indent,
    )

    fn_def = node
    if not isinstance(fn_def, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise parsed.error("source is not a function definition", fn_def)

    fn_def.decorator_list = []
    return parsed
