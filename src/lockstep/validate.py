import ast

from .parse import ParsedFunction

MAX_PARAMETERS = 3

RESERVED_PREFIX = "_lockstep_"


def validate_procedure(parsed: ParsedFunction) -> list[str]:
    """Check that a parsed function can be compiled into a resumable
    procedure.

    Args:
        parsed: The parsed function.

    Returns:
        list[str]: Names of the procedure parameters, in order.

    Raises:
        ShapeError: The parameter list or the body uses a construct that
            breaks the suspension protocol.
    """
    fn_def = parsed.fn_def
    if isinstance(fn_def, ast.AsyncFunctionDef):
        raise parsed.error("resumable procedures cannot be async functions")

    params = _validate_parameters(parsed)

    checker = ShapeChecker(parsed, params)
    for stmt in fn_def.body:
        checker.visit(stmt)

    for node in ast.walk(fn_def):
        _check_reserved(parsed, node)

    if completes(fn_def.body):
        last = fn_def.body[-1]
        raise parsed.error(
            "resumable procedures must never finish; the body can reach its end"
            " (loop forever with `while True:`)",
            last,
        )

    return params


def _validate_parameters(parsed: ParsedFunction) -> list[str]:
    args = parsed.fn_def.args
    if args.posonlyargs:
        raise parsed.error(
            "positional-only parameters are not supported", args.posonlyargs[0]
        )
    if args.vararg is not None:
        raise parsed.error("*args parameters are not supported", args.vararg)
    if args.kwonlyargs:
        raise parsed.error(
            "keyword-only parameters are not supported", args.kwonlyargs[0]
        )
    if args.kwarg is not None:
        raise parsed.error("**kwargs parameters are not supported", args.kwarg)
    if args.defaults:
        raise parsed.error("parameter defaults are not supported", args.defaults[0])
    if len(args.args) > MAX_PARAMETERS:
        raise parsed.error(
            f"resumable procedures take at most {MAX_PARAMETERS} parameters,"
            f" got {len(args.args)}",
            args.args[MAX_PARAMETERS],
        )
    return [arg.arg for arg in args.args]


def _check_reserved(parsed: ParsedFunction, node: ast.AST):
    match node:
        case ast.Name(id=name) | ast.arg(arg=name):
            names = [name]
        case ast.FunctionDef(name=name) | ast.AsyncFunctionDef(name=name):
            names = [name]
        case ast.ClassDef(name=name):
            names = [name]
        case ast.Global(names=names) | ast.Nonlocal(names=names):
            pass
        case _:
            return
    for name in names:
        if name.startswith(RESERVED_PREFIX):
            raise parsed.error(f"identifier {name!r} is reserved", node)


class ShapeChecker(ast.NodeVisitor):
    """Walk a procedure body and reject constructs that would terminate the
    procedure, suspend it outside of the protocol, or skip part of a
    suspension.

    Nested function and class definitions, and lambdas, are separate scopes
    and are not inspected, except that nested async functions are rejected.
    """

    def __init__(self, parsed: ParsedFunction, params: list[str]):
        self.parsed = parsed
        self.params = params
        self.try_depth = 0
        self.comprehension_depth = 0

    def visit_Return(self, node: ast.Return):
        raise self.parsed.error("return is not allowed in resumable procedures", node)

    def visit_YieldFrom(self, node: ast.YieldFrom):
        raise self.parsed.error(
            "yield from is not allowed in resumable procedures", node
        )

    def visit_Await(self, node: ast.Await):
        raise self.parsed.error("await is not allowed in resumable procedures", node)

    def visit_AsyncFor(self, node: ast.AsyncFor):
        raise self.parsed.error(
            "async for is not allowed in resumable procedures", node
        )

    def visit_AsyncWith(self, node: ast.AsyncWith):
        raise self.parsed.error(
            "async with is not allowed in resumable procedures", node
        )

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef):
        raise self.parsed.error(
            "async functions cannot be defined in resumable procedures", node
        )

    def visit_FunctionDef(self, node: ast.FunctionDef):
        pass  # do not recurse

    def visit_ClassDef(self, node: ast.ClassDef):
        pass  # do not recurse

    def visit_Lambda(self, node: ast.Lambda):
        pass  # do not recurse

    def visit_Call(self, node: ast.Call):
        match node:
            case ast.Call(func=ast.Name(id="super"), args=[], keywords=[]):
                # The implicit first argument would be the input receiver.
                raise self.parsed.error(
                    "super() without arguments is not supported in resumable"
                    " procedures; pass the class and instance explicitly",
                    node,
                )
        self.generic_visit(node)

    def visit_Global(self, node: ast.Global):
        self._check_scope_names(node, node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal):
        self._check_scope_names(node, node.names)

    def visit_Try(self, node: ast.Try):
        self._visit_try(node)

    def visit_TryStar(self, node: ast.TryStar):
        self._visit_try(node)

    def visit_ListComp(self, node: ast.ListComp):
        self._visit_comprehension(node)

    def visit_SetComp(self, node: ast.SetComp):
        self._visit_comprehension(node)

    def visit_DictComp(self, node: ast.DictComp):
        self._visit_comprehension(node)

    def visit_GeneratorExp(self, node: ast.GeneratorExp):
        self._visit_comprehension(node)

    def visit_Yield(self, node: ast.Yield):
        if self.try_depth:
            raise self.parsed.error(
                "yield is not allowed inside a try statement in resumable procedures",
                node,
            )
        if self.comprehension_depth:
            raise self.parsed.error("yield is not allowed inside a comprehension", node)
        self.generic_visit(node)

    def _visit_try(self, node: ast.Try | ast.TryStar):
        self.try_depth += 1
        self.generic_visit(node)
        self.try_depth -= 1

    def _visit_comprehension(self, node: ast.expr):
        self.comprehension_depth += 1
        self.generic_visit(node)
        self.comprehension_depth -= 1

    def _check_scope_names(self, node: ast.Global | ast.Nonlocal, names: list[str]):
        for name in names:
            if name in self.params:
                raise self.parsed.error(
                    f"parameter {name!r} cannot be declared global or nonlocal", node
                )


def completes(stmts: list[ast.stmt]) -> bool:
    """Returns a boolean indicating whether execution can fall off the end
    of a block of statements.

    The analysis is conservative in the direction of accepting procedures:
    when in doubt about a construct that can jump (raise, break, continue),
    it assumes control does not reach the next statement.

    Args:
        stmts: A block of statements.
    """
    return all(_stmt_completes(stmt) for stmt in stmts)


def _stmt_completes(stmt: ast.stmt) -> bool:
    match stmt:
        case ast.Raise() | ast.Return() | ast.Break() | ast.Continue():
            return False

        case ast.While():
            if _is_truthy_constant(stmt.test):
                return _breaks_out(stmt.body)
            return completes(stmt.orelse) or _breaks_out(stmt.body)

        case ast.For() | ast.AsyncFor():
            return completes(stmt.orelse) or _breaks_out(stmt.body)

        case ast.If():
            if _is_truthy_constant(stmt.test):
                return completes(stmt.body)
            return completes(stmt.body) or completes(stmt.orelse)

        case ast.With() | ast.AsyncWith():
            return completes(stmt.body)

        case ast.Try() | ast.TryStar():
            if not completes(stmt.finalbody):
                return False
            if completes(stmt.body) and completes(stmt.orelse):
                return True
            return any(completes(handler.body) for handler in stmt.handlers)

        case ast.Match():
            if not any(_is_irrefutable(case) for case in stmt.cases):
                return True
            return any(completes(case.body) for case in stmt.cases)

        case _:
            return True


def _breaks_out(stmts: list[ast.stmt]) -> bool:
    # Whether a break in these statements targets the enclosing loop.
    for stmt in stmts:
        match stmt:
            case ast.Break():
                return True
            case ast.If():
                if _breaks_out(stmt.body) or _breaks_out(stmt.orelse):
                    return True
            case ast.With() | ast.AsyncWith():
                if _breaks_out(stmt.body):
                    return True
            case ast.Try() | ast.TryStar():
                blocks = [stmt.body, stmt.orelse, stmt.finalbody]
                blocks += [handler.body for handler in stmt.handlers]
                if any(_breaks_out(block) for block in blocks):
                    return True
            case ast.Match():
                if any(_breaks_out(case.body) for case in stmt.cases):
                    return True
            case ast.While() | ast.For() | ast.AsyncFor():
                # The else clause of a nested loop runs in the enclosing loop.
                if _breaks_out(stmt.orelse):
                    return True
    return False


def _is_truthy_constant(expr: ast.expr) -> bool:
    return isinstance(expr, ast.Constant) and bool(expr.value)


def _is_irrefutable(case: ast.match_case) -> bool:
    return case.guard is None and _is_irrefutable_pattern(case.pattern)


def _is_irrefutable_pattern(pattern: ast.pattern) -> bool:
    match pattern:
        case ast.MatchAs(pattern=None):
            return True
        case ast.MatchAs(pattern=inner):
            return _is_irrefutable_pattern(inner)
        case ast.MatchOr(patterns=patterns):
            return any(_is_irrefutable_pattern(p) for p in patterns)
    return False
