import ast

from .template import rewrite_expression, rewrite_template

RECEIVER = "_lockstep_rx"
SENDER = "_lockstep_tx"
PEND_ONCE = "_lockstep_pend_once"
ARGS = "_lockstep_args"


def transform_body(body: list[ast.stmt], params: list[str]) -> list[ast.stmt]:
    """Rewrite the body of a procedure so that it runs in lockstep with a
    driver.

    Each suspend expression `yield value` is expanded into four steps:
    1. send value (None if absent) to the output buffer
    2. rebind the parameters to None, dropping references to the input
    3. suspend exactly once, by yielding from a PendOnce unit
    4. rebind the parameters to the next input from the input buffer

    The resulting statements expect the names _lockstep_rx (input
    receiver), _lockstep_tx (output sender) and _lockstep_pend_once to be
    in scope. A prologue binding the first input is prepended.

    Args:
        body: Statements of a validated procedure body.
        params: Names of the procedure parameters, in order.

    Returns:
        list[ast.stmt]: The rewritten statements.
    """
    transformer = SuspendTransformer(params)
    rewritten: list[ast.stmt] = list(rebind_statements(params))
    for stmt in body:
        result = transformer.visit(stmt)
        if isinstance(result, list):
            rewritten.extend(result)
        else:
            rewritten.append(result)
    return rewritten


class SuspendTransformer(ast.NodeTransformer):
    """Replace yield expressions with the lockstep suspension protocol.

    Statement-level yields (`yield x`, `y = yield x`) are expanded into
    statements. Yields nested in other expressions are expanded into a
    single expression that uses assignment expressions to rebind the
    parameters, and evaluates to None.

    Nested function and class definitions, and lambdas, are not rewritten.
    """

    def __init__(self, params: list[str]):
        self.params = params

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.stmt:
        return node  # do not recurse

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.stmt:
        return node  # do not recurse

    def visit_Lambda(self, node: ast.Lambda) -> ast.expr:
        return node  # do not recurse

    def visit_Expr(self, node: ast.Expr) -> ast.stmt | list[ast.stmt]:
        if not isinstance(node.value, ast.Yield):
            self.generic_visit(node)
            return node
        return self._suspend(node, node.value)

    def visit_Assign(self, node: ast.Assign) -> ast.stmt | list[ast.stmt]:
        if not isinstance(node.value, ast.Yield):
            self.generic_visit(node)
            return node
        stmts = self._suspend(node, node.value)
        node.targets = [self.visit(target) for target in node.targets]
        node.value = ast.Constant(value=None)
        return stmts + [node]

    def visit_AnnAssign(self, node: ast.AnnAssign) -> ast.stmt | list[ast.stmt]:
        if not isinstance(node.value, ast.Yield):
            self.generic_visit(node)
            return node
        stmts = self._suspend(node, node.value)
        node.target = self.visit(node.target)
        node.value = ast.Constant(value=None)
        return stmts + [node]

    def visit_Yield(self, node: ast.Yield) -> ast.expr:
        result = rewrite_expression(
            f"""
            (
                {SENDER}.send(__value__),
                __invalidate__,
                (yield from {PEND_ONCE}()),
                __rebind__,
                None,
            )[-1]
            """,
            __value__=self._value(node),
            __invalidate__=invalidate_expression(self.params),
            __rebind__=rebind_expression(self.params),
        )
        return ast.copy_location(result, node)

    def _suspend(self, stmt: ast.stmt, node: ast.Yield) -> list[ast.stmt]:
        result = rewrite_template(
            f"""
            {SENDER}.send(__value__)
            __invalidate__
            yield from {PEND_ONCE}()
            __rebind__
            """,
            __value__=self._value(node),
            __invalidate__=invalidate_statements(self.params),
            __rebind__=rebind_statements(self.params),
        )
        return [ast.copy_location(s, stmt) for s in result]

    def _value(self, node: ast.Yield) -> ast.expr:
        if node.value is None:
            return ast.Constant(value=None)
        return self.visit(node.value)


def invalidate_statements(params: list[str]) -> list[ast.stmt]:
    if not params:
        return []
    targets: list[ast.expr] = [ast.Name(id=p, ctx=ast.Store()) for p in params]
    return [ast.Assign(targets=targets, value=ast.Constant(value=None))]


def rebind_statements(params: list[str]) -> list[ast.stmt]:
    recv = _recv()
    match params:
        case []:
            return [ast.Expr(value=recv)]
        case [param]:
            target: ast.expr = ast.Name(id=param, ctx=ast.Store())
        case _:
            elts: list[ast.expr] = [ast.Name(id=p, ctx=ast.Store()) for p in params]
            target = ast.Tuple(elts=elts, ctx=ast.Store())
    return [ast.Assign(targets=[target], value=recv)]


def invalidate_expression(params: list[str]) -> ast.expr:
    if not params:
        return ast.Constant(value=None)
    return ast.Tuple(
        elts=[_named(p, ast.Constant(value=None)) for p in params], ctx=ast.Load()
    )


def rebind_expression(params: list[str]) -> ast.expr:
    recv = _recv()
    match params:
        case []:
            return recv
        case [param]:
            return _named(param, recv)
    elts = [_named(ARGS, recv)]
    for i, param in enumerate(params):
        component = ast.Subscript(
            value=ast.Name(id=ARGS, ctx=ast.Load()),
            slice=ast.Constant(value=i),
            ctx=ast.Load(),
        )
        elts.append(_named(param, component))
    return ast.Tuple(elts=elts, ctx=ast.Load())


def _recv() -> ast.expr:
    return ast.Call(
        func=ast.Attribute(
            value=ast.Name(id=RECEIVER, ctx=ast.Load()), attr="recv", ctx=ast.Load()
        ),
        args=[],
        keywords=[],
    )


def _named(name: str, value: ast.expr) -> ast.expr:
    return ast.NamedExpr(target=ast.Name(id=name, ctx=ast.Store()), value=value)
