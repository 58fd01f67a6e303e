import ast


def count_suspend_points(fn_def: ast.FunctionDef) -> int:
    """Returns the number of suspend expressions (`yield`) in the body of
    a procedure, not counting nested scopes."""
    counter = SuspendPointCounter()
    for stmt in fn_def.body:
        counter.visit(stmt)
    return counter.count


class SuspendPointCounter(ast.NodeVisitor):
    """Count the yield expressions of one scope.

    Nested function and class definitions, and lambdas, are other scopes;
    their yields make them generators, not the enclosing function.
    """

    def __init__(self):
        self.count = 0

    def visit_Yield(self, node: ast.Yield):
        self.count += 1
        self.generic_visit(node)

    def _skip(self, node: ast.AST):
        pass

    visit_FunctionDef = _skip
    visit_AsyncFunctionDef = _skip
    visit_ClassDef = _skip
    visit_Lambda = _skip


def empty_generator():
    """Yields nothing.

    Inserting `yield from empty_generator()` into a function body turns it
    into a generator function without changing what it does.
    """
    return
    yield
