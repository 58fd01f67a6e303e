import ast
import textwrap

Replacement = ast.expr | ast.stmt | list[ast.stmt]


def rewrite_template(template: str, **replacements: Replacement) -> list[ast.stmt]:
    """Parse a block of code and substitute placeholders with AST nodes.

    A placeholder is a bare identifier. Where it is used as an expression it
    is replaced by an expression node. Where it stands alone as a statement
    it can also be replaced by a statement, or by a list of statements that
    is spliced in its place (an empty list removes it).

    Nodes parsed from the template carry no source location, so that they
    can take the location of the code they are generated for.

    Args:
        template: Source code of one or more statements.
        **replacements: Nodes to substitute, keyed by placeholder.

    Returns:
        list[ast.stmt]: The statements of the template.
    """
    module = ast.parse(textwrap.dedent(template))
    return _substitute(module, replacements).body


def rewrite_expression(template: str, **replacements: ast.expr) -> ast.expr:
    """Parse a single expression and substitute placeholders with AST
    nodes. See rewrite_template."""
    expression = ast.parse(textwrap.dedent(template).strip(), mode="eval")
    return _substitute(expression, replacements).body


def _substitute(root, replacements):
    _strip_locations(root)
    return PlaceholderTransformer(replacements).visit(root)


class PlaceholderTransformer(ast.NodeTransformer):
    """Replace placeholder names in an AST."""

    def __init__(self, replacements: dict[str, Replacement]):
        self.expressions: dict[str, ast.expr] = {}
        self.statements: dict[str, list[ast.stmt]] = {}
        for name, replacement in replacements.items():
            match replacement:
                case ast.expr():
                    self.expressions[name] = replacement
                case ast.stmt():
                    self.statements[name] = [replacement]
                case list():
                    self.statements[name] = replacement
                case _:
                    raise TypeError(f"cannot substitute {name} with {replacement!r}")

    def visit_Name(self, node: ast.Name) -> ast.expr:
        return self.expressions.get(node.id, node)

    def visit_Expr(self, node: ast.Expr) -> ast.stmt | list[ast.stmt]:
        match node.value:
            case ast.Name(id=name) if name in self.statements:
                return self.statements[name]
        self.generic_visit(node)
        return node


_LOCATIONS = ("lineno", "col_offset", "end_lineno", "end_col_offset")


def _strip_locations(root: ast.AST):
    for node in ast.walk(root):
        for attr in _LOCATIONS:
            if attr in node._attributes and attr in node.__dict__:
                delattr(node, attr)
