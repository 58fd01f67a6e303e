import ast
import textwrap
import unittest
from typing import cast

from lockstep.template import rewrite_expression, rewrite_template


class TestTemplate(unittest.TestCase):
    def test_rewrite_template(self):
        self.assert_rewrite(
            """
        __setup__
        print(__value__)
        result = __value__ + 1
        """,
            dict(
                __setup__=ast.Expr(ast.Name(id="prepare", ctx=ast.Load())),
                __value__=ast.Name(id="total", ctx=ast.Load()),
            ),
            """
        prepare
        print(total)
        result = total + 1
        """,
        )

    def test_unknown_replacement(self):
        with self.assertRaises(TypeError):
            rewrite_template("x", x="not a node")

    def test_splice_statements(self):
        self.assert_rewrite(
            """
        a
        b
        """,
            dict(
                a=[
                    ast.Expr(ast.Name(id="x", ctx=ast.Load())),
                    ast.Expr(ast.Name(id="y", ctx=ast.Load())),
                ],
            ),
            """
        x
        y
        b
        """,
        )

    def test_splice_nothing(self):
        self.assert_rewrite(
            """
        a
        b
        """,
            dict(a=[]),
            """
        b
        """,
        )

    def test_nested_statements(self):
        self.assert_rewrite(
            """
        while True:
            a
        """,
            dict(a=ast.Pass()),
            """
        while True:
            pass
        """,
        )

    def test_rewrite_expression(self):
        result = rewrite_expression(
            "(a, b)[-1]",
            a=ast.Name(id="x", ctx=ast.Load()),
            b=ast.Constant(value=1),
        )
        self.assertEqual(ast.unparse(result), "(x, 1)[-1]")

    def test_locations_are_stripped(self):
        result = rewrite_template(
            """
            x = 1
            y = 2
            """
        )
        for node in result:
            self.assertFalse(hasattr(node, "lineno"))

    def test_replacements_keep_locations(self):
        name = ast.Name(id="x", ctx=ast.Load(), lineno=42, col_offset=4)
        result = rewrite_expression("f(a)", a=name)
        self.assertIs(cast(ast.Call, result).args[0], name)
        self.assertEqual(name.lineno, 42)

    def assert_rewrite(self, template: str, replacements: dict, want: str):
        result = rewrite_template(template, **replacements)
        module = ast.Module(body=result, type_ignores=[])
        ast.fix_missing_locations(module)
        self.assertEqual(ast.unparse(module), textwrap.dedent(want).strip())
