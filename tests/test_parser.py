"""
NewLang - Parser Tests
"""

import sys
import os
import unittest

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from newlang.lexer import tokenize
from newlang.parser import Parser, ParseError, parse
from newlang.syntax import (
    Program, VarDecl, FunDecl, If, Block, Speak, Confess, Binary, Unary,
    Call, Index, ListLit, Identifier, NumberLit, StringLit, BoolLit,
    ListTypeExpr, OptionalTypeExpr, FunctionTypeExpr,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def parse_(source: str) -> Program:
    tokens = tokenize(source.strip())
    return Parser(tokens).parse()


def first(source: str):
    return parse_(source).statements[0]


def expr(source: str):
    """Parse `speak <source>` and return the spoken expression."""
    return first(f"speak {source}").argument


# ═══════════════════════════════════════════════════════════════════════════════
# Statements
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatements(unittest.TestCase):

    def test_variable_declarations(self):
        prog = parse_('newnum x is 1\nnewbool y is untruth\nnewlist z is [1,2,3]\nnewtext w is "hi"')
        self.assertEqual([s.keyword for s in prog.statements], ["newnum", "newbool", "newlist", "newtext"])
        self.assertEqual([s.name for s in prog.statements], ["x", "y", "z", "w"])
        self.assertIsInstance(prog.statements[2].initializer, ListLit)

    def test_optional_declaration(self):
        stmt = first('newtext z is "test"?')
        self.assertIsInstance(stmt, VarDecl)
        self.assertTrue(stmt.optional)
        self.assertFalse(first("newnum x is 1").optional)

    def test_semicolons_optional(self):
        prog = parse_("newnum x is 1; newnum y is 2\nspeak x;")
        self.assertEqual(len(prog.statements), 3)

    def test_function_declaration(self):
        fun = first("newfunction longReturn(x: int, y: float) : int { confess x }")
        self.assertIsInstance(fun, FunDecl)
        self.assertEqual(fun.name, "longReturn")
        self.assertEqual([p.name for p in fun.params], ["x", "y"])
        self.assertEqual(fun.params[1].type_.name, "float")
        self.assertEqual(fun.return_type.name, "int")
        self.assertIsInstance(fun.body[0], Confess)

    def test_function_without_return_type(self):
        fun = first("newfunction f() {}")
        self.assertIsNone(fun.return_type)
        self.assertEqual(fun.params, [])
        self.assertEqual(fun.body, [])

    def test_parameter_without_type(self):
        fun = first("newfunction f(x) {}")
        self.assertIsNone(fun.params[0].type_)

    def test_compound_types(self):
        fun = first("newfunction f(a: int[], b: float?, c: (int, text) -> bool, d: int[]?) : int?[] {}")
        a, b, c, d = (p.type_ for p in fun.params)
        self.assertIsInstance(a, ListTypeExpr)
        self.assertIsInstance(b, OptionalTypeExpr)
        self.assertIsInstance(c, FunctionTypeExpr)
        self.assertEqual([t.name for t in c.params], ["int", "text"])
        self.assertEqual(c.return_type.name, "bool")
        self.assertIsInstance(d, OptionalTypeExpr)
        self.assertIsInstance(d.base, ListTypeExpr)
        self.assertIsInstance(fun.return_type, ListTypeExpr)
        self.assertIsInstance(fun.return_type.base, OptionalTypeExpr)

    def test_if_elif_else(self):
        stmt = first("if truth {speak(1)} elif untruth {speak(2)} else {speak(3)}")
        self.assertIsInstance(stmt, If)
        self.assertIsInstance(stmt.consequent, Block)
        self.assertIsInstance(stmt.alternate, If)
        self.assertIsInstance(stmt.alternate.alternate, Block)
        self.assertIsInstance(stmt.alternate.alternate.statements[0], Speak)

    def test_short_if(self):
        stmt = first("if truth { speak 1 }")
        self.assertIsNone(stmt.alternate)

    def test_confess_without_value(self):
        fun = first("newfunction f() : void { confess }")
        self.assertIsNone(fun.body[0].expression)

    def test_confess_value_on_next_line_is_separate(self):
        fun = first("newfunction f(x: int) : void {\n    confess\n    x\n}")
        self.assertEqual(len(fun.body), 2)
        self.assertIsNone(fun.body[0].expression)
        self.assertIsInstance(fun.body[1], Identifier)

    def test_expression_statement(self):
        stmt = first("twoMinutesHate()")
        self.assertIsInstance(stmt, Call)
        self.assertEqual(stmt.callee.name, "twoMinutesHate")


# ═══════════════════════════════════════════════════════════════════════════════
# Expressions
# ═══════════════════════════════════════════════════════════════════════════════

class TestExpressions(unittest.TestCase):

    def test_literals(self):
        self.assertEqual(expr("42").value, 42)
        self.assertEqual(expr("4.5").value, 4.5)
        self.assertIsInstance(expr("4.0").value, float)
        self.assertIsInstance(expr('"s"'), StringLit)
        self.assertIs(expr("truth").value, True)
        self.assertIs(expr("untruth").value, False)

    def test_multiplication_binds_tighter(self):
        e = expr("1 plus 2 multiply 3")
        self.assertEqual(e.op, "plus")
        self.assertEqual(e.right.op, "multiply")

    def test_additive_left_associative(self):
        e = expr("1 minus 2 minus 3")
        self.assertEqual(e.op, "minus")
        self.assertIsInstance(e.left, Binary)
        self.assertIsInstance(e.right, NumberLit)

    def test_exponent_right_associative(self):
        e = expr("2 exp 3 exp 2")
        self.assertEqual(e.op, "exp")
        self.assertIsInstance(e.left, NumberLit)
        self.assertEqual(e.right.op, "exp")

    def test_negation_applies_to_power(self):
        e = expr("-2 exp 2")
        self.assertIsInstance(e, Unary)
        self.assertEqual(e.operand.op, "exp")

    def test_and_binds_tighter_than_or(self):
        e = expr("truth or untruth and truth")
        self.assertEqual(e.op, "or")
        self.assertEqual(e.right.op, "and")

    def test_comparison_below_arithmetic(self):
        e = expr("1 plus 1 lessis 2")
        self.assertEqual(e.op, "lessis")
        self.assertEqual(e.left.op, "plus")

    def test_chained_comparison_rejected(self):
        with self.assertRaisesRegex(ParseError, "Relational operators cannot be chained"):
            parse_("speak 1 less 2 less 3")

    def test_unwrap_is_lowest_and_right_associative(self):
        e = expr("a ?? b ?? c or d")
        self.assertEqual(e.op, "??")
        self.assertEqual(e.right.op, "??")
        self.assertEqual(e.right.right.op, "or")

    def test_unary_chain(self):
        e = expr("!!truth")
        self.assertEqual(e.op, "!")
        self.assertEqual(e.operand.op, "!")
        self.assertIsInstance(e.operand.operand, BoolLit)

    def test_call_and_subscript_postfix(self):
        e = expr("f(1, 2)[0](x)")
        self.assertIsInstance(e, Call)
        self.assertIsInstance(e.callee, Index)
        self.assertIsInstance(e.callee.target, Call)
        self.assertEqual(len(e.callee.target.args), 2)

    def test_empty_list(self):
        self.assertEqual(expr("[]").elements, [])

    def test_parentheses(self):
        e = expr("(1 plus 2) multiply 3")
        self.assertEqual(e.op, "multiply")
        self.assertEqual(e.left.op, "plus")


# ═══════════════════════════════════════════════════════════════════════════════
# Errors and locations
# ═══════════════════════════════════════════════════════════════════════════════

class TestParseErrors(unittest.TestCase):

    def test_node_locations(self):
        stmt = first("newnum x is 1\n")
        self.assertEqual((stmt.line, stmt.column), (1, 8))
        self.assertEqual((stmt.initializer.line, stmt.initializer.column), (1, 13))

    def test_missing_is(self):
        with self.assertRaises(ParseError) as ctx:
            parse_("newnum x 5")
        self.assertEqual((ctx.exception.line, ctx.exception.column), (1, 10))
        self.assertIn("Expected 'is'", str(ctx.exception))

    def test_unclosed_block(self):
        with self.assertRaisesRegex(ParseError, "Expected '}' before end of input"):
            parse_("if truth { speak 1")

    def test_unclosed_call(self):
        with self.assertRaisesRegex(ParseError, "end of input"):
            parse_("speak f(1, 2")

    def test_keyword_cannot_start_statement(self):
        with self.assertRaisesRegex(ParseError, r"^\[ParseError\] Line 1, col 1:"):
            parse_("else { }")

    def test_keyword_is_not_an_identifier(self):
        with self.assertRaises(ParseError):
            parse_("newnum speak is 1")

    def test_bad_type(self):
        with self.assertRaisesRegex(ParseError, "Expected a type"):
            parse_("newfunction f(x: 1) {}")

    def test_integer_literal_too_long(self):
        with self.assertRaises(ParseError) as ctx:
            parse_("speak " + "9" * 5000)
        self.assertIn("Integer literal too long", str(ctx.exception))
        self.assertEqual((ctx.exception.line, ctx.exception.column), (1, 7))

    def test_parse_helper(self):
        self.assertIsInstance(parse("speak 1"), Program)


if __name__ == "__main__":
    unittest.main(verbosity=2)
