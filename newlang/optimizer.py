"""
NewLang - Optimizer
Applies local, semantics-preserving rewrites to the typed AST, bottom-up.

Transformations:
  1. Constant folding          5 plus 8 → 13, 1.0 less 2.0 → truth
  2. Algebraic identities      x+0, 0+x, x-0, x*1, 1*x, x/1 → x
                               0-x → -x, x*0, 0*x → 0, x**0 → 1, 1**x → 1
  3. Boolean identities        truth&&x, x&&truth, untruth||x, x||untruth → x
                               x&&x, x||x → x (same subtree only)
  4. Unary folding             -(8) → -8, !truth → untruth
  5. Branch elimination        if truth {A} else {B} → A, spliced into the
                               enclosing statement list

Input is assumed well typed. Each transformation is idempotent.
"""

import math

from .core import (
    Program, VariableDeclaration, FunctionDeclaration, PrintStatement,
    ReturnStatement, ShortReturnStatement, IfStatement, ShortIfStatement,
    BinaryExpression, UnaryExpression, ListExpression, SubscriptExpression,
    FunctionCall, Literal, Variable, Function, INT, FLOAT, BOOLEAN,
    NUMERIC_TYPES, TRUE, FALSE,
)

# Largest integer a JavaScript number holds exactly
_MAX_SAFE_INT = 2 ** 53


class Optimizer:
    def __init__(self, opt_level: int = 1):
        """
        opt_level 0 – no optimizations
        opt_level 1 – all standard optimizations
        """
        self.opt_level = opt_level

    def optimize(self, node):
        """
        Return the simplest equivalent of node. Statements may come back as
        a list of statements when a conditional collapses to one branch.
        """
        if self.opt_level == 0:
            return node
        return self._visit(node)

    def optimize_tail(self, expression):
        """
        Optimize the operand of a return. Calls found here, directly or as
        an operand of the outermost operator, keep their callee and
        arguments as they are.
        """
        if isinstance(expression, FunctionCall):
            return expression
        if isinstance(expression, BinaryExpression):
            expression.left = self._tail_operand(expression.left)
            expression.right = self._tail_operand(expression.right)
            return self._simplify_binary(expression)
        if isinstance(expression, UnaryExpression):
            expression.operand = self._tail_operand(expression.operand)
            return self._simplify_unary(expression)
        return self._visit(expression)

    def _tail_operand(self, node):
        return node if isinstance(node, FunctionCall) else self._visit(node)

    # ------------------------------------------------------------------ visitor

    def _visit(self, node):
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, None)
        if visitor is None:
            raise TypeError(f"No optimization rule for {type(node).__name__}")
        return visitor(node)

    def _visit_statements(self, statements: list) -> list:
        result = []
        for stmt in statements:
            optimized = self._visit(stmt)
            if isinstance(optimized, list):
                result.extend(optimized)
            else:
                result.append(optimized)
        return result

    # ------------------------------------------------------------------ statements

    def _visit_Program(self, p: Program) -> Program:
        p.statements = self._visit_statements(p.statements)
        return p

    def _visit_VariableDeclaration(self, d: VariableDeclaration) -> VariableDeclaration:
        d.initializer = self._visit(d.initializer)
        return d

    def _visit_FunctionDeclaration(self, d: FunctionDeclaration) -> FunctionDeclaration:
        d.fun.body = self._visit_statements(d.fun.body)
        return d

    def _visit_PrintStatement(self, s: PrintStatement) -> PrintStatement:
        s.argument = self._visit(s.argument)
        return s

    def _visit_ReturnStatement(self, s: ReturnStatement) -> ReturnStatement:
        s.expression = self.optimize_tail(s.expression)
        return s

    def _visit_ShortReturnStatement(self, s: ShortReturnStatement) -> ShortReturnStatement:
        return s

    def _visit_IfStatement(self, s: IfStatement):
        s.test = self._visit(s.test)
        s.consequent = self._visit_statements(s.consequent)
        if isinstance(s.alternate, (IfStatement, ShortIfStatement)):
            s.alternate = self._visit(s.alternate)
        else:
            s.alternate = self._visit_statements(s.alternate)

        if _is_boolean_literal(s.test):
            if s.test.value:
                return s.consequent
            return s.alternate if isinstance(s.alternate, list) else [s.alternate]
        return s

    def _visit_ShortIfStatement(self, s: ShortIfStatement):
        s.test = self._visit(s.test)
        s.consequent = self._visit_statements(s.consequent)
        if _is_boolean_literal(s.test):
            return s.consequent if s.test.value else []
        return s

    # ------------------------------------------------------------------ expressions

    def _visit_BinaryExpression(self, e: BinaryExpression):
        e.left = self._visit(e.left)
        e.right = self._visit(e.right)
        return self._simplify_binary(e)

    def _visit_UnaryExpression(self, e: UnaryExpression):
        e.operand = self._visit(e.operand)
        return self._simplify_unary(e)

    def _visit_ListExpression(self, e: ListExpression) -> ListExpression:
        e.elements = [self._visit(el) for el in e.elements]
        return e

    def _visit_SubscriptExpression(self, e: SubscriptExpression) -> SubscriptExpression:
        e.list = self._visit(e.list)
        e.index = self._visit(e.index)
        return e

    def _visit_FunctionCall(self, c: FunctionCall) -> FunctionCall:
        c.callee = self._visit(c.callee)
        c.args = [self._visit(a) for a in c.args]
        return c

    def _visit_Literal(self, e: Literal) -> Literal:
        return e

    def _visit_Variable(self, v: Variable) -> Variable:
        return v

    def _visit_Function(self, f: Function) -> Function:
        # Bodies are optimized once, at their declaration
        return f

    # ------------------------------------------------------------------ rewrites

    def _simplify_binary(self, e: BinaryExpression):
        op, x, y = e.op, e.left, e.right

        if op == "&&":
            if x == TRUE:
                return y
            if y == TRUE:
                return x
            if _same(x, y):
                return x
            return e

        if op == "||":
            if x == FALSE:
                return y
            if y == FALSE:
                return x
            if _same(x, y):
                return x
            return e

        if _is_numeric_literal(x) and _is_numeric_literal(y):
            folded = _fold_constants(op, x, y)
            if folded is not None:
                return folded

        if _is_numeric_literal(x):
            if x.value == 0 and op == "+":
                return y
            if x.value == 1 and op == "*":
                return y
            if x.value == 0 and op == "-":
                return UnaryExpression("-", y, y.type)
            if x.value == 1 and op == "**":
                return x
            if x.value == 0 and op == "*":
                return x

        if _is_numeric_literal(y):
            if y.value == 0 and op in ("+", "-"):
                return x
            if y.value == 1 and op in ("*", "/"):
                return x
            if y.value == 0 and op == "*":
                return y
            if y.value == 0 and op == "**":
                return Literal(1.0, FLOAT) if e.type == FLOAT else Literal(1, INT)

        return e

    def _simplify_unary(self, e: UnaryExpression):
        operand = e.operand
        if e.op == "-" and _is_numeric_literal(operand):
            return Literal(-operand.value, operand.type)
        if e.op == "!" and _is_boolean_literal(operand):
            return Literal(not operand.value, BOOLEAN)
        return e


# ---------------------------------------------------------------------- helpers

def _is_numeric_literal(node) -> bool:
    return isinstance(node, Literal) and node.type in NUMERIC_TYPES


def _is_boolean_literal(node) -> bool:
    return isinstance(node, Literal) and node.type == BOOLEAN


def _same(x, y) -> bool:
    """Same subtree: one object, or two equal constants."""
    return x is y or (isinstance(x, Literal) and x == y)


def _numeric_literal(value, type_):
    # Float overflow and ints past the exact double range are left for the runtime
    if type_ == FLOAT and not math.isfinite(value):
        return None
    if type_ == INT and abs(value) > _MAX_SAFE_INT:
        return None
    return Literal(value, type_)


def _fold_constants(op: str, x: Literal, y: Literal):
    """
    Evaluate x op y the way the generated JavaScript would. Returns None
    when the result is not representable as a literal of the right type.
    """
    is_float = FLOAT in (x.type, y.type)
    result_type = FLOAT if is_float else INT
    a, b = (float(x.value), float(y.value)) if is_float else (x.value, y.value)

    try:
        if op == "+":
            return _numeric_literal(a + b, result_type)
        if op == "-":
            return _numeric_literal(a - b, result_type)
        if op == "*":
            return _numeric_literal(a * b, result_type)
        if op == "/":
            if b == 0:
                return None
            if not is_float and a % b == 0:
                return _numeric_literal(a // b, INT)
            # 5 / 8 is 0.625 in JavaScript whatever the operand types
            return _numeric_literal(a / b, FLOAT)
        if op == "%":
            if b == 0:
                return None
            if is_float:
                return Literal(math.fmod(a, b), FLOAT)
            remainder = abs(a) % abs(b)
            return Literal(-remainder if a < 0 else remainder, INT)
        if op == "**":
            if abs(a) > 1 and b > 0 and b * math.log2(abs(a)) > 1024:
                return None
            if not is_float and b < 0:
                return _numeric_literal(float(a) ** b, FLOAT)
            value = a ** b
            if isinstance(value, complex):
                return None
            return _numeric_literal(value, result_type)
        if op == "<":
            return Literal(a < b, BOOLEAN)
        if op == "<=":
            return Literal(a <= b, BOOLEAN)
        if op == "==":
            return Literal(a == b, BOOLEAN)
        if op == "!=":
            return Literal(a != b, BOOLEAN)
        if op == ">":
            return Literal(a > b, BOOLEAN)
        if op == ">=":
            return Literal(a >= b, BOOLEAN)
    except ArithmeticError:
        return None
    return None


def optimize(node, opt_level: int = 1):
    return Optimizer(opt_level=opt_level).optimize(node)
