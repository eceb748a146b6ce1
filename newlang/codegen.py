"""
NewLang - Code Generator
Converts a typed (and usually optimized) AST into JavaScript source code.
"""

import json
import math
from typing import Dict, Tuple

from .core import (
    Program, VariableDeclaration, FunctionDeclaration, PrintStatement,
    ReturnStatement, ShortReturnStatement, IfStatement, ShortIfStatement,
    BinaryExpression, UnaryExpression, ListExpression, SubscriptExpression,
    FunctionCall, Literal, Variable, Function, BOOLEAN, STRING, FLOAT,
)


# Source operator symbol → JavaScript operator; anything else passes through
OPERATORS = {
    "==": "===",
    "!=": "!==",
    "<":  "<",
    "<=": "<=",
    ">":  ">",
    ">=": ">=",
    "+":  "+",
    "-":  "-",
    "*":  "*",
    "/":  "/",
    "%":  "%",
    "**": "**",
}

# Intrinsic name → JavaScript template over the argument texts
INTRINSICS = {
    "print":       "console.log({0})",
    "sqrt":        "Math.sqrt({0})",
    "sin":         "Math.sin({0})",
    "cos":         "Math.cos({0})",
    "exponential": "Math.exp({0})",
    "ln":          "Math.log({0})",
    "abs":         "Math.abs({0})",
    "distance":    "Math.hypot({0}, {1})",
    "hate":        'console.log("BIG BROTHER IS WATCHING YOU")',
}

# Intrinsic name → JavaScript function value, for intrinsics passed as arguments
INTRINSIC_VALUES = {
    "print":       "console.log",
    "sqrt":        "Math.sqrt",
    "sin":         "Math.sin",
    "cos":         "Math.cos",
    "exponential": "Math.exp",
    "ln":          "Math.log",
    "abs":         "Math.abs",
    "distance":    "Math.hypot",
    "hate":        '(() => console.log("BIG BROTHER IS WATCHING YOU"))',
}


class CodeGenError(Exception):
    def __init__(self, message: str, line: int = 0):
        super().__init__(f"[CodeGenError] Line {line}: {message}")
        self.line = line


class CodeGenerator:
    def __init__(self, indent: str = "    "):
        self._indent = indent
        self._depth = 0
        self._lines: list = []
        # id(entity) → (entity, generated name); the entity is kept alive so ids stay unique
        self._names: Dict[int, Tuple[object, str]] = {}

    def generate(self, program: Program) -> str:
        """Return JavaScript source code string for the given program AST."""
        self._lines = []
        self._depth = 0
        self._names = {}
        for stmt in program.statements:
            self._emit_statement(stmt)
        return "\n".join(self._lines)

    # ------------------------------------------------------------------ naming

    def _name(self, entity) -> str:
        """name_N, where N is fixed per entity the first time it is emitted."""
        key = id(entity)
        if key not in self._names:
            self._names[key] = (entity, f"{entity.name}_{len(self._names) + 1}")
        return self._names[key][1]

    # ------------------------------------------------------------------ statements

    def _push(self, line: str) -> None:
        self._lines.append(self._indent * self._depth + line)

    def _emit_block(self, statements: list) -> None:
        self._depth += 1
        for stmt in statements:
            self._emit_statement(stmt)
        self._depth -= 1

    def _emit_statement(self, node) -> None:
        if isinstance(node, VariableDeclaration):
            name = self._name(node.variable)
            self._push(f"let {name} = {self._emit_expr(node.initializer)};")
        elif isinstance(node, FunctionDeclaration):
            fun = node.fun
            name = self._name(fun)
            params = ", ".join(self._name(p) for p in fun.params)
            self._push(f"function {name}({params}) {{")
            self._emit_block(fun.body)
            self._push("}")
        elif isinstance(node, PrintStatement):
            self._push(f"console.log({self._emit_expr(node.argument)});")
        elif isinstance(node, ReturnStatement):
            # The operand is always inlined, whatever the callee returns
            self._push(f"return {self._emit_expr(node.expression)};")
        elif isinstance(node, ShortReturnStatement):
            self._push("return;")
        elif isinstance(node, (IfStatement, ShortIfStatement)):
            self._emit_if(node)
        else:
            # bare expression statement, e.g. a call to a void function
            self._push(f"{self._emit_expr(node)};")

    def _emit_if(self, node, prefix: str = "") -> None:
        self._push(f"{prefix}if ({self._emit_expr(node.test)}) {{")
        self._emit_block(node.consequent)

        if isinstance(node, ShortIfStatement):
            self._push("}")
            return

        alternate = node.alternate
        if isinstance(alternate, (IfStatement, ShortIfStatement)):
            # else-if chains stay flat
            self._emit_if(alternate, prefix="} else ")
        elif alternate:
            self._push("} else {")
            self._emit_block(alternate)
            self._push("}")
        else:
            self._push("}")

    # ------------------------------------------------------------------ expressions

    def _emit_expr(self, node) -> str:
        if isinstance(node, Literal):
            return self._emit_literal(node)

        if isinstance(node, Function) and node.intrinsic:
            return INTRINSIC_VALUES.get(node.name, node.name)

        if isinstance(node, (Variable, Function)):
            return self._name(node)

        if isinstance(node, BinaryExpression):
            left  = self._emit_expr(node.left)
            right = self._emit_expr(node.right)
            if node.op in INTRINSICS:
                return INTRINSICS[node.op].format(left, right)
            if node.op == "**" and left.startswith("-"):
                # JavaScript rejects a unary minus directly before **
                left = f"({left})"
            return f"({left} {OPERATORS.get(node.op, node.op)} {right})"

        if isinstance(node, UnaryExpression):
            operand = self._emit_expr(node.operand)
            if node.op in INTRINSICS:
                return INTRINSICS[node.op].format(operand)
            return f"{node.op}({operand})"

        if isinstance(node, ListExpression):
            return f"[{','.join(self._emit_expr(e) for e in node.elements)}]"

        if isinstance(node, SubscriptExpression):
            return f"{self._emit_expr(node.list)}[{self._emit_expr(node.index)}]"

        if isinstance(node, FunctionCall):
            return self._emit_call(node)

        raise CodeGenError(f"Unknown AST node type: {type(node).__name__}")

    def _emit_call(self, node: FunctionCall) -> str:
        args = [self._emit_expr(a) for a in node.args]
        callee = node.callee
        if isinstance(callee, Function) and callee.intrinsic and callee.name in INTRINSICS:
            return INTRINSICS[callee.name].format(*args)
        return f"{self._emit_expr(callee)}({', '.join(args)})"

    def _emit_literal(self, node: Literal) -> str:
        value = node.value
        if node.type == BOOLEAN:
            return "true" if value else "false"
        if node.type == STRING:
            return json.dumps(value, ensure_ascii=False)
        if node.type == FLOAT:
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            return repr(value)
        return str(value)


def generate(program: Program) -> str:
    return CodeGenerator().generate(program)
