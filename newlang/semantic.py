"""
NewLang - Semantic Analyzer
Walks the syntax tree once and builds the typed AST:
  - Identifiers resolve through a chain of scope frames
  - Declarations, operators, calls and returns are type checked
  - Intrinsic calls are lowered to operator nodes
Stops at the first violation.
"""

from typing import List

from . import syntax
from .context import AlreadyDeclared, Context
from .core import (
    Program, VariableDeclaration, FunctionDeclaration, PrintStatement,
    ReturnStatement, ShortReturnStatement, IfStatement, ShortIfStatement,
    BinaryExpression, UnaryExpression, ListExpression, SubscriptExpression,
    FunctionCall, Literal, Variable, Function, Type, ListType, OptionalType,
    FunctionType, INT, FLOAT, BOOLEAN, STRING, VOID, ANY, NUMERIC_TYPES,
    OPERATORS, ORDERING_OPS, EQUALITY_OPS, assignable, int_literal,
    float_literal, string_literal, bool_literal,
)


class SemanticError(Exception):
    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(f"[SemanticError] Line {line}, col {column}: {message}")
        self.message = message
        self.line = line
        self.column = column


class AlreadyDeclaredError(SemanticError):
    """A name was declared twice in the same scope frame."""


class SemanticAnalyzer:
    def __init__(self):
        self._context = Context.root()

    def analyze(self, program: syntax.Program) -> Program:
        return self._visit(program)

    # ------------------------------------------------------------------ visitor

    def _visit(self, node: syntax.SyntaxNode):
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, None)
        if visitor is None:
            raise SemanticError(f"Unexpected syntax node {type(node).__name__}", node.line, node.column)
        return visitor(node)

    def _visit_block(self, statements: List[syntax.SyntaxNode]) -> list:
        outer = self._context
        self._context = outer.new_child()
        body = [self._visit(s) for s in statements]
        self._context = outer
        return body

    # ------------------------------------------------------------------ checks

    @staticmethod
    def _must(condition: bool, message: str, at: syntax.SyntaxNode) -> None:
        if not condition:
            raise SemanticError(message, at.line, at.column)

    def _must_not_already_be_declared(self, name: str, at: syntax.SyntaxNode) -> None:
        try:
            self._context.must_be_free(name)
        except AlreadyDeclared as e:
            raise AlreadyDeclaredError(str(e), at.line, at.column) from e

    def _declare(self, name: str, entity, at: syntax.SyntaxNode) -> None:
        self._must_not_already_be_declared(name, at)
        self._context.declare(name, entity)

    def _must_have_numeric_type(self, e, at) -> None:
        self._must(e.type in NUMERIC_TYPES, "Expected a number", at)

    def _must_have_numeric_or_string_type(self, e, at) -> None:
        self._must(e.type in (INT, FLOAT, STRING), "Expected a number or string", at)

    def _must_have_boolean_type(self, e, at) -> None:
        self._must(e.type == BOOLEAN, "Expected a boolean", at)

    def _must_have_integer_type(self, e, at) -> None:
        self._must(e.type == INT, "Expected an integer", at)

    def _must_have_list_type(self, e, at) -> None:
        self._must(isinstance(e.type, ListType), "Expected a list", at)

    def _must_have_optional_type(self, e, at) -> None:
        self._must(isinstance(e.type, OptionalType), "Expected an optional", at)

    def _must_all_have_same_type(self, expressions: list, at) -> None:
        if expressions:
            first = expressions[0].type
            for e in expressions:
                self._must(e.type == first, "All elements must have the same type", at)

    def _must_be_assignable(self, e, to_type: Type, at) -> None:
        self._must(
            assignable(e.type, to_type),
            f"Cannot assign a {e.type} to a {to_type}",
            at,
        )

    def _must_be_in_a_function(self, at) -> None:
        self._must(self._context.function is not None, "Return can only appear in a function", at)

    def _must_be_callable(self, e, at) -> None:
        self._must(isinstance(getattr(e, "type", None), FunctionType), "Call of non-function", at)

    def _must_have_correct_argument_count(self, arg_count: int, param_count: int, at) -> None:
        self._must(
            arg_count == param_count,
            f"{param_count} argument(s) required but {arg_count} passed",
            at,
        )

    # ------------------------------------------------------------------ types

    def _resolve_type(self, node: syntax.SyntaxNode) -> Type:
        if isinstance(node, syntax.TypeName):
            entity = self._context.lookup(node.name)
            self._must(isinstance(entity, Type), "Type expected", node)
            return entity
        if isinstance(node, syntax.ListTypeExpr):
            return ListType(self._resolve_type(node.base))
        if isinstance(node, syntax.OptionalTypeExpr):
            return OptionalType(self._resolve_type(node.base))
        if isinstance(node, syntax.FunctionTypeExpr):
            params = tuple(self._resolve_type(p) for p in node.params)
            return FunctionType(params, self._resolve_type(node.return_type))
        raise SemanticError("Type expected", node.line, node.column)

    # ------------------------------------------------------------------ statements

    def _visit_Program(self, node: syntax.Program) -> Program:
        return Program([self._visit(s) for s in node.statements])

    def _visit_VarDecl(self, node: syntax.VarDecl) -> VariableDeclaration:
        # Rejected before the initializer is analyzed
        self._must_not_already_be_declared(node.name, node)
        initializer = self._visit(node.initializer)
        at = node.initializer

        if node.keyword == "newnum":
            self._must_have_numeric_type(initializer, at)
        elif node.keyword == "newtext":
            self._must_be_assignable(initializer, STRING, at)
        elif node.keyword == "newbool":
            self._must_have_boolean_type(initializer, at)
        elif node.keyword == "newlist":
            self._must_have_list_type(initializer, at)

        type_ = OptionalType(initializer.type) if node.optional else initializer.type
        variable = Variable(node.name, False, type_)
        self._declare(node.name, variable, node)
        return VariableDeclaration(variable, initializer)

    def _visit_FunDecl(self, node: syntax.FunDecl) -> FunctionDeclaration:
        fun = Function(node.name)
        self._declare(node.name, fun, node)

        # Parameters and body share one frame, owned by the function
        outer = self._context
        self._context = outer.new_child(function=fun)

        fun.params = [self._visit_param(p) for p in node.params]
        return_type = VOID if node.return_type is None else self._resolve_type(node.return_type)
        fun.type = FunctionType(tuple(p.type for p in fun.params), return_type)
        fun.body = [self._visit(s) for s in node.body]

        self._context = outer
        return FunctionDeclaration(fun)

    def _visit_param(self, node: syntax.Param) -> Variable:
        self._must(node.type_ is not None, "Type expected", node)
        param = Variable(node.name, False, self._resolve_type(node.type_))
        self._declare(node.name, param, node)
        return param

    def _visit_If(self, node: syntax.If):
        test = self._visit(node.test)
        self._must_have_boolean_type(test, node.test)
        consequent = self._visit_block(node.consequent.statements)

        if node.alternate is None:
            return ShortIfStatement(test, consequent)
        if isinstance(node.alternate, syntax.If):
            return IfStatement(test, consequent, self._visit(node.alternate))
        return IfStatement(test, consequent, self._visit_block(node.alternate.statements))

    def _visit_Speak(self, node: syntax.Speak) -> PrintStatement:
        printer = self._context.lookup("speak")
        argument = self._visit(node.argument)
        self._must_be_assignable(argument, printer.type.params[0], node.argument)
        return PrintStatement(argument)

    def _visit_Confess(self, node: syntax.Confess):
        self._must_be_in_a_function(node)
        fun = self._context.function
        return_type = fun.type.return_type

        if node.expression is None:
            self._must(
                return_type == VOID or isinstance(return_type, OptionalType),
                "Something should be returned",
                node,
            )
            return ShortReturnStatement()

        self._must(return_type != VOID, "Cannot return a value from this function", node)
        expression = self._visit(node.expression)
        self._must_be_assignable(expression, return_type, node.expression)
        return ReturnStatement(expression)

    # ------------------------------------------------------------------ expressions

    def _visit_Binary(self, node: syntax.Binary):
        op = OPERATORS[node.op]
        left = self._visit(node.left)

        if op == "??":
            self._must_have_optional_type(left, node.left)
            right = self._visit(node.right)
            self._must_be_assignable(right, left.type.base, node.right)
            return BinaryExpression(op, left, right, left.type.base)

        right = self._visit(node.right)

        if op in ("&&", "||"):
            self._must_have_boolean_type(left, node.left)
            self._must_have_boolean_type(right, node.right)
            return BinaryExpression(op, left, right, BOOLEAN)

        if op in ORDERING_OPS:
            self._must_have_numeric_or_string_type(left, node.left)
            self._must_have_numeric_or_string_type(right, node.right)
            return BinaryExpression(op, left, right, BOOLEAN)

        if op in EQUALITY_OPS:
            self._must_all_have_same_type([left, right], node)
            return BinaryExpression(op, left, right, BOOLEAN)

        # Arithmetic; + doubles as string concatenation
        if op == "+":
            self._must_have_numeric_or_string_type(left, node.left)
        else:
            self._must_have_numeric_type(left, node.left)
        self._must_all_have_same_type([left, right], node)
        return BinaryExpression(op, left, right, left.type)

    def _visit_Unary(self, node: syntax.Unary) -> UnaryExpression:
        operand = self._visit(node.operand)
        if node.op == "!":
            self._must_have_boolean_type(operand, node.operand)
            return UnaryExpression("!", operand, BOOLEAN)
        self._must_have_numeric_type(operand, node.operand)
        return UnaryExpression("-", operand, operand.type)

    def _visit_Call(self, node: syntax.Call):
        callee = self._visit(node.callee)
        self._must_be_callable(callee, node.callee)
        param_types = callee.type.params
        self._must_have_correct_argument_count(len(node.args), len(param_types), node)

        args = []
        for arg_node, param_type in zip(node.args, param_types):
            arg = self._visit(arg_node)
            self._must_be_assignable(arg, param_type, arg_node)
            args.append(arg)

        return_type = callee.type.return_type
        if isinstance(callee, Function) and callee.intrinsic and return_type != VOID:
            if len(args) == 1:
                return UnaryExpression(callee.name, args[0], return_type)
            if len(args) == 2:
                return BinaryExpression(callee.name, args[0], args[1], return_type)
        return FunctionCall(callee, args, return_type)

    def _visit_Index(self, node: syntax.Index) -> SubscriptExpression:
        target = self._visit(node.target)
        self._must_have_list_type(target, node.target)
        index = self._visit(node.index)
        self._must_have_integer_type(index, node.index)
        return SubscriptExpression(target, index, target.type.base)

    def _visit_ListLit(self, node: syntax.ListLit) -> ListExpression:
        elements = [self._visit(e) for e in node.elements]
        self._must_all_have_same_type(elements, node)
        element_type = elements[0].type if elements else ANY
        return ListExpression(elements, ListType(element_type))

    def _visit_Identifier(self, node: syntax.Identifier):
        entity = self._context.lookup(node.name)
        self._must(entity is not None, f"Identifier {node.name} not declared", node)
        self._must(not isinstance(entity, Type), f"{node.name} is not a value", node)
        return entity

    def _visit_NumberLit(self, node: syntax.NumberLit) -> Literal:
        if isinstance(node.value, float):
            return float_literal(node.value)
        return int_literal(node.value)

    def _visit_StringLit(self, node: syntax.StringLit) -> Literal:
        return string_literal(node.value)

    def _visit_BoolLit(self, node: syntax.BoolLit) -> Literal:
        return bool_literal(node.value)


def analyze(program: syntax.Program) -> Program:
    """Analyze a syntax tree in a fresh root scope."""
    return SemanticAnalyzer().analyze(program)
