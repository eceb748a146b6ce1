"""
NewLang - Syntax Tree Definitions
Untyped tree produced by the parser; every node knows where it came from.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Any, Union


@dataclass
class SyntaxNode:
    """Base class for all syntax tree nodes."""
    line: int = 0
    column: int = 0


# ---------------------------------------------------------------------- types

@dataclass
class TypeName(SyntaxNode):
    """int, float, text, ..."""
    name: str = ""


@dataclass
class ListTypeExpr(SyntaxNode):
    """T[]"""
    base: SyntaxNode = None


@dataclass
class OptionalTypeExpr(SyntaxNode):
    """T?"""
    base: SyntaxNode = None


@dataclass
class FunctionTypeExpr(SyntaxNode):
    """(T1, T2) -> R"""
    params: List[SyntaxNode] = field(default_factory=list)
    return_type: SyntaxNode = None


# ---------------------------------------------------------------------- statements

@dataclass
class Program(SyntaxNode):
    """Root node of the program."""
    statements: List[SyntaxNode] = field(default_factory=list)


@dataclass
class VarDecl(SyntaxNode):
    """newnum x is expression [?]"""
    keyword: str = ""
    name: str = ""
    initializer: SyntaxNode = None
    optional: bool = False


@dataclass
class Param(SyntaxNode):
    """name : type"""
    name: str = ""
    type_: Optional[SyntaxNode] = None


@dataclass
class FunDecl(SyntaxNode):
    """newfunction name(params) : type { body }"""
    name: str = ""
    params: List[Param] = field(default_factory=list)
    return_type: Optional[SyntaxNode] = None
    body: List[SyntaxNode] = field(default_factory=list)


@dataclass
class Block(SyntaxNode):
    """{ statements }"""
    statements: List[SyntaxNode] = field(default_factory=list)


@dataclass
class If(SyntaxNode):
    """if test { ... }; alternate is an elif (If), an else Block, or None."""
    test: SyntaxNode = None
    consequent: Block = None
    alternate: Union["If", Block, None] = None


@dataclass
class Speak(SyntaxNode):
    """speak expression"""
    argument: SyntaxNode = None


@dataclass
class Confess(SyntaxNode):
    """confess [expression]"""
    expression: Optional[SyntaxNode] = None


# ---------------------------------------------------------------------- expressions

@dataclass
class Binary(SyntaxNode):
    """left op right, op kept in its source spelling (plus, lessis, ...)."""
    op: str = ""
    left: SyntaxNode = None
    right: SyntaxNode = None


@dataclass
class Unary(SyntaxNode):
    """! operand | - operand"""
    op: str = ""
    operand: SyntaxNode = None


@dataclass
class Call(SyntaxNode):
    """callee(args)"""
    callee: SyntaxNode = None
    args: List[SyntaxNode] = field(default_factory=list)


@dataclass
class Index(SyntaxNode):
    """target[index]"""
    target: SyntaxNode = None
    index: SyntaxNode = None


@dataclass
class ListLit(SyntaxNode):
    """[e1, e2, ...]"""
    elements: List[SyntaxNode] = field(default_factory=list)


@dataclass
class Identifier(SyntaxNode):
    """A name reference."""
    name: str = ""


@dataclass
class NumberLit(SyntaxNode):
    """An int or float numeral."""
    value: Any = 0


@dataclass
class StringLit(SyntaxNode):
    value: str = ""


@dataclass
class BoolLit(SyntaxNode):
    """truth / untruth"""
    value: bool = False
