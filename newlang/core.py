"""
NewLang - Typed AST and Type Definitions
Representation shared by the analyzer, optimizer and code generator.

Every expression node carries its resolved ``type``. Identifier references
are the declared entity objects themselves (Variable / Function), so two
uses of one declaration are the same Python object.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, List, Any, Tuple, Union


# ═══════════════════════════════════════════════════════════════════════════════
# Types
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Type:
    """Base class for all static types."""


@dataclass(frozen=True)
class PrimitiveType(Type):
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class ListType(Type):
    base: Type

    def __str__(self):
        return f"{self.base}[]"


@dataclass(frozen=True)
class OptionalType(Type):
    base: Type

    def __str__(self):
        return f"{self.base}?"


@dataclass(frozen=True)
class FunctionType(Type):
    params: Tuple[Type, ...] = ()
    return_type: Type = None

    def __str__(self):
        return f"({','.join(str(p) for p in self.params)})->{self.return_type}"


INT     = PrimitiveType("int")
FLOAT   = PrimitiveType("float")
BOOLEAN = PrimitiveType("boolean")
STRING  = PrimitiveType("string")
VOID    = PrimitiveType("void")
ANY     = PrimitiveType("any")

NUMERIC_TYPES = (INT, FLOAT)


def equivalent(t1: Type, t2: Type) -> bool:
    """
    True when a value of t1 can stand where t2 is expected without any
    conversion. Optional widening only goes one way: T fits T?, not back.
    """
    if t1 == t2:
        return True
    if isinstance(t1, OptionalType) and isinstance(t2, OptionalType):
        return equivalent(t1.base, t2.base)
    if isinstance(t2, OptionalType):
        return equivalent(t1, t2.base)
    if isinstance(t1, ListType) and isinstance(t2, ListType):
        return equivalent(t1.base, t2.base)
    return False


def assignable(from_type: Type, to_type: Type) -> bool:
    return to_type == ANY or equivalent(from_type, to_type)


# ═══════════════════════════════════════════════════════════════════════════════
# Entities
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Variable:
    name: str = ""
    mutable: bool = False
    type: Type = None


@dataclass(eq=False)
class Function:
    """
    A user function or an intrinsic. Compared by identity: a recursive
    function's body refers back to the function itself.
    """
    name: str = ""
    type: Optional[FunctionType] = None
    params: List[Variable] = field(default_factory=list)
    body: List[Any] = field(default_factory=list)
    intrinsic: bool = False

    def __repr__(self):
        kind = "Intrinsic" if self.intrinsic else "Function"
        return f"{kind}({self.name!r}, {self.type})"


Entity = Union[Variable, Function, Type]


# ═══════════════════════════════════════════════════════════════════════════════
# Nodes
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Program:
    statements: List[Any] = field(default_factory=list)


@dataclass
class VariableDeclaration:
    variable: Variable = None
    initializer: Any = None


@dataclass
class FunctionDeclaration:
    fun: Function = None


@dataclass
class PrintStatement:
    argument: Any = None


@dataclass
class ReturnStatement:
    expression: Any = None


@dataclass
class ShortReturnStatement:
    pass


@dataclass
class IfStatement:
    """Alternate is a nested IfStatement / ShortIfStatement or an else block."""
    test: Any = None
    consequent: List[Any] = field(default_factory=list)
    alternate: Any = field(default_factory=list)


@dataclass
class ShortIfStatement:
    test: Any = None
    consequent: List[Any] = field(default_factory=list)


@dataclass
class BinaryExpression:
    op: str = ""
    left: Any = None
    right: Any = None
    type: Type = None


@dataclass
class UnaryExpression:
    op: str = ""
    operand: Any = None
    type: Type = None


@dataclass
class ListExpression:
    elements: List[Any] = field(default_factory=list)
    type: Type = None


@dataclass
class SubscriptExpression:
    list: Any = None
    index: Any = None
    type: Type = None


@dataclass
class FunctionCall:
    callee: Any = None
    args: List[Any] = field(default_factory=list)
    type: Type = None


@dataclass
class Literal:
    """A constant together with its static type."""
    value: Any = None
    type: Type = None


def int_literal(value: int) -> Literal:
    return Literal(value, INT)


def float_literal(value: float) -> Literal:
    return Literal(float(value), FLOAT)


def bool_literal(value: bool) -> Literal:
    return Literal(bool(value), BOOLEAN)


def string_literal(value: str) -> Literal:
    return Literal(value, STRING)


TRUE  = bool_literal(True)
FALSE = bool_literal(False)


# ═══════════════════════════════════════════════════════════════════════════════
# Operators
# ═══════════════════════════════════════════════════════════════════════════════

# Source spelling → canonical symbol carried by the typed AST
OPERATORS = MappingProxyType({
    "plus": "+", "minus": "-", "multiply": "*", "divide": "/",
    "remain": "%", "exp": "**",
    "is": "==", "unis": "!=",
    "less": "<", "lessis": "<=", "more": ">", "moreis": ">=",
    "and": "&&", "or": "||", "??": "??",
})

ORDERING_OPS   = {"<", "<=", ">", ">="}
EQUALITY_OPS   = {"==", "!="}


# ═══════════════════════════════════════════════════════════════════════════════
# Standard library
# ═══════════════════════════════════════════════════════════════════════════════

def intrinsic(name: str, type_: FunctionType) -> Function:
    return Function(name=name, type=type_, intrinsic=True)


_FLOAT_TO_FLOAT       = FunctionType((FLOAT,), FLOAT)
_FLOAT_FLOAT_TO_FLOAT = FunctionType((FLOAT, FLOAT), FLOAT)

STANDARD_LIBRARY = MappingProxyType({
    "int": INT,
    "float": FLOAT,
    "boolean": BOOLEAN,
    "bool": BOOLEAN,
    "string": STRING,
    "text": STRING,
    "void": VOID,
    "any": ANY,
    "speak": intrinsic("print", FunctionType((ANY,), VOID)),
    "sqrt": intrinsic("sqrt", _FLOAT_TO_FLOAT),
    "sin": intrinsic("sin", _FLOAT_TO_FLOAT),
    "cos": intrinsic("cos", _FLOAT_TO_FLOAT),
    "exponential": intrinsic("exponential", _FLOAT_TO_FLOAT),
    "ln": intrinsic("ln", _FLOAT_TO_FLOAT),
    "abs": intrinsic("abs", _FLOAT_TO_FLOAT),
    "distance": intrinsic("distance", _FLOAT_FLOAT_TO_FLOAT),
    "twoMinutesHate": intrinsic("hate", FunctionType((), VOID)),
})
