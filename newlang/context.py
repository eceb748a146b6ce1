"""
NewLang - Scope Frames
A chain of frames mapping names to entities. A frame only ever writes to
its own table; parents are consulted for lookup and never modified.
"""

from typing import Dict, Optional

from .core import Entity, Function, STANDARD_LIBRARY


class AlreadyDeclared(Exception):
    """Raised by Context.declare when a name is taken in the current frame."""

    def __init__(self, name: str):
        super().__init__(f"Identifier {name} already declared")
        self.name = name


class Context:
    def __init__(
        self,
        parent: Optional["Context"] = None,
        locals_: Optional[Dict[str, Entity]] = None,
        function: Optional[Function] = None,
    ):
        self.parent = parent
        self.locals: Dict[str, Entity] = dict(locals_ or {})
        # Enclosing function, inherited by nested blocks; None at top level
        self.function = function

    @classmethod
    def root(cls) -> "Context":
        return cls(locals_=STANDARD_LIBRARY)

    def must_be_free(self, name: str) -> None:
        if name in self.locals:
            raise AlreadyDeclared(name)

    def declare(self, name: str, entity: Entity) -> None:
        self.must_be_free(name)
        self.locals[name] = entity

    def lookup(self, name: str) -> Optional[Entity]:
        frame = self
        while frame is not None:
            if name in frame.locals:
                return frame.locals[name]
            frame = frame.parent
        return None

    def new_child(self, function: Optional[Function] = None) -> "Context":
        return Context(parent=self, function=function or self.function)
