"""Declarations extracted from one Go source file."""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from typeexpr import Function, Generic, Identifier, Pointer, Qualified, TypeExpr


@dataclass(frozen=True)
class Position:
    path: str  # relative to the package directory
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class FuncKey:
    """Lookup key for functions; methods are qualified by receiver type name."""

    receiver: Optional[str]
    name: str

    def __str__(self) -> str:
        if self.receiver:
            return f"{self.receiver}.{self.name}"
        return self.name


@dataclass(frozen=True)
class FuncDecl:
    name: str
    signature: Function
    position: Position
    receiver: Optional[TypeExpr] = None

    @property
    def receiver_name(self) -> Optional[str]:
        if self.receiver is None:
            return None
        return receiver_base_name(self.receiver)

    @property
    def key(self) -> FuncKey:
        return FuncKey(self.receiver_name, self.name)


@dataclass(frozen=True)
class TypeDecl:
    name: str
    type: TypeExpr
    position: Position


@dataclass(frozen=True)
class ValueDecl:
    """A const or var spec; all names share one declared type (None if inferred)."""

    names: Tuple[str, ...]
    type: Optional[TypeExpr]
    position: Position
    kind: str = "var"


Declaration = Union[FuncDecl, TypeDecl, ValueDecl]


def receiver_base_name(expr: TypeExpr) -> str:
    """``T`` for receivers written as ``T``, ``*T``, ``T[K]`` or ``*T[K]``."""
    if isinstance(expr, Pointer):
        return receiver_base_name(expr.elem)
    if isinstance(expr, Generic):
        return receiver_base_name(expr.base)
    if isinstance(expr, (Identifier, Qualified)):
        return expr.name
    raise ValueError(f"invalid receiver type: {expr!r}")
