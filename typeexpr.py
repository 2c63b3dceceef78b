"""Go type expressions and their canonical text form.

The union below is closed: ``normalize`` knows every member, and anything
else is a grammar coverage bug that aborts the run rather than silently
rendering to nothing. Two type expressions are compatible exactly when their
normalized strings are equal, so the rendering has to be injective over
structurally distinct expressions.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple, Union

from config import is_exported
from errors import UnsupportedExpressionError


class ChanDir(Enum):
    BOTH = "both"
    SEND = "send"
    RECV = "recv"


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class Qualified:
    package: str
    name: str


@dataclass(frozen=True)
class Pointer:
    elem: "TypeExpr"


@dataclass(frozen=True)
class Slice:
    elem: "TypeExpr"


@dataclass(frozen=True)
class Array:
    """Fixed array. ``length`` is the length's source text, ``...`` for implicit."""

    length: str
    elem: "TypeExpr"


@dataclass(frozen=True)
class Map:
    key: "TypeExpr"
    value: "TypeExpr"


@dataclass(frozen=True)
class Channel:
    direction: ChanDir
    elem: "TypeExpr"


@dataclass(frozen=True)
class Variadic:
    elem: "TypeExpr"


@dataclass(frozen=True)
class Function:
    """Signature. ``results`` is None when no result list was written."""

    params: Tuple["TypeExpr", ...] = ()
    results: Optional[Tuple["TypeExpr", ...]] = None

    @property
    def variadic(self) -> bool:
        return bool(self.params) and isinstance(self.params[-1], Variadic)


@dataclass(frozen=True)
class Field:
    names: Tuple[str, ...]
    type: "TypeExpr"
    embedded: bool = False


@dataclass(frozen=True)
class Struct:
    fields: Tuple[Field, ...] = ()


@dataclass(frozen=True)
class Method:
    name: str
    signature: Function


@dataclass(frozen=True)
class Interface:
    # methods and embedded elements, in declared order
    elements: Tuple[Union[Method, "TypeExpr"], ...] = ()


@dataclass(frozen=True)
class Generic:
    base: "TypeExpr"
    args: Tuple["TypeExpr", ...]


@dataclass(frozen=True)
class TypeUnion:
    terms: Tuple["TypeExpr", ...]


@dataclass(frozen=True)
class Approx:
    elem: "TypeExpr"


TypeExpr = Union[
    Identifier,
    Qualified,
    Pointer,
    Slice,
    Array,
    Map,
    Channel,
    Variadic,
    Function,
    Struct,
    Interface,
    Generic,
    TypeUnion,
    Approx,
]

_KIND_NAMES = {
    Identifier: "named type",
    Qualified: "named type",
    Pointer: "pointer",
    Slice: "slice",
    Array: "array",
    Map: "map",
    Channel: "channel",
    Variadic: "variadic",
    Function: "func",
    Struct: "struct",
    Interface: "interface",
    Generic: "generic instance",
    TypeUnion: "union",
    Approx: "approximation",
}

Predicate = Callable[[str], bool]


def kind_name(expr: TypeExpr) -> str:
    """Short human name for the kind of type an expression denotes."""
    try:
        return _KIND_NAMES[type(expr)]
    except KeyError:
        raise UnsupportedExpressionError(type(expr).__name__) from None


def implicit_name(expr: TypeExpr) -> str:
    """Field name Go gives an embedded field of type ``expr``."""
    if isinstance(expr, Pointer):
        return implicit_name(expr.elem)
    if isinstance(expr, Generic):
        return implicit_name(expr.base)
    if isinstance(expr, Qualified):
        return expr.name
    if isinstance(expr, Identifier):
        return expr.name
    raise UnsupportedExpressionError(f"embedded {type(expr).__name__}")


def join_types(types: Sequence[TypeExpr], is_public: Predicate = is_exported) -> str:
    return ", ".join(normalize(t, is_public) for t in types)


def render_signature(
    name: str,
    sig: Function,
    receiver: Optional[TypeExpr] = None,
    is_public: Predicate = is_exported,
) -> str:
    """``func (Recv) Name(params) (results)``; results omitted when empty."""
    parts = ["func "]
    if receiver is not None:
        parts.append(f"({normalize(receiver, is_public)}) ")
    parts.append(f"{name}({join_types(sig.params, is_public)})")
    if sig.results:
        parts.append(f" ({join_types(sig.results, is_public)})")
    return "".join(parts)


def normalize(expr: TypeExpr, is_public: Predicate = is_exported) -> str:
    """Canonical text for a type expression.

    ``is_public`` decides which struct fields are visible; hidden fields never
    take part in comparison.
    """
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Qualified):
        return f"{expr.package}.{expr.name}"
    if isinstance(expr, Pointer):
        return "*" + normalize(expr.elem, is_public)
    if isinstance(expr, Slice):
        return "[]" + normalize(expr.elem, is_public)
    if isinstance(expr, Array):
        return f"[{expr.length}]" + normalize(expr.elem, is_public)
    if isinstance(expr, Map):
        return f"map[{normalize(expr.key, is_public)}]{normalize(expr.value, is_public)}"
    if isinstance(expr, Channel):
        prefix = {ChanDir.BOTH: "chan", ChanDir.SEND: "chan<-", ChanDir.RECV: "<-chan"}
        return f"{prefix[expr.direction]} {normalize(expr.elem, is_public)}"
    if isinstance(expr, Variadic):
        return "..." + normalize(expr.elem, is_public)
    if isinstance(expr, Function):
        params = join_types(expr.params, is_public)
        if expr.results:
            return f"F({params}) ({join_types(expr.results, is_public)})"
        return f"func({params})"
    if isinstance(expr, Struct):
        return _normalize_struct(expr, is_public)
    if isinstance(expr, Interface):
        return _normalize_interface(expr, is_public)
    if isinstance(expr, Generic):
        return f"{normalize(expr.base, is_public)}[{join_types(expr.args, is_public)}]"
    if isinstance(expr, TypeUnion):
        return " | ".join(normalize(t, is_public) for t in expr.terms)
    if isinstance(expr, Approx):
        return "~" + normalize(expr.elem, is_public)
    raise UnsupportedExpressionError(type(expr).__name__)


def normalize_optional(expr: Optional[TypeExpr], is_public: Predicate = is_exported) -> str:
    """Like ``normalize`` but an inferred (absent) type renders as ``""``."""
    if expr is None:
        return ""
    return normalize(expr, is_public)


def struct_field_line(field: Field, is_public: Predicate = is_exported) -> Optional[str]:
    names = [n for n in field.names if is_public(n)]
    if not names:
        return None
    if field.embedded:
        return normalize(field.type, is_public)
    return f"{', '.join(names)} {normalize(field.type, is_public)}"


def _normalize_struct(expr: Struct, is_public: Predicate) -> str:
    lines = [struct_field_line(f, is_public) for f in expr.fields]
    lines = [line for line in lines if line is not None]
    if not lines:
        return "struct{}"
    return "struct{" + "".join(f"\n\t{line}" for line in lines) + "\n}"


def _normalize_interface(expr: Interface, is_public: Predicate) -> str:
    if not expr.elements:
        return "interface{}"
    lines = []
    for elem in expr.elements:
        if isinstance(elem, Method):
            lines.append(render_signature(elem.name, elem.signature, is_public=is_public))
        else:
            lines.append(normalize(elem, is_public))
    return "interface{" + "".join(f"\n\t{line}" for line in lines) + "\n}"
