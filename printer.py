"""One-line renderings of declarations for report text."""
from config import is_exported
from declarations import Declaration, FuncDecl, TypeDecl, ValueDecl
from typeexpr import Predicate, normalize, render_signature


def render_func(decl: FuncDecl, is_public: Predicate = is_exported) -> str:
    return render_signature(decl.name, decl.signature, decl.receiver, is_public)


def render_type(decl: TypeDecl, is_public: Predicate = is_exported) -> str:
    return f"type {decl.name} {normalize(decl.type, is_public)}"


def render_value(decl: ValueDecl, is_public: Predicate = is_exported) -> str:
    """``const A, B T`` over the exported names only; empty when none are."""
    names = [n for n in decl.names if is_public(n)]
    if not names:
        return ""
    text = f"{decl.kind} {', '.join(names)}"
    if decl.type is not None:
        text += " " + normalize(decl.type, is_public)
    return text


def render(decl: Declaration, is_public: Predicate = is_exported) -> str:
    if isinstance(decl, FuncDecl):
        return render_func(decl, is_public)
    if isinstance(decl, TypeDecl):
        return render_type(decl, is_public)
    if isinstance(decl, ValueDecl):
        return render_value(decl, is_public)
    raise TypeError(f"not a declaration: {decl!r}")
