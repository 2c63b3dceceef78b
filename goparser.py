"""Tree-sitter backed extraction of top-level Go declarations."""
from typing import Iterator, List, Optional, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from declarations import Declaration, FuncDecl, Position, TypeDecl, ValueDecl
from errors import GoParseError, UnsupportedExpressionError
from logs import get_logger
from typeexpr import (
    Approx,
    Array,
    ChanDir,
    Channel,
    Field,
    Function,
    Generic,
    Identifier,
    Interface,
    Map,
    Method,
    Pointer,
    Qualified,
    Slice,
    Struct,
    TypeExpr,
    TypeUnion,
    Variadic,
    implicit_name,
)

GO_LANGUAGE = Language(tree_sitter_go.language())

logger = get_logger("goparser")


def _named(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class GoParser:
    """Parses Go source into function, type and value declarations.

    A parser instance is not safe to share between threads; give each worker
    its own.
    """

    def __init__(self) -> None:
        self._parser = Parser(GO_LANGUAGE)
        self._path = ""

    def parse(self, source: bytes, path: str) -> List[Declaration]:
        """Declarations of one file, in source order.

        ``path`` is what positions report, normally relative to the package.
        """
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            bad = _first_error(root) or root
            line, column = bad.start_point[0] + 1, bad.start_point[1] + 1
            message = f"missing {bad.type}" if bad.is_missing else "syntax error"
            raise GoParseError(path, line, column, message)

        self._path = path
        decls: List[Declaration] = []
        for node in root.named_children:
            if node.type == "function_declaration":
                decls.append(self._function(node))
            elif node.type == "method_declaration":
                decls.append(self._method(node))
            elif node.type == "type_declaration":
                decls.extend(self._type_specs(node))
            elif node.type == "const_declaration":
                decls.extend(self._value_specs(node, "const_spec", "const"))
            elif node.type == "var_declaration":
                decls.extend(self._value_specs(node, "var_spec", "var"))
        logger.debug("parsed %s: %d declarations", path, len(decls))
        return decls

    def _position(self, node: Node) -> Position:
        return Position(self._path, node.start_point[0] + 1)

    # -- declarations -------------------------------------------------------

    def _function(self, node: Node) -> FuncDecl:
        name = _text(node.child_by_field_name("name"))
        return FuncDecl(name, self._signature(node), self._position(node))

    def _method(self, node: Node) -> FuncDecl:
        name = _text(node.child_by_field_name("name"))
        receivers = self._params(node.child_by_field_name("receiver"))
        if len(receivers) != 1:
            line, column = node.start_point[0] + 1, node.start_point[1] + 1
            raise GoParseError(self._path, line, column, f"method {name} has no single receiver")
        return FuncDecl(name, self._signature(node), self._position(node), receivers[0])

    def _type_specs(self, node: Node) -> Iterator[TypeDecl]:
        for spec in self._descendants(node, ("type_spec", "type_alias")):
            name = _text(spec.child_by_field_name("name"))
            yield TypeDecl(name, self._type(spec.child_by_field_name("type")), self._position(spec))

    def _value_specs(self, node: Node, spec_type: str, kind: str) -> Iterator[ValueDecl]:
        inherited: Optional[TypeExpr] = None
        for spec in self._descendants(node, (spec_type,)):
            names = tuple(_text(n) for n in spec.children_by_field_name("name"))
            type_node = spec.child_by_field_name("type")
            typ = self._type(type_node) if type_node is not None else None
            if kind == "const":
                # an omitted expression list repeats the previous spec's type
                if spec.child_by_field_name("value") is None:
                    typ = inherited
                else:
                    inherited = typ
            yield ValueDecl(names, typ, self._position(spec), kind)

    def _descendants(self, node: Node, types: Tuple[str, ...]) -> Iterator[Node]:
        for child in _named(node):
            if child.type in types:
                yield child
            else:
                yield from self._descendants(child, types)

    # -- signatures ---------------------------------------------------------

    def _signature(self, node: Node) -> Function:
        params = self._params(node.child_by_field_name("parameters"))
        result = node.child_by_field_name("result")
        if result is None:
            return Function(params, None)
        if result.type == "parameter_list":
            return Function(params, self._params(result))
        return Function(params, (self._type(result),))

    def _params(self, node: Node) -> Tuple[TypeExpr, ...]:
        """One slot per declared name: ``(a, b int)`` gives two ``int`` slots."""
        out: List[TypeExpr] = []
        for child in _named(node):
            typ = self._type(child.child_by_field_name("type"))
            if child.type == "parameter_declaration":
                out.extend([typ] * max(1, len(child.children_by_field_name("name"))))
            elif child.type == "variadic_parameter_declaration":
                out.append(Variadic(typ))
            else:
                raise UnsupportedExpressionError(child.type)
        return tuple(out)

    # -- type expressions ---------------------------------------------------

    def _type(self, node: Node) -> TypeExpr:
        kind = node.type
        if kind in ("type_identifier", "identifier"):
            return Identifier(_text(node))
        if kind == "qualified_type":
            package = _text(node.child_by_field_name("package"))
            return Qualified(package, _text(node.child_by_field_name("name")))
        if kind == "pointer_type":
            return Pointer(self._type(_named(node)[0]))
        if kind == "slice_type":
            return Slice(self._type(node.child_by_field_name("element")))
        if kind == "array_type":
            length = self._array_length(node.child_by_field_name("length"))
            return Array(length, self._type(node.child_by_field_name("element")))
        if kind == "implicit_length_array_type":
            return Array("...", self._type(node.child_by_field_name("element")))
        if kind == "map_type":
            key = self._type(node.child_by_field_name("key"))
            return Map(key, self._type(node.child_by_field_name("value")))
        if kind == "channel_type":
            return Channel(self._chan_dir(node), self._type(node.child_by_field_name("value")))
        if kind == "function_type":
            return self._signature(node)
        if kind == "struct_type":
            return self._struct(node)
        if kind == "interface_type":
            return self._interface(node)
        if kind == "generic_type":
            base = self._type(node.child_by_field_name("type"))
            args = node.child_by_field_name("type_arguments")
            return Generic(base, tuple(self._type(a) for a in _named(args)))
        if kind == "type_elem":
            terms = tuple(self._type(t) for t in _named(node))
            return terms[0] if len(terms) == 1 else TypeUnion(terms)
        if kind == "negated_type":
            return Approx(self._type(_named(node)[0]))
        if kind == "parenthesized_type":
            return self._type(_named(node)[0])
        raise UnsupportedExpressionError(kind)

    def _array_length(self, node: Node) -> str:
        if node.type.endswith("_literal") or node.type == "identifier":
            return _text(node)
        if node.type == "selector_expression":
            operand = node.child_by_field_name("operand")
            if operand is not None and operand.type == "identifier":
                return f"{_text(operand)}.{_text(node.child_by_field_name('field'))}"
        # constant expressions are not evaluated; every such length compares equal
        logger.warning(
            "%s:%d: array length %r compared as [...]",
            self._path, node.start_point[0] + 1, _text(node),
        )
        return "..."

    @staticmethod
    def _chan_dir(node: Node) -> ChanDir:
        tokens = [c.type for c in node.children if not c.is_named]
        if tokens and tokens[0] == "<-":
            return ChanDir.RECV
        if "<-" in tokens:
            return ChanDir.SEND
        return ChanDir.BOTH

    def _struct(self, node: Node) -> Struct:
        fields: List[Field] = []
        for body in _named(node):
            for decl in _named(body):
                if decl.type != "field_declaration":
                    raise UnsupportedExpressionError(decl.type)
                typ = self._type(decl.child_by_field_name("type"))
                names = decl.children_by_field_name("name")
                if names:
                    fields.append(Field(tuple(_text(n) for n in names), typ))
                    continue
                if any(c.type == "*" for c in decl.children):
                    typ = Pointer(typ)
                fields.append(Field((implicit_name(typ),), typ, embedded=True))
        return Struct(tuple(fields))

    def _interface(self, node: Node) -> Interface:
        elements = []
        for elem in _named(node):
            if elem.type in ("method_elem", "method_spec"):
                name = _text(elem.child_by_field_name("name"))
                elements.append(Method(name, self._signature(elem)))
            else:
                elements.append(self._type(elem))
        return Interface(tuple(elements))
