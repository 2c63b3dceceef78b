"""Tests for type-expression normalization."""
import pytest

from errors import UnsupportedExpressionError
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
    TypeUnion,
    Variadic,
    implicit_name,
    kind_name,
    normalize,
    normalize_optional,
)

INT = Identifier("int")
STRING = Identifier("string")


def test_identifier_and_composites():
    assert normalize(INT) == "int"
    assert normalize(Pointer(INT)) == "*int"
    assert normalize(Slice(STRING)) == "[]string"
    assert normalize(Array("4", Identifier("byte"))) == "[4]byte"
    assert normalize(Array("N", INT)) == "[N]int"
    assert normalize(Array("...", INT)) == "[...]int"
    assert normalize(Map(STRING, Slice(INT))) == "map[string][]int"
    assert normalize(Variadic(STRING)) == "...string"
    assert normalize(Qualified("io", "Reader")) == "io.Reader"


def test_channel_directions_keep_element_type():
    assert normalize(Channel(ChanDir.BOTH, INT)) == "chan int"
    assert normalize(Channel(ChanDir.SEND, INT)) == "chan<- int"
    assert normalize(Channel(ChanDir.RECV, INT)) == "<-chan int"
    assert normalize(Channel(ChanDir.BOTH, INT)) != normalize(Channel(ChanDir.BOTH, STRING))


def test_function_types():
    assert normalize(Function((INT, STRING))) == "func(int, string)"
    assert normalize(Function((INT,), (Identifier("error"),))) == "F(int) (error)"
    assert normalize(Function((), ())) == "func()"


def test_struct_hides_unexported_fields():
    s = Struct((
        Field(("A", "B"), INT),
        Field(("c",), STRING),
        Field(("D", "e"), Pointer(INT)),
    ))
    assert normalize(s) == "struct{\n\tA, B int\n\tD *int\n}"
    assert normalize(Struct((Field(("x",), INT),))) == "struct{}"
    assert normalize(Struct()) == "struct{}"


def test_struct_embedded_field_renders_bare_type():
    typ = Pointer(Qualified("sync", "Mutex"))
    s = Struct((Field((implicit_name(typ),), typ, embedded=True),))
    assert normalize(s) == "struct{\n\t*sync.Mutex\n}"


def test_interface_methods_in_declared_order():
    iface = Interface((
        Method("Read", Function((Slice(Identifier("byte")),), (INT, Identifier("error")))),
        Qualified("io", "Closer"),
        Method("Reset", Function()),
    ))
    assert normalize(iface) == (
        "interface{\n\tfunc Read([]byte) (int, error)\n\tio.Closer\n\tfunc Reset()\n}"
    )
    assert normalize(Interface()) == "interface{}"


def test_generics_unions_and_approximations():
    assert normalize(Generic(Identifier("List"), (INT,))) == "List[int]"
    assert normalize(Interface((TypeUnion((Approx(INT), STRING)),))) == (
        "interface{\n\t~int | string\n}"
    )


@pytest.mark.parametrize("a,b", [
    (Slice(INT), Slice(STRING)),
    (Map(STRING, INT), Map(INT, STRING)),
    (Function((INT,), (INT,)), Function((INT, INT), (INT,))),
    (Channel(ChanDir.SEND, INT), Channel(ChanDir.RECV, INT)),
    (Array("4", INT), Array("8", INT)),
    (Pointer(Slice(INT)), Slice(Pointer(INT))),
    (Identifier("Foo"), Qualified("pkg", "Foo")),
])
def test_distinct_expressions_never_collide(a, b):
    assert normalize(a) != normalize(b)


def test_identical_shapes_normalize_identically():
    a = Function((Map(STRING, Slice(INT)),), (Identifier("error"),))
    b = Function((Map(STRING, Slice(INT)),), (Identifier("error"),))
    assert a is not b
    assert normalize(a) == normalize(b)


def test_named_types_are_compared_by_name_only():
    assert normalize(Identifier("Celsius")) != normalize(Identifier("Fahrenheit"))


def test_custom_visibility_predicate():
    s = Struct((Field(("a",), INT), Field(("B",), INT)))
    assert normalize(s, lambda name: True) == "struct{\n\ta int\n\tB int\n}"


def test_inferred_type_normalizes_to_empty():
    assert normalize_optional(None) == ""
    assert normalize_optional(INT) == "int"


def test_unknown_expression_is_fatal():
    with pytest.raises(UnsupportedExpressionError):
        normalize("int")
    with pytest.raises(UnsupportedExpressionError):
        kind_name(object())


def test_kind_names():
    assert kind_name(Struct()) == "struct"
    assert kind_name(Interface()) == "interface"
    assert kind_name(INT) == "named type"
