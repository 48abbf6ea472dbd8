"""Tests for the schema DSL parser."""

import pytest

from typed_stores.parsing import TypeParser
from typed_stores.parsing.type_lexer import TypeLexer
from typed_stores.types import (
    ArrayType,
    EnumType,
    ModelType,
    NumberType,
    StringLiteralType,
    UnionType,
)


class TestTypeLexer:
    """Tests for the schema lexer."""

    def test_tokenize_model(self):
        """Test tokenizing a model with an optional array property."""
        lexer = TypeLexer()
        lexer.build()

        tokens = lexer.tokenize("model Pet { tags?: string[] }")
        token_types = [t.type for t in tokens]

        assert token_types == [
            "MODEL",
            "IDENTIFIER",
            "LBRACE",
            "IDENTIFIER",
            "QUESTION",
            "COLON",
            "IDENTIFIER",
            "LBRACKET",
            "RBRACKET",
            "RBRACE",
        ]

    def test_tokenize_decorator_and_template(self):
        lexer = TypeLexer()
        lexer.build()

        tokens = lexer.tokenize('@store("pets") Page<T>')
        assert [t.type for t in tokens] == [
            "AT", "IDENTIFIER", "LPAREN", "STRING", "RPAREN",
            "IDENTIFIER", "LT", "IDENTIFIER", "GT",
        ]
        assert tokens[3].value == "pets"

    def test_string_keeps_non_ascii(self):
        """Non-ASCII text in strings survives, escapes are decoded."""
        lexer = TypeLexer()
        lexer.build()

        tokens = lexer.tokenize('"café" "日本" "a\\tb" "\\"q\\""')
        assert [t.value for t in tokens] == ["café", "日本", "a\tb", '"q"']

    def test_tokenize_literals(self):
        lexer = TypeLexer()
        lexer.build()

        tokens = lexer.tokenize("1 | -2 | 2.5")
        assert [(t.type, t.value) for t in tokens] == [
            ("INTEGER", 1), ("PIPE", "|"), ("INTEGER", -2), ("PIPE", "|"), ("FLOAT", 2.5),
        ]

    def test_comments_and_newlines_ignored(self):
        lexer = TypeLexer()
        lexer.build()

        tokens = lexer.tokenize("// a comment\nmodel\n\nA")
        assert [t.type for t in tokens] == ["MODEL", "IDENTIFIER"]

    def test_illegal_character(self):
        lexer = TypeLexer()
        lexer.build()

        with pytest.raises(SyntaxError, match=r"Illegal character '\$' at position 2"):
            lexer.tokenize("a $")


class TestModels:
    """Tests for parsing model declarations."""

    def test_simple_model(self):
        registry = TypeParser().parse("model Pet { name: string, age: int32 }")
        pet = registry.get("Pet")

        assert isinstance(pet, ModelType)
        assert [p.name for p in pet.properties] == ["name", "age"]
        assert pet.get_property("name").type_def is registry.get("string")
        assert pet.get_property("age").type_def is registry.get("int32")
        assert pet.is_intrinsic is False

    def test_optional_property(self):
        registry = TypeParser().parse("model Pet { name: string; nickname?: string; }")
        pet = registry.get("Pet")
        assert pet.get_property("name").optional is False
        assert pet.get_property("nickname").optional is True

    def test_empty_model(self):
        registry = TypeParser().parse("model Empty {}")
        assert registry.get("Empty").properties == []

    def test_trailing_comma(self):
        registry = TypeParser().parse("model A { x: int32, }")
        assert len(registry.get("A").properties) == 1

    def test_array_property(self):
        registry = TypeParser().parse("model A { grid: float32[][] }")
        grid = registry.get("A").get_property("grid").type_def
        assert isinstance(grid, ArrayType)
        assert isinstance(grid.element_type, ArrayType)
        assert grid.element_type.element_type is registry.get("float32")

    def test_same_array_is_one_node(self):
        registry = TypeParser().parse("model A { x: string[], y: string[] }")
        a = registry.get("A")
        assert a.get_property("x").type_def is a.get_property("y").type_def

    def test_union_property(self):
        registry = TypeParser().parse("model A { id: string | int32 | (boolean | float32) }")
        union = registry.get("A").get_property("id").type_def
        assert isinstance(union, UnionType)
        assert [o.name for o in union.options[:2]] == ["string", "int32"]
        grouped = union.options[2]
        assert isinstance(grouped, UnionType)
        assert [o.name for o in grouped.options] == ["boolean", "float32"]

    def test_literal_properties(self):
        registry = TypeParser().parse('model A { size: 1 | 2.5, label: "x" }')
        a = registry.get("A")
        size = a.get_property("size").type_def
        assert [type(o) for o in size.options] == [NumberType, NumberType]
        assert [o.value for o in size.options] == [1, 2.5]
        label = a.get_property("label").type_def
        assert isinstance(label, StringLiteralType)
        assert label.value == "x"

    def test_self_reference(self):
        registry = TypeParser().parse("model Node { next?: Node }")
        node = registry.get("Node")
        assert node.get_property("next").type_def is node

    def test_forward_reference(self):
        registry = TypeParser().parse("model A { b: B } model B { a?: A }")
        a = registry.get("A")
        b = registry.get("B")
        assert a.get_property("b").type_def is b
        assert b.get_property("a").type_def is a

    def test_empty_input(self):
        registry = TypeParser().parse("")
        assert registry.stores() == []

    def test_comments(self):
        source = """
        // pets
        model Pet {
            name: string, // display name
        }
        """
        assert TypeParser().parse(source).get("Pet") is not None

    def test_parser_is_reusable(self):
        """A parser instance can parse several documents."""
        parser = TypeParser()
        first = parser.parse("model A {}")
        second = parser.parse("model B {}")
        assert "A" in first and "A" not in second
        assert "B" in second


class TestEnumsAndAliases:
    """Tests for enums and aliases."""

    def test_enum(self):
        registry = TypeParser().parse("enum Color { red, green, blue, }")
        color = registry.get("Color")
        assert isinstance(color, EnumType)
        assert color.members == ["red", "green", "blue"]

    def test_alias_is_the_same_node(self):
        registry = TypeParser().parse("model Pet {} alias Animal = Pet; model Zoo { star: Animal }")
        assert registry.get("Zoo").get_property("star").type_def is registry.get("Pet")

    def test_alias_to_union(self):
        registry = TypeParser().parse("alias Id = string | int32 model A { id: Id }")
        union = registry.get("A").get_property("id").type_def
        assert isinstance(union, UnionType)

    def test_alias_cycle(self):
        with pytest.raises(ValueError, match="refers to itself"):
            TypeParser().parse("alias A = B; alias B = A[];")


class TestTemplates:
    """Tests for template declarations and instantiation."""

    def test_instantiation(self):
        source = """
        model User { name: string }
        model Page<T> { items: T[], total: int64 }
        model Feed { page: Page<User> }
        """
        registry = TypeParser().parse(source)
        page = registry.get("Feed").get_property("page").type_def
        user = registry.get("User")

        assert isinstance(page, ModelType)
        assert page.name == "Page"
        assert page.template_arguments == [user]
        assert page.get_property("items").type_def.element_type is user
        assert page.get_property("total").type_def is registry.get("int64")
        assert registry.get("Page") is None
        assert registry.is_template("Page")

    def test_instances_are_shared(self):
        """The same template arguments give the same instance."""
        source = """
        model User {}
        model Page<T> { items: T[] }
        model A { x: Page<User>, y: Page<User>, z: Page<User[]>, w: Page<User[]> }
        """
        a = TypeParser().parse(source).get("A")
        assert a.get_property("x").type_def is a.get_property("y").type_def
        assert a.get_property("z").type_def is a.get_property("w").type_def
        assert a.get_property("x").type_def is not a.get_property("z").type_def

    def test_multiple_parameters(self):
        source = """
        model A {} model B {}
        model Pair<L, R> { left: L, right?: R }
        model Holder { pair: Pair<A, B> }
        """
        registry = TypeParser().parse(source)
        pair = registry.get("Holder").get_property("pair").type_def
        assert pair.template_arguments == [registry.get("A"), registry.get("B")]
        assert pair.get_property("right").optional is True

    def test_recursive_template(self):
        source = """
        model Node<T> { value: T, next?: Node<T> }
        model List { head: Node<int32> }
        """
        registry = TypeParser().parse(source)
        node = registry.get("List").get_property("head").type_def
        assert node.get_property("next").type_def is node

    def test_expanding_template_rejected(self):
        with pytest.raises(ValueError, match="too deeply"):
            TypeParser().parse("model Nest<T> { inner: Nest<T[]> } model A { n: Nest<string> }")

    def test_wrong_arity(self):
        with pytest.raises(ValueError, match="expects 1 argument"):
            TypeParser().parse("model Page<T> {} model A { p: Page<string, int32> }")

    def test_bare_template(self):
        with pytest.raises(ValueError, match="requires 1 argument"):
            TypeParser().parse("model Page<T> {} model A { p: Page }")

    def test_not_a_template(self):
        with pytest.raises(ValueError, match="is not a template"):
            TypeParser().parse("model A { p: string<int32> }")

    def test_duplicate_parameters(self):
        with pytest.raises(ValueError, match="duplicate parameters"):
            TypeParser().parse("model Pair<T, T> {}")


class TestDecorators:
    """Tests for @store decorators."""

    def test_store_with_name(self):
        registry = TypeParser().parse('@store("pets") model Pet { name: string }')
        [registration] = registry.stores()
        assert registration.model is registry.get("Pet")
        assert registration.display_name == "pets"

    def test_store_with_non_ascii_name(self):
        registry = TypeParser().parse('@store("café") model Pet {}')
        assert registry.stores()[0].display_name == "café"

    def test_store_without_name(self):
        registry = TypeParser().parse("@store model Pet {} @store() model Owner {}")
        assert [r.display_name for r in registry.stores()] == ["Pet", "Owner"]

    def test_undecorated_models_are_not_stores(self):
        registry = TypeParser().parse("model Pet {} @store model Owner { pets: Pet[] }")
        assert [r.model.name for r in registry.stores()] == ["Owner"]

    def test_unknown_decorator(self):
        with pytest.raises(ValueError, match="Unknown decorator '@table'"):
            TypeParser().parse("@table model Pet {}")

    def test_store_on_template(self):
        with pytest.raises(ValueError, match="cannot be applied to template"):
            TypeParser().parse("@store model Page<T> {}")

    def test_store_bad_argument(self):
        with pytest.raises(ValueError, match="at most one string argument"):
            TypeParser().parse("@store(1) model Pet {}")


class TestErrors:
    """Tests for parse and resolution errors."""

    def test_syntax_error_position(self):
        with pytest.raises(SyntaxError, match=r"Syntax error at '\{' \(position 6\)"):
            TypeParser().parse("model { }")

    def test_syntax_error_end_of_input(self):
        with pytest.raises(SyntaxError, match="end of input"):
            TypeParser().parse("model Pet {")

    def test_unknown_type(self):
        with pytest.raises(ValueError, match=r"Unknown type 'Missing' \(position 15\)"):
            TypeParser().parse("model Pet { o: Missing }")

    def test_duplicate_type(self):
        with pytest.raises(ValueError, match="already defined"):
            TypeParser().parse("model Pet {} model Pet {}")

    def test_intrinsic_redefinition(self):
        with pytest.raises(ValueError, match="already defined"):
            TypeParser().parse("model string {}")

    def test_duplicate_property(self):
        with pytest.raises(ValueError, match="Property 'name' is already defined"):
            TypeParser().parse("model Pet { name: string, name: int32 }")
