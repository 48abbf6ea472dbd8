"""Parser for the schema declaration DSL."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import ply.yacc as yacc

from typed_stores.parsing.type_lexer import TypeLexer
from typed_stores.types import (
    EnumType,
    ModelType,
    NumberType,
    StringLiteralType,
    TypeDefinition,
    TypeRegistry,
    UnionType,
)

# Nested template instantiations beyond this depth are rejected
MAX_INSTANTIATION_DEPTH = 32


@dataclass
class NameRef:
    """Reference to a named type, with template arguments if any."""

    name: str
    arguments: list[TypeExpr] | None = None
    lexpos: int = 0


@dataclass
class ArrayRef:
    """Array of an element type expression."""

    element: TypeExpr


@dataclass
class UnionRef:
    """Union of option type expressions."""

    options: list[TypeExpr]


@dataclass
class LiteralRef:
    """Numeric or string literal type."""

    value: int | float | str


TypeExpr = Union[NameRef, ArrayRef, UnionRef, LiteralRef]


@dataclass
class PropertySpec:
    """A model property as parsed, before resolution."""

    name: str
    type_expr: TypeExpr
    optional: bool = False


@dataclass
class DecoratorSpec:
    """A decorator applied to a model declaration."""

    name: str
    arguments: list[Any] = field(default_factory=list)
    lexpos: int = 0


@dataclass
class ModelSpec:
    """A model (or model template) as parsed, before resolution."""

    name: str
    properties: list[PropertySpec]
    parameters: list[str] = field(default_factory=list)
    decorators: list[DecoratorSpec] = field(default_factory=list)
    lexpos: int = 0


@dataclass
class EnumSpec:
    """An enum as parsed."""

    name: str
    members: list[str]
    lexpos: int = 0


@dataclass
class AliasSpec:
    """An alias as parsed, before resolution."""

    name: str
    type_expr: TypeExpr
    lexpos: int = 0


class TypeParser:
    """Parser for the schema declaration DSL.

    Produces a TypeRegistry holding the declared models, their template
    instantiations, and the models marked with ``@store``.
    """

    tokens = TypeLexer.tokens

    def __init__(self) -> None:
        self.lexer = TypeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry: TypeRegistry = TypeRegistry()
        self._specs: list[ModelSpec | EnumSpec | AliasSpec] = []
        self._aliases: dict[str, AliasSpec] = {}
        self._resolved_aliases: dict[str, TypeDefinition] = {}
        self._resolving_aliases: set[str] = set()
        self._depth = 0

    # -- Statements --

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : model_def
                     | enum_def
                     | alias_def"""
        p[0] = p[1]

    def p_statement_decorated(self, p: yacc.YaccProduction) -> None:
        """statement : decorator_list model_def"""
        p[2].decorators = p[1]
        p[0] = p[2]

    # -- Decorators --

    def p_decorator_list_single(self, p: yacc.YaccProduction) -> None:
        """decorator_list : decorator"""
        p[0] = [p[1]]

    def p_decorator_list_multiple(self, p: yacc.YaccProduction) -> None:
        """decorator_list : decorator_list decorator"""
        p[0] = p[1] + [p[2]]

    def p_decorator_bare(self, p: yacc.YaccProduction) -> None:
        """decorator : AT IDENTIFIER
                     | AT IDENTIFIER LPAREN RPAREN"""
        p[0] = DecoratorSpec(name=p[2], lexpos=p.lexpos(1))

    def p_decorator_args(self, p: yacc.YaccProduction) -> None:
        """decorator : AT IDENTIFIER LPAREN decorator_arg_list RPAREN"""
        p[0] = DecoratorSpec(name=p[2], arguments=p[4], lexpos=p.lexpos(1))

    def p_decorator_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """decorator_arg_list : decorator_arg"""
        p[0] = [p[1]]

    def p_decorator_arg_list_multiple(self, p: yacc.YaccProduction) -> None:
        """decorator_arg_list : decorator_arg_list COMMA decorator_arg"""
        p[0] = p[1] + [p[3]]

    def p_decorator_arg(self, p: yacc.YaccProduction) -> None:
        """decorator_arg : STRING
                         | INTEGER
                         | FLOAT"""
        p[0] = p[1]

    # -- Models --

    def p_model_def(self, p: yacc.YaccProduction) -> None:
        """model_def : MODEL IDENTIFIER model_body"""
        p[0] = ModelSpec(name=p[2], properties=p[3], lexpos=p.lexpos(2))

    def p_model_def_template(self, p: yacc.YaccProduction) -> None:
        """model_def : MODEL IDENTIFIER LT parameter_list GT model_body"""
        p[0] = ModelSpec(name=p[2], properties=p[6], parameters=p[4], lexpos=p.lexpos(2))

    def p_parameter_list_single(self, p: yacc.YaccProduction) -> None:
        """parameter_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_parameter_list_multiple(self, p: yacc.YaccProduction) -> None:
        """parameter_list : parameter_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_model_body_empty(self, p: yacc.YaccProduction) -> None:
        """model_body : LBRACE RBRACE"""
        p[0] = []

    def p_model_body(self, p: yacc.YaccProduction) -> None:
        """model_body : LBRACE property_list RBRACE
                      | LBRACE property_list separator RBRACE"""
        p[0] = p[2]

    def p_separator(self, p: yacc.YaccProduction) -> None:
        """separator : COMMA
                     | SEMI"""
        p[0] = p[1]

    def p_property_list_single(self, p: yacc.YaccProduction) -> None:
        """property_list : property"""
        p[0] = [p[1]]

    def p_property_list_multiple(self, p: yacc.YaccProduction) -> None:
        """property_list : property_list separator property"""
        p[0] = p[1] + [p[3]]

    def p_property(self, p: yacc.YaccProduction) -> None:
        """property : IDENTIFIER COLON type_expr"""
        p[0] = PropertySpec(name=p[1], type_expr=p[3])

    def p_property_optional(self, p: yacc.YaccProduction) -> None:
        """property : IDENTIFIER QUESTION COLON type_expr"""
        p[0] = PropertySpec(name=p[1], type_expr=p[4], optional=True)

    # -- Enums and aliases --

    def p_enum_def(self, p: yacc.YaccProduction) -> None:
        """enum_def : ENUM IDENTIFIER LBRACE member_list RBRACE
                    | ENUM IDENTIFIER LBRACE member_list COMMA RBRACE"""
        p[0] = EnumSpec(name=p[2], members=p[4], lexpos=p.lexpos(2))

    def p_enum_def_empty(self, p: yacc.YaccProduction) -> None:
        """enum_def : ENUM IDENTIFIER LBRACE RBRACE"""
        p[0] = EnumSpec(name=p[2], members=[], lexpos=p.lexpos(2))

    def p_member_list_single(self, p: yacc.YaccProduction) -> None:
        """member_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_member_list_multiple(self, p: yacc.YaccProduction) -> None:
        """member_list : member_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_alias_def(self, p: yacc.YaccProduction) -> None:
        """alias_def : ALIAS IDENTIFIER EQUALS type_expr
                     | ALIAS IDENTIFIER EQUALS type_expr SEMI"""
        p[0] = AliasSpec(name=p[2], type_expr=p[4], lexpos=p.lexpos(2))

    # -- Type expressions --

    def p_type_expr_single(self, p: yacc.YaccProduction) -> None:
        """type_expr : array_expr"""
        p[0] = p[1]

    def p_type_expr_union(self, p: yacc.YaccProduction) -> None:
        """type_expr : type_expr PIPE array_expr"""
        if isinstance(p[1], UnionRef):
            p[0] = UnionRef(options=p[1].options + [p[3]])
        else:
            p[0] = UnionRef(options=[p[1], p[3]])

    def p_array_expr_single(self, p: yacc.YaccProduction) -> None:
        """array_expr : primary"""
        p[0] = p[1]

    def p_array_expr_array(self, p: yacc.YaccProduction) -> None:
        """array_expr : array_expr LBRACKET RBRACKET"""
        p[0] = ArrayRef(element=p[1])

    def p_primary_name(self, p: yacc.YaccProduction) -> None:
        """primary : IDENTIFIER"""
        p[0] = NameRef(name=p[1], lexpos=p.lexpos(1))

    def p_primary_template(self, p: yacc.YaccProduction) -> None:
        """primary : IDENTIFIER LT type_arg_list GT"""
        p[0] = NameRef(name=p[1], arguments=p[3], lexpos=p.lexpos(1))

    def p_primary_literal(self, p: yacc.YaccProduction) -> None:
        """primary : INTEGER
                   | FLOAT
                   | STRING"""
        p[0] = LiteralRef(value=p[1])

    def p_primary_group(self, p: yacc.YaccProduction) -> None:
        """primary : LPAREN type_expr RPAREN"""
        p[0] = p[2]

    def p_type_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """type_arg_list : type_expr"""
        p[0] = [p[1]]

    def p_type_arg_list_multiple(self, p: yacc.YaccProduction) -> None:
        """type_arg_list : type_arg_list COMMA type_expr"""
        p[0] = p[1] + [p[3]]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="schema", **kwargs)

    def parse(self, data: str) -> TypeRegistry:
        """Parse declarations and return a populated TypeRegistry.

        Raises:
            SyntaxError: The text cannot be tokenized or parsed.
            ValueError: A declaration cannot be resolved.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.registry = TypeRegistry()
        self._aliases = {}
        self._resolved_aliases = {}
        self._resolving_aliases = set()
        self._depth = 0
        self.lexer.lexer.lineno = 1

        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if specs is None:
            specs = []
        self._specs = specs

        self._resolve_specs()

        return self.registry

    def parse_file(self, path: Path | str) -> TypeRegistry:
        """Parse declarations from a file."""
        with open(path, encoding="utf-8") as f:
            return self.parse(f.read())

    # -- Resolution --

    def _resolve_specs(self) -> None:
        """Resolve all specs into type nodes using two-phase resolution.

        Phase 1: Pre-register stubs for every non-template model, plus enums,
        templates and aliases, so that self-referential and mutually
        referential models can resolve.
        Phase 2: Populate model stubs in declaration order, then apply
        decorators.
        """
        # Phase 1: Declare every name
        for spec in self._specs:
            if spec.name in self.registry or spec.name in self._aliases:
                raise ValueError(f"Type '{spec.name}' is already defined (position {spec.lexpos})")
            if isinstance(spec, ModelSpec):
                if spec.parameters:
                    if len(set(spec.parameters)) != len(spec.parameters):
                        raise ValueError(
                            f"Template '{spec.name}' has duplicate parameters (position {spec.lexpos})"
                        )
                    self.registry.register_template(spec.name, spec)
                else:
                    self.registry.register_stub(spec.name)
            elif isinstance(spec, EnumSpec):
                self.registry.register(spec.name, EnumType(name=spec.name, members=list(spec.members)))
            elif isinstance(spec, AliasSpec):
                self._aliases[spec.name] = spec

        # Phase 2: Populate model stubs
        for spec in self._specs:
            if isinstance(spec, ModelSpec) and not spec.parameters:
                model = self.registry.get_or_raise(spec.name)
                self._populate_model(model, spec, {})
        for spec in self._specs:
            if isinstance(spec, AliasSpec):
                self._resolve_alias(spec.name)

        for spec in self._specs:
            if isinstance(spec, ModelSpec):
                for decorator in spec.decorators:
                    self._apply_decorator(spec, decorator)

    def _populate_model(
        self, model: ModelType, spec: ModelSpec, bindings: dict[str, TypeDefinition]
    ) -> None:
        """Resolve property specs into properties of ``model``."""
        for prop_spec in spec.properties:
            type_def = self._resolve_type_expr(prop_spec.type_expr, bindings)
            try:
                model.add_property(prop_spec.name, type_def, optional=prop_spec.optional)
            except ValueError as e:
                raise ValueError(f"{e} (position {spec.lexpos})") from e

    def _apply_decorator(self, spec: ModelSpec, decorator: DecoratorSpec) -> None:
        """Apply a decorator to a resolved model."""
        if decorator.name != "store":
            raise ValueError(f"Unknown decorator '@{decorator.name}' (position {decorator.lexpos})")
        if spec.parameters:
            raise ValueError(
                f"@store cannot be applied to template '{spec.name}' (position {decorator.lexpos})"
            )
        if len(decorator.arguments) > 1 or (
            decorator.arguments and not isinstance(decorator.arguments[0], str)
        ):
            raise ValueError(
                f"@store takes at most one string argument (position {decorator.lexpos})"
            )
        collection_name = decorator.arguments[0] if decorator.arguments else None
        self.registry.mark_store(self.registry.get_or_raise(spec.name), collection_name)

    def _resolve_alias(self, name: str) -> TypeDefinition:
        """Resolve an alias to the node it names."""
        if name in self._resolved_aliases:
            return self._resolved_aliases[name]
        spec = self._aliases[name]
        if name in self._resolving_aliases:
            raise ValueError(f"Alias '{name}' refers to itself (position {spec.lexpos})")
        self._resolving_aliases.add(name)
        try:
            type_def = self._resolve_type_expr(spec.type_expr, {})
        finally:
            self._resolving_aliases.discard(name)
        self._resolved_aliases[name] = type_def
        return type_def

    def _resolve_type_expr(self, expr: TypeExpr, bindings: dict[str, TypeDefinition]) -> TypeDefinition:
        """Resolve a type expression to a type node."""
        if isinstance(expr, ArrayRef):
            return self.registry.get_array_type(self._resolve_type_expr(expr.element, bindings))
        if isinstance(expr, UnionRef):
            return UnionType(options=[self._resolve_type_expr(o, bindings) for o in expr.options])
        if isinstance(expr, LiteralRef):
            if isinstance(expr.value, str):
                return StringLiteralType(value=expr.value)
            return NumberType(value=expr.value)
        if expr.arguments is not None:
            return self._resolve_template_ref(expr, bindings)
        return self._resolve_name(expr, bindings)

    def _resolve_name(self, ref: NameRef, bindings: dict[str, TypeDefinition]) -> TypeDefinition:
        """Resolve a plain name: template parameter, type, or alias."""
        if ref.name in bindings:
            return bindings[ref.name]
        type_def = self.registry.get(ref.name)
        if type_def is not None:
            return type_def
        if ref.name in self._aliases:
            return self._resolve_alias(ref.name)
        template = self.registry.get_template(ref.name)
        if isinstance(template, ModelSpec):
            raise ValueError(
                f"Template '{ref.name}' requires {len(template.parameters)} "
                f"argument(s) (position {ref.lexpos})"
            )
        raise ValueError(f"Unknown type '{ref.name}' (position {ref.lexpos})")

    def _resolve_template_ref(self, ref: NameRef, bindings: dict[str, TypeDefinition]) -> ModelType:
        """Resolve ``Name<Args>`` to a template instantiation."""
        if not self.registry.is_template(ref.name):
            if ref.name in self.registry or ref.name in bindings or ref.name in self._aliases:
                raise ValueError(f"Type '{ref.name}' is not a template (position {ref.lexpos})")
            raise ValueError(f"Unknown type '{ref.name}' (position {ref.lexpos})")
        template = self.registry.get_template(ref.name)
        if len(ref.arguments) != len(template.parameters):
            raise ValueError(
                f"Template '{ref.name}' expects {len(template.parameters)} argument(s), "
                f"got {len(ref.arguments)} (position {ref.lexpos})"
            )
        arguments = [self._resolve_type_expr(arg, bindings) for arg in ref.arguments]
        return self._instantiate(template, arguments, ref.lexpos)

    def _instantiate(self, template: ModelSpec, arguments: list[TypeDefinition], lexpos: int) -> ModelType:
        """Instantiate ``template`` with ``arguments``, reusing cached instances."""
        instance = self.registry.get_instance(template.name, arguments)
        if instance is not None:
            return instance
        if self._depth >= MAX_INSTANTIATION_DEPTH:
            raise ValueError(
                f"Template '{template.name}' is instantiated too deeply (position {lexpos})"
            )

        instance = self.registry.add_instance(template.name, arguments)
        bindings = dict(zip(template.parameters, arguments))
        self._depth += 1
        try:
            self._populate_model(instance, template, bindings)
        finally:
            self._depth -= 1
        return instance
