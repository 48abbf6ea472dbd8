"""Resolve a type graph into TypeScript declarations and type references."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from typed_stores.errors import (
    UnknownIntrinsicError,
    UnsupportedTemplateArgumentError,
    UnsupportedTypeKindError,
)
from typed_stores.types import (
    ArrayType,
    ModelType,
    NumberType,
    TypeDefinition,
    UnionType,
)

logger = logging.getLogger(__name__)


# Closed mapping from intrinsic model names to TypeScript types
INTRINSIC_TS_TYPES: dict[str, str] = {
    "string": "string",
    "int32": "number",
    "int16": "number",
    "float16": "number",
    "float32": "number",
    "int64": "bigint",
    "boolean": "boolean",
}

# Reference used for type kinds that have no TypeScript rendering
FALLBACK_REFERENCE = "{}"


@dataclass
class Resolution:
    """Result of resolving one root type."""

    reference: str
    declarations: list[str] = field(default_factory=list)


class TypeScriptEmitter:
    """Memoized walker that turns type nodes into TypeScript.

    One pass covers one root: ``resolve`` resets the memo table and the
    declaration list before walking, so every composite model reachable from
    the root is declared exactly once in that pass.
    """

    def __init__(self, strict: bool = False) -> None:
        """Initialize an emitter.

        Args:
            strict: Raise UnsupportedTypeKindError for unrecognized type kinds
                instead of falling back to an opaque ``{}`` reference.
        """
        self.strict = strict
        self._known_types: dict[TypeDefinition, str] = {}
        self._declarations: list[str] = []

    @property
    def declarations(self) -> list[str]:
        """Declarations collected so far in the current pass."""
        return list(self._declarations)

    def reset(self) -> None:
        """Start a fresh pass."""
        self._known_types = {}
        self._declarations = []

    def resolve(self, root: TypeDefinition) -> Resolution:
        """Resolve ``root`` and everything reachable from it.

        Returns:
            The inline reference for ``root`` and the declarations, in
            first-discovery post-order.

        Raises:
            UnknownIntrinsicError: An intrinsic has no TypeScript mapping.
            UnsupportedTemplateArgumentError: A template argument cannot be
                named.
        """
        self.reset()
        reference = self.get_type_reference(root)
        return Resolution(reference=reference, declarations=self.declarations)

    def get_type_reference(self, type_def: TypeDefinition) -> str:
        """Return the inline TypeScript reference for ``type_def``."""
        known = self._known_types.get(type_def)
        if known is not None:
            logger.debug("Memo hit for %s -> %s", type_def.kind.value, known)
            return known

        if isinstance(type_def, ModelType):
            return self._model_reference(type_def)
        elif isinstance(type_def, ArrayType):
            element_ref = self.get_type_reference(type_def.element_type)
            if isinstance(type_def.element_type, UnionType) and len(type_def.element_type.options) > 1:
                element_ref = f"({element_ref})"
            return f"{element_ref}[]"
        elif isinstance(type_def, UnionType):
            return "|".join(self.get_type_reference(option) for option in type_def.options)
        elif isinstance(type_def, NumberType):
            return type_def.text

        if self.strict:
            raise UnsupportedTypeKindError(type_def.kind.value)
        logger.debug("No rendering for %s type, using %s", type_def.kind.value, FALLBACK_REFERENCE)
        return FALLBACK_REFERENCE

    def _model_reference(self, model: ModelType) -> str:
        """Map an intrinsic, or declare a composite model and return its name."""
        if model.is_intrinsic:
            ts_type = INTRINSIC_TS_TYPES.get(model.intrinsic_name)
            if ts_type is None:
                raise UnknownIntrinsicError(model.intrinsic_name)
            return ts_type

        type_ref = self.get_model_declaration_name(model)
        # Recorded before walking properties so cyclic references terminate
        self._known_types[model] = type_ref

        props = []
        for prop in model.properties:
            marker = "?" if prop.optional else ""
            props.append(f"{prop.name}{marker}: {self.get_type_reference(prop.type_def)}")

        self._declarations.append(render_interface(type_ref, props))
        logger.debug("Declared interface %s", type_ref)
        return type_ref

    def get_model_declaration_name(self, model: ModelType) -> str:
        """Return the declaration name of a model.

        Template instantiations have no name of their own, so one is built
        from the template name followed by each argument's name, e.g.
        ``Page<User>`` -> ``PageUser`` and ``Page<User[]>`` -> ``PageUserArray``.
        """
        if not model.is_template_instance:
            return model.name

        parameter_names = []
        for argument in model.template_arguments:
            if argument.is_model:
                parameter_names.append(self.get_model_declaration_name(argument))
            elif argument.is_array and argument.element_type.is_model:
                parameter_names.append(self.get_model_declaration_name(argument.element_type) + "Array")
            else:
                raise UnsupportedTemplateArgumentError(model.name, argument.kind.value)

        return model.name + "".join(parameter_names)


def render_interface(name: str, props: list[str]) -> str:
    """Render an interface declaration on a single line."""
    if not props:
        return f"interface {name} {{}}"
    return f"interface {name} {{ {', '.join(props)} }}"
