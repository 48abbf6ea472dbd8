"""Type graph definitions for the typed_stores emitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TypeKind(Enum):
    """Kinds of type nodes the host type graph can contain."""

    MODEL = "Model"
    ARRAY = "Array"
    UNION = "Union"
    NUMBER = "Number"
    STRING = "String"
    ENUM = "Enum"


# Intrinsic models known to the host. Only some of these have a TypeScript
# mapping; the rest must be rejected by the emitter.
INTRINSIC_NAMES: tuple[str, ...] = (
    "string",
    "boolean",
    "int8",
    "int16",
    "int32",
    "int64",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "float16",
    "float32",
    "float64",
    "bytes",
    "plainDate",
    "plainTime",
    "utcDateTime",
    "duration",
)


@dataclass(eq=False)
class TypeDefinition:
    """Base class for all type nodes.

    Nodes compare and hash by identity: two structurally identical nodes are
    still distinct types.
    """

    kind = TypeKind.MODEL

    @property
    def is_model(self) -> bool:
        """Return whether this node is a model."""
        return False

    @property
    def is_array(self) -> bool:
        """Return whether this node is an array."""
        return False


@dataclass(eq=False)
class ModelProperty:
    """A named property of a model."""

    name: str
    type_def: TypeDefinition
    optional: bool = False


@dataclass(eq=False)
class ModelType(TypeDefinition):
    """A named structural type with ordered properties.

    Intrinsic models (``string``, ``int32``, ...) carry their intrinsic name
    and no properties. Template instantiations keep the template's name and
    list the concrete arguments they were built from.
    """

    kind = TypeKind.MODEL

    name: str
    properties: list[ModelProperty] = field(default_factory=list)
    template_arguments: list[TypeDefinition] = field(default_factory=list)
    intrinsic_name: str | None = None

    @property
    def is_model(self) -> bool:
        return True

    @property
    def is_intrinsic(self) -> bool:
        """Return whether this model is a host primitive."""
        return self.intrinsic_name is not None

    @property
    def is_template_instance(self) -> bool:
        """Return whether this model was instantiated from a template."""
        return bool(self.template_arguments)

    def get_property(self, name: str) -> ModelProperty | None:
        """Get a property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def add_property(self, name: str, type_def: TypeDefinition, optional: bool = False) -> ModelProperty:
        """Append a property, rejecting duplicate names."""
        if self.get_property(name) is not None:
            raise ValueError(f"Property '{name}' is already defined on model '{self.name}'")
        prop = ModelProperty(name=name, type_def=type_def, optional=optional)
        self.properties.append(prop)
        return prop


@dataclass(eq=False)
class ArrayType(TypeDefinition):
    """An array of a single element type."""

    kind = TypeKind.ARRAY

    element_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return True


@dataclass(eq=False)
class UnionType(TypeDefinition):
    """An ordered list of alternative types."""

    kind = TypeKind.UNION

    options: list[TypeDefinition] = field(default_factory=list)


@dataclass(eq=False)
class NumberType(TypeDefinition):
    """A numeric literal type, e.g. ``1`` in ``size: 1 | 2``."""

    kind = TypeKind.NUMBER

    value: int | float

    @property
    def text(self) -> str:
        """Return the literal's textual value."""
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


@dataclass(eq=False)
class StringLiteralType(TypeDefinition):
    """A string literal type."""

    kind = TypeKind.STRING

    value: str


@dataclass(eq=False)
class EnumType(TypeDefinition):
    """A named enumeration."""

    kind = TypeKind.ENUM

    name: str
    members: list[str] = field(default_factory=list)


@dataclass(eq=False)
class StoreRegistration:
    """A model marked as a store, with an optional explicit collection name."""

    model: ModelType
    collection_name: str | None = None

    @property
    def display_name(self) -> str:
        """Return the collection name, defaulting to the model's name."""
        if self.collection_name is not None:
            return self.collection_name
        return self.model.name


class TypeRegistry:
    """Registry of named types, templates, and store registrations."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._templates: dict[str, object] = {}
        self._instances: dict[tuple[str, tuple[int, ...]], ModelType] = {}
        self._arrays: dict[TypeDefinition, ArrayType] = {}
        self._stores: dict[ModelType, str | None] = {}
        self._register_intrinsics()

    def _register_intrinsics(self) -> None:
        """Register all intrinsic models."""
        for name in INTRINSIC_NAMES:
            self._types[name] = ModelType(name=name, intrinsic_name=name)

    def register(self, name: str, type_def: TypeDefinition) -> None:
        """Register a type under a name."""
        if name in self._types or name in self._templates:
            raise ValueError(f"Type '{name}' is already defined")
        self._types[name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_array_type(self, element_type: TypeDefinition) -> ArrayType:
        """Get or create the array type for the given element type."""
        existing = self._arrays.get(element_type)
        if existing is not None:
            return existing
        array_type = ArrayType(element_type=element_type)
        self._arrays[element_type] = array_type
        return array_type

    def register_stub(self, name: str) -> ModelType:
        """Pre-register an empty model for forward/self-references.

        Idempotent: returns the existing stub if name is already an empty,
        non-intrinsic model. Raises ValueError otherwise.
        """
        existing = self._types.get(name)
        if existing is not None:
            if isinstance(existing, ModelType) and not existing.is_intrinsic and not existing.properties:
                return existing
            raise ValueError(f"Type '{name}' is already defined")
        if name in self._templates:
            raise ValueError(f"Type '{name}' is already defined")
        stub = ModelType(name=name)
        self._types[name] = stub
        return stub

    def register_template(self, name: str, template: object) -> None:
        """Register a parameterized model declaration.

        The template object is opaque to the registry; the parser that
        registered it is responsible for instantiating it.
        """
        if name in self._types or name in self._templates:
            raise ValueError(f"Type '{name}' is already defined")
        self._templates[name] = template

    def get_template(self, name: str) -> object | None:
        """Get a template declaration by name."""
        return self._templates.get(name)

    def is_template(self, name: str) -> bool:
        """Check if a name refers to a template."""
        return name in self._templates

    def get_instance(self, name: str, arguments: list[TypeDefinition]) -> ModelType | None:
        """Return a cached instantiation of template ``name`` with ``arguments``."""
        return self._instances.get(self._instance_key(name, arguments))

    def add_instance(self, name: str, arguments: list[TypeDefinition]) -> ModelType:
        """Create and cache an empty instantiation of template ``name``.

        The instance is cached before its properties are populated, so a
        template that refers to itself with the same arguments resolves to the
        same node.
        """
        key = self._instance_key(name, arguments)
        if key in self._instances:
            raise ValueError(f"Template '{name}' is already instantiated with these arguments")
        instance = ModelType(name=name, template_arguments=list(arguments))
        self._instances[key] = instance
        return instance

    @staticmethod
    def _instance_key(name: str, arguments: list[TypeDefinition]) -> tuple[str, tuple[int, ...]]:
        return (name, tuple(id(arg) for arg in arguments))

    def mark_store(self, model: ModelType, collection_name: str | None = None) -> StoreRegistration:
        """Record ``model`` as a store, optionally under an explicit name."""
        if not isinstance(model, ModelType) or model.is_intrinsic:
            raise ValueError("Only declared models can be marked as stores")
        self._stores[model] = collection_name
        return StoreRegistration(model=model, collection_name=collection_name)

    def stores(self) -> list[StoreRegistration]:
        """List store registrations in the order they were recorded."""
        return [
            StoreRegistration(model=model, collection_name=name)
            for model, name in self._stores.items()
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._types or name in self._templates
