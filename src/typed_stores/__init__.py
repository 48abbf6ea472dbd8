"""Typed Stores - TypeScript store classes generated from model declarations."""

from typed_stores.config import EmitterOptions, load_options
from typed_stores.emitter import INTRINSIC_TS_TYPES, Resolution, TypeScriptEmitter
from typed_stores.errors import (
    EmitterError,
    UnknownIntrinsicError,
    UnsupportedTemplateArgumentError,
    UnsupportedTypeKindError,
)
from typed_stores.parsing import TypeParser
from typed_stores.store import StoreArtifact, StoreDeclarationBuilder, render_store_class
from typed_stores.types import (
    ArrayType,
    EnumType,
    ModelProperty,
    ModelType,
    NumberType,
    StoreRegistration,
    StringLiteralType,
    TypeDefinition,
    TypeKind,
    TypeRegistry,
    UnionType,
)
from typed_stores.writer import EmitReport, StoreWriter, emit_stores

__all__ = [
    # Main API
    "TypeParser",
    "TypeScriptEmitter",
    "Resolution",
    "StoreDeclarationBuilder",
    "StoreArtifact",
    "render_store_class",
    "INTRINSIC_TS_TYPES",
    # Output
    "StoreWriter",
    "EmitReport",
    "emit_stores",
    "EmitterOptions",
    "load_options",
    # Errors
    "EmitterError",
    "UnknownIntrinsicError",
    "UnsupportedTemplateArgumentError",
    "UnsupportedTypeKindError",
    # Type graph
    "TypeDefinition",
    "TypeKind",
    "ModelType",
    "ModelProperty",
    "ArrayType",
    "UnionType",
    "NumberType",
    "StringLiteralType",
    "EnumType",
    "StoreRegistration",
    "TypeRegistry",
]

__version__ = "0.1.0"
