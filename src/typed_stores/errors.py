"""Exceptions raised while emitting store declarations."""

from __future__ import annotations


class EmitterError(Exception):
    """Base class for fatal emission errors.

    Raising one aborts the declaration pass for the current store only.
    """


class UnknownIntrinsicError(EmitterError):
    """An intrinsic model has no TypeScript equivalent."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown intrinsic type {name}")


class UnsupportedTemplateArgumentError(EmitterError):
    """A template argument is neither a model nor an array of models."""

    def __init__(self, model_name: str, argument_kind: str) -> None:
        self.model_name = model_name
        self.argument_kind = argument_kind
        super().__init__(
            f"Can't get a name for non-model type ({argument_kind}) "
            f"used to instantiate model template '{model_name}'"
        )


class UnsupportedTypeKindError(EmitterError):
    """A type kind has no TypeScript rendering (strict mode only)."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unsupported type kind '{kind}'")
