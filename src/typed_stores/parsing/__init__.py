"""Parsing module for the schema declaration DSL."""

from typed_stores.parsing.type_parser import TypeParser

__all__ = [
    "TypeParser",
]
