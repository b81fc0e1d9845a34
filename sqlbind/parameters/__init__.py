"""Placeholder parsing, parameter binding and format substitution."""

from sqlbind.parameters.binder import MISSING, ParameterBinder, resolve_path
from sqlbind.parameters.formatter import FormatResolver, resolve_formats
from sqlbind.parameters.parser import extract_references
from sqlbind.parameters.types import (
    BoundStatement,
    FormatToken,
    FormatTokenKind,
    ParameterReference,
    ParameterStyle,
    TemplateReferences,
)

__all__ = (
    "MISSING",
    "BoundStatement",
    "FormatResolver",
    "FormatToken",
    "FormatTokenKind",
    "ParameterBinder",
    "ParameterReference",
    "ParameterStyle",
    "TemplateReferences",
    "extract_references",
    "resolve_formats",
    "resolve_path",
)
