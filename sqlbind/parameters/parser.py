"""Lexical placeholder extraction.

The scanner knows nothing about SQL grammar. A ``:name`` or ``%L`` that sits
inside a quoted string or a comment is reported like any other placeholder.
"""

import re
from functools import lru_cache
from typing import Final

from sqlbind.parameters.types import FormatToken, FormatTokenKind, ParameterReference, TemplateReferences

__all__ = ("FORMAT_TOKEN_REGEX", "NAMED_PARAMETER_REGEX", "extract_references")

PARSE_CACHE_SIZE: Final[int] = 512

# ``::type`` casts and ``word:word`` text are never parameters.
NAMED_PARAMETER_REGEX: Final = re.compile(
    r"""
    (?<![:\w])
    :
    (?P<path>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    """,
    re.VERBOSE,
)

# ``%%`` is matched so that it is consumed as an escape and never as a token.
FORMAT_TOKEN_REGEX: Final = re.compile(r"%(?P<kind>[%sIL])")


@lru_cache(maxsize=PARSE_CACHE_SIZE)
def extract_references(template: str) -> TemplateReferences:
    """Scan ``template`` left to right for named parameters and format tokens.

    Args:
        template: SQL template text.

    Returns:
        The distinct named parameter paths in order of first appearance, every
        named occurrence, and every format token occurrence.
    """
    seen: dict[str, None] = {}
    occurrences: list[ParameterReference] = []
    for match in NAMED_PARAMETER_REGEX.finditer(template):
        path = match.group("path")
        seen.setdefault(path, None)
        occurrences.append(ParameterReference(tuple(path.split(".")), match.start(), match.end()))

    tokens = tuple(
        FormatToken(FormatTokenKind(match.group("kind")), match.start(), match.end())
        for match in FORMAT_TOKEN_REGEX.finditer(template)
        if match.group("kind") != "%"
    )
    return TemplateReferences(tuple(seen), tuple(occurrences), tokens)
