"""Core parameter types shared by the parser, binder and format resolver."""

from enum import Enum
from typing import Any, Optional

__all__ = (
    "BoundStatement",
    "FormatToken",
    "FormatTokenKind",
    "ParameterReference",
    "ParameterStyle",
    "TemplateReferences",
)


class ParameterStyle(str, Enum):
    """Positional placeholder syntax emitted for the driver."""

    NUMERIC = "numeric"
    POSITIONAL_COLON = "positional_colon"

    def __str__(self) -> str:
        return self.value

    def placeholder(self, index: int) -> str:
        """Render the 1-based ``index`` in this style."""
        if self is ParameterStyle.POSITIONAL_COLON:
            return f":{index}"
        return f"${index}"


class FormatTokenKind(str, Enum):
    """Kinds of format tokens and how their values are inserted."""

    FRAGMENT = "s"
    LITERAL = "L"
    IDENTIFIER = "I"

    def __str__(self) -> str:
        return self.value


class ParameterReference:
    """One occurrence of a named parameter in a template."""

    __slots__ = ("end", "path", "start")

    def __init__(self, path: "tuple[str, ...]", start: int, end: int) -> None:
        self.path = path
        self.start = start
        self.end = end

    @property
    def name(self) -> str:
        """Dotted form of the path, as written in the template."""
        return ".".join(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.path == other.path and self.start == other.start and self.end == other.end

    def __hash__(self) -> int:
        return hash((self.path, self.start, self.end))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, start={self.start!r}, end={self.end!r})"


class FormatToken:
    """One occurrence of a format token in a template."""

    __slots__ = ("end", "kind", "start")

    def __init__(self, kind: FormatTokenKind, start: int, end: int) -> None:
        self.kind = kind
        self.start = start
        self.end = end

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.kind == other.kind and self.start == other.start and self.end == other.end

    def __hash__(self) -> int:
        return hash((self.kind, self.start, self.end))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, start={self.start!r}, end={self.end!r})"


class TemplateReferences:
    """Result of scanning a template for placeholders.

    ``named_params`` holds each distinct dotted path once, in order of first
    appearance. ``occurrences`` keeps every named reference so each one can
    be rewritten, and ``format_tokens`` keeps every format token.
    """

    __slots__ = ("format_tokens", "named_params", "occurrences")

    def __init__(
        self,
        named_params: "tuple[str, ...]",
        occurrences: "tuple[ParameterReference, ...]",
        format_tokens: "tuple[FormatToken, ...]",
    ) -> None:
        self.named_params = named_params
        self.occurrences = occurrences
        self.format_tokens = format_tokens

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(named_params={self.named_params!r}, "
            f"occurrences={len(self.occurrences)}, format_tokens={len(self.format_tokens)})"
        )


class BoundStatement:
    """Executable SQL text plus its positional values."""

    __slots__ = ("names", "params", "sql", "values")

    def __init__(
        self, sql: str, values: "tuple[Any, ...]", names: "tuple[str, ...]", params: "Optional[dict[str, Any]]" = None
    ) -> None:
        self.sql = sql
        self.values = values
        self.names = names
        self.params = params if params is not None else dict(zip(names, values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.sql == other.sql and self.values == other.values and self.names == other.names

    def __hash__(self) -> int:
        return hash((self.sql, self.names))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sql={self.sql!r}, values={self.values!r})"
