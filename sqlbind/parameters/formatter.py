"""Text-level format token substitution.

Format tokens carry content that cannot be a bound parameter, such as table
names or dynamically composed clauses. Values are consumed strictly in the
order the caller supplied them:

- ``%s`` inserts the value verbatim and rescans it, so a fragment may carry
  tokens (and ``:name`` parameters) for later values to fill.
- ``%L`` inserts the value through the driver's literal quoting.
- ``%I`` inserts the value through the driver's identifier quoting.
- ``%%`` is a literal percent sign.

Tokens left over once the values run out are kept as written; the driver
reports them as a syntax error.
"""

from collections.abc import Callable, Sequence
from typing import Any, Optional

from sqlbind.exceptions import FormatValueError
from sqlbind.parameters.parser import FORMAT_TOKEN_REGEX
from sqlbind.parameters.types import FormatTokenKind
from sqlbind.utils.logging import get_logger

__all__ = ("FormatResolver", "QuoteFunction", "resolve_formats")

logger = get_logger("parameters.formatter")

QuoteFunction = Callable[[Any], str]


def _collapse_escapes(text: str) -> str:
    return FORMAT_TOKEN_REGEX.sub(lambda m: "%" if m.group("kind") == "%" else m.group(0), text)


def _render_fragment(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_render_fragment(item) for item in value)
    return str(value)


class FormatResolver:
    """Applies an ordered queue of format values to a template."""

    __slots__ = ("_quote_identifier", "_quote_literal")

    def __init__(self, quote_literal: QuoteFunction, quote_identifier: QuoteFunction) -> None:
        self._quote_literal = quote_literal
        self._quote_identifier = quote_identifier

    def _quote(self, kind: FormatTokenKind, value: Any, name: "Optional[str]") -> str:
        quote = self._quote_literal if kind is FormatTokenKind.LITERAL else self._quote_identifier
        items = value if isinstance(value, (list, tuple)) else (value,)
        rendered: list[str] = []
        for item in items:
            try:
                rendered.append(quote(item))
            except (TypeError, ValueError) as e:
                raise FormatValueError(item, str(e), name) from e
        return ", ".join(rendered)

    def resolve(self, template: str, values: "Sequence[Any]", *, name: "Optional[str]" = None) -> str:
        """Substitute ``values`` into the format tokens of ``template``.

        Args:
            template: SQL template text.
            values: Format values in the order the caller supplied them.
            name: Statement name, used in log and error messages.

        Raises:
            FormatValueError: If a quoting function cannot render a value.

        Returns:
            The substituted SQL text. Named parameters are left untouched.
        """
        if not values:
            return template

        output: list[str] = []
        remaining = template
        consumed = 0
        while consumed < len(values):
            match = FORMAT_TOKEN_REGEX.search(remaining)
            if match is None:
                break
            output.append(remaining[: match.start()])
            tail = remaining[match.end() :]
            kind = match.group("kind")
            if kind == "%":
                output.append("%")
                remaining = tail
                continue

            value = values[consumed]
            consumed += 1
            token_kind = FormatTokenKind(kind)
            if token_kind is FormatTokenKind.FRAGMENT:
                remaining = _render_fragment(value) + tail
            else:
                output.append(self._quote(token_kind, value, name))
                remaining = tail

        output.append(_collapse_escapes(remaining))

        if consumed < len(values):
            logger.warning(
                "Format values left unused for %s: %d supplied, %d consumed",
                name or "statement",
                len(values),
                consumed,
            )
        return "".join(output)


def resolve_formats(
    template: str, values: "Sequence[Any]", quote_literal: QuoteFunction, quote_identifier: QuoteFunction
) -> str:
    """Shortcut for ``FormatResolver(quote_literal, quote_identifier).resolve(template, values)``."""
    return FormatResolver(quote_literal, quote_identifier).resolve(template, values)
