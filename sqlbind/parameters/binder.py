"""Named parameter binding.

Rewrites ``:name`` and ``:name.nested`` references into the driver's
positional placeholders and collects the resolved values in slot order.
"""

from collections.abc import Mapping
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlbind.exceptions import MissingParameterError
from sqlbind.parameters.parser import extract_references
from sqlbind.parameters.types import BoundStatement, ParameterStyle

__all__ = ("MISSING", "ParameterBinder", "resolve_path")


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def resolve_path(bag: Any, path: "tuple[str, ...]") -> Any:
    """Walk ``bag`` through each segment of ``path``.

    Mappings are indexed by key; any other object is read by attribute, which
    covers dataclasses and plain objects nested in the bag. Attributes that
    are callable (methods) count as absent.

    Returns:
        The resolved value, or :data:`MISSING` if any segment is absent.
    """
    current = bag
    for segment in path:
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif current is None or isinstance(current, (str, bytes, int, float, bool)):
            return MISSING
        else:
            current = getattr(current, segment, MISSING)
            if current is MISSING or callable(current):
                return MISSING
    return current


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterBinder:
    """Binds a parameter bag into a template.

    The binder holds no per-call state, so one instance can serve any number
    of concurrent executions.
    """

    __slots__ = ("_style",)

    def __init__(self, style: ParameterStyle = ParameterStyle.NUMERIC) -> None:
        self._style = style

    @property
    def style(self) -> ParameterStyle:
        return self._style

    def bind(self, template: str, params: "Optional[Any]" = None, *, name: "Optional[str]" = None) -> BoundStatement:
        """Resolve every named reference in ``template`` against ``params``.

        Args:
            template: SQL text with ``:name`` placeholders.
            params: Parameter bag; a mapping or attribute-bearing object.
            name: Statement name, used in error messages.

        Raises:
            MissingParameterError: If any path cannot be resolved. Every
                unresolved path is listed.

        Returns:
            The rewritten SQL and its positional values, one per distinct path.
        """
        references = extract_references(template)
        if not references.occurrences:
            return BoundStatement(template, (), ())

        bag = params if params is not None else {}
        resolved: dict[str, Any] = {}
        missing: list[str] = []
        for path in references.named_params:
            value = resolve_path(bag, tuple(path.split(".")))
            if value is MISSING:
                missing.append(path)
            else:
                resolved[path] = value

        if missing:
            raise MissingParameterError(tuple(missing), template, name)

        slots = {path: index for index, path in enumerate(references.named_params, start=1)}
        parts: list[str] = []
        cursor = 0
        for occurrence in references.occurrences:
            parts.append(template[cursor : occurrence.start])
            parts.append(self._style.placeholder(slots[occurrence.name]))
            cursor = occurrence.end
        parts.append(template[cursor:])

        names = references.named_params
        return BoundStatement("".join(parts), tuple(resolved[path] for path in names), names, resolved)
