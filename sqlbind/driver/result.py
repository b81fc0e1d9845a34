"""Driver result container."""

from dataclasses import dataclass, field
from typing import Any, Optional

__all__ = ("QueryResult",)


@dataclass(slots=True)
class QueryResult:
    """Rows and metadata returned for a single execution."""

    rows: "list[dict[str, Any]]" = field(default_factory=list)
    row_count: int = 0
    command: "Optional[str]" = None
    """Command tag reported by the server (``SELECT``, ``INSERT`` ...)."""
    columns: "list[str]" = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Any:
        return iter(self.rows)

    def one(self) -> "dict[str, Any]":
        """Return the only row, failing when there is not exactly one."""
        if len(self.rows) != 1:
            msg = f"Expected exactly one row, got {len(self.rows)}"
            raise ValueError(msg)
        return self.rows[0]

    def scalar(self) -> Any:
        """First column of the only row."""
        row = self.one()
        return next(iter(row.values()))
