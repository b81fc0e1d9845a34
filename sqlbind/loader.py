"""SQL statement registry backed by a directory of ``.sql`` files.

Each file holds one statement. Its name is the file's path relative to the
root, without the suffix, with directories joined by dots::

    queries/
        users/
            by_id.sql      -> "users.by_id"
        health.sql         -> "health"
"""

import hashlib
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from difflib import get_close_matches
from pathlib import Path
from typing import Any, Final, Optional, Union

from sqlbind.exceptions import SQLFileNotFoundError, SQLFileParseError, StatementNotFoundError
from sqlbind.utils.logging import get_logger

__all__ = ("NamedStatement", "SQLFile", "SQLFileLoader", "event_name_for")

logger = get_logger("loader")

SQL_SUFFIX: Final = ".sql"
MAX_SUGGESTIONS: Final = 3


def event_name_for(statement_name: str) -> str:
    """Name used in events for ``statement_name`` (``a.select`` -> ``a_select``)."""
    return statement_name.replace(".", "_")


class NamedStatement:
    """An immutable statement template with its registry name."""

    __slots__ = ("name", "path", "sql")

    def __init__(self, name: str, sql: str, path: "Optional[str]" = None) -> None:
        self.name = name
        self.sql = sql
        self.path = path

    @property
    def event_name(self) -> str:
        return event_name_for(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, path={self.path!r})"


@dataclass
class SQLFile:
    """Represents a loaded SQL file with metadata."""

    content: str
    """The raw SQL content from the file."""

    path: str
    """Path where the SQL file was loaded from."""

    metadata: "dict[str, Any]" = field(default_factory=dict)
    """Optional metadata associated with the SQL file."""

    checksum: str = field(init=False)
    """MD5 checksum of the SQL content."""

    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    """Timestamp when the file was loaded."""

    def __post_init__(self) -> None:
        self.checksum = hashlib.md5(self.content.encode(), usedforsecurity=False).hexdigest()


class SQLFileLoader:
    """Loads ``.sql`` files and looks statements up by name.

    Example:
        ```python
        loader = SQLFileLoader()
        loader.load_sql("queries")
        template = loader.lookup("users.by_id")
        ```
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._statements: dict[str, NamedStatement] = {}
        self._files: dict[str, SQLFile] = {}

    def _read_file_content(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise SQLFileNotFoundError(str(path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLFileParseError(str(path), str(e)) from e

    def load_sql(self, *paths: Union[str, Path]) -> int:
        """Load statements from directories or single files.

        Directories are scanned recursively and names are derived relative to
        the directory. A single file is named after its stem.

        Returns:
            Number of statements registered.
        """
        start_time = time.perf_counter()
        before = len(self._statements)

        for path in paths:
            path_obj = Path(path)
            if path_obj.is_dir():
                self._load_directory(path_obj)
            elif path_obj.is_file():
                self._load_single_file(path_obj, path_obj.stem)
            else:
                raise SQLFileNotFoundError(str(path))

        loaded = len(self._statements) - before
        duration = time.perf_counter() - start_time
        logger.debug(
            "Loaded %d SQL statements in %.3fms",
            loaded,
            duration * 1000,
            extra={"extra_fields": {"statements_loaded": loaded, "duration_ms": duration * 1000}},
        )
        return loaded

    def _load_directory(self, dir_path: Path) -> None:
        for file_path in sorted(dir_path.rglob(f"*{SQL_SUFFIX}")):
            relative_path = file_path.relative_to(dir_path).with_suffix("")
            self._load_single_file(file_path, ".".join(relative_path.parts))

    def _load_single_file(self, file_path: Path, name: str) -> None:
        path_str = str(file_path)
        content = self._read_file_content(file_path)
        existing = self._statements.get(name)
        if existing is not None and existing.path != path_str:
            raise SQLFileParseError(path_str, f"Duplicate statement name {name!r} (already loaded from {existing.path})")
        self._files[path_str] = SQLFile(content=content, path=path_str)
        self._statements[name] = NamedStatement(name=name, sql=content.strip(), path=path_str)

    def add_named_sql(self, name: str, sql: str) -> None:
        """Register an in-memory statement.

        Raises:
            SQLFileParseError: If ``name`` is already registered.
        """
        if name in self._statements:
            raise SQLFileParseError("<memory>", f"Duplicate statement name {name!r}")
        self._statements[name] = NamedStatement(name=name, sql=sql.strip())

    def get_statement(self, name: str) -> NamedStatement:
        """Return the registered statement.

        Raises:
            StatementNotFoundError: If ``name`` is not registered, with close
                matches as suggestions.
        """
        statement = self._statements.get(name)
        if statement is None:
            suggestions = get_close_matches(name, list(self._statements), n=MAX_SUGGESTIONS, cutoff=0.6)
            raise StatementNotFoundError(name, suggestions)
        return statement

    def lookup(self, name: str) -> str:
        """Return the template text registered under ``name``."""
        return self.get_statement(name).sql

    def has_statement(self, name: str) -> bool:
        return name in self._statements

    def list_statements(self) -> "list[str]":
        return sorted(self._statements)

    def get_file(self, path: Union[str, Path]) -> "Optional[SQLFile]":
        return self._files.get(str(path))

    def clear_cache(self) -> None:
        self._statements.clear()
        self._files.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._statements

    def __len__(self) -> int:
        return len(self._statements)
