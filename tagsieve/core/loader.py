"""Rule-file loading for tagsieve.

This module provides FilterLoader, which reads JSON rule files, validates
each filter entry and compiles it so the result is ready for matching.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from tagsieve.core.filter import Filter
from tagsieve.errors import PatternCompileError, TagsieveError, UnsupportedValueError

logger = logging.getLogger(__name__)


class RuleFileError(TagsieveError):
    """Exception raised for rule file errors.

    Attributes:
        message: Error description
        path: Path to the rule file (if available)
        filter_index: Index of the filter entry with the error (if available)
        line: Line number where a JSON syntax error occurred (if available)
    """

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        filter_index: Optional[int] = None,
        line: Optional[int] = None,
    ):
        self.path = path
        self.filter_index = filter_index
        self.line = line

        parts = []
        if path:
            parts.append(f"Error in {path}")
        if filter_index is not None:
            parts.append(f"filter entry {filter_index + 1}")
        if line is not None:
            parts.append(f"at line {line}")
        if parts:
            full_message = f"{' '.join(parts)}: {message}"
        else:
            full_message = message

        super().__init__(full_message)


class FilterLoader:
    """Loader for tagsieve JSON rule files.

    Rule files hold a JSON array of filters:

        [
          {
            "name": "invoices",                 # Optional
            "desc": "Tag invoices as finance",  # Optional
            "rules": [
              {"Subject": "(?i)invoice"},
              {"From": "billing@", "@attachment": ["\\\\.pdf$", "\\\\.xml$"]}
            ],
            "op": {"add": "finance", "rm": "inbox"}
          }
        ]

    Example usage:
        loader = FilterLoader()
        filters = loader.load(Path("tagsieve-rules.json"))
    """

    def __init__(self, skip_invalid: bool = False):
        """Initialize the loader.

        Args:
            skip_invalid: If True, filters that fail validation or
                compilation are logged and skipped. By default the first
                invalid filter aborts loading of the whole file.
        """
        self._skip_invalid = skip_invalid

    def load(self, path: Path) -> list[Filter]:
        """Load and compile the filters of a rule file.

        Raises:
            RuleFileError: If the file is not valid JSON or holds an
                invalid filter (unless skip_invalid is set).
            FileNotFoundError: If the file doesn't exist.
        """
        if not path.exists():
            raise FileNotFoundError(f"Rule file not found: {path}")

        content = path.read_text(encoding="utf-8")
        return self.load_from_string(content, path)

    def load_from_string(self, content: str, path: Optional[Path] = None) -> list[Filter]:
        """Load and compile filters from a JSON string.

        Args:
            content: JSON content as a string
            path: Optional path for error reporting

        Raises:
            RuleFileError: If the content is invalid.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RuleFileError(f"Invalid JSON: {e.msg}", path=path, line=e.lineno) from e

        if not isinstance(data, list):
            raise RuleFileError("Expected a JSON array of filters", path=path)

        filters: list[Filter] = []
        for i, entry in enumerate(data):
            try:
                filters.append(self._parse_filter(entry, i, path))
            except RuleFileError as e:
                if not self._skip_invalid:
                    raise
                logger.warning("Skipping invalid filter: %s", e)

        logger.debug("Loaded %d filter(s) from %s", len(filters), path or "<string>")
        return filters

    def _parse_filter(self, entry: object, index: int, path: Optional[Path]) -> Filter:
        """Validate and compile a single filter entry.

        Raises:
            RuleFileError: If validation or compilation fails.
        """
        try:
            filt = Filter.model_validate(entry)
        except ValidationError as e:
            raise RuleFileError(
                self._format_validation_error(e), path=path, filter_index=index
            ) from e

        try:
            return filt.compile()
        except (PatternCompileError, UnsupportedValueError) as e:
            raise RuleFileError(str(e), path=path, filter_index=index) from e

    def _format_validation_error(self, error: ValidationError) -> str:
        messages = []
        for err in error.errors():
            location = ".".join(str(part) for part in err["loc"])
            messages.append(f"{location}: {err['msg']}" if location else err["msg"])
        return "; ".join(messages)
