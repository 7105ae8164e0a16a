"""Path filter compilation for file listings"""

import re
import logging
from enum import Enum
from typing import Optional, Pattern

from ..exceptions import FilterCompilationError

logger = logging.getLogger(__name__)


GLOB_CHARS = ('*', '?')
REGEX_MARKERS = ('[', '(')


class FilterKind(Enum):
    """How a free-text filter pattern is interpreted"""
    GLOB = 'glob'
    REGEX = 'regex'
    SUBSTRING = 'substring'


def classify_pattern(pattern: str) -> FilterKind:
    """
    Decide how a pattern should be matched.

    Priority order:
    1. Contains * or ? -> glob (even if it also looks like a regex)
    2. Starts with ^ or contains [ or ( -> regular expression
    3. Otherwise -> plain substring

    Args:
        pattern: Free-text pattern as given by the user

    Returns:
        The FilterKind for the pattern
    """
    if any(char in pattern for char in GLOB_CHARS):
        return FilterKind.GLOB
    if pattern.startswith('^') or any(char in pattern for char in REGEX_MARKERS):
        return FilterKind.REGEX
    return FilterKind.SUBSTRING


def glob_to_expression(pattern: str) -> str:
    """
    Translate a glob into a lower-cased, unanchored regular expression.

    Backslashes and dots are escaped; * becomes .* and ? becomes . while any
    other character is passed through to the expression unchanged.
    """
    expression = (
        pattern
        .replace('\\', '\\\\')
        .replace('.', '\\.')
        .replace('*', '.*')
        .replace('?', '.')
    )
    return expression.lower()


class PathFilter:
    """
    Case-insensitive predicate over full paths.

    Candidates are expected to be lower-cased by the caller; the pattern is
    lower-cased at compile time. Glob and regex patterns are searched
    anywhere in the path, substrings use containment.
    """

    def __init__(self, pattern: str, kind: FilterKind, expression: str,
                 regex: Optional[Pattern[str]] = None):
        self.pattern = pattern
        self.kind = kind
        self.expression = expression
        self._regex = regex

    @classmethod
    def compile(cls, pattern: str) -> 'PathFilter':
        """
        Compile a free-text pattern.

        Args:
            pattern: Glob, regular expression or substring

        Returns:
            PathFilter ready to match lower-cased paths

        Raises:
            FilterCompilationError: If a glob or regex pattern does not compile
        """
        kind = classify_pattern(pattern)

        if kind is FilterKind.SUBSTRING:
            logger.debug(f"Using substring filter: {pattern.lower()}")
            return cls(pattern, kind, pattern.lower())

        if kind is FilterKind.GLOB:
            expression = glob_to_expression(pattern)
        else:
            expression = pattern.lower()

        try:
            regex = re.compile(expression)
        except re.error as e:
            raise FilterCompilationError(pattern, expression, str(e)) from e

        logger.debug(f"Using {kind.value} filter: {expression}")
        return cls(pattern, kind, expression, regex)

    def matches(self, path_lower: str) -> bool:
        """
        Check whether a lower-cased path passes the filter.

        Args:
            path_lower: Full path, already lower-cased

        Returns:
            True if the path matches, False otherwise
        """
        if self._regex is not None:
            return self._regex.search(path_lower) is not None
        return self.expression in path_lower

    def __repr__(self) -> str:
        return f"PathFilter(kind={self.kind.value}, expression={self.expression!r})"


def compile_filter(pattern: Optional[str]) -> Optional[PathFilter]:
    """Compile an optional pattern; None or an empty pattern means no filter"""
    if not pattern:
        return None
    return PathFilter.compile(pattern)
