"""Tests for path filter compilation"""

import pytest

from ntfsreader.exceptions import ConfigurationError, FilterCompilationError
from ntfsreader.mft.filter import (
    FilterKind,
    PathFilter,
    classify_pattern,
    compile_filter,
    glob_to_expression,
)


pytestmark = pytest.mark.unit


class TestClassifyPattern:
    """Test suite for pattern classification"""

    @pytest.mark.parametrize('pattern', ['*.pdf', 'file?.txt', '^*.log', '[ab]*', '(x)?'])
    def test_glob_has_priority(self, pattern):
        """Test that * or ? selects glob even with regex markers present"""
        assert classify_pattern(pattern) is FilterKind.GLOB

    @pytest.mark.parametrize('pattern', ['^c:\\\\users', 'file[0-9]', '(a|b)\\.txt'])
    def test_regex_markers(self, pattern):
        """Test that ^, [ or ( select a regular expression"""
        assert classify_pattern(pattern) is FilterKind.REGEX

    @pytest.mark.parametrize('pattern', ['report', 'C:\\Users', 'a.b', 'x+y'])
    def test_plain_substring(self, pattern):
        """Test that anything else is a substring"""
        assert classify_pattern(pattern) is FilterKind.SUBSTRING


class TestGlobToExpression:
    """Test suite for glob translation"""

    def test_star_and_dot(self):
        """Test that dots are escaped and * expands to any sequence"""
        assert glob_to_expression('*.PDF') == '.*\\.pdf'

    def test_question_mark(self):
        """Test that ? expands to one character"""
        assert glob_to_expression('file?.txt') == 'file.\\.txt'

    def test_backslash_escaped(self):
        """Test that path separators are escaped"""
        assert glob_to_expression('C:\\*') == 'c:\\\\.*'


class TestPathFilter:
    """Test suite for compiled filters"""

    def test_substring_is_case_insensitive(self):
        """Test that REPORT matches a lower-cased path containing report"""
        path_filter = PathFilter.compile('REPORT')
        assert path_filter.kind is FilterKind.SUBSTRING
        assert path_filter.matches('c:\\users\\a\\report.pdf')
        assert not path_filter.matches('c:\\users\\a\\notes.txt')

    def test_glob_matches_anywhere(self):
        """Test that glob expressions are searched, not anchored"""
        path_filter = PathFilter.compile('*.pdf')
        assert path_filter.matches('c:\\users\\a\\report.pdf')
        assert path_filter.matches('c:\\a.pdf.bak')
        assert not path_filter.matches('c:\\users\\a\\reportxpdf')

    def test_glob_with_path(self):
        """Test a glob containing path separators"""
        path_filter = PathFilter.compile('C:\\Users\\*.txt')
        assert path_filter.matches('c:\\users\\a\\notes.txt')
        assert not path_filter.matches('c:\\windows\\notes.txt')

    def test_regex(self):
        """Test that regular expressions are lower-cased and searched"""
        path_filter = PathFilter.compile('^C:\\\\USERS\\\\[a-z]\\\\')
        assert path_filter.kind is FilterKind.REGEX
        assert path_filter.matches('c:\\users\\a\\notes.txt')
        assert not path_filter.matches('d:\\c:\\users\\a\\notes.txt')

    def test_malformed_regex_raises(self):
        """Test that a broken expression is an error, not a missing filter"""
        with pytest.raises(FilterCompilationError) as exc_info:
            PathFilter.compile('(unclosed')

        assert "(unclosed" in str(exc_info.value)
        assert isinstance(exc_info.value, ConfigurationError)

    def test_malformed_glob_raises(self):
        """Test that a glob producing an invalid expression is an error"""
        with pytest.raises(FilterCompilationError) as exc_info:
            PathFilter.compile('[*')

        assert exc_info.value.expression == '[.*'

    def test_compile_filter_without_pattern(self):
        """Test that no pattern means no filter"""
        assert compile_filter(None) is None
        assert compile_filter('') is None
        assert compile_filter('abc') is not None
