"""Master File Table listing and lookup"""

from .filter import FilterKind, PathFilter, classify_pattern, compile_filter
from .lister import FileLister, FileInfoLookup, list_files, file_info

__all__ = [
    'FilterKind',
    'PathFilter',
    'classify_pattern',
    'compile_filter',
    'FileLister',
    'FileInfoLookup',
    'list_files',
    'file_info',
]
