"""Output formats for file records and journal events"""

from .formatter import RecordFormatter, StreamWriter, escape_csv

__all__ = ['RecordFormatter', 'StreamWriter', 'escape_csv']
