"""Volume access: path normalization, reason labels and the NTFS backend"""

from .paths import normalize_mft_path, normalize_journal_path
from .reasons import reason_to_str
from .backend import DissectBackend, Volume, MasterFileTable, JournalSession

__all__ = [
    'normalize_mft_path',
    'normalize_journal_path',
    'reason_to_str',
    'DissectBackend',
    'Volume',
    'MasterFileTable',
    'JournalSession',
]
