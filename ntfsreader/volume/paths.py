"""Canonical volume paths for file table and journal access"""

DEVICE_PREFIX = '\\\\.\\'
EXTENDED_PREFIX = '\\\\?\\'


def _drive_letter(volume: str):
    """Return the drive letter of 'X:' or 'X:\\', or None for anything else"""
    if len(volume) == 2 and volume[1] == ':':
        return volume[0]
    if len(volume) == 3 and volume.endswith(':\\'):
        return volume[0]
    return None


def _normalize(volume: str, prefix: str) -> str:
    volume = volume.strip()
    letter = _drive_letter(volume)
    if letter is None:
        # Assumed to be qualified already
        return volume
    return f"{prefix}{letter}:"


def normalize_mft_path(volume: str) -> str:
    """
    Normalize a volume identifier for file table access.

    'C:' and 'C:\\' become '\\\\.\\C:'; any other input is returned as given
    (after trimming), which makes the function idempotent.
    """
    return _normalize(volume, DEVICE_PREFIX)


def normalize_journal_path(volume: str) -> str:
    """
    Normalize a volume identifier for journal access.

    'C:' and 'C:\\' become the extended-length form '\\\\?\\C:'; any other
    input is returned as given (after trimming).
    """
    return _normalize(volume, EXTENDED_PREFIX)
