"""USN reason flags and their human-readable labels"""

from typing import List

# Reason flags for USN records
REASON_FLAGS = {
    0x00000001: 'DATA_OVERWRITE',
    0x00000002: 'DATA_EXTEND',
    0x00000004: 'DATA_TRUNCATION',
    0x00000010: 'NAMED_DATA_OVERWRITE',
    0x00000020: 'NAMED_DATA_EXTEND',
    0x00000040: 'NAMED_DATA_TRUNCATION',
    0x00000100: 'FILE_CREATE',
    0x00000200: 'FILE_DELETE',
    0x00000400: 'EA_CHANGE',
    0x00000800: 'SECURITY_CHANGE',
    0x00001000: 'RENAME_OLD_NAME',
    0x00002000: 'RENAME_NEW_NAME',
    0x00004000: 'INDEXABLE_CHANGE',
    0x00008000: 'BASIC_INFO_CHANGE',
    0x00010000: 'HARD_LINK_CHANGE',
    0x00020000: 'COMPRESSION_CHANGE',
    0x00040000: 'ENCRYPTION_CHANGE',
    0x00080000: 'OBJECT_ID_CHANGE',
    0x00100000: 'REPARSE_POINT_CHANGE',
    0x00200000: 'STREAM_CHANGE',
    0x00400000: 'TRANSACTED_CHANGE',
    0x00800000: 'INTEGRITY_CHANGE',
    0x01000000: 'DESIRED_STORAGE_CLASS_CHANGE',
    0x80000000: 'CLOSE',
}

REASON_SEPARATOR = ' | '


def reason_names(reason: int) -> List[str]:
    """
    Names of the flags set in a reason mask, lowest bit first.

    Bits without a known name are reported in hexadecimal so that no part
    of the mask is silently dropped.
    """
    names = []
    unknown = reason
    for flag, name in sorted(REASON_FLAGS.items()):
        if reason & flag:
            names.append(name)
            unknown &= ~flag
    if unknown:
        names.append(f"{unknown:#010x}")
    return names


def reason_to_str(reason: int) -> str:
    """Label for a raw reason mask, e.g. 'DATA_EXTEND | CLOSE'"""
    return REASON_SEPARATOR.join(reason_names(reason))
