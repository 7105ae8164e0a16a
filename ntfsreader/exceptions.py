"""Exceptions raised by ntfsreader operations"""

from typing import Optional


class NtfsReaderError(Exception):
    """Base exception for ntfsreader errors"""
    pass


class ConfigurationError(NtfsReaderError, ValueError):
    """Raised when options or configuration values are invalid"""
    pass


class FilterCompilationError(ConfigurationError):
    """Raised when a --filter pattern cannot be compiled"""

    def __init__(self, pattern: str, expression: str, reason: str):
        self.pattern = pattern
        self.expression = expression
        message = f"Invalid filter pattern '{pattern}'"
        if expression != pattern:
            message += f" (compiled as '{expression}')"
        message += f": {reason}"
        super().__init__(message)


class UnsupportedFormatError(ConfigurationError):
    """Raised when an output format is not available for an operation"""

    def __init__(self, output_format: str, operation: str):
        self.output_format = output_format
        self.operation = operation
        super().__init__(
            f"Output format '{output_format}' is not supported for {operation}. "
            f"Use json, json-pretty or csv"
        )


class VolumeOpenError(NtfsReaderError):
    """Raised when the volume cannot be opened"""

    def __init__(self, volume_path: str, reason: Optional[str] = None):
        self.volume_path = volume_path
        message = (
            f"Failed to open volume {volume_path}. "
            f"Make sure you're running as Administrator."
        )
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class TableLoadError(NtfsReaderError):
    """Raised when the Master File Table cannot be loaded"""
    pass


class JournalOpenError(NtfsReaderError):
    """Raised when the USN journal cannot be opened"""
    pass


class JournalReadError(NtfsReaderError):
    """Raised when reading journal records fails"""
    pass


class RecordNotFoundError(NtfsReaderError):
    """Raised when an MFT record number does not resolve to a file record"""

    def __init__(self, record_number: int, reason: Optional[str] = None):
        self.record_number = record_number
        message = f"Record {record_number} not found or invalid"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SerializationError(NtfsReaderError):
    """Raised when records cannot be encoded in the requested format"""
    pass
