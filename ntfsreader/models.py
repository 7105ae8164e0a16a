"""Data models for journal events, file records and run settings"""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError


ALL_REASONS = 0xFFFFFFFF
DEFAULT_HISTORY_SIZE = 1000
DEFAULT_POLL_INTERVAL = 0.5

USN_MIN = -(2 ** 63)
USN_MAX = 2 ** 63 - 1

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class OutputFormat(Enum):
    """Wire representations a command can emit"""
    JSON = 'json'
    JSON_PRETTY = 'json-pretty'
    CSV = 'csv'
    BINCODE = 'bincode'
    MSGPACK = 'msgpack'

    @property
    def is_binary(self) -> bool:
        return self in (OutputFormat.BINCODE, OutputFormat.MSGPACK)

    @classmethod
    def parse(cls, value: str) -> 'OutputFormat':
        """
        Resolve a user-supplied format name, case-insensitively.

        Accepts the canonical names plus the aliases ``pretty``, ``bin``,
        ``messagepack`` and ``mp``.

        Raises:
            ConfigurationError: If the name is not recognized
        """
        output_format = _FORMAT_ALIASES.get(value.lower())
        if output_format is None:
            raise ConfigurationError(f"Invalid output format: {value}")
        return output_format


_FORMAT_ALIASES = {
    'json': OutputFormat.JSON,
    'json-pretty': OutputFormat.JSON_PRETTY,
    'pretty': OutputFormat.JSON_PRETTY,
    'csv': OutputFormat.CSV,
    'bincode': OutputFormat.BINCODE,
    'bin': OutputFormat.BINCODE,
    'msgpack': OutputFormat.MSGPACK,
    'messagepack': OutputFormat.MSGPACK,
    'mp': OutputFormat.MSGPACK,
}


class StartPosition(Enum):
    """Where a journal session begins reading"""
    FIRST = 'first'
    CUSTOM = 'custom'
    NEXT = 'next'


@dataclass(frozen=True)
class JournalOptions:
    """Options used to open a journal session"""
    start: StartPosition = StartPosition.NEXT
    start_usn: Optional[int] = None
    reason_mask: int = ALL_REASONS
    history_size: int = DEFAULT_HISTORY_SIZE

    def __post_init__(self):
        """Validate journal options"""
        if self.start is StartPosition.CUSTOM:
            if self.start_usn is None:
                raise ConfigurationError("A starting USN is required for a custom start position")
            if not USN_MIN <= self.start_usn <= USN_MAX:
                raise ConfigurationError(f"Starting USN out of range: {self.start_usn}")
        if not 0 <= self.reason_mask <= ALL_REASONS:
            raise ConfigurationError(f"Reason mask must fit in 32 bits: {self.reason_mask:#x}")
        if self.history_size <= 0:
            raise ConfigurationError("History size must be positive")

    @classmethod
    def from_flags(
        cls,
        from_start: bool = False,
        from_usn: Optional[int] = None,
        reason_mask: Optional[int] = None,
        history_size: int = DEFAULT_HISTORY_SIZE
    ) -> 'JournalOptions':
        """
        Build options from command-line flags.

        ``from_start`` takes precedence over ``from_usn``; with neither the
        session starts at the next new record.
        """
        if from_start:
            start, start_usn = StartPosition.FIRST, None
        elif from_usn is not None:
            start, start_usn = StartPosition.CUSTOM, from_usn
        else:
            start, start_usn = StartPosition.NEXT, None

        return cls(
            start=start,
            start_usn=start_usn,
            reason_mask=ALL_REASONS if reason_mask is None else reason_mask,
            history_size=history_size,
        )


@dataclass(frozen=True)
class RawJournalRecord:
    """A change record as decoded from the journal stream"""
    usn: int
    timestamp: datetime
    file_id: int
    parent_id: int
    reason: int
    path: str


@dataclass(frozen=True)
class FileEntry:
    """Metadata of one MFT entry as extracted from the table"""
    name: str
    path: str
    is_directory: bool
    size: int
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    accessed: Optional[datetime] = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_unix_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch; naive datetimes are taken as UTC"""
    return (_as_utc(value) - UNIX_EPOCH) // timedelta(milliseconds=1)


def format_rfc3339(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp as an RFC 3339 string in UTC, or None if absent"""
    if value is None:
        return None
    return _as_utc(value).isoformat().replace('+00:00', 'Z')


@dataclass(frozen=True)
class JournalEvent:
    """Represents one observed change journal record"""
    usn: int
    timestamp_ms: int
    file_id: str
    parent_id: str
    reason: int
    reason_str: str
    path: str

    CSV_HEADER: ClassVar[Tuple[str, ...]] = (
        'usn', 'timestamp_ms', 'file_id', 'parent_id', 'reason', 'reason_str', 'path',
    )

    BINCODE_LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ('usn', 'i64'),
        ('timestamp_ms', 'u128'),
        ('file_id', 'str'),
        ('parent_id', 'str'),
        ('reason', 'u32'),
        ('reason_str', 'str'),
        ('path', 'str'),
    )

    def __post_init__(self):
        """Validate journal event"""
        if not USN_MIN <= self.usn <= USN_MAX:
            raise ValueError(f"USN out of range: {self.usn}")
        if not 0 <= self.reason <= ALL_REASONS:
            raise ValueError(f"Reason must be a 32-bit mask: {self.reason}")

    @classmethod
    def from_usn_record(cls, record: RawJournalRecord, reason_str: str) -> 'JournalEvent':
        """
        Build an event from a decoded journal record.

        Args:
            record: Record returned by the journal session
            reason_str: Label derived from ``record.reason`` by the session

        Returns:
            JournalEvent carrying the unmodified reason mask
        """
        return cls(
            usn=record.usn,
            timestamp_ms=to_unix_millis(record.timestamp),
            file_id=str(record.file_id),
            parent_id=str(record.parent_id),
            reason=record.reason,
            reason_str=reason_str,
            path=record.path,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def csv_values(self) -> List[Any]:
        return [getattr(self, name) for name in self.CSV_HEADER]


@dataclass(frozen=True)
class FileRecord:
    """Snapshot of one MFT entry"""
    name: str
    path: str
    is_directory: bool
    size: int
    created: Optional[str] = None
    modified: Optional[str] = None
    accessed: Optional[str] = None

    CSV_HEADER: ClassVar[Tuple[str, ...]] = (
        'name', 'path', 'is_directory', 'size', 'created', 'modified', 'accessed',
    )

    def __post_init__(self):
        """Validate file record"""
        if self.size < 0:
            raise ValueError(f"Invalid size: {self.size}")

    @classmethod
    def from_file_entry(cls, entry: FileEntry) -> 'FileRecord':
        return cls(
            name=entry.name,
            path=entry.path,
            is_directory=entry.is_directory,
            size=entry.size,
            created=format_rfc3339(entry.created),
            modified=format_rfc3339(entry.modified),
            accessed=format_rfc3339(entry.accessed),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def csv_values(self) -> List[Any]:
        return [getattr(self, name) for name in self.CSV_HEADER]


@dataclass
class Settings:
    """Effective settings for one invocation"""
    default_format: OutputFormat = OutputFormat.JSON
    poll_interval: float = DEFAULT_POLL_INTERVAL
    history_size: int = DEFAULT_HISTORY_SIZE
    log_level: str = 'INFO'

    def __post_init__(self):
        """Validate settings"""
        if not isinstance(self.default_format, OutputFormat):
            raise ConfigurationError("Default format must be an OutputFormat")
        if self.poll_interval <= 0:
            raise ConfigurationError("Poll interval must be positive")
        if self.history_size <= 0:
            raise ConfigurationError("History size must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. Must be one of {sorted(LOG_LEVELS)}"
            )
        self.log_level = self.log_level.upper()
