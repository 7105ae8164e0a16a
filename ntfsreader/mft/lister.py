"""MFT file listing and single-record lookup"""

import logging
from typing import BinaryIO, Iterable, Iterator, List, Optional

from ..exceptions import ConfigurationError, RecordNotFoundError, UnsupportedFormatError
from ..models import FileEntry, FileRecord, OutputFormat
from ..output.formatter import RecordFormatter
from ..volume import DissectBackend, normalize_mft_path
from .filter import PathFilter, compile_filter

logger = logging.getLogger(__name__)


def ensure_text_format(output_format: OutputFormat, operation: str) -> None:
    """
    Reject formats that are not available for MFT operations.

    Raises:
        UnsupportedFormatError: If the format is bincode or msgpack
    """
    if output_format.is_binary:
        raise UnsupportedFormatError(output_format.value, operation)


class FileLister:
    """
    Selects file records from a sequence of MFT entries.

    Each entry goes through the directory predicate, then the path filter,
    then the result cap. Selected records keep table order.
    """

    def __init__(
        self,
        path_filter: Optional[PathFilter] = None,
        directories_only: bool = False,
        limit: Optional[int] = None
    ):
        """
        Initialize the lister.

        Args:
            path_filter: Compiled filter applied to lower-cased paths
            directories_only: Keep only directory entries
            limit: Maximum number of records to select (None for all)

        Raises:
            ConfigurationError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise ConfigurationError(f"Limit cannot be negative: {limit}")

        self.path_filter = path_filter
        self.directories_only = directories_only
        self.limit = limit

    def accepts(self, entry: FileEntry) -> bool:
        """Check the directory predicate and the path filter for one entry"""
        if self.directories_only and not entry.is_directory:
            return False
        if self.path_filter is not None and not self.path_filter.matches(entry.path.lower()):
            return False
        return True

    def select(self, entries: Iterable[FileEntry]) -> Iterator[FileRecord]:
        """Lazily yield the records that pass every predicate, up to the limit"""
        if self.limit == 0:
            return

        selected = 0
        for entry in entries:
            if not self.accepts(entry):
                continue

            yield FileRecord.from_file_entry(entry)
            selected += 1

            if self.limit is not None and selected >= self.limit:
                logger.debug(f"Result limit of {self.limit} reached")
                return

    def collect(self, entries: Iterable[FileEntry]) -> List[FileRecord]:
        return list(self.select(entries))


class FileInfoLookup:
    """Fetches one file record by MFT record number"""

    def __init__(self, table):
        self.table = table

    def lookup(self, record_number: int) -> FileRecord:
        """
        Resolve a record number to a file record.

        Raises:
            RecordNotFoundError: If the record is missing or invalid
        """
        if record_number < 0:
            raise RecordNotFoundError(record_number, "record numbers are non-negative")
        return FileRecord.from_file_entry(self.table.get_entry(record_number))


def list_files(
    volume: str,
    stream: BinaryIO,
    output_format: OutputFormat = OutputFormat.JSON,
    pattern: Optional[str] = None,
    directories_only: bool = False,
    limit: Optional[int] = None,
    backend=None
) -> int:
    """
    List MFT entries of a volume and write them to a stream as one batch.

    Args:
        volume: Volume as given by the user (e.g. "C:")
        stream: Binary stream receiving structured output
        output_format: json, json-pretty or csv
        pattern: Optional glob, regex or substring filter
        directories_only: Keep only directories
        limit: Maximum number of records
        backend: Collaborator providing volumes and tables

    Returns:
        Number of records written

    Raises:
        UnsupportedFormatError: If a binary format is requested
        FilterCompilationError: If the filter pattern does not compile
        VolumeOpenError: If the volume cannot be opened
        TableLoadError: If the MFT cannot be loaded or walked
    """
    ensure_text_format(output_format, 'file listings')
    lister = FileLister(compile_filter(pattern), directories_only, limit)
    backend = backend if backend is not None else DissectBackend()

    volume_path = normalize_mft_path(volume)
    logger.info(f"Opening volume: {volume_path}")
    handle = backend.open_volume(volume_path)

    try:
        logger.info("Loading MFT...")
        table = backend.load_mft(handle)

        logger.info("Iterating files...")
        records = lister.collect(table.iter_entries())
    finally:
        handle.close()

    logger.info(f"Found {len(records)} files")
    RecordFormatter(output_format, FileRecord).write_batch(stream, records)
    return len(records)


def file_info(
    volume: str,
    record_number: int,
    stream: BinaryIO,
    output_format: OutputFormat = OutputFormat.JSON,
    backend=None
) -> FileRecord:
    """
    Look up one MFT record and write it to a stream.

    Returns:
        The record that was written

    Raises:
        UnsupportedFormatError: If a binary format is requested
        VolumeOpenError: If the volume cannot be opened
        TableLoadError: If the MFT cannot be loaded
        RecordNotFoundError: If the record is missing or invalid
    """
    ensure_text_format(output_format, 'file info')
    backend = backend if backend is not None else DissectBackend()

    volume_path = normalize_mft_path(volume)
    logger.info(f"Opening volume: {volume_path}")
    handle = backend.open_volume(volume_path)

    try:
        logger.info("Loading MFT...")
        table = backend.load_mft(handle)
        record = FileInfoLookup(table).lookup(record_number)
    finally:
        handle.close()

    RecordFormatter(output_format, FileRecord).write_single(stream, record)
    return record
