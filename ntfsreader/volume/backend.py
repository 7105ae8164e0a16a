"""
NTFS access through dissect.ntfs.

Provides the volume, file table and journal session objects consumed by the
listing and monitoring operations. Everything here is a thin binding: record
decoding is done by dissect.ntfs, this module only maps its objects onto
FileEntry and RawJournalRecord.
"""

import logging
from collections import OrderedDict
from typing import BinaryIO, Iterator, List, Optional

from dissect.ntfs import NTFS
from dissect.ntfs.c_ntfs import ATTRIBUTE_TYPE_CODE, USN_PAGE_SIZE
from dissect.ntfs.exceptions import Error as DissectError
from dissect.ntfs.usnjrnl import UsnRecord

from ..exceptions import (
    JournalOpenError,
    JournalReadError,
    RecordNotFoundError,
    TableLoadError,
    VolumeOpenError,
)
from ..models import FileEntry, JournalOptions, RawJournalRecord, StartPosition, USN_MIN, ALL_REASONS
from .reasons import reason_to_str

logger = logging.getLogger(__name__)

READ_BATCH_SIZE = 512

# Errors dissect.ntfs surfaces while decoding on-disk structures
DECODE_ERRORS = (DissectError, EOFError, OSError, ValueError)

# Parent directory stand-ins in UsnRecord.full_path
PLACEHOLDER_MARKERS = ("<unavailable_reference_", "<broken_reference_")


def lossy_text(value: Optional[str]) -> str:
    """Replace characters that cannot be encoded as UTF-8 (e.g. lone surrogates)"""
    if not value:
        return ''
    return value.encode('utf-8', 'replace').decode('utf-8')


def reference_number(reference) -> int:
    """
    Encode an NTFS file reference as its 64-bit number.

    The segment number occupies the low 48 bits and the sequence number the
    high 16 bits. Accepts a plain integer or a decoded MFT_SEGMENT_REFERENCE.
    """
    if isinstance(reference, int):
        return reference
    if hasattr(reference, 'SegmentNumberLowPart'):
        segment = reference.SegmentNumberLowPart | (reference.SegmentNumberHighPart << 32)
    else:
        segment = reference.SegmentNumber
    return segment | (reference.SequenceNumber << 48)


class Volume:
    """An open, read-only handle on a volume or NTFS image"""

    def __init__(self, path: str, fh: BinaryIO):
        self.path = path
        self.fh = fh

    @classmethod
    def open(cls, path: str) -> 'Volume':
        """
        Open a normalized volume path for reading.

        Raises:
            VolumeOpenError: If the path is invalid or access is denied
        """
        try:
            fh = open(path, 'rb')
        except OSError as e:
            raise VolumeOpenError(path, e.strerror or str(e)) from e
        logger.debug(f"Opened volume handle for {path}")
        return cls(path, fh)

    def filesystem(self) -> NTFS:
        """Parse the file system from the start of the volume"""
        self.fh.seek(0)
        return NTFS(fh=self.fh)

    def close(self) -> None:
        if not self.fh.closed:
            self.fh.close()
            logger.debug(f"Closed volume handle for {self.path}")

    def __enter__(self) -> 'Volume':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MasterFileTable:
    """Read access to the MFT of an open volume"""

    def __init__(self, mft):
        self._mft = mft

    @classmethod
    def load(cls, volume: Volume) -> 'MasterFileTable':
        """
        Load the MFT of a volume.

        Raises:
            TableLoadError: If the boot sector or MFT cannot be decoded
        """
        try:
            fs = volume.filesystem()
        except DECODE_ERRORS as e:
            raise TableLoadError(f"Failed to load MFT from {volume.path}: {e}") from e

        if fs.mft is None:
            raise TableLoadError(f"Failed to load MFT from {volume.path}: no MFT found")
        return cls(fs.mft)

    def iter_entries(self) -> Iterator[FileEntry]:
        """
        Yield one FileEntry per named MFT segment, in table order.

        Raises:
            TableLoadError: If the table cannot be walked
        """
        try:
            for record in self._mft.segments():
                entry = self._to_entry(record)
                if entry is not None:
                    yield entry
        except DECODE_ERRORS as e:
            raise TableLoadError(f"Failed to iterate MFT: {e}") from e

    def get_entry(self, record_number: int) -> FileEntry:
        """
        Fetch one entry by record (segment) number.

        Raises:
            RecordNotFoundError: If the segment is missing or has no file name
        """
        try:
            record = self._mft.get(record_number)
        except DECODE_ERRORS as e:
            raise RecordNotFoundError(record_number, str(e)) from e

        entry = self._to_entry(record)
        if entry is None:
            raise RecordNotFoundError(record_number, "record has no file name")
        return entry

    @staticmethod
    def _to_entry(record) -> Optional[FileEntry]:
        try:
            name = record.filename
        except DECODE_ERRORS:
            return None
        if not name:
            return None

        is_directory = bool(record.is_dir())

        size = 0
        if not is_directory:
            try:
                size = record.size()
            except DECODE_ERRORS:
                size = 0

        try:
            path = record.full_path()
        except DECODE_ERRORS:
            path = name

        created, modified, accessed = _standard_times(record)

        return FileEntry(
            name=lossy_text(name),
            path=lossy_text(path),
            is_directory=is_directory,
            size=size,
            created=created,
            modified=modified,
            accessed=accessed,
        )


def _standard_times(record):
    """Created, modified and accessed times from $STANDARD_INFORMATION, or Nones"""
    try:
        info = record.attributes[ATTRIBUTE_TYPE_CODE.STANDARD_INFORMATION][0]
        return info.creation_time, info.last_modification_time, info.last_access_time
    except (KeyError, IndexError, AttributeError) + DECODE_ERRORS:
        return None, None, None


class JournalSession:
    """
    Sequential reader over the $UsnJrnl:$J stream of a volume.

    Tracks the next USN to return and the byte offset just past the last
    consumed record. Once the decoded record stream is exhausted, the next
    read re-parses the file system so records appended since then become
    visible, and resumes decoding at that offset.
    """

    def __init__(self, volume: Volume, options: JournalOptions):
        self.volume = volume
        self.options = options
        self._history: 'OrderedDict[int, str]' = OrderedDict()
        self._records: Optional[Iterator[RawJournalRecord]] = None
        self._offset: Optional[int] = None

        journal = self._load_journal(JournalOpenError)
        self._next_usn = self._initial_usn(journal)
        logger.debug(f"Journal session on {volume.path} starts at USN {self._next_usn}")

    @classmethod
    def open(cls, volume: Volume, options: JournalOptions) -> 'JournalSession':
        return cls(volume, options)

    @property
    def next_usn(self) -> int:
        return self._next_usn

    @property
    def offset(self) -> Optional[int]:
        """Byte offset in $J where the next read resumes (None for the start)"""
        return self._offset

    @staticmethod
    def reason_to_str(reason: int) -> str:
        return reason_to_str(reason)

    def read(self) -> List[RawJournalRecord]:
        """
        Return the next batch of records in ascending USN order.

        An empty list means no new records are currently available.

        Raises:
            JournalReadError: If the journal cannot be decoded
        """
        if self._records is None:
            journal = self._load_journal(JournalReadError)
            self._records = self._iter_records(journal, self._next_usn)

        batch = []
        try:
            for record in self._records:
                batch.append(record)
                self._next_usn = record.usn + 1
                if len(batch) >= READ_BATCH_SIZE:
                    break
            else:
                self._records = None
        except DECODE_ERRORS as e:
            self._records = None
            raise JournalReadError(f"Failed to read journal events: {e}") from e

        return batch

    def _load_journal(self, error_cls):
        try:
            journal = self.volume.filesystem().usnjrnl
        except DECODE_ERRORS as e:
            raise error_cls(f"Failed to open USN journal on {self.volume.path}: {e}") from e
        if journal is None:
            raise error_cls(f"Failed to open USN journal on {self.volume.path}: journal not found")
        return journal

    def _initial_usn(self, journal) -> int:
        if self.options.start is StartPosition.FIRST:
            return USN_MIN
        if self.options.start is StartPosition.CUSTOM:
            return self.options.start_usn

        last_usn = None
        try:
            for record in self._scan(journal):
                last_usn = record.record.Usn
        except DECODE_ERRORS as e:
            raise JournalOpenError(f"Failed to locate end of USN journal: {e}") from e
        return 0 if last_usn is None else last_usn + 1

    def _scan(self, journal) -> Iterator[UsnRecord]:
        """Yield decoded records from the resume offset, advancing it past each one"""
        records = journal.records() if self._offset is None else _records_from(journal, self._offset)
        for record in records:
            self._offset = end_offset(record)
            yield record

    def _iter_records(self, journal, start_usn: int) -> Iterator[RawJournalRecord]:
        mask = self.options.reason_mask
        for record in self._scan(journal):
            fields = record.record
            if fields.Usn < start_usn:
                continue
            reason = int(fields.Reason) & ALL_REASONS
            if mask != ALL_REASONS and not reason & mask:
                continue
            file_id = reference_number(fields.FileReferenceNumber)
            yield RawJournalRecord(
                usn=fields.Usn,
                timestamp=record.timestamp,
                file_id=file_id,
                parent_id=reference_number(fields.ParentFileReferenceNumber),
                reason=reason,
                path=self._resolve_path(record, file_id),
            )

    def _resolve_path(self, record, file_id: int) -> str:
        try:
            path = record.full_path
        except DECODE_ERRORS:
            path = None

        if path and not is_placeholder_path(path):
            path = lossy_text(path)
            self._remember(file_id, path)
            return path

        if file_id in self._history:
            self._history.move_to_end(file_id)
            return self._history[file_id]
        return lossy_text(record.filename)

    def _remember(self, file_id: int, path: str) -> None:
        self._history[file_id] = path
        self._history.move_to_end(file_id)
        while len(self._history) > self.options.history_size:
            self._history.popitem(last=False)


def end_offset(record) -> int:
    """Offset of the slot following a record; records are 8-byte aligned"""
    offset = record.offset + record.record.RecordLength
    return offset + (-offset & 7)


def is_placeholder_path(path: str) -> bool:
    """Check for the markers dissect.ntfs puts in place of an unresolvable parent"""
    return any(marker in path for marker in PLACEHOLDER_MARKERS)


def _records_from(journal, offset: int) -> Iterator[UsnRecord]:
    """
    Decode version 2 records of a journal stream starting at a byte offset.

    Zero-filled space skips to the next journal page. Decoding stops at the
    end of the stream.
    """
    fh = journal.fh
    while True:
        fh.seek(offset)
        if fh.read(4) == b'\x00' * 4:
            offset += USN_PAGE_SIZE - (offset % USN_PAGE_SIZE)
            continue

        try:
            record = UsnRecord(journal, fh, offset)
        except EOFError:
            return

        if record.header.MajorVersion == 2:
            yield record
        offset = end_offset(record)


class DissectBackend:
    """Opens volumes, file tables and journal sessions with dissect.ntfs"""

    def open_volume(self, path: str) -> Volume:
        return Volume.open(path)

    def load_mft(self, volume: Volume) -> MasterFileTable:
        return MasterFileTable.load(volume)

    def open_journal(self, volume: Volume, options: JournalOptions) -> JournalSession:
        return JournalSession.open(volume, options)
