"""Record serialization in the supported output formats"""

import json
import logging
from typing import Any, BinaryIO, Sequence, Type

import msgpack

from ..exceptions import SerializationError
from ..models import OutputFormat
from . import bincode

logger = logging.getLogger(__name__)


CSV_SPECIAL_CHARS = (',', '"', '\n')


def escape_csv(value: str) -> str:
    """
    Quote a CSV field if it contains a comma, double quote or newline.

    Internal double quotes are doubled; other fields are returned unchanged.
    """
    if any(char in value for char in CSV_SPECIAL_CHARS):
        return '"' + value.replace('"', '""') + '"'
    return value


def csv_field(value: Any) -> str:
    """Render one value as a CSV field"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    return escape_csv(str(value))


class RecordFormatter:
    """
    Serializes records of one type in one output format.

    Batch rendering frames a whole sequence as one unit (a JSON array, a CSV
    document, one binary blob). Per-record rendering frames every record on
    its own and is used for streaming through a StreamWriter.
    """

    def __init__(self, output_format: OutputFormat, record_type: Type):
        """
        Initialize the formatter.

        Args:
            output_format: Format to produce
            record_type: Record class (JournalEvent or FileRecord); supplies
                the CSV header and, for bincode, the binary layout
        """
        self.output_format = output_format
        self.record_type = record_type

    def render_header(self) -> bytes:
        """CSV header line for the record type"""
        return (','.join(self.record_type.CSV_HEADER) + '\n').encode('utf-8')

    def render_csv_line(self, record: Any) -> bytes:
        return (','.join(csv_field(value) for value in record.csv_values()) + '\n').encode('utf-8')

    def render_batch(self, records: Sequence[Any]) -> bytes:
        """
        Render a whole sequence as one framed unit.

        Raises:
            SerializationError: If a record cannot be encoded
        """
        output_format = self.output_format

        if output_format is OutputFormat.JSON:
            return self._dump_json([record.to_dict() for record in records], pretty=False)
        if output_format is OutputFormat.JSON_PRETTY:
            return self._dump_json([record.to_dict() for record in records], pretty=True)
        if output_format is OutputFormat.CSV:
            return self.render_header() + b''.join(self.render_csv_line(r) for r in records)
        if output_format is OutputFormat.BINCODE:
            return bincode.encode_sequence(records, self._bincode_layout())
        if output_format is OutputFormat.MSGPACK:
            return self._pack([record.csv_values() for record in records])

        raise SerializationError(f"Unsupported output format: {output_format.value}")

    def render_record(self, record: Any) -> bytes:
        """
        Render one record as an independently framed unit.

        CSV yields only the data line; the header is the caller's concern.

        Raises:
            SerializationError: If the record cannot be encoded
        """
        output_format = self.output_format

        if output_format is OutputFormat.JSON:
            return self._dump_json(record.to_dict(), pretty=False)
        if output_format is OutputFormat.JSON_PRETTY:
            return self._dump_json(record.to_dict(), pretty=True)
        if output_format is OutputFormat.CSV:
            return self.render_csv_line(record)
        if output_format is OutputFormat.BINCODE:
            return bincode.encode_record(record, self._bincode_layout())
        if output_format is OutputFormat.MSGPACK:
            return self._pack(record.csv_values())

        raise SerializationError(f"Unsupported output format: {output_format.value}")

    def render_single(self, record: Any) -> bytes:
        """Render a single looked-up record: one JSON object, or header plus one CSV line"""
        if self.output_format is OutputFormat.CSV:
            return self.render_header() + self.render_csv_line(record)
        return self.render_record(record)

    def write_batch(self, stream: BinaryIO, records: Sequence[Any]) -> None:
        """Render the batch completely, then write it once"""
        data = self.render_batch(records)
        stream.write(data)
        stream.flush()
        logger.debug(f"Wrote batch of {len(records)} records ({len(data)} bytes)")

    def write_single(self, stream: BinaryIO, record: Any) -> None:
        stream.write(self.render_single(record))
        stream.flush()

    def stream_writer(self, stream: BinaryIO) -> 'StreamWriter':
        """Create a writer that emits records one at a time"""
        return StreamWriter(self, stream)

    def _bincode_layout(self):
        layout = getattr(self.record_type, 'BINCODE_LAYOUT', None)
        if layout is None:
            raise SerializationError(
                f"bincode is not available for {self.record_type.__name__} records"
            )
        return layout

    @staticmethod
    def _dump_json(value: Any, pretty: bool) -> bytes:
        try:
            if pretty:
                text = json.dumps(value, indent=2, ensure_ascii=False)
            else:
                text = json.dumps(value, separators=(',', ':'), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"JSON encoding failed: {e}") from e
        return (text + '\n').encode('utf-8')

    @staticmethod
    def _pack(value: Any) -> bytes:
        try:
            return msgpack.packb(value, use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as e:
            raise SerializationError(f"MessagePack encoding failed: {e}") from e


class StreamWriter:
    """
    Writes records one by one as they are produced.

    Holds the streaming state explicitly: the CSV header is written exactly
    once, before the first data line. Every write is flushed so a downstream
    reader sees each record without buffering delay.
    """

    def __init__(self, formatter: RecordFormatter, stream: BinaryIO):
        self.formatter = formatter
        self.stream = stream
        self.header_written = False
        self.records_written = 0

    def write(self, record: Any) -> None:
        """
        Serialize and write one record.

        Raises:
            SerializationError: If the record cannot be encoded
        """
        data = self.formatter.render_record(record)

        if self.formatter.output_format is OutputFormat.CSV and not self.header_written:
            self.stream.write(self.formatter.render_header())
            self.header_written = True

        self.stream.write(data)
        self.stream.flush()
        self.records_written += 1
