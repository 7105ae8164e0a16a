"""USN change journal monitoring"""

import time
import logging
from enum import Enum
from typing import BinaryIO, Callable, List, Optional

from ..exceptions import ConfigurationError
from ..models import (
    ALL_REASONS,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_POLL_INTERVAL,
    JournalEvent,
    JournalOptions,
    OutputFormat,
    RawJournalRecord,
)
from ..output.formatter import RecordFormatter
from ..volume import DissectBackend, normalize_journal_path

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    """Lifecycle of a journal monitor run"""
    OPENING = 'opening'
    POLLING = 'polling'
    DRAINING = 'draining'
    WAITING = 'waiting'
    TERMINATED = 'terminated'


class JournalMonitor:
    """
    Polls a volume's change journal and emits JournalEvent records.

    In batch mode every matching event is accumulated and written once as a
    single framed unit when the run terminates. In continuous mode each event
    is written (and flushed) as soon as it is read, and the monitor keeps
    polling with a fixed idle interval until interrupted or until the event
    limit is reached.

    After draining a read in batch mode the monitor issues one extra read to
    pick up records that arrived meanwhile. This top-up is best effort, not
    a delivery guarantee.
    """

    def __init__(
        self,
        volume: str,
        options: JournalOptions,
        output_format: OutputFormat,
        stream: BinaryIO,
        backend=None,
        max_events: Optional[int] = None,
        continuous: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the monitor.

        Args:
            volume: Volume as given by the user (e.g. "C:" or a device path)
            options: Start position, reason mask and history size
            output_format: Format for emitted events
            stream: Binary stream receiving structured output
            backend: Collaborator providing volumes and journal sessions
            max_events: Stop after this many events (None for no limit)
            continuous: Stream events and keep polling instead of one batch
            poll_interval: Seconds to sleep when a continuous poll is empty
            sleep: Sleep function, replaceable in tests

        Raises:
            ConfigurationError: If max_events or poll_interval is invalid
        """
        if max_events is not None and max_events < 0:
            raise ConfigurationError(f"Maximum event count cannot be negative: {max_events}")
        if poll_interval <= 0:
            raise ConfigurationError("Poll interval must be positive")

        self.volume = volume
        self.options = options
        self.backend = backend if backend is not None else DissectBackend()
        self.max_events = max_events
        self.continuous = continuous
        self.poll_interval = poll_interval
        self.sleep = sleep

        self.formatter = RecordFormatter(output_format, JournalEvent)
        self.stream = stream
        self._writer = self.formatter.stream_writer(stream) if continuous else None

        self.state = MonitorState.OPENING
        self.events_seen = 0
        self._pending: List[JournalEvent] = []

    def run(self) -> int:
        """
        Open the journal and monitor it until the run terminates.

        Returns:
            Number of events emitted

        Raises:
            VolumeOpenError: If the volume cannot be opened
            JournalOpenError: If the journal session cannot be opened
            JournalReadError: If a read fails
            SerializationError: If an event cannot be encoded
        """
        self.state = MonitorState.OPENING
        volume_path = normalize_journal_path(self.volume)

        logger.info(f"Opening volume: {volume_path}")
        volume = self.backend.open_volume(volume_path)

        try:
            logger.info("Opening USN journal...")
            session = self.backend.open_journal(volume, self.options)
            self._poll(session)
            self._emit_pending()
        finally:
            self.state = MonitorState.TERMINATED
            volume.close()

        return self.events_seen

    def _poll(self, session) -> None:
        if self._limit_reached():
            logger.info(f"Reached maximum event limit: {self.max_events}")
            return

        while True:
            self.state = MonitorState.POLLING
            logger.info("Reading journal events...")
            records = session.read()

            if not records:
                if not self.continuous:
                    logger.info("No more events available.")
                    return
                self.state = MonitorState.WAITING
                logger.info("No new events, waiting...")
                self.sleep(self.poll_interval)
                continue

            logger.info(f"Read {len(records)} events")
            if self._drain(session, records):
                return

            if not self.continuous:
                records = session.read()
                if not records:
                    return
                logger.info(f"Read {len(records)} more events")
                if self._drain(session, records):
                    return

    def _drain(self, session, records: List[RawJournalRecord]) -> bool:
        """Handle one read's records in order; True once the event limit is reached"""
        self.state = MonitorState.DRAINING

        for record in records:
            if not self._accepts(record.reason):
                continue

            event = JournalEvent.from_usn_record(record, session.reason_to_str(record.reason))
            if self._writer is not None:
                self._writer.write(event)
            else:
                self._pending.append(event)

            self.events_seen += 1
            if self._limit_reached():
                logger.info(f"Reached maximum event limit: {self.max_events}")
                return True

        return False

    def _accepts(self, reason: int) -> bool:
        mask = self.options.reason_mask
        return mask == ALL_REASONS or bool(reason & mask)

    def _limit_reached(self) -> bool:
        return self.max_events is not None and self.events_seen >= self.max_events

    def _emit_pending(self) -> None:
        # Continuous mode has already streamed everything
        if self._writer is None and self._pending:
            self.formatter.write_batch(self.stream, self._pending)
            self._pending = []


def monitor_journal(
    volume: str,
    stream: BinaryIO,
    output_format: OutputFormat = OutputFormat.JSON,
    from_start: bool = False,
    from_usn: Optional[int] = None,
    reason_mask: Optional[int] = None,
    max_events: Optional[int] = None,
    continuous: bool = False,
    history_size: int = DEFAULT_HISTORY_SIZE,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    backend=None
) -> int:
    """
    Read the change journal of a volume and write its events to a stream.

    ``from_start`` takes precedence over ``from_usn``; without either only
    records appended after the journal is opened are reported.

    Returns:
        Number of events emitted
    """
    options = JournalOptions.from_flags(
        from_start=from_start,
        from_usn=from_usn,
        reason_mask=reason_mask,
        history_size=history_size,
    )

    monitor = JournalMonitor(
        volume=volume,
        options=options,
        output_format=output_format,
        stream=stream,
        backend=backend,
        max_events=max_events,
        continuous=continuous,
        poll_interval=poll_interval,
    )
    return monitor.run()
