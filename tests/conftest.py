"""Shared pytest fixtures and configuration for ntfsreader tests"""

import io
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
import pytest

from ntfsreader.exceptions import RecordNotFoundError, VolumeOpenError
from ntfsreader.models import FileEntry, RawJournalRecord
from ntfsreader.volume.reasons import reason_to_str


BASE_TIME = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


class FakeVolume:
    """Volume handle that only records whether it was closed"""

    def __init__(self, path):
        self.path = path
        self.closed = False

    def close(self):
        self.closed = True


class FakeTable:
    """MFT stand-in over a list of FileEntry objects; record numbers are list indexes"""

    def __init__(self, entries):
        self.entries = list(entries)
        self.visited = 0

    def iter_entries(self):
        for entry in self.entries:
            self.visited += 1
            yield entry

    def get_entry(self, record_number):
        if record_number >= len(self.entries) or self.entries[record_number] is None:
            raise RecordNotFoundError(record_number)
        return self.entries[record_number]


class FakeJournal:
    """Journal session returning prepared batches, then empty reads"""

    def __init__(self, batches, options=None):
        self.batches = [list(batch) for batch in batches]
        self.options = options
        self.read_calls = 0

    def read(self):
        self.read_calls += 1
        if self.batches:
            return self.batches.pop(0)
        return []

    @staticmethod
    def reason_to_str(reason):
        return reason_to_str(reason)


class FakeBackend:
    """Collaborator stand-in used by the operations and the CLI"""

    def __init__(self, entries=(), journal_batches=(), fail_open=False):
        self.entries = list(entries)
        self.journal_batches = list(journal_batches)
        self.fail_open = fail_open
        self.opened_paths = []
        self.volumes = []
        self.table = None
        self.journal = None

    def open_volume(self, path):
        self.opened_paths.append(path)
        if self.fail_open:
            raise VolumeOpenError(path, "Access is denied")
        volume = FakeVolume(path)
        self.volumes.append(volume)
        return volume

    def load_mft(self, volume):
        self.table = FakeTable(self.entries)
        return self.table

    def open_journal(self, volume, options):
        self.journal = FakeJournal(self.journal_batches, options)
        return self.journal


def make_entry(path, is_directory=False, size=0, with_times=True):
    """Build a FileEntry whose name is the last path component"""
    name = path.rstrip('\\').rsplit('\\', 1)[-1]
    times = (BASE_TIME, BASE_TIME, BASE_TIME) if with_times else (None, None, None)
    return FileEntry(
        name=name,
        path=path,
        is_directory=is_directory,
        size=0 if is_directory else size,
        created=times[0],
        modified=times[1],
        accessed=times[2],
    )


def make_record(usn, reason=0x00000100, path=None, file_id=None, parent_id=5):
    """Build a RawJournalRecord one second apart per USN"""
    return RawJournalRecord(
        usn=usn,
        timestamp=datetime.fromtimestamp(BASE_TIME.timestamp() + usn, tz=timezone.utc),
        file_id=file_id if file_id is not None else 1000 + usn,
        parent_id=parent_id,
        reason=reason,
        path=path if path is not None else f"C:\\data\\file{usn}.txt",
    )


class RecordingStream(io.BytesIO):
    """BytesIO that keeps a log of writes and flushes in call order"""

    def __init__(self):
        super().__init__()
        self.calls = []

    def write(self, data):
        self.calls.append(('write', bytes(data)))
        return super().write(data)

    def flush(self):
        self.calls.append(('flush', None))
        super().flush()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing"""
    tmpdir = tempfile.mkdtemp(prefix='ntfsreader_test_')
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def sample_entries():
    """A small MFT in table order"""
    return [
        make_entry('C:\\', is_directory=True),
        make_entry('C:\\Users', is_directory=True),
        make_entry('C:\\Users\\a\\Report.PDF', size=2048),
        make_entry('C:\\Users\\a\\notes.txt', size=12),
        make_entry('C:\\Reports', is_directory=True),
        make_entry('C:\\Windows\\system32\\kernel32.dll', size=4096, with_times=False),
    ]


@pytest.fixture
def sample_records():
    """Journal records with ascending USNs"""
    return [make_record(usn) for usn in range(100, 105)]


@pytest.fixture
def stream():
    """Binary output stream that records writes and flushes"""
    return RecordingStream()


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested intervals"""
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep


@pytest.fixture
def config_yaml_file(temp_dir):
    """Create a test YAML configuration file"""
    config_path = Path(temp_dir) / 'config.yaml'
    config_content = """
output:
  format: csv

journal:
  poll_interval: 0.25
  history_size: 50

logging:
  level: warning
"""
    config_path.write_text(config_content)
    return str(config_path)


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
