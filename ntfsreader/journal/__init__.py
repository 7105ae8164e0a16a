"""USN change journal monitoring"""

from .monitor import JournalMonitor, MonitorState, monitor_journal

__all__ = ['JournalMonitor', 'MonitorState', 'monitor_journal']
