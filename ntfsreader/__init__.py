"""NTFS Master File Table listing and USN change journal monitoring"""

__version__ = '0.1.0'
