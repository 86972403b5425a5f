"""Append-only audit journal (JSON lines)."""

from journal.writer import JournalWriter, read_events

__all__ = ["JournalWriter", "read_events"]
