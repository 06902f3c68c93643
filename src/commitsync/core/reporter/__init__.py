"""
Remote reporters: deliver a run's delta to the remote.

The protocol is satisfied by the HTTP client used in production and by
an in-memory double used in tests.
"""

from commitsync.core.reporter.backend import RemoteReporter, ReportResult
from commitsync.core.reporter.http import HttpReporter
from commitsync.core.reporter.memory import InMemoryReporter

__all__ = [
    "HttpReporter",
    "InMemoryReporter",
    "RemoteReporter",
    "ReportResult",
]
