"""Summary: Error taxonomy for scan runs.

Importance: Separates fatal load errors from isolated and post-merge failures.
Alternatives: Raise RuntimeError everywhere and inspect messages.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for scan pipeline errors."""


class LoadFailure(TrackerError):
    """The tracker document could not be loaded; the run is aborted."""


class SchoolScanFailure(TrackerError):
    """Scanning a single school failed; other schools are unaffected."""

    def __init__(self, school: str, reason: str) -> None:
        super().__init__(f"{school}: {reason}")
        self.school = school
        self.reason = reason


class SaveFailure(TrackerError):
    """The merged document was computed but not persisted."""


class NotifyFailure(TrackerError):
    """The decision alert could not be delivered."""


class StaleVersionError(RuntimeError):
    """The version token supplied on save no longer matches the stored file."""
