"""
Services package containing the radar engines.

Contains:
- entry_store: Technology entry collection
- transitions: Ring moves and deprecation state machine
- snapshots: Snapshot creation and diffing
- scheduler: Deprecation dates, notices, reminders, acknowledgments
- layout: Radar coordinates
- api_versions: API version lifecycle
"""

from tech_radar.services.api_versions import ApiVersionManager, parse_version
from tech_radar.services.entry_store import EntryStore, next_review_date
from tech_radar.services.layout import LayoutEngine
from tech_radar.services.scheduler import DeprecationSchedule, DeprecationScheduler
from tech_radar.services.snapshots import SnapshotEngine, diff_technologies, summarize
from tech_radar.services.transitions import TransitionEngine, calculate_movement

__all__ = [
    "ApiVersionManager",
    "DeprecationSchedule",
    "DeprecationScheduler",
    "EntryStore",
    "LayoutEngine",
    "SnapshotEngine",
    "TransitionEngine",
    "calculate_movement",
    "diff_technologies",
    "next_review_date",
    "parse_version",
    "summarize",
]
