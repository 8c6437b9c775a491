"""
Synchronization Engine

Polls monitored Figma files, picks out comments that mention the trigger,
answers each one in its thread and remembers what was answered.

Key Components:
- matches: trigger phrase test
- find_root / build_context: thread reconstruction from the flat comment list
- select_comments: unprocessed, unresolved, triggering comments
- DocumentProcessor: answers a single comment
- PollCycleRunner: one pass over all monitored files
- Scheduler: interval timer, manual polls, start/stop, status
"""

from .trigger import matches
from .threads import find_root, collect_thread, build_context
from .selector import select_comments
from .status import EngineStatus, StatusBroadcaster
from .processor import DocumentProcessor
from .poller import PollCycleRunner
from .scheduler import Scheduler

__all__ = [
    "matches",
    "find_root",
    "collect_thread",
    "build_context",
    "select_comments",
    "EngineStatus",
    "StatusBroadcaster",
    "DocumentProcessor",
    "PollCycleRunner",
    "Scheduler",
]
