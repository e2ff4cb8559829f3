"""
Workout domain logic for iron-log.

Pure calculations (1RM, plates, progress, PRs), the rest timer and the
session orchestrator.  Nothing here touches the filesystem except the
YAML config and catalog loaders.
"""

from .errors import IronLogError, NotFoundError, PersistenceError, SessionStateError, ValidationError
from .one_rep_max import estimate_one_rep_max
from .plates import calculate_plates, describe_plates
from .progress import compare_progress
from .records import PersonalRecordEvaluator, is_personal_record
from .rest_timer import RestPolicy, RestTimer, rest_duration_for
from .scheduling import TickScheduler
from .session import WorkoutSession

__all__ = [
    "IronLogError",
    "NotFoundError",
    "PersistenceError",
    "SessionStateError",
    "ValidationError",
    "estimate_one_rep_max",
    "calculate_plates",
    "describe_plates",
    "compare_progress",
    "PersonalRecordEvaluator",
    "is_personal_record",
    "RestPolicy",
    "RestTimer",
    "rest_duration_for",
    "TickScheduler",
    "WorkoutSession",
]
