"""
Sequential Task Auto-Scheduler

Assigns every task a concrete, non-overlapping time window on a single
calendar.

Algorithm:
1. Coerce task records (bad priority -> 3, bad duration -> 30 minutes,
   records without an identifier are skipped)
2. Order tasks with the selected strategy (ascending priority by default)
3. Walk the ordered list once, placing each task at the cursor and
   advancing the cursor past the task plus a fixed buffer
4. Roll the cursor to the next working day whenever it reaches the end of
   the working day

Time Complexity: O(n log n) for ordering, O(n) for placement.

Trade-offs:
- Single pass, no backtracking: earlier placements are never reconsidered,
  so one long task can push every later task to following days
- A task may run past the end of the working day; only its successor is
  moved to the next morning
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from plancore.config.settings import Settings, get_settings
from plancore.models.entities import ScheduledTask, Task
from plancore.models.schemas import parse_tasks
from plancore.utils.numbers import safe_date, utc_now
from plancore.utils.scoring import WeightsInput, rank_tasks

logger = logging.getLogger(__name__)


def _sort_by_priority(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.priority)


def _sort_by_deadline(tasks: List[Task]) -> List[Task]:
    return sorted((t for t in tasks if t.deadline is not None), key=lambda t: t.deadline)


def _sort_by_duration(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.estimated_duration)


def earliest_deadline_first(tasks: Iterable[Any]) -> List[Task]:
    """
    Order tasks by ascending deadline.

    Tasks without a parseable deadline are left out of the result.
    """
    return _sort_by_deadline(parse_tasks(tasks))


def priority_scheduling(tasks: Iterable[Any]) -> List[Task]:
    """Order tasks by ascending priority (1 first); equal priorities keep input order."""
    return _sort_by_priority(parse_tasks(tasks))


def shortest_duration_first(tasks: Iterable[Any]) -> List[Task]:
    """Order tasks by ascending resolved duration."""
    return _sort_by_duration(parse_tasks(tasks))


def weighted_scheduling(tasks: Iterable[Any], weights: WeightsInput = None, reference_now: Optional[datetime] = None) -> List[Task]:
    """
    Order tasks by descending weighted score.

    Args:
        tasks: Task records
        weights: Mapping of deadline/priority/duration to weight
                 (defaults 0.5 / 0.3 / 0.2; missing keys keep their default)
        reference_now: Time urgency is measured from (defaults to now)

    Returns:
        Tasks ordered by score, highest first
    """
    return rank_tasks(parse_tasks(tasks), weights, reference_now)


def _order_deadline_then_undated(tasks: List[Task], weights: WeightsInput, now: datetime) -> List[Task]:
    return _sort_by_deadline(tasks) + [t for t in tasks if t.deadline is None]


PLACEMENT_ORDERS: Dict[str, Callable[[List[Task], WeightsInput, datetime], List[Task]]] = {
    "priority": lambda tasks, weights, now: _sort_by_priority(tasks),
    "weighted": rank_tasks,
    "deadline": _order_deadline_then_undated,
    "duration": lambda tasks, weights, now: _sort_by_duration(tasks),
}


def _at_hour(moment: datetime, hour: int) -> datetime:
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(hours=hour)


def first_slot(reference_now: datetime, settings: Settings) -> datetime:
    """Start of the working day of reference_now, or of the next day once it has ended."""
    start = _at_hour(reference_now, settings.workday_start_hour)
    if reference_now >= _at_hour(reference_now, settings.workday_end_hour):
        start += timedelta(days=1)
    return start


def next_slot(cursor: datetime, settings: Settings) -> datetime:
    """Move a cursor that falls outside working hours to the next working-day start."""
    if cursor >= _at_hour(cursor, settings.workday_end_hour):
        return _at_hour(cursor, settings.workday_start_hour) + timedelta(days=1)
    if cursor < _at_hour(cursor, settings.workday_start_hour):
        return _at_hour(cursor, settings.workday_start_hour)
    return cursor


def place_tasks(tasks: List[Task], reference_now: datetime, settings: Optional[Settings] = None) -> List[ScheduledTask]:
    """
    Place already-ordered tasks back to back on one calendar.

    Args:
        tasks: Coerced tasks in placement order
        reference_now: Time the first working day is derived from
        settings: Working hours and buffer (defaults to get_settings())

    Returns:
        One ScheduledTask per placeable task, in placement order. A task
        whose window would run past the last representable datetime is
        skipped and counted; the cursor stays where it was.

    Complexity: O(n)
    """
    settings = settings or get_settings()
    buffer = timedelta(minutes=settings.task_buffer_minutes)
    cursor = first_slot(reference_now, settings)

    scheduled: List[ScheduledTask] = []
    skipped = 0
    for task in tasks:
        start = cursor
        try:
            end = start + timedelta(minutes=task.estimated_duration)
            following = next_slot(end + buffer, settings)
        except OverflowError:
            skipped += 1
            logger.debug(f"Skipping task {task.title!r}: {task.estimated_duration} minutes leaves the calendar range")
            continue
        scheduled.append(ScheduledTask(
            id=task.id,
            title=task.title,
            scheduled_start=start,
            scheduled_end=end,
            estimated_duration=task.estimated_duration,
        ))
        logger.debug(f"Scheduled task {task.title!r} from {start.isoformat()} to {end.isoformat()}")
        cursor = following
    if skipped:
        logger.warning(f"Skipped {skipped} task(s) that could not be placed on the calendar")
    return scheduled


def auto_schedule(
    tasks: Iterable[Any],
    reference_now: Optional[datetime] = None,
    strategy: str = "priority",
    weights: WeightsInput = None,
) -> List[ScheduledTask]:
    """
    Assign each task a non-overlapping [start, end) window.

    Args:
        tasks: Task records already filtered to the not-completed subset
        reference_now: Current time for scheduling purposes (defaults to now).
                       Times are naive UTC, like parsed deadlines; an aware
                       value is converted to naive UTC first
        strategy: Placement order: "priority" (default), "weighted",
                  "deadline" (undated tasks last) or "duration"
        weights: Scoring weights, used by the "weighted" strategy only

    Returns:
        Scheduled tasks in placement order; empty when nothing is schedulable

    Raises:
        ValueError: if the strategy is unknown
    """
    if strategy not in PLACEMENT_ORDERS:
        raise ValueError(f"Unknown scheduling strategy {strategy!r}; expected one of {sorted(PLACEMENT_ORDERS)}")

    valid = parse_tasks(tasks)
    logger.info(f"Found {len(valid)} valid task(s) to schedule")
    if not valid:
        return []

    now = safe_date(reference_now) or utc_now()
    ordered = PLACEMENT_ORDERS[strategy](valid, weights, now)
    scheduled = place_tasks(ordered, now)
    logger.info(f"Scheduled {len(scheduled)} task(s) with the {strategy} strategy")
    return scheduled
