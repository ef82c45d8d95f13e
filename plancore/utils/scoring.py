"""
Weighted multi-criteria task scoring.

Each task gets a blend of three batch-relative criteria:

- deadline urgency: 1 - hours_left / max_hours_left (undated tasks score 0)
- priority: (4 - priority) / max(4 - priority)
- duration: 1 - minutes / max_minutes (shorter tasks score higher)

Every raw criterion is divided by the largest value in the current batch, so
a task's score changes whenever the rest of the batch changes.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from plancore.models.entities import Task
from plancore.utils.numbers import safe_date, utc_now


class ScoringWeights(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    deadline: float = Field(0.5, ge=0)
    priority: float = Field(0.3, ge=0)
    duration: float = Field(0.2, ge=0)


WeightsInput = Optional[Union[ScoringWeights, Mapping]]


def resolve_weights(weights: WeightsInput = None) -> ScoringWeights:
    """Merge a partial weights mapping over the defaults; negative weights raise ValidationError."""
    if weights is None:
        return ScoringWeights()
    if isinstance(weights, ScoringWeights):
        return weights
    return ScoringWeights.model_validate(dict(weights))


@dataclass(frozen=True)
class TaskScore:
    task: Task
    score: float
    deadline_urgency: float
    priority_weight: float
    duration_weight: float


def score_tasks(tasks: List[Task], weights: WeightsInput = None, reference_now: Optional[datetime] = None) -> List[TaskScore]:
    """Score a batch of tasks; output order matches input order."""
    if not tasks:
        return []
    w = resolve_weights(weights)
    now = safe_date(reference_now) or utc_now()

    hours_left = [
        max(0.0, (t.deadline - now).total_seconds() / 3600) if t.deadline is not None else None
        for t in tasks
    ]
    max_hours = max((h for h in hours_left if h is not None), default=0.0)
    max_rank = max(4 - t.priority for t in tasks)
    max_minutes = max(t.estimated_duration for t in tasks)

    scores = []
    for t, hours in zip(tasks, hours_left):
        if hours is None:
            urgency = 0.0
        elif max_hours > 0:
            urgency = 1 - hours / max_hours
        else:
            urgency = 1.0  # whole dated batch is due now or overdue
        prio = (4 - t.priority) / max_rank if max_rank > 0 else 0.0
        dur = 1 - t.estimated_duration / max_minutes if max_minutes > 0 else 0.0
        scores.append(TaskScore(
            task=t,
            score=w.deadline * urgency + w.priority * prio + w.duration * dur,
            deadline_urgency=urgency,
            priority_weight=prio,
            duration_weight=dur,
        ))
    return scores


def rank_tasks(tasks: List[Task], weights: WeightsInput = None, reference_now: Optional[datetime] = None) -> List[Task]:
    """Order tasks by descending score; equal scores keep input order."""
    scored = score_tasks(tasks, weights, reference_now)
    return [s.task for s in sorted(scored, key=lambda s: s.score, reverse=True)]
