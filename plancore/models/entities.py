from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Task:
    id: str
    title: str = "Untitled Task"
    priority: int = 3  # 1 = highest urgency
    deadline: Optional[datetime] = None
    estimated_duration: int = 30  # minutes
    status: TaskStatus = TaskStatus.PENDING


@dataclass(frozen=True)
class ScheduledTask:
    id: str
    title: str
    scheduled_start: datetime
    scheduled_end: datetime
    estimated_duration: int  # minutes


@dataclass(frozen=True)
class BudgetItem:
    name: str
    cost: float
    value: float  # importance score, nominally 1-10
    category: Optional[str] = None
    is_selected: bool = False


@dataclass(frozen=True)
class OptimizationResult:
    selected_items: List[BudgetItem] = field(default_factory=list)
    total_cost: float = 0.0
    total_value: float = 0.0
    strategy: str = "empty"

    @property
    def items_selected(self) -> int:
        return len(self.selected_items)
