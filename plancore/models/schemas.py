"""
Boundary coercion for loose task and budget records.

Records reach the core as JSON-like mappings (or objects exposing the same
attributes). Each field is coerced here, once, to the type and default the
algorithms rely on; a record that cannot be coerced is skipped and counted,
never raised.
"""

import logging
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from plancore.config.settings import get_settings
from plancore.models.entities import BudgetItem, Task, TaskStatus
from plancore.utils.numbers import safe_date, safe_number

logger = logging.getLogger(__name__)


def _default_duration() -> int:
    return get_settings().default_task_duration_minutes


def _default_priority() -> int:
    return get_settings().default_task_priority


class TaskRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str = "Untitled Task"
    priority: int = Field(default_factory=_default_priority)
    deadline: Optional[datetime] = None
    estimated_duration: int = Field(
        default_factory=_default_duration,
        validation_alias=AliasChoices("estimated_duration", "estimatedDuration"),
    )
    status: TaskStatus = TaskStatus.PENDING

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any):
        """Identifiers are opaque; anything with a non-blank string form is usable."""
        if v is None:
            raise ValueError("task has no identifier")
        ident = str(v).strip()
        if not ident:
            raise ValueError("task has no identifier")
        return ident

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any):
        if v is None or not str(v).strip():
            return "Untitled Task"
        return str(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any):
        number = safe_number(v, None)
        if number is None or not number.is_integer() or not 1 <= number <= 3:
            return _default_priority()
        return int(number)

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Any):
        return safe_date(v)

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def validate_duration(cls, v: Any):
        number = safe_number(v, None)
        if number is None or int(number) <= 0:
            return _default_duration()
        return int(number)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any):
        try:
            return TaskStatus(v)
        except (TypeError, ValueError):
            return TaskStatus.PENDING

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            priority=self.priority,
            deadline=self.deadline,
            estimated_duration=self.estimated_duration,
            status=self.status,
        )


class BudgetItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    name: str = "Unnamed Item"
    cost: float
    value: float
    category: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any):
        if v is None or not str(v).strip():
            return "Unnamed Item"
        return str(v)

    @field_validator("cost", "value", mode="before")
    @classmethod
    def validate_amount(cls, v: Any):
        """Costs and values must be finite and non-negative before entering the DP."""
        number = safe_number(v, None)
        if number is None or number < 0:
            raise ValueError("must be a non-negative finite number")
        return number

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    def to_domain(self) -> BudgetItem:
        return BudgetItem(name=self.name, cost=self.cost, value=self.value, category=self.category)


def _validate(model, record: Any):
    if is_dataclass(record) and not isinstance(record, type):
        record = asdict(record)
    return model.model_validate(record)


def parse_tasks(records: Optional[Iterable[Any]]) -> List[Task]:
    """Coerce task records, skipping the ones without a usable identifier."""
    tasks: List[Task] = []
    skipped = 0
    for record in records or []:
        try:
            tasks.append(_validate(TaskRecord, record).to_domain())
        except ValidationError as exc:
            skipped += 1
            logger.debug(f"Skipping task record: {exc.errors()[0]['msg']}")
    if skipped:
        logger.warning(f"Skipped {skipped} unusable task record(s)")
    return tasks


def parse_budget_items(records: Optional[Iterable[Any]]) -> List[BudgetItem]:
    """Coerce budget item records, skipping the ones with unusable cost or value."""
    items: List[BudgetItem] = []
    skipped = 0
    for record in records or []:
        try:
            items.append(_validate(BudgetItemRecord, record).to_domain())
        except ValidationError as exc:
            skipped += 1
            logger.debug(f"Skipping budget item record: {exc.errors()[0]['msg']}")
    if skipped:
        logger.warning(f"Skipped {skipped} unusable budget item record(s)")
    return items


def parse_constraints(constraints: Optional[Mapping]) -> Dict[str, float]:
    """Keep only category caps expressed as a fraction in (0, 1]."""
    limits: Dict[str, float] = {}
    for category, fraction in (constraints or {}).items():
        number = safe_number(fraction, None)
        if number is None or not 0 < number <= 1:
            logger.warning(f"Ignoring constraint for category {category!r}: {fraction!r} is not in (0, 1]")
            continue
        limits[str(category)] = number
    return limits
