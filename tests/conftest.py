from datetime import datetime

import pytest

from plancore.config.settings import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; drop the cache around each test so env overrides apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def monday_9am():
    """Reference now at the start of a working day."""
    return datetime(2026, 10, 19, 9, 0)


@pytest.fixture
def scenario_items():
    """Three items where two cheap ones beat the expensive one."""
    return [
        {"name": "Groceries", "cost": 50, "value": 6},
        {"name": "Restaurant", "cost": 30, "value": 5},
        {"name": "Snacks", "cost": 20, "value": 4},
    ]


@pytest.fixture
def food_items(scenario_items):
    """Scenario items all tagged with the food category."""
    return [{**item, "category": "food"} for item in scenario_items]


@pytest.fixture
def two_tasks():
    """Urgent hour-long task and a medium half-hour task."""
    return [
        {"_id": "task-1", "title": "Write report", "priority": 1, "estimatedDuration": 60},
        {"_id": "task-2", "title": "Review PRs", "priority": 2, "estimatedDuration": 30},
    ]


@pytest.fixture
def scored_tasks(monday_9am):
    """Tasks with hand-computed weighted scores (see test_scoring)."""
    return [
        {"id": "a", "priority": 1, "estimatedDuration": 60, "deadline": datetime(2026, 10, 19, 19, 0)},
        {"id": "b", "priority": 3, "estimatedDuration": 30, "deadline": datetime(2026, 10, 20, 5, 0)},
        {"id": "c", "priority": 2, "estimatedDuration": 120},
    ]
