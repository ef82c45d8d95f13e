"""
Example: Scheduling a task list and funding a budget with PlanCore

Records are passed as loose JSON-like dicts, the way the surrounding
application loads them from its store. Persisting the results is left to the
caller.
"""

from datetime import datetime

from plancore.engine.knapsack import optimize_budget
from plancore.engine.scheduler import auto_schedule
from plancore.utils.benchmarking import benchmark_budget_solvers
from plancore.utils.logging_config import setup_logging

logger = setup_logging()


# 1. Tasks: malformed fields fall back to defaults, the id-less record is skipped
tasks = [
    {"_id": "t1", "title": "Write report", "priority": 1, "estimatedDuration": 120, "deadline": "2026-10-21T17:00:00"},
    {"_id": "t2", "title": "Review PRs", "priority": "2", "estimatedDuration": 45},
    {"_id": "t3", "title": "Inbox zero", "priority": "urgent", "estimatedDuration": -5},
    {"title": "No id, never scheduled", "priority": 1},
]

for name in ("priority", "weighted"):
    schedule = auto_schedule(tasks, reference_now=datetime(2026, 10, 19, 8, 30), strategy=name)
    for entry in schedule:
        logger.info(f"[{name}] {entry.title}: {entry.scheduled_start:%a %H:%M} - {entry.scheduled_end:%H:%M}")


# 2. Budget: the food cap is broken by the optimum, so the greedy fallback runs
items = [
    {"name": "Groceries", "cost": 50, "value": 6, "category": "food"},
    {"name": "Restaurant", "cost": 30, "value": 5, "category": "food"},
    {"name": "Snacks", "cost": 20, "value": 4, "category": "food"},
    {"name": "Bus pass", "cost": 25.5, "value": 8, "category": "transport"},
]

result = optimize_budget(items, 100, constraints={"food": 0.5})
logger.info(
    f"{result.strategy}: {result.items_selected} item(s), "
    f"cost {result.total_cost:.2f}, value {result.total_value:.1f}"
)

# 3. How far is the heuristic from the exact capped optimum?
for bench in benchmark_budget_solvers(items, 100, {"food": 0.5}, time_limit_seconds=5):
    logger.info(f"{bench.solver_name}: value={bench.total_value} time={bench.time_seconds:.4f}s")
