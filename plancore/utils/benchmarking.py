import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from plancore.engine.knapsack import constrained_knapsack, greedy_by_ratio, knapsack_optimizer
from plancore.engine.ortools_solver import solve_budget_with_ortools
from plancore.utils.exceptions import BudgetResolutionError


@dataclass
class BenchmarkResult:
    solver_name: str
    time_seconds: float
    total_value: float
    total_cost: float
    success: bool
    num_items: int


def _run(name: str, solve, num_items: int) -> BenchmarkResult:
    start = time.perf_counter()
    try:
        result = solve()
    except BudgetResolutionError:
        result = None
    elapsed = time.perf_counter() - start
    if result is None:
        return BenchmarkResult(name, elapsed, 0.0, 0.0, False, num_items)
    return BenchmarkResult(name, elapsed, result.total_value, result.total_cost, True, num_items)


def benchmark_budget_solvers(
    items: Iterable[Any],
    total_budget: float,
    constraints: Optional[Mapping] = None,
    time_limit_seconds: int = 10,
) -> List[BenchmarkResult]:
    """
    Compare DP, greedy and CP-SAT on the same instance.
    With constraints, the DP entry is the constrained path (DP or its greedy
    fallback). A DP table over the size limit is reported as a failure.
    """
    items = list(items)
    n = len(items)
    if constraints:
        dp = lambda: constrained_knapsack(items, total_budget, constraints)
    else:
        dp = lambda: knapsack_optimizer(items, total_budget)

    return [
        _run("dp", dp, n),
        _run("greedy", lambda: greedy_by_ratio(items, total_budget, constraints), n),
        _run("ortools", lambda: solve_budget_with_ortools(items, total_budget, constraints, time_limit_seconds), n),
    ]
