"""
0/1 Knapsack Budget Optimizer

Selects which budget items to fund so that total importance is maximal and
total cost stays within the budget.

Algorithm (exact):
1. Discretise costs and budget to integer cents (truncating toward zero)
2. Fill best[i][w] = max value of the first i items with cost <= w cents:
   best[i][w] = max(best[i-1][w], value[i] + best[i-1][w - cost[i]])
3. Backtrack from best[n][W]; item i was taken where best[i][w] differs
   from best[i-1][w]

Only the current DP row is kept as values; a boolean "taken" table of the
same shape as best records exactly the cells where best[i][w] != best[i-1][w],
which is all the backtrack needs.

Time Complexity: O(n * W), W = budget in cents
Space: O(n * W) bits, bounded by Settings.max_dp_cells

Category caps are validated against the exact optimum; when one is broken
the optimizer falls back to a greedy value/cost heuristic that enforces caps
at selection time but is not guaranteed optimal.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from plancore.config.settings import get_settings
from plancore.models.entities import BudgetItem, OptimizationResult
from plancore.models.schemas import parse_budget_items, parse_constraints
from plancore.utils.exceptions import BudgetResolutionError, SolverTimeoutError
from plancore.utils.numbers import safe_number, to_cents

logger = logging.getLogger(__name__)

# Slack for float sums compared against money caps
EPSILON = 1e-9


def build_result(items: List[BudgetItem], indices: Iterable[int], total_value: Optional[float], strategy: str) -> OptimizationResult:
    chosen = [replace(items[i], is_selected=True) for i in sorted(indices)]
    if total_value is None:
        total_value = sum(item.value for item in chosen)
    return OptimizationResult(
        selected_items=chosen,
        total_cost=sum(item.cost for item in chosen),
        total_value=total_value,
        strategy=strategy,
    )


def resolve_budget(total_budget: Any, item_count: int = 0) -> float:
    """
    Coerce the total budget; unusable amounts become 0 (empty result).

    Raises:
        BudgetResolutionError: if the budget parses to infinity, whether
            given as a number or as a string such as "inf" or "1e400"
    """
    if total_budget is not None and not isinstance(total_budget, bool):
        try:
            parsed = float(total_budget)
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None and math.isinf(parsed):
            raise BudgetResolutionError(-1, item_count, get_settings().max_dp_cells)
    return safe_number(total_budget, 0.0)


def solve_table(costs: List[int], values: List[float], capacity: int) -> Tuple[List[int], float]:
    """
    Exact 0/1 knapsack over integer costs.

    Args:
        costs: Item costs in cents
        values: Item values
        capacity: Budget in cents

    Returns:
        (indices of the selected items in ascending order, optimal value)

    Ties are deterministic: the backtrack walks from the last item down and
    takes an item only where including it strictly improved the value.
    """
    best = np.zeros(capacity + 1, dtype=np.float64)
    taken = np.zeros((len(costs), capacity + 1), dtype=bool)

    for i, (cost, value) in enumerate(zip(costs, values)):
        if cost > capacity:
            continue  # never fits; row stays all False
        include = np.full(capacity + 1, -np.inf)
        include[cost:] = best[: capacity + 1 - cost] + value
        take = include > best
        taken[i] = take
        best = np.where(take, include, best)

    selected = []
    w = capacity
    for i in range(len(costs) - 1, -1, -1):
        if taken[i, w]:
            selected.append(i)
            w -= costs[i]
    selected.reverse()
    return selected, float(best[capacity])


def _knapsack(items: List[BudgetItem], budget: float) -> OptimizationResult:
    if not items or budget <= 0:
        return OptimizationResult()

    settings = get_settings()
    capacity = to_cents(budget)
    cells = (len(items) + 1) * (capacity + 1)
    if cells > settings.max_dp_cells:
        raise BudgetResolutionError(capacity, len(items), settings.max_dp_cells)

    costs = [to_cents(item.cost) for item in items]
    values = [item.value for item in items]
    selected, best_value = solve_table(costs, values, capacity)
    logger.debug(f"Knapsack selected {len(selected)} of {len(items)} item(s) over {capacity} cents")
    return build_result(items, selected, best_value, "dp")


def knapsack_optimizer(items: Optional[Iterable[Any]], total_budget: Any) -> OptimizationResult:
    """
    Select the subset of items with maximal total value within the budget.

    Args:
        items: Budget item records (cost, value, optional category)
        total_budget: Money available

    Returns:
        OptimizationResult; empty when the budget is not positive or no
        item is usable

    Raises:
        BudgetResolutionError: if the budget is infinite or its cent
            resolution would not fit the DP table limit
    """
    parsed = parse_budget_items(items)
    return _knapsack(parsed, resolve_budget(total_budget, len(parsed)))


def category_spend(items: Iterable[BudgetItem]) -> Dict[str, float]:
    """Total cost per category; uncategorised items are not counted."""
    spend: Dict[str, float] = defaultdict(float)
    for item in items:
        if item.category:
            spend[item.category] += item.cost
    return dict(spend)


def violated_categories(items: Iterable[BudgetItem], budget: float, limits: Dict[str, float]) -> List[str]:
    """Categories whose spend exceeds budget * fraction."""
    spend = category_spend(items)
    return [
        category
        for category, fraction in limits.items()
        if spend.get(category, 0.0) > budget * fraction + EPSILON
    ]


def _ratio(item: BudgetItem) -> float:
    return math.inf if item.cost == 0 else item.value / item.cost


def _greedy(items: List[BudgetItem], budget: float, limits: Dict[str, float]) -> OptimizationResult:
    if not items or budget <= 0:
        return OptimizationResult()

    order = sorted(range(len(items)), key=lambda i: _ratio(items[i]), reverse=True)
    remaining = budget
    spent: Dict[str, float] = defaultdict(float)
    selected = []

    for i in order:
        item = items[i]
        if item.category in limits:
            if spent[item.category] + item.cost > budget * limits[item.category] + EPSILON:
                continue
        if item.cost > remaining + EPSILON:
            continue
        selected.append(i)
        remaining -= item.cost
        if item.category:
            spent[item.category] += item.cost

    return build_result(items, selected, None, "greedy")


def greedy_by_ratio(items: Optional[Iterable[Any]], total_budget: Any, constraints: Optional[Mapping] = None) -> OptimizationResult:
    """
    Admit items by descending value/cost ratio while they fit.

    Zero-cost items have an infinite ratio and come first. An item that would
    break its category cap or the remaining budget is skipped, and the scan
    continues with the next one.

    Not guaranteed optimal.
    """
    parsed = parse_budget_items(items)
    return _greedy(parsed, resolve_budget(total_budget, len(parsed)), parse_constraints(constraints))


def constrained_knapsack(items: Optional[Iterable[Any]], total_budget: Any, constraints: Optional[Mapping] = None) -> OptimizationResult:
    """
    Knapsack with per-category caps expressed as fractions of the budget.

    The exact optimum is returned unchanged when it already respects every
    cap; otherwise the greedy heuristic runs with the caps enforced.

    Args:
        items: Budget item records
        total_budget: Money available
        constraints: Mapping of category to a fraction in (0, 1]; categories
                     not listed are unconstrained

    Returns:
        OptimizationResult from the "dp" or the "greedy" path

    Raises:
        BudgetResolutionError: as knapsack_optimizer
    """
    parsed = parse_budget_items(items)
    budget = resolve_budget(total_budget, len(parsed))
    limits = parse_constraints(constraints)

    result = _knapsack(parsed, budget)
    if not limits or not result.selected_items:
        return result

    broken = violated_categories(result.selected_items, budget, limits)
    if not broken:
        return result

    logger.info(f"Optimal selection exceeds caps for {', '.join(broken)}; falling back to greedy selection")
    return _greedy(parsed, budget, limits)


def optimize_budget(
    items: Optional[Iterable[Any]],
    total_budget: Any,
    constraints: Optional[Mapping] = None,
    strategy: str = "auto",
) -> OptimizationResult:
    """
    Single entry point for budget optimization.

    Strategies:
    - "auto": exact DP, or DP with greedy fallback when constraints are given
    - "dp": exact DP, constraints ignored
    - "greedy": greedy-by-ratio with constraints enforced
    - "cp-sat": exact solution under the caps via OR-Tools

    Raises:
        ValueError: if the strategy is unknown
        SolverTimeoutError: if CP-SAT finds no solution within the time limit
        BudgetResolutionError: as knapsack_optimizer
    """
    if strategy == "auto":
        if constraints:
            return constrained_knapsack(items, total_budget, constraints)
        return knapsack_optimizer(items, total_budget)
    if strategy == "dp":
        return knapsack_optimizer(items, total_budget)
    if strategy == "greedy":
        return greedy_by_ratio(items, total_budget, constraints)
    if strategy == "cp-sat":
        # Imported here so the DP path does not load OR-Tools
        from plancore.engine.ortools_solver import solve_budget_with_ortools

        result = solve_budget_with_ortools(items, total_budget, constraints)
        if result is None:
            raise SolverTimeoutError(get_settings().ortools_time_limit_seconds)
        return result
    raise ValueError(f"Unknown optimization strategy {strategy!r}")
