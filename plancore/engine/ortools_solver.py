import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ortools.sat.python import cp_model

from plancore.config.settings import get_settings
from plancore.engine.knapsack import build_result, resolve_budget
from plancore.models.entities import OptimizationResult
from plancore.models.schemas import parse_budget_items, parse_constraints
from plancore.utils.numbers import to_cents

logger = logging.getLogger(__name__)

# CP-SAT objectives are integral; values are kept to two decimals
VALUE_SCALE = 100


def solve_budget_with_ortools(
    items: Optional[Iterable[Any]],
    total_budget: Any,
    constraints: Optional[Mapping] = None,
    time_limit_seconds: Optional[int] = None,
) -> Optional[OptimizationResult]:
    """
    Solve the category-capped budget problem exactly with the CP-SAT solver.
    Costs and caps are in integer cents, as in the DP; caps are hard constraints
    rather than a post-hoc check. Returns None if no solution is found in time.
    """
    parsed = parse_budget_items(items)
    budget = resolve_budget(total_budget, len(parsed))
    limits = parse_constraints(constraints)
    if not parsed or budget <= 0:
        return OptimizationResult()
    if time_limit_seconds is None:
        time_limit_seconds = get_settings().ortools_time_limit_seconds

    model = cp_model.CpModel()
    costs = [to_cents(item.cost) for item in parsed]
    picks = [model.NewBoolVar(f"item_{i}") for i in range(len(parsed))]

    # Hard constraint: total budget
    model.Add(cp_model.LinearExpr.WeightedSum(picks, costs) <= to_cents(budget))

    # Hard constraints: category caps
    for category, fraction in limits.items():
        members = [i for i, item in enumerate(parsed) if item.category == category]
        if members:
            model.Add(
                cp_model.LinearExpr.WeightedSum([picks[i] for i in members], [costs[i] for i in members])
                <= to_cents(budget * fraction)
            )

    scaled_values = [round(item.value * VALUE_SCALE) for item in parsed]
    model.Maximize(cp_model.LinearExpr.WeightedSum(picks, scaled_values))

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = time_limit_seconds
    solver.parameters.log_search_progress = False

    status = solver.Solve(model)

    if status not in [cp_model.OPTIMAL, cp_model.FEASIBLE]:
        logger.warning(f"CP-SAT returned status {solver.StatusName(status)} for {len(parsed)} item(s)")
        return None

    selected = [i for i, x in enumerate(picks) if solver.Value(x)]
    return build_result(parsed, selected, None, "cp-sat")
