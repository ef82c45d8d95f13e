"""Exceptions raised by the PlanCore algorithms."""


class PlanCoreError(Exception):
    """Base class for PlanCore failures"""


class BudgetResolutionError(PlanCoreError):
    """Raised when a budget is too large or too precise for the knapsack table.

    Truncating the cost axis would silently produce a wrong selection, so the
    optimizer refuses the input instead.
    """

    def __init__(self, budget_cents: int, item_count: int, max_cells: int):
        """Initialize BudgetResolutionError

        Args:
            budget_cents: Discretised budget (-1 when the budget is not finite)
            item_count: Number of items that would index the table
            max_cells: Configured table size limit
        """
        if budget_cents < 0:
            message = "Budget must be a finite amount"
        else:
            message = (
                f"Budget of {budget_cents} cents over {item_count} items needs "
                f"{(item_count + 1) * (budget_cents + 1)} table cells (limit {max_cells})"
            )
        super().__init__(message)
        self.budget_cents = budget_cents
        self.item_count = item_count
        self.max_cells = max_cells


class SolverTimeoutError(PlanCoreError):
    """Raised when CP-SAT reports no feasible selection within its time limit"""

    def __init__(self, time_limit_seconds: int):
        super().__init__(f"CP-SAT found no feasible selection within {time_limit_seconds}s")
        self.time_limit_seconds = time_limit_seconds
