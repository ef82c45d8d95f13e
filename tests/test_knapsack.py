import random
from itertools import combinations

import pytest

from plancore.engine.knapsack import (
    category_spend,
    constrained_knapsack,
    greedy_by_ratio,
    knapsack_optimizer,
    optimize_budget,
    solve_table,
)
from plancore.models.entities import BudgetItem
from plancore.utils.exceptions import BudgetResolutionError
from plancore.utils.numbers import to_cents


def brute_force_best(items, budget):
    """Best value over every subset whose cent cost fits the budget."""
    capacity = to_cents(budget)
    best = 0.0
    for r in range(len(items) + 1):
        for subset in combinations(items, r):
            if sum(to_cents(i["cost"]) for i in subset) <= capacity:
                best = max(best, sum(i["value"] for i in subset))
    return best


def random_items(seed, n=8):
    rng = random.Random(seed)
    return [
        {"name": f"item-{i}", "cost": round(rng.uniform(0, 40), 2), "value": rng.randint(1, 10)}
        for i in range(n)
    ]


class TestKnapsackOptimizer:
    """Unit tests for the exact DP optimizer."""

    def test_finds_optimal_pair(self, scenario_items):
        """50 + 20 fills the budget of 70 exactly (value 10), beating 30 + 20 (value 9)."""
        result = knapsack_optimizer(scenario_items, 70)

        assert [i.name for i in result.selected_items] == ["Groceries", "Snacks"]
        assert result.total_cost == 70
        assert result.total_value == 10
        assert result.strategy == "dp"
        assert all(i.is_selected for i in result.selected_items)

    def test_pair_beats_single_expensive_item(self, scenario_items):
        """With 60 to spend, 30 + 20 (value 9) wins over 50 (value 6)."""
        result = knapsack_optimizer(scenario_items, 60)

        assert [i.name for i in result.selected_items] == ["Restaurant", "Snacks"]
        assert result.total_cost == 50
        assert result.total_value == 9

    @pytest.mark.parametrize("seed", range(10))
    def test_matches_brute_force(self, seed):
        """No other subset within budget has strictly higher value."""
        items = random_items(seed)
        budget = 60.5
        result = knapsack_optimizer(items, budget)

        assert result.total_value == pytest.approx(brute_force_best(items, budget))
        assert sum(to_cents(i.cost) for i in result.selected_items) <= to_cents(budget)
        assert result.total_cost <= budget + 0.01

    def test_idempotent(self):
        """Identical inputs give identical selections and totals."""
        items = random_items(42, n=12)
        assert knapsack_optimizer(items, 75) == knapsack_optimizer(items, 75)

    def test_selection_keeps_input_order(self):
        items = [
            {"name": "c", "cost": 1, "value": 1},
            {"name": "a", "cost": 1, "value": 1},
            {"name": "b", "cost": 1, "value": 1},
        ]
        result = knapsack_optimizer(items, 10)
        assert [i.name for i in result.selected_items] == ["c", "a", "b"]

    def test_zero_cost_item_is_selected(self):
        result = knapsack_optimizer([{"name": "free", "cost": 0, "value": 3}], 10)
        assert result.items_selected == 1
        assert result.total_cost == 0
        assert result.total_value == 3

    def test_sub_cent_costs_truncate(self):
        """10.009 discretises to 1000 cents, so it fits a budget of 10.00."""
        result = knapsack_optimizer([{"name": "x", "cost": 10.009, "value": 5}], 10)

        assert result.items_selected == 1
        assert result.total_cost == 10.009  # reported from the real cost

    def test_malformed_items_are_skipped(self):
        items = [
            {"name": "ok", "cost": "12.5", "value": "4"},
            {"name": "bad cost", "cost": "abc", "value": 4},
            {"name": "negative", "cost": -5, "value": 4},
            {"name": "no value", "cost": 1},
            {"name": "nan", "cost": float("nan"), "value": 2},
        ]
        result = knapsack_optimizer(items, 100)
        assert [i.name for i in result.selected_items] == ["ok"]
        assert result.total_cost == 12.5

    def test_accepts_budget_item_entities(self):
        items = [BudgetItem(name="bike", cost=40, value=7, category="transport")]
        result = knapsack_optimizer(items, 50)

        assert result.selected_items == [BudgetItem(name="bike", cost=40, value=7, category="transport", is_selected=True)]
        assert items[0].is_selected is False


class TestEmptyAndLimits:
    """Degenerate inputs and the DP size limit."""

    @pytest.mark.parametrize("budget", [0, -10, None, "abc", float("nan")])
    def test_non_positive_budget_is_empty(self, scenario_items, budget):
        """A budget of zero returns the empty result regardless of the items."""
        result = knapsack_optimizer(scenario_items, budget)

        assert result.selected_items == []
        assert result.total_cost == 0
        assert result.total_value == 0
        assert result.strategy == "empty"

    @pytest.mark.parametrize("items", [None, [], [{"name": "broken"}]])
    def test_no_usable_items_is_empty(self, items):
        assert knapsack_optimizer(items, 100).items_selected == 0

    @pytest.mark.parametrize("budget", [float("inf"), "inf", "1e400", " Infinity "])
    def test_infinite_budget_raises(self, scenario_items, budget):
        """Numeric and string infinities are refused alike."""
        with pytest.raises(BudgetResolutionError) as exc_info:
            knapsack_optimizer(scenario_items, budget)

        assert exc_info.value.budget_cents == -1

    def test_table_over_limit_raises(self, scenario_items, monkeypatch):
        monkeypatch.setenv("PLANCORE_MAX_DP_CELLS", "1000")
        with pytest.raises(BudgetResolutionError) as exc_info:
            knapsack_optimizer(scenario_items, 70)

        assert exc_info.value.budget_cents == 7000
        assert exc_info.value.item_count == 3
        assert exc_info.value.max_cells == 1000

    def test_solve_table_skips_items_that_never_fit(self):
        selected, value = solve_table([500, 100], [10.0, 1.0], 200)
        assert selected == [1]
        assert value == 1.0


class TestConstrainedKnapsack:
    """Category caps: validation of the optimum and the greedy fallback."""

    def test_broken_cap_falls_back_to_greedy(self, food_items):
        """The optimum spends 70 on food against a cap of 35."""
        result = constrained_knapsack(food_items, 70, {"food": 0.5})

        assert result.strategy == "greedy"
        assert category_spend(result.selected_items)["food"] <= 35
        assert [i.name for i in result.selected_items] == ["Snacks"]
        assert result.total_value == 4

    def test_satisfied_caps_keep_optimum(self):
        items = [
            {"name": "Groceries", "cost": 50, "value": 6, "category": "food"},
            {"name": "Cinema", "cost": 30, "value": 5, "category": "fun"},
            {"name": "Games", "cost": 20, "value": 4, "category": "fun"},
        ]
        result = constrained_knapsack(items, 70, {"food": 0.8})

        assert result.strategy == "dp"
        assert result.total_value == 10
        assert category_spend(result.selected_items)["food"] == 50

    @pytest.mark.parametrize("constraints", [None, {}, {"food": 1.5}, {"food": 0}, {"food": "lots"}])
    def test_empty_or_invalid_constraints_match_unconstrained(self, food_items, constraints):
        assert constrained_knapsack(food_items, 70, constraints) == knapsack_optimizer(food_items, 70)

    def test_infeasible_caps_select_nothing(self):
        items = [{"name": f"meal-{i}", "cost": 10, "value": 5, "category": "food"} for i in range(3)]
        result = constrained_knapsack(items, 50, {"food": 0.1})

        assert result.strategy == "greedy"
        assert result.selected_items == []
        assert result.total_cost == 0


class TestGreedyByRatio:
    """Greedy heuristic ordering and skipping rules."""

    def test_zero_cost_items_come_first(self):
        items = [
            {"name": "paid", "cost": 10, "value": 10},
            {"name": "free", "cost": 0, "value": 1},
        ]
        result = greedy_by_ratio(items, 10)
        assert [i.name for i in result.selected_items] == ["paid", "free"]
        assert result.total_value == 11

    def test_skips_rather_than_stops(self):
        """A capped item is skipped and cheaper items behind it still fit."""
        items = [
            {"name": "x", "cost": 8, "value": 8, "category": "food"},
            {"name": "y", "cost": 5, "value": 4, "category": "home"},
            {"name": "z", "cost": 5, "value": 3},
        ]
        result = greedy_by_ratio(items, 10, {"food": 0.5})

        assert [i.name for i in result.selected_items] == ["y", "z"]
        assert result.total_cost == 10

    def test_respects_remaining_budget(self):
        items = [{"name": "a", "cost": 6, "value": 6}, {"name": "b", "cost": 6, "value": 5}]
        result = greedy_by_ratio(items, 10)
        assert [i.name for i in result.selected_items] == ["a"]


class TestOptimizeBudget:
    """Strategy dispatch."""

    def test_auto_without_constraints_is_dp(self, scenario_items):
        assert optimize_budget(scenario_items, 70).strategy == "dp"

    def test_auto_with_broken_constraints_is_greedy(self, food_items):
        assert optimize_budget(food_items, 70, {"food": 0.5}).strategy == "greedy"

    def test_greedy_strategy(self, scenario_items):
        assert optimize_budget(scenario_items, 70, strategy="greedy").strategy == "greedy"

    def test_cp_sat_strategy_is_exact_under_caps(self, food_items):
        """Best food selection within 35 is the single 30-cost item."""
        result = optimize_budget(food_items, 70, {"food": 0.5}, strategy="cp-sat")

        assert result.strategy == "cp-sat"
        assert [i.name for i in result.selected_items] == ["Restaurant"]
        assert result.total_value == 5

    def test_unknown_strategy_raises(self, scenario_items):
        with pytest.raises(ValueError):
            optimize_budget(scenario_items, 70, strategy="simulated-annealing")
