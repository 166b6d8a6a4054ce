"""
Tests for the pure cost rollup functions.
"""

from decimal import Decimal

import pytest

from sgpc_modules.costs.calculations import (
    TaskCostInput,
    average_progress,
    budget_usage_percentage,
    effective_labor_unit_cost,
    line_costs,
    progress_for_status,
    realized_cost,
    status_for_progress,
    sum_buckets,
)
from sgpc_modules.costs.models import CostBuckets


class TestLineCosts:

    def test_override_replaces_labor_only(self):
        costs = line_costs(
            quantity=Decimal("2"),
            unit_labor_cost=Decimal("8"),
            unit_material_cost=Decimal("5"),
            unit_equipment_cost=Decimal("1"),
            unit_cost_override=Decimal("10"),
        )
        assert costs == CostBuckets(Decimal("20"), Decimal("10"), Decimal("2"))

    def test_zero_override_is_honoured(self):
        assert effective_labor_unit_cost(Decimal("8"), Decimal("0")) == Decimal("0")

    def test_missing_override_uses_catalogue(self):
        assert effective_labor_unit_cost(Decimal("8"), None) == Decimal("8")

    def test_two_line_example(self):
        buckets = sum_buckets([
            line_costs(Decimal("2"), Decimal("8"), Decimal("5"), Decimal("1"), Decimal("10")),
            line_costs(Decimal("1"), Decimal("20"), Decimal("0"), Decimal("0")),
        ])
        assert buckets.labor == Decimal("40")
        assert buckets.material == Decimal("10")
        assert buckets.equipment == Decimal("2")
        assert buckets.total == Decimal("52")

    def test_sum_of_nothing_is_zero(self):
        assert sum_buckets([]).total == Decimal("0")


class TestRealizedCost:

    def _task(self, status, stored, service=None):
        return TaskCostInput(
            status=status,
            stored_costs=CostBuckets(Decimal(stored)),
            service_costs=None if service is None else CostBuckets(Decimal(service)),
        )

    def test_only_completed_tasks_count(self):
        tasks = [
            self._task("CONCLUIDA", "100"),
            self._task("EM_ANDAMENTO", "50"),
            self._task("CANCELADA", "70"),
        ]
        assert realized_cost(tasks) == Decimal("100")

    def test_service_lines_take_precedence_over_stored_costs(self):
        assert realized_cost([self._task("CONCLUIDA", "999", service="40")]) == Decimal("40")

    def test_empty_project(self):
        assert realized_cost([]) == Decimal("0")


class TestPercentages:

    def test_average_progress(self):
        assert average_progress([0, 50, 100]) == Decimal("50.00")

    def test_average_progress_rounds_half_up(self):
        assert average_progress([0, 0, 1]) == Decimal("0.33")
        assert average_progress([1, 2]) == Decimal("1.50")

    def test_average_progress_without_tasks(self):
        assert average_progress([]) == Decimal("0")

    def test_budget_usage(self):
        assert budget_usage_percentage(Decimal("250"), Decimal("1000")) == Decimal("25.00")

    def test_budget_usage_rounds_half_up(self):
        assert budget_usage_percentage(Decimal("1"), Decimal("8")) == Decimal("12.50")
        assert budget_usage_percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")

    @pytest.mark.parametrize("budget", [None, Decimal("0")])
    def test_budget_usage_without_budget(self, budget):
        assert budget_usage_percentage(Decimal("10"), budget) == Decimal("0")


class TestStatusProgressRules:

    @pytest.mark.parametrize(
        "progress, status",
        [(0, "A_FAZER"), (1, "EM_ANDAMENTO"), (99, "EM_ANDAMENTO"), (100, "CONCLUIDA")],
    )
    def test_status_follows_progress(self, progress, status):
        assert status_for_progress(progress) == status

    @pytest.mark.parametrize(
        "status, current, expected",
        [
            ("A_FAZER", 40, 0),
            ("CONCLUIDA", 40, 100),
            ("EM_ANDAMENTO", 0, 50),
            ("EM_ANDAMENTO", 100, 50),
            ("EM_ANDAMENTO", 30, 30),
            ("BLOQUEADA", 30, 30),
            ("CANCELADA", 70, 70),
        ],
    )
    def test_progress_follows_status(self, status, current, expected):
        assert progress_for_status(status, current) == expected

    def test_in_progress_default_is_configurable(self):
        assert progress_for_status("EM_ANDAMENTO", 0, in_progress_default=10) == 10
