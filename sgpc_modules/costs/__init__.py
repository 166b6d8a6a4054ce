"""
Costs module: service catalogue, task cost buckets and the project rollup.
"""

from sgpc_modules.costs.models import (
    CostBuckets,
    Service,
    Task,
    TaskCostReport,
    TaskServiceLine,
    TaskStatus,
)
from sgpc_modules.costs.service import CostAggregator

__all__ = [
    "CostAggregator",
    "CostBuckets",
    "Service",
    "Task",
    "TaskCostReport",
    "TaskServiceLine",
    "TaskStatus",
]
