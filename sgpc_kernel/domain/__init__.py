"""Pure domain primitives shared by all modules: clock and workflow definitions."""

from sgpc_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sgpc_kernel.domain.workflow import Transition, Workflow

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Transition",
    "Workflow",
]
