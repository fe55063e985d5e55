"""
Pure domain layer: value objects and functions with no ORM or I/O
dependencies (SystemClock is the one sanctioned source of time).
"""

from property_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from property_kernel.domain.money import ZERO, money_sum, parse_money, round_money, to_money
from property_kernel.domain.results import OperationResult, OperationStatus, Page
from property_kernel.domain.workflow import Guard, Transition, Workflow, require_transition

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ZERO",
    "money_sum",
    "parse_money",
    "round_money",
    "to_money",
    "OperationResult",
    "OperationStatus",
    "Page",
    "Guard",
    "Transition",
    "Workflow",
    "require_transition",
]
