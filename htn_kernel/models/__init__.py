"""HTN Kernel data models."""

from htn_kernel.models.symbols import InterningError, Symbol, SymbolTable, intern
from htn_kernel.models.values import (
    Equals,
    HasEntry,
    Ordered,
    Ordering,
    Predicate,
    Value,
    ValueKind,
)
from htn_kernel.models.world import WorldState
from htn_kernel.models.requirements import Requirements
from htn_kernel.models.tasks import Task, TaskKind, TaskState
from htn_kernel.models.planning import Goal, Plan, SearchNode
from htn_kernel.models.settings import HtnSettings

__all__ = [
    "Equals",
    "Goal",
    "HasEntry",
    "HtnSettings",
    "InterningError",
    "Ordered",
    "Ordering",
    "Plan",
    "Predicate",
    "Requirements",
    "SearchNode",
    "Symbol",
    "SymbolTable",
    "Task",
    "TaskKind",
    "TaskState",
    "Value",
    "ValueKind",
    "WorldState",
    "intern",
]
