"""Planning models — goals, emitted plans and search-tree nodes."""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from htn_kernel.models.requirements import Requirements
from htn_kernel.models.tasks import Task
from htn_kernel.models.world import WorldState


class Goal(BaseModel):
    """A target condition plus a static utility used only for ranking."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    requires: Requirements
    utility: float = 1.0

    @field_validator("requires", mode="before")
    @classmethod
    def _coerce_requirements(cls, raw: Any) -> Any:
        if isinstance(raw, WorldState):
            return Requirements.from_world(raw)
        if isinstance(raw, Mapping):
            return Requirements(raw)
        return raw


class Plan(BaseModel):
    """
    Tasks stored leaf-to-root: tasks[-1] runs first, tasks[0] runs last.
    Consumers pop from the tail to get execution order.
    """

    tasks: List[Task] = []
    cost: float = 0.0

    def task_names(self) -> List[str]:
        return [t.name for t in self.tasks]

    def execution_order(self) -> List[Task]:
        return list(reversed(self.tasks))

    def decompose_tasks(self) -> List[str]:
        """Primitive-name stack for pop-from-tail consumption."""
        stack: List[str] = []
        for task in self.tasks:
            stack.extend(reversed(task.decompose()))
        return stack


class SearchNode(BaseModel):
    """One immutable state in the search tree; `parent` is an arena index."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    task: Optional[Task] = None
    world: WorldState
    cost: float
    depth: int
    parent: Optional[int] = None
