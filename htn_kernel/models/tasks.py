"""Tasks — named units of behavior an agent can plan with."""

from enum import Enum
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict


class TaskKind(str, Enum):
    PRIMITIVE = "primitive"     # Leaf action with its own registry entry
    COMPOSITE = "composite"     # Named sequence of sub-tasks, no entry of its own


class TaskState(str, Enum):
    """Outcome the host reports for the task an agent is currently running."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class Task(BaseModel):
    """A primitive task, or a composite of sub-tasks listed in execution order."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: TaskKind = TaskKind.PRIMITIVE
    subtasks: Tuple["Task", ...] = ()

    @classmethod
    def primitive(cls, name: str) -> "Task":
        return cls(name=name)

    @classmethod
    def composite(cls, name: str, subtasks: Iterable["Task"]) -> "Task":
        return cls(name=name, kind=TaskKind.COMPOSITE, subtasks=tuple(subtasks))

    @property
    def is_composite(self) -> bool:
        return self.kind is TaskKind.COMPOSITE

    def decompose(self) -> List[str]:
        """Primitive task names in execution order, nested composites expanded."""
        if not self.is_composite:
            return [self.name]
        names: List[str] = []
        for subtask in self.subtasks:
            names.extend(subtask.decompose())
        return names
