"""
Task Registry — maps task names to behavior descriptors.

A primitive task's preconditions, postconditions and cost come straight
from its descriptor. A composite task has no descriptor; its net conditions
are folded over its top-level sub-tasks from last to first, each nested
composite contributing its primitives in their own execution order:

  - preconditions: drop what the sub-task's postconditions already
    guarantee, then merge in the sub-task's own preconditions
  - postconditions: drop what the sub-task's preconditions would consume,
    then merge in the sub-task's postconditions

Unknown task names are a lookup failure: every query returns None and the
planner simply skips the task.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from htn_kernel.models.requirements import Requirements
from htn_kernel.models.tasks import Task
from htn_kernel.models.world import WorldState

logger = logging.getLogger(__name__)


class ActivationHandler(Protocol):
    """Host capability that applies a task's side effects to an agent."""

    def activate(self, target: Any) -> None: ...

    def deactivate(self, target: Any) -> None: ...


class TaskDescriptor(Protocol):
    """What the planner and executor need to know about a primitive task."""

    @property
    def preconditions(self) -> Requirements: ...

    @property
    def postconditions(self) -> WorldState: ...

    def cost(self, world: WorldState) -> float: ...

    def activate(self, target: Any) -> None: ...

    def deactivate(self, target: Any) -> None: ...


class StaticTaskDescriptor:
    """Fixed conditions and cost; side effects delegated to an optional handler."""

    def __init__(
        self,
        preconditions: Requirements,
        postconditions: WorldState,
        cost: float,
        handler: Optional[ActivationHandler] = None,
    ):
        self._preconditions = preconditions
        self._postconditions = postconditions
        self._cost = float(cost)
        self.handler = handler

    @property
    def preconditions(self) -> Requirements:
        return self._preconditions

    @property
    def postconditions(self) -> WorldState:
        return self._postconditions

    def cost(self, world: WorldState) -> float:
        return self._cost

    def activate(self, target: Any) -> None:
        if self.handler is not None:
            self.handler.activate(target)

    def deactivate(self, target: Any) -> None:
        if self.handler is not None:
            self.handler.deactivate(target)


class CallbackTaskDescriptor:
    """Cost computed from the world the task would produce."""

    def __init__(
        self,
        preconditions: Requirements,
        postconditions: WorldState,
        cost_fn: Callable[[WorldState], float],
        on_activate: Optional[Callable[[Any], None]] = None,
        on_deactivate: Optional[Callable[[Any], None]] = None,
    ):
        self._preconditions = preconditions
        self._postconditions = postconditions
        self._cost_fn = cost_fn
        self._on_activate = on_activate
        self._on_deactivate = on_deactivate

    @property
    def preconditions(self) -> Requirements:
        return self._preconditions

    @property
    def postconditions(self) -> WorldState:
        return self._postconditions

    def cost(self, world: WorldState) -> float:
        return float(self._cost_fn(world))

    def activate(self, target: Any) -> None:
        if self._on_activate is not None:
            self._on_activate(target)

    def deactivate(self, target: Any) -> None:
        if self._on_deactivate is not None:
            self._on_deactivate(target)


class TaskRegistry:
    """Name → descriptor table shared by every agent that plans against it."""

    def __init__(self):
        self._tasks: Dict[str, TaskDescriptor] = {}

    def register(
        self,
        name: str,
        preconditions: Requirements,
        postconditions: WorldState,
        cost: float = 1.0,
        handler: Optional[ActivationHandler] = None,
    ) -> None:
        """Register a task with static conditions and cost."""
        self.register_custom(
            name,
            StaticTaskDescriptor(preconditions, postconditions, cost, handler),
        )

    def register_custom(self, name: str, descriptor: TaskDescriptor) -> None:
        """Register a host-supplied descriptor."""
        if name in self._tasks:
            logger.debug("Replacing registered task %r", name)
        self._tasks[name] = descriptor

    def get_named(self, name: str) -> Optional[TaskDescriptor]:
        return self._tasks.get(name)

    def get_task(self, task: Task) -> Optional[TaskDescriptor]:
        """Descriptor for a primitive task; composites have none."""
        if task.is_composite:
            return None
        return self._tasks.get(task.name)

    def names(self) -> List[str]:
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def _primitives(self, task: Task) -> Optional[List[TaskDescriptor]]:
        return self._lookup_all(task.decompose())

    def _fold_order(self, task: Task) -> Optional[List[TaskDescriptor]]:
        """Top-level sub-tasks last to first; a nested composite keeps its own order."""
        names: List[str] = []
        for subtask in reversed(task.subtasks):
            names.extend(subtask.decompose())
        return self._lookup_all(names)

    def _lookup_all(self, names: List[str]) -> Optional[List[TaskDescriptor]]:
        descriptors = []
        for name in names:
            descriptor = self._tasks.get(name)
            if descriptor is None:
                return None
            descriptors.append(descriptor)
        return descriptors

    def preconditions(self, task: Task) -> Optional[Requirements]:
        if not task.is_composite:
            descriptor = self._tasks.get(task.name)
            return descriptor.preconditions.copy() if descriptor else None

        descriptors = self._fold_order(task)
        if descriptors is None:
            return None
        requirements = Requirements()
        for descriptor in descriptors:
            requirements = requirements.unmet(descriptor.postconditions)
            requirements.append(descriptor.preconditions)
        return requirements

    def postconditions(self, task: Task) -> Optional[WorldState]:
        if not task.is_composite:
            descriptor = self._tasks.get(task.name)
            return descriptor.postconditions.copy() if descriptor else None

        descriptors = self._fold_order(task)
        if descriptors is None:
            return None
        context = WorldState()
        for descriptor in descriptors:
            context = descriptor.preconditions.consume(context)
            context.append(descriptor.postconditions)
        return context

    def pre_and_postconditions(
        self, task: Task
    ) -> Optional[Tuple[Requirements, WorldState]]:
        pre = self.preconditions(task)
        post = self.postconditions(task)
        if pre is None or post is None:
            return None
        return pre, post

    def cost(self, task: Task, world: WorldState) -> Optional[float]:
        """Primitive cost, or the sum of a composite's primitive costs, on `world`."""
        descriptors = self._primitives(task)
        if descriptors is None:
            return None
        return sum(descriptor.cost(world) for descriptor in descriptors)
