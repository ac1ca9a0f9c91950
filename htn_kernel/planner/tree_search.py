"""
Time-Sliced Tree Search — the planning engine.

Incrementally explores task sequences from a starting world until the
pursued goal's requirements hold, keeping the cheapest plan found per goal.
Work is done in steps so one search can span many scheduling ticks:

  SEED → (EXPAND → EMIT)* → frontier exhausted

Behavioral Contract:
- The pursued goal is the highest-utility one (goals are kept sorted
  ascending, the last element is pursued)
- Expansion is depth-first; siblings follow the available-task order
- A stored plan is only replaced by a strictly cheaper one
- Plans are stored leaf-to-root, so popping from the tail yields
  execution order
- A goal with no plan yet is simply absent from `plans`
"""

import logging
import time
from collections import deque
from datetime import timedelta
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Union

from htn_kernel.models.planning import Goal, Plan, SearchNode
from htn_kernel.models.tasks import Task
from htn_kernel.models.values import total_order_key
from htn_kernel.models.world import WorldState
from htn_kernel.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)

Duration = Union[timedelta, float, int]


class SearchArena:
    """Append-only node storage. Nodes point at their parent by index."""

    def __init__(self):
        self._nodes: List[SearchNode] = []

    def add(self, node: SearchNode) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def lineage(self, index: int) -> Iterator[SearchNode]:
        """Walk from a node up to its depth-0 ancestor."""
        current: Optional[int] = index
        while current is not None:
            node = self._nodes[current]
            yield node
            current = node.parent

    def clear(self) -> None:
        self._nodes.clear()

    def __getitem__(self, index: int) -> SearchNode:
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)


class TimeSlicedTreeSearch:
    """Resumable depth-first plan search for one agent's goal set."""

    def __init__(
        self,
        tasks: Optional[Iterable[Task]] = None,
        goals: Optional[Iterable[Goal]] = None,
    ):
        self.arena = SearchArena()
        self.frontier: Deque[int] = deque()
        self.leaves: List[int] = []
        self.plans: Dict[str, Plan] = {}
        self.available_tasks: List[Task] = list(tasks or [])
        self.goals: List[Goal] = []
        self.set_goals(goals or [])

    @property
    def current_goal(self) -> Optional[Goal]:
        """The highest-utility goal, which is the one being searched for."""
        return self.goals[-1] if self.goals else None

    @property
    def is_idle(self) -> bool:
        return not self.frontier and not self.leaves

    def set_goals(self, goals: Iterable[Goal]) -> None:
        self.goals = sorted(goals, key=lambda goal: total_order_key(goal.utility))

    def set_tasks(self, tasks: Iterable[Task]) -> None:
        self.available_tasks = list(tasks)

    def get_plan(self, goal_name: str) -> Optional[Plan]:
        return self.plans.get(goal_name)

    # --- Driving the search ---

    def generate_for_duration(
        self,
        registry: TaskRegistry,
        current_world: WorldState,
        duration: Optional[Duration] = None,
        max_node_depth: Optional[int] = None,
    ) -> None:
        """Run expand+emit steps until the frontier empties or `duration` elapses.

        The budget is only checked between steps, so a call can overrun it by
        one step. A zero budget performs exactly one step.
        """
        goal = self.current_goal
        if goal is None:
            return
        budget = _to_seconds(duration)
        start_time = time.monotonic()
        self.try_seed(registry, current_world)

        while True:
            self.generate_single(goal, registry, max_node_depth)
            self.try_emit_single(goal)

            if budget is not None and time.monotonic() - start_time >= budget:
                break
            if not self.frontier:
                break
        self._release_if_exhausted()

    def generate_to_completion(
        self,
        registry: TaskRegistry,
        current_world: WorldState,
        max_node_depth: Optional[int] = None,
    ) -> None:
        """Search until the frontier is empty, ignoring wall-clock time."""
        self.generate_for_duration(registry, current_world, None, max_node_depth)

    def try_seed(self, registry: TaskRegistry, current_world: WorldState) -> None:
        """Start a new search from `current_world` unless one is in progress."""
        if self.frontier:
            return
        for task in self.possible_tasks(current_world, registry):
            postconditions = registry.postconditions(task)
            if postconditions is None:
                continue
            world = current_world.concat(postconditions)
            cost = registry.cost(task, world)
            if cost is None:
                continue
            index = self.arena.add(
                SearchNode(task=task, world=world, cost=cost, depth=0)
            )
            self.frontier.append(index)

    def generate_single(
        self,
        goal: Goal,
        registry: TaskRegistry,
        max_node_depth: Optional[int] = None,
    ) -> None:
        """Pop one frontier node and either accept it as a leaf or expand it."""
        if not self.frontier:
            return
        index = self.frontier.popleft()
        node = self.arena[index]

        if goal.requires.validate(node.world):
            logger.debug(
                "Found leaf node for goal %r at depth %d (cost %.2f)",
                goal.name, node.depth, node.cost,
            )
            self.leaves.append(index)
            return

        if max_node_depth is not None and node.depth >= max_node_depth:
            return

        for task in self.possible_tasks(node.world, registry):
            child = self._make_node(index, task, registry)
            if child is None or self.has_recursion(child):
                continue
            self.frontier.appendleft(self.arena.add(child))

    def try_emit_single(self, goal: Goal) -> None:
        """Turn the most recent leaf into a plan if it beats the stored one."""
        if not self.leaves:
            return
        plan = self.unravel_plan(self.leaves.pop())

        previous = self.plans.get(goal.name)
        if previous is not None and not plan.cost < previous.cost:
            logger.debug(
                "Discarding plan for %r: cost %.2f does not beat %.2f",
                goal.name, plan.cost, previous.cost,
            )
            return

        logger.info(
            "Stored plan for goal %r: %d tasks, cost %.2f",
            goal.name, len(plan.tasks), plan.cost,
        )
        self.plans[goal.name] = plan

    # --- Helpers ---

    def possible_tasks(self, world: WorldState, registry: TaskRegistry) -> List[Task]:
        """Available tasks whose preconditions hold in `world`, in list order."""
        applicable = []
        for task in self.available_tasks:
            preconditions = registry.preconditions(task)
            if preconditions is None:
                continue
            if preconditions.validate(world):
                applicable.append(task)
        return applicable

    def has_recursion(self, node: SearchNode) -> bool:
        """Detect an A,B,A,B alternation ending at `node`.

        Only period-2 cycles are caught; longer cycles are bounded by the
        depth limit instead.
        """
        ancestors = []
        parent = node.parent
        while parent is not None and len(ancestors) < 3:
            ancestor = self.arena[parent]
            ancestors.append(ancestor)
            parent = ancestor.parent
        if len(ancestors) < 3:
            return False
        names = [_task_name(n) for n in (node, *ancestors)]
        return names[0] == names[2] and names[1] == names[3]

    def unravel_plan(self, leaf_index: int) -> Plan:
        """Collect tasks leaf-to-root into a Plan carrying the leaf's cost."""
        tasks = [node.task for node in self.arena.lineage(leaf_index) if node.task is not None]
        return Plan(tasks=tasks, cost=self.arena[leaf_index].cost)

    def _make_node(
        self, parent_index: int, task: Task, registry: TaskRegistry
    ) -> Optional[SearchNode]:
        parent = self.arena[parent_index]
        postconditions = registry.postconditions(task)
        if postconditions is None:
            return None
        world = parent.world.concat(postconditions)
        cost = registry.cost(task, world)
        if cost is None:
            return None
        return SearchNode(
            task=task,
            world=world,
            cost=parent.cost + cost,
            depth=parent.depth + 1,
            parent=parent_index,
        )

    def _release_if_exhausted(self) -> None:
        if self.is_idle:
            self.arena.clear()

    # --- Reset ---

    def reset(self) -> None:
        """Abandon the in-progress search; stored plans are kept."""
        self.frontier.clear()
        self.leaves.clear()
        self.arena.clear()

    def clear_plans(self) -> None:
        self.plans.clear()

    def invalidate(self) -> None:
        """Drop all search state and stored plans."""
        self.reset()
        self.clear_plans()


def _task_name(node: SearchNode) -> Optional[str]:
    return node.task.name if node.task is not None else None


def _to_seconds(duration: Optional[Duration]) -> Optional[float]:
    if duration is None:
        return None
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)
