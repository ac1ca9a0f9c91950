"""HTN agents and the providers that feed them tasks and goals."""

from typing import Any, Iterable, List, Optional, Protocol

from htn_kernel.models.planning import Goal, Plan
from htn_kernel.models.tasks import Task, TaskState
from htn_kernel.models.world import WorldState
from htn_kernel.planner.tree_search import TimeSlicedTreeSearch
from htn_kernel.strategy.goal_selection import GoalSelector


class TaskProvider(Protocol):
    """Supplies tasks to an agent."""

    def tasks(self) -> List[Task]: ...


class GoalProvider(Protocol):
    """Supplies goals to an agent."""

    def goals(self) -> List[Goal]: ...


class StaticTaskProvider:
    def __init__(self, tasks: Iterable[Task]):
        self._tasks = list(tasks)

    def tasks(self) -> List[Task]:
        return list(self._tasks)


class StaticGoalProvider:
    def __init__(self, goals: Iterable[Goal]):
        self._goals = list(goals)

    def goals(self) -> List[Goal]:
        return list(self._goals)


class HtnAgent:
    """
    One planning agent: its goals and tasks, its own tree search, and the
    execution state of the plan it is currently following.
    """

    def __init__(
        self,
        agent_id: str,
        goals: Optional[Iterable[Goal]] = None,
        tasks: Optional[Iterable[Task]] = None,
        goal_selector: Optional[GoalSelector] = None,
        planning_priority: float = 0.0,
    ):
        self.agent_id = agent_id
        self.goals: List[Goal] = list(goals or [])
        self.available_tasks: List[Task] = list(tasks or [])
        self.goal_selector = goal_selector or GoalSelector()
        self.planning_priority = planning_priority
        self.search = TimeSlicedTreeSearch(self.available_tasks, self.goals)

        # Execution state
        self.active_goal: Optional[str] = None
        self.plan_stack: Optional[List[str]] = None
        self.current_task: Optional[str] = None
        self.task_state: Optional[TaskState] = None

    def add_task(self, task: Task) -> "HtnAgent":
        self.available_tasks.append(task)
        self.search.set_tasks(self.available_tasks)
        return self

    def add_goal(self, name: str, requires: Any, utility: float = 1.0) -> "HtnAgent":
        self.goals.append(Goal(name=name, requires=requires, utility=utility))
        self.search.set_goals(self.goals)
        return self

    def collect_from_providers(
        self,
        task_providers: Iterable[TaskProvider] = (),
        goal_providers: Iterable[GoalProvider] = (),
    ) -> None:
        """Replace tasks and/or goals with what the given providers supply."""
        task_providers = list(task_providers)
        goal_providers = list(goal_providers)
        if task_providers:
            self.available_tasks = [t for p in task_providers for t in p.tasks()]
            self.search.set_tasks(self.available_tasks)
        if goal_providers:
            self.goals = [g for p in goal_providers for g in p.goals()]
            self.search.set_goals(self.goals)

    def next_goal(self, world: WorldState) -> Optional[Goal]:
        return self.goal_selector.next_goal(self.goals, world)

    def has_plan(self) -> bool:
        return self.plan_stack is not None

    def install_plan(self, goal: Goal, plan: Plan) -> None:
        """Start following `plan`; nothing is activated until the next step."""
        self.active_goal = goal.name
        self.plan_stack = plan.decompose_tasks()
        self.current_task = None
        self.task_state = None

    def clear_execution(self) -> None:
        self.plan_stack = None
        self.current_task = None
        self.task_state = None

    def finish_plan(self) -> None:
        """Plan drained or failed: forget it so the goal is planned afresh."""
        if self.active_goal is not None:
            self.search.plans.pop(self.active_goal, None)
        self.active_goal = None
        self.clear_execution()

    def invalidate_plan(self) -> None:
        """External invalidation: abort the search and drop every plan."""
        self.active_goal = None
        self.clear_execution()
        self.search.invalidate()
