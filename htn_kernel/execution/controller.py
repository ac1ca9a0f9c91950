"""
Plan Executor — drains an agent's plan one task at a time.

Behavioral Contract:
- Tasks are popped from the tail of the plan stack (execution order)
- Side effects go through the task descriptor's activate/deactivate;
  the executor never inspects what they do
- RUNNING waits, SUCCESS advances, FAILURE drops the plan
- A task name missing from the registry is skipped, not an error
"""

import logging

from htn_kernel.agents.agent import HtnAgent
from htn_kernel.models.tasks import TaskState
from htn_kernel.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised when plan execution is driven incorrectly."""
    pass


class PlanExecutor:
    """Applies host-reported task outcomes to an agent's plan."""

    def __init__(self, registry: TaskRegistry):
        self.registry = registry

    def report(self, agent: HtnAgent, state: TaskState) -> None:
        """Record the outcome of the agent's current task."""
        if agent.current_task is None:
            raise ExecutionError(
                f"Cannot report {state.value} for agent {agent.agent_id}: "
                f"no task is running."
            )
        agent.task_state = state

    def step(self, agent: HtnAgent) -> None:
        """Advance the agent's plan according to its reported state."""
        if agent.plan_stack is None:
            return

        if agent.task_state is TaskState.RUNNING:
            return

        if agent.task_state is TaskState.SUCCESS:
            self._deactivate_current(agent)
            if agent.plan_stack:
                self._push_task(agent, agent.plan_stack.pop())
            else:
                logger.info("Agent %s completed plan for %r", agent.agent_id, agent.active_goal)
                agent.finish_plan()
            return

        if agent.task_state is TaskState.FAILURE:
            logger.info(
                "Agent %s failed task %r; dropping plan",
                agent.agent_id, agent.current_task,
            )
            self._deactivate_current(agent)
            agent.finish_plan()
            return

        if agent.plan_stack:
            self._push_task(agent, agent.plan_stack.pop())
        else:
            logger.warning("Failed to initialize a plan for agent %s", agent.agent_id)
            agent.finish_plan()

    def _push_task(self, agent: HtnAgent, name: str) -> None:
        descriptor = self.registry.get_named(name)
        agent.current_task = None
        agent.task_state = None
        if descriptor is None:
            logger.debug("Skipping unregistered task %r for agent %s", name, agent.agent_id)
            return
        descriptor.activate(agent)
        agent.current_task = name
        agent.task_state = TaskState.RUNNING

    def _deactivate_current(self, agent: HtnAgent) -> None:
        if agent.current_task is None:
            return
        descriptor = self.registry.get_named(agent.current_task)
        if descriptor is not None:
            descriptor.deactivate(agent)
        agent.current_task = None
