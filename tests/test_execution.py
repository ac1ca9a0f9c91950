"""Tests for the Plan Executor."""

import pytest

from htn_kernel.agents.agent import HtnAgent
from htn_kernel.execution.controller import ExecutionError, PlanExecutor
from htn_kernel.models import Goal, Plan, Requirements, Task, TaskState, WorldState
from htn_kernel.tasks.registry import TaskRegistry


class _RecordingHandler:
    def __init__(self, name: str, log: list):
        self.name = name
        self.log = log

    def activate(self, target) -> None:
        self.log.append(("activate", self.name))

    def deactivate(self, target) -> None:
        self.log.append(("deactivate", self.name))


def _make_registry(log: list, names=("goto_door", "open_door", "walk_thru_door")) -> TaskRegistry:
    registry = TaskRegistry()
    for name in names:
        registry.register(
            name, Requirements(), WorldState(), 1.0, handler=_RecordingHandler(name, log)
        )
    return registry


def _make_agent_with_plan(*execution_order: str) -> HtnAgent:
    goal = Goal(name="Be in room B", requires={"room": "B"})
    agent = HtnAgent("agent-1", goals=[goal])
    plan = Plan(
        tasks=[Task.primitive(name) for name in reversed(execution_order)],
        cost=float(len(execution_order)),
    )
    agent.search.plans[goal.name] = plan
    agent.install_plan(goal, plan)
    return agent


def _run_to_completion(executor: PlanExecutor, agent: HtnAgent, limit: int = 20) -> None:
    for _ in range(limit):
        if not agent.has_plan():
            return
        executor.step(agent)
        if agent.current_task is not None:
            executor.report(agent, TaskState.SUCCESS)


class TestPlanExecutor:
    def test_first_step_activates_first_task(self):
        log = []
        executor = PlanExecutor(_make_registry(log))
        agent = _make_agent_with_plan("goto_door", "open_door", "walk_thru_door")

        executor.step(agent)

        assert agent.current_task == "goto_door"
        assert agent.task_state is TaskState.RUNNING
        assert log == [("activate", "goto_door")]

    def test_running_task_waits(self):
        log = []
        executor = PlanExecutor(_make_registry(log))
        agent = _make_agent_with_plan("goto_door", "open_door")

        executor.step(agent)
        executor.step(agent)
        executor.step(agent)

        assert agent.current_task == "goto_door"
        assert log == [("activate", "goto_door")]

    def test_success_runs_plan_in_order(self):
        log = []
        executor = PlanExecutor(_make_registry(log))
        agent = _make_agent_with_plan("goto_door", "open_door", "walk_thru_door")

        _run_to_completion(executor, agent)

        assert log == [
            ("activate", "goto_door"),
            ("deactivate", "goto_door"),
            ("activate", "open_door"),
            ("deactivate", "open_door"),
            ("activate", "walk_thru_door"),
            ("deactivate", "walk_thru_door"),
        ]
        assert not agent.has_plan()
        assert agent.active_goal is None

    def test_completed_plan_is_forgotten(self):
        executor = PlanExecutor(_make_registry([]))
        agent = _make_agent_with_plan("goto_door")

        _run_to_completion(executor, agent)

        assert agent.search.get_plan("Be in room B") is None

    def test_failure_drops_plan(self):
        log = []
        executor = PlanExecutor(_make_registry(log))
        agent = _make_agent_with_plan("goto_door", "open_door", "walk_thru_door")

        executor.step(agent)
        executor.report(agent, TaskState.FAILURE)
        executor.step(agent)

        assert log == [("activate", "goto_door"), ("deactivate", "goto_door")]
        assert not agent.has_plan()
        assert agent.current_task is None
        assert agent.search.get_plan("Be in room B") is None

    def test_report_without_running_task(self):
        executor = PlanExecutor(_make_registry([]))
        agent = _make_agent_with_plan("goto_door")

        with pytest.raises(ExecutionError, match="no task is running"):
            executor.report(agent, TaskState.SUCCESS)

    def test_unregistered_task_is_skipped(self):
        log = []
        executor = PlanExecutor(_make_registry(log, names=("goto_door", "walk_thru_door")))
        agent = _make_agent_with_plan("goto_door", "open_door", "walk_thru_door")

        executor.step(agent)
        executor.report(agent, TaskState.SUCCESS)
        executor.step(agent)

        # open_door is unknown: nothing is activated and the next step moves on.
        assert agent.current_task is None
        assert agent.task_state is None
        executor.step(agent)
        assert agent.current_task == "walk_thru_door"
        assert log == [
            ("activate", "goto_door"),
            ("deactivate", "goto_door"),
            ("activate", "walk_thru_door"),
        ]

    def test_empty_plan_is_dropped(self, caplog):
        executor = PlanExecutor(_make_registry([]))
        agent = _make_agent_with_plan()

        with caplog.at_level("WARNING"):
            executor.step(agent)

        assert not agent.has_plan()
        assert "Failed to initialize a plan" in caplog.text

    def test_step_without_plan_is_noop(self):
        executor = PlanExecutor(_make_registry([]))
        agent = HtnAgent("idle")
        executor.step(agent)
        assert agent.current_task is None


class TestAgent:
    def test_composite_plan_expands_for_execution(self):
        log = []
        executor = PlanExecutor(_make_registry(log))
        goal = Goal(name="Be in room B", requires={"room": "B"})
        agent = HtnAgent("agent-1", goals=[goal])
        plan = Plan(
            tasks=[
                Task.primitive("walk_thru_door"),
                Task.composite(
                    "approach_and_open",
                    [Task.primitive("goto_door"), Task.primitive("open_door")],
                ),
            ],
            cost=3.0,
        )
        agent.install_plan(goal, plan)

        _run_to_completion(executor, agent)

        assert [entry[1] for entry in log if entry[0] == "activate"] == [
            "goto_door",
            "open_door",
            "walk_thru_door",
        ]

    def test_fluent_builders_update_search(self):
        agent = (
            HtnAgent("agent-1")
            .add_task(Task.primitive("goto_door"))
            .add_goal("near", {"near_door": True}, utility=2.0)
        )
        assert [t.name for t in agent.search.available_tasks] == ["goto_door"]
        assert agent.search.current_goal.name == "near"

    def test_invalidate_plan_clears_search(self):
        agent = _make_agent_with_plan("goto_door")
        agent.invalidate_plan()
        assert not agent.has_plan()
        assert agent.search.plans == {}
        assert agent.search.is_idle
