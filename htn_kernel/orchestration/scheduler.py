"""
Planning Scheduler — the per-tick driver around the planner.

Each tick runs three phases in order:
  1. SEARCH   advance every agent's tree search within the frame budget
  2. EXTRACT  give agents without a plan the stored plan for their next goal
              (lowest planning priority first unless sorting is disabled)
  3. STEP     advance every agent that is following a plan

Agents share no mutable state apart from the registry and world store,
which the scheduler only reads during a tick.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from htn_kernel.agents.agent import HtnAgent
from htn_kernel.execution.controller import PlanExecutor
from htn_kernel.models.settings import HtnSettings
from htn_kernel.tasks.registry import TaskRegistry
from htn_kernel.world_model.store import WorldModelStore

logger = logging.getLogger(__name__)


class PlanningScheduler:
    """Runs planning and plan execution for a population of agents."""

    def __init__(
        self,
        world_store: WorldModelStore,
        registry: TaskRegistry,
        settings: Optional[HtnSettings] = None,
        executor: Optional[PlanExecutor] = None,
    ):
        self.world_store = world_store
        self.registry = registry
        self.settings = settings or HtnSettings()
        self.executor = executor or PlanExecutor(registry)

        self._agents: Dict[str, HtnAgent] = {}
        self._running = False
        self._tick_count = 0

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def register_agent(self, agent: HtnAgent) -> None:
        self._agents[agent.agent_id] = agent

    def unregister_agent(self, agent_id: str) -> None:
        self._agents.pop(agent_id, None)

    def get_agent(self, agent_id: str) -> Optional[HtnAgent]:
        return self._agents.get(agent_id)

    def get_agents(self) -> List[HtnAgent]:
        return list(self._agents.values())

    def tick(self) -> dict:
        """Run one scheduling cycle. Returns which agents were touched."""
        searched = self._update_searches()
        planned = self._extract_plans()
        stepped = self._step_agents()
        self._tick_count += 1
        return {
            "tick": self._tick_count,
            "searched": searched,
            "planned": planned,
            "stepped": stepped,
        }

    def _update_searches(self) -> List[str]:
        limit = self.settings.frame_processing_limit
        budget = limit.total_seconds() if limit is not None else None
        start_time = time.monotonic()
        searched = []

        for agent in self._agents.values():
            agent.search.generate_for_duration(
                self.registry,
                self.world_store.agent_view(agent.agent_id),
                limit,
                self.settings.node_branch_limit,
            )
            searched.append(agent.agent_id)
            if budget is not None and time.monotonic() - start_time >= budget:
                logger.debug(
                    "Frame budget exhausted after %d of %d agents",
                    len(searched), len(self._agents),
                )
                break
        return searched

    def _extract_plans(self) -> List[str]:
        candidates = [a for a in self._agents.values() if not a.has_plan()]
        if not self.settings.disable_priority_sort:
            candidates.sort(key=lambda a: a.planning_priority)

        planned = []
        for agent in candidates:
            view = self.world_store.agent_view(agent.agent_id)
            goal = agent.next_goal(view)
            if goal is None or goal.requires.validate(view):
                continue
            plan = agent.search.get_plan(goal.name)
            if plan is None:
                continue
            agent.install_plan(goal, plan)
            logger.info(
                "Agent %s following plan for %r: %s",
                agent.agent_id, goal.name, list(reversed(plan.task_names())),
            )
            planned.append(agent.agent_id)
        return planned

    def _step_agents(self) -> List[str]:
        stepped = []
        for agent in self._agents.values():
            if agent.has_plan():
                self.executor.step(agent)
                stepped.append(agent.agent_id)
        return stepped

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Tick every `tick_interval_seconds` until `stop_event` is set."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                self.tick()
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.settings.tick_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
