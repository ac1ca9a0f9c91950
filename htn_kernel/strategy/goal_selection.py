"""
Goal Selection — decides which goal an agent pursues this cycle.

Policies:
  TOP              first goal in the list (default)
  RANDOM           uniform choice
  RANDOM_WEIGHTED  choice weighted by utility; no choice if weights are invalid
  CUSTOM           injected GoalChooser
"""

import logging
import math
import random
from enum import Enum
from typing import Optional, Protocol, Sequence

from htn_kernel.models.planning import Goal
from htn_kernel.models.world import WorldState

logger = logging.getLogger(__name__)


class GoalSelectionPolicy(str, Enum):
    TOP = "top"
    RANDOM = "random"
    RANDOM_WEIGHTED = "random_weighted"
    CUSTOM = "custom"


class GoalChooser(Protocol):
    """Pluggable decision function for the CUSTOM policy."""

    def __call__(self, goals: Sequence[Goal], world: WorldState) -> Optional[Goal]: ...


class GoalSelector:
    """Applies a GoalSelectionPolicy to a ranked goal list."""

    def __init__(
        self,
        policy: GoalSelectionPolicy = GoalSelectionPolicy.TOP,
        chooser: Optional[GoalChooser] = None,
        rng: Optional[random.Random] = None,
    ):
        self.policy = policy
        self.chooser = chooser
        self._rng = rng or random.Random()

    def next_goal(self, goals: Sequence[Goal], world: WorldState) -> Optional[Goal]:
        """Pick a goal, or None when the list is empty or no valid choice exists."""
        if not goals:
            return None

        if self.policy is GoalSelectionPolicy.TOP:
            return goals[0]

        if self.policy is GoalSelectionPolicy.RANDOM:
            return self._rng.choice(list(goals))

        if self.policy is GoalSelectionPolicy.RANDOM_WEIGHTED:
            return self._weighted_choice(goals)

        if self.chooser is None:
            logger.warning("Custom goal policy configured without a chooser")
            return None
        return self.chooser(goals, world)

    def _weighted_choice(self, goals: Sequence[Goal]) -> Optional[Goal]:
        weights = [goal.utility for goal in goals]
        total = sum(weights)
        invalid = any(not math.isfinite(w) or w < 0 for w in weights)
        if invalid or not math.isfinite(total) or total <= 0:
            logger.debug("No valid utility distribution over %d goals", len(goals))
            return None
        return self._rng.choices(list(goals), weights=weights, k=1)[0]
