"""
World Model Store — the global world state plus per-agent overlays.

Updated by: the host (sensors, task side effects)
Queried by: the Planning Scheduler, to build each agent's planning view
"""

from typing import Any, Dict, List, Optional

from htn_kernel.models.world import Key, WorldState


class WorldModelStore:
    """
    In-memory store. An agent's view is the global world with its
    overlay merged on top, so agent-local facts win on collisions.
    """

    def __init__(self, world: Optional[WorldState] = None):
        self._world = world if world is not None else WorldState()
        self._overlays: Dict[str, WorldState] = {}

    @property
    def world(self) -> WorldState:
        """The global world state."""
        return self._world

    def set_fact(self, key: Key, value: Any) -> None:
        """Set a fact in the global world."""
        self._world.insert(key, value)

    def erase_fact(self, key: Key) -> None:
        self._world.erase(key)

    def set_overlay(self, agent_id: str, overlay: WorldState) -> None:
        """Replace an agent's local facts."""
        self._overlays[agent_id] = overlay

    def get_overlay(self, agent_id: str) -> Optional[WorldState]:
        return self._overlays.get(agent_id)

    def update_overlay(self, agent_id: str, key: Key, value: Any) -> None:
        """Set one agent-local fact, creating the overlay if needed."""
        self._overlays.setdefault(agent_id, WorldState()).insert(key, value)

    def remove_overlay(self, agent_id: str) -> bool:
        """Remove an agent's overlay."""
        if agent_id in self._overlays:
            del self._overlays[agent_id]
            return True
        return False

    def agent_ids_with_overlay(self) -> List[str]:
        return list(self._overlays)

    def agent_view(self, agent_id: str) -> WorldState:
        """The world as `agent_id` plans against it."""
        overlay = self._overlays.get(agent_id)
        if overlay is None:
            return self._world.copy()
        return self._world.concat(overlay)

    def get_state_snapshot(self) -> dict:
        """Serializable snapshot of the global world and every overlay."""
        return {
            "world": self._world.to_dict(),
            "overlays": {
                agent_id: overlay.to_dict()
                for agent_id, overlay in self._overlays.items()
            },
        }
