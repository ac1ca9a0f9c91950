"""Requirements — the conditions that must hold for a task or goal to apply."""

from typing import Any, Dict, ItemsView, Iterable, Mapping, Optional, Tuple, Union

from htn_kernel.models.symbols import Symbol, intern
from htn_kernel.models.values import (
    Equals,
    HasEntry,
    Ordered,
    Ordering,
    Predicate,
    Value,
    predicate_satisfied,
)
from htn_kernel.models.world import Key, WorldState


def _as_predicate(raw: Any) -> Predicate:
    if isinstance(raw, (HasEntry, Equals, Ordered)):
        return raw
    return Equals(value=Value.of(raw))


class Requirements:
    """Mapping from Symbol to Predicate. A missing world entry never satisfies."""

    def __init__(
        self,
        entries: Optional[Union[Mapping[Key, Any], Iterable[Tuple[Key, Any]]]] = None,
    ):
        self._entries: Dict[Symbol, Predicate] = {}
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, raw in pairs:
            self._entries[intern(key)] = _as_predicate(raw)

    @classmethod
    def _wrap(cls, entries: Dict[Symbol, Predicate]) -> "Requirements":
        requirements = cls.__new__(cls)
        requirements._entries = entries
        return requirements

    @classmethod
    def from_world(cls, world: WorldState) -> "Requirements":
        """Every fact of `world` becomes an Equals predicate."""
        return cls._wrap({symbol: Equals(value=value) for symbol, value in world.items()})

    # --- Builders ---

    def req(self, key: Key, predicate: Predicate) -> "Requirements":
        self._entries[intern(key)] = predicate
        return self

    def req_equals(self, key: Key, value: Any) -> "Requirements":
        return self.req(key, Equals(value=Value.of(value)))

    def req_greater(self, key: Key, value: Any) -> "Requirements":
        return self.req(key, Ordered(ordering=Ordering.GREATER, value=Value.of(value)))

    def req_less(self, key: Key, value: Any) -> "Requirements":
        return self.req(key, Ordered(ordering=Ordering.LESS, value=Value.of(value)))

    def req_has(self, key: Key) -> "Requirements":
        return self.req(key, HasEntry())

    # --- Evaluation ---

    def validate(self, world: WorldState) -> bool:
        """True iff every predicate holds for the matching world entry."""
        for symbol, predicate in self._entries.items():
            value = world.get(symbol)
            if value is None or not predicate_satisfied(predicate, value):
                return False
        return True

    def consume(self, world: WorldState) -> WorldState:
        """Copy of `world` without the entries these requirements already accept."""
        reduced = world.copy()
        for symbol, predicate in self._entries.items():
            value = world.get(symbol)
            if value is not None and predicate_satisfied(predicate, value):
                reduced.erase(symbol)
        return reduced

    def unmet(self, world: WorldState) -> "Requirements":
        """The subset of requirements `world` does not yet satisfy."""
        remaining = {}
        for symbol, predicate in self._entries.items():
            value = world.get(symbol)
            if value is not None and predicate_satisfied(predicate, value):
                continue
            remaining[symbol] = predicate
        return Requirements._wrap(remaining)

    def append(self, other: "Requirements") -> None:
        """Merge `other` in place; `other` wins on collisions."""
        self._entries.update(other._entries)

    def copy(self) -> "Requirements":
        return Requirements._wrap(dict(self._entries))

    def get(self, key: Key) -> Optional[Predicate]:
        return self._entries.get(intern(key))

    def items(self) -> ItemsView[Symbol, Predicate]:
        return self._entries.items()

    def to_dict(self) -> Dict[str, dict]:
        snapshot = {}
        for symbol, predicate in self._entries.items():
            entry: Dict[str, Any] = {"kind": predicate.kind}
            if isinstance(predicate, Ordered):
                entry["ordering"] = predicate.ordering.value
            if isinstance(predicate, (Equals, Ordered)):
                entry["value"] = predicate.value.raw
            snapshot[symbol.text] = entry
        return snapshot

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, Symbol)):
            return False
        return intern(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Requirements):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Requirements({self.to_dict()!r})"
