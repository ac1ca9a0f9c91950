"""World State — the set of facts known to be true, keyed by Symbol."""

import logging
from typing import Any, Dict, ItemsView, Iterable, Mapping, Optional, Tuple, Union

from htn_kernel.models.symbols import Symbol, intern
from htn_kernel.models.values import Value

logger = logging.getLogger(__name__)

Key = Union[str, Symbol]


class WorldState:
    """
    Mapping from Symbol to Value. Represents the global world or an
    agent-local overlay. Writes are last-write-wins; merges are right-biased.
    """

    def __init__(
        self,
        entries: Optional[Union[Mapping[Key, Any], Iterable[Tuple[Key, Any]]]] = None,
    ):
        self._entries: Dict[Symbol, Value] = {}
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, raw in pairs:
            symbol = intern(key)
            if symbol in self._entries:
                logger.warning("Duplicate entries for key: %s", symbol)
            self._entries[symbol] = Value.of(raw)

    @classmethod
    def _wrap(cls, entries: Dict[Symbol, Value]) -> "WorldState":
        world = cls.__new__(cls)
        world._entries = entries
        return world

    def add(self, key: Key, value: Any) -> "WorldState":
        """Fluent insert."""
        self.insert(key, value)
        return self

    def insert(self, key: Key, value: Any) -> Optional[Value]:
        """Set a fact, returning the value it replaced."""
        symbol = intern(key)
        previous = self._entries.get(symbol)
        self._entries[symbol] = Value.of(value)
        return previous

    def erase(self, key: Key) -> None:
        self._entries.pop(intern(key), None)

    def clear(self) -> None:
        self._entries.clear()

    def get(self, key: Key) -> Optional[Value]:
        return self._entries.get(intern(key))

    def validate(self, other: "WorldState") -> bool:
        """True iff every fact in `other` is present and equal here."""
        for symbol, value in other._entries.items():
            current = self._entries.get(symbol)
            if current is None or current != value:
                return False
        return True

    def append(self, other: "WorldState") -> None:
        """Merge `other` into this state in place; `other` wins on collisions."""
        self._entries.update(other._entries)

    def concat(self, other: "WorldState") -> "WorldState":
        """Return a new state with `other` merged over this one."""
        merged = dict(self._entries)
        merged.update(other._entries)
        return WorldState._wrap(merged)

    def copy(self) -> "WorldState":
        return WorldState._wrap(dict(self._entries))

    def items(self) -> ItemsView[Symbol, Value]:
        return self._entries.items()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly snapshot: {key text: raw value}."""
        return {symbol.text: value.raw for symbol, value in self._entries.items()}

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, Symbol)):
            return False
        return intern(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorldState):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"WorldState({self.to_dict()!r})"
