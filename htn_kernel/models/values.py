"""Values and predicates — the typed facts a world state holds and tests."""

import struct
from enum import Enum
from typing import Any, Callable, Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    field_validator,
    model_validator,
)

from htn_kernel.models.symbols import Symbol, intern


class ValueKind(str, Enum):
    BOOLEAN = "boolean"
    SYMBOL = "symbol"
    NUMBER = "number"


class Ordering(str, Enum):
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"


def total_order_key(number: float) -> int:
    """IEEE 754 totalOrder as a signed integer (-NaN < -inf < -0.0 < 0.0 < inf < NaN)."""
    bits = struct.unpack("<q", struct.pack("<d", number))[0]
    if bits < 0:
        bits ^= 0x7FFFFFFFFFFFFFFF
    return bits


class Value(BaseModel):
    """Tagged union of boolean, symbol and number. Never equal across kinds."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ValueKind
    data: Union[StrictBool, StrictFloat, Symbol]

    @model_validator(mode="after")
    def _kind_matches_data(self) -> "Value":
        expected = {
            ValueKind.BOOLEAN: bool,
            ValueKind.SYMBOL: Symbol,
            ValueKind.NUMBER: float,
        }[self.kind]
        if not isinstance(self.data, expected):
            raise ValueError(
                f"{self.kind.value} value cannot hold {type(self.data).__name__}"
            )
        return self

    @classmethod
    def of(cls, raw: Any) -> "Value":
        """Build a Value from a plain Python bool, str, Symbol, int or float."""
        if isinstance(raw, Value):
            return raw
        if isinstance(raw, bool):
            return cls(kind=ValueKind.BOOLEAN, data=raw)
        if isinstance(raw, (str, Symbol)):
            return cls(kind=ValueKind.SYMBOL, data=intern(raw))
        if isinstance(raw, (int, float)):
            return cls(kind=ValueKind.NUMBER, data=float(raw))
        raise TypeError(f"Unsupported value type {type(raw).__name__}: {raw!r}")

    @property
    def raw(self) -> Union[bool, str, float]:
        """Plain Python form: symbols come back as their text."""
        if self.kind is ValueKind.SYMBOL:
            return self.data.text
        return self.data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.kind is ValueKind.NUMBER:
            return total_order_key(self.data) == total_order_key(other.data)
        return self.data == other.data

    def __hash__(self) -> int:
        if self.kind is ValueKind.NUMBER:
            return hash((self.kind, total_order_key(self.data)))
        return hash((self.kind, self.data))

    def __repr__(self) -> str:
        return f"Value({self.kind.value}={self.raw!r})"


def compare_values(left: Value, right: Value) -> Optional[Ordering]:
    """Order `left` relative to `right`; None when the kinds differ."""
    if left.kind is not right.kind:
        return None
    if left.kind is ValueKind.NUMBER:
        a, b = total_order_key(left.data), total_order_key(right.data)
    elif left.kind is ValueKind.SYMBOL:
        a, b = left.data.text, right.data.text
    else:
        a, b = left.data, right.data
    if a < b:
        return Ordering.LESS
    if a > b:
        return Ordering.GREATER
    return Ordering.EQUAL


# --- Predicates ---

class HasEntry(BaseModel):
    """Satisfied by the presence of the key, whatever its value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["has_entry"] = "has_entry"


class Equals(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["equals"] = "equals"
    value: Value

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, raw: Any) -> Value:
        return Value.of(raw)


class Ordered(BaseModel):
    """Satisfied when compare(world value, value) equals `ordering`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ordered"] = "ordered"
    ordering: Ordering
    value: Value

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, raw: Any) -> Value:
        return Value.of(raw)


Predicate = Union[HasEntry, Equals, Ordered]


def _check_has_entry(predicate: HasEntry, value: Value) -> bool:
    return True


def _check_equals(predicate: Equals, value: Value) -> bool:
    return value == predicate.value


def _check_ordered(predicate: Ordered, value: Value) -> bool:
    return compare_values(value, predicate.value) is predicate.ordering


_PREDICATE_CHECKS: Dict[type, Callable[[Any, Value], bool]] = {
    HasEntry: _check_has_entry,
    Equals: _check_equals,
    Ordered: _check_ordered,
}


def predicate_satisfied(predicate: Predicate, value: Value) -> bool:
    """Evaluate a predicate against the value stored in a world state."""
    check_fn = _PREDICATE_CHECKS.get(type(predicate))
    if check_fn is None:
        raise TypeError(f"Unknown predicate type: {type(predicate).__name__}")
    return check_fn(predicate, value)
