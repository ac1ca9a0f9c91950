"""
Symbols — interned name handles for world-state keys and string values.

Interning guarantees that equal text maps to one canonical Symbol, so
equality and hashing are identity checks. The default table is process-wide,
append-only and never shrinks. Every lookup briefly holds a single lock
shared by all planner instances.
"""

import threading
from typing import Dict, Optional, Union


class InterningError(RuntimeError):
    """Raised when the symbol table lock cannot be acquired.

    The table is shared process state; failing to lock it means it can no
    longer be trusted, so callers are expected to let this propagate.
    """
    pass


class Symbol:
    """Canonical handle for a piece of text. Only created by a SymbolTable."""

    __slots__ = ("_text",)

    def __init__(self, text: str):
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Symbol({self._text!r})"

    # Copies must keep identity, otherwise equality breaks.
    def __copy__(self) -> "Symbol":
        return self

    def __deepcopy__(self, memo) -> "Symbol":
        return self

    def __reduce__(self):
        return (intern, (self._text,))


class SymbolTable:
    """
    Append-only text → Symbol table guarded by one mutex.

    lock_timeout: seconds to wait for the lock before raising
    InterningError. None waits indefinitely.
    """

    def __init__(self, lock_timeout: Optional[float] = None):
        self._symbols: Dict[str, Symbol] = {}
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout

    def intern(self, text: Union[str, Symbol]) -> Symbol:
        """Return the canonical Symbol for `text`, creating it if needed."""
        if isinstance(text, Symbol):
            return text
        if not isinstance(text, str):
            raise TypeError(f"Cannot intern {type(text).__name__}: {text!r}")

        self._acquire(f"interning {text!r}")
        try:
            symbol = self._symbols.get(text)
            if symbol is None:
                symbol = Symbol(text)
                self._symbols[text] = symbol
            return symbol
        finally:
            self._lock.release()

    def __contains__(self, text: object) -> bool:
        self._acquire("checking membership")
        try:
            return text in self._symbols
        finally:
            self._lock.release()

    def __len__(self) -> int:
        self._acquire("counting symbols")
        try:
            return len(self._symbols)
        finally:
            self._lock.release()

    def _acquire(self, action: str) -> None:
        timeout = -1 if self._lock_timeout is None else self._lock_timeout
        if not self._lock.acquire(timeout=timeout):
            raise InterningError(f"Symbol table lock unavailable while {action}")


_DEFAULT_TABLE = SymbolTable()


def default_table() -> SymbolTable:
    """The process-wide table used by the rest of the kernel."""
    return _DEFAULT_TABLE


def intern(text: Union[str, Symbol]) -> Symbol:
    """Intern `text` in the process-wide table."""
    return _DEFAULT_TABLE.intern(text)
