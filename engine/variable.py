"""
PlagueBoard - engine/variable.py
Buffered Variables: staged writes and priority-weighted broadcast.
===================================================================
Version:     0.2  (Phase 1 - settlement core)
Stack:       Python 3.12+
Status:      Production-ready.

Architecture notes
------------------
- A Variable holds a committed value (`data`) and a staged buffer
  (`data_buf`). Reading `data` never reflects staged writes.
- Writing `data` is a direct commit: the buffer follows and dirty clears.
- Writing `data_buf` stages a value; `commit()` makes it visible.
- Batch iteration pattern (Fibonacci, for illustration):

      a, b = Variable(1), Variable(0)
      for _ in range(10):
          a.data_buf = a.data + b.data
          b.data_buf = a.data
          a.commit(); b.commit()

- out_variables are shared references into sibling blocks. Never owned.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, List, TypeVar

# ============================================================
# DESIGN VARIABLE DEFAULTS
# ============================================================

ZERO: float = 1e-6  # ratios and weight sums below this count as zero


class VarType(str, Enum):
    HEALTHY_POP = "healthy_pop"
    INFECTED_POP_CURR_GEN = "infected_pop_curr_gen"
    INFECTED_POP_NEXT_GEN = "infected_pop_next_gen"
    MATERIAL = "material"
    NONE = "none"


T = TypeVar("T", int, float)


class Variable(Generic[T]):
    """
    Scalar with a committed value and a staged buffer.

    priority is the weight this value receives when it is the *target*
    of another value's broadcast.
    """

    def __init__(self, data: T, var_type: VarType = VarType.NONE) -> None:
        self._data: T = data
        self._data_buf: T = data
        self._dirty: bool = False
        self.var_type = var_type
        self.priority: float = 0.0
        self.out_variables: List[Variable[T]] = []

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._data!r}, {self.var_type.value}, "
            f"buf={self._data_buf!r}, dirty={self._dirty})"
        )

    @property
    def data(self) -> T:
        return self._data

    @data.setter
    def data(self, value: T) -> None:
        self._data = value
        self._data_buf = value
        self._dirty = False

    @property
    def data_buf(self) -> T:
        # Only meaningful mid-round; prefer `data` for display.
        return self._data_buf

    @data_buf.setter
    def data_buf(self, value: T) -> None:
        self._data_buf = value
        self._dirty = True

    def add_buffered(self, delta: T) -> None:
        self.data_buf = self._data_buf + delta

    def need_commit(self) -> bool:
        return self._dirty

    def commit(self) -> None:
        self._data = self._data_buf
        self._dirty = False

    def add_out_variable(self, var: Variable[T]) -> None:
        self.out_variables.append(var)

    def broadcast(self, ratio: float, offset: float = 0.0, reserve: int = 0) -> int:
        """Plain variables do not propagate."""
        return 0


class BroadcastValue(Variable[int]):
    """
    Integer Variable that can hand part of itself to its out_variables.
    """

    def __init__(self, data: int, var_type: VarType = VarType.NONE) -> None:
        super().__init__(data, var_type)

    def broadcast(self, ratio: float, offset: float = 0.0, reserve: int = 0) -> int:
        """
        Give away `ratio` of the committed value to the out_variables whose
        priority is at least `offset`, weighted by (priority + 1). The value
        never gives away so much that it would fall below `reserve`.

        Allocations are truncated and capped against a running remainder,
        so whatever rounding leaves over stays with this value. Results
        depend on out_variables order.

        Returns the amount actually moved.
        """
        eligible: List[Variable[int]] = []
        priority_sum = 0.0
        for var in self.out_variables:
            if var.priority < offset:
                continue
            priority_sum += var.priority + 1
            eligible.append(var)

        if priority_sum < ZERO:
            return 0

        if ratio <= ZERO:
            ratio = 0.0
        delta = int(self.data * ratio)
        if self.data < delta:
            delta = self.data
        if delta > self.data - reserve:
            delta = max(0, self.data - reserve)

        out_sum = delta
        for var in eligible:
            alloc = int(delta * ((var.priority + 1) / priority_sum))
            if out_sum < alloc:
                alloc = out_sum
            var.add_buffered(alloc)
            out_sum -= alloc

        given = delta - out_sum
        self.add_buffered(-given)
        return given
