# c4model/sequence.py
"""Order numbers for the steps of a dynamic view.

Counters form a chain through `parent`: a child counter renders as
"{parent}.{n}", a parallel counter starts from the value of the counter it
branches off and renders as a sibling of it.
"""
from __future__ import annotations

from typing import Optional


class SequenceError(RuntimeError):
    """Raised when sequences are started/ended out of order."""


class SequenceCounter:
    def __init__(self, parent: Optional[SequenceCounter] = None) -> None:
        self.parent = parent
        self.sequence = 0

    def increment(self) -> None:
        self.sequence += 1

    def as_string(self) -> str:
        if self.parent is None:
            return str(self.sequence)
        return f"{self.parent.as_string()}.{self.sequence}"

    def __str__(self) -> str:
        return self.as_string()


class ParallelSequenceCounter(SequenceCounter):
    """Counter for one parallel block; numbers alongside the counter it branched from."""

    def __init__(self, parent: SequenceCounter) -> None:
        super().__init__(parent)
        self.sequence = parent.sequence

    def as_string(self) -> str:
        assert self.parent is not None
        grandparent = self.parent.parent
        if grandparent is None:
            return str(self.sequence)
        return f"{grandparent.as_string()}.{self.sequence}"


class SequenceNumber:
    """Generates "1", "2", "2.1", ... for one dynamic view.

    Ending a parallel block does not advance the enclosing counter: steps
    inside each block continue from the value current at block entry, and
    the next sequential step after the blocks reuses that first value
    ("1", parallel "2", parallel "2", then "2"). Only a single parallel
    block may be open at a time.
    """

    def __init__(self) -> None:
        self._counter = SequenceCounter()

    @property
    def in_parallel(self) -> bool:
        return isinstance(self._counter, ParallelSequenceCounter)

    def _parallel_open(self) -> bool:
        counter: Optional[SequenceCounter] = self._counter
        while counter is not None:
            if isinstance(counter, ParallelSequenceCounter):
                return True
            counter = counter.parent
        return False

    def get_next(self) -> str:
        self._counter.increment()
        return self._counter.as_string()

    def start_child_sequence(self) -> None:
        self._counter = SequenceCounter(self._counter)

    def end_child_sequence(self) -> None:
        if self.in_parallel or self._counter.parent is None:
            raise SequenceError("There is no child sequence to end.")
        self._counter = self._counter.parent

    def start_parallel_sequence(self) -> None:
        if self._parallel_open():
            raise SequenceError("A parallel sequence is already in progress.")
        self._counter = ParallelSequenceCounter(self._counter)

    def end_parallel_sequence(self) -> None:
        # The enclosing counter is not advanced: the next block (or the next
        # sequential step) numbers from the same starting point.
        if not self.in_parallel:
            raise SequenceError("There is no parallel sequence to end.")
        assert self._counter.parent is not None
        self._counter = self._counter.parent
