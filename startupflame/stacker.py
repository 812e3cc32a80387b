"""Reconstruct the containment tree of startup intervals and write one
flame graph line per interval.

Intervals are processed in start order against a stack of those still open.
Before a new interval is pushed, every open interval that ended strictly
before it started is written out and popped. Whatever remains on top is the
new interval's parent, so the parent's self-time is reduced by the child's
duration. A child's duration already excludes its own children, which is
why only the direct parent is ever adjusted. Intervals are assumed to nest
(any two are disjoint or one contains the other); partial overlaps produce
deterministic but meaningless output.
"""

from __future__ import annotations

import logging
import math

from typing import Callable, Iterable, List, Sequence, TextIO, Union

from startupflame.events import IntervalRecord
from startupflame.formatter import format_stack

rootLogger = logging.getLogger()

Formatter = Callable[[Sequence[IntervalRecord]], str]


class IntervalStacker:
    """Single-use, single-threaded writer of folded stacks.

    Args:
        sink: text stream receiving one line per retired interval
        formatter: renders the line for the top of a stack
    """

    def __init__(self, sink: TextIO, formatter: Formatter = format_stack) -> None:
        self.sink = sink
        self.formatter = formatter
        self.stack: List[IntervalRecord] = []
        self.written = 0
        # encoded bytes handed to the sink
        self.size = 0

    def flush_before(self, before: Union[int, float]) -> None:
        """Retire every stacked interval that ended strictly before ``before``, innermost first."""
        stack = self.stack
        while stack and stack[-1].end < before:
            line = self.formatter(stack)
            self.sink.write(line)
            self.size += len(line.encode("utf-8"))
            stack.pop()
            self.written += 1

    def push(self, record: IntervalRecord) -> None:
        self.flush_before(record.start)
        if self.stack:
            self.stack[-1].adjust(record.duration)
        self.stack.append(record)

    def process(self, records: Iterable[IntervalRecord]) -> int:
        """Write every record in ``records``, which must be sorted by start time.

        Returns:
            The number of lines written
        """
        for record in records:
            self.push(record)
        self.flush_before(math.inf)
        rootLogger.debug(f"Retired {self.written} intervals")
        return self.written


def write_flame_stacks(records: Iterable[IntervalRecord], sink: TextIO) -> int:
    return IntervalStacker(sink).process(records)
