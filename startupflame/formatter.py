from __future__ import annotations

from typing import Sequence

from startupflame.events import IntervalRecord

SEPARATOR = ";"


def context_name(record: IntervalRecord) -> str:
    # flamegraph.pl splits the count off at the last space
    return record.context.replace(" ", "-")


def format_stack(stack: Sequence[IntervalRecord]) -> str:
    """Render the line for the interval on top of ``stack``.

    ``stack[-1]`` is the retiring interval and the rest are its open
    ancestors, outermost first. Labels are written innermost first:

        main;child;parent 1234

    The count is the retiring interval's self-time in whole milliseconds,
    as expected by ``flamegraph.pl --countname ms``.
    """
    top = stack[-1]
    parts = [context_name(top)]
    for record in reversed(stack):
        parts.append(record.label)
    return SEPARATOR.join(parts) + " " + str(top.millis) + "\n"
