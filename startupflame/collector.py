from __future__ import annotations

import logging

from typing import Iterable, List

from startupflame.config import CollectorConfig
from startupflame.events import IntervalRecord
from startupflame.recording import RawEvent

rootLogger = logging.getLogger()


def collect_intervals(raw_events: Iterable[RawEvent], config: CollectorConfig) -> List[IntervalRecord]:
    """Filter a decoded recording down to the tracked interval events.

    Events whose type does not start with ``config.event_type``, or that carry
    no ``config.label_field``, are skipped, as are events without a usable
    [start, end] span. This is a filter, not a validator: nothing is raised.

    Args:
        raw_events: decoded recording events, in any order
        config: which event type and label field to track

    Returns:
        IntervalRecords sorted by start time. Equal start times keep their
        recording order.
    """
    records = []
    skipped = 0
    for event in raw_events:
        if not event.event_type.startswith(config.event_type):
            skipped += 1
            continue
        label = event.get(config.label_field)
        if label is None:
            skipped += 1
            continue
        if event.start is None or event.end is None:
            rootLogger.debug(f"Skipping '{label}': missing start or end time")
            skipped += 1
            continue
        if event.end < event.start:
            rootLogger.warning(f"Skipping '{label}': ends {event.start - event.end}ns before it starts")
            skipped += 1
            continue
        records.append(IntervalRecord(str(label), event.start, event.end, event.thread))

    rootLogger.debug(f"Collected {len(records)} intervals, skipped {skipped} events")
    # sorted() is stable, so duplicates of a start time stay in recording order
    return sorted(records, key=lambda r: r.start)
