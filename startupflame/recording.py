"""Reading and writing startup recordings.

A recording is JSON Lines: one event object per line, e.g.

    {"type": "startupflame.ComponentEvent", "thread": "main",
     "startTime": 1200, "endTime": 5600, "Component-Name": "db-pool"}

``startTime``/``endTime`` are integer nanoseconds or ISO-8601 strings.
Every key other than the reserved ones is kept as an event field.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from typing import Any, Dict, Iterable, Iterator, Optional, TextIO, Union

from startupflame.errors import RecordingError

rootLogger = logging.getLogger()

TYPE_KEY = "type"
THREAD_KEY = "thread"
START_KEY = "startTime"
END_KEY = "endTime"
RESERVED_KEYS = (TYPE_KEY, THREAD_KEY, START_KEY, END_KEY)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class RawEvent:
    """A decoded recording event, before any filtering."""
    event_type: str
    start: Optional[int] = None
    end: Optional[int] = None
    thread: str = "main"
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Any:
        return self.fields.get(name)


def parse_instant(value: Union[None, int, str]) -> Optional[int]:
    """Convert a recorded instant into integer nanoseconds.

    Args:
        value: nanoseconds as an int, an ISO-8601 timestamp string, or None.
               Naive timestamps are taken to be UTC.

    Returns:
        Nanoseconds (since the epoch for timestamps), or None if absent.
    """
    if value is None:
        return None
    # bool is an int subclass but never a valid instant
    if isinstance(value, bool):
        raise ValueError(f"invalid instant {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        delta = instant - EPOCH
        return (delta.days * 86400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1000
    raise ValueError(f"invalid instant {value!r}")


def decode_event(line: str, lineno: Optional[int] = None) -> RawEvent:
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordingError(f"invalid JSON: {e.msg}", lineno)
    if not isinstance(obj, dict):
        raise RecordingError(f"expected an event object, got {type(obj).__name__}", lineno)

    try:
        start = parse_instant(obj.get(START_KEY))
        end = parse_instant(obj.get(END_KEY))
    except ValueError as e:
        raise RecordingError(str(e), lineno)

    return RawEvent(
        event_type=str(obj.get(TYPE_KEY, "")),
        start=start,
        end=end,
        thread=str(obj.get(THREAD_KEY) or "main"),
        fields={k: v for k, v in obj.items() if k not in RESERVED_KEYS},
    )


def read_recording(stream: Iterable[str]) -> Iterator[RawEvent]:
    """Decode every non-blank line of ``stream`` into a RawEvent.

    Raises:
        RecordingError: a line could not be decoded. Nothing after it is read.
    """
    lines = iter(stream)
    lineno = 0
    while True:
        try:
            line = next(lines)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            # text streams decode ahead in chunks, so only the last good line is known
            raise RecordingError(f"not valid UTF-8 after line {lineno}: {e.reason}")
        lineno += 1
        if not line.strip():
            continue
        yield decode_event(line, lineno)


def encode_event(event: RawEvent) -> str:
    obj: Dict[str, Any] = {
        TYPE_KEY: event.event_type,
        THREAD_KEY: event.thread,
        START_KEY: event.start,
        END_KEY: event.end,
    }
    obj.update(event.fields)
    return json.dumps(obj, sort_keys=True)


def write_event(stream: TextIO, event: RawEvent) -> None:
    stream.write(encode_event(event) + "\n")
