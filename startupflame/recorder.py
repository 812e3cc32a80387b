from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from typing import Any, Callable, Dict, Hashable, Iterator, Optional, TextIO

from startupflame.config import DEFAULT_EVENT_TYPE, DEFAULT_LABEL_FIELD
from startupflame.recording import RawEvent, write_event

rootLogger = logging.getLogger()

ID_FIELD = "Component-Id"
VERSION_FIELD = "Component-Version"


class ComponentState(Enum):
    INSTALLED = "installed"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class PendingInterval:
    name: str
    version: Optional[str]
    thread: str
    start: int


class StartupRecorder:
    """Records how long each component takes to start.

    Feed it lifecycle transitions from the host framework. The interval for a
    component opens when it moves to STARTING and is written to ``sink`` when
    it reaches STARTED. Components that never reach STARTED are not recorded.

    Call it synchronously on the thread doing the work: if transitions were
    delivered asynchronously, nested start and end times would be skewed.
    """

    def __init__(self, sink: TextIO, clock: Callable[[], int] = time.perf_counter_ns,
            event_type: str = DEFAULT_EVENT_TYPE) -> None:
        self.sink = sink
        self.clock = clock
        self.event_type = event_type
        self.pending: Dict[Hashable, PendingInterval] = {}
        self._next_id = 0

    def component_changed(self, component_id: Hashable, name: str, state: ComponentState,
            version: Optional[str] = None, thread: Optional[str] = None) -> Optional[RawEvent]:
        """Handle one lifecycle transition.

        Returns:
            The event written to the sink when an interval completes, otherwise None
        """
        now = self.clock()
        if state == ComponentState.STARTING:
            if thread is None:
                thread = threading.current_thread().name
            self.pending[component_id] = PendingInterval(name, version, thread, now)
            return None

        if state != ComponentState.STARTED:
            return None

        interval = self.pending.pop(component_id, None)
        if interval is None:
            rootLogger.debug(f"Ignoring STARTED for '{name}' ({component_id}): it was never seen STARTING")
            return None

        fields: Dict[str, Any] = {DEFAULT_LABEL_FIELD: interval.name, ID_FIELD: component_id}
        if interval.version is not None:
            fields[VERSION_FIELD] = interval.version
        event = RawEvent(self.event_type, interval.start, now, interval.thread, fields)
        write_event(self.sink, event)
        return event

    @contextmanager
    def track(self, name: str, version: Optional[str] = None) -> Iterator[None]:
        """Record the enclosed block as a component start.

        If the block raises, nothing is recorded and the component is forgotten.
        """
        component_id = f"{name}#{self._next_id}"
        self._next_id += 1
        self.component_changed(component_id, name, ComponentState.STARTING, version)
        try:
            yield
        except BaseException:
            self.pending.pop(component_id, None)
            raise
        self.component_changed(component_id, name, ComponentState.STARTED, version)
