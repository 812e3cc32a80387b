from __future__ import annotations

from dataclasses import dataclass, field

NANOS_PER_MILLI = 1_000_000


@dataclass
class IntervalRecord:
    """A labelled [start, end] span whose reported duration can be adjusted
    for nested intervals.

    Instants are integer nanoseconds on a single clock. ``context`` names the
    thread the interval was recorded on and prefixes its flame graph line.
    """

    label: str
    start: int
    end: int
    context: str = "main"
    adjustment: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"interval '{self.label}' ends ({self.end}) before it starts ({self.start})")

    @property
    def raw_duration(self) -> int:
        return self.end - self.start

    @property
    def duration(self) -> int:
        """Self-duration: the raw duration less time attributed to children.

        If A contains B, B takes 1s and A takes 1.5s, A is reported as 0.5s.
        Clamped at zero so clock jitter never yields a negative time.
        """
        adjusted = self.raw_duration - self.adjustment
        return adjusted if adjusted > 0 else 0

    @property
    def millis(self) -> int:
        return self.duration // NANOS_PER_MILLI

    def adjust(self, duration: int) -> None:
        """Attribute ``duration`` nanoseconds of this interval to a child."""
        self.adjustment += duration
