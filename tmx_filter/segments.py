"""Collect one segment of the event stream at a time.

A segment is either the gap between two translation units or a unit itself.
The collector peeks at the next event before consuming it, so a boundary
marker can be left in the source for the next call when the caller does not
want it in the current buffer.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .events import Buffer, Event, is_marker


class EventSource(Protocol):
    def peek(self) -> Optional[Event]:
        ...

    def next(self) -> Event:
        ...


class EventSink(Protocol):
    def write(self, event: Event) -> None:
        ...


def collect(source: EventSource, buffer: Buffer, boundary: str, include_boundary: bool) -> bool:
    """Append events to ``buffer`` until a start or end marker of ``boundary``.

    :param source: Event source supporting ``peek`` and ``next``.
    :param buffer: List receiving the collected events.
    :param boundary: Element name whose start or end ends the segment.
    :param include_boundary: Consume and append the boundary marker too.
    :returns: ``True`` when the boundary was seen, ``False`` when the source
        ran out first.
    """
    while True:
        event = source.peek()
        if event is None:
            return False
        if is_marker(event, boundary):
            if include_boundary:
                buffer.append(source.next())
            return True
        buffer.append(source.next())


def drain(buffer: Buffer, sink: EventSink) -> int:
    """Write every buffered event to ``sink`` and empty the buffer."""
    count = len(buffer)
    for event in buffer:
        sink.write(event)
    buffer.clear()
    return count
