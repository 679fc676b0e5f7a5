"""Buffer-mutating filters applied to one translation unit.

Every filter works on a plain list of events and edits it in place.  Ranges
are half open, ``[range_start, range_end)``, and the functions that delete
events return the new ``range_end`` so callers can chain them on a buffer that
shrinks as it is processed.  Elements handed to :func:`remove_elements` and
:func:`flatten_elements` are assumed not to nest inside themselves: the first
closing marker after an opening one ends the element.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .errors import MalformedUnitError
from .events import PROP, TUV, TYPE, VOTE, Buffer, ElementStart, is_end, is_marker, is_start, is_whitespace


def contains_vote_marker(buffer: Buffer) -> bool:
    """Check whether a unit carries a ``prop`` of type ``vote``.

    Properties precede the translation variants of a unit, so the scan stops
    at the first ``tuv``.  The value of the property does not matter.

    :param buffer: Events of one translation unit.
    :returns: ``True`` if a vote property precedes the first ``tuv``.
    :raises MalformedUnitError: if the buffer has no ``tuv`` at all.
    """
    for event in buffer:
        if not isinstance(event, ElementStart):
            continue
        if event.name == PROP and event.get(TYPE) == VOTE:
            return True
        if event.name == TUV:
            return False
    raise MalformedUnitError("found neither a vote property nor a translation variant")


def trim_leading_whitespace(buffer: Buffer, start: int, stop: Optional[int] = None) -> int:
    """Delete the run of whitespace-only text events beginning at ``start``.

    :param buffer: Event list to edit.
    :param start: Index of the first event to inspect.
    :param stop: Optional exclusive bound; defaults to the end of the buffer.
    :returns: Number of events removed.
    """
    end = len(buffer) if stop is None else min(stop, len(buffer))
    i = start
    while i < end and is_whitespace(buffer[i]):
        i += 1
    del buffer[start:i]
    return i - start


def remove_elements(
    buffer: Buffer,
    name: str,
    attribute: Optional[Tuple[str, str]] = None,
    range_start: int = 0,
    range_end: Optional[int] = None,
) -> int:
    """Delete elements called ``name`` together with their content.

    When ``attribute`` is given as ``(attribute_name, value)`` only elements
    carrying exactly that value are removed; without it every ``name`` element
    in the range goes.  Whitespace left behind by a removed element is trimmed
    as well, so indentation does not pile up in the output.

    :param buffer: Event list to edit.
    :param name: Element name to remove.
    :param attribute: Optional ``(attribute_name, value)`` filter.
    :param range_start: First index to scan, inclusive.
    :param range_end: Last index to scan, exclusive; defaults to the buffer
        length.
    :returns: The new ``range_end`` after deletions.
    :raises MalformedUnitError: if a removed element has no closing marker
        before ``range_end``.
    """
    if range_end is None:
        range_end = len(buffer)
    i = range_start
    while i < range_end:
        event = buffer[i]
        if not is_start(event, name) or (
            attribute is not None and event.get(attribute[0]) != attribute[1]
        ):
            i += 1
            continue

        close = i + 1
        while close < range_end and not is_end(buffer[close], name):
            close += 1
        if close >= range_end:
            raise MalformedUnitError(f"<{name}> is not closed within its unit")

        del buffer[i : close + 1]
        range_end -= close + 1 - i
        range_end -= trim_leading_whitespace(buffer, i, range_end)
    return range_end


def flatten_elements(
    buffer: Buffer,
    name: str,
    range_start: int = 0,
    range_end: Optional[int] = None,
) -> int:
    """Drop the start and end markers of ``name`` elements, keeping content.

    :param buffer: Event list to edit.
    :param name: Element name to unwrap.
    :param range_start: First index to scan, inclusive.
    :param range_end: Last index to scan, exclusive; defaults to the buffer
        length.
    :returns: The new ``range_end`` after deletions.
    """
    if range_end is None:
        range_end = len(buffer)
    i = range_start
    while i < range_end:
        if is_marker(buffer[i], name):
            del buffer[i]
            range_end -= 1
        else:
            i += 1
    return range_end
