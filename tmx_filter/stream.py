"""Streaming XML input and output built on :mod:`lxml`.

:class:`EventReader` feeds the input to an incremental lxml parser in fixed
size chunks and turns the parser callbacks into :mod:`~tmx_filter.events`
objects.  Only the events not yet consumed are held in memory, which keeps a
multi gigabyte corpus readable in constant space.  :class:`EventWriter` does
the reverse with :func:`lxml.etree.xmlfile`, writing each event as soon as it
arrives.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from lxml import etree

import config

from .errors import MalformedStreamError
from .events import XML_NS, ElementEnd, ElementStart, Event, Other, Text

_DOCTYPE_RE = re.compile(rb"<!DOCTYPE\s[^\[>]*(?:\[.*?\]\s*)?>", re.DOTALL)
_ENCODING_RE = re.compile(rb"encoding=[\"']([^\"']+)[\"']")


def _find_doctype(head: bytes) -> Optional[str]:
    """Return the DOCTYPE declaration as written at the top of a document.

    The parser target only reports the name and identifiers of a DOCTYPE, so
    the internal subset is recovered from the raw bytes instead.
    """
    match = _DOCTYPE_RE.search(head)
    if match is None:
        return None
    declared = _ENCODING_RE.search(head[: match.start()])
    encoding = declared.group(1).decode("ascii") if declared else "utf-8"
    return match.group(0).decode(encoding)


class _EventTarget:
    """Parser target collecting callbacks into a queue of events.

    lxml may split character data over several ``data`` calls, so text is
    held back until the next structural callback and then queued as a single
    :class:`Text` event.
    """

    def __init__(self, events: Deque[Event]) -> None:
        self._events = events
        self._text: List[str] = []
        self.raw_doctype: Optional[str] = None

    def _flush_text(self) -> None:
        if self._text:
            self._events.append(Text("".join(self._text)))
            self._text = []

    def start(self, tag: str, attrib: Dict[str, str], nsmap: Optional[Dict] = None) -> None:
        self._flush_text()
        self._events.append(ElementStart(tag, dict(attrib), dict(nsmap or {})))

    def end(self, tag: str) -> None:
        self._flush_text()
        self._events.append(ElementEnd(tag))

    def data(self, data: str) -> None:
        self._text.append(data)

    def comment(self, text: str) -> None:
        self._flush_text()
        self._events.append(Other("comment", text))

    def pi(self, target: str, data: Optional[str] = None) -> None:
        self._flush_text()
        self._events.append(Other("pi", data or "", target))

    def doctype(self, name: str, pubid: Optional[str], system: Optional[str]) -> None:
        if self.raw_doctype:
            decl = self.raw_doctype
        elif pubid:
            decl = f'<!DOCTYPE {name} PUBLIC "{pubid}" "{system or ""}">'
        elif system:
            decl = f'<!DOCTYPE {name} SYSTEM "{system}">'
        else:
            decl = f"<!DOCTYPE {name}>"
        self._events.append(Other("doctype", decl))

    def close(self) -> None:
        self._flush_text()


class EventReader:
    """Pull events from a binary XML stream.

    ``peek`` returns the next event without consuming it and ``None`` once the
    document is exhausted; ``next`` consumes it.  Syntax errors surface as
    :class:`lxml.etree.XMLSyntaxError` from either call.
    """

    def __init__(self, stream, read_size: int | None = None) -> None:
        self._stream = stream
        self._read_size = read_size or config.READ_SIZE
        self._events: Deque[Event] = deque()
        self._target = _EventTarget(self._events)
        self._parser = etree.XMLParser(target=self._target, huge_tree=True)
        self._started = False
        self._finished = False
        self.events_read = 0

    def _fill(self) -> None:
        while not self._events and not self._finished:
            chunk = self._stream.read(self._read_size)
            if not self._started:
                self._started = True
                self._target.raw_doctype = _find_doctype(chunk or b"")
            if chunk:
                self._parser.feed(chunk)
            else:
                self._finished = True
                self._parser.close()

    def peek(self) -> Optional[Event]:
        self._fill()
        return self._events[0] if self._events else None

    def next(self) -> Event:
        self._fill()
        if not self._events:
            raise EOFError("no more events in the input")
        self.events_read += 1
        return self._events.popleft()

    def __iter__(self):
        while self.peek() is not None:
            yield self.next()


class EventWriter:
    """Serialize events to a binary stream as they arrive.

    Use as a context manager; leaving the block normally closes any element
    still open and flushes the output.  Whitespace outside the root element
    is dropped since ``xmlfile`` does not accept text there.  Comments and
    processing instructions after the root are held back and appended once
    ``xmlfile`` has finished the document.
    """

    def __init__(self, stream, encoding: str = "utf-8") -> None:
        self._stream = stream
        self._encoding = encoding
        self._context = None
        self._xf = None
        self._open: List[Tuple[str, object]] = []
        self._root_opened = False
        self._root_closed = False
        self._trailing: List[etree._Element] = []

    def __enter__(self) -> "EventWriter":
        self._context = etree.xmlfile(self._stream, encoding=self._encoding)
        self._xf = self._context.__enter__()
        self._xf.write_declaration()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            while self._open:
                _, element = self._open.pop()
                element.__exit__(None, None, None)
        self._context.__exit__(exc_type, exc, tb)
        if exc_type is None:
            for node in self._trailing:
                self._stream.write("\n".encode(self._encoding))
                self._stream.write(etree.tostring(node, encoding=self._encoding, xml_declaration=False))

    def write(self, event: Event) -> None:
        if isinstance(event, ElementStart):
            nsmap = dict(event.namespaces)
            if not self._root_opened:
                # xml:lang must keep its reserved prefix
                nsmap["xml"] = XML_NS
                self._root_opened = True
            element = self._xf.element(event.name, event.attributes, nsmap=nsmap or None)
            element.__enter__()
            self._open.append((event.name, element))
        elif isinstance(event, ElementEnd):
            if not self._open or self._open[-1][0] != event.name:
                raise MalformedStreamError(f"unexpected </{event.name}> in output")
            _, element = self._open.pop()
            element.__exit__(None, None, None)
            self._root_closed = not self._open
        elif isinstance(event, Text):
            if not self._open:
                if not event.is_whitespace:
                    raise MalformedStreamError("text outside the root element")
                return
            self._xf.write(event.content)
        elif event.kind == "doctype":
            self._xf.write_doctype(event.content)
        else:
            if event.kind == "comment":
                node = etree.Comment(event.content)
            else:
                node = etree.PI(event.target, event.content or None)
            if self._root_closed:
                self._trailing.append(node)
            else:
                self._xf.write(node)
