"""Tagged markup events exchanged between reader, filters and writer.

Each event is a small immutable dataclass.  The filters only ever ask three
questions of an event: is it the start or end of a given element, what is the
value of an attribute, and is it a run of whitespace.  The helpers below keep
those questions in one place so that the filters read like the rules they
implement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# Markup vocabulary of a TMX corpus
TU = "tu"
TUV = "tuv"
PROP = "prop"
SUB = "sub"
HI = "hi"
TYPE = "type"
VOTE = "vote"
XML_NS = "http://www.w3.org/XML/1998/namespace"
XML_LANG = "{%s}lang" % XML_NS


@dataclass(frozen=True)
class ElementStart:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    # Namespace declarations made on this element, prefix -> URI
    namespaces: Dict[Optional[str], str] = field(default_factory=dict, compare=False)

    def get(self, attribute: str) -> Optional[str]:
        return self.attributes.get(attribute)


@dataclass(frozen=True)
class ElementEnd:
    name: str


@dataclass(frozen=True)
class Text:
    content: str

    @property
    def is_whitespace(self) -> bool:
        return not self.content.strip()


@dataclass(frozen=True)
class Other:
    """Comment, processing instruction or DOCTYPE, passed through unexamined.

    ``kind`` is one of ``"comment"``, ``"pi"`` or ``"doctype"``.  For a
    processing instruction ``target`` holds its target name; for a DOCTYPE
    ``content`` holds the complete declaration.
    """

    kind: str
    content: str = ""
    target: Optional[str] = None


Event = Union[ElementStart, ElementEnd, Text, Other]
Buffer = List[Event]


def is_start(event: Event, name: str) -> bool:
    return isinstance(event, ElementStart) and event.name == name


def is_end(event: Event, name: str) -> bool:
    return isinstance(event, ElementEnd) and event.name == name


def is_marker(event: Event, name: str) -> bool:
    """Return ``True`` for either the start or the end marker of ``name``."""
    return is_start(event, name) or is_end(event, name)


def is_whitespace(event: Event) -> bool:
    return isinstance(event, Text) and event.is_whitespace


def describe(buffer: Buffer, limit: int = 60) -> str:
    """Summarize the text of a buffer for error messages."""
    text = " ".join(
        e.content.strip() for e in buffer if isinstance(e, Text) and not e.is_whitespace
    )
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return repr(text)
