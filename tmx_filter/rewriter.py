"""Apply the configured filters to one translation unit.

:class:`FilterOptions` is built once from user input and never changes during
a run.  :func:`rewrite_unit` receives a buffer holding exactly one unit, from
its ``<tu>`` to its ``</tu>``, and edits it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

import config

from .errors import ConfigurationError
from .events import HI, SUB, TUV, Buffer
from .filters import contains_vote_marker, flatten_elements, remove_elements


def split_choices(values: str, valid: Iterable[str], name: str) -> FrozenSet[str]:
    """Parse a comma separated list and check every entry against ``valid``.

    Entries are trimmed and upper-cased so ``"en, fr"`` is accepted.

    :param values: Raw list as typed by the user.
    :param valid: Allowed choices.
    :param name: Human readable name of the choice for error messages.
    :returns: The parsed entries.
    :raises ConfigurationError: on the first invalid entry.
    """
    valid = set(valid)
    result = set()
    for value in values.split(","):
        value = value.strip().upper()
        if value not in valid:
            raise ConfigurationError(f"Not a valid {name} choice: {value}")
        result.add(value)
    return frozenset(result)


@dataclass(frozen=True)
class FilterOptions:
    """Resolved settings for a run.

    ``keep_sessions`` is accepted and validated but session based filtering is
    not performed.
    """

    keep_languages: FrozenSet[str] = field(default_factory=lambda: frozenset(config.VALID_LANGUAGES))
    all_languages: FrozenSet[str] = field(default_factory=lambda: frozenset(config.VALID_LANGUAGES))
    drop_vote_units: bool = False
    plaintext: bool = False
    keep_sessions: Optional[FrozenSet[str]] = None

    @classmethod
    def from_choices(
        cls,
        langs: str | None = None,
        sessions: str | None = None,
        drop_vote_units: bool = False,
        plaintext: bool = False,
    ) -> "FilterOptions":
        """Build options from command line style lists."""

        all_languages = frozenset(config.VALID_LANGUAGES)
        keep = all_languages if langs is None else split_choices(langs, all_languages, "language")
        keep_sessions = None
        if sessions is not None:
            keep_sessions = split_choices(sessions, config.VALID_SESSIONS, "session")
        return cls(
            keep_languages=keep,
            all_languages=all_languages,
            drop_vote_units=drop_vote_units,
            plaintext=plaintext,
            keep_sessions=keep_sessions,
        )

    @property
    def removed_languages(self) -> FrozenSet[str]:
        return self.all_languages - self.keep_languages

    @property
    def is_identity(self) -> bool:
        return not (self.removed_languages or self.drop_vote_units or self.plaintext)


def rewrite_unit(buffer: Buffer, options: FilterOptions) -> bool:
    """Filter one translation unit in place.

    A unit with a vote property is emptied when ``drop_vote_units`` is set and
    nothing else is done to it.  Otherwise unwanted translation variants are
    removed first, then footnotes are removed and inline markers flattened in
    plaintext mode.  The outer ``<tu>`` markers are never touched.

    :param buffer: Events of one unit, ``<tu>`` through ``</tu>``.
    :param options: Settings for the run.
    :returns: ``False`` if the whole unit was dropped, else ``True``.
    """
    if options.drop_vote_units and contains_vote_marker(buffer):
        buffer.clear()
        return False

    for code in sorted(options.removed_languages):
        for attribute in config.LANGUAGE_ATTRIBUTES:
            remove_elements(buffer, TUV, (attribute, code), 1, len(buffer) - 1)

    if options.plaintext:
        remove_elements(buffer, SUB, None, 1, len(buffer) - 1)
        flatten_elements(buffer, HI, 1, len(buffer) - 1)
    return True
