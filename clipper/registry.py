"""
Option registry: one entry per declared option, unique by long name and short alias.

Canonical markers
- multi-character names are keyed as "--name";
- single-character names are keyed by their short form "-c" (they must have one).

Arity classes (used by the validator and the usage text)
- flags:    parser arity 0
- required: declared through ropt()
- optional: everything else
"""
import logging
import re
from typing import NamedTuple

from .faults import DuplicateOptionError, InvalidOptionNameError
from .parsers import Parser
from .utils import mirror

logger = logging.getLogger(__name__)


class Registration(NamedTuple):
    name: str
    short: str | None
    parser: Parser
    required: bool = False
    kv: bool = False
    descr: str | None = None

    @property
    def marker(self):
        return "--" + self.name if len(self.name) > 1 else "-" + self.short

    @property
    def arity(self):
        return self.parser.arity

    @property
    def flag(self):
        return self.parser.arity == 0


class Registry:
    """
    Keyed store of Registrations enforcing the uniqueness invariants.

    Violations are configuration errors and are raised immediately:
    - DuplicateOptionError: long name or short alias already taken.
    - InvalidOptionNameError: empty or malformed name, malformed alias,
      single-character name without a short form.
    """

    def __init__(self):
        self._entries = {}

    entries = mirror("entries")

    def register(self, name, short, parser, /, *, required=False, kv=False, descr=None):
        if not isinstance(name, str):
            raise TypeError("option names must be strings")
        if not name:
            raise InvalidOptionNameError("option names cannot be empty", name=name)
        if not re.fullmatch(r"[^\s-]\S*", name):
            raise InvalidOptionNameError(
                f"option name {name!r} cannot start with a dash or contain spaces", name=name
            )
        if any(entry.name == name for entry in self._entries.values()):
            raise DuplicateOptionError(f"{name} is already registered as an option", name=name)
        if short is not None and (not isinstance(short, str) or len(short) != 1 or short in "- "):
            raise InvalidOptionNameError(f"short alias {short!r} must be a single character", name=name)
        if len(name) == 1 and short is None:
            raise InvalidOptionNameError("single-character options must use short form", name=name)
        if short is not None and self.has_short(short):
            raise DuplicateOptionError(f"alias {short} is already used", name=name, short=short)

        entry = Registration(name, short, parser, required, kv, descr)
        self._entries[entry.marker] = entry
        logger.debug("registered %s%s", entry.marker, f"|-{short}" if short and len(name) > 1 else "")
        return entry

    def has_short(self, short, /):
        return any(entry.short == short for entry in self._entries.values())

    def __contains__(self, marker):
        return marker in self._entries

    def __getitem__(self, marker):
        return self._entries[marker]

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self):
        return len(self._entries)

    def _select(self, predicate):
        return tuple(self._entries[key] for key in sorted(self._entries) if predicate(self._entries[key]))

    @property
    def flags(self):
        return self._select(lambda entry: entry.flag)

    @property
    def required(self):
        return self._select(lambda entry: entry.required)

    @property
    def optional(self):
        return self._select(lambda entry: not entry.flag and not entry.required)


__all__ = (
    "Registration",
    "Registry",
)
