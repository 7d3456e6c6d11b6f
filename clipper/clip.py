"""
Clip: declarative extraction of options from a token list.

Model
- A Clip owns three pieces of state, created once per instance:
  • the token store: `filtered` (input minus empty strings, frozen) and
    `remaining` (tokens nobody claimed yet);
  • the flag group: characters of the first `-abc`-style token, pulled out of
    the stream before any declaration;
  • the registry: every declared option, unique by long name and short alias.
- Each builder (opt, dopt, ropt, sopt, flag, kv, tail) registers its option,
  then rips the marker and its value tokens out of `remaining`. Extraction is
  positional, so the order in which options are declared does not matter.
- check(...) runs the requested validations once and closes the declaration phase.

Extraction ("rip")
- the long form "--name" is always tried first (exact match), then the short
  form "-c" when the option has an alias (exact match, or prefix match for
  key-value options so that "-ma=1" works);
- fixed arities take exactly N tokens after the marker;
- unbounded arities take tokens up to the next option marker; negative numbers
  are values unless Behavior.STOP_SEQUENCE_ON_NEGATIVE is active.

Example:
    >>> class Options(Clip):
    ...     def declare(self):
    ...         self.port = self.dopt("port", 80)
    ...         self.host = self.ropt("host")
    ...         self.check(Check.UNRECOGNIZED, Check.AUTO_HELP)
    ...
    >>> options = Options(["--port", "8080", "--host", "x.com"])
    >>> options.port, options.host, options.remaining
    (8080, 'x.com', ())
"""
import enum
import logging
import re
import sys

from .faults import *
from .helper import HELP_TOKEN, HelpRequest, usage
from .parsers import DEFAULTS, NULLARY, SequenceParser, resolve
from .registry import Registry
from .utils import *

logger = logging.getLogger(__name__)

FLAG_GROUP = re.compile(r"-[a-zA-Z0-9]{2,}")
NEGATIVE = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


class Check(enum.Enum):
    """
    validations available to Clip.check().

    - UNRECOGNIZED: no dash-prefixed token left, no unclaimed grouped flag.
    - NO_REPEATED: no option marker appears more than once in the input.
    - NO_LEADING: no unparsed token sits before a parsed one.
    - NO_EXTRA: nothing left unparsed at all (subsumes NO_LEADING).
    - AUTO_HELP: build a HelpRequest when --help was passed; do not combine
      with a host-defined "help" option.
    """
    UNRECOGNIZED = enum.auto()
    NO_REPEATED = enum.auto()
    NO_LEADING = enum.auto()
    NO_EXTRA = enum.auto()
    AUTO_HELP = enum.auto()


class Behavior(enum.Enum):
    """
    switches altering how a Clip extracts options.

    - NO_DEFAULT_SHORT: options only get a short alias when asked for one
      (single-character names always have one).
    - STOP_SEQUENCE_ON_NEGATIVE: a dash followed by a digit ends an unbounded
      run instead of being read as a negative number.
    """
    NO_DEFAULT_SHORT = enum.auto()
    STOP_SEQUENCE_ON_NEGATIVE = enum.auto()


def _missing(name):
    return f"Missing required argument {name}"


class Clip:
    """
    Token store, registry and option builders for one command line.

    Use it directly:
        clip = Clip(["-v", "--out", "a.txt"])
        verbose = clip.flag("verbose")
        out = clip.opt("out")

    or subclass it and declare options in declare(), which runs at the end of
    construction.

    Options
    - prog: program name used by fault rendering (defaults to argv[0]).
    - shell, fancy, colorful, deferred: forwarded to trigger() by parse().
    - parsers: extra {type: Parser} entries for the explicit parser registry.
    """

    def __init__(self, tokens=Unset, /, *behaviors, parsers=Unset, **options):
        tokens = sys.argv[1:] if tokens is Unset else tokens
        if isinstance(tokens, str):
            raise TypeError("Clip() tokens must be an iterable of strings, not a string")
        tokens = tuple(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("Clip() tokens must be strings")
        for behavior in behaviors:
            if not isinstance(behavior, Behavior):
                raise TypeError(f"Clip() behaviors must be Behavior members, not {behavior!r}")
        if unknown := set(options) - {"prog", "shell", "fancy", "colorful", "deferred"}:
            raise TypeError(f"Clip() got unexpected options: {', '.join(sorted(unknown))}")

        self._behaviors = frozenset(behaviors)
        self._options = options
        self._parsers = DEFAULTS | dict(coalesce(parsers, {}))
        self._registry = Registry()
        self._filtered = tuple(token for token in tokens if token)
        self._remaining = list(self._filtered)
        self._help = None
        self._checked = False

        self._group = frozenset()
        for index, token in enumerate(self._remaining):
            if FLAG_GROUP.fullmatch(token) and not NEGATIVE.fullmatch(token):
                del self._remaining[index]
                self._group = frozenset(token[1:])
                logger.debug("flag group %s found at %d", token, index)
                break
        self._flags = set(self._group)

        self.declare()

    def declare(self):
        """
        Hook for subclasses: declare options here (runs once, from __init__).
        """

    filtered = mirror("filtered")
    remaining = mirror("remaining")
    flags = mirror("flags")
    behaviors = mirror("behaviors")
    options = mirror("options")
    help = mirror("help")
    parsers = mirror("parsers")

    @property
    def registry(self):
        return self._registry

    @property
    def trailing(self):
        """
        Unparsed tokens after the last parsed one: the longest run shared by
        `filtered` and `remaining` when both are read from their ends.
        """
        run = []
        for original, token in zip(reversed(self._filtered), reversed(self._remaining)):
            if original != token:
                break
            run.append(token)
        return tuple(reversed(run))

    def __repr__(self):
        return f"{type(self).__name__}({', '.join('%s=%r' % item for item in self.__rich_repr__())})"

    def __rich_repr__(self):
        yield "remaining", self.remaining
        yield "flags", self.flags
        yield "options", tuple(entry.marker for entry in self._registry)

    # --- parsers -------------------------------------------------------------

    def use(self, type, parser, /):
        """
        Register `parser` for `type` in this clip's parser registry.
        """
        self._parsers[type] = resolve(parser, self._parsers)
        return self._parsers[type]

    def _resolve(self, parser):
        return resolve(parser, self._parsers)

    # --- token store / extractor --------------------------------------------

    def _stops(self, token):
        if not token.startswith("-"):
            return False
        if Behavior.STOP_SEQUENCE_ON_NEGATIVE in self._behaviors:
            return True
        return not NEGATIVE.fullmatch(token)

    def _rip(self, marker, arity, strict):
        """
        Remove `marker` and its value tokens from `remaining`.

        Returns (index, values) where index is the marker's former position, or
        None when the marker is absent. Fewer than `arity` values are returned
        when the stream runs out; callers decide whether that is an error.
        """
        for index, token in enumerate(self._remaining):
            if token == marker if strict else token.startswith(marker):
                break
        else:
            return None

        attached = self._remaining[index][len(marker):]
        candidates = ([attached] if attached else []) + self._remaining[index + 1:]
        if arity is Ellipsis:
            count = next((position for position, token in enumerate(candidates) if self._stops(token)), len(candidates))
        else:
            count = arity
        values, back = candidates[:count], candidates[count:]
        self._remaining[index:] = back
        logger.debug("ripped %s %r at %d", marker, values, index)
        return index, values

    def _rip_with_short(self, name, arity, short, strict=True):
        return (
            self._rip("--" + name, arity, True) or
            (self._rip("-" + short, arity, strict) if short is not None else None)
        )

    # --- registry -----------------------------------------------------------

    def _declaring(self):
        if self._checked:
            raise ClipStateError("options cannot be declared after check()")

    def _declare(self, name, parser, has_short, short, /, **metadata):
        self._declaring()
        if not isinstance(name, str):
            raise TypeError("option names must be strings")
        if has_short is Unset:
            has_short = (
                short is not Unset or
                len(name) == 1 or
                Behavior.NO_DEFAULT_SHORT not in self._behaviors
            )
        alias = (coalesce(short, name[:1]) or None) if has_short else None
        return self._registry.register(name, alias, parser, **metadata)

    # --- option builders ----------------------------------------------------

    def _option(self, name, parser, has_short, short, /, **metadata):
        parser = self._resolve(parser)
        entry = self._declare(name, parser, has_short, short, **metadata)
        if (found := self._rip_with_short(name, parser.arity, entry.short)) is None:
            return Unset
        index, values = found
        if parser.bounded and len(values) < parser.arity:
            raise MissingValueError(f"Missing argument after option '{name}'", marker=entry.marker)
        value, rest = parser(values)
        self._remaining[index:index] = rest
        return value

    def opt(self, name, parser=str, /, *, has_short=Unset, short=Unset, descr=None):
        """
        Single-value option: `--name value` or `-n value`.

        Returns the parsed value, or None when the option is absent. A marker
        without enough values raises MissingValueError.
        """
        return coalesce(self._option(name, parser, has_short, short, descr=descr))

    def dopt(self, name, default, parser=Unset, /, *, has_short=Unset, short=Unset, descr=None):
        """
        As opt(), falling back to `default` when absent. Without an explicit
        parser, the one registered for type(default) is used.
        """
        parser = coalesce(parser, type(default))
        return coalesce(self._option(name, parser, has_short, short, descr=descr), default)

    def ropt(self, name, parser=str, /, *, message=_missing, has_short=Unset, short=Unset, descr=None):
        """
        As opt(), raising MissingRequiredError when absent.

        When --help is among the remaining tokens the error is held back and
        None is returned, so that AUTO_HELP can answer instead.
        """
        value = self._option(name, parser, has_short, short, required=True, descr=descr)
        if value is not Unset:
            return value
        if HELP_TOKEN in self._remaining:
            return None
        raise MissingRequiredError(message(name), name=name)

    def sopt(self, name, parser=str, /, *, has_short=Unset, short=Unset, descr=None):
        """
        Sequence option: `--name v1 v2 v3 ...` up to the next option marker.

        Returns a list, empty when the option is absent.
        """
        parser = SequenceParser(self._resolve(parser))
        return coalesce(self._option(name, parser, has_short, short, descr=descr), [])

    def flag(self, name, /, *, has_short=Unset, short=Unset, descr=None):
        """
        Presence-only option: `--name`, `-n`, or `n` inside a group like `-lnt`.

        A grouped character is claimed at most once.
        """
        entry = self._declare(name, NULLARY, has_short, short, descr=descr)
        if entry.short is not None and entry.short in self._flags:
            self._flags.remove(entry.short)
            logger.debug("claimed -%s from the flag group", entry.short)
            return True
        return self._rip_with_short(name, 0, entry.short) is not None

    def kv(self, name, parser=str, /, *, has_short=Unset, short=Unset, descr=None):
        """
        Key-value option, returning a dict:

            --name k1=v1,k2=v2 k3=v3
            -n k1=v1 k2=v2
            -nk1=v1,k2=v2

        Values are read with a unary parser; a piece that does not split into
        exactly one key and one value raises MalformedPairError.
        """
        element = self._resolve(parser)
        if element.arity != 1:
            raise TypeError("key-value options need a single-token value parser")
        entry = self._declare(name, SequenceParser(element), has_short, short, kv=True, descr=descr)
        found = self._rip_with_short(name, Ellipsis, entry.short, strict=False)
        pairs = {}
        for piece in (piece for token in (found[1] if found else ()) for piece in token.split(",") if piece):
            match piece.split("="):
                case [key, value]:
                    pairs[key], _ = element([value])
                case _:
                    raise MalformedPairError(f"cannot split {piece!r} into key=value", marker=entry.marker, token=piece)
        return pairs

    def tail(self, parser=str, /):
        """
        Parse from the trailing run only, `parser.arity` tokens at a time
        (the whole run for unbounded parsers).
        """
        self._declaring()
        parser = self._resolve(parser)
        trailing = self.trailing
        if parser.bounded and len(trailing) < parser.arity:
            raise NotEnoughTrailingError(
                f"There are not enough arguments left in {list(trailing)} to parse "
                f"trailing arguments with arity {parser.arity}"
            )
        taken = list(trailing if not parser.bounded else trailing[:parser.arity])
        start = len(self._remaining) - len(trailing)
        value, rest = parser(taken)
        self._remaining[start:start + len(taken)] = rest
        return value

    # --- validator ----------------------------------------------------------

    def check(self, *checks):
        """
        Apply checks after every option has been declared. Runs at most once.

        Returns a HelpRequest when AUTO_HELP is requested and --help is
        present (the other checks are skipped in that case), otherwise None.
        Failed checks raise their ClipValidationError.
        """
        self._declaring()
        self._checked = True
        for check in checks:
            if not isinstance(check, Check):
                raise TypeError(f"check() arguments must be Check members, not {check!r}")

        if Check.AUTO_HELP in checks and HELP_TOKEN in self._remaining:
            self._help = HelpRequest(usage(self._registry), **self._options)
            return self._help

        for check in checks:
            logger.debug("checking %s", check.name)
            match check:
                case Check.UNRECOGNIZED:
                    for token in self._remaining:
                        if token.startswith("-"):
                            raise UnrecognizedOptionError(f"Unrecognized or repeated option {token}", token=token)
                    if self._flags:
                        raise UnrecognizedFlagsError(
                            f"Unrecognized flags {','.join(sorted(self._flags))}", flags=frozenset(self._flags)
                        )
                case Check.NO_REPEATED:
                    for entry in self._registry:
                        count = self._filtered.count(entry.marker) if entry.marker.startswith("--") else 0
                        if entry.short is not None:
                            count += self._filtered.count("-" + entry.short) + (entry.short in self._group)
                        if count > 1:
                            raise RepeatedOptionError(f"Repeated option {entry.marker}", marker=entry.marker)
                case Check.NO_LEADING if self._remaining and len(self.trailing) != len(self._remaining):
                    raise LeadingTokensError(f"Invalid input {self._remaining[0]}", token=self._remaining[0])
                case Check.NO_EXTRA if self._remaining:
                    raise ExtraTokensError(f"Invalid input {self._remaining[0]}", token=self._remaining[0])
        return None

    # --- entry point --------------------------------------------------------

    @classmethod
    def parse(cls, tokens=Unset, /, *behaviors, **options):
        """
        Build the clip for a program run (shell mode by default).

        Faults are routed through trigger(): in shell mode they are rendered
        with rich and the process exits with status 1; a HelpRequest is
        printed to stdout and exits with status 0. Outside shell mode faults
        propagate, and the HelpRequest is still printed to stdout but then
        returned instead of the clip.
        """
        options = {"shell": True} | options
        rendering = {key: options[key] for key in ("prog", "shell", "fancy", "colorful", "deferred") if key in options}
        try:
            clip = cls(tokens, *behaviors, **options)
        except ClipException as fault:
            return trigger(fault, **rendering)
        if clip.help is not None:
            return trigger(clip.help, **rendering)
        return clip


__all__ = (
    "Check",
    "Behavior",
    "Clip",
)
