"""
Clipper faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every failure the
  extraction engine can report. Codes are grouped by domain so logs and
  searches stay predictable.
- ClipException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).

Taxonomy
- configuration errors (programmer errors, raised at registration time):
  duplicate long name or short alias, invalid names, declarations after validation.
- input errors (raised at extraction/conversion time):
  missing required option, missing value after a marker, uncastable token,
  malformed key-value pair, not enough trailing tokens.
- validation errors (raised only when the matching check is requested):
  unrecognized options/flags, repeated options, leading or extra tokens.

Help is not a fault: see clipper.helper.HelpRequest.

Integration
- The engine raises faults directly; Clip.parse() routes them through trigger()
  so that shell-mode hosts get a rich rendering and an exit status instead of
  a traceback.
"""
import copy
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - configuration (211xx)
      • DUPLICATE_OPTION, INVALID_OPTION_NAME, INVALID_STATE
    - input (221xx)
      • MISSING_REQUIRED, MISSING_VALUE, UNCASTABLE_VALUE, MALFORMED_PAIR,
        NOT_ENOUGH_TRAILING
    - validation (231xx)
      • UNRECOGNIZED_OPTION, UNRECOGNIZED_FLAGS, REPEATED_OPTION,
        LEADING_TOKENS, EXTRA_TOKENS
    """
    # --- configuration errors (21xxx) ---
    DUPLICATE_OPTION    = 21101
    INVALID_OPTION_NAME = 21102
    INVALID_STATE       = 21103

    # --- input errors (22xxx) ---
    MISSING_REQUIRED    = 22101
    MISSING_VALUE       = 22102
    UNCASTABLE_VALUE    = 22103
    MALFORMED_PAIR      = 22104
    NOT_ENOUGH_TRAILING = 22105

    # --- validation errors (23xxx) ---
    UNRECOGNIZED_OPTION = 23101
    UNRECOGNIZED_FLAGS  = 23102
    REPEATED_OPTION     = 23103
    LEADING_TOKENS      = 23104
    EXTRA_TOKENS        = 23105

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program(options):
    main = __import__("__main__")
    fallback = options.get("prog") or os.path.basename(sys.argv[0]) or "clipper"
    return getattr(main, "__prog__", fallback)


class ClipException(Exception):
    """
    base of every fault raised by the engine.

    class attributes `code`, `title` and `hint` provide defaults; any of them
    can be overridden through options, together with rendering switches
    (shell, fancy, colorful, deferred, prog) and free-form context such as
    `marker` or `token`.
    """
    code = Unset
    title = "error"
    hint = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        code = self.options.get("code", type(self).code)
        header = Text.assemble(
            "[ ",
            text(_program(self.options), styler("prog-name")),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "", styler("code")),
            " | ",
            text(self.options.get("title", type(self).title).title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint", type(self).hint):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ClipConfigurationError(ClipException):
    title = "configuration error"


class ClipInputError(ClipException):
    title = "invalid input"


class ClipValidationError(ClipException):
    title = "validation failed"


class DuplicateOptionError(ClipConfigurationError):
    code = FaultCode.DUPLICATE_OPTION
    title = "duplicate option"
    hint = "every long name and short alias can be declared only once"


class InvalidOptionNameError(ClipConfigurationError):
    code = FaultCode.INVALID_OPTION_NAME
    title = "invalid option name"
    hint = "use a non-empty name; single-character names need a short form"


class ClipStateError(ClipConfigurationError):
    code = FaultCode.INVALID_STATE
    title = "invalid state"
    hint = "declare every option before calling check()"


class MissingRequiredError(ClipInputError):
    code = FaultCode.MISSING_REQUIRED
    title = "missing required option"


class MissingValueError(ClipInputError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class UncastableValueError(ClipInputError, ValueError):
    code = FaultCode.UNCASTABLE_VALUE
    title = "uncastable value"


class MalformedPairError(ClipInputError):
    code = FaultCode.MALFORMED_PAIR
    title = "malformed pair"
    hint = "write pairs as key=value, separated by commas or spaces"


class NotEnoughTrailingError(ClipInputError):
    code = FaultCode.NOT_ENOUGH_TRAILING
    title = "not enough trailing arguments"


class UnrecognizedOptionError(ClipValidationError):
    code = FaultCode.UNRECOGNIZED_OPTION
    title = "unrecognized option"


class UnrecognizedFlagsError(ClipValidationError):
    code = FaultCode.UNRECOGNIZED_FLAGS
    title = "unrecognized flags"


class RepeatedOptionError(ClipValidationError):
    code = FaultCode.REPEATED_OPTION
    title = "repeated option"
    hint = "pass each option at most once"


class LeadingTokensError(ClipValidationError):
    code = FaultCode.LEADING_TOKENS
    title = "leading arguments"
    hint = "place free arguments after the last option"


class ExtraTokensError(ClipValidationError):
    code = FaultCode.EXTRA_TOKENS
    title = "extra arguments"


def trigger(fault, /, **options):
    """
    surface a fault (or a help request) with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ClipException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "ClipException",
    "ClipConfigurationError",
    "ClipInputError",
    "ClipValidationError",
    "DuplicateOptionError",
    "InvalidOptionNameError",
    "ClipStateError",
    "MissingRequiredError",
    "MissingValueError",
    "UncastableValueError",
    "MalformedPairError",
    "NotEnoughTrailingError",
    "UnrecognizedOptionError",
    "UnrecognizedFlagsError",
    "RepeatedOptionError",
    "LeadingTokensError",
    "ExtraTokensError",
    "trigger",
)
