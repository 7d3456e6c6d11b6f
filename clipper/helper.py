"""
Usage text generation and the help outcome.

The usage message is plain text so that it can be compared, logged or
printed anywhere; HelpRequest adds a rich rendering on top of it.

Layout
    --help called:
    Usage:
      [flags] --host string1 [options]

      --host|-h string1
          Host address

    Flags:
      --async|-a
          If present, all requests are executed asynchronously

    Options:
      --help
          Display this message
      --port|-p int1
          Host port, or 80 if missing

Required options are spelled out on the usage line; flags and optional ones
are summarized as [flags] / [options] and detailed in their own sections,
sorted by marker.
"""
import sys
from collections import defaultdict
from types import MappingProxyType

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .parsers import NULLARY
from .registry import Registration

HELP_TOKEN = "--help"

_HELP_ENTRY = Registration("help", None, NULLARY, descr="Display this message")


def _values(entry, descr=True):
    if entry.kv:
        line = f" key1={(entry.parser.names or ('value',))[0]}1 ..."
    elif entry.arity is Ellipsis:
        line = "".join(f" {name}1" for name in entry.parser.names) + " ..."
    else:
        line = "".join(f" {name}{index}" for index, name in enumerate(entry.parser.names, 1))
    if descr and entry.descr:
        line += "\n      " + entry.descr.strip().replace("\n", "\n      ")
    return line


def _describe(heading, entries):
    if not entries:
        return ""
    return heading + "\n".join(
        f"  {entry.marker}{f'|-{entry.short}' if entry.short and len(entry.name) > 1 else ''}{_values(entry)}"
        for entry in entries
    )


def usage(registry, /):
    """
    Build the usage message for every option in `registry`.

    A --help entry is listed among the options unless the host registered its own.
    """
    flags = registry.flags
    required = registry.required
    optional = registry.optional
    if HELP_TOKEN not in registry:
        optional = tuple(sorted(optional + (_HELP_ENTRY,), key=lambda entry: entry.marker))

    head = "[flags]" if flags else ""
    head += "".join(f" {entry.marker}{_values(entry, descr=False)}" for entry in required)
    head += " [options]" if optional else ""

    return (
        f"{HELP_TOKEN} called:\nUsage:\n  {head}"
        + _describe("\n\n", required)
        + _describe("\n\nFlags:\n", flags)
        + _describe("\n\nOptions:\n", optional)
    )


class HelpRequest:
    """
    Outcome of the AUTO_HELP check when --help was passed.

    This is a returned value, never raised: callers branch on it explicitly
    and generic error handling cannot swallow it.
    """

    def __init__(self, message, /, **options):
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __repr__(self):
        return f"HelpRequest({self.message.splitlines()[0]!r}...)"

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "group-label": "bold #FFFFFF",  # Pure white headers
            "option-name": "bold #00E6FF",  # CYAN for options
            "metavar": "bold #FFD600",  # AMBER for parameters
            "panel-title": "bold #FF4D94",  # Magenta branding
        } | getattr(main, "__styles__", {}))

        body = Text(self.message.split("\n", 1)[-1])
        if colorful:
            body.highlight_regex(r"(?m)^Usage:", styles["usage-label"])
            body.highlight_regex(r"(?m)^\w+:$", styles["group-label"])
            body.highlight_regex(r"--?[\w-]+", styles["option-name"])
            body.highlight_regex(r"\b[a-z]+\d+\b", styles["metavar"])

        if self.options.get("fancy", False):
            title = "help"
            return Panel(body, title=Text(title, styles["panel-title"]) if colorful else title, title_align="left")
        return body

    def __trigger__(self):
        """
        Print the help to stdout, then exit with status 0 in shell mode or
        return self otherwise.
        """
        Console().print(self)
        if self.options.get("shell", False):
            sys.exit(0)
        return self

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


__all__ = (
    "HELP_TOKEN",
    "HelpRequest",
    "usage",
)
