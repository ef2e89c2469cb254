"""
Argosy faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue, grouped
  by domain (registration, routing, options, positionals, handlers, warnings).
- CommandException / CommandWarning: base types carrying a message plus a
  read-only mapping of options (code, title, hint, token, ...). Options are
  readable as attributes (fault.token, fault.hint).
- trigger(): single entry point to surface a fault, honoring the runtime
  flags shell/fancy/colorful.

Taxonomy
- Registration time: DuplicateNameError, NoDefaultConfiguredError.
- Parsing (ParseError): UnknownOptionError, ConflictingOptionsError,
  ArityError, MissingValueError, SwitchAssignmentError, DuplicateOptionError.
- Routing: UnknownVerbError.
- Handlers: HandlerError (wraps whatever the handler raised, as __cause__).
- Warnings: EmptyValueWarning, AmbiguousVerbWarning.

UX goals
- Position-first messages where a position is known (“at second position”).
- Lowercased, one-sentence bodies with a single actionable hint.
- Palette configurable through a __styles__ mapping in __main__; program
  name through __prog__; code labels through __codes__.

Integration
- The dispatcher collects faults into an Outcome and never raises them.
- invoke() calls trigger(fault, ...): in library mode the fault is raised, in
  shell mode it is printed to stderr with rich and the process exits with 1.
"""
import copy
import sys
import warnings
from abc import ABC
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
    canonical fault codes (stable identifiers).

    grouping
    - registration (101xx): DUPLICATE_NAME, NO_DEFAULT_CONFIGURED
    - routing (111xx): UNKNOWN_VERB
    - options (1111x): UNKNOWN_OPTION, MISSING_VALUE, SWITCH_ASSIGNMENT,
      DUPLICATE_OPTION, CONFLICTING_OPTIONS
    - positionals (1112x): ARITY_MISMATCH
    - handlers (1113x): HANDLER_FAILURE
    - warnings (12xxx): EMPTY_VALUE, AMBIGUOUS_VERB
    """
    # --- registration errors (10xxx) ---
    DUPLICATE_NAME          = 10101
    NO_DEFAULT_CONFIGURED   = 10102

    # --- routing errors (11xxx) ---
    UNKNOWN_VERB            = 11101

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION          = 11111
    MISSING_VALUE           = 11112
    SWITCH_ASSIGNMENT       = 11113
    DUPLICATE_OPTION        = 11114
    CONFLICTING_OPTIONS     = 11115

    # --- positional errors (11xxx) ---
    ARITY_MISMATCH          = 11121

    # --- handler errors (11xxx) ---
    HANDLER_FAILURE         = 11131

    # --- warnings (12xxx) ---
    EMPTY_VALUE             = 12111
    AMBIGUOUS_VERB          = 12112

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application may define a __codes__ mapping in __main__ to
        replace numeric ids with its own labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, severity, /):
    """
    Build the rich renderable shared by exceptions and warnings.

    Plain form:
        prog: error: message
          hint: ...
    Fancy form: a Panel titled “[ prog — code | Title ]”.
    """
    main = __import__("__main__")
    options = fault.options
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    code = options["code"]

    def styler(style):
        return styles[style] if options["colorful"] else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if options["colorful"] else Text(fragment.plain)
        return Text(str(fragment), styler(style))

    prog = text(getattr(main, "__prog__", options["prog"]), "prog-name")
    message = text(fault.message, f"{severity}-message")
    hint = Text.assemble(text("hint: ", "hint-arrow"), text(options["hint"], "hint")) if options["hint"] else None

    if options["fancy"]:
        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "-", "code"),
            " | ",
            text(options["title"].title(), f"{severity}-title"),
            " ]"
        )
        body = Group(message, hint) if hint else Group(message)
        return Panel(body, title=header, title_align="left", width=options["width"])

    line = Text.assemble(prog, ": ", text(severity, f"{severity}-title"), ": ", message)
    if hint:
        return Group(line, Text.assemble("  ", hint))
    return Group(line)


class _Fault:
    """
    Option plumbing shared by CommandException and CommandWarning.

    Subclasses declare their fault code and title as class keywords:

        class UnknownVerbError(CommandException, code=FaultCode.UNKNOWN_VERB, title="unknown verb"): ...

    Instances carry a message plus read-only options; any option is also
    available as an attribute (error.token, error.hint, ...).
    """
    __options__ = MappingProxyType({
        "code": Unset,
        "title": "error",
        "hint": None,
        "prog": "argosy",
        "shell": False,
        "fancy": False,
        "colorful": False,
        "width": None,
    })

    def __init_subclass__(cls, /, code=Unset, title=Unset, **options):
        super().__init_subclass__(**options)
        cls.__options__ = MappingProxyType(cls.__options__ | {
            name: value for name, value in (("code", code), ("title", title)) if value is not Unset
        })

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(type(self).__options__ | options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __str__(self):
        return "" if self.message is Unset else self.message


class CommandException(_Fault, Exception):
    """
    Base type for every argosy error.
    """

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, "error")

    def __trigger__(self) -> None:
        if not self.options["shell"]:
            raise self from self.__cause__
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        return fault


class DuplicateNameError(CommandException, code=FaultCode.DUPLICATE_NAME, title="duplicate name"): ...
class NoDefaultConfiguredError(CommandException, code=FaultCode.NO_DEFAULT_CONFIGURED, title="no default verb"): ...
class UnknownVerbError(CommandException, code=FaultCode.UNKNOWN_VERB, title="unknown verb"): ...
class HandlerError(CommandException, code=FaultCode.HANDLER_FAILURE, title="command failed"): ...


class ParseError(CommandException, title="bad arguments"):
    """
    Base type for every failure raised while parsing a token list against a schema.
    """


class UnknownOptionError(ParseError, code=FaultCode.UNKNOWN_OPTION, title="unknown option"): ...
class MissingValueError(ParseError, code=FaultCode.MISSING_VALUE, title="missing value"): ...
class SwitchAssignmentError(ParseError, code=FaultCode.SWITCH_ASSIGNMENT, title="switch assignment"): ...
class DuplicateOptionError(ParseError, code=FaultCode.DUPLICATE_OPTION, title="duplicate option"): ...
class ConflictingOptionsError(ParseError, code=FaultCode.CONFLICTING_OPTIONS, title="conflicting options"): ...
class ArityError(ParseError, code=FaultCode.ARITY_MISMATCH, title="wrong number of arguments"): ...


class CommandWarning(_Fault, ABC, Warning, title="warning"):
    """
    Base type for argosy warnings; shares the option/rendering contract of
    CommandException but never stops the run.
    """

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning")

    def __trigger__(self) -> None:
        if not self.options["shell"]:
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyValueWarning(CommandWarning, code=FaultCode.EMPTY_VALUE, title="empty value"): ...
class AmbiguousVerbWarning(CommandWarning, code=FaultCode.AMBIGUOUS_VERB, title="ambiguous verb"): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault via copy.replace(...) first.
    - library mode raises errors and warns warnings; shell mode prints them
      to stderr, and errors then exit with status 1.

    typical options
    - prog, shell, fancy, colorful, width, hint.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation lookup for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode; returns None when nothing is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "DuplicateNameError",
    "NoDefaultConfiguredError",
    "UnknownVerbError",
    "HandlerError",
    "ParseError",
    "UnknownOptionError",
    "MissingValueError",
    "SwitchAssignmentError",
    "DuplicateOptionError",
    "ConflictingOptionsError",
    "ArityError",
    "CommandWarning",
    "EmptyValueWarning",
    "AmbiguousVerbWarning",
    "trigger",
    "getdoc",
)
