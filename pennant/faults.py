"""
Pennant faults (errors and warnings), error policies and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- FlagError / FlagWarning: base types that carry message + options and know how
  to render themselves through rich.
- ErrorPolicy: what happens to a parse failure (report, terminate, escalate).
- trigger(): central entry point that applies a policy to a fault.

Taxonomy
- construction time: DuplicateFlagError (registry integrity).
- parse time (ParseError): UnknownFlagError, AmbiguousFlagError, MissingValueError,
  InvalidValueError, MalformedFlagError.
- warnings: DeprecatedFlagWarning.

Integration
- The dispatcher never raises parse faults itself; it returns the first fault it
  meets and the FlagSet hands it to trigger() together with the chosen policy.
- Host applications may expose __prog__, __styles__ and __codes__ in __main__ to
  customize the program label, the colors and the code labels.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - registry (2110x): DUPLICATE_FLAG
    - dispatch (2111x): MALFORMED_FLAG, UNKNOWN_FLAG, AMBIGUOUS_FLAG, MISSING_VALUE,
      INVALID_VALUE
    - warnings (2211x): DEPRECATED_FLAG
    """
    # --- registry errors (21xxx) ---
    DUPLICATE_FLAG      = 21101

    # --- dispatch errors (21xxx) ---
    MALFORMED_FLAG      = 21111
    UNKNOWN_FLAG        = 21112
    AMBIGUOUS_FLAG      = 21113
    MISSING_VALUE       = 21114
    INVALID_VALUE       = 21115

    # --- warnings (22xxx) ---
    DEPRECATED_FLAG     = 22111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ErrorPolicy(Enum):
    """
    disposition of a parse failure.

    - REPORT: raise the fault as an ordinary exception; values applied before the
      failure and the positionals collected so far stay inspectable on the FlagSet.
    - TERMINATE: print the fault on stderr and exit the process with status 2.
    - ESCALATE: raise ParsePanic, which `except Exception` does not catch.
    """
    REPORT = "report"
    TERMINATE = "terminate"
    ESCALATE = "escalate"


class ParsePanic(BaseException):
    """
    unrecoverable parse failure raised under ErrorPolicy.ESCALATE.

    the originating fault is available as `fault` and as `__cause__`.
    """

    def __init__(self, fault, /):
        super().__init__(str(fault))
        self.fault = fault


def _styler(options, styles):
    def styler(style):
        return styles[style] if options.get("colorful", True) else ""
    return styler


def _text(options):
    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not options.get("colorful", True):
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)
    return text


def _render(fault, palette):
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    styler = _styler(options, styles)
    text = _text(options)

    prog = text(getattr(main, "__prog__", options.get("prog") or "pennant"), styler("prog-name"))
    parts = ["[ ", prog]
    if "code" in options:
        parts += [" — ", text(options["code"].normalize(), styler("code"))]
    if "title" in options:
        parts += [" | ", text(options["title"].title(), styler("title"))]
    parts.append(" ]")
    header = Text.assemble(*parts)

    message = text(fault.message, styler("message"))
    body = [message]
    if options.get("hint"):
        body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(options["hint"], styler("hint"))))

    if options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class FlagError(Exception):
    """
    base class of every pennant error.

    carries a human message plus an immutable mapping of options (token, name,
    index, code, title, hint and any rendering switches).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        match self.options.get("policy", ErrorPolicy.REPORT):
            case ErrorPolicy.TERMINATE:
                console.print(self)
                sys.exit(2)
            case ErrorPolicy.ESCALATE:
                raise ParsePanic(self) from self
            case _:
                raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateFlagError(FlagError):
    """a long name or shorthand is registered twice in the same FlagSet."""


class ParseError(FlagError):
    """
    base class of dispatch failures.

    every parse error knows the offending `token`, its 1-based `index` in the
    token sequence and, when it could be resolved, the flag `name`.
    """

    @property
    def token(self):
        return self.options.get("token")

    @property
    def name(self):
        return self.options.get("name")

    @property
    def index(self):
        return self.options.get("index")


class MalformedFlagError(ParseError): ...
class UnknownFlagError(ParseError): ...
class MissingValueError(ParseError): ...


class AmbiguousFlagError(ParseError):
    @property
    def candidates(self):
        return tuple(self.options.get("candidates", ()))


class InvalidValueError(ParseError):
    @property
    def value(self):
        return self.options.get("value")


class FlagWarning(UserWarning):
    """
    base class of pennant warnings (rendered with rich under TERMINATE).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if self.options.get("policy") is ErrorPolicy.TERMINATE:
            console.print(self)
            return
        warnings.warn(self, stacklevel=len(inspect.stack()))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeprecatedFlagWarning(FlagWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options (policy, prog, colorful, fancy...) are merged into the fault via
      __replace__ before triggering, so the original fault object stays untouched.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "ErrorPolicy",
    "ParsePanic",
    "FlagError",
    "DuplicateFlagError",
    "ParseError",
    "MalformedFlagError",
    "UnknownFlagError",
    "AmbiguousFlagError",
    "MissingValueError",
    "InvalidValueError",
    "FlagWarning",
    "DeprecatedFlagWarning",
    "trigger",
)
