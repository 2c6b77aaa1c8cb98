r"""
Pennant settable values (the storage behind every flag).

Overview
- Value: abstract contract implemented by every flag's backing storage.
  • set(raw): validate `raw` and store it, or raise ValueError/TypeError and keep
    the previous state untouched.
  • get(): current value for host-language consumption (no side effects).
  • render(): canonical textual form; str(value) delegates to it.
  • typename: diagnostic label used in fault messages.
  • no_opt_default: implied raw value when the flag appears without one
    (None means the flag requires an explicit value).
  • accepts(token): whether a shorthand that ends its cluster may swallow the
    following token as its explicit value. The default is to never consume.

- Built-in variants
  • BoolValue, IntValue, FloatValue, StringValue
  • DurationValue: Go-style durations ("1h30m", "1.5s", "300ms") as timedelta
  • StringSliceValue: repeated string, comma separated (CSV quoting honoured)
  • CountValue: "-vvv" style counter
  • EnumValue: any enum.Enum, matched by member name (case-insensitive)

Round-trip law
- For every state reachable through set(), a fresh value of the same variant
  reaches an equal state through set(render()). Lossy exceptions: FloatValue with
  NaN (NaN never compares equal) and DurationValue below microsecond precision.

Custom variants subclass Value:
    >>> class Level(Value):
    ...     typename = "level"
    ...     def __init__(self): self._level = "info"
    ...     def set(self, raw):
    ...         if raw not in ("debug", "info"): raise ValueError("bad level")
    ...         self._level = raw
    ...     def get(self): return self._level
    ...     def render(self): return self._level
"""
import csv
import io
import re
from abc import ABC, abstractmethod
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from .utils import Unset, coalesce


class Value(ABC):
    """
    Capability contract shared by every flag value.

    Subclasses implement set/get/render and may override the class attributes
    `typename` and `no_opt_default`, and the accepts() hook.
    """

    typename = "value"
    no_opt_default = None

    @abstractmethod
    def set(self, raw, /):
        """
        Validate `raw` and store it; raise ValueError (or TypeError) otherwise.

        Implementations must not keep partially-mutated state after a failure.
        """

    @abstractmethod
    def get(self):
        """Return the current value."""

    @abstractmethod
    def render(self):
        """Return the canonical textual form accepted back by set()."""

    def accepts(self, token, /):
        return False

    def __str__(self):
        return self.render()

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.render())


_TRUTHS = frozenset(("1", "t", "T", "true", "TRUE", "True"))
_FALSEHOODS = frozenset(("0", "f", "F", "false", "FALSE", "False"))


def parse_bool(raw, /):
    """
    Parse a boolean the way command lines spell them.

    Accepts 1, t, T, true, TRUE, True and 0, f, F, false, FALSE, False.
    """
    if not isinstance(raw, str):
        raise TypeError("boolean value must be a string")
    if raw in _TRUTHS:
        return True
    if raw in _FALSEHOODS:
        return False
    raise ValueError("%r is not a valid boolean" % raw)


class BoolValue(Value):
    typename = "bool"
    no_opt_default = "true"

    def __init__(self, default=False, /):
        self._value = bool(default)

    def set(self, raw, /):
        self._value = parse_bool(raw)

    def get(self):
        return self._value

    def render(self):
        return "true" if self._value else "false"


_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7_]+")


def parse_integer(raw, /):
    """
    Parse an integer the way C-family command lines write them.

    Base prefixes 0x, 0o and 0b select the base, and a bare leading zero selects
    octal ("010" is 8). Underscores may separate digits.
    """
    if not isinstance(raw, str):
        raise TypeError("integer value must be a string")
    text = raw.strip()
    try:
        if _LEGACY_OCTAL.fullmatch(text):
            return int(text, 8)
        return int(text, 0)
    except ValueError:
        raise ValueError("%r is not a valid integer" % raw) from None


class IntValue(Value):
    """
    Integer storage; base prefixes 0x, 0o and 0b are honoured, a bare leading
    zero means octal, and underscores may separate digits.
    """
    typename = "int"

    def __init__(self, default=0, /):
        if not isinstance(default, int) or isinstance(default, bool):
            raise TypeError("int value default must be an integer")
        self._value = default

    def set(self, raw, /):
        self._value = parse_integer(raw)

    def get(self):
        return self._value

    def render(self):
        return str(self._value)


class FloatValue(Value):
    typename = "float"

    def __init__(self, default=0.0, /):
        self._value = float(default)

    def set(self, raw, /):
        if not isinstance(raw, str):
            raise TypeError("float value must be a string")
        try:
            self._value = float(raw)
        except ValueError:
            raise ValueError("%r is not a valid float" % raw) from None

    def get(self):
        return self._value

    def render(self):
        return repr(self._value)


class StringValue(Value):
    typename = "string"

    def __init__(self, default="", /):
        if not isinstance(default, str):
            raise TypeError("string value default must be a string")
        self._value = default

    def set(self, raw, /):
        if not isinstance(raw, str):
            raise TypeError("string value must be a string")
        self._value = raw

    def get(self):
        return self._value

    def render(self):
        return self._value


# Microseconds per unit; nanoseconds are kept fractional and rounded on assignment.
_UNITS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),  # U+00B5 micro sign
    "μs": Decimal(1),  # U+03BC greek mu
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}
_COMPONENT = re.compile(r"(\d*(?:\.\d*)?)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(raw, /):
    """
    Parse a Go-style duration such as "300ms", "-1.5h" or "2h45m".

    A duration is an optional sign followed by one or more decimal numbers, each
    with an optional fraction and a mandatory unit (ns, us/µs, ms, s, m, h). The
    bare string "0" is accepted as zero. Precision below one microsecond is lost.
    """
    if not isinstance(raw, str):
        raise TypeError("duration value must be a string")
    text = raw
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("%r is not a valid duration" % raw)

    total = Decimal(0)
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if not match or match[1] in ("", "."):
            raise ValueError("%r is not a valid duration" % raw)
        try:
            total += Decimal(match[1]) * _UNITS[match[2]]
        except InvalidOperation:
            raise ValueError("%r is not a valid duration" % raw) from None
        position = match.end()

    try:
        return timedelta(microseconds=int((sign * total).to_integral_value()))
    except OverflowError:
        raise ValueError("%r is out of range" % raw) from None


def _fraction(amount, unit):
    whole, rest = divmod(amount, unit)
    if not rest:
        return str(whole)
    digits = str(rest).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return "%d.%s" % (whole, digits)


def format_duration(delta, /):
    """
    Render a timedelta in the Go-style form parse_duration() reads back.

    Examples: "0s", "250µs", "1.5ms", "45s", "2h45m0s", "-1m30s".
    """
    micros = delta // timedelta(microseconds=1)
    if not micros:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000:
        return "%s%dµs" % (sign, micros)
    if micros < 1_000_000:
        return "%s%sms" % (sign, _fraction(micros, 1_000))
    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)
    text = sign
    if hours:
        text += "%dh" % hours
    if hours or minutes:
        text += "%dm" % minutes
    return text + _fraction(micros, 1_000_000) + "s"


class DurationValue(Value):
    typename = "duration"

    def __init__(self, default=timedelta(0), /):
        if not isinstance(default, timedelta):
            raise TypeError("duration value default must be a timedelta")
        self._value = default

    def set(self, raw, /):
        self._value = parse_duration(raw)

    def get(self):
        return self._value

    def render(self):
        return format_duration(self._value)


class StringSliceValue(Value):
    """
    Repeated string storage.

    Each set() reads a comma separated list (CSV quoting honoured). The first
    explicit set() replaces the registration default; later ones append, so
    `--tag a,b --tag c` yields ["a", "b", "c"]. The empty string sets no item.
    """
    typename = "stringSlice"

    def __init__(self, default=(), /):
        if isinstance(default, str) or not all(isinstance(item, str) for item in default):
            raise TypeError("string slice default must be an iterable of strings")
        self._value = list(default)
        self._replaced = False

    @staticmethod
    def _split(raw):
        if not isinstance(raw, str):
            raise TypeError("string slice value must be a string")
        if not raw:
            return []
        try:
            return next(csv.reader([raw], strict=True))
        except csv.Error as error:
            raise ValueError("%r is not a valid comma separated list: %s" % (raw, error)) from None

    def set(self, raw, /):
        items = self._split(raw)
        if self._replaced:
            self._value.extend(items)
        else:
            self._value = items
            self._replaced = True

    def get(self):
        return list(self._value)

    def render(self):
        if not self._value:
            return ""
        buffer = io.StringIO()
        # csv quotes a lone empty item as '""', keeping it apart from the empty list.
        csv.writer(buffer, lineterminator="").writerow(self._value)
        return buffer.getvalue()


class CountValue(Value):
    """
    Occurrence counter: every bare appearance adds one, an explicit integer sets it.
    """
    typename = "count"
    no_opt_default = "+1"

    def __init__(self, default=0, /):
        self._value = int(default)

    def set(self, raw, /):
        if raw == "+1":
            self._value += 1
            return
        if not isinstance(raw, str):
            raise TypeError("count value must be a string")
        try:
            self._value = int(raw, 0)
        except ValueError:
            raise ValueError("%r is not a valid count" % raw) from None

    def get(self):
        return self._value

    def render(self):
        return str(self._value)


class EnumValue(Value):
    """
    Storage for a member of an enum.Enum class, matched by name (case-insensitive).

    Member names must stay distinct once lowercased; enums that break this are
    rejected with ValueError.
    """

    def __init__(self, enum, default=Unset, /):
        members = list(enum)
        if not members:
            raise ValueError("enum value requires at least one member")
        seen = {}
        for member in members:
            if (other := seen.setdefault(member.name.lower(), member)) is not member:
                raise ValueError(
                    "enum members %r and %r differ only by case" % (other.name, member.name)
                )
        self._enum = enum
        self._value = coalesce(default, members[0])
        if not isinstance(self._value, enum):
            raise TypeError("enum value default must be a member of %s" % enum.__name__)
        self.typename = enum.__name__.lower()

    @property
    def choices(self):
        return tuple(member.name.lower() for member in self._enum)

    def set(self, raw, /):
        if not isinstance(raw, str):
            raise TypeError("enum value must be a string")
        for member in self._enum:
            if member.name.lower() == raw.lower():
                self._value = member
                return
        raise ValueError("%r is not one of %s" % (raw, ", ".join(self.choices)))

    def get(self):
        return self._value

    def render(self):
        return self._value.name.lower()


__all__ = (
    "Value",
    "BoolValue",
    "IntValue",
    "FloatValue",
    "StringValue",
    "DurationValue",
    "StringSliceValue",
    "CountValue",
    "EnumValue",
    "parse_bool",
    "parse_integer",
    "parse_duration",
    "format_duration",
)
