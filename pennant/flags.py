r"""
Pennant flag entries and registries.

Overview
- Flag: one registered flag. Owns its Value and records whether any parse (or
  FlagSet.set) explicitly assigned it through an explicit FlagState.
- FlagSet: the registry. Holds flags by long name (insertion ordered) and by
  shorthand, resolves tokens (exact name, then unambiguous prefix), and runs
  the dispatcher over a token sequence under an ErrorPolicy.
- commandline(): the lazily created process-wide FlagSet used when no explicit
  registry is handed to the module-level register()/parse() helpers.

Registration rules
- Long names are non-empty, contain no '=' and do not start with '-'.
- Shorthands are a single character other than '-' and '='.
- Reusing a long name or a shorthand raises DuplicateFlagError immediately,
  whatever the registration order.
- The no-opt default falls back to the Value's own `no_opt_default`
  (BoolValue: "true", CountValue: "+1"); pass None to require a value.

Quick example:
    >>> verbose = BoolValue()
    >>> flags = FlagSet("tool")
    >>> flags.register("verbose", verbose, "v", "chatty output")
    flag(name='verbose', shorthand='v', ...)
    >>> flags.parse(["-v", "input.txt"])
    ['input.txt']
    >>> verbose.get()
    True
"""
import functools
import os.path
import shlex
import sys
from collections.abc import Iterable
from enum import Enum

from .faults import *
from .parsing import Dispatcher
from .utils import *
from .values import Value


class FlagState(Enum):
    """
    Assignment history of a flag: untouched since registration, or explicitly set.
    """
    DEFAULT = "default"
    EXPLICITLY_SET = "explicitly-set"


class Flag:
    """
    A registered flag bound to its Value.

    Attributes (read-only)
    - name: long name, without dashes.
    - shorthand: single character or None.
    - value: the backing Value (shared with the caller that registered it).
    - usage: description text, never parsed.
    - no_opt_default: raw value used when the flag appears without one, or None.
    - default: the value's rendering at registration time.
    - state / changed: FlagState.EXPLICITLY_SET once a set succeeded; never reset.
    - deprecated / shorthand_deprecated: warning messages, or None.
    """

    __slots__ = (
        "_name",
        "_shorthand",
        "_value",
        "_usage",
        "_no_opt_default",
        "_default",
        "_state",
        "_deprecated",
        "_shorthand_deprecated",
    )

    def __init__(self, name, shorthand, value, usage, no_opt_default, /):
        self._name = name
        self._shorthand = shorthand
        self._value = value
        self._usage = usage
        self._no_opt_default = no_opt_default
        self._default = value.render()
        self._state = FlagState.DEFAULT
        self._deprecated = None
        self._shorthand_deprecated = None

    name = property(lambda self: self._name)
    shorthand = property(lambda self: self._shorthand)
    value = property(lambda self: self._value)
    usage = property(lambda self: self._usage)
    no_opt_default = property(lambda self: self._no_opt_default)
    default = property(lambda self: self._default)
    state = property(lambda self: self._state)
    deprecated = property(lambda self: self._deprecated)
    shorthand_deprecated = property(lambda self: self._shorthand_deprecated)

    @property
    def changed(self):
        return self._state is FlagState.EXPLICITLY_SET

    def get(self):
        return self._value.get()

    def render(self):
        return self._value.render()

    def _assign(self, raw, /):
        # Value.set raises on rejection, so the state only moves after a stored value.
        self._value.set(raw)
        self._state = FlagState.EXPLICITLY_SET

    def __rich_repr__(self):
        yield "name", self._name
        yield "shorthand", self._shorthand
        yield "value", self._value.render()
        yield "default", self._default
        yield "no_opt_default", self._no_opt_default
        yield "state", self._state.value

    def __repr__(self):
        return "flag(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def _tokens(prompt):
    """
    Normalize a parse prompt into a list of raw tokens.

    - Unset: sys.argv[1:]
    - str: shell-like string, split with shlex.split
    - Iterable[str]: used verbatim (no stripping, empty tokens preserved)
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


class FlagSet:
    """
    Registry of flags plus the parse entry point.

    Options
    - name: program label used in fault headers.
    - policy: default ErrorPolicy applied by parse() (REPORT unless given).
    - interspersed: when False, the first positional argument stops flag scanning.
    - normalize: callable applied to every long name at registration and lookup
      (e.g. `lambda name: name.replace("_", "-")`).
    - colorful / fancy: rich rendering switches for faults printed under TERMINATE.

    Concurrency
    - A FlagSet is plain mutable state; concurrent parses of the same FlagSet need
      external locking.
    """

    def __init__(
            self,
            name="",
            /,
            policy=ErrorPolicy.REPORT,
            *,
            interspersed=True,
            normalize=Unset,
            colorful=True,
            fancy=False,
    ):
        if not isinstance(name, str):
            raise TypeError("flag set name must be a string")
        if not isinstance(policy, ErrorPolicy):
            raise TypeError("flag set policy must be an ErrorPolicy")
        if normalize is not Unset and not callable(normalize):
            raise TypeError("flag set 'normalize' must be callable")
        self.name = name
        self.policy = policy
        self.interspersed = bool(interspersed)
        self.colorful = bool(colorful)
        self.fancy = bool(fancy)
        self._normalize = coalesce(normalize, lambda name: name)
        self._formal = {}
        self._shorthands = {}
        self._args = ()
        self._dash = None
        self._parsed = False

    # --- registry ---

    def _normal(self, name):
        name = self._normalize(name)
        if not isinstance(name, str):
            raise TypeError("flag set 'normalize' must return a string")
        return name

    def register(self, name, value, shorthand=Unset, usage="", no_opt_default=Unset):
        """
        Register a flag and return its entry.

        Parameters
        - name: long name (no leading dashes, no '=').
        - value: a Value instance; the caller keeps it to read the final value.
        - shorthand: Unset/None for none, otherwise a single character.
        - usage: description text.
        - no_opt_default: Unset to inherit value.no_opt_default, None to require
          an explicit value, or the raw string to apply when none is given.

        Raises
        - TypeError/ValueError: malformed name, shorthand or value.
        - DuplicateFlagError: the long name or the shorthand is already taken.
        """
        if not isinstance(name, str):
            raise TypeError("flag name must be a string")
        name = self._normal(name)
        if not name:
            raise ValueError("flag name cannot be empty")
        if name.startswith("-"):
            raise ValueError("flag name %r cannot start with '-'" % name)
        if "=" in name:
            raise ValueError("flag name %r cannot contain '='" % name)

        if not isinstance(value, Value):
            raise TypeError("flag %r value must be a Value instance" % name)

        shorthand = coalesce(shorthand)
        if shorthand is not None:
            if not isinstance(shorthand, str):
                raise TypeError("flag %r shorthand must be a string" % name)
            if len(shorthand) != 1:
                raise ValueError("flag %r shorthand %r must be a single character" % (name, shorthand))
            if shorthand in ("-", "="):
                raise ValueError("flag %r shorthand cannot be %r" % (name, shorthand))

        no_opt_default = coalesce(no_opt_default, value.no_opt_default)
        if not isinstance(no_opt_default, str | None):
            raise TypeError("flag %r no-opt default must be a string" % name)

        if not isinstance(usage, str):
            raise TypeError("flag %r usage must be a string" % name)

        if name in self._formal:
            raise DuplicateFlagError(
                "flag %r is already registered in %s" % (name, self._label()),
                title="duplicate flag",
                code=FaultCode.DUPLICATE_FLAG,
                name=name,
                hint="pick another long name for this flag",
            )
        if shorthand is not None and shorthand in self._shorthands:
            raise DuplicateFlagError(
                "shorthand %r of flag %r is already used by flag %r in %s" % (
                    shorthand, name, self._shorthands[shorthand].name, self._label()
                ),
                title="duplicate shorthand",
                code=FaultCode.DUPLICATE_FLAG,
                name=name,
                shorthand=shorthand,
                hint="pick another shorthand or register the flag without one",
            )

        flag = Flag(name, shorthand, value, usage, no_opt_default)
        self._formal[name] = flag
        if shorthand is not None:
            self._shorthands[shorthand] = flag
        return flag

    def _label(self):
        return "flag set %r" % self.name if self.name else "the flag set"

    def lookup(self, name, /):
        """
        Exact long-name lookup for post-parse introspection; None when absent.
        """
        return self._formal.get(self._normal(name))

    def lookup_long(self, name, /, abbreviate=True):
        """
        Resolve a long name: exact match first, then unambiguous prefix.

        Raises
        - UnknownFlagError: nothing matches.
        - AmbiguousFlagError: the prefix matches two or more names (sorted in
          the fault's `candidates`).
        """
        name = self._normal(name)
        try:
            return self._formal[name]
        except KeyError:
            pass

        candidates = sorted(known for known in self._formal if known.startswith(name)) if abbreviate and name else []
        if len(candidates) == 1:
            return self._formal[candidates[0]]
        if candidates:
            raise AmbiguousFlagError(
                "flag '--%s' is ambiguous, it could be %s" % (
                    name, ", ".join("'--%s'" % candidate for candidate in candidates)
                ),
                title="ambiguous flag",
                code=FaultCode.AMBIGUOUS_FLAG,
                name=name,
                candidates=tuple(candidates),
                hint="spell out more of the flag name, for example '--%s'" % candidates[0],
            )
        raise UnknownFlagError(
            "unknown flag '--%s'" % name,
            title="unknown flag",
            code=FaultCode.UNKNOWN_FLAG,
            name=name,
            hint="check the spelling; registered flags are %s" % (
                ", ".join("'--%s'" % known for known in self._formal) or "none"
            ),
        )

    def lookup_short(self, shorthand, /):
        """
        Resolve a shorthand character; raises UnknownFlagError when absent.
        """
        try:
            return self._shorthands[shorthand]
        except KeyError:
            raise UnknownFlagError(
                "unknown shorthand flag %r" % shorthand,
                title="unknown shorthand",
                code=FaultCode.UNKNOWN_FLAG,
                shorthand=shorthand,
                hint="check the spelling; registered shorthands are %s" % (
                    ", ".join("'-%s'" % known for known in self._shorthands) or "none"
                ),
            ) from None

    def mark_deprecated(self, name, message, /):
        """
        Warn with `message` whenever the flag is used (long name or shorthand).
        """
        flag = self._marked(name, message)
        flag._deprecated = message

    def mark_shorthand_deprecated(self, name, message, /):
        """
        Warn with `message` whenever the flag is used through its shorthand.
        """
        flag = self._marked(name, message)
        if flag.shorthand is None:
            raise ValueError("flag %r has no shorthand to deprecate" % flag.name)
        flag._shorthand_deprecated = message

    def _marked(self, name, message):
        if not isinstance(message, str) or not message.strip():
            raise ValueError("deprecation message cannot be empty")
        if (flag := self.lookup(name)) is None:
            raise KeyError(name)
        return flag

    # --- parsing ---

    def parse(self, tokens=Unset, /, policy=Unset):
        """
        Parse a token sequence and return the positional arguments.

        Parameters
        - tokens: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.
        - policy: ErrorPolicy overriding the FlagSet default for this call.

        Behavior
        - Tokens are dispatched left to right; later occurrences of a flag overwrite
          earlier ones. Scanning stops at the first fault, flags applied before it
          keep their values and `args` holds the positionals collected so far.
        - Deprecation warnings are surfaced before the fault, if any.
        """
        tokens = _tokens(tokens)
        policy = coalesce(policy, self.policy)
        if not isinstance(policy, ErrorPolicy):
            raise TypeError("parse() policy must be an ErrorPolicy")

        dispatcher = Dispatcher(self, tokens)
        fault = dispatcher.run()

        self._parsed = True
        self._args = tuple(dispatcher.args)
        self._dash = dispatcher.dash

        options = {"policy": policy, "prog": self.name, "colorful": self.colorful, "fancy": self.fancy}
        for warning in dispatcher.warnings:
            trigger(warning, **options)
        if fault is not None:
            trigger(fault, **options)

        return list(self._args)

    def set(self, name, raw, /):
        """
        Programmatically assign a flag as if it appeared on the command line.

        Raises UnknownFlagError for unregistered names and InvalidValueError when
        the Value rejects `raw`.
        """
        flag = self.lookup(name)
        if flag is None:
            raise UnknownFlagError(
                "unknown flag '--%s'" % name,
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                name=name,
            )
        try:
            flag._assign(raw)
        except (TypeError, ValueError) as error:
            raise InvalidValueError(
                "invalid argument %r for '--%s': %s" % (raw, flag.name, error),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                name=flag.name,
                value=raw,
            ) from error
        if flag.deprecated:
            trigger(DeprecatedFlagWarning(
                "flag '--%s' has been deprecated, %s" % (flag.name, flag.deprecated),
                title="deprecated flag",
                code=FaultCode.DEPRECATED_FLAG,
                name=flag.name,
            ), policy=self.policy, prog=self.name, colorful=self.colorful, fancy=self.fancy)

    # --- introspection ---

    @property
    def args(self):
        """Positional arguments left by the last parse()."""
        return self._args

    @property
    def dash_index(self):
        """Number of positionals seen before the '--' terminator, or None."""
        return self._dash

    @property
    def parsed(self):
        return self._parsed

    def changed(self, name, /):
        flag = self.lookup(name)
        return flag is not None and flag.changed

    def explicit(self):
        """Yield explicitly set flags in registration order."""
        for flag in self._formal.values():
            if flag.changed:
                yield flag

    def __getitem__(self, name):
        if (flag := self.lookup(name)) is None:
            raise KeyError(name)
        return flag

    def __contains__(self, name):
        return isinstance(name, str) and self.lookup(name) is not None

    def __iter__(self):
        return iter(tuple(self._formal.values()))

    def __len__(self):
        return len(self._formal)

    def __repr__(self):
        return "flag-set(name=%r, flags=%r)" % (self.name, list(self._formal))


@functools.cache
def commandline():
    """
    Process-wide default FlagSet, created on first use and never torn down.

    It is named after the running program and terminates the process on the first
    parse fault, the usual behavior for a script's own command line.
    """
    return FlagSet(os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "", ErrorPolicy.TERMINATE)


def register(name, value, shorthand=Unset, usage="", no_opt_default=Unset, *, flagset=Unset):
    """
    Register a flag on `flagset`, or on commandline() when none is given.
    """
    if flagset is Unset:
        flagset = commandline()
    return flagset.register(name, value, shorthand, usage, no_opt_default)


def parse(tokens=Unset, /, policy=Unset, *, flagset=Unset):
    """
    Parse `tokens` with `flagset`, or with commandline() when none is given.
    """
    if flagset is Unset:
        flagset = commandline()
    return flagset.parse(tokens, policy)


__all__ = (
    "Flag",
    "FlagState",
    "FlagSet",
    "commandline",
    "register",
    "parse",
)
