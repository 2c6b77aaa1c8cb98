r"""
Pennant dispatcher: the token state machine behind FlagSet.parse().

States
- SCANNING: classify the next token.
- AWAITING_VALUE: a flag that requires a value ended its token; the next token,
  whatever it looks like, becomes that value.
- POSITIONAL_ONLY: entered after '--' (or after the first positional when the
  FlagSet is not interspersed); every remaining token is positional.
- DONE: terminal.

Token grammar (from SCANNING)
- '--'              terminator, discarded; records the positional count as `dash`.
- '--name=value'    explicit value (exact name only, no abbreviation).
- '--name'          exact or unambiguous prefix; no-opt default, else next token.
- '-abc'            cluster: flags with a no-opt default take it and scanning of the
                    cluster continues; '-n5' and '-n=5' give '5' to a value flag;
                    a value flag ending the cluster takes the next token.
- '-'               positional (conventionally stdin).
- anything else     positional.

A no-opt flag ending its cluster leaves the next token alone unless its Value's
accepts(token) hook claims it (and the token does not start with '-').

Faults are returned, never raised: run() stops at the first one and hands it
back so the FlagSet can apply its ErrorPolicy. Everything applied before the
fault stays applied.
"""
import copy
from collections import deque
from enum import Enum, auto

from .faults import *
from .utils import ordinal


class State(Enum):
    SCANNING = auto()
    AWAITING_VALUE = auto()
    POSITIONAL_ONLY = auto()
    DONE = auto()


class Dispatcher:
    """
    Single-use scan of one token sequence against one FlagSet.

    After run(): `args` holds the positionals in input order, `dash` the number of
    positionals collected before '--' (None without terminator) and `warnings`
    the deprecation warnings raised by flags that were used.
    """

    def __init__(self, flagset, tokens, /):
        self.flagset = flagset
        self.tokens = deque(tokens)
        self.args = []
        self.dash = None
        self.warnings = []
        self.state = State.SCANNING
        self.index = 0
        self._pending = None

    def run(self):
        while self.state is not State.DONE:
            match self.state:
                case State.SCANNING:
                    fault = self._scan()
                case State.AWAITING_VALUE:
                    fault = self._await()
                case State.POSITIONAL_ONLY:
                    fault = self._drain()
            if fault is not None:
                self.state = State.DONE
                return fault
        return None

    def _next(self):
        self.index += 1
        return self.tokens.popleft()

    def _scan(self):
        if not self.tokens:
            self.state = State.DONE
            return None

        token = self._next()
        if token == "--":
            self.dash = len(self.args)
            self.state = State.POSITIONAL_ONLY
            return None
        if token.startswith("--"):
            return self._long(token)
        if token.startswith("-") and len(token) > 1:
            return self._cluster(token)

        self.args.append(token)
        if not self.flagset.interspersed:
            self.state = State.POSITIONAL_ONLY
        return None

    def _drain(self):
        # Verbatim, including tokens that look like flags.
        self.index += len(self.tokens)
        self.args.extend(self.tokens)
        self.tokens.clear()
        self.state = State.DONE
        return None

    def _await(self):
        flag, input, token = self._pending
        self._pending = None
        if not self.tokens:
            return MissingValueError(
                "flag %r at %s position needs a value" % (input, ordinal(self.index)),
                title="missing value",
                code=FaultCode.MISSING_VALUE,
                token=token,
                name=flag.name,
                index=self.index,
                hint="pass a value after it (%s <value>) or inline (%s=<value>)" % (input, input),
            )
        raw = self._next()
        self.state = State.SCANNING
        return self._apply(flag, raw, input, token)

    def _long(self, token):
        name, separator, value = token[2:].partition("=")
        if not name or name.startswith("-"):
            return MalformedFlagError(
                "bad flag syntax %r at %s position" % (token, ordinal(self.index)),
                title="malformed flag",
                code=FaultCode.MALFORMED_FLAG,
                token=token,
                index=self.index,
                hint="long flags are spelled --name or --name=value",
            )

        try:
            flag = self.flagset.lookup_long(name, abbreviate=not separator)
        except ParseError as fault:
            return copy.replace(fault, token=token, index=self.index)

        input = "--" + flag.name
        if separator:
            return self._apply(flag, value, input, token)
        if flag.no_opt_default is not None:
            return self._apply(flag, flag.no_opt_default, input, token)

        self._pending = (flag, input, token)
        self.state = State.AWAITING_VALUE
        return None

    def _cluster(self, token):
        shorthands = token[1:]
        for position, char in enumerate(shorthands):
            try:
                flag = self.flagset.lookup_short(char)
            except ParseError as fault:
                return copy.replace(fault, token=token, index=self.index)

            input = "-" + char
            rest = shorthands[position + 1:]
            if rest.startswith("="):
                return self._apply(flag, rest[1:], input, token)

            if flag.no_opt_default is None:
                if rest:
                    return self._apply(flag, rest, input, token)
                self._pending = (flag, input, token)
                self.state = State.AWAITING_VALUE
                return None

            if not rest and self._claims(flag):
                return self._apply(flag, self._next(), input, token)
            if (fault := self._apply(flag, flag.no_opt_default, input, token)) is not None:
                return fault
        return None

    def _claims(self, flag):
        if not self.tokens:
            return False
        following = self.tokens[0]
        return not following.startswith("-") and bool(flag.value.accepts(following))

    def _apply(self, flag, raw, input, token):
        try:
            flag._assign(raw)
        except (TypeError, ValueError) as error:
            return InvalidValueError(
                "invalid argument %r for %r at %s position: %s" % (raw, input, ordinal(self.index), error),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                token=token,
                name=flag.name,
                value=raw,
                index=self.index,
                hint="%r expects a %s value" % (input, flag.value.typename),
            )

        if flag.deprecated:
            self._deprecation("flag '--%s' has been deprecated, %s" % (flag.name, flag.deprecated), flag, token)
        if not input.startswith("--") and flag.shorthand_deprecated:
            self._deprecation(
                "flag shorthand '-%s' has been deprecated, %s" % (flag.shorthand, flag.shorthand_deprecated),
                flag,
                token,
            )
        return None

    def _deprecation(self, message, flag, token):
        self.warnings.append(DeprecatedFlagWarning(
            message,
            title="deprecated flag",
            code=FaultCode.DEPRECATED_FLAG,
            token=token,
            name=flag.name,
            index=self.index,
        ))


__all__ = (
    "State",
    "Dispatcher",
)
