"""
Flags module behavioral tests (registry construction, lookup, introspection).

Scope
- Validate registration rules: names, shorthands, values and duplicates in any order.
- Validate lookups: exact, unambiguous prefix, ambiguous prefix, shorthand.
- Validate flag entries: no-opt defaults, default rendering, explicit state.
- Validate programmatic assignment, deprecation marks and the default registry.

Conventions
- Test method names follow CamelCase per project convention.
- Every test builds its own FlagSet; the process-wide registry is only inspected.
"""

from __future__ import annotations

import unittest
from datetime import timedelta
from unittest import TestCase

from pennant import (
    FlagSet,
    FlagState,
    ErrorPolicy,
    BoolValue,
    IntValue,
    StringValue,
    CountValue,
    DurationValue,
    DuplicateFlagError,
    UnknownFlagError,
    AmbiguousFlagError,
    InvalidValueError,
    DeprecatedFlagWarning,
    commandline,
    register,
    parse,
)


class TestRegistration(TestCase):
    """Construction-time rules of FlagSet.register()."""

    def setUp(self):
        self.flags = FlagSet("tool")

    def testRegisterReturnsEntry(self):
        value = IntValue(3)
        flag = self.flags.register("count", value, "c", "how many")
        self.assertEqual(flag.name, "count")
        self.assertEqual(flag.shorthand, "c")
        self.assertIs(flag.value, value)
        self.assertEqual(flag.usage, "how many")
        self.assertEqual(flag.default, "3")
        self.assertIs(flag.state, FlagState.DEFAULT)
        self.assertFalse(flag.changed)

    def testDuplicateLongNameEitherOrder(self):
        for first, second in (("a", None), (None, "a")):
            flags = FlagSet()
            flags.register("name", BoolValue(), first)
            with self.assertRaises(DuplicateFlagError):
                flags.register("name", BoolValue(), second)

    def testDuplicateShorthandEitherOrder(self):
        for first, second in (("alpha", "beta"), ("beta", "alpha")):
            flags = FlagSet()
            flags.register(first, BoolValue(), "x")
            with self.assertRaises(DuplicateFlagError) as context:
                flags.register(second, BoolValue(), "x")
            self.assertEqual(context.exception.options["shorthand"], "x")

    def testRejectedRegistrationLeavesRegistryIntact(self):
        self.flags.register("name", BoolValue(), "n")
        with self.assertRaises(DuplicateFlagError):
            self.flags.register("other", BoolValue(), "n")
        self.assertNotIn("other", self.flags)
        self.assertEqual(len(self.flags), 1)

    def testInvalidNames(self):
        for name in ("", "-verbose", "a=b"):
            with self.assertRaises(ValueError, msg=name):
                self.flags.register(name, BoolValue())
        with self.assertRaises(TypeError):
            self.flags.register(3, BoolValue())

    def testInvalidShorthands(self):
        for shorthand in ("ab", "", "-", "="):
            with self.assertRaises(ValueError, msg=shorthand):
                self.flags.register("name", BoolValue(), shorthand)

    def testValueMustImplementContract(self):
        with self.assertRaises(TypeError):
            self.flags.register("name", "not a value")

    def testNoOptDefaultInheritedFromValue(self):
        self.assertEqual(self.flags.register("bool", BoolValue()).no_opt_default, "true")
        self.assertEqual(self.flags.register("count", CountValue()).no_opt_default, "+1")
        self.assertIsNone(self.flags.register("int", IntValue()).no_opt_default)

    def testNoOptDefaultOverrides(self):
        self.assertEqual(self.flags.register("level", IntValue(), no_opt_default="5").no_opt_default, "5")
        self.assertIsNone(self.flags.register("strict", BoolValue(), no_opt_default=None).no_opt_default)
        with self.assertRaises(TypeError):
            self.flags.register("bad", IntValue(), no_opt_default=5)

    def testNormalizeAppliesToNames(self):
        flags = FlagSet(normalize=lambda name: name.replace("_", "-"))
        flags.register("dry_run", BoolValue())
        self.assertIn("dry-run", flags)
        self.assertIs(flags.lookup("dry_run"), flags.lookup("dry-run"))
        with self.assertRaises(DuplicateFlagError):
            flags.register("dry-run", BoolValue())


class TestLookup(TestCase):
    """Exact, abbreviated and shorthand resolution."""

    def setUp(self):
        self.flags = FlagSet("tool")
        self.verbose = self.flags.register("verbose", BoolValue(), "v")
        self.version = self.flags.register("version", BoolValue())
        self.output = self.flags.register("output", StringValue(), "o")

    def testExactLookup(self):
        self.assertIs(self.flags.lookup("output"), self.output)
        self.assertIsNone(self.flags.lookup("out"))
        self.assertIsNone(self.flags.lookup("missing"))

    def testLookupLongExactBeatsPrefix(self):
        flags = FlagSet()
        exact = flags.register("out", StringValue())
        flags.register("output", StringValue())
        self.assertIs(flags.lookup_long("out"), exact)

    def testLookupLongUniquePrefix(self):
        self.assertIs(self.flags.lookup_long("verb"), self.verbose)
        self.assertIs(self.flags.lookup_long("o"), self.output)

    def testLookupLongAmbiguousPrefix(self):
        with self.assertRaises(AmbiguousFlagError) as context:
            self.flags.lookup_long("ver")
        self.assertEqual(context.exception.candidates, ("verbose", "version"))
        self.assertEqual(context.exception.name, "ver")

    def testLookupLongWithoutAbbreviation(self):
        with self.assertRaises(UnknownFlagError):
            self.flags.lookup_long("verb", abbreviate=False)

    def testLookupLongUnknown(self):
        with self.assertRaises(UnknownFlagError) as context:
            self.flags.lookup_long("quiet")
        self.assertEqual(context.exception.name, "quiet")

    def testLookupShort(self):
        self.assertIs(self.flags.lookup_short("v"), self.verbose)
        with self.assertRaises(UnknownFlagError):
            self.flags.lookup_short("q")

    def testMappingProtocol(self):
        self.assertEqual([flag.name for flag in self.flags], ["verbose", "version", "output"])
        self.assertEqual(len(self.flags), 3)
        self.assertIs(self.flags["output"], self.output)
        self.assertIn("version", self.flags)
        self.assertNotIn("vers", self.flags)
        self.assertNotIn(3, self.flags)
        with self.assertRaises(KeyError):
            self.flags["vers"]


class TestIntrospection(TestCase):
    """Post-parse state and programmatic assignment."""

    def setUp(self):
        self.flags = FlagSet("tool")
        self.verbose = self.flags.register("verbose", BoolValue(), "v")
        self.level = self.flags.register("level", IntValue(1), "l")

    def testFreshFlagSet(self):
        self.assertFalse(self.flags.parsed)
        self.assertEqual(self.flags.args, ())
        self.assertIsNone(self.flags.dash_index)
        self.assertEqual(list(self.flags.explicit()), [])

    def testStateFlipsOnceAndStays(self):
        self.flags.parse(["--level", "4"])
        self.assertIs(self.level.state, FlagState.EXPLICITLY_SET)
        self.flags.parse([])
        self.assertIs(self.level.state, FlagState.EXPLICITLY_SET)
        self.assertTrue(self.flags.changed("level"))
        self.assertFalse(self.flags.changed("verbose"))
        self.assertFalse(self.flags.changed("missing"))

    def testDefaultIsRegistrationRendering(self):
        self.flags.parse(["--level=9"])
        self.assertEqual(self.level.default, "1")
        self.assertEqual(self.level.render(), "9")
        self.assertEqual(self.level.get(), 9)

    def testExplicitInRegistrationOrder(self):
        self.flags.parse(["-l", "2", "-v"])
        self.assertEqual([flag.name for flag in self.flags.explicit()], ["verbose", "level"])

    def testProgrammaticSet(self):
        self.flags.set("level", "7")
        self.assertEqual(self.level.get(), 7)
        self.assertTrue(self.level.changed)

    def testProgrammaticSetFailures(self):
        with self.assertRaises(UnknownFlagError):
            self.flags.set("missing", "1")
        with self.assertRaises(InvalidValueError) as context:
            self.flags.set("level", "seven")
        self.assertEqual(context.exception.value, "seven")
        self.assertEqual(self.level.get(), 1)
        self.assertFalse(self.level.changed)

    def testProgrammaticSetOutOfRange(self):
        value = DurationValue(timedelta(seconds=3))
        flag = self.flags.register("delay", value, "d")
        with self.assertRaises(InvalidValueError):
            self.flags.set("delay", "99999999999999h")
        self.assertEqual(value.get(), timedelta(seconds=3))
        self.assertFalse(flag.changed)

    def testProgrammaticSetOfDeprecatedFlagWarns(self):
        self.flags.mark_deprecated("level", "use --verbose instead")
        with self.assertWarns(DeprecatedFlagWarning):
            self.flags.set("level", "2")

    def testDeprecationMarks(self):
        self.flags.mark_deprecated("verbose", "it is always on")
        self.assertEqual(self.verbose.deprecated, "it is always on")
        self.flags.mark_shorthand_deprecated("level", "use --level")
        self.assertEqual(self.level.shorthand_deprecated, "use --level")
        with self.assertRaises(KeyError):
            self.flags.mark_deprecated("missing", "gone")
        with self.assertRaises(ValueError):
            self.flags.mark_deprecated("verbose", "  ")
        flags = FlagSet()
        flags.register("long-only", BoolValue())
        with self.assertRaises(ValueError):
            flags.mark_shorthand_deprecated("long-only", "no shorthand")

    def testRepr(self):
        self.assertIn("name='level'", repr(self.level))
        self.assertIn("'verbose'", repr(self.flags))


class TestDefaultRegistry(TestCase):
    """The process-wide FlagSet and the module-level helpers."""

    def testCommandlineIsCached(self):
        self.assertIs(commandline(), commandline())
        self.assertIs(commandline().policy, ErrorPolicy.TERMINATE)

    def testHelpersAcceptExplicitFlagSet(self):
        flags = FlagSet("isolated")
        value = BoolValue()
        flag = register("bool", value, "b", "bool value", flagset=flags)
        self.assertIs(flags.lookup("bool"), flag)
        self.assertNotIn(flag, list(commandline()))
        self.assertEqual(parse(["--bool", "rest"], flagset=flags), ["rest"])
        self.assertTrue(value.get())

    def testFlagSetValidatesOptions(self):
        with self.assertRaises(TypeError):
            FlagSet(3)
        with self.assertRaises(TypeError):
            FlagSet("tool", "report")
        with self.assertRaises(TypeError):
            FlagSet("tool", normalize="lower")


if __name__ == "__main__":
    unittest.main()
